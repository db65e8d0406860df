"""Shared UI components: section headers, callout boxes, navigation."""
import streamlit as st


def analysis_header(number, title, part=None):
    """Render an analysis header with its part label."""
    if part:
        st.caption(f"Part {part}")
    st.title(f"Analysis {number}: {title}")
    st.divider()


def concept_box(title, content):
    """Render a highlighted method/background box."""
    st.markdown(f"""
<div style="background-color: #EAF4F0; padding: 18px; border-radius: 10px; border-left: 5px solid #2A9D8F; margin: 10px 0;">
<h4 style="color: #1F6F66; margin-top: 0;">{title}</h4>
<p style="color: #264653;">{content}</p>
</div>
""", unsafe_allow_html=True)


def formula_box(title, formula, explanation=""):
    """Render a model formula with explanation."""
    st.markdown(f"**{title}**")
    st.latex(formula)
    if explanation:
        st.caption(explanation)


def insight_box(text):
    st.info(f"**Reading the result:** {text}")


def caveat_box(text):
    st.warning(f"**Caveat:** {text}")


def model_warnings(messages):
    """Show estimation warnings (e.g. non-convergence) without halting the page."""
    for msg in messages:
        st.warning(f"**Model warning:** {msg}")


def code_example(code, language="python"):
    """Render a collapsible code example."""
    with st.expander("Show Code"):
        st.code(code, language=language)


def takeaways(points):
    """Render key takeaways as a list."""
    st.subheader("Key Takeaways")
    for p in points:
        st.markdown(f"- {p}")


def navigation(prev_label=None, next_label=None, prev_page=None, next_page=None):
    """Render prev/next navigation links."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if prev_label:
            st.page_link(f"pages/{prev_page}", label=f"← {prev_label}")
    with col3:
        if next_label:
            st.page_link(f"pages/{next_page}", label=f"{next_label} →")
