"""Field Trial & Trait Analysis Notebook: main entry point."""
import os

import streamlit as st

from utils.constants import FIELD_TRIAL_PATH, PART_TITLES, ROUTES_PATH, TRAITS_PATH

st.set_page_config(
    page_title="Field Trial & Trait Analysis",
    page_icon="🌱",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("Field Trial & Trait Analysis Notebook")
st.subheader("Four worked analyses of plant trial, germination and invasion data")

st.markdown("""
This notebook collects four independent analyses that come up again and again in
restoration and invasion ecology. None of them needs anything exotic: each is a
standard statistical routine applied to one table and drawn as a figure. What they
share is the care needed around them: knowing which effects are random, scaling
traits before clustering, and resisting the urge to let a diagnostic curve choose for you.

### How to Use This Notebook

1. **Pick an analysis** from the sidebar. The pages do not depend on each other.
2. **Point it at your data.** Every page has a sidebar box for its CSV path; the default
   is the bundled example file under `data/`.
3. **Adjust and read.** Sliders change seeds, K, days after sowing, filters. Text under
   each figure explains what to look at.

### Analyses
""")

parts = {
    f"Part I: {PART_TITLES['I']} (Analyses 1-2)":
        "Mixed-model ANOVA of plant height and biomass; mixed-effects logistic regression of flowering",
    f"Part II: {PART_TITLES['II']} (Analysis 3)":
        "K-means clustering of germination trait profiles with elbow and silhouette diagnostics",
    f"Part III: {PART_TITLES['III']} (Analysis 4)":
        "3D hydrothermal-time germination surfaces simulated from the trait table",
    f"Part IV: {PART_TITLES['IV']} (Analysis 5)":
        "Geographic network of invasive-species introduction routes",
}

for part, desc in parts.items():
    st.markdown(f"**{part}** -- {desc}")

st.divider()

st.subheader("Bundled Data")
files = {
    "Field trial": FIELD_TRIAL_PATH,
    "Germination traits": TRAITS_PATH,
    "Introduction routes": ROUTES_PATH,
}
missing = [name for name, p in files.items() if not os.path.exists(p)]
for name, p in files.items():
    status = "found" if os.path.exists(p) else "missing"
    st.markdown(f"- **{name}**: `{os.path.relpath(p)}` ({status})")

if missing:
    st.warning(
        "Some example files are missing. Generate them with `python make_sample_data.py`, "
        "or enter your own CSV paths on each page."
    )
