"""Analysis 2: Logistic Mixed Model -- does treatment change the odds of flowering?"""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from utils.data_loader import cached_field_trial, load_or_stop, sidebar_path
from utils.plotting import apply_common_layout
from utils.stats_helpers import logistic_mixed_model, predicted_probability
from utils.constants import FIELD_TRIAL_PATH, TREATMENT_COLORS
from utils.ui_components import (
    analysis_header, concept_box, formula_box, insight_box, caveat_box,
    model_warnings, code_example, takeaways, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
analysis_header(2, "Mixed-Effects Logistic Regression", part="I")
st.markdown(
    "Not every plant in the trial flowered in its first season. Flowering is a yes/no "
    "outcome, so the ANOVA machinery from the previous page does not apply. Logistic "
    "regression models the log-odds of flowering instead, and a random intercept per "
    "block again absorbs the patchiness of the field."
)

# ── Load data ────────────────────────────────────────────────────────────────
path = sidebar_path("Field trial CSV", FIELD_TRIAL_PATH, key="trial_path_logit")
trial = load_or_stop(cached_field_trial, path)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 1 -- The model
# ══════════════════════════════════════════════════════════════════════════════
st.header("1. The Model")

formula_box(
    "Random-intercept logistic model",
    r"\operatorname{logit} P(\text{flowered}_{ik} = 1) = \beta_0 + \beta_{\text{trt}(i)} "
    r"+ \beta_h\, \text{height}_i + b_k, \quad b_k \sim N(0, \sigma_b^2)",
    "Coefficients are on the log-odds scale; exponentiate them for odds ratios."
)

concept_box(
    "How It Is Fitted",
    "Mixed logistic models have no closed-form likelihood, so every package approximates. "
    "Here the model is fitted by <b>variational Bayes</b> (statsmodels "
    "<code>BinomialBayesMixedGLM</code>), which returns approximate posterior means and SDs. "
    "If the optimizer struggles you will see a warning, but the page keeps going: a "
    "non-converged fit is worth looking at, just not worth trusting blindly."
)

rate = trial.groupby("treatment")["flowered"].agg(["mean", "size"]).rename(
    columns={"mean": "Proportion flowered", "size": "Plants"})
st.dataframe(rate.round(3), use_container_width=True)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 2 -- Fit
# ══════════════════════════════════════════════════════════════════════════════
st.header("2. Fitting")

include_height = st.checkbox("Include plant height as a covariate", value=True, key="logit_height")
fixed_terms = ["C(treatment)"] + (["height_cm"] if include_height else [])

res = logistic_mixed_model(trial, "flowered", fixed_terms, random="block")
model_warnings(res["warnings"])

st.code(f"{res['formula']}   +   (1 | block)", language="text")

col1, col2 = st.columns(2)
with col1:
    st.markdown("#### Mixed model (posterior)")
    st.dataframe(res["posterior"].round(3), use_container_width=True)
with col2:
    st.markdown("#### Ordinary logistic GLM (no blocks)")
    st.dataframe(res["glm"].round(3), use_container_width=True)

m1, m2 = st.columns(2)
m1.metric("Block random-effect SD (log-odds)", f"{res['random_sd']:.3f}")
m2.metric("Blocks", res["n_groups"])

insight_box(
    "The mixed-model intervals are usually a little wider than the GLM's standard errors. "
    "That is the price of admitting plants in the same block are not independent."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 3 -- Predicted probabilities
# ══════════════════════════════════════════════════════════════════════════════
if include_height:
    st.header("3. Predicted Probability of Flowering")

    coefs = res["posterior"]["post_mean"]
    heights = np.linspace(trial["height_cm"].min(), trial["height_cm"].max(), 100)
    treatments = sorted(trial["treatment"].unique())

    fig = go.Figure()
    for trt in treatments:
        design = pd.DataFrame(0.0, index=range(len(heights)), columns=coefs.index)
        design["Intercept"] = 1.0
        design["height_cm"] = heights
        dummy = f"C(treatment)[T.{trt}]"
        if dummy in design.columns:
            design[dummy] = 1.0
        fig.add_trace(go.Scatter(
            x=heights, y=predicted_probability(coefs, design), mode="lines", name=trt,
            line=dict(color=TREATMENT_COLORS.get(trt, "#636EFA"), width=3),
        ))
    apply_common_layout(fig, title="Flowering Probability for an Average Block", height=450)
    fig.update_layout(xaxis_title="Plant Height (cm)", yaxis=dict(title="P(flowered)", range=[0, 1]))
    st.plotly_chart(fig, use_container_width=True)

    caveat_box(
        "These curves set the block effect to zero, i.e. a typical block. Individual blocks "
        "shift the whole curve left or right by their random intercept."
    )

code_example("""
import statsmodels.formula.api as smf
from statsmodels.genmod.bayes_mixed_glm import BinomialBayesMixedGLM

model = BinomialBayesMixedGLM.from_formula(
    "flowered ~ C(treatment) + height_cm",
    {"block": "0 + C(block)"},      # random intercept per block
    trial,
)
fit = model.fit_vb()
print(fit.summary())
""")

st.divider()

takeaways([
    "Binary outcomes need a logistic link; coefficients live on the log-odds scale.",
    "A random intercept per block handles field heterogeneity just as it did for height.",
    "Convergence warnings are reported, not fatal: inspect the fit before trusting it.",
    "Compare with the plain GLM to see how much the block structure changes the picture.",
])

navigation(
    prev_label="Mixed-Model ANOVA", prev_page="01_Mixed_Model_ANOVA.py",
    next_label="Trait Clustering", next_page="03_Trait_Clustering.py",
)
