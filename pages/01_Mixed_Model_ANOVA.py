"""Analysis 1: Mixed-Model ANOVA -- treatment effects on plant traits with blocks as random effects."""
import streamlit as st
import pandas as pd

from utils.data_loader import cached_field_trial, load_or_stop, sidebar_path
from utils.plotting import apply_common_layout, box_chart
from utils.stats_helpers import descriptive_stats, mixed_model_anova, perform_anova, two_way_anova
from utils.constants import FIELD_RESPONSES, FIELD_TRIAL_PATH
from utils.ui_components import (
    analysis_header, concept_box, formula_box, insight_box, caveat_box,
    model_warnings, code_example, takeaways, navigation,
)

RESPONSE_LABELS = {"height_cm": "Plant Height (cm)", "biomass_g": "Aboveground Biomass (g)"}

# ---------------------------------------------------------------------------
analysis_header(1, "Mixed-Model ANOVA", part="I")

path = sidebar_path("Field trial CSV", FIELD_TRIAL_PATH, key="trial_path")
trial = load_or_stop(cached_field_trial, path)

st.markdown(
    "The common-garden trial crossed four watering/fertility treatments with three source "
    "populations, replicated in randomized blocks across the field. Blocks are not something "
    "we care about in themselves. They are a nuisance: one corner of the field drains "
    "better, another gets afternoon shade. A mixed model treats block as a **random effect** "
    "so its variance is soaked up without spending a degree of freedom per block on "
    "questions nobody asked."
)

# ---------------------------------------------------------------------------
# 1. Theory
# ---------------------------------------------------------------------------
concept_box(
    "Fixed vs Random Effects",
    "<b>Fixed effects</b> are the levels you chose on purpose and want to compare: treatments, "
    "populations. <b>Random effects</b> are levels sampled from a larger pool, here the blocks, "
    "whose individual values are uninteresting but whose spread matters. Ignoring blocks lumps "
    "their variation into the residual and makes every treatment comparison noisier.",
)

formula_box(
    "Random-intercept model",
    r"y_{ijk} = \mu + \tau_i + \pi_j + (\tau\pi)_{ij} + b_k + \varepsilon_{ijk},"
    r"\quad b_k \sim N(0, \sigma^2_b),\ \varepsilon_{ijk} \sim N(0, \sigma^2)",
    "tau = treatment, pi = population, b = block. Fitted by REML; fixed terms are tested with "
    "joint Wald chi-square tests.",
)

st.divider()

# ---------------------------------------------------------------------------
# 2. The data
# ---------------------------------------------------------------------------
st.subheader("The Trial")

c1, c2, c3, c4 = st.columns(4)
c1.metric("Plants", f"{len(trial):,}")
c2.metric("Treatments", trial["treatment"].nunique())
c3.metric("Populations", trial["population"].nunique())
c4.metric("Blocks", trial["block"].nunique())

response = st.selectbox(
    "Response trait", FIELD_RESPONSES,
    format_func=lambda c: RESPONSE_LABELS.get(c, c), key="mm_response",
)

fig_box = box_chart(trial, x="treatment", y=response,
                    labels={response: RESPONSE_LABELS[response], "treatment": "Treatment"},
                    title=f"{RESPONSE_LABELS[response]} by Treatment")
st.plotly_chart(fig_box, use_container_width=True)

desc = pd.DataFrame({t: descriptive_stats(g[response]) for t, g in trial.groupby("treatment")}).T
st.dataframe(desc.round(2), use_container_width=True)

fig_block = apply_common_layout(
    box_chart(trial, x="block", y=response, color="block",
              labels={response: RESPONSE_LABELS[response], "block": "Block"}),
    title="Block-to-Block Variation", height=380,
)
fig_block.update_layout(showlegend=False)
st.plotly_chart(fig_block, use_container_width=True)

# ---------------------------------------------------------------------------
# 3. Mixed model
# ---------------------------------------------------------------------------
st.subheader("Fitting the Mixed Model")

fixed = st.multiselect("Fixed factors", ["treatment", "population"],
                       default=["treatment", "population"], key="mm_fixed")
if not fixed:
    st.info("Pick at least one fixed factor.")
    st.stop()

mm = mixed_model_anova(trial, response, fixed, random="block")
model_warnings(mm["warnings"])

st.code(f"{mm['formula']}   +   (1 | block)", language="text")

st.markdown("#### Wald Tests for Fixed Terms")
wald = mm["wald"].copy()
wald["term"] = wald["term"].str.replace(r"C\((\w+)\)", r"\1", regex=True).str.replace(":", " x ")
st.dataframe(wald.set_index("term").round(4), use_container_width=True)

st.markdown("#### Fixed-Effect Estimates")
st.dataframe(mm["fixed_effects"].round(4), use_container_width=True)

v1, v2, v3 = st.columns(3)
v1.metric("Block variance", f"{mm['var_random']:.2f}")
v2.metric("Residual variance", f"{mm['var_residual']:.2f}")
v3.metric("ICC (block)", f"{mm['icc']:.3f}")

if mm["icc"] > 0.1:
    insight_box(
        f"Blocks account for {mm['icc']:.0%} of the variance left after the fixed effects. "
        "That is enough that a plain ANOVA ignoring blocks would overstate the precision of "
        "every treatment contrast."
    )
else:
    insight_box(
        f"Blocks account for only {mm['icc']:.0%} of the remaining variance. The field was "
        "fairly uniform, and a fixed-effects ANOVA would tell a similar story."
    )

if not mm["converged"]:
    caveat_box("The optimizer did not report convergence. Treat the variance components with suspicion.")

# ---------------------------------------------------------------------------
# 4. Comparison
# ---------------------------------------------------------------------------
st.subheader("For Comparison: Ignoring the Blocks")

groups = [g[response].values for _, g in trial.groupby("treatment")]
ow = perform_anova(*groups)
a1, a2 = st.columns(2)
a1.metric("One-way F (treatment)", f"{ow['f_stat']:.2f}")
a2.metric("p-value", f"{ow['p_value']:.2e}")

st.markdown("#### Fixed-effects two-way ANOVA (Type II)")
tw = two_way_anova(trial, response, "treatment", "population")
tw.index = tw.index.str.replace(r"C\((\w+)\)", r"\1", regex=True).str.replace(":", " x ")
st.dataframe(tw.round(4), use_container_width=True)

caveat_box(
    "The fixed-effects table treats every plant as independent. Plants in the same block are "
    "not, so its residual mean square mixes block and plant-level noise."
)

code_example("""
import statsmodels.formula.api as smf

model = smf.mixedlm(
    "height_cm ~ C(treatment) * C(population)",
    data=trial,
    groups=trial["block"],          # random intercept per block
)
fit = model.fit(reml=True)
print(fit.summary())

# Intraclass correlation for blocks
var_block = float(fit.cov_re.iloc[0, 0])
icc = var_block / (var_block + fit.scale)
""")

st.divider()

takeaways([
    "Blocks are a random effect: we estimate their variance, not a coefficient for each one.",
    "The ICC tells you how much of the leftover variation is shared within blocks.",
    "Fixed terms are tested jointly with Wald chi-square tests; interaction first, then main effects.",
    "A fixed-effects ANOVA on the same data is a useful sanity check but overstates independence.",
])

navigation(next_label="Logistic Mixed Model", next_page="02_Logistic_Mixed_Model.py")
