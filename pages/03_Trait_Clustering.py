"""Analysis 3: K-Means Clustering of Germination Trait Profiles."""
import streamlit as st
import pandas as pd

from utils.data_loader import (
    DataQualityError, cached_trait_table, load_or_stop, sidebar_path,
)
from utils.clustering import (
    cluster_sizes, dispersion_curve, distinct_rows, pca_projection, run_kmeans, scale_traits,
    silhouette_curve, silhouette_values, summarize_clusters,
)
from utils.plotting import (
    cluster_scatter, dispersion_chart, heatmap_chart, silhouette_chart,
    silhouette_profile_chart,
)
from utils.constants import (
    DEFAULT_RESTARTS, DEFAULT_SEED, K_CANDIDATES, MISSING_SENTINEL,
    SENTINEL_REPLACEMENTS, TRAIT_LABELS, TRAITS_PATH,
)
from utils.ui_components import (
    analysis_header, concept_box, formula_box, insight_box, caveat_box,
    code_example, takeaways, navigation,
)

# ── Page config ──────────────────────────────────────────────────────────────
analysis_header(3, "Clustering Germination Trait Profiles", part="II")
st.markdown(
    "Each species in the germination screen is summarized by four hydrothermal-time "
    "parameters: how warm it has to be before anything happens, how much thermal and "
    "moisture 'time' a seed needs, and how tolerant the seed lot is of dry soil. "
    "Species with similar parameter sets should respond to a restoration seeding in "
    "similar ways, so grouping them is a practical first step toward choosing seed mixes. "
    "Here we standardize the traits, run k-means for a range of K, and look at two "
    "diagnostics side by side. **Choosing K is left to you.**"
)

# ── Load data ────────────────────────────────────────────────────────────────
path = sidebar_path("Trait table CSV", TRAITS_PATH, key="traits_path")
traits = load_or_stop(cached_trait_table, path)

st.sidebar.header("Clustering")
seed = st.sidebar.number_input("Random seed", value=DEFAULT_SEED, step=1, key="km_seed")
restarts = st.sidebar.slider("Random restarts per K", 1, 50, DEFAULT_RESTARTS, key="km_restarts")

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 1 -- The Trait Table
# ══════════════════════════════════════════════════════════════════════════════
st.header("1. The Trait Table")

st.dataframe(traits.round(3), use_container_width=True)

replaced = {
    col: value for col, value in SENTINEL_REPLACEMENTS.items() if col in traits.columns
}
concept_box(
    "Missing-Value Sentinel",
    f"In the raw sheet, <b>{MISSING_SENTINEL}</b> means a parameter could not be estimated "
    "because the seed lot never germinated. Those cells are replaced on load with fixed values "
    f"({', '.join(f'{c} = {v:g}' for c, v in replaced.items())}) chosen so the hydrothermal-time "
    "model predicts essentially zero germination. This is a modelling convention for these data, "
    "not a general imputation strategy."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 2 -- Standardizing
# ══════════════════════════════════════════════════════════════════════════════
st.header("2. Standardizing the Traits")

st.markdown(
    "Hydrothermal time runs into the hundreds while water potentials sit around -1 MPa. "
    "K-means uses Euclidean distance, so without scaling the largest-unit trait would "
    "decide every cluster on its own."
)
formula_box(
    "Z-score per trait",
    r"z_{ij} = \frac{x_{ij} - \bar{x}_j}{s_j}",
    "Each column ends up with sample mean 0 and sample standard deviation 1. A trait with "
    "zero variance cannot be scaled and stops the analysis."
)

try:
    scaled = scale_traits(traits)
except DataQualityError as e:
    st.error(f"**Cannot scale traits:** {e}")
    st.stop()

check = pd.DataFrame({"mean": scaled.mean(), "sd": scaled.std(ddof=1)})
check.index = [TRAIT_LABELS.get(c, c) for c in check.index]
st.dataframe(check.round(6), use_container_width=True)

n = len(scaled)
max_k = distinct_rows(scaled)
k_values = [k for k in K_CANDIDATES if k <= max_k]
if max_k < n:
    dupes = scaled.index[scaled.duplicated(keep=False)].tolist()
    caveat_box(
        f"Only {max_k} of {n} trait profiles are distinct (identical: {', '.join(map(str, dupes))}). "
        f"K is capped at {max_k}; more clusters than distinct profiles would leave some empty."
    )

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 3 -- Diagnostics
# ══════════════════════════════════════════════════════════════════════════════
st.header("3. How Many Clusters?")

concept_box(
    "Two Diagnostics, One Decision",
    "The <b>dispersion curve</b> plots the total within-cluster sum of squares against K. It "
    "always goes down; what matters is where the drop flattens into an 'elbow'. The "
    "<b>silhouette curve</b> plots the average silhouette width, which is undefined for K = 1. "
    "Neither is a rule. Read both, then pick K with the slider below."
)

formula_box(
    "Silhouette width of entity i",
    r"s(i) = \frac{b(i) - a(i)}{\max\{a(i),\, b(i)\}}",
    "a(i) is the mean distance to the other members of its own cluster; b(i) is the mean "
    "distance to the members of the nearest other cluster. Values near 1 sit comfortably "
    "in their cluster, values near 0 are on a boundary, negative values look misassigned."
)

disp = dispersion_curve(scaled, k_values, restarts=restarts, seed=int(seed))
sil_curve = silhouette_curve(scaled, k_values, restarts=restarts, seed=int(seed))

default_k = min(3, max_k)
K = st.slider("Number of clusters (K)", 1, max(k_values), default_k, 1, key="km_k")

col1, col2 = st.columns(2)
with col1:
    st.plotly_chart(dispersion_chart(disp, selected_k=K), use_container_width=True)
with col2:
    st.plotly_chart(silhouette_chart(sil_curve, selected_k=K), use_container_width=True)

with st.expander("Diagnostic values"):
    st.dataframe(disp.merge(sil_curve, on="k", how="left").round(4), use_container_width=True)

caveat_box(
    "There is no automatic elbow detector here on purpose. Elbow position depends on how "
    "you squint at the curve, and the silhouette optimum can disagree with it. Both curves "
    "are evidence; the choice of K stays with the analyst."
)

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 4 -- The Chosen Partition
# ══════════════════════════════════════════════════════════════════════════════
st.header(f"4. The K={K} Partition")

result = run_kmeans(scaled, K, restarts=restarts, seed=int(seed))
labels = result["labels"]

m1, m2, m3 = st.columns(3)
m1.metric("Clusters", K)
m2.metric("Total within SS", f"{result['total_within_ss']:.2f}")
if 2 <= labels.nunique() <= n - 1:
    sil = silhouette_values(scaled, labels)
    m3.metric("Mean silhouette", f"{sil.mean():.3f}")
else:
    sil = None
    m3.metric("Mean silhouette", "undefined")

if scaled.shape[1] >= 2:
    scores, explained = pca_projection(scaled)
    st.plotly_chart(
        cluster_scatter(scores, labels, explained, title="Species on the First Two Principal Components"),
        use_container_width=True,
    )
    st.caption(
        f"PC1 and PC2 together carry {explained.sum():.1%} of the variance in the scaled traits. "
        "Clusters were found in the full trait space, so some overlap in this projection is expected."
    )

if sil is not None:
    st.plotly_chart(
        silhouette_profile_chart(sil, labels, title=f"Silhouette Profile (K={K})",
                                 height=max(400, 18 * n)),
        use_container_width=True,
    )
    n_negative = int((sil < 0).sum())
    if n_negative:
        insight_box(
            f"{n_negative} species have negative silhouette widths: they sit closer, on average, to "
            "another cluster than to their own. Check them by hand before reading much into their group."
        )

# ══════════════════════════════════════════════════════════════════════════════
# SECTION 5 -- Cluster Profiles
# ══════════════════════════════════════════════════════════════════════════════
st.header("5. What the Clusters Mean")

st.markdown(
    "Scaled centroids are hard to read, so the profiles below are averages of the "
    "**original** trait values for the members of each cluster."
)

summary = summarize_clusters(traits, labels)
sizes = cluster_sizes(labels)
display = summary.set_index("cluster")
display.insert(0, "members", sizes)
display.columns = [TRAIT_LABELS.get(c, c) for c in display.columns]
st.dataframe(display.round(3), use_container_width=True)

profile = result["centroids"].copy()
profile.index = [f"Cluster {i}" for i in profile.index]
profile.columns = [TRAIT_LABELS.get(c, c) for c in profile.columns]
st.plotly_chart(
    heatmap_chart(profile, title="Cluster Centroids (scaled units)", height=350),
    use_container_width=True,
)

with st.expander("Cluster membership"):
    members = labels.to_frame().reset_index().sort_values(["cluster", labels.index.name or "index"])
    st.dataframe(members, use_container_width=True, hide_index=True)

code_example("""
from utils.data_loader import load_trait_table
from utils.clustering import (
    scale_traits, run_kmeans, dispersion_curve, silhouette_curve, summarize_clusters,
)

traits = load_trait_table("data/germination_traits.csv")   # -999 replaced on load
scaled = scale_traits(traits)

# Diagnostics for K = 1..10, same seed every time
disp = dispersion_curve(scaled, range(1, 11), restarts=25, seed=42)
sil = silhouette_curve(scaled, range(2, 11), restarts=25, seed=42)

# After looking at both curves, fit the K you chose
result = run_kmeans(scaled, k=3, restarts=25, seed=42)
summary = summarize_clusters(traits, result["labels"])
""")

st.divider()

takeaways([
    "Scale the traits first: k-means distances are dominated by whichever trait has the biggest units.",
    "Every run here takes the seed as an argument, so the same seed and K always give the same partition.",
    "The dispersion curve and the silhouette curve are advisory. They often disagree, and neither picks K for you.",
    "Summarize clusters on the original scale; that is the version a field ecologist can act on.",
    "Sentinel-coded species (no germination observed) tend to end up together, which is the intended effect of the replacement values.",
])

navigation(
    prev_label="Logistic Mixed Model", prev_page="02_Logistic_Mixed_Model.py",
    next_label="Germination Surfaces", next_page="04_Germination_Surfaces.py",
)
