"""Analysis 4: Germination Response Surfaces from the hydrothermal-time model."""
import streamlit as st
import numpy as np
import pandas as pd

from utils.data_loader import cached_germination_traits, load_or_stop, sidebar_path
from utils.surfaces import response_surface, species_parameters, time_course
from utils.plotting import multi_line, surface_figure
from utils.constants import TRAIT_LABELS, TRAITS_PATH
from utils.ui_components import (
    analysis_header, concept_box, formula_box, insight_box, caveat_box,
    code_example, takeaways, navigation,
)

# ── Header ───────────────────────────────────────────────────────────────────
analysis_header(4, "Germination Response Surfaces", part="III")
st.markdown(
    "A table of four parameters per species is compact but not very intuitive. Plugging "
    "those parameters back into the hydrothermal-time model turns each row into a surface: "
    "predicted germination across every combination of soil temperature and soil water "
    "potential on a given day after sowing."
)

# ── Load data ────────────────────────────────────────────────────────────────
path = sidebar_path("Trait table CSV", TRAITS_PATH, key="surface_traits_path")
traits = load_or_stop(cached_germination_traits, path)

# ── 4.1 The model ───────────────────────────────────────────────────────────
st.header("4.1  The Hydrothermal-Time Model")

formula_box(
    "Cumulative germination",
    r"G(T, \psi, t) = \Phi\!\left(\frac{\psi - \dfrac{\theta_{HT}}{(T - T_b)\,t} - \psi_{b(50)}}{\sigma_{\psi_b}}\right),"
    r"\quad T > T_b",
    "Phi is the standard normal CDF. Below the base temperature nothing germinates."
)

params_table = traits.copy()
params_table.columns = [TRAIT_LABELS.get(c, c) for c in params_table.columns]
with st.expander("Parameter table"):
    st.dataframe(params_table.round(3), use_container_width=True)

concept_box(
    "Seeds on a Clock",
    "Each seed needs to accumulate a fixed amount of 'hydrothermal time': degrees above the "
    "base temperature, times MPa above its own base water potential, times days. Warm, wet "
    "soil gets there quickly; cool or dry soil slowly or never. Species with the sentinel "
    "hydrothermal time (no germination observed) sit flat on the floor of every surface."
)

# ── 4.2 Surface ─────────────────────────────────────────────────────────────
st.header("4.2  Response Surface")

species_list = traits.index.tolist()
col_a, col_b = st.columns(2)
with col_a:
    species = st.selectbox("Species", species_list, key="surf_species")
with col_b:
    day = st.slider("Days after sowing", 1, 60, 14, key="surf_day")

t_range = st.slider("Temperature range (°C)", -5.0, 40.0, (0.0, 35.0), 0.5, key="surf_trange")
w_range = st.slider("Water potential range (MPa)", -3.0, 0.0, (-2.5, 0.0), 0.1, key="surf_wrange")

temperatures = np.linspace(t_range[0], t_range[1], 60)
water_potentials = np.linspace(w_range[0], w_range[1], 60)

params = species_parameters(traits, species)
grid = response_surface(params, temperatures, water_potentials, day)
st.plotly_chart(
    surface_figure(grid, title=f"{species}: germination on day {day}"),
    use_container_width=True,
)

frac_any = float((grid.values > 0.5).mean())
insight_box(
    f"On day {day}, {species} passes 50% germination over {frac_any:.0%} of the plotted "
    "temperature x water-potential grid. Drag the day slider and watch the surface creep "
    "toward the dry, cool corner."
)

# ── 4.3 Compare species ─────────────────────────────────────────────────────
st.header("4.3  Comparing Time Courses")

compare = st.multiselect("Species to compare", species_list,
                         default=species_list[:min(4, len(species_list))], key="surf_compare")
c1, c2 = st.columns(2)
with c1:
    temp = st.slider("Soil temperature (°C)", 0.0, 35.0, 15.0, 0.5, key="surf_temp")
with c2:
    psi = st.slider("Soil water potential (MPa)", -3.0, 0.0, -0.5, 0.1, key="surf_psi")

days = np.arange(1, 61)
curves = []
for sp in compare:
    tc = time_course(species_parameters(traits, sp), temp, psi, days)
    curves.append(pd.DataFrame({"day": days, "germination_fraction": tc.values, "species": sp}))

if curves:
    fig_tc = multi_line(
        pd.concat(curves, ignore_index=True), x="day", y="germination_fraction", color="species",
        labels={"day": "Days after sowing", "germination_fraction": "Germination fraction"},
        title=f"Germination at {temp:g} °C and {psi:g} MPa",
    )
    fig_tc.update_yaxes(range=[0, 1])
    st.plotly_chart(fig_tc, use_container_width=True)
else:
    st.info("Pick at least one species to compare.")

caveat_box(
    "These are simulated curves from fitted parameters, not observations. Outside the range "
    "of temperatures and water potentials used in the germination screen they are extrapolations."
)

code_example("""
import numpy as np
from utils.surfaces import response_surface, species_parameters
from utils.plotting import surface_figure

params = species_parameters(traits, "Fast Warm sp. 1")
grid = response_surface(params,
                        temperatures=np.linspace(0, 35, 60),
                        water_potentials=np.linspace(-2.5, 0, 60),
                        days=14)
surface_figure(grid).show()
""")

st.divider()

takeaways([
    "Four hydrothermal-time parameters define a full germination response surface.",
    "Temperature below the base temperature, or soil drier than the base water potential, shuts germination off.",
    "Species with the sentinel hydrothermal time are predicted not to germinate at any condition.",
    "Surfaces make it easy to compare which species will establish under a dry or cool spring.",
])

navigation(
    prev_label="Trait Clustering", prev_page="03_Trait_Clustering.py",
    next_label="Introduction Routes", next_page="05_Introduction_Routes.py",
)
