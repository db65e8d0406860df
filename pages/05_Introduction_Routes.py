"""Analysis 5: Introduction Routes -- a geographic network of invasive-species spread."""
import streamlit as st

from utils.data_loader import cached_routes, load_or_stop, sidebar_path
from utils.routes import build_route_network, filter_routes
from utils.plotting import route_map
from utils.constants import ROUTES_PATH
from utils.ui_components import (
    analysis_header, concept_box, insight_box, caveat_box,
    code_example, takeaways, navigation,
)

# ── Header ───────────────────────────────────────────────────────────────────
analysis_header(5, "Invasive-Species Introduction Routes", part="IV")
st.markdown(
    "Herbarium records and customs archives let us reconstruct where an invader came from "
    "and where it was first recorded. Drawn on a map, those records form a network: source "
    "regions that keep exporting weeds, and recipient regions that keep receiving them."
)

# ── Load data ────────────────────────────────────────────────────────────────
path = sidebar_path("Routes CSV", ROUTES_PATH, key="routes_path")
routes = load_or_stop(cached_routes, path)

st.sidebar.header("Filters")
species_all = sorted(routes["species"].unique())
species = st.sidebar.multiselect("Species", species_all, default=species_all, key="routes_species")
y_min, y_max = int(routes["year"].min()), int(routes["year"].max())
if y_min < y_max:
    years = st.sidebar.slider("First-record year", y_min, y_max, (y_min, y_max), key="routes_years")
else:
    years = (y_min, y_max)

subset = filter_routes(routes, species=species, year_range=years)
if subset.empty:
    st.info("No routes match the current filters.")
    st.stop()

# ── 5.1 Network ─────────────────────────────────────────────────────────────
st.header("5.1  The Route Network")

concept_box(
    "Nodes and Edges",
    "Each <b>node</b> is a region; its size grows with the number of other regions it is "
    "connected to. Each <b>edge</b> is a source-to-recipient route; its width grows with the "
    "number of recorded introductions along it."
)

nodes, edges = build_route_network(subset)

projection = st.selectbox("Map projection", ["natural earth", "equirectangular", "orthographic"],
                          key="routes_proj")
fig = route_map(nodes, edges, title="Introduction Routes", projection=projection)
st.plotly_chart(fig, use_container_width=True)

c1, c2, c3 = st.columns(3)
c1.metric("Records", len(subset))
c2.metric("Regions", len(nodes))
c3.metric("Distinct routes", len(edges))

# ── 5.2 Hubs ────────────────────────────────────────────────────────────────
st.header("5.2  Source and Recipient Hubs")

col_a, col_b = st.columns(2)
with col_a:
    st.markdown("**Top sources** (distinct recipient regions)")
    st.dataframe(nodes.sort_values("out_degree", ascending=False)[["name", "out_degree"]].head(8),
                 use_container_width=True, hide_index=True)
with col_b:
    st.markdown("**Top recipients** (distinct source regions)")
    st.dataframe(nodes.sort_values("in_degree", ascending=False)[["name", "in_degree"]].head(8),
                 use_container_width=True, hide_index=True)

st.markdown("**Routes**")
st.dataframe(edges[["origin", "destination", "n_introductions", "n_species", "first_year"]],
             use_container_width=True, hide_index=True)

top = edges.iloc[0]
insight_box(
    f"The busiest route is **{top['origin']} → {top['destination']}** with "
    f"{top['n_introductions']} recorded introduction(s) of {top['n_species']} species. "
    "Mediterranean-climate regions trade weeds with each other far more than with anywhere else."
)

# ── 5.3 Export ──────────────────────────────────────────────────────────────
st.header("5.3  Save the Map")

st.download_button(
    "Download interactive map (HTML)",
    data=fig.to_html(include_plotlyjs="cdn"),
    file_name="introduction_routes.html",
    mime="text/html",
    key="routes_download",
)

caveat_box(
    "First records are biased toward places with herbaria and botanists. An edge that is "
    "missing may simply be unsampled."
)

code_example("""
from utils.data_loader import load_routes
from utils.routes import build_route_network, save_figure
from utils.plotting import route_map

routes = load_routes("data/introduction_routes.csv")
nodes, edges = build_route_network(routes)
fig = route_map(nodes, edges, title="Introduction Routes")
save_figure(fig, "introduction_routes.html")
""")

st.divider()

takeaways([
    "Route records collapse naturally into a weighted, directed network.",
    "Out-degree finds the source regions; in-degree finds the regions most exposed to invasion.",
    "Edge widths show how often a route was used, not just whether it exists.",
])

navigation(prev_label="Germination Surfaces", prev_page="04_Germination_Surfaces.py")
