"""Invasion-route network: aggregate origin/destination records into nodes and edges."""
import logging

import pandas as pd

from utils.data_loader import DataQualityError

logger = logging.getLogger(__name__)


def _check_coordinates(routes):
    for col in ["origin_lat", "dest_lat"]:
        bad = routes[(routes[col] < -90) | (routes[col] > 90)]
        if len(bad):
            raise DataQualityError(f"column '{col}' has latitudes outside [-90, 90]: {bad[col].tolist()}")
    for col in ["origin_lon", "dest_lon"]:
        bad = routes[(routes[col] < -180) | (routes[col] > 180)]
        if len(bad):
            raise DataQualityError(f"column '{col}' has longitudes outside [-180, 180]: {bad[col].tolist()}")


def build_route_network(routes):
    """Collapse route records into (nodes, edges) DataFrames.

    edges: one row per origin -> destination pair with the number of
    introduction records and distinct species.
    nodes: one row per location with coordinates and in/out degree, where
    degree counts distinct connected locations.
    """
    _check_coordinates(routes)

    edges = (
        routes.groupby(["origin", "destination"], as_index=False)
        .agg(
            origin_lat=("origin_lat", "first"),
            origin_lon=("origin_lon", "first"),
            dest_lat=("dest_lat", "first"),
            dest_lon=("dest_lon", "first"),
            n_introductions=("species", "size"),
            n_species=("species", "nunique"),
            first_year=("year", "min"),
        )
        .sort_values("n_introductions", ascending=False, ignore_index=True)
    )

    origins = routes[["origin", "origin_lat", "origin_lon"]].set_axis(["name", "lat", "lon"], axis=1)
    dests = routes[["destination", "dest_lat", "dest_lon"]].set_axis(["name", "lat", "lon"], axis=1)
    nodes = pd.concat([origins, dests]).groupby("name", as_index=False).first()

    out_deg = edges.groupby("origin")["destination"].nunique()
    in_deg = edges.groupby("destination")["origin"].nunique()
    nodes["out_degree"] = nodes["name"].map(out_deg).fillna(0).astype(int)
    nodes["in_degree"] = nodes["name"].map(in_deg).fillna(0).astype(int)

    logger.info("Route network: %d locations, %d routes from %d records",
                len(nodes), len(edges), len(routes))
    return nodes, edges


def filter_routes(routes, species=None, year_range=None):
    """Subset route records by species list and inclusive year range."""
    mask = pd.Series(True, index=routes.index)
    if species:
        mask &= routes["species"].isin(species)
    if year_range is not None:
        start, end = year_range
        mask &= routes["year"].between(start, end)
    return routes[mask].copy()


def save_figure(fig, path):
    """Write a Plotly figure to a standalone HTML file."""
    fig.write_html(path, include_plotlyjs="cdn")
    logger.info("Saved figure to %s", path)
    return path
