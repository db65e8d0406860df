import pandas as pd
import pytest

from utils.data_loader import DataQualityError
from utils.plotting import route_map
from utils.routes import build_route_network, filter_routes, save_figure


def _routes():
    records = [
        ("Bromus tectorum", "Central Asia", 43.0, 68.0, "Great Basin", 40.0, -117.0, 1889),
        ("Bromus tectorum", "Mediterranean Basin", 38.0, 15.0, "California", 37.0, -120.0, 1900),
        ("Taeniatherum caput-medusae", "Mediterranean Basin", 38.0, 15.0, "California", 37.0, -120.0, 1903),
        ("Centaurea solstitialis", "Mediterranean Basin", 38.0, 15.0, "California", 37.0, -120.0, 1869),
        ("Centaurea solstitialis", "Mediterranean Basin", 38.0, 15.0, "Chile", -33.0, -71.0, 1920),
        ("Salsola tragus", "Central Asia", 43.0, 68.0, "Great Basin", 40.0, -117.0, 1877),
    ]
    cols = ["species", "origin", "origin_lat", "origin_lon", "destination", "dest_lat", "dest_lon", "year"]
    return pd.DataFrame(records, columns=cols)


def test_build_route_network_edges():
    nodes, edges = build_route_network(_routes())
    edges = edges.set_index(["origin", "destination"])

    assert len(edges) == 3
    med_ca = edges.loc[("Mediterranean Basin", "California")]
    assert med_ca["n_introductions"] == 3
    assert med_ca["n_species"] == 3
    assert med_ca["first_year"] == 1869
    assert edges.loc[("Central Asia", "Great Basin"), "n_species"] == 2


def test_build_route_network_nodes_and_degree():
    nodes, _ = build_route_network(_routes())
    nodes = nodes.set_index("name")

    assert set(nodes.index) == {"Central Asia", "Mediterranean Basin", "Great Basin", "California", "Chile"}
    assert nodes.loc["Mediterranean Basin", "out_degree"] == 2
    assert nodes.loc["Mediterranean Basin", "in_degree"] == 0
    assert nodes.loc["California", "in_degree"] == 1
    assert nodes.loc["Chile", "lat"] == -33.0


def test_build_route_network_rejects_bad_coordinates():
    routes = _routes()
    routes.loc[0, "origin_lat"] = 95.0
    with pytest.raises(DataQualityError, match="origin_lat"):
        build_route_network(routes)

    routes = _routes()
    routes.loc[1, "dest_lon"] = -200.0
    with pytest.raises(DataQualityError, match="dest_lon"):
        build_route_network(routes)


def test_filter_routes_by_species_and_year():
    routes = _routes()
    subset = filter_routes(routes, species=["Bromus tectorum"], year_range=(1880, 1895))
    assert len(subset) == 1
    assert subset.iloc[0]["destination"] == "Great Basin"
    assert len(filter_routes(routes)) == len(routes)


def test_route_map_and_save(tmp_path):
    nodes, edges = build_route_network(_routes())
    fig = route_map(nodes, edges, title="Routes")
    # one line trace per edge plus the node layer
    assert len(fig.data) == len(edges) + 1

    out = save_figure(fig, str(tmp_path / "routes.html"))
    text = (tmp_path / "routes.html").read_text()
    assert out.endswith("routes.html")
    assert "Mediterranean Basin" in text
