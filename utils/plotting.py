"""Shared Plotly plotting helpers."""
import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from utils.constants import CLUSTER_COLORS, CLUSTER_SYMBOLS, TRAIT_LABELS, TREATMENT_COLORS


def apply_common_layout(fig, title=None, height=500):
    """Apply common layout settings to a Plotly figure."""
    fig.update_layout(
        template="plotly_white",
        height=height,
        title=title,
        title_x=0.5,
        margin=dict(t=60, b=40, l=60, r=40),
    )
    return fig


def cluster_color_map(k):
    """Discrete color map for cluster labels 1..k (as strings)."""
    return {str(i): CLUSTER_COLORS[(i - 1) % len(CLUSTER_COLORS)] for i in range(1, k + 1)}


def box_chart(df, x, y, color=None, title=None, labels=None, height=500):
    """Create a box plot with treatment colors and the raw points overlaid."""
    lab = {**(labels or {})}
    fig = px.box(df, x=x, y=y, color=color or x, points="all",
                 color_discrete_map=TREATMENT_COLORS, labels=lab, title=title)
    return apply_common_layout(fig, title, height)


def heatmap_chart(data, x_label="", y_label="", title=None, height=500, color_scale="RdYlBu_r"):
    """Create a heatmap from a 2D array or DataFrame."""
    fig = go.Figure(data=go.Heatmap(
        z=data.values if hasattr(data, 'values') else data,
        x=data.columns.tolist() if hasattr(data, 'columns') else None,
        y=data.index.tolist() if hasattr(data, 'index') else None,
        colorscale=color_scale,
        text=np.round(data.values if hasattr(data, 'values') else data, 2),
        texttemplate="%{text}",
    ))
    fig.update_layout(xaxis_title=x_label, yaxis_title=y_label)
    return apply_common_layout(fig, title, height)


def cluster_scatter(scores, labels, explained=None, title=None, height=500):
    """Scatter entities on the first two principal components, colored and shaped by cluster."""
    plot_df = scores.copy()
    plot_df["cluster"] = labels.reindex(scores.index).astype(str)
    plot_df["entity"] = scores.index.astype(str)
    k = labels.nunique()
    order = [str(i) for i in sorted(labels.unique())]

    axis_labels = {}
    if explained is not None:
        for pc, ratio in explained.items():
            axis_labels[pc] = f"{pc} ({ratio:.1%} of variance)"

    fig = px.scatter(
        plot_df, x="PC1", y="PC2", color="cluster", symbol="cluster",
        hover_name="entity", text="entity",
        color_discrete_map=cluster_color_map(max(k, int(labels.max()))),
        symbol_sequence=CLUSTER_SYMBOLS,
        category_orders={"cluster": order},
        labels=axis_labels,
    )
    fig.update_traces(marker=dict(size=12, line=dict(width=1, color="white")),
                      textposition="top center", textfont=dict(size=9))
    return apply_common_layout(fig, title, height)


def dispersion_chart(curve, selected_k=None, title="Total Within-Cluster Sum of Squares vs K", height=400):
    """Line plot of the elbow curve. The selected K is marked, not recommended."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=curve["k"], y=curve["total_within_ss"],
        mode="lines+markers", name="Total within SS",
        line=dict(color="#2E86C1", width=3), marker=dict(size=10),
    ))
    if selected_k is not None:
        fig.add_vline(x=selected_k, line_dash="dash", line_color="gray",
                      annotation_text=f"K={selected_k} (selected)")
    apply_common_layout(fig, title=title, height=height)
    fig.update_layout(xaxis=dict(title="Number of Clusters (K)", dtick=1),
                      yaxis_title="Total Within-Cluster SS")
    return fig


def silhouette_chart(curve, selected_k=None, title="Mean Silhouette Width vs K", height=400):
    """Line plot of mean silhouette width per K."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=curve["k"], y=curve["mean_silhouette"],
        mode="lines+markers", name="Mean silhouette",
        line=dict(color="#E63946", width=3), marker=dict(size=10),
    ))
    if selected_k is not None:
        fig.add_vline(x=selected_k, line_dash="dash", line_color="gray",
                      annotation_text=f"K={selected_k} (selected)")
    apply_common_layout(fig, title=title, height=height)
    fig.update_layout(xaxis=dict(title="Number of Clusters (K)", dtick=1),
                      yaxis=dict(title="Mean Silhouette Width", range=[-1, 1]))
    return fig


def silhouette_profile_chart(sil, labels, title=None, height=500):
    """Horizontal bars of per-entity silhouette widths, grouped by cluster."""
    plot_df = sil.to_frame("silhouette")
    plot_df["cluster"] = labels.reindex(sil.index)
    plot_df = plot_df.sort_values(["cluster", "silhouette"], ascending=[False, True])
    colors = cluster_color_map(int(labels.max()))

    fig = go.Figure(go.Bar(
        x=plot_df["silhouette"], y=plot_df.index.astype(str), orientation="h",
        marker_color=[colors[str(c)] for c in plot_df["cluster"]],
        customdata=plot_df["cluster"],
        hovertemplate="%{y}<br>cluster %{customdata}<br>s = %{x:.3f}<extra></extra>",
    ))
    fig.add_vline(x=sil.mean(), line_dash="dash", line_color="red",
                  annotation_text=f"Mean: {sil.mean():.3f}")
    apply_common_layout(fig, title=title, height=height)
    fig.update_layout(xaxis=dict(title="Silhouette Width", range=[-1, 1]), yaxis_title=None)
    return fig


def surface_figure(grid, title=None, height=600, color_scale="Viridis"):
    """3D surface of germination fraction over temperature and water potential."""
    fig = go.Figure(data=go.Surface(
        x=grid.columns.values, y=grid.index.values, z=grid.values,
        colorscale=color_scale, cmin=0, cmax=1,
        colorbar=dict(title="Germination"),
    ))
    fig.update_layout(scene=dict(
        xaxis_title="Temperature (°C)",
        yaxis_title="Water Potential (MPa)",
        zaxis=dict(title="Germination Fraction", range=[0, 1]),
    ))
    return apply_common_layout(fig, title, height)


def route_map(nodes, edges, title=None, height=600, projection="natural earth"):
    """Geographic network of introduction routes.

    Edge width scales with the number of introductions; node size with the
    number of connected locations.
    """
    fig = go.Figure()
    max_n = max(int(edges["n_introductions"].max()), 1) if len(edges) else 1
    for row in edges.itertuples():
        fig.add_trace(go.Scattergeo(
            lon=[row.origin_lon, row.dest_lon], lat=[row.origin_lat, row.dest_lat],
            mode="lines",
            line=dict(width=1 + 5 * row.n_introductions / max_n, color="#E76F51"),
            opacity=0.7,
            hoverinfo="text",
            text=f"{row.origin} -> {row.destination}: {row.n_introductions} introduction(s), "
                 f"{row.n_species} species",
            showlegend=False,
        ))
    degree = nodes["in_degree"] + nodes["out_degree"]
    fig.add_trace(go.Scattergeo(
        lon=nodes["lon"], lat=nodes["lat"], mode="markers+text",
        text=nodes["name"], textposition="top center",
        marker=dict(size=6 + 3 * degree, color="#264653", line=dict(width=1, color="white")),
        name="Locations",
        hovertemplate="%{text}<extra></extra>",
    ))
    fig.update_geos(projection_type=projection, showcountries=True,
                    showland=True, landcolor="#F1F1F1", countrycolor="#BBBBBB")
    return apply_common_layout(fig, title, height)


def multi_line(df, x, y, color, title=None, labels=None, height=450):
    """Line chart of several series, e.g. germination time courses."""
    lab = {**(labels or {})}
    for k, v in TRAIT_LABELS.items():
        lab.setdefault(k, v)
    fig = px.line(df, x=x, y=y, color=color, labels=lab, title=title)
    return apply_common_layout(fig, title, height)
