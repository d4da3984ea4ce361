# theme_viz.py

"""
theme_viz.py

Visualization helpers for TermThemeMiner.

This module is intentionally thin and UI-agnostic. It:

- Renders the theme × document matrix as a heat map.
- Renders the term dendrogram from a ClusterResult linkage.
- Renders one pie chart of theme shares per document.
- Renders the term × term correlation matrix and top term frequencies.

All functions return Plotly Figure objects and never modify their inputs,
so they can be used in notebooks, Streamlit, Dash, etc.
"""

from __future__ import annotations

import math
from typing import Mapping, Optional, Union

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from scipy.cluster.hierarchy import dendrogram

from .clustering import ClusterResult
from .correlation import CorrelationResult
from .term_matrix import term_totals
from .theme_labeler import ThemeLabelingResult
from .themes import ThemeRanking

ThemeLabels = Union[Mapping[int, str], ThemeLabelingResult, None]


def _name_map(labels: ThemeLabels) -> Mapping[int, str]:
    if labels is None:
        return {}
    if isinstance(labels, ThemeLabelingResult):
        return labels.theme_name_map
    return dict(labels)


def _theme_name(theme: int, names: Mapping[int, str]) -> str:
    return names.get(int(theme), f"Theme {theme}")


# ---------------------------------------------------------------------
# Theme × document heat map
# ---------------------------------------------------------------------


def plot_theme_heatmap(
    theme_doc: pd.DataFrame,
    *,
    labels: ThemeLabels = None,
    normalize: bool = False,
    color_continuous_scale: str = "Blues",
    width: int = 900,
    height: int = 450,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Heat map of theme totals per document.

    Parameters
    ----------
    theme_doc:
        Theme × document matrix from :func:`aggregate_themes`.
    labels:
        Optional theme id → title mapping (or ThemeLabelingResult).
    normalize:
        If True, show each document's column as shares of its total
        (documents with no counts stay at 0).
    """
    names = _name_map(labels)
    df = theme_doc.astype(float)

    if normalize:
        totals = df.sum(axis=0)
        df = df.div(totals.where(totals > 0, 1.0), axis=1)

    df.index = [_theme_name(t, names) for t in df.index]

    fig = px.imshow(
        df,
        labels={"x": "Document", "y": "Theme", "color": "Share" if normalize else "Count"},
        color_continuous_scale=color_continuous_scale,
        text_auto=".2f" if normalize else True,
        aspect="auto",
        width=width,
        height=height,
    )
    fig.update_layout(
        title=title or "Themes by Document",
        xaxis=dict(tickangle=-45),
        margin=dict(l=40, r=20, b=80, t=60),
    )
    return fig


# ---------------------------------------------------------------------
# Term dendrogram (linkage from HierarchicalClusterer)
# ---------------------------------------------------------------------


def plot_term_dendrogram(
    cluster_result: ClusterResult,
    *,
    color_by_cluster: bool = True,
    width: int = 1000,
    height: int = 500,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Dendrogram of the term merge tree.

    The tree layout comes from ``scipy.cluster.hierarchy.dendrogram``
    (``no_plot=True``) and is drawn with Plotly line segments. With
    `color_by_cluster`, branches below the cut height share a color per
    theme.
    """
    terms = cluster_result.terms
    n = len(terms)
    if n < 2:
        raise ValueError("A dendrogram needs at least two terms.")

    linkage = cluster_result.linkage
    k = cluster_result.n_clusters
    color_threshold = None
    if color_by_cluster and 1 < k <= n - 1:
        color_threshold = float(linkage[n - k, 2])

    tree = dendrogram(
        linkage,
        labels=terms,
        no_plot=True,
        color_threshold=color_threshold if color_threshold is not None else 0,
    )

    palette = px.colors.qualitative.Plotly
    fig = go.Figure()
    for xs, ys, color in zip(tree["icoord"], tree["dcoord"], tree["color_list"]):
        if color_threshold is None:
            line_color = "darkblue"
        elif color.startswith("C") and color[1:].isdigit():
            line_color = palette[int(color[1:]) % len(palette)]
        else:
            line_color = "grey"
        fig.add_trace(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                line=dict(width=1.5, color=line_color),
                hoverinfo="y",
                showlegend=False,
            )
        )

    tick_positions = [10 * i + 5 for i in range(len(tree["ivl"]))]
    fig.update_layout(
        width=width,
        height=height,
        title=title or f"Term Dendrogram ({cluster_result.method} linkage, k={k})",
        xaxis=dict(
            tickmode="array",
            tickvals=tick_positions,
            ticktext=tree["ivl"],
            tickangle=-60,
            showgrid=False,
            zeroline=False,
        ),
        yaxis=dict(title="Height", showgrid=True, gridcolor="rgb(230, 230, 230)"),
        plot_bgcolor="white",
    )
    return fig


# ---------------------------------------------------------------------
# Theme share pies (one per document)
# ---------------------------------------------------------------------


def plot_theme_pies(
    ranking: ThemeRanking,
    *,
    labels: ThemeLabels = None,
    max_cols: int = 4,
    subplot_size: int = 260,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Grid of pie charts, one per document with data, showing theme shares.
    Documents listed in ``ranking.no_data`` are skipped.
    """
    shares = ranking.shares
    if shares.empty:
        raise ValueError("No document has theme data to plot.")
    if max_cols < 1:
        raise ValueError("max_cols must be >= 1.")

    names = _name_map(labels)
    docs = shares.index.tolist()
    n_cols = min(max_cols, len(docs))
    n_rows = math.ceil(len(docs) / n_cols)

    fig = make_subplots(
        rows=n_rows,
        cols=n_cols,
        specs=[[{"type": "domain"}] * n_cols for _ in range(n_rows)],
        subplot_titles=[str(d) for d in docs],
    )

    theme_names = [_theme_name(t, names) for t in shares.columns]
    for i, doc in enumerate(docs):
        fig.add_trace(
            go.Pie(
                labels=theme_names,
                values=shares.loc[doc].tolist(),
                name=str(doc),
                sort=False,
                textinfo="percent",
            ),
            row=i // n_cols + 1,
            col=i % n_cols + 1,
        )

    fig.update_layout(
        width=subplot_size * n_cols,
        height=subplot_size * n_rows + 60,
        title=title or "Theme Share per Document",
    )
    return fig


# ---------------------------------------------------------------------
# Correlation heat map and term frequency bars
# ---------------------------------------------------------------------


def plot_correlation_heatmap(
    corr: Union[pd.DataFrame, CorrelationResult],
    *,
    width: int = 800,
    height: int = 800,
    title: Optional[str] = None,
) -> go.Figure:
    """Term × term correlation heat map on a fixed [-1, 1] diverging scale."""
    if isinstance(corr, CorrelationResult):
        corr = corr.matrix

    fig = px.imshow(
        corr,
        zmin=-1.0,
        zmax=1.0,
        color_continuous_scale="RdBu_r",
        labels={"x": "Term", "y": "Term", "color": "Pearson r"},
        width=width,
        height=height,
    )
    fig.update_layout(title=title or "Term Correlation")
    return fig


def plot_term_frequencies(
    freq: pd.DataFrame,
    *,
    top_n: int = 20,
    width: int = 900,
    height: int = 450,
    title: Optional[str] = None,
) -> go.Figure:
    """Bar chart of the `top_n` most frequent terms over the whole corpus."""
    totals = term_totals(freq).head(top_n)
    df = totals.rename_axis("term").reset_index()

    fig = px.bar(
        df,
        x="term",
        y="count",
        labels={"term": "Term", "count": "Frequency"},
        width=width,
        height=height,
    )
    fig.update_layout(
        title=title or f"Top {len(df)} Terms",
        xaxis=dict(tickangle=-45),
        plot_bgcolor="white",
    )
    return fig
