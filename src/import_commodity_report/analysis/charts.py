"""
Plotly figures for the report.
"""

from typing import Optional

import plotly.graph_objects as go
import polars as pl

from import_commodity_report.analysis.aggregation import share_column

BAR_COLOR = "#FF6925"
MAP_COLORSCALE = "Blues"

METRIC_TITLES = {
    "value": "CIF Value",
    "weight_kg": "Weight (kg)",
}


def value_bar_chart(
    table: pl.DataFrame,
    key: str,
    metric: str = "value",
    title: Optional[str] = None,
    null_label: str = "Unknown",
) -> go.Figure:
    """
    Horizontal bar chart of an aggregate table, largest group on top.

    Hover text shows each group's share of the total.
    """
    metric_title = METRIC_TITLES.get(metric, metric)
    if table.is_empty():
        return go.Figure().update_layout(
            title_text=title or f"{metric_title} by {key}",
            annotations=[{"text": "No data", "showarrow": False}],
        )

    ordered = table.sort(metric, descending=True, nulls_last=True)
    labels = ordered.get_column(key).cast(pl.Utf8).fill_null(null_label).to_list()
    shares = (
        ordered.get_column(share_column(metric)).to_list()
        if share_column(metric) in ordered.columns
        else [None] * ordered.height
    )

    fig = go.Figure(
        go.Bar(
            y=labels,
            x=ordered.get_column(metric).to_list(),
            orientation="h",
            marker_color=BAR_COLOR,
            customdata=shares,
            hovertemplate="%{y}<br>%{x:,.0f}<br>Share: %{customdata:.1%}<extra></extra>",
        )
    )
    fig.update_layout(
        title_text=title or f"{metric_title} by {key}",
        height=max(400, ordered.height * 30),
        showlegend=False,
        yaxis=dict(autorange="reversed"),
        bargap=0.15,
    )
    fig.update_xaxes(title_text=metric_title)
    fig.update_yaxes(title_text=key.replace("_", " ").title())
    return fig


def value_by_origin_chart(by_origin: pl.DataFrame) -> go.Figure:
    return value_bar_chart(by_origin, "origin", title="Import value by origin")


def value_by_classification_chart(by_classification: pl.DataFrame) -> go.Figure:
    return value_bar_chart(
        by_classification, "classification", title="Import value by classification"
    )


def origin_choropleth(by_origin_iso3: pl.DataFrame, metric: str = "value") -> go.Figure:
    """World map of a metric by origin. Expects `origin_iso3` and `origin` columns."""
    located = by_origin_iso3.filter(pl.col("origin_iso3").is_not_null())

    fig = go.Figure(
        go.Choropleth(
            locations=located.get_column("origin_iso3").to_list(),
            z=located.get_column(metric).to_list(),
            text=located.get_column("origin").to_list(),
            locationmode="ISO-3",
            colorscale=MAP_COLORSCALE,
            colorbar_title=METRIC_TITLES.get(metric, metric),
            hovertemplate="%{text}<br>%{z:,.0f}<extra></extra>",
        )
    )
    fig.update_layout(
        title_text=f"Import {METRIC_TITLES.get(metric, metric).lower()} by origin",
        margin={"r": 0, "t": 50, "l": 0, "b": 0},
        geo=dict(showframe=False, showcoastlines=True, projection_type="natural earth"),
    )
    return fig
