import plotly.graph_objects as go
import polars as pl

from import_commodity_report.analysis.aggregation import aggregate_by
from import_commodity_report.analysis.charts import (
    origin_choropleth,
    value_bar_chart,
    value_by_classification_chart,
)


def _by_origin() -> pl.DataFrame:
    df = pl.DataFrame(
        {
            "origin": ["USA", "Canada", None],
            "origin_iso3": ["USA", "CAN", None],
            "value": [100.0, 300.0, 10.0],
            "weight_kg": [1.0, 1.0, 1.0],
        }
    )
    return aggregate_by(df, ["origin", "origin_iso3"])


def test_bar_chart_largest_first():
    fig = value_bar_chart(_by_origin(), "origin", title="Value by origin")

    assert isinstance(fig, go.Figure)
    assert len(fig.data) == 1
    bar = fig.data[0]
    assert bar.orientation == "h"
    assert list(bar.y) == ["Canada", "USA", "Unknown"]
    assert list(bar.x) == [300.0, 100.0, 10.0]
    assert fig.layout.title.text == "Value by origin"


def test_bar_chart_empty_table():
    empty = _by_origin().clear()
    fig = value_bar_chart(empty, "origin")
    assert len(fig.data) == 0


def test_classification_chart_title():
    df = pl.DataFrame(
        {"classification": ["Cattle", "Fish"], "value": [1.0, 3.0], "weight_kg": [1.0, 1.0]}
    )
    fig = value_by_classification_chart(aggregate_by(df, "classification"))
    assert fig.layout.title.text == "Import value by classification"


def test_choropleth_skips_unresolved_origins():
    fig = origin_choropleth(_by_origin())
    assert list(fig.data[0].locations) == ["CAN", "USA"]
    assert list(fig.data[0].z) == [300.0, 100.0]
