"""
Value and weight subtotals with shares of the grand total.

share(g) = sum_metric(g) / sum_metric(all groups), and 0.0 when the grand
total is zero.
"""

from typing import List, Optional, Sequence

import polars as pl

from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_METRICS = ("value", "weight_kg")


def share_column(metric: str) -> str:
    return f"{metric}_share"


def _keys(by: str | Sequence[str]) -> List[str]:
    return [by] if isinstance(by, str) else list(by)


def _share_expr(metric: str, total: float) -> pl.Expr:
    if not total:
        return pl.lit(0.0).alias(share_column(metric))
    return (pl.col(metric) / total).alias(share_column(metric))


def aggregate_by(
    df: pl.DataFrame,
    by: str | Sequence[str],
    metrics: Sequence[str] = DEFAULT_METRICS,
    null_label: Optional[str] = None,
) -> pl.DataFrame:
    """
    Sum each metric per group and add each group's share of the total.

    Args:
        df: Enriched transactions.
        by: Grouping column name, or several.
        metrics: Numeric columns to sum. The first one sets the sort order.
        null_label: If given, null keys are reported under this label
            (merged with any existing group of that name). Otherwise they
            form their own null group.

    Returns:
        One row per group: the key column(s), each metric, `n_rows` and a
        `<metric>_share` column per metric, largest first.
    """
    keys = _keys(by)
    missing = [c for c in keys + list(metrics) if c not in df.columns]
    if missing:
        raise ValueError(f"Cannot aggregate: missing columns {missing}. Available: {df.columns}")

    source = df
    if null_label is not None:
        source = df.with_columns(
            pl.col(k).fill_null(null_label) for k in keys if df.schema[k] == pl.Utf8
        )

    grouped = source.group_by(keys).agg(
        *[pl.col(m).sum() for m in metrics],
        pl.len().alias("n_rows"),
    )

    totals = {m: grouped.get_column(m).sum() for m in metrics}
    table = grouped.with_columns(_share_expr(m, totals[m]) for m in metrics).sort(
        [metrics[0], *keys],
        descending=[True] + [False] * len(keys),
        nulls_last=True,
    )

    logger.debug(f"Aggregated by {keys}: {table.height} groups, totals {totals}")
    return table


def breakdown(
    df: pl.DataFrame,
    classification: str,
    by: str | Sequence[str] = "description",
    metrics: Sequence[str] = DEFAULT_METRICS,
    null_label: Optional[str] = None,
) -> pl.DataFrame:
    """
    Sub-classification view: the rows of one classification aggregated by `by`.

    Shares are relative to that classification's own total.
    """
    subset = df.filter(pl.col("classification") == classification)
    if subset.is_empty():
        logger.warning(f"No rows classified as '{classification}'")
    return aggregate_by(subset, by, metrics=metrics, null_label=null_label)


def top_n(
    table: pl.DataFrame,
    key: str,
    n: int,
    other_label: str = "Other",
    metrics: Sequence[str] = DEFAULT_METRICS,
) -> pl.DataFrame:
    """
    Keep the n largest groups of an aggregate table and fold the rest into one row.

    Totals and shares are unchanged by the folding.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    ordered = table.sort(metrics[0], descending=True, nulls_last=True)
    head, rest = ordered.head(n), ordered.slice(n)
    if rest.is_empty():
        return head

    other = rest.select(
        pl.lit(other_label).alias(key),
        *[pl.col(m).sum() for m in metrics],
        pl.col("n_rows").sum(),
        *[pl.col(share_column(m)).sum() for m in metrics],
    ).select(table.columns)

    return pl.concat([head, other], how="vertical_relaxed")


def with_total_row(
    table: pl.DataFrame,
    key: str,
    label: str = "Total",
    metrics: Sequence[str] = DEFAULT_METRICS,
) -> pl.DataFrame:
    """Append a grand-total row, for display."""
    totals = {m: table.get_column(m).sum() for m in metrics}
    total_row = table.select(
        pl.lit(label).alias(key),
        *[pl.col(m).sum() for m in metrics],
        pl.col("n_rows").sum(),
        *[pl.lit(1.0 if totals[m] else 0.0).alias(share_column(m)) for m in metrics],
    ).select(table.columns)

    return pl.concat([table, total_row], how="vertical_relaxed")
