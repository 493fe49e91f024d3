"""
Join transactions to the HS4 lookup and assign reporting classifications.
"""

from typing import Any, Dict, Sequence

import polars as pl

from import_commodity_report.classification.rules import DEFAULT_RULES, Rule
from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)


def join_lookup(transactions: pl.DataFrame, lookup: pl.DataFrame) -> pl.DataFrame:
    """
    Left join transactions onto the lookup by `code_group`.

    Every transaction row is kept. Rows whose code group is not in the lookup
    get a null `category_label`.

    Raises:
        ValueError: If the lookup has duplicate keys, which would duplicate
            transaction rows.
    """
    lookup = lookup.select("code_group", "category_label")
    duplicated = lookup.filter(pl.col("code_group").is_duplicated())
    if duplicated.height:
        keys = duplicated.get_column("code_group").unique().sort().to_list()
        raise ValueError(f"Lookup has duplicate code groups, join would add rows: {keys}")

    # An existing label column (e.g. from a previous enrichment) would be suffixed
    base = transactions.drop("category_label", strict=False)
    joined = base.join(lookup, on="code_group", how="left", maintain_order="left")

    unmatched = joined.filter(
        pl.col("code_group").is_not_null() & pl.col("category_label").is_null()
    )
    if unmatched.height:
        groups = unmatched.get_column("code_group").unique().sort().to_list()
        logger.warning(
            f"{unmatched.height} rows ({len(groups)} code groups) have no lookup match: {groups[:20]}"
        )
    logger.info(f"Joined lookup: {joined.height} rows")
    return joined


def classification_expr(rules: Sequence[Rule] = DEFAULT_RULES) -> pl.Expr:
    """
    Build a when/then chain from the ordered rules.

    Polars takes the first branch whose condition holds, which gives the same
    first-match-wins result as classify_row.
    """
    if not rules:
        return pl.lit(None, dtype=pl.Utf8).alias("classification")

    first, *rest = rules
    chain = pl.when(first.to_expr()).then(pl.lit(first.label))
    for rule in rest:
        chain = chain.when(rule.to_expr()).then(pl.lit(rule.label))
    return chain.otherwise(pl.lit(None, dtype=pl.Utf8)).alias("classification")


def classify(df: pl.DataFrame, rules: Sequence[Rule] = DEFAULT_RULES) -> pl.DataFrame:
    """Add a `classification` column; rows matching no rule get null."""
    classified = df.with_columns(classification_expr(rules))

    misses = classified.filter(pl.col("classification").is_null())
    if misses.height:
        groups = misses.get_column("code_group").unique().drop_nulls().sort().to_list()
        logger.warning(
            f"{misses.height} rows matched no classification rule (code groups: {groups[:20]})"
        )
    logger.debug(
        f"Classification counts:\n{classified.group_by('classification').len().sort('len', descending=True)}"
    )
    return classified


def enrich(
    transactions: pl.DataFrame, lookup: pl.DataFrame, rules: Sequence[Rule] = DEFAULT_RULES
) -> pl.DataFrame:
    """Join the lookup, then classify. Row count equals the input row count."""
    enriched = classify(join_lookup(transactions, lookup), rules)
    if enriched.height != transactions.height:
        raise RuntimeError(
            f"Enrichment changed the row count: {transactions.height} -> {enriched.height}"
        )
    return enriched


def data_quality_summary(enriched: pl.DataFrame) -> Dict[str, Any]:
    """Counts of the data-quality gaps that survive into the enriched table."""
    summary = {
        "rows": enriched.height,
        "missing_code_group": enriched.filter(pl.col("code_group").is_null()).height,
        "lookup_misses": enriched.filter(
            pl.col("code_group").is_not_null() & pl.col("category_label").is_null()
        ).height,
        "unclassified": enriched.filter(pl.col("classification").is_null()).height,
        "missing_value": enriched.filter(pl.col("value").is_null()).height,
        "missing_weight": enriched.filter(pl.col("weight_kg").is_null()).height,
        "unmatched_code_groups": enriched.filter(
            pl.col("code_group").is_not_null() & pl.col("category_label").is_null()
        )
        .get_column("code_group")
        .unique()
        .sort()
        .to_list(),
    }
    logger.info(
        "Data quality: "
        + ", ".join(f"{k}={v}" for k, v in summary.items() if k != "unmatched_code_groups")
    )
    return summary
