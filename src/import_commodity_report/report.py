"""
Report stages: enrich -> aggregate -> write.

Each stage is a function of its inputs and returns new tables; nothing is
reassigned between sections of the report.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import plotly.graph_objects as go
import polars as pl

from import_commodity_report.analysis.aggregation import aggregate_by, breakdown, top_n
from import_commodity_report.analysis.charts import (
    origin_choropleth,
    value_bar_chart,
    value_by_classification_chart,
    value_by_origin_chart,
)
from import_commodity_report.classification.classifier import data_quality_summary, enrich
from import_commodity_report.classification.rules import DEFAULT_RULES, Rule
from import_commodity_report.config import DEFAULT_LOOKUP_MISS_LABEL, DEFAULT_UNCLASSIFIED_LABEL
from import_commodity_report.utils.country_names import add_origin_iso3
from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportReport:
    """All tables of one report build."""

    enriched: pl.DataFrame
    by_origin: pl.DataFrame
    by_classification: pl.DataFrame
    by_category: pl.DataFrame
    breakdowns: Dict[str, pl.DataFrame] = field(default_factory=dict)
    quality: Dict[str, Any] = field(default_factory=dict)
    top_origins: Optional[pl.DataFrame] = None

    def charts(self) -> Dict[str, go.Figure]:
        figures = {
            "value_by_origin": value_by_origin_chart(
                self.top_origins if self.top_origins is not None else self.by_origin
            ),
            "value_by_classification": value_by_classification_chart(self.by_classification),
            "value_by_origin_map": origin_choropleth(self.origin_map_table()),
        }
        for name, table in self.breakdowns.items():
            figures[f"breakdown_{slugify(name)}"] = value_bar_chart(
                table, "description", title=f"{name}: import value by description"
            )
        return figures

    def origin_map_table(self) -> pl.DataFrame:
        return aggregate_by(self.enriched, ["origin", "origin_iso3"])


def slugify(name: str) -> str:
    return re.sub(r"[^0-9a-z]+", "_", name.lower()).strip("_")


def build_report(
    transactions: pl.DataFrame,
    lookup: pl.DataFrame,
    rules: Sequence[Rule] = DEFAULT_RULES,
    breakdown_classifications: Sequence[str] = (),
    top_n_origins: Optional[int] = None,
    unclassified_label: Optional[str] = DEFAULT_UNCLASSIFIED_LABEL,
    lookup_miss_label: Optional[str] = DEFAULT_LOOKUP_MISS_LABEL,
) -> ImportReport:
    """
    Build every table of the report from normalised inputs.

    Args:
        transactions: Output of normalize_transactions.
        lookup: Output of normalize_lookup.
        rules: Ordered classification rules.
        breakdown_classifications: Classifications to break down by description.
        top_n_origins: If set, also produce an origin table folded to this many
            origins plus "Other" (used for the chart).
        unclassified_label: Label for null classifications in the
            aggregate views. None keeps them as a null group. The enriched
            table always keeps nulls.
        lookup_miss_label: Label for rows without a lookup category in the
            by-category view. None keeps them as a null group.
    """
    logger.info("--- Building import report ---")
    enriched = add_origin_iso3(enrich(transactions, lookup, rules))

    by_origin = aggregate_by(enriched, "origin")
    by_classification = aggregate_by(enriched, "classification", null_label=unclassified_label)
    by_category = aggregate_by(enriched, "category_label", null_label=lookup_miss_label)

    breakdowns = {}
    for classification in breakdown_classifications:
        breakdowns[classification] = breakdown(enriched, classification, by="description")

    top_origins = None
    if top_n_origins is not None:
        top_origins = top_n(by_origin, "origin", top_n_origins)

    report = ImportReport(
        enriched=enriched,
        by_origin=by_origin,
        by_classification=by_classification,
        by_category=by_category,
        breakdowns=breakdowns,
        quality=data_quality_summary(enriched),
        top_origins=top_origins,
    )
    logger.info(
        f"Report built: {enriched.height} rows, {by_origin.height} origins, "
        f"{by_classification.height} classifications"
    )
    return report


def write_report(report: ImportReport, output_dir: str | Path) -> List[Path]:
    """
    Write every table as CSV, every chart as standalone HTML and the
    data-quality summary as JSON.

    Returns:
        The written file paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Writing report outputs to {output_dir}")

    tables = {
        "enriched_transactions": report.enriched,
        "value_weight_by_origin": report.by_origin,
        "value_weight_by_classification": report.by_classification,
        "value_weight_by_category": report.by_category,
    }
    for name, table in report.breakdowns.items():
        tables[f"breakdown_{slugify(name)}"] = table

    written = []
    for name, table in tables.items():
        path = output_dir / f"{name}.csv"
        table.write_csv(path)
        written.append(path)
        logger.debug(f"Wrote {path} ({table.height} rows)")

    for name, fig in report.charts().items():
        path = output_dir / f"{name}.html"
        fig.write_html(path, include_plotlyjs="cdn")
        written.append(path)
        logger.debug(f"Wrote {path}")

    quality_path = output_dir / "data_quality.json"
    quality_path.write_text(json.dumps(report.quality, indent=2))
    written.append(quality_path)

    logger.info(f"✅ Wrote {len(written)} files to {output_dir}")
    return written
