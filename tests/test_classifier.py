import polars as pl
import pytest

from import_commodity_report.classification.classifier import (
    classification_expr,
    classify,
    data_quality_summary,
    enrich,
    join_lookup,
)
from import_commodity_report.classification.rules import DEFAULT_RULES, Rule, classify_row


# --- Fixtures ---
@pytest.fixture(scope="module")
def transactions() -> pl.DataFrame:
    """Normalised transactions, including a duplicate row, a lookup miss and a short code."""
    return pl.DataFrame(
        {
            "code": ["02011000", "03024100", "84713000", "02011000", "040"],
            "description": ["Beef carcass", "Atlantic salmon", "Laptop", "Beef carcass", "Short"],
            "origin": ["USA", "Canada", "China", "USA", "Norway"],
            "weight_kg": [1000.0, 200.0, 50.0, 1000.0, 1.0],
            "value": [100.0, 300.0, 50.0, 100.0, 1.0],
            "code_group": ["0201", "0302", "8471", "0201", None],
        }
    )


@pytest.fixture(scope="module")
def lookup() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "code_group": ["0201", "0302", "0406"],
            "category_label": [
                "Meat of bovine animals, fresh or chilled",
                "Fish, fresh or chilled",
                "Cheese and curd",
            ],
        }
    )


@pytest.fixture(scope="module")
def enriched(transactions, lookup) -> pl.DataFrame:
    return enrich(transactions, lookup)


# --- Join ---
def test_join_keeps_every_row_in_order(transactions, lookup):
    joined = join_lookup(transactions, lookup)
    assert joined.height == transactions.height
    assert joined.get_column("code").to_list() == transactions.get_column("code").to_list()


def test_join_miss_is_null(transactions, lookup):
    joined = join_lookup(transactions, lookup)
    assert joined.get_column("category_label").to_list() == [
        "Meat of bovine animals, fresh or chilled",
        "Fish, fresh or chilled",
        None,
        "Meat of bovine animals, fresh or chilled",
        None,
    ]


def test_join_rejects_duplicate_lookup_keys(transactions):
    duplicated = pl.DataFrame(
        {"code_group": ["0201", "0201"], "category_label": ["Beef", "Also beef"]}
    )
    with pytest.raises(ValueError, match="0201"):
        join_lookup(transactions, duplicated)


def test_join_replaces_existing_label(transactions, lookup):
    stale = transactions.with_columns(pl.lit("stale").alias("category_label"))
    joined = join_lookup(stale, lookup)
    assert "category_label_right" not in joined.columns
    assert joined.row(0, named=True)["category_label"] == "Meat of bovine animals, fresh or chilled"


# --- Classification ---
def test_classification(enriched):
    assert enriched.get_column("classification").to_list() == [
        "Cattle",
        "Fish",
        None,
        "Cattle",
        None,
    ]


def test_enriched_row_count(transactions, enriched):
    assert enriched.height == transactions.height


def test_vectorised_matches_scalar_dispatcher(enriched):
    for row in enriched.iter_rows(named=True):
        expected = classify_row(row["code_group"], row["description"], DEFAULT_RULES)
        assert row["classification"] == expected, f"Mismatch for {row}"


def test_classify_is_order_dependent(transactions):
    broad = Rule("Chapter 02", prefixes=("02",))
    narrow = Rule("Beef heading", code_groups={"0201"})

    first = classify(transactions, [broad, narrow]).get_column("classification").to_list()
    second = classify(transactions, [narrow, broad]).get_column("classification").to_list()

    assert first[0] == "Chapter 02"
    assert second[0] == "Beef heading"


def test_empty_rule_set_leaves_everything_unclassified(transactions):
    result = transactions.with_columns(classification_expr([]))
    assert result.schema["classification"] == pl.Utf8
    assert result.get_column("classification").null_count() == transactions.height


# --- Data quality ---
def test_data_quality_summary(enriched):
    summary = data_quality_summary(enriched)
    assert summary == {
        "rows": 5,
        "missing_code_group": 1,
        "lookup_misses": 1,
        "unclassified": 2,
        "missing_value": 0,
        "missing_weight": 0,
        "unmatched_code_groups": ["8471"],
    }
