import json
import math
from pathlib import Path

import polars as pl
import pytest

from import_commodity_report.pipeline import main
from import_commodity_report.report import build_report, slugify, write_report

TRANSACTIONS_CSV = """HS Code,Commodity Description,Country of Origin,Net Weight (Kg),CIF Value
02011000,Beef carcass,USA,1000,100
03024100,Atlantic salmon,Canada,200,300
02023000,Frozen beef cuts,Australia,500,250
84713000,Laptop,China,5,40
040,Short code,Norway,1,1
"""

LOOKUP_CSV = """HS4;Description
0201;Meat of bovine animals, fresh or chilled
0202;Meat of bovine animals, frozen
0302;Fish, fresh or chilled
"""


# --- Fixtures ---
@pytest.fixture(scope="module")
def transactions() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "code": ["02011000", "03024100", "02023000", "84713000", "040"],
            "description": ["Beef carcass", "Atlantic salmon", "Frozen beef cuts", "Laptop", "Short code"],
            "origin": ["USA", "Canada", "Australia", "China", "Norway"],
            "weight_kg": [1000.0, 200.0, 500.0, 5.0, 1.0],
            "value": [100.0, 300.0, 250.0, 40.0, 1.0],
            "code_group": ["0201", "0302", "0202", "8471", None],
        }
    )


@pytest.fixture(scope="module")
def lookup() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "code_group": ["0201", "0202", "0302"],
            "category_label": [
                "Meat of bovine animals, fresh or chilled",
                "Meat of bovine animals, frozen",
                "Fish, fresh or chilled",
            ],
        }
    )


@pytest.fixture(scope="module")
def report(transactions, lookup):
    return build_report(
        transactions,
        lookup,
        breakdown_classifications=["Cattle", "Fish"],
        top_n_origins=2,
    )


@pytest.fixture
def input_files(tmp_path):
    transactions_path = tmp_path / "import_transactions.csv"
    transactions_path.write_text(TRANSACTIONS_CSV)
    lookup_path = tmp_path / "hs4_lookup.csv"
    lookup_path.write_text(LOOKUP_CSV)
    return transactions_path, lookup_path


# --- build_report ---
def test_enriched_keeps_every_row(report, transactions):
    assert report.enriched.height == transactions.height
    assert {"category_label", "classification", "origin_iso3"} <= set(report.enriched.columns)


def test_enriched_keeps_nulls(report):
    # The enriched table is not relabelled, only the aggregate views are
    assert report.enriched.get_column("classification").null_count() == 2


def test_classification_view(report):
    rows = {r["classification"]: r for r in report.by_classification.iter_rows(named=True)}
    assert set(rows) == {"Cattle", "Fish", "Unclassified"}
    assert rows["Cattle"]["value"] == 350.0
    assert rows["Unclassified"]["value"] == 41.0


def test_category_view_labels_lookup_misses(report):
    rows = {r["category_label"]: r for r in report.by_category.iter_rows(named=True)}
    # 8471 is not in the lookup and the short code has no code group
    assert "Not in lookup" in rows
    assert "Unclassified" not in rows
    assert rows["Not in lookup"]["value"] == 41.0
    assert rows["Not in lookup"]["n_rows"] == 2


def test_lookup_miss_label_is_configurable(transactions, lookup):
    custom = build_report(transactions, lookup, lookup_miss_label=None)
    assert custom.by_category.get_column("category_label").null_count() == 1
    assert custom.by_classification.get_column("classification").null_count() == 0


@pytest.mark.parametrize("view", ["by_origin", "by_classification", "by_category"])
def test_views_add_up(report, transactions, view):
    table = getattr(report, view)
    for metric in ("value", "weight_kg"):
        assert math.isclose(table.get_column(metric).sum(), transactions.get_column(metric).sum())
        assert math.isclose(table.get_column(f"{metric}_share").sum(), 1.0)


def test_breakdowns(report):
    assert list(report.breakdowns) == ["Cattle", "Fish"]
    cattle = report.breakdowns["Cattle"]
    assert set(cattle.get_column("description")) == {"Beef carcass", "Frozen beef cuts"}


def test_top_origins(report):
    assert report.top_origins.get_column("origin").to_list() == ["Canada", "Australia", "Other"]


def test_quality(report):
    assert report.quality["rows"] == 5
    assert report.quality["unmatched_code_groups"] == ["8471"]


def test_charts(report):
    charts = report.charts()
    assert set(charts) == {
        "value_by_origin",
        "value_by_classification",
        "value_by_origin_map",
        "breakdown_cattle",
        "breakdown_fish",
    }


# --- write_report ---
def test_write_report(report, tmp_path):
    written = write_report(report, tmp_path / "out")
    names = {p.name for p in written}

    assert "value_weight_by_origin.csv" in names
    assert "value_weight_by_classification.csv" in names
    assert "breakdown_cattle.csv" in names
    assert "value_by_origin.html" in names
    assert "data_quality.json" in names
    assert all(p.exists() for p in written)

    by_origin = pl.read_csv(tmp_path / "out" / "value_weight_by_origin.csv")
    assert by_origin.height == report.by_origin.height
    quality = json.loads((tmp_path / "out" / "data_quality.json").read_text())
    assert quality["lookup_misses"] == 1


@pytest.mark.parametrize(
    "name, slug",
    [("Cattle", "cattle"), ("Sheep & Goats", "sheep_goats"), ("Coffee, Tea & Spices", "coffee_tea_spices")],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


# --- CLI ---
def test_main_writes_outputs(input_files, tmp_path):
    transactions_path, lookup_path = input_files
    output_dir = tmp_path / "report"

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "--transactions",
                str(transactions_path),
                "--lookup",
                str(lookup_path),
                "--output-dir",
                str(output_dir),
                "--breakdown",
                "Cattle",
            ]
        )

    assert excinfo.value.code == 0
    assert (output_dir / "enriched_transactions.csv").exists()
    assert (output_dir / "breakdown_cattle.csv").exists()
    enriched = pl.read_csv(output_dir / "enriched_transactions.csv", infer_schema=False)
    assert enriched.height == 5


def test_main_fails_on_missing_column(tmp_path, input_files):
    _, lookup_path = input_files
    bad = tmp_path / "bad.csv"
    bad.write_text("HS Code,Commodity Description\n02011000,Beef\n")

    with pytest.raises(SystemExit) as excinfo:
        main(["--transactions", str(bad), "--lookup", str(lookup_path), "--output-dir", str(tmp_path / "x")])

    assert excinfo.value.code == 1
    assert not Path(tmp_path / "x").exists()
