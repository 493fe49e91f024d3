import marimo

__generated_with = "0.13.8"
app = marimo.App(width="medium")


@app.cell
def _():
    import marimo as mo
    import polars as pl

    from import_commodity_report.analysis.aggregation import with_total_row
    from import_commodity_report.analysis.charts import value_bar_chart
    from import_commodity_report.config import get_config
    from import_commodity_report.etl.loading import load_lookup, load_transactions
    from import_commodity_report.report import build_report

    return (
        build_report,
        get_config,
        load_lookup,
        load_transactions,
        mo,
        pl,
        value_bar_chart,
        with_total_row,
    )


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    # Import commodity report

    Imports by origin and by commodity classification.

    ## Structure:
    1. Load the transactions extract and the HS4 lookup, derive the HS4 code group.
    2. Join the lookup and classify every line with the ordered rule set.
    3. Value (CIF) and weight by origin, by classification and within selected classifications.
    """
    )
    return


@app.cell
def _(get_config):
    config = get_config()
    config
    return (config,)


@app.cell
def _(config, load_lookup, load_transactions):
    transactions = load_transactions(
        config["TRANSACTIONS_PATH"], zero_pad_to=config["CODE_ZERO_PAD"]
    )
    lookup = load_lookup(config["LOOKUP_PATH"], separator=config["LOOKUP_SEPARATOR"])
    return lookup, transactions


@app.cell
def _(build_report, config, lookup, transactions):
    report = build_report(
        transactions,
        lookup,
        breakdown_classifications=config["BREAKDOWN_CLASSIFICATIONS"],
        top_n_origins=config["TOP_N_ORIGINS"],
        unclassified_label=config["UNCLASSIFIED_LABEL"],
        lookup_miss_label=config["LOOKUP_MISS_LABEL"],
    )
    return (report,)


@app.cell(hide_code=True)
def _(mo, report):
    _q = report.quality
    mo.md(
        f"""
    ## Data quality

    | Check | Rows |
    |---|---|
    | Transactions | {_q["rows"]:,} |
    | Code missing or shorter than 4 characters | {_q["missing_code_group"]:,} |
    | Code group not in lookup | {_q["lookup_misses"]:,} |
    | No classification rule matched | {_q["unclassified"]:,} |
    | Value missing | {_q["missing_value"]:,} |
    | Weight missing | {_q["missing_weight"]:,} |

    Code groups missing from the lookup: {", ".join(_q["unmatched_code_groups"]) or "none"}
    """
    )
    return


@app.cell
def _(mo):
    mo.md(r"""## Imports by origin""")
    return


@app.cell
def _(mo, report, with_total_row):
    mo.ui.table(with_total_row(report.by_origin, "origin"), selection=None)
    return


@app.cell
def _(report):
    charts = report.charts()
    return (charts,)


@app.cell
def _(charts):
    charts["value_by_origin"]
    return


@app.cell
def _(charts):
    charts["value_by_origin_map"]
    return


@app.cell
def _(mo):
    mo.md(r"""## Imports by classification""")
    return


@app.cell
def _(mo, report, with_total_row):
    mo.ui.table(with_total_row(report.by_classification, "classification"), selection=None)
    return


@app.cell
def _(charts):
    charts["value_by_classification"]
    return


@app.cell
def _(mo, report, with_total_row):
    mo.vstack(
        [
            mo.md(r"""### By HS4 lookup category"""),
            mo.ui.table(with_total_row(report.by_category, "category_label"), selection=None),
        ]
    )
    return


@app.cell
def _(mo):
    mo.md(r"""## Breakdowns within classifications""")
    return


@app.cell
def _(mo, report, value_bar_chart, with_total_row):
    _sections = []
    for _name, _table in report.breakdowns.items():
        _sections.append(mo.md(f"### {_name}"))
        _sections.append(mo.ui.table(with_total_row(_table, "description"), selection=None))
        _sections.append(value_bar_chart(_table, "description", title=f"{_name}: value by description"))
    mo.vstack(_sections) if _sections else mo.md("No breakdowns configured.")
    return


@app.cell
def _(mo, pl, report):
    _unclassified = report.enriched.filter(pl.col("classification").is_null())
    mo.vstack(
        [
            mo.md(f"## Unclassified lines ({_unclassified.height:,})"),
            mo.ui.table(
                _unclassified.select("code", "code_group", "description", "origin", "value"),
                selection=None,
            ),
        ]
    )
    return


if __name__ == "__main__":
    app.run()
