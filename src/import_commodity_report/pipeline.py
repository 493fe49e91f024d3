"""
Command-line entry point: load -> normalise -> join -> classify -> aggregate -> write.

A failed step aborts the whole run with a non-zero exit code.
"""

import argparse
import sys
from pathlib import Path

from import_commodity_report.config import get_config
from import_commodity_report.errors import ReportInputError
from import_commodity_report.etl.loading import load_lookup, load_transactions
from import_commodity_report.report import build_report, write_report
from import_commodity_report.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv=None, config=None):
    config = config or get_config()
    parser = argparse.ArgumentParser(
        description="Classify an import extract by commodity and summarise value and weight."
    )
    parser.add_argument(
        "--transactions",
        type=Path,
        default=config["TRANSACTIONS_PATH"],
        help="Import transactions extract (.csv or .xlsx)",
    )
    parser.add_argument(
        "--sheet", default=None, help="Worksheet of the transactions workbook (default: first)"
    )
    parser.add_argument(
        "--lookup",
        type=Path,
        default=config["LOOKUP_PATH"],
        help="Delimited HS4 code -> category lookup",
    )
    parser.add_argument(
        "--lookup-separator",
        default=config["LOOKUP_SEPARATOR"],
        help="Field separator of the lookup file",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config["OUTPUT_DIR"],
        help="Directory for tables and charts",
    )
    parser.add_argument(
        "--breakdown",
        action="append",
        default=None,
        help="Classification to break down by description (repeatable)",
    )
    parser.add_argument(
        "--top-origins",
        type=int,
        default=config["TOP_N_ORIGINS"],
        help="Origins shown individually in the origin chart",
    )
    parser.add_argument(
        "--zero-pad",
        type=int,
        default=config["CODE_ZERO_PAD"],
        help="Left-pad tariff codes with zeros to this width",
    )
    parser.add_argument(
        "--unclassified-label",
        default=config["UNCLASSIFIED_LABEL"],
        help="Label for rows matching no classification rule in aggregate views",
    )
    parser.add_argument(
        "--lookup-miss-label",
        default=config["LOOKUP_MISS_LABEL"],
        help="Label for rows whose code group is not in the lookup, in the category view",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")

    args = parser.parse_args(argv)
    if args.breakdown is None:
        args.breakdown = list(config["BREAKDOWN_CLASSIFICATIONS"])
    return args


def run(args):
    """Run every stage; returns the written output paths."""
    logger.info("--- Step 1: Loading inputs ---")
    transactions = load_transactions(args.transactions, sheet_name=args.sheet, zero_pad_to=args.zero_pad)
    lookup = load_lookup(args.lookup, separator=args.lookup_separator)

    logger.info("--- Step 2: Classifying and aggregating ---")
    report = build_report(
        transactions,
        lookup,
        breakdown_classifications=args.breakdown,
        top_n_origins=args.top_origins,
        unclassified_label=args.unclassified_label,
        lookup_miss_label=args.lookup_miss_label,
    )

    logger.info("--- Step 3: Writing outputs ---")
    return write_report(report, args.output_dir)


def main(argv=None):
    """Orchestrates the report build and exits with 0 on success, 1 on failure."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    logger.info("--- Starting import commodity report ---")

    try:
        run(args)
    except ReportInputError as e:
        logger.critical(f"❌ Input error, aborting: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"❌ Report build failed: {e}", exc_info=True)
        sys.exit(1)

    logger.info("--- Report finished successfully ---")
    sys.exit(0)


if __name__ == "__main__":
    main()
