"""
Run parameters for the import commodity report.

Defaults follow the data/raw -> data/final layout. Each value can be
overridden with an IMPORT_REPORT_* environment variable, and the CLI in
pipeline.py overrides both.
"""

import os
from pathlib import Path

RAW_DATA_DIR = "data/raw"
FINAL_DATA_DIR = "data/final"

DEFAULT_TRANSACTIONS_PATH = Path(RAW_DATA_DIR) / "import_transactions.xlsx"
DEFAULT_LOOKUP_PATH = Path(RAW_DATA_DIR) / "hs4_lookup.csv"
DEFAULT_OUTPUT_DIR = Path(FINAL_DATA_DIR) / "import_report"

DEFAULT_LOOKUP_SEPARATOR = ";"
DEFAULT_BREAKDOWN_CLASSIFICATIONS = ("Cattle", "Fish")
DEFAULT_TOP_N_ORIGINS = 15
DEFAULT_UNCLASSIFIED_LABEL = "Unclassified"
DEFAULT_LOOKUP_MISS_LABEL = "Not in lookup"


def _env_list(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from e


def get_config():
    """Returns a dictionary containing configuration parameters."""
    return {
        "TRANSACTIONS_PATH": Path(
            os.environ.get("IMPORT_REPORT_TRANSACTIONS", DEFAULT_TRANSACTIONS_PATH)
        ),
        "LOOKUP_PATH": Path(os.environ.get("IMPORT_REPORT_LOOKUP", DEFAULT_LOOKUP_PATH)),
        "LOOKUP_SEPARATOR": os.environ.get(
            "IMPORT_REPORT_LOOKUP_SEPARATOR", DEFAULT_LOOKUP_SEPARATOR
        ),
        "OUTPUT_DIR": Path(os.environ.get("IMPORT_REPORT_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
        "BREAKDOWN_CLASSIFICATIONS": _env_list(
            "IMPORT_REPORT_BREAKDOWN", DEFAULT_BREAKDOWN_CLASSIFICATIONS
        ),
        "TOP_N_ORIGINS": _env_int("IMPORT_REPORT_TOP_ORIGINS", DEFAULT_TOP_N_ORIGINS),
        # Codes stored as numbers in the extract lose their leading zeros
        "CODE_ZERO_PAD": _env_int("IMPORT_REPORT_CODE_ZERO_PAD", None),
        "UNCLASSIFIED_LABEL": os.environ.get(
            "IMPORT_REPORT_UNCLASSIFIED_LABEL", DEFAULT_UNCLASSIFIED_LABEL
        ),
        "LOOKUP_MISS_LABEL": os.environ.get(
            "IMPORT_REPORT_LOOKUP_MISS_LABEL", DEFAULT_LOOKUP_MISS_LABEL
        ),
    }
