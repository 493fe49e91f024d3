"""
Read the import extract and the HS4 lookup from disk.
"""

from pathlib import Path
from typing import Optional

import pandas as pd
import polars as pl

from import_commodity_report.errors import InputFileError
from import_commodity_report.etl.normalize import normalize_lookup, normalize_transactions
from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)

DELIMITED_SUFFIXES = {".csv", ".txt", ".tsv"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def read_table(
    path: str | Path, separator: Optional[str] = None, sheet_name: Optional[str] = None
) -> pl.DataFrame:
    """
    Read a delimited or Excel file with every column as text.

    Types are assigned later in normalisation, so nothing (e.g. leading zeros
    in tariff codes) is lost to type inference here.

    Args:
        path: File to read.
        separator: Field separator for delimited files. Defaults to tab for
            .tsv and comma otherwise.
        sheet_name: Worksheet for Excel files. Defaults to the first sheet.

    Raises:
        InputFileError: If the file is missing, of an unknown type or unparseable.
    """
    path = Path(path)
    if not path.is_file():
        logger.error(f"Input file not found: {path}")
        raise InputFileError(path, "file not found")

    suffix = path.suffix.lower()
    logger.info(f"Reading {path}")
    try:
        if suffix in DELIMITED_SUFFIXES:
            if separator is None:
                separator = "\t" if suffix == ".tsv" else ","
            df = pl.read_csv(
                path,
                separator=separator,
                infer_schema=False,
                encoding="utf8-lossy",
            )
        elif suffix in EXCEL_SUFFIXES:
            pdf = pd.read_excel(path, sheet_name=sheet_name or 0, dtype=str)
            pdf.columns = [str(c).strip() for c in pdf.columns]
            df = pl.from_pandas(pdf)
        else:
            raise InputFileError(path, f"unsupported file type '{suffix}'")
    except InputFileError:
        raise
    except Exception as e:
        logger.error(f"Failed to parse {path}: {e}", exc_info=True)
        raise InputFileError(path, str(e)) from e

    logger.info(f"Read {df.height} rows, {df.width} columns from {path.name}")
    logger.debug(f"Columns in {path.name}: {df.columns}")
    return df


def load_transactions(
    path: str | Path, sheet_name: Optional[str] = None, zero_pad_to: Optional[int] = None
) -> pl.DataFrame:
    """Read and normalise the import transactions extract."""
    raw = read_table(path, sheet_name=sheet_name)
    return normalize_transactions(raw, source=Path(path).name, zero_pad_to=zero_pad_to)


def load_lookup(path: str | Path, separator: Optional[str] = ";") -> pl.DataFrame:
    """Read and normalise the delimited HS4 code -> category lookup."""
    raw = read_table(path, separator=separator)
    return normalize_lookup(raw, source=Path(path).name)
