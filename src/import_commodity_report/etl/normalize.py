"""
Rename, type and key the raw import extract and the HS4 lookup table.

Raw headers vary between extracts ("CIF Value", "Net Weight (Kg)", ...), so
each canonical column accepts an ordered list of aliases. Headers are
compared case-, whitespace- and punctuation-insensitively.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import polars as pl

from import_commodity_report.errors import MissingColumnError
from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)

CODE_GROUP_LENGTH = 4

TRANSACTION_COLUMN_ALIASES: Dict[str, List[str]] = {
    "code": [
        "code",
        "hs code",
        "tariff code",
        "commodity code",
        "tariff item",
        "hs",
    ],
    "description": [
        "description",
        "commodity description",
        "goods description",
        "description of goods",
        "item description",
    ],
    "origin": [
        "origin",
        "country of origin",
        "origin country",
        "country",
    ],
    "weight_kg": [
        "weight_kg",
        "net weight (kg)",
        "net weight",
        "weight (kg)",
        "net mass (kg)",
        "weight",
    ],
    "value": [
        "value",
        "cif value",
        "cif",
        "cif value (usd)",
        "cif value (nzd)",
        "customs value",
        "value (usd)",
    ],
}

LOOKUP_COLUMN_ALIASES: Dict[str, List[str]] = {
    "code_group": [
        "code_group",
        "hs4",
        "hs4 code",
        "heading",
        "code",
        "hs code",
    ],
    "category_label": [
        "category_label",
        "hs4 description",
        "heading description",
        "description",
        "category",
        "label",
    ],
}

NUMERIC_COLUMNS = ["weight_kg", "value"]
TEXT_COLUMNS = ["description", "origin"]

# Thousands separators, currency signs and whitespace found in exported amounts
_NUMERIC_NOISE = r"[,\s$€£¥]|NZD|USD|AUD"


def _header_key(name: str) -> str:
    return re.sub(r"[^0-9a-z]", "", str(name).lower())


def resolve_columns(
    df: pl.DataFrame, aliases: Dict[str, Sequence[str]], source: str | Path
) -> Dict[str, str]:
    """
    Map raw headers onto canonical column names.

    Args:
        df: Raw table as read from disk.
        aliases: Canonical name -> accepted raw headers, in order of preference.
        source: File name used in error messages.

    Returns:
        A rename mapping {raw_header: canonical_name}.

    Raises:
        MissingColumnError: If any canonical column has no matching header.
    """
    headers_by_key: Dict[str, str] = {}
    for header in df.columns:
        headers_by_key.setdefault(_header_key(header), header)

    rename_map: Dict[str, str] = {}
    for canonical, accepted in aliases.items():
        match = next(
            (headers_by_key[_header_key(a)] for a in accepted if _header_key(a) in headers_by_key),
            None,
        )
        if match is None or match in rename_map:
            logger.error(f"Input '{source}' has no column for '{canonical}'. Found: {df.columns}")
            raise MissingColumnError(source, canonical, df.columns)
        rename_map[match] = canonical

    logger.debug(f"Resolved columns for '{source}': {rename_map}")
    return rename_map


def derive_code_group(code: Optional[str]) -> Optional[str]:
    """First four characters of a commodity code, or None for short/missing codes."""
    if code is None:
        return None
    code = str(code).strip()
    if len(code) < CODE_GROUP_LENGTH:
        return None
    return code[:CODE_GROUP_LENGTH]


def code_group_expr(column: str = "code") -> pl.Expr:
    """Vectorised form of derive_code_group."""
    code = pl.col(column)
    return (
        pl.when(code.str.len_chars() >= CODE_GROUP_LENGTH)
        .then(code.str.slice(0, CODE_GROUP_LENGTH))
        .otherwise(None)
        .alias("code_group")
    )


def _clean_code(column: str, zero_pad_to: Optional[int] = None) -> pl.Expr:
    expr = pl.col(column).cast(pl.Utf8).str.strip_chars().str.replace_all(r"[\s\.]", "")
    # Empty cells come through Excel as "" rather than null; pad only real codes
    expr = pl.when(expr == "").then(None).otherwise(expr)
    if zero_pad_to:
        expr = expr.str.zfill(zero_pad_to)
    return expr.alias(column)


def _parse_number(column: str) -> pl.Expr:
    return (
        pl.col(column)
        .cast(pl.Utf8)
        .str.replace_all(_NUMERIC_NOISE, "")
        .cast(pl.Float64, strict=False)
        .alias(column)
    )


def _log_unparsed_numbers(raw: pl.DataFrame, parsed: pl.DataFrame, source: str | Path) -> None:
    for column in NUMERIC_COLUMNS:
        raw_text = raw.get_column(column).cast(pl.Utf8).str.strip_chars()
        bad = ((raw_text.is_not_null() & (raw_text != "")) & parsed.get_column(column).is_null()).sum()
        if bad:
            logger.warning(f"'{source}': {bad} non-numeric '{column}' values set to null")
        negative = (parsed.get_column(column) < 0).sum()
        if negative:
            logger.warning(f"'{source}': {negative} negative '{column}' values")


def code_length_counts(df: pl.DataFrame, column: str = "code") -> Dict[int, int]:
    """Number of non-null codes per code length."""
    counts = (
        df.select(pl.col(column).drop_nulls().str.len_chars().alias("length"))
        .group_by("length")
        .agg(pl.len().alias("rows"))
        .sort("length")
    )
    return dict(counts.iter_rows())


def _log_mixed_code_lengths(
    df: pl.DataFrame, source: str | Path, zero_pad_to: Optional[int]
) -> None:
    # Codes stored as numbers in a workbook lose their leading zeros, so one
    # extract then holds codes of more than one length
    lengths = code_length_counts(df)
    if len(lengths) > 1:
        hint = "" if zero_pad_to else "; use zero padding if leading zeros were dropped"
        logger.warning(f"'{source}': codes have mixed lengths {lengths} (length: rows){hint}")


def normalize_transactions(
    df: pl.DataFrame, source: str | Path = "transactions", zero_pad_to: Optional[int] = None
) -> pl.DataFrame:
    """
    Rename and type the raw transaction extract and derive `code_group`.

    Rows are never dropped or deduplicated: the output has exactly as many
    rows as the input. Columns outside the canonical set are kept as-is.

    Args:
        df: Raw transactions table.
        source: File name used in log and error messages.
        zero_pad_to: If set, left-pad codes with zeros to this width.

    Returns:
        Table with `code`, `description`, `origin`, `weight_kg`, `value`,
        `code_group` first, followed by any extra columns.
    """
    logger.info(f"Normalising transactions from '{source}' ({df.height} rows)")
    rename_map = resolve_columns(df, TRANSACTION_COLUMN_ALIASES, source)
    renamed = df.rename(rename_map)

    normalized = renamed.with_columns(
        _clean_code("code", zero_pad_to),
        *[pl.col(c).cast(pl.Utf8).str.strip_chars().alias(c) for c in TEXT_COLUMNS],
        *[_parse_number(c) for c in NUMERIC_COLUMNS],
    ).with_columns(code_group_expr("code"))

    _log_unparsed_numbers(renamed, normalized, source)

    _log_mixed_code_lengths(normalized, source, zero_pad_to)

    short_codes = normalized.filter(pl.col("code_group").is_null()).height
    if short_codes:
        logger.warning(
            f"'{source}': {short_codes} rows have a missing or short code (< {CODE_GROUP_LENGTH} chars); code_group left null"
        )

    canonical = list(TRANSACTION_COLUMN_ALIASES) + ["code_group"]
    extras = [c for c in normalized.columns if c not in canonical]
    return normalized.select(canonical + extras)


def normalize_lookup(df: pl.DataFrame, source: str | Path = "lookup") -> pl.DataFrame:
    """
    Reduce the HS4 lookup to unique `code_group` -> `category_label` pairs.

    Keys longer than four characters are cut to their code group. Duplicate
    keys keep their first label so the join cannot multiply transaction rows.
    """
    logger.info(f"Normalising lookup from '{source}' ({df.height} rows)")
    rename_map = resolve_columns(df, LOOKUP_COLUMN_ALIASES, source)

    lookup = (
        df.rename(rename_map)
        .select(
            _clean_code("code_group"),
            pl.col("category_label").cast(pl.Utf8).str.strip_chars(),
        )
        .with_columns(code_group_expr("code_group"))
    )

    missing_keys = lookup.filter(pl.col("code_group").is_null()).height
    if missing_keys:
        logger.warning(f"'{source}': dropping {missing_keys} lookup rows without a usable key")
        lookup = lookup.filter(pl.col("code_group").is_not_null())

    deduped = lookup.unique(subset="code_group", keep="first", maintain_order=True)
    duplicates = lookup.height - deduped.height
    if duplicates:
        logger.warning(f"'{source}': {duplicates} duplicate code groups; keeping the first label")

    logger.debug(f"Lookup schema: {deduped.schema}")
    return deduped
