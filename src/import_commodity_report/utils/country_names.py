"""
Resolve free-text origin names from the import extract to ISO 3166-1 alpha-3.
"""

from typing import Optional

import polars as pl
import pycountry

from import_commodity_report.utils.logging_config import get_logger

logger = get_logger(__name__)

# Names customs clerks use that pycountry does not resolve, or resolves badly
HARDCODED_NAME_MAP = {
    "usa": "USA",
    "us": "USA",
    "united states of america": "USA",
    "uk": "GBR",
    "great britain": "GBR",
    "england": "GBR",
    "korea, republic of": "KOR",
    "south korea": "KOR",
    "korea": "KOR",
    "taiwan": "TWN",
    "vietnam": "VNM",
    "russia": "RUS",
    "holland": "NLD",
    "ivory coast": "CIV",
    "turkey": "TUR",
}


def resolve_iso3(name: Optional[str]) -> Optional[str]:
    """
    Map an origin name to an ISO alpha-3 code.

    Tries the hard-coded aliases, then pycountry's exact lookup (names,
    official names and codes), then pycountry's fuzzy search. Returns None if
    nothing matches.
    """
    if name is None:
        return None
    cleaned = str(name).strip()
    if not cleaned:
        return None

    if cleaned.lower() in HARDCODED_NAME_MAP:
        return HARDCODED_NAME_MAP[cleaned.lower()]

    try:
        return pycountry.countries.lookup(cleaned).alpha_3
    except LookupError:
        logger.debug(f"Direct pycountry lookup for '{cleaned}' failed. Trying fuzzy search.")

    try:
        matches = pycountry.countries.search_fuzzy(cleaned)
    except LookupError:
        logger.warning(f"Could not resolve origin '{cleaned}' to an ISO code")
        return None

    best = matches[0]
    if len(matches) > 1:
        logger.debug(f"Ambiguous origin '{cleaned}', using {best.name} ({best.alpha_3})")
    return best.alpha_3


def create_origin_mapping_table(origins: pl.Series) -> pl.DataFrame:
    """One row per distinct origin with its resolved `origin_iso3` (may be null)."""
    unique_origins = origins.drop_nulls().unique().sort().to_list()
    logger.info(f"Resolving {len(unique_origins)} distinct origins to ISO codes")
    mapping = pl.DataFrame(
        {
            "origin": unique_origins,
            "origin_iso3": [resolve_iso3(o) for o in unique_origins],
        },
        schema={"origin": pl.Utf8, "origin_iso3": pl.Utf8},
    )
    unresolved = mapping.filter(pl.col("origin_iso3").is_null()).get_column("origin").to_list()
    if unresolved:
        logger.warning(f"{len(unresolved)} origins left without an ISO code: {unresolved}")
    return mapping


def add_origin_iso3(df: pl.DataFrame) -> pl.DataFrame:
    """Add an `origin_iso3` column; the `origin` column itself is left as entered."""
    mapping = create_origin_mapping_table(df.get_column("origin"))
    return df.drop("origin_iso3", strict=False).join(
        mapping, on="origin", how="left", maintain_order="left"
    )
