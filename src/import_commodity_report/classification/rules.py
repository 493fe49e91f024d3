"""
Ordered rules mapping HS4 code groups and clerk-entered descriptions to
reporting classifications.

Rules are evaluated top to bottom and the first match wins, so specific
rules (e.g. beef offal described in chapter 02) must sit above the broad
chapter-level catch-alls.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

import polars as pl


@dataclass(frozen=True)
class Rule:
    """
    One (predicate, label) pair.

    Every condition that is set must hold:
      - code_groups: code_group is one of these values
      - prefixes: code_group starts with one of these prefixes
      - contains: description contains one of these substrings (case-insensitive)
      - excludes: description contains none of these substrings (case-insensitive)

    A rule with no conditions set matches every row.
    """

    label: str
    code_groups: Optional[FrozenSet[str]] = None
    prefixes: Optional[Tuple[str, ...]] = None
    contains: Optional[Tuple[str, ...]] = None
    excludes: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        # Accept any iterable in the constructor, store hashable normalised forms
        if self.code_groups is not None:
            object.__setattr__(self, "code_groups", frozenset(self.code_groups))
        if self.prefixes is not None:
            object.__setattr__(self, "prefixes", tuple(self.prefixes))
        if self.contains is not None:
            object.__setattr__(self, "contains", tuple(s.lower() for s in self.contains))
        if self.excludes is not None:
            object.__setattr__(self, "excludes", tuple(s.lower() for s in self.excludes))

    def matches(self, code_group: Optional[str], description: Optional[str]) -> bool:
        """Scalar evaluation against one row."""
        if self.code_groups is not None and code_group not in self.code_groups:
            return False
        if self.prefixes is not None and (
            code_group is None or not code_group.startswith(self.prefixes)
        ):
            return False
        text = (description or "").lower()
        if self.contains is not None and not any(s in text for s in self.contains):
            return False
        if self.excludes is not None and any(s in text for s in self.excludes):
            return False
        return True

    def to_expr(
        self, code_group_col: str = "code_group", description_col: str = "description"
    ) -> pl.Expr:
        """Vectorised predicate; null inputs evaluate to False, as in matches()."""
        code_group = pl.col(code_group_col)
        text = pl.col(description_col).fill_null("").str.to_lowercase()

        conditions = []
        if self.code_groups is not None:
            conditions.append(code_group.is_in(sorted(self.code_groups)).fill_null(False))
        if self.prefixes is not None:
            conditions.append(
                pl.any_horizontal([code_group.str.starts_with(p) for p in self.prefixes]).fill_null(
                    False
                )
            )
        if self.contains is not None:
            conditions.append(
                pl.any_horizontal([text.str.contains(s, literal=True) for s in self.contains])
            )
        if self.excludes is not None:
            conditions.append(
                ~pl.any_horizontal([text.str.contains(s, literal=True) for s in self.excludes])
            )

        if not conditions:
            return pl.lit(True)
        return pl.all_horizontal(conditions)


def classify_row(
    code_group: Optional[str], description: Optional[str], rules: Sequence[Rule]
) -> Optional[str]:
    """Label of the first rule matching the row, or None."""
    for rule in rules:
        if rule.matches(code_group, description):
            return rule.label
    return None


BEEF_TERMS = ("beef", "bovine", "veal", "cattle", "oxtail")
PORK_TERMS = ("pork", "swine", "pig", "ham", "bacon")
# "ham" also matches hamburger patties, "pig" matches pigeon
PORK_EXCLUDES = ("hamburger", "pigeon")
POULTRY_TERMS = ("chicken", "poultry", "turkey", "duck", "fowl")

DEFAULT_RULES: Tuple[Rule, ...] = (
    # Live animals and fresh/frozen meat by HS4 heading
    Rule("Cattle", code_groups={"0102", "0201", "0202"}),
    Rule("Pigs", code_groups={"0103", "0203"}),
    Rule("Sheep & Goats", code_groups={"0104", "0204"}),
    Rule("Poultry", code_groups={"0105", "0207"}),
    # Offal, salted/dried meat and preparations: species from the description
    Rule("Cattle", prefixes=("02", "16"), contains=BEEF_TERMS, excludes=("buffalo",)),
    Rule("Pigs", prefixes=("02", "16"), contains=PORK_TERMS, excludes=PORK_EXCLUDES),
    Rule("Poultry", prefixes=("02", "16"), contains=POULTRY_TERMS),
    Rule("Other Meat", prefixes=("02",)),
    # Seafood
    Rule("Fish", prefixes=("03",)),
    Rule("Fish", code_groups={"1604", "1605"}),
    # Dairy, eggs, honey
    Rule("Dairy", code_groups={"0401", "0402", "0403", "0404", "0405", "0406"}),
    Rule("Eggs", code_groups={"0407", "0408"}),
    Rule("Honey", code_groups={"0409"}),
    # Plant products
    Rule("Vegetables", prefixes=("07",)),
    Rule("Fruit & Nuts", prefixes=("08",)),
    Rule("Coffee, Tea & Spices", prefixes=("09",)),
    Rule("Cereals", prefixes=("10", "11")),
    Rule("Animal Feed", prefixes=("23",)),
    Rule("Animal Feed", contains=("animal feed", "stock feed", "fodder", "pet food")),
    Rule("Beverages", prefixes=("22",)),
    Rule("Prepared Food", prefixes=("16", "17", "18", "19", "20", "21")),
)
