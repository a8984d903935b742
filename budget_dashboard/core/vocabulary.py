# budget_dashboard/core/vocabulary.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from budget_dashboard.core.models import Transaction

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "Home": ["Rent", "Utilities", "Furniture", "Home Improvement"],
    "Auto": ["Gas", "Maintenance", "Insurance", "Parking"],
    "Grocery": ["Grocery"],
    "Gift": ["Gift"],
    "Shopping": ["Clothing", "Electronics", "Household"],
    "Education": ["Books", "Tuition"],
    "Travel": ["Airfare", "Lodging", "Transit"],
    "Amusement": ["Dining", "Coffee", "Entertainment"],
    "Health": ["Pharmacy", "Medical", "Fitness"],
}


class Vocabulary:
    """Closed set of categories, each owning a fixed list of subcategories.

    Aggregation keys come only from here, so a typo in the spreadsheet can
    never turn into a new bucket.
    """

    def __init__(self, mapping: Mapping[str, Iterable[str]]):
        self._categories: Dict[str, Tuple[str, ...]] = {}
        self._owner: Dict[str, str] = {}
        for category, subcategories in mapping.items():
            subs = tuple(subcategories or ())
            for sub in subs:
                owner = self._owner.get(sub)
                if owner is not None and owner != category:
                    raise ValueError(
                        f"Subcategory '{sub}' is listed under both "
                        f"'{owner}' and '{category}'"
                    )
                self._owner[sub] = category
            self._categories[category] = subs

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Iterable[str]]]) -> "Vocabulary":
        if not mapping:
            return DEFAULT_VOCABULARY
        return cls(mapping)

    @property
    def categories(self) -> List[str]:
        return list(self._categories)

    def category_of(self, subcategory: str) -> Optional[str]:
        return self._owner.get(subcategory)

    def is_known(self, category, subcategory) -> bool:
        return category in self._categories and self._owner.get(subcategory) == category

    def known_mask(self, frame: pd.DataFrame) -> pd.Series:
        """Boolean Series, True where the row's category/subcategory pair is valid."""
        flags = [
            self.is_known(cat, sub)
            for cat, sub in zip(frame["category"], frame["subcategory"])
        ]
        return pd.Series(flags, index=frame.index, dtype=bool)

    def __contains__(self, category) -> bool:
        return category in self._categories

    def __repr__(self) -> str:
        return f"Vocabulary({self._categories!r})"


DEFAULT_VOCABULARY = Vocabulary(DEFAULT_CATEGORIES)


@dataclass
class FlaggedTransaction:
    transaction: Transaction
    reason: str


@dataclass
class ValidationResult:
    valid: List[Transaction] = field(default_factory=list)
    flagged: List[FlaggedTransaction] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.flagged


def _label_problem(tx: Transaction, vocabulary: Vocabulary) -> Optional[str]:
    if tx.category not in vocabulary:
        return f"unknown category '{tx.category}'"
    owner = vocabulary.category_of(tx.subcategory)
    if owner is None:
        return f"unknown subcategory '{tx.subcategory}'"
    if owner != tx.category:
        return f"subcategory '{tx.subcategory}' belongs to '{owner}', not '{tx.category}'"
    return None


def check_transactions(
    transactions: Iterable[Transaction],
    vocabulary: Optional[Vocabulary] = None,
) -> ValidationResult:
    """Sort transactions into valid rows and rows needing attention.

    Rows are flagged for labels outside the vocabulary, and for split rows
    with no partner (another split row on the same date and store, filed
    under a different category).
    """
    vocab = vocabulary or DEFAULT_VOCABULARY
    txs = list(transactions)
    result = ValidationResult()

    split_categories: Dict[Tuple[object, str], set] = {}
    for tx in txs:
        if tx.split:
            key = (tx.date, tx.store.strip().lower())
            split_categories.setdefault(key, set()).add(tx.category)

    for tx in txs:
        reason = _label_problem(tx, vocab)
        if reason is None and tx.split:
            cats = split_categories[(tx.date, tx.store.strip().lower())]
            if len(cats) < 2:
                reason = "split row has no partner in another category"
        if reason is None:
            result.valid.append(tx)
        else:
            logger.warning("Flagged transaction %s %s %.2f: %s",
                           tx.date, tx.store, tx.amount, reason)
            result.flagged.append(FlaggedTransaction(tx, reason))
    return result
