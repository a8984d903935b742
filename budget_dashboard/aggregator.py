# budget_dashboard/aggregator.py
"""Spending aggregation over a snapshot of transactions.

Every function here is pure: it copies its input into a fresh DataFrame,
filters and groups that copy, and returns plain Python values. Callers
re-invoke with new parameters whenever a filter changes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from budget_dashboard.core.models import AT_LIMIT, ON_TRACK, OVER_BUDGET, Transaction
from budget_dashboard.core.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from budget_dashboard.utils import check_range, coerce_date, parse_flag, parse_month

logger = logging.getLogger(__name__)

COLUMNS = ["date", "store", "amount", "category", "subcategory", "split", "note"]
_REQUIRED = ("date", "amount", "category", "subcategory")


def transactions_to_frame(transactions) -> pd.DataFrame:
    """Build a private DataFrame snapshot from Transactions or an existing frame."""
    if isinstance(transactions, pd.DataFrame):
        missing = [c for c in _REQUIRED if c not in transactions.columns]
        if missing:
            raise ValueError(f"Transaction frame is missing column(s): {', '.join(missing)}")
        df = transactions.reindex(columns=COLUMNS)
    else:
        df = pd.DataFrame([asdict(tx) for tx in transactions], columns=COLUMNS)

    df["date"] = pd.to_datetime(df["date"]).dt.normalize()
    df["amount"] = pd.to_numeric(df["amount"]).astype(float)
    df["split"] = df["split"].apply(parse_flag).astype(bool)
    df["store"] = df["store"].fillna("")
    return df


def _known_rows(df: pd.DataFrame, vocabulary: Vocabulary) -> pd.DataFrame:
    mask = vocabulary.known_mask(df)
    dropped = int((~mask).sum())
    if dropped:
        logger.warning(
            "Excluding %d transaction(s) with category/subcategory labels "
            "outside the vocabulary", dropped,
        )
    return df.loc[mask]


def _in_range(df: pd.DataFrame, start, end) -> pd.Series:
    return df["date"].between(pd.Timestamp(start), pd.Timestamp(end))


def _in_month(df: pd.DataFrame, month) -> pd.Series:
    year, mon = parse_month(month)
    return (df["date"].dt.year == year) & (df["date"].dt.month == mon)


def _selected_categories(categories, vocabulary: Vocabulary) -> set:
    requested = set(categories) if categories is not None else set()
    selected = {c for c in requested if c in vocabulary}
    unknown = requested - selected
    if unknown:
        logger.debug("Ignoring unknown categories in selection: %s", sorted(map(str, unknown)))
    return selected


def _exact_sum(amounts) -> Decimal:
    # Exact; outputs round for display.
    return sum((Decimal(str(a)) for a in amounts), Decimal(0))


def _group_sums(frame: pd.DataFrame, keys) -> Dict[object, Decimal]:
    if frame.empty:
        return {}
    return frame.groupby(keys)["amount"].agg(_exact_sum).to_dict()


def _ranked_totals(frame: pd.DataFrame, key: str) -> List[Tuple[str, float]]:
    sums = _group_sums(frame, key)
    ranked = sorted(sums.items(), key=lambda item: (-item[1], str(item[0])))
    return [(str(name), float(total)) for name, total in ranked]


def category_totals(
    transactions,
    start,
    end,
    categories: Iterable[str],
    vocabulary: Optional[Vocabulary] = None,
) -> List[Tuple[str, float]]:
    """Total spend per category over an inclusive date range.

    Parameters
    ----------
    transactions:
        Iterable of Transaction objects, or a DataFrame with the same columns.
    start, end:
        Inclusive bounds, as dates or ISO strings. ``start`` after ``end``
        raises InvalidArgumentError.
    categories:
        Category names to include. Names outside the vocabulary are ignored;
        an empty selection yields an empty list.
    vocabulary:
        Closed label set; rows with other labels are excluded with a warning.

    Returns a list of ``(category, total)`` pairs, highest total first and
    ties ordered by category name.
    """
    start, end = check_range(start, end)
    vocab = vocabulary or DEFAULT_VOCABULARY
    selected = _selected_categories(categories, vocab)
    if not selected:
        return []

    df = _known_rows(transactions_to_frame(transactions), vocab)
    filtered = df.loc[_in_range(df, start, end) & df["category"].isin(selected)]
    return _ranked_totals(filtered, "category")


def subcategory_totals(
    transactions,
    start,
    end,
    category: str,
    vocabulary: Optional[Vocabulary] = None,
) -> List[Tuple[str, float]]:
    """Drill into one category: total spend per subcategory, highest first."""
    start, end = check_range(start, end)
    vocab = vocabulary or DEFAULT_VOCABULARY
    if category not in vocab:
        return []

    df = _known_rows(transactions_to_frame(transactions), vocab)
    filtered = df.loc[_in_range(df, start, end) & (df["category"] == category)]
    return _ranked_totals(filtered, "subcategory")


def monthly_totals(
    transactions,
    start,
    end,
    categories: Iterable[str],
    vocabulary: Optional[Vocabulary] = None,
) -> List[Dict[str, object]]:
    """Spend per calendar month and category, ordered by month then category."""
    start, end = check_range(start, end)
    vocab = vocabulary or DEFAULT_VOCABULARY
    selected = _selected_categories(categories, vocab)
    if not selected:
        return []

    df = _known_rows(transactions_to_frame(transactions), vocab)
    filtered = df.loc[_in_range(df, start, end) & df["category"].isin(selected)].copy()
    if filtered.empty:
        return []
    filtered["month"] = filtered["date"].dt.strftime("%Y-%m")
    sums = _group_sums(filtered, ["month", "category"])
    return [
        {"month": m, "category": c, "total": float(total)}
        for (m, c), total in sorted(sums.items())
    ]


def filter_transactions(
    transactions,
    start=None,
    end=None,
    categories: Optional[Iterable[str]] = None,
    month=None,
    vocabulary: Optional[Vocabulary] = None,
) -> List[Transaction]:
    """Rows behind the summaries, for the raw table view, sorted by date, store and category.

    Every filter is optional; ``categories=None`` means no category filter.
    """
    vocab = vocabulary or DEFAULT_VOCABULARY
    df = _known_rows(transactions_to_frame(transactions), vocab)

    mask = pd.Series(True, index=df.index)
    if start is not None and end is not None:
        start, end = check_range(start, end)
        mask &= _in_range(df, start, end)
    elif start is not None:
        mask &= df["date"] >= pd.Timestamp(coerce_date(start))
    elif end is not None:
        mask &= df["date"] <= pd.Timestamp(coerce_date(end))
    if categories is not None:
        mask &= df["category"].isin(_selected_categories(categories, vocab))
    if month is not None:
        mask &= _in_month(df, month)

    rows = df.loc[mask].sort_values(["date", "store", "category"], kind="mergesort")
    return [
        Transaction(
            date=row.date.date(),
            store=row.store,
            amount=float(row.amount),
            category=row.category,
            subcategory=row.subcategory,
            split=bool(row.split),
            note=None if pd.isna(row.note) else str(row.note),
        )
        for row in rows.itertuples(index=False)
    ]


def _usable_budgets(budgets: Optional[Mapping[str, object]], vocabulary: Vocabulary) -> Dict[str, Decimal]:
    usable: Dict[str, Decimal] = {}
    for subcategory, ceiling in (budgets or {}).items():
        if vocabulary.category_of(subcategory) is None:
            logger.warning("Ignoring budget for unknown subcategory '%s'", subcategory)
            continue
        if ceiling is None:
            logger.warning("Ignoring budget for '%s': no amount configured", subcategory)
            continue
        try:
            value = Decimal(str(float(ceiling)))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Budget for '{subcategory}' is not a number: {ceiling!r}") from exc
        if value <= 0:
            logger.warning("Ignoring budget for '%s': ceiling must be positive, got %s",
                           subcategory, ceiling)
            continue
        usable[subcategory] = value
    return usable


def classify(total_spent, budget) -> str:
    if total_spent > budget:
        return OVER_BUDGET
    if total_spent == budget:
        return AT_LIMIT
    return ON_TRACK


def _status_row(subcategory: str, total_spent: Decimal, budget: Decimal) -> Dict[str, object]:
    return {
        "subcategory": subcategory,
        "total_spent": float(total_spent),
        "budget": float(budget),
        "percent": int(round(total_spent / budget * 100)),
        "remaining": float(budget - total_spent),
        "status": classify(total_spent, budget),
    }


def budget_status(
    transactions,
    month,
    budgets: Mapping[str, object],
    vocabulary: Optional[Vocabulary] = None,
    include_inactive: bool = False,
) -> List[Dict[str, object]]:
    """Compare one month's spend per subcategory against its budget.

    Parameters
    ----------
    transactions:
        Iterable of Transaction objects, or a DataFrame with the same columns.
    month:
        ``'YYYY-MM'`` string or any date within the month.
    budgets:
        Mapping of subcategory to monthly ceiling. Subcategories not listed,
        and entries with a missing or non-positive ceiling, are left out.
    include_inactive:
        Also report budgeted subcategories with no spend in the month.

    Returns one dict per subcategory, in the order of ``budgets``, with keys
    ``subcategory``, ``total_spent``, ``budget``, ``percent``, ``remaining``
    and ``status``.
    """
    parse_month(month)
    vocab = vocabulary or DEFAULT_VOCABULARY
    ceilings = _usable_budgets(budgets, vocab)
    if not ceilings:
        return []

    df = _known_rows(transactions_to_frame(transactions), vocab)
    in_month = df.loc[_in_month(df, month) & df["subcategory"].isin(list(ceilings))]
    spent = _group_sums(in_month, "subcategory")

    rows = []
    for subcategory, ceiling in ceilings.items():
        if subcategory not in spent and not include_inactive:
            continue
        total = spent.get(subcategory, Decimal(0))
        rows.append(_status_row(subcategory, total, ceiling))
    return rows
