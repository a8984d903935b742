# budget_dashboard/core/models.py
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

ON_TRACK = "On Track"
AT_LIMIT = "At Limit"
OVER_BUDGET = "Over Budget"


@dataclass
class Transaction:
    date: date
    store: str
    amount: float
    category: str
    subcategory: str
    split: bool = False
    note: Optional[str] = None


@dataclass
class DashboardReport:
    """Everything an output needs to render one dashboard view."""

    label: str
    start: date
    end: date
    month: str
    category_totals: List[Tuple[str, float]] = field(default_factory=list)
    budget_rows: List[Dict[str, object]] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
