from datetime import datetime, date

import yaml

from budget_dashboard.core.models import Transaction
from budget_dashboard.loaders.base import BaseLoader


class YAMLLoader(BaseLoader):
    """Load hand-entered transactions from a YAML list."""

    def load(self, file_path):
        with open(file_path) as f:
            data = yaml.safe_load(f) or []

        for entry in data:
            raw_date = entry.get('date')
            if not raw_date:
                raise ValueError(f"Missing 'date' in manual entry: {entry}")
            # yaml already turns unquoted ISO dates into date objects
            if isinstance(raw_date, datetime):
                raw_date = raw_date.date()
            elif not isinstance(raw_date, date):
                raw_date = datetime.fromisoformat(str(raw_date)).date()
            yield Transaction(
                date=raw_date,
                store=str(entry.get('store', '')).strip(),
                amount=float(entry.get('amount', 0.0)),
                category=str(entry.get('category', '')).strip(),
                subcategory=str(entry.get('subcategory', '')).strip(),
                split=bool(entry.get('split', False)),
                note=entry.get('note'),
            )
