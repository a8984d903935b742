import re
from abc import abstractmethod
from pathlib import Path

import pandas as pd

from budget_dashboard.core.models import Transaction
from budget_dashboard.loaders.base import BaseLoader
from budget_dashboard.utils import parse_flag

_CLEAN_AMOUNT = re.compile(r"[^\d\-\.]")
_HEADER_KEYS = ("date", "amount", "category")


def _text(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ''
    return str(value).strip()


class SpreadsheetLoader(BaseLoader):
    """
    Reads the budget spreadsheet: one row per purchase with columns
    date, store, amount, category, subcategory, split, note.
    """

    @abstractmethod
    def read_raw(self, file_path):
        """Return the whole sheet as a header-less DataFrame."""
        pass

    def load(self, file_path):
        # 1. Detect header row
        raw = self.read_raw(file_path)
        header_row = None
        for idx, row in raw.iterrows():
            vals = [str(v).strip().lower() for v in row.values if pd.notna(v)]
            if all(key in vals for key in _HEADER_KEYS):
                header_row = idx
                break
        if header_row is None:
            raise RuntimeError(f"Could not locate header row in {file_path}")

        df = raw.loc[header_row + 1:].copy()
        df.columns = [str(c).strip() for c in raw.loc[header_row].values]

        # 2. Column lookup
        cols = {c.lower(): c for c in df.columns}
        def find(frag):
            if frag in cols:
                return cols[frag]
            return next((orig for low, orig in cols.items() if frag in low), None)

        date_col = find('date')
        store_col = find('store') or find('merchant')
        amt_col = find('amount')
        cat_col = find('category')
        sub_col = find('subcategory')
        split_col = find('split')
        note_col = find('note')

        # 'category' is a fragment of 'subcategory'; make sure they differ
        if cat_col is not None and cat_col.lower() == 'subcategory':
            cat_col = None
        for name, col in (('date', date_col), ('amount', amt_col),
                          ('category', cat_col), ('subcategory', sub_col)):
            if col is None:
                raise RuntimeError(f"Missing required column '{name}' in {file_path}")

        # 3. Parse & yield
        for _, row in df.iterrows():
            if all(pd.isna(v) for v in row.values):
                continue

            amt_raw = _text(row[amt_col])
            cleaned = _CLEAN_AMOUNT.sub("", amt_raw)
            if not cleaned:
                continue
            try:
                amount = float(cleaned)
            except ValueError:
                raise ValueError(f"Could not parse amount '{amt_raw}' in {file_path}")

            d_raw = row[date_col]
            if not isinstance(d_raw, str) and pd.isna(d_raw):
                raise ValueError(f"Missing date for amount '{amt_raw}' in {file_path}")
            try:
                d = pd.to_datetime(d_raw).date()
            except (ValueError, TypeError, AttributeError):
                raise ValueError(f"Could not parse date '{d_raw}' in {file_path}")

            note = _text(row[note_col]) if note_col else ''
            yield Transaction(
                date=d,
                store=_text(row[store_col]) if store_col else '',
                amount=amount,
                category=_text(row[cat_col]),
                subcategory=_text(row[sub_col]),
                split=parse_flag(row[split_col]) if split_col else False,
                note=note or None,
            )


class CSVLoader(SpreadsheetLoader):
    def read_raw(self, file_path):
        return pd.read_csv(file_path, header=None, dtype=str, skip_blank_lines=False)


class ExcelLoader(SpreadsheetLoader):
    def read_raw(self, file_path):
        engine = 'xlrd' if Path(file_path).suffix.lower() == '.xls' else 'openpyxl'
        return pd.read_excel(file_path, header=None, engine=engine)
