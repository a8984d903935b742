# budget_dashboard/utils.py
from datetime import date, datetime

import pandas as pd

from budget_dashboard.exceptions import InvalidArgumentError


def coerce_date(value):
    """
    Accept a date, datetime, or ISO formatted string and return a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid date: {value!r}") from exc
    raise InvalidArgumentError(f"Unrecognized date value: {value!r}")


def check_range(start, end):
    """
    Return (start, end) as dates, refusing a reversed range.
    """
    start, end = coerce_date(start), coerce_date(end)
    if start > end:
        raise InvalidArgumentError(
            f"start date {start.isoformat()} is after end date {end.isoformat()}"
        )
    return start, end


def parse_month(month):
    """
    Return (year, month) for a 'YYYY-MM' string or any date in that month.
    """
    if isinstance(month, (date, datetime)):
        return month.year, month.month
    try:
        year, mon = map(int, str(month).strip().split('-'))
    except ValueError as exc:
        raise InvalidArgumentError(f"Month must look like YYYY-MM, got {month!r}") from exc
    if not 1 <= mon <= 12:
        raise InvalidArgumentError(f"Month out of range in {month!r}")
    return year, mon


def month_label(month):
    year, mon = parse_month(month)
    return f"{year:04d}-{mon:02d}"


_TRUTHY = {"true", "yes", "y", "1", "x"}


def parse_flag(value):
    """
    Read a yes/no spreadsheet cell: blanks are False, strings must be one of
    true/yes/y/1/x (any case), anything else goes through bool().
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)
