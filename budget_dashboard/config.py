from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Dict

import yaml

from budget_dashboard.core.vocabulary import DEFAULT_CATEGORIES, Vocabulary

DEFAULT_CONFIG: Dict[str, object] = {
    "transaction_loaders": {
        ".csv": "budget_dashboard.loaders.spreadsheet.CSVLoader",
        ".xlsx": "budget_dashboard.loaders.spreadsheet.ExcelLoader",
        ".xls": "budget_dashboard.loaders.spreadsheet.ExcelLoader",
        ".yaml": "budget_dashboard.loaders.manual.YAMLLoader",
        ".yml": "budget_dashboard.loaders.manual.YAMLLoader",
    },
    "output_modules": {
        "csv": "budget_dashboard.outputs.csv_output.CSVOutput",
        "excel": "budget_dashboard.outputs.excel_output.ExcelOutput",
        "html": "budget_dashboard.outputs.html_output.HTMLOutput",
    },
    "transactions_file": "transactions.csv",
    "output_dir": "data",
    "categories": DEFAULT_CATEGORIES,
    "budgets": {},
    "log_level": "WARNING",
}

# Keys whose user value replaces the default outright instead of being merged.
_REPLACE_KEYS = ("categories", "budgets")


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged or merged[key] is None:
            merged[key] = deepcopy(value)
        elif key in _REPLACE_KEYS:
            continue
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    if path is None:
        return deepcopy(DEFAULT_CONFIG)
    target = Path(path)
    with target.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {target} must contain a mapping at the top level")
    return _merge_defaults(data, DEFAULT_CONFIG)


def vocabulary_from_config(config: Dict[str, object]) -> Vocabulary:
    return Vocabulary.from_mapping(config.get("categories"))  # type: ignore[arg-type]
