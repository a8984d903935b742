# budget_dashboard/outputs/csv_output.py

import os
import csv
from decimal import Decimal
from budget_dashboard.outputs.base import BaseOutput


def _money(value):
    return f"{Decimal(str(value)):.2f}"


class CSVOutput(BaseOutput):
    """
    Writes the three dashboard tables as separate CSV files in output_dir:
    Categories<label>.csv, Budget<label>.csv and Transactions<label>.csv.
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def _write(self, filename, header, rows):
        out_path = os.path.join(self.output_dir, filename)
        with open(out_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return out_path

    def write(self, report):
        label = report.label
        paths = [
            self._write(
                f"Categories{label}.csv",
                ['category', 'total'],
                [[cat, _money(total)] for cat, total in report.category_totals],
            ),
            self._write(
                f"Budget{label}.csv",
                ['subcategory', 'total_spent', 'budget', 'percent', 'remaining', 'status'],
                [
                    [
                        row['subcategory'],
                        _money(row['total_spent']),
                        _money(row['budget']),
                        row['percent'],
                        _money(row['remaining']),
                        row['status'],
                    ]
                    for row in report.budget_rows
                ],
            ),
            self._write(
                f"Transactions{label}.csv",
                ['date', 'store', 'amount', 'category', 'subcategory', 'split', 'note'],
                [
                    [
                        tx.date.isoformat(),
                        tx.store,
                        _money(tx.amount),
                        tx.category,
                        tx.subcategory,
                        'yes' if tx.split else '',
                        tx.note or '',
                    ]
                    for tx in report.transactions
                ],
            ),
        ]
        print(f"Written dashboard tables to {self.output_dir}")
        return paths
