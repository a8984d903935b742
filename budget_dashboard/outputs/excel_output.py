# budget_dashboard/outputs/excel_output.py

"""Excel output module backed by XlsxWriter.

The workbook has three worksheets: ``Categories`` with the category totals
and a bar chart of them, ``Budget`` with one row per budgeted subcategory
(status cells coloured by outcome), and ``Transactions`` with the raw rows
behind the report.
"""

from __future__ import annotations

import os
import xlsxwriter

from budget_dashboard.core.models import AT_LIMIT, ON_TRACK, OVER_BUDGET
from budget_dashboard.outputs.base import BaseOutput


class ExcelOutput(BaseOutput):
    """Generate a local Excel workbook for one dashboard view."""

    CATEGORIES = "Categories"
    BUDGET = "Budget"
    TRANSACTIONS = "Transactions"

    STATUS_COLORS = {
        ON_TRACK: "#C6EFCE",
        AT_LIMIT: "#FFEB9C",
        OVER_BUDGET: "#FFC7CE",
    }

    def __init__(self, config: dict):
        self.config = config
        self.output_dir = config.get("output_dir", "data")
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, report):
        out_path = os.path.join(self.output_dir, f"Dashboard{report.label}.xlsx")
        workbook = xlsxwriter.Workbook(out_path)
        amount_fmt = workbook.add_format({"num_format": "$#,##0.00"})
        status_fmts = {
            status: workbook.add_format({"bg_color": color})
            for status, color in self.STATUS_COLORS.items()
        }

        # Category totals, highest first, with a bar chart beside them
        cat_ws = workbook.add_worksheet(self.CATEGORIES)
        cat_ws.freeze_panes(1, 0)
        cat_ws.write_row(0, 0, ["category", "total"])
        for idx, (category, total) in enumerate(report.category_totals, start=1):
            cat_ws.write(idx, 0, category)
            cat_ws.write_number(idx, 1, total, amount_fmt)
        cat_ws.set_column(0, 0, 16)
        cat_ws.set_column(1, 1, 12, amount_fmt)
        self._insert_category_chart(workbook, cat_ws, len(report.category_totals), report)

        # Budget status
        budget_ws = workbook.add_worksheet(self.BUDGET)
        budget_ws.freeze_panes(1, 0)
        headers = ["subcategory", "total_spent", "budget", "percent", "remaining", "status"]
        budget_ws.write_row(0, 0, headers)
        for idx, row in enumerate(report.budget_rows, start=1):
            budget_ws.write(idx, 0, row["subcategory"])
            budget_ws.write_number(idx, 1, row["total_spent"], amount_fmt)
            budget_ws.write_number(idx, 2, row["budget"], amount_fmt)
            budget_ws.write_number(idx, 3, row["percent"])
            budget_ws.write_number(idx, 4, row["remaining"], amount_fmt)
            budget_ws.write(idx, 5, row["status"], status_fmts.get(row["status"]))
        budget_ws.set_column(0, 0, 18)
        budget_ws.set_column(5, 5, 14)

        # Raw rows
        tx_ws = workbook.add_worksheet(self.TRANSACTIONS)
        tx_ws.freeze_panes(1, 0)
        tx_headers = ["date", "store", "amount", "category", "subcategory", "split", "note"]
        tx_ws.write_row(0, 0, tx_headers)
        for idx, tx in enumerate(report.transactions, start=1):
            tx_ws.write_row(idx, 0, [tx.date.isoformat(), tx.store])
            tx_ws.write_number(idx, 2, tx.amount, amount_fmt)
            tx_ws.write_row(idx, 3, [
                tx.category,
                tx.subcategory,
                "yes" if tx.split else "",
                tx.note or "",
            ])
        tx_ws.set_column(2, 2, None, amount_fmt)
        if report.transactions:
            tx_ws.add_table(0, 0, len(report.transactions), len(tx_headers) - 1, {
                "columns": [{"header": h} for h in tx_headers]
            })

        workbook.close()
        print(f"Written Excel workbook {out_path}")
        return out_path

    def _insert_category_chart(self, workbook, ws, row_count, report):
        if row_count == 0:
            return
        chart = workbook.add_chart({"type": "bar"})
        chart.add_series({
            "categories": [ws.name, 1, 0, row_count, 0],
            "values": [ws.name, 1, 1, row_count, 1],
            "name": "Spending by category",
        })
        chart.set_title({
            "name": f"Spending {report.start.isoformat()} to {report.end.isoformat()}"
        })
        # Bar charts draw the first row at the bottom; flip so the biggest is on top
        chart.set_x_axis({"reverse": True})
        chart.set_legend({"none": True})
        ws.insert_chart(0, 3, chart, {"x_offset": 0, "y_offset": 0})
