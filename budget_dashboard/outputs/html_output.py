# budget_dashboard/outputs/html_output.py

import os
from html import escape
from budget_dashboard.core.models import AT_LIMIT, ON_TRACK, OVER_BUDGET
from budget_dashboard.outputs.base import BaseOutput

_STATUS_CLASS = {
    ON_TRACK: 'ok',
    AT_LIMIT: 'limit',
    OVER_BUDGET: 'over',
}

_STYLE = (
    "body{font-family:sans-serif;}"
    "table{border-collapse:collapse;margin-bottom:20px;}"
    "th,td{border:1px solid #ccc;padding:4px 8px;}th{background:#eee;}"
    ".bar{width:240px;height:14px;background:#eee;}"
    ".bar div{height:14px;}"
    ".ok{background:#5cb85c;}.limit{background:#f0ad4e;}.over{background:#d9534f;}"
)


class HTMLOutput(BaseOutput):
    """Static dashboard page: category bars, budget progress, raw rows."""

    def __init__(self, config):
        self.config = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, report):
        html_parts = [
            "<html><head><meta charset='UTF-8'>",
            f"<style>{_STYLE}</style>",
            "</head><body>",
            f"<h1>Spending dashboard {escape(report.label)}</h1>",
        ]

        # Category totals, bar widths relative to the largest category
        html_parts.append(
            f"<h2>Categories {report.start.isoformat()} to {report.end.isoformat()}</h2>"
        )
        html_parts.append("<table><tr><th>Category</th><th>Total</th><th></th></tr>")
        top = report.category_totals[0][1] if report.category_totals else 0
        for cat, total in report.category_totals:
            width = int(round(total / top * 100)) if top else 0
            html_parts.append(
                f"<tr><td>{escape(cat)}</td><td>{total:.2f}</td>"
                f"<td><div class='bar'><div class='ok' style='width:{width}%'></div></div></td></tr>"
            )
        html_parts.append("</table>")

        # Budget progress, capped at a full bar
        html_parts.append(f"<h2>Budget {escape(report.month)}</h2>")
        html_parts.append(
            "<table><tr><th>Subcategory</th><th>Spent</th><th>Budget</th>"
            "<th>Remaining</th><th>Status</th><th></th></tr>"
        )
        for row in report.budget_rows:
            css = _STATUS_CLASS.get(row['status'], 'ok')
            width = min(row['percent'], 100)
            html_parts.append(
                f"<tr><td>{escape(row['subcategory'])}</td>"
                f"<td>{row['total_spent']:.2f}</td><td>{row['budget']:.2f}</td>"
                f"<td>{row['remaining']:.2f}</td><td>{escape(row['status'])}</td>"
                f"<td><div class='bar'><div class='{css}' style='width:{width}%'></div></div>"
                f" {row['percent']}%</td></tr>"
            )
        html_parts.append("</table>")

        # Raw transactions
        html_parts.append("<h2>Transactions</h2>")
        html_parts.append(
            "<table><tr><th>Date</th><th>Store</th><th>Amount</th><th>Category</th>"
            "<th>Subcategory</th><th>Split</th><th>Note</th></tr>"
        )
        for tx in report.transactions:
            html_parts.append(
                f"<tr><td>{tx.date}</td><td>{escape(tx.store)}</td><td>{tx.amount:.2f}</td>"
                f"<td>{escape(tx.category)}</td><td>{escape(tx.subcategory)}</td>"
                f"<td>{'yes' if tx.split else ''}</td><td>{escape(tx.note or '')}</td></tr>"
            )
        html_parts.append("</table>")

        html_parts.append("</body></html>")

        out_path = os.path.join(self.output_dir, f"Dashboard{report.label}.html")
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write("\n".join(html_parts))

        print(f"Written {len(report.transactions)} transactions to {out_path}")
        return out_path
