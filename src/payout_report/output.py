"""Output formatting for payout-report.

Provides both JSON (machine-parseable) and human-readable (Rich) output.
All public functions accept a ``json_mode`` flag:
    - ``True``  -> JSON string wrapped in a ``status``/``data``/``error`` envelope
    - ``False`` -> Rich-formatted tables and panels for humans
"""

from __future__ import annotations

import json
from decimal import Decimal
from io import StringIO
from typing import Any, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from payout_report.dates import DateWindow, format_long_date
from payout_report.models import quantize_cents
from payout_report.report import ReportRow, ReportTable

CURRENCY_SYMBOL = "$"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_currency(value: Decimal) -> str:
    """Format a major-unit amount like ``$1234.50`` (``-$0.20`` when negative)."""
    rounded = quantize_cents(value)
    if rounded < 0:
        return f"-{CURRENCY_SYMBOL}{-rounded:.2f}"
    return f"{CURRENCY_SYMBOL}{rounded:.2f}"


def _render_to_string(renderable: Any, width: int = 100) -> str:
    """Render a Rich object to a plain string (with ANSI codes)."""
    buf = StringIO()
    console = Console(file=buf, force_terminal=True, width=width)
    console.print(renderable)
    return buf.getvalue().rstrip("\n")


def _cells(row: ReportRow, show_product: bool) -> list[str]:
    cells = [row.customer]
    if show_product:
        cells.append(row.product or "")
    cells.extend(
        [
            format_long_date(row.date) if row.date else "",
            format_currency(row.amount),
            format_currency(row.fee),
            format_currency(row.net),
        ]
    )
    return cells


# ---------------------------------------------------------------------------
# format_response
# ---------------------------------------------------------------------------


def format_response(
    status: str,
    data: dict[str, Any] | None = None,
    error: dict[str, Any] | None = None,
    json_mode: bool = False,
) -> str:
    """Build a generic response envelope.

    Parameters
    ----------
    status:
        ``"success"`` or ``"error"``.
    data:
        Payload dict, emitted in JSON mode when *status* is ``"success"``.
    error:
        Error detail dict with keys ``code`` and ``message``.
    json_mode:
        When *True* return a JSON string; otherwise a Rich-formatted string.
    """
    if json_mode:
        envelope: dict[str, Any] = {
            "status": status,
            "data": data,
            "error": error,
        }
        return json.dumps(envelope, indent=2, sort_keys=False)

    if status == "error" and error:
        code = error.get("code", "UNKNOWN")
        message = error.get("message", "An unknown error occurred.")
        text = Text()
        text.append("Error", style="bold red")
        text.append(f" [{code}]: ", style="red")
        text.append(message)
        return _render_to_string(Panel(text, title="Error", border_style="red"))

    return f"Status: {status}"


# ---------------------------------------------------------------------------
# format_report_table
# ---------------------------------------------------------------------------


def format_report_table(report: ReportTable, json_mode: bool = False) -> str:
    """Render one report table with its totals row."""
    if json_mode:
        return json.dumps(report.to_dict(), indent=2)

    table = Table(border_style="blue")
    table.add_column("Customer", style="bold", no_wrap=True)
    if report.show_product:
        table.add_column("Product", no_wrap=True)
    table.add_column("Invoice Date")
    table.add_column("Amount", justify="right")
    table.add_column(report.fee_label, justify="right")
    table.add_column("Net", justify="right", style="green")

    for row in report.rows:
        table.add_row(*_cells(row, report.show_product))

    table.add_section()
    table.add_row(*_cells(report.totals, report.show_product), style="bold")

    return _render_to_string(table)


# ---------------------------------------------------------------------------
# format_monthly_report
# ---------------------------------------------------------------------------


def format_monthly_report(
    window: DateWindow,
    product_id: str,
    reports: Sequence[ReportTable],
    json_mode: bool = False,
) -> str:
    """Render every report table for one month, pending items first."""
    if json_mode:
        data = {
            "product_id": product_id,
            "month": window.month_label,
            "start_date": window.start_date_formatted,
            "end_date": window.end_date_formatted,
            "reports": [r.to_dict() for r in reports],
        }
        return format_response("success", data=data, json_mode=True)

    sections = []
    for report in reports:
        sections.append(f"\n{report.title} for {window.month_label}:")
        sections.append(format_report_table(report))
    return "\n".join(sections)
