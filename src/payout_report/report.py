"""Build report tables with Net and totals from collected records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Union

from payout_report.client import MAX_PAGE_SIZE, PaymentsClient
from payout_report.collectors import (
    DEFAULT_MAX_WORKERS,
    collect_charges,
    collect_pending_items,
)
from payout_report.dates import DateWindow
from payout_report.models import ChargeRecord, FeeSchedule, PendingItemRecord, quantize_cents

Record = Union[ChargeRecord, PendingItemRecord]

TOTAL_LABEL = "Total"


@dataclass
class ReportRow:
    customer: str
    product: Optional[str]
    date: Optional[date]
    amount: Decimal
    fee: Decimal

    @property
    def net(self) -> Decimal:
        return self.amount - self.fee

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer": self.customer,
            "product": self.product,
            "date": self.date.isoformat() if self.date else None,
            "amount": str(quantize_cents(self.amount)),
            "fee": str(quantize_cents(self.fee)),
            "net": str(quantize_cents(self.net)),
        }


@dataclass
class ReportTable:
    """A titled table of rows plus a synthetic totals row."""

    title: str
    fee_label: str
    rows: List[ReportRow] = field(default_factory=list)
    show_product: bool = False

    @property
    def totals(self) -> ReportRow:
        return ReportRow(
            customer=TOTAL_LABEL,
            product=None,
            date=None,
            amount=sum((r.amount for r in self.rows), Decimal("0")),
            fee=sum((r.fee for r in self.rows), Decimal("0")),
        )

    @property
    def columns(self) -> List[str]:
        columns = ["Customer"]
        if self.show_product:
            columns.append("Product")
        columns.extend(["Invoice Date", "Amount", self.fee_label, "Net"])
        return columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "columns": self.columns,
            "rows": [r.to_dict() for r in self.rows],
            "totals": self.totals.to_dict(),
        }


def _row(record: Record, fee: Decimal) -> ReportRow:
    return ReportRow(
        customer=record.customer_id or "",
        product=record.product_id,
        date=record.record_date,
        amount=record.amount,
        fee=fee,
    )


def build_charge_report(
    records: Iterable[ChargeRecord],
    title: str = "Charges",
    show_product: bool = False,
) -> ReportTable:
    """Tabulate charges using their actual processing fees."""
    rows = [_row(r, r.processing_fee) for r in records]
    return ReportTable(title=title, fee_label="Fees", rows=rows, show_product=show_product)


def build_pending_report(
    records: Sequence[PendingItemRecord],
    title: str = "Pending Invoice Items",
    fee_schedule: Optional[FeeSchedule] = None,
    show_product: bool = False,
) -> ReportTable:
    """Tabulate pending items, estimating fees since nothing has been charged yet."""
    fee_schedule = fee_schedule or FeeSchedule()
    rows = [_row(r, fee_schedule.estimate(r.amount)) for r in records]
    return ReportTable(
        title=title, fee_label="Estimated Fees", rows=rows, show_product=show_product
    )


def build_monthly_report(
    client: PaymentsClient,
    product_id: str,
    window: DateWindow,
    config: Optional[dict[str, Any]] = None,
) -> List[ReportTable]:
    """Collect charges and pending items for one month and tabulate them.

    Returns the pending-items table first, then the charges table.
    Lookup failures propagate; no partial report is produced.
    """
    config = config or {}
    page_size = int(config.get("page_size", MAX_PAGE_SIZE))
    show_product = bool(config.get("show_product", False))

    charges = collect_charges(
        client,
        product_id,
        window,
        page_size=page_size,
        max_workers=int(config.get("max_workers", DEFAULT_MAX_WORKERS)),
    )
    pending = collect_pending_items(client, product_id, window, page_size=page_size)

    return [
        build_pending_report(
            pending,
            fee_schedule=FeeSchedule.from_config(config),
            show_product=show_product,
        ),
        build_charge_report(charges, show_product=show_product),
    ]
