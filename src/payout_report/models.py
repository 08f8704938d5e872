"""Record types and money helpers for payout reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_CENTS = Decimal("0.01")
_MINOR_PER_MAJOR = 100


def to_major_units(minor: int | None) -> Decimal:
    """Convert an integer minor-unit amount (cents) to a major-unit Decimal."""
    return Decimal(int(minor or 0)) / _MINOR_PER_MAJOR


def to_minor_units(major: Decimal) -> int:
    """Convert a major-unit Decimal back to integer minor units, rounding half up."""
    return int((major * _MINOR_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quantize_cents(value: Decimal) -> Decimal:
    """Round *value* to two decimal places for display."""
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeSchedule:
    """Flat-rate card processing fee used to estimate fees on uninvoiced items."""

    percent: Decimal = Decimal("0.029")
    fixed: Decimal = Decimal("0.30")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> FeeSchedule:
        return cls(
            percent=Decimal(str(config.get("fee_percent", cls.percent))),
            fixed=Decimal(str(config.get("fee_fixed", cls.fixed))),
        )

    def estimate(self, amount: Decimal) -> Decimal:
        """Return ``amount * percent + fixed``."""
        return amount * self.percent + self.fixed


@dataclass
class ChargeRecord:
    """A settled charge attributed to the target product."""

    charge_id: str
    customer_id: str | None
    product_id: str
    invoice_date: date
    amount: Decimal
    processing_fee: Decimal

    @property
    def record_date(self) -> date:
        return self.invoice_date

    @property
    def net(self) -> Decimal:
        return self.amount - self.processing_fee


@dataclass
class PendingItemRecord:
    """An uninvoiced item for the target product, billed at the next cycle.

    Nothing has been charged yet, so ``processing_fee`` is always zero;
    the report estimates fees with a :class:`FeeSchedule` instead.
    """

    item_id: str
    customer_id: str | None
    product_id: str
    pending_invoice_date: date
    amount: Decimal
    processing_fee: Decimal = field(default=Decimal("0"))

    @property
    def record_date(self) -> date:
        return self.pending_invoice_date

    @property
    def net(self) -> Decimal:
        return self.amount - self.processing_fee
