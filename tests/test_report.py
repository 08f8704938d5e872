"""Tests for payout_report.report."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from payout_report.models import ChargeRecord, FeeSchedule, PendingItemRecord
from payout_report.report import (
    TOTAL_LABEL,
    build_charge_report,
    build_monthly_report,
    build_pending_report,
)

from conftest import TEST_PRODUCT, make_charge, make_item, make_subscription


def _charge(charge_id: str, amount: str, fee: str, customer: str = "cus_1") -> ChargeRecord:
    return ChargeRecord(
        charge_id=charge_id,
        customer_id=customer,
        product_id=TEST_PRODUCT,
        invoice_date=date(2024, 3, 3),
        amount=Decimal(amount),
        processing_fee=Decimal(fee),
    )


def _pending(item_id: str, amount: str) -> PendingItemRecord:
    return PendingItemRecord(
        item_id=item_id,
        customer_id="cus_2",
        product_id=TEST_PRODUCT,
        pending_invoice_date=date(2024, 3, 9),
        amount=Decimal(amount),
    )


# ===================================================================
# build_charge_report
# ===================================================================


class TestChargeReport:
    def test_rows_use_actual_fees(self) -> None:
        report = build_charge_report([_charge("ch_1", "100.00", "3.20")])
        row = report.rows[0]
        assert row.customer == "cus_1"
        assert row.date == date(2024, 3, 3)
        assert row.fee == Decimal("3.20")
        assert row.net == Decimal("96.80")
        assert report.fee_label == "Fees"

    def test_totals_row(self) -> None:
        report = build_charge_report(
            [
                _charge("ch_1", "100.00", "3.20"),
                _charge("ch_2", "19.99", "0.88"),
                _charge("ch_3", "0.50", "0.31"),
            ]
        )
        totals = report.totals
        assert totals.customer == TOTAL_LABEL
        assert totals.date is None
        assert totals.amount == Decimal("120.49")
        assert totals.fee == Decimal("4.39")
        assert totals.net == Decimal("116.10")

    def test_total_net_equals_sum_of_row_nets(self) -> None:
        report = build_charge_report(
            [_charge(f"ch_{i}", f"{i}.{i:02d}", f"0.{i:02d}") for i in range(1, 30)]
        )
        assert report.totals.net == sum((r.net for r in report.rows), Decimal("0"))
        assert report.totals.net == report.totals.amount - report.totals.fee

    def test_empty_report_has_zero_totals(self) -> None:
        report = build_charge_report([])
        assert report.rows == []
        assert report.totals.amount == Decimal("0")
        assert report.totals.net == Decimal("0")

    def test_columns_without_product(self) -> None:
        assert build_charge_report([]).columns == ["Customer", "Invoice Date", "Amount", "Fees", "Net"]

    def test_columns_with_product(self) -> None:
        report = build_charge_report([], show_product=True)
        assert report.columns == ["Customer", "Product", "Invoice Date", "Amount", "Fees", "Net"]

    def test_missing_customer_renders_blank(self) -> None:
        record = _charge("ch_1", "1.00", "0.33")
        record.customer_id = None
        assert build_charge_report([record]).rows[0].customer == ""


# ===================================================================
# build_pending_report
# ===================================================================


class TestPendingReport:
    def test_estimated_fee_for_one_hundred_dollars(self) -> None:
        report = build_pending_report([_pending("ii_1", "100.00")])
        row = report.rows[0]
        assert row.fee == Decimal("3.20")
        assert row.net == Decimal("96.80")
        assert report.fee_label == "Estimated Fees"

    def test_custom_fee_schedule(self) -> None:
        schedule = FeeSchedule(percent=Decimal("0.05"), fixed=Decimal("0"))
        report = build_pending_report([_pending("ii_1", "10.00")], fee_schedule=schedule)
        assert report.rows[0].fee == Decimal("0.5")

    def test_totals_match_row_sums(self) -> None:
        report = build_pending_report([_pending("ii_1", "100.00"), _pending("ii_2", "33.33")])
        totals = report.totals
        assert totals.amount == Decimal("133.33")
        assert totals.fee == sum((r.fee for r in report.rows), Decimal("0"))
        assert totals.net == totals.amount - totals.fee

    def test_to_dict(self) -> None:
        data = build_pending_report([_pending("ii_1", "100.00")]).to_dict()
        assert data["title"] == "Pending Invoice Items"
        assert data["columns"][3] == "Estimated Fees"
        assert data["rows"][0]["fee"] == "3.20"
        assert data["totals"]["customer"] == TOTAL_LABEL


# ===================================================================
# build_monthly_report
# ===================================================================


class TestMonthlyReport:
    def test_pending_table_first_then_charges(self, fake_client, window) -> None:
        created = window.start_timestamp + 86400
        fake_client.invoices["in_1"] = {"id": "in_1", "subscription": "sub_1"}
        fake_client.subscriptions["sub_1"] = make_subscription("sub_1", TEST_PRODUCT)
        fake_client.balance_transactions["txn_1"] = {"id": "txn_1", "fee": 320}
        fake_client.charge_pages = [{"data": [make_charge("ch_1", created)], "has_more": False}]
        fake_client.item_pages = [
            {
                "data": [make_item("ii_1", window.start_timestamp, window.end_timestamp, created)],
                "has_more": False,
            }
        ]

        pending, charges = build_monthly_report(
            fake_client, TEST_PRODUCT, window, {"show_product": True, "fee_fixed": 0.25}
        )

        assert pending.title == "Pending Invoice Items"
        assert pending.show_product is True
        assert pending.rows[0].fee == Decimal("3.15")
        assert charges.title == "Charges"
        assert charges.rows[0].fee == Decimal("3.20")

    def test_charges_are_collected_before_pending_items(self, fake_client, window) -> None:
        build_monthly_report(fake_client, TEST_PRODUCT, window)
        assert [c["kind"] for c in fake_client.list_calls] == ["charges", "items"]

    def test_page_size_is_forwarded(self, fake_client, window) -> None:
        build_monthly_report(fake_client, TEST_PRODUCT, window, {"page_size": 25})
        assert [c["limit"] for c in fake_client.list_calls] == [25, 25]

    def test_failure_produces_no_report(self, fake_client, window) -> None:
        with patch("payout_report.report.collect_pending_items", side_effect=RuntimeError("down")):
            with pytest.raises(RuntimeError):
                build_monthly_report(fake_client, TEST_PRODUCT, window)
