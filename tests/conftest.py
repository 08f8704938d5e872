"""Shared fixtures for the payout-report test suite."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from payout_report.dates import DateWindow, month_window


# ---------------------------------------------------------------------------
# Constants reused across tests
# ---------------------------------------------------------------------------

TEST_API_KEY = "sk_test_TESTKEY123456"
TEST_PRODUCT = "prod_target"
OTHER_PRODUCT = "prod_other"


# ---------------------------------------------------------------------------
# Fake Stripe client
# ---------------------------------------------------------------------------


class FakePaymentsClient:
    """In-memory stand-in for :class:`payout_report.client.PaymentsClient`.

    List calls pop pre-seeded pages in order and record their arguments;
    retrieve calls look up dicts by id and count how often each id is
    fetched.  Seeding an ``Exception`` instead of an entity makes that
    retrieve raise it.
    """

    def __init__(self) -> None:
        self.charge_pages: List[Dict[str, Any]] = []
        self.item_pages: List[Dict[str, Any]] = []
        self.invoices: Dict[str, Any] = {}
        self.subscriptions: Dict[str, Any] = {}
        self.balance_transactions: Dict[str, Any] = {}
        self.list_calls: List[Dict[str, Any]] = []
        self.retrieve_calls: List[tuple[str, str]] = []

    # -- lists ---------------------------------------------------------

    def _pop(self, pages: List[Dict[str, Any]], kind: str, created, limit, starting_after):
        self.list_calls.append(
            {"kind": kind, "created": created, "limit": limit, "starting_after": starting_after}
        )
        if not pages:
            return {"data": [], "has_more": False}
        return pages.pop(0)

    def list_charges(self, created, limit=100, starting_after=None):
        return self._pop(self.charge_pages, "charges", created, limit, starting_after)

    def list_pending_invoice_items(self, created, limit=100, starting_after=None):
        return self._pop(self.item_pages, "items", created, limit, starting_after)

    # -- retrieves -----------------------------------------------------

    def _get(self, store: Dict[str, Any], kind: str, key: str) -> Any:
        self.retrieve_calls.append((kind, key))
        value = store[key]
        if isinstance(value, Exception):
            raise value
        return value

    def retrieve_invoice(self, invoice_id):
        return self._get(self.invoices, "invoice", invoice_id)

    def retrieve_subscription(self, subscription_id):
        return self._get(self.subscriptions, "subscription", subscription_id)

    def retrieve_balance_transaction(self, transaction_id):
        return self._get(self.balance_transactions, "balance_transaction", transaction_id)

    def retrieve_count(self, kind: str) -> int:
        return sum(1 for k, _ in self.retrieve_calls if k == kind)


# ---------------------------------------------------------------------------
# Entity builders
# ---------------------------------------------------------------------------


def make_charge(
    charge_id: str,
    created: int,
    amount: int = 10000,
    invoice: Optional[str] = "in_1",
    balance_transaction: Optional[str] = "txn_1",
    customer: str = "cus_1",
) -> Dict[str, Any]:
    return {
        "id": charge_id,
        "object": "charge",
        "amount": amount,
        "created": created,
        "customer": customer,
        "invoice": invoice,
        "balance_transaction": balance_transaction,
    }


def make_subscription(subscription_id: str, *products: str) -> Dict[str, Any]:
    return {
        "id": subscription_id,
        "object": "subscription",
        "items": {
            "object": "list",
            "data": [
                {"id": f"si_{i}", "price": {"id": f"price_{i}", "product": product}}
                for i, product in enumerate(products)
            ],
        },
    }


def make_item(
    item_id: str,
    period_start: int,
    period_end: int,
    date: Any,
    amount: int = 10000,
    product: Optional[str] = TEST_PRODUCT,
    customer: str = "cus_1",
) -> Dict[str, Any]:
    return {
        "id": item_id,
        "object": "invoiceitem",
        "amount": amount,
        "customer": customer,
        "date": date,
        "period": {"start": period_start, "end": period_end},
        "price": {"id": "price_1", "product": product} if product else None,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def window() -> DateWindow:
    """The March 2024 reporting window."""
    return month_window("03-2024")


@pytest.fixture()
def fake_client() -> FakePaymentsClient:
    return FakePaymentsClient()


@pytest.fixture()
def env_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove payout-report environment variables for the duration of a test."""
    for var in (
        "STRIPE_API_KEY",
        "PAYOUT_REPORT_PRODUCT_ID",
        "PAYOUT_REPORT_LOG_LEVEL",
        "PAYOUT_REPORT_LOG_DIR",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def sample_config_file(tmp_path):
    """Write a sample YAML config file and return its path."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "api_key: sk_test_FILEKEY789\n"
        "product_id: prod_from_file\n"
        "page_size: 50\n"
        "max_workers: 4\n"
        "fee_percent: 0.03\n"
        "fee_fixed: 0.25\n"
        "show_product: true\n",
        encoding="utf-8",
    )
    return config_path
