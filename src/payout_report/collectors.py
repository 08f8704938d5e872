"""Collectors that turn paged Stripe data into report records.

Both collectors walk a ``created`` date window page by page using the
last id of each page as the ``starting_after`` cursor.  The charge
collector fans each page out to a thread pool to resolve invoice,
subscription and balance transaction lookups, and waits for the whole
page before requesting the next one.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional

from payout_report.cache import LookupCache
from payout_report.client import MAX_PAGE_SIZE, PaymentsClient
from payout_report.dates import DateWindow, date_from_timestamp
from payout_report.models import ChargeRecord, PendingItemRecord, to_major_units

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10

ListPage = Callable[..., Any]


@dataclass
class ChargeLookups:
    """Per-run caches for the entities a charge is joined against."""

    invoices: LookupCache[Any] = field(default_factory=lambda: LookupCache("invoices"))
    subscriptions: LookupCache[Any] = field(default_factory=lambda: LookupCache("subscriptions"))
    balance_transactions: LookupCache[Any] = field(
        default_factory=lambda: LookupCache("balance_transactions")
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def iter_pages(
    list_page: ListPage,
    window: DateWindow,
    page_size: int = MAX_PAGE_SIZE,
    label: str = "records",
) -> Iterator[List[Any]]:
    """Yield successive pages of records from *list_page*.

    The next page is only requested once the caller resumes the
    generator, so a caller that processes each page fully before asking
    for the next never has two pages in flight.
    """
    cursor: Optional[str] = None
    batch = 1
    has_more = True
    while has_more:
        logger.info("Fetching %s batch #%d...", label, batch)
        page = list_page(window.created_filter(), limit=page_size, starting_after=cursor)
        data = list(page["data"])
        logger.info("Fetched %d %s.", len(data), label)

        yield data

        has_more = bool(_field(page, "has_more"))
        if data:
            cursor = data[-1]["id"]
        elif has_more:
            # No cursor to advance with; asking again would loop forever.
            logger.warning("Empty %s page reported has_more; stopping.", label)
            break
        batch += 1


def _field(obj: Any, key: str) -> Any:
    """Read *key* from a Stripe object or mapping, or ``None`` when it is absent.

    Stripe objects support ``in`` and subscripting but not the dict API.
    """
    if obj is None or isinstance(obj, str) or key not in obj:
        return None
    return obj[key]


def _ref_id(value: Any) -> Optional[str]:
    """Return the id of a reference that may be a plain id or an expanded object."""
    if isinstance(value, str):
        return value or None
    return _field(value, "id")


def _price_product_id(item: Any) -> Optional[str]:
    return _ref_id(_field(_field(item, "price"), "product"))


def _invoice_subscription_id(invoice: Any) -> Optional[str]:
    """Read the subscription id from an invoice.

    Newer API versions move it under ``parent.subscription_details``.
    """
    subscription = _ref_id(_field(invoice, "subscription"))
    if subscription:
        return subscription
    details = _field(_field(invoice, "parent"), "subscription_details")
    return _ref_id(_field(details, "subscription"))


def _subscription_has_product(subscription: Any, product_id: str) -> bool:
    items = _field(_field(subscription, "items"), "data") or []
    return any(_price_product_id(item) == product_id for item in items)


def _gather(futures: List[Future]) -> List[Any]:
    """Wait for every future to settle, then return results or raise the first error."""
    wait(futures)
    return [future.result() for future in futures]


# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------


def build_charge_record(
    client: PaymentsClient,
    charge: Any,
    product_id: str,
    lookups: ChargeLookups,
) -> Optional[ChargeRecord]:
    """Join one charge to its invoice, subscription and balance transaction.

    Returns ``None`` when the charge does not belong to *product_id* or is
    missing a link in the chain.  Lookup failures propagate.
    """
    charge_id = charge["id"]

    invoice_id = _ref_id(_field(charge, "invoice"))
    if not invoice_id:
        logger.debug("Charge %s has no associated invoice.", charge_id)
        return None
    invoice = lookups.invoices.get_or_fetch(invoice_id, client.retrieve_invoice)

    subscription_id = _invoice_subscription_id(invoice)
    if not subscription_id:
        logger.debug("Invoice %s has no associated subscription.", invoice_id)
        return None
    subscription = lookups.subscriptions.get_or_fetch(
        subscription_id, client.retrieve_subscription
    )

    if not _subscription_has_product(subscription, product_id):
        logger.debug("Charge %s does not match product %s.", charge_id, product_id)
        return None

    transaction_id = _ref_id(_field(charge, "balance_transaction"))
    if not transaction_id:
        logger.debug("Charge %s has no balance transaction.", charge_id)
        return None
    transaction = lookups.balance_transactions.get_or_fetch(
        transaction_id, client.retrieve_balance_transaction
    )

    return ChargeRecord(
        charge_id=charge_id,
        customer_id=_ref_id(_field(charge, "customer")),
        product_id=product_id,
        invoice_date=date_from_timestamp(_field(charge, "created")),
        amount=to_major_units(_field(charge, "amount")),
        processing_fee=to_major_units(_field(transaction, "fee")),
    )


def collect_charges(
    client: PaymentsClient,
    product_id: str,
    window: DateWindow,
    *,
    page_size: int = MAX_PAGE_SIZE,
    max_workers: int = DEFAULT_MAX_WORKERS,
    lookups: Optional[ChargeLookups] = None,
) -> List[ChargeRecord]:
    """Collect every charge in *window* attributable to *product_id*.

    Records within a page are built concurrently; the page is a barrier,
    and the first failure in it aborts the whole collection once every
    record in the page has settled.
    """
    lookups = lookups or ChargeLookups()
    records: List[ChargeRecord] = []

    logger.info("Starting to fetch Charges for product ID: %s...", product_id)

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        for charges in iter_pages(client.list_charges, window, page_size, label="Charges"):
            futures = [
                pool.submit(build_charge_record, client, charge, product_id, lookups)
                for charge in charges
            ]
            records.extend(record for record in _gather(futures) if record is not None)

    logger.info(
        "Finished fetching and processing charges. Total records: %d", len(records)
    )
    logger.debug(
        "Cache usage: invoices %d/%d, subscriptions %d/%d, balance transactions %d/%d (hits/misses)",
        lookups.invoices.hits,
        lookups.invoices.misses,
        lookups.subscriptions.hits,
        lookups.subscriptions.misses,
        lookups.balance_transactions.hits,
        lookups.balance_transactions.misses,
    )
    return records


# ---------------------------------------------------------------------------
# Pending invoice items
# ---------------------------------------------------------------------------


def build_pending_item_record(
    item: Any,
    product_id: str,
    window: DateWindow,
) -> Optional[PendingItemRecord]:
    """Return a record for *item* if it matches *product_id* and sits inside *window*."""
    item_id = item["id"]

    if _price_product_id(item) != product_id:
        logger.debug("Pending Invoice Item %s does not match product %s.", item_id, product_id)
        return None

    period = _field(item, "period")
    period_start, period_end = _field(period, "start"), _field(period, "end")
    if period_start is None or period_end is None or not window.contains_period(
        period_start, period_end
    ):
        logger.debug("Invoice Item %s is outside the specified date range.", item_id)
        return None

    try:
        pending_date = date_from_timestamp(_field(item, "date"))
    except ValueError:
        logger.warning("Invoice Item %s has an invalid 'date' timestamp. Skipping.", item_id)
        return None

    return PendingItemRecord(
        item_id=item_id,
        customer_id=_ref_id(_field(item, "customer")),
        product_id=product_id,
        pending_invoice_date=pending_date,
        amount=to_major_units(_field(item, "amount")),
    )


def collect_pending_items(
    client: PaymentsClient,
    product_id: str,
    window: DateWindow,
    *,
    page_size: int = MAX_PAGE_SIZE,
) -> List[PendingItemRecord]:
    """Collect uninvoiced items for *product_id* whose billing period lies inside *window*."""
    records: List[PendingItemRecord] = []

    logger.info("Starting to fetch Pending Invoice Items for product ID: %s...", product_id)

    for items in iter_pages(
        client.list_pending_invoice_items, window, page_size, label="Pending Invoice Items"
    ):
        for item in items:
            record = build_pending_item_record(item, product_id, window)
            if record is not None:
                records.append(record)

    logger.info(
        "Finished fetching and processing invoice items. Total records: %d", len(records)
    )
    return records
