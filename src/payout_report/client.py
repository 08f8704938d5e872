"""Thin Stripe client used by the collectors.

Wraps the handful of ``stripe`` list and retrieve calls the report needs
behind one object that carries the API key, so no module-level
``stripe.api_key`` state is touched.  Stripe errors are translated into
:class:`~payout_report.errors.LookupFailure` with a machine-readable code.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import stripe

from payout_report.errors import ConfigError, LookupFailure

logger = logging.getLogger(__name__)

# Stripe caps list page size at 100.
MAX_PAGE_SIZE = 100


class PaymentsClient:
    """Client for the Stripe resources a payout report reads.

    Args:
        api_key: Stripe secret or restricted key (``sk_...`` / ``rk_...``).
        api_version: Optional Stripe API version sent with every request.
            ``None`` uses the account default.

    Example::

        client = PaymentsClient("sk_test_...")
        page = client.list_charges({"gte": 1706745600, "lte": 1709251199})
        for charge in page["data"]:
            print(charge["id"])
    """

    def __init__(self, api_key: str, api_version: str | None = None) -> None:
        if not api_key or not api_key.strip():
            raise ConfigError("Stripe API key is required")
        self.api_key = api_key.strip()
        self.api_version = api_version

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return options

    def _call(self, description: str, fn: Callable[..., Any], *args: Any, **params: Any) -> Any:
        """Invoke a ``stripe`` resource method, translating its errors.

        Args:
            description: What is being fetched, for error messages.
            fn: The bound ``stripe`` resource classmethod.
        """
        params.update(self._request_options())
        try:
            return fn(*args, **params)
        except stripe.AuthenticationError as exc:
            raise LookupFailure(
                f"Authentication failed while fetching {description}. Check your API key.",
                code="AUTH_ERROR",
                http_status=exc.http_status,
            ) from exc
        except stripe.PermissionError as exc:
            raise LookupFailure(
                f"API key lacks permission to read {description}.",
                code="AUTH_ERROR",
                http_status=exc.http_status,
            ) from exc
        except stripe.RateLimitError as exc:
            raise LookupFailure(
                f"Rate limited while fetching {description}.",
                code="RATE_LIMITED",
                http_status=exc.http_status,
            ) from exc
        except stripe.APIConnectionError as exc:
            raise LookupFailure(
                f"Could not connect to Stripe while fetching {description}: {exc.user_message or exc}",
                code="CONNECTION_ERROR",
            ) from exc
        except stripe.InvalidRequestError as exc:
            code = "NOT_FOUND" if exc.http_status == 404 else "INVALID_REQUEST"
            raise LookupFailure(
                f"Stripe rejected the request for {description}: {exc.user_message or exc}",
                code=code,
                http_status=exc.http_status,
            ) from exc
        except stripe.StripeError as exc:
            raise LookupFailure(
                f"Stripe error while fetching {description}: {exc.user_message or exc}",
                code="API_ERROR",
                http_status=exc.http_status,
            ) from exc

    @staticmethod
    def _list_params(
        created: dict[str, int],
        limit: int,
        starting_after: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "limit": max(1, min(limit, MAX_PAGE_SIZE)),
            "created": dict(created),
        }
        if starting_after:
            params["starting_after"] = starting_after
        return params

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def list_charges(
        self,
        created: dict[str, int],
        limit: int = MAX_PAGE_SIZE,
        starting_after: str | None = None,
    ) -> Any:
        """Fetch one page of charges created inside *created*.

        Returns:
            A list object with ``data`` and ``has_more`` keys.
        """
        params = self._list_params(created, limit, starting_after)
        logger.debug("Listing charges with %s", params)
        return self._call("charges", stripe.Charge.list, **params)

    def list_pending_invoice_items(
        self,
        created: dict[str, int],
        limit: int = MAX_PAGE_SIZE,
        starting_after: str | None = None,
    ) -> Any:
        """Fetch one page of not-yet-invoiced invoice items created inside *created*."""
        params = self._list_params(created, limit, starting_after)
        params["pending"] = True
        logger.debug("Listing pending invoice items with %s", params)
        return self._call("pending invoice items", stripe.InvoiceItem.list, **params)

    # ------------------------------------------------------------------
    # Retrieves
    # ------------------------------------------------------------------

    def retrieve_invoice(self, invoice_id: str) -> Any:
        return self._call(f"invoice {invoice_id}", stripe.Invoice.retrieve, invoice_id)

    def retrieve_subscription(self, subscription_id: str) -> Any:
        return self._call(
            f"subscription {subscription_id}", stripe.Subscription.retrieve, subscription_id
        )

    def retrieve_balance_transaction(self, transaction_id: str) -> Any:
        return self._call(
            f"balance transaction {transaction_id}",
            stripe.BalanceTransaction.retrieve,
            transaction_id,
        )
