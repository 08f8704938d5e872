"""payout-report: monthly revenue and fee report for a Stripe product."""

__version__ = "0.1.0"
