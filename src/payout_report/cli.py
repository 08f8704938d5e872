"""payout-report - monthly revenue and fee report for one Stripe product.

Usage:
    payout-report report [--api-key KEY] [--product ID] [--month MM-YYYY]
                         [--show-product] [--json] [--verbose] [--log-dir DIR]
    payout-report init
"""

from __future__ import annotations

import logging
import sys

import click

from payout_report.client import PaymentsClient
from payout_report.config import init_config, load_config, validate_config
from payout_report.dates import month_window
from payout_report.errors import ConfigError, ReportError
from payout_report.exit_codes import OTHER_ERROR, SUCCESS, exit_code_for
from payout_report.log_config import configure_logging
from payout_report.output import format_monthly_report, format_response
from payout_report.report import build_monthly_report

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _emit(output: str, exit_code: int = SUCCESS) -> None:
    """Print output and exit with the given code."""
    click.echo(output)
    sys.exit(exit_code)


def _emit_error(
    code: str,
    message: str,
    json_mode: bool,
    exit_code: int | None = None,
) -> None:
    """Emit a structured error and exit."""
    if exit_code is None:
        exit_code = exit_code_for(code)
    output = format_response(
        "error",
        error={"code": code, "message": message},
        json_mode=json_mode,
    )
    _emit(output, exit_code)


def _prompt(text: str, hide_input: bool = False) -> str:
    """Prompt on stderr, allowing a blank answer so callers can reject it."""
    return click.prompt(text, default="", show_default=False, hide_input=hide_input, err=True)


# ------------------------------------------------------------------
# CLI group
# ------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to config file (default ~/.payout-report/config.yaml).",
)
@click.version_option(package_name="payout-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """Monthly revenue and processing-fee report for a Stripe product."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ------------------------------------------------------------------
# report
# ------------------------------------------------------------------


@cli.command()
@click.option("--api-key", default=None, help="Stripe secret key (or STRIPE_API_KEY).")
@click.option("--product", "product_id", default=None, help="Product ID to report on.")
@click.option("--month", default=None, help="Month to report on, as MM-YYYY.")
@click.option(
    "--show-product/--hide-product",
    "show_product",
    default=None,
    help="Add a Product column to both tables.",
)
@click.option("--json", "json_mode", is_flag=True, default=False, help="Output as JSON.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log per-record decisions.")
@click.option("--log-dir", default=None, help="Also write a rotating log file here.")
@click.pass_context
def report(
    ctx: click.Context,
    api_key: str | None,
    product_id: str | None,
    month: str | None,
    show_product: bool | None,
    json_mode: bool,
    verbose: bool,
    log_dir: str | None,
) -> None:
    """Build the pending-items and charges tables for one month.

    Values not given as flags, environment variables or in the config
    file are prompted for.
    """
    configure_logging("DEBUG" if verbose else None, log_dir)

    try:
        config = load_config(
            api_key=api_key,
            product_id=product_id,
            config_path=ctx.obj.get("config_path"),
            show_product=show_product,
        )
        if not config["api_key"]:
            config["api_key"] = _prompt("Enter your Stripe API key", hide_input=True).strip()
        if not config["product_id"]:
            config["product_id"] = _prompt("Enter the product ID").strip()
        if month is None:
            month = _prompt("Enter the month and year to process (MM-YYYY)")

        window = month_window(month)

        valid, err = validate_config(config)
        if not valid:
            raise ConfigError(f"Configuration error: {err}")

        product = str(config["product_id"])
        client = PaymentsClient(
            api_key=str(config["api_key"]),
            api_version=config["api_version"],  # type: ignore[arg-type]
        )

        logger.info(
            "Retrieving payment data for product ID: %s for %s.", product, window.month_label
        )
        logger.info(
            "Date range: %s to %s", window.start_date_formatted, window.end_date_formatted
        )

        reports = build_monthly_report(client, product, window, config)
    except ReportError as exc:
        logger.error("An error occurred: %s", exc)
        _emit_error(exc.code, str(exc), json_mode)
    except click.Abort:
        raise
    except Exception as exc:
        logger.exception("An unexpected error occurred")
        _emit_error("UNEXPECTED_ERROR", str(exc), json_mode, OTHER_ERROR)

    output = format_monthly_report(window, product, reports, json_mode=json_mode)
    _emit(output, SUCCESS)


# ------------------------------------------------------------------
# init
# ------------------------------------------------------------------


@cli.command()
@click.option("--api-key", prompt="Stripe API key", hide_input=True, help="Stripe secret key.")
@click.option("--product", "product_id", prompt="Product ID", help="Default product ID.")
@click.pass_context
def init(ctx: click.Context, api_key: str, product_id: str) -> None:
    """Write a config file with the API key and default product."""
    path = init_config(api_key, product_id, config_path=ctx.obj.get("config_path"))
    click.echo(f"Config written to {path}")


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
