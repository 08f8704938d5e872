from __future__ import annotations

import os
from pathlib import Path

import yaml

from payout_report.client import MAX_PAGE_SIZE

DEFAULTS: dict[str, object] = {
    "api_key": "",
    "product_id": "",
    "api_version": None,
    "page_size": MAX_PAGE_SIZE,
    "max_workers": 10,
    "fee_percent": 0.029,
    "fee_fixed": 0.30,
    "show_product": False,
}

_FILE_KEYS = tuple(DEFAULTS)


def get_default_config_path() -> Path:
    """Return the default path to the config file (~/.payout-report/config.yaml)."""
    return Path.home() / ".payout-report" / "config.yaml"


def _load_config_file(config_path: Path) -> dict[str, object]:
    """Read and parse a YAML config file, returning an empty dict on any failure."""
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if isinstance(data, dict):
            return data
        return {}
    except (yaml.YAMLError, OSError):
        return {}


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _clamped_int(value: object, low: int, high: int | None = None) -> object:
    """Clamp *value* to [low, high]; values that are not integers are returned as-is."""
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return value
    number = max(low, number)
    return min(number, high) if high is not None else number


def load_config(
    api_key: str | None = None,
    product_id: str | None = None,
    config_path: str | None = None,
    show_product: bool | None = None,
) -> dict[str, object]:
    """Resolve configuration using a three-tier precedence hierarchy.

    Priority (highest first):
        1. Explicit parameters passed directly (e.g. from CLI flags).
        2. Environment variables ``STRIPE_API_KEY`` and ``PAYOUT_REPORT_PRODUCT_ID``.
        3. Values read from the YAML config file at *config_path* (or the default location).

    Returns a dict containing every key in :data:`DEFAULTS`.
    """
    config: dict[str, object] = dict(DEFAULTS)

    path = Path(config_path) if config_path else get_default_config_path()
    file_values = _load_config_file(path)
    for key in _FILE_KEYS:
        if key in file_values and file_values[key] is not None:
            config[key] = file_values[key]

    env_api_key = os.environ.get("STRIPE_API_KEY")
    if env_api_key:
        config["api_key"] = env_api_key

    env_product = os.environ.get("PAYOUT_REPORT_PRODUCT_ID")
    if env_product:
        config["product_id"] = env_product

    if api_key is not None:
        config["api_key"] = api_key
    if product_id is not None:
        config["product_id"] = product_id
    if show_product is not None:
        config["show_product"] = show_product

    config["api_key"] = str(config["api_key"] or "").strip()
    config["product_id"] = str(config["product_id"] or "").strip()
    config["page_size"] = _clamped_int(config["page_size"], 1, MAX_PAGE_SIZE)
    config["max_workers"] = _clamped_int(config["max_workers"], 1)
    config["show_product"] = _as_bool(config["show_product"])

    return config


def init_config(api_key: str, product_id: str, config_path: str | None = None) -> Path:
    """Create the config directory and write an initial config file.

    Returns the :class:`~pathlib.Path` to the written file.
    """
    path = Path(config_path) if config_path else get_default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "api_key": api_key.strip(),
        "product_id": product_id.strip(),
        "page_size": DEFAULTS["page_size"],
        "fee_percent": DEFAULTS["fee_percent"],
        "fee_fixed": DEFAULTS["fee_fixed"],
    }

    with path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)

    # The file holds a secret key.
    path.chmod(0o600)

    return path


def validate_config(config: dict[str, object]) -> tuple[bool, str | None]:
    """Validate a resolved configuration dict.

    Returns ``(True, None)`` when the config is valid, or
    ``(False, error_message)`` describing the first problem found.
    """
    api_key = config.get("api_key", "")
    if not isinstance(api_key, str) or not api_key.strip():
        return False, "api_key is required and must be non-empty"

    product_id = config.get("product_id", "")
    if not isinstance(product_id, str) or not product_id.strip():
        return False, "product_id is required and must be non-empty"

    for key in ("fee_percent", "fee_fixed"):
        try:
            if float(config.get(key, 0)) < 0:  # type: ignore[arg-type]
                return False, f"{key} must not be negative"
        except (TypeError, ValueError):
            return False, f"{key} must be a number"

    for key in ("page_size", "max_workers"):
        if not isinstance(config.get(key), int):
            return False, f"{key} must be an integer"

    return True, None
