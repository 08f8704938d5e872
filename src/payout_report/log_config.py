"""Logging setup and secret scrubbing for payout-report.

Provides a logging filter that redacts Stripe secret keys, API keys and
Authorization headers from log output, and a helper that installs a
stderr handler (plus an optional rotating file handler) with the scrub
filter attached.

Only stdlib modules are used.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

# Patterns that match sensitive values in log messages.
_SCRUB_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r'\b((?:sk|rk)_(?:live|test)_)[A-Za-z0-9]+'),
     r'\1***REDACTED***'),
    (re.compile(r'(api_key["\x27]?\s*[:=]\s*["\x27]?)([^"\x27\s,}{\]]+)', re.IGNORECASE),
     r'\1***REDACTED***'),
    (re.compile(r'(Authorization:\s*Bearer\s+)(\S+)', re.IGNORECASE),
     r'\1***REDACTED***'),
    (re.compile(r'(secret["\x27]?\s*[:=]\s*["\x27]?)([^"\x27\s,}{\]]+)', re.IGNORECASE),
     r'\1***REDACTED***'),
]


class ScrubFilter(logging.Filter):
    """Logging filter that redacts secrets from log messages.

    Matches Stripe secret and restricted keys (``sk_live_...``,
    ``rk_test_...``), ``api_key=`` assignments and Authorization headers
    and replaces their values with ``***REDACTED***``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg and isinstance(record.msg, str):
            record.msg = _scrub(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: _scrub(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    _scrub(a) if isinstance(a, str) else a
                    for a in record.args
                )
        return True


def _scrub(text: str) -> str:
    """Apply all scrub patterns to *text*."""
    for pattern, replacement in _SCRUB_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def configure_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    *,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Configure console logging, optional file rotation, and scrubbing.

    :param level: Log level string.  Reads ``PAYOUT_REPORT_LOG_LEVEL``
        env var, then falls back to ``"INFO"``.
    :param log_dir: Directory for a rotating ``payout-report.log``.  Reads
        ``PAYOUT_REPORT_LOG_DIR``; no file is written when neither is set.
    :param max_bytes: Maximum log file size before rotation (default 5 MB).
    :param backup_count: Number of rotated log files to keep (default 3).
    """
    level = level or os.environ.get("PAYOUT_REPORT_LOG_LEVEL", "INFO")
    log_dir = log_dir or os.environ.get("PAYOUT_REPORT_LOG_DIR")
    log_level = getattr(logging, level.upper(), logging.INFO)

    scrub_filter = ScrubFilter()

    root = logging.getLogger()
    root.setLevel(log_level)

    has_console = any(
        type(h) is logging.StreamHandler for h in root.handlers
    )
    if not has_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(log_level)
        console.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(console)

    if log_dir:
        has_rotating = any(
            isinstance(h, RotatingFileHandler) for h in root.handlers
        )
        if not has_rotating:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, "payout-report.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s %(name)s %(levelname)s %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root.addHandler(file_handler)

    # Install scrub filter on all existing handlers.
    for handler in root.handlers:
        if not any(isinstance(f, ScrubFilter) for f in handler.filters):
            handler.addFilter(scrub_filter)

    # stripe logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("stripe").setLevel(
        logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    )
