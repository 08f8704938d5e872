"""Exception hierarchy for payout-report.

Every error carries a machine-readable ``code`` so the CLI can map it to
an exit code without parsing messages.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base exception for report generation errors."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or "REPORT_ERROR"


class MissingInputError(ReportError):
    """A required interactive or command-line value was left blank."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="MISSING_INPUT")


class InvalidMonthError(ReportError):
    """The month selector could not be parsed as ``MM-YYYY``."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_MONTH")


class ConfigError(ReportError):
    """The resolved configuration is incomplete or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


class LookupFailure(ReportError):
    """A call to the payments platform failed.

    Raised by :class:`~payout_report.client.PaymentsClient` and left to
    propagate through the collectors so a failed lookup aborts the run.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "API_ERROR",
        http_status: int | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.http_status = http_status
