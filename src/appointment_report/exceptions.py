"""Errors raised while generating a report."""


class ReportError(Exception):
    """Base class for report failures. The message is shown to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidReportRequest(ReportError):
    """The request is malformed; no work was started."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class DataUnavailableError(ReportError):
    """The record source could not produce the appointments."""


class ReportRenderingError(ReportError):
    """Measuring or drawing the document failed."""


class ReportCancelled(ReportError):
    """Generation was cancelled between rows."""


class PaginationError(ReportError):
    """The pagination engine was used after it was finalized."""
