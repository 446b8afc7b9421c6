"""Error types raised by the report engine."""

from typing import Optional


class TrackerError(Exception):
    """Base class for tracker errors."""


class StoreError(TrackerError):
    """Persistence read/write/encode/decode failure."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"Report store {operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NoReportsFound(TrackerError):
    """An operation that needs at least one report found none."""


class SourceUnavailable(TrackerError):
    """External channel or shared document could not be reached."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"{source} unavailable{': ' + reason if reason else ''}")


class ReportLocked(TrackerError):
    """Edit attempted on a report that has already been published."""


class EvaluationError(TrackerError):
    """Invalid evaluation of a report."""
