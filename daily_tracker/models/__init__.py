"""Database models."""

from daily_tracker.models.report import ReportStatus, ReportType, StoredReport
from daily_tracker.models.setting import Setting

__all__ = [
    "ReportStatus",
    "ReportType",
    "StoredReport",
    "Setting",
]
