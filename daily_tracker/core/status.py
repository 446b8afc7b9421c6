"""Report status state machine."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from daily_tracker.core.entities import Report
from daily_tracker.core.state import StateStore, StatusState
from daily_tracker.core.store import ReportStore
from daily_tracker.models.report import ReportStatus, ReportType

logger = logging.getLogger(__name__)

# Statuses that belong to a finished day and are reset when the day changes
RESET_ON_NEW_DAY = (ReportStatus.SENT, ReportStatus.NOT_SENT)


def local_now(timezone: Optional[str] = None) -> datetime:
    """Naive local wall-clock time in the given timezone."""
    if not timezone:
        return datetime.now()
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)


@dataclass(frozen=True)
class ActiveWindow:
    """Daily reporting window in local hours, [start_hour, end_hour)."""

    start_hour: int = 8
    end_hour: int = 22

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(f"Invalid report window {self.start_hour}-{self.end_hour}")

    def is_active(self, now: datetime) -> bool:
        return self.start_hour <= now.hour < self.end_hour


def compute_status(
    now: datetime,
    window: ActiveWindow,
    force_unlock: bool,
    regular_report: Optional[Report],
) -> ReportStatus:
    """
    Compute today's status.

    Total over its inputs: the override reopens the slot, otherwise the
    status follows from report existence, publication and the window.
    """
    if force_unlock:
        return ReportStatus.NOT_STARTED

    is_period_active = window.is_active(now)

    if regular_report is None:
        return ReportStatus.NOT_STARTED if is_period_active else ReportStatus.NOT_CREATED
    if regular_report.published:
        return ReportStatus.SENT
    return ReportStatus.IN_PROGRESS if is_period_active else ReportStatus.NOT_SENT


def roll_over(state: StatusState, now: datetime) -> StatusState:
    """Start a new day: reset finished statuses and drop the override."""
    today = now.date()
    if state.current_day == today:
        return state
    status = state.status
    if status in RESET_ON_NEW_DAY:
        status = ReportStatus.NOT_STARTED
    if state.current_day is not None:
        logger.info(f"New day {today}: status {state.status.value} -> {status.value}")
    return StatusState(status=status, current_day=today, force_unlock=False)


class StatusService:
    """Recomputes and persists today's status from stored reports."""

    def __init__(self, reports: ReportStore, state: StateStore, window: ActiveWindow):
        self.reports = reports
        self.state = state
        self.window = window

    def today_regular_report(self, now: datetime) -> Optional[Report]:
        return self.reports.find(now.date(), ReportType.REGULAR)

    def refresh(self, now: Optional[datetime] = None) -> ReportStatus:
        """Apply the day rollover, recompute and store the status."""
        now = now or datetime.now()
        with self.state.lock:
            state = roll_over(self.state.load_status(), now)
            status = compute_status(now, self.window, state.force_unlock, self.today_regular_report(now))
            if status != state.status:
                logger.info(f"Report status changed: {state.status.value} -> {status.value}")
            state.status = status
            self.state.save_status(state)
        return status

    def unlock(self, now: Optional[datetime] = None) -> ReportStatus:
        """Reopen today's report slot until the day changes."""
        now = now or datetime.now()
        with self.state.lock:
            state = roll_over(self.state.load_status(), now)
            state.force_unlock = True
            self.state.save_status(state)
            logger.info("Report creation unlocked for today")
            return self.refresh(now)

    def current(self) -> StatusState:
        return self.state.load_status()
