"""Report status endpoints."""

from fastapi import APIRouter, Depends

from daily_tracker.config import settings
from daily_tracker.core.state import StateStore
from daily_tracker.core.status import StatusService, local_now
from daily_tracker.core.store import ReportStore
from daily_tracker.dependencies import get_report_store, get_state_store

router = APIRouter()


def get_status_service(
    reports: ReportStore = Depends(get_report_store),
    state: StateStore = Depends(get_state_store),
) -> StatusService:
    return StatusService(reports, state, settings.active_window)


def status_payload(service: StatusService) -> dict:
    state = service.current()
    return {
        "status": state.status.value,
        "current_day": state.current_day.isoformat() if state.current_day else None,
        "force_unlock": state.force_unlock,
        "window": {
            "start_hour": service.window.start_hour,
            "end_hour": service.window.end_hour,
        },
    }


@router.get("/")
def get_status(service: StatusService = Depends(get_status_service)):
    """Recompute and return today's status."""
    service.refresh(local_now(settings.timezone))
    return status_payload(service)


@router.post("/unlock")
def unlock(service: StatusService = Depends(get_status_service)):
    """Reopen today's report slot until the day changes."""
    service.unlock(local_now(settings.timezone))
    return status_payload(service)
