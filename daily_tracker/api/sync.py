"""Cross-source sync endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from daily_tracker.config import settings
from daily_tracker.core.lifecycle import export_reports
from daily_tracker.core.merge import DayRange, import_shared, ingest_external
from daily_tracker.core.state import StateStore
from daily_tracker.core.status import local_now
from daily_tracker.core.store import ReportStore
from daily_tracker.dependencies import (
    get_report_store,
    get_shared_document,
    get_state_store,
    get_telegram_source,
)
from daily_tracker.providers.base import MessageSource
from daily_tracker.providers.shared_document import SharedDocument

router = APIRouter()


class SharedRange(BaseModel):
    """Optional day range and device filter for shared-document sync."""

    start: Optional[date] = None
    end: Optional[date] = None
    provenance: Optional[str] = None

    def day_range(self) -> Optional[DayRange]:
        if self.start is None:
            return None
        end = self.end or self.start
        if end < self.start:
            raise HTTPException(status_code=400, detail="end is before start")
        return DayRange(self.start, end)


@router.post("/external")
async def refresh_external(
    since_cursor: Optional[int] = None,
    source: MessageSource = Depends(get_telegram_source),
    store: ReportStore = Depends(get_report_store),
    state: StateStore = Depends(get_state_store),
):
    """Pull new reports from the external channel."""
    result = await ingest_external(source, store, state, since_cursor=since_cursor)
    return {"added": len(result.added), "skipped": result.skipped, "cursor": result.cursor}


@router.post("/shared/import")
def import_shared_reports(
    body: SharedRange,
    document: SharedDocument = Depends(get_shared_document),
    store: ReportStore = Depends(get_report_store),
):
    """Merge reports from the shared document."""
    result = import_shared(document, store, day_range=body.day_range(), provenance=body.provenance)
    return {"added": len(result.added), "skipped": result.skipped}


@router.post("/shared/export")
def export_shared_reports(
    body: SharedRange,
    document: SharedDocument = Depends(get_shared_document),
    store: ReportStore = Depends(get_report_store),
):
    """Append this device's reports to the shared document."""
    count = export_reports(
        store,
        document,
        day_range=body.day_range(),
        device_name=settings.device_name,
        device_identifier=settings.device_identifier,
        now=local_now(settings.timezone),
    )
    return {"exported": count}
