"""Report endpoints."""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from daily_tracker.api.status import get_status_service
from daily_tracker.config import settings
from daily_tracker.core.entities import Report
from daily_tracker.core.errors import NoReportsFound
from daily_tracker.core.formatting import format_reports
from daily_tracker.core.lifecycle import (
    create_report,
    delete_report,
    edit_items,
    evaluate_report,
    publish_report,
)
from daily_tracker.core.status import StatusService, local_now
from daily_tracker.core.store import ReportStore
from daily_tracker.dependencies import get_report_store, get_telegram_channel
from daily_tracker.models.report import ReportType
from daily_tracker.providers.base import ReportChannel

router = APIRouter()


class ReportCreate(BaseModel):
    """Report create schema."""

    type: ReportType = ReportType.REGULAR
    good_items: List[str] = []
    bad_items: List[str] = []
    date: Optional[datetime] = None


class ItemsUpdate(BaseModel):
    """Report items update schema."""

    good_items: Optional[List[str]] = None
    bad_items: Optional[List[str]] = None


class EvaluationRequest(BaseModel):
    """Evaluation results, one per good item."""

    results: List[bool]


def report_to_dict(report: Report) -> dict:
    return {
        "id": report.id,
        "date": report.date.isoformat(),
        "type": report.type.value,
        "good_items": report.good_items,
        "bad_items": report.bad_items,
        "published": report.published,
        "voice_attachments": [a.to_dict() for a in report.voice_attachments],
        "evaluation": (
            {"is_evaluated": report.evaluation.is_evaluated, "results": report.evaluation.results}
            if report.evaluation
            else None
        ),
        "author": report.author_display_name,
        "external_message_id": report.external_message_id,
        "external_text": report.external_text,
        "external_voice_files": report.external_voice_files,
        "device_name": report.device_name,
    }


def get_report_or_404(store: ReportStore, report_id: str) -> Report:
    report = store.get(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.get("/")
def list_reports(
    day: Optional[date] = None,
    report_type: Optional[ReportType] = Query(None, alias="type"),
    store: ReportStore = Depends(get_report_store),
):
    """List reports in insertion order."""
    reports = store.fetch(day)
    if report_type is not None:
        reports = [r for r in reports if r.type == report_type]
    return [report_to_dict(r) for r in reports]


@router.get("/text", response_class=PlainTextResponse)
def get_reports_text(
    day: Optional[date] = None,
    provenance: bool = False,
    store: ReportStore = Depends(get_report_store),
):
    """Reports rendered in the shared text format."""
    reports = store.fetch(day)
    if not reports:
        raise NoReportsFound("No reports stored")
    return format_reports(
        reports,
        include_provenance=provenance,
        device_name=settings.device_name,
        device_identifier=settings.device_identifier,
    )


@router.get("/{report_id}")
def get_report(report_id: str, store: ReportStore = Depends(get_report_store)):
    """Get report by ID."""
    return report_to_dict(get_report_or_404(store, report_id))


@router.post("/")
def create(
    body: ReportCreate,
    store: ReportStore = Depends(get_report_store),
    status_service: StatusService = Depends(get_status_service),
):
    """Create an internal report, replacing the same type on the same day."""
    try:
        report = create_report(
            body.type,
            body.good_items,
            body.bad_items,
            date=body.date or local_now(settings.timezone),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    store.save(report)
    status_service.refresh(local_now(settings.timezone))
    return report_to_dict(report)


@router.put("/{report_id}/items")
def update_items(
    report_id: str,
    body: ItemsUpdate,
    store: ReportStore = Depends(get_report_store),
):
    """Replace the items of an unpublished report."""
    report = get_report_or_404(store, report_id)
    return report_to_dict(edit_items(store, report, body.good_items, body.bad_items))


@router.post("/{report_id}/publish")
async def publish(
    report_id: str,
    store: ReportStore = Depends(get_report_store),
    channel: ReportChannel = Depends(get_telegram_channel),
    status_service: StatusService = Depends(get_status_service),
):
    """Send a report to Telegram and mark it published."""
    report = get_report_or_404(store, report_id)
    published = await publish_report(store, channel, report, device_name=settings.device_name)
    status_service.refresh(local_now(settings.timezone))
    return report_to_dict(published)


@router.post("/{report_id}/evaluate")
def evaluate(
    report_id: str,
    body: EvaluationRequest,
    store: ReportStore = Depends(get_report_store),
):
    """Record which good items of a custom report were completed."""
    report = get_report_or_404(store, report_id)
    evaluated = evaluate_report(
        store, report, body.results, allow_reevaluation=settings.allow_reevaluation
    )
    return report_to_dict(evaluated)


@router.delete("/{report_id}")
def delete(
    report_id: str,
    store: ReportStore = Depends(get_report_store),
    status_service: StatusService = Depends(get_status_service),
):
    """Delete a report and its voice note files."""
    report = get_report_or_404(store, report_id)
    delete_report(store, report)
    status_service.refresh(local_now(settings.timezone))
    return {"deleted": report.id}


@router.delete("/")
def clear(
    store: ReportStore = Depends(get_report_store),
    status_service: StatusService = Depends(get_status_service),
):
    """Delete every stored report."""
    store.clear()
    status_service.refresh(local_now(settings.timezone))
    return {"cleared": True}
