"""Report lifecycle operations: create, edit, publish, evaluate, export."""

import logging
import os
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from daily_tracker.core.entities import Evaluation, Report, VoiceAttachment
from daily_tracker.core.errors import EvaluationError, NoReportsFound, ReportLocked
from daily_tracker.core.formatting import format_report, format_reports
from daily_tracker.core.merge import DayRange
from daily_tracker.core.state import StateStore
from daily_tracker.core.store import ReportStore
from daily_tracker.models.report import ReportType
from daily_tracker.providers.base import ReportChannel
from daily_tracker.providers.shared_document import SharedDocument

logger = logging.getLogger(__name__)


def create_report(
    report_type: ReportType,
    good_items: Iterable[str] = (),
    bad_items: Iterable[str] = (),
    date: Optional[datetime] = None,
    voice_attachments: Iterable[VoiceAttachment] = (),
) -> Report:
    """Create a new internal report."""
    if not report_type.is_internal:
        raise ValueError(f"{report_type.value} reports are created by ingestion")
    return Report(
        type=report_type,
        date=date or datetime.now(),
        good_items=list(good_items),
        bad_items=list(bad_items),
        voice_attachments=list(voice_attachments),
    )


def edit_items(
    store: ReportStore,
    report: Report,
    good_items: Optional[Iterable[str]] = None,
    bad_items: Optional[Iterable[str]] = None,
) -> Report:
    """Replace a report's items. Only unpublished reports can be edited."""
    if report.published:
        raise ReportLocked(f"Report {report.id} is already published")
    updated = replace(
        report,
        good_items=list(good_items) if good_items is not None else report.good_items,
        bad_items=list(bad_items) if bad_items is not None else report.bad_items,
        evaluation=None,
    )
    store.update(updated)
    return updated


async def publish_report(
    store: ReportStore,
    channel: ReportChannel,
    report: Report,
    device_name: Optional[str] = None,
) -> Report:
    """Send a report to the channel and mark it published once delivered."""
    text = format_report(report, include_provenance=bool(device_name), device_name=device_name)
    await channel.send(text)
    published = replace(report, published=True)
    store.update(published)
    logger.info(f"Published {report.type.value} report {report.id} for {report.day}")
    return published


def evaluate_report(
    store: ReportStore,
    report: Report,
    results: Sequence[bool],
    allow_reevaluation: bool = False,
) -> Report:
    """Record which good items of a custom report were completed."""
    if report.type != ReportType.CUSTOM:
        raise EvaluationError(f"Only custom reports can be evaluated, got {report.type.value}")
    if report.evaluation and report.evaluation.is_evaluated and not allow_reevaluation:
        raise EvaluationError(f"Report {report.id} has already been evaluated")
    if len(results) != len(report.good_items):
        raise EvaluationError(
            f"Expected {len(report.good_items)} evaluation results, got {len(results)}"
        )
    evaluated = replace(report, evaluation=Evaluation(is_evaluated=True, results=list(results)))
    store.update(evaluated)
    return evaluated


def _remove_file(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"Could not remove voice note {path}: {e}")


def detach_voice_attachment(
    store: ReportStore,
    report: Report,
    attachment_id: str,
    remove_file: bool = True,
) -> Report:
    """Detach a voice note from a report, deleting its file by default."""
    kept: List[VoiceAttachment] = []
    for attachment in report.voice_attachments:
        if attachment.id == attachment_id:
            if remove_file:
                _remove_file(attachment.path)
        else:
            kept.append(attachment)
    updated = replace(report, voice_attachments=kept)
    store.update(updated)
    return updated


def delete_report(store: ReportStore, report: Report, remove_files: bool = True) -> bool:
    """Delete a report and the voice note files it owns."""
    deleted = store.delete(report)
    if deleted and remove_files:
        for attachment in report.voice_attachments:
            _remove_file(attachment.path)
    return deleted


def reports_for_export(
    store: ReportStore,
    day_range: Optional[DayRange] = None,
    now: Optional[datetime] = None,
) -> List[Report]:
    """Internal and external reports in range; today when no range is given."""
    day_range = day_range or DayRange.single((now or datetime.now()).date())
    return [
        r
        for r in store.fetch()
        if r.type != ReportType.SHARED and day_range.contains(r.day)
    ]


def export_reports(
    store: ReportStore,
    document: SharedDocument,
    day_range: Optional[DayRange] = None,
    include_provenance: bool = True,
    device_name: Optional[str] = None,
    device_identifier: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    """Append reports to the shared document. Returns the number exported."""
    reports = reports_for_export(store, day_range, now)
    if not reports:
        raise NoReportsFound("No reports to export")
    content = format_reports(
        reports,
        include_provenance=include_provenance,
        device_name=device_name,
        device_identifier=device_identifier,
    )
    document.append(content)
    logger.info(f"Exported {len(reports)} reports to shared document")
    return len(reports)


def clear_external_history(store: ReportStore, state: StateStore) -> int:
    """Remove all external reports and rewind the ingestion cursor."""
    deleted = store.delete_by_type(ReportType.EXTERNAL)
    state.set_cursor(None)
    logger.info(f"Cleared {deleted} external reports")
    return deleted
