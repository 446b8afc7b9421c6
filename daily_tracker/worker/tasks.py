"""Celery tasks for external refresh, status refresh and shared-document sync."""

import asyncio
import logging
from typing import Optional

from daily_tracker.config import settings
from daily_tracker.core.errors import NoReportsFound, SourceUnavailable, TrackerError
from daily_tracker.core.lifecycle import export_reports
from daily_tracker.core.merge import import_shared, ingest_external, parse_day_range
from daily_tracker.core.status import local_now
from daily_tracker.database import init_db
from daily_tracker.dependencies import (
    get_report_store,
    get_shared_document,
    get_state_store,
    get_status_service,
    get_telegram_source,
)
from daily_tracker.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def refresh_external_reports(self):
    """Pull new Telegram messages into external reports."""
    source = get_telegram_source()
    if not source.is_available():
        logger.info("Telegram is not configured, skipping external refresh")
        return None

    init_db()
    logger.info("Starting external report refresh")
    try:
        result = asyncio.run(ingest_external(source, get_report_store(), get_state_store()))
    except SourceUnavailable as e:
        logger.warning(f"External refresh failed, will retry: {e}")
        raise self.retry(exc=e)
    except TrackerError as e:
        logger.error(f"External refresh failed: {e}")
        raise

    return {"added": len(result.added), "skipped": result.skipped, "cursor": result.cursor}


@celery_app.task
def refresh_report_status():
    """Recompute today's status; handles window edges and the day rollover."""
    init_db()
    status = get_status_service().refresh(local_now(settings.timezone))
    logger.info(f"Report status is {status.value}")
    return status.value


@celery_app.task
def import_shared_reports(
    start: Optional[str] = None,
    end: Optional[str] = None,
    provenance: Optional[str] = None,
):
    """Merge reports from the shared document into the store."""
    init_db()
    try:
        result = import_shared(
            get_shared_document(),
            get_report_store(),
            day_range=parse_day_range(start, end),
            provenance=provenance,
        )
    except NoReportsFound as e:
        logger.info(f"Nothing to import: {e}")
        return {"added": 0, "skipped": 0}
    except TrackerError as e:
        logger.error(f"Shared import failed: {e}")
        raise

    return {"added": len(result.added), "skipped": result.skipped}


@celery_app.task
def export_shared_reports(start: Optional[str] = None, end: Optional[str] = None):
    """Append this device's reports to the shared document."""
    init_db()
    try:
        count = export_reports(
            get_report_store(),
            get_shared_document(),
            day_range=parse_day_range(start, end),
            device_name=settings.device_name,
            device_identifier=settings.device_identifier,
            now=local_now(settings.timezone),
        )
    except NoReportsFound as e:
        logger.info(f"Nothing to export: {e}")
        return 0
    except TrackerError as e:
        logger.error(f"Shared export failed: {e}")
        raise

    return count
