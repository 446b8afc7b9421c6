"""Report store with day/type-scoped overwrite semantics."""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from daily_tracker.core.entities import Evaluation, Report, VoiceAttachment
from daily_tracker.core.errors import StoreError
from daily_tracker.models.report import ReportType, StoredReport

logger = logging.getLogger(__name__)

INTERNAL_TYPES = (ReportType.REGULAR, ReportType.CUSTOM)


def day_bounds(day: date):
    """Return [start, end) datetimes covering a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def to_record(report: Report) -> StoredReport:
    """Map a domain report to a new row."""
    evaluation = report.evaluation
    return StoredReport(
        id=report.id,
        report_date=report.date,
        type=report.type,
        good_items=list(report.good_items),
        bad_items=list(report.bad_items),
        published=report.published,
        voice_attachments=[v.to_dict() for v in report.voice_attachments],
        is_evaluated=evaluation.is_evaluated if evaluation else None,
        evaluation_results=list(evaluation.results) if evaluation else None,
        author_username=report.author_username,
        author_first_name=report.author_first_name,
        author_last_name=report.author_last_name,
        author_id=report.author_id,
        external_message_id=report.external_message_id,
        external_text=report.external_text,
        external_voice_files=list(report.external_voice_files) or None,
        device_name=report.device_name,
    )


def from_record(record: StoredReport) -> Report:
    """Map a row back to a domain report."""
    evaluation = None
    if record.is_evaluated is not None:
        evaluation = Evaluation(
            is_evaluated=record.is_evaluated,
            results=list(record.evaluation_results or []),
        )
    return Report(
        id=record.id,
        date=record.report_date,
        type=ReportType(record.type),
        good_items=list(record.good_items or []),
        bad_items=list(record.bad_items or []),
        published=bool(record.published),
        voice_attachments=[VoiceAttachment.from_dict(v) for v in record.voice_attachments or []],
        evaluation=evaluation,
        author_username=record.author_username,
        author_first_name=record.author_first_name,
        author_last_name=record.author_last_name,
        author_id=record.author_id,
        external_message_id=record.external_message_id,
        external_text=record.external_text,
        external_voice_files=list(record.external_voice_files or []),
        device_name=record.device_name,
    )


class ReportStore:
    """
    Persisted collection of reports.

    Every operation runs in a single transaction under the store lock, so
    callers never observe a partially applied save and concurrent mutations
    cannot lose updates.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        with self._lock:
            db: Session = self._session_factory()
            try:
                yield db
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Report store {operation} failed: {e}")
                raise StoreError(operation, e) from e
            except (TypeError, ValueError, KeyError) as e:
                # Rows that no longer decode into a Report
                db.rollback()
                logger.error(f"Report store {operation} failed to decode: {e}")
                raise StoreError(operation, e) from e
            finally:
                db.close()

    def save(self, report: Report) -> None:
        """
        Save a report.

        Any row with the same id is replaced. For internal reports any other
        report of the same type on the same calendar day is removed as well,
        leaving one active slot per day and type. External and shared reports
        are never displaced by a day/type collision.
        """
        with self._transaction("save") as db:
            db.query(StoredReport).filter(StoredReport.id == report.id).delete(
                synchronize_session=False
            )
            if report.is_internal:
                start, end = day_bounds(report.day)
                replaced = (
                    db.query(StoredReport)
                    .filter(
                        StoredReport.type == report.type,
                        StoredReport.report_date >= start,
                        StoredReport.report_date < end,
                    )
                    .delete(synchronize_session=False)
                )
                if replaced:
                    logger.info(f"Replaced {replaced} {report.type.value} report(s) for {report.day}")
            db.add(to_record(report))

    def update(self, report: Report) -> None:
        """Update a report; same overwrite rule as save."""
        self.save(report)

    def fetch(self, day: Optional[date] = None) -> List[Report]:
        """Fetch all reports in insertion order, optionally for one day."""
        with self._transaction("fetch") as db:
            query = db.query(StoredReport)
            if day is not None:
                start, end = day_bounds(day)
                query = query.filter(StoredReport.report_date >= start, StoredReport.report_date < end)
            return [from_record(r) for r in query.order_by(StoredReport.seq).all()]

    def get(self, report_id: str) -> Optional[Report]:
        """Get a report by id."""
        with self._transaction("get") as db:
            record = db.query(StoredReport).filter(StoredReport.id == report_id).first()
            return from_record(record) if record else None

    def find(self, day: date, report_type: ReportType) -> Optional[Report]:
        """First report of a type on a day."""
        for report in self.fetch(day):
            if report.type == report_type:
                return report
        return None

    def fetch_by_type(self, report_type: ReportType) -> List[Report]:
        with self._transaction("fetch") as db:
            records = (
                db.query(StoredReport)
                .filter(StoredReport.type == report_type)
                .order_by(StoredReport.seq)
                .all()
            )
            return [from_record(r) for r in records]

    def delete(self, report: Union[Report, str]) -> bool:
        """Delete by exact id. Returns True if a row was removed."""
        report_id = report.id if isinstance(report, Report) else report
        with self._transaction("delete") as db:
            deleted = db.query(StoredReport).filter(StoredReport.id == report_id).delete(
                synchronize_session=False
            )
        return bool(deleted)

    def delete_by_type(self, report_type: ReportType) -> int:
        with self._transaction("delete") as db:
            return db.query(StoredReport).filter(StoredReport.type == report_type).delete(
                synchronize_session=False
            )

    def clear(self) -> None:
        """Discard all reports."""
        with self._transaction("clear") as db:
            deleted = db.query(StoredReport).delete(synchronize_session=False)
        logger.info(f"Cleared {deleted} reports")
