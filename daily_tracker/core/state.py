"""Persisted scalar state: ingestion cursor and today's status."""

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from daily_tracker.core.errors import StoreError
from daily_tracker.models.report import ReportStatus
from daily_tracker.models.setting import Setting

logger = logging.getLogger(__name__)

EXTERNAL_CURSOR_KEY = "external_cursor"
REPORT_STATUS_KEY = "report_status"
CURRENT_DAY_KEY = "current_day"
FORCE_UNLOCK_KEY = "force_unlock"


@dataclass
class StatusState:
    """Stored status triple for the current day."""

    status: ReportStatus = ReportStatus.NOT_STARTED
    current_day: Optional[date] = None
    force_unlock: bool = False


class StateStore:
    """Key-value state backed by the settings table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Held across a read-modify-write of the status triple."""
        return self._lock

    def _read(self, keys) -> Dict[str, Optional[str]]:
        with self._lock:
            db: Session = self._session_factory()
            try:
                rows = db.query(Setting).filter(Setting.key.in_(keys)).all()
                return {row.key: row.value for row in rows}
            except SQLAlchemyError as e:
                raise StoreError("read state", e) from e
            finally:
                db.close()

    def _write(self, values: Dict[str, Optional[str]]) -> None:
        with self._lock:
            db: Session = self._session_factory()
            try:
                for key, value in values.items():
                    setting = db.query(Setting).filter(Setting.key == key).first()
                    if setting is None:
                        db.add(Setting(key=key, value=value))
                    else:
                        setting.value = value
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise StoreError("write state", e) from e
            finally:
                db.close()

    def get_cursor(self) -> Optional[int]:
        """Last processed external update id."""
        value = self._read([EXTERNAL_CURSOR_KEY]).get(EXTERNAL_CURSOR_KEY)
        if not value:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise StoreError("read state", e) from e

    def set_cursor(self, cursor: Optional[int]) -> None:
        self._write({EXTERNAL_CURSOR_KEY: str(cursor) if cursor is not None else None})
        logger.debug(f"External cursor set to {cursor}")

    def load_status(self) -> StatusState:
        values = self._read([REPORT_STATUS_KEY, CURRENT_DAY_KEY, FORCE_UNLOCK_KEY])
        state = StatusState()
        raw_status = values.get(REPORT_STATUS_KEY)
        if raw_status:
            try:
                state.status = ReportStatus(raw_status)
            except ValueError:
                # Legacy "done" and unknown values start the day over
                logger.warning(f"Unknown stored status {raw_status!r}, using notStarted")
        raw_day = values.get(CURRENT_DAY_KEY)
        if raw_day:
            try:
                state.current_day = date.fromisoformat(raw_day)
            except ValueError as e:
                raise StoreError("read state", e) from e
        state.force_unlock = values.get(FORCE_UNLOCK_KEY) == "true"
        return state

    def save_status(self, state: StatusState) -> None:
        self._write(
            {
                REPORT_STATUS_KEY: state.status.value,
                CURRENT_DAY_KEY: state.current_day.isoformat() if state.current_day else None,
                FORCE_UNLOCK_KEY: "true" if state.force_unlock else "false",
            }
        )
