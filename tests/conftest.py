"""Shared fixtures."""

import os

# Keep the module-level engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from daily_tracker.core.errors import SourceUnavailable
from daily_tracker.core.state import StateStore
from daily_tracker.core.store import ReportStore
from daily_tracker.database import Base, init_db
from daily_tracker.providers.base import ExternalMessage, MessageSource, ReportChannel
from daily_tracker.providers.shared_document import SharedDocument


class FakeSource(MessageSource):
    """In-memory message source."""

    def __init__(self, messages: Optional[List[ExternalMessage]] = None, error: Optional[Exception] = None):
        super().__init__("fake")
        self.messages = messages or []
        self.error = error
        self.calls = []

    def is_available(self) -> bool:
        return True

    async def fetch_messages(self, since_cursor: Optional[int] = None) -> List[ExternalMessage]:
        self.calls.append(since_cursor)
        if self.error:
            raise self.error
        return [m for m in self.messages if since_cursor is None or m.update_id > since_cursor]


class FakeChannel(ReportChannel):
    """Channel that records sent texts."""

    def __init__(self, fail: bool = False):
        super().__init__("fake")
        self.sent: List[str] = []
        self.fail = fail

    def is_available(self) -> bool:
        return True

    async def send(self, text: str) -> None:
        if self.fail:
            raise SourceUnavailable(self.name, "offline")
        self.sent.append(text)


def make_message(update_id: int, message_id: int, text: Optional[str] = None, **kwargs) -> ExternalMessage:
    return ExternalMessage(
        update_id=update_id,
        message_id=message_id,
        date=kwargs.pop("date", datetime(2026, 10, 18, 12, 0)),
        text=text,
        **kwargs,
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return ReportStore(session_factory)


@pytest.fixture
def state(session_factory):
    return StateStore(session_factory)


@pytest.fixture
def document(tmp_path):
    return SharedDocument(str(tmp_path / "shared" / "reports.txt"))
