"""Tests for external ingestion and shared-document merge."""

import asyncio
from datetime import date, datetime

import pytest

from conftest import FakeSource, make_message
from daily_tracker.core.entities import Report
from daily_tracker.core.errors import NoReportsFound, SourceUnavailable, StoreError
from daily_tracker.core.formatting import format_reports
from daily_tracker.core.merge import (
    DayRange,
    import_shared,
    ingest_external,
    ingest_shared,
    message_to_report,
    parse_day_range,
)
from daily_tracker.core.store import ReportStore
from daily_tracker.models.report import ReportType
from daily_tracker.providers.base import ExternalAttachment


class FailingStore(ReportStore):
    """Store whose nth save fails."""

    def __init__(self, session_factory, fail_on: int):
        super().__init__(session_factory)
        self.fail_on = fail_on
        self.saves = 0

    def save(self, report):
        self.saves += 1
        if self.saves == self.fail_on:
            raise StoreError("save")
        super().save(report)


def shared_text(*reports, device="Laptop"):
    return format_reports(reports, include_provenance=True, device_name=device, device_identifier="x1")


def test_message_to_report_text():
    """Test text messages are split into good and bad items."""
    message = make_message(10, 100, "✅ Good:\n• Ran\n\n❌ Bad:\n• Slept late", author_username="bob")
    report = message_to_report(message)
    assert report.type == ReportType.EXTERNAL
    assert report.good_items == ["Ran"]
    assert report.bad_items == ["Slept late"]
    assert report.external_message_id == 100
    assert report.author_display_name == "@bob"


def test_message_to_report_media():
    """Test media messages keep their caption and file paths, never tokenized URLs."""
    message = make_message(
        10,
        100,
        caption="evening note",
        attachments=[
            ExternalAttachment(kind="voice", file_id="f1", file_path="voice/file_1.oga"),
            ExternalAttachment(kind="document", file_id="f2"),
        ],
    )
    report = message_to_report(message)
    assert report.external_text == "evening note"
    assert report.external_voice_files == ["voice/file_1.oga"]


def test_message_to_report_empty():
    """Test messages without text or media are ignored."""
    assert message_to_report(make_message(10, 100)) is None


def test_ingest_external_is_idempotent(store, state):
    """Test redelivered messages are not stored twice."""
    source = FakeSource([make_message(1, 101, "+\na"), make_message(2, 102, "-\nb")])

    first = asyncio.run(ingest_external(source, store, state))
    assert len(first.added) == 2
    assert state.get_cursor() == 2

    # Redelivery from the beginning
    state.set_cursor(None)
    second = asyncio.run(ingest_external(source, store, state))
    assert second.added == []
    assert second.skipped == 2
    assert len(store.fetch_by_type(ReportType.EXTERNAL)) == 2


def test_ingest_external_uses_stored_cursor(store, state):
    """Test the stored cursor is passed to the source."""
    state.set_cursor(5)
    source = FakeSource([make_message(6, 106, "+\na")])
    asyncio.run(ingest_external(source, store, state))
    assert source.calls == [5]
    assert state.get_cursor() == 6


def test_ingest_external_cursor_override(store, state):
    """Test an explicit cursor wins over the stored one."""
    state.set_cursor(5)
    source = FakeSource([make_message(2, 102, "+\na")])
    result = asyncio.run(ingest_external(source, store, state, since_cursor=1))
    assert source.calls == [1]
    assert len(result.added) == 1


def test_ingest_external_partial_failure_keeps_cursor(session_factory, state):
    """Test a failed write leaves the cursor at the last stored message."""
    store = FailingStore(session_factory, fail_on=2)
    source = FakeSource([make_message(1, 101, "+\na"), make_message(2, 102, "+\nb")])

    with pytest.raises(StoreError):
        asyncio.run(ingest_external(source, store, state))

    assert state.get_cursor() == 1
    assert len(store.fetch_by_type(ReportType.EXTERNAL)) == 1


def test_ingest_external_source_unavailable(store, state):
    """Test an unreachable source does not move the cursor."""
    state.set_cursor(3)
    source = FakeSource(error=SourceUnavailable("fake", "down"))
    with pytest.raises(SourceUnavailable):
        asyncio.run(ingest_external(source, store, state))
    assert state.get_cursor() == 3


def test_ingest_shared_filters_and_sorts():
    """Test day range and device filters, newest first."""
    text = "\n".join(
        [
            shared_text(Report(date=datetime(2026, 10, 16, 20, 0), good_items=["a"]), device="Laptop"),
            shared_text(Report(date=datetime(2026, 10, 18, 20, 0), good_items=["b"]), device="Laptop"),
            shared_text(Report(date=datetime(2026, 10, 17, 20, 0), good_items=["c"]), device="Phone"),
        ]
    )

    everything = ingest_shared(text)
    assert [c.good_items for c in everything] == [["b"], ["c"], ["a"]]

    in_range = ingest_shared(text, day_range=DayRange(date(2026, 10, 17), date(2026, 10, 18)))
    assert [c.good_items for c in in_range] == [["b"], ["c"]]

    laptop = ingest_shared(text, provenance="lap")
    assert [c.good_items for c in laptop] == [["b"], ["a"]]


def test_import_shared_skips_duplicates(store, document):
    """Test importing the same document twice adds nothing the second time."""
    document.append(
        shared_text(
            Report(date=datetime(2026, 10, 17, 20, 0), good_items=["a"], bad_items=["b"]),
            Report(date=datetime(2026, 10, 18, 20, 0), good_items=["c"]),
        )
    )

    first = import_shared(document, store)
    assert len(first.added) == 2
    assert all(r.type == ReportType.SHARED and r.published for r in first.added)
    assert first.added[0].device_name == "Laptop"

    second = import_shared(document, store)
    assert second.added == []
    assert second.skipped == 2
    assert len(store.fetch_by_type(ReportType.SHARED)) == 2


def test_import_shared_dedups_within_batch(store, document):
    """Test identical blocks in one document are stored once."""
    report = Report(date=datetime(2026, 10, 17, 20, 0), good_items=["same"])
    document.append(shared_text(report))
    document.append(shared_text(report, device="Phone"))

    result = import_shared(document, store)
    assert len(result.added) == 1
    assert result.skipped == 1


def test_import_shared_keeps_reports_differing_in_case(store, document):
    """Test same-day reports whose items differ only in case are both stored."""
    store.save(
        Report(date=datetime(2026, 10, 17, 8, 0), type=ReportType.SHARED, good_items=["Ran 5km"], published=True)
    )
    document.append(shared_text(Report(date=datetime(2026, 10, 17, 20, 0), good_items=["ran 5KM"])))

    result = import_shared(document, store)
    assert len(result.added) == 1
    assert result.skipped == 0
    assert sorted(r.good_items[0] for r in store.fetch_by_type(ReportType.SHARED)) == ["Ran 5km", "ran 5KM"]


def test_import_shared_does_not_touch_internal_reports(store, document):
    """Test shared reports coexist with internal reports of the same day."""
    own = Report(date=datetime(2026, 10, 17, 9, 0), good_items=["mine"])
    store.save(own)
    document.append(shared_text(Report(date=datetime(2026, 10, 17, 20, 0), good_items=["theirs"])))

    import_shared(document, store)
    assert store.get(own.id) is not None
    assert len(store.fetch()) == 2


def test_import_shared_nothing_matches(store, document):
    """Test an empty or fully filtered document raises NoReportsFound."""
    with pytest.raises(NoReportsFound):
        import_shared(document, store)

    document.append(shared_text(Report(date=datetime(2026, 10, 17, 20, 0), good_items=["a"])))
    with pytest.raises(NoReportsFound):
        import_shared(document, store, day_range=DayRange.single(date(2026, 1, 1)))


def test_parse_day_range():
    """Test day range parsing from ISO strings."""
    assert parse_day_range() is None
    assert parse_day_range("2026-10-18") == DayRange.single(date(2026, 10, 18))
    assert parse_day_range("2026-10-01", "2026-10-18").contains(date(2026, 10, 9))
