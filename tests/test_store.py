"""Tests for the report store."""

from datetime import date, datetime

import pytest

from daily_tracker.core.entities import Evaluation, Report, VoiceAttachment
from daily_tracker.core.errors import StoreError
from daily_tracker.core.store import ReportStore
from daily_tracker.database import Base
from daily_tracker.models.report import ReportType


def test_save_and_fetch(store):
    """Test a saved report reads back with all fields."""
    report = Report(
        date=datetime(2026, 10, 18, 9, 30),
        type=ReportType.CUSTOM,
        good_items=["Run"],
        bad_items=["Skip lunch"],
        voice_attachments=[VoiceAttachment(path="/tmp/a.m4a", duration=3.5)],
        evaluation=Evaluation(is_evaluated=True, results=[True]),
    )
    store.save(report)

    [stored] = store.fetch()
    assert stored.id == report.id
    assert stored.type == ReportType.CUSTOM
    assert stored.good_items == ["Run"]
    assert stored.bad_items == ["Skip lunch"]
    assert stored.voice_attachments[0].path == "/tmp/a.m4a"
    assert stored.evaluation.results == [True]


def test_overwrite_same_day_and_type(store):
    """Test saving an internal report replaces the same type on the same day."""
    first = Report(date=datetime(2026, 10, 18, 9, 0), good_items=["a"])
    second = Report(date=datetime(2026, 10, 18, 20, 0), good_items=["b"])
    store.save(first)
    store.save(second)

    reports = store.fetch()
    assert [r.id for r in reports] == [second.id]
    assert reports[0].good_items == ["b"]


def test_overwrite_leaves_other_days_and_types(store):
    """Test overwrite is scoped to one day and one type."""
    yesterday = Report(date=datetime(2026, 10, 17, 21, 0), good_items=["old"])
    custom = Report(date=datetime(2026, 10, 18, 8, 0), type=ReportType.CUSTOM, good_items=["plan"])
    store.save(yesterday)
    store.save(custom)
    store.save(Report(date=datetime(2026, 10, 18, 10, 0), good_items=["new"]))

    reports = store.fetch()
    assert len(reports) == 3
    assert {r.type for r in reports} == {ReportType.REGULAR, ReportType.CUSTOM}
    assert len(store.fetch(date(2026, 10, 18))) == 2


def test_external_reports_are_not_overwritten(store):
    """Test external reports on the same day coexist."""
    for message_id in (1, 2):
        store.save(
            Report(
                date=datetime(2026, 10, 18, 12, message_id),
                type=ReportType.EXTERNAL,
                external_message_id=message_id,
            )
        )
    assert len(store.fetch_by_type(ReportType.EXTERNAL)) == 2


def test_update_same_id_keeps_single_row(store):
    """Test updating a report by id does not duplicate it."""
    report = Report(date=datetime(2026, 10, 18, 9, 0), good_items=["a"])
    store.save(report)
    report.published = True
    store.update(report)

    [stored] = store.fetch()
    assert stored.published is True


def test_fetch_preserves_insertion_order(store):
    """Test fetch returns reports in the order they were stored."""
    reports = [
        Report(date=datetime(2026, 10, 20, 9, 0)),
        Report(date=datetime(2026, 10, 18, 9, 0)),
        Report(date=datetime(2026, 10, 19, 9, 0)),
    ]
    for report in reports:
        store.save(report)
    assert [r.id for r in store.fetch()] == [r.id for r in reports]


def test_find_by_day_and_type(store):
    """Test find returns the report of a type on a day."""
    report = Report(date=datetime(2026, 10, 18, 9, 0))
    store.save(report)
    assert store.find(date(2026, 10, 18), ReportType.REGULAR).id == report.id
    assert store.find(date(2026, 10, 18), ReportType.CUSTOM) is None
    assert store.find(date(2026, 10, 19), ReportType.REGULAR) is None


def test_delete_by_id(store):
    """Test delete removes exactly one report and reports whether it existed."""
    keep = Report(date=datetime(2026, 10, 17, 9, 0))
    drop = Report(date=datetime(2026, 10, 18, 9, 0))
    store.save(keep)
    store.save(drop)

    assert store.delete(drop) is True
    assert store.delete(drop.id) is False
    assert [r.id for r in store.fetch()] == [keep.id]


def test_clear(store):
    """Test clear removes every report."""
    store.save(Report(date=datetime(2026, 10, 18, 9, 0)))
    store.save(Report(date=datetime(2026, 10, 18, 9, 0), type=ReportType.SHARED))
    store.clear()
    assert store.fetch() == []


def test_store_error_wraps_database_failure(session_factory):
    """Test database failures surface as StoreError."""
    store = ReportStore(session_factory)
    Base.metadata.drop_all(bind=session_factory.kw["bind"])

    with pytest.raises(StoreError) as exc_info:
        store.fetch()
    assert exc_info.value.operation == "fetch"
