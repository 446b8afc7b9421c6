"""Tests for deduplication."""

from datetime import date, datetime

from daily_tracker.core.deduplication import (
    compute_content_hash,
    deduplicate_shared,
    is_duplicate_message,
    seen_message_ids,
    shared_report_key,
)
from daily_tracker.core.entities import CandidateReport, Report
from daily_tracker.models.report import ReportType


def test_compute_content_hash():
    """Test content hash computation."""
    content1 = "This is a test report."
    content2 = "This is a test report."
    content3 = "This is a TEST report."

    hash1 = compute_content_hash(content1)
    hash2 = compute_content_hash(content2)
    hash3 = compute_content_hash(content3)

    assert hash1 == hash2
    assert hash1 != hash3


def test_shared_report_key_is_case_sensitive():
    """Test items differing only in case give different keys."""
    day = date(2026, 10, 17)
    assert shared_report_key(day, ["Ran 5km"], []) != shared_report_key(day, ["ran 5KM"], [])


def test_shared_report_key():
    """Test the key depends on the day and the items only."""
    key = shared_report_key(date(2026, 10, 18), ["a"], ["b"])
    assert key == shared_report_key(date(2026, 10, 18), ["a"], ["b"])
    assert key != shared_report_key(date(2026, 10, 19), ["a"], ["b"])
    assert key != shared_report_key(date(2026, 10, 18), ["b"], ["a"])


def test_deduplicate_shared():
    """Test candidate deduplication against stored and batch reports."""
    stored = Report(date=datetime(2026, 10, 18, 8, 0), type=ReportType.SHARED, good_items=["a"])
    candidates = [
        CandidateReport(date=datetime(2026, 10, 18, 21, 0), good_items=["a"]),  # Already stored
        CandidateReport(date=datetime(2026, 10, 18, 21, 0), good_items=["b"]),
        CandidateReport(date=datetime(2026, 10, 18, 22, 0), good_items=["b"]),  # Repeated in batch
    ]

    deduplicated, skipped = deduplicate_shared(candidates, [stored])
    assert [c.good_items for c in deduplicated] == [["b"]]
    assert skipped == 2


def test_message_id_dedup():
    """Test external messages are matched by message id."""
    from conftest import make_message

    reports = [
        Report(date=datetime(2026, 10, 18), type=ReportType.EXTERNAL, external_message_id=5),
        Report(date=datetime(2026, 10, 18)),
    ]
    seen = seen_message_ids(reports)
    assert seen == {5}
    assert is_duplicate_message(make_message(1, 5), seen)
    assert not is_duplicate_message(make_message(2, 6), seen)
