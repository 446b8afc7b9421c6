"""Cross-source ingestion: external channel messages and shared-document reports."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from daily_tracker.core.deduplication import deduplicate_shared, is_duplicate_message, seen_message_ids
from daily_tracker.core.entities import CandidateReport, Report
from daily_tracker.core.errors import NoReportsFound
from daily_tracker.core.formatting import parse_reports, parse_sections
from daily_tracker.core.state import StateStore
from daily_tracker.core.store import ReportStore
from daily_tracker.models.report import ReportType
from daily_tracker.providers.base import ExternalMessage, MessageSource
from daily_tracker.providers.shared_document import SharedDocument

logger = logging.getLogger(__name__)

MEDIA_PLACEHOLDERS = {
    "voice": "[Voice message]",
    "audio": "[Audio message]",
    "document": "[Document]",
}


@dataclass
class IngestResult:
    """Outcome of an external ingestion pass."""

    added: List[Report] = field(default_factory=list)
    skipped: int = 0
    cursor: Optional[int] = None


@dataclass
class MergeResult:
    """Outcome of a shared-document merge."""

    added: List[Report] = field(default_factory=list)
    skipped: int = 0


@dataclass(frozen=True)
class DayRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def single(cls, day: date) -> "DayRange":
        return cls(day, day)


def parse_day_range(start: Optional[str] = None, end: Optional[str] = None) -> Optional[DayRange]:
    """Build a day range from ISO dates; a lone start means a single day."""
    if not start:
        return None
    first = date.fromisoformat(start)
    return DayRange(first, date.fromisoformat(end) if end else first)


def message_to_report(message: ExternalMessage) -> Optional[Report]:
    """
    Map an external message to an external report.

    Text messages are scanned for good/bad sections; media messages keep
    their caption (or a placeholder) and file paths. Returns None for
    messages without text or media.
    """
    provenance = dict(
        type=ReportType.EXTERNAL,
        date=message.date,
        author_id=message.author_id,
        author_username=message.author_username,
        author_first_name=message.author_first_name,
        author_last_name=message.author_last_name,
        external_message_id=message.message_id,
    )

    if message.text and message.text.strip():
        good, bad = parse_sections(message.text)
        return Report(good_items=good, bad_items=bad, external_text=message.text, **provenance)

    if message.attachments:
        first = message.attachments[0]
        text = message.caption or first.file_name or MEDIA_PLACEHOLDERS.get(first.kind, "")
        return Report(
            external_text=text,
            external_voice_files=[a.file_path for a in message.attachments if a.file_path],
            **provenance,
        )

    return None


async def ingest_external(
    source: MessageSource,
    store: ReportStore,
    state: StateStore,
    since_cursor: Optional[int] = None,
) -> IngestResult:
    """
    Pull new messages from the source and store them as external reports.

    The cursor is persisted only after the corresponding store write is
    confirmed, so an aborted pass resumes at the last stored message and the
    message-id check absorbs any redelivery.
    """
    cursor = since_cursor if since_cursor is not None else state.get_cursor()
    logger.info(f"Fetching external reports from {source.name} after cursor {cursor}")
    messages = await source.fetch_messages(cursor)

    # Dedup against a snapshot taken at the start of the pass
    seen_ids = seen_message_ids(store.fetch_by_type(ReportType.EXTERNAL))
    result = IngestResult(cursor=cursor)

    for message in messages:
        report = message_to_report(message)
        if report is None:
            logger.debug(f"Message {message.message_id} has no report content")
        elif is_duplicate_message(message, seen_ids):
            logger.info(f"Skipping already stored message {message.message_id}")
            result.skipped += 1
        else:
            store.save(report)
            seen_ids.add(message.message_id)
            result.added.append(report)

        result.cursor = message.update_id
        state.set_cursor(result.cursor)

    logger.info(
        f"External ingestion: {len(result.added)} added, {result.skipped} duplicates, cursor {result.cursor}"
    )
    return result


def ingest_shared(
    text: str,
    day_range: Optional[DayRange] = None,
    provenance: Optional[str] = None,
    default_date: Optional[datetime] = None,
) -> List[CandidateReport]:
    """Parse shared-document text into candidates, filtered and newest first."""
    candidates = parse_reports(text, default_date=default_date)

    if day_range is not None:
        candidates = [c for c in candidates if day_range.contains(c.day)]

    if provenance:
        needle = provenance.lower()
        candidates = [
            c
            for c in candidates
            if needle in c.device_name.lower() or needle in c.device_identifier.lower()
        ]

    return sorted(candidates, key=lambda c: c.date, reverse=True)


def candidate_to_report(candidate: CandidateReport) -> Report:
    return Report(
        type=ReportType.SHARED,
        date=candidate.date,
        good_items=list(candidate.good_items),
        bad_items=list(candidate.bad_items),
        published=True,
        external_text=candidate.content,
        device_name=candidate.device_name or None,
    )


def merge_shared(store: ReportStore, candidates: List[CandidateReport]) -> MergeResult:
    """Store candidates as shared reports, skipping content already present."""
    existing = store.fetch_by_type(ReportType.SHARED)
    new_candidates, skipped = deduplicate_shared(candidates, existing)

    result = MergeResult(skipped=skipped)
    for candidate in new_candidates:
        report = candidate_to_report(candidate)
        store.save(report)
        result.added.append(report)

    logger.info(f"Shared merge: {len(result.added)} added, {result.skipped} duplicates")
    return result


def import_shared(
    document: SharedDocument,
    store: ReportStore,
    day_range: Optional[DayRange] = None,
    provenance: Optional[str] = None,
) -> MergeResult:
    """Read the shared document and merge matching reports into the store."""
    candidates = ingest_shared(document.read(), day_range=day_range, provenance=provenance)
    if not candidates:
        raise NoReportsFound("No shared reports match the filter")
    return merge_shared(store, candidates)
