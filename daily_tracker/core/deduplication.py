"""Deduplication utilities."""

import hashlib
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from daily_tracker.core.entities import CandidateReport, Report
from daily_tracker.core.formatting import render_sections
from daily_tracker.providers.base import ExternalMessage


def compute_content_hash(content: str) -> str:
    """Compute SHA256 hash of content.

    Content is hashed as rendered: item text that differs only in case or
    spacing belongs to a different report.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def shared_report_key(day: date, good_items: Iterable[str], bad_items: Iterable[str]) -> Tuple[str, str]:
    """Dedup key of a shared report: calendar day plus rendered sections."""
    return day.isoformat(), compute_content_hash(render_sections(good_items, bad_items))


def deduplicate_shared(
    candidates: List[CandidateReport],
    existing_reports: Optional[List[Report]] = None,
) -> Tuple[List[CandidateReport], int]:
    """
    Drop candidates already stored as shared reports or repeated in the batch.

    Returns the new candidates and the number skipped.
    """
    seen: Set[Tuple[str, str]] = {
        shared_report_key(r.day, r.good_items, r.bad_items) for r in existing_reports or []
    }

    deduplicated = []
    skipped = 0
    for candidate in candidates:
        key = shared_report_key(candidate.day, candidate.good_items, candidate.bad_items)
        if key in seen:
            skipped += 1
            continue
        seen.add(key)
        deduplicated.append(candidate)

    return deduplicated, skipped


def seen_message_ids(existing_reports: Iterable[Report]) -> Set[int]:
    """External message ids already stored."""
    return {r.external_message_id for r in existing_reports if r.external_message_id is not None}


def is_duplicate_message(message: ExternalMessage, seen_ids: Set[int]) -> bool:
    return message.message_id in seen_ids
