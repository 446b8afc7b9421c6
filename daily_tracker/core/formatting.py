"""Plain-text report format used for the Telegram channel and the shared document.

The layout below is a stable interchange contract: previously exported
documents must keep parsing, so markers, bullet and separator never change.

    📅 Report for 18.10.2026 21:05
    📱 Device: Pixel 8 [a1b2]
    👤 Author: @alice

    ✅ Good:
    • item

    ❌ Bad:
    • item

    🎤 Voice notes: 2
    ⭐ Evaluated

Reports are joined by a line of fifty box-drawing dashes.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from daily_tracker.core.entities import CandidateReport, Report
from daily_tracker.core.errors import NoReportsFound
from daily_tracker.models.report import ReportType

logger = logging.getLogger(__name__)

HEADER_PREFIX = "📅 Report for "
DEVICE_PREFIX = "📱 Device: "
AUTHOR_PREFIX = "👤 Author: "
GOOD_MARKER = "✅ Good:"
BAD_MARKER = "❌ Bad:"
BULLET = "• "
VOICE_PREFIX = "🎤 Voice notes: "
EVALUATED_LINE = "⭐ Evaluated"
SEPARATOR = "─" * 50
DATE_FORMAT = "%d.%m.%Y %H:%M"

GOOD = "good"
BAD = "bad"

GOOD_LABELS = {"good", "good items", "хорошие дела"}
BAD_LABELS = {"bad", "bad items", "плохие дела"}
# Short labels people type in chat messages
CHAT_GOOD_LABELS = GOOD_LABELS | {"+", "pros", "plus", "я молодец", "молодец", "хорошо", "плюсы"}
CHAT_BAD_LABELS = BAD_LABELS | {"-", "cons", "minus", "я не молодец", "не молодец", "плохо", "минусы"}

_TAG_RE = re.compile(r"<[^>]+>")
_LABEL_NOISE_RE = re.compile(r"[^\w\s+\-]")
_BULLET_RE = re.compile(r"^(?:[•*\-–]|\d+[.)])\s*")
_DATE_RE = re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{4})(?:[,\s]+(\d{1,2}):(\d{2}))?")
_DEVICE_ID_RE = re.compile(r"^(.*?)\s*\[([^\]]*)\]$")


def _clean_item(item: str) -> str:
    return " ".join(item.splitlines()).strip()


def _clean_items(items: Iterable[str]) -> List[str]:
    return [c for c in (_clean_item(i) for i in items) if c]


def render_sections(good_items: Iterable[str], bad_items: Iterable[str]) -> str:
    """Render the good and bad sections; empty sections are omitted."""
    result = ""
    good = _clean_items(good_items)
    if good:
        result += GOOD_MARKER + "\n" + "".join(f"{BULLET}{item}\n" for item in good) + "\n"
    bad = _clean_items(bad_items)
    if bad:
        result += BAD_MARKER + "\n" + "".join(f"{BULLET}{item}\n" for item in bad) + "\n"
    return result


def format_report(
    report: Report,
    include_provenance: bool = False,
    device_name: Optional[str] = None,
    device_identifier: Optional[str] = None,
) -> str:
    """Format a single report."""
    lines = [f"{HEADER_PREFIX}{report.date.strftime(DATE_FORMAT)}"]
    if include_provenance:
        device = report.device_name or device_name
        if device:
            if device_identifier and not report.device_name:
                device = f"{device} [{device_identifier}]"
            lines.append(f"{DEVICE_PREFIX}{device}")
        if report.type == ReportType.EXTERNAL and report.author_display_name:
            lines.append(f"{AUTHOR_PREFIX}{report.author_display_name}")
    result = "\n".join(lines) + "\n\n"
    result += render_sections(report.good_items, report.bad_items)

    if report.voice_attachments:
        result += f"{VOICE_PREFIX}{len(report.voice_attachments)}\n"
    if report.type == ReportType.CUSTOM and report.evaluation and report.evaluation.is_evaluated:
        result += EVALUATED_LINE + "\n"
    return result


def format_reports(
    reports: Iterable[Report],
    include_provenance: bool = False,
    device_name: Optional[str] = None,
    device_identifier: Optional[str] = None,
) -> str:
    """Format reports, joined by the separator line."""
    blocks = [format_report(r, include_provenance, device_name, device_identifier) for r in reports]
    logger.info(f"Formatted {len(blocks)} reports")
    return f"\n{SEPARATOR}\n".join(blocks)


def _normalize_label(line: str) -> str:
    text = _TAG_RE.sub("", line).lower()
    text = _LABEL_NOISE_RE.sub(" ", text)
    return " ".join(text.split())


def _is_bulleted(line: str) -> bool:
    return line.startswith(("•", "*")) or (line.startswith("-") and len(line) > 1 and line[1] != ":")


def section_marker(line: str, chat: bool = False) -> Optional[str]:
    """Return GOOD or BAD if the line is a section heading."""
    if _is_bulleted(line):
        return None
    if "✅" in line:
        return GOOD
    if "❌" in line:
        return BAD
    label = _normalize_label(line)
    if label in (CHAT_GOOD_LABELS if chat else GOOD_LABELS):
        return GOOD
    if label in (CHAT_BAD_LABELS if chat else BAD_LABELS):
        return BAD
    return None


def strip_bullet(line: str) -> str:
    """Strip one leading bullet, dash or list number."""
    return _BULLET_RE.sub("", line.strip(), count=1).strip()


def is_separator(line: str) -> bool:
    return len(line) >= 3 and set(line) == {"─"}


def _is_header(line: str) -> bool:
    label = _normalize_label(line)
    return line.startswith("📅") or label.startswith("report for") or label.startswith("отчет за")


def _header_date(line: str) -> Optional[datetime]:
    match = _DATE_RE.search(line)
    if not match:
        return None
    day, month, year, hour, minute = match.groups()
    try:
        return datetime(int(year), int(month), int(day), int(hour or 0), int(minute or 0))
    except ValueError:
        logger.warning(f"Invalid date in report header: {line!r}")
        return None


def _is_field(line: str, glyph: str, labels: Tuple[str, ...]) -> bool:
    if line.startswith(glyph):
        return True
    return ":" in line and _normalize_label(line.split(":", 1)[0]) in labels


def _field_value(line: str) -> str:
    if ":" not in line:
        return ""
    return _TAG_RE.sub("", line.split(":", 1)[1]).strip()


@dataclass
class _CandidateBuilder:
    date: datetime
    good_items: List[str] = field(default_factory=list)
    bad_items: List[str] = field(default_factory=list)
    device_name: str = ""
    device_identifier: str = ""
    author: Optional[str] = None

    def add(self, section: str, item: str) -> None:
        (self.good_items if section == GOOD else self.bad_items).append(item)

    def build(self) -> CandidateReport:
        return CandidateReport(
            date=self.date,
            good_items=self.good_items,
            bad_items=self.bad_items,
            device_name=self.device_name,
            device_identifier=self.device_identifier,
            author=self.author,
            content=render_sections(self.good_items, self.bad_items),
        )


def parse_reports(text: str, default_date: Optional[datetime] = None) -> List[CandidateReport]:
    """
    Parse formatted text back into candidate reports.

    Parsing never fails on malformed content; unrecognized lines are skipped
    and at worst fewer items are recovered. Raises NoReportsFound only for
    empty input.
    """
    if not text or not text.strip():
        raise NoReportsFound("No report content to parse")

    fallback_date = default_date or datetime.now()
    candidates: List[CandidateReport] = []
    builder: Optional[_CandidateBuilder] = None
    section: Optional[str] = None
    skipped = 0

    def flush() -> None:
        if builder is None:
            return
        candidate = builder.build()
        if candidate.is_empty:
            logger.debug(f"Dropping report block without items dated {candidate.date}")
            return
        candidates.append(candidate)

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            section = None
            continue

        if is_separator(line):
            flush()
            builder, section = None, None
            continue

        bulleted = _is_bulleted(line)

        if not bulleted and _is_header(line):
            flush()
            builder, section = _CandidateBuilder(date=_header_date(line) or fallback_date), None
            continue

        if builder is None:
            builder = _CandidateBuilder(date=fallback_date)

        if not bulleted and _is_field(line, "📱", ("device", "устройство")):
            value = _field_value(line)
            match = _DEVICE_ID_RE.match(value)
            if match:
                builder.device_name, builder.device_identifier = match.group(1), match.group(2)
            else:
                builder.device_name = value
            continue

        if not bulleted and _is_field(line, "👤", ("author", "автор")):
            builder.author = _field_value(line) or None
            continue

        if line.startswith(("🎤", "⭐")):
            section = None
            continue

        marker = section_marker(line)
        if marker:
            section = marker
            continue

        if section is None:
            skipped += 1
            continue

        item = strip_bullet(line)
        if item:
            builder.add(section, item)

    flush()

    if skipped:
        logger.info(f"Skipped {skipped} unrecognized lines while parsing reports")
    if not candidates:
        logger.warning("Report text contained no recognizable report sections")
    else:
        logger.info(f"Parsed {len(candidates)} reports")
    return candidates


def parse_sections(text: str) -> Tuple[List[str], List[str]]:
    """
    Extract good and bad items from a free-form chat message.

    Chat messages use looser headings ("+", "плюсы", "я молодец") and keep
    the current section across blank lines.
    """
    good: List[str] = []
    bad: List[str] = []
    section: Optional[str] = None

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue
        marker = section_marker(line, chat=True)
        if marker:
            section = marker
            continue
        if section is None:
            continue
        item = strip_bullet(line)
        if item:
            (good if section == GOOD else bad).append(item)

    return good, bad
