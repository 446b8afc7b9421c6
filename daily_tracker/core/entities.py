"""Domain entities for reports."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from daily_tracker.models.report import ReportType


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class VoiceAttachment:
    """Voice note attached to a report."""

    path: str
    duration: float
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "duration": self.duration,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VoiceAttachment":
        return cls(
            id=data["id"],
            path=data["path"],
            duration=float(data.get("duration", 0.0)),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class Evaluation:
    """Positional evaluation of a custom report's good items."""

    is_evaluated: bool
    results: List[bool] = field(default_factory=list)


@dataclass
class Report:
    """A daily report from any source."""

    date: datetime
    type: ReportType = ReportType.REGULAR
    good_items: List[str] = field(default_factory=list)
    bad_items: List[str] = field(default_factory=list)
    published: bool = False
    voice_attachments: List[VoiceAttachment] = field(default_factory=list)
    evaluation: Optional[Evaluation] = None
    id: str = field(default_factory=new_id)
    # External provenance
    author_username: Optional[str] = None
    author_first_name: Optional[str] = None
    author_last_name: Optional[str] = None
    author_id: Optional[int] = None
    external_message_id: Optional[int] = None
    external_text: Optional[str] = None
    external_voice_files: List[str] = field(default_factory=list)
    # Shared provenance
    device_name: Optional[str] = None

    @property
    def day(self) -> date:
        return self.date.date()

    @property
    def is_internal(self) -> bool:
        return self.type.is_internal

    @property
    def author_display_name(self) -> Optional[str]:
        if self.author_username:
            return f"@{self.author_username}"
        name = " ".join(p for p in (self.author_first_name, self.author_last_name) if p)
        return name or None


@dataclass
class CandidateReport:
    """Report recovered from shared-document text, not yet stored."""

    date: datetime
    good_items: List[str] = field(default_factory=list)
    bad_items: List[str] = field(default_factory=list)
    device_name: str = ""
    device_identifier: str = ""
    author: Optional[str] = None
    content: str = ""

    @property
    def day(self) -> date:
        return self.date.date()

    @property
    def is_empty(self) -> bool:
        return not self.good_items and not self.bad_items
