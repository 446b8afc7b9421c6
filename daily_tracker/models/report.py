"""Report model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, Integer, JSON, String, Text

from daily_tracker.database import Base


class ReportType(str, enum.Enum):
    """Report type enum."""

    REGULAR = "regular"
    CUSTOM = "custom"  # Plan/checklist report
    EXTERNAL = "external"  # Ingested from the Telegram channel
    SHARED = "shared"  # Imported from the shared document

    @property
    def is_internal(self) -> bool:
        return self in (ReportType.REGULAR, ReportType.CUSTOM)


class ReportStatus(str, enum.Enum):
    """Status of today's regular report."""

    NOT_STARTED = "notStarted"
    IN_PROGRESS = "inProgress"
    SENT = "sent"
    NOT_CREATED = "notCreated"
    NOT_SENT = "notSent"


class StoredReport(Base):
    """Stored report - one row per report, ordered by insertion."""

    __tablename__ = "reports"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, index=True)
    report_date = Column(DateTime, nullable=False, index=True)
    type = Column(Enum(ReportType), nullable=False, index=True)
    good_items = Column(JSON, default=list)
    bad_items = Column(JSON, default=list)
    published = Column(Boolean, default=False, nullable=False)
    voice_attachments = Column(JSON, default=list)  # [{id, path, duration, created_at}]
    is_evaluated = Column(Boolean)
    evaluation_results = Column(JSON)
    # External provenance
    author_username = Column(String(255))
    author_first_name = Column(String(255))
    author_last_name = Column(String(255))
    author_id = Column(Integer)
    external_message_id = Column(Integer, index=True)
    external_text = Column(Text)
    external_voice_files = Column(JSON)
    # Shared provenance
    device_name = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_report_type_date", "type", "report_date"),
    )

    def __repr__(self) -> str:
        return f"<StoredReport(id={self.id}, type={self.type}, report_date={self.report_date})>"
