"""Base interfaces for external message sources and report channels."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class ExternalAttachment:
    """Media attached to an external message."""

    kind: str  # voice, audio, document
    file_id: str
    file_path: Optional[str] = None  # From getFile; the download URL is built on demand
    duration: Optional[int] = None
    file_name: Optional[str] = None


@dataclass
class ExternalMessage:
    """Message fetched from an external source."""

    update_id: int  # Cursor position
    message_id: int  # Dedup key
    date: datetime
    chat_id: Optional[int] = None
    text: Optional[str] = None
    caption: Optional[str] = None
    author_id: Optional[int] = None
    author_username: Optional[str] = None
    author_first_name: Optional[str] = None
    author_last_name: Optional[str] = None
    attachments: List[ExternalAttachment] = field(default_factory=list)


class MessageSource(ABC):
    """Base class for external message sources."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def fetch_messages(self, since_cursor: Optional[int] = None) -> List[ExternalMessage]:
        """
        Fetch messages with an update id greater than since_cursor.

        Returns messages ordered by update id.
        Raises SourceUnavailable when the source cannot be reached.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if source is available (token configured, etc.)."""
        pass


class ReportChannel(ABC):
    """Base class for channels that reports are published to."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def send(self, text: str) -> None:
        """Deliver report text. Raises SourceUnavailable on failure."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass
