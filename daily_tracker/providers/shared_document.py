"""Shared plain-text document used for cross-device report exchange."""

import logging
import os

from daily_tracker.core.errors import SourceUnavailable
from daily_tracker.core.formatting import SEPARATOR

logger = logging.getLogger(__name__)


class SharedDocument:
    """A text file synchronized between devices (e.g. a cloud drive folder)."""

    def __init__(self, path: str):
        self.path = path

    def is_available(self) -> bool:
        """Check that the containing folder exists."""
        return os.path.isdir(os.path.dirname(os.path.abspath(self.path)))

    def read(self) -> str:
        """Read the whole document; a missing file reads as empty."""
        if not os.path.exists(self.path):
            logger.info(f"Shared document {self.path} does not exist yet")
            return ""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Failed to read shared document {self.path}: {e}")
            raise SourceUnavailable("shared document", str(e)) from e

    def append(self, content: str) -> None:
        """Append a block of reports, separated from any existing content."""
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            existing = os.path.exists(self.path) and os.path.getsize(self.path) > 0
            with open(self.path, "a", encoding="utf-8") as f:
                if existing:
                    f.write(f"\n{SEPARATOR}\n")
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write shared document {self.path}: {e}")
            raise SourceUnavailable("shared document", str(e)) from e
        logger.info(f"Appended {len(content)} characters to {self.path}")

    def delete(self) -> None:
        try:
            if os.path.exists(self.path):
                os.remove(self.path)
        except OSError as e:
            raise SourceUnavailable("shared document", str(e)) from e
