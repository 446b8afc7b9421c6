"""External sources and channels for reports."""

from daily_tracker.providers.base import ExternalAttachment, ExternalMessage, MessageSource, ReportChannel
from daily_tracker.providers.shared_document import SharedDocument
from daily_tracker.providers.telegram import TelegramChannel, TelegramClient, TelegramSource

__all__ = [
    "ExternalAttachment",
    "ExternalMessage",
    "MessageSource",
    "ReportChannel",
    "SharedDocument",
    "TelegramChannel",
    "TelegramClient",
    "TelegramSource",
]
