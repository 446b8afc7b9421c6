"""Telegram Bot API source and channel."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import httpx

from daily_tracker.core.errors import SourceUnavailable
from daily_tracker.providers.base import ExternalAttachment, ExternalMessage, MessageSource, ReportChannel

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096
MEDIA_KINDS = ("voice", "audio", "document")


class TelegramClient:
    """Minimal async client for the Telegram Bot API."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def base_url(self) -> str:
        return f"{self.api_url}/bot{self.token}"

    def file_url(self, file_path: str) -> str:
        """Download URL for a path returned by getFile. Carries the bot token, so it is never stored."""
        return f"{self.api_url}/file/bot{self.token}/{file_path}"

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None, post: bool = False) -> Any:
        url = f"{self.base_url}/{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                if post:
                    response = await client.post(url, json=params or {})
                else:
                    response = await client.get(url, params=params or {})
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram {method} request failed: {e}")
            raise SourceUnavailable("telegram", str(e)) from e

        if not data.get("ok"):
            description = data.get("description") or f"HTTP {response.status_code}"
            logger.error(f"Telegram {method} error: {description}")
            raise SourceUnavailable("telegram", description)
        return data.get("result")

    async def get_updates(self, offset: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get pending updates starting at offset."""
        params: Dict[str, Any] = {"timeout": 0}
        if offset is not None:
            params["offset"] = offset
        updates = await self._call("getUpdates", params) or []
        logger.info(f"Received {len(updates)} Telegram updates (offset={offset})")
        return updates

    async def get_file(self, file_id: str) -> Dict[str, Any]:
        """Look up a file; the result carries its download path."""
        return await self._call("getFile", {"file_id": file_id}) or {}

    async def download_file(self, file_path: str) -> bytes:
        """Download file content by its getFile path."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.file_url(file_path))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Telegram file download failed for {file_path}: {e}")
            raise SourceUnavailable("telegram", str(e)) from e
        return response.content

    async def send_message(self, chat_id: str, text: str) -> Dict[str, Any]:
        """Send a plain-text message."""
        return await self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text, "disable_web_page_preview": True},
            post=True,
        )


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split text into chunks no longer than limit, preferring line breaks."""
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks


class TelegramSource(MessageSource):
    """Reports posted to the Telegram bot."""

    def __init__(self, client: TelegramClient, chat_id: Optional[str] = None, timezone: Optional[str] = None):
        super().__init__("telegram")
        self.client = client
        self.chat_id = chat_id
        self.timezone = timezone

    def is_available(self) -> bool:
        """Check if a bot token is configured."""
        return bool(self.client.token)

    async def fetch_messages(self, since_cursor: Optional[int] = None) -> List[ExternalMessage]:
        """Fetch new messages after the cursor."""
        if not self.is_available():
            raise SourceUnavailable(self.name, "bot token not configured")

        offset = since_cursor + 1 if since_cursor is not None else None
        updates = await self.client.get_updates(offset)

        messages = []
        for update in updates:
            update_id = update.get("update_id")
            if update_id is None or (since_cursor is not None and update_id <= since_cursor):
                continue
            # Edits are ignored; the original message was already ingested
            payload = update.get("message") or update.get("channel_post")
            if not payload:
                continue
            message = self._to_message(update_id, payload)
            if self.chat_id and str(message.chat_id) != str(self.chat_id):
                logger.debug(f"Skipping message {message.message_id} from chat {message.chat_id}")
                continue
            await self._resolve_files(message)
            messages.append(message)

        return sorted(messages, key=lambda m: m.update_id)

    async def _resolve_files(self, message: ExternalMessage) -> None:
        for attachment in message.attachments:
            info = await self.client.get_file(attachment.file_id)
            attachment.file_path = info.get("file_path")
            if not attachment.file_path:
                # Files over the Bot API download limit have no path
                logger.warning(f"No download path for {attachment.kind} in message {message.message_id}")

    def _local_time(self, timestamp: int) -> datetime:
        """Message time as naive wall-clock time in the configured timezone."""
        if not self.timezone:
            return datetime.fromtimestamp(timestamp)
        return datetime.fromtimestamp(timestamp, ZoneInfo(self.timezone)).replace(tzinfo=None)

    def _to_message(self, update_id: int, payload: Dict[str, Any]) -> ExternalMessage:
        sender = payload.get("from") or {}
        chat = payload.get("chat") or {}

        attachments = []
        for kind in MEDIA_KINDS:
            media = payload.get(kind)
            if not media or not media.get("file_id"):
                continue
            attachments.append(
                ExternalAttachment(
                    kind=kind,
                    file_id=media["file_id"],
                    duration=media.get("duration"),
                    file_name=media.get("file_name"),
                )
            )

        return ExternalMessage(
            update_id=update_id,
            message_id=payload.get("message_id"),
            date=self._local_time(payload.get("date") or 0),
            chat_id=chat.get("id"),
            text=payload.get("text"),
            caption=payload.get("caption"),
            author_id=sender.get("id"),
            author_username=sender.get("username"),
            author_first_name=sender.get("first_name"),
            author_last_name=sender.get("last_name"),
            attachments=attachments,
        )


class TelegramChannel(ReportChannel):
    """Publishes report text to a Telegram chat."""

    def __init__(self, client: TelegramClient, chat_id: str):
        super().__init__("telegram")
        self.client = client
        self.chat_id = chat_id

    def is_available(self) -> bool:
        return bool(self.client.token and self.chat_id)

    async def send(self, text: str) -> None:
        if not self.is_available():
            raise SourceUnavailable(self.name, "bot token or chat id not configured")
        for chunk in split_message(text):
            await self.client.send_message(self.chat_id, chunk)
        logger.info(f"Sent report to Telegram chat {self.chat_id}")
