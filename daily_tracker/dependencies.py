"""Shared instances built from settings, used by the API, CLI and worker."""

import logging
from functools import lru_cache

from daily_tracker.config import settings
from daily_tracker.core.state import StateStore
from daily_tracker.core.status import StatusService
from daily_tracker.core.store import ReportStore
from daily_tracker.database import SessionLocal
from daily_tracker.providers import SharedDocument, TelegramChannel, TelegramClient, TelegramSource


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lru_cache()
def get_report_store() -> ReportStore:
    # One instance per process so every writer shares the store lock
    return ReportStore(SessionLocal)


@lru_cache()
def get_state_store() -> StateStore:
    return StateStore(SessionLocal)


def get_status_service() -> StatusService:
    return StatusService(get_report_store(), get_state_store(), settings.active_window)


def get_telegram_client() -> TelegramClient:
    return TelegramClient(
        settings.telegram_token,
        api_url=settings.telegram_api_url,
        timeout=settings.telegram_timeout,
    )


def get_telegram_source() -> TelegramSource:
    return TelegramSource(
        get_telegram_client(),
        chat_id=settings.telegram_chat_filter,
        timezone=settings.timezone,
    )


def get_telegram_channel() -> TelegramChannel:
    return TelegramChannel(get_telegram_client(), settings.telegram_chat_id)


def get_shared_document() -> SharedDocument:
    return SharedDocument(settings.shared_document_path)
