from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class SyncNotifier(Protocol):
    """User-facing error channel (toast / notification in a GUI)."""

    def show_sync_error(self, message: str | None) -> None: ...


class LoggingSyncNotifier:
    def show_sync_error(self, message: str | None) -> None:
        logger.error("sync error: %s", message or "unknown error")
