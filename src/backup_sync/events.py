"""同步生命周期事件上报（POST /api/sync/event）。

尽力而为：任何失败只记录日志，不影响同步结果。
一旦开始上报就会跑完，即使调用方正在被取消（保证 CANCELLED 事件也能发出去）。
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from backup_sync.config import Settings
from backup_sync.models import SyncEvent, SyncEventStatus
from backup_sync.remote_store import api_headers

logger = logging.getLogger(__name__)

EVENT_PATH = "/api/sync/event"


class EventReporter:
    def __init__(self, *, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client

    async def _post(self, url: str, headers: dict[str, str], payload: dict[str, object]) -> None:
        if self._client is not None:
            resp = await self._client.post(url, headers=headers, json=payload)
            await resp.aclose()
            return
        async with httpx.AsyncClient(timeout=self._settings.pull_timeout_seconds) as client:
            resp = await client.post(url, headers=headers, json=payload)
            await resp.aclose()

    async def _send(self, status: SyncEventStatus, message: str | None) -> None:
        try:
            creds = self._settings.credentials()
            event = SyncEvent(
                event=status,
                device_name=self._settings.device_name or None,
                message=message,
            )
            await self._post(f"{creds.host}{EVENT_PATH}", api_headers(creds), event.to_json_payload())
        except Exception:
            logger.warning("failed to report sync event %s", status.value, exc_info=True)

    async def report(self, status: SyncEventStatus, message: str | None = None) -> None:
        task = asyncio.ensure_future(self._send(status, message))
        cancelled: asyncio.CancelledError | None = None
        while not task.done():
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError as e:
                # Keep waiting; the report must finish before cancellation goes through.
                cancelled = e
        if cancelled is not None:
            raise cancelled
