"""同步服务端 /api/sync/content 的条件请求封装（ETag 乐观锁）。

- pull：GET，带 If-None-Match（若本地记得上一次的 ETag）
- push：PUT，带 If-Match（若有 ETag）；412 表示别的设备先写了，留给下一轮同步

服务端只保存一个 blob；ETag 对客户端是不透明的字符串，只做原样比较与回传。
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from backup_sync.codec import BackupCodec
from backup_sync.config import Credentials, Settings
from backup_sync.errors import (
    BackupDecodeError,
    EmptyBackupError,
    SyncProtocolError,
    SyncTransportError,
)
from backup_sync.models import PullResult, SyncState
from backup_sync.notifier import SyncNotifier
from backup_sync.token_store import TokenStore

logger = logging.getLogger(__name__)

CONTENT_PATH = "/api/sync/content"

_TimeoutTypes = httpx.Timeout | float | None


def api_headers(creds: Credentials) -> dict[str, str]:
    return {"X-API-Token": creds.api_key}


def _new_etag(resp: httpx.Response) -> str:
    etag = resp.headers.get("ETag") or ""
    if not etag:
        raise SyncProtocolError("Missing ETag")
    return etag


class HttpxVersionedBlobStore:
    def __init__(
        self,
        *,
        settings: Settings,
        token_store: TokenStore,
        codec: BackupCodec,
        notifier: SyncNotifier,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._tokens = token_store
        self._codec = codec
        self._notifier = notifier
        self._client = client

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        content: bytes | None = None,
        timeout: _TimeoutTypes,
    ) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(
                method, url, headers=headers, content=content, timeout=timeout
            )
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method, url, headers=headers, content=content)

    async def pull(self) -> PullResult:
        creds = self._settings.credentials()
        url = f"{creds.host}{CONTENT_PATH}"

        headers = api_headers(creds)
        last_etag = self._tokens.get()
        if last_etag:
            headers["If-None-Match"] = last_etag

        resp = await self._request(
            "GET", url, headers=headers, timeout=self._settings.pull_timeout_seconds
        )

        if resp.status_code == 304:
            assert last_etag, "server answered 304 without a known ETag"
            logger.info("remote sync data not modified")
            return PullResult(remote=None, etag=last_etag)
        if resp.status_code == 404:
            # Nothing stored yet, or deleted on the server.
            return PullResult(remote=None, etag="")

        if 200 <= resp.status_code < 300:
            new_etag = _new_etag(resp)
            try:
                backup: Any = self._codec.decode(resp.content)
            except BackupDecodeError:
                # Overwrite the unreadable blob on push.
                logger.info("bad sync content from server, will overwrite", exc_info=True)
                return PullResult(remote=None, etag="")
            if backup is None:
                logger.info("empty sync content from server, will overwrite")
                return PullResult(remote=None, etag="")
            return PullResult(remote=SyncState(backup=backup), etag=new_etag)

        body = resp.text
        message = f"Failed to download sync data: {body}"
        self._notifier.show_sync_error(message)
        logger.error("sync pull failed status=%s body=%s", resp.status_code, body)
        raise SyncTransportError(resp.status_code, body, message)

    async def push(self, state: SyncState, etag: str) -> bool:
        """Return True if the server accepted the new content."""
        if state.backup is None:
            return True

        creds = self._settings.credentials()
        url = f"{creds.host}{CONTENT_PATH}"

        headers = api_headers(creds)
        headers["Content-Type"] = "application/octet-stream"
        if etag:
            headers["If-Match"] = etag

        data = self._codec.encode(state.backup)
        if not data:
            raise EmptyBackupError("Backup serialized to an empty payload")

        timeout = httpx.Timeout(self._settings.push_timeout_seconds)
        resp = await self._request("PUT", url, headers=headers, content=data, timeout=timeout)

        if 200 <= resp.status_code < 300:
            new_etag = _new_etag(resp)
            self._tokens.set(new_etag)
            logger.debug("sync push completed etag=%s", new_etag)
            return True
        if resp.status_code == 412:
            # Another device updated the remote first; the next cycle merges again.
            logger.debug("sync push rejected with 412 etag=%s", etag)
            return False

        body = resp.text
        self._notifier.show_sync_error(f"Failed to upload sync data: {body}")
        logger.error("sync push failed status=%s body=%s", resp.status_code, body)
        return False
