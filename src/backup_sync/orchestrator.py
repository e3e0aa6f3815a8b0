"""拉取 → 合并 → 推送 的同步流程。

一次 sync 尝试是一个顺序执行的协程：
1. 上报 STARTED
2. pull：拿到远端数据与 ETag（304 / 404 / 解码失败 都视为“没有远端数据”）
3. 有远端数据则 merge(local, remote)，否则直接用本地数据覆盖远端
4. push：以 pull 得到的 ETag 作为 If-Match；412 不重试，留给下一轮
5. 上报 SUCCESS / FAILED / ERROR；被取消时上报 CANCELLED 并继续抛出取消

核心不做互斥：同一账号同时只应有一个 sync 在跑，由调度方保证。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from backup_sync.config import Settings
from backup_sync.errors import SyncConfigError
from backup_sync.events import EventReporter
from backup_sync.merger import SyncDataMerger
from backup_sync.models import (
    PullResult,
    SyncConflict,
    SyncEventStatus,
    SyncFailed,
    SyncOutcome,
    SyncState,
    SyncSucceeded,
)
from backup_sync.notifier import SyncNotifier

logger = logging.getLogger(__name__)


class VersionedBlobStore(Protocol):
    async def pull(self) -> PullResult: ...

    async def push(self, state: SyncState, etag: str) -> bool: ...


class SyncOrchestrator:
    def __init__(
        self,
        *,
        settings: Settings,
        store: VersionedBlobStore,
        merger: SyncDataMerger,
        reporter: EventReporter,
        notifier: SyncNotifier,
    ) -> None:
        self._settings = settings
        self._store = store
        self._merger = merger
        self._reporter = reporter
        self._notifier = notifier

    def _check_credentials(self) -> None:
        if not self._settings.require_credentials:
            return
        if self._settings.credentials().is_blank():
            raise SyncConfigError("sync host and API key must be configured")

    async def _sync_once(self, local: SyncState) -> tuple[SyncState, bool]:
        pulled = await self._store.pull()

        if pulled.remote is not None:
            assert pulled.etag, "ETag should never be empty if remote data is present"
            logger.debug("merging with remote data etag=%s", pulled.etag)
            merged = self._merger(local, pulled.remote)
        else:
            # Initialize or overwrite the remote copy.
            logger.debug("overwriting remote data etag=%r", pulled.etag)
            merged = local

        return merged, await self._store.push(merged, pulled.etag)

    async def sync(self, local: SyncState) -> SyncOutcome:
        try:
            self._check_credentials()
            await self._reporter.report(SyncEventStatus.STARTED)

            merged, pushed = await self._sync_once(local)

            if pushed:
                await self._reporter.report(SyncEventStatus.SUCCESS)
                return SyncSucceeded(backup=merged.backup)

            outcome = SyncConflict(backup=merged.backup)
            await self._reporter.report(SyncEventStatus.FAILED, outcome.message)
            return outcome
        except asyncio.CancelledError as e:
            await self._reporter.report(SyncEventStatus.CANCELLED, _cancel_message(e))
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("error syncing: %s", message, exc_info=True)
            self._notifier.show_sync_error(message)
            await self._reporter.report(SyncEventStatus.ERROR, message)
            return SyncFailed(message=message)

    async def run(self, local: SyncState) -> Any | None:
        """Return the merged backup, or None when the attempt failed."""
        outcome = await self.sync(local)
        if isinstance(outcome, SyncFailed):
            return None
        return outcome.backup


def _cancel_message(exc: asyncio.CancelledError) -> str | None:
    if exc.args and exc.args[0] is not None:
        return str(exc.args[0])
    return None
