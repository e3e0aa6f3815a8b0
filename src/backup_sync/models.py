"""同步协议的数据结构。

- SyncState：一次同步尝试里携带的（至多一个）备份数据
- SyncEvent：发往 /api/sync/event 的 JSON 事件体
- SyncOutcome：orchestrator 的结果判别类型（成功 / 冲突 / 失败）

取消（asyncio.CancelledError）不属于 SyncOutcome，永远向调用方抛出。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class SyncState:
    backup: Any | None = None


@dataclass(frozen=True)
class PullResult:
    remote: SyncState | None
    etag: str


class SyncEventStatus(str, Enum):
    STARTED = "SYNC_STARTED"
    SUCCESS = "SYNC_SUCCESS"
    FAILED = "SYNC_FAILED"
    ERROR = "SYNC_ERROR"
    CANCELLED = "SYNC_CANCELLED"


class SyncEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: SyncEventStatus
    device_name: str | None = None
    message: str | None = None

    def to_json_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class SyncSucceeded:
    backup: Any | None


@dataclass(frozen=True)
class SyncConflict:
    # Merged local result; the remote write waits for the next cycle.
    backup: Any | None
    message: str = "Failed to push sync data"


@dataclass(frozen=True)
class SyncFailed:
    message: str


SyncOutcome = Union[SyncSucceeded, SyncConflict, SyncFailed]
