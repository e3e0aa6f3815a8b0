"""最后一次成功推送后服务端返回的 ETag（last known token）的持久化。

这是同步核心唯一持久化的状态：拉取前读取，只有推送成功后才写入。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_ETAG_KEY = "last_sync_etag"


class TokenStore(Protocol):
    def get(self) -> str: ...

    def set(self, etag: str) -> None: ...


class MemoryTokenStore:
    def __init__(self, etag: str = "") -> None:
        self._etag = etag

    def get(self) -> str:
        return self._etag

    def set(self, etag: str) -> None:
        self._etag = etag


class FileTokenStore:
    def __init__(self, *, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("sync state file is not valid JSON, ignoring: %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> str:
        value = self._load().get(_ETAG_KEY)
        return value if isinstance(value, str) else ""

    def set(self, etag: str) -> None:
        state = self._load()
        state[_ETAG_KEY] = etag
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        _ = tmp_path.write_text(json.dumps(state, indent=2), encoding="utf-8")
        _ = tmp_path.replace(self._path)
