from __future__ import annotations

import gzip
import json
import zlib
from typing import Any, Protocol

from backup_sync.errors import BackupDecodeError


class BackupCodec(Protocol):
    """Opaque backup (de)serializer; the backup schema lives elsewhere."""

    def encode(self, backup: Any) -> bytes: ...

    def decode(self, data: bytes) -> Any: ...


class GzipJsonBackupCodec:
    """Compact binary form: gzip-compressed UTF-8 JSON."""

    def __init__(self, *, compresslevel: int = 6) -> None:
        self._level = compresslevel

    def encode(self, backup: Any) -> bytes:
        raw = json.dumps(backup, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        return gzip.compress(raw, compresslevel=self._level)

    def decode(self, data: bytes) -> Any:
        if not data:
            raise BackupDecodeError("empty backup payload")
        try:
            raw = gzip.decompress(data)
            return json.loads(raw.decode("utf-8"))
        except (OSError, EOFError, zlib.error, UnicodeDecodeError, ValueError) as e:
            raise BackupDecodeError(f"cannot decode backup payload: {e}") from e
