from __future__ import annotations


class SyncError(RuntimeError):
    pass


class SyncConfigError(SyncError):
    pass


class SyncProtocolError(SyncError):
    """The server broke the sync contract (e.g. 2xx without an ETag)."""


class SyncTransportError(SyncError):
    def __init__(self, status_code: int, body: str, message: str | None = None) -> None:
        super().__init__(message or f"{status_code} {body}")
        self.status_code = status_code
        self.body = body


class EmptyBackupError(SyncError):
    pass


class BackupDecodeError(SyncError):
    pass
