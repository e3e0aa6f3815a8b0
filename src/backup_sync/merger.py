from __future__ import annotations

from typing import Protocol

from backup_sync.models import SyncState


class SyncDataMerger(Protocol):
    def __call__(self, local: SyncState, remote: SyncState) -> SyncState: ...


def shallow_merge(local: SyncState, remote: SyncState) -> SyncState:
    """Top-level key merge for dict backups; local keys win.

    Used by the CLI. Real merge rules belong to the application embedding the sync.
    """

    if local.backup is None:
        return remote
    if remote.backup is None:
        return local
    if isinstance(local.backup, dict) and isinstance(remote.backup, dict):
        return SyncState(backup={**remote.backup, **local.backup})
    return local
