from __future__ import annotations

import gzip

import pytest

from backup_sync.codec import GzipJsonBackupCodec
from backup_sync.errors import BackupDecodeError
from backup_sync.merger import shallow_merge
from backup_sync.models import SyncState


def test_codec_output_is_gzip() -> None:
    data = GzipJsonBackupCodec().encode({"manga": ["一"]})
    assert data[:2] == b"\x1f\x8b"
    assert gzip.decompress(data) == '{"manga":["一"]}'.encode("utf-8")


@pytest.mark.parametrize(
    "payload",
    [b"", b"plain text", gzip.compress(b"{broken"), gzip.compress(b"\xff\xfe")],
)
def test_codec_rejects_bad_payloads(payload: bytes) -> None:
    with pytest.raises(BackupDecodeError):
        _ = GzipJsonBackupCodec().decode(payload)


def test_shallow_merge_prefers_local_keys() -> None:
    merged = shallow_merge(
        SyncState(backup={"a": 1, "b": 1}),
        SyncState(backup={"b": 2, "c": 2}),
    )
    assert merged == SyncState(backup={"a": 1, "b": 1, "c": 2})


def test_shallow_merge_handles_missing_sides() -> None:
    remote = SyncState(backup={"r": 1})
    assert shallow_merge(SyncState(), remote) == remote
    local = SyncState(backup=[1, 2])
    assert shallow_merge(local, SyncState()) == local
    assert shallow_merge(local, remote) == local
