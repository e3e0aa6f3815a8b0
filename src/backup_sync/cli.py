from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from backup_sync.codec import GzipJsonBackupCodec
from backup_sync.config import Settings, settings
from backup_sync.errors import BackupDecodeError
from backup_sync.events import EventReporter
from backup_sync.merger import SyncDataMerger, shallow_merge
from backup_sync.models import SyncConflict, SyncFailed, SyncOutcome, SyncState
from backup_sync.notifier import LoggingSyncNotifier
from backup_sync.orchestrator import SyncOrchestrator
from backup_sync.remote_store import HttpxVersionedBlobStore
from backup_sync.token_store import FileTokenStore, TokenStore

logger = logging.getLogger("backup_sync")

EXIT_OK = 0
EXIT_CONFLICT = 1
EXIT_ERROR = 2


def build_orchestrator(
    cfg: Settings,
    *,
    token_store: TokenStore | None = None,
    merger: SyncDataMerger = shallow_merge,
    client: httpx.AsyncClient | None = None,
) -> SyncOrchestrator:
    notifier = LoggingSyncNotifier()
    store = HttpxVersionedBlobStore(
        settings=cfg,
        token_store=token_store or FileTokenStore(path=cfg.token_file),
        codec=GzipJsonBackupCodec(),
        notifier=notifier,
        client=client,
    )
    return SyncOrchestrator(
        settings=cfg,
        store=store,
        merger=merger,
        reporter=EventReporter(settings=cfg, client=client),
        notifier=notifier,
    )


def exit_code_for(outcome: SyncOutcome) -> int:
    if isinstance(outcome, SyncFailed):
        return EXIT_ERROR
    if isinstance(outcome, SyncConflict):
        return EXIT_CONFLICT
    return EXIT_OK


async def run_file_sync(
    path: Path,
    write_back: bool,
    cfg: Settings,
    *,
    client: httpx.AsyncClient | None = None,
) -> int:
    codec = GzipJsonBackupCodec()
    backup = codec.decode(path.read_bytes()) if path.exists() else None

    outcome = await build_orchestrator(cfg, client=client).sync(SyncState(backup=backup))
    print(f"outcome: {type(outcome).__name__}")
    if isinstance(outcome, SyncFailed):
        print(f"error: {outcome.message}")
    elif write_back and outcome.backup is not None:
        tmp_path = path.with_name(path.name + ".tmp")
        _ = tmp_path.write_bytes(codec.encode(outcome.backup))
        _ = tmp_path.replace(path)
        print(f"merged backup written to {path}")
    return exit_code_for(outcome)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="同步本地备份文件到同步服务端（单次 pull → merge → push）")
    parser.add_argument("--file", required=True, type=Path, help="本地备份文件（gzip JSON）")
    parser.add_argument("--write-back", action="store_true", help="把合并后的备份写回 --file")
    parser.add_argument("--host", default=None, help="覆盖 BACKUP_SYNC_HOST")
    args = parser.parse_args(argv)

    cfg = settings
    if args.host:
        cfg.host = args.host
    logging.basicConfig(level=getattr(logging, cfg.log_level.upper(), logging.INFO))

    try:
        return asyncio.run(run_file_sync(args.file, args.write_back, cfg))
    except BackupDecodeError as e:
        logger.error("cannot read local backup %s: %s", args.file, e)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
