from __future__ import annotations

import json

import httpx
import pytest

from backup_sync.config import Settings


HOST = "https://sync.example.com"


@pytest.fixture
def anyio_backend() -> str:
    # Event reporting relies on asyncio.shield.
    return "asyncio"


@pytest.fixture
def sync_settings() -> Settings:
    return Settings(
        _env_file=None,  # pyright: ignore[reportCallIssue]
        host=HOST + "/",
        api_key="key-1",
        device_name="pixel-test",
    )


class RecordingNotifier:
    def __init__(self) -> None:
        self.errors: list[str | None] = []

    def show_sync_error(self, message: str | None) -> None:
        self.errors.append(message)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def event_names(requests: list[httpx.Request]) -> list[str]:
    out: list[str] = []
    for r in requests:
        if r.url.path == "/api/sync/event":
            out.append(json.loads(r.content.decode("utf-8"))["event"])
    return out


