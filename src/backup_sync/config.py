from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import ClassVar, final

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class Credentials:
    host: str
    api_key: str

    def is_blank(self) -> bool:
        return not self.host.strip() or not self.api_key.strip()


@final
class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BACKUP_SYNC_",
        case_sensitive=False,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    # Sync server, e.g. https://sync.example.com (endpoints live under /api/sync/)
    host: str = ""
    # Sent as X-API-Token; also accept BACKUP_SYNC_API_TOKEN.
    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("BACKUP_SYNC_API_KEY", "BACKUP_SYNC_API_TOKEN", "api_key"),
    )

    # Reported as device_name in sync events.
    device_name: str = Field(default_factory=platform.node)

    # Pushes carry a payload and must not hang: connect/read/write/pool each capped.
    push_timeout_seconds: float = 30.0
    # None means no bound (pull and event requests).
    pull_timeout_seconds: float | None = None

    # Where FileTokenStore keeps the last known ETag.
    token_file: str = ".data/sync_state.json"

    # 上游对空 host / api_key 不做校验；打开后在发起任何请求前直接报错。
    require_credentials: bool = False

    log_level: str = "INFO"

    def credentials(self) -> Credentials:
        """Snapshot of host/api_key taken at call time (settings may change live)."""
        return Credentials(host=self.host.strip().rstrip("/"), api_key=self.api_key.strip())


settings = Settings()
