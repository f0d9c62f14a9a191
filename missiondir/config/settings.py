from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

# Keep settings extremely boring and predictable.
# Anything path-related should come from missiondir.config.paths.
from . import paths


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return int(v)


def _env_csv(name: str) -> frozenset[str]:
    v = _env(name)
    if not v:
        return frozenset()
    return frozenset(s.strip() for s in v.split(",") if s.strip())


@dataclass(frozen=True)
class Settings:
    env: str = field(default_factory=lambda: _env("MD_ENV", "dev") or "dev")
    service: str = field(default_factory=lambda: _env("MD_SERVICE", "mission-directory"))
    log_level: str = field(default_factory=lambda: _env("MD_LOG_LEVEL", "INFO").upper())

    state_dir: Path = field(default_factory=lambda: paths.STATE_DIR)

    # sql | dynamodb | memory
    store_backend: str = field(default_factory=lambda: _env("MD_STORE_BACKEND", "sql").lower())
    db_url: str = field(default_factory=lambda: _env("MD_DB_URL"))
    table_name: str = field(default_factory=lambda: _env("MD_TABLE_NAME", "missions"))
    primary_key: str = field(default_factory=lambda: _env("MD_PRIMARY_KEY", "PK"))
    dynamodb_region: str = field(default_factory=lambda: _env("MD_DYNAMODB_REGION"))

    auth_enabled: bool = field(default_factory=lambda: _env_bool("MD_AUTH_ENABLED", True))
    # Static dev token with full scope. Empty disables it.
    api_key: str = field(default_factory=lambda: _env("MD_API_KEY"))

    filter_enabled: bool = field(default_factory=lambda: _env_bool("MD_FILTER_ENABLED", True))
    filter_max_body_bytes: int = field(
        default_factory=lambda: _env_int("MD_FILTER_MAX_BODY_BYTES", 8 * 1024)
    )
    filter_deny_ips: frozenset[str] = field(default_factory=lambda: _env_csv("MD_FILTER_DENY_IPS"))

    def sql_url(self) -> str:
        if self.db_url:
            return self.db_url
        return f"sqlite:///{(self.state_dir / 'missiondir.sqlite3').as_posix()}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
