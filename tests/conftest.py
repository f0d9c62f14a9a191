from __future__ import annotations

import os
from pathlib import Path

import pytest

# IMPORTANT: this runs at import time (before missiondir.db is imported by tests)
BASE = Path(os.getenv("PYTEST_TMP_BASE", "/tmp")) / "missiondir_pytest"
STATE = BASE / "state"
STATE.mkdir(parents=True, exist_ok=True)

os.environ.setdefault("MD_ENV", "dev")

# Force db to writable location for tests (bypasses /var/lib defaults)
os.environ["MD_STATE_DIR"] = str(STATE)
os.environ["MD_DB_URL"] = f"sqlite:///{(STATE / 'missiondir.db').as_posix()}"
os.environ["MD_API_KEY"] = "supersecret"
os.environ["MD_STORE_BACKEND"] = "memory"
os.environ.pop("MD_FILTER_DENY_IPS", None)

from missiondir.store import MemoryMissionStore  # noqa: E402
from missiondir.missions import MissionService  # noqa: E402
from tests._harness import build_app_factory  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> MemoryMissionStore:
    return MemoryMissionStore()


@pytest.fixture
def service(store: MemoryMissionStore) -> MissionService:
    return MissionService(store)


@pytest.fixture
def build_app():
    """
    Fixture returns a callable:
        app = build_app(auth_enabled=True, store=None, **env_overrides)
    """
    return build_app_factory()
