# missiondir/store.py
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from sqlalchemy import MetaData, insert, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from missiondir.db_models import missions_table
from missiondir.errors import StoreError
from missiondir.metrics import STORE_ERRORS, STORE_LATENCY_SECONDS
from missiondir.models import MissionRecord

log = logging.getLogger("missiondir.store")


class MissionStore(Protocol):
    def put(self, record: MissionRecord) -> None: ...

    def get(self, mission_id: str) -> Optional[MissionRecord]: ...

    def ping(self) -> None: ...


@contextmanager
def observe_call(call: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    except StoreError:
        STORE_ERRORS.labels(call=call).inc()
        raise
    finally:
        STORE_LATENCY_SECONDS.labels(call=call).observe(time.perf_counter() - started)


# =============================================================================
# SQL (default)
# =============================================================================


class SqlMissionStore:
    """
    Missions in a single SQL table. Table and key column names are config;
    see missiondir.db_models.missions_table.
    """

    def __init__(self, engine: Engine, *, table_name: str, primary_key: str) -> None:
        self.engine = engine
        self.primary_key = primary_key
        self.metadata = MetaData()
        self.table = missions_table(self.metadata, table_name, primary_key)

    def create_schema(self) -> None:
        self.metadata.create_all(bind=self.engine)

    def put(self, record: MissionRecord) -> None:
        key_col = self.table.c[self.primary_key]
        values = {"Name": record.name, "Description": record.description}
        with observe_call("put"):
            try:
                with self.engine.begin() as conn:
                    # last write wins
                    res = conn.execute(
                        update(self.table).where(key_col == record.id).values(**values)
                    )
                    if res.rowcount == 0:
                        conn.execute(
                            insert(self.table).values({self.primary_key: record.id, **values})
                        )
            except SQLAlchemyError as e:
                log.exception("FAILED to put mission id=%s", record.id)
                raise StoreError(f"put failed: {type(e).__name__}") from e

    def get(self, mission_id: str) -> Optional[MissionRecord]:
        key_col = self.table.c[self.primary_key]
        stmt = select(key_col, self.table.c.Name, self.table.c.Description).where(
            key_col == mission_id
        )
        with observe_call("get"):
            try:
                with self.engine.connect() as conn:
                    row = conn.execute(stmt).first()
            except SQLAlchemyError as e:
                log.exception("FAILED to get mission id=%s", mission_id)
                raise StoreError(f"get failed: {type(e).__name__}") from e

        if row is None:
            return None
        return MissionRecord(id=row[0], name=row[1], description=row[2])

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreError(f"ping failed: {type(e).__name__}") from e


# =============================================================================
# In-memory (tests / local)
# =============================================================================


class MemoryMissionStore:
    def __init__(self) -> None:
        self._items: dict[str, MissionRecord] = {}
        self._lock = threading.Lock()

    def put(self, record: MissionRecord) -> None:
        with observe_call("put"), self._lock:
            self._items[record.id] = record

    def get(self, mission_id: str) -> Optional[MissionRecord]:
        with observe_call("get"), self._lock:
            return self._items.get(mission_id)

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def build_store(settings) -> MissionStore:
    """Pick the backend named by settings.store_backend."""
    backend = settings.store_backend
    if backend == "memory":
        return MemoryMissionStore()
    if backend == "dynamodb":
        from missiondir.store_dynamodb import DynamoMissionStore

        return DynamoMissionStore.from_settings(settings)
    if backend != "sql":
        raise ValueError(f"unknown store backend: {backend!r}")

    from missiondir.db import get_engine

    store = SqlMissionStore(
        get_engine(), table_name=settings.table_name, primary_key=settings.primary_key
    )
    store.create_schema()
    return store
