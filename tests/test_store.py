import pytest
from sqlalchemy import create_engine, inspect

from missiondir.errors import StoreError
from missiondir.models import MissionRecord
from missiondir.store import MemoryMissionStore, SqlMissionStore, build_store


@pytest.fixture
def sql_store(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'store.db').as_posix()}", future=True)
    store = SqlMissionStore(engine, table_name="missions_test", primary_key="PK")
    store.create_schema()
    return store


@pytest.mark.parametrize("kind", ["memory", "sql"])
def test_put_then_get(kind, sql_store):
    store = MemoryMissionStore() if kind == "memory" else sql_store
    rec = MissionRecord(id="01abc", name="Apollo", description="moon")
    store.put(rec)
    assert store.get("01abc") == rec


@pytest.mark.parametrize("kind", ["memory", "sql"])
def test_get_missing_is_none(kind, sql_store):
    store = MemoryMissionStore() if kind == "memory" else sql_store
    assert store.get("nope") is None


@pytest.mark.parametrize("kind", ["memory", "sql"])
def test_put_existing_id_last_write_wins(kind, sql_store):
    store = MemoryMissionStore() if kind == "memory" else sql_store
    store.put(MissionRecord(id="dup", name="first", description="a"))
    store.put(MissionRecord(id="dup", name="second", description="b"))
    assert store.get("dup") == MissionRecord(id="dup", name="second", description="b")


def test_sql_table_and_key_names_come_from_config(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'named.db').as_posix()}", future=True)
    store = SqlMissionStore(engine, table_name="ops_missions", primary_key="mission_id")
    store.create_schema()
    store.put(MissionRecord(id="x1", name="n", description="d"))

    insp = inspect(engine)
    assert "ops_missions" in insp.get_table_names()
    cols = {c["name"] for c in insp.get_columns("ops_missions")}
    assert {"mission_id", "Name", "Description"} <= cols
    assert store.get("x1").name == "n"


def test_sql_backend_failure_is_store_error(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'empty.db').as_posix()}", future=True)
    # schema never created -> every call fails in the backend
    store = SqlMissionStore(engine, table_name="missing", primary_key="PK")
    with pytest.raises(StoreError):
        store.get("abc")
    with pytest.raises(StoreError):
        store.put(MissionRecord(id="abc", name="n", description="d"))


def test_store_error_does_not_leak_backend_detail(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'empty.db').as_posix()}", future=True)
    store = SqlMissionStore(engine, table_name="missing", primary_key="PK")
    with pytest.raises(StoreError) as exc:
        store.get("abc")
    assert exc.value.public_message == "internal error"
    assert "missing" not in exc.value.public_message


def test_build_store_memory_backend():
    class S:
        store_backend = "memory"

    assert isinstance(build_store(S()), MemoryMissionStore)


def test_build_store_rejects_unknown_backend():
    class S:
        store_backend = "cassandra"

    with pytest.raises(ValueError):
        build_store(S())
