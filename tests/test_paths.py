import importlib

from missiondir.config import Settings


def test_state_dir_env_override(tmp_path, monkeypatch):
    st = tmp_path / "state"
    monkeypatch.setenv("MD_STATE_DIR", str(st))

    import missiondir.config.paths as paths
    importlib.reload(paths)

    paths.ensure_runtime_dirs()

    assert st.exists() and st.is_dir()
    assert Settings().state_dir == st.resolve()


def test_sqlite_fallback_lives_under_state_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MD_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("MD_DB_URL", raising=False)

    import missiondir.config.paths as paths
    importlib.reload(paths)

    url = Settings().sql_url()
    assert url.startswith("sqlite:///")
    assert url.endswith(f"{tmp_path.resolve().as_posix()}/missiondir.sqlite3")


def test_db_url_wins_over_state_dir(monkeypatch):
    monkeypatch.setenv("MD_DB_URL", "postgresql+psycopg://db:5432/missions")
    assert Settings().sql_url() == "postgresql+psycopg://db:5432/missions"


def test_store_config_defaults(monkeypatch):
    monkeypatch.delenv("MD_TABLE_NAME", raising=False)
    monkeypatch.delenv("MD_PRIMARY_KEY", raising=False)
    s = Settings()
    assert s.table_name == "missions"
    assert s.primary_key == "PK"
