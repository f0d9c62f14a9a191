# missiondir/db.py
from __future__ import annotations

from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from missiondir.config import get_settings
from missiondir.db_models import Base


_ENGINE: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _db_url() -> str:
    settings = get_settings()
    if not settings.db_url:
        # sqlite fallback lives under the state dir
        settings.state_dir.mkdir(parents=True, exist_ok=True)
    return settings.sql_url()


def get_engine() -> Engine:
    global _ENGINE, _SessionLocal
    if _ENGINE is None:
        url = _db_url()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _ENGINE = create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)
    return _ENGINE


def init_db() -> None:
    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    global _SessionLocal
    if _SessionLocal is None:
        get_engine()
    assert _SessionLocal is not None
    db: Session = _SessionLocal()
    try:
        yield db
    finally:
        db.close()
