from __future__ import annotations

from typing import Iterable

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from missiondir.db_models import ApiKey, Base, hash_api_key


def _prefix(raw_key: str) -> str:
    # everything before first '_' + '_', fallback first 8 chars + '_'
    if "_" in raw_key:
        return raw_key.split("_", 1)[0] + "_"
    return raw_key[:8] + "_"


def insert_api_key(
    engine: Engine,
    *,
    name: str | None,
    raw_key: str,
    scopes: Iterable[str] | str,
    enabled: bool = True,
) -> dict:
    """
    Store a bearer token (hashed) with its scope list.

    Returns: dict of the inserted row without the raw key.
    """
    raw_key = str(raw_key).strip()
    if not raw_key:
        raise ValueError("raw_key cannot be empty")

    if isinstance(scopes, str):
        scopes_csv = ",".join(s.strip() for s in scopes.split(",") if s.strip())
    else:
        scopes_csv = ",".join(sorted({str(s).strip() for s in scopes if s and str(s).strip()}))

    Base.metadata.create_all(bind=engine, tables=[ApiKey.__table__])

    row = ApiKey(
        name=name or "default",
        prefix=_prefix(raw_key),
        key_hash=hash_api_key(raw_key),
        scopes_csv=scopes_csv,
        enabled=enabled,
    )
    with Session(engine) as db:
        db.add(row)
        db.commit()
        return {
            "id": row.id,
            "name": row.name,
            "prefix": row.prefix,
            "key_hash": row.key_hash,
            "scopes_csv": row.scopes_csv,
            "enabled": row.enabled,
        }


def lookup_scopes(db: Session, raw_key: str) -> set[str] | None:
    """Scopes granted to an enabled key, or None when the key is unknown."""
    row = (
        db.query(ApiKey)
        .filter(ApiKey.key_hash == hash_api_key(raw_key))
        .filter(ApiKey.enabled.is_(True))
        .first()
    )
    if row is None:
        return None
    return {s.strip() for s in (row.scopes_csv or "").split(",") if s.strip()}
