import os
import secrets
from datetime import datetime, timezone

from sqlalchemy import create_engine

from missiondir.api_keys_store import insert_api_key
from missiondir.config import get_settings
from missiondir.config.paths import ensure_runtime_dirs


def utcnow():
    return datetime.now(timezone.utc)


def main():
    prefix = os.getenv("MD_MINT_PREFIX", "PERSONNEL").strip().upper()
    # personnel tokens get "read", admin tokens "*"
    scopes = os.getenv("MD_MINT_SCOPES", "read").strip()
    name = os.getenv("MD_MINT_NAME", f"{prefix.lower()}-{utcnow().isoformat()}").strip()

    if not prefix:
        raise SystemExit("MD_MINT_PREFIX cannot be empty")
    if not scopes:
        raise SystemExit("MD_MINT_SCOPES cannot be empty")

    raw = f"{prefix}_" + secrets.token_urlsafe(32)

    settings = get_settings()
    if not settings.db_url:
        ensure_runtime_dirs()

    engine = create_engine(settings.sql_url())

    insert_api_key(
        engine,
        name=name,
        raw_key=raw,
        scopes=scopes,
        enabled=True,
    )

    print(raw)  # print only once


if __name__ == "__main__":
    main()
