# missiondir/db_models.py
from __future__ import annotations

import hashlib
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def hash_api_key(api_key: str) -> str:
    # Stable hashing for lookup.
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


class ApiKey(Base):
    """Bearer tokens issued to callers, stored hashed, with their scopes."""

    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False, default="default")
    prefix = Column(String(64), nullable=False, index=True)
    key_hash = Column(String(64), nullable=False, unique=True, index=True)
    scopes_csv = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


def missions_table(metadata: MetaData, table_name: str, primary_key: str) -> Table:
    """
    Missions live in a table whose name and key column are deployment config.
    Attribute names match the DynamoDB item layout (Name / Description).
    """
    return Table(
        table_name,
        metadata,
        Column(primary_key, String(26), primary_key=True),
        Column("Name", Text, nullable=False),
        Column("Description", Text, nullable=False),
        Column(
            "CreatedAt",
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
        ),
    )
