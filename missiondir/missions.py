"""Mission operations: create and fetch-by-id."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from missiondir import ids
from missiondir.errors import ValidationError
from missiondir.models import CreatedMission, MissionRecord
from missiondir.store import MissionStore

log = logging.getLogger("missiondir.missions")


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return str(value)


class MissionService:
    def __init__(self, store: MissionStore, *, generate_id: Callable[[], str] = ids.generate) -> None:
        self.store = store
        self.generate_id = generate_id

    def create_mission(self, name: Optional[str], description: Optional[str]) -> CreatedMission:
        """
        Mint an id and write one new record. Not idempotent: identical
        inputs produce distinct records.
        """
        name = _require_text(name, "name")
        description = _require_text(description, "description")

        mission_id = self.generate_id()
        created_at_ms = ids.timestamp_of(mission_id)
        self.store.put(MissionRecord(id=mission_id, name=name, description=description))
        log.info("created mission id=%s created_at_ms=%s", mission_id, created_at_ms)
        return CreatedMission(id=mission_id, name=name)

    def get_mission(self, mission_id: Optional[str]) -> Optional[MissionRecord]:
        """Exact-id lookup. None means the mission does not exist."""
        mission_id = _require_text(mission_id, "id")
        record = self.store.get(mission_id)
        if record is None:
            log.info("mission not found id=%s", mission_id)
        return record
