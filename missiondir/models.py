from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MissionRecord:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class CreatedMission:
    id: str
    name: str
