"""Landmark and path records consumed from the persistence collaborator.

Records arrive as mappings in the stored document shape, e.g.::

    {"_id": "L1", "building": "B1", "floor": "1", "name": "Lobby",
     "coordinates": {"x": 0, "y": 0}, "type": "entrance",
     "accessibility": {"wheelchairAccessible": True}, "isActive": True}

and are parsed into frozen dataclasses before any graph is built.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol

LANDMARK_TYPES = ("room", "entrance", "elevator", "stairs", "restroom", "emergency_exit", "facility", "other")
DIFFICULTY_LEVELS = {"easy": 1, "medium": 2, "hard": 3}


@dataclass(frozen=True, slots=True)
class Landmark:
    """Navigable point of interest; one graph node."""

    landmark_id: str
    building_id: str
    floor: str
    x: float
    y: float
    landmark_type: str = "other"
    name: str = ""
    room_number: str | None = None
    wheelchair_accessible: bool = False
    visual_aid_friendly: bool = False
    hearing_aid_friendly: bool = False
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class PathRecord:
    """Connection between two landmarks; source of one or two directed edges."""

    path_id: str
    from_id: str
    to_id: str
    distance: float
    estimated_time: float
    instructions: str
    reverse_instructions: str | None = None
    difficulty: str = "easy"
    wheelchair_accessible: bool = True
    requires_elevator: bool = False
    requires_stairs: bool = False
    is_bidirectional: bool = True
    is_active: bool = True


def _record_id(raw: Mapping[str, Any], kind: str) -> str:
    value = raw.get("_id", raw.get("id"))
    if value is None or str(value) == "":
        raise ValueError(f"{kind} record must include an id")
    return str(value)


def _require(raw: Mapping[str, Any], keys: Iterable[str], label: str) -> None:
    missing = [key for key in keys if key not in raw]
    if missing:
        raise ValueError(f"{label} is missing required fields: {', '.join(missing)}")


def parse_landmark(raw: Mapping[str, Any]) -> Landmark:
    """Parse one landmark mapping into a `Landmark`."""
    landmark_id = _record_id(raw, "Landmark")
    label = f"Landmark {landmark_id!r}"
    _require(raw, ("building", "floor", "coordinates"), label)

    coords = raw["coordinates"]
    if not isinstance(coords, Mapping) or "x" not in coords or "y" not in coords:
        raise ValueError(f"{label}.coordinates must be an object with x and y")

    landmark_type = str(raw.get("type", "other"))
    if landmark_type not in LANDMARK_TYPES:
        raise ValueError(f"{label}.type must be one of {', '.join(LANDMARK_TYPES)}")

    access = raw.get("accessibility") or {}
    room_number = raw.get("roomNumber")
    return Landmark(
        landmark_id=landmark_id,
        building_id=str(raw["building"]),
        floor=str(raw["floor"]),
        x=float(coords["x"]),
        y=float(coords["y"]),
        landmark_type=landmark_type,
        name=str(raw.get("name", landmark_id)),
        room_number=str(room_number) if room_number is not None else None,
        wheelchair_accessible=bool(access.get("wheelchairAccessible", False)),
        visual_aid_friendly=bool(access.get("visualAidFriendly", False)),
        hearing_aid_friendly=bool(access.get("hearingAidFriendly", False)),
        is_active=bool(raw.get("isActive", True)),
    )


def parse_path(raw: Mapping[str, Any]) -> PathRecord:
    """Parse one path mapping into a `PathRecord`.

    Cost positivity is not checked here; the graph builder reports such paths
    as inconsistencies instead of rejecting the whole batch.
    """
    path_id = _record_id(raw, "Path")
    label = f"Path {path_id!r}"
    _require(raw, ("from", "to", "distance", "estimatedTime", "instructions"), label)

    difficulty = str(raw.get("difficulty", "easy"))
    if difficulty not in DIFFICULTY_LEVELS:
        raise ValueError(f"{label}.difficulty must be one of easy, medium, hard")

    instructions = str(raw["instructions"]).strip()
    if not instructions:
        raise ValueError(f"{label}.instructions must not be empty")

    reverse = raw.get("reverseInstructions")
    reverse = str(reverse).strip() if reverse is not None else None

    access = raw.get("accessibility") or {}
    return PathRecord(
        path_id=path_id,
        from_id=str(raw["from"]),
        to_id=str(raw["to"]),
        distance=float(raw["distance"]),
        estimated_time=float(raw["estimatedTime"]),
        instructions=instructions,
        reverse_instructions=reverse or None,
        difficulty=difficulty,
        wheelchair_accessible=bool(access.get("wheelchairAccessible", True)),
        requires_elevator=bool(access.get("requiresElevator", False)),
        requires_stairs=bool(access.get("requiresStairs", False)),
        is_bidirectional=bool(raw.get("isBidirectional", True)),
        is_active=bool(raw.get("isActive", True)),
    )


class RecordSource(Protocol):
    """Read-only view of the persistence collaborator."""

    def fetch(self, building_id: str) -> tuple[list[Landmark], list[PathRecord]]:
        ...


class InMemoryRecordSource:
    """Record source backed by per-building lists, replaced wholesale on write."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, tuple[tuple[Landmark, ...], tuple[PathRecord, ...]]] = {}

    def replace(
        self,
        building_id: str,
        landmarks: Iterable[Landmark],
        paths: Iterable[PathRecord],
    ) -> None:
        """Store a new record set for one building."""
        snapshot = (tuple(landmarks), tuple(paths))
        with self._lock:
            self._records[building_id] = snapshot

    def load_raw(
        self,
        building_id: str,
        landmarks: Iterable[Mapping[str, Any]],
        paths: Iterable[Mapping[str, Any]],
    ) -> None:
        """Parse and store raw mappings for one building."""
        self.replace(
            building_id,
            [parse_landmark(item) for item in landmarks],
            [parse_path(item) for item in paths],
        )

    def has_building(self, building_id: str) -> bool:
        with self._lock:
            return building_id in self._records

    def fetch(self, building_id: str) -> tuple[list[Landmark], list[PathRecord]]:
        with self._lock:
            landmarks, paths = self._records.get(building_id, ((), ()))
        return list(landmarks), list(paths)
