"""Pytest global fixtures and test isolation hooks."""

from __future__ import annotations

from typing import Any

import pytest

from wayfinding.api import STATE
from wayfinding.records import InMemoryRecordSource, Landmark, PathRecord


@pytest.fixture(autouse=True)
def reset_api_state() -> None:
    """Reset in-memory API state before each test."""
    STATE.records = InMemoryRecordSource()
    STATE.service = None


def make_landmark(landmark_id: str, floor: str = "1", x: float = 0.0, y: float = 0.0, **kwargs: Any) -> Landmark:
    kwargs.setdefault("building_id", "B1")
    kwargs.setdefault("name", landmark_id)
    return Landmark(landmark_id=landmark_id, floor=floor, x=x, y=y, **kwargs)


def make_path(path_id: str, from_id: str, to_id: str, distance: float = 10.0, **kwargs: Any) -> PathRecord:
    kwargs.setdefault("estimated_time", distance)
    kwargs.setdefault("instructions", f"Walk from {from_id} to {to_id}")
    return PathRecord(path_id=path_id, from_id=from_id, to_id=to_id, distance=distance, **kwargs)


@pytest.fixture()
def landmark() -> Any:
    """Factory for landmarks in building B1."""
    return make_landmark


@pytest.fixture()
def path() -> Any:
    """Factory for path records; time defaults to distance."""
    return make_path


@pytest.fixture()
def scenario_records() -> tuple[list[Landmark], list[PathRecord]]:
    """L1 <-> L2 corridor on floor 1, stairs-only L2 <-> L3 to floor 2."""
    landmarks = [
        make_landmark("L1", "1", 0.0, 0.0),
        make_landmark("L2", "1", 10.0, 0.0),
        make_landmark("L3", "2", 10.0, 0.0, landmark_type="stairs"),
    ]
    paths = [
        make_path("P1", "L1", "L2", 10.0, instructions="Walk east 10m", wheelchair_accessible=True),
        make_path(
            "P2",
            "L2",
            "L3",
            6.0,
            estimated_time=20.0,
            instructions="Take the stairs up one floor",
            requires_stairs=True,
            wheelchair_accessible=False,
        ),
    ]
    return landmarks, paths


@pytest.fixture()
def raw_building() -> dict[str, list[dict[str, Any]]]:
    """Record set in the stored document shape used by the API."""
    return {
        "landmarks": [
            {"_id": "L1", "building": "B1", "floor": "1", "name": "Lobby", "type": "entrance",
             "coordinates": {"x": 0, "y": 0}},
            {"_id": "L2", "building": "B1", "floor": "1", "name": "Hall", "type": "room",
             "coordinates": {"x": 10, "y": 0}},
            {"_id": "L3", "building": "B1", "floor": "2", "name": "Library", "type": "room",
             "coordinates": {"x": 10, "y": 0}},
        ],
        "paths": [
            {"_id": "P1", "from": "L1", "to": "L2", "distance": 10, "estimatedTime": 10,
             "instructions": "Walk east 10m", "accessibility": {"wheelchairAccessible": True}},
            {"_id": "P2", "from": "L2", "to": "L3", "distance": 6, "estimatedTime": 20,
             "instructions": "Take the stairs up one floor",
             "accessibility": {"wheelchairAccessible": False, "requiresStairs": True}},
        ],
    }
