"""Preference profiles mapped to edge eligibility and weight selection."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

from wayfinding.records import DIFFICULTY_LEVELS, PathRecord

EdgePredicate = Callable[[PathRecord], bool]
WeightSelector = Callable[[PathRecord], float]


@dataclass(frozen=True, slots=True)
class PreferenceProfile:
    """Caller-supplied routing constraints and objective."""

    avoid_stairs: bool = False
    wheelchair_accessible: bool = False
    shortest_distance: bool = True
    avoid_elevators: bool = False
    max_difficulty: str | None = None

    def __post_init__(self) -> None:
        if self.max_difficulty is not None and self.max_difficulty not in DIFFICULTY_LEVELS:
            raise ValueError("max_difficulty must be one of easy, medium, hard")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def distance_weight(path: PathRecord) -> float:
    return path.distance


def time_weight(path: PathRecord) -> float:
    return path.estimated_time


@dataclass(frozen=True, slots=True)
class EdgePolicy:
    """Eligibility predicate plus weight selector derived from one profile."""

    profile: PreferenceProfile
    is_eligible: EdgePredicate
    weight: WeightSelector

    @property
    def weight_is_distance(self) -> bool:
        return self.weight is distance_weight


def evaluate(profile: PreferenceProfile | None = None) -> EdgePolicy:
    """Translate a preference profile into an `EdgePolicy`.

    The default profile accepts every edge and optimizes distance.
    """
    profile = profile or PreferenceProfile()
    limit = DIFFICULTY_LEVELS[profile.max_difficulty] if profile.max_difficulty else None

    def is_eligible(path: PathRecord) -> bool:
        if profile.avoid_stairs and path.requires_stairs:
            return False
        if profile.wheelchair_accessible and not path.wheelchair_accessible:
            return False
        if profile.avoid_elevators and path.requires_elevator:
            return False
        if limit is not None and DIFFICULTY_LEVELS[path.difficulty] > limit:
            return False
        return True

    weight = distance_weight if profile.shortest_distance else time_weight
    return EdgePolicy(profile=profile, is_eligible=is_eligible, weight=weight)
