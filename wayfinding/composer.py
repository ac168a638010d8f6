"""Turn a winning edge sequence into ordered, human-readable route steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from wayfinding.graph_model import GraphModel
from wayfinding.pathfinding import SearchResult
from wayfinding.preferences import PreferenceProfile

ARRIVED_INSTRUCTION = "You are already at your destination!"


@dataclass(frozen=True, slots=True)
class RouteStep:
    """One traversed directed edge."""

    step_number: int
    instruction: str
    distance: float
    estimated_time: float
    from_landmark: str
    to_landmark: str
    from_floor: str
    to_floor: str
    difficulty: str = "easy"
    path_id: str | None = None

    @property
    def floor_change(self) -> bool:
        return self.from_floor != self.to_floor

    def to_dict(self) -> dict[str, Any]:
        return {
            "stepNumber": self.step_number,
            "instruction": self.instruction,
            "distance": self.distance,
            "estimatedTime": self.estimated_time,
            "fromLandmark": self.from_landmark,
            "toLandmark": self.to_landmark,
            "fromFloor": self.from_floor,
            "toFloor": self.to_floor,
            "floorChange": self.floor_change,
            "difficulty": self.difficulty,
            "pathId": self.path_id,
        }


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Composed route; `reachable=False` results carry no steps."""

    reachable: bool
    building_id: str
    from_landmark: str
    to_landmark: str
    preferences: PreferenceProfile
    steps: tuple[RouteStep, ...] = field(default_factory=tuple)
    total_distance: float = 0.0
    total_estimated_time: float = 0.0
    algorithm: str = "dijkstra"
    graph_version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "reachable": self.reachable,
            "building": self.building_id,
            "from": self.from_landmark,
            "to": self.to_landmark,
            "steps": [step.to_dict() for step in self.steps],
            "totalDistance": self.total_distance,
            "totalEstimatedTime": self.total_estimated_time,
            "preferences": self.preferences.to_dict(),
            "algorithm": self.algorithm,
            "graphVersion": self.graph_version,
        }


def compose_route(
    graph: GraphModel,
    search: SearchResult,
    from_id: str,
    to_id: str,
    preferences: PreferenceProfile,
) -> RouteResult:
    """Build a RouteResult from a search outcome.

    Steps follow traversal order exactly; consecutive edges are never merged.
    """
    common = {
        "building_id": graph.building_id,
        "from_landmark": from_id,
        "to_landmark": to_id,
        "preferences": preferences,
        "algorithm": search.algorithm,
        "graph_version": graph.version,
    }

    if not search.reachable:
        return RouteResult(reachable=False, **common)

    if not search.edges:
        floor = graph.landmark(graph.index_of(from_id)).floor
        arrived = RouteStep(
            step_number=1,
            instruction=ARRIVED_INSTRUCTION,
            distance=0.0,
            estimated_time=0.0,
            from_landmark=from_id,
            to_landmark=to_id,
            from_floor=floor,
            to_floor=floor,
        )
        return RouteResult(reachable=True, steps=(arrived,), **common)

    steps: list[RouteStep] = []
    for number, edge in enumerate(search.edges, start=1):
        path = graph.path(edge)
        origin = graph.landmark(edge.source)
        target = graph.landmark(edge.target)
        steps.append(
            RouteStep(
                step_number=number,
                instruction=graph.instruction(edge),
                distance=path.distance,
                estimated_time=path.estimated_time,
                from_landmark=origin.landmark_id,
                to_landmark=target.landmark_id,
                from_floor=origin.floor,
                to_floor=target.floor,
                difficulty=path.difficulty,
                path_id=path.path_id,
            )
        )

    return RouteResult(
        reachable=True,
        steps=tuple(steps),
        total_distance=sum(step.distance for step in steps),
        total_estimated_time=sum(step.estimated_time for step in steps),
        **common,
    )
