"""Immutable per-building navigation graph.

Graph convention:
- Active landmarks of one building get dense indices, ordered by landmark id.
- Each active path yields a forward edge (from -> to) and, when bidirectional,
  a reverse edge (to -> from). Edges point back at their path by index; costs,
  flags and text are always read through the path.
- Adjacency is stored CSR-style: edges sorted by (source, target, path order)
  and `offsets[i]:offsets[i + 1]` selects the outgoing edges of node i.

Usage example:
    >>> graph = build_graph_model("B1", landmarks, paths)
    >>> graph.neighbors(graph.index_of("L1"))
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

import numpy as np

from wayfinding.errors import GraphInconsistency, InvalidReference
from wayfinding.records import Landmark, PathRecord

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """Which way an edge traverses its path."""

    FORWARD = "forward"
    REVERSE = "reverse"


FORWARD = Direction.FORWARD
REVERSE = Direction.REVERSE


@dataclass(frozen=True, slots=True)
class DirectedEdge:
    """One traversable direction of a path."""

    edge_index: int
    path_index: int
    source: int
    target: int
    direction: Direction

    def __post_init__(self) -> None:
        if not isinstance(self.direction, Direction):
            raise ValueError(f"direction must be a Direction, got {self.direction!r}")

    @property
    def is_forward(self) -> bool:
        return self.direction == FORWARD


class GraphModel:
    """Read-only weighted directed graph for one building snapshot."""

    def __init__(
        self,
        building_id: str,
        landmarks: Sequence[Landmark],
        paths: Sequence[PathRecord],
        edges: Sequence[DirectedEdge],
        issues: Sequence[GraphInconsistency] = (),
        version: int = 0,
    ) -> None:
        self.building_id = building_id
        self.version = version
        self.issues: tuple[GraphInconsistency, ...] = tuple(issues)
        self._landmarks: tuple[Landmark, ...] = tuple(landmarks)
        self._paths: tuple[PathRecord, ...] = tuple(paths)
        self._edges: tuple[DirectedEdge, ...] = tuple(edges)
        self._index: dict[str, int] = {lm.landmark_id: i for i, lm in enumerate(self._landmarks)}

        n = len(self._landmarks)
        sources = np.fromiter((e.source for e in self._edges), dtype=np.int64, count=len(self._edges))
        self.offsets = np.zeros(n + 1, dtype=np.int64)
        if sources.size:
            self.offsets[1:] = np.cumsum(np.bincount(sources, minlength=n))
        self.edge_targets = np.fromiter((e.target for e in self._edges), dtype=np.int64, count=len(self._edges))
        self.coords = np.array([(lm.x, lm.y) for lm in self._landmarks], dtype=np.float64).reshape(n, 2)
        self.floors: tuple[str, ...] = tuple(lm.floor for lm in self._landmarks)

        self._adjacency: tuple[tuple[tuple[int, DirectedEdge], ...], ...] = tuple(
            tuple((edge.target, edge) for edge in self._edges[self.offsets[i] : self.offsets[i + 1]])
            for i in range(n)
        )
        self.heuristic_scale = self._compute_heuristic_scale()
        # Nodes with at least one outgoing edge to another floor.
        self.portals = np.zeros(n, dtype=bool)
        for edge in self._edges:
            if self.floors[edge.source] != self.floors[edge.target]:
                self.portals[edge.source] = True

    @property
    def node_count(self) -> int:
        return len(self._landmarks)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def index_of(self, landmark_id: str, role: str = "landmark") -> int:
        """Return dense node index or raise `InvalidReference`."""
        try:
            return self._index[landmark_id]
        except KeyError:
            raise InvalidReference(self.building_id, landmark_id, role) from None

    def has_landmark(self, landmark_id: str) -> bool:
        return landmark_id in self._index

    def landmark(self, index: int) -> Landmark:
        return self._landmarks[index]

    def edge(self, edge_index: int) -> DirectedEdge:
        return self._edges[edge_index]

    def path(self, edge: DirectedEdge) -> PathRecord:
        return self._paths[edge.path_index]

    def neighbors(self, index: int) -> tuple[tuple[int, DirectedEdge], ...]:
        """Outgoing `(target_index, edge)` pairs in ascending target/edge order."""
        return self._adjacency[index]

    def same_floor(self, a: int, b: int) -> bool:
        return self.floors[a] == self.floors[b]

    def planar_distance(self, a: int, b: int) -> float:
        """Straight-line distance between two nodes on the same floor."""
        if not self.same_floor(a, b):
            raise ValueError("Planar distance is undefined across floors")
        dx, dy = self.coords[a] - self.coords[b]
        return float(math.hypot(dx, dy))

    def instruction(self, edge: DirectedEdge) -> str:
        """Direction-specific instruction text for one edge."""
        path = self._paths[edge.path_index]
        if edge.is_forward:
            return path.instructions
        return path.reverse_instructions or f"Return via: {path.instructions}"

    def connections(self, landmark_id: str) -> list[dict[str, Any]]:
        """Describe every outgoing edge of one landmark."""
        index = self.index_of(landmark_id)
        out: list[dict[str, Any]] = []
        for target, edge in self.neighbors(index):
            path = self.path(edge)
            other = self._landmarks[target]
            out.append(
                {
                    "landmark_id": other.landmark_id,
                    "name": other.name,
                    "floor": other.floor,
                    "type": other.landmark_type,
                    "path_id": path.path_id,
                    "direction": edge.direction.value,
                    "distance": path.distance,
                    "estimated_time": path.estimated_time,
                    "difficulty": path.difficulty,
                    "instructions": self.instruction(edge),
                    "accessibility": {
                        "wheelchair_accessible": path.wheelchair_accessible,
                        "requires_elevator": path.requires_elevator,
                        "requires_stairs": path.requires_stairs,
                    },
                }
            )
        return out

    def _compute_heuristic_scale(self) -> float:
        """Largest factor k such that k * planar length never exceeds a same-floor edge distance."""
        if not self._edges:
            return 1.0
        src = np.fromiter((e.source for e in self._edges), dtype=np.int64, count=len(self._edges))
        dst = self.edge_targets
        floors = np.asarray(self.floors, dtype=object)
        same = floors[src] == floors[dst]
        lengths = np.hypot(*(self.coords[src] - self.coords[dst]).T)
        mask = same & (lengths > 0)
        if not np.any(mask):
            return 1.0
        distances = np.fromiter(
            (self._paths[e.path_index].distance for e in self._edges), dtype=np.float64, count=len(self._edges)
        )
        return float(min(1.0, np.min(distances[mask] / lengths[mask])))


def _skip(issues: list[GraphInconsistency], kind: str, path: PathRecord, message: str, landmark_id: str | None = None) -> None:
    issue = GraphInconsistency(kind=kind, path_id=path.path_id, landmark_id=landmark_id, message=message)
    logger.warning("Skipping path %s: %s", path.path_id, message)
    issues.append(issue)


def _endpoint_problem(
    landmark_id: str,
    building_id: str,
    known: dict[str, Landmark],
) -> tuple[str, str] | None:
    landmark = known.get(landmark_id)
    if landmark is None:
        return "missing_landmark", f"landmark {landmark_id!r} does not exist"
    if landmark.building_id != building_id:
        return "cross_building", f"landmark {landmark_id!r} belongs to building {landmark.building_id!r}"
    if not landmark.is_active:
        return "inactive_landmark", f"landmark {landmark_id!r} is inactive"
    return None


def build_graph_model(
    building_id: str,
    landmarks: Iterable[Landmark],
    paths: Iterable[PathRecord],
    version: int = 0,
) -> GraphModel:
    """Build a graph snapshot from one building's records.

    Args:
        building_id: Building whose graph is built.
        landmarks: Landmark records; other buildings' and inactive ones are
            used only to classify broken path references.
        paths: Path records; inactive paths are ignored.
        version: Snapshot version stamped on the result.

    Returns:
        GraphModel with any skipped paths listed in `issues`.
    """
    known: dict[str, Landmark] = {}
    for landmark in landmarks:
        known[landmark.landmark_id] = landmark

    nodes = sorted(
        (lm for lm in known.values() if lm.building_id == building_id and lm.is_active),
        key=lambda lm: lm.landmark_id,
    )
    index = {lm.landmark_id: i for i, lm in enumerate(nodes)}

    issues: list[GraphInconsistency] = []
    kept: list[PathRecord] = []
    for path in sorted(paths, key=lambda p: p.path_id):
        if not path.is_active:
            continue

        problem = None
        for endpoint in (path.from_id, path.to_id):
            found = _endpoint_problem(endpoint, building_id, known)
            if found is not None:
                problem = (found[0], found[1], endpoint)
                break
        if problem is not None:
            _skip(issues, problem[0], path, problem[1], problem[2])
            continue

        if path.from_id == path.to_id:
            _skip(issues, "self_loop", path, "path starts and ends at the same landmark", path.from_id)
            continue
        if not (path.distance > 0 and path.estimated_time > 0):
            _skip(issues, "non_positive_cost", path, "distance and estimatedTime must be > 0")
            continue

        kept.append(path)

    raw_edges: list[tuple[int, int, int, Direction]] = []
    for path_index, path in enumerate(kept):
        a, b = index[path.from_id], index[path.to_id]
        raw_edges.append((a, b, path_index, FORWARD))
        if path.is_bidirectional:
            raw_edges.append((b, a, path_index, REVERSE))

    raw_edges.sort(key=lambda item: (item[0], item[1], item[2], item[3] != FORWARD))
    edges = [
        DirectedEdge(edge_index=i, path_index=p, source=s, target=t, direction=d)
        for i, (s, t, p, d) in enumerate(raw_edges)
    ]

    graph = GraphModel(building_id, nodes, kept, edges, issues=issues, version=version)
    logger.info(
        "Built graph for building %s (v%d): %d nodes, %d edges, %d skipped paths",
        building_id,
        version,
        graph.node_count,
        graph.edge_count,
        len(issues),
    )
    return graph
