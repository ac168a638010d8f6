"""Constrained shortest-path search over a building graph.

Purpose:
- Dijkstra over eligible edges with a pluggable weight selector.
- Optional A* with a planar heuristic that is only active on the
  destination's floor.
- Deterministic ties: fewer edges first, then the lexicographically smallest
  landmark-index sequence, then the smallest edge-index sequence.

Usage example:
    >>> from wayfinding.preferences import evaluate
    >>> result = find_route(graph, "L1", "L3", evaluate())
    >>> result.reachable, [e.target for e in result.edges]
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from wayfinding.errors import SearchCancelled, SearchTimeout
from wayfinding.graph_model import DirectedEdge, GraphModel
from wayfinding.preferences import EdgePolicy

logger = logging.getLogger(__name__)

ALGORITHMS = ("dijkstra", "astar")

# Weights are compared at this many decimal places so that equal decimal
# totals such as 0.1 + 0.2 and 0.15 + 0.15 tie and fall through to the
# edge-count and sequence tie-breaks.
WEIGHT_DIGITS = 9

# (rounded accumulated weight, edge count, node sequence, edge sequence)
Label = tuple[float, int, tuple[int, ...], tuple[int, ...]]


def _weight_key(weight: float) -> float:
    return round(weight, WEIGHT_DIGITS)


@dataclass(slots=True)
class SearchResult:
    """Outcome of one search; `edges` is empty when unreachable or source == goal."""

    reachable: bool
    edges: list[DirectedEdge] = field(default_factory=list)
    total_weight: float = 0.0
    expanded: int = 0
    algorithm: str = "dijkstra"


def _heuristic(graph: GraphModel, goal: int, policy: EdgePolicy, enabled: bool) -> Callable[[int], float]:
    """Lower bound on the remaining distance, zero off the goal's floor.

    A route from a goal-floor node either stays on the floor until the goal or
    first reaches a node with an edge to another floor, so the estimate is the
    scaled planar distance to the nearest of the goal and those exit nodes.

    Planar units only bound distance weights, so any other objective gets the
    zero heuristic and the search is plain Dijkstra.
    """
    if not enabled or not policy.weight_is_distance or graph.node_count == 0:
        return lambda node: 0.0

    goal_floor = graph.floors[goal]
    on_floor = np.fromiter((f == goal_floor for f in graph.floors), dtype=bool, count=graph.node_count)
    anchors = graph.coords[on_floor & graph.portals]
    anchors = np.vstack([graph.coords[goal][np.newaxis, :], anchors])

    delta = graph.coords[:, np.newaxis, :] - anchors[np.newaxis, :, :]
    estimates = np.hypot(delta[..., 0], delta[..., 1]).min(axis=1) * graph.heuristic_scale
    estimates[~on_floor] = 0.0
    values = estimates.tolist()
    return values.__getitem__


def shortest_edge_path(
    graph: GraphModel,
    source: int,
    goal: int,
    policy: EdgePolicy,
    *,
    use_heuristic: bool = False,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SearchResult:
    """Find the minimum-weight eligible edge sequence from `source` to `goal`.

    Args:
        graph: Graph snapshot to search; never mutated.
        source: Source node index.
        goal: Destination node index.
        policy: Edge eligibility and weight selection.
        use_heuristic: Enable A* ordering.
        cancel: Checked once per queue pop; when set the search stops.
        deadline: `time.monotonic()` value after which the search stops.

    Returns:
        SearchResult, with `reachable=False` when no eligible path exists.

    Raises:
        ValueError: If an index is outside the graph.
        SearchCancelled: If `cancel` was set.
        SearchTimeout: If `deadline` passed.
    """
    n = graph.node_count
    if not 0 <= source < n:
        raise ValueError("Source is out of graph bounds")
    if not 0 <= goal < n:
        raise ValueError("Goal is out of graph bounds")

    algorithm = "astar" if use_heuristic else "dijkstra"
    h = _heuristic(graph, goal, policy, use_heuristic)

    start: Label = (0.0, 0, (source,), ())
    best: dict[int, Label] = {source: start}
    open_heap: list[tuple[float, int, tuple[int, ...], tuple[int, ...], float, int]] = []
    heapq.heappush(open_heap, (_weight_key(h(source)), 0, (source,), (), 0.0, source))
    expanded = 0

    while open_heap:
        if cancel is not None and cancel.is_set():
            raise SearchCancelled("Route search was cancelled")
        if deadline is not None and time.monotonic() > deadline:
            raise SearchTimeout("Route search exceeded its deadline")

        _, hops, seq, edge_seq, g, current = heapq.heappop(open_heap)
        if (_weight_key(g), hops, seq, edge_seq) != best[current]:
            continue
        expanded += 1

        if current == goal:
            return SearchResult(
                reachable=True,
                edges=[graph.edge(i) for i in edge_seq],
                total_weight=g,
                expanded=expanded,
                algorithm=algorithm,
            )

        for target, edge in graph.neighbors(current):
            path = graph.path(edge)
            if not policy.is_eligible(path):
                continue

            cost = g + policy.weight(path)
            candidate: Label = (_weight_key(cost), hops + 1, seq + (target,), edge_seq + (edge.edge_index,))
            known = best.get(target)
            if known is None or candidate < known:
                best[target] = candidate
                heapq.heappush(
                    open_heap,
                    (_weight_key(cost + h(target)), candidate[1], candidate[2], candidate[3], cost, target),
                )

    return SearchResult(reachable=False, expanded=expanded, algorithm=algorithm)


def find_route(
    graph: GraphModel,
    from_id: str,
    to_id: str,
    policy: EdgePolicy,
    *,
    algorithm: str = "dijkstra",
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> SearchResult:
    """Resolve landmark ids and run the search.

    Raises:
        InvalidReference: If either landmark is not an active node of the graph.
        ValueError: If `algorithm` is unknown.
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"algorithm must be one of {', '.join(ALGORITHMS)}")

    source = graph.index_of(from_id, role="from")
    goal = graph.index_of(to_id, role="to")

    result = shortest_edge_path(
        graph,
        source,
        goal,
        policy,
        use_heuristic=algorithm == "astar",
        cancel=cancel,
        deadline=deadline,
    )
    if not result.reachable:
        logger.info(
            "No route in building %s from %s to %s under %s",
            graph.building_id,
            from_id,
            to_id,
            policy.profile,
        )
    return result
