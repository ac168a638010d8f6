"""Unit tests for wayfinding.graph_model."""

from __future__ import annotations

import logging

import pytest

from wayfinding.errors import InvalidReference
from wayfinding.graph_model import FORWARD, REVERSE, DirectedEdge, Direction, build_graph_model


def test_bidirectional_path_yields_two_edges(scenario_records) -> None:
    """Each bidirectional path should produce one edge per direction."""
    landmarks, paths = scenario_records
    graph = build_graph_model("B1", landmarks, paths)

    assert graph.node_count == 3
    assert graph.edge_count == 4

    l1, l2 = graph.index_of("L1"), graph.index_of("L2")
    (target, edge), = graph.neighbors(l1)
    assert target == l2
    assert edge.direction == FORWARD
    assert any(e.direction == REVERSE and t == l1 for t, e in graph.neighbors(l2))


def test_edge_direction_is_a_checked_tag(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    assert {e.direction for _, e in graph.neighbors(graph.index_of("L2"))} == {Direction.FORWARD, Direction.REVERSE}
    assert {c["direction"] for c in graph.connections("L2")} == {"forward", "reverse"}

    with pytest.raises(ValueError, match="direction"):
        DirectedEdge(edge_index=0, path_index=0, source=0, target=1, direction="sideways")


def test_one_way_path_yields_single_edge(landmark, path) -> None:
    graph = build_graph_model(
        "B1",
        [landmark("A"), landmark("B", x=5.0)],
        [path("P1", "A", "B", 5.0, is_bidirectional=False)],
    )

    assert graph.edge_count == 1
    assert graph.neighbors(graph.index_of("B")) == ()


def test_reverse_instruction_prefers_explicit_text(landmark, path) -> None:
    graph = build_graph_model(
        "B1",
        [landmark("A"), landmark("B", x=5.0), landmark("C", x=10.0)],
        [
            path("P1", "A", "B", 5.0, instructions="Go east", reverse_instructions="Go west"),
            path("P2", "B", "C", 5.0, instructions="Continue east"),
        ],
    )

    b = graph.index_of("B")
    texts = {graph.landmark(t).landmark_id: graph.instruction(e) for t, e in graph.neighbors(b)}
    assert texts == {"A": "Go west", "C": "Continue east"}

    c = graph.index_of("C")
    (_, back), = graph.neighbors(c)
    assert graph.instruction(back) == "Return via: Continue east"


def test_broken_paths_are_skipped_and_logged(landmark, path, caplog) -> None:
    """Missing, cross-building and inactive endpoints never fail the build."""
    landmarks = [
        landmark("A"),
        landmark("B", x=3.0),
        landmark("X", building_id="B2"),
        landmark("OFF", is_active=False),
    ]
    paths = [
        path("P1", "A", "B", 3.0),
        path("P2", "A", "GHOST"),
        path("P3", "A", "X"),
        path("P4", "OFF", "B"),
        path("P5", "A", "B", 0.0),
        path("P6", "A", "B", is_active=False),
    ]

    with caplog.at_level(logging.WARNING, logger="wayfinding.graph_model"):
        graph = build_graph_model("B1", landmarks, paths)

    assert graph.edge_count == 2
    kinds = {issue.path_id: issue.kind for issue in graph.issues}
    assert kinds == {
        "P2": "missing_landmark",
        "P3": "cross_building",
        "P4": "inactive_landmark",
        "P5": "non_positive_cost",
    }
    assert "Skipping path P3" in caplog.text


def test_indices_do_not_depend_on_record_order(landmark, path) -> None:
    landmarks = [landmark("C", x=2.0), landmark("A"), landmark("B", x=1.0)]
    paths = [path("P2", "B", "C", 1.0), path("P1", "A", "B", 1.0)]

    forward = build_graph_model("B1", landmarks, paths)
    backward = build_graph_model("B1", list(reversed(landmarks)), list(reversed(paths)))

    assert [forward.landmark(i).landmark_id for i in range(3)] == ["A", "B", "C"]
    for i in range(3):
        assert [(t, e.path_index, e.direction) for t, e in forward.neighbors(i)] == [
            (t, e.path_index, e.direction) for t, e in backward.neighbors(i)
        ]


def test_neighbors_are_sorted_by_target(landmark, path) -> None:
    graph = build_graph_model(
        "B1",
        [landmark("A"), landmark("B"), landmark("C"), landmark("D")],
        [path("P1", "A", "D"), path("P2", "A", "B"), path("P3", "A", "C")],
    )

    targets = [t for t, _ in graph.neighbors(graph.index_of("A"))]
    assert targets == sorted(targets)
    assert list(graph.offsets) == [0, 3, 4, 5, 6]


def test_index_of_unknown_landmark_raises(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    with pytest.raises(InvalidReference, match="GHOST"):
        graph.index_of("GHOST")


def test_planar_distance_rejects_cross_floor(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    assert graph.planar_distance(graph.index_of("L1"), graph.index_of("L2")) == pytest.approx(10.0)
    with pytest.raises(ValueError, match="across floors"):
        graph.planar_distance(graph.index_of("L2"), graph.index_of("L3"))


def test_heuristic_scale_never_exceeds_edge_ratio(landmark, path) -> None:
    """An edge shorter than its planar span shrinks the heuristic scale."""
    graph = build_graph_model(
        "B1",
        [landmark("A"), landmark("B", x=100.0), landmark("C", x=100.0, y=10.0)],
        [path("P1", "A", "B", 10.0), path("P2", "B", "C", 50.0)],
    )

    assert graph.heuristic_scale == pytest.approx(0.1)


def test_connections_describe_outgoing_edges(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    items = graph.connections("L2")

    assert [item["landmark_id"] for item in items] == ["L1", "L3"]
    assert items[0]["instructions"] == "Return via: Walk east 10m"
    assert items[1]["accessibility"]["requires_stairs"] is True
