"""Unit tests for wayfinding.composer."""

from __future__ import annotations

import pytest

from wayfinding.composer import ARRIVED_INSTRUCTION, compose_route
from wayfinding.graph_model import build_graph_model
from wayfinding.pathfinding import find_route
from wayfinding.preferences import PreferenceProfile, evaluate


def _compose(graph, from_id: str, to_id: str, profile: PreferenceProfile | None = None):
    profile = profile or PreferenceProfile()
    return compose_route(graph, find_route(graph, from_id, to_id, evaluate(profile)), from_id, to_id, profile)


def test_single_corridor_step(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    route = _compose(graph, "L1", "L2")

    assert route.reachable
    assert len(route.steps) == 1
    step = route.steps[0]
    assert (step.instruction, step.distance, step.estimated_time) == ("Walk east 10m", 10.0, 10.0)
    assert route.total_distance == 10.0
    assert route.total_estimated_time == 10.0


def test_reverse_traversal_uses_reverse_text(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    there = _compose(graph, "L1", "L2")
    back = _compose(graph, "L2", "L1")

    assert there.total_distance == back.total_distance
    assert back.steps[0].instruction == "Return via: Walk east 10m"
    assert there.steps[0].instruction != back.steps[0].instruction


def test_steps_follow_traversal_order_with_totals(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    route = _compose(graph, "L3", "L1")

    assert [(s.step_number, s.from_landmark, s.to_landmark) for s in route.steps] == [
        (1, "L3", "L2"),
        (2, "L2", "L1"),
    ]
    assert route.steps[0].floor_change is True
    assert route.steps[1].floor_change is False
    assert route.total_distance == pytest.approx(16.0)
    assert route.total_estimated_time == pytest.approx(30.0)


def test_unreachable_route_echoes_preferences(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)
    profile = PreferenceProfile(avoid_stairs=True)

    route = _compose(graph, "L1", "L3", profile)
    payload = route.to_dict()

    assert route.reachable is False
    assert route.steps == ()
    assert payload["preferences"]["avoid_stairs"] is True
    assert payload["totalDistance"] == 0.0


def test_same_landmark_returns_arrival_step(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records)

    route = _compose(graph, "L2", "L2")

    assert route.reachable
    assert [s.instruction for s in route.steps] == [ARRIVED_INSTRUCTION]
    assert route.total_distance == 0.0


def test_to_dict_uses_wire_keys(scenario_records) -> None:
    graph = build_graph_model("B1", *scenario_records, version=7)

    payload = _compose(graph, "L1", "L2").to_dict()

    assert payload["steps"][0]["instruction"] == "Walk east 10m"
    assert payload["steps"][0]["estimatedTime"] == 10.0
    assert payload["totalEstimatedTime"] == 10.0
    assert payload["graphVersion"] == 7
