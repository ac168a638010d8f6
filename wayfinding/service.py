"""Entry points consumed by downstream collaborators.

`NavigationService` wires the graph cache, preference evaluation, search,
route composition and session tracking together:

    records -> GraphCache -> find_route -> compose_route -> SessionTracker
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any

from wayfinding.composer import RouteResult, compose_route
from wayfinding.config import Settings
from wayfinding.graph_cache import GraphCache
from wayfinding.pathfinding import find_route
from wayfinding.preferences import PreferenceProfile, evaluate
from wayfinding.records import RecordSource
from wayfinding.sessions import NavigationSession, SessionStatus, SessionTracker


@dataclass(frozen=True, slots=True)
class RouteRequest:
    building_id: str
    from_landmark: str
    to_landmark: str
    preferences: PreferenceProfile = field(default_factory=PreferenceProfile)
    algorithm: str | None = None


@dataclass(frozen=True, slots=True)
class SessionContext:
    user_id: str | None = None
    client_session_id: str | None = None


class NavigationService:
    """Route computation and session lifecycle over one record source."""

    def __init__(
        self,
        source: RecordSource,
        settings: Settings | None = None,
        tracker: SessionTracker | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.graphs = GraphCache(source)
        self.tracker = tracker or SessionTracker()

    def invalidate(self, building_id: str) -> None:
        """Collaborator write notification for one building."""
        self.graphs.invalidate(building_id)

    def compute_route(
        self,
        request: RouteRequest,
        *,
        cancel: threading.Event | None = None,
        deadline: float | None = None,
    ) -> RouteResult:
        """Compute a route; unreachable destinations come back with `reachable=False`.

        Raises:
            InvalidReference: If either landmark is not active in the building.
            ValueError: If the algorithm name is unknown.
        """
        graph = self.graphs.get(request.building_id)
        policy = evaluate(request.preferences)

        if deadline is None and self.settings.search_timeout_s is not None:
            deadline = time.monotonic() + self.settings.search_timeout_s

        search = find_route(
            graph,
            request.from_landmark,
            request.to_landmark,
            policy,
            algorithm=request.algorithm or self.settings.default_algorithm,
            cancel=cancel,
            deadline=deadline,
        )
        return compose_route(graph, search, request.from_landmark, request.to_landmark, request.preferences)

    def landmark_connections(self, building_id: str, landmark_id: str) -> list[dict[str, Any]]:
        return self.graphs.get(building_id).connections(landmark_id)

    def create_session(
        self,
        route: RouteResult,
        building_id: str,
        from_landmark: str,
        to_landmark: str,
        context: SessionContext | None = None,
    ) -> NavigationSession:
        """Start tracking a computed route."""
        if (route.building_id, route.from_landmark, route.to_landmark) != (building_id, from_landmark, to_landmark):
            raise ValueError("Route does not match the requested building and landmarks")
        context = context or SessionContext()
        return self.tracker.create(route, user_id=context.user_id, client_session_id=context.client_session_id)

    def get_session(self, session_id: str) -> NavigationSession:
        return self.tracker.get(session_id)

    def transition_session(
        self,
        session_id: str,
        target: SessionStatus | str,
        actual_time: float | None = None,
    ) -> NavigationSession:
        return self.tracker.transition(session_id, target, actual_time=actual_time)

    def attach_feedback(self, session_id: str, rating: int, comment: str | None = None) -> NavigationSession:
        return self.tracker.attach_feedback(session_id, rating, comment)
