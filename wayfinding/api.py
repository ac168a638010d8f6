"""FastAPI routes exposing route computation and navigation sessions.

Routes:
- Graph inputs (`/buildings/{id}/records`, `/buildings/{id}/invalidate`)
- Routing (`/route`, `/buildings/{id}/landmarks/{lid}/connections`)
- Sessions (`/sessions`, `/sessions/{id}`, `/sessions/{id}/status`, `/sessions/{id}/feedback`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from wayfinding.config import Settings
from wayfinding.errors import InvalidReference, InvalidTransition, SearchTimeout, SessionNotFound
from wayfinding.graph_model import GraphModel
from wayfinding.preferences import PreferenceProfile
from wayfinding.records import InMemoryRecordSource
from wayfinding.service import NavigationService, RouteRequest, SessionContext


@dataclass
class ApiState:
    """In-memory record source and the service built over it."""

    records: InMemoryRecordSource = field(default_factory=InMemoryRecordSource)
    service: NavigationService | None = None


STATE = ApiState()


class Preferences(BaseModel):
    """Route preference profile (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    avoid_stairs: bool = Field(default=False, alias="avoidStairs")
    wheelchair_accessible: bool = Field(default=False, alias="wheelchairAccessible")
    shortest_distance: bool = Field(default=True, alias="shortestDistance")
    avoid_elevators: bool = Field(default=False, alias="avoidElevators")
    max_difficulty: Literal["easy", "medium", "hard"] | None = Field(default=None, alias="maxDifficulty")

    def to_profile(self) -> PreferenceProfile:
        return PreferenceProfile(
            avoid_stairs=self.avoid_stairs,
            wheelchair_accessible=self.wheelchair_accessible,
            shortest_distance=self.shortest_distance,
            avoid_elevators=self.avoid_elevators,
            max_difficulty=self.max_difficulty,
        )


class RoutePayload(BaseModel):
    """Request payload for route computation."""

    model_config = ConfigDict(populate_by_name=True)

    building: str = Field(..., min_length=1)
    from_landmark: str = Field(..., min_length=1, alias="from")
    to_landmark: str = Field(..., min_length=1, alias="to")
    preferences: Preferences = Field(default_factory=Preferences)
    algorithm: Literal["dijkstra", "astar"] | None = None

    def to_request(self) -> RouteRequest:
        return RouteRequest(
            building_id=self.building,
            from_landmark=self.from_landmark,
            to_landmark=self.to_landmark,
            preferences=self.preferences.to_profile(),
            algorithm=self.algorithm,
        )


class SessionPayload(RoutePayload):
    """Route request that also starts a tracked navigation session."""

    user_id: str | None = Field(default=None, alias="userId")
    session_id: str | None = Field(default=None, alias="sessionId")


class RecordsPayload(BaseModel):
    """Full landmark/path record set for one building."""

    landmarks: list[dict[str, Any]] = Field(default_factory=list)
    paths: list[dict[str, Any]] = Field(default_factory=list)


class StatusPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["in_progress", "completed", "cancelled"]
    actual_time: float | None = Field(default=None, gt=0, alias="actualTime")


class FeedbackPayload(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=500)


def _service() -> NavigationService:
    """Get the service for the current record source, creating it on first use."""
    if STATE.service is None:
        STATE.service = NavigationService(STATE.records, settings=Settings.from_env())
    return STATE.service


def _graph_summary(graph: GraphModel) -> dict[str, Any]:
    return {
        "building_id": graph.building_id,
        "graph_version": graph.version,
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
        "issues": [issue.to_dict() for issue in graph.issues],
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = Settings.from_env()
    app = FastAPI(title="Wayfinding API", version="1.0.0")

    if settings.cors_origins == "*":
        cors_origins = ["*"]
        allow_credentials = False
    else:
        cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
        allow_credentials = True

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Health endpoint with cache metadata."""
        service = STATE.service
        return {
            "status": "ok",
            "version": app.version,
            "cached_buildings": service.graphs.cached_buildings() if service is not None else [],
        }

    @app.put("/buildings/{building_id}/records")
    async def replace_records(building_id: str, payload: RecordsPayload) -> dict[str, Any]:
        """Replace one building's records and rebuild its graph."""
        try:
            STATE.records.load_raw(building_id, payload.landmarks, payload.paths)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid records: {exc}") from exc

        return _graph_summary(_service().graphs.invalidate(building_id))

    @app.post("/buildings/{building_id}/invalidate")
    async def invalidate(building_id: str) -> dict[str, Any]:
        """Rebuild one building's graph from the current records."""
        if not STATE.records.has_building(building_id):
            raise HTTPException(status_code=404, detail=f"Building '{building_id}' has no records")
        return _graph_summary(_service().graphs.invalidate(building_id))

    @app.get("/buildings/{building_id}/landmarks/{landmark_id}/connections")
    async def connections(building_id: str, landmark_id: str) -> dict[str, Any]:
        """Return the directed connections leaving one landmark."""
        try:
            items = _service().landmark_connections(building_id, landmark_id)
        except InvalidReference as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"landmark_id": landmark_id, "connections": items, "connections_count": len(items)}

    @app.post("/route")
    async def compute_route(payload: RoutePayload) -> dict[str, Any]:
        """Compute a route; unreachable destinations return `reachable: false`."""
        try:
            result = _service().compute_route(payload.to_request())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid route query: {exc}") from exc
        except SearchTimeout as exc:
            raise HTTPException(status_code=504, detail=str(exc)) from exc
        return result.to_dict()

    @app.post("/sessions", status_code=201)
    async def create_session(payload: SessionPayload) -> dict[str, Any]:
        """Compute a route and start tracking it."""
        service = _service()
        try:
            result = service.compute_route(payload.to_request())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid route query: {exc}") from exc

        if not result.reachable:
            raise HTTPException(
                status_code=404,
                detail="No route found. The destination may be unreachable with your selected preferences.",
            )

        session = service.create_session(
            result,
            payload.building,
            payload.from_landmark,
            payload.to_landmark,
            SessionContext(user_id=payload.user_id, client_session_id=payload.session_id),
        )
        return session.to_dict()

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str) -> dict[str, Any]:
        try:
            return _service().get_session(session_id).to_dict()
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.put("/sessions/{session_id}/status")
    async def update_status(session_id: str, payload: StatusPayload) -> dict[str, Any]:
        """Move a session through its lifecycle."""
        try:
            session = _service().transition_session(session_id, payload.status, payload.actual_time)
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return session.to_dict()

    @app.post("/sessions/{session_id}/feedback")
    async def attach_feedback(session_id: str, payload: FeedbackPayload) -> dict[str, Any]:
        """Attach rating and comment to a completed session."""
        try:
            session = _service().attach_feedback(session_id, payload.rating, payload.comment)
        except SessionNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidTransition as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return session.to_dict()

    return app
