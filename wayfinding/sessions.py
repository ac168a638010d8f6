"""Navigation session lifecycle.

State machine:
    started -> in_progress            (idempotent when already in_progress)
    started | in_progress -> completed (needs actual_time)
    started | in_progress -> cancelled
    completed, cancelled              terminal

Feedback attaches only to completed sessions. Every mutation is a
compare-and-set on the stored status, serialized per session id.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from wayfinding.composer import RouteResult
from wayfinding.errors import InvalidTransition, SessionNotFound

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500


class SessionStatus(str, Enum):
    STARTED = "started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL = frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class Feedback:
    rating: int
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class NavigationSession:
    """Snapshot of one tracked route; replaced, never edited, on change."""

    session_id: str
    building_id: str
    from_landmark: str
    to_landmark: str
    route: RouteResult
    total_distance: float
    estimated_time: float
    status: SessionStatus = SessionStatus.STARTED
    user_id: str | None = None
    client_session_id: str | None = None
    actual_time: float | None = None
    feedback: Feedback | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "userId": self.user_id,
            "sessionId": self.client_session_id,
            "building": self.building_id,
            "fromLandmark": self.from_landmark,
            "toLandmark": self.to_landmark,
            "route": self.route.to_dict(),
            "totalDistance": self.total_distance,
            "estimatedTime": self.estimated_time,
            "actualTime": self.actual_time,
            "status": self.status.value,
            "feedback": (
                {"rating": self.feedback.rating, "comment": self.feedback.comment} if self.feedback else None
            ),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }


class InMemorySessionStore:
    """Session storage with per-id compare-and-set."""

    def __init__(self) -> None:
        self._sessions: dict[str, NavigationSession] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(session_id, threading.Lock())

    def add(self, session: NavigationSession) -> None:
        with self._lock_for(session.session_id):
            if session.session_id in self._sessions:
                raise ValueError(f"Session {session.session_id!r} already exists")
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> NavigationSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None

    def compare_and_set(self, expected: NavigationSession, updated: NavigationSession) -> bool:
        """Store `updated` only if the current status still matches `expected`."""
        with self._lock_for(expected.session_id):
            current = self._sessions.get(expected.session_id)
            if current is None:
                raise SessionNotFound(expected.session_id)
            if current.status != expected.status or current.feedback != expected.feedback:
                return False
            self._sessions[expected.session_id] = updated
            return True


class SessionTracker:
    """Creates sessions from computed routes and drives their lifecycle."""

    def __init__(self, store: InMemorySessionStore | None = None) -> None:
        self.store = store or InMemorySessionStore()

    def create(
        self,
        route: RouteResult,
        user_id: str | None = None,
        client_session_id: str | None = None,
    ) -> NavigationSession:
        """Record a reachable route as a new `started` session."""
        if not route.reachable:
            raise ValueError("Cannot start a navigation session for an unreachable route")

        session = NavigationSession(
            session_id=uuid.uuid4().hex,
            building_id=route.building_id,
            from_landmark=route.from_landmark,
            to_landmark=route.to_landmark,
            route=route,
            total_distance=route.total_distance,
            estimated_time=route.total_estimated_time,
            user_id=user_id,
            client_session_id=client_session_id,
        )
        self.store.add(session)
        logger.debug("Created session %s for building %s", session.session_id, session.building_id)
        return session

    def get(self, session_id: str) -> NavigationSession:
        return self.store.get(session_id)

    def transition(
        self,
        session_id: str,
        target: SessionStatus | str,
        actual_time: float | None = None,
    ) -> NavigationSession:
        """Move a session to `target`, enforcing the lifecycle rules."""
        try:
            target = SessionStatus(target)
        except ValueError:
            raise ValueError(
                "Invalid status. Must be one of: in_progress, completed, cancelled"
            ) from None

        while True:
            current = self.store.get(session_id)
            updated = self._next_state(current, target, actual_time)
            if updated is current:
                return current
            if self.store.compare_and_set(current, updated):
                logger.debug("Session %s: %s -> %s", session_id, current.status.value, target.value)
                return updated

    def attach_feedback(self, session_id: str, rating: int, comment: str | None = None) -> NavigationSession:
        """Attach rating/comment to a completed session."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError("Rating must be an integer between 1 and 5")
        if comment is not None:
            comment = comment.strip()
            if len(comment) > MAX_COMMENT_LENGTH:
                raise ValueError(f"Comment must be less than {MAX_COMMENT_LENGTH} characters")

        while True:
            current = self.store.get(session_id)
            if current.status != SessionStatus.COMPLETED:
                raise InvalidTransition(session_id, current.status.value, "feedback")
            updated = replace(
                current,
                feedback=Feedback(rating=rating, comment=comment or None),
                updated_at=datetime.now(timezone.utc),
            )
            if self.store.compare_and_set(current, updated):
                return updated

    @staticmethod
    def _next_state(
        current: NavigationSession,
        target: SessionStatus,
        actual_time: float | None,
    ) -> NavigationSession:
        status = current.status
        if status in TERMINAL or target == SessionStatus.STARTED:
            raise InvalidTransition(current.session_id, status.value, target.value)

        if target == SessionStatus.IN_PROGRESS and status == SessionStatus.IN_PROGRESS:
            return current

        now = datetime.now(timezone.utc)
        if target == SessionStatus.COMPLETED:
            if actual_time is None or actual_time <= 0:
                raise ValueError("actual_time (> 0) is required to complete a session")
            return replace(current, status=target, actual_time=float(actual_time), completed_at=now, updated_at=now)

        return replace(current, status=target, updated_at=now)
