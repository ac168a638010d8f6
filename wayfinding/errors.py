"""Error taxonomy shared by the route computation core.

Structural/input errors are exceptions raised at the call boundary. Graph
inconsistencies are plain issue records: they are logged and the offending
path is skipped, never raised. An unreachable destination is a normal result.
"""

from __future__ import annotations

from dataclasses import dataclass


class InvalidReference(ValueError):
    """Landmark is unknown, inactive, or not part of the requested building."""

    def __init__(self, building_id: str, landmark_id: str, role: str = "landmark") -> None:
        self.building_id = building_id
        self.landmark_id = landmark_id
        self.role = role
        super().__init__(f"Invalid {role!r} landmark {landmark_id!r} for building {building_id!r}")


class InvalidTransition(ValueError):
    """Illegal session status change or out-of-state feedback attach."""

    def __init__(self, session_id: str, current: str, requested: str) -> None:
        self.session_id = session_id
        self.current = current
        self.requested = requested
        super().__init__(f"Session {session_id!r} cannot go from {current!r} to {requested!r}")


class SessionNotFound(KeyError):
    """No navigation session is stored under the given id."""

    def __str__(self) -> str:
        return f"Navigation session {self.args[0]!r} was not found"


class SearchCancelled(RuntimeError):
    """Caller abandoned a running search."""


class SearchTimeout(RuntimeError):
    """A running search passed its deadline."""


@dataclass(frozen=True, slots=True)
class GraphInconsistency:
    """A path skipped while building a graph snapshot."""

    kind: str
    path_id: str
    message: str
    landmark_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind,
            "path_id": self.path_id,
            "landmark_id": self.landmark_id,
            "message": self.message,
        }
