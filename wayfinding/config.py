"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from wayfinding.pathfinding import ALGORITHMS


@dataclass(frozen=True, slots=True)
class Settings:
    default_algorithm: str = "dijkstra"
    search_timeout_s: float | None = None
    log_level: str = "INFO"
    cors_origins: str = "*"

    @classmethod
    def from_env(cls) -> "Settings":
        algorithm = os.getenv("WAYFINDING_ALGORITHM", "dijkstra").strip().lower() or "dijkstra"
        if algorithm not in ALGORITHMS:
            raise ValueError(f"WAYFINDING_ALGORITHM must be one of {', '.join(ALGORITHMS)}")

        raw_timeout = os.getenv("WAYFINDING_SEARCH_TIMEOUT_S", "").strip()
        timeout = float(raw_timeout) if raw_timeout else None
        if timeout is not None and timeout <= 0:
            raise ValueError("WAYFINDING_SEARCH_TIMEOUT_S must be > 0")

        return cls(
            default_algorithm=algorithm,
            search_timeout_s=timeout,
            log_level=os.getenv("WAYFINDING_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            cors_origins=os.getenv("WAYFINDING_CORS_ORIGINS", "*").strip(),
        )
