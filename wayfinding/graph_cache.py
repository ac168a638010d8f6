"""Process-wide per-building cache of graph snapshots.

Snapshots are built lazily on first access and replaced, never edited, when
the record source reports a write for the building. Readers take no lock and
keep whichever snapshot they fetched until they are done with it.
"""

from __future__ import annotations

import itertools
import logging
import threading

from wayfinding.graph_model import GraphModel, build_graph_model
from wayfinding.records import RecordSource

logger = logging.getLogger(__name__)


class GraphCache:
    """Copy-on-write mapping of building id to its current GraphModel."""

    def __init__(self, source: RecordSource) -> None:
        self._source = source
        self._snapshots: dict[str, GraphModel] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._versions = itertools.count(1)

    def _lock_for(self, building_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(building_id, threading.Lock())

    def _build(self, building_id: str) -> GraphModel:
        landmarks, paths = self._source.fetch(building_id)
        return build_graph_model(building_id, landmarks, paths, version=next(self._versions))

    def get(self, building_id: str) -> GraphModel:
        """Return the current snapshot, building it on first access."""
        snapshot = self._snapshots.get(building_id)
        if snapshot is not None:
            return snapshot

        with self._lock_for(building_id):
            snapshot = self._snapshots.get(building_id)
            if snapshot is None:
                snapshot = self._build(building_id)
                self._snapshots[building_id] = snapshot
            return snapshot

    def invalidate(self, building_id: str) -> GraphModel:
        """Rebuild one building's snapshot and swap it in."""
        with self._lock_for(building_id):
            snapshot = self._build(building_id)
            previous = self._snapshots.get(building_id)
            self._snapshots[building_id] = snapshot
        logger.info(
            "Swapped graph for building %s: v%s -> v%d",
            building_id,
            previous.version if previous is not None else "-",
            snapshot.version,
        )
        return snapshot

    def drop(self, building_id: str) -> None:
        """Forget a building; the next `get` rebuilds it."""
        with self._lock_for(building_id):
            self._snapshots.pop(building_id, None)

    def cached_buildings(self) -> list[str]:
        return sorted(self._snapshots)
