"""Proximity ranking over every point in the store."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

import numpy as np

from .entities import RankedWifiPoint, WifiPoint
from .geometry import great_circle_km_vec

__all__ = ["ProximityRanker"]

logger = logging.getLogger(__name__)


class _Snapshot:
    """Column arrays for one immutable view of the store."""

    __slots__ = ("points", "lats", "lons", "id_rank")

    def __init__(self, points: List[WifiPoint]):
        self.points = points
        self.lats = np.array([p.latitude for p in points], dtype=float)
        self.lons = np.array([p.longitude for p in points], dtype=float)
        # Integer rank of each id in ascending order; used as the tie-break key.
        order = sorted(range(len(points)), key=lambda i: points[i].id)
        rank = np.empty(len(points), dtype=np.int64)
        rank[order] = np.arange(len(points), dtype=np.int64)
        self.id_rank = rank

    def __len__(self) -> int:
        return len(self.points)


class ProximityRanker:
    """Rank every stored point by great-circle distance from a coordinate.

    This is a full scan: one vectorized distance pass and one sort per call,
    fine for tens of thousands of points. The column arrays are built once
    and rebuilt only when the store's row count changes.
    """

    def __init__(self, store):
        self._store = store
        self._snapshot: Optional[_Snapshot] = None
        self._lock = threading.Lock()

    def _ensure_snapshot(self) -> _Snapshot:
        expected = self._store.count()
        snap = self._snapshot
        if snap is not None and len(snap) == expected:
            return snap
        with self._lock:
            snap = self._snapshot
            if snap is None or len(snap) != expected:
                snap = _Snapshot(self._store.all())
                self._snapshot = snap
                logger.info("ranking.snapshot_built points=%s", len(snap))
        return snap

    def rank(
        self, lat: float, lon: float, offset: int, limit: int
    ) -> Tuple[List[RankedWifiPoint], int]:
        """Return ``limit`` points from ``offset`` in distance order, plus the total.

        Ties on distance are broken by ascending id so repeated calls page
        through the same sequence. Coordinates are assumed valid.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        snap = self._ensure_snapshot()
        total = len(snap)
        if total == 0 or limit <= 0 or offset >= total:
            return [], total

        dists = great_circle_km_vec(lat, lon, snap.lats, snap.lons)
        # lexsort: last key is primary
        order = np.lexsort((snap.id_rank, dists))
        window = order[offset : offset + limit]
        ranked = [
            RankedWifiPoint(point=snap.points[int(i)], distance_km=float(dists[int(i)]))
            for i in window
        ]
        return ranked, total
