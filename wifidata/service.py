"""Read operations over the WiFi point store, returned as paginated envelopes."""

from __future__ import annotations

import logging
from typing import Optional

from .entities import RankedWifiPoint, WifiPoint
from .paging import Page, PageRequest, build_page
from .ranking import ProximityRanker

__all__ = ["WifiPointService"]

logger = logging.getLogger(__name__)


class WifiPointService:
    def __init__(self, store, ranker: Optional[ProximityRanker] = None):
        self._store = store
        self._ranker = ranker if ranker is not None else ProximityRanker(store)

    def find_all(self, request: PageRequest) -> Page[WifiPoint]:
        logger.debug("service.find_all page=%s size=%s sort=%s", request.page, request.size, request.sort)
        content, total = self._store.find_all(request.offset, request.size, sort=request.sort)
        return build_page(content, total, request.page, request.size)

    def find_by_id(self, point_id: str) -> WifiPoint:
        """Return the point with ``point_id``; raises RecordNotFoundError otherwise."""
        logger.debug("service.find_by_id id=%s", point_id)
        return self._store.get(point_id)

    def find_by_alcaldia(self, alcaldia: str, request: PageRequest) -> Page[WifiPoint]:
        logger.debug(
            "service.find_by_alcaldia alcaldia=%s page=%s size=%s",
            alcaldia,
            request.page,
            request.size,
        )
        content, total = self._store.find_by_alcaldia(
            alcaldia, request.offset, request.size, sort=request.sort
        )
        return build_page(content, total, request.page, request.size)

    def find_nearby(self, lat: float, lon: float, request: PageRequest) -> Page[RankedWifiPoint]:
        """Points ordered by distance from (lat, lon); coordinates must be validated."""
        logger.debug(
            "service.find_nearby lat=%s lon=%s page=%s size=%s",
            lat,
            lon,
            request.page,
            request.size,
        )
        content, total = self._ranker.rank(lat, lon, request.offset, request.size)
        return build_page(content, total, request.page, request.size)

    def count(self) -> int:
        return self._store.count()
