"""Request boundary: parameter validation, routing and response envelopes.

Nothing here depends on a web framework. :meth:`WifiPointApi.dispatch`
takes a URL path plus query parameters and returns an :class:`ApiResponse`
(status code and JSON-ready body), so any HTTP server can host it;
:mod:`wifidata.server` is the bundled one.

Routes (all GET), mounted under ``/api/v1/wifi-points`` and ``/records``:

* ``""``                  all points, paginated and sorted
* ``/nearby``             points ordered by distance from ``lat``/``lon``
* ``/alcaldia/{name}``    points in one borough
* ``/health``             liveness and point count
* ``/{id}``               one point

``/proximity`` is an alias of ``/api/v1/wifi-points/nearby``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import unquote

from .entities import POINT_FIELDS
from .errors import RecordNotFoundError, ValidationError
from .geometry import valid_latitude, valid_longitude
from .paging import DEFAULT_PAGE_SIZE, PageRequest

__all__ = [
    "API_PREFIX",
    "ApiResponse",
    "WifiPointApi",
    "error_body",
    "parse_coordinates",
    "parse_page_request",
]

API_PREFIX = "/api/v1/wifi-points"
_MOUNTS = (API_PREFIX, "/records")
_PROXIMITY_ALIAS = "/proximity"

SAFE_ERROR_MESSAGE = "An unexpected error occurred"

# Column names of the source spreadsheet are accepted as sort aliases.
_SORT_ALIASES = {
    "puntoId": "id",
    "punto_id": "id",
    "latitud": "latitude",
    "longitud": "longitude",
}

logger = logging.getLogger(__name__)

Params = Mapping[str, Any]


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Dict[str, Any] = field(default_factory=dict)


class _RouteNotFound(Exception):
    pass


# ------------------------------
# Parameter parsing
# ------------------------------


def _param(params: Params, name: str) -> Optional[str]:
    """Return one parameter value; lists (as from ``parse_qs``) yield their first item."""
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_float(params: Params, name: str) -> float:
    raw = _param(params, name)
    if raw is None:
        raise ValidationError(f"Required parameter '{name}' is missing")
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"Parameter '{name}' must be a number, got {raw!r}") from None


def _parse_int(params: Params, name: str, default: int, minimum: int) -> int:
    raw = _param(params, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"Parameter '{name}' must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValidationError(f"Parameter '{name}' must be >= {minimum}, got {value}")
    return value


def parse_coordinates(params: Params) -> Tuple[float, float]:
    """Return validated ``(lat, lon)`` from request parameters."""

    lat = _parse_float(params, "lat")
    lon = _parse_float(params, "lon")
    if not valid_latitude(lat):
        raise ValidationError(f"Latitude must be between -90 and 90, got {lat}")
    if not valid_longitude(lon):
        raise ValidationError(f"Longitude must be between -180 and 180, got {lon}")
    return lat, lon


def _parse_sort(raw: Optional[str], default: str) -> str:
    if raw is None:
        return default
    name, _, direction = raw.partition(",")
    name = _SORT_ALIASES.get(name.strip(), name.strip())
    if direction.strip() and direction.strip().lower() != "asc":
        raise ValidationError(f"Only ascending sort is supported, got {raw!r}")
    if name not in POINT_FIELDS:
        allowed = ", ".join(POINT_FIELDS)
        raise ValidationError(f"Cannot sort by {name!r}; expected one of: {allowed}")
    return name


def parse_page_request(
    params: Params,
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: int = 500,
    default_sort: str = "id",
) -> PageRequest:
    """Return a :class:`PageRequest` from ``page``, ``size`` and ``sort`` parameters."""

    page = _parse_int(params, "page", 0, 0)
    size = _parse_int(params, "size", default_size, 1)
    if size > max_size:
        raise ValidationError(f"Parameter 'size' must be <= {max_size}, got {size}")
    sort = _parse_sort(_param(params, "sort"), default_sort)
    return PageRequest(page=page, size=size, sort=sort)


# ------------------------------
# Envelopes
# ------------------------------


def error_body(status: int, message: str, path: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Error envelope; ``timestamp`` is ISO-8601 UTC with second precision."""

    moment = now if now is not None else datetime.now(timezone.utc)
    return {
        "status": status,
        "error": HTTPStatus(status).phrase,
        "message": message,
        "path": path,
        "timestamp": moment.strftime("%Y-%m-%dT%H:%M:%S"),
    }


# ------------------------------
# Dispatch
# ------------------------------


class WifiPointApi:
    def __init__(self, service, *, default_page_size: int = DEFAULT_PAGE_SIZE, max_page_size: int = 500):
        self._service = service
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def dispatch(self, path: str, params: Optional[Params] = None) -> ApiResponse:
        """Route one GET request and translate failures into error envelopes."""

        params = params or {}
        try:
            return ApiResponse(int(HTTPStatus.OK), self._route(path, params))
        except ValidationError as exc:
            logger.info("api.bad_request path=%s reason=%s", path, exc)
            return self._error(HTTPStatus.BAD_REQUEST, str(exc), path)
        except RecordNotFoundError as exc:
            logger.info("api.not_found path=%s id=%s", path, exc.point_id)
            return self._error(HTTPStatus.NOT_FOUND, str(exc), path)
        except _RouteNotFound:
            return self._error(HTTPStatus.NOT_FOUND, f"No route for {path}", path)
        except Exception:
            logger.exception("api.unhandled path=%s", path)
            return self._error(HTTPStatus.INTERNAL_SERVER_ERROR, SAFE_ERROR_MESSAGE, path)

    @staticmethod
    def _error(status: HTTPStatus, message: str, path: str) -> ApiResponse:
        return ApiResponse(int(status), error_body(int(status), message, path))

    def _page_request(self, params: Params) -> PageRequest:
        return parse_page_request(
            params, default_size=self._default_page_size, max_size=self._max_page_size
        )

    @staticmethod
    def _segments(path: str) -> Sequence[str]:
        trimmed = path.rstrip("/") or "/"
        if trimmed == _PROXIMITY_ALIAS:
            return ("nearby",)
        for mount in _MOUNTS:
            if trimmed == mount or trimmed.startswith(mount + "/"):
                rest = trimmed[len(mount) :]
                return tuple(unquote(s) for s in rest.split("/") if s)
        raise _RouteNotFound(path)

    def _route(self, path: str, params: Params) -> Dict[str, Any]:
        segments = self._segments(path)

        if not segments:
            logger.info("api.list_all params=%s", dict(params))
            return self._service.find_all(self._page_request(params)).to_dict()

        head = segments[0]
        if segments == ("nearby",):
            lat, lon = parse_coordinates(params)
            request = self._page_request(params)
            logger.info("api.nearby lat=%s lon=%s page=%s size=%s", lat, lon, request.page, request.size)
            return self._service.find_nearby(lat, lon, request).to_dict()

        if segments == ("health",):
            return {
                "status": "UP",
                "message": "WiFi CDMX API is running",
                "total_points": self._service.count(),
            }

        if head == "alcaldia" and len(segments) == 2:
            request = self._page_request(params)
            logger.info("api.by_alcaldia alcaldia=%s page=%s size=%s", segments[1], request.page, request.size)
            return self._service.find_by_alcaldia(segments[1], request).to_dict()

        if len(segments) == 1:
            logger.info("api.by_id id=%s", head)
            return self._service.find_by_id(head).to_dict()

        raise _RouteNotFound(path)
