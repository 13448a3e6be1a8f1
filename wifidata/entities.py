"""Domain entities (WifiPoint, RankedWifiPoint)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .geometry import valid_latitude, valid_longitude

__all__ = [
    "WifiPoint",
    "RankedWifiPoint",
    "POINT_FIELDS",
]

POINT_FIELDS = ("id", "programa", "latitude", "longitude", "alcaldia")


def validate_non_empty_str(name: str):
    """Decorator factory: enforce non-empty string attribute on __post_init__."""

    def deco(cls):
        orig_post = getattr(cls, "__post_init__", None)

        def post(self):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{cls.__name__}.{name} must be a non-empty string")
            if orig_post:
                orig_post(self)

        cls.__post_init__ = post
        return cls

    return deco


@validate_non_empty_str("id")
@validate_non_empty_str("programa")
@validate_non_empty_str("alcaldia")
@dataclass(frozen=True, slots=True)
class WifiPoint:
    """A canonical, immutable public WiFi access point."""

    id: str
    programa: str
    latitude: float
    longitude: float
    alcaldia: str

    def __post_init__(self):
        if not valid_latitude(self.latitude):
            raise ValueError(f"WifiPoint.latitude out of range: {self.latitude!r}")
        if not valid_longitude(self.longitude):
            raise ValueError(f"WifiPoint.longitude out of range: {self.longitude!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in POINT_FIELDS}


@dataclass(frozen=True, slots=True)
class RankedWifiPoint:
    """A WifiPoint paired with its distance from a query coordinate."""

    point: WifiPoint
    distance_km: float

    @property
    def id(self) -> str:
        return self.point.id

    def to_dict(self) -> Dict[str, Any]:
        payload = self.point.to_dict()
        payload["distance_km"] = self.distance_km
        return payload
