"""Great-circle helpers shared by the ranker and the request boundary."""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "EARTH_RADIUS_KM",
    "great_circle_km",
    "great_circle_km_vec",
    "valid_latitude",
    "valid_longitude",
    "valid_latlon",
]

EARTH_RADIUS_KM = 6371.0


def great_circle_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Spherical law of cosines distance between two lat/lon points in km.

    The cosine term is clamped to [-1, 1]; rounding can push it just past
    either bound for coincident or antipodal points.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlon = math.radians(lon2) - math.radians(lon1)
    cosine = math.cos(phi1) * math.cos(phi2) * math.cos(dlon) + math.sin(
        phi1
    ) * math.sin(phi2)
    return EARTH_RADIUS_KM * math.acos(max(-1.0, min(1.0, cosine)))


def great_circle_km_vec(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorized :func:`great_circle_km` from one point to many."""
    phi1 = math.radians(lat)
    phi2 = np.radians(lats)
    dlon = np.radians(lons) - math.radians(lon)
    cosine = math.cos(phi1) * np.cos(phi2) * np.cos(dlon) + math.sin(phi1) * np.sin(phi2)
    dists = EARTH_RADIUS_KM * np.arccos(np.clip(cosine, -1.0, 1.0))
    same = (lats == lat) & (lons == lon)
    return np.where(same, 0.0, dists)


def valid_latitude(value: float) -> bool:
    return -90.0 <= value <= 90.0


def valid_longitude(value: float) -> bool:
    return -180.0 <= value <= 180.0


def valid_latlon(lat: float, lon: float) -> bool:
    """Return True when (lat, lon) fall inside the WGS84 degree ranges."""

    return valid_latitude(lat) and valid_longitude(lon)
