import math

import numpy as np
import pytest

from wifidata.geometry import (
    EARTH_RADIUS_KM,
    great_circle_km,
    great_circle_km_vec,
    valid_latlon,
)


def test_identical_coordinates_are_exactly_zero():
    assert great_circle_km(19.4326, -99.1332, 19.4326, -99.1332) == 0.0


def test_distance_is_symmetric():
    a = (19.4326, -99.1332)
    b = (19.3467, -99.1617)
    assert great_circle_km(*a, *b) == great_circle_km(*b, *a)


def test_one_degree_of_longitude_at_the_equator():
    expected = EARTH_RADIUS_KM * math.pi / 180
    assert great_circle_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(expected)


def test_antipodal_points_do_not_fail_on_rounding():
    assert great_circle_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)
    assert great_circle_km(90.0, 0.0, -90.0, 0.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)


def test_nearly_coincident_points_stay_finite():
    d = great_circle_km(19.4326, -99.1332, 19.4326, -99.13320000001)
    assert math.isfinite(d)
    assert d >= 0.0


def test_vectorized_distances_match_scalar_helper():
    lats = np.array([19.0, 19.1, -33.45, 19.0])
    lons = np.array([-99.0, -99.0, -70.66, -99.0])

    got = great_circle_km_vec(19.0, -99.0, lats, lons)

    expected = [great_circle_km(19.0, -99.0, la, lo) for la, lo in zip(lats, lons)]
    assert got.tolist() == pytest.approx(expected)
    assert got[0] == 0.0
    assert got[3] == 0.0


@pytest.mark.parametrize(
    "lat, lon, ok",
    [
        (0.0, 0.0, True),
        (90.0, 180.0, True),
        (-90.0, -180.0, True),
        (90.0001, 0.0, False),
        (0.0, -180.5, False),
    ],
)
def test_valid_latlon(lat, lon, ok):
    assert valid_latlon(lat, lon) is ok
