import math

import pytest

from fleetjournal.models.domain import OfficeLocation
from fleetjournal.services.geospatial import haversine_km, haversine_m, is_within_radius, within_any_office

STOCKHOLM = (59.33, 18.06)
UPPSALA = (59.8586, 17.6389)


def test_haversine_zero_for_identical_points():
    assert haversine_m(*STOCKHOLM, *STOCKHOLM) == 0.0


def test_haversine_is_symmetric():
    forward = haversine_m(*STOCKHOLM, *UPPSALA)
    backward = haversine_m(*UPPSALA, *STOCKHOLM)
    assert forward == pytest.approx(backward, rel=1e-12)


def test_haversine_known_distance():
    # Stockholm to Uppsala is roughly 64 km as the crow flies
    assert haversine_km(*STOCKHOLM, *UPPSALA) == pytest.approx(64.0, abs=1.5)


def test_haversine_invalid_input_is_nan():
    assert math.isnan(haversine_m(float("nan"), 18.06, *STOCKHOLM))
    assert math.isnan(haversine_m("abc", 18.06, *STOCKHOLM))  # type: ignore[arg-type]


def test_radius_boundary_is_inside():
    point = (59.334, 18.06)
    distance = haversine_m(*point, *STOCKHOLM)

    assert is_within_radius(*point, *STOCKHOLM, distance)
    assert not is_within_radius(*point, *STOCKHOLM, distance - 1)


def test_nan_coordinates_are_never_within_radius():
    assert not is_within_radius(float("nan"), 18.06, *STOCKHOLM, 10_000)


def test_within_any_office_uses_default_radius():
    offices = [OfficeLocation(latitude=59.33, longitude=18.06)]
    # ~333 m north
    assert within_any_office(59.333, 18.06, offices)
    # ~1.1 km north
    assert not within_any_office(59.34, 18.06, offices)


def test_within_any_office_matches_any():
    offices = [
        OfficeLocation(latitude=UPPSALA[0], longitude=UPPSALA[1], radius_meters=100),
        OfficeLocation(latitude=59.33, longitude=18.06, radius_meters=100),
    ]
    assert within_any_office(59.3301, 18.0601, offices)
    assert not within_any_office(None, 18.06, offices)
    assert not within_any_office(59.33, 18.06, [])
