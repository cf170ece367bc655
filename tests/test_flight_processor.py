from math import pi

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from coordinates import Coordinate
from errors import NoFlightsFoundError
from flight_data import FlightState
from flight_processor import (
    EARTH_RADIUS_KM,
    DistanceResult,
    airborne,
    distances,
    format_altitude,
    format_distance,
    format_heading,
    format_result,
    format_speed,
    format_vertical_rate,
    haversine,
    nearest_flight,
    rank_flights,
)

LONDON = Coordinate(51.5, -0.1)

lat_strat = st.floats(min_value=-90.0, max_value=90.0, allow_nan=False, allow_infinity=False)
lon_strat = st.floats(min_value=-180.0, max_value=180.0, allow_nan=False, allow_infinity=False)
coord_strat = st.builds(Coordinate, lat_strat, lon_strat)


def _flight(icao24: str, lat: float | None = None, lon: float | None = None, **kw) -> FlightState:
    return FlightState(icao24=icao24, latitude=lat, longitude=lon, **kw)


# ── Distance ─────────────────────────────────────────────────────────

def test_haversine_reference_distance():
    # Nashville BNA to Los Angeles LAX
    bna = Coordinate(36.12, -86.67)
    lax = Coordinate(33.94, -118.4)
    assert haversine(bna, lax) == pytest.approx(2886.444, abs=0.01)


def test_haversine_jfk_lhr():
    jfk = Coordinate(40.6413, -73.7781)
    lhr = Coordinate(51.4700, -0.4543)
    assert haversine(jfk, lhr) == pytest.approx(5539, rel=1e-2)


@pytest.mark.parametrize(
    "a, b",
    [
        (Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)),
        (Coordinate(90.0, 0.0), Coordinate(-90.0, 0.0)),
        (Coordinate(45.0, 10.0), Coordinate(-45.0, -170.0)),
    ],
)
def test_haversine_antipodal(a, b):
    assert haversine(a, b) == pytest.approx(pi * EARTH_RADIUS_KM, rel=1e-6)


def test_haversine_across_antimeridian():
    a = Coordinate(0.0, 179.5)
    b = Coordinate(0.0, -179.5)
    assert haversine(a, b) == pytest.approx(2 * pi * EARTH_RADIUS_KM / 360, rel=1e-6)


def test_haversine_does_not_mutate():
    a = Coordinate(10.0, 20.0)
    b = Coordinate(-5.0, 7.5)
    haversine(a, b)
    assert a == Coordinate(10.0, 20.0)
    assert b == Coordinate(-5.0, 7.5)


@settings(deadline=None, max_examples=150)
@given(a=coord_strat)
def test_distance_to_self_is_zero(a: Coordinate) -> None:
    assert haversine(a, a) <= 1e-6


@settings(deadline=None, max_examples=150)
@given(a=coord_strat, b=coord_strat)
def test_symmetry_and_bounds(a: Coordinate, b: Coordinate) -> None:
    d1 = haversine(a, b)
    d2 = haversine(b, a)
    assert abs(d1 - d2) <= 1e-9
    assert 0.0 <= d1 <= pi * EARTH_RADIUS_KM + 1e-9


# ── Selection ────────────────────────────────────────────────────────

def test_nearest_skips_unknown_position():
    f1 = _flight("f1", 51.6, -0.2)
    f2 = _flight("f2", baro_altitude=10000.0)
    f3 = _flight("f3", 40.0, -3.0)

    result = nearest_flight(LONDON, [f1, f2, f3])

    assert result.flight is f1
    assert result.distance == pytest.approx(haversine(LONDON, Coordinate(51.6, -0.2)))
    assert result.flight.baro_altitude is None


def test_half_known_position_is_skipped():
    only_lat = _flight("lat", lat=51.5)
    only_lon = _flight("lon", lon=-0.1)
    far = _flight("far", -33.9, 151.2)
    assert nearest_flight(LONDON, [only_lat, only_lon, far]).flight is far


def test_distances_excludes_position_unknown():
    flights = [_flight("a", 1.0, 1.0), _flight("b"), _flight("c", 2.0, None)]
    results = list(distances(Coordinate(0.0, 0.0), flights))
    assert [r.flight.icao24 for r in results] == ["a"]
    assert results[0].distance > 0


def test_nearest_empty_feed():
    with pytest.raises(NoFlightsFoundError):
        nearest_flight(LONDON, [])


def test_nearest_all_position_unknown():
    with pytest.raises(NoFlightsFoundError):
        nearest_flight(LONDON, [_flight("a"), _flight("b", lat=1.0)])


def test_nearest_accepts_generator():
    flights = (_flight(f"f{i}", float(i), 0.0) for i in range(10, 0, -1))
    assert nearest_flight(Coordinate(0.0, 0.0), flights).flight.icao24 == "f1"


def test_tie_goes_to_first_in_feed_order():
    east = _flight("east", 0.0, 1.0)
    west = _flight("west", 0.0, -1.0)
    origin = Coordinate(0.0, 0.0)
    assert nearest_flight(origin, [east, west]).flight is east
    assert nearest_flight(origin, [west, east]).flight is west


def test_flight_at_reference_point():
    here = _flight("here", 51.5, -0.1)
    result = nearest_flight(LONDON, [_flight("x", 51.0, 0.0), here])
    assert result == DistanceResult(0.0, here)


def test_rank_flights():
    flights = [
        _flight("far", 40.0, -3.0),
        _flight("none"),
        _flight("near", 51.6, -0.2),
        _flight("mid", 51.47, -0.4543),
    ]
    ranked = rank_flights(LONDON, flights)
    assert [r.flight.icao24 for r in ranked] == ["near", "mid", "far"]
    assert ranked[0].distance <= ranked[1].distance <= ranked[2].distance

    assert [r.flight.icao24 for r in rank_flights(LONDON, flights, limit=2)] == ["near", "mid"]


def test_rank_flights_stable_for_ties():
    flights = [_flight(name, 0.0, lon) for name, lon in [("a", 1.0), ("b", -1.0), ("c", 1.0)]]
    ranked = rank_flights(Coordinate(0.0, 0.0), flights)
    assert [r.flight.icao24 for r in ranked] == ["a", "b", "c"]


def test_airborne_filter():
    flights = [
        _flight("ground", 51.5, -0.1, on_ground=True),
        _flight("air", 51.6, -0.2, on_ground=False),
        _flight("unknown", 51.7, -0.3),
    ]
    assert [f.icao24 for f in airborne(flights)] == ["air", "unknown"]
    assert nearest_flight(LONDON, airborne(flights)).flight.icao24 == "air"


# ── Formatting ───────────────────────────────────────────────────────

def test_format_altitude():
    assert format_altitude(None) == "---"
    assert format_altitude(10668) == "FL350"
    assert format_altitude(304.8) == "1000ft"


def test_format_speed():
    assert format_speed(None) == "---"
    assert format_speed(231.5) == "450kt"


def test_format_heading():
    assert format_heading(None) == "---"
    assert format_heading(45) == "NE045"
    assert format_heading(0.0) == "N000"
    assert format_heading(359.9) == "N359"


def test_format_distance():
    assert format_distance(None) == "---"
    assert format_distance(5.7) == "5.7km"
    assert format_distance(12.34) == "12km"


def test_format_vertical_rate():
    assert format_vertical_rate(None) == "---"
    assert format_vertical_rate(0.1) == "level"
    assert format_vertical_rate(-3.25) == "-640fpm"


def test_format_result():
    flight = FlightState(
        icao24="4ca7b5",
        callsign="RYR8TQ",
        origin_country="Ireland",
        latitude=51.6,
        longitude=-0.2,
        velocity=180.5,
        true_track=270.0,
        squawk="1571",
    )
    text = format_result(DistanceResult(13.1234, flight))
    assert "RYR8TQ (4ca7b5)" in text
    assert "Ireland" in text
    assert "13km (13.123 km)" in text
    assert "51.6000, -0.2000" in text
    assert "Altitude:   ---" in text
    assert "W270" in text
    assert "1571" in text
    assert "on ground" not in text


def test_format_result_unknown_callsign():
    flight = FlightState(icao24="406a93", latitude=51.47, longitude=-0.4543, on_ground=True)
    text = format_result(DistanceResult(24.8, flight))
    assert "--- (406a93)" in text
    assert "Status:     on ground" in text


@pytest.mark.parametrize("limit", [0, -1])
def test_rank_flights_rejects_non_positive_limit(limit):
    with pytest.raises(ValueError):
        rank_flights(LONDON, [_flight("a", 51.6, -0.2)], limit=limit)
