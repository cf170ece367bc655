"""Distance ranking, nearest-flight selection and formatting. Pure functions."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt

from coordinates import Coordinate
from errors import NoFlightsFoundError
from flight_data import FlightState

# ── Distance ─────────────────────────────────────────────────────────

EARTH_RADIUS_KM = 6371.0


def haversine(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two points in km."""
    if a == b:
        return 0.0
    lat1, lon1, lat2, lon2 = map(radians, (a.latitude, a.longitude, b.latitude, b.longitude))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h just outside [0, 1] near identical or antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * asin(sqrt(h))


# ── Selection ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DistanceResult:
    distance: float  # km
    flight: FlightState


def distances(reference: Coordinate, flights: Iterable[FlightState]) -> Iterator[DistanceResult]:
    """Distance to every flight with a known position; the rest are skipped."""
    for f in flights:
        position = f.position
        if position is None:
            continue
        yield DistanceResult(haversine(reference, position), f)


def nearest_flight(reference: Coordinate, flights: Iterable[FlightState]) -> DistanceResult:
    """Closest flight to reference. On equal distances the earliest in feed order wins."""
    nearest = min(distances(reference, flights), key=lambda r: r.distance, default=None)
    if nearest is None:
        raise NoFlightsFoundError("No flights with a known position")
    return nearest


def rank_flights(
    reference: Coordinate,
    flights: Iterable[FlightState],
    limit: int | None = None,
) -> list[DistanceResult]:
    """Flights with known position sorted by distance (stable for ties)."""
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    ranked = sorted(distances(reference, flights), key=lambda r: r.distance)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def airborne(flights: Iterable[FlightState]) -> list[FlightState]:
    """Drop ground traffic. Flights with unknown ground state are kept."""
    return [f for f in flights if f.on_ground is not True]


# ── Formatting helpers ───────────────────────────────────────────────

_CARDINALS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def format_altitude(meters: float | None) -> str:
    """Convert meters to flight level or feet."""
    if meters is None:
        return "---"
    feet = meters * 3.28084
    if feet >= 18000:
        return f"FL{int(round(feet / 100))}"
    return f"{int(round(feet))}ft"


def format_speed(mps: float | None) -> str:
    """Convert m/s to knots."""
    if mps is None:
        return "---"
    knots = mps * 1.94384
    return f"{int(round(knots))}kt"


def format_heading(degrees: float | None) -> str:
    """Convert degrees to cardinal direction + 3-digit heading."""
    if degrees is None:
        return "---"
    idx = int((degrees + 11.25) / 22.5) % 16
    return f"{_CARDINALS[idx]}{int(degrees) % 360:03d}"


def format_distance(km: float | None) -> str:
    """Format distance in km, one decimal below 10 km."""
    if km is None:
        return "---"
    if km < 10:
        return f"{km:.1f}km"
    return f"{int(round(km))}km"


def format_vertical_rate(mps: float | None) -> str:
    """Convert m/s vertical rate to fpm; level flight shows as "level"."""
    if mps is None:
        return "---"
    if abs(mps) < 0.5:
        return "level"
    fpm = int(round(mps * 196.85))
    return f"{fpm:+d}fpm"


def format_result(result: DistanceResult) -> str:
    """Multi-line description of the nearest flight."""
    f = result.flight
    lines = [
        f"Flight:     {f.callsign or '---'} ({f.icao24})",
        f"Country:    {f.origin_country or '---'}",
        f"Distance:   {format_distance(result.distance)} ({result.distance:.3f} km)",
        f"Position:   {f.latitude:.4f}, {f.longitude:.4f}",
        f"Altitude:   {format_altitude(f.baro_altitude)}",
        f"Speed:      {format_speed(f.velocity)}",
        f"Heading:    {format_heading(f.true_track)}",
        f"Climb:      {format_vertical_rate(f.vertical_rate)}",
        f"Squawk:     {f.squawk or '---'}",
    ]
    if f.on_ground:
        lines.append("Status:     on ground")
    return "\n".join(lines)
