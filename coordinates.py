"""Coordinate type and free-form coordinate parsing."""

import logging
import re
from dataclasses import dataclass

from errors import ParseError

logger = logging.getLogger(__name__)

# Two tokens split by whitespace, a comma, or a comma with whitespace around it
_SEPARATOR = re.compile(r"\s*,\s*|\s+")
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_HEMISPHERES = ("NS", "EW")


@dataclass(frozen=True)
class Coordinate:
    """A point on the earth's surface in decimal degrees."""
    latitude: float
    longitude: float


def _join_hemispheres(tokens: list[str]) -> list[str]:
    """Attach a free-standing hemisphere letter to the number before it."""
    joined: list[str] = []
    for token in tokens:
        if len(token) == 1 and token.upper() in "NSEW" and joined:
            joined[-1] += token
        else:
            joined.append(token)
    return joined


def _parse_token(token: str, axis: int) -> float:
    hemisphere = ""
    if token and token[-1].upper() in "NSEW":
        hemisphere = token[-1].upper()
        token = token[:-1]

    if not _NUMBER.fullmatch(token):
        raise ParseError(f"Not a decimal number: {token!r}")
    value = float(token)

    if hemisphere:
        if hemisphere not in _HEMISPHERES[axis]:
            name = "latitude" if axis == 0 else "longitude"
            raise ParseError(f"Hemisphere {hemisphere!r} is not valid for {name}")
        if value < 0:
            raise ParseError(f"Negative value with hemisphere: {token}{hemisphere}")
        if hemisphere in "SW":
            value = -value
    return value


def parse_coordinate(text: str) -> Coordinate:
    """Parse "LAT, LON", "LAT LON" or "12.5 N 14.75 W" into a Coordinate."""
    stripped = text.strip()
    if not stripped:
        raise ParseError("Expected a latitude and a longitude, got nothing")

    tokens = _join_hemispheres(_SEPARATOR.split(stripped))
    if len(tokens) != 2:
        raise ParseError(f"Expected 2 numbers (latitude, longitude), got {len(tokens)}: {stripped!r}")

    lat = _parse_token(tokens[0], 0)
    lon = _parse_token(tokens[1], 1)
    if not -90.0 <= lat <= 90.0:
        raise ParseError(f"Latitude out of range [-90, 90]: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ParseError(f"Longitude out of range [-180, 180]: {lon}")

    logger.debug("Parsed coordinate %r as (%f, %f)", stripped, lat, lon)
    return Coordinate(lat, lon)
