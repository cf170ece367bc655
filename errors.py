"""Errors raised while locating the nearest flight."""


class NearestFlightError(Exception):
    """Base class for every failure surfaced to the command line."""


class ParseError(NearestFlightError):
    """Coordinate input could not be parsed."""


class DecodeError(NearestFlightError):
    """Feed payload does not have the expected shape."""


class FeedError(NearestFlightError):
    """The flight-state feed could not be fetched."""


class NoFlightsFoundError(NearestFlightError):
    """No flight with a known position was available to rank."""
