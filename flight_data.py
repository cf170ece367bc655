"""OpenSky Network state vectors: model, JSON decoding/encoding and HTTP client."""

import json
import logging
from dataclasses import astuple, dataclass, fields
from math import cos, isfinite, radians

import requests

import config
from coordinates import Coordinate
from errors import DecodeError, FeedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlightState:
    """Single aircraft state vector. None marks a value the feed did not report."""
    icao24: str
    callsign: str | None = None
    origin_country: str | None = None
    time_position: int | None = None  # unix seconds
    last_contact: int | None = None  # unix seconds
    longitude: float | None = None
    latitude: float | None = None
    baro_altitude: float | None = None  # meters
    on_ground: bool | None = None
    velocity: float | None = None  # m/s
    true_track: float | None = None  # degrees clockwise from north
    vertical_rate: float | None = None  # m/s
    sensors: tuple[int, ...] | None = None
    geo_altitude: float | None = None  # meters
    squawk: str | None = None
    spi: bool | None = None
    position_source: int | None = None  # 0 ADS-B, 1 ASTERIX, 2 MLAT, 3 FLARM
    category: int | None = None

    @property
    def position(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class StatesSnapshot:
    """One states/all response."""
    time: int | None
    states: list[FlightState]


# Field order of a positional state vector row
STATE_FIELDS = tuple(f.name for f in fields(FlightState))

_FLOAT_FIELDS = {
    "longitude", "latitude", "baro_altitude", "velocity",
    "true_track", "vertical_rate", "geo_altitude",
}
_INT_FIELDS = {"time_position", "last_contact", "position_source", "category"}
_BOOL_FIELDS = {"on_ground", "spi"}
_STR_FIELDS = {"callsign", "origin_country", "squawk"}


# ── Decoding ─────────────────────────────────────────────────────────

def _convert(name: str, value, row_index: int):
    """Type-check one telemetry value; None stays None."""
    if value is None:
        return None

    def bad():
        return DecodeError(
            f"Row {row_index}: field {name!r} has unexpected value {value!r}"
        )

    # bool is a subclass of int, so it is excluded from the numeric branches
    if name in _FLOAT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise bad()
        # json accepts NaN and Infinity literals
        if not isfinite(value):
            raise bad()
        return float(value)
    if name in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise bad()
        return value
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise bad()
        return value
    if name in _STR_FIELDS:
        if not isinstance(value, str):
            raise bad()
        value = value.strip()
        return value or None
    if name == "sensors":
        if not isinstance(value, list) or any(
            isinstance(s, bool) or not isinstance(s, int) for s in value
        ):
            raise bad()
        return tuple(value)
    raise bad()


def _decode_row(row, row_index: int) -> FlightState:
    if isinstance(row, list):
        raw = dict(zip(STATE_FIELDS, row))
    elif isinstance(row, dict):
        raw = {name: row.get(name) for name in STATE_FIELDS}
    else:
        raise DecodeError(f"Row {row_index}: expected an array or object, got {type(row).__name__}")

    icao24 = raw.pop("icao24", None)
    if not isinstance(icao24, str) or not icao24.strip():
        raise DecodeError(f"Row {row_index}: missing or invalid icao24 identifier {icao24!r}")

    values = {name: _convert(name, value, row_index) for name, value in raw.items()}
    return FlightState(icao24=icao24.strip().lower(), **values)


def decode_snapshot(data: str | bytes) -> StatesSnapshot:
    """Decode a states/all JSON document, keeping the feed timestamp."""
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise DecodeError(f"Feed response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a JSON object at top level, got {type(payload).__name__}")
    if "states" not in payload:
        raise DecodeError("Feed response has no 'states' array")

    rows = payload["states"]
    # OpenSky answers null rather than [] when nothing matches the query
    if rows is None:
        rows = []
    if not isinstance(rows, list):
        raise DecodeError(f"Expected 'states' to be an array, got {type(rows).__name__}")

    snapshot_time = payload.get("time")
    if snapshot_time is not None and (isinstance(snapshot_time, bool) or not isinstance(snapshot_time, int)):
        raise DecodeError(f"Unexpected 'time' value {snapshot_time!r}")

    states = [_decode_row(row, i) for i, row in enumerate(rows)]
    logger.debug("Decoded %d state vectors", len(states))
    return StatesSnapshot(time=snapshot_time, states=states)


def decode_states(data: str | bytes) -> list[FlightState]:
    """Decode a states/all JSON document into flight states, in feed order."""
    return decode_snapshot(data).states


# ── Encoding ─────────────────────────────────────────────────────────

def encode_state(state: FlightState) -> list:
    """Positional state vector row, with None for unknown values."""
    row = list(astuple(state))
    sensors_index = STATE_FIELDS.index("sensors")
    if row[sensors_index] is not None:
        row[sensors_index] = list(row[sensors_index])
    return row


def encode_states(states: list[FlightState], time: int | None = None) -> str:
    """Serialize flight states as a states/all JSON document."""
    return json.dumps({"time": time, "states": [encode_state(s) for s in states]})


# ── HTTP client ──────────────────────────────────────────────────────

class OpenSkyClient:
    def __init__(self, session: requests.Session | None = None):
        self._session = session or requests.Session()
        if config.OPENSKY_USERNAME:
            self._session.auth = (config.OPENSKY_USERNAME, config.OPENSKY_PASSWORD)
        self._session.headers["User-Agent"] = config.USER_AGENT

    @staticmethod
    def get_bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float] | None:
        """Convert center + radius to (lamin, lomin, lamax, lomax).

        Returns None when the box would cross the antimeridian or a pole, which a
        single states/all box cannot express; callers then query the whole feed.
        """
        km_per_deg_lat = 111.32
        km_per_deg_lon = 111.32 * cos(radians(lat))
        if km_per_deg_lon < 1:
            km_per_deg_lon = 1  # avoid division by zero near poles
        dlat = radius_km / km_per_deg_lat
        dlon = radius_km / km_per_deg_lon
        if lat - dlat < -90.0 or lat + dlat > 90.0:
            return None
        if lon - dlon < -180.0 or lon + dlon > 180.0:
            return None
        return (
            lat - dlat,
            lon - dlon,
            lat + dlat,
            lon + dlon,
        )

    def fetch_states_text(self, bbox: tuple[float, float, float, float] | None = None) -> str:
        """Fetch the raw states/all document, optionally limited to a bounding box."""
        url = f"{config.OPENSKY_BASE_URL}/states/all"
        params = None
        if bbox is not None:
            lamin, lomin, lamax, lomax = bbox
            params = {"lamin": lamin, "lomin": lomin, "lamax": lamax, "lomax": lomax}
        try:
            resp = self._session.get(url, params=params, timeout=config.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("Failed to fetch states: %s", e)
            raise FeedError(f"Error calling OpenSky API: {e}") from e

        if resp.status_code == 429:
            logger.warning("Rate limited by OpenSky (429)")
            raise FeedError("Rate limited by OpenSky API (HTTP 429)")
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            logger.warning("OpenSky returned HTTP %s", resp.status_code)
            raise FeedError(f"OpenSky API returned HTTP {resp.status_code}") from e

        return resp.text

    def fetch_states(self, bbox: tuple[float, float, float, float] | None = None) -> list[FlightState]:
        """Fetch and decode current state vectors."""
        return decode_states(self.fetch_states_text(bbox))
