"""User-tunable configuration for nearest-flight."""

# ── OpenSky API ──────────────────────────────────────────────────────
OPENSKY_USERNAME = ""  # Leave empty for anonymous access
OPENSKY_PASSWORD = ""
OPENSKY_BASE_URL = "https://opensky-network.org/api"
REQUEST_TIMEOUT = 30  # Seconds; states/all for the whole world is large
USER_AGENT = "nearest-flight/1.0"

# ── Search ───────────────────────────────────────────────────────────
SEARCH_RADIUS_KM = None  # None queries every aircraft in the feed
EXCLUDE_ON_GROUND = False

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL = "INFO"

# ── Local overrides (not checked into git) ───────────────────────────
try:
    from config_local import *  # noqa: F401,F403
except ImportError:
    pass
