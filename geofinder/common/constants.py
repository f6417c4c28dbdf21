"""Application constants."""

USER_AGENT = "geofinder/0.3 (+proximity-search)"
EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 40.0
RESOLUTION_MODES = ("first", "all")
COMMANDS = (
    "build",
    "query",
    "serve",
    "sample-points",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
# Approximate bounds of metropolitan France.
DEFAULT_SAMPLE_BBOX = {
    "min_lat": 41.303,
    "max_lat": 51.124,
    "min_lon": -5.725,
    "max_lon": 9.562,
}
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "region",
    "source",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "stats",
    "message",
)
