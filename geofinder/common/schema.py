"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from geofinder.common.constants import RESOLUTION_MODES
from geofinder.common.errors import ConfigError

SECTION_KEYS = {
    "regions": ({"sources"}, {"sources", "source_epsg"}),
    "points": ({"path"}, {"path", "id_column", "lat_column", "lon_column"}),
    "query": (set(), {"radius_km", "resolution"}),
    "build": (set(), {"workers"}),
    "server": (set(), {"host", "port"}),
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_radius_km(radius: object) -> float:
    if not _is_number(radius) or not 0 < radius < float("inf"):
        raise ConfigError("query.radius_km must be a positive number")
    return float(radius)


def validate_finder_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "finder config")
    _assert_required_keys(cfg, {"regions", "points"}, "finder config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "finder config", allow_unknown)

    for section, (required, known) in SECTION_KEYS.items():
        if section not in cfg:
            continue
        body = _assert_mapping(cfg[section], section)
        _assert_required_keys(body, required, section)
        _assert_no_unknown_keys(body, known, section, allow_unknown)

    sources = cfg["regions"]["sources"]
    if not isinstance(sources, list) or not sources:
        raise ConfigError("regions.sources must be a non-empty list")
    if not all(isinstance(source, str) and source.strip() for source in sources):
        raise ConfigError("regions.sources entries must be non-empty strings")

    epsg = cfg["regions"].get("source_epsg", 4326)
    if not isinstance(epsg, int) or isinstance(epsg, bool):
        raise ConfigError("regions.source_epsg must be an integer EPSG code")

    query = cfg.get("query", {})
    validate_radius_km(query.get("radius_km", 40.0))
    resolution = query.get("resolution", "first")
    if resolution not in RESOLUTION_MODES:
        raise ConfigError(f"query.resolution must be one of: {', '.join(RESOLUTION_MODES)}")

    workers = cfg.get("build", {}).get("workers", 1)
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        raise ConfigError("build.workers must be an integer >= 1")

    port = cfg.get("server", {}).get("port", 8085)
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise ConfigError("server.port must be an integer between 1 and 65535")

    return cfg
