"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from geofinder.common.constants import DEFAULT_RADIUS_KM
from geofinder.common.errors import ConfigError
from geofinder.common.fs import read_yaml
from geofinder.common.schema import validate_finder_config


@dataclass(frozen=True)
class RegionSourceConfig:
    sources: tuple[str, ...]
    source_epsg: int = 4326


@dataclass(frozen=True)
class PointSourceConfig:
    path: Path
    id_column: str = "id"
    lat_column: str = "latitude"
    lon_column: str = "longitude"


@dataclass(frozen=True)
class QuerySettings:
    radius_km: float = DEFAULT_RADIUS_KM
    resolution: str = "first"


@dataclass(frozen=True)
class FinderSettings:
    regions: RegionSourceConfig
    points: PointSourceConfig
    query: QuerySettings = QuerySettings()
    workers: int = 1
    host: str = "0.0.0.0"
    port: int = 8085


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    return _deep_merge(base, overlay)


def is_remote_source(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _resolve_source(source: str, base_dir: Path) -> str:
    source = source.strip()
    if is_remote_source(source):
        return source
    path = Path(source)
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


def settings_from_dict(cfg: dict, base_dir: Path) -> FinderSettings:
    regions = cfg["regions"]
    points = cfg["points"]
    query = cfg.get("query") or {}
    server = cfg.get("server") or {}

    points_path = Path(points["path"])
    if not points_path.is_absolute():
        points_path = base_dir / points_path

    return FinderSettings(
        regions=RegionSourceConfig(
            sources=tuple(_resolve_source(source, base_dir) for source in regions["sources"]),
            source_epsg=regions.get("source_epsg", 4326),
        ),
        points=PointSourceConfig(
            path=points_path,
            id_column=points.get("id_column", "id"),
            lat_column=points.get("lat_column", "latitude"),
            lon_column=points.get("lon_column", "longitude"),
        ),
        query=QuerySettings(
            radius_km=float(query.get("radius_km", DEFAULT_RADIUS_KM)),
            resolution=query.get("resolution", "first"),
        ),
        workers=(cfg.get("build") or {}).get("workers", 1),
        host=server.get("host", "0.0.0.0"),
        port=server.get("port", 8085),
    )


def load_finder_config(
    config_path: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> FinderSettings:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / config_path.name
    cfg = validate_finder_config(
        _load_yaml_with_overlay(config_path, overlay_path),
        allow_unknown=allow_unknown,
    )
    return settings_from_dict(cfg, config_path.resolve().parent)
