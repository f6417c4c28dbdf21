"""GeoJSON boundary ingestion into an ordered region store."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any, Iterable
from urllib.parse import urlparse

import shapely.ops
from pyproj import CRS, Transformer
from shapely.errors import ShapelyError
from shapely.geometry import Polygon, shape
from shapely.geometry.base import BaseGeometry

from geofinder.common.config_loader import RegionSourceConfig, is_remote_source
from geofinder.common.errors import ConstructionError
from geofinder.common.fs import read_json
from geofinder.common.http import HttpClient
from geofinder.common.logging import log_event
from geofinder.index.regions import RegionStore, flatten_geometry


def _source_stem(source: str) -> str:
    if is_remote_source(source):
        name = PurePosixPath(urlparse(source).path).stem
        return name or urlparse(source).netloc
    return Path(source).stem


def _read_source(source: str, http_client: HttpClient | None) -> Any:
    if is_remote_source(source):
        if http_client is None:
            with HttpClient() as client:
                return client.get_json(source)
        return http_client.get_json(source)

    path = Path(source)
    if not path.exists():
        raise ConstructionError(f"Boundary source not found: {path}")
    try:
        return read_json(path)
    except (OSError, ValueError) as exc:
        raise ConstructionError(f"Unreadable boundary source: {path}") from exc


def _iter_geometries(payload: Any, source: str, logger: logging.Logger | None) -> Iterable[dict]:
    if not isinstance(payload, dict):
        raise ConstructionError(f"Unsupported GeoJSON payload shape in {source}")
    kind = payload.get("type")
    if kind == "FeatureCollection":
        features = payload.get("features") or []
    elif kind == "Feature":
        features = [payload]
    elif kind is not None:
        yield payload
        return
    else:
        raise ConstructionError(f"GeoJSON payload without a type in {source}")

    for feature in features:
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        if geometry is None:
            log_event(
                logger,
                "feature without geometry skipped",
                level=logging.WARNING,
                stage="ingest",
                source=source,
                event="GEOMETRY_SKIPPED",
                status="warning",
            )
            continue
        yield geometry


def _to_shape(geometry: dict, source: str) -> BaseGeometry:
    try:
        return shape(geometry)
    except (ShapelyError, KeyError, TypeError, ValueError) as exc:
        raise ConstructionError(f"Invalid GeoJSON geometry in {source}") from exc


def _wgs84_transformer(source_epsg: int) -> Transformer | None:
    if source_epsg == 4326:
        return None
    try:
        return Transformer.from_crs(CRS.from_epsg(source_epsg), CRS.from_epsg(4326), always_xy=True)
    except Exception as exc:
        raise ConstructionError(f"Unsupported boundary CRS: EPSG:{source_epsg}") from exc


def polygons_from_payload(
    payload: Any,
    source: str,
    *,
    logger: logging.Logger | None = None,
) -> list[Polygon]:
    def _report_skip(geom_type: str) -> None:
        log_event(
            logger,
            f"non-area geometry skipped: {geom_type}",
            level=logging.WARNING,
            stage="ingest",
            source=source,
            event="GEOMETRY_SKIPPED",
            status="warning",
        )

    polygons: list[Polygon] = []
    for geometry in _iter_geometries(payload, source, logger):
        polygons.extend(flatten_geometry(_to_shape(geometry, source), on_skip=_report_skip))
    return polygons


def _name_polygons(stem: str, polygons: list[Polygon]) -> list[tuple[str, Polygon]]:
    if len(polygons) == 1:
        return [(stem, polygons[0])]
    return [(f"{stem}#{idx}", polygon) for idx, polygon in enumerate(polygons)]


def load_regions(
    config: RegionSourceConfig,
    *,
    http_client: HttpClient | None = None,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> RegionStore:
    transformer = _wgs84_transformer(config.source_epsg)
    named: list[tuple[str, Polygon]] = []

    for source in config.sources:
        polygons = polygons_from_payload(_read_source(source, http_client), source, logger=logger)
        if transformer is not None:
            polygons = [shapely.ops.transform(transformer.transform, polygon) for polygon in polygons]

        named.extend(_name_polygons(_source_stem(source), polygons))

        log_event(
            logger,
            "boundary source loaded",
            run_id=run_id,
            stage="ingest",
            source=source,
            event="REGIONS_LOADED",
            status="ok",
            rows_out=len(polygons),
        )

    if not named:
        raise ConstructionError("Boundary sources yielded no polygons")
    return RegionStore.from_polygons(named)

