from __future__ import annotations

import json
from pathlib import Path

import pytest
from pyproj import Geod
from shapely.geometry import box

from geofinder.common.models import PointRecord
from geofinder.index.regions import RegionStore

WGS84 = Geod(ellps="WGS84")


def square_ring(min_lon: float, min_lat: float, max_lon: float, max_lat: float) -> list[list[float]]:
    return [
        [min_lon, min_lat],
        [max_lon, min_lat],
        [max_lon, max_lat],
        [min_lon, max_lat],
        [min_lon, min_lat],
    ]


def offset_point(lat: float, lon: float, azimuth: float, distance_km: float) -> tuple[float, float]:
    lon2, lat2, _ = WGS84.fwd(lon, lat, azimuth, distance_km * 1000.0)
    return lat2, lon2


@pytest.fixture
def disjoint_regions() -> RegionStore:
    return RegionStore.from_polygons(
        [
            ("R1", box(2.0, 46.0, 3.0, 47.0)),
            ("R2", box(5.0, 46.0, 6.0, 47.0)),
        ]
    )


@pytest.fixture
def overlapping_regions() -> RegionStore:
    return RegionStore.from_polygons(
        [
            ("R1", box(2.0, 46.0, 3.0, 47.0)),
            ("R2", box(2.8, 46.0, 3.8, 47.0)),
        ]
    )


@pytest.fixture
def geod_offset():
    return offset_point


@pytest.fixture
def write_geojson(tmp_path: Path):
    def _write(name: str, payload: dict) -> Path:
        path = tmp_path / "regions" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def square_feature():
    def _feature(min_lon: float, min_lat: float, max_lon: float, max_lat: float, **properties) -> dict:
        return {
            "type": "Feature",
            "properties": properties,
            "geometry": {"type": "Polygon", "coordinates": [square_ring(min_lon, min_lat, max_lon, max_lat)]},
        }

    return _feature


@pytest.fixture
def write_points_csv(tmp_path: Path):
    def _write(records: list[PointRecord], name: str = "points.csv") -> Path:
        path = tmp_path / name
        lines = ["id,latitude,longitude"]
        lines.extend(f"{r.id},{r.latitude},{r.longitude}" for r in records)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
