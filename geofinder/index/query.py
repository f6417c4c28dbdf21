"""Resolve a query coordinate to its region and run a radius search there."""

from __future__ import annotations

from typing import Any

from geofinder.common.config_loader import QuerySettings
from geofinder.common.models import PointRecord
from geofinder.index.builder import ProximityIndex
from geofinder.index.projection import km_radius_to_squared_chord, project


def _candidate_keys_first(index: ProximityIndex, lat_deg: float, lon_deg: float, squared_chord: float) -> list[int]:
    region = index.regions.first_containing(lon_deg, lat_deg)
    if region is None:
        return []
    # The first containing region decides, even when it has no index.
    region_index = index.region_indices.get(region.position)
    if region_index is None:
        return []
    return region_index.within(project(lat_deg, lon_deg), squared_chord)


def _candidate_keys_all(index: ProximityIndex, lat_deg: float, lon_deg: float, squared_chord: float) -> list[int]:
    coordinate = project(lat_deg, lon_deg)
    seen: set[int] = set()
    keys: list[int] = []
    for region in index.regions.all_containing(lon_deg, lat_deg):
        region_index = index.region_indices.get(region.position)
        if region_index is None:
            continue
        for key in region_index.within(coordinate, squared_chord):
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def query(
    index: ProximityIndex,
    lat_deg: float,
    lon_deg: float,
    radius_km: float,
    *,
    resolution: str = "first",
) -> list[PointRecord]:
    if radius_km < 0:
        raise ValueError(f"Search radius must not be negative: {radius_km}")
    squared_chord = km_radius_to_squared_chord(radius_km)
    if resolution == "first":
        keys = _candidate_keys_first(index, lat_deg, lon_deg, squared_chord)
    elif resolution == "all":
        keys = _candidate_keys_all(index, lat_deg, lon_deg, squared_chord)
    else:
        raise ValueError(f"Unknown region resolution mode: {resolution}")
    return [index.record(key) for key in keys]


def search(index: ProximityIndex, longitude: float, latitude: float, settings: QuerySettings) -> list[dict[str, Any]]:
    records = query(index, latitude, longitude, settings.radius_km, resolution=settings.resolution)
    return [record.to_search_result() for record in records]
