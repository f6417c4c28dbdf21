"""Build one radius-search index per region from point records."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence

import numpy as np

from geofinder.common.errors import InternalConsistencyError
from geofinder.common.logging import log_event
from geofinder.common.models import PointRecord
from geofinder.index.projection import project_many
from geofinder.index.region_index import RegionIndex
from geofinder.index.regions import Region, RegionStore


@dataclass(frozen=True)
class ProximityIndex:
    """Regions, their indices and the record table. Read-only once built.

    Internal keys are positions in `records`.
    """

    regions: RegionStore
    region_indices: Mapping[int, RegionIndex]
    records: tuple[PointRecord, ...]

    def record(self, key: int) -> PointRecord:
        if not 0 <= key < len(self.records):
            raise InternalConsistencyError(f"Region index references unknown record key {key}")
        return self.records[key]


@dataclass(frozen=True)
class IndexStats:
    region_count: int
    record_count: int
    indexed_points: int
    unindexed_records: int
    points_per_region: dict[str, int]

    def to_dict(self) -> dict:
        return {
            "region_count": self.region_count,
            "record_count": self.record_count,
            "indexed_points": self.indexed_points,
            "unindexed_records": self.unindexed_records,
            "points_per_region": dict(self.points_per_region),
        }


def _build_region_index(region: Region, lons: np.ndarray, lats: np.ndarray, coordinates: np.ndarray) -> RegionIndex:
    mask = region.contains_many(lons, lats)
    keys = np.flatnonzero(mask)
    return RegionIndex(coordinates[keys], keys)


def verify_integrity(index: ProximityIndex) -> None:
    if set(index.region_indices) != set(range(len(index.regions))):
        raise InternalConsistencyError("Region positions and region indices are out of step")
    record_count = len(index.records)
    for position, region_index in index.region_indices.items():
        keys = region_index.keys()
        if len(keys) and (keys.min() < 0 or keys.max() >= record_count):
            raise InternalConsistencyError(f"Region {position} references keys outside the record table")


def build(
    regions: RegionStore,
    point_records: Sequence[PointRecord],
    *,
    workers: int = 1,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> ProximityIndex:
    started = time.monotonic()
    records = tuple(point_records)
    lons = np.fromiter((record.longitude for record in records), dtype=float, count=len(records))
    lats = np.fromiter((record.latitude for record in records), dtype=float, count=len(records))
    coordinates = project_many(lats, lons)

    log_event(
        logger,
        "index build start",
        run_id=run_id,
        stage="build",
        event="BUILD_START",
        status="ok",
        rows_in=len(records),
    )

    if workers > 1 and len(regions) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            built = list(pool.map(lambda region: _build_region_index(region, lons, lats, coordinates), regions))
    else:
        built = [_build_region_index(region, lons, lats, coordinates) for region in regions]

    region_indices = {}
    for region, region_index in zip(regions, built):
        region_indices[region.position] = region_index
        log_event(
            logger,
            "region indexed",
            level=logging.DEBUG,
            run_id=run_id,
            stage="build",
            region=region.name,
            event="REGION_INDEXED",
            status="ok",
            rows_out=len(region_index),
        )

    index = ProximityIndex(
        regions=regions,
        region_indices=MappingProxyType(region_indices),
        records=records,
    )
    verify_integrity(index)

    log_event(
        logger,
        "index build end",
        run_id=run_id,
        stage="build",
        event="BUILD_END",
        status="ok",
        rows_in=len(records),
        rows_out=sum(len(region_index) for region_index in built),
        duration_ms=int((time.monotonic() - started) * 1000),
        stats=summarise(index).to_dict(),
    )
    return index


def summarise(index: ProximityIndex) -> IndexStats:
    indexed_keys: set[int] = set()
    points_per_region = {}
    for region in index.regions:
        region_index = index.region_indices[region.position]
        indexed_keys.update(int(key) for key in region_index.keys())
        points_per_region[region.name] = len(region_index)
    return IndexStats(
        region_count=len(index.regions),
        record_count=len(index.records),
        indexed_points=sum(points_per_region.values()),
        unindexed_records=len(index.records) - len(indexed_keys),
        points_per_region=points_per_region,
    )
