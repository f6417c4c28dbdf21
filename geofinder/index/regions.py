"""Region geometry store: ordered simple polygons with containment tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

import numpy as np
import shapely
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

SkipCallback = Callable[[str], None]


@dataclass(frozen=True)
class Region:
    position: int
    name: str
    polygon: Polygon

    def contains(self, lon: float, lat: float) -> bool:
        return bool(shapely.contains_xy(self.polygon, lon, lat))

    def contains_many(self, lons: np.ndarray, lats: np.ndarray) -> np.ndarray:
        if len(lons) == 0:
            return np.zeros(0, dtype=bool)
        return np.asarray(shapely.contains_xy(self.polygon, lons, lats), dtype=bool)


def flatten_geometry(geometry: BaseGeometry, *, on_skip: SkipCallback | None = None) -> list[Polygon]:
    """Flatten polygons, multi-polygons and nested collections into simple polygons.

    Non-area geometries are reported through `on_skip` and dropped.
    """
    if isinstance(geometry, Polygon):
        if geometry.is_empty:
            if on_skip is not None:
                on_skip("EmptyPolygon")
            return []
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        polygons: list[Polygon] = []
        for part in geometry.geoms:
            polygons.extend(flatten_geometry(part, on_skip=on_skip))
        return polygons
    if isinstance(geometry, GeometryCollection):
        polygons = []
        for part in geometry.geoms:
            polygons.extend(flatten_geometry(part, on_skip=on_skip))
        return polygons
    if on_skip is not None:
        on_skip(geometry.geom_type)
    return []


class RegionStore:
    """Ordered, immutable sequence of regions. Order decides overlap tie-breaks."""

    def __init__(self, regions: Iterable[Region]) -> None:
        self._regions = tuple(regions)
        for expected, region in enumerate(self._regions):
            if region.position != expected:
                raise ValueError(f"Region {region.name!r} has position {region.position}, expected {expected}")
        for region in self._regions:
            shapely.prepare(region.polygon)

    @classmethod
    def from_polygons(cls, named_polygons: Iterable[tuple[str, Polygon]]) -> "RegionStore":
        return cls(
            Region(position=position, name=name, polygon=polygon)
            for position, (name, polygon) in enumerate(named_polygons)
        )

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def __getitem__(self, position: int) -> Region:
        return self._regions[position]

    def first_containing(self, lon: float, lat: float) -> Region | None:
        for region in self._regions:
            if region.contains(lon, lat):
                return region
        return None

    def all_containing(self, lon: float, lat: float) -> list[Region]:
        return [region for region in self._regions if region.contains(lon, lat)]
