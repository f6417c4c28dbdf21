"""Random point generation inside a bounding box, for demos and load tests."""

from __future__ import annotations

import random
from pathlib import Path

from geofinder.common.constants import DEFAULT_SAMPLE_BBOX
from geofinder.common.fs import write_csv
from geofinder.common.models import PointRecord

POINT_HEADERS = ["id", "latitude", "longitude"]


def generate_points(*, rows: int, seed: int, bbox: dict | None = None) -> list[PointRecord]:
    bbox = bbox or DEFAULT_SAMPLE_BBOX
    rng = random.Random(seed)
    return [
        PointRecord(
            id=idx,
            latitude=round(rng.uniform(bbox["min_lat"], bbox["max_lat"]), 6),
            longitude=round(rng.uniform(bbox["min_lon"], bbox["max_lon"]), 6),
        )
        for idx in range(rows)
    ]


def write_points_csv(path: Path, records: list[PointRecord]) -> Path:
    write_csv(path, POINT_HEADERS, (record.to_dict() for record in records))
    return path
