"""CSV point-record ingestion."""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Iterable

from geofinder.common.config_loader import PointSourceConfig
from geofinder.common.errors import ConstructionError
from geofinder.common.logging import log_event
from geofinder.common.models import PointRecord


def _safe_int(value: object) -> int | None:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _safe_float(value: object) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def parse_point_rows(rows: Iterable[dict], config: PointSourceConfig) -> tuple[list[PointRecord], int]:
    """Parse CSV rows, dropping malformed ones and repeated ids.

    Returns the records and the number of rows skipped.
    """
    records: list[PointRecord] = []
    seen_ids: set[int] = set()
    skipped = 0

    for row in rows:
        record_id = _safe_int(row.get(config.id_column))
        lat = _safe_float(row.get(config.lat_column))
        lon = _safe_float(row.get(config.lon_column))
        if record_id is None or not _valid_lat_lon(lat, lon) or record_id in seen_ids:
            skipped += 1
            continue
        seen_ids.add(record_id)
        records.append(PointRecord(id=record_id, latitude=lat, longitude=lon))

    return records, skipped


def load_point_records(
    config: PointSourceConfig,
    *,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> list[PointRecord]:
    path = Path(config.path)
    if not path.exists():
        raise ConstructionError(f"Point source not found: {path}")

    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            missing = {config.id_column, config.lat_column, config.lon_column} - set(reader.fieldnames or [])
            if missing:
                raise ConstructionError(f"Point source {path} lacks columns: {', '.join(sorted(missing))}")
            records, skipped = parse_point_rows(reader, config)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise ConstructionError(f"Unreadable point source: {path}") from exc

    if skipped:
        log_event(
            logger,
            f"skipped {skipped} malformed point rows",
            level=logging.WARNING,
            run_id=run_id,
            stage="ingest",
            source=str(path),
            event="ROWS_SKIPPED",
            status="warning",
            rows_in=len(records) + skipped,
            rows_out=len(records),
        )
    log_event(
        logger,
        "point source loaded",
        run_id=run_id,
        stage="ingest",
        source=str(path),
        event="POINTS_LOADED",
        status="ok",
        rows_out=len(records),
    )
    return records
