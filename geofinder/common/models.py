"""Data models shared by ingestion, indexing and the query surface."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class PointRecord:
    id: int
    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_search_result(self) -> dict[str, Any]:
        return {"id": self.id, "longitude": self.longitude, "latitude": self.latitude}
