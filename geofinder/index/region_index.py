"""Per-region k-d tree over unit-sphere coordinates."""

from __future__ import annotations

import numpy as np
from scipy.spatial import cKDTree

CANDIDATE_SLACK = 1e-9


class RegionIndex:
    """Immutable radius-search structure mapping coordinates to record keys."""

    def __init__(self, coordinates: np.ndarray, keys: np.ndarray) -> None:
        coordinates = np.asarray(coordinates, dtype=float).reshape(-1, 3)
        keys = np.asarray(keys, dtype=np.int64).reshape(-1)
        if len(coordinates) != len(keys):
            raise ValueError("coordinates and keys must have the same length")
        coordinates.setflags(write=False)
        keys.setflags(write=False)
        self._coordinates = coordinates
        self._keys = keys
        self._tree = cKDTree(coordinates) if len(keys) else None

    @classmethod
    def empty(cls) -> "RegionIndex":
        return cls(np.empty((0, 3)), np.empty(0, dtype=np.int64))

    def __len__(self) -> int:
        return len(self._keys)

    def keys(self) -> np.ndarray:
        return self._keys

    def coordinates(self) -> np.ndarray:
        return self._coordinates

    def within(self, coordinate, squared_chord: float) -> list[int]:
        """Keys of all coordinates whose squared chord distance is <= `squared_chord`."""
        if self._tree is None:
            return []
        query = np.asarray(coordinate, dtype=float)
        # Widen the tree radius, then decide the boundary on squared distance.
        radius = float(np.sqrt(squared_chord)) * (1.0 + CANDIDATE_SLACK)
        hits = np.asarray(self._tree.query_ball_point(query, radius), dtype=np.intp)
        if not len(hits):
            return []
        squared = np.sum((self._coordinates[hits] - query) ** 2, axis=1)
        return [int(key) for key in self._keys[hits[squared <= squared_chord]]]

