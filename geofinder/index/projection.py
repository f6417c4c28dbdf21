"""Unit-sphere projection of geographic coordinates.

Euclidean distance between projected points is the chord length on the unit
sphere, which tracks great-circle distance closely for radii far below the
Earth's radius. That lets a plain 3-D k-d tree stand in for a geodesic index.
"""

from __future__ import annotations

import math

import numpy as np

from geofinder.common.constants import EARTH_RADIUS_KM


def project(lat_deg: float, lon_deg: float) -> tuple[float, float, float]:
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    return (math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat))


def project_many(lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised `project`; returns an (n, 3) float array."""
    lat = np.radians(np.asarray(lats, dtype=float))
    lon = np.radians(np.asarray(lons, dtype=float))
    cos_lat = np.cos(lat)
    return np.column_stack((cos_lat * np.cos(lon), cos_lat * np.sin(lon), np.sin(lat)))


def km_radius_to_squared_chord(radius_km: float) -> float:
    return (radius_km / EARTH_RADIUS_KM) ** 2
