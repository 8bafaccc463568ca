"""
Map Generator - Spatial Utilities
Sphere projection and grid neighbourhood helpers.
"""

import numpy as np
from typing import List, Tuple
from scipy.ndimage import minimum_filter

# 8-neighbourhood offsets (dx, dy), row by row
NEIGHBORS_8: List[Tuple[int, int]] = [
    (dx, dy)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if not (dx == 0 and dy == 0)
]


def tile_lon_lat(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map every tile to spherical coordinates.

    Longitude spans [-pi, pi) across x, latitude spans [-pi/2, pi/2) down y.

    Returns:
        (lon, lat) arrays of shape (height, width)
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    lon = (xs / width - 0.5) * 2 * np.pi
    lat = (ys / height - 0.5) * np.pi
    return lon, lat


def lon_lat_to_unit_vectors(lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
    """Convert spherical coordinates to 3-D unit vectors, shape (..., 3)"""
    return np.stack(
        [
            np.cos(lat) * np.cos(lon),
            np.cos(lat) * np.sin(lon),
            np.sin(lat),
        ],
        axis=-1,
    )


def absolute_latitude_degrees(height: int) -> np.ndarray:
    """Absolute latitude (0-90) for every row"""
    rows = np.arange(height, dtype=np.float64)
    return np.abs(rows / height - 0.5) * 180.0


def below_in_neighborhood(elevation: np.ndarray, threshold: int) -> np.ndarray:
    """
    True where any in-bounds tile of the 3x3 neighbourhood is below threshold.

    Out-of-bounds cells are padded high so map edges never count as water.
    """
    high = int(elevation.max()) + 1
    neighborhood_min = minimum_filter(elevation, size=3, mode="constant", cval=high)
    return neighborhood_min < threshold


def window_bounds(center_x: int, center_y: int, radius: int, width: int, height: int) -> Tuple[int, int, int, int]:
    """Inclusive-exclusive slice bounds (x0, x1, y0, y1) of a square window clipped to the map"""
    x0 = max(0, center_x - radius)
    x1 = min(width, center_x + radius + 1)
    y0 = max(0, center_y - radius)
    y1 = min(height, center_y + radius + 1)
    return x0, x1, y0, y1
