"""
Map Generator - Pass 2: Elevation
Sums great circle influence over every tile of the sphere-projected grid,
adds octave noise and clamps to the legal elevation range.

Every tile is independent, so the whole grid is computed as array operations.
"""

import logging

import numpy as np

from mapgen.config import MAX_ELEVATION, MIN_ELEVATION, MapGenerationParams
from mapgen.models.map import MapState
from mapgen.utils.noise import SinusoidalNoise
from mapgen.utils.spatial import lon_lat_to_unit_vectors, tile_lon_lat

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Compute the clamped integer elevation grid.

    Args:
        map_state: Map state to update (needs great_circles)
        params: Generation parameters
    """
    width, height = map_state.width, map_state.height

    lon, lat = tile_lon_lat(width, height)
    points = lon_lat_to_unit_vectors(lon, lat)

    total = np.zeros((height, width), dtype=np.float64)

    # One tile of longitude at the equator, in radians
    tile_angle = 2 * np.pi / width

    for circle in map_state.great_circles:
        normal = np.array([circle.vector_x, circle.vector_y, circle.vector_z])
        dot = np.clip(points @ normal, -1.0, 1.0)
        distance = np.abs(np.arcsin(dot))

        radius = circle.radius * tile_angle
        influence = np.where(distance < radius, circle.weight * (1.0 - distance / radius), 0.0)
        total += influence * circle.height_modifier

    noise = SinusoidalNoise(rng=map_state.rng)
    total += noise.generate(width, height)

    # Truncate toward zero before clamping
    elevation = np.clip(np.trunc(total), MIN_ELEVATION, MAX_ELEVATION).astype(np.int32)
    map_state.elevation = elevation

    logger.debug(
        f"Elevation range {int(elevation.min())}..{int(elevation.max())}, "
        f"mean {float(elevation.mean()):.1f}"
    )
