"""
Map Generator - Pass 3: Sea Level
Fixes the water/land threshold as a percentile of all elevations.

When a large share of tiles sits on the elevation floor the percentile lands
on the floor itself and no tile would be below it. The threshold is then lifted
just past the deep-ocean margin so the floor becomes ocean.
"""

import logging

import numpy as np

from mapgen.config import OCEAN_DEPTH_MARGIN, SEA_LEVEL_PERCENTILE, MapGenerationParams
from mapgen.models.map import MapState

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Set sea_level from the SEA_LEVEL_PERCENTILE-th value of the sorted elevations.

    Args:
        map_state: Map state to update (needs elevation)
        params: Generation parameters
    """
    map_state.sea_level = resolve_sea_level(map_state.elevation)

    land_fraction = float((map_state.elevation >= map_state.sea_level).mean())
    logger.debug(f"Sea level {map_state.sea_level}m, land fraction {land_fraction:.2%}")


def resolve_sea_level(elevation: np.ndarray) -> int:
    """
    Percentile sea level, raised so the lowest tiles are ocean.

    The result never exceeds the highest elevation, so the highest tile
    always stays land.
    """
    elevations = np.sort(elevation, axis=None)
    index = len(elevations) * SEA_LEVEL_PERCENTILE // 100
    sea_level = int(elevations[index])

    lowest, highest = int(elevations[0]), int(elevations[-1])
    ocean_floor = lowest + OCEAN_DEPTH_MARGIN + 1
    if sea_level < ocean_floor:
        logger.warning(
            f"Sea level {sea_level}m leaves no ocean below the {lowest}m floor, raising to {ocean_floor}m"
        )
        sea_level = min(ocean_floor, highest)

    return sea_level
