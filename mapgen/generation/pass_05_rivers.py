"""
Map Generator - Pass 5: Rivers
Traces rivers from high ground down the steepest descent to the sea.

APPROACH:
- Rejection-sample high tiles as sources
- Step to the lowest strictly lower 8-neighbour
- Stop at sea level, on a revisited tile, or in a local minimum
- Rivers turn desert they cross into grassland
"""

import logging
from typing import Optional, Set, Tuple

from mapgen.config import (
    MIN_RIVERS,
    RIVER_SOURCE_ATTEMPTS,
    RIVER_SOURCE_ELEVATION,
    TERRAIN_CODES,
    TILES_PER_RIVER,
    MapGenerationParams,
    TerrainType,
)
from mapgen.models.map import MapState
from mapgen.utils.spatial import NEIGHBORS_8

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Generate rivers and mark every tile they cross.

    Args:
        map_state: Map state to update (needs elevation, sea_level, terrain)
        params: Generation parameters
    """
    num_rivers = max(MIN_RIVERS, map_state.width // TILES_PER_RIVER)

    traced = 0
    for _ in range(num_rivers):
        source = find_river_source(map_state)
        if source is None:
            continue
        trace_river(map_state, *source)
        traced += 1

    if traced == 0:
        logger.warning(f"No river sources above {RIVER_SOURCE_ELEVATION}m were found")

    logger.debug(f"Traced {traced}/{num_rivers} rivers covering {int(map_state.river.sum())} tiles")


def find_river_source(map_state: MapState) -> Optional[Tuple[int, int]]:
    """Rejection-sample a high land tile, or None when every attempt misses"""
    rng = map_state.rng
    elevation = map_state.elevation

    for _ in range(RIVER_SOURCE_ATTEMPTS):
        x = int(rng.integers(map_state.width))
        y = int(rng.integers(map_state.height))
        if elevation[y, x] > RIVER_SOURCE_ELEVATION and elevation[y, x] >= map_state.sea_level:
            return x, y
    return None


def trace_river(map_state: MapState, start_x: int, start_y: int) -> int:
    """
    Follow steepest descent from (start_x, start_y).

    Returns:
        Number of tiles on the river path
    """
    elevation = map_state.elevation
    desert = TERRAIN_CODES[TerrainType.DESERT]
    grassland = TERRAIN_CODES[TerrainType.GRASSLAND]

    x, y = start_x, start_y
    visited: Set[Tuple[int, int]] = set()

    while (x, y) not in visited:
        visited.add((x, y))

        map_state.river[y, x] = True
        if map_state.terrain[y, x] == desert:
            map_state.terrain[y, x] = grassland

        if elevation[y, x] < map_state.sea_level:
            break

        lowest = elevation[y, x]
        next_x, next_y = x, y
        for dx, dy in NEIGHBORS_8:
            nx, ny = x + dx, y + dy
            if map_state.in_bounds(nx, ny) and elevation[ny, nx] < lowest:
                lowest = elevation[ny, nx]
                next_x, next_y = nx, ny

        # Local minimum
        if (next_x, next_y) == (x, y):
            break

        x, y = next_x, next_y

    return len(visited)
