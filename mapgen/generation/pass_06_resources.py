"""
Map Generator - Pass 6: Natural Resources
Scatters resource clusters over suitable terrain, at most one resource per tile.
"""

import logging
from typing import Iterable, List, Tuple

import numpy as np

from mapgen.config import (
    RESOURCE_CLUSTER_DIVISOR,
    RESOURCE_CLUSTER_SIZE,
    RESOURCE_CLUSTER_SPREAD,
    RESOURCE_RULES,
    TERRAIN_CODES,
    MapGenerationParams,
    ResourceType,
    TerrainType,
)
from mapgen.models.map import MapState

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Place every resource type in RESOURCE_RULES order.

    Args:
        map_state: Map state to update (needs terrain)
        params: Generation parameters
    """
    for resource, density, suitable_terrain in RESOURCE_RULES:
        placed = place_resource(map_state, resource, density, suitable_terrain)
        logger.debug(f"Placed {placed} {resource.value} tiles")

    logger.debug(f"{len(map_state.resources)} tiles carry a resource")


def place_resource(
    map_state: MapState,
    resource: ResourceType,
    density: float,
    suitable_terrain: Iterable[TerrainType],
) -> int:
    """
    Place clusters of one resource.

    Cluster count is suitable_tiles * density / 5 (at least one). Each cluster
    tries up to 3x its size random offsets around a random suitable center and
    skips tiles that already carry a resource or are unsuitable.

    Returns:
        Number of tiles that received this resource
    """
    rng = map_state.rng
    codes = [TERRAIN_CODES[t] for t in suitable_terrain]
    suitable_mask = np.isin(map_state.terrain, codes)

    # Row-major (y, x) pairs
    suitable: List[Tuple[int, int]] = [(int(y), int(x)) for y, x in np.argwhere(suitable_mask)]
    if not suitable:
        return 0

    num_clusters = max(1, int(len(suitable) * density / RESOURCE_CLUSTER_DIVISOR))
    min_size, max_size = RESOURCE_CLUSTER_SIZE
    spread = RESOURCE_CLUSTER_SPREAD

    placed_total = 0
    for _ in range(num_clusters):
        center_y, center_x = suitable[int(rng.integers(len(suitable)))]
        cluster_size = int(rng.integers(min_size, max_size + 1))

        placed = 0
        attempt = 0
        while attempt < cluster_size * 3 and placed < cluster_size:
            attempt += 1
            x = center_x + int(rng.integers(-spread, spread + 1))
            y = center_y + int(rng.integers(-spread, spread + 1))

            if not map_state.in_bounds(x, y):
                continue
            if (x, y) in map_state.resources:
                continue
            if not suitable_mask[y, x]:
                continue

            map_state.resources[(x, y)] = resource.value
            placed += 1

        placed_total += placed

    return placed_total
