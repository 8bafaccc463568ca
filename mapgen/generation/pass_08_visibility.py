"""
Map Generator - Pass 8: Visibility
Reveals each starting window to the player who starts there.
"""

import logging

from mapgen.config import START_REGION_RADIUS, MapGenerationParams
from mapgen.models.map import MapState
from mapgen.utils.spatial import window_bounds

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Add each position's player id to every tile of its 15x15 window.

    Args:
        map_state: Map state to update (needs starting_positions)
        params: Generation parameters
    """
    for position in map_state.starting_positions:
        x0, x1, y0, y1 = window_bounds(
            position.center_x, position.center_y, START_REGION_RADIUS,
            map_state.width, map_state.height,
        )
        for y in range(y0, y1):
            for x in range(x0, x1):
                viewers = map_state.visibility.setdefault((x, y), [])
                if position.player_id not in viewers:
                    viewers.append(position.player_id)

        logger.debug(f"Revealed {(x1 - x0) * (y1 - y0)} tiles to {position.player_id}")
