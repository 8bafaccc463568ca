"""
Map Generator - Pass 1: Great Circles
Places the influence fields that shape continents, ranges and trenches.
"""

import logging
from typing import List

import numpy as np

from mapgen.config import (
    BASE_GREAT_CIRCLES,
    GREAT_CIRCLES_PER_PLAYER,
    GREAT_CIRCLE_RADIUS_RANGE,
    GREAT_CIRCLE_TYPES,
    GREAT_CIRCLE_WEIGHT_RANGE,
    MapGenerationParams,
)
from mapgen.models.map import GreatCircle, MapState

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Generate 8 + 2 * player_count great circles.

    Args:
        map_state: Map state to update
        params: Generation parameters
    """
    num_circles = BASE_GREAT_CIRCLES + params.player_count * GREAT_CIRCLES_PER_PLAYER
    rng = map_state.rng

    circles: List[GreatCircle] = [_random_circle(rng) for _ in range(num_circles)]
    map_state.great_circles = circles

    counts = {}
    for circle in circles:
        counts[circle.type] = counts.get(circle.type, 0) + 1
    logger.debug(f"Generated {num_circles} great circles: {counts}")


def _random_circle(rng: np.random.Generator) -> GreatCircle:
    # Random point on the sphere
    lon = rng.random() * 2 * np.pi - np.pi
    lat = float(np.arcsin(rng.random() * 2 - 1))

    # Random normal through the center
    theta = rng.random() * 2 * np.pi
    phi = float(np.arccos(rng.random() * 2 - 1))
    vx = np.sin(phi) * np.cos(theta)
    vy = np.sin(phi) * np.sin(theta)
    vz = np.cos(phi)

    roll = rng.random()
    for cumulative, circle_type, (low, high) in GREAT_CIRCLE_TYPES:
        if roll < cumulative:
            break
    height_modifier = low + rng.random() * (high - low)

    radius_low, radius_high = GREAT_CIRCLE_RADIUS_RANGE
    weight_low, weight_high = GREAT_CIRCLE_WEIGHT_RANGE

    return GreatCircle(
        center_lon=float(lon),
        center_lat=lat,
        vector_x=float(vx),
        vector_y=float(vy),
        vector_z=float(vz),
        type=circle_type,
        radius=float(radius_low + rng.random() * (radius_high - radius_low)),
        height_modifier=float(height_modifier),
        weight=float(weight_low + rng.random() * (weight_high - weight_low)),
    )
