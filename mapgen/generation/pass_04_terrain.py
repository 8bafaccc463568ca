"""
Map Generator - Pass 4: Terrain and Climate
Classifies every tile by elevation, latitude band and a randomized sub-choice,
assigns climate zones and flags coastal land.
"""

import logging

import numpy as np

from mapgen.config import (
    CLIMATE_CODES,
    HIGHLAND_ABOVE_SEA,
    HILLS_ELEVATION,
    MOUNTAIN_ELEVATION,
    OCEAN_DEPTH_MARGIN,
    TERRAIN_CODES,
    TERRAIN_ORDER,
    UPLAND_ABOVE_SEA,
    ClimateZone,
    MapGenerationParams,
    TerrainType,
)
from mapgen.models.map import MapState
from mapgen.utils.spatial import absolute_latitude_degrees, below_in_neighborhood

logger = logging.getLogger(__name__)


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Fill terrain, climate and coastal grids.

    Args:
        map_state: Map state to update (needs elevation and sea_level)
        params: Generation parameters
    """
    elevation = map_state.elevation
    sea_level = map_state.sea_level

    map_state.terrain = classify_terrain(elevation, sea_level, map_state.rng)
    map_state.climate = classify_climate(elevation)
    map_state.coastal = (elevation >= sea_level) & below_in_neighborhood(elevation, sea_level)

    codes, counts = np.unique(map_state.terrain, return_counts=True)
    logger.debug(
        "Terrain distribution: "
        + ", ".join(f"{TERRAIN_ORDER[c].value}={n}" for c, n in zip(codes, counts))
    )


def classify_terrain(elevation: np.ndarray, sea_level: int, rng: np.random.Generator) -> np.ndarray:
    """
    Assign a terrain code to every tile.

    Water and altitude rules take precedence; remaining land is classified by
    absolute latitude with band-specific random choices. Two random draws are
    taken for every tile in row-major order whether or not they are used.
    """
    height, width = elevation.shape
    lat = absolute_latitude_degrees(height)[:, np.newaxis]
    lat = np.broadcast_to(lat, elevation.shape)
    above_sea = elevation - sea_level

    draws = rng.random((2, height, width))
    first, second = draws[0], draws[1]

    code = TERRAIN_CODES

    # Latitude bands for ordinary land
    polar = np.full(elevation.shape, code[TerrainType.TUNDRA])
    cool = np.where(above_sea > UPLAND_ABOVE_SEA, code[TerrainType.HILLS], code[TerrainType.GRASSLAND])
    temperate = np.where(first < 0.4, code[TerrainType.GRASSLAND], code[TerrainType.FOREST])
    subtropical = np.select(
        [first < 0.3, second < 0.5],
        [code[TerrainType.DESERT], code[TerrainType.PLAINS]],
        default=code[TerrainType.GRASSLAND],
    )
    tropical = np.select(
        [first < 0.3, second < 0.6],
        [code[TerrainType.JUNGLE], code[TerrainType.FOREST]],
        default=code[TerrainType.GRASSLAND],
    )

    land = np.select(
        [
            (lat > 60) | (above_sea > HIGHLAND_ABOVE_SEA),
            lat > 45,
            lat > 30,
            lat > 15,
        ],
        [polar, cool, temperate, subtropical],
        default=tropical,
    )

    terrain = np.select(
        [
            elevation < sea_level - OCEAN_DEPTH_MARGIN,
            elevation < sea_level,
            elevation > MOUNTAIN_ELEVATION,
            elevation > HILLS_ELEVATION,
        ],
        [
            code[TerrainType.OCEAN],
            code[TerrainType.SHALLOW_WATER],
            code[TerrainType.MOUNTAIN],
            code[TerrainType.HILLS],
        ],
        default=land,
    )
    return terrain.astype(np.int8)


def classify_climate(elevation: np.ndarray) -> np.ndarray:
    """Assign a climate code from latitude, with high ground acting as higher latitude"""
    height, _ = elevation.shape
    lat = absolute_latitude_degrees(height)[:, np.newaxis]

    effective = lat + np.select([elevation > 2500, elevation > 1500], [30.0, 15.0], default=0.0)

    code = CLIMATE_CODES
    climate = np.select(
        [effective > 60, effective > 30, effective > 15],
        [code[ClimateZone.POLAR], code[ClimateZone.TEMPERATE], code[ClimateZone.SUBTROPICAL]],
        default=code[ClimateZone.TROPICAL],
    )
    return climate.astype(np.int8)
