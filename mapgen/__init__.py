"""
Deterministic procedural map generation.
"""

from mapgen.errors import ConfigurationError, GenerationError
from mapgen.generator import WorldGenerator, map_dimension, seed_to_int
from mapgen.models.map import GeneratedWorld, MapMetadata, MapTile, StartingPosition

__all__ = [
    "ConfigurationError",
    "GenerationError",
    "GeneratedWorld",
    "MapMetadata",
    "MapTile",
    "StartingPosition",
    "WorldGenerator",
    "map_dimension",
    "seed_to_int",
]
