"""
Map Generator - Configuration and Constants
Contains the sizing rules, thresholds, enumerations and lookup tables used by
the generation passes.
"""

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

# =============================================================================
# MAP SIZING
# =============================================================================

TILES_PER_PLAYER = 1600      # Each player gets roughly a 40x40 claim
LAND_SCALE_FACTOR = 2        # Room for water between claims

# =============================================================================
# ELEVATION
# =============================================================================

MIN_ELEVATION = -100
MAX_ELEVATION = 3000

NOISE_OCTAVES = 4
NOISE_BASE_AMPLITUDE = 200.0
NOISE_BASE_FREQUENCY = 1.0 / 64.0

# Sea level percentile (below the median so more of the map is land)
SEA_LEVEL_PERCENTILE = 35

# =============================================================================
# TERRAIN THRESHOLDS (meters)
# =============================================================================

OCEAN_DEPTH_MARGIN = 20      # Below sea_level - margin is deep ocean
MOUNTAIN_ELEVATION = 2200
HILLS_ELEVATION = 1600
HIGHLAND_ABOVE_SEA = 800     # Tundra above this height over sea level
UPLAND_ABOVE_SEA = 600       # Hills in the cool band above this height

# =============================================================================
# RIVERS
# =============================================================================

RIVER_SOURCE_ELEVATION = 1200
RIVER_SOURCE_ATTEMPTS = 50
MIN_RIVERS = 3
TILES_PER_RIVER = 20

# =============================================================================
# STARTING POSITIONS
# =============================================================================

START_REGION_RADIUS = 7              # 15x15 window
START_REGION_STRIDE = 10             # Coarse candidate grid
START_REGION_MIN_LAND = 180          # 80% of 225
START_REGION_MIN_SCORE = 50.0
START_REGION_MAX_COMFORT_ELEVATION = 800
START_FOOTPRINT_RADIUS = 20          # 40x40 guaranteed footprint
FALLBACK_REGION_SCORE = 10.0

# Preferred minimum spacing between starts as a fraction of the map diagonal
MIN_START_DISTANCE_FRACTION = 0.125

# =============================================================================
# ENUMERATIONS
# =============================================================================

class TerrainType(str, Enum):
    """Terrain classification for a tile"""
    OCEAN = "OCEAN"
    SHALLOW_WATER = "SHALLOW_WATER"
    GRASSLAND = "GRASSLAND"
    PLAINS = "PLAINS"
    FOREST = "FOREST"
    DESERT = "DESERT"
    JUNGLE = "JUNGLE"
    TUNDRA = "TUNDRA"
    HILLS = "HILLS"
    MOUNTAIN = "MOUNTAIN"


class ClimateZone(str, Enum):
    """Latitude-driven climate bands"""
    POLAR = "POLAR"
    TEMPERATE = "TEMPERATE"
    SUBTROPICAL = "SUBTROPICAL"
    TROPICAL = "TROPICAL"


class GreatCircleType(str, Enum):
    """Kinds of influence field"""
    CONTINENTAL_BOUNDARY = "continental_boundary"
    MOUNTAIN_RANGE = "mountain_range"
    OCEAN_TRENCH = "ocean_trench"


class ResourceType(str, Enum):
    """Resources that can be placed on tiles"""
    # Strategic
    IRON = "IRON"
    COPPER = "COPPER"
    COAL = "COAL"
    GOLD = "GOLD"
    # Basic
    WHEAT = "WHEAT"
    CATTLE = "CATTLE"
    FISH = "FISH"
    STONE = "STONE"
    WOOD = "WOOD"
    GAME = "GAME"


WATER_TERRAIN = frozenset({TerrainType.OCEAN.value, TerrainType.SHALLOW_WATER.value})

# Integer codes used by the numpy terrain grid (index into TERRAIN_ORDER)
TERRAIN_ORDER: List[TerrainType] = list(TerrainType)
TERRAIN_CODES: Dict[TerrainType, int] = {t: i for i, t in enumerate(TERRAIN_ORDER)}

CLIMATE_ORDER: List[ClimateZone] = list(ClimateZone)
CLIMATE_CODES: Dict[ClimateZone, int] = {c: i for i, c in enumerate(CLIMATE_ORDER)}

# =============================================================================
# GREAT CIRCLE DISTRIBUTION
# =============================================================================

BASE_GREAT_CIRCLES = 8
GREAT_CIRCLES_PER_PLAYER = 2

# (cumulative probability, type, (min height modifier, max height modifier))
GREAT_CIRCLE_TYPES: List[Tuple[float, GreatCircleType, Tuple[float, float]]] = [
    (0.3, GreatCircleType.CONTINENTAL_BOUNDARY, (-500.0, 500.0)),
    (0.7, GreatCircleType.MOUNTAIN_RANGE, (500.0, 2500.0)),
    (1.0, GreatCircleType.OCEAN_TRENCH, (-800.0, -200.0)),
]

GREAT_CIRCLE_RADIUS_RANGE = (4.0, 12.0)   # tiles
GREAT_CIRCLE_WEIGHT_RANGE = (0.3, 1.0)

# =============================================================================
# RESOURCE TABLE
# =============================================================================

RESOURCE_CLUSTER_DIVISOR = 5.0
RESOURCE_CLUSTER_SIZE = (3, 7)
RESOURCE_CLUSTER_SPREAD = 2

# Order matters: resources are placed in this sequence from the shared RNG
RESOURCE_RULES: List[Tuple[ResourceType, float, Tuple[TerrainType, ...]]] = [
    (ResourceType.IRON, 0.03, (TerrainType.HILLS, TerrainType.MOUNTAIN)),
    (ResourceType.COPPER, 0.02, (TerrainType.HILLS,)),
    (ResourceType.COAL, 0.02, (TerrainType.FOREST, TerrainType.GRASSLAND)),
    (ResourceType.GOLD, 0.01, (TerrainType.MOUNTAIN, TerrainType.HILLS)),
    (ResourceType.WHEAT, 0.08, (TerrainType.GRASSLAND, TerrainType.PLAINS)),
    (ResourceType.CATTLE, 0.06, (TerrainType.GRASSLAND, TerrainType.PLAINS)),
    (ResourceType.FISH, 0.05, (TerrainType.OCEAN, TerrainType.SHALLOW_WATER)),
    (ResourceType.STONE, 0.05, (TerrainType.HILLS, TerrainType.MOUNTAIN)),
    (ResourceType.WOOD, 0.06, (TerrainType.FOREST, TerrainType.JUNGLE)),
    (ResourceType.GAME, 0.04, (TerrainType.FOREST,)),
]

# =============================================================================
# GENERATION PARAMETERS
# =============================================================================

class MapGenerationParams(BaseModel):
    """Input parameters for map generation."""
    seed: str = Field(..., description="Seed string; hashed to seed the RNG")
    player_count: int = Field(..., description="Number of starting positions to place")

# =============================================================================
# PASS CONFIGURATION
# =============================================================================

GENERATION_PASSES = [
    "pass_01_great_circles",
    "pass_02_elevation",
    "pass_03_sea_level",
    "pass_04_terrain",
    "pass_05_rivers",
    "pass_06_resources",
    "pass_07_starting_positions",
    "pass_08_visibility",
]

# Pass weights for progress calculation
PASS_WEIGHTS = {
    "pass_01_great_circles": 1,
    "pass_02_elevation": 10,
    "pass_03_sea_level": 2,
    "pass_04_terrain": 6,
    "pass_05_rivers": 4,
    "pass_06_resources": 5,
    "pass_07_starting_positions": 6,
    "pass_08_visibility": 1,
}
