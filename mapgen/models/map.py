"""
Map Generator - Map Data Models
Records produced by generation and the numpy-backed working state the passes
operate on.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from mapgen.config import (
    CLIMATE_ORDER,
    TERRAIN_ORDER,
    ClimateZone,
    GreatCircleType,
    MapGenerationParams,
    TerrainType,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# INFLUENCE FIELDS
# =============================================================================

class GreatCircle(BaseModel):
    """A great circle on the unit sphere that raises or lowers nearby terrain"""
    center_lon: float
    center_lat: float
    vector_x: float
    vector_y: float
    vector_z: float
    type: GreatCircleType
    radius: float              # tiles
    height_modifier: float     # meters at the circle itself
    weight: float              # 0.3 - 1.0

    model_config = ConfigDict(use_enum_values=True)


# =============================================================================
# MAP METADATA
# =============================================================================

class MapMetadata(BaseModel):
    """
    Metadata stored once per generated map.
    Immutable after generation; sea_level is never recomputed.
    """
    game_id: str = ""
    seed: str
    width: int
    height: int
    player_count: int
    sea_level: int
    great_circles: List[GreatCircle] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)
    generation_time_ms: int = 0

    def to_database_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "MapMetadata":
        return cls.model_validate(row)


# =============================================================================
# TILES
# =============================================================================

class MapTile(BaseModel):
    """Single map tile"""
    game_id: str = ""
    x: int
    y: int
    elevation: int
    terrain_type: TerrainType
    climate_zone: ClimateZone
    has_river: bool = False
    is_coastal: bool = False
    resources: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    owner_id: Optional[str] = None
    visible_to: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_water(self) -> bool:
        return self.terrain_type in (TerrainType.OCEAN, TerrainType.SHALLOW_WATER)

    def reveal_to(self, player_id: str) -> None:
        """Add a player to the visibility set (never removes)"""
        if player_id not in self.visible_to:
            self.visible_to.append(player_id)

    def to_database_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "MapTile":
        return cls.model_validate(row)


# =============================================================================
# STARTING POSITIONS
# =============================================================================

class Footprint(BaseModel):
    """Inclusive bounding box guaranteed to a player at start"""
    min_x: int
    max_x: int
    min_y: int
    max_y: int


class StartingPosition(BaseModel):
    """A player's starting region"""
    game_id: str = ""
    player_id: Optional[str] = None
    center_x: int
    center_y: int
    starting_city_x: int
    starting_city_y: int
    region_score: float
    guaranteed_footprint: Footprint
    revealed_tiles: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    def to_database_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "StartingPosition":
        return cls.model_validate(row)


@dataclass
class CandidateRegion:
    """A scored 15x15 window considered for a starting position"""
    center_x: int
    center_y: int
    score: float


# =============================================================================
# GENERATION OUTPUT
# =============================================================================

@dataclass
class GeneratedWorld:
    """Everything a single generation run produces"""
    metadata: MapMetadata
    tiles: List[MapTile]
    starting_positions: List[StartingPosition]


# =============================================================================
# MAP STATE
# =============================================================================

class MapState:
    """
    Working state shared by all generation passes.

    Grids are indexed [y, x]. The single RNG lives here so every pass draws
    from the same owned stream in a fixed order.
    """

    def __init__(self, params: MapGenerationParams, width: int, height: int, rng: np.random.Generator):
        self.params = params
        self.width = width
        self.height = height
        self.rng = rng

        # Pass 1
        self.great_circles: List[GreatCircle] = []

        # Pass 2-4
        self.elevation: Optional[np.ndarray] = None       # int32
        self.sea_level: Optional[int] = None
        self.terrain: Optional[np.ndarray] = None         # int8 codes into TERRAIN_ORDER
        self.climate: Optional[np.ndarray] = None         # int8 codes into CLIMATE_ORDER
        self.coastal: Optional[np.ndarray] = None         # bool

        # Pass 5-6
        self.river: np.ndarray = np.zeros((height, width), dtype=bool)
        self.resources: Dict[tuple, str] = {}

        # Pass 7-8
        self.candidates: List[CandidateRegion] = []
        self.starting_positions: List[StartingPosition] = []
        self.visibility: Dict[tuple, List[str]] = {}

    @property
    def diagonal(self) -> float:
        return float(np.hypot(self.width, self.height))

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def land_mask(self) -> np.ndarray:
        return self.elevation >= self.sea_level

    def to_tiles(self, game_id: str = "") -> List[MapTile]:
        """Materialize the grids into row-major MapTile records"""
        created_at = utcnow()
        tiles: List[MapTile] = []
        for y in range(self.height):
            for x in range(self.width):
                resource = self.resources.get((x, y))
                tiles.append(MapTile(
                    game_id=game_id,
                    x=x,
                    y=y,
                    elevation=int(self.elevation[y, x]),
                    terrain_type=TERRAIN_ORDER[int(self.terrain[y, x])],
                    climate_zone=CLIMATE_ORDER[int(self.climate[y, x])],
                    has_river=bool(self.river[y, x]),
                    is_coastal=bool(self.coastal[y, x]),
                    resources=[resource] if resource else [],
                    visible_to=list(self.visibility.get((x, y), [])),
                    created_at=created_at,
                ))
        return tiles
