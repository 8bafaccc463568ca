"""
Settler, Settlement and Population Models
Early-game entities mutated by the settlement automation.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import NAMESPACE_URL, uuid4, uuid5

from pydantic import BaseModel, ConfigDict, Field

from engine.config import (
    FIRST_SETTLEMENT_NAME,
    INITIAL_POPULATION,
    SETTLER_POPULATION_COST,
    SETTLER_STEPS_BEFORE_FOUNDING,
    SETTLER_UNIT_TYPE,
    SettlementType,
)
from mapgen.models.map import utcnow


class Location(BaseModel):
    """Tile coordinates"""
    x: int
    y: int


def _flatten_location(data: Dict[str, Any]) -> Dict[str, Any]:
    location = data.pop("location")
    data["location_x"] = location["x"]
    data["location_y"] = location["y"]
    return data


def _nest_location(row: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(row)
    if "location" not in row:
        row["location"] = {"x": row.pop("location_x"), "y": row.pop("location_y")}
    return row


def settler_unit_id(game_id: str, player_id: str) -> str:
    """Stable id so re-running world setup upserts rather than duplicates"""
    return str(uuid5(NAMESPACE_URL, f"simciv:{game_id}:{player_id}:settlers"))


class Unit(BaseModel):
    """A settlers unit wandering before it founds a settlement"""
    unit_id: str = Field(default_factory=lambda: str(uuid4()))
    game_id: str
    player_id: str
    unit_type: str = SETTLER_UNIT_TYPE
    location: Location
    steps_taken: int = Field(default=0, ge=0, le=SETTLER_STEPS_BEFORE_FOUNDING)
    population_cost: int = SETTLER_POPULATION_COST
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    @property
    def ready_to_found(self) -> bool:
        return self.steps_taken >= SETTLER_STEPS_BEFORE_FOUNDING

    def to_database_dict(self) -> Dict[str, Any]:
        return _flatten_location(self.model_dump(mode="json"))

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "Unit":
        return cls.model_validate(_nest_location(row))


class Settlement(BaseModel):
    """A founded settlement"""
    settlement_id: str = Field(default_factory=lambda: str(uuid4()))
    game_id: str
    player_id: str
    name: str = FIRST_SETTLEMENT_NAME
    settlement_type: SettlementType = SettlementType.NOMADIC_CAMP
    location: Location
    population: int = Field(default=0, ge=0)
    founded: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(use_enum_values=True)

    def to_database_dict(self) -> Dict[str, Any]:
        return _flatten_location(self.model_dump(mode="json"))

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "Settlement":
        return cls.model_validate(_nest_location(row))


class Population(BaseModel):
    """
    Per-player population ledger.

    total_population always equals allocated_to_unit + allocated_to_settlement
    + unallocated.
    """
    game_id: str
    player_id: str
    total_population: int = INITIAL_POPULATION
    allocated_to_unit: int = INITIAL_POPULATION
    allocated_to_settlement: int = 0
    unallocated: int = 0
    last_updated: datetime = Field(default_factory=utcnow)

    @property
    def is_balanced(self) -> bool:
        return self.total_population == (
            self.allocated_to_unit + self.allocated_to_settlement + self.unallocated
        )

    def transfer_unit_to_settlement(self, amount: int, now: Optional[datetime] = None) -> None:
        """Move a founding unit's people into its settlement"""
        moved = min(amount, self.allocated_to_unit)
        self.allocated_to_unit -= moved
        self.allocated_to_settlement += moved
        self.last_updated = now or utcnow()

    def grow_settlement(self, amount: int, now: Optional[datetime] = None) -> None:
        self.allocated_to_settlement += amount
        self.total_population += amount
        self.last_updated = now or utcnow()

    def to_database_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "Population":
        return cls.model_validate(row)
