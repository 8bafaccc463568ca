"""
Engine Models
Game sessions and the early-game entities the scheduler manages.
"""

from engine.models.game import GameSession
from engine.models.settlers import (
    Location,
    Population,
    Settlement,
    Unit,
    settler_unit_id,
)

__all__ = [
    "GameSession",
    "Location",
    "Population",
    "Settlement",
    "Unit",
    "settler_unit_id",
]
