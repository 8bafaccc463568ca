"""
Game Session Model
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from engine.config import INITIAL_YEAR, GameState
from mapgen.models.map import utcnow


class GameSession(BaseModel):
    """
    A game session as seen by the scheduler.

    world_generated flips to True once the map, starting positions, units and
    population ledgers have all been persisted. It is the only signal used to
    decide whether generation still has to run.
    """
    game_id: str
    state: GameState = GameState.WAITING
    current_year: int = INITIAL_YEAR
    last_tick_at: Optional[datetime] = None
    max_players: int = 1
    player_list: List[str] = Field(default_factory=list)
    world_generated: bool = False

    creator_user_id: Optional[str] = None
    current_players: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_started(self) -> bool:
        return self.state == GameState.STARTED

    @property
    def short_id(self) -> str:
        return self.game_id[:8]

    def should_tick(self, now: datetime, interval: timedelta) -> bool:
        """Due when started and never ticked, or at least one interval has elapsed"""
        if not self.is_started:
            return False
        if self.last_tick_at is None:
            return True
        return now - self.last_tick_at >= interval

    def to_database_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_database_row(cls, row: Dict[str, Any]) -> "GameSession":
        return cls.model_validate(row)
