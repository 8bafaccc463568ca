"""
Repository Port
Persistence contract the scheduler and settlement automation depend on.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from engine.models.game import GameSession
from engine.models.settlers import Population, Settlement, Unit
from mapgen.models.map import MapMetadata, MapTile, StartingPosition


class GameRepository(ABC):
    """
    Synchronous persistence interface.

    Writes used during world setup are idempotent so that a retried setup
    converges on the same stored state.
    """

    # ==================== Games ====================

    @abstractmethod
    def get_started_games(self) -> List[GameSession]:
        """All sessions in the started state"""

    @abstractmethod
    def get_game(self, game_id: str) -> Optional[GameSession]:
        """Look up by exact id, falling back to a unique id prefix"""

    @abstractmethod
    def update_game_tick(
        self,
        game_id: str,
        new_year: int,
        tick_time: datetime,
        expected_last_tick: Optional[datetime],
    ) -> bool:
        """
        Set current_year and last_tick_at if last_tick_at still equals
        expected_last_tick.

        Returns:
            True if the update was applied
        """

    @abstractmethod
    def mark_world_generated(self, game_id: str) -> None:
        """Flag the session's world as fully set up"""

    # ==================== Map ====================

    @abstractmethod
    def save_map_metadata(self, metadata: MapMetadata) -> None:
        """Upsert metadata for metadata.game_id"""

    @abstractmethod
    def get_map_metadata(self, game_id: str) -> Optional[MapMetadata]:
        pass

    @abstractmethod
    def save_map_tiles(self, tiles: List[MapTile]) -> None:
        """Upsert tiles keyed by (game_id, x, y)"""

    @abstractmethod
    def get_map_tile(self, game_id: str, x: int, y: int) -> Optional[MapTile]:
        pass

    @abstractmethod
    def get_map_tiles(self, game_id: str, player_id: Optional[str] = None) -> List[MapTile]:
        """All tiles, or only those visible to player_id"""

    @abstractmethod
    def save_starting_positions(self, game_id: str, positions: List[StartingPosition]) -> None:
        """Replace the game's starting positions"""

    @abstractmethod
    def get_starting_positions(self, game_id: str) -> List[StartingPosition]:
        pass

    # ==================== Units ====================

    @abstractmethod
    def create_unit(self, unit: Unit) -> Unit:
        """Upsert keyed by unit_id"""

    @abstractmethod
    def get_units(self, game_id: str) -> List[Unit]:
        pass

    @abstractmethod
    def update_unit(self, unit: Unit) -> Unit:
        pass

    @abstractmethod
    def delete_unit(self, unit_id: str) -> None:
        pass

    # ==================== Settlements ====================

    @abstractmethod
    def create_settlement(self, settlement: Settlement) -> Settlement:
        pass

    @abstractmethod
    def get_settlements(self, game_id: str) -> List[Settlement]:
        pass

    @abstractmethod
    def update_settlement(self, settlement: Settlement) -> Settlement:
        pass

    # ==================== Population ====================

    @abstractmethod
    def create_population(self, population: Population) -> Population:
        """Upsert keyed by (game_id, player_id)"""

    @abstractmethod
    def get_population(self, game_id: str, player_id: str) -> Optional[Population]:
        pass

    @abstractmethod
    def update_population(self, population: Population) -> Population:
        pass

    @abstractmethod
    def found_settlement(self, unit: Unit, settlement: Settlement) -> Optional[Population]:
        """
        Atomically create the settlement, delete the unit and move
        settlement.population from the ledger's unit share to its settlement
        share.

        Returns:
            The updated ledger, or None if the player has none
        """

    @abstractmethod
    def grow_settlement(self, settlement: Settlement, amount: int) -> Optional[Population]:
        """
        Atomically store the grown settlement and add amount to the ledger's
        settlement share and total.

        Returns:
            The updated ledger, or None if the player has none
        """
