"""
In-Memory Game Repository
Lock-guarded dictionaries implementing the repository contract. Used by the
test suite and for local runs without a database.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from engine.db.repositories.base import GameRepository
from engine.models.game import GameSession
from engine.models.settlers import Population, Settlement, Unit
from mapgen.models.map import MapMetadata, MapTile, StartingPosition, utcnow

logger = logging.getLogger(__name__)


class InMemoryGameRepository(GameRepository):
    """
    Thread-safe in-process storage.

    Records are copied on the way in and on the way out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.games: Dict[str, GameSession] = {}
        self.metadata: Dict[str, MapMetadata] = {}
        self.tiles: Dict[Tuple[str, int, int], MapTile] = {}
        self.starting_positions: Dict[str, List[StartingPosition]] = {}
        self.units: Dict[str, Unit] = {}
        self.settlements: Dict[str, Settlement] = {}
        self.population: Dict[Tuple[str, str], Population] = {}

    # ==================== Games ====================

    def add_game(self, game: GameSession) -> GameSession:
        with self._lock:
            self.games[game.game_id] = game.model_copy(deep=True)
        return game

    def get_started_games(self) -> List[GameSession]:
        with self._lock:
            return [g.model_copy(deep=True) for g in self.games.values() if g.is_started]

    def get_game(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            game = self.games.get(game_id)
            if game is None:
                matches = [g for gid, g in self.games.items() if gid.startswith(game_id)]
                if len(matches) != 1:
                    if len(matches) > 1:
                        logger.warning(f"Game prefix {game_id!r} is ambiguous ({len(matches)} matches)")
                    return None
                game = matches[0]
            return game.model_copy(deep=True)

    def update_game_tick(
        self,
        game_id: str,
        new_year: int,
        tick_time: datetime,
        expected_last_tick: Optional[datetime],
    ) -> bool:
        with self._lock:
            game = self.games.get(game_id)
            if game is None or game.last_tick_at != expected_last_tick:
                return False
            game.current_year = new_year
            game.last_tick_at = tick_time
            return True

    def mark_world_generated(self, game_id: str) -> None:
        with self._lock:
            game = self.games.get(game_id)
            if game is not None:
                game.world_generated = True

    # ==================== Map ====================

    def save_map_metadata(self, metadata: MapMetadata) -> None:
        with self._lock:
            self.metadata[metadata.game_id] = metadata.model_copy(deep=True)

    def get_map_metadata(self, game_id: str) -> Optional[MapMetadata]:
        with self._lock:
            metadata = self.metadata.get(game_id)
            return metadata.model_copy(deep=True) if metadata else None

    def save_map_tiles(self, tiles: List[MapTile]) -> None:
        with self._lock:
            for tile in tiles:
                self.tiles[(tile.game_id, tile.x, tile.y)] = tile.model_copy(deep=True)

    def get_map_tile(self, game_id: str, x: int, y: int) -> Optional[MapTile]:
        with self._lock:
            tile = self.tiles.get((game_id, x, y))
            return tile.model_copy(deep=True) if tile else None

    def get_map_tiles(self, game_id: str, player_id: Optional[str] = None) -> List[MapTile]:
        with self._lock:
            return [
                tile.model_copy(deep=True)
                for (gid, _, _), tile in self.tiles.items()
                if gid == game_id and (player_id is None or player_id in tile.visible_to)
            ]

    def save_starting_positions(self, game_id: str, positions: List[StartingPosition]) -> None:
        with self._lock:
            self.starting_positions[game_id] = [p.model_copy(deep=True) for p in positions]

    def get_starting_positions(self, game_id: str) -> List[StartingPosition]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self.starting_positions.get(game_id, [])]

    # ==================== Units ====================

    def create_unit(self, unit: Unit) -> Unit:
        with self._lock:
            self.units[unit.unit_id] = unit.model_copy(deep=True)
        return unit

    def get_units(self, game_id: str) -> List[Unit]:
        with self._lock:
            return [u.model_copy(deep=True) for u in self.units.values() if u.game_id == game_id]

    def update_unit(self, unit: Unit) -> Unit:
        with self._lock:
            if unit.unit_id not in self.units:
                raise KeyError(f"Unit {unit.unit_id} not found")
            self.units[unit.unit_id] = unit.model_copy(deep=True)
        return unit

    def delete_unit(self, unit_id: str) -> None:
        with self._lock:
            self.units.pop(unit_id, None)

    # ==================== Settlements ====================

    def create_settlement(self, settlement: Settlement) -> Settlement:
        with self._lock:
            self.settlements[settlement.settlement_id] = settlement.model_copy(deep=True)
        return settlement

    def get_settlements(self, game_id: str) -> List[Settlement]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self.settlements.values() if s.game_id == game_id]

    def update_settlement(self, settlement: Settlement) -> Settlement:
        with self._lock:
            if settlement.settlement_id not in self.settlements:
                raise KeyError(f"Settlement {settlement.settlement_id} not found")
            self.settlements[settlement.settlement_id] = settlement.model_copy(deep=True)
        return settlement

    # ==================== Population ====================

    def create_population(self, population: Population) -> Population:
        with self._lock:
            self.population[(population.game_id, population.player_id)] = population.model_copy(deep=True)
        return population

    def get_population(self, game_id: str, player_id: str) -> Optional[Population]:
        with self._lock:
            population = self.population.get((game_id, player_id))
            return population.model_copy(deep=True) if population else None

    def update_population(self, population: Population) -> Population:
        with self._lock:
            key = (population.game_id, population.player_id)
            if key not in self.population:
                raise KeyError(f"No population ledger for player {population.player_id}")
            self.population[key] = population.model_copy(deep=True)
        return population

    def found_settlement(self, unit: Unit, settlement: Settlement) -> Optional[Population]:
        with self._lock:
            self.settlements[settlement.settlement_id] = settlement.model_copy(deep=True)
            self.units.pop(unit.unit_id, None)

            population = self.population.get((unit.game_id, unit.player_id))
            if population is None:
                return None
            population.transfer_unit_to_settlement(settlement.population, utcnow())
            return population.model_copy(deep=True)

    def grow_settlement(self, settlement: Settlement, amount: int) -> Optional[Population]:
        with self._lock:
            if settlement.settlement_id not in self.settlements:
                raise KeyError(f"Settlement {settlement.settlement_id} not found")

            key = (settlement.game_id, settlement.player_id)
            population = self.population.get(key)
            if population is not None:
                population = population.model_copy(deep=True)
                population.grow_settlement(amount, settlement.last_updated)
                self.population[key] = population

            self.settlements[settlement.settlement_id] = settlement.model_copy(deep=True)
            return population.model_copy(deep=True) if population else None
