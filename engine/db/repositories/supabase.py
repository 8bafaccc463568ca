"""
Supabase Game Repository
Repository contract backed by Supabase tables and two database functions.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from engine.db.repositories.base import GameRepository
from engine.db.supabase_client import SupabaseClient
from engine.models.game import GameSession
from engine.models.settlers import Population, Settlement, Unit
from mapgen.models.map import MapMetadata, MapTile, StartingPosition, utcnow

logger = logging.getLogger(__name__)

# PostgREST caps responses; reads and bulk writes are split into pages
PAGE_SIZE = 1000


class SupabaseGameRepository(GameRepository):
    """
    Repository for game database operations.

    Tables: games, map_metadata, map_tiles, starting_positions, units,
    settlements, population. Founding and growing a settlement go through the
    found_settlement and grow_settlement database functions so their writes
    commit together.
    """

    def __init__(self, client: SupabaseClient):
        """
        Initialize repository.

        Args:
            client: Supabase client instance
        """
        self.client = client

    def _select_all(self, query_factory) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            result = query_factory().range(start, start + PAGE_SIZE - 1).execute()
            page = result.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    # ==================== Games ====================

    def get_started_games(self) -> List[GameSession]:
        result = (
            self.client.table("games")
            .select("*")
            .eq("state", "started")
            .execute()
        )
        games: List[GameSession] = []
        for row in result.data or []:
            try:
                games.append(GameSession.from_database_row(row))
            except ValidationError as e:
                logger.error(f"Skipping malformed game row {row.get('game_id')!r}: {e}")
        return games

    def get_game(self, game_id: str) -> Optional[GameSession]:
        result = (
            self.client.table("games")
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        if result.data:
            return GameSession.from_database_row(result.data[0])

        # Short ids as printed in logs
        result = (
            self.client.table("games")
            .select("*")
            .like("game_id", f"{game_id}%")
            .limit(2)
            .execute()
        )
        rows = result.data or []
        if len(rows) == 1:
            return GameSession.from_database_row(rows[0])
        if len(rows) > 1:
            logger.warning(f"Game prefix {game_id!r} is ambiguous")
        return None

    def update_game_tick(
        self,
        game_id: str,
        new_year: int,
        tick_time: datetime,
        expected_last_tick: Optional[datetime],
    ) -> bool:
        query = (
            self.client.table("games")
            .update({"current_year": new_year, "last_tick_at": tick_time.isoformat()})
            .eq("game_id", game_id)
        )
        if expected_last_tick is None:
            query = query.is_("last_tick_at", "null")
        else:
            query = query.eq("last_tick_at", expected_last_tick.isoformat())

        result = query.execute()
        return bool(result.data)

    def mark_world_generated(self, game_id: str) -> None:
        (
            self.client.table("games")
            .update({"world_generated": True})
            .eq("game_id", game_id)
            .execute()
        )

    # ==================== Map ====================

    def save_map_metadata(self, metadata: MapMetadata) -> None:
        (
            self.client.table("map_metadata")
            .upsert(metadata.to_database_dict(), on_conflict="game_id")
            .execute()
        )

    def get_map_metadata(self, game_id: str) -> Optional[MapMetadata]:
        result = (
            self.client.table("map_metadata")
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        if result.data:
            return MapMetadata.from_database_row(result.data[0])
        return None

    def save_map_tiles(self, tiles: List[MapTile]) -> None:
        for start in range(0, len(tiles), PAGE_SIZE):
            batch = [tile.to_database_dict() for tile in tiles[start:start + PAGE_SIZE]]
            (
                self.client.table("map_tiles")
                .upsert(batch, on_conflict="game_id,x,y")
                .execute()
            )
        logger.debug(f"Saved {len(tiles)} map tiles")

    def get_map_tile(self, game_id: str, x: int, y: int) -> Optional[MapTile]:
        result = (
            self.client.table("map_tiles")
            .select("*")
            .eq("game_id", game_id)
            .eq("x", x)
            .eq("y", y)
            .execute()
        )
        if result.data:
            return MapTile.from_database_row(result.data[0])
        return None

    def get_map_tiles(self, game_id: str, player_id: Optional[str] = None) -> List[MapTile]:
        def query():
            q = (
                self.client.table("map_tiles")
                .select("*")
                .eq("game_id", game_id)
                .order("y")
                .order("x")
            )
            if player_id is not None:
                q = q.contains("visible_to", [player_id])
            return q

        return [MapTile.from_database_row(row) for row in self._select_all(query)]

    def save_starting_positions(self, game_id: str, positions: List[StartingPosition]) -> None:
        self.client.table("starting_positions").delete().eq("game_id", game_id).execute()
        if positions:
            (
                self.client.table("starting_positions")
                .insert([p.to_database_dict() for p in positions])
                .execute()
            )

    def get_starting_positions(self, game_id: str) -> List[StartingPosition]:
        result = (
            self.client.table("starting_positions")
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        return [StartingPosition.from_database_row(row) for row in result.data or []]

    # ==================== Units ====================

    def create_unit(self, unit: Unit) -> Unit:
        result = (
            self.client.table("units")
            .upsert(unit.to_database_dict(), on_conflict="unit_id")
            .execute()
        )
        if result.data:
            return Unit.from_database_row(result.data[0])
        raise RuntimeError(f"Failed to create unit {unit.unit_id}")

    def get_units(self, game_id: str) -> List[Unit]:
        result = (
            self.client.table("units")
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        return [Unit.from_database_row(row) for row in result.data or []]

    def update_unit(self, unit: Unit) -> Unit:
        data = unit.to_database_dict()
        unit_id = data.pop("unit_id")
        result = (
            self.client.table("units")
            .update(data)
            .eq("unit_id", unit_id)
            .execute()
        )
        if result.data:
            return Unit.from_database_row(result.data[0])
        raise RuntimeError(f"Unit {unit_id} not found")

    def delete_unit(self, unit_id: str) -> None:
        self.client.table("units").delete().eq("unit_id", unit_id).execute()

    # ==================== Settlements ====================

    def create_settlement(self, settlement: Settlement) -> Settlement:
        result = (
            self.client.table("settlements")
            .upsert(settlement.to_database_dict(), on_conflict="settlement_id")
            .execute()
        )
        if result.data:
            return Settlement.from_database_row(result.data[0])
        raise RuntimeError(f"Failed to create settlement {settlement.settlement_id}")

    def get_settlements(self, game_id: str) -> List[Settlement]:
        result = (
            self.client.table("settlements")
            .select("*")
            .eq("game_id", game_id)
            .execute()
        )
        return [Settlement.from_database_row(row) for row in result.data or []]

    def update_settlement(self, settlement: Settlement) -> Settlement:
        data = settlement.to_database_dict()
        settlement_id = data.pop("settlement_id")
        result = (
            self.client.table("settlements")
            .update(data)
            .eq("settlement_id", settlement_id)
            .execute()
        )
        if result.data:
            return Settlement.from_database_row(result.data[0])
        raise RuntimeError(f"Settlement {settlement_id} not found")

    # ==================== Population ====================

    def create_population(self, population: Population) -> Population:
        result = (
            self.client.table("population")
            .upsert(population.to_database_dict(), on_conflict="game_id,player_id")
            .execute()
        )
        if result.data:
            return Population.from_database_row(result.data[0])
        raise RuntimeError(f"Failed to create population for player {population.player_id}")

    def get_population(self, game_id: str, player_id: str) -> Optional[Population]:
        result = (
            self.client.table("population")
            .select("*")
            .eq("game_id", game_id)
            .eq("player_id", player_id)
            .execute()
        )
        if result.data:
            return Population.from_database_row(result.data[0])
        return None

    def update_population(self, population: Population) -> Population:
        data = population.to_database_dict()
        result = (
            self.client.table("population")
            .update(data)
            .eq("game_id", population.game_id)
            .eq("player_id", population.player_id)
            .execute()
        )
        if result.data:
            return Population.from_database_row(result.data[0])
        raise RuntimeError(f"No population ledger for player {population.player_id}")

    def found_settlement(self, unit: Unit, settlement: Settlement) -> Optional[Population]:
        result = self.client.rpc(
            "found_settlement",
            {
                "p_settlement": settlement.to_database_dict(),
                "p_unit_id": unit.unit_id,
                "p_amount": settlement.population,
                "p_updated_at": utcnow().isoformat(),
            }
        ).execute()

        row = result.data[0] if isinstance(result.data, list) and result.data else result.data
        if row:
            return Population.from_database_row(row)
        return None

    def grow_settlement(self, settlement: Settlement, amount: int) -> Optional[Population]:
        result = self.client.rpc(
            "grow_settlement",
            {
                "p_settlement": settlement.to_database_dict(),
                "p_amount": amount,
                "p_updated_at": settlement.last_updated.isoformat(),
            }
        ).execute()

        row = result.data[0] if isinstance(result.data, list) and result.data else result.data
        if row:
            return Population.from_database_row(row)
        return None
