"""
Settlement Automation
Moves settlers units for their first few steps, founds a settlement on the
last one, and grows settlement populations every tick.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from engine.config import (
    FOUNDING_NEIGHBOR_ORDER,
    MIN_SETTLEMENT_GROWTH,
    POPULATION_LOG_INTERVAL,
    SETTLEMENT_GROWTH_RATE,
    SETTLER_MOVES,
    SETTLER_UNIT_TYPE,
)
from engine.db.gateway import RepositoryGateway
from engine.errors import AutomationError
from engine.models.game import GameSession
from engine.models.settlers import Location, Settlement, Unit
from mapgen.models.map import MapMetadata, utcnow

logger = logging.getLogger(__name__)


def settlement_growth(population: int) -> int:
    """1% per tick, at least one person while anyone lives there"""
    growth = int(population * SETTLEMENT_GROWTH_RATE)
    if growth == 0 and population > 0:
        growth = MIN_SETTLEMENT_GROWTH
    return growth


@dataclass
class AutomationResult:
    """What one automation pass did to a game"""
    units_moved: int = 0
    settlements_founded: int = 0
    settlements_grown: int = 0
    failures: int = 0


class SettlementAutomation:
    """
    Per-tick automation for settlers and settlements.

    The RNG is owned by the instance; pass a seeded random.Random for
    reproducible movement.
    """

    def __init__(self, gateway: RepositoryGateway, rng: Optional[random.Random] = None):
        self.gateway = gateway
        self.rng = rng or random.Random()

    async def process_game(self, game: GameSession) -> AutomationResult:
        """Run unit automation then settlement growth for one game"""
        result = AutomationResult()
        await self.process_units(game, result)
        await self.process_settlements(game, result)
        return result

    # ==================== Units ====================

    async def process_units(self, game: GameSession, result: AutomationResult) -> None:
        units = await self.gateway.call("get_units", game.game_id)
        settlers = [u for u in units if u.unit_type == SETTLER_UNIT_TYPE]
        if not settlers:
            return

        metadata = await self.gateway.call("get_map_metadata", game.game_id)

        for unit in settlers:
            try:
                if unit.ready_to_found:
                    await self.found_settlement(unit)
                    result.settlements_founded += 1
                else:
                    await self.move_unit(unit, metadata)
                    result.units_moved += 1
            except Exception as e:
                result.failures += 1
                logger.error(str(AutomationError(unit.unit_id, e)))

    async def move_unit(self, unit: Unit, metadata: Optional[MapMetadata]) -> Unit:
        """One random N/S/E/W step, clamped to the map"""
        if metadata is None:
            raise ValueError(f"No map metadata for game {unit.game_id}")

        dx, dy = self.rng.choice(SETTLER_MOVES)
        new_x = min(max(unit.location.x + dx, 0), metadata.width - 1)
        new_y = min(max(unit.location.y + dy, 0), metadata.height - 1)

        unit.location = Location(x=new_x, y=new_y)
        unit.steps_taken += 1
        unit.last_updated = utcnow()

        logger.debug(f"Unit {unit.unit_id} moved to ({new_x}, {new_y}), steps taken: {unit.steps_taken}")
        return await self.gateway.call("update_unit", unit)

    async def choose_founding_location(self, unit: Unit) -> Location:
        """
        The unit's tile if it is land, else the first land neighbour in
        FOUNDING_NEIGHBOR_ORDER, else the unit's tile anyway.
        """
        x, y = unit.location.x, unit.location.y

        tile = await self.gateway.call("get_map_tile", unit.game_id, x, y)
        if tile is not None and not tile.is_water:
            return Location(x=x, y=y)

        for dx, dy in FOUNDING_NEIGHBOR_ORDER:
            neighbor = await self.gateway.call("get_map_tile", unit.game_id, x + dx, y + dy)
            if neighbor is not None and not neighbor.is_water:
                return Location(x=x + dx, y=y + dy)

        logger.warning(f"No land tile near ({x}, {y}) for unit {unit.unit_id}; settling on water")
        return Location(x=x, y=y)

    async def found_settlement(self, unit: Unit) -> Settlement:
        location = await self.choose_founding_location(unit)
        settlement = Settlement(
            game_id=unit.game_id,
            player_id=unit.player_id,
            location=location,
            population=unit.population_cost,
        )

        ledger = await self.gateway.call("found_settlement", unit, settlement)
        if ledger is None:
            logger.warning(f"Player {unit.player_id} has no population ledger")

        logger.info(
            f"Settlement {settlement.settlement_id} founded at ({location.x}, {location.y}) "
            f"for player {unit.player_id}; settlers unit {unit.unit_id} removed"
        )
        return settlement

    # ==================== Settlements ====================

    async def process_settlements(self, game: GameSession, result: AutomationResult) -> None:
        settlements = await self.gateway.call("get_settlements", game.game_id)
        for settlement in settlements:
            try:
                if await self.grow_settlement(settlement):
                    result.settlements_grown += 1
            except Exception as e:
                result.failures += 1
                logger.error(str(AutomationError(settlement.settlement_id, e)))

    async def grow_settlement(self, settlement: Settlement) -> bool:
        growth = settlement_growth(settlement.population)
        if growth <= 0:
            return False

        settlement.population += growth
        settlement.last_updated = utcnow()

        # Settlement and ledger commit together or not at all
        ledger = await self.gateway.call("grow_settlement", settlement, growth)
        if ledger is None:
            logger.warning(f"Player {settlement.player_id} has no population ledger")

        if settlement.population % POPULATION_LOG_INTERVAL == 0:
            logger.info(
                f"Settlement {settlement.settlement_id} (player {settlement.player_id}) "
                f"population: {settlement.population}"
            )
        return True
