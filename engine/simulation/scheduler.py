"""
Tick Scheduler
Single control loop that generates each started game's world exactly once and
then advances its calendar on a fixed interval.
"""

import asyncio
import logging
import random
import secrets
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from engine.config import (
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_TICK_INTERVAL_MS,
    INITIAL_POPULATION,
    MANUAL_TICK_QUEUE_SIZE,
    YEAR_MILESTONE_INTERVAL,
    YEARS_PER_TICK,
)
from engine.db.gateway import RepositoryGateway
from engine.db.repositories.base import GameRepository
from engine.errors import GenerationError
from engine.models.game import GameSession
from engine.models.settlers import Location, Population, Unit, settler_unit_id
from engine.simulation.settlers import SettlementAutomation
from mapgen.generator import WorldGenerator
from mapgen.models.map import GeneratedWorld, StartingPosition, utcnow

logger = logging.getLogger(__name__)

# Thread pool for CPU-bound generation work
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="world_gen")


def make_seed_source(fixed_seed: Optional[str] = None) -> Callable[[], str]:
    """Fixed seed for deterministic runs, otherwise 16 random bytes as hex"""
    if fixed_seed:
        def fixed() -> str:
            logger.info(f"Using test seed: {fixed_seed}")
            return fixed_seed
        return fixed
    return lambda: secrets.token_hex(16)


def assign_players(world: GeneratedWorld, player_list: List[str]) -> List[StartingPosition]:
    """
    Give the i-th starting position to the i-th player and rewrite tile
    visibility from placeholder ids to real ones. Positions without a player
    lose their placeholder id and their reveal.

    Returns:
        The positions that received a player
    """
    mapping: Dict[str, str] = {}
    assigned: List[StartingPosition] = []

    for i, position in enumerate(world.starting_positions):
        placeholder = position.player_id
        if i < len(player_list):
            position.player_id = player_list[i]
            mapping[placeholder] = player_list[i]
            assigned.append(position)
        else:
            position.player_id = None

    for tile in world.tiles:
        if not tile.visible_to:
            continue
        placeholders, tile.visible_to = tile.visible_to, []
        for placeholder in placeholders:
            if placeholder in mapping:
                tile.reveal_to(mapping[placeholder])

    return assigned


class TickScheduler:
    """
    Polls started sessions and drives them.

    Per session:
    - never generated: run WorldGenerator, persist the world, seed one settlers
      unit and one population ledger per player, then flag world_generated
    - due (never ticked, or tick interval elapsed): claim the tick with a
      compare-and-swap on last_tick_at, advance the year, run automation

    Sessions are processed one after another; a failure in one is logged and
    skipped until the next poll. In test mode the timer path is disabled and
    ticks only happen through trigger_manual_tick.
    """

    def __init__(
        self,
        repository: GameRepository,
        tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        test_mode: bool = False,
        seed_source: Optional[Callable[[], str]] = None,
        repository_timeout_s: float = 5.0,
        generation_timeout_s: float = 60.0,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            repository: Persistence backend
            tick_interval_ms: Minimum time between ticks of one session
            poll_interval_ms: Time between polls of the session list
            test_mode: Disable timer ticks; accept manual ticks instead
            seed_source: Returns the seed for each newly generated world
            repository_timeout_s: Bound on every repository call
            generation_timeout_s: Bound on one world generation
            rng: Random source for settler movement
        """
        self.gateway = RepositoryGateway(repository, repository_timeout_s)
        self.automation = SettlementAutomation(self.gateway, rng)

        self.tick_interval = timedelta(milliseconds=tick_interval_ms)
        self.poll_interval_s = poll_interval_ms / 1000.0
        self.test_mode = test_mode
        self.seed_source = seed_source or make_seed_source()
        self.generation_timeout_s = generation_timeout_s

        self._manual_ticks: asyncio.Queue = asyncio.Queue(maxsize=MANUAL_TICK_QUEUE_SIZE)
        self._stop_event = asyncio.Event()
        self._run_task: Optional[asyncio.Task] = None

    # ==================== Lifecycle ====================

    @property
    def is_running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    def start(self) -> asyncio.Task:
        """Run the loop as a background task"""
        if not self.is_running:
            self._run_task = asyncio.create_task(self.run())
        return self._run_task

    async def stop(self) -> None:
        """Ask the loop to exit after the current poll and wait for it"""
        self._stop_event.set()

        if self._run_task:
            await self._run_task
            self._run_task = None

    async def run(self) -> None:
        """Main loop; returns only after stop() or raises on cancellation"""
        self._stop_event.clear()
        if self.test_mode:
            logger.info("Test mode: automatic ticking disabled, use manual ticks")
        logger.info("Tick scheduler running...")

        try:
            while not self._stop_event.is_set():
                game_id = await self._next_manual_tick()
                if game_id is not None:
                    await self.process_manual_tick(game_id)
                elif not self.test_mode:
                    await self.poll_once()
        except asyncio.CancelledError:
            logger.info("Tick scheduler cancelled")
            raise

        logger.info("Tick scheduler stopped")

    async def _next_manual_tick(self) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._manual_ticks.get(), timeout=self.poll_interval_s)
        except asyncio.TimeoutError:
            return None

    # ==================== Polling ====================

    async def poll_once(self, now: Optional[datetime] = None) -> int:
        """
        Process every started session once.

        Returns:
            Number of sessions that ticked
        """
        try:
            games = await self.gateway.call("get_started_games")
        except Exception as e:
            logger.error(f"Error loading started games: {e}")
            return 0

        ticked = 0
        for game in games:
            try:
                if await self.process_session(game, now=now):
                    ticked += 1
            except Exception as e:
                logger.error(f"Error processing game {game.short_id}: {e}")
        return ticked

    async def process_session(
        self,
        game: GameSession,
        now: Optional[datetime] = None,
        force: bool = False,
    ) -> bool:
        """Generate the world if needed, then tick if due (or forced)"""
        if not game.world_generated:
            await self.generate_world_for_game(game)

        if force or game.should_tick(now or utcnow(), self.tick_interval):
            return await self.process_game_tick(game)
        return False

    # ==================== World setup ====================

    async def generate_world_for_game(self, game: GameSession) -> GeneratedWorld:
        """
        Generate, persist and seed a session's world, then flag it generated.

        Every write is an upsert or a replacement, so a retry after a partial
        failure converges on one consistent world.
        """
        logger.info(f"Generating map for game {game.short_id} with {game.max_players} players")

        seed = self.seed_source()
        generator = WorldGenerator(seed, game.max_players)

        loop = asyncio.get_running_loop()
        try:
            world = await asyncio.wait_for(
                loop.run_in_executor(_executor, generator.generate, game.game_id),
                timeout=self.generation_timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"World generation for game {game.short_id} timed out after {self.generation_timeout_s}s"
            ) from e

        metadata = world.metadata
        logger.info(
            f"Generated map: {metadata.width}x{metadata.height} with {len(world.tiles)} tiles, "
            f"{len(world.starting_positions)} starting positions in {metadata.generation_time_ms}ms"
        )

        assigned = assign_players(world, game.player_list)

        await self.gateway.call("save_map_metadata", metadata)
        await self.gateway.call("save_map_tiles", world.tiles)
        await self.gateway.call("save_starting_positions", game.game_id, world.starting_positions)

        for position in assigned:
            await self._seed_player(game, position)

        await self.gateway.call("mark_world_generated", game.game_id)
        game.world_generated = True

        logger.info(f"Map saved successfully for game {game.short_id}")
        return world

    async def _seed_player(self, game: GameSession, position: StartingPosition) -> None:
        unit = Unit(
            unit_id=settler_unit_id(game.game_id, position.player_id),
            game_id=game.game_id,
            player_id=position.player_id,
            location=Location(x=position.starting_city_x, y=position.starting_city_y),
        )
        await self.gateway.call("create_unit", unit)

        population = Population(
            game_id=game.game_id,
            player_id=position.player_id,
            total_population=INITIAL_POPULATION,
            allocated_to_unit=unit.population_cost,
            allocated_to_settlement=0,
            unallocated=INITIAL_POPULATION - unit.population_cost,
        )
        await self.gateway.call("create_population", population)

        logger.info(f"Initialized settlers unit and population for player {position.player_id}")

    # ==================== Ticks ====================

    async def process_game_tick(self, game: GameSession) -> bool:
        """
        Advance one year and run settlement automation.

        Returns:
            False if another writer ticked the session first
        """
        tick_time = utcnow()
        new_year = game.current_year + YEARS_PER_TICK

        claimed = await self.gateway.call(
            "update_game_tick", game.game_id, new_year, tick_time, game.last_tick_at
        )
        if not claimed:
            logger.debug(f"Tick for game {game.short_id} already taken, skipping")
            return False

        game.current_year = new_year
        game.last_tick_at = tick_time

        result = await self.automation.process_game(game)
        if result.failures:
            logger.warning(f"Game {game.short_id}: {result.failures} automation failures this tick")

        if new_year % YEAR_MILESTONE_INTERVAL == 0:
            logger.info(f"Game {game.short_id}: Year {new_year}")
        return True

    # ==================== Manual control ====================

    def trigger_manual_tick(self, game_id: str) -> bool:
        """
        Queue a forced tick. Ignored outside test mode; dropped when the
        queue is full.

        Returns:
            True if queued
        """
        if not self.test_mode:
            return False
        try:
            self._manual_ticks.put_nowait(game_id)
        except asyncio.QueueFull:
            logger.debug(f"Manual tick queue full, dropping tick for {game_id}")
            return False
        return True

    async def process_manual_tick(self, game_id: str) -> bool:
        """Force one tick for a session, generating its world first if needed"""
        try:
            game = await self.gateway.call("get_game", game_id)
            if game is None:
                logger.info(f"Game {game_id} not found for manual tick")
                return False
            if not game.is_started:
                logger.info(f"Game {game_id} is not started, cannot tick")
                return False

            ticked = await self.process_session(game, force=True)
        except Exception as e:
            logger.error(f"Error processing manual tick for game {game_id}: {e}")
            return False

        logger.info(f"Manual tick processed for game {game_id}")
        return ticked
