"""
Settlement Automation Tests
Settler movement, founding and population growth against the in-memory
repository.
"""

import logging
import random

import pytest

from engine.db import InMemoryGameRepository, RepositoryGateway
from engine.models import GameSession, Location, Population, Settlement, Unit
from engine.simulation import SettlementAutomation, settlement_growth
from mapgen.config import ClimateZone, TerrainType
from mapgen.models.map import MapMetadata, MapTile

GAME_ID = "game-settlers"


class NorthOnly(random.Random):
    """Always picks the first move (north)"""

    def choice(self, seq):
        return seq[0]


def build_map(repo, width=5, height=5, water=()):
    """Save metadata and a grassland map with the given water tiles"""
    repo.save_map_metadata(MapMetadata(
        game_id=GAME_ID, seed="settlers", width=width, height=height,
        player_count=1, sea_level=0,
    ))
    repo.save_map_tiles([
        MapTile(
            game_id=GAME_ID,
            x=x,
            y=y,
            elevation=-50 if (x, y) in water else 100,
            terrain_type=TerrainType.OCEAN if (x, y) in water else TerrainType.GRASSLAND,
            climate_zone=ClimateZone.TEMPERATE,
        )
        for y in range(height)
        for x in range(width)
    ])


def seed_player(repo, x=2, y=2, steps=0):
    unit = Unit(game_id=GAME_ID, player_id="alice", location=Location(x=x, y=y), steps_taken=steps)
    repo.create_unit(unit)
    repo.create_population(Population(game_id=GAME_ID, player_id="alice"))
    return unit


@pytest.fixture
def repo():
    return InMemoryGameRepository()


@pytest.fixture
def game():
    return GameSession(game_id=GAME_ID, state="started", max_players=1,
                       player_list=["alice"], world_generated=True)


def make_automation(repo, rng=None):
    return SettlementAutomation(RepositoryGateway(repo, timeout_s=5.0), rng or random.Random(42))


class TestSettlementGrowth:
    """Tests for the growth formula"""

    @pytest.mark.parametrize("population,growth", [(0, 0), (1, 1), (50, 1), (100, 1), (250, 2), (1000, 10)])
    def test_growth(self, population, growth):
        assert settlement_growth(population) == growth


class TestSettlerMovement:
    """Tests for settler steps"""

    @pytest.mark.asyncio
    async def test_move_takes_one_step(self, repo, game):
        build_map(repo)
        unit = seed_player(repo)
        automation = make_automation(repo)

        result = await automation.process_game(game)

        moved = repo.get_units(GAME_ID)[0]
        assert result.units_moved == 1
        assert moved.steps_taken == 1
        assert abs(moved.location.x - unit.location.x) + abs(moved.location.y - unit.location.y) == 1

    @pytest.mark.asyncio
    async def test_move_clamped_to_map(self, repo, game):
        """Test a unit on the top edge moving north stays put"""
        build_map(repo)
        seed_player(repo, x=2, y=0)
        automation = make_automation(repo, NorthOnly())

        await automation.process_game(game)

        moved = repo.get_units(GAME_ID)[0]
        assert (moved.location.x, moved.location.y) == (2, 0)
        assert moved.steps_taken == 1

    @pytest.mark.asyncio
    async def test_units_stay_in_bounds(self, repo, game):
        build_map(repo, width=3, height=3)
        seed_player(repo, x=0, y=0)
        automation = make_automation(repo, random.Random(7))

        for _ in range(3):
            await automation.process_game(game)

        unit = repo.get_units(GAME_ID)[0]
        assert 0 <= unit.location.x < 3
        assert 0 <= unit.location.y < 3
        assert unit.steps_taken == 3


class TestSettlerLifecycle:
    """Tests for founding a settlement"""

    @pytest.mark.asyncio
    async def test_four_ticks_found_settlement(self, repo, game):
        """Test three moves then founding on the fourth tick"""
        build_map(repo, width=9, height=9)
        seed_player(repo, x=4, y=4)
        automation = make_automation(repo)

        for _ in range(3):
            await automation.process_game(game)
            assert len(repo.get_units(GAME_ID)) == 1
            assert repo.get_settlements(GAME_ID) == []

        result = await automation.process_game(game)

        assert result.settlements_founded == 1
        assert repo.get_units(GAME_ID) == []

        settlements = repo.get_settlements(GAME_ID)
        assert len(settlements) == 1
        settlement = settlements[0]
        assert settlement.player_id == "alice"
        assert settlement.name == "First Settlement"
        assert settlement.settlement_type == "nomadic_camp"
        # Founded at 100 and grown once in the same tick
        assert settlement.population == 101

        ledger = repo.get_population(GAME_ID, "alice")
        assert ledger.allocated_to_unit == 0
        assert ledger.allocated_to_settlement == 101
        assert ledger.total_population == 101
        assert ledger.is_balanced

    @pytest.mark.asyncio
    async def test_founding_moves_ledger(self, repo):
        build_map(repo)
        unit = seed_player(repo, steps=3)
        automation = make_automation(repo)

        settlement = await automation.found_settlement(unit)

        assert settlement.population == 100
        assert (settlement.location.x, settlement.location.y) == (2, 2)
        ledger = repo.get_population(GAME_ID, "alice")
        assert ledger.allocated_to_unit == 0
        assert ledger.allocated_to_settlement == 100
        assert ledger.total_population == 100
        assert ledger.is_balanced

    @pytest.mark.asyncio
    async def test_water_tile_uses_first_land_neighbor(self, repo):
        """Test founding on water settles on the first land neighbour (E, W, ...)"""
        build_map(repo, water={(2, 2), (3, 2)})
        unit = seed_player(repo, steps=3)
        automation = make_automation(repo)

        settlement = await automation.found_settlement(unit)

        assert (settlement.location.x, settlement.location.y) == (1, 2)

    @pytest.mark.asyncio
    async def test_neighbor_priority_order(self, repo):
        """Test E, W, S, N are tried before diagonals"""
        water = {(2, 2), (3, 2), (1, 2), (2, 3), (2, 1)}
        build_map(repo, water=water)
        unit = seed_player(repo, steps=3)
        automation = make_automation(repo)

        settlement = await automation.found_settlement(unit)

        # First diagonal tried is SE
        assert (settlement.location.x, settlement.location.y) == (3, 3)

    @pytest.mark.asyncio
    async def test_all_water_settles_in_place(self, repo, caplog):
        water = {(x, y) for x in range(5) for y in range(5)}
        build_map(repo, water=water)
        unit = seed_player(repo, steps=3)
        automation = make_automation(repo)

        with caplog.at_level(logging.WARNING):
            settlement = await automation.found_settlement(unit)

        assert (settlement.location.x, settlement.location.y) == (2, 2)
        assert "settling on water" in caplog.text
        assert repo.get_units(GAME_ID) == []


class TestSettlementUpdates:
    """Tests for per-tick growth"""

    @pytest.mark.asyncio
    async def test_growth_updates_ledger(self, repo, game):
        repo.create_settlement(Settlement(
            game_id=GAME_ID, player_id="alice", location=Location(x=1, y=1), population=250,
        ))
        repo.create_population(Population(
            game_id=GAME_ID, player_id="alice", total_population=250,
            allocated_to_unit=0, allocated_to_settlement=250,
        ))
        automation = make_automation(repo)

        result = await automation.process_game(game)

        assert result.settlements_grown == 1
        assert repo.get_settlements(GAME_ID)[0].population == 252
        ledger = repo.get_population(GAME_ID, "alice")
        assert ledger.total_population == 252
        assert ledger.allocated_to_settlement == 252
        assert ledger.is_balanced

    @pytest.mark.asyncio
    async def test_unit_failure_does_not_stop_others(self, repo, game):
        """Test a unit without map metadata fails alone"""
        seed_player(repo)
        repo.create_settlement(Settlement(
            game_id=GAME_ID, player_id="alice", location=Location(x=1, y=1), population=100,
        ))
        automation = make_automation(repo)

        result = await automation.process_game(game)

        assert result.failures == 1
        assert result.settlements_grown == 1

    @pytest.mark.asyncio
    async def test_growth_does_not_depend_on_ledger_updates(self, game):
        """Test growth keeps settlement and ledger in step when plain ledger writes fail"""
        class NoLedgerWrites(InMemoryGameRepository):
            def update_population(self, population):
                raise RuntimeError("population table unavailable")

        repo = NoLedgerWrites()
        repo.create_settlement(Settlement(
            game_id=GAME_ID, player_id="alice", location=Location(x=1, y=1), population=100,
        ))
        repo.create_population(Population(
            game_id=GAME_ID, player_id="alice", total_population=100,
            allocated_to_unit=0, allocated_to_settlement=100,
        ))
        automation = make_automation(repo)

        for _ in range(3):
            await automation.process_game(game)

        ledger = repo.get_population(GAME_ID, "alice")
        assert repo.get_settlements(GAME_ID)[0].population == 103
        assert ledger.allocated_to_settlement == 103
        assert ledger.total_population == 103

    @pytest.mark.asyncio
    async def test_failed_growth_changes_nothing(self, game):
        """Test a failed growth write leaves settlement and ledger untouched"""
        class FailingGrowth(InMemoryGameRepository):
            def grow_settlement(self, settlement, amount):
                raise RuntimeError("write failed")

        repo = FailingGrowth()
        repo.create_settlement(Settlement(
            game_id=GAME_ID, player_id="alice", location=Location(x=1, y=1), population=100,
        ))
        repo.create_population(Population(
            game_id=GAME_ID, player_id="alice", total_population=100,
            allocated_to_unit=0, allocated_to_settlement=100,
        ))
        automation = make_automation(repo)

        for _ in range(3):
            result = await automation.process_game(game)
            assert result.failures == 1

        ledger = repo.get_population(GAME_ID, "alice")
        assert repo.get_settlements(GAME_ID)[0].population == 100
        assert ledger.allocated_to_settlement == 100
        assert ledger.total_population == 100
