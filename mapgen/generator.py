"""
Map Generator - World Generator
Entry point that turns (seed, player_count) into a complete GeneratedWorld.
"""

import hashlib
import logging
import math
import time
from typing import Callable, Optional

import numpy as np

from mapgen.config import LAND_SCALE_FACTOR, TILES_PER_PLAYER, MapGenerationParams
from mapgen.errors import ConfigurationError
from mapgen.generation.pipeline import create_pipeline
from mapgen.models.map import GeneratedWorld, MapMetadata

logger = logging.getLogger(__name__)


def map_dimension(player_count: int) -> int:
    """Side length of the square map for a player count"""
    return math.ceil(math.sqrt(player_count * TILES_PER_PLAYER * LAND_SCALE_FACTOR))


def seed_to_int(seed: str) -> int:
    """First 8 bytes of the SHA-256 digest of the seed, big-endian"""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


class WorldGenerator:
    """
    Deterministic world generator.

    Identical (seed, player_count) pairs always produce identical terrain,
    resources and starting positions. Every call to generate() builds its own
    RNG, so one instance can be shared between threads.
    """

    def __init__(self, seed: str, player_count: int):
        if player_count <= 0:
            raise ConfigurationError(f"player_count must be positive, got {player_count}")

        self.params = MapGenerationParams(seed=seed, player_count=player_count)
        self.width = map_dimension(player_count)
        self.height = self.width
        self.seed_int = seed_to_int(seed)

    @property
    def seed(self) -> str:
        return self.params.seed

    @property
    def player_count(self) -> int:
        return self.params.player_count

    def generate(
        self,
        game_id: str = "",
        progress_callback: Optional[Callable[[str, float], None]] = None,
    ) -> GeneratedWorld:
        """
        Run every generation pass.

        Args:
            game_id: Stamped onto metadata, tiles and positions
            progress_callback: Optional (pass_name, percent) callback

        Returns:
            GeneratedWorld with width*height tiles in row-major order and one
            starting position per player (placeholder ids player1..playerN)

        Raises:
            GenerationError: if a pass fails
        """
        start = time.time()
        rng = np.random.default_rng(self.seed_int)

        pipeline = create_pipeline(self.params, self.width, self.height, rng, progress_callback)
        map_state = pipeline.generate()

        tiles = map_state.to_tiles(game_id)
        for position in map_state.starting_positions:
            position.game_id = game_id

        metadata = MapMetadata(
            game_id=game_id,
            seed=self.seed,
            width=self.width,
            height=self.height,
            player_count=self.player_count,
            sea_level=map_state.sea_level,
            great_circles=map_state.great_circles,
            generation_time_ms=int((time.time() - start) * 1000),
        )

        logger.info(
            f"Generated {self.width}x{self.height} world with {len(tiles)} tiles, "
            f"sea level {metadata.sea_level}m, {len(map_state.starting_positions)} starting positions "
            f"in {metadata.generation_time_ms}ms"
        )

        return GeneratedWorld(
            metadata=metadata,
            tiles=tiles,
            starting_positions=map_state.starting_positions,
        )
