"""
Map Generator - Generation Pipeline
Runs the generation passes in order over a shared MapState.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import numpy as np

from mapgen.config import GENERATION_PASSES, PASS_WEIGHTS, MapGenerationParams
from mapgen.errors import GenerationError
from mapgen.models.map import MapState

logger = logging.getLogger(__name__)


class GenerationPipeline:
    """
    Main pipeline for executing all map generation passes.
    Manages state, progress tracking, and pass orchestration.
    """

    def __init__(
        self,
        params: MapGenerationParams,
        width: int,
        height: int,
        rng: np.random.Generator,
        progress_callback: Optional[Callable[[str, float], None]] = None,
    ):
        """
        Initialize generation pipeline.

        Args:
            params: Map generation parameters
            width: Map width in tiles
            height: Map height in tiles
            rng: The single RNG every pass draws from
            progress_callback: Optional callback for progress updates (pass_name, percent)
        """
        self.params = params
        self.progress_callback = progress_callback

        self.map_state = MapState(params, width, height, rng)

        # Pass registry - populated with pass modules
        self.pass_registry: Dict[str, Any] = {}

        # Track timing for each pass
        self.pass_timings: Dict[str, float] = {}

    def register_pass(self, pass_name: str, pass_module):
        """Register a generation pass module"""
        self.pass_registry[pass_name] = pass_module

    def generate(self) -> MapState:
        """
        Execute every registered pass in GENERATION_PASSES order.

        Returns:
            The populated MapState

        Raises:
            GenerationError: if any pass raises
        """
        start_time = time.time()
        logger.info(
            f"Generating {self.map_state.width}x{self.map_state.height} map "
            f"for {self.params.player_count} players (seed={self.params.seed!r})"
        )

        total_weight = sum(PASS_WEIGHTS.values())
        accumulated_weight = 0

        for pass_name in GENERATION_PASSES:
            if pass_name not in self.pass_registry:
                logger.warning(f"Pass '{pass_name}' not registered, skipping")
                continue

            pass_start = time.time()
            try:
                self.pass_registry[pass_name].execute(self.map_state, self.params)
            except Exception as e:
                logger.error(f"Generation failed in {pass_name}: {e}")
                raise GenerationError(f"Generation pass '{pass_name}' failed: {e}", pass_name) from e

            self.pass_timings[pass_name] = time.time() - pass_start
            accumulated_weight += PASS_WEIGHTS[pass_name]

            if self.progress_callback:
                self.progress_callback(pass_name, (accumulated_weight / total_weight) * 100)

        total_time = time.time() - start_time
        logger.info(f"Map generation complete in {total_time:.2f}s")
        for pass_name, duration in self.pass_timings.items():
            logger.debug(f"  {pass_name:30s} {duration:8.3f}s")

        return self.map_state


def create_pipeline(
    params: MapGenerationParams,
    width: int,
    height: int,
    rng: np.random.Generator,
    progress_callback: Optional[Callable[[str, float], None]] = None,
) -> GenerationPipeline:
    """
    Factory function to create a fully configured generation pipeline.

    Returns:
        Configured GenerationPipeline ready to execute
    """
    pipeline = GenerationPipeline(params, width, height, rng, progress_callback)

    from mapgen.generation import pass_01_great_circles
    from mapgen.generation import pass_02_elevation
    from mapgen.generation import pass_03_sea_level
    from mapgen.generation import pass_04_terrain
    from mapgen.generation import pass_05_rivers
    from mapgen.generation import pass_06_resources
    from mapgen.generation import pass_07_starting_positions
    from mapgen.generation import pass_08_visibility

    pipeline.register_pass("pass_01_great_circles", pass_01_great_circles)
    pipeline.register_pass("pass_02_elevation", pass_02_elevation)
    pipeline.register_pass("pass_03_sea_level", pass_03_sea_level)
    pipeline.register_pass("pass_04_terrain", pass_04_terrain)
    pipeline.register_pass("pass_05_rivers", pass_05_rivers)
    pipeline.register_pass("pass_06_resources", pass_06_resources)
    pipeline.register_pass("pass_07_starting_positions", pass_07_starting_positions)
    pipeline.register_pass("pass_08_visibility", pass_08_visibility)

    return pipeline
