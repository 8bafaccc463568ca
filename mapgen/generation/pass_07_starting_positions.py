"""
Map Generator - Pass 7: Starting Positions
Scores candidate 15x15 regions on a coarse grid and greedily picks one per
player, trading region quality against distance from players already placed.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from mapgen.config import (
    FALLBACK_REGION_SCORE,
    MIN_START_DISTANCE_FRACTION,
    START_FOOTPRINT_RADIUS,
    START_REGION_MAX_COMFORT_ELEVATION,
    START_REGION_MIN_LAND,
    START_REGION_MIN_SCORE,
    START_REGION_RADIUS,
    START_REGION_STRIDE,
    TERRAIN_CODES,
    MapGenerationParams,
    TerrainType,
)
from mapgen.models.map import CandidateRegion, Footprint, MapState, StartingPosition
from mapgen.utils.spatial import window_bounds

logger = logging.getLogger(__name__)

GOOD_TERRAIN = [TERRAIN_CODES[TerrainType.GRASSLAND], TERRAIN_CODES[TerrainType.PLAINS]]
FOREST_TERRAIN = [TERRAIN_CODES[TerrainType.FOREST]]
POOR_TERRAIN = [TERRAIN_CODES[TerrainType.MOUNTAIN], TERRAIN_CODES[TerrainType.TUNDRA]]


def placeholder_player_ids(player_count: int) -> List[str]:
    """Ids used until the scheduler assigns real players, in order"""
    return [f"player{i + 1}" for i in range(player_count)]


def execute(map_state: MapState, params: MapGenerationParams):
    """
    Find one starting position per player.

    Args:
        map_state: Map state to update (needs terrain, coastal, resources)
        params: Generation parameters
    """
    map_state.candidates = find_candidate_regions(map_state)
    logger.debug(f"Found {len(map_state.candidates)} candidate starting regions")

    map_state.starting_positions = select_starting_positions(
        map_state,
        map_state.candidates,
        placeholder_player_ids(params.player_count),
    )


# =============================================================================
# CANDIDATE SCORING
# =============================================================================

def resource_mask(map_state: MapState) -> np.ndarray:
    mask = np.zeros((map_state.height, map_state.width), dtype=bool)
    for x, y in map_state.resources:
        mask[y, x] = True
    return mask


def score_region(map_state: MapState, center_x: int, center_y: int, resources: np.ndarray) -> float:
    """
    Score the 15x15 window around a center.

    Windows with fewer than START_REGION_MIN_LAND land tiles score 0.
    """
    x0, x1, y0, y1 = window_bounds(center_x, center_y, START_REGION_RADIUS, map_state.width, map_state.height)

    elevation = map_state.elevation[y0:y1, x0:x1]
    terrain = map_state.terrain[y0:y1, x0:x1]
    land = elevation >= map_state.sea_level

    land_tiles = int(land.sum())
    if land_tiles < START_REGION_MIN_LAND:
        return 0.0

    land_terrain = terrain[land]
    score = 0.0

    # Prefer buildable terrain
    score += 2.0 * int(np.isin(land_terrain, GOOD_TERRAIN).sum())
    score += 1.5 * int(np.isin(land_terrain, FOREST_TERRAIN).sum())
    score -= 1.0 * int(np.isin(land_terrain, POOR_TERRAIN).sum())

    # Prefer moderate elevation
    score += 1.0 * int((land & (elevation <= START_REGION_MAX_COMFORT_ELEVATION)).sum())

    coastal_tiles = int((land & map_state.coastal[y0:y1, x0:x1]).sum())
    resource_count = int((land & resources[y0:y1, x0:x1]).sum())

    if coastal_tiles < 3:
        score -= 10
    if resource_count < 2:
        score -= 10

    # Reward terrain diversity (2-4 types ideal)
    diversity = len(np.unique(land_terrain))
    if 2 <= diversity <= 4:
        score += diversity * 5

    score += land_tiles / 2.0
    return score


def find_candidate_regions(map_state: MapState) -> List[CandidateRegion]:
    """Scan the coarse grid and return viable regions, best first"""
    resources = resource_mask(map_state)
    radius = START_REGION_RADIUS

    candidates: List[CandidateRegion] = []
    for y in range(radius, map_state.height - radius, START_REGION_STRIDE):
        for x in range(radius, map_state.width - radius, START_REGION_STRIDE):
            score = score_region(map_state, x, y, resources)
            if score > START_REGION_MIN_SCORE:
                candidates.append(CandidateRegion(center_x=x, center_y=y, score=score))

    # Stable: equal scores keep scan order
    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates


# =============================================================================
# SELECTION
# =============================================================================

def _min_distance(x: int, y: int, positions: Sequence[StartingPosition]) -> float:
    if not positions:
        return 1.0
    return min(float(np.hypot(x - p.center_x, y - p.center_y)) for p in positions)


def pick_candidate(
    candidates: Sequence[CandidateRegion],
    used: set,
    positions: Sequence[StartingPosition],
    diagonal: float,
) -> Optional[int]:
    """
    Index of the unused candidate maximizing score * min_distance / diagonal.

    Candidates at least MIN_START_DISTANCE_FRACTION of the diagonal away from
    every chosen position win over closer ones. Returns None when all are used.
    """
    min_spacing = diagonal * MIN_START_DISTANCE_FRACTION

    best_spaced: Optional[int] = None
    best_spaced_score = -1.0
    best_any: Optional[int] = None
    best_any_score = -1.0

    for idx, candidate in enumerate(candidates):
        if idx in used:
            continue

        min_dist = _min_distance(candidate.center_x, candidate.center_y, positions)
        combined = candidate.score * (min_dist / diagonal)

        if combined > best_any_score:
            best_any_score = combined
            best_any = idx

        spaced = not positions or min_dist >= min_spacing
        if spaced and combined > best_spaced_score:
            best_spaced_score = combined
            best_spaced = idx

    return best_spaced if best_spaced is not None else best_any


def fallback_location(map_state: MapState, positions: Sequence[StartingPosition]) -> Tuple[int, int]:
    """
    Any land tile: nearest the map center for the first player, otherwise the
    land tile farthest from everyone already placed. Map center if no land.
    """
    land = np.argwhere(map_state.land_mask())
    if len(land) == 0:
        return map_state.width // 2, map_state.height // 2

    ys = land[:, 0].astype(np.float64)
    xs = land[:, 1].astype(np.float64)

    if not positions:
        distance = np.hypot(xs - map_state.width / 2, ys - map_state.height / 2)
        idx = int(np.argmin(distance))
    else:
        distance = np.full(len(land), np.inf)
        for p in positions:
            distance = np.minimum(distance, np.hypot(xs - p.starting_city_x, ys - p.starting_city_y))
        idx = int(np.argmax(distance))

    return int(xs[idx]), int(ys[idx])


def build_position(
    map_state: MapState,
    player_id: str,
    center_x: int,
    center_y: int,
    city_x: int,
    city_y: int,
    score: float,
) -> StartingPosition:
    radius = START_FOOTPRINT_RADIUS
    x0, x1, y0, y1 = window_bounds(center_x, center_y, START_REGION_RADIUS, map_state.width, map_state.height)

    return StartingPosition(
        player_id=player_id,
        center_x=center_x,
        center_y=center_y,
        starting_city_x=city_x,
        starting_city_y=city_y,
        region_score=score,
        guaranteed_footprint=Footprint(
            min_x=max(0, center_x - radius),
            max_x=min(map_state.width - 1, center_x + radius),
            min_y=max(0, center_y - radius),
            max_y=min(map_state.height - 1, center_y + radius),
        ),
        revealed_tiles=(x1 - x0) * (y1 - y0),
    )


def select_starting_positions(
    map_state: MapState,
    candidates: Sequence[CandidateRegion],
    player_ids: Sequence[str],
) -> List[StartingPosition]:
    """Greedy placement, one position per player id in order"""
    diagonal = map_state.diagonal
    radius = START_REGION_RADIUS

    used: set = set()
    positions: List[StartingPosition] = []

    for player_id in player_ids:
        idx = pick_candidate(candidates, used, positions, diagonal)

        if idx is not None:
            used.add(idx)
            candidate = candidates[idx]
            position = build_position(
                map_state, player_id,
                candidate.center_x, candidate.center_y,
                candidate.center_x, candidate.center_y,
                candidate.score,
            )
        else:
            city_x, city_y = fallback_location(map_state, positions)
            # Keep the whole reveal window on the map
            center_x = int(np.clip(city_x, radius, max(radius, map_state.width - 1 - radius)))
            center_y = int(np.clip(city_y, radius, max(radius, map_state.height - 1 - radius)))
            logger.warning(
                f"Not enough candidate regions for {player_id}; "
                f"falling back to land tile ({city_x}, {city_y})"
            )
            position = build_position(
                map_state, player_id, center_x, center_y, city_x, city_y, FALLBACK_REGION_SCORE
            )

        positions.append(position)

    return positions
