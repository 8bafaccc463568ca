"""
Engine Configuration and Constants
Calendar, settler and population rules used by the scheduler and automation.
"""

from enum import Enum

# =============================================================================
# CALENDAR
# =============================================================================

INITIAL_YEAR = -5000
YEARS_PER_TICK = 1
YEAR_MILESTONE_INTERVAL = 100     # Log every N years

DEFAULT_TICK_INTERVAL_MS = 1000
DEFAULT_POLL_INTERVAL_MS = 100

# =============================================================================
# SETTLERS
# =============================================================================

SETTLER_UNIT_TYPE = "settlers"
SETTLER_POPULATION_COST = 100
SETTLER_STEPS_BEFORE_FOUNDING = 3
INITIAL_POPULATION = 100

# Single-step moves: N, S, E, W (dx, dy)
SETTLER_MOVES = [(0, -1), (0, 1), (1, 0), (-1, 0)]

# Fallback search order when founding on water: E, W, S, N, SE, NE, SW, NW
FOUNDING_NEIGHBOR_ORDER = [
    (1, 0), (-1, 0), (0, 1), (0, -1),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
]

# =============================================================================
# SETTLEMENTS
# =============================================================================

FIRST_SETTLEMENT_NAME = "First Settlement"
SETTLEMENT_GROWTH_RATE = 0.01
MIN_SETTLEMENT_GROWTH = 1
POPULATION_LOG_INTERVAL = 10

# =============================================================================
# MANUAL CONTROL
# =============================================================================

MANUAL_TICK_QUEUE_SIZE = 10

# =============================================================================
# ENUMERATIONS
# =============================================================================

class GameState(str, Enum):
    """Lifecycle state of a game session"""
    WAITING = "waiting"
    STARTED = "started"


class SettlementType(str, Enum):
    """Settlement tiers"""
    NOMADIC_CAMP = "nomadic_camp"
