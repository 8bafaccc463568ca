"""
Simulation Module
Tick scheduling and early-game settlement automation.
"""

from engine.simulation.scheduler import TickScheduler, assign_players, make_seed_source
from engine.simulation.settlers import AutomationResult, SettlementAutomation, settlement_growth

__all__ = [
    "AutomationResult",
    "SettlementAutomation",
    "TickScheduler",
    "assign_players",
    "make_seed_source",
    "settlement_growth",
]
