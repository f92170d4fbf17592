"""
Tick-based simulation of the call floor.
"""

from .engine import SimulationEngine, TICK_SECONDS, TICKS_PER_MINUTE

__all__ = [
    "SimulationEngine",
    "TICK_SECONDS",
    "TICKS_PER_MINUTE",
]
