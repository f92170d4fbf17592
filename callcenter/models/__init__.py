"""
Simulation Models

Domain objects mutated by the simulation engine:
- Agents and their call-handling state machine
- Leads, lead sources and the lead pool
- Dialers and the dialer manager
- The game state aggregate root
"""

from .agent import Agent, AgentState, CurrentCall, SKILLS
from .dialer import Dialer, DialerManager
from .effects import UpgradeEffects
from .game_state import DailyStats, GameState, GameTime, LifetimeStats, SAVE_VERSION
from .lead import Lead, LeadPool, LeadSource, LeadStatus

__all__ = [
    "Agent",
    "AgentState",
    "CurrentCall",
    "SKILLS",
    "Dialer",
    "DialerManager",
    "UpgradeEffects",
    "DailyStats",
    "GameState",
    "GameTime",
    "LifetimeStats",
    "SAVE_VERSION",
    "Lead",
    "LeadPool",
    "LeadSource",
    "LeadStatus",
]
