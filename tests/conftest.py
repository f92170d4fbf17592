"""Shared fixtures for the call center simulation test suite."""

import pytest

from callcenter.config.catalog import (
    AddAgentEffect,
    AddLeadsEffect,
    Catalog,
    DialerConfig,
    LeadSourceConfig,
    PassiveEffect,
    PassiveEffectType,
    UpgradeConfig,
)
from callcenter.core.rng import SeededRNG
from callcenter.models.game_state import GameState
from callcenter.simulation.engine import SimulationEngine


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value

    def chance(self, probability: float) -> bool:
        return self.random() < probability


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------


def build_catalog() -> Catalog:
    return Catalog(
        dialers=(
            DialerConfig(id="manual", name="Manual", tier=1, dials_per_minute_per_agent=6),
            DialerConfig(
                id="power",
                name="Power",
                tier=2,
                dials_per_minute_per_agent=12,
                cost_per_agent_per_day=5,
                unlock_cost=300,
                prerequisites=("manual",),
            ),
            DialerConfig(
                id="predictive",
                name="Predictive",
                tier=3,
                abandonment_rate=1.0,
                unlock_cost=1000,
                prerequisites=("power",),
            ),
        ),
        lead_sources=(
            LeadSourceConfig(id="standard_leads", name="Standard"),
            LeadSourceConfig(
                id="premium",
                name="Premium",
                intent_multiplier=1.5,
                unlock_cost=200,
                prerequisites=("standard_leads",),
            ),
        ),
        upgrades=(
            UpgradeConfig(
                id="hire",
                name="Hire",
                base_cost=100,
                cost_growth_rate=1.5,
                max_level=3,
                effects=(AddAgentEffect(type="add_agent", value=1),),
            ),
            UpgradeConfig(
                id="leads",
                name="Leads",
                base_cost=50,
                max_level=10,
                effects=(AddLeadsEffect(type="add_leads", value=10),),
            ),
            UpgradeConfig(
                id="presence",
                name="Presence",
                base_cost=100,
                max_level=5,
                effects=(PassiveEffect(type=PassiveEffectType.ANSWER_RATE_BONUS, value=0.05),),
            ),
            UpgradeConfig(
                id="routing",
                name="Routing",
                base_cost=100,
                max_level=2,
                prerequisites=("presence",),
                effects=(
                    PassiveEffect(type=PassiveEffectType.LEAD_ROUTING_EFFICIENCY, value=0.1),
                    PassiveEffect(type=PassiveEffectType.GLOBAL_SKILL_TALKTRACK, value=0.02),
                ),
            ),
            UpgradeConfig(
                id="recruiting",
                name="Recruiting",
                base_cost=100,
                max_level=2,
                effects=(PassiveEffect(type=PassiveEffectType.NEW_AGENT_STAT_BONUS, value=0.1),),
            ),
            UpgradeConfig(
                id="marketing",
                name="Marketing",
                base_cost=100,
                max_level=2,
                effects=(PassiveEffect(type=PassiveEffectType.DAILY_LEADS, value=5),),
            ),
        ),
        events=({"id": "welcome", "title": "Welcome"},),
    )


@pytest.fixture
def catalog() -> Catalog:
    """Small, fully cross-checked catalog."""
    return build_catalog()


@pytest.fixture
def fixed_random() -> FixedRandom:
    return FixedRandom(0.5)


@pytest.fixture
def rng() -> SeededRNG:
    return SeededRNG(12345)


# ---------------------------------------------------------------------------
# Wired state
# ---------------------------------------------------------------------------


@pytest.fixture
def state(catalog, rng) -> GameState:
    """Unpaused state at 09:00 with one agent and 100 fresh leads."""
    game_state = GameState.from_catalog(catalog)
    game_state.is_paused = False
    game_state.add_agent(rng)
    game_state.lead_pool.generate_leads("standard_leads", 100, rng)
    return game_state


@pytest.fixture
def engine(state, catalog) -> SimulationEngine:
    return SimulationEngine(state, catalog, seed=42)


@pytest.fixture
def make_random():
    """Factory for fixed-value random sources."""
    return FixedRandom
