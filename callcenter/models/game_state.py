"""
Game State

The aggregate root: cash, reputation, agents, the lead pool, the dialer
manager, upgrade levels, the simulated clock and statistics. Every other
component mutates the simulation only through the methods defined here.
"""

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from ..config.catalog import Catalog, DefaultsConfig
from ..core.formulas import clamp
from ..core.rng import RandomSource
from .agent import Agent
from .base import CamelModel
from .dialer import Dialer, DialerManager
from .effects import UpgradeEffects
from .lead import MINUTES_PER_DAY, LeadPool, LeadSource

logger = logging.getLogger(__name__)

SAVE_VERSION = 1


class GameTime(CamelModel):
    day: int = 1
    hour: int = 9
    minute: int = 0
    total_minutes: int = 0

    def absolute_minutes(self) -> int:
        """Minutes since day 1, 00:00."""
        return (self.day - 1) * MINUTES_PER_DAY + self.hour * 60 + self.minute


class DailyStats(CamelModel):
    dials: int = 0
    contacts: int = 0
    conversions: int = 0
    revenue: float = 0
    costs: float = 0
    profit: float = 0
    complaints: int = 0
    abandonments: int = 0


class LifetimeStats(CamelModel):
    total_dials: int = 0
    total_contacts: int = 0
    total_conversions: int = 0
    total_revenue: float = 0
    total_costs: float = 0
    days_played: int = 0


class SaveHeader(CamelModel):
    """Top-level scalars of a save document."""
    cash: float
    reputation: float
    next_agent_id: Optional[int] = None
    upgrades: Optional[dict[str, int]] = None


class GameState:
    """
    Central game state container.

    Cash may go negative; reputation is always kept in [0, 100].
    """

    def __init__(self, defaults: Optional[DefaultsConfig] = None):
        self.defaults = defaults or DefaultsConfig()
        game = self.defaults.game

        self.cash: float = game.starting_cash
        self.reputation: float = game.starting_reputation

        self.agents: list[Agent] = []
        self.next_agent_id = 1

        self.lead_pool = LeadPool()
        self.dialer_manager = DialerManager()

        # upgrade id -> owned level, in purchase order
        self.upgrades: dict[str, int] = {}
        self.upgrade_effects = UpgradeEffects()

        self.game_time = GameTime(hour=game.work_start_hour)
        self.daily_stats = DailyStats()
        self.lifetime_stats = LifetimeStats()

        self.is_paused = True
        self.speed_multiplier: float = 1.0

        self._sync_clock()

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "GameState":
        """Fresh state with every catalog dialer and lead source registered."""
        state = cls(catalog.defaults)
        for config in catalog.lead_sources:
            state.lead_pool.add_source(LeadSource.from_config(config))
        for config in catalog.dialers:
            state.dialer_manager.add_dialer(Dialer.from_config(config))
        state.dialer_manager.active_dialer_id = catalog.defaults.game.starting_dialer
        return state

    # =========================================================================
    # Agents
    # =========================================================================

    def add_agent(
        self,
        rng: RandomSource,
        base_stats: Optional[Mapping[str, float]] = None,
        stat_variance: Optional[float] = None,
    ) -> Agent:
        if stat_variance is None:
            stat_variance = self.defaults.agent.stat_variance
        if base_stats is None:
            base_stats = self.defaults.agent.base_stats.model_dump()

        agent = Agent.create(
            f"agent_{self.next_agent_id}",
            rng,
            base_stats=base_stats,
            stat_variance=stat_variance,
            hired_at=self.now(),
        )
        self.next_agent_id += 1
        self.agents.append(agent)
        return agent

    def remove_agent(self, agent_id: str) -> bool:
        remaining = [a for a in self.agents if a.id != agent_id]
        removed = len(remaining) != len(self.agents)
        self.agents = remaining
        return removed

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return next((a for a in self.agents if a.id == agent_id), None)

    def get_available_agents(self) -> list[Agent]:
        return [a for a in self.agents if a.is_available()]

    def get_working_agents(self) -> list[Agent]:
        return [a for a in self.agents if a.is_working()]

    # =========================================================================
    # Money, reputation and counters
    # =========================================================================

    def adjust_cash(self, amount: float) -> None:
        """Apply a cash delta, booking it as revenue or cost by sign."""
        self.cash += amount
        if amount > 0:
            self.daily_stats.revenue += amount
            self.lifetime_stats.total_revenue += amount
        elif amount < 0:
            self.daily_stats.costs += abs(amount)
            self.lifetime_stats.total_costs += abs(amount)

    def adjust_reputation(self, amount: float) -> None:
        self.reputation = clamp(self.reputation + amount, 0.0, 100.0)

    def record_dial(self) -> None:
        self.daily_stats.dials += 1
        self.lifetime_stats.total_dials += 1

    def record_contact(self) -> None:
        self.daily_stats.contacts += 1
        self.lifetime_stats.total_contacts += 1

    def record_conversion(self, revenue: float) -> None:
        self.daily_stats.conversions += 1
        self.lifetime_stats.total_conversions += 1
        self.adjust_cash(revenue)

    def record_complaint(self) -> None:
        self.daily_stats.complaints += 1

    def record_abandonment(self) -> None:
        self.daily_stats.abandonments += 1

    # =========================================================================
    # Upgrades
    # =========================================================================

    def get_upgrade_level(self, upgrade_id: str) -> int:
        return self.upgrades.get(upgrade_id, 0)

    def set_upgrade_level(self, upgrade_id: str, level: int) -> None:
        self.upgrades[upgrade_id] = level

    # =========================================================================
    # Time
    # =========================================================================

    def now(self) -> int:
        """Current absolute simulated minute."""
        return self.game_time.absolute_minutes()

    def _sync_clock(self) -> None:
        self.lead_pool.clock = self.now()

    def is_work_hours(self) -> bool:
        game = self.defaults.game
        return game.work_start_hour <= self.game_time.hour < game.work_end_hour

    def advance_time(self, minutes: int = 1) -> Optional[DailyStats]:
        """
        Move the clock forward, carrying minutes into hours.

        Returns:
            The closed day's stats if the clock passed midnight, else None.
        """
        self.game_time.minute += minutes
        self.game_time.total_minutes += minutes

        while self.game_time.minute >= 60:
            self.game_time.minute -= 60
            self.game_time.hour += 1

        snapshot = None
        if self.game_time.hour >= 24:
            snapshot = self.end_day()
        self._sync_clock()
        return snapshot

    def get_daily_operating_cost(self) -> float:
        """Wages for every agent plus the active dialer's per-agent fee."""
        agent_count = len(self.agents)
        cost = agent_count * self.defaults.agent.daily_wage
        dialer = self.dialer_manager.get_active_dialer()
        if dialer is not None:
            cost += dialer.get_daily_cost(agent_count)
        return cost

    def end_day(self) -> DailyStats:
        """
        Close the current day and open the next business day.

        Charges operating costs, snapshots and resets the daily stats,
        resets agent counters and gives agents some fatigue back.

        Returns:
            The stats of the day that just closed.
        """
        operating_cost = self.get_daily_operating_cost()
        if operating_cost > 0:
            self.adjust_cash(-operating_cost)

        self.daily_stats.profit = self.daily_stats.revenue - self.daily_stats.costs
        self.lifetime_stats.days_played += 1

        recovery = self.defaults.game.overnight_fatigue_recovery
        for agent in self.agents:
            agent.reset_daily_stats()
            agent.fatigue = max(0.0, agent.fatigue - recovery)

        self.game_time.day += 1
        self.game_time.hour = self.defaults.game.work_start_hour
        self.game_time.minute = 0

        snapshot = self.daily_stats
        self.daily_stats = DailyStats()
        self._sync_clock()

        logger.info(
            "Day %d closed: revenue=%.2f costs=%.2f profit=%.2f conversions=%d",
            self.game_time.day - 1,
            snapshot.revenue,
            snapshot.costs,
            snapshot.profit,
            snapshot.conversions,
        )
        return snapshot

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_json(self) -> dict:
        return {
            "version": SAVE_VERSION,
            "cash": self.cash,
            "reputation": self.reputation,
            "agents": [agent.to_json() for agent in self.agents],
            "nextAgentId": self.next_agent_id,
            "leadPool": self.lead_pool.to_json(),
            "dialerManager": self.dialer_manager.to_json(),
            "upgrades": dict(self.upgrades),
            "gameTime": self.game_time.to_json(),
            "dailyStats": self.daily_stats.to_json(),
            "lifetimeStats": self.lifetime_stats.to_json(),
            "savedAt": datetime.now(timezone.utc).isoformat(),
        }

    def load_from_json(self, data: dict, catalog: Optional[Catalog] = None) -> None:
        """
        Restore state from a save document.

        Dialers and lead sources are rebuilt from ``catalog`` with their
        saved unlock flags; without a catalog the registered ones are
        reused. Mistyped values raise ``pydantic.ValidationError``.

        Upgrade effects are not recomputed here; the caller owns the upgrade
        catalog and must recompute them after loading.
        """
        game = self.defaults.game
        header = SaveHeader.model_validate(
            {"cash": game.starting_cash, "reputation": game.starting_reputation, **data}
        )
        agents = [Agent.from_json(a) for a in data.get("agents") or []]

        self.cash = header.cash
        self.reputation = clamp(header.reputation, 0.0, 100.0)
        self.agents = agents
        self.next_agent_id = header.next_agent_id or len(self.agents) + 1

        source_configs = (
            catalog.lead_sources if catalog is not None
            else [s.config for s in self.lead_pool.sources.values()]
        )
        dialer_configs = (
            catalog.dialers if catalog is not None
            else [d.config for d in self.dialer_manager.dialers.values()]
        )
        self.lead_pool.load_from_json(data.get("leadPool") or {}, source_configs)
        self.dialer_manager.load_from_json(data.get("dialerManager") or {}, dialer_configs)

        self.upgrades = dict(header.upgrades or {})
        self.game_time = GameTime.model_validate(
            data.get("gameTime") or {"hour": game.work_start_hour}
        )
        self.daily_stats = DailyStats.model_validate(data.get("dailyStats") or {})
        self.lifetime_stats = LifetimeStats.model_validate(data.get("lifetimeStats") or {})
        self._sync_clock()
