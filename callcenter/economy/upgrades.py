"""
Upgrade Manager

Prices, gates and applies upgrade purchases, and keeps the cached
passive-effect aggregate on the game state in sync with owned levels.
"""

import logging
import math
from typing import Iterable, Optional

from ..config.catalog import (
    AddAgentEffect,
    AddLeadsEffect,
    PassiveEffect,
    UpgradeConfig,
    UpgradeEffect,
)
from ..core import formulas
from ..core.rng import RandomSource
from ..models.effects import UpgradeEffects
from ..models.game_state import GameState

logger = logging.getLogger(__name__)

# Returned by get_upgrade_cost when nothing more can be bought
UNAFFORDABLE = math.inf


class UpgradeManager:
    """
    Upgrade purchasing on top of a shared GameState.

    The manager holds no state of its own beyond the catalog configs; owned
    levels and the effect cache live on the game state.
    """

    def __init__(self, state: GameState, upgrade_configs: Iterable[UpgradeConfig]):
        self.state = state
        self.configs: dict[str, UpgradeConfig] = {c.id: c for c in upgrade_configs}

    def get_upgrade_config(self, upgrade_id: str) -> Optional[UpgradeConfig]:
        return self.configs.get(upgrade_id)

    def get_current_level(self, upgrade_id: str) -> int:
        return self.state.get_upgrade_level(upgrade_id)

    def get_upgrade_cost(self, upgrade_id: str) -> float:
        """Cost of the next level; ``UNAFFORDABLE`` when unknown or maxed."""
        config = self.configs.get(upgrade_id)
        if config is None:
            return UNAFFORDABLE

        level = self.get_current_level(upgrade_id)
        if level >= config.max_level:
            return UNAFFORDABLE

        return formulas.calculate_upgrade_cost(config.base_cost, level, config.cost_growth_rate)

    def can_afford(self, upgrade_id: str) -> bool:
        return self.state.cash >= self.get_upgrade_cost(upgrade_id)

    def can_purchase(self, upgrade_id: str) -> bool:
        config = self.configs.get(upgrade_id)
        if config is None:
            return False
        if self.get_current_level(upgrade_id) >= config.max_level:
            return False
        if not self.can_afford(upgrade_id):
            return False
        return all(self.get_current_level(p) >= 1 for p in config.prerequisites)

    def purchase(self, upgrade_id: str, rng: RandomSource) -> bool:
        """
        Buy the next level of an upgrade.

        Deducts the cost, bumps the level, applies one-shot effects and
        recomputes the passive aggregate. Returns False without touching
        anything when the purchase is not allowed.
        """
        if not self.can_purchase(upgrade_id):
            logger.debug("Upgrade %s cannot be purchased", upgrade_id)
            return False

        config = self.configs[upgrade_id]
        cost = self.get_upgrade_cost(upgrade_id)
        level = self.get_current_level(upgrade_id) + 1

        self.state.adjust_cash(-cost)
        self.state.set_upgrade_level(upgrade_id, level)

        self.apply_effects(config.effects, rng)
        self.recalculate_effects()

        logger.info("Purchased %s level %d for %s", upgrade_id, level, cost)
        return True

    def apply_effects(self, effects: Iterable[UpgradeEffect], rng: RandomSource) -> None:
        """Run the one-shot effects of a single purchase."""
        for effect in effects:
            if isinstance(effect, AddAgentEffect):
                for _ in range(effect.value):
                    self.state.add_agent(rng, base_stats=self.get_new_agent_stats())
            elif isinstance(effect, AddLeadsEffect):
                self.state.lead_pool.generate_leads(effect.source, effect.value, rng)

    def get_new_agent_stats(self) -> dict[str, float]:
        """Base stats for new hires, raised by the new-agent stat bonus."""
        bonus = self.state.upgrade_effects.new_agent_stat_bonus
        base = self.state.defaults.agent.base_stats.model_dump()
        return {skill: value + bonus for skill, value in base.items()}

    def recalculate_effects(self) -> UpgradeEffects:
        """
        Rebuild the passive-effect cache from scratch.

        Idempotent: the result depends only on owned levels and configs.
        """
        effects = UpgradeEffects()

        for upgrade_id, level in self.state.upgrades.items():
            config = self.configs.get(upgrade_id)
            if config is None or level <= 0:
                continue

            for effect in config.effects:
                if isinstance(effect, PassiveEffect):
                    name = effect.type.value
                    setattr(effects, name, getattr(effects, name) + effect.value * level)
                elif isinstance(effect, (AddAgentEffect, AddLeadsEffect)):
                    # One-shot; applied at purchase time only
                    continue
                else:
                    raise TypeError(f"Unhandled upgrade effect: {effect!r}")

        self.state.upgrade_effects = effects
        return effects

    def _describe(self, config: UpgradeConfig) -> dict:
        return {
            **config.model_dump(mode="json"),
            "current_level": self.get_current_level(config.id),
            "cost": self.get_upgrade_cost(config.id),
            "can_purchase": self.can_purchase(config.id),
        }

    def get_available_upgrades(self) -> list[dict]:
        return [self._describe(c) for c in self.configs.values() if self.can_purchase(c.id)]

    def get_all_upgrades(self) -> list[dict]:
        return [self._describe(c) for c in self.configs.values()]
