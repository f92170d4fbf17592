"""
Dialer Model

Dialer technologies with throughput, quality and cost tradeoffs, and the
manager that tracks which ones are unlocked and which one is active.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..config.catalog import DialerConfig
from ..core.rng import RandomSource

DEFAULT_DIALER_ID = "manual"


@dataclass
class Dialer:
    """A catalog dialer plus its unlock flag."""
    config: DialerConfig
    unlocked: bool = False

    @classmethod
    def from_config(cls, config: DialerConfig) -> "Dialer":
        # Free dialers start unlocked
        return cls(config=config, unlocked=config.unlock_cost == 0)

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def tier(self) -> int:
        return self.config.tier

    def get_dial_interval_seconds(self) -> float:
        return 60 / self.config.dials_per_minute_per_agent

    def can_unlock(self, unlocked_ids: set[str]) -> bool:
        if self.unlocked:
            return False
        return all(p in unlocked_ids for p in self.config.prerequisites)

    def get_daily_cost(self, agent_count: int) -> float:
        return self.config.cost_per_agent_per_day * agent_count

    def should_abandon(self, rng: RandomSource) -> bool:
        return rng.random() < self.config.abandonment_rate

    def to_json(self) -> dict:
        return {"id": self.id, "unlocked": self.unlocked}


class DialerManager:
    """Owns all dialers; exactly one is active at a time."""

    def __init__(self):
        self.dialers: dict[str, Dialer] = {}
        self.active_dialer_id = DEFAULT_DIALER_ID

    def add_dialer(self, dialer: Dialer) -> None:
        self.dialers[dialer.id] = dialer

    def get_dialer(self, dialer_id: str) -> Optional[Dialer]:
        return self.dialers.get(dialer_id)

    def get_active_dialer(self) -> Optional[Dialer]:
        return self.dialers.get(self.active_dialer_id)

    def set_active_dialer(self, dialer_id: str) -> bool:
        dialer = self.dialers.get(dialer_id)
        if dialer is None or not dialer.unlocked:
            return False
        self.active_dialer_id = dialer_id
        return True

    def unlocked_ids(self) -> set[str]:
        return {d.id for d in self.dialers.values() if d.unlocked}

    def can_unlock(self, dialer_id: str) -> bool:
        dialer = self.dialers.get(dialer_id)
        return dialer is not None and dialer.can_unlock(self.unlocked_ids())

    def unlock_dialer(self, dialer_id: str) -> bool:
        """Unlock if every prerequisite is unlocked. Affordability is the caller's concern."""
        if not self.can_unlock(dialer_id):
            return False
        self.dialers[dialer_id].unlocked = True
        return True

    def get_unlocked_dialers(self) -> list[Dialer]:
        return [d for d in self.dialers.values() if d.unlocked]

    def get_all_dialers(self) -> list[Dialer]:
        return sorted(self.dialers.values(), key=lambda d: d.tier)

    def to_json(self) -> dict:
        return {
            "dialers": [d.to_json() for d in self.dialers.values()],
            "activeDialerId": self.active_dialer_id,
        }

    def load_from_json(self, data: dict, dialer_configs: Iterable[DialerConfig]) -> None:
        saved_unlocks = {d["id"]: d.get("unlocked", False) for d in data.get("dialers") or []}

        self.dialers = {}
        for config in dialer_configs:
            dialer = Dialer.from_config(config)
            if config.id in saved_unlocks:
                dialer.unlocked = saved_unlocks[config.id]
            self.add_dialer(dialer)

        self.active_dialer_id = data.get("activeDialerId") or DEFAULT_DIALER_ID
