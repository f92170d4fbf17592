"""
Game Facade

Wires settings, catalogs, storage, the game state and the simulation
engine together and exposes the operations a presentation layer calls.

Real-time play is cooperative: the host calls ``poll()`` from its own
loop and the facade processes every simulated minute that has come due.
"""

import logging
import math
import time
from typing import Any, Callable, Optional

from .config.catalog import Catalog, load_catalog
from .config.settings import Settings, get_settings
from .economy.upgrades import UpgradeManager
from .models.agent import SKILLS
from .models.dialer import Dialer
from .models.game_state import DailyStats, GameState
from .models.lead import LeadSource
from .persistence.save_manager import SaveManager
from .persistence.storage import KeyValueStore, create_store
from .simulation.engine import CALLBACK_NAMES, SimulationEngine

logger = logging.getLogger(__name__)


def _wall_clock_seed() -> int:
    return int(time.time() * 1000) & 0xFFFFFFFF


class CallCenterGame:
    """
    Top-level game object.

    Operations that can be refused (unknown id, not enough cash, missing
    prerequisite, busy agent) return False and leave the state untouched.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        catalog: Optional[Catalog] = None,
        store: Optional[KeyValueStore] = None,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog or load_catalog(self.settings.data_dir)
        self.store = store if store is not None else create_store(self.settings.persistence)
        self._clock = clock

        if seed is None:
            seed = self.settings.simulation.seed
        if seed is None:
            seed = _wall_clock_seed()
            logger.info("No seed configured, using %d", seed)
        self.seed = seed

        self.is_running = False
        self._last_poll: Optional[float] = None
        self._callbacks: dict[str, Optional[Callable[[Any], None]]] = {}

        self.state: GameState
        self.engine: SimulationEngine
        self.upgrade_manager: UpgradeManager
        self.save_manager: SaveManager

    # =========================================================================
    # Setup
    # =========================================================================

    def _wire(self, state: GameState) -> None:
        self.state = state
        self.engine = SimulationEngine(
            state,
            self.catalog,
            seed=self.seed,
            max_iterations=self.settings.simulation.max_fast_forward_minutes,
        )
        for event, callback in self._callbacks.items():
            self.engine.on(event, callback)
        self.upgrade_manager = UpgradeManager(state, self.catalog.upgrades)
        self.save_manager = SaveManager(
            state, self.store, key=self.settings.persistence.key, catalog=self.catalog
        )

    def init(self, load_existing: bool = True) -> "CallCenterGame":
        """Resume the stored save if there is one, else start a new game."""
        self._wire(GameState.from_catalog(self.catalog))

        if load_existing and self.save_manager.has_save() and self.save_manager.load():
            logger.info("Resumed saved game on day %d", self.state.game_time.day)
        else:
            self.setup_new_game()
        return self

    def setup_new_game(self) -> None:
        """Hire the starting agents and buy the starting leads."""
        game = self.catalog.defaults.game
        rng = self.engine.rng

        for _ in range(game.starting_agents):
            self.state.add_agent(rng)
        self.state.lead_pool.generate_leads(game.starting_lead_source, game.starting_leads, rng)
        self.upgrade_manager.recalculate_effects()

        self.engine.emit("on_event", {"type": "game_start", "day": self.state.game_time.day})
        logger.info(
            "New game: %d agents, %d leads, cash %.2f",
            len(self.state.agents),
            len(self.state.lead_pool.leads),
            self.state.cash,
        )

    def on(self, event: str, callback: Optional[Callable[[Any], None]]) -> bool:
        """Subscribe to an engine event; works before init and survives reset_game."""
        if event not in CALLBACK_NAMES:
            logger.warning("Unknown callback: %s", event)
            return False
        self._callbacks[event] = callback
        engine = getattr(self, "engine", None)
        if engine is not None:
            engine.on(event, callback)
        return True

    # =========================================================================
    # Real-time play
    # =========================================================================

    def start(self) -> None:
        if self.is_running:
            return
        self.is_running = True
        self.state.is_paused = False
        self._last_poll = self._clock()

    def pause(self) -> None:
        self.is_running = False
        self.state.is_paused = True
        self._last_poll = None

    def set_speed(self, multiplier: float) -> bool:
        if not multiplier > 0:
            return False
        self.state.speed_multiplier = multiplier
        if self.is_running:
            self._last_poll = self._clock()
        return True

    def minute_interval_seconds(self) -> float:
        """Wall-clock seconds per simulated minute at the current speed."""
        return self.catalog.defaults.game.tick_interval_ms / 1000 / self.state.speed_multiplier

    def poll(self) -> int:
        """
        Process every simulated minute due since the last poll.

        Returns:
            Number of minutes processed.
        """
        if not self.is_running or self._last_poll is None:
            return 0

        interval = self.minute_interval_seconds()
        now = self._clock()
        due = math.floor((now - self._last_poll) / interval)
        if due <= 0:
            return 0

        cap = self.settings.simulation.max_fast_forward_minutes
        processed = min(due, cap)
        for _ in range(processed):
            self.engine.process_minute()
            self.autosave()

        if processed < due:
            logger.warning("Dropped %d overdue minutes", due - processed)
            self._last_poll = now
        else:
            self._last_poll += due * interval
        return processed

    def autosave(self) -> bool:
        if not self.settings.simulation.autosave:
            return False
        return self.save_manager.save()

    # =========================================================================
    # Instant processing
    # =========================================================================

    def simulate_day(self) -> DailyStats:
        self.pause()
        snapshot = self.engine.simulate_day()
        self.autosave()
        return snapshot

    def fast_forward(self, minutes: int) -> list[DailyStats]:
        self.pause()
        snapshots = self.engine.fast_forward(minutes)
        self.autosave()
        return snapshots

    # =========================================================================
    # Player actions
    # =========================================================================

    def purchase_upgrade(self, upgrade_id: str) -> bool:
        return self.upgrade_manager.purchase(upgrade_id, self.engine.rng)

    def unlock_dialer(self, dialer_id: str) -> bool:
        manager = self.state.dialer_manager
        dialer = manager.get_dialer(dialer_id)
        if dialer is None or not manager.can_unlock(dialer_id):
            logger.debug("Dialer %s cannot be unlocked", dialer_id)
            return False

        cost = dialer.config.unlock_cost
        if self.state.cash < cost:
            logger.debug("Not enough cash to unlock dialer %s", dialer_id)
            return False

        self.state.adjust_cash(-cost)
        manager.unlock_dialer(dialer_id)
        logger.info("Unlocked dialer %s for %s", dialer_id, cost)
        return True

    def set_dialer(self, dialer_id: str) -> bool:
        return self.state.dialer_manager.set_active_dialer(dialer_id)

    def unlock_lead_source(self, source_id: str) -> bool:
        pool = self.state.lead_pool
        if not pool.can_unlock_source(source_id):
            logger.debug("Lead source %s cannot be unlocked", source_id)
            return False

        cost = pool.sources[source_id].config.unlock_cost
        if self.state.cash < cost:
            logger.debug("Not enough cash to unlock lead source %s", source_id)
            return False

        self.state.adjust_cash(-cost)
        pool.unlock_source(source_id)
        logger.info("Unlocked lead source %s for %s", source_id, cost)
        return True

    def train_agent(self, agent_id: str, skill: str) -> bool:
        """Send an idle agent to a paid training session for one skill."""
        if skill not in SKILLS:
            return False

        agent = self.state.get_agent(agent_id)
        if agent is None or not agent.is_available():
            return False

        training = self.catalog.defaults.training
        if self.state.cash < training.session_cost:
            return False

        self.state.adjust_cash(-training.session_cost)
        agent.start_training(skill, training.session_duration_minutes * 60)
        return True

    def reset_game(self) -> None:
        self.pause()
        self.save_manager.delete_save()
        self._wire(GameState.from_catalog(self.catalog))
        self.setup_new_game()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_metrics_summary(self) -> dict:
        return self.engine.get_metrics_summary()

    def estimate_period(self, minutes: float) -> dict:
        return self.engine.estimate_period(minutes)

    def get_all_upgrades(self) -> list[dict]:
        return self.upgrade_manager.get_all_upgrades()

    def get_available_upgrades(self) -> list[dict]:
        return self.upgrade_manager.get_available_upgrades()

    def get_dialers(self) -> list[Dialer]:
        return self.state.dialer_manager.get_all_dialers()

    def get_lead_sources(self) -> list[LeadSource]:
        return list(self.state.lead_pool.sources.values())

    def get_events(self) -> list[dict]:
        return [dict(event) for event in self.catalog.events]

    # =========================================================================
    # Save transfer
    # =========================================================================

    def save(self) -> bool:
        return self.save_manager.save()

    def export_save(self) -> Optional[str]:
        return self.save_manager.export_save()

    def import_save(self, encoded: str) -> bool:
        return self.save_manager.import_save(encoded)
