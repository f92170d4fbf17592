"""
Simulation Engine

Tick-based processor for the call floor. One tick is 10 simulated seconds
and six ticks make a simulated minute. Each tick:

1. Advances every agent's state timer and fires exit transitions
2. Pairs idle agents with leads and runs dials
3. Applies fatigue gain and recovery

Real-time play and fast-forward both go through ``process_minute``; the
only difference is who calls it.
"""

import logging
import math
from typing import Any, Callable, Optional

from ..config.catalog import Catalog
from ..core import formulas
from ..core.formulas import clamp, round_half_up
from ..core.rng import SeededRNG
from ..models.agent import Agent, AgentState, CurrentCall
from ..models.dialer import Dialer
from ..models.game_state import DailyStats, GameState
from ..models.lead import Lead

logger = logging.getLogger(__name__)

TICK_SECONDS = 10
TICKS_PER_MINUTE = 6

# Multipliers on the per-minute recovery rate
BREAK_RECOVERY_FACTOR = 3.0
IDLE_RECOVERY_FACTOR = 0.5

DEFAULT_MAX_ITERATIONS = 10080

CALLBACK_NAMES = (
    "on_tick",
    "on_minute",
    "on_hour",
    "on_day_end",
    "on_conversion",
    "on_event",
)


class SimulationEngine:
    """
    Drives a GameState through simulated time.

    Callbacks are optional single-subscriber hooks registered with ``on``
    and fired synchronously. The engine must not be re-entered from inside
    a callback.
    """

    def __init__(
        self,
        state: GameState,
        catalog: Catalog,
        seed: int = 0,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        self.state = state
        self.catalog = catalog
        self.defaults = catalog.defaults
        self.rng = SeededRNG(seed)
        self.max_iterations = max_iterations
        self.callbacks: dict[str, Optional[Callable[[Any], None]]] = {
            name: None for name in CALLBACK_NAMES
        }
        self._running = False

    def on(self, event: str, callback: Optional[Callable[[Any], None]]) -> bool:
        """Register (or clear with None) the subscriber for an event."""
        if event not in self.callbacks:
            return False
        self.callbacks[event] = callback
        return True

    def emit(self, event: str, payload: Any) -> None:
        callback = self.callbacks.get(event)
        if callback is not None:
            callback(payload)

    # =========================================================================
    # Tick loop
    # =========================================================================

    def tick(self) -> bool:
        """Run one 10-second tick. Returns False if it was a no-op."""
        if self._running:
            logger.warning("Ignoring re-entrant tick")
            return False
        self._running = True
        try:
            return self._tick()
        finally:
            self._running = False

    def _tick(self) -> bool:
        if self.state.is_paused or not self.state.is_work_hours():
            return False

        dialer = self.state.dialer_manager.get_active_dialer()
        if dialer is None:
            return False

        self.process_agent_states()
        self.process_dialing(dialer)
        self.process_fatigue()

        self.emit("on_tick", self.state)
        return True

    def process_minute(self) -> Optional[DailyStats]:
        """
        Run six ticks, then advance the clock by one minute.

        The clock stays frozen while the game is paused.

        Returns:
            The closed day's stats if the clock rolled past midnight.
        """
        if self.state.is_paused:
            return None
        if self._running:
            logger.warning("Ignoring re-entrant process_minute")
            return None
        self._running = True
        try:
            for _ in range(TICKS_PER_MINUTE):
                self._tick()
            snapshot = self.state.advance_time(1)
        finally:
            self._running = False

        if snapshot is not None:
            self._after_day_close(snapshot)

        self.emit("on_minute", self.state)
        if self.state.game_time.minute == 0:
            self.emit("on_hour", self.state)
        return snapshot

    # =========================================================================
    # Agent states
    # =========================================================================

    def _effective(self, agent: Agent, skill: str) -> float:
        """Skill value including the matching global upgrade bonus."""
        effects = self.state.upgrade_effects
        bonus = {
            "skill_talktrack": effects.global_skill_talktrack,
            "speed_wrapup": effects.global_speed_wrapup,
            "compliance_discipline": effects.global_compliance,
            "consistency": effects.global_consistency,
        }.get(skill, 0.0)
        return clamp(getattr(agent, skill) + bonus, 0.0, 1.0)

    def _dialer_aht_reduction(self) -> float:
        dialer = self.state.dialer_manager.get_active_dialer()
        return dialer.config.aht_reduction_factor if dialer else 0.0

    def process_agent_states(self) -> None:
        for agent in self.state.agents:
            if agent.state_time_remaining > 0:
                agent.state_time_remaining -= TICK_SECONDS
                if agent.state_time_remaining <= 0:
                    agent.state_time_remaining = 0
                    self.transition_agent_state(agent)

    def transition_agent_state(self, agent: Agent) -> None:
        """Exit action for an agent whose state timer ran out."""
        if agent.state == AgentState.DIALING:
            agent.finish_dialing()
        elif agent.state == AgentState.ON_CALL:
            wrap_time = formulas.calculate_wrap_up_time(
                base_wrap_up=self.defaults.agent.base_wrap_up_seconds,
                agent_speed_wrapup=self._effective(agent, "speed_wrapup"),
                dialer_aht_reduction=self._dialer_aht_reduction(),
            )
            agent.start_wrap_up(wrap_time)
        elif agent.state == AgentState.WRAP_UP:
            agent.complete_wrap_up()
        elif agent.state == AgentState.BREAK:
            agent.end_break()
        elif agent.state == AgentState.TRAINING:
            self.complete_training(agent)

    def complete_training(self, agent: Agent) -> None:
        """Award session XP for the trained skill and spend it on levels."""
        skill = agent.complete_training()
        if skill is None:
            return

        training = self.defaults.training
        xp = formulas.calculate_training_xp(
            training.base_xp_per_session,
            getattr(agent, skill, 0.0),
            self.state.upgrade_effects.training_efficiency,
            training.diminishing_factor,
        )
        if agent.add_training_xp(skill, xp):
            steps = agent.level_up_skill(skill, training.base_xp_required)
            logger.debug(
                "%s finished %s training: +%d xp, +%d steps", agent.name, skill, xp, steps
            )

    # =========================================================================
    # Dialing
    # =========================================================================

    def process_dialing(self, dialer: Dialer) -> None:
        available_agents = self.state.get_available_agents()
        candidates, _ = self.state.lead_pool.get_candidates()

        if not available_agents or not candidates:
            return

        dials_this_tick = math.ceil(
            dialer.config.dials_per_minute_per_agent * len(available_agents) / TICKS_PER_MINUTE
        )
        dial_count = min(dials_this_tick, len(available_agents), len(candidates))

        for agent in available_agents[:dial_count]:
            lead = self.state.lead_pool.get_next_lead(self.state.game_time.hour, self.rng)
            if lead is None:
                break
            self.process_dial(agent, lead, dialer)

    def process_dial(self, agent: Agent, lead: Lead, dialer: Dialer) -> None:
        now = self.state.now()
        hour = self.state.game_time.hour
        call = self.defaults.call
        effects = self.state.upgrade_effects

        agent.start_dialing(call.dial_duration_seconds)
        agent.record_dial()
        lead.record_dial(now)
        self.state.record_dial()

        spam_probability = formulas.calculate_spam_tag_probability(
            reputation=self.state.reputation,
            dial_volume=self.state.daily_stats.dials,
            volume_threshold=call.spam_volume_threshold,
            dialer_spam_multiplier=dialer.config.spam_risk_multiplier,
            spam_reduction=effects.spam_reduction,
        )
        answer_probability = formulas.calculate_answer_probability(
            base_answer_prob=lead.get_answer_probability(hour, now),
            lead_intent=lead.intent_multiplier,
            hour_of_day=hour,
            reputation=self.state.reputation,
            dialer_connect_multiplier=dialer.config.connect_rate_multiplier,
            local_presence_bonus=effects.answer_rate_bonus,
            spam_tag_probability=spam_probability,
            time_factors=call.time_of_day_factors,
        )

        if self.rng.chance(answer_probability):
            self.process_answer(agent, lead, dialer)
        elif dialer.should_abandon(self.rng):
            self.state.record_abandonment()
            self.state.adjust_reputation(-call.abandonment_reputation_penalty)

    def process_answer(self, agent: Agent, lead: Lead, dialer: Dialer) -> None:
        now = self.state.now()
        effects = self.state.upgrade_effects

        lead.record_contact()
        self.state.record_contact()

        agent_multiplier = formulas.calculate_agent_conversion_multiplier(
            self._effective(agent, "skill_talktrack"),
            agent.charisma,
            self._effective(agent, "consistency"),
        )
        conversion_probability = formulas.calculate_conversion_probability(
            base_conversion_prob=lead.get_conversion_probability(now),
            agent_multiplier=agent_multiplier,
            fatigue=agent.fatigue,
            dialer_qa_multiplier=dialer.config.qa_assist_multiplier,
            lead_routing_bonus=effects.lead_routing_efficiency,
            morale=agent.morale,
        )
        aht = formulas.calculate_aht(
            base_aht=self.defaults.agent.base_aht_seconds,
            agent_speed_wrapup=self._effective(agent, "speed_wrapup"),
            dialer_aht_reduction=dialer.config.aht_reduction_factor,
            consistency_variance=1 - self._effective(agent, "consistency"),
            random_fn=self.rng.random,
        )

        call = CurrentCall(lead_id=lead.id, duration=aht)
        agent.start_call(aht, call)

        if self.rng.chance(conversion_probability):
            revenue = formulas.calculate_conversion_revenue(
                base_revenue=self.defaults.call.base_revenue_per_conversion,
                lead_quality_multiplier=lead.intent_multiplier,
            )
            call.converted = True
            lead.record_conversion(now)
            agent.record_conversion(revenue)
            self.state.record_conversion(revenue)
            self.emit("on_conversion", {"agent": agent, "lead": lead, "revenue": revenue})

        complaint_probability = lead.compliance_risk * (
            1 - self._effective(agent, "compliance_discipline")
        )
        if self.rng.chance(complaint_probability):
            agent.record_complaint()
            self.state.record_complaint()
            self.state.adjust_reputation(-self.defaults.call.complaint_reputation_penalty)

    # =========================================================================
    # Fatigue
    # =========================================================================

    def process_fatigue(self) -> None:
        agent_defaults = self.defaults.agent
        effects = self.state.upgrade_effects

        recovery = formulas.calculate_fatigue_recovery(
            agent_defaults.base_fatigue_recovery_per_minute / TICKS_PER_MINUTE,
            effects.fatigue_recovery_bonus,
        )
        for agent in self.state.agents:
            if agent.state == AgentState.ON_CALL:
                gain = formulas.calculate_fatigue_gain(
                    agent.resilience,
                    agent_defaults.base_fatigue_gain_per_call_minute / TICKS_PER_MINUTE,
                    effects.fatigue_gain_reduction,
                )
                agent.adjust_fatigue(gain)
            elif agent.state == AgentState.BREAK:
                agent.adjust_fatigue(-recovery * BREAK_RECOVERY_FACTOR)
            elif agent.state == AgentState.IDLE:
                agent.adjust_fatigue(-recovery * IDLE_RECOVERY_FACTOR)

    # =========================================================================
    # Day close
    # =========================================================================

    def _after_day_close(self, snapshot: DailyStats) -> None:
        """Overnight bookkeeping once GameState.end_day has run."""
        game = self.defaults.game

        daily_leads = int(self.state.upgrade_effects.daily_leads)
        if daily_leads > 0:
            delivered = self.state.lead_pool.generate_leads(
                game.starting_lead_source, daily_leads, self.rng
            )
            logger.info("Marketing delivered %d leads", len(delivered))

        idle_hours = 24 - (game.work_end_hour - game.work_start_hour)
        self.state.adjust_reputation(
            formulas.calculate_reputation_change(
                idle_hours=idle_hours,
                recovery_rate=game.overnight_reputation_recovery_per_hour,
            )
        )

        removed = self.state.lead_pool.cleanup(game.lead_retention_days)
        if removed:
            logger.debug("Cleaned up %d stale leads", removed)

        closed_day = self.state.game_time.day - 1
        self.emit("on_event", {"type": "day_end", "day": closed_day, "stats": snapshot})
        self.emit("on_day_end", snapshot)

    def _close_day(self) -> DailyStats:
        snapshot = self.state.end_day()
        self._after_day_close(snapshot)
        return snapshot

    def simulate_day(self) -> DailyStats:
        """
        Run the rest of the current business day instantly, then close it.

        Runs even while real-time play is paused.
        """
        was_paused = self.state.is_paused
        self.state.is_paused = False
        try:
            iterations = 0
            while self.state.is_work_hours():
                if iterations >= self.max_iterations:
                    logger.warning("simulate_day stopped after %d minutes", iterations)
                    break
                self.process_minute()
                iterations += 1
        finally:
            self.state.is_paused = was_paused

        return self._close_day()

    def fast_forward(self, minutes: int) -> list[DailyStats]:
        """
        Process ``minutes`` simulated minutes back to back.

        Closes the day whenever the clock reaches closing time. The
        iteration count is capped at ``max_iterations``.

        Returns:
            Snapshots of every day closed along the way.
        """
        if minutes > self.max_iterations:
            logger.warning(
                "fast_forward capped at %d of %d requested minutes", self.max_iterations, minutes
            )
            minutes = self.max_iterations

        results = []
        was_paused = self.state.is_paused
        self.state.is_paused = False
        try:
            for _ in range(max(0, minutes)):
                snapshot = self.process_minute()
                if snapshot is not None:
                    results.append(snapshot)
                elif self.state.game_time.hour >= self.defaults.game.work_end_hour:
                    results.append(self._close_day())
        finally:
            self.state.is_paused = was_paused
        return results

    # =========================================================================
    # Reporting
    # =========================================================================

    def estimate_period(self, minutes: float) -> dict:
        """Expected-value outcome of ``minutes`` of dialing at current settings."""
        dialer = self.state.dialer_manager.get_active_dialer()
        agents = self.state.agents
        candidates, _ = self.state.lead_pool.get_candidates()

        if dialer is None or not agents or not candidates:
            return formulas.estimate_period_metrics(
                agents=0,
                dials_per_minute_per_agent=0,
                answer_prob=0,
                conversion_prob=0,
                revenue_per_conversion=0,
                minutes=minutes,
            )

        now = self.state.now()
        hour = self.state.game_time.hour
        effects = self.state.upgrade_effects
        count = len(candidates)

        avg_answer = sum(l.get_answer_probability(hour, now) for l in candidates) / count
        avg_conversion = sum(l.get_conversion_probability(now) for l in candidates) / count
        avg_intent = sum(l.intent_multiplier for l in candidates) / count
        avg_fatigue = sum(a.fatigue for a in agents) / len(agents)
        avg_morale = sum(a.morale for a in agents) / len(agents)
        avg_multiplier = sum(
            formulas.calculate_agent_conversion_multiplier(
                self._effective(a, "skill_talktrack"),
                a.charisma,
                self._effective(a, "consistency"),
            )
            for a in agents
        ) / len(agents)

        answer_prob = formulas.calculate_answer_probability(
            base_answer_prob=avg_answer,
            hour_of_day=hour,
            reputation=self.state.reputation,
            dialer_connect_multiplier=dialer.config.connect_rate_multiplier,
            local_presence_bonus=effects.answer_rate_bonus,
            time_factors=self.defaults.call.time_of_day_factors,
        )
        conversion_prob = formulas.calculate_conversion_probability(
            base_conversion_prob=avg_conversion,
            agent_multiplier=avg_multiplier,
            fatigue=avg_fatigue,
            dialer_qa_multiplier=dialer.config.qa_assist_multiplier,
            lead_routing_bonus=effects.lead_routing_efficiency,
            morale=avg_morale,
        )
        revenue = formulas.calculate_conversion_revenue(
            base_revenue=self.defaults.call.base_revenue_per_conversion,
            lead_quality_multiplier=avg_intent,
        )

        return formulas.estimate_period_metrics(
            agents=len(agents),
            dials_per_minute_per_agent=dialer.config.dials_per_minute_per_agent,
            answer_prob=answer_prob,
            conversion_prob=conversion_prob,
            revenue_per_conversion=revenue,
            minutes=minutes,
            occupancy_target=dialer.config.agent_occupancy_target,
        )

    def get_metrics_summary(self) -> dict:
        ds = self.state.daily_stats
        contact_rate = ds.contacts / ds.dials if ds.dials > 0 else 0.0
        conversion_rate = ds.conversions / ds.contacts if ds.contacts > 0 else 0.0

        return {
            "day": self.state.game_time.day,
            "hour": self.state.game_time.hour,
            "cash": self.state.cash,
            "agents": len(self.state.agents),
            "leads": self.state.lead_pool.get_stats()["dialable"],
            "dials": ds.dials,
            "contacts": ds.contacts,
            "conversions": ds.conversions,
            "revenue": ds.revenue,
            "costs": ds.costs,
            "profit": ds.revenue - ds.costs,
            "contact_rate": f"{contact_rate * 100:.1f}%",
            "conversion_rate": f"{conversion_rate * 100:.1f}%",
            "reputation": str(round_half_up(self.state.reputation)),
        }
