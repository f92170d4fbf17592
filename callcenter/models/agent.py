"""
Agent Model

A call-center agent: six skills, fatigue and morale, a call-handling
state machine driven by ``state_time_remaining``, training XP and
daily / lifetime performance counters.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from pydantic import Field

from ..core import formulas
from ..core.formulas import clamp
from ..core.rng import RandomSource
from .base import CamelModel


class AgentState(str, Enum):
    """Agent states in the call-handling state machine."""
    IDLE = "idle"
    DIALING = "dialing"
    ON_CALL = "on_call"
    WRAP_UP = "wrap_up"
    BREAK = "break"
    TRAINING = "training"
    # Reserved; the engine never enters these
    COACHING = "coaching"
    UNAVAILABLE = "unavailable"


WORKING_STATES = (AgentState.IDLE, AgentState.DIALING, AgentState.ON_CALL, AgentState.WRAP_UP)

SKILLS = (
    "skill_talktrack",
    "speed_wrapup",
    "compliance_discipline",
    "resilience",
    "charisma",
    "consistency",
)

FIRST_NAMES = [
    "Alex", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Quinn", "Avery",
    "Jamie", "Drew", "Cameron", "Skyler", "Reese", "Parker", "Blake", "Hayden",
    "Mike", "Sarah", "Chris", "Jessica", "David", "Emily", "James", "Ashley",
    "Marcus", "Linda", "Kevin", "Michelle", "Brian", "Stephanie", "Tony", "Rachel",
]
LAST_INITIALS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

DEFAULT_BASE_STATS = {
    "skill_talktrack": 0.4,
    "speed_wrapup": 0.4,
    "compliance_discipline": 0.5,
    "resilience": 0.5,
    "charisma": 0.3,
    "consistency": 0.4,
}


def generate_agent_name(rng: RandomSource) -> str:
    """Random display name in the form "First L."."""
    first = FIRST_NAMES[int(rng.random() * len(FIRST_NAMES))]
    initial = LAST_INITIALS[int(rng.random() * len(LAST_INITIALS))]
    return f"{first} {initial}."


# =============================================================================
# Counters
# =============================================================================

class AgentDailyStats(CamelModel):
    dials: int = 0
    contacts: int = 0
    conversions: int = 0
    talk_time_seconds: float = 0
    revenue: float = 0
    complaints: int = 0


class AgentLifetimeStats(CamelModel):
    total_calls: int = 0
    total_conversions: int = 0
    total_talk_time: float = 0
    days_worked: int = 0


class TrainingXP(CamelModel):
    """Unspent XP per skill."""
    skill_talktrack: float = 0
    speed_wrapup: float = 0
    compliance_discipline: float = 0
    resilience: float = 0
    charisma: float = 0
    consistency: float = 0


class CurrentCall(CamelModel):
    """Payload of the activity an agent is busy with."""
    lead_id: Optional[str] = None
    duration: Optional[float] = None
    converted: Optional[bool] = None
    training_skill: Optional[str] = None


class AgentRecord(CamelModel):
    """Typed view of a saved agent; rejects malformed values before they reach an Agent."""
    id: str
    name: str = ""
    skill_talktrack: float = 0.4
    speed_wrapup: float = 0.4
    compliance_discipline: float = 0.5
    resilience: float = 0.5
    charisma: float = 0.3
    consistency: float = 0.4
    fatigue: float = 0.0
    morale: float = 0.7
    state: AgentState = AgentState.IDLE
    state_time_remaining: float = 0.0
    current_call: Optional[CurrentCall] = None
    training_xp: TrainingXP = Field(default_factory=TrainingXP, alias="trainingXP")
    daily_stats: AgentDailyStats = Field(default_factory=AgentDailyStats)
    lifetime_stats: AgentLifetimeStats = Field(default_factory=AgentLifetimeStats)
    hired_at: float = 0.0


# =============================================================================
# Agent
# =============================================================================

@dataclass
class Agent:
    """
    A call-center employee.

    Transitions are made only through the ``start_*`` / ``complete_*``
    methods; the recording methods touch counters and never the state.
    """
    id: str
    name: str = ""

    # Skills (0-1)
    skill_talktrack: float = 0.4
    speed_wrapup: float = 0.4
    compliance_discipline: float = 0.5
    resilience: float = 0.5
    charisma: float = 0.3
    consistency: float = 0.4

    fatigue: float = 0.0
    morale: float = 0.7

    state: AgentState = AgentState.IDLE
    state_time_remaining: float = 0.0
    current_call: Optional[CurrentCall] = None

    training_xp: TrainingXP = field(default_factory=TrainingXP)
    daily_stats: AgentDailyStats = field(default_factory=AgentDailyStats)
    lifetime_stats: AgentLifetimeStats = field(default_factory=AgentLifetimeStats)

    # Absolute simulated minute of hire
    hired_at: float = 0.0

    @classmethod
    def create(
        cls,
        agent_id: str,
        rng: RandomSource,
        base_stats: Optional[Mapping[str, float]] = None,
        stat_variance: float = 0.15,
        hired_at: float = 0.0,
        name: Optional[str] = None,
    ) -> "Agent":
        """Hire an agent with every skill jittered around its base value."""
        stats = dict(DEFAULT_BASE_STATS)
        stats.update(base_stats or {})

        name = name or generate_agent_name(rng)
        generated = {}
        for skill in SKILLS:
            variation = (rng.random() - 0.5) * 2 * stat_variance
            generated[skill] = clamp(stats[skill] + variation, 0.1, 0.9)

        return cls(id=agent_id, name=name, hired_at=hired_at, **generated)

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def is_available(self) -> bool:
        return self.state == AgentState.IDLE

    def is_working(self) -> bool:
        """True unless on break, training or otherwise off the phones."""
        return self.state in WORKING_STATES

    def start_dialing(self, dial_duration_seconds: float) -> None:
        self.state = AgentState.DIALING
        self.state_time_remaining = dial_duration_seconds

    def finish_dialing(self) -> None:
        """Unanswered dial: back to idle."""
        self.state = AgentState.IDLE
        self.state_time_remaining = 0

    def start_call(self, call_duration_seconds: float, call: Optional[CurrentCall] = None) -> None:
        self.state = AgentState.ON_CALL
        self.state_time_remaining = call_duration_seconds
        self.current_call = call if call is not None else CurrentCall()
        self.daily_stats.contacts += 1
        self.lifetime_stats.total_calls += 1

    def start_wrap_up(self, wrap_up_seconds: float) -> None:
        self.state = AgentState.WRAP_UP
        self.state_time_remaining = wrap_up_seconds

        if self.current_call is not None:
            duration = self.current_call.duration or 0
            self.daily_stats.talk_time_seconds += duration
            self.lifetime_stats.total_talk_time += duration
        self.current_call = None

    def complete_wrap_up(self) -> None:
        self.state = AgentState.IDLE
        self.state_time_remaining = 0

    def start_break(self, break_duration_seconds: float) -> None:
        self.state = AgentState.BREAK
        self.state_time_remaining = break_duration_seconds

    def end_break(self) -> None:
        self.state = AgentState.IDLE
        self.state_time_remaining = 0

    def start_training(self, skill: str, training_duration_seconds: float) -> None:
        self.state = AgentState.TRAINING
        self.state_time_remaining = training_duration_seconds
        self.current_call = CurrentCall(training_skill=skill)

    def complete_training(self) -> Optional[str]:
        """Leave training; returns the skill that was being trained."""
        skill = self.current_call.training_skill if self.current_call else None
        self.state = AgentState.IDLE
        self.state_time_remaining = 0
        self.current_call = None
        return skill

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_dial(self) -> None:
        self.daily_stats.dials += 1

    def record_conversion(self, revenue: float) -> None:
        self.daily_stats.conversions += 1
        self.daily_stats.revenue += revenue
        self.lifetime_stats.total_conversions += 1

    def record_complaint(self) -> None:
        self.daily_stats.complaints += 1

    def reset_daily_stats(self) -> None:
        self.daily_stats = AgentDailyStats()
        self.lifetime_stats.days_worked += 1

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def adjust_fatigue(self, delta: float) -> None:
        self.fatigue = clamp(self.fatigue + delta, 0.0, 1.0)

    def adjust_morale(self, delta: float) -> None:
        self.morale = clamp(self.morale + delta, 0.0, 1.0)

    def apply_stat(self, stat: str, bonus: float) -> bool:
        if stat not in SKILLS:
            return False
        setattr(self, stat, clamp(getattr(self, stat) + bonus, 0.0, 1.0))
        return True

    def add_training_xp(self, skill: str, xp: float) -> bool:
        if skill not in SKILLS:
            return False
        setattr(self.training_xp, skill, getattr(self.training_xp, skill) + xp)
        return True

    def level_up_skill(self, skill: str, base_xp_required: float = 100) -> int:
        """
        Spend banked XP on 0.01 skill steps.

        The cost of each step is re-evaluated at the current level, so
        crossing a tenth boundary mid-way makes later steps dearer. Spent
        XP leaves the ledger; the remainder carries over.

        Returns:
            Number of steps gained.
        """
        if skill not in SKILLS:
            return 0

        steps = 0
        xp = getattr(self.training_xp, skill)
        level = getattr(self, skill)
        while level < 1.0:
            required = formulas.calculate_xp_required(level, base_xp_required)
            if xp < required:
                break
            xp -= required
            level = round(formulas.calculate_new_skill_level(level, required, required), 4)
            steps += 1

        setattr(self.training_xp, skill, xp)
        setattr(self, skill, level)
        return steps

    def get_conversion_multiplier(self) -> float:
        return formulas.calculate_agent_conversion_multiplier(
            self.skill_talktrack, self.charisma, self.consistency
        )

    def get_contact_rate(self) -> float:
        if self.daily_stats.dials == 0:
            return 0.0
        return self.daily_stats.contacts / self.daily_stats.dials

    def get_conversion_rate(self) -> float:
        if self.daily_stats.contacts == 0:
            return 0.0
        return self.daily_stats.conversions / self.daily_stats.contacts

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "skillTalktrack": self.skill_talktrack,
            "speedWrapup": self.speed_wrapup,
            "complianceDiscipline": self.compliance_discipline,
            "resilience": self.resilience,
            "charisma": self.charisma,
            "consistency": self.consistency,
            "fatigue": self.fatigue,
            "morale": self.morale,
            "state": self.state.value,
            "stateTimeRemaining": self.state_time_remaining,
            "currentCall": self.current_call.to_json() if self.current_call else None,
            "trainingXP": self.training_xp.to_json(),
            "dailyStats": self.daily_stats.to_json(),
            "lifetimeStats": self.lifetime_stats.to_json(),
            "hiredAt": self.hired_at,
        }

    @classmethod
    def from_json(cls, data: dict) -> "Agent":
        """Raises ``pydantic.ValidationError`` on missing ids or mistyped values."""
        record = AgentRecord.model_validate(data)
        return cls(**dict(record))
