"""
Catalog Documents

Static game data loaded once at startup and immutable afterwards:
- defaults.json: agent, call, training and bootstrap constants
- dialers.json: dialer technologies
- lead_sources.json: where leads come from
- upgrades.json: purchasable upgrades and their effects
- events.json: scripted events, carried as opaque data

Every document is validated with Pydantic. Anything malformed, missing or
inconsistent raises ConfigurationError at load time; the engine never runs
on a partial catalog.
"""

import json
import logging
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """A catalog document is missing, malformed or inconsistent."""


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Defaults
# =============================================================================

class AgentBaseStats(_Frozen):
    """Mean starting value of each agent skill (0-1)."""
    skill_talktrack: float = Field(default=0.4, ge=0, le=1)
    speed_wrapup: float = Field(default=0.4, ge=0, le=1)
    compliance_discipline: float = Field(default=0.5, ge=0, le=1)
    resilience: float = Field(default=0.5, ge=0, le=1)
    charisma: float = Field(default=0.3, ge=0, le=1)
    consistency: float = Field(default=0.4, ge=0, le=1)


class AgentDefaults(_Frozen):
    base_stats: AgentBaseStats = Field(default_factory=AgentBaseStats)
    stat_variance: float = Field(default=0.15, ge=0, le=1)
    base_aht_seconds: float = Field(default=180, gt=0)
    base_wrap_up_seconds: float = Field(default=45, gt=0)
    base_fatigue_gain_per_call_minute: float = Field(default=0.01, ge=0)
    base_fatigue_recovery_per_minute: float = Field(default=0.02, ge=0)
    daily_wage: float = Field(default=40, ge=0)


class CallDefaults(_Frozen):
    dial_duration_seconds: float = Field(default=10, ge=0)
    base_revenue_per_conversion: float = Field(default=120, ge=0)
    time_of_day_factors: Dict[int, float] = Field(default_factory=dict)
    spam_volume_threshold: float = Field(default=200, gt=0)
    abandonment_reputation_penalty: float = Field(default=0.5, ge=0)
    complaint_reputation_penalty: float = Field(default=2.0, ge=0)


class TrainingDefaults(_Frozen):
    session_cost: float = Field(default=50, ge=0)
    session_duration_minutes: float = Field(default=30, gt=0)
    base_xp_per_session: float = Field(default=100, ge=0)
    base_xp_required: float = Field(default=100, gt=0)
    diminishing_factor: float = Field(default=0.85, gt=0, le=1)


class GameDefaults(_Frozen):
    starting_cash: float = 500
    starting_reputation: float = Field(default=75, ge=0, le=100)
    starting_agents: int = Field(default=1, ge=0)
    starting_leads: int = Field(default=50, ge=0)
    starting_lead_source: str = "standard_leads"
    starting_dialer: str = "manual"
    tick_interval_ms: float = Field(default=1000, gt=0)
    work_start_hour: int = Field(default=9, ge=0, le=23)
    work_end_hour: int = Field(default=17, ge=1, le=24)
    lead_retention_days: float = Field(default=30, ge=0)
    overnight_reputation_recovery_per_hour: float = Field(default=0.05, ge=0)
    overnight_fatigue_recovery: float = Field(default=0.3, ge=0, le=1)

    @model_validator(mode="after")
    def _check_work_hours(self) -> "GameDefaults":
        if self.work_end_hour <= self.work_start_hour:
            raise ValueError("work_end_hour must be after work_start_hour")
        return self


class DefaultsConfig(_Frozen):
    """Global tuning constants."""
    agent: AgentDefaults = Field(default_factory=AgentDefaults)
    call: CallDefaults = Field(default_factory=CallDefaults)
    training: TrainingDefaults = Field(default_factory=TrainingDefaults)
    game: GameDefaults = Field(default_factory=GameDefaults)


# =============================================================================
# Dialers and lead sources
# =============================================================================

class DialerConfig(_Frozen):
    """Throughput / quality / cost profile of one dialing technology."""
    id: str
    name: str
    description: str = ""
    tier: int = 1
    dials_per_minute_per_agent: float = Field(default=6, gt=0)
    connect_rate_multiplier: float = Field(default=1.0, ge=0)
    qa_assist_multiplier: float = Field(default=1.0, ge=0)
    aht_reduction_factor: float = Field(default=0.0, ge=0, le=1)
    agent_occupancy_target: float = Field(default=0.5, ge=0, le=1)
    abandonment_rate: float = Field(default=0.0, ge=0, le=1)
    spam_risk_multiplier: float = Field(default=1.0, ge=0)
    cost_per_agent_per_day: float = Field(default=0.0, ge=0)
    unlock_cost: float = Field(default=0.0, ge=0)
    prerequisites: Tuple[str, ...] = ()


class LeadSourceConfig(_Frozen):
    """Economics and quality profile of one lead vendor."""
    id: str
    name: str
    description: str = ""
    tier: int = 1
    cost_per_lead: float = Field(default=2.5, ge=0)
    intent_multiplier: float = Field(default=1.0, gt=0)
    freshness_decay_per_day: float = Field(default=0.01, ge=0)
    compliance_risk: float = Field(default=0.1, ge=0, le=1)
    supply_per_day: int = Field(default=100, ge=0)
    base_answer_probability: float = Field(default=0.18, ge=0, le=1)
    base_conversion_probability: float = Field(default=0.07, ge=0, le=1)
    unlock_cost: float = Field(default=0.0, ge=0)
    prerequisites: Tuple[str, ...] = ()


# =============================================================================
# Upgrades
# =============================================================================

class PassiveEffectType(str, Enum):
    """Cumulative modifiers; magnitude is value x owned level."""
    ANSWER_RATE_BONUS = "answer_rate_bonus"
    SPAM_REDUCTION = "spam_reduction"
    LEAD_ROUTING_EFFICIENCY = "lead_routing_efficiency"
    TRAINING_EFFICIENCY = "training_efficiency"
    FATIGUE_RECOVERY_BONUS = "fatigue_recovery_bonus"
    FATIGUE_GAIN_REDUCTION = "fatigue_gain_reduction"
    NEW_AGENT_STAT_BONUS = "new_agent_stat_bonus"
    GLOBAL_SKILL_TALKTRACK = "global_skill_talktrack"
    GLOBAL_COMPLIANCE = "global_compliance"
    GLOBAL_SPEED_WRAPUP = "global_speed_wrapup"
    GLOBAL_CONSISTENCY = "global_consistency"
    DAILY_LEADS = "daily_leads"


class AddAgentEffect(_Frozen):
    """One-shot: hire ``value`` agents on purchase."""
    type: Literal["add_agent"]
    value: int = Field(ge=0)


class AddLeadsEffect(_Frozen):
    """One-shot: generate ``value`` leads from ``source`` on purchase."""
    type: Literal["add_leads"]
    value: int = Field(ge=0)
    source: str = "standard_leads"


class PassiveEffect(_Frozen):
    """Persistent modifier recomputed from owned levels."""
    type: PassiveEffectType
    value: float


UpgradeEffect = Union[AddAgentEffect, AddLeadsEffect, PassiveEffect]


class UpgradeConfig(_Frozen):
    id: str
    name: str
    description: str = ""
    category: str = "general"
    base_cost: float = Field(ge=0)
    cost_growth_rate: float = Field(default=1.5, gt=0)
    max_level: int = Field(default=1, ge=1)
    prerequisites: Tuple[str, ...] = ()
    effects: Tuple[UpgradeEffect, ...] = ()


# =============================================================================
# Catalog
# =============================================================================

def _duplicates(ids: List[str]) -> List[str]:
    seen = set()
    return sorted({i for i in ids if i in seen or seen.add(i)})


class Catalog(_Frozen):
    """The complete, cross-checked set of catalog documents."""
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    dialers: Tuple[DialerConfig, ...] = ()
    lead_sources: Tuple[LeadSourceConfig, ...] = ()
    upgrades: Tuple[UpgradeConfig, ...] = ()
    events: Tuple[Dict[str, Any], ...] = ()

    @model_validator(mode="after")
    def _check_references(self) -> "Catalog":
        for kind, items in (
            ("dialer", self.dialers),
            ("lead source", self.lead_sources),
            ("upgrade", self.upgrades),
        ):
            dupes = _duplicates([item.id for item in items])
            if dupes:
                raise ValueError(f"Duplicate {kind} ids: {', '.join(dupes)}")

            known = {item.id for item in items}
            for item in items:
                missing = [p for p in item.prerequisites if p not in known]
                if missing:
                    raise ValueError(
                        f"{kind} {item.id!r} has unknown prerequisites: {', '.join(missing)}"
                    )

        source_ids = {s.id for s in self.lead_sources}
        for upgrade in self.upgrades:
            for effect in upgrade.effects:
                if isinstance(effect, AddLeadsEffect) and effect.source not in source_ids:
                    raise ValueError(
                        f"upgrade {upgrade.id!r} adds leads from unknown source {effect.source!r}"
                    )

        game = self.defaults.game
        if self.lead_sources and game.starting_lead_source not in source_ids:
            raise ValueError(f"Unknown starting lead source {game.starting_lead_source!r}")
        if self.dialers and game.starting_dialer not in {d.id for d in self.dialers}:
            raise ValueError(f"Unknown starting dialer {game.starting_dialer!r}")
        return self

    def get_dialer(self, dialer_id: str) -> Optional[DialerConfig]:
        return next((d for d in self.dialers if d.id == dialer_id), None)

    def get_lead_source(self, source_id: str) -> Optional[LeadSourceConfig]:
        return next((s for s in self.lead_sources if s.id == source_id), None)

    def get_upgrade(self, upgrade_id: str) -> Optional[UpgradeConfig]:
        return next((u for u in self.upgrades if u.id == upgrade_id), None)


_DOCUMENTS = {
    "defaults": ("defaults.json", None),
    "dialers": ("dialers.json", "dialers"),
    "lead_sources": ("lead_sources.json", "lead_sources"),
    "upgrades": ("upgrades.json", "upgrades"),
    "events": ("events.json", "events"),
}


def _read_document(directory: Path, filename: str) -> Any:
    path = directory / filename
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Missing catalog document: {path}") from exc
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigurationError(f"Unreadable catalog document {path}: {exc}") from exc


def default_data_dir() -> Path:
    """Directory of the catalog documents shipped with the package."""
    return Path(str(resources.files("callcenter") / "data"))


def load_catalog(directory: Optional[Union[str, Path]] = None) -> Catalog:
    """
    Load and validate all catalog documents from ``directory``.

    Raises:
        ConfigurationError: if any document is missing, malformed or
            references an unknown id.
    """
    directory = Path(directory) if directory is not None else default_data_dir()

    payload: Dict[str, Any] = {}
    for field_name, (filename, key) in _DOCUMENTS.items():
        document = _read_document(directory, filename)
        if key is not None:
            if not isinstance(document, dict) or key not in document:
                raise ConfigurationError(f"{filename} must be an object with a {key!r} array")
            document = document[key]
        payload[field_name] = document

    try:
        catalog = Catalog.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid catalog in {directory}:\n{exc}") from exc

    logger.info(
        "Loaded catalog from %s: %d dialers, %d lead sources, %d upgrades, %d events",
        directory,
        len(catalog.dialers),
        len(catalog.lead_sources),
        len(catalog.upgrades),
        len(catalog.events),
    )
    return catalog
