"""
Lead and Lead Source Models

Lead generation, quality decay and lifecycle, plus the pool that owns
every lead and source and decides which lead is dialed next.

Timestamps are absolute simulated minutes, so freshness decays with game
time rather than wall-clock time.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config.catalog import LeadSourceConfig
from ..core.formulas import clamp
from ..core.rng import RandomSource
from .base import CamelModel

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440
DEFAULT_MAX_DIAL_ATTEMPTS = 3

# Redials get a widened attempt budget but a lower selection score
REDIAL_EXTRA_ATTEMPTS = 2
REDIAL_SCORE_FACTOR = 0.6
TOP_CANDIDATE_FRACTION = 0.2


class LeadStatus(str, Enum):
    FRESH = "fresh"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    EXHAUSTED = "exhausted"
    DNC = "dnc"


TERMINAL_STATUSES = (LeadStatus.CONVERTED, LeadStatus.DNC)
STALE_STATUSES = (LeadStatus.EXHAUSTED, LeadStatus.CONVERTED)


def _generate_preferred_hours(rng: RandomSource) -> list[int]:
    # Most leads prefer 10am-2pm or 5pm-7pm
    morning = rng.random() > 0.3
    evening = rng.random() > 0.5

    hours = []
    if morning:
        hours.extend([10, 11, 12, 13, 14])
    if evening:
        hours.extend([17, 18, 19])
    if not hours:
        hours = [10, 11, 14, 15]
    return hours


class LeadRecord(CamelModel):
    """Typed view of a saved lead."""
    id: str
    source_id: str
    base_answer_probability: float = 0.18
    base_conversion_probability: float = 0.07
    intent_multiplier: float = 1.0
    compliance_risk: float = 0.1
    freshness_decay_per_day: float = 0.01
    created_at: float = 0.0
    last_dialed_at: Optional[float] = None
    dial_attempts: int = 0
    max_dial_attempts: int = DEFAULT_MAX_DIAL_ATTEMPTS
    preferred_hours: Optional[list[int]] = None
    status: LeadStatus = LeadStatus.FRESH
    converted_at: Optional[float] = None


@dataclass
class Lead:
    """A single contact to be called."""
    id: str
    source_id: str

    base_answer_probability: float = 0.18
    base_conversion_probability: float = 0.07
    intent_multiplier: float = 1.0
    compliance_risk: float = 0.1
    freshness_decay_per_day: float = 0.01

    created_at: float = 0.0
    last_dialed_at: Optional[float] = None
    dial_attempts: int = 0
    max_dial_attempts: int = DEFAULT_MAX_DIAL_ATTEMPTS

    preferred_hours: list[int] = field(default_factory=lambda: [10, 11, 14, 15])
    status: LeadStatus = LeadStatus.FRESH
    converted_at: Optional[float] = None

    @classmethod
    def create(
        cls,
        lead_id: str,
        source: LeadSourceConfig,
        rng: RandomSource,
        created_at: float = 0.0,
    ) -> "Lead":
        """Generate a lead with +/-5% jitter on the source's base odds."""
        variance = 0.1
        answer = clamp(
            source.base_answer_probability * (1 + (rng.random() - 0.5) * variance), 0.05, 0.95
        )
        conversion = clamp(
            source.base_conversion_probability * (1 + (rng.random() - 0.5) * variance), 0.01, 0.5
        )
        return cls(
            id=lead_id,
            source_id=source.id,
            base_answer_probability=answer,
            base_conversion_probability=conversion,
            intent_multiplier=source.intent_multiplier,
            compliance_risk=source.compliance_risk,
            freshness_decay_per_day=source.freshness_decay_per_day,
            created_at=created_at,
            preferred_hours=_generate_preferred_hours(rng),
        )

    # -------------------------------------------------------------------------
    # Quality
    # -------------------------------------------------------------------------

    def get_freshness(self, now: float) -> float:
        """Freshness in [0.2, 1]; old leads are never worthless."""
        days_since_created = max(0.0, now - self.created_at) / MINUTES_PER_DAY
        return clamp(1 - days_since_created * self.freshness_decay_per_day, 0.2, 1.0)

    def get_time_multiplier(self, hour_of_day: int) -> float:
        if hour_of_day in self.preferred_hours:
            return 1.2
        if hour_of_day < 9 or hour_of_day > 19:
            return 0.5
        return 1.0

    def get_answer_probability(self, hour_of_day: int, now: float) -> float:
        # Each attempt makes the next one less likely to be picked up
        dial_penalty = math.pow(0.8, self.dial_attempts)
        return clamp(
            self.base_answer_probability
            * self.intent_multiplier
            * self.get_freshness(now)
            * self.get_time_multiplier(hour_of_day)
            * dial_penalty,
            0.01,
            0.95,
        )

    def get_conversion_probability(self, now: float) -> float:
        return clamp(
            self.base_conversion_probability * self.intent_multiplier * self.get_freshness(now),
            0.01,
            0.5,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def is_dialable(self) -> bool:
        return self.status == LeadStatus.FRESH and self.dial_attempts < self.max_dial_attempts

    def is_redialable(self) -> bool:
        return (
            self.status == LeadStatus.CONTACTED
            and self.dial_attempts < self.max_dial_attempts + REDIAL_EXTRA_ATTEMPTS
        )

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def record_dial(self, timestamp: float) -> None:
        self.dial_attempts += 1
        self.last_dialed_at = timestamp

        if self.dial_attempts >= self.max_dial_attempts and not self.is_terminal():
            self.status = LeadStatus.EXHAUSTED

    def record_contact(self) -> None:
        if self.status == LeadStatus.FRESH:
            self.status = LeadStatus.CONTACTED

    def record_conversion(self, timestamp: float) -> None:
        if self.is_terminal():
            return
        self.status = LeadStatus.CONVERTED
        self.converted_at = timestamp

    def mark_dnc(self) -> None:
        if self.status != LeadStatus.CONVERTED:
            self.status = LeadStatus.DNC

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "sourceId": self.source_id,
            "baseAnswerProbability": self.base_answer_probability,
            "baseConversionProbability": self.base_conversion_probability,
            "intentMultiplier": self.intent_multiplier,
            "complianceRisk": self.compliance_risk,
            "freshnessDecayPerDay": self.freshness_decay_per_day,
            "createdAt": self.created_at,
            "lastDialedAt": self.last_dialed_at,
            "dialAttempts": self.dial_attempts,
            "maxDialAttempts": self.max_dial_attempts,
            "preferredHours": list(self.preferred_hours),
            "status": self.status.value,
            "convertedAt": self.converted_at,
        }

    @classmethod
    def from_json(cls, data: dict) -> "Lead":
        record = LeadRecord.model_validate(data)
        values = dict(record)
        values["preferred_hours"] = list(record.preferred_hours or [10, 11, 14, 15])
        return cls(**values)


@dataclass
class LeadSource:
    """A catalog lead source plus its unlock flag."""
    config: LeadSourceConfig
    unlocked: bool = False

    @classmethod
    def from_config(cls, config: LeadSourceConfig) -> "LeadSource":
        return cls(config=config, unlocked=config.unlock_cost == 0)

    @property
    def id(self) -> str:
        return self.config.id

    def generate_lead(self, lead_id: str, rng: RandomSource, created_at: float = 0.0) -> Lead:
        return Lead.create(lead_id, self.config, rng, created_at)

    def to_json(self) -> dict:
        return {"id": self.id, "unlocked": self.unlocked}


class LeadPool:
    """
    Owns every lead and lead source.

    ``clock`` is the current absolute simulated minute; the owning game
    state keeps it in step with its own clock.
    """

    def __init__(self):
        self.leads: dict[str, Lead] = {}
        self.sources: dict[str, LeadSource] = {}
        self.next_lead_id = 1
        self.clock: float = 0.0

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    def add_source(self, source: LeadSource) -> None:
        self.sources[source.id] = source

    def get_unlocked_sources(self) -> list[LeadSource]:
        return [s for s in self.sources.values() if s.unlocked]

    def can_unlock_source(self, source_id: str) -> bool:
        source = self.sources.get(source_id)
        if source is None or source.unlocked:
            return False
        return all(
            p in self.sources and self.sources[p].unlocked
            for p in source.config.prerequisites
        )

    def unlock_source(self, source_id: str) -> bool:
        if not self.can_unlock_source(source_id):
            return False
        self.sources[source_id].unlocked = True
        return True

    # -------------------------------------------------------------------------
    # Leads
    # -------------------------------------------------------------------------

    def generate_leads(self, source_id: str, count: int, rng: RandomSource) -> list[Lead]:
        """Create ``count`` fresh leads from an unlocked source; [] otherwise."""
        source = self.sources.get(source_id)
        if source is None or not source.unlocked:
            logger.debug("Cannot generate leads from locked or unknown source %s", source_id)
            return []

        new_leads = []
        for _ in range(count):
            lead = source.generate_lead(f"lead_{self.next_lead_id}", rng, self.clock)
            self.next_lead_id += 1
            self.leads[lead.id] = lead
            new_leads.append(lead)
        return new_leads

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self.leads.get(lead_id)

    def get_dialable_leads(self) -> list[Lead]:
        return [lead for lead in self.leads.values() if lead.is_dialable()]

    def get_redialable_leads(self) -> list[Lead]:
        return [lead for lead in self.leads.values() if lead.is_redialable()]

    def get_candidates(self) -> tuple[list[Lead], bool]:
        """Fresh dialable leads, or redialable ones when none remain."""
        dialable = self.get_dialable_leads()
        if dialable:
            return dialable, False
        return self.get_redialable_leads(), True

    def get_next_lead(self, hour_of_day: int, rng: RandomSource) -> Optional[Lead]:
        """
        Pick the next lead to dial.

        Candidates are scored by answer x conversion odds (redials at a
        40% discount), sorted best first, and one is drawn uniformly from
        the top 20% (at least one).
        """
        candidates, is_redial = self.get_candidates()
        if not candidates:
            return None

        scored = []
        for lead in candidates:
            score = (
                lead.get_answer_probability(hour_of_day, self.clock)
                * lead.get_conversion_probability(self.clock)
            )
            if is_redial:
                score *= REDIAL_SCORE_FACTOR
            scored.append((score, lead))

        # Stable sort keeps insertion order between equal scores
        scored.sort(key=lambda item: item[0], reverse=True)

        top_count = max(1, math.floor(len(scored) * TOP_CANDIDATE_FRACTION))
        index = math.floor(rng.random() * top_count)
        return scored[index][1]

    def cleanup(self, max_age_days: float = 30) -> int:
        """Drop exhausted / converted leads older than the retention window."""
        threshold = self.clock - max_age_days * MINUTES_PER_DAY
        stale = [
            lead_id
            for lead_id, lead in self.leads.items()
            if lead.status in STALE_STATUSES and lead.created_at < threshold
        ]
        for lead_id in stale:
            del self.leads[lead_id]
        return len(stale)

    def get_stats(self) -> dict:
        counts = {status.value: 0 for status in LeadStatus}
        for lead in self.leads.values():
            counts[lead.status.value] += 1

        redialable = len(self.get_redialable_leads())
        return {
            "total": len(self.leads),
            **counts,
            "dialable": counts[LeadStatus.FRESH.value],
            "redialable": redialable,
            "available": counts[LeadStatus.FRESH.value] + redialable,
        }

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self) -> dict:
        return {
            "leads": [lead.to_json() for lead in self.leads.values()],
            "sources": [source.to_json() for source in self.sources.values()],
            "nextLeadId": self.next_lead_id,
        }

    def load_from_json(self, data: dict, source_configs) -> None:
        """Rebuild sources from catalog configs and restore saved leads."""
        saved_unlocks = {s["id"]: s.get("unlocked", False) for s in data.get("sources") or []}

        self.sources = {}
        for config in source_configs:
            source = LeadSource.from_config(config)
            if config.id in saved_unlocks:
                source.unlocked = saved_unlocks[config.id]
            self.add_source(source)

        self.leads = {}
        for lead_data in data.get("leads") or []:
            lead = Lead.from_json(lead_data)
            self.leads[lead.id] = lead

        self.next_lead_id = int(data.get("nextLeadId") or len(self.leads) + 1)
