"""
Cached aggregate of passive upgrade effects.
"""

from dataclasses import asdict, dataclass


@dataclass
class UpgradeEffects:
    """Sum of value x level per passive effect type over all owned upgrades."""
    answer_rate_bonus: float = 0.0
    spam_reduction: float = 0.0
    lead_routing_efficiency: float = 0.0
    training_efficiency: float = 0.0
    fatigue_recovery_bonus: float = 0.0
    fatigue_gain_reduction: float = 0.0
    new_agent_stat_bonus: float = 0.0
    global_skill_talktrack: float = 0.0
    global_compliance: float = 0.0
    global_speed_wrapup: float = 0.0
    global_consistency: float = 0.0
    daily_leads: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)
