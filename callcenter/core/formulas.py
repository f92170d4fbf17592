"""
Formula Library

All simulation math lives here. Every function is pure: named parameters
with explicit defaults in, a number (or a small dict of numbers) out.
Probabilities are clamped at this boundary so that no caller can observe an
out-of-range or NaN value, whatever multipliers it passes in.
"""

import math
from typing import Callable, Mapping, Optional


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp value into [minimum, maximum]; NaN maps to minimum."""
    if math.isnan(value):
        return minimum
    return min(max(value, minimum), maximum)


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation with t clamped to [0, 1]."""
    return a + (b - a) * clamp(t, 0.0, 1.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


# =============================================================================
# Answer probability
# =============================================================================

def calculate_answer_probability(
    *,
    base_answer_prob: float = 0.18,
    lead_intent: float = 1.0,
    hour_of_day: int = 12,
    reputation: float = 75.0,
    dialer_connect_multiplier: float = 1.0,
    local_presence_bonus: float = 0.0,
    spam_tag_probability: float = 0.0,
    time_factors: Optional[Mapping[int, float]] = None,
) -> float:
    """
    Probability that a dial is answered.

    answered = base * intent * time_factor * reputation_factor
               * connect_multiplier * (1 - 0.6 * spam) * (1 + local_presence)

    reputation_factor runs from 0.5 at reputation 0 to 1.2 at 100.
    Capped at 95%: nothing is guaranteed.
    """
    time_window_factor = (time_factors or {}).get(hour_of_day) or 1.0
    reputation_factor = 0.5 + (reputation / 100) * 0.7
    spam_penalty = 1 - (spam_tag_probability * 0.6)
    local_bonus = 1 + local_presence_bonus

    probability = (
        base_answer_prob
        * lead_intent
        * time_window_factor
        * reputation_factor
        * dialer_connect_multiplier
        * spam_penalty
        * local_bonus
    )
    return clamp(probability, 0.0, 0.95)


# =============================================================================
# Conversion probability
# =============================================================================

def calculate_agent_conversion_multiplier(
    talktrack: float,
    charisma: float,
    consistency: float,
) -> float:
    """Agent multiplier on conversion odds, roughly 0.7 - 1.5."""
    talktrack_effect = 0.7 + (talktrack * 0.6)
    charisma_effect = 1 + (charisma * 0.15)
    consistency_effect = 1 + (consistency * 0.05)
    return talktrack_effect * charisma_effect * consistency_effect


def calculate_conversion_probability(
    *,
    base_conversion_prob: float = 0.07,
    agent_multiplier: float = 1.0,
    fatigue: float = 0.0,
    dialer_qa_multiplier: float = 1.0,
    lead_routing_bonus: float = 0.0,
    morale: float = 0.5,
) -> float:
    """
    Probability that an answered call converts.

    converted = base * agent_multiplier * (1 - fatigue_penalty)
                * qa_multiplier * (0.8 + 0.4 * morale) * (1 + routing_bonus)

    Capped at 80%: even the best agent can't close everyone.
    """
    fatigue_penalty = calculate_fatigue_penalty(fatigue)
    morale_factor = 0.8 + (morale * 0.4)
    routing_factor = 1 + lead_routing_bonus

    probability = (
        base_conversion_prob
        * agent_multiplier
        * (1 - fatigue_penalty)
        * dialer_qa_multiplier
        * morale_factor
        * routing_factor
    )
    return clamp(probability, 0.0, 0.80)


# =============================================================================
# Fatigue
# =============================================================================

def calculate_fatigue_penalty(
    fatigue: float,
    exponent: float = 2.5,
    max_penalty: float = 0.5,
) -> float:
    """
    Performance penalty from fatigue.

    Exponential curve: negligible at low fatigue, severe near 1.0.
    """
    return math.pow(clamp(fatigue, 0.0, 1.0), exponent) * max_penalty


def calculate_fatigue_gain(
    resilience: float,
    base_fatigue_gain: float = 0.01,
    fatigue_gain_reduction: float = 0.0,
) -> float:
    """Fatigue gained per call-minute; resilience cuts it by up to 60%."""
    resilience_reduction = resilience * 0.6
    return base_fatigue_gain * (1 - resilience_reduction) * (1 - fatigue_gain_reduction)


def calculate_fatigue_recovery(
    base_fatigue_recovery: float = 0.02,
    recovery_bonus: float = 0.0,
) -> float:
    """Fatigue recovered per minute of break or idle time."""
    return base_fatigue_recovery * (1 + recovery_bonus)


# =============================================================================
# Call durations
# =============================================================================

def calculate_aht(
    *,
    base_aht: float = 180,
    agent_speed_wrapup: float = 0.4,
    dialer_aht_reduction: float = 0.0,
    consistency_variance: float = 0.3,
    random_fn: Callable[[], float],
) -> int:
    """
    Handle time of an answered call, in seconds.

    Speed-wrapup trims up to 30%, combined reduction capped at 50%.
    Jitter is symmetric: +/- consistency_variance of the reduced base.
    Never shorter than 30 seconds.
    """
    speed_reduction = agent_speed_wrapup * 0.3
    total_reduction = min(speed_reduction + dialer_aht_reduction, 0.5)
    base_time = base_aht * (1 - total_reduction)

    variance = (random_fn() - 0.5) * 2 * consistency_variance * base_time
    return max(30, round_half_up(base_time + variance))


def calculate_wrap_up_time(
    *,
    base_wrap_up: float = 45,
    agent_speed_wrapup: float = 0.4,
    dialer_aht_reduction: float = 0.0,
) -> int:
    """Post-call wrap-up in seconds; reduction capped at 60%, floor of 10."""
    speed_reduction = agent_speed_wrapup * 0.4
    total_reduction = min(speed_reduction + dialer_aht_reduction, 0.6)
    return max(10, round_half_up(base_wrap_up * (1 - total_reduction)))


# =============================================================================
# Reputation
# =============================================================================

def calculate_spam_tag_probability(
    *,
    reputation: float = 75.0,
    dial_volume: float = 0,
    volume_threshold: float = 200,
    dialer_spam_multiplier: float = 1.0,
    spam_reduction: float = 0.0,
) -> float:
    """
    Probability that outbound calls get carrier spam-tagged.

    Inversely related to reputation (0 - 0.5 base range). Volume only
    counts once it exceeds 1.5x the threshold.
    """
    base_spam = max(0.0, (100 - reputation) / 200)

    volume_ratio = dial_volume / max(volume_threshold, 1)
    volume_factor = 1 + (volume_ratio - 1.5) * 0.5 if volume_ratio > 1.5 else 1.0

    probability = base_spam * dialer_spam_multiplier * volume_factor * (1 - spam_reduction)
    return clamp(probability, 0.0, 0.8)


def calculate_reputation_change(
    *,
    complaints: int = 0,
    abandonments: int = 0,
    conversions: int = 0,
    compliance_discipline: float = 0.5,
    idle_hours: float = 0.0,
    recovery_rate: float = 0.5,
) -> float:
    """
    Net reputation delta over a period.

    Complaints cost 2 each and abandonments 0.5, both softened by
    compliance discipline; conversions and idle time win some back.
    """
    complaint_impact = complaints * -2
    abandon_impact = abandonments * -0.5
    conversion_boost = conversions * 0.1
    discipline_factor = 0.5 + compliance_discipline
    recovery = idle_hours * recovery_rate

    return (complaint_impact + abandon_impact) / discipline_factor + conversion_boost + recovery


# =============================================================================
# Economy
# =============================================================================

def calculate_upgrade_cost(base_cost: float, level: int, growth_rate: float = 1.5) -> int:
    """Cost of buying the next level when currently at ``level``."""
    return round_half_up(base_cost * math.pow(growth_rate, level))


def calculate_daily_wage(hourly_wage: float, hours_per_day: float = 8) -> float:
    return hourly_wage * hours_per_day


def calculate_conversion_revenue(
    *,
    base_revenue: float = 120,
    lead_quality_multiplier: float = 1.0,
    upgrade_bonuses: float = 0.0,
) -> int:
    return round_half_up(base_revenue * lead_quality_multiplier * (1 + upgrade_bonuses))


# =============================================================================
# Training
# =============================================================================

def calculate_xp_required(current_level: float, base_xp: float = 100) -> int:
    """XP needed for the next 0.01 skill step; grows 30% per tenth of skill."""
    level_step = math.floor(current_level * 10)
    return round_half_up(base_xp * math.pow(1.3, level_step))


def calculate_training_xp(
    base_xp: float,
    current_level: float,
    training_efficiency: float = 0.0,
    diminishing_factor: float = 0.85,
) -> int:
    """XP earned by one training session; higher skill earns less."""
    diminishing_multiplier = math.pow(diminishing_factor, math.floor(current_level * 10))
    efficiency_multiplier = 1 + training_efficiency
    return round_half_up(base_xp * diminishing_multiplier * efficiency_multiplier)


def calculate_new_skill_level(current_level: float, xp_gained: float, xp_required: float) -> float:
    """Skill after spending XP in steps of 0.01, capped at 1.0."""
    step_size = 0.01
    steps = math.floor(xp_gained / xp_required)
    return clamp(current_level + (steps * step_size), 0.0, 1.0)


# =============================================================================
# Aggregate estimates
# =============================================================================

def estimate_period_metrics(
    *,
    agents: int,
    dials_per_minute_per_agent: float,
    answer_prob: float,
    conversion_prob: float,
    revenue_per_conversion: float,
    minutes: float,
    occupancy_target: float = 0.5,
) -> dict:
    """
    Expected-value metrics for a period, without running ticks.

    Only ``occupancy_target`` of each agent's minutes are spent dialing;
    the rest goes to calls, wrap-up and breaks.
    """
    effective_dialing_minutes = minutes * occupancy_target

    total_dials = round_half_up(agents * dials_per_minute_per_agent * effective_dialing_minutes)
    expected_contacts = round_half_up(total_dials * answer_prob)
    expected_conversions = round_half_up(expected_contacts * conversion_prob)
    expected_revenue = expected_conversions * revenue_per_conversion

    return {
        "dials": total_dials,
        "contacts": expected_contacts,
        "conversions": expected_conversions,
        "revenue": expected_revenue,
        "contact_rate": expected_contacts / total_dials if total_dials > 0 else 0.0,
        "conversion_rate": expected_conversions / expected_contacts if expected_contacts > 0 else 0.0,
    }
