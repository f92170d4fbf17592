"""Tests for upgrade pricing, gating, purchase and the passive-effect cache."""

import math

import pytest

from callcenter.config.catalog import UpgradeConfig
from callcenter.economy.upgrades import UNAFFORDABLE, UpgradeManager


@pytest.fixture
def manager(state, catalog):
    return UpgradeManager(state, catalog.upgrades)


class TestPricing:
    def test_cost_curve(self, manager, state, fixed_random):
        assert manager.get_upgrade_cost("hire") == 100
        manager.purchase("hire", fixed_random)
        assert manager.get_upgrade_cost("hire") == 150
        manager.purchase("hire", fixed_random)
        assert manager.get_upgrade_cost("hire") == 225

    def test_maxed_is_unaffordable(self, manager, state):
        state.set_upgrade_level("hire", 3)
        assert manager.get_upgrade_cost("hire") == UNAFFORDABLE
        assert math.isinf(manager.get_upgrade_cost("hire"))
        assert not manager.can_purchase("hire")

    def test_unknown_upgrade(self, manager, fixed_random):
        assert manager.get_upgrade_cost("teleporter") == UNAFFORDABLE
        assert not manager.can_purchase("teleporter")
        assert not manager.purchase("teleporter", fixed_random)

    def test_can_afford(self, manager, state):
        state.cash = 99
        assert not manager.can_afford("hire")
        state.cash = 100
        assert manager.can_afford("hire")


class TestPurchase:
    def test_insufficient_cash_changes_nothing(self, manager, state, fixed_random):
        state.cash = 10
        assert not manager.purchase("presence", fixed_random)
        assert state.cash == 10
        assert manager.get_current_level("presence") == 0

    def test_prerequisite_required(self, manager, fixed_random):
        assert not manager.can_purchase("routing")
        assert manager.purchase("presence", fixed_random)
        assert manager.can_purchase("routing")

    def test_purchase_deducts_and_levels(self, manager, state, fixed_random):
        assert manager.purchase("presence", fixed_random)
        assert state.cash == 400
        assert state.daily_stats.costs == 100
        assert manager.get_current_level("presence") == 1

    def test_add_agent_effect(self, manager, state, fixed_random):
        manager.purchase("hire", fixed_random)
        assert len(state.agents) == 2
        assert state.agents[-1].id == "agent_2"

    def test_add_leads_effect(self, manager, state, fixed_random):
        before = len(state.lead_pool.leads)
        manager.purchase("leads", fixed_random)
        assert len(state.lead_pool.leads) == before + 10

    def test_new_agent_stat_bonus(self, manager, state, fixed_random):
        manager.purchase("recruiting", fixed_random)
        assert state.upgrade_effects.new_agent_stat_bonus == pytest.approx(0.1)

        manager.purchase("hire", fixed_random)
        hired = state.agents[-1]
        assert hired.charisma == pytest.approx(0.4)
        assert hired.skill_talktrack == pytest.approx(0.5)

    def test_level_cap_holds(self, manager, state, fixed_random):
        state.cash = 10_000
        for _ in range(5):
            manager.purchase("hire", fixed_random)
        assert manager.get_current_level("hire") == 3
        assert len(state.agents) == 4


class TestEffects:
    def test_passive_scales_with_level(self, manager, state, fixed_random):
        manager.purchase("presence", fixed_random)
        manager.purchase("presence", fixed_random)
        assert state.upgrade_effects.answer_rate_bonus == pytest.approx(0.1)

    def test_multiple_effects_per_upgrade(self, manager, fixed_random, state):
        manager.purchase("presence", fixed_random)
        manager.purchase("routing", fixed_random)
        assert state.upgrade_effects.lead_routing_efficiency == pytest.approx(0.1)
        assert state.upgrade_effects.global_skill_talktrack == pytest.approx(0.02)

    def test_recalculate_is_idempotent(self, manager, state):
        state.set_upgrade_level("presence", 3)
        state.set_upgrade_level("marketing", 2)
        first = manager.recalculate_effects().to_dict()
        second = manager.recalculate_effects().to_dict()
        assert first == second
        assert second["daily_leads"] == 10

    def test_one_shot_effects_not_cached(self, manager, state):
        state.set_upgrade_level("hire", 2)
        state.set_upgrade_level("leads", 4)
        effects = manager.recalculate_effects()
        assert all(value == 0 for value in effects.to_dict().values())

    def test_unknown_effect_kind_raises(self, state, catalog):
        broken = UpgradeConfig.model_construct(
            id="broken",
            name="Broken",
            base_cost=0,
            max_level=1,
            prerequisites=(),
            effects=("mystery",),
        )
        manager = UpgradeManager(state, (*catalog.upgrades, broken))
        state.set_upgrade_level("broken", 1)
        with pytest.raises(TypeError):
            manager.recalculate_effects()


class TestListings:
    def test_all_upgrades_describe_state(self, manager):
        listing = {u["id"]: u for u in manager.get_all_upgrades()}
        assert set(listing) == {"hire", "leads", "presence", "routing", "recruiting", "marketing"}
        assert listing["hire"]["current_level"] == 0
        assert listing["hire"]["cost"] == 100
        assert listing["routing"]["can_purchase"] is False

    def test_available_excludes_gated(self, manager, fixed_random):
        assert "routing" not in {u["id"] for u in manager.get_available_upgrades()}
        manager.purchase("presence", fixed_random)
        assert "routing" in {u["id"] for u in manager.get_available_upgrades()}
