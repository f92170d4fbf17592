"""Tests for the aggregate game state: cash, reputation, clock and day close."""

import pytest

from callcenter.models.game_state import SAVE_VERSION, GameState
from callcenter.models.lead import MINUTES_PER_DAY


class TestCashAndReputation:
    def test_starting_values(self, catalog):
        state = GameState.from_catalog(catalog)
        assert state.cash == 500
        assert state.reputation == 75
        assert state.is_paused
        assert state.dialer_manager.active_dialer_id == "manual"

    def test_positive_cash_is_revenue(self, state):
        state.adjust_cash(100)
        assert state.cash == 600
        assert state.daily_stats.revenue == 100
        assert state.lifetime_stats.total_revenue == 100
        assert state.daily_stats.costs == 0

    def test_negative_cash_is_cost(self, state):
        state.adjust_cash(-700)
        assert state.cash == -200
        assert state.daily_stats.costs == 700
        assert state.lifetime_stats.total_costs == 700

    def test_zero_cash_books_nothing(self, state):
        state.adjust_cash(0)
        assert state.daily_stats.revenue == 0
        assert state.daily_stats.costs == 0

    @pytest.mark.parametrize("delta,expected", [(50, 100), (-200, 0), (-5, 70), (10, 85)])
    def test_reputation_clamped(self, state, delta, expected):
        state.adjust_reputation(delta)
        assert state.reputation == expected

    def test_conversion_books_revenue(self, state):
        state.record_conversion(120)
        assert state.daily_stats.conversions == 1
        assert state.lifetime_stats.total_conversions == 1
        assert state.cash == 620


class TestAgents:
    def test_add_agent_ids(self, state, rng):
        agent = state.add_agent(rng)
        assert agent.id == "agent_2"
        assert state.next_agent_id == 3
        assert agent.hired_at == state.now()

    def test_remove_agent(self, state):
        agent_id = state.agents[0].id
        assert state.remove_agent(agent_id)
        assert not state.remove_agent(agent_id)
        assert state.agents == []

    def test_get_agent(self, state):
        assert state.get_agent("agent_1") is state.agents[0]
        assert state.get_agent("agent_99") is None

    def test_available_and_working(self, state, rng):
        second = state.add_agent(rng)
        second.start_break(60)
        assert [a.id for a in state.get_available_agents()] == ["agent_1"]
        assert [a.id for a in state.get_working_agents()] == ["agent_1"]


class TestClock:
    def test_minutes_carry_into_hours(self, state):
        state.game_time.minute = 58
        assert state.advance_time(3) is None
        assert state.game_time.hour == 10
        assert state.game_time.minute == 1
        assert state.game_time.total_minutes == 3

    def test_now_tracks_absolute_minutes(self, state):
        assert state.now() == 9 * 60
        state.advance_time(30)
        assert state.now() == 9 * 60 + 30
        assert state.lead_pool.clock == state.now()

    @pytest.mark.parametrize("hour,expected", [(8, False), (9, True), (16, True), (17, False)])
    def test_work_hours(self, state, hour, expected):
        state.game_time.hour = hour
        assert state.is_work_hours() is expected

    def test_midnight_closes_day(self, state):
        state.game_time.hour = 23
        state.game_time.minute = 59
        state.record_dial()

        snapshot = state.advance_time(1)

        assert snapshot is not None
        assert snapshot.dials == 1
        assert state.game_time.day == 2
        assert state.game_time.hour == 9
        assert state.game_time.minute == 0
        assert state.daily_stats.dials == 0
        assert state.lead_pool.clock == MINUTES_PER_DAY + 9 * 60


class TestEndDay:
    def test_operating_cost(self, state):
        assert state.get_daily_operating_cost() == 40

    def test_operating_cost_includes_dialer_fee(self, state):
        state.dialer_manager.unlock_dialer("power")
        state.dialer_manager.set_active_dialer("power")
        assert state.get_daily_operating_cost() == 45

    def test_end_day_charges_and_snapshots(self, state):
        state.adjust_cash(200)
        snapshot = state.end_day()

        assert snapshot.revenue == 200
        assert snapshot.costs == 40
        assert snapshot.profit == 160
        assert state.cash == 660
        assert state.lifetime_stats.days_played == 1
        assert state.daily_stats.revenue == 0

    def test_overnight_fatigue_recovery(self, state):
        state.agents[0].fatigue = 0.5
        state.end_day()
        assert state.agents[0].fatigue == pytest.approx(0.2)
        state.end_day()
        assert state.agents[0].fatigue == 0.0

    def test_agent_daily_stats_reset(self, state):
        agent = state.agents[0]
        agent.record_dial()
        state.end_day()
        assert agent.daily_stats.dials == 0
        assert agent.lifetime_stats.days_worked == 1

    def test_no_cost_without_agents(self, catalog):
        state = GameState.from_catalog(catalog)
        snapshot = state.end_day()
        assert snapshot.costs == 0
        assert state.cash == 500


class TestSerialization:
    def test_round_trip(self, state, catalog):
        state.adjust_cash(123.5)
        state.adjust_reputation(-10)
        state.set_upgrade_level("presence", 2)
        state.dialer_manager.unlock_dialer("power")
        state.dialer_manager.set_active_dialer("power")
        state.advance_time(45)

        data = state.to_json()
        assert data["version"] == SAVE_VERSION
        assert "savedAt" in data

        restored = GameState.from_catalog(catalog)
        restored.load_from_json(data, catalog)

        assert restored.cash == state.cash
        assert restored.reputation == state.reputation
        assert restored.upgrades == {"presence": 2}
        assert restored.dialer_manager.active_dialer_id == "power"
        assert restored.game_time == state.game_time
        assert restored.daily_stats == state.daily_stats
        assert restored.agents == state.agents
        assert restored.lead_pool.leads == state.lead_pool.leads
        assert restored.lead_pool.clock == state.now()
        assert restored.next_agent_id == state.next_agent_id

    def test_reputation_clamped_on_load(self, catalog):
        state = GameState.from_catalog(catalog)
        state.load_from_json({"reputation": 250}, catalog)
        assert state.reputation == 100
