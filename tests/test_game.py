"""Tests for the game facade."""

import pytest

from callcenter.config.settings import PersistenceSettings, Settings, SimulationSettings
from callcenter.game import CallCenterGame
from callcenter.models.agent import AgentState
from callcenter.persistence.storage import InMemoryStore


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def settings():
    return Settings(
        simulation=SimulationSettings(seed=3, autosave=True),
        persistence=PersistenceSettings(),
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game(settings, catalog, store, clock):
    return CallCenterGame(settings=settings, catalog=catalog, store=store, clock=clock).init()


class TestSetup:
    def test_new_game(self, game):
        assert game.seed == 3
        assert len(game.state.agents) == 1
        assert len(game.state.lead_pool.leads) == 50
        assert game.state.cash == 500
        assert game.state.is_paused
        assert not game.is_running

    def test_explicit_seed_wins(self, settings, catalog, store):
        game = CallCenterGame(settings=settings, catalog=catalog, store=store, seed=11)
        assert game.seed == 11

    def test_resume_saved_game(self, game, settings, catalog, store):
        game.simulate_day()

        resumed = CallCenterGame(settings=settings, catalog=catalog, store=store).init()

        assert resumed.state.game_time.day == 2
        assert resumed.state.cash == game.state.cash

    def test_init_without_loading(self, game, settings, catalog, store):
        game.simulate_day()
        fresh = CallCenterGame(settings=settings, catalog=catalog, store=store).init(
            load_existing=False
        )
        assert fresh.state.game_time.day == 1

    def test_events(self, game):
        assert game.get_events() == [{"id": "welcome", "title": "Welcome"}]


class TestRealTime:
    def test_poll_processes_due_minutes(self, game, clock, store, settings):
        game.start()
        assert not game.state.is_paused
        clock.now = 2.5

        assert game.poll() == 2
        assert game.state.game_time.total_minutes == 2
        assert store.exists(settings.persistence.key)

        clock.now = 3.0
        assert game.poll() == 1

    def test_poll_when_stopped(self, game, clock):
        clock.now = 100
        assert game.poll() == 0

    def test_speed_multiplier(self, game, clock):
        assert game.set_speed(4)
        assert game.minute_interval_seconds() == 0.25
        game.start()
        clock.now = 1.0
        assert game.poll() == 4

    @pytest.mark.parametrize("speed", [0, -1])
    def test_invalid_speed(self, game, speed):
        assert not game.set_speed(speed)
        assert game.state.speed_multiplier == 1

    def test_pause_stops_processing(self, game, clock):
        game.start()
        game.pause()
        clock.now = 10
        assert game.poll() == 0
        assert game.state.is_paused


class TestInstantProcessing:
    def test_simulate_day(self, game):
        snapshot = game.simulate_day()
        assert snapshot.dials > 0
        assert game.state.game_time.day == 2
        assert game.state.is_paused

    def test_fast_forward(self, game):
        snapshots = game.fast_forward(480)
        assert len(snapshots) == 1


class TestActions:
    def test_train_agent(self, game):
        agent = game.state.agents[0]
        assert game.train_agent(agent.id, "charisma")
        assert game.state.cash == 450
        assert agent.state == AgentState.TRAINING
        assert agent.state_time_remaining == 1800

    def test_train_unknown_skill(self, game):
        assert not game.train_agent(game.state.agents[0].id, "juggling")

    def test_train_busy_agent(self, game):
        agent = game.state.agents[0]
        agent.start_break(60)
        assert not game.train_agent(agent.id, "charisma")
        assert game.state.cash == 500

    def test_train_without_cash(self, game):
        game.state.cash = 10
        assert not game.train_agent(game.state.agents[0].id, "charisma")

    def test_train_unknown_agent(self, game):
        assert not game.train_agent("agent_404", "charisma")

    def test_unlock_dialer(self, game):
        assert not game.unlock_dialer("predictive")
        assert game.unlock_dialer("power")
        assert game.state.cash == 200
        assert game.set_dialer("power")
        assert game.state.dialer_manager.get_active_dialer().id == "power"

    def test_unlock_dialer_needs_cash(self, game):
        game.state.cash = 100
        assert not game.unlock_dialer("power")
        assert game.state.cash == 100
        assert not game.set_dialer("power")

    def test_unlock_lead_source(self, game):
        assert game.unlock_lead_source("premium")
        assert game.state.cash == 300
        assert not game.unlock_lead_source("premium")

    def test_purchase_upgrade(self, game):
        assert game.purchase_upgrade("hire")
        assert len(game.state.agents) == 2

    def test_listings(self, game):
        assert {u["id"] for u in game.get_all_upgrades()} >= {"hire", "routing"}
        assert "routing" not in {u["id"] for u in game.get_available_upgrades()}
        assert [d.id for d in game.get_dialers()] == ["manual", "power", "predictive"]
        assert {s.id for s in game.get_lead_sources()} == {"standard_leads", "premium"}

    def test_reset_keeps_callbacks(self, game, store, settings):
        days = []
        assert game.on("on_day_end", days.append)
        game.simulate_day()
        assert len(days) == 1

        game.reset_game()
        assert game.state.game_time.day == 1
        assert not store.exists(settings.persistence.key)

        game.simulate_day()
        assert len(days) == 2

    def test_unknown_event_subscription(self, game):
        assert not game.on("on_lunch", print)

    def test_subscribe_before_init(self, settings, catalog, store):
        game = CallCenterGame(settings=settings, catalog=catalog, store=store)
        days = []
        assert game.on("on_day_end", days.append)
        assert not game.on("on_lunch", print)

        game.init()
        snapshot = game.simulate_day()

        assert days == [snapshot]


class TestSaveTransfer:
    def test_export_import(self, game, settings, catalog):
        game.purchase_upgrade("presence")
        encoded = game.export_save()

        other = CallCenterGame(
            settings=settings, catalog=catalog, store=InMemoryStore()
        ).init()
        assert other.import_save(encoded)
        assert other.state.cash == game.state.cash
        assert other.state.upgrade_effects.answer_rate_bonus == pytest.approx(0.05)

    def test_import_garbage(self, game):
        assert not game.import_save("%%%")
        assert game.state.cash == 500

    def test_metrics_and_estimate(self, game):
        assert game.get_metrics_summary()["agents"] == 1
        assert game.estimate_period(60)["dials"] >= 0
