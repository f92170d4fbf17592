"""Tests for dialers and the dialer manager."""

import pytest

from callcenter.models.dialer import Dialer, DialerManager


@pytest.fixture
def manager(catalog):
    dialer_manager = DialerManager()
    for config in reversed(catalog.dialers):
        dialer_manager.add_dialer(Dialer.from_config(config))
    return dialer_manager


class TestDialer:
    def test_free_dialer_unlocked(self, manager):
        assert manager.get_dialer("manual").unlocked
        assert not manager.get_dialer("power").unlocked

    def test_dial_interval(self, manager):
        assert manager.get_dialer("manual").get_dial_interval_seconds() == 10

    def test_daily_cost(self, manager):
        assert manager.get_dialer("power").get_daily_cost(4) == 20
        assert manager.get_dialer("manual").get_daily_cost(4) == 0

    def test_should_abandon(self, manager, make_random):
        predictive = manager.get_dialer("predictive")
        manual = manager.get_dialer("manual")
        assert predictive.should_abandon(make_random(0.99))
        assert not manual.should_abandon(make_random(0.0))


class TestDialerManager:
    def test_default_active(self, manager):
        assert manager.get_active_dialer().id == "manual"

    def test_cannot_activate_locked(self, manager):
        assert not manager.set_active_dialer("power")
        assert manager.active_dialer_id == "manual"

    def test_cannot_activate_unknown(self, manager):
        assert not manager.set_active_dialer("quantum")

    def test_unlock_chain(self, manager):
        assert not manager.can_unlock("predictive")
        assert manager.unlock_dialer("power")
        assert manager.can_unlock("predictive")
        assert manager.unlock_dialer("predictive")
        assert manager.set_active_dialer("predictive")

    def test_unlock_twice_refused(self, manager):
        assert manager.unlock_dialer("power")
        assert not manager.unlock_dialer("power")

    def test_all_dialers_sorted_by_tier(self, manager):
        assert [d.id for d in manager.get_all_dialers()] == ["manual", "power", "predictive"]

    def test_unlocked_dialers(self, manager):
        manager.unlock_dialer("power")
        assert {d.id for d in manager.get_unlocked_dialers()} == {"manual", "power"}

    def test_json_round_trip(self, manager, catalog):
        manager.unlock_dialer("power")
        manager.set_active_dialer("power")

        restored = DialerManager()
        restored.load_from_json(manager.to_json(), catalog.dialers)

        assert restored.active_dialer_id == "power"
        assert restored.unlocked_ids() == {"manual", "power"}
