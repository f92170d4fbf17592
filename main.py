#!/usr/bin/env python3
"""
Call Center Simulation - Main Demo

Runs a short headless session against the packaged catalog:
1. Starts a new game with a fixed seed
2. Simulates the first business day
3. Buys a couple of upgrades and switches dialers
4. Fast-forwards a working week
5. Round-trips the save through export/import
"""

import logging

from callcenter.config.settings import get_settings
from callcenter.game import CallCenterGame

DEMO_SEED = 42


def demo_seed(settings) -> int:
    """Configured seed, falling back to a fixed one; 0 is a valid seed."""
    if settings.simulation.seed is None:
        return DEMO_SEED
    return settings.simulation.seed


def print_metrics(title: str, metrics: dict):
    print(title)
    print(f"  Day {metrics['day']}, {metrics['hour']:02d}:00")
    print(f"  Cash: ${metrics['cash']:,.2f}   Reputation: {metrics['reputation']}")
    print(f"  Agents: {metrics['agents']}   Dialable leads: {metrics['leads']}")
    print(f"  Dials: {metrics['dials']}   Contacts: {metrics['contacts']} ({metrics['contact_rate']})")
    print(f"  Conversions: {metrics['conversions']} ({metrics['conversion_rate']})")
    print(f"  Revenue: ${metrics['revenue']:,.2f}   Costs: ${metrics['costs']:,.2f}")
    print()


def print_day(stats):
    print(
        f"  dials={stats.dials:4d}  contacts={stats.contacts:3d}  "
        f"conversions={stats.conversions:3d}  profit=${stats.profit:,.2f}"
    )


def run_first_day(game: CallCenterGame):
    print("=" * 60)
    print("DAY ONE")
    print("=" * 60)
    print()

    estimate = game.estimate_period(8 * 60)
    print("Expected for a full day at current settings:")
    print(f"  ~{estimate['dials']} dials, ~{estimate['conversions']} conversions, "
          f"~${estimate['revenue']:,.0f} revenue")
    print()

    stats = game.simulate_day()
    print("Actual:")
    print_day(stats)
    print()


def run_investments(game: CallCenterGame):
    print("=" * 60)
    print("INVESTMENTS")
    print("=" * 60)
    print()

    for upgrade_id in ("lead_pack", "hire_agent", "break_room"):
        ok = game.purchase_upgrade(upgrade_id)
        print(f"  purchase {upgrade_id:<14} {'ok' if ok else 'refused'}")

    if game.unlock_dialer("power"):
        game.set_dialer("power")
        print("  switched to the power dialer")
    else:
        print("  power dialer not affordable yet")

    agent = game.state.agents[0]
    ok = game.train_agent(agent.id, "skill_talktrack")
    print(f"  training {agent.name} on talk track: {'ok' if ok else 'refused'}")
    print()


def run_week(game: CallCenterGame):
    print("=" * 60)
    print("FAST-FORWARD ONE WEEK")
    print("=" * 60)
    print()

    days = game.fast_forward(5 * 8 * 60)
    for index, stats in enumerate(days, 1):
        print(f"  Day {index + 1}:", end="")
        print_day(stats)
    print()


def main():
    """Main entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print()
    print("+" + "=" * 58 + "+")
    print("|            CALL CENTER SIMULATION DEMONSTRATION          |")
    print("+" + "=" * 58 + "+")
    print()

    game = CallCenterGame(settings=settings, seed=demo_seed(settings))
    game.init(load_existing=False)
    print_metrics("Opening position:", game.get_metrics_summary())

    run_first_day(game)
    run_investments(game)
    run_week(game)

    print_metrics("After one week:", game.get_metrics_summary())

    exported = game.export_save()
    restored = CallCenterGame(settings=settings, seed=game.seed)
    restored.init(load_existing=False)
    if exported and restored.import_save(exported):
        print(f"Save round-trip: cash ${restored.state.cash:,.2f}, "
              f"day {restored.state.game_time.day}")
    print()


if __name__ == "__main__":
    main()
