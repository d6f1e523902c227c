#!/usr/bin/env python3
"""Run an automated ship-to-ship combat and print the event stream."""

import argparse
import logging
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from starcombat.mechanics.combat_engine import CombatEngine
from starcombat.mechanics.control_mode import FIGHT_MODES, SPEEDS, check_escape_condition, get_speed_ms
from starcombat.mechanics.dice import Dice
from starcombat.models.enums import EventType, Phase, RangeBand
from starcombat.roles import CaptainEngine, EngineerEngine, GunnerEngine, PilotEngine, SensorsEngine

logger = logging.getLogger("run_combat")

PLAYER_FLEET = [
    {
        "id": "beowulf",
        "name": "Beowulf",
        "hull": 40,
        "armour": 2,
        "power": 60,
        "thrust": 2,
        "fire_control": 1,
        "pilot_skill": 1,
        "sensors": 4,
        "sandcasters": 4,
        "crew": {"tactics": 1, "pilot": 2, "gunnery": 1, "engineer": 1, "electronics": 1},
        "turrets": [
            {"name": "Dorsal Turret", "weapons": ["pulse_laser", "pulse_laser"], "gunner_skill": 1},
            {"name": "Ventral Turret", "weapons": ["beam_laser"], "gunner_skill": 1},
        ],
    },
]

ENEMY_FLEET = [
    {
        "id": "corsair",
        "name": "Corsair",
        "hull": 36,
        "armour": 3,
        "power": 50,
        "thrust": 4,
        "fire_control": 0,
        "pilot_skill": 1,
        "missiles": 12,
        "crew": {"pilot": 1, "gunnery": 1},
        "turrets": [
            {"name": "Missile Rack", "weapons": ["missile_rack", "pulse_laser"], "gunner_skill": 1},
            {"name": "Laser", "weapons": ["pulse_laser"], "gunner_skill": 1},
        ],
    },
]


def describe(event):
    """One line per interesting event."""
    data = event.data
    if event.type == EventType.ROUND_STARTED.value:
        return f"\n=== ROUND {data['round']} === ({data['ships_remaining']} ships)"
    if event.type == EventType.ATTACK_RESOLVED.value:
        outcome = "HIT" if data["hit"] else "miss"
        line = (
            f"  {data['attacker']['name']} fires {data['weapon']} at {data['defender']['name']}: "
            f"{data['roll']['total']}{data['total_dm']:+d} = {data['total']} {outcome}"
        )
        if data["damage"]:
            line += f", {data['damage']} damage"
        if data["power_drain"]:
            line += f", {data['power_drain']} power drained"
        return line
    if event.type == EventType.POINT_DEFENSE.value:
        return f"  {data['defender']['name']} shoots down a missile"
    if event.type == EventType.SHIP_DESTROYED.value:
        return f"  *** {data['ship']['name']} DESTROYED ***"
    if event.type == EventType.SYSTEM_DAMAGED.value:
        state = "DISABLED" if data["disabled"] else f"{data['hits']} hits"
        return f"  {data['ship']['name']} {data['system']}: {state}"
    if event.type == EventType.RANGE_CHANGED.value:
        return f"  Range now {data['range']}"
    if event.type == EventType.COMBAT_ENDED.value:
        return f"\n{data['winner'].upper()} WINS: {data['reason']}"
    return None


class Crew:
    """All stations aboard one ship."""

    def __init__(self, ship, engine):
        self.ship = ship
        self.captain = CaptainEngine(ship, combat_engine=engine)
        self.pilot = PilotEngine(ship, combat_engine=engine)
        self.gunner = GunnerEngine(ship, combat_engine=engine)
        self.engineer = EngineerEngine(ship, combat_engine=engine)
        self.sensors = SensorsEngine(ship, combat_engine=engine)


def first_target(engine, ship):
    enemies = [s for s in engine.ships if s.faction != ship.faction and not s.destroyed]
    focus = next((s for s in enemies if s.id == ship.focus_target), None)
    return focus or (enemies[0] if enemies else None)


def run_phase(engine, phase, crews, fight_mode):
    for crew in crews:
        ship = crew.ship
        if ship.destroyed:
            continue
        target = first_target(engine, ship)
        if target is None:
            return

        if phase == Phase.INITIATIVE.value:
            crew.sensors.execute("active_scan")
        elif phase == Phase.MANOEUVRE.value:
            if ship.faction == "enemy" and check_escape_condition(fight_mode, ship.hull, ship.max_hull):
                if not ship.attempting_escape:
                    crew.captain.execute("disengage")
                crew.pilot.execute("open_range")
            elif ship.faction == "player" and engine.is_long_range():
                crew.pilot.execute("close_range")
            elif crew.pilot.can_evade() and ship.hull_fraction() < 0.5:
                crew.pilot.execute("evasive")
        elif phase == Phase.ATTACK.value:
            params = {"target": target, "auto_target": True}
            fired = crew.gunner.can_called_shot() and crew.gunner.execute("called_shot", params).success
            if not fired:
                if engine.is_long_range() and crew.gunner.can_fire_missiles():
                    crew.gunner.execute("fire_missiles", params)
                else:
                    crew.gunner.execute("fire_primary", params)
            if crew.gunner.can_fire_secondary():
                crew.gunner.execute("fire_secondary", params)
        elif phase == Phase.REACTION.value:
            if engine.is_long_range() and crew.gunner.can_sandcaster():
                crew.gunner.execute("sandcaster")
        elif phase == Phase.ACTIONS.value:
            if crew.engineer.can_emergency_power():
                crew.engineer.execute("emergency_power")
            crew.captain.execute("tactics")


def main():
    parser = argparse.ArgumentParser(description="Run an automated starship combat")
    parser.add_argument("--seed", type=int, default=None, help="Dice seed for a reproducible fight")
    parser.add_argument("--range", choices=[b.value for b in RangeBand], default="Long", help="Starting range")
    parser.add_argument("--rounds", type=int, default=10, help="Maximum rounds")
    parser.add_argument("--speed", choices=SPEEDS, default="INSTANT", help="Delay between phases")
    parser.add_argument("--fight-mode", choices=FIGHT_MODES, default="NORMAL", help="Enemy retreat behaviour")
    parser.add_argument("--debug", action="store_true", help="Log every event")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = CombatEngine(rng=Dice(seed=args.seed), debug=args.debug)
    engine.init_combat(PLAYER_FLEET, ENEMY_FLEET, range=args.range)
    crews = [Crew(ship, engine) for ship in engine.ships]

    def render(event):
        line = describe(event)
        if line:
            print(line)

    engine.subscribe("*", render)
    delay = get_speed_ms(args.speed) / 1000

    print("=" * 60)
    print("STARSHIP COMBAT")
    print("=" * 60)
    print(f"Range: {engine.range}")

    while engine.round < args.rounds and engine.combat_active:
        engine.start_round()
        for crew in crews:
            crew.gunner.reset_turrets()
        player_crew = next(c for c in crews if c.ship.faction == "player")
        player_crew.captain.roll_initiative()

        phase = engine.phase
        while phase is not None:
            run_phase(engine, phase, crews, args.fight_mode)
            if engine.check_combat_end():
                break
            if delay:
                time.sleep(delay)
            phase = engine.next_phase()

    if engine.combat_active:
        logger.info("No decision after %d rounds", engine.round)

    print("\nFinal Status:")
    for ship in engine.ships:
        status = ship.get_status()
        print(f"  {status['name']}: hull {status['hull']}/{status['max_hull']}, "
              f"power {status['power']}/{status['max_power']}"
              + (" [DESTROYED]" if status["destroyed"] else ""))
    print(f"\nStats: {engine.get_stats()}")


if __name__ == "__main__":
    main()
