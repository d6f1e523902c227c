"""
Combat engine: ship state, the phase state machine and attack resolution.

The engine holds no display logic. Every state change is published on its
event bus for renderers to consume, and nothing advances on its own: the
caller starts rounds, steps phases and polls for the end of combat.
"""

import logging
from typing import Iterable, Optional, Union

from starcombat.config import EngineConfig
from starcombat.mechanics.called_shot import get_called_shot_penalty
from starcombat.mechanics.dice import DEFAULT_DICE, DiceSource, check
from starcombat.mechanics.event_bus import EventBus
from starcombat.models.combat import (
    AttackResult,
    CombatStats,
    Contact,
    PointDefenseResult,
)
from starcombat.models.enums import EventType, Faction, Phase, RangeBand
from starcombat.models.starship import (
    ION_WEAPONS,
    SYSTEM_DISABLE_HITS,
    Ship,
    SystemStatus,
    Turret,
    create_default_systems,
)

logger = logging.getLogger(__name__)


# ===== Constants =====

TARGET_NUMBER = 8

RANGE_DMS: dict[str, int] = {band.value: band.attack_dm for band in RangeBand}

# Damage dice per weapon type; unlisted weapons roll 2D
WEAPON_DAMAGE: dict[str, int] = {
    "pulse_laser": 2,
    "beam_laser": 1,
    "missile_rack": 4,
    "missile_rack_advanced": 5,
    "sandcaster": 0,
    "particle_beam": 3,
    "particle": 4,              # Barbette
    "particle_barbette": 4,
    "ion": 7,                   # Barbette, power drain only
    "ion_barbette": 7,
    "barbette_ion": 7,
    "ion_cannon": 7,
    "barbette_particle": 4,
    "railgun": 2,
    "laser": 1,
}
DEFAULT_DAMAGE_DICE = 2

WEAPON_ATTACK_DMS: dict[str, int] = {
    "pulse_laser": 2,
    "beam_laser": 4,
}

COMBAT_PHASES: tuple[str, ...] = tuple(p.value for p in Phase)

# Tactical stance: ships this fast go evasive at long range
EVASIVE_THRUST_THRESHOLD = 6

# Initiative gets at most this much from thrust
MAX_INITIATIVE_THRUST = 6

DEFAULT_MAX_POWER = 100

MISSILE_WEAPON = "missile_rack"

ShipLike = Union[Ship, dict]


def is_ion_weapon(weapon_type: Optional[str]) -> bool:
    return weapon_type in ION_WEAPONS


def is_missile_weapon(weapon_type: Optional[str]) -> bool:
    return bool(weapon_type) and weapon_type.startswith(MISSILE_WEAPON)


class CombatEngine:
    """Owns the ships of one combat and resolves everything that happens to them."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        rng: Optional[DiceSource] = None,
        event_bus: Optional[EventBus] = None,
        **overrides,
    ):
        """
        Args:
            config: Engine options (debug, max_log_size, default_range)
            rng: Dice source with roll_1d6/roll_2d6/roll_nd6; fix it for deterministic tests
            event_bus: Bus to publish on; a new one is created from the config if omitted
            **overrides: Individual EngineConfig fields, e.g. ``debug=True``
        """
        if config is None:
            config = EngineConfig(**overrides)
        elif overrides:
            config = EngineConfig(**{**config.model_dump(), **overrides})
        self.config = config
        self.debug = config.debug
        self.event_bus = event_bus or EventBus(
            max_log_size=config.max_log_size,
            debug=config.debug,
        )
        self.rng = rng if rng is not None else DEFAULT_DICE

        # Combat state
        self.ships: list[Ship] = []
        self.round = 0
        self.phase: Optional[str] = None
        self.range = config.default_range
        self.combat_active = False
        self.outcome: Optional[dict] = None
        self.stats = CombatStats()

    # ===== Initialization =====

    def init_combat(
        self,
        player_fleet: Iterable[ShipLike],
        enemy_fleet: Iterable[ShipLike],
        range: Optional[str] = None,
    ) -> None:
        """
        Take ownership of both fleets and reset all combat state.

        Ships may be Ship objects or roster dictionaries. Each ship is tagged
        with its faction, given default system trackers if it has none, and
        gets its hull/power maximums fixed from the current values.
        """
        self.ships = (
            [self._prepare_ship(s, Faction.PLAYER) for s in player_fleet]
            + [self._prepare_ship(s, Faction.ENEMY) for s in enemy_fleet]
        )
        band = RangeBand.lookup(range) if range else None
        self.range = band.value if band else self.config.default_range
        self.round = 0
        self.phase = None
        self.combat_active = True
        self.outcome = None
        self.stats = CombatStats()
        logger.debug(
            "Combat initialised: %d player, %d enemy at %s",
            len(self.get_ships_by_faction(Faction.PLAYER)),
            len(self.get_ships_by_faction(Faction.ENEMY)),
            self.range,
        )

    def _prepare_ship(self, ship: ShipLike, faction: Faction) -> Ship:
        if isinstance(ship, dict):
            ship = Ship.from_dict(ship)
        ship.faction = faction.value
        if ship.systems is None:
            ship.systems = create_default_systems()
        if ship.max_hull is None:
            ship.max_hull = max(0, ship.hull)
        ship.hull = min(max(0, ship.hull), ship.max_hull)
        ship.destroyed = ship.hull <= 0
        if ship.max_power is None:
            ship.max_power = ship.power if ship.power is not None else DEFAULT_MAX_POWER
        if ship.power is None:
            ship.power = ship.max_power
        ship.power = min(max(0, ship.power), ship.max_power)
        return ship

    # ===== Range =====

    def get_range_dm(self, range: Optional[str] = None) -> int:
        """Attack DM for a range band (current range by default). Unknown bands give 0."""
        band = RangeBand.lookup(range or self.range)
        return band.attack_dm if band else 0

    def is_long_range(self, range: Optional[str] = None) -> bool:
        """Whether a range band (current range by default) counts as long."""
        band = RangeBand.lookup(range or self.range)
        return band is not None and band.is_long

    def set_range(self, range: str) -> dict:
        """Move the engagement to a new range band."""
        band = RangeBand.lookup(range)
        if band is None:
            return {"success": False, "reason": f"Unknown range band: {range}"}
        previous = self.range
        self.range = band.value
        self.event_bus.publish(EventType.RANGE_CHANGED, {
            "range": self.range,
            "previous": previous,
        })
        return {"success": True, "range": self.range, "previous": previous}

    def shift_range(self, steps: int) -> dict:
        """Move the range ``steps`` bands outwards (negative closes). Clamped at the ends."""
        bands = list(RangeBand)
        current = RangeBand.lookup(self.range) or RangeBand.MEDIUM
        index = max(0, min(bands.index(current) + steps, len(bands) - 1))
        if bands[index] == current:
            return {"success": False, "reason": f"Already at {current.value} range"}
        return self.set_range(bands[index].value)

    # ===== Initiative =====

    def roll_initiative(self, tactics_dm: int = 0) -> list[dict]:
        """
        Roll initiative for every ship still fighting.

        Each ship rolls 2d6 + pilot skill + thrust (max +6); player ships add
        the captain's Tactics DM.

        Returns:
            Entries of {ship, roll, total, breakdown}, highest total first
        """
        initiatives = []
        for ship in self.ships:
            if ship.destroyed:
                continue
            roll = self.rng.roll_2d6()
            thrust_bonus = min(ship.effective_thrust, MAX_INITIATIVE_THRUST)
            faction_tactics = tactics_dm if ship.faction == Faction.PLAYER.value else 0
            total = roll.total + ship.pilot_skill + thrust_bonus + faction_tactics
            initiatives.append({
                "ship": ship,
                "roll": roll,
                "total": total,
                "breakdown": {
                    "roll": roll.total,
                    "pilot_skill": ship.pilot_skill,
                    "thrust_bonus": thrust_bonus,
                    "tactics_dm": faction_tactics,
                },
            })

        initiatives.sort(key=lambda i: i["total"], reverse=True)

        self.event_bus.publish(EventType.INITIATIVE_ROLLED, {
            "initiatives": [
                {
                    "ship_id": i["ship"].id,
                    "ship_name": i["ship"].name,
                    "total": i["total"],
                    "breakdown": i["breakdown"],
                }
                for i in initiatives
            ]
        })
        return initiatives

    # ===== Attack resolution =====

    def resolve_attack(
        self,
        attacker: Ship,
        defender: Ship,
        weapon: Optional[Turret] = None,
        turret_index: int = 0,
        auto_missile: bool = False,
        called_shot: Optional[str] = None,
    ) -> AttackResult:
        """
        Resolve one attack from ``attacker`` against ``defender``.

        Args:
            attacker: Firing ship
            defender: Target ship
            weapon: Mount to fire; defaults to ``attacker.turrets[turret_index]``
            turret_index: Which turret to fire when no mount is given
            auto_missile: Switch to missiles at long range if the mount carries them
            called_shot: System being aimed at; adds its penalty to the roll.
                System damage itself is left to the caller (apply_system_damage).

        Returns:
            AttackResult; ``success=False`` only when there was nothing to fire
        """
        turret = weapon
        if turret is None and 0 <= turret_index < len(attacker.turrets):
            turret = attacker.turrets[turret_index]
        if turret is None:
            return AttackResult(success=False, reason="No weapon available")

        self.stats.attacks += 1

        weapon_type = turret.primary_weapon or "pulse_laser"

        has_missiles = attacker.missiles > 0 and MISSILE_WEAPON in turret.weapons
        if auto_missile and has_missiles and self.is_long_range():
            weapon_type = MISSILE_WEAPON
            attacker.missiles -= 1
            self.stats.missiles_launched += 1

        modifiers = {
            "fire_control": attacker.fire_control,
            "gunner_skill": turret.gunner_skill,
            "range_dm": self.get_range_dm(),
            # TODO: RAW evasive is -Pilot skill per dodge, each costing 1 Thrust
            "evasive_dm": -defender.effective_thrust if defender.evasive else 0,
            "weapon_attack_dm": WEAPON_ATTACK_DMS.get(weapon_type, 0),
        }
        if called_shot:
            modifiers["called_shot_dm"] = get_called_shot_penalty(called_shot)
        total_dm = sum(modifiers.values())

        roll = self.rng.roll_2d6()
        total = roll.total + total_dm
        hit, effect = check(total, TARGET_NUMBER)

        if hit:
            self.stats.hits += 1
        else:
            self.stats.misses += 1

        result = AttackResult(
            success=True,
            hit=hit,
            attacker=attacker.ref(),
            defender=defender.ref(),
            weapon=weapon_type,
            roll=roll,
            total_dm=total_dm,
            total=total,
            effect=effect,
            modifiers=modifiers,
            called_shot=called_shot,
        )

        if hit:
            if is_missile_weapon(weapon_type):
                pd_result = self.resolve_point_defense(defender)
                result.point_defense = pd_result
                if pd_result is not None and pd_result.success:
                    self.event_bus.publish(EventType.POINT_DEFENSE, {
                        **result.to_dict(),
                        "intercepted": True,
                    })
                    return result

            amount = self.calculate_damage(weapon_type, defender, effect, turret)

            if is_ion_weapon(weapon_type):
                result.power_drain = amount
                # 1 round, or D3 rounds on Effect 6+
                result.ion_duration = (self.rng.roll_1d6().total % 3 + 1) if effect >= 6 else 1
                current_power = defender.power if defender.power is not None else defender.max_power
                defender.power = max(0, (current_power or 0) - amount)
            else:
                result.damage = amount
                defender.hull = max(0, defender.hull - amount)
                self.stats.damage_dealt += amount

            if defender.hull <= 0 and not defender.destroyed:
                defender.destroyed = True
                result.destroyed = True
                logger.info("%s destroyed by %s", defender.name, attacker.name)
                self.event_bus.publish(EventType.SHIP_DESTROYED, {
                    "ship": defender.ref(),
                    "killed_by": attacker.ref(),
                })

        self.event_bus.publish(EventType.ATTACK_RESOLVED, result.to_dict())

        if result.damage > 0 or result.power_drain > 0:
            self.event_bus.publish(EventType.DAMAGE_APPLIED, {
                "ship": defender.ref(),
                "damage": result.damage,
                "power_drain": result.power_drain,
                "remaining_hull": defender.hull,
                "remaining_power": defender.power,
            })

        return result

    def calculate_damage(
        self,
        weapon_type: str,
        defender: Ship,
        effect: int = 0,
        weapon: Optional[Turret] = None,
    ) -> int:
        """
        Roll damage for a hit.

        Ion weapons ignore armour and return power drain:
        (dice + effect) x damage multiple. Everything else returns hull
        damage: max(0, dice + effect - armour) x damage multiple.
        """
        damage_dice = WEAPON_DAMAGE.get(weapon_type, DEFAULT_DAMAGE_DICE)
        damage_multiple = (weapon.damage_multiple if weapon else 1) or 1

        if is_ion_weapon(weapon_type):
            ion_roll = self.rng.roll_nd6(damage_dice or WEAPON_DAMAGE["ion"])
            return (ion_roll.total + effect) * damage_multiple

        damage_roll = self.rng.roll_nd6(damage_dice)
        return max(0, damage_roll.total + effect - defender.armour) * damage_multiple

    def resolve_point_defense(self, defender: Ship) -> Optional[PointDefenseResult]:
        """
        Defender tries to shoot down an incoming missile with a laser turret.

        Each attempt in the same round takes a further -1. Returns None when
        the defender has no working laser turret.
        """
        pd_turret = next(
            (t for t in defender.turrets if t.is_laser and not t.disabled),
            None,
        )
        if pd_turret is None:
            return None

        self.stats.point_defense_attempts += 1

        defender.pd_attempts += 1
        penalty = -(defender.pd_attempts - 1)

        roll = self.rng.roll_2d6()
        total = roll.total + pd_turret.gunner_skill + penalty
        success, _ = check(total, TARGET_NUMBER)

        if success:
            self.stats.point_defense_successes += 1

        return PointDefenseResult(
            success=success,
            roll=roll,
            total=total,
            penalty=penalty,
            gunner_skill=pd_turret.gunner_skill,
            target_number=TARGET_NUMBER,
        )

    def apply_system_damage(self, ship: Ship, system: str) -> dict:
        """
        Record a hit on a named system (e.g. after a successful called shot).

        Untracked systems start at 0 hits. The system is disabled on its
        third hit and stays disabled.
        """
        if ship.systems is None:
            ship.systems = create_default_systems()
        status = ship.systems.setdefault(system, SystemStatus())

        status.hits += 1
        if status.hits >= SYSTEM_DISABLE_HITS:
            status.disabled = True

        result = {
            "system": system,
            "hits": status.hits,
            "disabled": status.disabled,
        }

        if result["hits"] > 0 or result["disabled"]:
            self.event_bus.publish(EventType.SYSTEM_DAMAGED, {
                "ship": ship.ref(),
                **result,
            })

        return result

    # ===== Tactical actions =====

    def set_evasive(self, ship: Ship, enable: bool = True) -> None:
        """Turn evasive manoeuvring on or off for a ship."""
        ship.evasive = enable
        self.event_bus.publish(EventType.EVASIVE_ACTION, {
            "ship": ship.ref(),
            "enabled": enable,
            "penalty": ship.effective_thrust if enable else 0,
        })

    def apply_tactical_stance(self, fleet: Iterable[Ship]) -> None:
        """Fast ships (thrust 6+) go evasive at long range; everyone else stops."""
        long_range = self.is_long_range()
        for ship in fleet:
            if ship.destroyed:
                continue
            self.set_evasive(ship, ship.thrust >= EVASIVE_THRUST_THRESHOLD and long_range)

    def activate_sandcaster(self, ship: Ship) -> dict:
        """Expend one sandcaster canister for this round."""
        if ship.sandcasters <= 0:
            return {"success": False, "reason": "No sandcasters remaining"}

        ship.sandcasters -= 1
        ship.sandcaster_active = True

        result = {
            "success": True,
            "ship": ship.ref(),
            "remaining": ship.sandcasters,
        }
        self.event_bus.publish(EventType.SANDCASTER, result)
        return result

    def restore_power(self, ship: Ship, amount: int) -> dict:
        """Route extra power to a ship, up to its maximum."""
        if amount <= 0:
            return {"success": False, "reason": "Nothing to restore"}
        max_power = ship.max_power if ship.max_power is not None else DEFAULT_MAX_POWER
        before = ship.power or 0
        ship.power = min(max_power, before + amount)
        restored = ship.power - before
        self.event_bus.publish(EventType.POWER_ALLOCATED, {
            "ship": ship.ref(),
            "amount": restored,
            "power": ship.power,
        })
        return {"success": True, "restored": restored, "power": ship.power}

    def boost_thrust(self, ship: Ship, amount: int = 1) -> dict:
        """Push a ship's M-Drive for the rest of the round (cleared by start_round)."""
        if ship.is_system_disabled("mDrive"):
            return {"success": False, "reason": "M-Drive disabled"}
        ship.thrust_boost += amount
        self.event_bus.publish(EventType.THRUST_BOOSTED, {
            "ship": ship.ref(),
            "boost": ship.thrust_boost,
            "thrust": ship.effective_thrust,
        })
        return {"success": True, "thrust": ship.effective_thrust}

    def apply_jamming(self, ship: Ship, strength: int, target: Optional[Ship] = None) -> dict:
        """Mark a ship as running ECM, jamming ``target`` when one is given."""
        ship.ecm_active = True
        ship.jamming_strength = strength
        if target is not None:
            target.jammed = True
            target.jamming_strength = strength
        self.event_bus.publish(EventType.JAMMING_APPLIED, {
            "ship": ship.ref(),
            "target": target.ref() if target is not None else None,
            "strength": strength,
        })
        return {"success": True, "strength": strength}

    # ===== Phase management =====

    def start_round(self) -> None:
        """
        Begin a new round at the first phase.

        Resets per-round ship flags. Turret usage is reset by the gunner
        station (GunnerEngine.reset_turrets), not here.
        """
        self.round += 1
        self.phase = COMBAT_PHASES[0]

        for ship in self.ships:
            if not ship.destroyed:
                ship.pd_attempts = 0
                ship.sandcaster_active = False
                ship.thrust_boost = 0

        self.event_bus.publish(EventType.ROUND_STARTED, {
            "round": self.round,
            "ships_remaining": len([s for s in self.ships if not s.destroyed]),
        })

    def next_phase(self) -> Optional[str]:
        """
        Advance to the next phase.

        Returns:
            The new phase, or None when the round is over (call start_round)
        """
        index = COMBAT_PHASES.index(self.phase) if self.phase in COMBAT_PHASES else -1
        if index < len(COMBAT_PHASES) - 1:
            self.phase = COMBAT_PHASES[index + 1]
            self.event_bus.publish(EventType.PHASE_CHANGED, {
                "phase": self.phase,
                "round": self.round,
            })
            return self.phase
        return None

    def check_combat_end(self) -> Optional[dict]:
        """
        Check for a winner. Call after each phase; the engine never does.

        Returns:
            {winner, reason} once combat is over, otherwise None
        """
        if self.outcome is not None:
            return self.outcome

        player_alive = self.get_ships_by_faction(Faction.PLAYER)
        enemy_alive = self.get_ships_by_faction(Faction.ENEMY)

        if not player_alive:
            return self._end_combat("enemy", "All player ships destroyed")
        if not enemy_alive:
            return self._end_combat("player", "All enemy ships destroyed")
        if all((s.power if s.power is not None else DEFAULT_MAX_POWER) <= 0 for s in enemy_alive):
            return self._end_combat("player", "Enemy ships disabled (no power)")
        return None

    def _end_combat(self, winner: str, reason: str) -> dict:
        self.combat_active = False
        self.outcome = {"winner": winner, "reason": reason}
        logger.info("Combat ended in round %d: %s (%s)", self.round, winner, reason)
        self.event_bus.publish(EventType.COMBAT_ENDED, dict(self.outcome))
        return self.outcome

    # ===== Utility =====

    def get_ship(self, ship_id: str) -> Optional[Ship]:
        return next((s for s in self.ships if s.id == ship_id), None)

    def get_ships_by_faction(self, faction: Union[str, Faction]) -> list[Ship]:
        """Living ships on one side."""
        faction = getattr(faction, "value", faction)
        return [s for s in self.ships if s.faction == faction and not s.destroyed]

    def get_contacts(self, observer: Ship) -> list[Contact]:
        """Sensor contacts for every other ship, at the current range."""
        return [
            Contact(
                id=s.id,
                name=s.name,
                range=self.range,
                stealth=s.stealth,
                hostile=s.faction != observer.faction,
                destroyed=s.destroyed,
            )
            for s in self.ships
            if s is not observer
        ]

    def get_stats(self) -> dict:
        return self.stats.to_dict()

    def subscribe(self, event_type, handler):
        return self.event_bus.subscribe(event_type, handler)

    def subscribe_many(self, subscriptions):
        return self.event_bus.subscribe_many(subscriptions)

    def replay_events(self, from_id: int = 0):
        return self.event_bus.replay(from_id)
