"""Starship data model for combat."""

from dataclasses import dataclass, field
from typing import Optional

# Systems tracked on every ship unless the roster supplies its own.
DEFAULT_SYSTEMS = ("mDrive", "jDrive", "powerPlant", "sensors", "computer", "fuel")

# Hits that knock a system out.
SYSTEM_DISABLE_HITS = 3

ION_WEAPONS = ("ion", "ion_barbette", "barbette_ion", "ion_cannon")
LASER_WEAPONS = ("pulse_laser", "beam_laser")


@dataclass
class SystemStatus:
    """Damage tracker for one ship system."""
    hits: int = 0
    disabled: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"hits": self.hits, "disabled": self.disabled}

    @classmethod
    def from_dict(cls, data: dict) -> "SystemStatus":
        """Create from dictionary."""
        return cls(hits=data.get("hits", 0), disabled=data.get("disabled", False))


def create_default_systems() -> dict[str, SystemStatus]:
    """Fresh damage trackers for the standard systems."""
    return {name: SystemStatus() for name in DEFAULT_SYSTEMS}


@dataclass
class Turret:
    """A weapon mount. The first weapon in the list is the primary."""
    weapons: list[str] = field(default_factory=list)
    gunner_skill: int = 0
    name: Optional[str] = None
    type: Optional[str] = None
    ammo: Optional[int] = None  # None means the mount does not track ammo
    damage_multiple: int = 1    # Barbettes and bays multiply damage
    used_this_round: bool = False
    used_for_pd: bool = False
    disabled: bool = False

    @property
    def primary_weapon(self) -> Optional[str]:
        """Weapon type fired by default from this mount."""
        if self.weapons:
            return self.weapons[0]
        return self.type

    def has_weapon(self, fragment: str) -> bool:
        """Check if any weapon on the mount contains the given fragment."""
        return any(fragment in w for w in self.weapons)

    @property
    def is_laser(self) -> bool:
        """Whether this mount can fire point defense."""
        return any(w in LASER_WEAPONS for w in self.weapons)

    @property
    def is_sandcaster_only(self) -> bool:
        """Sandcaster mounts are defensive and never fire at ships."""
        return bool(self.weapons) and all(w == "sandcaster" for w in self.weapons)

    @property
    def display_name(self) -> str:
        """Human readable weapon name."""
        if self.name:
            return self.name
        if self.primary_weapon:
            return self.primary_weapon.replace("_", " ").title()
        return "Weapon"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "weapons": list(self.weapons),
            "gunner_skill": self.gunner_skill,
            "name": self.name,
            "type": self.type,
            "ammo": self.ammo,
            "damage_multiple": self.damage_multiple,
            "used_this_round": self.used_this_round,
            "used_for_pd": self.used_for_pd,
            "disabled": self.disabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Turret":
        """Create from dictionary."""
        return cls(
            weapons=list(data.get("weapons", [])),
            gunner_skill=data.get("gunner_skill", 0),
            name=data.get("name"),
            type=data.get("type"),
            ammo=data.get("ammo"),
            damage_multiple=data.get("damage_multiple", 1),
            used_this_round=data.get("used_this_round", False),
            used_for_pd=data.get("used_for_pd", False),
            disabled=data.get("disabled", False),
        )


@dataclass
class Ship:
    """A ship taking part in combat (player or enemy).

    Hull, power, systems and ``destroyed`` are owned by the CombatEngine for
    the length of a combat. Read them freely; change them only through the
    engine's methods so the events fire.
    """
    id: str
    name: str
    hull: int
    max_hull: Optional[int] = None
    armour: int = 0
    # Use None to indicate "not set" vs 0 meaning "actually zero"
    power: Optional[int] = None
    max_power: Optional[int] = None
    thrust: int = 0
    fire_control: int = 0
    pilot_skill: int = 0
    sensor_dm: int = 0
    turrets: list[Turret] = field(default_factory=list)
    missiles: int = 0
    sandcasters: int = 0
    faction: str = "player"
    systems: Optional[dict[str, SystemStatus]] = None

    # Per-round flags
    evasive: bool = False
    pd_attempts: int = 0
    sandcaster_active: bool = False
    thrust_boost: int = 0

    destroyed: bool = False

    # Crew and station state
    crew: dict[str, int] = field(default_factory=dict)  # skill -> level
    sensors: int = 0
    stealth: int = 0
    ecm: Optional[int] = None
    eccm: Optional[int] = None
    sensor_emission: Optional[str] = None  # "active" or "passive"
    ecm_active: bool = False
    jamming_strength: int = 0
    eccm_active: bool = False
    eccm_strength: int = 0
    jammed: bool = False
    target_locks: list[str] = field(default_factory=list)
    locked_by_enemy: bool = False
    attempting_escape: bool = False
    focus_target: Optional[str] = None

    @property
    def effective_thrust(self) -> int:
        """Thrust including any engineering boost this round."""
        return self.thrust + self.thrust_boost

    @property
    def is_alive(self) -> bool:
        return not self.destroyed

    def ref(self) -> dict:
        """Short identity used in event payloads."""
        return {"id": self.id, "name": self.name}

    def system(self, name: str) -> Optional[SystemStatus]:
        """Damage tracker for a system, or None if not tracked."""
        if not self.systems:
            return None
        return self.systems.get(name)

    def is_system_disabled(self, name: str) -> bool:
        """Check if a tracked system has been knocked out."""
        status = self.system(name)
        return status is not None and status.disabled

    def hull_fraction(self) -> float:
        """Remaining hull as a fraction of maximum."""
        max_hull = self.max_hull or self.hull
        if not max_hull:
            return 0.0
        return self.hull / max_hull

    def get_status(self) -> dict:
        """Get overall ship status for display."""
        return {
            "id": self.id,
            "name": self.name,
            "faction": self.faction,
            "hull": self.hull,
            "max_hull": self.max_hull,
            "power": self.power,
            "max_power": self.max_power,
            "destroyed": self.destroyed,
            "evasive": self.evasive,
            "missiles": self.missiles,
            "sandcasters": self.sandcasters,
            "disabled_systems": [
                name for name, status in (self.systems or {}).items()
                if status.disabled
            ],
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "faction": self.faction,
            "hull": self.hull,
            "max_hull": self.max_hull,
            "armour": self.armour,
            "power": self.power,
            "max_power": self.max_power,
            "thrust": self.thrust,
            "fire_control": self.fire_control,
            "pilot_skill": self.pilot_skill,
            "sensor_dm": self.sensor_dm,
            "turrets": [t.to_dict() for t in self.turrets],
            "missiles": self.missiles,
            "sandcasters": self.sandcasters,
            "systems": (
                {name: s.to_dict() for name, s in self.systems.items()}
                if self.systems is not None else None
            ),
            "destroyed": self.destroyed,
            "crew": dict(self.crew),
            "sensors": self.sensors,
            "stealth": self.stealth,
            "ecm": self.ecm,
            "eccm": self.eccm,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Ship":
        """Create from a roster dictionary."""
        systems_data = data.get("systems")
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            faction=data.get("faction", "player"),
            hull=data["hull"],
            max_hull=data.get("max_hull"),
            armour=data.get("armour", 0),
            power=data.get("power"),
            max_power=data.get("max_power"),
            thrust=data.get("thrust", 0),
            fire_control=data.get("fire_control", 0),
            pilot_skill=data.get("pilot_skill", 0),
            sensor_dm=data.get("sensor_dm", 0),
            turrets=[Turret.from_dict(t) for t in data.get("turrets", [])],
            missiles=data.get("missiles", 0),
            sandcasters=data.get("sandcasters", 0),
            systems=(
                {name: SystemStatus.from_dict(s) for name, s in systems_data.items()}
                if systems_data is not None else None
            ),
            destroyed=data.get("destroyed", False),
            crew=dict(data.get("crew", {})),
            sensors=data.get("sensors", 0),
            stealth=data.get("stealth", 0),
            ecm=data.get("ecm"),
            eccm=data.get("eccm"),
        )
