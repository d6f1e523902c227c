"""Enumerations for starship combat concepts."""

from enum import Enum
from typing import Optional


class Faction(Enum):
    """Which side of the engagement a ship fights for."""
    PLAYER = "player"
    ENEMY = "enemy"


class Phase(Enum):
    """Combat round phases, in the order they are played."""
    INITIATIVE = "initiative"
    MANOEUVRE = "manoeuvre"
    ATTACK = "attack"
    REACTION = "reaction"
    ACTIONS = "actions"
    DAMAGE = "damage"


class RangeBand(Enum):
    """Distance between ships, closest first."""
    ADJACENT = "Adjacent"
    CLOSE = "Close"
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"
    VERY_LONG = "Very Long"
    DISTANT = "Distant"

    @property
    def attack_dm(self) -> int:
        """Attack roll modifier at this range."""
        return {
            RangeBand.ADJACENT: 0,
            RangeBand.CLOSE: 0,
            RangeBand.SHORT: 1,
            RangeBand.MEDIUM: 0,
            RangeBand.LONG: -2,
            RangeBand.VERY_LONG: -4,
            RangeBand.DISTANT: -6,
        }[self]

    @property
    def is_long(self) -> bool:
        """Whether this band counts as long range (missiles, evasive stance)."""
        return self in {RangeBand.LONG, RangeBand.VERY_LONG, RangeBand.DISTANT}

    @classmethod
    def lookup(cls, name: str) -> Optional["RangeBand"]:
        """Case-insensitive lookup by display name. Returns None if unknown."""
        if isinstance(name, RangeBand):
            return name
        if not name:
            return None
        lowered = str(name).strip().lower()
        for band in cls:
            if band.value.lower() == lowered:
                return band
        return None


class EventType(Enum):
    """Engine event types published on the event bus."""
    # Combat
    ATTACK_RESOLVED = "attack:resolved"
    DAMAGE_APPLIED = "damage:applied"
    SHIP_DESTROYED = "ship:destroyed"
    SYSTEM_DAMAGED = "system:damaged"

    # Phases
    PHASE_CHANGED = "phase:changed"
    ROUND_STARTED = "round:started"
    COMBAT_ENDED = "combat:ended"

    # Initiative
    INITIATIVE_ROLLED = "initiative:rolled"

    # Defense
    POINT_DEFENSE = "pointDefense:fired"
    SANDCASTER = "sandcaster:activated"
    EVASIVE_ACTION = "evasive:applied"

    # Ship operations
    RANGE_CHANGED = "range:changed"
    POWER_ALLOCATED = "power:allocated"
    THRUST_BOOSTED = "thrust:boosted"
    JAMMING_APPLIED = "ecm:jamming"


class Role(Enum):
    """Crew stations that can act during combat."""
    CAPTAIN = "captain"
    PILOT = "pilot"
    GUNNER = "gunner"
    ENGINEER = "engineer"
    SENSORS = "sensors"
    MARINES = "marines"
    DAMAGE_CONTROL = "damage_control"

    @property
    def primary_skill(self) -> str:
        """Skill used when a station rolls its 'primary' skill."""
        return {
            Role.CAPTAIN: "tactics",
            Role.PILOT: "pilot",
            Role.GUNNER: "gunnery",
            Role.ENGINEER: "engineer",
            Role.SENSORS: "electronics",
            Role.MARINES: "gun_combat",
            Role.DAMAGE_CONTROL: "mechanic",
        }[self]


class ControlMode(Enum):
    """How much of the crew the human player drives."""
    AUTO = "AUTO"        # No prompts, everything automated
    CAPTAIN = "CAPTAIN"  # Only the captain's station prompts
    ROLE = "ROLE"        # Prompts filtered by the active role


class Speed(Enum):
    """Pacing delay between automated steps."""
    SLOW = "SLOW"
    NORMAL = "NORMAL"
    FAST = "FAST"
    INSTANT = "INSTANT"

    @property
    def delay_ms(self) -> int:
        """Delay in milliseconds."""
        return {
            Speed.SLOW: 1000,
            Speed.NORMAL: 500,
            Speed.FAST: 250,
            Speed.INSTANT: 0,
        }[self]


class FightMode(Enum):
    """When an automated fleet tries to escape."""
    NORMAL = "NORMAL"              # Escape once hull drops to 75% or below
    FIGHT_TO_END = "FIGHT_TO_END"  # Never escape
