"""Called-shot targeting policy for automated gunners.

Called shots are finishing blows: they are only considered once the
defender's hull is below half, and never with weapons that have no physical
impact point (ion drains power, sandcasters are defensive).
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from starcombat.models.starship import ION_WEAPONS

# Attack DM for aiming at each system
CALLED_SHOT_PENALTIES: dict[str, int] = {
    "jDrive": -4,
    "powerPlant": -4,
    "mDrive": -2,
    "sensors": -2,
    "bridge": -6,  # Hardened
    "fuel": -2,
    "cargo": -1,
    "turret": -2,
}
DEFAULT_CALLED_SHOT_PENALTY = -2

CALLED_SHOT_EXCLUDED_WEAPONS = ("sandcaster",) + ION_WEAPONS

# Thresholds, as fractions of the defender's maximum
CALLED_SHOT_HULL_THRESHOLD = 0.5
LOW_POWER_THRESHOLD = 0.3
SENSORS_SHOT_CHANCE = 0.1


@dataclass
class CalledShotContext:
    """What the gunner knows about the target when choosing a system."""
    defender_hull: int
    defender_max_hull: int
    weapon_type: Optional[str] = None
    defender_power: Optional[int] = None
    defender_max_power: Optional[int] = None
    defender_attempting_escape: bool = False
    defender_systems: dict = field(default_factory=dict)

    @classmethod
    def for_ship(cls, defender, weapon_type: Optional[str] = None) -> "CalledShotContext":
        """Build a context from a live Ship."""
        return cls(
            defender_hull=defender.hull,
            defender_max_hull=defender.max_hull or defender.hull,
            weapon_type=weapon_type,
            defender_power=defender.power,
            defender_max_power=defender.max_power,
            defender_attempting_escape=defender.attempting_escape,
            defender_systems=dict(defender.systems or {}),
        )


def _escaping(ctx: CalledShotContext) -> bool:
    return ctx.defender_attempting_escape


def _low_power(ctx: CalledShotContext) -> bool:
    if ctx.defender_power is None or not ctx.defender_max_power:
        return False
    return ctx.defender_power < ctx.defender_max_power * LOW_POWER_THRESHOLD


def _always(ctx: CalledShotContext) -> bool:
    return True


@dataclass(frozen=True)
class PriorityRule:
    system: str
    condition: Callable[[CalledShotContext], bool]
    chance: float = 1.0  # Probability the rule fires once its condition holds


# Evaluated in order; first rule whose system is intact wins.
CALLED_SHOT_PRIORITY: tuple[PriorityRule, ...] = (
    PriorityRule("jDrive", _escaping),
    PriorityRule("powerPlant", _low_power),
    PriorityRule("mDrive", _always),
    PriorityRule("sensors", _always, chance=SENSORS_SHOT_CHANCE),
)


def can_use_called_shot(weapon_type: Optional[str]) -> bool:
    """Whether a weapon can aim at a specific system. Unknown weapons can."""
    if not weapon_type:
        return True
    return weapon_type not in CALLED_SHOT_EXCLUDED_WEAPONS


def get_called_shot_penalty(system: Optional[str]) -> int:
    """Attack DM for a called shot at ``system``; 0 when no system is named."""
    if not system:
        return 0
    return CALLED_SHOT_PENALTIES.get(system, DEFAULT_CALLED_SHOT_PENALTY)


def _system_available(systems: dict, name: str) -> bool:
    status = systems.get(name)
    if status is None:
        return False
    if isinstance(status, dict):
        return not status.get("disabled", False)
    return not status.disabled


def select_called_shot_target(
    context: CalledShotContext,
    rng: Callable[[], float] = random.random,
) -> Optional[str]:
    """
    Pick the system an automated gunner should aim at.

    Args:
        context: Defender state and the weapon being fired
        rng: Uniform [0, 1) source for the chance-based rules

    Returns:
        System name, or None to fire at the hull normally
    """
    if not can_use_called_shot(context.weapon_type):
        return None
    if not context.defender_max_hull:
        return None
    if context.defender_hull >= context.defender_max_hull * CALLED_SHOT_HULL_THRESHOLD:
        return None

    for rule in CALLED_SHOT_PRIORITY:
        if not _system_available(context.defender_systems, rule.system):
            continue
        if not rule.condition(context):
            continue
        if rule.chance < 1.0 and rng() >= rule.chance:
            continue
        return rule.system

    return None
