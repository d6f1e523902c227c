"""Control-mode and turn-gating policy.

Pure functions used by whatever drives the combat (TUI, web, scripts) to
decide whether to stop and ask a human before a station acts, how long to
pause between automated steps, and when an automated fleet should run.
"""

from typing import Union

from starcombat.models.enums import ControlMode, FightMode, Role, Speed

ALL_ROLES = "ALL"

CONTROL_MODES: tuple[str, ...] = tuple(m.value for m in ControlMode)

# Selectable spotlight roles, ALL first
ROLES: tuple[str, ...] = (
    ALL_ROLES,
    Role.CAPTAIN.value,
    Role.PILOT.value,
    Role.GUNNER.value,
    Role.ENGINEER.value,
    Role.SENSORS.value,
    Role.MARINES.value,
)

# Slowest first; "up" moves towards INSTANT
SPEEDS: tuple[str, ...] = (
    Speed.SLOW.value,
    Speed.NORMAL.value,
    Speed.FAST.value,
    Speed.INSTANT.value,
)

FIGHT_MODES: tuple[str, ...] = tuple(m.value for m in FightMode)

# NORMAL fight mode tries to escape at or below this fraction of max hull
ESCAPE_HULL_THRESHOLD = 0.75

ModeLike = Union[str, ControlMode]


def _value(item) -> str:
    return getattr(item, "value", item)


def _cycle(options: tuple[str, ...], current, direction: str, default: str) -> str:
    current = _value(current)
    if current not in options:
        return default
    step = -1 if direction in ("back", "backward", "prev", "previous") else 1
    return options[(options.index(current) + step) % len(options)]


# ===== Control mode =====

def cycle_control_mode(mode: ModeLike, direction: str = "forward") -> str:
    """AUTO -> CAPTAIN -> ROLE -> AUTO (reversed for "back"). Invalid modes reset to AUTO."""
    return _cycle(CONTROL_MODES, mode, direction, ControlMode.AUTO.value)


def can_select_role(mode: ModeLike) -> bool:
    """The role spotlight only matters in ROLE mode."""
    return _value(mode) == ControlMode.ROLE.value


def cycle_role(active_role: str, direction: str = "forward") -> str:
    """Step through ALL and the crew roles. Unknown roles reset to ALL."""
    return _cycle(ROLES, active_role, direction, ALL_ROLES)


def needs_player_input(
    mode: ModeLike,
    role: str,
    action: str = "",
    active_role: str = ALL_ROLES,
) -> bool:
    """
    Decide whether a station's action should wait for the human.

    Args:
        mode: Current control mode
        role: Station about to act
        action: Action about to be taken (not used by the current rules)
        active_role: Spotlighted role in ROLE mode; ALL prompts everyone

    Returns:
        True if the caller should prompt before acting
    """
    mode = _value(mode)
    role = _value(role)
    if mode == ControlMode.CAPTAIN.value:
        return role == Role.CAPTAIN.value
    if mode == ControlMode.ROLE.value:
        active_role = _value(active_role) or ALL_ROLES
        return active_role == ALL_ROLES or active_role == role
    return False


# ===== Speed =====

def get_speed_ms(speed) -> int:
    """Delay for a speed setting. Unknown speeds use NORMAL."""
    try:
        return Speed(_value(speed)).delay_ms
    except ValueError:
        return Speed.NORMAL.delay_ms


def cycle_speed(speed, direction: str = "up") -> str:
    """Move one step faster ("up") or slower ("down"), stopping at the ends."""
    speed = _value(speed)
    if speed not in SPEEDS:
        return Speed.NORMAL.value
    index = SPEEDS.index(speed) + (1 if direction == "up" else -1)
    return SPEEDS[max(0, min(index, len(SPEEDS) - 1))]


# ===== Fight mode =====

def cycle_fight_mode(mode, direction: str = "forward") -> str:
    """Toggle between NORMAL and FIGHT_TO_END. Invalid modes reset to NORMAL."""
    return _cycle(FIGHT_MODES, mode, direction, FightMode.NORMAL.value)


def check_escape_condition(mode, hull: int, max_hull: int) -> bool:
    """Whether an automated ship in this fight mode should try to escape."""
    if _value(mode) == FightMode.FIGHT_TO_END.value:
        return False
    if not max_hull:
        return False
    return hull <= max_hull * ESCAPE_HULL_THRESHOLD
