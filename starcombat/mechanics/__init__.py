"""Game mechanics for the starship combat engine."""

from .dice import Dice, roll_1d6, roll_2d6, roll_nd6, check, uniform_from
from .event_bus import EventBus
from .combat_engine import CombatEngine, COMBAT_PHASES, RANGE_DMS, WEAPON_DAMAGE, WEAPON_ATTACK_DMS
from .called_shot import (
    CalledShotContext,
    can_use_called_shot,
    get_called_shot_penalty,
    select_called_shot_target,
)

__all__ = [
    "Dice",
    "roll_1d6",
    "roll_2d6",
    "roll_nd6",
    "check",
    "uniform_from",
    "EventBus",
    "CombatEngine",
    "COMBAT_PHASES",
    "RANGE_DMS",
    "WEAPON_DAMAGE",
    "WEAPON_ATTACK_DMS",
    "CalledShotContext",
    "can_use_called_shot",
    "get_called_shot_penalty",
    "select_called_shot_target",
]
