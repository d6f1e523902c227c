"""Data models for the starship combat engine."""

from .enums import (
    Faction,
    Phase,
    RangeBand,
    EventType,
    Role,
    ControlMode,
    Speed,
    FightMode,
)
from .starship import Ship, Turret, SystemStatus, create_default_systems
from .combat import (
    RollResult,
    CombatEvent,
    AttackResult,
    PointDefenseResult,
    SkillCheckResult,
    CombatStats,
    Contact,
)

__all__ = [
    "Faction",
    "Phase",
    "RangeBand",
    "EventType",
    "Role",
    "ControlMode",
    "Speed",
    "FightMode",
    "Ship",
    "Turret",
    "SystemStatus",
    "create_default_systems",
    "RollResult",
    "CombatEvent",
    "AttackResult",
    "PointDefenseResult",
    "SkillCheckResult",
    "CombatStats",
    "Contact",
]
