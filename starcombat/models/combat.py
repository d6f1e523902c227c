"""Combat data models: events, rolls and resolution results."""

from dataclasses import dataclass, field
from typing import Any, Optional


# ===== Dice =====

@dataclass(frozen=True)
class RollResult:
    """Result of rolling one or more d6."""
    dice: tuple[int, ...]
    total: int

    @classmethod
    def of(cls, *dice: int) -> "RollResult":
        """Build a result from individual die faces."""
        return cls(dice=tuple(dice), total=sum(dice))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"dice": list(self.dice), "total": self.total}


# ===== Events =====

@dataclass(frozen=True)
class CombatEvent:
    """Immutable record of something the engine announced.

    Created only by EventBus.publish. ``id`` is a per-bus monotonic counter.
    """
    id: int
    type: str
    data: Any
    timestamp: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data,
            "timestamp": self.timestamp,
        }


# ===== Resolution results =====

@dataclass
class PointDefenseResult:
    """Outcome of a defender's attempt to shoot down an incoming missile."""
    success: bool
    roll: RollResult
    total: int
    penalty: int
    gunner_skill: int
    target_number: int = 8

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "roll": self.roll.to_dict(),
            "total": self.total,
            "target_number": self.target_number,
            "penalty": self.penalty,
            "gunner_skill": self.gunner_skill,
        }


@dataclass
class AttackResult:
    """Result of CombatEngine.resolve_attack.

    A failed precondition (no weapon) comes back as ``success=False`` with a
    ``reason`` and nothing else filled in.
    """
    success: bool
    reason: Optional[str] = None
    hit: bool = False
    attacker: Optional[dict] = None
    defender: Optional[dict] = None
    weapon: Optional[str] = None
    roll: Optional[RollResult] = None
    total_dm: int = 0
    total: int = 0
    effect: int = 0
    damage: int = 0
    power_drain: int = 0
    system_damage: Optional[dict] = None
    destroyed: bool = False
    point_defense: Optional[PointDefenseResult] = None
    modifiers: dict[str, int] = field(default_factory=dict)
    ion_duration: Optional[int] = None
    called_shot: Optional[str] = None

    @property
    def intercepted(self) -> bool:
        """Whether point defense stopped this attack."""
        return self.point_defense is not None and self.point_defense.success

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        if not self.success:
            return {"success": False, "reason": self.reason}
        result = {
            "success": True,
            "hit": self.hit,
            "attacker": self.attacker,
            "defender": self.defender,
            "weapon": self.weapon,
            "roll": self.roll.to_dict() if self.roll else None,
            "total_dm": self.total_dm,
            "total": self.total,
            "effect": self.effect,
            "damage": self.damage,
            "power_drain": self.power_drain,
            "system_damage": self.system_damage,
            "destroyed": self.destroyed,
            "point_defense": self.point_defense.to_dict() if self.point_defense else None,
            "modifiers": dict(self.modifiers),
        }
        if self.ion_duration is not None:
            result["ion_duration"] = self.ion_duration
        if self.called_shot is not None:
            result["called_shot"] = self.called_shot
        return result


@dataclass
class SkillCheckResult:
    """Result of a 2d6 + skill + DMs check against a difficulty."""
    success: bool
    roll: int
    skill_level: int
    total_dm: int
    total: int
    difficulty: int
    effect: int
    modifiers: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "roll": self.roll,
            "skill_level": self.skill_level,
            "modifiers": list(self.modifiers),
            "total_dm": self.total_dm,
            "total": self.total,
            "difficulty": self.difficulty,
            "effect": self.effect,
        }


@dataclass
class CombatStats:
    """Running totals for end-of-combat reporting. Never read by the rules."""
    attacks: int = 0
    hits: int = 0
    misses: int = 0
    damage_dealt: int = 0
    point_defense_attempts: int = 0
    point_defense_successes: int = 0
    missiles_launched: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "attacks": self.attacks,
            "hits": self.hits,
            "misses": self.misses,
            "damage_dealt": self.damage_dealt,
            "point_defense_attempts": self.point_defense_attempts,
            "point_defense_successes": self.point_defense_successes,
            "missiles_launched": self.missiles_launched,
        }


# ===== Sensors =====

@dataclass
class Contact:
    """Something the sensors station can try to detect."""
    id: str
    name: str
    type: str = "ship"
    range: str = "Medium"
    bearing: Optional[int] = None
    stealth: int = 0
    hostile: bool = True
    destroyed: bool = False
