"""
Shared action pattern for crew stations.

Each station declares its actions as data (:class:`ActionSpec` records keyed
by action id). One generic executor, :func:`execute_action`, checks
availability, runs the action and publishes ``"<role>:<action_id>"`` so every
station is observable the same way. Stations decide what is legal; the
CombatEngine decides what happens.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from starcombat.mechanics.dice import DEFAULT_DICE, DiceSource
from starcombat.mechanics.event_bus import EventBus
from starcombat.models.combat import AttackResult, SkillCheckResult
from starcombat.models.enums import Role
from starcombat.models.starship import Ship

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = 8

ReasonLike = Union[str, Callable[[], Optional[str]], None]


class ActionResult:
    """Result of executing a station action."""

    def __init__(self, success: bool, action: Optional[str] = None, error: Optional[str] = None):
        self.success = success
        self.action = action
        self.error = error
        self.check: Optional[SkillCheckResult] = None
        self.attack: Optional[AttackResult] = None
        self.data: dict[str, Any] = {}

    @classmethod
    def failure(cls, error: str, action: Optional[str] = None) -> "ActionResult":
        """An illegal or impossible action. Nothing was changed."""
        return cls(False, action=action, error=error)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up an action-specific value."""
        return self.data.get(key, default)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {"success": self.success}
        if self.action:
            result["action"] = self.action
        if self.error:
            result["error"] = self.error
        if self.check:
            result["check"] = self.check.to_dict()
        if self.attack:
            result["attack"] = self.attack.to_dict()
        result.update(self.data)
        return result

    def __repr__(self) -> str:
        return f"ActionResult({self.to_dict()!r})"


@dataclass(frozen=True)
class ActionSpec:
    """Declaration of one station action."""
    label: str
    description: str
    execute: Callable[[dict], ActionResult]
    is_default: bool = False
    # None means always available
    can_execute: Optional[Callable[[], bool]] = None
    # String, or a callable evaluated at query time
    disabled_reason: ReasonLike = None

    def is_available(self) -> bool:
        return self.can_execute is None or bool(self.can_execute())

    def reason(self) -> Optional[str]:
        """Why the action is unavailable right now, if it is."""
        if self.is_available():
            return None
        if callable(self.disabled_reason):
            return self.disabled_reason()
        return self.disabled_reason


def execute_action(
    actions: Mapping[str, ActionSpec],
    role: str,
    ship: Ship,
    event_bus: EventBus,
    action_id: str,
    params: Optional[dict] = None,
) -> ActionResult:
    """
    Run a declared action and announce it.

    Unknown or unavailable actions return a failure result without side
    effects. Successful dispatch publishes ``"<role>:<action_id>"`` with
    {role, action, ship, params, result}.
    """
    params = dict(params or {})
    action_spec = actions.get(action_id)
    if action_spec is None:
        return ActionResult.failure(f"Unknown action: {action_id}", action=action_id)

    if not action_spec.is_available():
        reason = action_spec.reason() or "Action not available"
        return ActionResult.failure(reason, action=action_id)

    result = action_spec.execute(params)

    event_bus.publish(f"{role}:{action_id}", {
        "role": role,
        "action": action_id,
        "ship": ship.ref(),
        "params": params,
        "result": result.to_dict(),
    })
    return result


class BaseRoleEngine:
    """Common behaviour for every crew station.

    Subclasses override :meth:`define_actions` and extend the base map, which
    always includes ``skip``.
    """

    def __init__(
        self,
        role: Union[str, Role],
        ship: Ship,
        event_bus: Optional[EventBus] = None,
        combat_engine=None,
        combat=None,
        rng: Optional[DiceSource] = None,
    ):
        """
        Args:
            role: Station identifier (captain, pilot, gunner, ...)
            ship: Ship this station crews
            event_bus: Shared bus; defaults to the combat engine's, then a new bus
            combat_engine: CombatEngine to delegate resolution to
            combat: Combat state for phase/round lookups; defaults to the engine
            rng: Dice source; defaults to the engine's, then the module default
        """
        if ship is None:
            raise ValueError(f"{type(self).__name__} requires a ship")
        self.role = getattr(role, "value", role)
        self.ship = ship
        self.combat_engine = combat_engine
        self.combat = combat if combat is not None else combat_engine
        if event_bus is None:
            event_bus = combat_engine.event_bus if combat_engine is not None else EventBus()
        self.event_bus = event_bus
        if rng is None:
            rng = combat_engine.rng if combat_engine is not None else DEFAULT_DICE
        self.rng = rng

        self.actions: Mapping[str, ActionSpec] = MappingProxyType(self.define_actions())

    def define_actions(self) -> dict[str, ActionSpec]:
        """Override in subclasses to add station actions."""
        return {
            "skip": ActionSpec(
                label="Skip",
                description="Take no action this phase",
                execute=self._skip,
            ),
        }

    def _skip(self, params: dict) -> ActionResult:
        result = ActionResult(True, action="skip")
        result.data["skipped"] = True
        return result

    # ===== Execution =====

    def execute(self, action_id: str, params: Optional[dict] = None) -> ActionResult:
        """Execute an action by id."""
        result = execute_action(self.actions, self.role, self.ship, self.event_bus, action_id, params)
        if not result.success and result.error:
            logger.debug("%s:%s refused: %s", self.role, action_id, result.error)
        return result

    def get_available_actions(self) -> list[dict]:
        """Actions that can be executed right now."""
        return [
            {
                "id": action_id,
                "label": action_spec.label,
                "description": action_spec.description,
                "is_default": action_spec.is_default,
            }
            for action_id, action_spec in self.actions.items()
            if action_spec.is_available()
        ]

    def get_all_actions(self) -> list[dict]:
        """Every declared action with its current availability."""
        actions = []
        for action_id, action_spec in self.actions.items():
            available = action_spec.is_available()
            actions.append({
                "id": action_id,
                "label": action_spec.label,
                "description": action_spec.description,
                "is_default": action_spec.is_default,
                "available": available,
                "disabled_reason": None if available else action_spec.reason(),
            })
        return actions

    def get_default_action(self) -> Optional[dict]:
        defaults = [a for a in self.get_available_actions() if a["is_default"]]
        return defaults[0] if defaults else None

    # ===== Skill checks =====

    def perform_skill_check(
        self,
        skill: str,
        difficulty: int = DEFAULT_DIFFICULTY,
        modifiers: Sequence[dict] = (),
    ) -> SkillCheckResult:
        """
        Roll 2d6 + skill + modifiers against a difficulty.

        Args:
            skill: Skill name (pilot, gunnery, electronics, ...) or "primary"
            difficulty: Target number
            modifiers: Entries of {"name": str, "value": int}

        Returns:
            SkillCheckResult; effect is total - difficulty and may be negative
        """
        roll = self.rng.roll_2d6().total
        skill_level = self.get_skill_level(skill)
        total_dm = sum(m.get("value", 0) for m in modifiers)
        total = roll + skill_level + total_dm
        return SkillCheckResult(
            success=total >= difficulty,
            roll=roll,
            skill_level=skill_level,
            modifiers=list(modifiers),
            total_dm=total_dm,
            total=total,
            difficulty=difficulty,
            effect=total - difficulty,
        )

    def get_skill_level(self, skill: str) -> int:
        """
        Crew skill level for this ship.

        "primary" (or the station's own name, e.g. "gunner") resolves
        through the station's main skill. Untrained skills are 0.
        """
        if skill in self.ship.crew:
            return self.ship.crew[skill]
        if skill in ("primary", self.role):
            try:
                alias = Role(self.role).primary_skill
            except ValueError:
                return 0
            if alias != skill:
                return self.get_skill_level(alias)
        return 0

    # ===== Events / state =====

    def subscribe(self, event_type, handler):
        return self.event_bus.subscribe(event_type, handler)

    def get_state(self) -> dict:
        """Snapshot for renderers."""
        return {
            "role": self.role,
            "ship_id": self.ship.id,
            "ship_name": self.ship.name,
            "available_actions": self.get_available_actions(),
            "phase": getattr(self.combat, "phase", None),
            "round": getattr(self.combat, "round", None),
        }
