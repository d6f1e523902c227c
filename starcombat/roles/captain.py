"""Captain station: tactics, target priority and the decision to run."""

from typing import Optional

from starcombat.models.enums import Role
from starcombat.models.starship import Ship
from starcombat.roles.base import ActionResult, ActionSpec, BaseRoleEngine

TACTICS_DIFFICULTY = 8


class CaptainEngine(BaseRoleEngine):
    """Command station for one ship.

    A successful Tactics check banks its effect as ``tactics_dm``, which is
    spent on the next :meth:`roll_initiative`.
    """

    def __init__(self, ship: Ship, **kwargs):
        super().__init__(Role.CAPTAIN, ship, **kwargs)
        self.tactics_dm = 0

    def define_actions(self) -> dict[str, ActionSpec]:
        actions = super().define_actions()
        actions.update({
            "continue": ActionSpec(
                label="Continue engagement",
                description="Keep fighting under current orders",
                is_default=True,
                execute=self.continue_engagement,
            ),
            "tactics": ActionSpec(
                label="Tactics",
                description="Tactics check; effect adds to next initiative",
                execute=self.tactics,
            ),
            "focus_fire": ActionSpec(
                label="Focus fire on target",
                description="Order all stations to engage one target",
                execute=self.focus_fire,
            ),
            "disengage": ActionSpec(
                label="Disengage/retreat",
                description="Break off and try to escape",
                can_execute=lambda: not self.ship.attempting_escape,
                disabled_reason="Already disengaging",
                execute=self.disengage,
            ),
            "stand_firm": ActionSpec(
                label="Stand firm",
                description="Cancel a retreat order",
                can_execute=lambda: self.ship.attempting_escape,
                disabled_reason="Not disengaging",
                execute=self.stand_firm,
            ),
        })
        return actions

    # ===== Action implementations =====

    def continue_engagement(self, params: dict) -> ActionResult:
        result = ActionResult(True, action="continue")
        result.data["focus_target"] = self.ship.focus_target
        return result

    def tactics(self, params: dict) -> ActionResult:
        check = self.perform_skill_check("tactics", TACTICS_DIFFICULTY)
        self.tactics_dm = check.effect if check.success else 0

        result = ActionResult(True, action="tactics")
        result.check = check
        result.data["tactics_dm"] = self.tactics_dm
        return result

    def focus_fire(self, params: dict) -> ActionResult:
        target = params.get("target")
        if target is None:
            return ActionResult.failure("No target specified", action="focus_fire")
        if getattr(target, "destroyed", False):
            return ActionResult.failure(f"{target.name} is already destroyed", action="focus_fire")

        self.ship.focus_target = target.id
        result = ActionResult(True, action="focus_fire")
        result.data["target"] = target.name
        return result

    def disengage(self, params: dict) -> ActionResult:
        self.ship.attempting_escape = True
        result = ActionResult(True, action="disengage")
        result.data["attempting_escape"] = True
        return result

    def stand_firm(self, params: dict) -> ActionResult:
        self.ship.attempting_escape = False
        result = ActionResult(True, action="stand_firm")
        result.data["attempting_escape"] = False
        return result

    # ===== Initiative =====

    def roll_initiative(self) -> Optional[list[dict]]:
        """Roll initiative through the combat engine, spending banked tactics."""
        if self.combat_engine is None:
            return None
        tactics_dm, self.tactics_dm = self.tactics_dm, 0
        return self.combat_engine.roll_initiative(tactics_dm=tactics_dm)
