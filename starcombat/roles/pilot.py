"""Pilot station: range changes and evasive manoeuvring."""

from typing import Optional

from starcombat.models.enums import RangeBand, Role
from starcombat.models.starship import Ship
from starcombat.roles.base import ActionResult, ActionSpec, BaseRoleEngine

MANOEUVRE_DIFFICULTY = 8


class PilotEngine(BaseRoleEngine):
    """Helm station for one ship. Range changes need a combat engine."""

    def __init__(self, ship: Ship, **kwargs):
        super().__init__(Role.PILOT, ship, **kwargs)

    def define_actions(self) -> dict[str, ActionSpec]:
        actions = super().define_actions()
        actions.update({
            "maintain_range": ActionSpec(
                label="Maintain range",
                description="Hold the current distance to the enemy",
                is_default=True,
                execute=self.maintain_range,
            ),
            "close_range": ActionSpec(
                label="Close range",
                description="Pilot check to move one range band closer",
                can_execute=self.can_close_range,
                disabled_reason=lambda: self.get_range_disabled_reason(closing=True),
                execute=self.close_range,
            ),
            "open_range": ActionSpec(
                label="Open range",
                description="Pilot check to move one range band further out",
                can_execute=self.can_open_range,
                disabled_reason=lambda: self.get_range_disabled_reason(closing=False),
                execute=self.open_range,
            ),
            "evasive": ActionSpec(
                label="Evasive maneuvers",
                description="Spend thrust to make the ship harder to hit",
                can_execute=self.can_evade,
                disabled_reason=self.get_evasive_disabled_reason,
                execute=self.evasive,
            ),
            "hold_course": ActionSpec(
                label="Hold course",
                description="Stop evasive manoeuvring",
                can_execute=lambda: self.combat_engine is not None,
                disabled_reason="No combat in progress",
                execute=self.hold_course,
            ),
        })
        return actions

    # ===== Action implementations =====

    def maintain_range(self, params: dict) -> ActionResult:
        result = ActionResult(True, action="maintain_range")
        result.data["range"] = getattr(self.combat, "range", None)
        return result

    def close_range(self, params: dict) -> ActionResult:
        return self._change_range(-1, "close_range")

    def open_range(self, params: dict) -> ActionResult:
        return self._change_range(1, "open_range")

    def _change_range(self, steps: int, action: str) -> ActionResult:
        """Pilot check (DM +thrust/2); on success shift the range one band."""
        thrust_dm = self.ship.effective_thrust // 2
        check = self.perform_skill_check(
            "pilot",
            MANOEUVRE_DIFFICULTY,
            [{"name": "thrust", "value": thrust_dm}],
        )

        result = ActionResult(True, action=action)
        result.check = check
        if not check.success:
            result.data.update({"moved": False, "range": self.combat_engine.range})
            return result

        shift = self.combat_engine.shift_range(steps)
        result.data.update({
            "moved": shift["success"],
            "range": self.combat_engine.range,
            "previous": shift.get("previous"),
        })
        return result

    def evasive(self, params: dict) -> ActionResult:
        self.combat_engine.set_evasive(self.ship, True)
        result = ActionResult(True, action="evasive")
        result.data["penalty"] = self.ship.effective_thrust
        return result

    def hold_course(self, params: dict) -> ActionResult:
        if self.ship.evasive:
            self.combat_engine.set_evasive(self.ship, False)
        result = ActionResult(True, action="hold_course")
        result.data["evasive"] = False
        return result

    # ===== Availability checks =====

    def drive_disabled(self) -> bool:
        return self.ship.is_system_disabled("mDrive")

    def _can_move(self, closing: bool) -> bool:
        return self.get_range_disabled_reason(closing) is None

    def can_close_range(self) -> bool:
        return self._can_move(closing=True)

    def can_open_range(self) -> bool:
        return self._can_move(closing=False)

    def get_range_disabled_reason(self, closing: bool) -> Optional[str]:
        if self.combat_engine is None:
            return "No combat in progress"
        if self.drive_disabled():
            return "M-Drive disabled"
        bands = list(RangeBand)
        current = RangeBand.lookup(self.combat_engine.range)
        edge = bands[0] if closing else bands[-1]
        if current == edge:
            return f"Already at {edge.value} range"
        return None

    def can_evade(self) -> bool:
        return self.get_evasive_disabled_reason() is None

    def get_evasive_disabled_reason(self) -> Optional[str]:
        if self.combat_engine is None:
            return "No combat in progress"
        if self.drive_disabled():
            return "M-Drive disabled"
        if self.ship.effective_thrust <= 0:
            return "No thrust available"
        if self.ship.evasive:
            return "Already evasive"
        return None
