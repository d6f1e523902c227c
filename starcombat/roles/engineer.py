"""Engineering station: drive boosts and emergency power."""

from typing import Optional

from starcombat.models.enums import Role
from starcombat.models.starship import Ship
from starcombat.roles.base import ActionResult, ActionSpec, BaseRoleEngine

ENGINEERING_DIFFICULTY = 8
THRUST_BOOST = 1
EMERGENCY_POWER_BASE = 2


class EngineerEngine(BaseRoleEngine):
    """Engineering station for one ship."""

    def __init__(self, ship: Ship, **kwargs):
        super().__init__(Role.ENGINEER, ship, **kwargs)

    def define_actions(self) -> dict[str, ActionSpec]:
        actions = super().define_actions()
        actions.update({
            "monitor": ActionSpec(
                label="Monitor systems",
                description="Report power and system damage",
                is_default=True,
                execute=self.monitor,
            ),
            "boost_thrust": ActionSpec(
                label="Boost thrust (+1)",
                description="Engineer check to push the M-Drive until next round",
                can_execute=self.can_boost_thrust,
                disabled_reason=self.get_boost_disabled_reason,
                execute=self.boost_thrust,
            ),
            "emergency_power": ActionSpec(
                label="Emergency power",
                description="Engineer check to restore power from the plant",
                can_execute=self.can_emergency_power,
                disabled_reason=self.get_power_disabled_reason,
                execute=self.emergency_power,
            ),
        })
        return actions

    # ===== Action implementations =====

    def monitor(self, params: dict) -> ActionResult:
        result = ActionResult(True, action="monitor")
        result.data.update({
            "power": self.ship.power,
            "max_power": self.ship.max_power,
            "systems": {
                name: status.to_dict()
                for name, status in (self.ship.systems or {}).items()
            },
        })
        return result

    def boost_thrust(self, params: dict) -> ActionResult:
        check = self.perform_skill_check("engineer", ENGINEERING_DIFFICULTY)

        result = ActionResult(True, action="boost_thrust")
        result.check = check
        if check.success:
            self.combat_engine.boost_thrust(self.ship, THRUST_BOOST)
        result.data.update({
            "boosted": check.success,
            "thrust": self.ship.effective_thrust,
        })
        return result

    def emergency_power(self, params: dict) -> ActionResult:
        check = self.perform_skill_check("engineer", ENGINEERING_DIFFICULTY)

        result = ActionResult(True, action="emergency_power")
        result.check = check
        if not check.success:
            result.data["restored"] = 0
            return result

        outcome = self.combat_engine.restore_power(self.ship, EMERGENCY_POWER_BASE + check.effect)
        result.data.update({
            "restored": outcome.get("restored", 0),
            "power": self.ship.power,
        })
        return result

    # ===== Availability checks =====

    def can_boost_thrust(self) -> bool:
        return self.get_boost_disabled_reason() is None

    def get_boost_disabled_reason(self) -> Optional[str]:
        if self.combat_engine is None:
            return "No combat in progress"
        if self.ship.is_system_disabled("mDrive"):
            return "M-Drive disabled"
        if self.ship.thrust_boost >= THRUST_BOOST:
            return "Thrust already boosted this round"
        return None

    def can_emergency_power(self) -> bool:
        return self.get_power_disabled_reason() is None

    def get_power_disabled_reason(self) -> Optional[str]:
        if self.combat_engine is None:
            return "No combat in progress"
        if self.ship.is_system_disabled("powerPlant"):
            return "Power plant disabled"
        if self.ship.max_power is not None and (self.ship.power or 0) >= self.ship.max_power:
            return "Power at maximum"
        return None
