"""
Sensors station: detection, electronic warfare and target locks.

Scans roll Electronics; on success the effect plus the ship's sensor DM is
the scan power. A contact is fully identified when scan power reaches its
stealth plus the range DM below, and partially (bearing withheld) within
two of that.
"""

from typing import Optional

from starcombat.models.combat import Contact
from starcombat.models.enums import RangeBand, Role
from starcombat.models.starship import Ship
from starcombat.roles.base import ActionResult, ActionSpec, BaseRoleEngine

# Detection difficulty by range band
SENSOR_RANGE_DMS: dict[str, int] = {
    RangeBand.ADJACENT.value: -2,
    RangeBand.CLOSE.value: -1,
    RangeBand.SHORT.value: 0,
    RangeBand.MEDIUM.value: 1,
    RangeBand.LONG.value: 2,
    RangeBand.VERY_LONG.value: 3,
    RangeBand.DISTANT.value: 4,
}

ACTIVE_SCAN_DIFFICULTY = 8
PASSIVE_SCAN_DIFFICULTY = 10
PASSIVE_SCAN_PENALTY = 2
BREAK_LOCK_DIFFICULTY = 10
PARTIAL_DETECTION_MARGIN = 2


def get_sensor_range_dm(range: Optional[str]) -> int:
    band = RangeBand.lookup(range)
    return SENSOR_RANGE_DMS[band.value] if band else 0


class SensorsEngine(BaseRoleEngine):
    """Sensor and electronic warfare station for one ship."""

    def __init__(self, ship: Ship, **kwargs):
        super().__init__(Role.SENSORS, ship, **kwargs)

    def define_actions(self) -> dict[str, ActionSpec]:
        actions = super().define_actions()
        actions.update({
            "active_scan": ActionSpec(
                label="Active scan",
                description="Full sensor sweep - reveals contacts but reveals your position",
                is_default=True,
                can_execute=self.can_active_scan,
                disabled_reason="Sensors are disabled",
                execute=self.active_scan,
            ),
            "passive_scan": ActionSpec(
                label="Passive scan",
                description="Quiet listening - less effective but stealthy",
                execute=self.passive_scan,
            ),
            "ecm": ActionSpec(
                label="ECM jamming",
                description="Electronic countermeasures - disrupt enemy sensors and missiles",
                can_execute=self.can_ecm,
                disabled_reason="No ECM capability",
                execute=self.ecm,
            ),
            "eccm": ActionSpec(
                label="ECCM",
                description="Counter-countermeasures - protect against enemy jamming",
                can_execute=self.can_eccm,
                disabled_reason="No ECCM capability",
                execute=self.eccm,
            ),
            "target_lock": ActionSpec(
                label="Lock target",
                description="Establish targeting lock on a contact (grants Boon to attacks)",
                can_execute=self.can_lock_target,
                disabled_reason="No valid targets",
                execute=self.lock_target,
            ),
            "break_lock": ActionSpec(
                label="Break lock",
                description="Attempt to break an enemy targeting lock on us",
                can_execute=self.has_enemy_lock,
                disabled_reason="No enemy lock to break",
                execute=self.break_lock,
            ),
        })
        return actions

    # ===== Action implementations =====

    def active_scan(self, params: dict) -> ActionResult:
        """Sweep for contacts. Always reveals our own emissions."""
        check = self.perform_skill_check("electronics", ACTIVE_SCAN_DIFFICULTY)
        self.ship.sensor_emission = "active"

        result = ActionResult(True, action="active_scan")
        result.check = check
        if not check.success:
            result.data["detected"] = []
            return result

        scan_power = check.effect + self.get_sensor_dm()
        result.data["scan_power"] = scan_power
        result.data["detected"] = self.detect_contacts(scan_power, self.get_contacts(params))
        return result

    def passive_scan(self, params: dict) -> ActionResult:
        """Harder, weaker scan that leaves no emissions."""
        check = self.perform_skill_check("electronics", PASSIVE_SCAN_DIFFICULTY)
        self.ship.sensor_emission = "passive"

        result = ActionResult(True, action="passive_scan")
        result.check = check
        if not check.success:
            result.data["detected"] = []
            return result

        scan_power = max(0, check.effect + self.get_sensor_dm() - PASSIVE_SCAN_PENALTY)
        result.data.update({
            "scan_power": scan_power,
            "detected": self.detect_contacts(scan_power, self.get_contacts(params)),
            "stealthy": True,
        })
        return result

    def ecm(self, params: dict) -> ActionResult:
        """Jam a target ship (optional) and mark ourselves as jamming."""
        if self.combat_engine is None:
            return ActionResult.failure("No combat in progress", action="ecm")
        target = params.get("target")
        check = self.perform_skill_check("electronics")

        result = ActionResult(True, action="ecm")
        result.check = check
        if not check.success:
            result.data["jamming"] = False
            return result

        strength = check.effect + (self.ship.ecm or 0)
        self.combat_engine.apply_jamming(self.ship, strength, target)
        if target is not None:
            result.data["target"] = target.name
        result.data.update({"jamming": True, "jamming_strength": strength})
        return result

    def eccm(self, params: dict) -> ActionResult:
        check = self.perform_skill_check("electronics")

        result = ActionResult(True, action="eccm")
        result.check = check
        if not check.success:
            result.data["protected"] = False
            return result

        strength = check.effect + (self.ship.eccm or 0)
        self.ship.eccm_active = True
        self.ship.eccm_strength = strength
        result.data.update({"protected": True, "protection_strength": strength})
        return result

    def lock_target(self, params: dict) -> ActionResult:
        """Lock onto ``params["target"]`` (a Ship or Contact)."""
        target = params.get("target")
        if target is None:
            return ActionResult.failure("No target specified", action="target_lock")

        check = self.perform_skill_check("electronics")

        result = ActionResult(True, action="target_lock")
        result.check = check
        result.data["target"] = target.name
        if not check.success:
            result.data["locked"] = False
            return result

        if target.id not in self.ship.target_locks:
            self.ship.target_locks.append(target.id)
        result.data.update({"locked": True, "boon": True})
        return result

    def break_lock(self, params: dict) -> ActionResult:
        check = self.perform_skill_check("electronics", BREAK_LOCK_DIFFICULTY)

        result = ActionResult(True, action="break_lock")
        result.check = check
        if check.success:
            self.ship.locked_by_enemy = False
        result.data["broken"] = check.success
        return result

    # ===== Availability checks =====

    def sensors_disabled(self) -> bool:
        return self.ship.is_system_disabled("sensors")

    def can_active_scan(self) -> bool:
        return not self.sensors_disabled()

    def can_ecm(self) -> bool:
        return self.ship.ecm is not None or "ecm" in (self.ship.systems or {})

    def can_eccm(self) -> bool:
        return self.ship.eccm is not None or "eccm" in (self.ship.systems or {})

    def can_lock_target(self) -> bool:
        if self.sensors_disabled():
            return False
        return any(c.hostile and not c.destroyed for c in self.get_contacts())

    def has_enemy_lock(self) -> bool:
        return self.ship.locked_by_enemy

    # ===== Detection =====

    def get_sensor_dm(self) -> int:
        """Half the sensor rating, rounded down."""
        return self.ship.sensors // 2

    def get_contacts(self, params: Optional[dict] = None) -> list[Contact]:
        """
        Contacts to scan: ``params["contacts"]`` if given, then the combat
        state's ``contacts``, then whatever the combat engine can see.
        """
        if params and params.get("contacts") is not None:
            return list(params["contacts"])
        contacts = getattr(self.combat, "contacts", None)
        if contacts is not None:
            return list(contacts)
        if self.combat_engine is not None:
            return self.combat_engine.get_contacts(self.ship)
        return []

    def detect_contacts(self, scan_power: int, contacts: list[Contact]) -> list[dict]:
        """
        Apply scan power to each contact.

        Returns:
            One entry per detected contact with ``detail_level`` "full" or
            "partial"; partial detections hide name, type and bearing.
        """
        detected = []
        for contact in contacts:
            if contact.destroyed:
                continue
            threshold = contact.stealth + get_sensor_range_dm(contact.range)
            if scan_power >= threshold:
                detected.append({
                    "id": contact.id,
                    "name": contact.name,
                    "type": contact.type,
                    "range": contact.range,
                    "bearing": contact.bearing,
                    "detail_level": "full",
                })
            elif scan_power >= threshold - PARTIAL_DETECTION_MARGIN:
                detected.append({
                    "id": contact.id,
                    "name": "Unknown Contact",
                    "type": "unknown",
                    "range": contact.range,
                    "detail_level": "partial",
                })
        return detected
