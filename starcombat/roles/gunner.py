"""
Gunner station: weapon selection, missiles, point defense and called shots.

The gunner decides what may fire and at what; with a combat engine attached
all dice and damage are resolved by CombatEngine.resolve_attack.
"""

from typing import Optional

from starcombat.mechanics.called_shot import (
    CalledShotContext,
    can_use_called_shot,
    select_called_shot_target,
)
from starcombat.mechanics.dice import uniform_from
from starcombat.models.enums import Role
from starcombat.models.starship import Ship, Turret
from starcombat.roles.base import ActionResult, ActionSpec, BaseRoleEngine


class GunnerEngine(BaseRoleEngine):
    """Weapons station for one ship."""

    def __init__(self, ship: Ship, **kwargs):
        super().__init__(Role.GUNNER, ship, **kwargs)

    def define_actions(self) -> dict[str, ActionSpec]:
        actions = super().define_actions()
        actions.update({
            "fire_primary": ActionSpec(
                label="Fire primary weapon",
                description="Fire main weapon at target",
                is_default=True,
                can_execute=self.can_fire_primary,
                disabled_reason=self.get_primary_disabled_reason,
                execute=self.fire_primary,
            ),
            "fire_secondary": ActionSpec(
                label="Fire secondary weapon",
                description="Fire backup weapon at target",
                can_execute=self.can_fire_secondary,
                disabled_reason=self.get_secondary_disabled_reason,
                execute=self.fire_secondary,
            ),
            "fire_missiles": ActionSpec(
                label="Fire missiles",
                description="Launch missile salvo at target",
                can_execute=self.can_fire_missiles,
                disabled_reason=self.get_missiles_disabled_reason,
                execute=self.fire_missiles,
            ),
            "point_defense": ActionSpec(
                label="Point defense",
                description="Intercept incoming missile with laser",
                can_execute=self.can_point_defense,
                disabled_reason="No point defense weapons available",
                execute=self.point_defense,
            ),
            "called_shot": ActionSpec(
                label="Called shot",
                description="Target a specific system (penalty depends on system)",
                can_execute=self.can_called_shot,
                disabled_reason=self.get_called_shot_disabled_reason,
                execute=self.called_shot,
            ),
            "sandcaster": ActionSpec(
                label="Activate sandcaster",
                description="Throw a sand cloud against incoming lasers",
                can_execute=self.can_sandcaster,
                disabled_reason=self.get_sandcaster_disabled_reason,
                execute=self.sandcaster,
            ),
            "hold_fire": ActionSpec(
                label="Hold fire",
                description="Keep weapons ready without firing",
                execute=self.hold_fire,
            ),
        })
        return actions

    # ===== Action implementations =====

    def fire_primary(self, params: dict) -> ActionResult:
        """Fire the first usable turret."""
        turret = self.get_primary_turret()
        if turret is None:
            return ActionResult.failure("No available weapons", action="fire")
        return self.fire_weapon(turret, params)

    def fire_secondary(self, params: dict) -> ActionResult:
        """Fire the second usable turret."""
        turret = self.get_secondary_turret()
        if turret is None:
            return ActionResult.failure("No secondary weapon available", action="fire")
        return self.fire_weapon(turret, params)

    def fire_missiles(self, params: dict) -> ActionResult:
        """Fire the missile mount; the engine switches to missiles at long range."""
        mount = self.get_missile_mount()
        if mount is None:
            return ActionResult.failure("No missiles available", action="fire")
        result = self.fire_weapon(mount, {**params, "auto_missile": True})
        fired_missile = result.attack is None or (result.attack.weapon or "").startswith("missile")
        if mount.ammo is not None and fired_missile:
            mount.ammo = max(0, mount.ammo - 1)
        return result

    def point_defense(self, params: dict) -> ActionResult:
        """Manual point defense against a declared incoming missile."""
        if not params.get("incoming_missile"):
            return ActionResult.failure("No incoming missile to intercept", action="point_defense")

        pd_weapon = self.get_point_defense_weapon()
        if pd_weapon is None:
            return ActionResult.failure("No point defense weapons available", action="point_defense")

        pd_weapon.used_for_pd = True
        check = self.perform_skill_check("gunnery")

        result = ActionResult(True, action="point_defense")
        result.check = check
        result.data.update({
            "intercepted": check.success,
            "weapon": pd_weapon.display_name,
        })
        return result

    def called_shot(self, params: dict) -> ActionResult:
        """
        Aim the primary weapon at one system.

        Params:
            target: Ship being fired at
            system: System to aim at; or
            auto_target: let the targeting policy choose
        """
        turret = self.get_primary_turret()
        if turret is None:
            return ActionResult.failure("No available weapons", action="called_shot")

        system = params.get("system")
        target = params.get("target")
        if not system and params.get("auto_target") and target is not None:
            context = CalledShotContext.for_ship(target, turret.primary_weapon)
            system = select_called_shot_target(context, rng=uniform_from(self.rng))
        if not system:
            return ActionResult.failure("Must specify target system", action="called_shot")

        result = self.fire_weapon(turret, {**params, "called_shot": system})
        result.action = "called_shot"
        result.data["system"] = system

        attack = result.attack
        if attack is not None and attack.hit and not attack.intercepted:
            system_damage = self.combat_engine.apply_system_damage(target, system)
            attack.system_damage = system_damage
            result.data["system_damage"] = system_damage
        return result

    def sandcaster(self, params: dict) -> ActionResult:
        """Expend a sandcaster canister through the engine."""
        outcome = self.combat_engine.activate_sandcaster(self.ship)
        if not outcome["success"]:
            return ActionResult.failure(outcome["reason"], action="sandcaster")
        result = ActionResult(True, action="sandcaster")
        result.data["remaining"] = outcome["remaining"]
        return result

    def hold_fire(self, params: dict) -> ActionResult:
        result = ActionResult(True, action="hold_fire")
        result.data["held"] = True
        return result

    def fire_weapon(self, turret: Turret, params: dict) -> ActionResult:
        """Mark the turret used, then resolve through the engine (or a gunnery check standalone)."""
        target = params.get("target")
        turret.used_this_round = True

        result = ActionResult(True, action="fire")
        result.data["weapon"] = turret.display_name

        if self.combat_engine is not None and target is not None:
            attack = self.combat_engine.resolve_attack(
                self.ship,
                target,
                weapon=turret,
                auto_missile=params.get("auto_missile", False),
                called_shot=params.get("called_shot"),
            )
            result.attack = attack
            result.data["target"] = target.name
            result.data["hit"] = attack.hit
            return result

        # Standalone: no engine to resolve against
        check = self.perform_skill_check("gunnery")
        result.check = check
        result.data["hit"] = check.success
        return result

    # ===== Availability checks =====

    def can_fire_primary(self) -> bool:
        return self.get_primary_turret() is not None

    def get_primary_disabled_reason(self) -> Optional[str]:
        armed = self._armed_turrets()
        if not armed:
            return "No weapons available"
        if all(t.used_this_round for t in armed):
            return "Already fired this round"
        return None

    def can_fire_secondary(self) -> bool:
        return self.get_secondary_turret() is not None

    def get_secondary_disabled_reason(self) -> Optional[str]:
        armed = self._armed_turrets()
        if len(armed) < 2:
            return "No secondary weapon"
        if len([t for t in armed if not t.used_this_round]) < 2:
            return "Already fired this round"
        return None

    def can_fire_missiles(self) -> bool:
        return self.get_missile_mount() is not None

    def get_missiles_disabled_reason(self) -> Optional[str]:
        launchers = [t for t in self.ship.turrets if t.has_weapon("missile") and not t.disabled]
        if not launchers:
            return "No missile launcher"
        if all(t.used_this_round for t in launchers):
            return "Already fired this round"
        if all(self._missiles_remaining(t) <= 0 for t in launchers):
            return "Out of missiles"
        return None

    def can_point_defense(self) -> bool:
        return self.get_point_defense_weapon() is not None

    def can_called_shot(self) -> bool:
        turret = self.get_primary_turret()
        if turret is None:
            return False
        return can_use_called_shot(turret.primary_weapon)

    def get_called_shot_disabled_reason(self) -> Optional[str]:
        turret = self.get_primary_turret()
        if turret is None:
            return "No weapons available"
        if not can_use_called_shot(turret.primary_weapon):
            return f"{turret.primary_weapon} cannot use called shots"
        return None

    def can_sandcaster(self) -> bool:
        return self.combat_engine is not None and self.ship.sandcasters > 0

    def get_sandcaster_disabled_reason(self) -> Optional[str]:
        if self.combat_engine is None:
            return "No combat in progress"
        if self.ship.sandcasters <= 0:
            return "No sandcasters remaining"
        return None

    # ===== Turret helpers =====

    def _armed_turrets(self) -> list[Turret]:
        """Working turrets that can fire at ships."""
        return [t for t in self.ship.turrets if not t.disabled and not t.is_sandcaster_only]

    def get_usable_turrets(self) -> list[Turret]:
        """Turrets that are neither disabled nor already used this round."""
        return [t for t in self.ship.turrets if not t.disabled and not t.used_this_round]

    def get_primary_turret(self) -> Optional[Turret]:
        turrets = [t for t in self.get_usable_turrets() if not t.is_sandcaster_only]
        return turrets[0] if turrets else None

    def get_secondary_turret(self) -> Optional[Turret]:
        turrets = [t for t in self.get_usable_turrets() if not t.is_sandcaster_only]
        return turrets[1] if len(turrets) > 1 else None

    def _missiles_remaining(self, turret: Turret) -> int:
        return turret.ammo if turret.ammo is not None else self.ship.missiles

    def get_missile_mount(self) -> Optional[Turret]:
        """First usable missile mount with ammunition left."""
        return next(
            (
                t for t in self.get_usable_turrets()
                if t.has_weapon("missile") and self._missiles_remaining(t) > 0
            ),
            None,
        )

    def get_point_defense_weapon(self) -> Optional[Turret]:
        """First laser not yet fired or used for point defense this round."""
        return next(
            (
                t for t in self.ship.turrets
                if t.has_weapon("laser") and not t.disabled
                and not t.used_this_round and not t.used_for_pd
            ),
            None,
        )

    def reset_turrets(self) -> None:
        """Make every turret available again. Call at the start of each round."""
        for turret in self.ship.turrets:
            turret.used_this_round = False
            turret.used_for_pd = False
