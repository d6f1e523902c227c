"""
Tests for the gunner station.

Actions tested:
- Fire primary / secondary / missiles
- Point defense
- Called shot (explicit and auto-targeted)
- Sandcaster and hold fire
"""

import pytest

from starcombat.models.starship import Ship, Turret
from starcombat.roles.gunner import GunnerEngine


@pytest.fixture
def gunner(combat, player_ship):
    return GunnerEngine(player_ship, combat_engine=combat)


@pytest.fixture
def enemy_gunner(combat, enemy_ship):
    return GunnerEngine(enemy_ship, combat_engine=combat)


class TestFirePrimary:
    """Tests for fire_primary."""

    def test_fire_resolves_through_engine(self, gunner, scripted, recorded, enemy_ship):
        """Test that firing delegates the attack to the combat engine."""
        scripted.set_results([6, 6, 1, 1])

        result = gunner.execute("fire_primary", {"target": enemy_ship})

        assert result.success is True
        assert result.attack.hit is True
        assert result.attack.damage == 9
        assert enemy_ship.hull == 21
        types = [e.type for e in recorded]
        assert types == ["attack:resolved", "damage:applied", "gunner:fire_primary"]
        assert recorded[-1].data["result"]["attack"]["damage"] == 9

    def test_turret_spent_after_firing(self, gunner, scripted, player_ship, enemy_ship):
        """Test that a turret can only fire once per round."""
        scripted.set_results([1, 1])
        gunner.execute("fire_primary", {"target": enemy_ship})

        result = gunner.execute("fire_primary", {"target": enemy_ship})

        assert player_ship.turrets[0].used_this_round is True
        assert result.success is False
        assert result.error == "Already fired this round"

    def test_reset_turrets(self, gunner, scripted, player_ship, enemy_ship):
        """Test that resetting turrets makes them available again."""
        scripted.set_results([1, 1])
        gunner.execute("fire_primary", {"target": enemy_ship})

        gunner.reset_turrets()

        assert gunner.can_fire_primary() is True
        assert player_ship.turrets[0].used_for_pd is False

    def test_standalone_skill_check(self, player_ship, dice, scripted):
        """Test that without a combat engine a gunnery check stands in."""
        gunner = GunnerEngine(player_ship, rng=dice)
        scripted.set_results([4, 4])

        result = gunner.execute("fire_primary")

        assert result.attack is None
        assert result.check.total == 9
        assert result.get("hit") is True

    def test_sandcaster_mount_never_fires(self, dice):
        """Test that sandcaster-only mounts are not weapons."""
        ship = Ship(id="s", name="S", hull=10, turrets=[Turret(weapons=["sandcaster"])])
        gunner = GunnerEngine(ship, rng=dice)

        assert gunner.can_fire_primary() is False
        assert gunner.actions["fire_primary"].reason() == "No weapons available"


class TestFireSecondary:
    """Tests for fire_secondary."""

    def test_secondary_fires_second_mount(self, enemy_gunner, scripted, player_ship):
        """Test that the secondary action fires the second armed turret."""
        scripted.set_results([1, 1])

        result = enemy_gunner.execute("fire_secondary", {"target": player_ship})

        assert result.attack.weapon == "beam_laser"

    def test_secondary_needs_two_mounts(self, gunner):
        """Test that a single-turret ship has no secondary weapon."""
        assert gunner.get_secondary_disabled_reason() == "No secondary weapon"


class TestFireMissiles:
    """Tests for fire_missiles."""

    def test_missiles_at_long_range(self, combat, enemy_gunner, scripted, enemy_ship, player_ship):
        """Test that a missile salvo is launched at long range."""
        combat.set_range("Long")
        scripted.set_results([1, 1])

        result = enemy_gunner.execute("fire_missiles", {"target": player_ship})

        assert result.attack.weapon == "missile_rack"
        assert enemy_ship.missiles == 5

    def test_no_launcher(self, gunner):
        """Test that ships without launchers cannot fire missiles."""
        assert gunner.can_fire_missiles() is False
        assert gunner.get_missiles_disabled_reason() == "No missile launcher"

    def test_mount_ammo_tracked(self, dice, scripted):
        """Test that mounts with their own ammo count run dry."""
        ship = Ship(
            id="m", name="M", hull=20, missiles=0,
            turrets=[Turret(weapons=["missile_rack"], ammo=1)],
        )
        gunner = GunnerEngine(ship, rng=dice)
        scripted.set_results([1, 1])

        gunner.execute("fire_missiles")
        gunner.reset_turrets()

        assert ship.turrets[0].ammo == 0
        assert gunner.get_missiles_disabled_reason() == "Out of missiles"


class TestPointDefense:
    """Tests for the manual point defense action."""

    def test_requires_incoming_missile(self, gunner):
        """Test that point defense needs something to shoot at."""
        result = gunner.execute("point_defense")

        assert result.success is False
        assert result.error == "No incoming missile to intercept"

    def test_intercept(self, gunner, scripted, player_ship):
        """Test that a successful check intercepts and spends the laser."""
        scripted.set_results([4, 4])

        result = gunner.execute("point_defense", {"incoming_missile": True})

        assert result.get("intercepted") is True
        assert player_ship.turrets[0].used_for_pd is True
        assert gunner.can_point_defense() is False
        assert gunner.actions["point_defense"].reason() == "No point defense weapons available"


class TestCalledShot:
    """Tests for called shots."""

    def test_explicit_system(self, gunner, scripted, recorded, enemy_ship):
        """Test that a hit on a called system damages it."""
        # 12 + 4 - 4 (jDrive) = 12, effect 4; damage 2 + 4 - 1 = 5
        scripted.set_results([6, 6, 1, 1])

        result = gunner.execute("called_shot", {"target": enemy_ship, "system": "jDrive"})

        assert result.action == "called_shot"
        assert result.attack.modifiers["called_shot_dm"] == -4
        assert result.get("system_damage") == {"system": "jDrive", "hits": 1, "disabled": False}
        assert result.attack.system_damage == result.get("system_damage")
        assert enemy_ship.hull == 25
        assert "system:damaged" in [e.type for e in recorded]

    def test_miss_leaves_system(self, gunner, scripted, enemy_ship):
        """Test that a missed called shot does no system damage."""
        scripted.set_results([1, 1])

        result = gunner.execute("called_shot", {"target": enemy_ship, "system": "mDrive"})

        assert result.attack.hit is False
        assert result.get("system_damage") is None
        assert enemy_ship.systems["mDrive"].hits == 0

    def test_auto_target_escaping_ship(self, gunner, scripted, enemy_ship):
        """Test that auto-targeting aims at the jump drive of a fleeing ship."""
        enemy_ship.hull = 10
        enemy_ship.attempting_escape = True
        scripted.set_results([1, 1])

        result = gunner.execute("called_shot", {"target": enemy_ship, "auto_target": True})

        assert result.get("system") == "jDrive"
        assert result.attack.called_shot == "jDrive"

    def test_no_system_chosen(self, gunner, player_ship, enemy_ship):
        """Test that a healthy target gives no system and nothing fires."""
        result = gunner.execute("called_shot", {"target": enemy_ship, "auto_target": True})

        assert result.success is False
        assert result.error == "Must specify target system"
        assert player_ship.turrets[0].used_this_round is False

    def test_auto_target_chance_uses_injected_dice(self, combat, roll_only_dice, scripted, player_ship, enemy_ship):
        """Test that the sensors chance is rolled on the ship's dice, not the global random module."""
        gunner = GunnerEngine(player_ship, combat_engine=combat, rng=roll_only_dice)
        enemy_ship.hull = 10
        for _ in range(3):
            combat.apply_system_damage(enemy_ship, "mDrive")
        # 3d6 of 1s reads as 0.0, inside the 10% window; then the attack misses
        scripted.set_results([1, 1, 1, 1, 1])

        result = gunner.execute("called_shot", {"target": enemy_ship, "auto_target": True})

        assert result.get("system") == "sensors"
        assert result.attack.hit is False
        assert scripted.remaining == 0

    def test_auto_target_chance_declined(self, combat, roll_only_dice, scripted, player_ship, enemy_ship):
        """Test that a high chance roll on the injected dice skips the sensors shot."""
        gunner = GunnerEngine(player_ship, combat_engine=combat, rng=roll_only_dice)
        enemy_ship.hull = 10
        for _ in range(3):
            combat.apply_system_damage(enemy_ship, "mDrive")
        scripted.set_results([6, 6, 6])

        result = gunner.execute("called_shot", {"target": enemy_ship, "auto_target": True})

        assert result.error == "Must specify target system"
        assert scripted.remaining == 0

    def test_ion_cannot_call_shots(self, dice):
        """Test that ion weapons cannot make called shots."""
        ship = Ship(id="i", name="I", hull=20, turrets=[Turret(weapons=["ion"])])
        gunner = GunnerEngine(ship, rng=dice)

        result = gunner.execute("called_shot", {"system": "mDrive"})

        assert result.success is False
        assert result.error == "ion cannot use called shots"


class TestDefensiveActions:
    """Tests for sandcaster and hold fire."""

    def test_sandcaster(self, gunner, player_ship):
        """Test that the sandcaster action spends a canister via the engine."""
        result = gunner.execute("sandcaster")

        assert result.get("remaining") == 1
        assert player_ship.sandcaster_active is True

    def test_sandcaster_needs_engine(self, player_ship):
        """Test that sandcasters can't be fired outside combat."""
        result = GunnerEngine(player_ship).execute("sandcaster")

        assert result.error == "No combat in progress"

    def test_hold_fire(self, gunner, player_ship):
        """Test that holding fire leaves turrets ready."""
        result = gunner.execute("hold_fire")

        assert result.success is True
        assert player_ship.turrets[0].used_this_round is False
