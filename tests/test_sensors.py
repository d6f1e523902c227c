"""
Tests for the sensors station.

Actions tested:
- Active and passive scans (detection thresholds)
- ECM / ECCM
- Target lock and break lock
"""

import pytest

from starcombat.models.combat import Contact
from starcombat.roles.sensors import SensorsEngine, get_sensor_range_dm


@pytest.fixture
def sensors(combat, player_ship):
    return SensorsEngine(player_ship, combat_engine=combat)


@pytest.fixture
def contacts():
    return [
        Contact(id="c1", name="Corsair", range="Medium", bearing=90),
        Contact(id="c2", name="Ghost", range="Long", stealth=3),
        Contact(id="c3", name="Phantom", range="Distant", stealth=10),
        Contact(id="c4", name="Wreck", range="Close", destroyed=True),
    ]


class TestActiveScan:
    """Tests for active_scan."""

    def test_full_and_partial_detection(self, sensors, scripted, contacts, player_ship):
        """Test scan power against stealth + range thresholds."""
        # 8 + electronics 1 = 9, effect 1; sensor DM 4 // 2 = 2; scan power 3
        scripted.set_results([4, 4])

        result = sensors.execute("active_scan", {"contacts": contacts})

        assert result.get("scan_power") == 3
        detected = {d["id"]: d for d in result.get("detected")}
        assert set(detected) == {"c1", "c2"}
        assert detected["c1"]["detail_level"] == "full"
        assert detected["c1"]["name"] == "Corsair"
        assert detected["c1"]["bearing"] == 90
        assert detected["c2"]["detail_level"] == "partial"
        assert detected["c2"]["name"] == "Unknown Contact"
        assert "bearing" not in detected["c2"]
        assert player_ship.sensor_emission == "active"

    def test_failed_scan_still_emits(self, sensors, scripted, contacts, player_ship):
        """Test that a failed active scan finds nothing but still reveals us."""
        scripted.set_results([1, 1])

        result = sensors.execute("active_scan", {"contacts": contacts})

        assert result.success is True
        assert result.get("detected") == []
        assert player_ship.sensor_emission == "active"

    def test_contacts_from_engine(self, sensors, scripted):
        """Test that contacts default to the ships in the combat."""
        scripted.set_results([4, 4])

        result = sensors.execute("active_scan")

        assert [d["id"] for d in result.get("detected")] == ["enemy-1"]

    def test_disabled_sensors(self, combat, sensors, player_ship):
        """Test that active scans need working sensors; passive ones don't."""
        for _ in range(3):
            combat.apply_system_damage(player_ship, "sensors")

        assert sensors.execute("active_scan").error == "Sensors are disabled"
        assert sensors.actions["passive_scan"].is_available() is True


class TestPassiveScan:
    """Tests for passive_scan."""

    def test_passive_is_weaker_and_quiet(self, sensors, scripted, contacts, player_ship):
        """Test that passive scans roll at 10 and lose 2 scan power."""
        # 11 + 1 = 12, effect 2; 2 + 2 - 2 = 2
        scripted.set_results([6, 5])

        result = sensors.execute("passive_scan", {"contacts": contacts})

        assert result.check.difficulty == 10
        assert result.get("scan_power") == 2
        assert result.get("stealthy") is True
        assert [d["id"] for d in result.get("detected")] == ["c1"]
        assert player_ship.sensor_emission == "passive"

    def test_range_dms(self):
        """Test detection difficulty by range band."""
        assert get_sensor_range_dm("Adjacent") == -2
        assert get_sensor_range_dm("very long") == 3
        assert get_sensor_range_dm("Distant") == 4
        assert get_sensor_range_dm("Orbit") == 0


class TestElectronicWarfare:
    """Tests for ECM and ECCM."""

    def test_ecm_requires_capability(self, sensors):
        """Test that ships without ECM cannot jam."""
        result = sensors.execute("ecm")

        assert result.success is False
        assert result.error == "No ECM capability"

    def test_ecm_jams_target(self, sensors, scripted, recorded, player_ship, enemy_ship):
        """Test that successful ECM jams the target through the combat engine."""
        player_ship.ecm = 2
        scripted.set_results([4, 4])

        result = sensors.execute("ecm", {"target": enemy_ship})

        assert result.get("jamming") is True
        assert result.get("jamming_strength") == 3
        assert enemy_ship.jammed is True
        assert enemy_ship.jamming_strength == 3
        assert player_ship.ecm_active is True
        assert [e.type for e in recorded] == ["ecm:jamming", "sensors:ecm"]
        assert recorded[0].data["target"] == {"id": "enemy-1", "name": "Pirate Corsair"}

    def test_ecm_needs_engine(self, player_ship, enemy_ship, dice):
        """Test that jamming another ship requires a combat in progress."""
        player_ship.ecm = 2
        sensors = SensorsEngine(player_ship, rng=dice)

        result = sensors.execute("ecm", {"target": enemy_ship})

        assert result.error == "No combat in progress"
        assert enemy_ship.jammed is False

    def test_failed_ecm(self, sensors, scripted, player_ship, enemy_ship):
        """Test that failed ECM changes nothing."""
        player_ship.ecm = 2
        scripted.set_results([1, 1])

        result = sensors.execute("ecm", {"target": enemy_ship})

        assert result.get("jamming") is False
        assert enemy_ship.jammed is False
        assert player_ship.ecm_active is False

    def test_eccm(self, sensors, scripted, player_ship):
        """Test that ECCM protects the ship."""
        player_ship.eccm = 1
        scripted.set_results([5, 5])

        result = sensors.execute("eccm")

        assert result.get("protected") is True
        assert result.get("protection_strength") == 4
        assert player_ship.eccm_active is True
        assert player_ship.eccm_strength == 4


class TestTargetLock:
    """Tests for target_lock and break_lock."""

    def test_lock_needs_target(self, sensors):
        """Test that locking without a target fails."""
        result = sensors.execute("target_lock")

        assert result.error == "No target specified"

    def test_lock_target_once(self, sensors, scripted, player_ship, enemy_ship):
        """Test that a lock is recorded once per target."""
        scripted.set_results([4, 4, 4, 4])

        first = sensors.execute("target_lock", {"target": enemy_ship})
        sensors.execute("target_lock", {"target": enemy_ship})

        assert first.get("locked") is True
        assert first.get("boon") is True
        assert player_ship.target_locks == ["enemy-1"]

    def test_no_hostile_contacts(self, sensors, enemy_ship):
        """Test that locks need a living hostile contact."""
        enemy_ship.destroyed = True

        assert sensors.can_lock_target() is False
        assert sensors.execute("target_lock", {"target": enemy_ship}).error == "No valid targets"

    def test_break_lock(self, sensors, scripted, player_ship):
        """Test that breaking a lock rolls at 10 and clears the flag."""
        assert sensors.execute("break_lock").error == "No enemy lock to break"

        player_ship.locked_by_enemy = True
        scripted.set_results([6, 6])
        result = sensors.execute("break_lock")

        assert result.get("broken") is True
        assert player_ship.locked_by_enemy is False
