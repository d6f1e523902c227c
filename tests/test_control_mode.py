"""
Tests for control modes, speed and fight mode.
"""

import pytest

from starcombat.mechanics.control_mode import (
    CONTROL_MODES,
    ROLES,
    can_select_role,
    check_escape_condition,
    cycle_control_mode,
    cycle_fight_mode,
    cycle_role,
    cycle_speed,
    get_speed_ms,
    needs_player_input,
)
from starcombat.models.enums import ControlMode


class TestControlMode:
    """Tests for cycling control modes."""

    def test_modes(self):
        """Test the three control modes in order."""
        assert CONTROL_MODES == ("AUTO", "CAPTAIN", "ROLE")

    def test_cycle_forward(self):
        """Test AUTO -> CAPTAIN -> ROLE -> AUTO."""
        assert cycle_control_mode("AUTO") == "CAPTAIN"
        assert cycle_control_mode("CAPTAIN") == "ROLE"
        assert cycle_control_mode("ROLE") == "AUTO"

    def test_cycle_back(self):
        """Test cycling backwards."""
        assert cycle_control_mode("AUTO", "back") == "ROLE"
        assert cycle_control_mode(ControlMode.ROLE, "back") == "CAPTAIN"

    def test_invalid_mode_resets(self):
        """Test that unknown modes fall back to AUTO."""
        assert cycle_control_mode("MANUAL") == "AUTO"
        assert cycle_control_mode(None) == "AUTO"

    def test_role_selection_only_in_role_mode(self):
        """Test that the role spotlight is only selectable in ROLE mode."""
        assert can_select_role("ROLE") is True
        assert can_select_role("AUTO") is False
        assert can_select_role("CAPTAIN") is False


class TestRoles:
    """Tests for cycling the active role."""

    def test_roles(self):
        """Test ALL leads the role list."""
        assert ROLES == ("ALL", "captain", "pilot", "gunner", "engineer", "sensors", "marines")

    def test_cycle_role_wraps(self):
        """Test cycling through roles in both directions."""
        assert cycle_role("ALL") == "captain"
        assert cycle_role("marines") == "ALL"
        assert cycle_role("ALL", "back") == "marines"

    def test_unknown_role_resets(self):
        """Test that unknown roles reset to ALL."""
        assert cycle_role("cook") == "ALL"


class TestNeedsPlayerInput:
    """Tests for turn gating."""

    @pytest.mark.parametrize("role", ["captain", "pilot", "gunner"])
    def test_auto_never_prompts(self, role):
        """Test that AUTO mode runs every station."""
        assert needs_player_input("AUTO", role) is False

    def test_captain_mode_prompts_captain_only(self):
        """Test that CAPTAIN mode only stops for the captain."""
        assert needs_player_input("CAPTAIN", "captain") is True
        assert needs_player_input("CAPTAIN", "gunner") is False

    def test_role_mode_all(self):
        """Test that ROLE mode with ALL prompts every station."""
        assert needs_player_input("ROLE", "pilot", "close_range", "ALL") is True
        assert needs_player_input("ROLE", "gunner") is True

    def test_role_mode_spotlight(self):
        """Test that ROLE mode with a spotlight prompts only that role."""
        assert needs_player_input("ROLE", "gunner", "fire_primary", "gunner") is True
        assert needs_player_input("ROLE", "pilot", "maintain_range", "gunner") is False


class TestSpeed:
    """Tests for pacing speeds."""

    @pytest.mark.parametrize("speed,ms", [
        ("SLOW", 1000),
        ("NORMAL", 500),
        ("FAST", 250),
        ("INSTANT", 0),
        ("WARP", 500),
    ])
    def test_speed_delays(self, speed, ms):
        """Test delay per speed, with NORMAL for unknown speeds."""
        assert get_speed_ms(speed) == ms

    def test_cycle_speed_clamps(self):
        """Test that speed stops at either end."""
        assert cycle_speed("NORMAL", "up") == "FAST"
        assert cycle_speed("INSTANT", "up") == "INSTANT"
        assert cycle_speed("NORMAL", "down") == "SLOW"
        assert cycle_speed("SLOW", "down") == "SLOW"


class TestFightMode:
    """Tests for fight mode and auto-escape."""

    def test_cycle_fight_mode(self):
        """Test toggling between the two fight modes."""
        assert cycle_fight_mode("NORMAL") == "FIGHT_TO_END"
        assert cycle_fight_mode("FIGHT_TO_END") == "NORMAL"
        assert cycle_fight_mode("BERSERK") == "NORMAL"

    def test_normal_escapes_at_threshold(self):
        """Test that NORMAL mode escapes at or below 75% hull."""
        assert check_escape_condition("NORMAL", 75, 100) is True
        assert check_escape_condition("NORMAL", 76, 100) is False

    def test_fight_to_end_never_escapes(self):
        """Test that FIGHT_TO_END never escapes."""
        assert check_escape_condition("FIGHT_TO_END", 1, 100) is False

    def test_zero_max_hull(self):
        """Test that a missing hull baseline never triggers escape."""
        assert check_escape_condition("NORMAL", 0, 0) is False
