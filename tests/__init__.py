"""
starcombat test suite.

This package contains automated tests for:
- Event bus delivery, history and replay
- Combat engine rules (attacks, point defense, ion weapons, phases, victory)
- Called-shot targeting and control-mode policy
- Crew station actions (gunner, sensors, pilot, engineer, captain)

Run tests with: pytest
"""
