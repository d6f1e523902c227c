"""Crew stations that decide which actions a ship may take."""

from .base import ActionResult, ActionSpec, BaseRoleEngine, execute_action
from .captain import CaptainEngine
from .engineer import EngineerEngine
from .gunner import GunnerEngine
from .pilot import PilotEngine
from .sensors import SensorsEngine

ROLE_ENGINES = {
    "captain": CaptainEngine,
    "pilot": PilotEngine,
    "gunner": GunnerEngine,
    "engineer": EngineerEngine,
    "sensors": SensorsEngine,
}

__all__ = [
    "ActionResult",
    "ActionSpec",
    "BaseRoleEngine",
    "execute_action",
    "CaptainEngine",
    "EngineerEngine",
    "GunnerEngine",
    "PilotEngine",
    "SensorsEngine",
    "ROLE_ENGINES",
]
