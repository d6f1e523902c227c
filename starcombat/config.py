"""Engine configuration."""

from pydantic import BaseModel, Field, field_validator

from starcombat.models.enums import RangeBand


class EngineConfig(BaseModel):
    """Options accepted by CombatEngine and EventBus.

    The dice source is passed to the engine separately; it is an arbitrary
    object and does not belong in a validated model.
    """

    # Log every published event at INFO on the starcombat.mechanics.event_bus
    # logger. Nothing reaches the console unless the host configures logging
    # (scripts/run_combat.py calls logging.basicConfig).
    debug: bool = False

    # Events retained for replay before the oldest is evicted
    max_log_size: int = Field(default=1000, ge=1)

    # Range band a combat starts at when init_combat is not given one
    default_range: str = "Medium"

    @field_validator("default_range")
    @classmethod
    def _known_range(cls, value: str) -> str:
        band = RangeBand.lookup(value)
        if band is None:
            raise ValueError(f"Unknown range band: {value}")
        return band.value
