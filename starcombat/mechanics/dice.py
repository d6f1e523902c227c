"""Dice rolling for the 2d6 starship combat rules.

Every roll in the engine goes through an object with ``roll_1d6``,
``roll_2d6`` and ``roll_nd6``. The module-level functions use a shared
default roller; pass a seeded :class:`Dice` (or any object with the same
three methods) to an engine to make combat reproducible.
"""

import random
from typing import Callable, Optional, Protocol

from starcombat.models.combat import RollResult


class DiceSource(Protocol):
    """Anything the engines can roll dice with."""

    def roll_1d6(self) -> RollResult: ...

    def roll_2d6(self) -> RollResult: ...

    def roll_nd6(self, count: int) -> RollResult: ...


class Dice:
    """Seedable d6 roller."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        """
        Args:
            seed: Seed for a private random.Random (ignored when rng is given)
            rng: Existing random.Random to draw from
        """
        self.seed = seed
        self._rng = rng if rng is not None else random.Random(seed)

    def roll_die(self) -> int:
        """Roll a single d6 face."""
        return self._rng.randint(1, 6)

    def roll_1d6(self) -> RollResult:
        """Roll 1d6."""
        return RollResult.of(self.roll_die())

    def roll_2d6(self) -> RollResult:
        """Roll 2d6."""
        return RollResult.of(self.roll_die(), self.roll_die())

    def roll_nd6(self, count: int) -> RollResult:
        """Roll ``count`` d6. Zero dice totals 0."""
        if count < 0:
            raise ValueError("count must be >= 0")
        return RollResult.of(*(self.roll_die() for _ in range(count)))

    def random(self) -> float:
        """Uniform float in [0.0, 1.0) from the same stream."""
        return self._rng.random()


# Convenience singleton for callers that don't care about determinism.
DEFAULT_DICE = Dice()


def roll_1d6() -> RollResult:
    """Roll 1d6 with the default roller."""
    return DEFAULT_DICE.roll_1d6()


def roll_2d6() -> RollResult:
    """Roll 2d6 with the default roller."""
    return DEFAULT_DICE.roll_2d6()


def roll_nd6(count: int) -> RollResult:
    """Roll Nd6 with the default roller."""
    return DEFAULT_DICE.roll_nd6(count)


def uniform_from(source: DiceSource) -> Callable[[], float]:
    """
    Float generator in [0.0, 1.0) drawn from a dice source.

    Uses the source's own ``random()`` when it has one. Otherwise each value
    is built from 3d6 read as base-6 digits (216 equally likely steps), so a
    source that only rolls dice still drives every chance in the engine.
    """
    draw = getattr(source, "random", None)
    if callable(draw):
        return draw

    def from_dice() -> float:
        faces = source.roll_nd6(3).dice
        return ((faces[0] - 1) * 36 + (faces[1] - 1) * 6 + (faces[2] - 1)) / 216

    return from_dice


def check(total: int, target: int = 8) -> tuple[bool, int]:
    """
    Apply the standard resolution rule.

    Args:
        total: 2d6 plus all DMs
        target: Target number (8 for every engine check)

    Returns:
        (success, effect) where effect is total - target on success, else 0
    """
    success = total >= target
    return success, (total - target) if success else 0
