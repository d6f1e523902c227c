"""
Pytest fixtures for starcombat testing.

Provides a scripted dice source, sample ships and a combat engine wired to
both so rules can be checked against known rolls.
"""

import pytest

from starcombat.mechanics.combat_engine import CombatEngine
from starcombat.mechanics.dice import Dice
from starcombat.mechanics.event_bus import EventBus
from starcombat.models.starship import Ship, Turret


# ============== DICE ==============

class ScriptedRandom:
    """Stands in for random.Random: returns queued die faces and floats in order."""

    def __init__(self):
        self.results = []
        self.floats = []

    def set_results(self, results):
        """Set the sequence of d6 faces to return."""
        self.results = list(results)

    def set_floats(self, floats):
        """Set the sequence of random() values to return."""
        self.floats = list(floats)

    @property
    def remaining(self):
        return len(self.results)

    def randint(self, a, b):
        if not self.results:
            raise AssertionError("Scripted dice exhausted")
        face = self.results.pop(0)
        assert a <= face <= b, f"Scripted face {face} outside {a}-{b}"
        return face

    def random(self):
        if not self.floats:
            raise AssertionError("Scripted random() values exhausted")
        return self.floats.pop(0)


@pytest.fixture
def scripted():
    """Controller for the faces the dice fixture will roll."""
    return ScriptedRandom()


@pytest.fixture
def dice(scripted):
    """Dice source that rolls exactly what the test scripts."""
    return Dice(rng=scripted)


class RollOnlyDice:
    """Dice source with only the three roll methods and no random()."""

    def __init__(self, dice):
        self._dice = dice

    def roll_1d6(self):
        return self._dice.roll_1d6()

    def roll_2d6(self):
        return self._dice.roll_2d6()

    def roll_nd6(self, count):
        return self._dice.roll_nd6(count)


@pytest.fixture
def roll_only_dice(dice):
    """The scripted dice behind a source that can only roll d6."""
    return RollOnlyDice(dice)


# ============== SHIPS ==============

@pytest.fixture
def player_ship():
    """Player free trader with one pulse laser and two sandcasters."""
    return Ship(
        id="player-1",
        name="Free Trader Beowulf",
        hull=40,
        armour=2,
        power=60,
        thrust=2,
        fire_control=1,
        pilot_skill=1,
        sensors=4,
        turrets=[
            Turret(weapons=["pulse_laser"], gunner_skill=1, name="Dorsal Laser"),
            Turret(weapons=["sandcaster"], name="Sand"),
        ],
        sandcasters=2,
        crew={"gunnery": 1, "pilot": 2, "electronics": 1, "engineer": 1, "tactics": 1},
    )


@pytest.fixture
def enemy_ship():
    """Pirate corsair with a missile rack and a beam laser."""
    return Ship(
        id="enemy-1",
        name="Pirate Corsair",
        hull=30,
        armour=1,
        power=50,
        thrust=4,
        fire_control=0,
        pilot_skill=1,
        turrets=[
            Turret(weapons=["missile_rack"], gunner_skill=1),
            Turret(weapons=["beam_laser"], gunner_skill=1),
        ],
        missiles=6,
    )


# ============== ENGINE ==============

@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def engine(dice):
    """Combat engine rolling scripted dice, with no ships yet."""
    return CombatEngine(rng=dice)


@pytest.fixture
def combat(engine, player_ship, enemy_ship):
    """Engine with the sample ships engaged at Medium range."""
    engine.init_combat([player_ship], [enemy_ship], range="Medium")
    return engine


@pytest.fixture
def recorded(combat):
    """List collecting every event the combat engine publishes."""
    events = []
    combat.subscribe("*", events.append)
    return events
