"""
Shared fixtures for the combat engine tests.
"""

import pytest

from skirmish.actors import Actor
from skirmish.combat.combat_session import Combatant, CombatSession
from skirmish.core.constants import ActorCategory


class ScriptedRoller:
    """A die roller that returns pre-arranged faces, in order."""

    def __init__(self, faces: list[int] | None = None) -> None:
        self.faces = list(faces or [])

    def queue(self, *faces: int) -> "ScriptedRoller":
        self.faces.extend(faces)
        return self

    def __call__(self) -> int:
        assert self.faces, "The scripted roller ran out of faces."
        return self.faces.pop(0)


@pytest.fixture
def roller():
    """A scripted die roller; queue faces before rolling."""
    return ScriptedRoller()


@pytest.fixture
def hero():
    return Actor("hero", "Hero", ActorCategory.PLAYER, hp=20, initiative=5, movement=10)


@pytest.fixture
def ally():
    return Actor("ally", "Ally", ActorCategory.PLAYER, hp=20, initiative=4, movement=8)


@pytest.fixture
def goblin():
    return Actor("goblin", "Goblin", ActorCategory.ENEMY, hp=12, initiative=3, movement=10)


@pytest.fixture
def orc():
    return Actor("orc", "Orc", ActorCategory.ENEMY, hp=25, initiative=2, movement=6)


@pytest.fixture
def session(hero, ally, goblin, orc):
    """A session with two players and two enemies, ids matching actor ids."""
    return CombatSession(
        [
            Combatant("hero", hero, initiative=12),
            Combatant("ally", ally, initiative=10),
            Combatant("goblin", goblin, initiative=11),
            Combatant("orc", orc, initiative=7),
        ]
    )
