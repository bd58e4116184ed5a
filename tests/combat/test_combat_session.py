"""
Tests for the combat session and its snapshot.
"""

import json
import threading

import pytest

from skirmish.actors import Actor
from skirmish.combat.action_economy import consume_action
from skirmish.combat.combat_manager import perform_action
from skirmish.combat.combat_session import (
    Combatant,
    CombatSession,
    CombatSnapshot,
    SnapshotError,
    visible_combatants,
)
from skirmish.combat.engagement import create_engagement, is_engaged
from skirmish.combat.movement import execute_movement
from skirmish.core.constants import ActionType, ActorCategory, MoveType, Phase, SurpriseSide


def _order(session):
    return [c.combatant_id for c in session.combatants]


def test_sorted_by_initiative(session):
    """
    Test that combatants are ordered by initiative, highest first.
    """
    assert _order(session) == ["hero", "goblin", "ally", "orc"]


def test_players_first_on_tie():
    """
    Test that players go before enemies on equal initiative, then by name.
    """
    session = CombatSession(
        [
            Combatant("z", Actor("z", "Zed", ActorCategory.ENEMY, hp=5), initiative=10),
            Combatant("b", Actor("b", "Bea", ActorCategory.PLAYER, hp=5), initiative=10),
            Combatant("a", Actor("a", "Abe", ActorCategory.ENEMY, hp=5), initiative=10),
            Combatant("n", Actor("n", "Nil", ActorCategory.PLAYER, hp=5), initiative=None),
        ]
    )
    assert _order(session) == ["b", "a", "z", "n"]


def test_add_combatant_resorts(session):
    """
    Test that a newcomer is placed by its initiative and gets an action state.
    """
    wolf = Actor("wolf", "Wolf", ActorCategory.ENEMY, hp=10)
    session.add_combatant(Combatant("wolf", wolf, initiative=20))
    assert _order(session)[0] == "wolf"
    assert "wolf" in session.action_states


def test_add_duplicate_rejected(session, hero):
    """
    Test that the same combatant id cannot be added twice.
    """
    with pytest.raises(ValueError):
        session.add_combatant(Combatant("hero", hero, initiative=1))


def test_remove_combatant_cleans_up(session):
    """
    Test that removing a combatant drops its state and its group seat.
    """
    session.engagements, _ = create_engagement(session.engagements, "hero", "goblin")
    assert session.remove_combatant("goblin")
    assert "goblin" not in _order(session)
    assert "goblin" not in session.action_states
    assert not is_engaged(session.engagements, "hero")


def test_remove_unknown_combatant(session):
    """
    Test that removing an unknown id reports False.
    """
    assert not session.remove_combatant("ghost")


def test_hidden_combatants(session):
    """
    Test that hidden combatants are only shown to the game master.
    """
    session.get_combatant("orc").hidden = True
    assert "orc" not in [c.combatant_id for c in visible_combatants(session, is_gm=False)]
    assert "orc" in [c.combatant_id for c in visible_combatants(session, is_gm=True)]


def test_snapshot_round_trip(session, hero, ally, goblin, orc):
    """
    Test that a snapshot restores the same session state.
    """
    session.round = 3
    session.phase = Phase.MAIN
    session.surprise = SurpriseSide.ENEMIES
    session.engagements, _ = create_engagement(session.engagements, "hero", "goblin")
    session.set_action_state(
        "hero", consume_action(session.get_action_state("hero"), ActionType.MAJOR)
    )
    snapshot = session.to_snapshot()
    stored = CombatSnapshot.model_validate_json(snapshot.model_dump_json())
    actors = {a.actor_id: a for a in (hero, ally, goblin, orc)}
    restored = CombatSession.from_snapshot(stored, actors)
    assert restored.to_snapshot() == snapshot
    assert restored.get_action_state("hero").major
    assert _order(restored) == _order(session)


def test_snapshot_is_json(session):
    """
    Test that a snapshot dumps to plain JSON with the expected keys.
    """
    data = json.loads(session.to_snapshot().model_dump_json())
    assert set(data) == {"round", "phase", "combatants", "engagements", "action_states", "surprise"}
    assert data["phase"] == "setup"
    assert data["combatants"][0] == {
        "id": "hero",
        "actor_ref": "hero",
        "initiative": 12,
        "hidden": False,
    }


def test_snapshot_unknown_actor(session, hero):
    """
    Test that restoring against missing actors fails.
    """
    with pytest.raises(SnapshotError):
        CombatSession.from_snapshot(session.to_snapshot(), {"hero": hero})


def test_snapshot_bad_engagement(hero, goblin):
    """
    Test that an engagement naming a non-combatant cannot be restored.
    """
    snapshot = CombatSnapshot.model_validate(
        {
            "combatants": [{"id": "hero", "actor_ref": "hero"}],
            "engagements": [{"id": "e", "members": ["hero", "goblin"]}],
        }
    )
    with pytest.raises(SnapshotError):
        CombatSession.from_snapshot(snapshot, {"hero": hero, "goblin": goblin})


def test_snapshot_combatant_in_two_engagements(hero, goblin, orc):
    """
    Test that a combatant sitting in two groups cannot be restored.
    """
    snapshot = CombatSnapshot.model_validate(
        {
            "combatants": [
                {"id": "hero", "actor_ref": "hero"},
                {"id": "goblin", "actor_ref": "goblin"},
                {"id": "orc", "actor_ref": "orc"},
            ],
            "engagements": [
                {"id": "e1", "members": ["hero", "goblin"]},
                {"id": "e2", "members": ["hero", "orc"]},
            ],
        }
    )
    with pytest.raises(SnapshotError):
        CombatSession.from_snapshot(snapshot, {"hero": hero, "goblin": goblin, "orc": orc})


def test_snapshot_repeated_engagement_id(hero, ally, goblin, orc):
    """
    Test that two groups sharing an id cannot be restored.
    """
    snapshot = CombatSnapshot.model_validate(
        {
            "combatants": [
                {"id": a.actor_id, "actor_ref": a.actor_id} for a in (hero, ally, goblin, orc)
            ],
            "engagements": [
                {"id": "e", "members": ["hero", "goblin"]},
                {"id": "e", "members": ["ally", "orc"]},
            ],
        }
    )
    actors = {a.actor_id: a for a in (hero, ally, goblin, orc)}
    with pytest.raises(SnapshotError):
        CombatSession.from_snapshot(snapshot, actors)


def test_transaction_is_reentrant(session):
    """
    Test that the session lock can be taken again by the same caller.
    """
    with session.transaction():
        with session.transaction() as inner:
            assert inner is session


def test_concurrent_major_spent_once(session):
    """
    Test that racing callers spend the same major action exactly once.
    """
    workers = 8
    barrier = threading.Barrier(workers)
    results = []

    def spend():
        barrier.wait()
        results.append(perform_action(session, "hero", ActionType.MAJOR).allowed)

    threads = [threading.Thread(target=spend) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results.count(True) == 1
    assert len(results) == workers
    assert session.get_action_state("hero").major


def test_concurrent_rush_engages_once(session):
    """
    Test that racing rushes by the same combatant leave one group only.
    """
    workers = 4
    barrier = threading.Barrier(workers)
    results = []

    def rush(target):
        barrier.wait()
        result = execute_movement(session, "hero", MoveType.RUSH, rush_target=target)
        results.append(result.success)

    threads = [
        threading.Thread(target=rush, args=(target,))
        for target in ("goblin", "orc", "goblin", "orc")
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results.count(True) == 1
    assert len(session.engagements) == 1
