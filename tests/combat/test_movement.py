"""
Tests for the movement resolver.
"""

from skirmish.actors import Actor
from skirmish.combat.action_economy import consume_action
from skirmish.combat.engagement import are_engaged, create_engagement, is_engaged
from skirmish.combat.movement import (
    execute_movement,
    get_blockade_candidates,
    get_movement_options,
    get_rush_targets,
    resolve_blockade,
)
from skirmish.core.constants import ActionType, ActorCategory, BlockReason, MoveType
from skirmish.core.settings import EngineSettings
from skirmish.effects import StatusEffect, StatusId


def _options(session, combatant_id):
    return {o.move_type: o for o in get_movement_options(session, combatant_id)}


def _engage(session, first, second):
    session.engagements, eid = create_engagement(session.engagements, first, second)
    return eid


def test_unengaged_options(session):
    """
    Test that a free combatant is offered combat, full and rush moves.
    """
    options = _options(session, "hero")
    assert set(options) == {MoveType.COMBAT, MoveType.FULL, MoveType.RUSH}
    assert options[MoveType.COMBAT].distance == 10
    assert options[MoveType.FULL].distance == 20
    assert options[MoveType.RUSH].distance == 10
    assert all(o.available for o in options.values())


def test_engaged_options(session):
    """
    Test that an engaged combatant is offered disengage instead of rush.
    """
    _engage(session, "hero", "goblin")
    options = _options(session, "hero")
    assert set(options) == {MoveType.COMBAT, MoveType.FULL, MoveType.DISENGAGE}
    assert options[MoveType.DISENGAGE].distance == 5


def test_disengage_distance_capped_by_rate(session):
    """
    Test that a slow combatant disengages no further than its own rate.
    """
    session.get_actor("hero").movement = 3
    _engage(session, "hero", "goblin")
    assert _options(session, "hero")[MoveType.DISENGAGE].distance == 3


def test_mount_sets_rate(session):
    """
    Test that a mounted combatant moves at its mount's rate.
    """
    horse = Actor("horse", "Horse", ActorCategory.PLAYER, hp=30, movement=18)
    session.get_actor("hero").mount = horse
    assert _options(session, "hero")[MoveType.FULL].distance == 36


def test_flying_counts_as_unengaged(session):
    """
    Test that a flying combatant is offered rush even when grouped.
    """
    _engage(session, "hero", "goblin")
    session.get_actor("hero").add_status(StatusEffect(status_id=StatusId.FLIGHT))
    assert set(_options(session, "hero")) == {MoveType.COMBAT, MoveType.FULL, MoveType.RUSH}


def test_minor_blocks_full_and_disengage(session):
    """
    Test that full move and disengage are unavailable after a minor action.
    """
    _engage(session, "hero", "goblin")
    state = consume_action(session.get_action_state("hero"), ActionType.MINOR)
    session.set_action_state("hero", state)
    options = _options(session, "hero")
    assert options[MoveType.COMBAT].available
    assert options[MoveType.FULL].reason == BlockReason.FULL_BLOCKED_BY_MINOR
    assert options[MoveType.DISENGAGE].reason == BlockReason.DISENGAGE_BLOCKED_BY_MINOR


def test_spent_move_blocks_all_options(session):
    """
    Test that every option is unavailable once the move is spent.
    """
    session.set_action_state(
        "hero", consume_action(session.get_action_state("hero"), ActionType.MOVE, MoveType.COMBAT)
    )
    assert all(o.reason == BlockReason.MOVE_USED for o in get_movement_options(session, "hero"))


def test_unknown_combatant_has_no_options(session):
    """
    Test that an unknown combatant gets no options.
    """
    assert get_movement_options(session, "ghost") == []


def test_combat_move_consumes_move(session):
    """
    Test that a successful move spends the move slot with its type.
    """
    result = execute_movement(session, "hero", MoveType.COMBAT)
    assert result.success
    state = session.get_action_state("hero")
    assert state.move and state.move_type == MoveType.COMBAT


def test_second_move_refused(session):
    """
    Test that a move cannot be taken twice in a turn.
    """
    execute_movement(session, "hero", MoveType.COMBAT)
    result = execute_movement(session, "hero", MoveType.FULL)
    assert not result.success
    assert result.reason == BlockReason.MOVE_USED


def test_option_not_offered(session):
    """
    Test that disengaging while free is refused.
    """
    result = execute_movement(session, "hero", MoveType.DISENGAGE)
    assert result.reason == BlockReason.MOVE_NOT_OFFERED
    assert not session.get_action_state("hero").move


def test_rush_engages_target(session):
    """
    Test that a rush creates contact with the chosen enemy.
    """
    assert get_rush_targets(session, "hero") == ["goblin", "orc"]
    result = execute_movement(session, "hero", MoveType.RUSH, rush_target="orc")
    assert result.success
    assert result.engagement_id is not None
    assert are_engaged(session.engagements, "hero", "orc")


def test_rush_without_target_changes_nothing(session):
    """
    Test that a cancelled rush leaves the session untouched.
    """
    before = session.to_snapshot()
    result = execute_movement(session, "hero", MoveType.RUSH)
    assert result.reason == BlockReason.NO_RUSH_TARGET
    assert session.to_snapshot() == before


def test_rush_at_ally_refused(session):
    """
    Test that a rush cannot target an ally.
    """
    result = execute_movement(session, "hero", MoveType.RUSH, rush_target="ally")
    assert result.reason == BlockReason.INVALID_RUSH_TARGET
    assert not is_engaged(session.engagements, "hero")


def test_rush_skips_defeated_enemies(session):
    """
    Test that enemies at 0 HP are not rush targets.
    """
    session.get_actor("goblin").set_hp(0)
    assert get_rush_targets(session, "hero") == ["orc"]


def test_unopposed_disengage(session):
    """
    Test that a disengage with no blockers leaves the group.
    """
    _engage(session, "hero", "goblin")
    result = execute_movement(session, "hero", MoveType.DISENGAGE)
    assert result.success
    assert result.blockade is None
    assert not is_engaged(session.engagements, "hero")
    state = session.get_action_state("hero")
    assert state.move_type == MoveType.DISENGAGE


def test_blockade_tie_lets_escaper_through(session, roller):
    """
    Test that a tied blockade roll lets the escaper disengage.
    """
    _engage(session, "hero", "goblin")
    session.get_actor("hero").initiative = 0
    session.get_actor("goblin").initiative = 0
    roller.queue(4, 5, 3, 6)
    result = execute_movement(session, "hero", MoveType.DISENGAGE, blockers=["goblin"], roller=roller)
    assert result.success
    contest = result.blockade.contests[0]
    assert contest.escaper_check.total == contest.blocker_check.total == 9
    assert not is_engaged(session.engagements, "hero")


def test_held_blockade_still_spends_move(session, roller):
    """
    Test that a held disengage spends the move and keeps the group.
    """
    _engage(session, "hero", "goblin")
    _engage(session, "hero", "orc")
    session.get_actor("hero").initiative = 0
    session.get_actor("goblin").initiative = 0
    session.get_actor("orc").initiative = 0
    # Escaper 7, goblin 5, orc 10.
    roller.queue(3, 4, 2, 3, 5, 5)
    result = execute_movement(
        session, "hero", MoveType.DISENGAGE, blockers=["goblin", "orc"], roller=roller
    )
    assert not result.success
    assert result.reason == BlockReason.BLOCKADE_HELD
    assert [c.held for c in result.blockade.contests] == [False, True]
    assert is_engaged(session.engagements, "hero")
    assert session.get_action_state("hero").move


def test_blockers_must_be_engaged_opponents(session, roller):
    """
    Test that nominated blockers outside the group are ignored.
    """
    _engage(session, "hero", "goblin")
    result = execute_movement(session, "hero", MoveType.DISENGAGE, blockers=["orc"], roller=roller)
    assert result.success
    assert result.blockade is None


def test_blockade_candidates(session):
    """
    Test that blockade candidates are the engaged opponents.
    """
    _engage(session, "hero", "goblin")
    _engage(session, "hero", "ally")
    assert get_blockade_candidates(session, "hero") == ["goblin"]


def test_resolve_blockade_uses_initiative(session, roller):
    """
    Test that both sides add their initiative to the blockade roll.
    """
    roller.queue(1, 2, 1, 2)
    outcome = resolve_blockade(session, "hero", ["goblin"], roller)
    contest = outcome.contests[0]
    assert contest.escaper_check.total == 3 + 5
    assert contest.blocker_check.total == 3 + 3
    assert outcome.escaped


def test_flying_move_leaves_group(session):
    """
    Test that a flying combatant leaves its group with a combat move.
    """
    _engage(session, "hero", "goblin")
    session.get_actor("hero").add_status(StatusEffect(status_id=StatusId.FLIGHT))
    assert execute_movement(session, "hero", MoveType.COMBAT).success
    assert not is_engaged(session.engagements, "hero")


def test_grounded_move_keeps_group(session):
    """
    Test that a grounded combat move does not break contact.
    """
    _engage(session, "hero", "goblin")
    assert execute_movement(session, "hero", MoveType.COMBAT).success
    assert is_engaged(session.engagements, "hero")


def test_disabled_economy_skips_slots(session):
    """
    Test that with the action economy off, moves are free and unrecorded.
    """
    session.settings = EngineSettings(action_economy_enabled=False)
    assert execute_movement(session, "hero", MoveType.RUSH, rush_target="goblin").success
    assert execute_movement(session, "hero", MoveType.DISENGAGE).success
    assert not session.get_action_state("hero").move


def test_unknown_combatant_cannot_move(session):
    """
    Test that moving an unknown combatant reports it.
    """
    result = execute_movement(session, "ghost", MoveType.COMBAT)
    assert result.reason == BlockReason.UNKNOWN_COMBATANT


def test_disabled_economy_keeps_engagement_rules(session):
    """
    Test that with the action economy off, an engaged combatant still cannot rush.
    """
    session.settings = EngineSettings(action_economy_enabled=False)
    _engage(session, "hero", "goblin")
    result = execute_movement(session, "hero", MoveType.RUSH, rush_target="orc")
    assert not result.success
    assert result.reason == BlockReason.MOVE_NOT_OFFERED
    assert not are_engaged(session.engagements, "hero", "orc")
    assert are_engaged(session.engagements, "hero", "goblin")


def test_disabled_economy_free_combatant_cannot_disengage(session):
    """
    Test that with the action economy off, disengage still needs a group.
    """
    session.settings = EngineSettings(action_economy_enabled=False)
    result = execute_movement(session, "hero", MoveType.DISENGAGE)
    assert result.reason == BlockReason.MOVE_NOT_OFFERED


def test_flying_rush_leaves_old_group(session):
    """
    Test that a flyer rushing a new enemy breaks contact with the old one.
    """
    _engage(session, "hero", "goblin")
    session.get_actor("hero").add_status(StatusEffect(status_id=StatusId.FLIGHT))
    result = execute_movement(session, "hero", MoveType.RUSH, rush_target="orc")
    assert result.success
    assert are_engaged(session.engagements, "hero", "orc")
    assert not are_engaged(session.engagements, "hero", "goblin")
    assert not is_engaged(session.engagements, "goblin")


def test_repeated_blocker_rolls_once(session, roller):
    """
    Test that a blocker nominated twice contests the disengage only once.
    """
    _engage(session, "hero", "goblin")
    roller.queue(3, 3, 1, 1)
    result = execute_movement(
        session, "hero", MoveType.DISENGAGE, blockers=["goblin", "goblin"], roller=roller
    )
    assert result.success
    assert [c.blocker_id for c in result.blockade.contests] == ["goblin"]
    assert roller.faces == []
