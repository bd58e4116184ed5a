"""
Tests for the engagement manager.
"""

import itertools

import pytest

from skirmish.combat.engagement import (
    Engagement,
    are_engaged,
    create_engagement,
    find_engagement,
    get_allies,
    get_engaged_with,
    get_engagement_summary,
    get_opponents,
    is_engaged,
    remove_from_engagement,
    validate_attack_engagement,
)
from skirmish.core.constants import BlockReason
from skirmish.core.settings import EngineSettings


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"eng-{next(counter)}"


def test_new_group_for_unengaged_pair(ids):
    """
    Test that two free combatants form a new group.
    """
    engagements, eid = create_engagement((), "a", "b", ids)
    assert eid == "eng-1"
    assert engagements == (Engagement(engagement_id="eng-1", members=("a", "b")),)


def test_joining_existing_group(ids):
    """
    Test that a free combatant joins the group of a grouped one.
    """
    engagements, eid = create_engagement((), "a", "b", ids)
    engagements, joined = create_engagement(engagements, "c", "a", ids)
    assert joined == eid
    assert set(find_engagement(engagements, "c").members) == {"a", "b", "c"}
    assert len(engagements) == 1


def test_merge_is_union(ids):
    """
    Test that linking members of two groups merges them into one group.
    """
    engagements, first = create_engagement((), "a", "b", ids)
    engagements, _ = create_engagement(engagements, "c", "d", ids)
    engagements, merged = create_engagement(engagements, "b", "c", ids)
    assert merged == first
    assert len(engagements) == 1
    assert sorted(engagements[0].members) == ["a", "b", "c", "d"]


def test_same_group_is_noop(ids):
    """
    Test that linking two members of the same group changes nothing.
    """
    engagements, first = create_engagement((), "a", "b", ids)
    engagements, _ = create_engagement(engagements, "a", "c", ids)
    again, eid = create_engagement(engagements, "c", "b", ids)
    assert eid == first
    assert again == engagements


def test_self_engagement_rejected():
    """
    Test that a combatant cannot engage itself.
    """
    with pytest.raises(ValueError):
        create_engagement((), "a", "a")


def test_group_needs_two_unique_members():
    """
    Test that the engagement value refuses invalid member lists.
    """
    with pytest.raises(ValueError):
        Engagement(engagement_id="x", members=("a",))
    with pytest.raises(ValueError):
        Engagement(engagement_id="x", members=("a", "a"))


def test_removing_from_pair_deletes_group(ids):
    """
    Test that a two-member group disappears when one member leaves.
    """
    engagements, _ = create_engagement((), "a", "b", ids)
    engagements = remove_from_engagement(engagements, "a")
    assert engagements == ()
    assert not is_engaged(engagements, "b")


def test_removing_from_larger_group_shrinks_it(ids):
    """
    Test that a larger group keeps its remaining members.
    """
    engagements, eid = create_engagement((), "a", "b", ids)
    engagements, _ = create_engagement(engagements, "a", "c", ids)
    engagements = remove_from_engagement(engagements, "b")
    assert find_engagement(engagements, "a").engagement_id == eid
    assert set(get_engaged_with(engagements, "a")) == {"c"}


def test_removing_unengaged_is_noop(ids):
    """
    Test that removing a free combatant returns the groups unchanged.
    """
    engagements, _ = create_engagement((), "a", "b", ids)
    assert remove_from_engagement(engagements, "z") == engagements


def test_are_engaged(ids):
    """
    Test pairwise contact queries.
    """
    engagements, _ = create_engagement((), "a", "b", ids)
    assert are_engaged(engagements, "a", "b")
    assert not are_engaged(engagements, "a", "c")
    assert not are_engaged(engagements, "a", "a")


def test_opponents_and_allies(session):
    """
    Test that opponents are active enemies and allies active friends in the group.
    """
    session.engagements, _ = create_engagement(session.engagements, "hero", "goblin")
    session.engagements, _ = create_engagement(session.engagements, "hero", "orc")
    session.engagements, _ = create_engagement(session.engagements, "hero", "ally")
    assert set(get_opponents(session, "hero")) == {"goblin", "orc"}
    assert get_allies(session, "hero") == ["ally"]
    session.get_actor("orc").set_hp(0)
    assert get_opponents(session, "hero") == ["goblin"]


def test_opponents_of_unknown_combatant(session):
    """
    Test that an unknown combatant has no opponents.
    """
    assert get_opponents(session, "ghost") == []


def test_melee_requires_engagement(session):
    """
    Test that melee attacks need a shared group.
    """
    check = validate_attack_engagement(session, "hero", "goblin", is_ranged=False)
    assert check.reason == BlockReason.ATTACK_NOT_ENGAGED
    session.engagements, _ = create_engagement(session.engagements, "hero", "goblin")
    assert validate_attack_engagement(session, "hero", "goblin", is_ranged=False).allowed


def test_ranged_refused_inside_engagement(session):
    """
    Test that ranged attacks cannot target a member of the attacker's group.
    """
    assert validate_attack_engagement(session, "hero", "goblin", is_ranged=True).allowed
    session.engagements, _ = create_engagement(session.engagements, "hero", "goblin")
    check = validate_attack_engagement(session, "hero", "goblin", is_ranged=True)
    assert check.reason == BlockReason.RANGED_ATTACK_ENGAGED
    assert validate_attack_engagement(session, "hero", "orc", is_ranged=True).allowed


def test_unknown_combatant_attack_allowed(session):
    """
    Test that an attack involving an untracked combatant is let through.
    """
    assert validate_attack_engagement(session, "hero", "ghost", is_ranged=False).allowed


def test_disabled_engagement_allows_all(session):
    """
    Test that turning engagement off lets every attack through.
    """
    session.settings = EngineSettings(engagement_enabled=False)
    assert validate_attack_engagement(session, "hero", "goblin", is_ranged=False).allowed


def test_summary_lists_names(session):
    """
    Test that the summary shows member names, and Unknown for missing ones.
    """
    session.engagements, eid = create_engagement(session.engagements, "hero", "goblin")
    session.engagements = (
        Engagement(engagement_id=eid, members=("hero", "goblin", "ghost")),
    )
    assert get_engagement_summary(session) == [(eid, ["Hero", "Goblin", "Unknown"])]
