"""
Engagement module for the combat engine.

An engagement is a group of two or more combatants in melee contact. Groups
are kept as immutable values inside a tuple: every mutating function takes
the current tuple and returns a new one, and the caller stores the result
back on the session.
"""

import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from catchery import log_critical, log_debug, log_warning
from pydantic import BaseModel, ConfigDict, Field

from skirmish.combat.action_economy import ActionCheck
from skirmish.core.constants import BlockReason, is_opponent

if TYPE_CHECKING:
    from skirmish.combat.combat_session import CombatSession


class Engagement(BaseModel):
    """A group of combatants in mutual melee contact."""

    model_config = ConfigDict(frozen=True)

    engagement_id: str = Field(
        description="Stable identifier of the group.",
    )
    members: tuple[str, ...] = Field(
        description="Combatant ids in the group, in joining order.",
    )

    def model_post_init(self, _: Any) -> None:
        if len(set(self.members)) != len(self.members):
            raise ValueError(
                f"Engagement {self.engagement_id} has duplicate members: {self.members}"
            )
        if len(self.members) < 2:
            raise ValueError(
                f"Engagement {self.engagement_id} needs at least two members, "
                f"got {len(self.members)}."
            )

    def __contains__(self, combatant_id: object) -> bool:
        return combatant_id in self.members


Engagements = tuple[Engagement, ...]


def new_engagement_id() -> str:
    """Generates a fresh engagement identifier."""
    return f"eng-{uuid.uuid4().hex[:8]}"


# ============================================================================
# MUTATIONS
# ============================================================================


def create_engagement(
    engagements: Engagements,
    first: str,
    second: str,
    id_factory: Callable[[], str] = new_engagement_id,
) -> tuple[Engagements, str]:
    """
    Put two combatants in contact, merging their groups if needed.

    Four cases are handled: neither combatant is grouped (a new group is
    formed), one is grouped (the other joins it), both share a group
    (nothing changes), or they are in different groups (the second group is
    merged into the first one, which keeps its id).

    Args:
        engagements (Engagements):
            The current groups.
        first (str):
            The first combatant id.
        second (str):
            The second combatant id.
        id_factory (Callable[[], str]):
            Produces the id of a newly created group.

    Returns:
        tuple[Engagements, str]:
            The updated groups and the id of the group holding both.

    Raises:
        ValueError:
            If a combatant is engaged with itself.

    """
    if first == second:
        log_critical(
            "A combatant cannot engage itself",
            {"combatant_id": first},
        )
        raise ValueError(f"Combatant {first} cannot engage itself.")

    group_a = find_engagement(engagements, first)
    group_b = find_engagement(engagements, second)

    if group_a is None and group_b is None:
        created = Engagement(engagement_id=id_factory(), members=(first, second))
        log_debug(
            "Engagement created",
            {"engagement_id": created.engagement_id, "members": created.members},
        )
        return (*engagements, created), created.engagement_id

    if group_a is not None and group_b is not None:
        if group_a.engagement_id == group_b.engagement_id:
            return engagements, group_a.engagement_id
        merged_members = tuple(dict.fromkeys((*group_a.members, *group_b.members)))
        merged = group_a.model_copy(update={"members": merged_members})
        log_debug(
            "Engagements merged",
            {
                "kept": group_a.engagement_id,
                "discarded": group_b.engagement_id,
                "members": merged_members,
            },
        )
        updated = tuple(
            merged if eng.engagement_id == group_a.engagement_id else eng
            for eng in engagements
            if eng.engagement_id != group_b.engagement_id
        )
        return updated, group_a.engagement_id

    # Exactly one of them is already grouped.
    group, joiner = (group_a, second) if group_a is not None else (group_b, first)
    assert group is not None
    grown = group.model_copy(update={"members": (*group.members, joiner)})
    log_debug(
        "Combatant joined engagement",
        {"engagement_id": group.engagement_id, "combatant_id": joiner},
    )
    return (
        tuple(grown if eng.engagement_id == group.engagement_id else eng for eng in engagements),
        group.engagement_id,
    )


def remove_from_engagement(engagements: Engagements, combatant_id: str) -> Engagements:
    """
    Take a combatant out of its group.

    A group left with a single member is deleted.

    Args:
        engagements (Engagements):
            The current groups.
        combatant_id (str):
            The combatant leaving.

    Returns:
        Engagements:
            The updated groups; unchanged if the combatant was not engaged.

    """
    group = find_engagement(engagements, combatant_id)
    if group is None:
        return engagements
    remaining = tuple(m for m in group.members if m != combatant_id)
    if len(remaining) < 2:
        log_debug(
            "Engagement dissolved",
            {"engagement_id": group.engagement_id, "left": combatant_id},
        )
        return tuple(eng for eng in engagements if eng.engagement_id != group.engagement_id)
    shrunk = group.model_copy(update={"members": remaining})
    log_debug(
        "Combatant left engagement",
        {"engagement_id": group.engagement_id, "combatant_id": combatant_id},
    )
    return tuple(
        shrunk if eng.engagement_id == group.engagement_id else eng for eng in engagements
    )


def clear_engagements() -> Engagements:
    """Returns an empty group collection."""
    return ()


# ============================================================================
# QUERIES
# ============================================================================


def find_engagement(engagements: Engagements, combatant_id: str) -> Engagement | None:
    for eng in engagements:
        if combatant_id in eng.members:
            return eng
    return None


def is_engaged(engagements: Engagements, combatant_id: str) -> bool:
    return find_engagement(engagements, combatant_id) is not None


def are_engaged(engagements: Engagements, first: str, second: str) -> bool:
    """Check whether two combatants share a group."""
    group = find_engagement(engagements, first)
    return group is not None and second in group.members and first != second


def get_engaged_with(engagements: Engagements, combatant_id: str) -> list[str]:
    """Returns the other members of the combatant's group."""
    group = find_engagement(engagements, combatant_id)
    if group is None:
        return []
    return [m for m in group.members if m != combatant_id]


def _engaged_by_side(
    session: "CombatSession", combatant_id: str, opponents: bool
) -> list[str]:
    actor = session.get_actor(combatant_id)
    if actor is None:
        log_warning(
            "Engagement query for a combatant not in the session",
            {"combatant_id": combatant_id},
        )
        return []
    result = []
    for other_id in get_engaged_with(session.engagements, combatant_id):
        other = session.get_actor(other_id)
        if other is None or not other.is_active():
            continue
        if is_opponent(actor.category, other.category) == opponents:
            result.append(other_id)
    return result


def get_opponents(session: "CombatSession", combatant_id: str) -> list[str]:
    """
    Returns the engaged members on the opposing side that are still active.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The combatant whose opponents to find.

    Returns:
        list[str]:
            Ids of active engaged opponents.

    """
    return _engaged_by_side(session, combatant_id, opponents=True)


def get_allies(session: "CombatSession", combatant_id: str) -> list[str]:
    """Returns the engaged members on the same side that are still active."""
    return _engaged_by_side(session, combatant_id, opponents=False)


def get_engagement_summary(session: "CombatSession") -> list[tuple[str, list[str]]]:
    """
    Describe every group as its id and the names of its members.

    Args:
        session (CombatSession):
            The combat session.

    Returns:
        list[tuple[str, list[str]]]:
            One entry per group; members missing from the session show as
            "Unknown".

    """
    summary = []
    for eng in session.engagements:
        names = []
        for member in eng.members:
            actor = session.get_actor(member)
            names.append(actor.name if actor is not None else "Unknown")
        summary.append((eng.engagement_id, names))
    return summary


def validate_attack_engagement(
    session: "CombatSession",
    attacker_id: str,
    target_id: str,
    is_ranged: bool,
) -> ActionCheck:
    """
    Check whether an attack is allowed by the engagement rules.

    Melee attacks need the two combatants in the same group. Ranged attacks
    are refused against a member of the attacker's own group, and otherwise
    allowed. Combatants unknown to the session are let through.

    Args:
        session (CombatSession):
            The combat session.
        attacker_id (str):
            The attacking combatant.
        target_id (str):
            The targeted combatant.
        is_ranged (bool):
            Whether the attack is ranged.

    Returns:
        ActionCheck:
            Whether the attack may proceed.

    """
    if not session.settings.engagement_enabled:
        return ActionCheck.ok()
    if session.get_combatant(attacker_id) is None or session.get_combatant(target_id) is None:
        log_warning(
            "Attack validation skipped, combatant not tracked by the session",
            {"attacker_id": attacker_id, "target_id": target_id},
        )
        return ActionCheck.ok()
    engaged = are_engaged(session.engagements, attacker_id, target_id)
    if is_ranged and engaged:
        return ActionCheck.blocked(BlockReason.RANGED_ATTACK_ENGAGED)
    if not is_ranged and not engaged:
        return ActionCheck.blocked(BlockReason.ATTACK_NOT_ENGAGED)
    return ActionCheck.ok()
