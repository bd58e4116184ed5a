"""
Status effect module for the combat engine.

Every status the engine knows about is a member of a closed enumeration, and
its rules behaviour is described by a set of tags. The tag table below is the
single place that decides which statuses block actions, which deal damage at
cleanup and which expire at a round boundary.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from skirmish.core.constants import DAMAGE_OVER_TIME_MULTIPLIER, NiceEnum


class StatusId(NiceEnum):
    """Statuses that can be active on an actor."""

    POISON = "poison"
    STUN = "stun"
    SLEEP = "sleep"
    PARALYSIS = "paralysis"
    PETRIFICATION = "petrification"
    INTIMIDATION = "intimidation"
    RAGE = "rage"
    OFFGUARD = "offguard"
    KNOCKBACK = "knockback"
    SLIP = "slip"
    FLIGHT = "flight"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this status."""
        return {
            StatusId.POISON: "☠️",
            StatusId.STUN: "💫",
            StatusId.SLEEP: "💤",
            StatusId.PARALYSIS: "⚡",
            StatusId.PETRIFICATION: "🗿",
            StatusId.INTIMIDATION: "😱",
            StatusId.RAGE: "😡",
            StatusId.OFFGUARD: "😶",
            StatusId.KNOCKBACK: "💥",
            StatusId.SLIP: "🕸️",
            StatusId.FLIGHT: "🪽",
        }.get(self, "❔")

    @property
    def tags(self) -> frozenset["StatusTag"]:
        return STATUS_TAGS[self]


class StatusTag(NiceEnum):
    """Rules categories a status can belong to."""

    CANNOT_ACT = "cannot_act"
    CANNOT_MOVE = "cannot_move"
    BLOCKS_MAJOR = "blocks_major"
    DAMAGE_OVER_TIME = "damage_over_time"
    ROUND_LIMITED = "round_limited"
    CLEARS_AT_INITIATIVE = "clears_at_initiative"
    FLYING = "flying"
    INITIATIVE_PENALTY = "initiative_penalty"
    MAJOR_PENALTY = "major_penalty"
    REACTION_PENALTY = "reaction_penalty"
    REMOVED_ON_DAMAGE = "removed_on_damage"


STATUS_TAGS: dict[StatusId, frozenset[StatusTag]] = {
    StatusId.POISON: frozenset(
        {StatusTag.DAMAGE_OVER_TIME, StatusTag.ROUND_LIMITED}
    ),
    StatusId.STUN: frozenset(
        {StatusTag.REACTION_PENALTY, StatusTag.CLEARS_AT_INITIATIVE}
    ),
    StatusId.SLEEP: frozenset({StatusTag.CANNOT_ACT, StatusTag.REMOVED_ON_DAMAGE}),
    StatusId.PARALYSIS: frozenset({StatusTag.CANNOT_MOVE}),
    StatusId.PETRIFICATION: frozenset({StatusTag.CANNOT_ACT, StatusTag.CANNOT_MOVE}),
    StatusId.INTIMIDATION: frozenset({StatusTag.BLOCKS_MAJOR}),
    StatusId.RAGE: frozenset({StatusTag.ROUND_LIMITED}),
    StatusId.OFFGUARD: frozenset({StatusTag.MAJOR_PENALTY, StatusTag.ROUND_LIMITED}),
    StatusId.KNOCKBACK: frozenset(
        {StatusTag.INITIATIVE_PENALTY, StatusTag.ROUND_LIMITED}
    ),
    StatusId.SLIP: frozenset({StatusTag.CANNOT_MOVE}),
    StatusId.FLIGHT: frozenset({StatusTag.FLYING}),
}


def statuses_with_tag(tag: StatusTag) -> frozenset[StatusId]:
    """
    Collect every status carrying the given tag.

    Args:
        tag (StatusTag):
            The tag to look for.

    Returns:
        frozenset[StatusId]:
            The statuses tagged with it.

    """
    return frozenset(status for status, tags in STATUS_TAGS.items() if tag in tags)


ROUND_LIMITED_STATUSES = statuses_with_tag(StatusTag.ROUND_LIMITED)
INITIATIVE_CLEARED_STATUSES = statuses_with_tag(StatusTag.CLEARS_AT_INITIATIVE)


class StatusEffect(BaseModel):
    """
    A status active on an actor, with its magnitude.

    The magnitude is the "n" of statuses such as poison(n) or knockback(n);
    statuses without a magnitude keep the default of 1.
    """

    model_config = ConfigDict(frozen=True)

    status_id: StatusId = Field(
        description="Which status this is.",
    )
    magnitude: int = Field(
        default=1,
        description="Strength of the status, used by poison and knockback.",
    )

    def model_post_init(self, _: Any) -> None:
        if self.magnitude < 1:
            raise ValueError("Status magnitude must be a positive integer.")

    @property
    def tags(self) -> frozenset[StatusTag]:
        return self.status_id.tags

    def has_tag(self, tag: StatusTag) -> bool:
        return tag in self.tags

    @property
    def damage_per_round(self) -> int:
        """HP lost at cleanup, zero for statuses that deal no damage."""
        if not self.has_tag(StatusTag.DAMAGE_OVER_TIME):
            return 0
        return DAMAGE_OVER_TIME_MULTIPLIER * self.magnitude

    def __str__(self) -> str:
        if self.magnitude > 1:
            return f"{self.status_id.display_name}({self.magnitude})"
        return self.status_id.display_name
