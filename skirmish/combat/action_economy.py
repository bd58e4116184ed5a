"""
Action economy module for the combat engine.

Tracks the per-turn action slots of a combatant (major, minor, move, free and
reaction). The state is an immutable value: checking whether a slot can be
spent and spending it are separate functions, and spending returns a new
state instead of changing the old one.
"""

from pydantic import BaseModel, ConfigDict, Field

from skirmish.actors.actor import Actor
from skirmish.core.constants import (
    FREE_ACTION_LIMIT,
    ActionType,
    BlockReason,
    MoveType,
)
from skirmish.effects.status_effects import StatusTag


class ActionState(BaseModel):
    """The action slots a combatant has spent during the current turn."""

    model_config = ConfigDict(frozen=True)

    major: bool = Field(
        default=False,
        description="Whether the major action was used.",
    )
    minor: bool = Field(
        default=False,
        description="Whether the minor action was used.",
    )
    move: bool = Field(
        default=False,
        description="Whether the move action was used.",
    )
    move_type: MoveType | None = Field(
        default=None,
        description="The kind of move taken this turn, if any.",
    )
    free_count: int = Field(
        default=0,
        ge=0,
        description="How many free actions were used this turn.",
    )
    reaction: bool = Field(
        default=False,
        description="Whether the reaction was used.",
    )


class ActionCheck(BaseModel):
    """Answer to "may this happen?", with the reason when it may not."""

    model_config = ConfigDict(frozen=True)

    allowed: bool = Field(
        description="Whether the action may be performed.",
    )
    reason: BlockReason | None = Field(
        default=None,
        description="Why the action is refused.",
    )

    @classmethod
    def ok(cls) -> "ActionCheck":
        return cls(allowed=True)

    @classmethod
    def blocked(cls, reason: BlockReason) -> "ActionCheck":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


class ActionSummary(BaseModel):
    """Read view of the remaining slots, for display."""

    model_config = ConfigDict(frozen=True)

    major_available: bool
    minor_available: bool
    move_available: bool
    move_type: MoveType | None
    free_count: int
    reaction_available: bool


def create_action_state() -> ActionState:
    """Returns the blank state a combatant starts its turn with."""
    return ActionState()


def get_timing_action(timing: str) -> ActionType | None:
    """
    Map a skill timing key to the action slot it spends.

    Args:
        timing (str):
            The timing key, e.g. "action", "minor" or "setup".

    Returns:
        ActionType | None:
            The slot spent, or None for timings that spend no slot
            (passive, setup, initiative, cleanup and the like).

    """
    return {
        "action": ActionType.MAJOR,
        "major": ActionType.MAJOR,
        "minor": ActionType.MINOR,
        "move": ActionType.MOVE,
        "free": ActionType.FREE,
        "reaction": ActionType.REACTION,
    }.get(timing)


def _status_gate(action_type: ActionType, actor: Actor) -> BlockReason | None:
    if actor.is_incapacitated():
        return BlockReason.INCAPACITATED
    if action_type is ActionType.MAJOR and actor.has_tag(StatusTag.BLOCKS_MAJOR):
        return BlockReason.INTIMIDATED
    if action_type in (ActionType.MAJOR, ActionType.MINOR) and actor.has_tag(
        StatusTag.CANNOT_ACT
    ):
        return BlockReason.CANNOT_ACT
    if action_type is ActionType.MOVE and actor.has_tag(StatusTag.CANNOT_MOVE):
        return BlockReason.CANNOT_MOVE
    return None


def _slot_gate(state: ActionState, action_type: ActionType) -> BlockReason | None:
    match action_type:
        case ActionType.MAJOR:
            if state.major:
                return BlockReason.MAJOR_USED
        case ActionType.MINOR:
            if state.minor:
                return BlockReason.MINOR_USED
            if state.move_type is not None and state.move_type.blocks_minor:
                return BlockReason.MINOR_BLOCKED_BY_MOVE
        case ActionType.MOVE:
            if state.move:
                return BlockReason.MOVE_USED
        case ActionType.FREE:
            if state.free_count >= FREE_ACTION_LIMIT:
                return BlockReason.FREE_LIMIT
        case ActionType.REACTION:
            if state.reaction:
                return BlockReason.REACTION_USED
    return None


def can_perform_action(
    state: ActionState,
    action_type: ActionType,
    actor: Actor | None = None,
) -> ActionCheck:
    """
    Check whether an action slot can be spent.

    Actor conditions are checked before the slot itself: an incapacitated
    actor can do nothing, then statuses may block major, major and minor, or
    move actions. Only then is the slot's own usage considered.

    Args:
        state (ActionState):
            The combatant's current state.
        action_type (ActionType):
            The slot to spend.
        actor (Actor | None):
            The acting actor, when its statuses should be considered.

    Returns:
        ActionCheck:
            Whether the action is allowed, and why not.

    """
    if actor is not None:
        reason = _status_gate(action_type, actor)
        if reason is not None:
            return ActionCheck.blocked(reason)
    reason = _slot_gate(state, action_type)
    if reason is not None:
        return ActionCheck.blocked(reason)
    return ActionCheck.ok()


def consume_action(
    state: ActionState,
    action_type: ActionType,
    move_type: MoveType | None = None,
) -> ActionState:
    """
    Spend an action slot.

    This does not validate; call can_perform_action first.

    Args:
        state (ActionState):
            The current state.
        action_type (ActionType):
            The slot to spend.
        move_type (MoveType | None):
            The kind of move, recorded for move actions.

    Returns:
        ActionState:
            A new state with the slot spent.

    """
    match action_type:
        case ActionType.MAJOR:
            return state.model_copy(update={"major": True})
        case ActionType.MINOR:
            return state.model_copy(update={"minor": True})
        case ActionType.MOVE:
            return state.model_copy(update={"move": True, "move_type": move_type})
        case ActionType.FREE:
            return state.model_copy(update={"free_count": state.free_count + 1})
        case ActionType.REACTION:
            return state.model_copy(update={"reaction": True})
    raise ValueError(f"Unknown action type: {action_type}")


def get_action_summary(state: ActionState) -> ActionSummary:
    """
    Build the display view of the remaining slots.

    Args:
        state (ActionState):
            The current state.

    Returns:
        ActionSummary:
            Which slots are still open.

    """
    minor_blocked = state.move_type is not None and state.move_type.blocks_minor
    return ActionSummary(
        major_available=not state.major,
        minor_available=not state.minor and not minor_blocked,
        move_available=not state.move,
        move_type=state.move_type,
        free_count=state.free_count,
        reaction_available=not state.reaction,
    )
