"""
Movement module for the combat engine.

Works out which movements a combatant may take this turn and carries one
out. Disengaging can be contested by a blockade, and rushing puts the mover
in contact with a chosen enemy. Any choice a player has to make (blockers,
rush target) is passed in already resolved, so the whole execution runs
under the session lock in one go.
"""

from catchery import log_debug, log_warning
from pydantic import BaseModel, ConfigDict, Field

from skirmish.combat.action_economy import can_perform_action, consume_action
from skirmish.combat.check import CheckResult, DieRoller, escaper_wins, evaluate, roll_d6
from skirmish.combat.combat_session import CombatSession
from skirmish.combat.engagement import (
    create_engagement,
    find_engagement,
    get_opponents,
    is_engaged,
    remove_from_engagement,
)
from skirmish.core.constants import (
    DISENGAGE_DISTANCE,
    ActionType,
    BlockReason,
    MoveType,
    is_opponent,
)


class MovementOption(BaseModel):
    """One movement choice offered to a combatant."""

    model_config = ConfigDict(frozen=True)

    move_type: MoveType = Field(
        description="The kind of movement.",
    )
    distance: int = Field(
        ge=0,
        description="How far the movement goes, in meters.",
    )
    available: bool = Field(
        description="Whether the movement can be taken now.",
    )
    reason: BlockReason | None = Field(
        default=None,
        description="Why the movement is unavailable.",
    )


class BlockadeContest(BaseModel):
    """A single blocker's attempt to hold the escaper."""

    model_config = ConfigDict(frozen=True)

    blocker_id: str
    escaper_check: CheckResult
    blocker_check: CheckResult

    @property
    def held(self) -> bool:
        return not escaper_wins(self.escaper_check, self.blocker_check)


class BlockadeOutcome(BaseModel):
    """All contests of one disengage attempt."""

    model_config = ConfigDict(frozen=True)

    escaper_id: str
    contests: list[BlockadeContest] = Field(default_factory=list)

    @property
    def escaped(self) -> bool:
        """The escaper gets away only if no blocker held them."""
        return not any(contest.held for contest in self.contests)


class MovementResult(BaseModel):
    """What happened when a movement was executed."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(
        description="Whether the movement went through.",
    )
    move_type: MoveType = Field(
        description="The movement attempted.",
    )
    reason: BlockReason | None = Field(
        default=None,
        description="Why the movement failed.",
    )
    blockade: BlockadeOutcome | None = Field(
        default=None,
        description="The blockade contests, for disengages that were contested.",
    )
    engagement_id: str | None = Field(
        default=None,
        description="The group joined by a rush.",
    )


def _effectively_engaged(session: CombatSession, combatant_id: str) -> bool:
    actor = session.get_actor(combatant_id)
    if actor is not None and actor.is_flying():
        return False
    return is_engaged(session.engagements, combatant_id)


def get_movement_options(session: CombatSession, combatant_id: str) -> list[MovementOption]:
    """
    List the movements available to a combatant.

    Combat and full moves are always listed. Disengage is listed only while
    engaged, and rush only while not engaged; a flying combatant counts as
    not engaged. Full moves and disengages are unavailable after a minor
    action.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The moving combatant.

    Returns:
        list[MovementOption]:
            The options, empty if the combatant is not in the session.

    """
    actor = session.get_actor(combatant_id)
    if actor is None:
        log_warning(
            "Movement options requested for a combatant not in the session",
            {"combatant_id": combatant_id},
        )
        return []

    rate = actor.movement_rate
    state = session.get_action_state(combatant_id)
    if session.settings.action_economy_enabled:
        move_check = can_perform_action(state, ActionType.MOVE, actor)
        minor_used = state.minor
    else:
        move_check = None
        minor_used = False

    def option(
        move_type: MoveType, distance: int, minor_reason: BlockReason | None = None
    ) -> MovementOption:
        if move_check is not None and not move_check.allowed:
            return MovementOption(
                move_type=move_type,
                distance=distance,
                available=False,
                reason=move_check.reason,
            )
        if minor_reason is not None and minor_used:
            return MovementOption(
                move_type=move_type, distance=distance, available=False, reason=minor_reason
            )
        return MovementOption(move_type=move_type, distance=distance, available=True)

    options = [
        option(MoveType.COMBAT, rate),
        option(MoveType.FULL, rate * 2, BlockReason.FULL_BLOCKED_BY_MINOR),
    ]
    if _effectively_engaged(session, combatant_id):
        options.append(
            option(
                MoveType.DISENGAGE,
                min(DISENGAGE_DISTANCE, rate),
                BlockReason.DISENGAGE_BLOCKED_BY_MINOR,
            )
        )
    else:
        options.append(option(MoveType.RUSH, rate))
    return options


def get_blockade_candidates(session: CombatSession, combatant_id: str) -> list[str]:
    """Returns the engaged opponents who may try to block a disengage."""
    return get_opponents(session, combatant_id)


def get_rush_targets(session: CombatSession, combatant_id: str) -> list[str]:
    """
    Returns the combatants a rush may engage.

    Valid targets are active combatants on the opposing side that are not
    already in the mover's group.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The rushing combatant.

    Returns:
        list[str]:
            Ids of valid targets, in turn order.

    """
    actor = session.get_actor(combatant_id)
    if actor is None:
        log_warning(
            "Rush targets requested for a combatant not in the session",
            {"combatant_id": combatant_id},
        )
        return []
    group = find_engagement(session.engagements, combatant_id)
    return [
        c.combatant_id
        for c in session.combatants
        if c.combatant_id != combatant_id
        and is_opponent(actor.category, c.actor.category)
        and c.actor.is_active()
        and (group is None or c.combatant_id not in group.members)
    ]


def resolve_blockade(
    session: CombatSession,
    escaper_id: str,
    blocker_ids: list[str],
    roller: DieRoller = roll_d6,
) -> BlockadeOutcome:
    """
    Roll the blockade contests for a disengage.

    The escaper rolls once, adding its initiative, and every blocker rolls
    against that value with its own initiative. Ties go to the escaper.

    Args:
        session (CombatSession):
            The combat session.
        escaper_id (str):
            The combatant trying to disengage.
        blocker_ids (list[str]):
            The nominated blockers.
        roller (DieRoller):
            Source of die faces.

    Returns:
        BlockadeOutcome:
            Every contest that was rolled.

    """
    escaper = session.get_actor(escaper_id)
    if escaper is None:
        log_warning(
            "Blockade for a combatant not in the session",
            {"combatant_id": escaper_id},
        )
        return BlockadeOutcome(escaper_id=escaper_id)
    escaper_check = evaluate(modifier=escaper.initiative, roller=roller)
    contests = []
    for blocker_id in blocker_ids:
        blocker = session.get_actor(blocker_id)
        if blocker is None:
            log_warning(
                "Blocker not in the session, skipping",
                {"blocker_id": blocker_id},
            )
            continue
        contest = BlockadeContest(
            blocker_id=blocker_id,
            escaper_check=escaper_check,
            blocker_check=evaluate(modifier=blocker.initiative, roller=roller),
        )
        log_debug(
            "Blockade contest",
            {
                "escaper": escaper.name,
                "blocker": blocker.name,
                "escaper_total": escaper_check.total,
                "blocker_total": contest.blocker_check.total,
                "held": contest.held,
            },
        )
        contests.append(contest)
    return BlockadeOutcome(escaper_id=escaper_id, contests=contests)


def execute_movement(
    session: CombatSession,
    combatant_id: str,
    move_type: MoveType,
    blockers: list[str] | None = None,
    rush_target: str | None = None,
    roller: DieRoller = roll_d6,
) -> MovementResult:
    """
    Carry out a movement.

    The option is validated again before anything changes. A disengage that
    is held by a blockade still spends the move but leaves the combatant in
    its group. A rush without a valid target changes nothing. A flying
    combatant taking a combat or full move leaves its group.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The moving combatant.
        move_type (MoveType):
            The movement to take.
        blockers (list[str] | None):
            Opponents who chose to block a disengage.
        rush_target (str | None):
            The combatant to engage with a rush.
        roller (DieRoller):
            Source of die faces for the blockade.

    Returns:
        MovementResult:
            The outcome of the movement.

    """
    with session.transaction():
        actor = session.get_actor(combatant_id)
        if actor is None:
            log_warning(
                "Movement for a combatant not in the session",
                {"combatant_id": combatant_id, "move_type": move_type},
            )
            return MovementResult(
                success=False, move_type=move_type, reason=BlockReason.UNKNOWN_COMBATANT
            )

        offered = {o.move_type: o for o in get_movement_options(session, combatant_id)}
        chosen = offered.get(move_type)
        if chosen is None:
            return MovementResult(
                success=False, move_type=move_type, reason=BlockReason.MOVE_NOT_OFFERED
            )
        if not chosen.available:
            return MovementResult(success=False, move_type=move_type, reason=chosen.reason)

        blockade = None
        engagement_id = None
        match move_type:
            case MoveType.DISENGAGE:
                candidates = get_blockade_candidates(session, combatant_id)
                nominated = [b for b in dict.fromkeys(blockers or []) if b in candidates]
                ignored = [b for b in blockers or [] if b not in candidates]
                if ignored:
                    log_warning(
                        "Ignoring blockers that are not engaged opponents",
                        {"combatant_id": combatant_id, "ignored": ignored},
                    )
                if nominated:
                    blockade = resolve_blockade(session, combatant_id, nominated, roller)
                    if not blockade.escaped:
                        _consume_move(session, combatant_id, move_type)
                        return MovementResult(
                            success=False,
                            move_type=move_type,
                            reason=BlockReason.BLOCKADE_HELD,
                            blockade=blockade,
                        )
                session.engagements = remove_from_engagement(session.engagements, combatant_id)
            case MoveType.RUSH:
                if rush_target is None:
                    return MovementResult(
                        success=False, move_type=move_type, reason=BlockReason.NO_RUSH_TARGET
                    )
                if rush_target not in get_rush_targets(session, combatant_id):
                    return MovementResult(
                        success=False,
                        move_type=move_type,
                        reason=BlockReason.INVALID_RUSH_TARGET,
                    )
                if actor.is_flying():
                    session.engagements = remove_from_engagement(
                        session.engagements, combatant_id
                    )
                session.engagements, engagement_id = create_engagement(
                    session.engagements, combatant_id, rush_target
                )
            case _:
                if actor.is_flying():
                    session.engagements = remove_from_engagement(
                        session.engagements, combatant_id
                    )

        _consume_move(session, combatant_id, move_type)
        log_debug(
            "Movement executed",
            {"combatant_id": combatant_id, "move_type": move_type},
        )
        return MovementResult(
            success=True,
            move_type=move_type,
            blockade=blockade,
            engagement_id=engagement_id,
        )


def _consume_move(session: CombatSession, combatant_id: str, move_type: MoveType) -> None:
    if not session.settings.action_economy_enabled:
        return
    state = session.get_action_state(combatant_id)
    session.set_action_state(
        combatant_id, consume_action(state, ActionType.MOVE, move_type)
    )
