"""
Combat manager module for the combat engine.

Drives the round lifecycle (setup, initiative, main, cleanup) and the turn
lifecycle of each combatant. The free functions are the phase hooks and
operate on an explicit session; CombatManager strings them together so
that each hook fires exactly once where it should.
"""

from catchery import log_debug, log_warning
from pydantic import BaseModel, ConfigDict, Field

from skirmish.actors.actor import Actor
from skirmish.combat.action_economy import (
    ActionCheck,
    can_perform_action,
    consume_action,
    create_action_state,
)
from skirmish.combat.check import DieRoller, roll_damage, roll_d6
from skirmish.combat.combat_session import Combatant, CombatSession
from skirmish.combat.engagement import clear_engagements
from skirmish.core.constants import (
    CHECK_DICE,
    INCAPACITATION_FLOOR,
    KNOCKBACK_INITIATIVE_PENALTY,
    RECOVERY_HP,
    ActionType,
    MoveType,
    Phase,
    SurpriseSide,
)
from skirmish.effects.status_effects import (
    INITIATIVE_CLEARED_STATUSES,
    ROUND_LIMITED_STATUSES,
    StatusId,
    StatusTag,
)


class TurnStartNotice(BaseModel):
    """A status reminder raised when a combatant's turn begins."""

    model_config = ConfigDict(frozen=True)

    combatant_id: str
    status_id: StatusId
    initiative_penalty: int = Field(
        default=0,
        description="Initiative lost for this turn.",
    )


class CleanupEntry(BaseModel):
    """What cleanup did to one combatant."""

    model_config = ConfigDict(frozen=True)

    combatant_id: str
    damage: int = Field(default=0, description="HP lost to damage over time.")
    removed: list[StatusId] = Field(default_factory=list)
    recovered: bool = Field(default=False, description="Raised from 0 to 1 HP.")


class CleanupReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    round: int
    entries: list[CleanupEntry] = Field(default_factory=list)


class SetupReport(BaseModel):
    """Who may use setup-timing skills this round."""

    model_config = ConfigDict(frozen=True)

    round: int
    skills: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Setup skill names, by combatant id.",
    )


class RoundAdvance(BaseModel):
    """Everything that happened between two rounds."""

    model_config = ConfigDict(frozen=True)

    cleanup: CleanupReport
    initiative_cleared: dict[str, list[StatusId]] = Field(default_factory=dict)
    setup: SetupReport


class EnvironmentalDamage(BaseModel):
    model_config = ConfigDict(frozen=True)

    actor_id: str
    source: str
    damage: int = Field(description="The rolled damage.")
    hp_lost: int = Field(description="The HP actually lost.")


# ============================================================================
# PHASE HOOKS
# ============================================================================


def set_phase(session: CombatSession, phase: Phase) -> None:
    if session.phase != phase:
        log_debug("Phase change", {"from": session.phase, "to": phase, "round": session.round})
    session.phase = phase


def initialize_combat(session: CombatSession) -> None:
    """
    Prepare a session for its first turn.

    Sets the setup phase, clears engagements and surprise, and gives every
    combatant a blank action state.

    Args:
        session (CombatSession):
            The combat session.

    """
    with session.transaction():
        set_phase(session, Phase.SETUP)
        session.engagements = clear_engagements()
        session.surprise = None
        for combatant in session.combatants:
            session.set_action_state(combatant.combatant_id, create_action_state())
    log_debug("Combat initialized", {"combatants": len(session.combatants)})


def on_turn_start(session: CombatSession, combatant_id: str) -> list[TurnStartNotice]:
    """
    Begin a combatant's turn.

    Resets the combatant's action state and enters the main phase, then
    reports knockback and off-guard reminders. Does nothing when the action
    economy is disabled.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The combatant whose turn begins.

    Returns:
        list[TurnStartNotice]:
            Reminders about statuses affecting this turn.

    """
    if not session.settings.action_economy_enabled:
        return []
    actor = session.get_actor(combatant_id)
    if actor is None:
        log_warning(
            "Turn started for a combatant not in the session",
            {"combatant_id": combatant_id},
        )
        return []
    with session.transaction():
        session.set_action_state(combatant_id, create_action_state())
        set_phase(session, Phase.MAIN)

    notices = []
    knockback = actor.get_status(StatusId.KNOCKBACK)
    if knockback is not None and knockback.has_tag(StatusTag.INITIATIVE_PENALTY):
        notices.append(
            TurnStartNotice(
                combatant_id=combatant_id,
                status_id=StatusId.KNOCKBACK,
                initiative_penalty=KNOCKBACK_INITIATIVE_PENALTY * knockback.magnitude,
            )
        )
    if actor.has_status(StatusId.OFFGUARD):
        notices.append(TurnStartNotice(combatant_id=combatant_id, status_id=StatusId.OFFGUARD))
    return notices


def on_turn_end(session: CombatSession, combatant_id: str) -> None:
    """Ends a turn. Round-scoped effects wait for cleanup."""
    log_debug("Turn ended", {"combatant_id": combatant_id, "round": session.round})


def process_cleanup(session: CombatSession) -> CleanupReport:
    """
    Run the cleanup phase at the end of a round.

    For every combatant, in order: damage over time is applied, round-limited
    statuses are removed, and an actor left at 0 HP is raised to 1 unless it
    is dead. The combatant list is fixed before anything changes.

    Args:
        session (CombatSession):
            The combat session.

    Returns:
        CleanupReport:
            What happened to each combatant that was affected.

    """
    entries = []
    with session.transaction():
        combatants = session.combatants
        for combatant in combatants:
            actor = combatant.actor
            damage = sum(status.damage_per_round for status in actor.statuses)
            if damage:
                actor.set_hp(actor.hp.value - damage)
            removed = [
                status_id
                for status_id in StatusId
                if status_id in ROUND_LIMITED_STATUSES
                and actor.remove_status(status_id)
            ]
            recovered = _recover(actor)
            if damage or removed or recovered:
                entries.append(
                    CleanupEntry(
                        combatant_id=combatant.combatant_id,
                        damage=damage,
                        removed=removed,
                        recovered=recovered,
                    )
                )
        set_phase(session, Phase.CLEANUP)
    log_debug("Cleanup processed", {"round": session.round, "affected": len(entries)})
    return CleanupReport(round=session.round, entries=entries)


def process_initiative_phase(session: CombatSession) -> dict[str, list[StatusId]]:
    """
    Remove the statuses that wear off at the initiative process.

    Returns:
        dict[str, list[StatusId]]:
            Removed statuses, by combatant id.

    """
    cleared = {}
    with session.transaction():
        for combatant in session.combatants:
            removed = [
                status_id
                for status_id in StatusId
                if status_id in INITIATIVE_CLEARED_STATUSES
                and combatant.actor.remove_status(status_id)
            ]
            if removed:
                cleared[combatant.combatant_id] = removed
        set_phase(session, Phase.INITIATIVE)
    return cleared


def process_setup_phase(session: CombatSession, round_number: int) -> SetupReport:
    """
    Enter the setup phase and list who holds setup-timing skills.

    Args:
        session (CombatSession):
            The combat session.
        round_number (int):
            The round being set up.

    Returns:
        SetupReport:
            Setup skills of every living, active combatant that has any.

    """
    set_phase(session, Phase.SETUP)
    skills = {
        c.combatant_id: list(c.actor.setup_skills)
        for c in session.combatants
        if not c.actor.dead and c.actor.is_active() and c.actor.setup_skills
    }
    return SetupReport(round=round_number, skills=skills)


def advance_round(session: CombatSession) -> RoundAdvance:
    """
    Move the session to the next round.

    Runs cleanup, then the initiative-phase effects, then increments the
    round counter and sets up the new round.

    Args:
        session (CombatSession):
            The combat session.

    Returns:
        RoundAdvance:
            The reports of each step.

    """
    with session.transaction():
        cleanup = process_cleanup(session)
        cleared = process_initiative_phase(session)
        session.round += 1
        setup = process_setup_phase(session, session.round)
    log_debug("Round advanced", {"round": session.round})
    return RoundAdvance(cleanup=cleanup, initiative_cleared=cleared, setup=setup)


def process_combat_end(session: CombatSession) -> list[str]:
    """
    Close an encounter.

    Every living actor at 0 HP is raised to 1 and all engagements are
    dissolved.

    Args:
        session (CombatSession):
            The combat session.

    Returns:
        list[str]:
            Ids of the combatants that recovered.

    """
    recovered = []
    with session.transaction():
        for combatant in session.combatants:
            if _recover(combatant.actor):
                recovered.append(combatant.combatant_id)
        session.engagements = clear_engagements()
    log_debug("Combat ended", {"recovered": recovered})
    return recovered


def _recover(actor: Actor) -> bool:
    if actor.dead or actor.hp.value != INCAPACITATION_FLOOR:
        return False
    actor.set_hp(RECOVERY_HP)
    log_debug(f"{actor.name} recovers from incapacitation")
    return True


# ============================================================================
# COMMANDS
# ============================================================================


def perform_action(
    session: CombatSession,
    combatant_id: str,
    action_type: ActionType,
    move_type: MoveType | None = None,
) -> ActionCheck:
    """
    Check and spend an action slot in one step.

    Args:
        session (CombatSession):
            The combat session.
        combatant_id (str):
            The acting combatant.
        action_type (ActionType):
            The slot to spend.
        move_type (MoveType | None):
            The kind of move, for move actions.

    Returns:
        ActionCheck:
            Whether the action was allowed; the slot is spent only if so.

    """
    if not session.settings.action_economy_enabled:
        return ActionCheck.ok()
    with session.transaction():
        actor = session.get_actor(combatant_id)
        if actor is None:
            log_warning(
                "Action by a combatant not in the session, allowing it",
                {"combatant_id": combatant_id, "action_type": action_type},
            )
            return ActionCheck.ok()
        state = session.get_action_state(combatant_id)
        check = can_perform_action(state, action_type, actor)
        if check.allowed:
            session.set_action_state(
                combatant_id, consume_action(state, action_type, move_type)
            )
        return check


def set_surprise(session: CombatSession, side: SurpriseSide | None) -> None:
    """Marks which side is surprised in round one, or clears it."""
    session.surprise = side
    log_debug("Surprise set", {"side": side})


def is_surprised(session: CombatSession, actor: Actor) -> bool:
    """Check whether an actor is on the surprised side during round one."""
    if session.round > 1 or session.surprise is None:
        return False
    return actor.category == session.surprise.category


def apply_environmental_damage(
    actor: Actor,
    dice_count: int = CHECK_DICE,
    source: str = "Environment",
    roller: DieRoller = roll_d6,
) -> EnvironmentalDamage:
    """
    Apply penetrating damage from a fall or a hazard.

    Args:
        actor (Actor):
            The actor taking the damage.
        dice_count (int):
            Number of six-sided dice rolled.
        source (str):
            What caused the damage.
        roller (DieRoller):
            Source of die faces.

    Returns:
        EnvironmentalDamage:
            The rolled and applied damage.

    """
    damage = roll_damage(dice_count, roller)
    hp_lost = actor.take_damage(damage)
    log_debug(
        "Environmental damage",
        {"actor": actor.name, "source": source, "damage": damage},
    )
    return EnvironmentalDamage(
        actor_id=actor.actor_id, source=source, damage=damage, hp_lost=hp_lost
    )


# ============================================================================
# DRIVER
# ============================================================================


class CombatManager:
    """
    Drives one encounter turn by turn.

    Attributes:
        session (CombatSession):
            The session being driven.
        notices (list[TurnStartNotice]):
            Reminders raised at the start of the current turn.
        history (list[RoundAdvance]):
            The reports of every round boundary crossed so far.

    """

    def __init__(self, session: CombatSession) -> None:
        self.session = session
        self.notices: list[TurnStartNotice] = []
        self.history: list[RoundAdvance] = []
        self._current_id: str | None = None
        self._acted: set[str] = set()
        self._started = False

    def start(self) -> SetupReport:
        """Initialize the session and set up round one."""
        initialize_combat(self.session)
        self._started = True
        self._current_id = None
        self._acted = set()
        return process_setup_phase(self.session, self.session.round)

    @property
    def current_combatant(self) -> Combatant | None:
        if self._current_id is None:
            return None
        return self.session.get_combatant(self._current_id)

    def next_turn(self) -> Combatant | None:
        """
        End the current turn and start the next one.

        When every combatant has acted this round, the round boundary is
        processed before the first combatant of the new round starts.

        Returns:
            Combatant | None:
                The combatant whose turn began, or None if nobody is left.

        """
        if not self._started:
            raise ValueError("Combat has not been started.")
        if self._current_id is not None:
            on_turn_end(self.session, self._current_id)

        upcoming = self._next_unacted()
        if upcoming is None:
            if not self.session.combatants:
                self._current_id = None
                return None
            self.history.append(advance_round(self.session))
            self._acted = set()
            upcoming = self._next_unacted()
            assert upcoming is not None

        self._current_id = upcoming.combatant_id
        self._acted.add(upcoming.combatant_id)
        self.notices = on_turn_start(self.session, upcoming.combatant_id)
        return upcoming

    def _next_unacted(self) -> Combatant | None:
        for combatant in self.session.combatants:
            if combatant.combatant_id not in self._acted:
                return combatant
        return None

    def end(self) -> list[str]:
        """Close the encounter and return the ids that recovered."""
        recovered = process_combat_end(self.session)
        self._started = False
        self._current_id = None
        return recovered
