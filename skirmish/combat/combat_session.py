"""
Combat session module for the combat engine.

The session is the single mutable aggregate of an encounter: the round
counter, the current phase, the ordered combatants, the engagement groups
and the per-combatant action states. It is passed explicitly into every
engine call. Commands that validate and then write do both while holding
the session's transaction lock.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from catchery import log_critical, log_debug, log_warning
from pydantic import BaseModel, ConfigDict, Field

from skirmish.actors.actor import Actor
from skirmish.combat.action_economy import ActionState, create_action_state
from skirmish.combat.engagement import Engagement, Engagements, remove_from_engagement
from skirmish.core.constants import ActorCategory, Phase, SurpriseSide
from skirmish.core.settings import EngineSettings


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be restored against the given actors."""


class Combatant:
    """
    A participant's seat in an encounter.

    Attributes:
        combatant_id (str):
            Identifier of the seat, unique within the session.
        actor (Actor):
            The actor record this seat refers to; it is not owned.
        initiative (int | None):
            Rolled initiative; None sorts last.
        hidden (bool):
            Hidden combatants are only visible to the game master.

    """

    def __init__(
        self,
        combatant_id: str,
        actor: Actor,
        initiative: int | None = None,
        hidden: bool = False,
    ) -> None:
        self.combatant_id = combatant_id
        self.actor = actor
        self.initiative = initiative
        self.hidden = hidden

    @property
    def name(self) -> str:
        return self.actor.name

    def sort_key(self) -> tuple[float, int, str]:
        initiative = float("-inf") if self.initiative is None else self.initiative
        category_rank = 0 if self.actor.category == ActorCategory.PLAYER else 1
        return (-initiative, category_rank, self.name)

    def __repr__(self) -> str:
        return (
            f"Combatant(combatant_id={self.combatant_id!r}, "
            f"actor={self.actor.name!r}, initiative={self.initiative!r})"
        )


# ============================================================================
# SNAPSHOT
# ============================================================================


class CombatantSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Combatant id.")
    actor_ref: str = Field(description="Id of the referenced actor record.")
    initiative: int | None = Field(default=None, description="Rolled initiative.")
    hidden: bool = Field(default=False, description="Hidden from players.")


class EngagementSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Engagement id.")
    members: list[str] = Field(description="Member combatant ids.")


class CombatSnapshot(BaseModel):
    """Serializable state of a session, for storing between restarts."""

    model_config = ConfigDict(frozen=True)

    round: int = Field(default=1, ge=1, description="Current round number.")
    phase: Phase = Field(default=Phase.SETUP, description="Current phase.")
    combatants: list[CombatantSnapshot] = Field(default_factory=list)
    engagements: list[EngagementSnapshot] = Field(default_factory=list)
    action_states: dict[str, ActionState] = Field(default_factory=dict)
    surprise: SurpriseSide | None = Field(
        default=None,
        description="Side caught by surprise in round one.",
    )


# ============================================================================
# SESSION
# ============================================================================


class CombatSession:
    """Holds the state of one encounter."""

    def __init__(
        self,
        combatants: list[Combatant] | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self.round: int = 1
        self.phase: Phase = Phase.SETUP
        self.settings: EngineSettings = settings or EngineSettings()
        self.surprise: SurpriseSide | None = None
        self.engagements: Engagements = ()
        self.action_states: dict[str, ActionState] = {}
        self._combatants: list[Combatant] = []
        self._lock = threading.RLock()
        for combatant in combatants or []:
            self._add(combatant)
        self.sort_combatants()

    @contextmanager
    def transaction(self) -> Iterator["CombatSession"]:
        """Hold the session lock across a validate-then-write sequence."""
        with self._lock:
            yield self

    # ============================================================================
    # COMBATANTS
    # ============================================================================

    @property
    def combatants(self) -> list[Combatant]:
        """The combatants in turn order."""
        return list(self._combatants)

    def get_combatant(self, combatant_id: str) -> Combatant | None:
        for combatant in self._combatants:
            if combatant.combatant_id == combatant_id:
                return combatant
        return None

    def get_actor(self, combatant_id: str) -> Actor | None:
        combatant = self.get_combatant(combatant_id)
        return combatant.actor if combatant is not None else None

    def sort_combatants(self) -> None:
        """Order by initiative, then players first, then by name."""
        self._combatants.sort(key=Combatant.sort_key)

    def _add(self, combatant: Combatant) -> None:
        if self.get_combatant(combatant.combatant_id) is not None:
            raise ValueError(f"Combatant {combatant.combatant_id} is already in the session.")
        self._combatants.append(combatant)
        self.action_states[combatant.combatant_id] = create_action_state()

    def add_combatant(self, combatant: Combatant) -> None:
        """
        Add a combatant and re-sort the turn order.

        Args:
            combatant (Combatant):
                The combatant to add.

        Raises:
            ValueError:
                If a combatant with the same id is already present.

        """
        with self._lock:
            self._add(combatant)
            self.sort_combatants()
        log_debug(
            "Combatant added",
            {"combatant_id": combatant.combatant_id, "name": combatant.name},
        )

    def remove_combatant(self, combatant_id: str) -> bool:
        """
        Remove a combatant along with its action state and engagement seat.

        Returns:
            bool:
                True if the combatant was present.

        """
        with self._lock:
            combatant = self.get_combatant(combatant_id)
            if combatant is None:
                log_warning(
                    "Tried to remove a combatant not in the session",
                    {"combatant_id": combatant_id},
                )
                return False
            self._combatants.remove(combatant)
            self.action_states.pop(combatant_id, None)
            self.engagements = remove_from_engagement(self.engagements, combatant_id)
            self.sort_combatants()
        log_debug("Combatant removed", {"combatant_id": combatant_id})
        return True

    def get_action_state(self, combatant_id: str) -> ActionState:
        """Returns the combatant's action state, blank if none is recorded."""
        return self.action_states.get(combatant_id) or create_action_state()

    def set_action_state(self, combatant_id: str, state: ActionState) -> None:
        self.action_states[combatant_id] = state

    # ============================================================================
    # SNAPSHOT
    # ============================================================================

    def to_snapshot(self) -> CombatSnapshot:
        """Capture the session as a serializable snapshot."""
        with self._lock:
            return CombatSnapshot(
                round=self.round,
                phase=self.phase,
                combatants=[
                    CombatantSnapshot(
                        id=c.combatant_id,
                        actor_ref=c.actor.actor_id,
                        initiative=c.initiative,
                        hidden=c.hidden,
                    )
                    for c in self._combatants
                ],
                engagements=[
                    EngagementSnapshot(id=eng.engagement_id, members=list(eng.members))
                    for eng in self.engagements
                ],
                action_states=dict(self.action_states),
                surprise=self.surprise,
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CombatSnapshot,
        actors: dict[str, Actor],
        settings: EngineSettings | None = None,
    ) -> "CombatSession":
        """
        Rebuild a session from a snapshot.

        Args:
            snapshot (CombatSnapshot):
                The stored state.
            actors (dict[str, Actor]):
                The actor records, by actor id.
            settings (EngineSettings | None):
                The settings for the restored session.

        Returns:
            CombatSession:
                The restored session.

        Raises:
            SnapshotError:
                If the snapshot references an unknown actor, lists an
                engagement with a member that is not a combatant, or places a
                combatant in more than one engagement.

        """
        combatants = []
        for entry in snapshot.combatants:
            actor = actors.get(entry.actor_ref)
            if actor is None:
                log_critical(
                    "Snapshot references an unknown actor",
                    {"combatant_id": entry.id, "actor_ref": entry.actor_ref},
                )
                raise SnapshotError(
                    f"Combatant {entry.id} references unknown actor {entry.actor_ref}."
                )
            combatants.append(
                Combatant(entry.id, actor, initiative=entry.initiative, hidden=entry.hidden)
            )
        session = cls(combatants, settings=settings)
        known = {c.combatant_id for c in combatants}
        engagements = []
        seen_members: set[str] = set()
        seen_ids: set[str] = set()
        for entry in snapshot.engagements:
            missing = [m for m in entry.members if m not in known]
            if missing:
                log_critical(
                    "Snapshot engagement references unknown combatants",
                    {"engagement_id": entry.id, "missing": missing},
                )
                raise SnapshotError(
                    f"Engagement {entry.id} references unknown combatants {missing}."
                )
            repeated = [m for m in entry.members if m in seen_members]
            if entry.id in seen_ids or repeated:
                log_critical(
                    "Snapshot engagement repeats an id or a member",
                    {"engagement_id": entry.id, "repeated": repeated},
                )
                raise SnapshotError(
                    f"Engagement {entry.id} repeats an engagement id or members {repeated}."
                )
            seen_ids.add(entry.id)
            seen_members.update(entry.members)
            try:
                engagements.append(
                    Engagement(engagement_id=entry.id, members=tuple(entry.members))
                )
            except ValueError as e:
                raise SnapshotError(f"Invalid engagement {entry.id}: {e}") from e
        session.round = snapshot.round
        session.phase = snapshot.phase
        session.surprise = snapshot.surprise
        session.engagements = tuple(engagements)
        for combatant_id, state in snapshot.action_states.items():
            if combatant_id in known:
                session.action_states[combatant_id] = state
        return session


def visible_combatants(session: CombatSession, is_gm: bool) -> list[Combatant]:
    """
    Returns the combatants a viewer may see, in turn order.

    Args:
        session (CombatSession):
            The combat session.
        is_gm (bool):
            Game masters see hidden combatants too.

    Returns:
        list[Combatant]:
            The visible combatants.

    """
    if is_gm:
        return session.combatants
    return [c for c in session.combatants if not c.hidden]
