"""
Actor module for the combat engine.

The actor is the record that lives outside an encounter: its HP and MP pools,
its side, its initiative and movement values and its active statuses. The
engine only reads it, and writes back HP changes and status removals.
"""

from typing import Any, Iterator

from pydantic import BaseModel, Field

from skirmish.core.constants import INCAPACITATION_FLOOR, ActorCategory
from skirmish.core.logging import log_debug
from skirmish.effects.status_effects import StatusEffect, StatusId, StatusTag


class ResourcePool(BaseModel):
    """A current/maximum pair such as HP or MP."""

    value: int = Field(description="Current amount.")
    max: int = Field(description="Maximum amount.")

    def model_post_init(self, _: Any) -> None:
        if self.max < 0:
            raise ValueError("Resource maximum must be non-negative.")
        if not 0 <= self.value <= self.max:
            raise ValueError(
                f"Resource value {self.value} must be between 0 and {self.max}."
            )

    @property
    def is_depleted(self) -> bool:
        return self.value <= INCAPACITATION_FLOOR


class Actor:
    """
    Represents a participant's sheet as far as combat is concerned.

    Attributes:
        actor_id (str):
            Stable identifier of the actor record.
        name (str):
            Display name.
        category (ActorCategory):
            Which side the actor fights for.
        hp (ResourcePool):
            Hit points; at the floor the actor is incapacitated.
        mp (ResourcePool):
            Mind points.
        initiative (int):
            The initiative attribute, also used for blockade checks.
        movement (int):
            Movement rate in meters.
        mount (Actor | None):
            The mount carrying this actor, if any.
        dead (bool):
            Dead actors never recover from incapacitation.
        setup_skills (list[str]):
            Names of skills usable in the setup phase.

    """

    actor_id: str
    name: str
    category: ActorCategory
    hp: ResourcePool
    mp: ResourcePool
    initiative: int
    movement: int
    mount: "Actor | None"
    dead: bool
    setup_skills: list[str]
    _statuses: dict[StatusId, StatusEffect]

    def __init__(
        self,
        actor_id: str,
        name: str,
        category: ActorCategory,
        hp: int,
        hp_max: int | None = None,
        mp: int = 0,
        mp_max: int | None = None,
        initiative: int = 0,
        movement: int = 0,
        mount: "Actor | None" = None,
        statuses: list[StatusEffect] | None = None,
        dead: bool = False,
        setup_skills: list[str] | None = None,
    ) -> None:
        self.actor_id = actor_id
        self.name = name
        self.category = category
        self.hp = ResourcePool(value=hp, max=hp if hp_max is None else hp_max)
        self.mp = ResourcePool(value=mp, max=mp if mp_max is None else mp_max)
        self.initiative = initiative
        self.movement = movement
        self.mount = mount
        self.dead = dead
        self.setup_skills = list(setup_skills or [])
        self._statuses = {}
        for status in statuses or []:
            self.add_status(status)

    @property
    def colored_name(self) -> str:
        return self.category.colorize(self.name)

    # ============================================================================
    # STATUSES
    # ============================================================================

    @property
    def statuses(self) -> Iterator[StatusEffect]:
        return iter(list(self._statuses.values()))

    def get_status(self, status_id: StatusId) -> StatusEffect | None:
        return self._statuses.get(status_id)

    def has_status(self, status_id: StatusId) -> bool:
        return status_id in self._statuses

    def has_tag(self, tag: StatusTag) -> bool:
        """Check whether any active status carries the given tag."""
        return any(status.has_tag(tag) for status in self._statuses.values())

    def add_status(self, status: StatusEffect) -> None:
        """
        Apply a status. Re-applying a status keeps the larger magnitude.

        Args:
            status (StatusEffect):
                The status to apply.

        """
        existing = self._statuses.get(status.status_id)
        if existing and existing.magnitude >= status.magnitude:
            return
        self._statuses[status.status_id] = status
        log_debug(f"{self.name} gains {status}")

    def remove_status(self, status_id: StatusId) -> bool:
        """
        Remove a status if present.

        Returns:
            bool:
                True if a status was removed.

        """
        if self._statuses.pop(status_id, None) is None:
            return False
        log_debug(f"{self.name} loses {status_id.display_name}")
        return True

    # ============================================================================
    # RESOURCES
    # ============================================================================

    def is_active(self) -> bool:
        """An actor is active while it has HP above the floor."""
        return not self.hp.is_depleted

    def is_incapacitated(self) -> bool:
        return self.hp.is_depleted

    def is_flying(self) -> bool:
        return self.has_tag(StatusTag.FLYING)

    @property
    def movement_rate(self) -> int:
        """Movement rate in meters, taken from the mount when mounted."""
        if self.mount is not None:
            return self.mount.movement
        return self.movement

    def set_hp(self, value: int) -> None:
        """Set HP, clamped to the pool's bounds."""
        self.hp.value = max(INCAPACITATION_FLOOR, min(self.hp.max, value))

    def take_damage(self, amount: int) -> int:
        """
        Lose HP, never dropping below the incapacitation floor.

        Damage also wakes the actor from statuses that break on damage.

        Args:
            amount (int):
                The damage to apply.

        Returns:
            int:
                The HP actually lost.

        """
        if amount < 0:
            raise ValueError(f"Damage must be non-negative, got {amount}.")
        before = self.hp.value
        self.set_hp(before - amount)
        taken = before - self.hp.value
        if amount > 0:
            for status in list(self._statuses.values()):
                if status.has_tag(StatusTag.REMOVED_ON_DAMAGE):
                    self.remove_status(status.status_id)
        return taken

    def heal(self, amount: int) -> int:
        """Regain HP up to the maximum; returns the HP actually gained."""
        if amount < 0:
            raise ValueError(f"Healing must be non-negative, got {amount}.")
        before = self.hp.value
        self.set_hp(before + amount)
        return self.hp.value - before

    def __str__(self) -> str:
        return f"{self.name} ({self.category}, HP {self.hp.value}/{self.hp.max})"

    def __repr__(self) -> str:
        return f"Actor(actor_id={self.actor_id!r}, name={self.name!r})"

    def __hash__(self) -> int:
        return hash(self.actor_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Actor):
            return False
        return self.actor_id == other.actor_id
