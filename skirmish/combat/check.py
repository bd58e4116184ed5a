"""
Check resolution module for the combat engine.

Implements the core check (a pool of six-sided dice plus a flat modifier,
optionally boosted by fate dice), its critical/fumble classification, and the
two opposed resolutions used in play: defender priority for attacks and
escaper priority for blockades.
"""

import random
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from skirmish.core.constants import (
    CHECK_DICE,
    CRITICAL_FACE,
    DIE_FACES,
    FUMBLE_FACE,
    SPECIAL_FACE_COUNT,
    OpposedReason,
)

# A uniform 1-6 integer generator, called once per die.
DieRoller = Callable[[], int]


def roll_d6() -> int:
    """Roll a single six-sided die."""
    return random.randint(1, DIE_FACES)


class CheckResult(BaseModel):
    """
    The outcome of a single check.

    Base dice and fate dice are kept apart because only the base dice count
    towards a fumble, while every die counts towards a critical.
    """

    model_config = ConfigDict(frozen=True)

    base_dice: list[int] = Field(
        description="Faces rolled on the base dice.",
    )
    fate_dice: list[int] = Field(
        default_factory=list,
        description="Faces rolled on the bonus fate dice.",
    )
    modifier: int = Field(
        default=0,
        description="Flat modifier added to the dice.",
    )

    def model_post_init(self, _: Any) -> None:
        for face in [*self.base_dice, *self.fate_dice]:
            if not 1 <= face <= DIE_FACES:
                raise ValueError(f"Die face {face} is outside 1-{DIE_FACES}.")

    @property
    def dice(self) -> list[int]:
        """All faces in roll order, base dice first."""
        return [*self.base_dice, *self.fate_dice]

    @computed_field
    @property
    def total(self) -> int:
        return sum(self.dice) + self.modifier

    @computed_field
    @property
    def is_critical(self) -> bool:
        return self.dice.count(CRITICAL_FACE) >= SPECIAL_FACE_COUNT

    @computed_field
    @property
    def is_fumble(self) -> bool:
        # Spending any fate die removes the chance of a fumble.
        if self.fate_dice:
            return False
        return self.base_dice.count(FUMBLE_FACE) >= SPECIAL_FACE_COUNT

    @property
    def effective_value(self) -> int:
        """The value used in opposed checks; a fumble counts as zero."""
        return 0 if self.is_fumble else self.total

    def describe(self) -> str:
        """Short human-readable breakdown such as '2d6(3+5)+1d6(4)+2 = 14'."""
        parts = [f"{len(self.base_dice)}d6({'+'.join(map(str, self.base_dice))})"]
        if self.fate_dice:
            parts.append(
                f"{len(self.fate_dice)}d6({'+'.join(map(str, self.fate_dice))})"
            )
        text = "+".join(parts)
        if self.modifier:
            text += f"{self.modifier:+d}"
        text += f" = {self.total}"
        if self.is_critical:
            text += " [bold yellow]critical![/]"
        elif self.is_fumble:
            text += " [bold red]fumble![/]"
        return text


class OpposedResult(BaseModel):
    """The outcome of an attack against a defense."""

    model_config = ConfigDict(frozen=True)

    is_hit: bool = Field(
        description="Whether the attack succeeded.",
    )
    reason: OpposedReason | None = Field(
        default=None,
        description="The rule that decided the outcome, if any.",
    )
    attack_value: int = Field(
        description="Effective value of the attack roll.",
    )
    defense_value: int = Field(
        description="Effective value of the defense roll.",
    )


def evaluate(
    dice_count: int = CHECK_DICE,
    modifier: int = 0,
    fate_dice: int = 0,
    roller: DieRoller = roll_d6,
) -> CheckResult:
    """
    Roll a check.

    Args:
        dice_count (int):
            Number of base dice. Defaults to two.
        modifier (int):
            Flat modifier added to the total.
        fate_dice (int):
            Number of bonus fate dice.
        roller (DieRoller):
            Source of die faces, called once per die.

    Returns:
        CheckResult:
            The rolled check.

    """
    if dice_count < 0 or fate_dice < 0:
        raise ValueError("Dice counts must be non-negative.")
    base = [roller() for _ in range(dice_count)]
    fate = [roller() for _ in range(fate_dice)]
    return CheckResult(base_dice=base, fate_dice=fate, modifier=modifier)


def resolve_opposed(attack: CheckResult, defense: CheckResult) -> OpposedResult:
    """
    Resolve an attack check against a defense check.

    The defender wins ties and double criticals. A fumbled attack always
    misses, a fumbled defense always lets the attack through.

    Args:
        attack (CheckResult):
            The attacker's check.
        defense (CheckResult):
            The defender's check.

    Returns:
        OpposedResult:
            Whether the attack hit, and which rule decided it.

    """
    attack_value = attack.effective_value
    defense_value = defense.effective_value

    if attack.is_fumble:
        return OpposedResult(
            is_hit=False,
            reason=OpposedReason.ATTACK_FUMBLE,
            attack_value=attack_value,
            defense_value=defense_value,
        )
    if defense.is_fumble:
        return OpposedResult(
            is_hit=True,
            reason=OpposedReason.DEFENSE_FUMBLE,
            attack_value=attack_value,
            defense_value=defense_value,
        )
    if attack.is_critical and defense.is_critical:
        return OpposedResult(
            is_hit=False,
            reason=OpposedReason.DEFENDER_PRIORITY,
            attack_value=attack_value,
            defense_value=defense_value,
        )
    if attack_value > defense_value:
        return OpposedResult(
            is_hit=True,
            attack_value=attack_value,
            defense_value=defense_value,
        )
    return OpposedResult(
        is_hit=False,
        reason=OpposedReason.DEFENDER_PRIORITY if attack_value == defense_value else None,
        attack_value=attack_value,
        defense_value=defense_value,
    )


def escaper_wins(escaper: CheckResult, blocker: CheckResult) -> bool:
    """
    Resolve one blockade contest. The escaper wins ties.

    Args:
        escaper (CheckResult):
            The check of the combatant trying to disengage.
        blocker (CheckResult):
            The check of the combatant trying to hold them.

    Returns:
        bool:
            True if the blocker fails to hold the escaper.

    """
    return blocker.total <= escaper.total


def roll_damage(dice_count: int, roller: DieRoller = roll_d6) -> int:
    """Roll a plain damage pool of six-sided dice."""
    if dice_count < 0:
        raise ValueError("Dice count must be non-negative.")
    return sum(roller() for _ in range(dice_count))
