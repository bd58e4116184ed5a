"""
Constants and enumerations for the combat engine.

Defines the fixed rule numbers of the ruleset together with the enumerations
for actor categories, action types, movement types, combat phases and the
machine-readable reasons the engine reports back to the presentation layer.
"""

from enum import Enum

# Number of free actions a combatant may take in a single turn.
FREE_ACTION_LIMIT = 3

# Distance covered by a disengage move, capped by the combatant's own rate.
DISENGAGE_DISTANCE = 5

# Each point of a damage-over-time status costs this much HP at cleanup.
DAMAGE_OVER_TIME_MULTIPLIER = 5

# Each point of knockback lowers the initiative value by this much for a turn.
KNOCKBACK_INITIATIVE_PENALTY = 5

# HP value at which an actor is incapacitated, and the value it recovers to.
INCAPACITATION_FLOOR = 0
RECOVERY_HP = 1

# The core check: two six-sided dice plus a flat modifier.
CHECK_DICE = 2
DIE_FACES = 6
CRITICAL_FACE = 6
FUMBLE_FACE = 1
# How many matching faces are needed for a critical or a fumble.
SPECIAL_FACE_COUNT = 2


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").lower().capitalize()


class ActorCategory(NiceEnum):
    """Defines which side of the fight an actor belongs to."""

    PLAYER = "character"
    ENEMY = "enemy"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this category."""
        return {
            ActorCategory.PLAYER: "👤",
            ActorCategory.ENEMY: "👹",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this category."""
        return {
            ActorCategory.PLAYER: "bold blue",
            ActorCategory.ENEMY: "bold red",
        }.get(self, "dim white")

    @property
    def colored_name(self) -> str:
        return self.colorize(self.display_name)

    def colorize(self, message: str) -> str:
        """Applies category color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class ActionType(NiceEnum):
    """Defines the slots of the per-turn action economy."""

    MAJOR = "major"
    MINOR = "minor"
    MOVE = "move"
    FREE = "free"
    REACTION = "reaction"

    @property
    def color(self) -> str:
        """Returns the color string associated with this action type."""
        return {
            ActionType.MAJOR: "bold yellow",
            ActionType.MINOR: "bold green",
            ActionType.MOVE: "bold blue",
            ActionType.FREE: "bold cyan",
            ActionType.REACTION: "bold red",
        }.get(self, "dim white")

    @property
    def colored_name(self) -> str:
        return self.colorize(self.display_name)

    def colorize(self, message: str) -> str:
        """Applies action type color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class MoveType(NiceEnum):
    """Defines the kinds of movement a combatant can spend its move on."""

    COMBAT = "combat"
    FULL = "full"
    DISENGAGE = "disengage"
    RUSH = "rush"

    @property
    def blocks_minor(self) -> bool:
        """Full moves and disengages forbid a minor action in the same turn."""
        return self in (MoveType.FULL, MoveType.DISENGAGE)

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this move type."""
        return {
            MoveType.COMBAT: "🚶",
            MoveType.FULL: "🏃",
            MoveType.DISENGAGE: "↩️",
            MoveType.RUSH: "⚔️",
        }.get(self, "❔")


class Phase(NiceEnum):
    """Defines the phases of a combat round."""

    SETUP = "setup"
    INITIATIVE = "initiative"
    MAIN = "main"
    CLEANUP = "cleanup"


class BlockReason(NiceEnum):
    """Machine-readable reasons for a refused action, move or attack."""

    INCAPACITATED = "incapacitated"
    INTIMIDATED = "intimidated"
    CANNOT_ACT = "cannot_act"
    CANNOT_MOVE = "cannot_move"
    MAJOR_USED = "major_used"
    MINOR_USED = "minor_used"
    MINOR_BLOCKED_BY_MOVE = "minor_blocked_by_move"
    MOVE_USED = "move_used"
    FREE_LIMIT = "free_limit"
    REACTION_USED = "reaction_used"
    FULL_BLOCKED_BY_MINOR = "full_blocked_by_minor"
    DISENGAGE_BLOCKED_BY_MINOR = "disengage_blocked_by_minor"
    MOVE_NOT_OFFERED = "move_not_offered"
    NO_RUSH_TARGET = "no_rush_target"
    INVALID_RUSH_TARGET = "invalid_rush_target"
    BLOCKADE_HELD = "blockade_held"
    ATTACK_NOT_ENGAGED = "attack_not_engaged"
    RANGED_ATTACK_ENGAGED = "ranged_attack_engaged"
    UNKNOWN_COMBATANT = "unknown_combatant"

    @property
    def is_slot_used(self) -> bool:
        """True for the reasons that mean the slot was already spent."""
        return self in (
            BlockReason.MAJOR_USED,
            BlockReason.MINOR_USED,
            BlockReason.MOVE_USED,
            BlockReason.FREE_LIMIT,
            BlockReason.REACTION_USED,
        )


class OpposedReason(NiceEnum):
    """Why an opposed check ended the way it did, when a rule decided it."""

    ATTACK_FUMBLE = "attack_fumble"
    DEFENSE_FUMBLE = "defense_fumble"
    DEFENDER_PRIORITY = "defender_priority"


class SurpriseSide(NiceEnum):
    """Which side was caught by surprise in the first round."""

    PLAYERS = "pcs"
    ENEMIES = "enemies"

    @property
    def category(self) -> ActorCategory:
        return {
            SurpriseSide.PLAYERS: ActorCategory.PLAYER,
            SurpriseSide.ENEMIES: ActorCategory.ENEMY,
        }[self]


def is_opponent(first: ActorCategory, second: ActorCategory) -> bool:
    """Determines if two actor categories are on opposing sides.

    Args:
        first (ActorCategory): The first category.
        second (ActorCategory): The second category.

    Returns:
        bool: True if the categories differ, False otherwise.

    """
    return first != second
