"""
Core module for the combat engine.

This module contains the rule constants and enumerations, the engine
settings, logging setup and the console utilities shared by the other
packages.
"""

from .constants import (
    CHECK_DICE,
    DAMAGE_OVER_TIME_MULTIPLIER,
    DISENGAGE_DISTANCE,
    FREE_ACTION_LIMIT,
    INCAPACITATION_FLOOR,
    KNOCKBACK_INITIATIVE_PENALTY,
    RECOVERY_HP,
    ActionType,
    ActorCategory,
    BlockReason,
    MoveType,
    OpposedReason,
    Phase,
    SurpriseSide,
    is_opponent,
)
from .settings import EngineSettings, load_settings
from .utils import ccapture, cprint, crule, make_bar

__all__ = [
    "CHECK_DICE",
    "DAMAGE_OVER_TIME_MULTIPLIER",
    "DISENGAGE_DISTANCE",
    "FREE_ACTION_LIMIT",
    "INCAPACITATION_FLOOR",
    "KNOCKBACK_INITIATIVE_PENALTY",
    "RECOVERY_HP",
    "ActionType",
    "ActorCategory",
    "BlockReason",
    "MoveType",
    "OpposedReason",
    "Phase",
    "SurpriseSide",
    "is_opponent",
    "EngineSettings",
    "load_settings",
    "ccapture",
    "cprint",
    "crule",
    "make_bar",
]
