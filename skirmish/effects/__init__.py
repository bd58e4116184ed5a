"""
Status effects for the combat engine.

Statuses are a closed set of identifiers whose rules behaviour is expressed
as tags, so the action gates and the cleanup phase can match on categories
instead of status names.
"""

from .status_effects import (
    INITIATIVE_CLEARED_STATUSES,
    ROUND_LIMITED_STATUSES,
    STATUS_TAGS,
    StatusEffect,
    StatusId,
    StatusTag,
    statuses_with_tag,
)

__all__ = [
    "INITIATIVE_CLEARED_STATUSES",
    "ROUND_LIMITED_STATUSES",
    "STATUS_TAGS",
    "StatusEffect",
    "StatusId",
    "StatusTag",
    "statuses_with_tag",
]
