"""
Combat module for the combat engine.

This module holds the check resolver, the action economy tracker, the
engagement manager, the movement resolver, the combat session and the
turn/phase state machine. Together they form the command surface used by
the presentation layer.
"""

from .action_economy import (
    ActionCheck,
    ActionState,
    ActionSummary,
    can_perform_action,
    consume_action,
    create_action_state,
    get_action_summary,
    get_timing_action,
)
from .check import (
    CheckResult,
    OpposedResult,
    escaper_wins,
    evaluate,
    resolve_opposed,
    roll_d6,
    roll_damage,
)
from .combat_manager import (
    CleanupReport,
    CombatManager,
    EnvironmentalDamage,
    RoundAdvance,
    SetupReport,
    TurnStartNotice,
    advance_round,
    apply_environmental_damage,
    initialize_combat,
    is_surprised,
    on_turn_end,
    on_turn_start,
    perform_action,
    process_cleanup,
    process_combat_end,
    process_initiative_phase,
    process_setup_phase,
    set_phase,
    set_surprise,
)
from .combat_session import (
    Combatant,
    CombatSession,
    CombatSnapshot,
    SnapshotError,
    visible_combatants,
)
from .engagement import (
    Engagement,
    are_engaged,
    clear_engagements,
    create_engagement,
    find_engagement,
    get_allies,
    get_engaged_with,
    get_engagement_summary,
    get_opponents,
    is_engaged,
    remove_from_engagement,
    validate_attack_engagement,
)
from .movement import (
    BlockadeOutcome,
    MovementOption,
    MovementResult,
    execute_movement,
    get_blockade_candidates,
    get_movement_options,
    get_rush_targets,
    resolve_blockade,
)

__all__ = [
    "ActionCheck",
    "ActionState",
    "ActionSummary",
    "can_perform_action",
    "consume_action",
    "create_action_state",
    "get_action_summary",
    "get_timing_action",
    "CheckResult",
    "OpposedResult",
    "escaper_wins",
    "evaluate",
    "resolve_opposed",
    "roll_d6",
    "roll_damage",
    "CleanupReport",
    "CombatManager",
    "EnvironmentalDamage",
    "RoundAdvance",
    "SetupReport",
    "TurnStartNotice",
    "advance_round",
    "apply_environmental_damage",
    "initialize_combat",
    "is_surprised",
    "on_turn_end",
    "on_turn_start",
    "perform_action",
    "process_cleanup",
    "process_combat_end",
    "process_initiative_phase",
    "process_setup_phase",
    "set_phase",
    "set_surprise",
    "Combatant",
    "CombatSession",
    "CombatSnapshot",
    "SnapshotError",
    "visible_combatants",
    "Engagement",
    "are_engaged",
    "clear_engagements",
    "create_engagement",
    "find_engagement",
    "get_allies",
    "get_engaged_with",
    "get_engagement_summary",
    "get_opponents",
    "is_engaged",
    "remove_from_engagement",
    "validate_attack_engagement",
    "BlockadeOutcome",
    "MovementOption",
    "MovementResult",
    "execute_movement",
    "get_blockade_candidates",
    "get_movement_options",
    "get_rush_targets",
    "resolve_blockade",
]
