"""
Main entry point for the Skirmish combat engine demo.

Builds a small encounter and plays it in the terminal. The player controls
the party; enemies follow a simple script. The demo shows:
- Turn order and round advancement with cleanup and initiative effects
- The per-turn action economy
- Engagement groups, rushing into melee and disengaging under blockade
- Opposed 2d6 checks with criticals and fumbles
"""

import logging
import sys
from collections import Counter
from pathlib import Path

from skirmish.actors import Actor
from skirmish.combat import (
    CombatManager,
    CombatSession,
    Combatant,
    MovementResult,
    evaluate,
    execute_movement,
    get_blockade_candidates,
    get_movement_options,
    get_opponents,
    get_rush_targets,
    perform_action,
    resolve_opposed,
    roll_damage,
    validate_attack_engagement,
)
from skirmish.core.constants import ActionType, ActorCategory, MoveType
from skirmish.core.logging import log_info, setup_logging
from skirmish.core.settings import EngineSettings, load_settings
from skirmish.core.sheets import print_combat_sheet
from skirmish.core.utils import cprint, crule
from skirmish.effects import StatusEffect, StatusId
from skirmish.ui import PlayerInterface

# Stop the demo if nobody has won after this many rounds.
MAX_ROUNDS = 10


def build_party() -> list[Actor]:
    return [
        Actor("aria", "Aria", ActorCategory.PLAYER, hp=32, mp=20, initiative=9, movement=12,
              setup_skills=["Battle Cry"]),
        Actor("bram", "Bram", ActorCategory.PLAYER, hp=40, mp=10, initiative=6, movement=8),
    ]


def build_enemies() -> list[Actor]:
    goblins = [
        Actor("goblin-1", "Goblin", ActorCategory.ENEMY, hp=18, initiative=8, movement=10),
        Actor("goblin-2", "Goblin", ActorCategory.ENEMY, hp=18, initiative=8, movement=10,
              statuses=[StatusEffect(status_id=StatusId.POISON)]),
        Actor("wyvern", "Wyvern", ActorCategory.ENEMY, hp=30, initiative=7, movement=14,
              statuses=[StatusEffect(status_id=StatusId.FLIGHT)]),
    ]
    make_names_unique(goblins)
    return goblins


def make_names_unique(in_list: list[Actor]) -> None:
    """
    Ensure all actor names in a list are unique by appending numbers.

    Only adds numbers when duplicates exist; single instances keep their name.

    Args:
        in_list (list[Actor]): Actors whose names are made unique, in place.

    """
    name_counts = Counter(a.name for a in in_list)
    seen: Counter[str] = Counter()
    for actor in in_list:
        base = actor.name
        if name_counts[base] > 1:
            seen[base] += 1
            actor.name = f"{base} ({seen[base]})"


def build_session(settings: EngineSettings) -> CombatSession:
    combatants = []
    for actor in build_party() + build_enemies():
        initiative = actor.initiative + evaluate().total
        combatants.append(Combatant(actor.actor_id, actor, initiative=initiative))
    return CombatSession(combatants, settings=settings)


def is_combat_over(session: CombatSession) -> bool:
    sides = {c.actor.category for c in session.combatants if c.actor.is_active()}
    return len(sides) < 2


def attack(session: CombatSession, attacker_id: str, target_id: str) -> None:
    """Resolve a melee attack, removing enemies that drop to 0 HP."""
    attacker = session.get_actor(attacker_id)
    target = session.get_actor(target_id)
    assert attacker is not None and target is not None
    engagement_check = validate_attack_engagement(session, attacker_id, target_id, is_ranged=False)
    if not engagement_check:
        cprint(f"    {attacker.colored_name} cannot reach {target.colored_name}.")
        return
    attack_roll = evaluate(modifier=attacker.initiative // 2)
    defense_roll = evaluate(modifier=target.initiative // 3)
    result = resolve_opposed(attack_roll, defense_roll)
    cprint(
        f"    {attacker.colored_name} attacks {target.colored_name}: "
        f"{attack_roll.describe()} vs {defense_roll.describe()}"
    )
    if not result.is_hit:
        reason = f" ({result.reason.display_name})" if result.reason else ""
        cprint(f"    [dim]Miss{reason}.[/]")
        return
    damage = roll_damage(2) + (5 if attack_roll.is_critical else 0)
    lost = target.take_damage(damage)
    cprint(f"    [bold red]Hit![/] {target.colored_name} loses {lost} HP.")
    if target.is_incapacitated() and target.category == ActorCategory.ENEMY:
        target.dead = True
        session.remove_combatant(target_id)
        cprint(f"    {target.colored_name} is defeated.")


def report_movement(session: CombatSession, combatant_id: str, result: MovementResult) -> None:
    actor = session.get_actor(combatant_id)
    name = actor.colored_name if actor else combatant_id
    if result.blockade is not None:
        for contest in result.blockade.contests:
            blocker = session.get_actor(contest.blocker_id)
            cprint(
                f"    Blockade by {blocker.colored_name if blocker else contest.blocker_id}: "
                f"{contest.escaper_check.total} vs {contest.blocker_check.total}"
                f" -> {'held' if contest.held else 'escaped'}"
            )
    if result.success:
        cprint(f"    {name} moves ({result.move_type.emoji} {result.move_type.display_name}).")
    else:
        cprint(f"    {name} fails to move: {result.reason.display_name if result.reason else '?'}.")


def player_turn(session: CombatSession, ui: PlayerInterface, combatant_id: str) -> None:
    while not is_combat_over(session):
        action_type = ui.choose_action_type(session, combatant_id)
        if action_type is None:
            return
        if action_type == ActionType.MOVE:
            move_type = ui.choose_movement(get_movement_options(session, combatant_id))
            if move_type is None:
                continue
            blockers: list[str] = []
            rush_target = None
            if move_type == MoveType.DISENGAGE:
                # Enemies always try to block.
                blockers = get_blockade_candidates(session, combatant_id)
            elif move_type == MoveType.RUSH:
                rush_target = ui.choose_rush_target(session, get_rush_targets(session, combatant_id))
                if rush_target is None:
                    continue
            report_movement(
                session,
                combatant_id,
                execute_movement(session, combatant_id, move_type, blockers, rush_target),
            )
            continue
        opponents = get_opponents(session, combatant_id)
        if action_type == ActionType.MAJOR and not opponents:
            cprint("    [dim]No opponent in reach.[/]")
            continue
        check = perform_action(session, combatant_id, action_type)
        if not check:
            cprint(f"    [dim]{check.reason.display_name if check.reason else 'Not allowed'}.[/]")
            continue
        if action_type == ActionType.MAJOR:
            target = ui.choose_rush_target(session, opponents, exit_entry=None)
            if target is not None:
                attack(session, combatant_id, target)


def enemy_turn(session: CombatSession, ui: PlayerInterface, combatant_id: str) -> None:
    opponents = get_opponents(session, combatant_id)
    if not opponents:
        targets = get_rush_targets(session, combatant_id)
        if not targets:
            return
        report_movement(
            session,
            combatant_id,
            execute_movement(session, combatant_id, MoveType.RUSH, rush_target=targets[0]),
        )
        opponents = get_opponents(session, combatant_id)
    actor = session.get_actor(combatant_id)
    # Badly hurt enemies try to flee, and the party decides who blocks.
    if actor is not None and opponents and actor.hp.value * 3 < actor.hp.max:
        blockers = ui.choose_blockers(session, get_blockade_candidates(session, combatant_id))
        if blockers is not None:
            report_movement(
                session,
                combatant_id,
                execute_movement(session, combatant_id, MoveType.DISENGAGE, blockers),
            )
            return
    if opponents and perform_action(session, combatant_id, ActionType.MAJOR):
        attack(session, combatant_id, opponents[0])


def main() -> None:
    """Run the demo encounter; an optional argument names a settings file."""
    setup_logging(logging.INFO)
    settings = load_settings(Path(sys.argv[1])) if len(sys.argv) > 1 else EngineSettings()

    crule("Skirmish", style="bold green")
    session = build_session(settings)
    log_info(
        "Encounter ready",
        {"combatants": len(session.combatants), "settings": settings.model_dump()},
    )
    manager = CombatManager(session)
    ui = PlayerInterface()

    setup = manager.start()
    for combatant_id, skills in setup.skills.items():
        cprint(f"  Setup: {session.get_actor(combatant_id).name} may use {', '.join(skills)}")

    try:
        crule(":crossed_swords:  Combat Started", style="bold green")
        while not is_combat_over(session) and session.round <= MAX_ROUNDS:
            combatant = manager.next_turn()
            if combatant is None:
                break
            print_combat_sheet(session)
            for notice in manager.notices:
                cprint(
                    f"  {notice.status_id.emoji} {combatant.actor.colored_name} is affected by "
                    f"{notice.status_id.display_name}"
                    + (f" (initiative -{notice.initiative_penalty})" if notice.initiative_penalty else "")
                )
            crule(f"{combatant.actor.colored_name}'s turn", style="cyan", characters="-")
            if combatant.actor.is_incapacitated():
                cprint("    [dim]Incapacitated, the turn is skipped.[/]")
                continue
            if combatant.actor.category == ActorCategory.PLAYER:
                player_turn(session, ui, combatant.combatant_id)
            else:
                enemy_turn(session, ui, combatant.combatant_id)
        recovered = manager.end()
        for combatant_id in recovered:
            cprint(f"  {session.get_actor(combatant_id).colored_name} recovers to 1 HP.")
        crule(":crossed_swords:  Combat Finished", style="bold green")
    except KeyboardInterrupt:
        cprint("")
        crule(":crossed_swords:  Combat Interrupted", style="bold red")


if __name__ == "__main__":
    main()
