"""
Module for printing the state of an encounter in a formatted way.
"""

from rich.table import Table

from skirmish.combat.action_economy import get_action_summary
from skirmish.combat.combat_session import CombatSession, visible_combatants
from skirmish.combat.engagement import find_engagement, get_engagement_summary
from skirmish.core.utils import cprint, crule, make_bar


def _slot(available: bool) -> str:
    return "[green]●[/]" if available else "[dim]○[/]"


def combat_sheet(session: CombatSession, is_gm: bool = True) -> Table:
    """
    Builds the turn-order table of an encounter.

    Args:
        session (CombatSession): The session to display.
        is_gm (bool): Whether hidden combatants are shown. Defaults to True.

    Returns:
        Table: One row per visible combatant, in turn order.

    """
    table = Table(
        title=f"Round {session.round} - {session.phase.display_name}",
        pad_edge=False,
    )
    table.add_column("Init", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("HP")
    table.add_column("Statuses")
    table.add_column("Engaged", style="magenta")
    table.add_column("Maj Min Mov Rea", justify="center")
    table.add_column("Free", justify="right")
    for combatant in visible_combatants(session, is_gm):
        actor = combatant.actor
        summary = get_action_summary(session.get_action_state(combatant.combatant_id))
        engagement = find_engagement(session.engagements, combatant.combatant_id)
        name = actor.colored_name
        if combatant.hidden:
            name += " [dim](hidden)[/]"
        table.add_row(
            "-" if combatant.initiative is None else str(combatant.initiative),
            name,
            f"{make_bar(actor.hp.value, actor.hp.max, color='red')} "
            f"{actor.hp.value:>3}/{actor.hp.max:<3}",
            ", ".join(f"{s.status_id.emoji} {s}" for s in actor.statuses),
            engagement.engagement_id if engagement else "",
            "   ".join(
                _slot(flag)
                for flag in (
                    summary.major_available,
                    summary.minor_available,
                    summary.move_available,
                    summary.reaction_available,
                )
            ),
            str(summary.free_count),
        )
    return table


def print_combat_sheet(session: CombatSession, is_gm: bool = True) -> None:
    """
    Prints the turn order and the engagement groups of an encounter.

    Args:
        session (CombatSession): The session to display.
        is_gm (bool): Whether hidden combatants are shown. Defaults to True.

    """
    crule("Combat", style="bold yellow")
    cprint(combat_sheet(session, is_gm))
    summary = get_engagement_summary(session)
    if not summary:
        cprint("  [dim]No engagements.[/]")
        return
    for engagement_id, names in summary:
        cprint(f"  [magenta]{engagement_id}[/]: {', '.join(names)}")
