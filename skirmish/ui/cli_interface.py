"""
Console menus for the player's side of a turn.

Each menu renders a rich table, reads one answer at a time and maps it to a
decision (a movement, a set of blockers, a rush target or an action slot).
Nothing here touches the session; the caller commits the decision. Answering
"q" backs out, and the caller then leaves the session untouched.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from prompt_toolkit import ANSI, PromptSession
from rich.table import Table

from skirmish.combat.action_economy import can_perform_action
from skirmish.combat.combat_session import CombatSession
from skirmish.combat.movement import MovementOption
from skirmish.core.constants import ActionType, MoveType
from skirmish.core.utils import ccapture, make_bar

T = TypeVar("T")

# Created on first use so that importing the module needs no terminal.
_prompt_session: PromptSession | None = None


def _terminal_prompt(text: str) -> str:
    global _prompt_session
    if _prompt_session is None:
        _prompt_session = PromptSession(erase_when_done=True)
    return _prompt_session.prompt(ANSI(text))


def _menu(title: str, *columns: tuple[str, dict[str, Any]]) -> Table:
    table = Table(title=title, pad_edge=False)
    table.add_column("#", style="cyan", no_wrap=True)
    for header, style in columns:
        table.add_column(header, **style)
    return table


def _add_exit(table: Table, exit_entry: str | None) -> None:
    if exit_entry:
        table.add_row()
        table.add_row("q", exit_entry, *[""] * (len(table.columns) - 2))


class PlayerInterface:
    """
    Reads player decisions from the terminal, or from any callable that
    answers a rendered prompt (tests pass a scripted one).
    """

    def __init__(self, ask: Callable[[str], str] | None = None) -> None:
        self.ask = ask or _terminal_prompt

    def _pick(self, table: Table, label: str, entries: Sequence[T]) -> T | None:
        """
        Keep asking until the answer is an entry number or "q".

        Args:
            table (Table): The rendered menu.
            label (str): Prompt label shown after the table.
            entries (Sequence[T]): What the numbers 1..n stand for.

        Returns:
            T | None: The selected entry, or None when the player backs out.

        """
        prompt = f"\n{ccapture(table)}\n{label} > "
        while True:
            answer = self.ask(prompt)
            number = self.get_digit_choice(answer)
            if 1 <= number <= len(entries):
                return entries[number - 1]
            if answer.lower() == "q":
                return None

    def choose_movement(
        self,
        options: list[MovementOption],
        exit_entry: str | None = "Back",
    ) -> MoveType | None:
        """Let the player pick one of the offered movements.

        Blocked options are shown greyed out with their reason but get no
        number. Returns None straight away if nothing is available.
        """
        available = [o for o in options if o.available]
        if not available:
            return None
        table = _menu(
            "Movement",
            ("Move", {"style": "bold"}),
            ("Distance", {"justify": "right"}),
            ("Note", {"style": "dim"}),
        )
        for number, option in enumerate(available, 1):
            table.add_row(
                str(number),
                f"{option.move_type.emoji} {option.move_type.display_name}",
                f"{option.distance}m",
                "",
            )
        for option in options:
            if option.available:
                continue
            table.add_row(
                "",
                f"[dim]{option.move_type.display_name}[/]",
                f"[dim]{option.distance}m[/]",
                option.reason.display_name if option.reason else "",
            )
        _add_exit(table, exit_entry)
        chosen = self._pick(table, "Move", available)
        return chosen.move_type if chosen else None

    def choose_blockers(
        self,
        session: CombatSession,
        candidates: list[str],
        exit_entry: str | None = "Back",
    ) -> list[str] | None:
        """Select which opponents try to stop a disengage.

        Numbers toggle a candidate, "a" confirms (an empty selection means
        nobody blocks) and "q" backs out.

        Args:
            session (CombatSession): The combat session.
            candidates (list[str]): Ids of the opponents allowed to block.
            exit_entry (str | None): Label of the back entry.

        Returns:
            list[str] | None: The blockers in candidate order, or None if the
                player backed out.

        """
        if not candidates:
            return []
        selected: set[str] = set()
        while True:
            table = _menu(
                "Blockers",
                ("Name", {"style": "bold"}),
                ("Initiative", {"justify": "right"}),
                ("Selected", {"justify": "center"}),
            )
            for number, candidate in enumerate(candidates, 1):
                actor = session.get_actor(candidate)
                table.add_row(
                    str(number),
                    actor.colored_name if actor else candidate,
                    str(actor.initiative) if actor else "",
                    "[green]✓[/]" if candidate in selected else "",
                )
            table.add_row()
            table.add_row("a", "Confirm", "", "")
            if exit_entry:
                table.add_row("q", exit_entry, "", "")
            answer = self.ask(f"\n{ccapture(table)}\nBlock > ")
            number = self.get_digit_choice(answer)
            if 1 <= number <= len(candidates):
                selected ^= {candidates[number - 1]}
            elif self.get_alpha_choice(answer) == 0:
                return [c for c in candidates if c in selected]
            elif answer.lower() == "q":
                return None

    def choose_rush_target(
        self,
        session: CombatSession,
        targets: list[str],
        exit_entry: str | None = "Back",
    ) -> str | None:
        """Pick an opponent by number, showing each one's health."""
        if not targets:
            return None
        table = _menu("Targets", ("Name", {"style": "bold"}), ("HP", {"justify": "right"}))
        for number, target in enumerate(targets, 1):
            actor = session.get_actor(target)
            if actor is None:
                table.add_row(str(number), target, "")
            else:
                hp = actor.hp
                bar = make_bar(hp.value, hp.max, color="red")
                table.add_row(str(number), actor.colored_name, f"{bar} {hp.value:>3}/{hp.max:<3}")
        _add_exit(table, exit_entry)
        return self._pick(table, "Target", targets)

    def choose_action_type(
        self,
        session: CombatSession,
        combatant_id: str,
        exit_entry: str | None = "End turn",
    ) -> ActionType | None:
        """Ask which action slot to spend next; None ends the turn.

        Every slot is listed with whether it can still be used this turn.
        """
        actor = session.get_actor(combatant_id)
        state = session.get_action_state(combatant_id)
        slots = list(ActionType)
        table = _menu("Actions", ("Action", {"style": "bold"}), ("Status", {}))
        for number, slot in enumerate(slots, 1):
            check = can_perform_action(state, slot, actor)
            status = "[green]ready[/]" if check.allowed else f"[dim]{check.reason.display_name}[/]"
            table.add_row(str(number), slot.colored_name, status)
        _add_exit(table, exit_entry)
        return self._pick(table, "Action", slots)

    @staticmethod
    def get_digit_choice(answer: str) -> int:
        """Value of a numeric answer, -1 for anything else."""
        return int(answer) if answer.isascii() and answer.isdigit() else -1

    @staticmethod
    def get_alpha_choice(answer: str) -> int:
        """Alphabet position of a one-letter answer ("a" is 0), -1 otherwise."""
        if len(answer) == 1 and answer.isalpha():
            return ord(answer.lower()) - ord("a")
        return -1
