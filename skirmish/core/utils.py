"""
Console helpers shared by the display code and the interactive menus.

Everything goes through one rich console so that markup, width and captured
output stay consistent.
"""

from typing import Any

from rich.console import Console
from rich.rule import Rule

console = Console(markup=True, width=120, force_jupyter=False)


def cprint(*objects: Any, **kwargs: Any) -> None:
    """Print rich markup or renderables to the shared console."""
    console.print(*objects, **kwargs)


def crule(title: str = "", **kwargs: Any) -> None:
    """Print a horizontal rule, optionally titled; kwargs go to rich's Rule."""
    console.print(Rule(title, **kwargs))


def ccapture(renderable: Any) -> str:
    """
    Render something to a string instead of the terminal.

    Used to embed rich tables inside prompt_toolkit prompts.

    Args:
        renderable (Any): Markup text or a rich renderable.

    Returns:
        str: What would have been printed.

    """
    with console.capture() as captured:
        console.print(renderable, end="")
    return captured.get()


def make_bar(current: int, maximum: int, length: int = 10, color: str = "white") -> str:
    """
    Build a markup gauge such as HP 12/20 -> ▮▮▮▮▮▮▯▯▯▯.

    Args:
        current (int): The current value.
        maximum (int): The maximum value; a non-positive maximum draws an empty gauge.
        length (int): Number of cells. Defaults to 10.
        color (str): Style of the filled cells. Defaults to "white".

    Returns:
        str: The gauge as rich markup.

    """
    filled = 0 if maximum <= 0 else max(0, min(length, current * length // maximum))
    return f"[{color}]{'▮' * filled}[/][dim white]{'▯' * (length - filled)}[/]"
