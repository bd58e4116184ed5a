"""
Logging configuration module for the combat engine.

The engine never prints; it logs. This module installs a rich handler for
the demo and offers two small helpers that append a context dictionary to
the message as key=value pairs.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: int = logging.INFO, console: Console | None = None) -> None:
    """
    Route all logging through a rich handler.

    Args:
        level (int): The logging level to set. Defaults to logging.INFO.
        console (Console | None): Where to write; a 120-column console by default.

    """
    rich_handler = RichHandler(
        console=console or Console(width=120, force_jupyter=False),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
    )
    rich_handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))
    logging.basicConfig(level=level, handlers=[rich_handler], force=True)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


logger = get_logger("skirmish")


def format_context(message: str, context: dict[str, Any] | None = None) -> str:
    """
    Append context to a message as key=value pairs.

    Args:
        message (str): The message.
        context (dict[str, Any] | None): Optional context dictionary.

    Returns:
        str: The message, followed by the context in brackets if any.

    """
    if not context:
        return message
    return f"{message} [{' '.join(f'{k}={v}' for k, v in context.items())}]"


def log_debug(message: str, context: dict[str, Any] | None = None) -> None:
    logger.debug(format_context(message, context))


def log_info(message: str, context: dict[str, Any] | None = None) -> None:
    logger.info(format_context(message, context))
