"""
Tests for the logging helpers.
"""

import logging

from skirmish.core.logging import format_context, log_debug, log_info


def test_format_context_appends_pairs():
    """
    Test that context is appended as key=value pairs.
    """
    assert format_context("Moved", {"id": "hero", "move": "full"}) == "Moved [id=hero move=full]"


def test_format_context_without_context():
    """
    Test that a message without context is unchanged.
    """
    assert format_context("Moved") == "Moved"
    assert format_context("Moved", {}) == "Moved"


def test_helpers_log_to_package_logger(caplog):
    """
    Test that the helpers write to the skirmish logger at the right level.
    """
    with caplog.at_level(logging.DEBUG, logger="skirmish"):
        log_debug("Traced", {"round": 2})
        log_info("Ready")
    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.DEBUG, "Traced [round=2]"),
        (logging.INFO, "Ready"),
    ]
