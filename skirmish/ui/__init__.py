"""
Interactive prompt layer for the combat engine.
"""

from .cli_interface import PlayerInterface

__all__ = ["PlayerInterface"]
