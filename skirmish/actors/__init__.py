"""
Actor records consumed by the combat engine.
"""

from .actor import Actor, ResourcePool

__all__ = [
    "Actor",
    "ResourcePool",
]
