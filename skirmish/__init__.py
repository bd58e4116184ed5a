"""
Skirmish: a turn-based combat rules engine for tabletop role-playing games.

The engine tracks whose turn it is, what each combatant may still do this
turn, who is in melee contact with whom, and resolves movement, blockades
and the 2d6 check.
"""

__version__ = "0.1.0"
