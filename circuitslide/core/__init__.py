"""
Core environment framework: the ``Puzzle`` base class and the state dataclass decorator.
"""

from circuitslide.core.puzzle_base import Puzzle
from circuitslide.core.puzzle_state import FieldDescriptor, PuzzleState, state_dataclass

__all__ = [
    "Puzzle",
    "PuzzleState",
    "FieldDescriptor",
    "state_dataclass",
]
