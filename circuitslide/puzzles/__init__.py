"""
Board environments.

Each environment is a :class:`~circuitslide.core.Puzzle` subclass with
immutable JAX states, so it can be batched, vmapped and searched over.
"""

from circuitslide.puzzles.gameboard import (
    ColumnDirection,
    Gameboard,
    GameboardRandom,
    LineShift,
    RowDirection,
)

__all__ = [
    "ColumnDirection",
    "Gameboard",
    "GameboardRandom",
    "LineShift",
    "RowDirection",
]
