"""
circuitslide: the circuit-routing sliding puzzle on JAX.

Pieces sit on a square board; rows and columns shift cyclically, and the
puzzle is solved once power from the sources reaches every critter.
"""

# Core framework
from circuitslide.core import FieldDescriptor, Puzzle, PuzzleState, state_dataclass

# Circuit logic
from circuitslide.circuit import (
    INITIAL_GAME_BOARD,
    Cell,
    Kind,
    Shape,
    compute_powered,
    evaluate,
    open_edges,
)

# Environments and controller
from circuitslide.puzzles import ColumnDirection, Gameboard, GameboardRandom, RowDirection
from circuitslide.controller import BoardController, BoardStatus

__version__ = "0.1.0"

__all__ = [
    # Core framework
    "Puzzle",
    "PuzzleState",
    "FieldDescriptor",
    "state_dataclass",
    # Circuit logic
    "INITIAL_GAME_BOARD",
    "Cell",
    "Kind",
    "Shape",
    "compute_powered",
    "evaluate",
    "open_edges",
    # Environments
    "Gameboard",
    "GameboardRandom",
    "RowDirection",
    "ColumnDirection",
    # Controller
    "BoardController",
    "BoardStatus",
]
