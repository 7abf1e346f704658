"""
Circuit logic for the gameboard: piece connectivity, level data, power
propagation and the win condition. Everything here is pure and UI-agnostic.
"""

from circuitslide.circuit.connection import (
    NO_SHAPE,
    Kind,
    Shape,
    Side,
    accepts_power,
    open_edges,
    opposite,
)
from circuitslide.circuit.evaluation import evaluate
from circuitslide.circuit.level import (
    INITIAL_GAME_BOARD,
    Cell,
    critter,
    empty,
    piece,
    source,
    validate_level,
)
from circuitslide.circuit.propagation import compute_powered, powered_coordinates

__all__ = [
    "NO_SHAPE",
    "Kind",
    "Shape",
    "Side",
    "accepts_power",
    "open_edges",
    "opposite",
    "evaluate",
    "INITIAL_GAME_BOARD",
    "Cell",
    "critter",
    "empty",
    "piece",
    "source",
    "validate_level",
    "compute_powered",
    "powered_coordinates",
]
