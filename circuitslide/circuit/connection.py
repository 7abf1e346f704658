"""
Open-edge model for conductive pieces.

Every side-dependent question in the package (which way a piece conducts,
which glyph draws it, which wires the image renderer paints) is answered by
:func:`open_edges`. Sides are always ordered ``[north, east, south, west]``.
"""

from enum import IntEnum

import chex
import jax.numpy as jnp


class Kind(IntEnum):
    """Content category of a cell."""

    EMPTY = 0
    SOURCE = 1
    PIECE = 2
    TARGET = 3


class Shape(IntEnum):
    """Conductive shape of a source or piece."""

    STRAIGHT = 0
    CORNER = 1
    T_JUNCTION = 2
    CROSS = 3
    END = 4


class Side(IntEnum):
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3


# Shape code stored for targets and empty cells.
NO_SHAPE = len(Shape)

ORIENTATIONS = (0, 90, 180, 270)

# (row, col) step taken when leaving a cell through each side.
SIDE_OFFSETS = ((-1, 0), (0, 1), (1, 0), (0, -1))

# Canonical openness at 0 degrees, one row per Shape plus NO_SHAPE.
PIECE_CONNECTIONS = jnp.array(
    [
        [True, False, True, False],  # STRAIGHT  │
        [True, True, False, False],  # CORNER    └
        [True, True, False, True],  # T_JUNCTION ┴
        [True, True, True, True],  # CROSS     ┼
        [True, False, False, False],  # END       ╵
        [False, False, False, False],  # NO_SHAPE
    ],
    dtype=jnp.bool_,
)


def opposite(side: int) -> int:
    """Side of the neighbour that faces ``side`` of the current cell."""
    return (int(side) + 2) % 4


def open_edges(shape: chex.Array, orientation: chex.Array) -> chex.Array:
    """
    Return which sides of a piece conduct, as booleans ``[..., 4]``.

    ``orientation`` is in degrees. A clockwise turn of 90 moves the north
    opening to the east, so side ``s`` of the rotated piece is side
    ``s - orientation / 90`` of the canonical one. Both arguments may be
    scalars or arrays of matching shape.
    """
    shape = jnp.asarray(shape, dtype=jnp.int32)
    quarter_turns = (jnp.asarray(orientation, dtype=jnp.int32) // 90) % 4
    canonical = PIECE_CONNECTIONS[shape]
    sides = jnp.arange(4, dtype=jnp.int32)
    source_sides = (sides - quarter_turns[..., None]) % 4
    return jnp.take_along_axis(canonical, source_sides, axis=-1)


def conducts(kinds: chex.Array) -> chex.Array:
    """True where a cell can carry power onwards (sources and pieces)."""
    kinds = jnp.asarray(kinds)
    return jnp.logical_or(kinds == Kind.SOURCE, kinds == Kind.PIECE)


def accepts_power(kinds: chex.Array, edges: chex.Array, side: int) -> chex.Array:
    """
    Whether a cell takes power arriving on its ``side``.

    Targets accept from any direction, sources and pieces only through an
    open edge on that side, empty cells never.
    """
    kinds = jnp.asarray(kinds)
    return jnp.where(
        kinds == Kind.TARGET,
        True,
        jnp.logical_and(conducts(kinds), edges[..., side]),
    )
