"""
Power propagation over the board's conductive graph.

Nodes are grid coordinates. Power crosses from a cell to an orthogonal
neighbour when the cell conducts, its edge on that side is open, and the
neighbour accepts power on the facing side (see
:func:`circuitslide.circuit.connection.accepts_power`). Propagation never
wraps around the board edges, unlike shifting.
"""

import chex
import jax
import jax.numpy as jnp
import numpy as np

from circuitslide.circuit.connection import (
    Kind,
    Side,
    accepts_power,
    conducts,
    open_edges,
    opposite,
)


def _step(mask: chex.Array, side: int) -> chex.Array:
    """Move every True of an ``(N, N)`` mask one cell towards ``side``.

    Cells pushed off the board are dropped.
    """
    if side == Side.NORTH:
        return jnp.pad(mask[1:, :], ((0, 1), (0, 0)))
    if side == Side.SOUTH:
        return jnp.pad(mask[:-1, :], ((1, 0), (0, 0)))
    if side == Side.EAST:
        return jnp.pad(mask[:, :-1], ((0, 0), (1, 0)))
    if side == Side.WEST:
        return jnp.pad(mask[:, 1:], ((0, 0), (0, 1)))
    raise ValueError(f"Invalid side: {side}")


def compute_powered(
    kinds: chex.Array, shapes: chex.Array, orientations: chex.Array
) -> chex.Array:
    """
    Breadth-first search from every source; returns the ``(N, N)`` visited mask.

    The frontier is expanded one BFS layer per ``while_loop`` iteration: each
    frontier cell pushes power through all of its open sides at once, and
    every newly reached cell that is not yet visited becomes the next
    frontier. Reachability does not depend on visiting order, so a layer at
    a time gives the same set as a queue. Sources are part of the result.

    Args:
        kinds: ``(N, N)`` array of :class:`Kind` codes.
        shapes: ``(N, N)`` array of :class:`Shape` codes (``NO_SHAPE`` for
            targets and empty cells).
        orientations: ``(N, N)`` array of orientations in degrees.
    """
    kinds = jnp.asarray(kinds)
    edges = open_edges(shapes, orientations)
    emitters = conducts(kinds)
    # Entry masks per side; stacked so the loop body stays a pure array op.
    accepts = jnp.stack([accepts_power(kinds, edges, opposite(side)) for side in Side])

    visited = kinds == Kind.SOURCE

    def cond_fun(carry):
        _, frontier = carry
        return jnp.any(frontier)

    def body_fun(carry):
        visited, frontier = carry
        expanding = jnp.logical_and(frontier, emitters)
        reached = jnp.zeros_like(visited)
        for side in Side:
            leaving = jnp.logical_and(expanding, edges[..., int(side)])
            arriving = jnp.logical_and(_step(leaving, side), accepts[int(side)])
            reached = jnp.logical_or(reached, arriving)
        new_frontier = jnp.logical_and(reached, jnp.logical_not(visited))
        return jnp.logical_or(visited, new_frontier), new_frontier

    visited, _ = jax.lax.while_loop(cond_fun, body_fun, (visited, visited))
    return visited


def powered_coordinates(mask: chex.Array) -> frozenset[tuple[int, int]]:
    """Convert a powered mask into the set of ``(row, col)`` coordinates."""
    rows, cols = np.nonzero(np.asarray(mask))
    return frozenset((int(r), int(c)) for r, c in zip(rows, cols))
