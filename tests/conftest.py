from collections import deque

import jax
import numpy as np
import pytest

from circuitslide.circuit.connection import Kind, Shape
from circuitslide.circuit.level import Cell, critter, empty, piece, source
from circuitslide.puzzles.gameboard import Gameboard

# Openness at 0 degrees, [north, east, south, west], written out independently
# of circuitslide.circuit.connection so the reference below is a real cross-check.
_CANONICAL = {
    Shape.STRAIGHT: (1, 0, 1, 0),
    Shape.CORNER: (1, 1, 0, 0),
    Shape.T_JUNCTION: (1, 1, 0, 1),
    Shape.CROSS: (1, 1, 1, 1),
    Shape.END: (1, 0, 0, 0),
}
_OFFSETS = ((-1, 0), (0, 1), (1, 0), (0, -1))


def _side_open(cell: Cell, side: int) -> bool:
    quarter_turns = cell.orientation // 90
    return bool(_CANONICAL[cell.shape][(side - quarter_turns) % 4])


def _reference_powered(grid) -> frozenset:
    """Queue-based BFS over a grid of Cells."""
    size = len(grid)
    sources = [
        (r, c) for r in range(size) for c in range(size) if grid[r][c].kind == Kind.SOURCE
    ]
    visited = set(sources)
    queue = deque(sources)
    while queue:
        r, c = queue.popleft()
        cell = grid[r][c]
        if not cell.is_conductive:
            continue
        for side, (dr, dc) in enumerate(_OFFSETS):
            nr, nc = r + dr, c + dc
            if not (0 <= nr < size and 0 <= nc < size) or (nr, nc) in visited:
                continue
            if not _side_open(cell, side):
                continue
            neighbour = grid[nr][nc]
            if neighbour.kind == Kind.TARGET or (
                neighbour.is_conductive and _side_open(neighbour, (side + 2) % 4)
            ):
                visited.add((nr, nc))
                queue.append((nr, nc))
    return frozenset(visited)


def _build_level(size: int, cells: dict | None = None):
    """Square level of empty cells with the given ``{(row, col): Cell}`` overrides."""
    cells = cells or {}
    return tuple(
        tuple(cells.get((r, c), empty(f"e{r}{c}")) for c in range(size))
        for r in range(size)
    )


def _random_level(seed: int, size: int = 4, sources: int = 2, targets: int = 2):
    """Level of random pieces with a few sources and critters mixed in."""
    rng = np.random.RandomState(seed)
    positions = rng.permutation(size * size)
    rows = []
    for r in range(size):
        row = []
        for c in range(size):
            rank = int(np.where(positions == r * size + c)[0][0])
            cell_id = f"x{r}{c}"
            if rank < sources:
                row.append(source(cell_id, Shape(int(rng.randint(5))), 90 * int(rng.randint(4))))
            elif rank < sources + targets:
                row.append(critter(cell_id))
            elif rank == sources + targets:
                row.append(empty(cell_id))
            else:
                row.append(piece(cell_id, Shape(int(rng.randint(5))), 90 * int(rng.randint(4))))
        rows.append(tuple(row))
    return tuple(rows)


@pytest.fixture
def rng_key():
    """Provide a reproducible random key for JAX operations."""
    return jax.random.PRNGKey(42)


@pytest.fixture(scope="module")
def gameboard():
    """Gameboard on the shipped level."""
    return Gameboard()


@pytest.fixture
def reference_powered():
    return _reference_powered


@pytest.fixture
def build_level():
    return _build_level


@pytest.fixture
def random_level():
    return _random_level


@pytest.fixture
def solvable_level():
    """A source facing east and a critter one column-up shift away from it."""
    return _build_level(
        4,
        {
            (0, 0): source("src", Shape.END, 90),
            (1, 1): critter("bug"),
        },
    )
