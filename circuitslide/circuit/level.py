from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from circuitslide.circuit.connection import NO_SHAPE, ORIENTATIONS, Kind, Shape

Grid = tuple[tuple["Cell", ...], ...]


@dataclass(frozen=True)
class Cell:
    """One board position as seen by renderers and level definitions.

    ``shape`` and ``orientation`` are set for sources and pieces only.
    """

    id: str
    kind: Kind
    shape: Optional[Shape] = None
    orientation: Optional[int] = None

    @property
    def is_conductive(self) -> bool:
        return self.kind in (Kind.SOURCE, Kind.PIECE)


def source(id: str, shape: Shape, orientation: int) -> Cell:
    return Cell(id, Kind.SOURCE, shape, orientation)


def piece(id: str, shape: Shape, orientation: int) -> Cell:
    return Cell(id, Kind.PIECE, shape, orientation)


def critter(id: str) -> Cell:
    return Cell(id, Kind.TARGET)


def empty(id: str) -> Cell:
    return Cell(id, Kind.EMPTY)


# The shipped 4x4 level. Orientations are kept as authored, whether or not
# they line up into a working circuit.
INITIAL_GAME_BOARD: Grid = (
    (
        source("c00", Shape.END, 0),
        piece("c01", Shape.CORNER, 180),
        piece("c02", Shape.STRAIGHT, 90),
        critter("c03"),
    ),
    (
        piece("c10", Shape.STRAIGHT, 0),
        piece("c11", Shape.CORNER, 90),
        piece("c12", Shape.T_JUNCTION, 0),
        piece("c13", Shape.END, 270),
    ),
    (
        critter("c20"),
        piece("c21", Shape.CROSS, 0),
        piece("c22", Shape.STRAIGHT, 0),
        piece("c23", Shape.CORNER, 0),
    ),
    (
        empty("c30"),
        piece("c31", Shape.END, 90),
        piece("c32", Shape.CORNER, 270),
        empty("c33"),
    ),
)


def validate_level(level: Sequence[Sequence[Cell]]) -> None:
    """Raise ``ValueError`` if ``level`` is not a well-formed square grid.

    Only structure is checked. A level without sources, or with targets no
    circuit can reach, is valid and simply never powers up.
    """
    size = len(level)
    if size == 0:
        raise ValueError("Level must contain at least one row")
    seen_ids = set()
    for r, row in enumerate(level):
        if len(row) != size:
            raise ValueError(
                f"Level must be square: row {r} has {len(row)} cells, expected {size}"
            )
        for c, cell in enumerate(row):
            if cell.id in seen_ids:
                raise ValueError(f"Duplicate cell id {cell.id!r} at ({r}, {c})")
            seen_ids.add(cell.id)
            kind = Kind(cell.kind)
            if kind in (Kind.SOURCE, Kind.PIECE):
                if cell.shape is None:
                    raise ValueError(f"Cell {cell.id!r} is a {kind.name} without a shape")
                Shape(cell.shape)
                if cell.orientation not in ORIENTATIONS:
                    raise ValueError(
                        f"Cell {cell.id!r} has orientation {cell.orientation!r}, "
                        f"expected one of {ORIENTATIONS}"
                    )
            elif cell.shape is not None or cell.orientation is not None:
                raise ValueError(
                    f"Cell {cell.id!r} is {kind.name} and cannot carry a shape or orientation"
                )


def level_to_arrays(level: Sequence[Sequence[Cell]]) -> dict[str, np.ndarray]:
    """Flatten a level into the row-major tensors stored in board states.

    ``ids`` holds each cell's index into the level's own id table, so the
    initial board always reads ``0 .. N*N-1``.
    """
    validate_level(level)
    cells = [cell for row in level for cell in row]
    return {
        "ids": np.arange(len(cells), dtype=np.uint16),
        "kinds": np.array([int(cell.kind) for cell in cells], dtype=np.uint8),
        "shapes": np.array(
            [NO_SHAPE if cell.shape is None else int(cell.shape) for cell in cells],
            dtype=np.uint8,
        ),
        "orientations": np.array(
            [0 if cell.orientation is None else cell.orientation for cell in cells],
            dtype=np.uint16,
        ),
    }


def arrays_to_level(
    ids: np.ndarray,
    kinds: np.ndarray,
    shapes: np.ndarray,
    orientations: np.ndarray,
    id_table: Sequence[str],
    size: int,
) -> Grid:
    """Rebuild the read-only grid snapshot from state tensors."""
    ids, kinds, shapes, orientations = (
        np.asarray(x).reshape(-1) for x in (ids, kinds, shapes, orientations)
    )
    rows = []
    for r in range(size):
        row = []
        for c in range(size):
            i = r * size + c
            kind = Kind(int(kinds[i]))
            if kind in (Kind.SOURCE, Kind.PIECE):
                row.append(
                    Cell(id_table[int(ids[i])], kind, Shape(int(shapes[i])), int(orientations[i]))
                )
            else:
                row.append(Cell(id_table[int(ids[i])], kind))
        rows.append(tuple(row))
    return tuple(rows)


def level_ids(level: Sequence[Sequence[Cell]]) -> tuple[str, ...]:
    return tuple(cell.id for row in level for cell in row)
