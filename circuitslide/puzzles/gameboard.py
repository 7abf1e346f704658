import operator
from collections.abc import Callable, Sequence
from enum import Enum, IntEnum

import chex
import jax
import jax.numpy as jnp
import numpy as np
from termcolor import colored

from circuitslide.circuit.connection import SIDE_OFFSETS, Kind, open_edges
from circuitslide.circuit.evaluation import evaluate
from circuitslide.circuit.level import (
    INITIAL_GAME_BOARD,
    Cell,
    Grid,
    arrays_to_level,
    level_ids,
    level_to_arrays,
    validate_level,
)
from circuitslide.circuit.propagation import compute_powered
from circuitslide.core.puzzle_base import Puzzle
from circuitslide.core.puzzle_state import FieldDescriptor, PuzzleState, state_dataclass
from circuitslide.utils import annotate
from circuitslide.utils.annotate import IMG_SIZE
from circuitslide.utils.util import coloring_str

TYPE = jnp.uint8

POWERED_RGB = (255, 196, 40)

# Box-drawing glyph for each [north, east, south, west] openness pattern.
WIRE_GLYPHS = {
    (True, False, True, False): "│",
    (False, True, False, True): "─",
    (True, True, False, False): "└",
    (False, True, True, False): "┌",
    (False, False, True, True): "┐",
    (True, False, False, True): "┘",
    (True, True, False, True): "┴",
    (True, True, True, False): "├",
    (False, True, True, True): "┬",
    (True, False, True, True): "┤",
    (True, True, True, True): "┼",
    (True, False, False, False): "╵",
    (False, True, False, False): "╶",
    (False, False, True, False): "╷",
    (False, False, False, True): "╴",
}


class LineShift(IntEnum):
    """Which line an action moves and which way; ``action = shift * size + index``."""

    ROW_LEFT = 0
    ROW_RIGHT = 1
    COLUMN_UP = 2
    COLUMN_DOWN = 3


class RowDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class ColumnDirection(str, Enum):
    UP = "up"
    DOWN = "down"


_SHIFT_LABELS = ("←", "→", "↑", "↓")


def shift_line(cells: chex.Array, line_shift: chex.Array, index: chex.Array) -> chex.Array:
    """
    Rotate one row or column of an ``(N, N)`` array by a single position.

    The cell leaving the leading edge re-enters at the trailing edge; every
    other line is returned untouched.
    """
    size = cells.shape[0]
    rolled = jax.lax.switch(
        line_shift,
        [
            lambda x: jnp.roll(x, -1, axis=1),
            lambda x: jnp.roll(x, 1, axis=1),
            lambda x: jnp.roll(x, -1, axis=0),
            lambda x: jnp.roll(x, 1, axis=0),
        ],
        cells,
    )
    positions = jnp.arange(size)
    selected = jnp.where(
        line_shift < LineShift.COLUMN_UP,
        positions[:, None] == index,
        positions[None, :] == index,
    )
    return jnp.where(selected, rolled, cells)


class Gameboard(Puzzle):
    """Circuit-routing sliding puzzle on an N×N board.

    Each cell is a power source, a conductive piece, a critter (target) or
    empty. Actions cyclically shift a whole row left/right or a whole
    column up/down by one position; cells keep their id, shape and
    orientation while moving. The board is solved when power flowing from
    the sources reaches every critter.

    Actions are ``LineShift * size + index`` for ``index`` in ``[0, size)``,
    so there are ``4 * size`` of them and every one is always legal.

    Args:
        level: Square grid of :class:`~circuitslide.circuit.level.Cell`
            (default: the shipped 4×4 level).
    """

    size: int

    def define_state_class(self) -> PuzzleState:
        str_parser = self.get_string_parser()
        cells = self.size**2

        @state_dataclass
        class State:
            ids: FieldDescriptor.tensor(dtype=jnp.uint16, shape=(cells,))
            kinds: FieldDescriptor.tensor(dtype=TYPE, shape=(cells,))
            shapes: FieldDescriptor.tensor(dtype=TYPE, shape=(cells,))
            orientations: FieldDescriptor.tensor(dtype=jnp.uint16, shape=(cells,))

            def __str__(self, **kwargs):
                return str_parser(self, **kwargs)

        return State

    def __init__(self, level: Sequence[Sequence[Cell]] = INITIAL_GAME_BOARD, **kwargs):
        validate_level(level)
        self.level: Grid = tuple(tuple(row) for row in level)
        self.size = len(self.level)
        self.cell_ids = level_ids(self.level)
        self._level_arrays = level_to_arrays(self.level)
        self.action_size = 4 * self.size
        super().__init__(**kwargs)
        self.compute_powered = jax.jit(self.compute_powered)

    def get_level_state(self) -> "Gameboard.State":
        return self.State(
            **{name: jnp.asarray(values) for name, values in self._level_arrays.items()}
        )

    def get_solve_config(self, key=None, data=None) -> Puzzle.SolveConfig:
        return self.SolveConfig(LevelState=self.get_level_state())

    def get_initial_state(
        self, solve_config: Puzzle.SolveConfig, key=None, data=None
    ) -> "Gameboard.State":
        return solve_config.LevelState

    def get_actions(
        self,
        solve_config: Puzzle.SolveConfig,
        state: "Gameboard.State",
        action: chex.Array,
        filled: bool = True,
    ) -> tuple["Gameboard.State", chex.Array]:
        """
        Shift the row or column selected by ``action``; the cost is always 1.
        """
        size = self.size
        line_shift = action // size
        index = action % size

        def shift(field):
            return shift_line(field.reshape(size, size), line_shift, index).reshape(-1)

        next_state, cost = jax.lax.cond(
            filled,
            lambda: (jax.tree_util.tree_map(shift, state), 1.0),
            lambda: (state, jnp.inf),
        )
        return next_state, cost

    def compute_powered(self, state: "Gameboard.State") -> chex.Array:
        """Return the ``(size, size)`` mask of cells reached by power."""
        shape = (self.size, self.size)
        return compute_powered(
            state.kinds.reshape(shape),
            state.shapes.reshape(shape),
            state.orientations.reshape(shape),
        )

    def is_solved(self, solve_config: Puzzle.SolveConfig, state: "Gameboard.State") -> bool:
        powered = self.compute_powered(state)
        return evaluate(state.kinds.reshape(powered.shape), powered)

    def row_action(self, index: int, direction: RowDirection) -> int:
        index = self._check_line_index(index, "Row")
        direction = RowDirection(direction)
        shift = LineShift.ROW_LEFT if direction == RowDirection.LEFT else LineShift.ROW_RIGHT
        return int(shift) * self.size + index

    def column_action(self, index: int, direction: ColumnDirection) -> int:
        index = self._check_line_index(index, "Column")
        direction = ColumnDirection(direction)
        shift = LineShift.COLUMN_UP if direction == ColumnDirection.UP else LineShift.COLUMN_DOWN
        return int(shift) * self.size + index

    def _check_line_index(self, index: int, label: str) -> int:
        if isinstance(index, (bool, np.bool_)):
            raise ValueError(f"{label} index must be an integer, got {index!r}")
        try:
            index = operator.index(index)
        except TypeError:
            raise ValueError(f"{label} index must be an integer, got {index!r}") from None
        if not 0 <= index < self.size:
            raise ValueError(f"{label} index {index} out of range [0, {self.size})")
        return index

    def state_to_grid(self, state: "Gameboard.State") -> Grid:
        """Read-only grid of :class:`Cell` records for renderers."""
        return arrays_to_level(
            state.ids, state.kinds, state.shapes, state.orientations, self.cell_ids, self.size
        )

    def action_to_string(self, action: int) -> str:
        if not 0 <= action < self.action_size:
            raise ValueError(f"Invalid action: {action}")
        line_shift, index = divmod(int(action), self.size)
        line = "row" if line_shift < LineShift.COLUMN_UP else "col"
        return f"{line} {index} {_SHIFT_LABELS[line_shift]}"

    @property
    def inverse_action_map(self) -> jnp.ndarray | None:
        """
        Shifting a line one way is undone by shifting the same line back:
        ROW_LEFT <-> ROW_RIGHT and COLUMN_UP <-> COLUMN_DOWN.
        """
        return jnp.array(
            [((a // self.size) ^ 1) * self.size + a % self.size for a in range(self.action_size)]
        )

    def get_string_parser(self) -> Callable:
        form = self._grid_visualize_format(self.size)

        def to_char(kind, edges, powered):
            match Kind(int(kind)):
                case Kind.EMPTY:
                    return colored("·", "dark_grey")
                case Kind.TARGET:
                    return colored("●", "green" if powered else "red")
                case Kind.SOURCE:
                    return colored(WIRE_GLYPHS.get(tuple(edges), "?"), "yellow", attrs=["bold"])
                case _:
                    glyph = WIRE_GLYPHS.get(tuple(edges), "?")
                    return coloring_str(glyph, POWERED_RGB) if powered else glyph

        def parser(state: "Gameboard.State", **kwargs):
            powered = np.asarray(self.compute_powered(state))
            edges = np.asarray(open_edges(state.shapes, state.orientations)).tolist()
            chars = map(to_char, np.asarray(state.kinds), edges, powered.reshape(-1))
            board = form.format(*chars)
            if bool(evaluate(state.kinds.reshape(powered.shape), powered)):
                board += "\nCircuit Complete! You powered all the critters!"
            return board

        return parser

    def get_img_parser(self) -> Callable:
        """
        Draws each cell as a tile, wires as lines from the tile centre to
        every open side, sources as a dot and critters as a disc. Powered
        wires and critters are highlighted.
        """
        import cv2

        def img_func(state: "Gameboard.State", **kwargs):
            imgsize = IMG_SIZE[0]
            size = self.size
            cell_size = imgsize // size
            img = np.full((imgsize, imgsize, 3), annotate.BACKGROUND_COLOR, dtype=np.uint8)
            kinds = np.asarray(state.kinds).reshape(size, size)
            edges = np.asarray(open_edges(state.shapes, state.orientations)).reshape(size, size, 4)
            powered = np.asarray(self.compute_powered(state))
            thickness = max(2, cell_size // 8)
            for r in range(size):
                for c in range(size):
                    top_left = (c * cell_size + 2, r * cell_size + 2)
                    bottom_right = ((c + 1) * cell_size - 3, (r + 1) * cell_size - 3)
                    center = (c * cell_size + cell_size // 2, r * cell_size + cell_size // 2)
                    kind = Kind(int(kinds[r, c]))
                    fill = annotate.EMPTY_COLOR if kind == Kind.EMPTY else annotate.CELL_COLOR
                    img = cv2.rectangle(img, top_left, bottom_right, fill, thickness=-1)
                    if kind in (Kind.SOURCE, Kind.PIECE):
                        wire = annotate.POWERED_WIRE_COLOR if powered[r, c] else annotate.WIRE_COLOR
                        for side, (dr, dc) in enumerate(SIDE_OFFSETS):
                            if edges[r, c, side]:
                                end = (center[0] + dc * cell_size // 2, center[1] + dr * cell_size // 2)
                                img = cv2.line(img, center, end, wire, thickness)
                        if kind == Kind.SOURCE:
                            img = cv2.circle(img, center, cell_size // 6, annotate.SOURCE_COLOR, -1)
                    elif kind == Kind.TARGET:
                        critter = (
                            annotate.POWERED_CRITTER_COLOR if powered[r, c] else annotate.CRITTER_COLOR
                        )
                        img = cv2.circle(img, center, cell_size // 3, critter, -1)
            return img

        return img_func


class GameboardRandom(Gameboard):
    """
    Gameboard whose initial state is the level scrambled by
    ``initial_shuffle`` random, non-backtracking shifts.
    """

    def __init__(
        self,
        level: Sequence[Sequence[Cell]] = INITIAL_GAME_BOARD,
        initial_shuffle: int = 8,
        **kwargs,
    ):
        self.initial_shuffle = initial_shuffle
        super().__init__(level, **kwargs)

    def get_initial_state(
        self, solve_config: Puzzle.SolveConfig, key=None, data=None
    ) -> Gameboard.State:
        return self._get_shuffled_state(
            solve_config, solve_config.LevelState, key, num_shuffle=self.initial_shuffle
        )
