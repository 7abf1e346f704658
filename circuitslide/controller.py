"""
Stateful front end for a single game of :class:`~circuitslide.puzzles.Gameboard`.

The environment itself is functional: every shift returns a new state. The
controller owns the current state, applies shift commands to it, and after
each one recomputes the powered cells and the solved status before
returning, so its queries always describe the board as it is now.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence

import jax.numpy as jnp

from circuitslide.circuit.evaluation import evaluate
from circuitslide.circuit.level import INITIAL_GAME_BOARD, Cell, Grid
from circuitslide.circuit.propagation import powered_coordinates
from circuitslide.puzzles.gameboard import ColumnDirection, Gameboard, RowDirection

logger = logging.getLogger(__name__)


class BoardStatus(Enum):
    PLAYING = "playing"
    SOLVED = "solved"


class BoardController:
    """Play one level: shift rows and columns until every critter is powered.

    While the board is :attr:`BoardStatus.SOLVED`, shift requests are
    ignored; :meth:`reset` is the only way back to play.

    Args:
        level: Level to play (default: the shipped 4×4 level). Ignored when
            ``puzzle`` is given.
        puzzle: An existing :class:`Gameboard` to drive.
    """

    def __init__(
        self,
        level: Sequence[Sequence[Cell]] = INITIAL_GAME_BOARD,
        puzzle: Optional[Gameboard] = None,
    ):
        self.puzzle = puzzle if puzzle is not None else Gameboard(level=level)
        self._solve_config = self.puzzle.get_solve_config()
        self._restart()

    def _restart(self) -> None:
        # Always the level as defined, also for scrambled puzzle variants.
        self._state = self._solve_config.LevelState
        self._status = BoardStatus.PLAYING
        self._move_count = 0
        self._recompute()

    def _recompute(self) -> None:
        powered = self.puzzle.compute_powered(self._state)
        self._powered = powered_coordinates(powered)
        self._circuit_complete = bool(
            evaluate(self._state.kinds.reshape(powered.shape), powered)
        )

    def _apply(self, action: int) -> bool:
        if self._status == BoardStatus.SOLVED:
            logger.debug("Ignoring %s: board is solved", self.puzzle.action_to_string(action))
            return False
        self._state, _ = self.puzzle.get_actions(
            self._solve_config, self._state, jnp.int32(action)
        )
        self._move_count += 1
        self._recompute()
        if self._circuit_complete:
            self._status = BoardStatus.SOLVED
            logger.info("Circuit complete after %d shifts", self._move_count)
        return True

    def shift_row(self, row_index: int, direction: RowDirection | str) -> bool:
        """Rotate row ``row_index`` one step left or right.

        Returns:
            ``True`` if the board changed, ``False`` if the request was
            ignored because the board is solved.

        Raises:
            ValueError: If the index is out of range or the direction unknown.
        """
        return self._apply(self.puzzle.row_action(row_index, direction))

    def shift_column(self, col_index: int, direction: ColumnDirection | str) -> bool:
        """Rotate column ``col_index`` one step up or down. See :meth:`shift_row`."""
        return self._apply(self.puzzle.column_action(col_index, direction))

    def reset(self) -> None:
        """Restore the level as defined and resume play, even from a solved board."""
        logger.debug("Resetting board after %d shifts", self._move_count)
        self._restart()

    def get_grid(self) -> Grid:
        return self.puzzle.state_to_grid(self._state)

    def get_powered_set(self) -> frozenset[tuple[int, int]]:
        return self._powered

    def get_status(self) -> BoardStatus:
        return self._status

    def get_state(self) -> "Gameboard.State":
        return self._state

    @property
    def is_solved(self) -> bool:
        return self._status == BoardStatus.SOLVED

    @property
    def move_count(self) -> int:
        return self._move_count

    def __str__(self) -> str:
        return self.puzzle.get_string_parser()(self._state)
