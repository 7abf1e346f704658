"""Board controller: command/query surface and the playing/solved state machine."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest

from circuitslide.circuit.level import INITIAL_GAME_BOARD, level_ids
from circuitslide.controller import BoardController, BoardStatus
from circuitslide.puzzles.gameboard import (
    ColumnDirection,
    Gameboard,
    GameboardRandom,
    RowDirection,
)


@pytest.fixture
def controller():
    return BoardController()


@pytest.fixture
def solvable(solvable_level):
    return BoardController(level=solvable_level)


def all_ids(grid):
    return sorted(cell.id for row in grid for cell in row)


class TestInitialState:
    def test_reference_level(self, controller):
        assert controller.get_status() == BoardStatus.PLAYING
        assert not controller.is_solved
        assert controller.get_grid() == INITIAL_GAME_BOARD
        assert controller.get_powered_set() == {(0, 0)}
        assert controller.move_count == 0

    def test_reuses_given_puzzle(self, solvable_level):
        puzzle = Gameboard(level=solvable_level)
        controller = BoardController(puzzle=puzzle)
        assert controller.puzzle is puzzle
        assert controller.get_grid() == solvable_level

    def test_invalid_level_is_rejected(self):
        with pytest.raises(ValueError):
            BoardController(level=(INITIAL_GAME_BOARD[0],))


class TestShifts:
    def test_shift_row_updates_grid(self, controller):
        assert controller.shift_row(0, RowDirection.LEFT)
        ids = [cell.id for cell in controller.get_grid()[0]]
        assert ids == ["c01", "c02", "c03", "c00"]
        assert controller.move_count == 1
        assert controller.get_status() == BoardStatus.PLAYING

    def test_shift_accepts_string_directions(self, controller):
        assert controller.shift_column(3, "down")
        assert [row[3].id for row in controller.get_grid()] == ["c33", "c03", "c13", "c23"]

    def test_powered_set_recomputed_after_shift(self, controller, reference_powered):
        controller.shift_row(0, "right")
        # The source moved to (0, 1) and still only points north.
        assert controller.get_powered_set() == {(0, 1)}
        assert controller.get_powered_set() == reference_powered(controller.get_grid())

    def test_round_trip_restores_grid(self, controller):
        for index in range(4):
            controller.shift_row(index, "left")
            controller.shift_row(index, "right")
            controller.shift_column(index, "up")
            controller.shift_column(index, "down")
        assert controller.get_grid() == INITIAL_GAME_BOARD

    def test_identity_preserved(self, controller):
        rng = np.random.RandomState(3)
        expected = sorted(level_ids(INITIAL_GAME_BOARD))
        for _ in range(30):
            index = int(rng.randint(4))
            if rng.randint(2):
                controller.shift_row(index, ["left", "right"][rng.randint(2)])
            else:
                controller.shift_column(index, ["up", "down"][rng.randint(2)])
            assert all_ids(controller.get_grid()) == expected

    @pytest.mark.parametrize("index", [-1, 4, 10])
    def test_out_of_range_index(self, controller, index):
        with pytest.raises(ValueError, match="out of range"):
            controller.shift_row(index, RowDirection.LEFT)
        with pytest.raises(ValueError, match="out of range"):
            controller.shift_column(index, ColumnDirection.UP)
        assert controller.move_count == 0
        assert controller.get_grid() == INITIAL_GAME_BOARD

    def test_unknown_direction(self, controller):
        with pytest.raises(ValueError):
            controller.shift_row(0, "sideways")


class TestStateMachine:
    def test_playing_to_playing(self, solvable):
        assert solvable.shift_row(3, "left")
        assert solvable.get_status() == BoardStatus.PLAYING

    def test_playing_to_solved(self, solvable):
        assert solvable.shift_column(1, "up")
        assert solvable.get_status() == BoardStatus.SOLVED
        assert solvable.is_solved
        assert solvable.get_powered_set() == {(0, 0), (0, 1)}

    def test_shifts_ignored_while_solved(self, solvable, caplog):
        solvable.shift_column(1, "up")
        grid = solvable.get_grid()
        with caplog.at_level(logging.DEBUG, logger="circuitslide.controller"):
            assert not solvable.shift_row(0, "left")
            assert not solvable.shift_column(0, "down")
        assert "Ignoring" in caplog.text
        assert solvable.get_grid() == grid
        assert solvable.move_count == 1
        assert solvable.get_status() == BoardStatus.SOLVED

    def test_invalid_index_still_raises_while_solved(self, solvable):
        solvable.shift_column(1, "up")
        with pytest.raises(ValueError):
            solvable.shift_row(9, "left")

    def test_reset_from_solved(self, solvable, solvable_level):
        solvable.shift_column(1, "up")
        solvable.reset()
        assert solvable.get_status() == BoardStatus.PLAYING
        assert solvable.get_grid() == solvable_level
        assert solvable.get_powered_set() == {(0, 0)}
        assert solvable.move_count == 0
        assert solvable.shift_column(1, "up")
        assert solvable.is_solved

    def test_reset_after_shifts(self, controller):
        for index in range(4):
            controller.shift_row(index, "left")
            controller.shift_column(index, "down")
        controller.reset()
        assert controller.get_grid() == INITIAL_GAME_BOARD
        assert controller.get_status() == BoardStatus.PLAYING
        assert controller.get_powered_set() == {(0, 0)}

    def test_solved_board_renders_banner(self, solvable):
        solvable.shift_column(1, "up")
        assert "Circuit Complete!" in str(solvable)


class TestScrambledPuzzle:
    """A controller driving a scrambled variant still plays the level as defined."""

    def test_starts_and_resets_to_level(self):
        controller = BoardController(puzzle=GameboardRandom(initial_shuffle=6))
        assert controller.get_grid() == INITIAL_GAME_BOARD
        assert controller.get_status() == BoardStatus.PLAYING
        controller.shift_row(1, "left")
        controller.shift_column(2, "up")
        controller.reset()
        assert controller.get_grid() == INITIAL_GAME_BOARD
        assert controller.get_powered_set() == {(0, 0)}
        assert controller.move_count == 0


class TestStatusEvaluation:
    def test_status_reuses_powered_mask(self, solvable, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("is_solved should not run a second propagation")

        monkeypatch.setattr(solvable.puzzle, "is_solved", fail)
        assert solvable.shift_column(1, "up")
        assert solvable.get_status() == BoardStatus.SOLVED

    def test_status_agrees_with_puzzle(self, controller):
        for index in range(4):
            controller.shift_row(index, "right")
            expected = bool(
                controller.puzzle.is_solved(
                    controller.puzzle.get_solve_config(), controller.get_state()
                )
            )
            assert controller.is_solved == expected


class TestIndexTypes:
    @pytest.mark.parametrize("index", [np.int64(2), jnp.int32(2)])
    def test_array_integer_scalars_accepted(self, controller, index):
        assert controller.shift_row(index, "left")
        assert controller.shift_column(index, "up")
        assert controller.move_count == 2

    @pytest.mark.parametrize("index", [jnp.float32(1.0), np.bool_(True), "1"])
    def test_non_integer_scalars_rejected(self, controller, index):
        with pytest.raises(ValueError, match="must be an integer"):
            controller.shift_row(index, "left")
