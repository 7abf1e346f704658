"""Play the circuit gameboard in the terminal.

Example::

    python -m scripts.play_gameboard --img

Commands at the prompt:

* ``r<row><l|r>``    shift a row left or right, e.g. ``r0l``
* ``c<col><u|d>``    shift a column up or down, e.g. ``c2d``
* ``reset``          restore the level
* ``quit``           leave
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import click
import cv2
import numpy as np
from tabulate import tabulate

from circuitslide.controller import BoardController

_COMMAND = re.compile(r"^(?P<line>[rc])(?P<index>\d+)(?P<dir>[lrud])$")

_DIRECTIONS = {
    ("r", "l"): "left",
    ("r", "r"): "right",
    ("c", "u"): "up",
    ("c", "d"): "down",
}


def _status_table(controller: BoardController) -> str:
    powered = sorted(controller.get_powered_set())
    return tabulate(
        [
            ["status", controller.get_status().value],
            ["shifts", controller.move_count],
            ["powered", ", ".join(f"({r},{c})" for r, c in powered) or "-"],
        ],
        tablefmt="plain",
    )


def _save_image(controller: BoardController, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = np.asarray(controller.get_state().img(), dtype=np.uint8)
    cv2.imwrite(str(path), image)
    return path


def run_command(controller: BoardController, command: str) -> bool:
    """Apply one prompt command; returns False when the board was not shifted."""
    if command == "reset":
        controller.reset()
        return True
    match = _COMMAND.match(command)
    if match is None:
        raise click.BadParameter(f"Unknown command {command!r}")
    key = (match["line"], match["dir"])
    if key not in _DIRECTIONS:
        raise click.BadParameter(f"Rows move l/r and columns move u/d, got {command!r}")
    index = int(match["index"])
    if match["line"] == "r":
        return controller.shift_row(index, _DIRECTIONS[key])
    return controller.shift_column(index, _DIRECTIONS[key])


@click.command()
@click.option(
    "--img/--no-img", default=False, help="Save a PNG render of the board after every move."
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=Path("images/gameboard"),
    show_default=True,
    help="Directory where renders are stored when --img is used.",
)
@click.option("--verbose", is_flag=True, help="Log controller events.")
def main(img: bool, output_dir: Path, verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    controller = BoardController()
    click.echo(f"Loaded puzzle: {controller.puzzle!r}")

    frame = 0
    while True:
        click.echo(str(controller))
        click.echo(_status_table(controller))
        if img:
            click.echo(f"Saved board image -> {_save_image(controller, output_dir / f'{frame:03d}.png')}")
            frame += 1

        command = click.prompt("move", type=str).strip().lower()
        if command in ("q", "quit", "exit"):
            break
        try:
            if not run_command(controller, command):
                click.echo("The circuit is complete; type 'reset' to play again.")
        except (click.BadParameter, ValueError) as exc:
            click.echo(f"Invalid move: {exc}")


if __name__ == "__main__":
    main()
