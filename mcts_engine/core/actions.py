"""
Moves for tic-tac-toe.

A move is a (row, col) pair naming the cell the player to move marks. This
module also handles turning user input into moves.
"""
from __future__ import annotations
from typing import NamedTuple

from mcts_engine.core.constants import BOARD_SIZE


class Move(NamedTuple):
    """Place the current player's marker at (row, col)."""
    row: int
    col: int

    @property
    def cell(self) -> int:
        """Flat board index of the move."""
        return self.row * BOARD_SIZE + self.col

    @classmethod
    def from_cell(cls, cell: int) -> Move:
        return cls(cell // BOARD_SIZE, cell % BOARD_SIZE)

    def is_on_board(self) -> bool:
        return 0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


def parse_move(text: str) -> Move:
    """
    Parse a move typed by a user.

    Accepts "row col", "row,col" or "rowcol" with zero-based indices.

    Args:
        text: User input

    Returns:
        Parsed move

    Raises:
        ValueError: If the text is not a move on the board
    """
    cleaned = text.replace(",", " ").split()
    if len(cleaned) == 1 and len(cleaned[0]) == 2:
        cleaned = list(cleaned[0])
    if len(cleaned) != 2:
        raise ValueError(f"expected two indices, got {text!r}")

    try:
        move = Move(int(cleaned[0]), int(cleaned[1]))
    except ValueError:
        raise ValueError(f"indices must be integers, got {text!r}") from None

    if not move.is_on_board():
        raise ValueError(f"{move} is off the board")
    return move
