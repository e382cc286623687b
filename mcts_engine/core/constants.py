"""
Constants for tic-tac-toe.

This module defines the board geometry, cell markers and the lines that win
the game.
"""
from typing import Dict, Final, List, Tuple

BOARD_SIZE: Final[int] = 3
NUM_CELLS: Final[int] = BOARD_SIZE * BOARD_SIZE
NUM_PLAYERS: Final[int] = 2

# Cell contents. Player p places marker p + 1.
EMPTY: Final[int] = 0
CROSS: Final[int] = 1
NOUGHT: Final[int] = 2

# Symbols for terminal display
MARKER_SYMBOLS: Final[Dict[int, str]] = {
    EMPTY: ".",
    CROSS: "X",
    NOUGHT: "O",
}

# Rewards handed out at the end of the game
WIN_REWARD: Final[float] = 1.0
LOSS_REWARD: Final[float] = -1.0
DRAW_REWARD: Final[float] = 0.0


def _winning_lines() -> List[Tuple[int, ...]]:
    rows = [tuple(r * BOARD_SIZE + c for c in range(BOARD_SIZE)) for r in range(BOARD_SIZE)]
    cols = [tuple(r * BOARD_SIZE + c for r in range(BOARD_SIZE)) for c in range(BOARD_SIZE)]
    diagonal = tuple(i * BOARD_SIZE + i for i in range(BOARD_SIZE))
    anti_diagonal = tuple(i * BOARD_SIZE + (BOARD_SIZE - 1 - i) for i in range(BOARD_SIZE))
    return rows + cols + [diagonal, anti_diagonal]


# Flat cell indices of every row, column and diagonal
WINNING_LINES: Final[List[Tuple[int, ...]]] = _winning_lines()

# Cells in the middle of a side, the weakest opening squares
EDGE_CELLS: Final[Tuple[Tuple[int, int], ...]] = ((0, 1), (1, 0), (1, 2), (2, 1))
