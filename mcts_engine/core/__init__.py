"""
Tic-tac-toe, the example game shipped with the engine.

All core components can be imported directly from this package.
"""

from mcts_engine.core.game import TicTacToe, TicTacToeState
from mcts_engine.core.actions import Move, parse_move
from mcts_engine.core.constants import (
    BOARD_SIZE, NUM_PLAYERS, EMPTY, CROSS, NOUGHT,
    EDGE_CELLS
)

__all__ = [
    'TicTacToe', 'TicTacToeState',
    'Move', 'parse_move',
    'BOARD_SIZE', 'NUM_PLAYERS', 'EMPTY', 'CROSS', 'NOUGHT',
    'EDGE_CELLS',
]
