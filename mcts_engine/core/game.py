"""
Tic-tac-toe rules.

This module defines:
- TicTacToeState: immutable board plus the id of the player to move
- TicTacToe: the GameDefinition the search engine plays through

Player 0 places crosses and moves first; player 1 places noughts. A finished
game scores +1 for the winner and -1 for the loser, or 0 each for a draw.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple
import math

from mcts_engine.core.actions import Move
from mcts_engine.core.constants import (
    BOARD_SIZE, NUM_CELLS, NUM_PLAYERS, EMPTY, MARKER_SYMBOLS, WINNING_LINES,
    WIN_REWARD, LOSS_REWARD, DRAW_REWARD
)
from mcts_engine.mcts.interface import GameDefinition


@dataclass(frozen=True)
class TicTacToeState:
    """
    Complete representation of a tic-tac-toe position.

    The board is stored row-major as a flat tuple of cell markers, which keeps
    states hashable and cheap to copy.
    """
    board: Tuple[int, ...] = field(default=(EMPTY,) * NUM_CELLS)
    whose_turn: int = 0

    def __post_init__(self):
        if len(self.board) != NUM_CELLS:
            raise ValueError(f"board must have {NUM_CELLS} cells")
        if self.whose_turn not in range(NUM_PLAYERS):
            raise ValueError(f"whose_turn must be in [0, {NUM_PLAYERS})")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]], whose_turn: int = 0) -> TicTacToeState:
        """
        Build a state from a nested list of markers.

        Args:
            rows: BOARD_SIZE rows of BOARD_SIZE markers
            whose_turn: Player to move

        Returns:
            New state
        """
        return cls(tuple(marker for row in rows for marker in row), whose_turn)

    def at(self, row: int, col: int) -> int:
        return self.board[row * BOARD_SIZE + col]

    def empty_cells(self) -> List[Move]:
        return [Move.from_cell(i) for i, marker in enumerate(self.board) if marker == EMPTY]

    def is_full(self) -> bool:
        return EMPTY not in self.board

    def winner(self) -> Optional[int]:
        """
        Id of the player with three in a row, if any.

        Returns:
            Winning player id, or None
        """
        for line in WINNING_LINES:
            first = self.board[line[0]]
            if first != EMPTY and all(self.board[i] == first for i in line[1:]):
                return first - 1
        return None

    def is_game_over(self) -> bool:
        return self.is_full() or self.winner() is not None

    def play(self, move: Move) -> TicTacToeState:
        """
        Return the state after the player to move marks a cell.

        Raises:
            ValueError: If the cell is off the board or taken
        """
        if not move.is_on_board():
            raise ValueError(f"{move} is off the board")
        if self.board[move.cell] != EMPTY:
            raise ValueError(f"cell {move} is already taken")
        board = list(self.board)
        board[move.cell] = self.whose_turn + 1
        return replace(self, board=tuple(board), whose_turn=(self.whose_turn + 1) % NUM_PLAYERS)

    def render(self) -> str:
        rows = []
        for r in range(BOARD_SIZE):
            rows.append(" ".join(MARKER_SYMBOLS[self.at(r, c)] for c in range(BOARD_SIZE)))
        return "\n".join(rows)

    def __str__(self) -> str:
        return self.render()


class TicTacToe(GameDefinition[TicTacToeState, Move]):
    """Tic-tac-toe callbacks for the search engine."""

    num_players = NUM_PLAYERS

    def __init__(self, exploration_weight: float = math.sqrt(2)):
        """
        Args:
            exploration_weight: UCB1 exploration constant
        """
        if exploration_weight < 0:
            raise ValueError("exploration_weight must be non-negative")
        self.exploration_weight = exploration_weight

    def initial_state(self) -> TicTacToeState:
        return TicTacToeState()

    def actions(self, state: TicTacToeState) -> List[Move]:
        # No moves once someone has won, even if cells are left
        if state.winner() is not None:
            return []
        return state.empty_cells()

    def apply_action(self, state: TicTacToeState, action: Move) -> TicTacToeState:
        return state.play(action)

    def is_terminal(self, state: TicTacToeState) -> bool:
        return state.is_game_over()

    def assign_rewards(self, state: TicTacToeState) -> List[float]:
        winner = state.winner()
        if winner is None:
            return [DRAW_REWARD] * NUM_PLAYERS
        rewards = [LOSS_REWARD] * NUM_PLAYERS
        rewards[winner] = WIN_REWARD
        return rewards
