"""
MCTS Engine - a generic Monte Carlo Tree Search engine for turn-based games.

This package provides a game-agnostic search engine with tree reuse between
moves, along with tic-tac-toe as an example game and command-line tools to
play against the engine.
"""

__version__ = "0.1.0"
__author__ = "MCTS Engine Team"

# Make key components available at package level
from mcts_engine.mcts.config import MCTSConfig
from mcts_engine.mcts.interface import GameDefinition
from mcts_engine.mcts.search import SearchSession, mcts_search
from mcts_engine.mcts.agent import MCTSAgent
from mcts_engine.core.game import TicTacToe, TicTacToeState
from mcts_engine.core.actions import Move

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
