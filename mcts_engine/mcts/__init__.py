"""
Generic Monte Carlo Tree Search (MCTS) engine.

The engine searches any perfect-information game whose rewards are handed out
when the game ends. A game plugs in through a GameDefinition and each
iteration runs:

1. Selection: Starting from the root, follow the link with the best selection
   score (UCB1 by default) while the current node is fully expanded.
2. Expansion: Materialize one untried child, chosen at random.
3. Simulation: Play the default policy to the end of the game.
4. Backpropagation: Credit each link on the path with the reward of the
   player who chose it.

After a move is played the tree is re-rooted at the corresponding child so the
statistics gathered for it carry over to the next decision.
"""

from mcts_engine.mcts.config import MCTSConfig
from mcts_engine.mcts.errors import (
    MCTSError,
    SearchError,
    SearchNotInitializedError,
    InvalidActionError,
    GameContractError,
    TreeCapacityError,
)
from mcts_engine.mcts.interface import GameDefinition, ucb1
from mcts_engine.mcts.node import Link, Node, SearchTree
from mcts_engine.mcts.search import (
    SearchSession,
    mcts_search,
    select_node,
    expand_node,
    simulate_game,
    backpropagate,
)
from mcts_engine.mcts.agent import MCTSAgent, MCTSAgentFactory

# Default configuration
DEFAULT_CONFIG = MCTSConfig.default()

__all__ = [
    'MCTSAgent',
    'MCTSAgentFactory',
    'MCTSConfig',
    'GameDefinition',
    'ucb1',
    'Link',
    'Node',
    'SearchTree',
    'SearchSession',
    'mcts_search',
    'select_node',
    'expand_node',
    'simulate_game',
    'backpropagate',
    'MCTSError',
    'SearchError',
    'SearchNotInitializedError',
    'InvalidActionError',
    'GameContractError',
    'TreeCapacityError',
    'DEFAULT_CONFIG'
]
