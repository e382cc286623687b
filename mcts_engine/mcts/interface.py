"""
Game definition interface consumed by the search engine.

The engine knows nothing about boards, moves or rules. Everything it needs
from a game is bundled in a single GameDefinition object:

- actions: legal actions from a state
- apply_action: the (pure) transition function
- default_policy: one step of the playout policy
- is_terminal: whether the game is over
- assign_rewards: one reward per player for a finished game
- selection_score: the tree policy score (UCB1 by default)

States handed to the engine must expose a ``whose_turn`` attribute holding the
id of the player about to move.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, TypeVar
import math

import numpy as np

S = TypeVar("S")
A = TypeVar("A")


def ucb1(
    total_reward: float,
    visits: int,
    parent_visits: int,
    exploration_weight: float = math.sqrt(2),
) -> float:
    """
    Upper Confidence Bound score for an edge of the tree.

    UCB1 = total_reward / visits + exploration_weight * sqrt(ln(parent_visits) / visits)

    Args:
        total_reward: Sum of rewards observed through the edge
        visits: Number of times the edge was traversed (must be positive)
        parent_visits: Number of times the parent node was passed through
        exploration_weight: Weight of the exploration term

    Returns:
        UCB1 score
    """
    exploitation = total_reward / visits
    exploration = math.sqrt(math.log(parent_visits) / visits)
    return exploitation + exploration_weight * exploration


class GameDefinition(ABC, Generic[S, A]):
    """
    Abstract bundle of game callbacks used by the search engine.

    Subclasses implement the four rule callbacks. The default policy and
    selection score have sensible defaults (uniform random playout and UCB1)
    and can be overridden to plug in domain knowledge.
    """

    exploration_weight: float = math.sqrt(2)

    @abstractmethod
    def actions(self, state: S) -> Sequence[A]:
        """
        List the legal actions from a state.

        Must be empty exactly when the state is terminal.
        """

    @abstractmethod
    def apply_action(self, state: S, action: A) -> S:
        """
        Return the state reached by taking an action.

        The input state must not be modified.
        """

    @abstractmethod
    def is_terminal(self, state: S) -> bool:
        """Check whether the game is over in this state."""

    @abstractmethod
    def assign_rewards(self, state: S) -> Sequence[float]:
        """
        Score a terminal state.

        Returns:
            One reward per player, indexed by player id, each within [-1, 1]
        """

    def default_policy(self, state: S, actions: Sequence[A], rng: np.random.Generator) -> S:
        """
        Advance a playout by one move.

        Args:
            state: Current (non-terminal) playout state
            actions: Legal actions from the state, never empty
            rng: Random generator owned by the search session

        Returns:
            The state after exactly one action
        """
        action = actions[int(rng.integers(len(actions)))]
        return self.apply_action(state, action)

    def selection_score(self, total_reward: float, visits: int, parent_visits: int) -> float:
        """Score an already visited edge during selection (UCB1)."""
        return ucb1(total_reward, visits, parent_visits, self.exploration_weight)

    def whose_turn(self, state: Any) -> int:
        """Id of the player about to move in a state."""
        return state.whose_turn
