"""
Monte Carlo Tree Search (MCTS) algorithm.

This module implements the core MCTS algorithm with the four standard phases:
1. Selection: Walk down fully expanded nodes using the game's selection score
2. Expansion: Materialize one untried child, chosen uniformly at random
3. Simulation: Run the default policy to the end of the game
4. Backpropagation: Credit every edge on the path with the reward of the
   player who chose it

SearchSession owns the tree between decisions, so statistics gathered for the
move actually played are reused by the next search (root advancement).
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import math
import time

import numpy as np

from mcts_engine.mcts.config import MCTSConfig
from mcts_engine.mcts.errors import (
    GameContractError, InvalidActionError, SearchError, SearchNotInitializedError
)
from mcts_engine.mcts.interface import GameDefinition
from mcts_engine.mcts.node import Node, SearchTree

logger = logging.getLogger(__name__)


def materialize_node(tree: SearchTree, game: GameDefinition, node_id: int, state: Any) -> Node:
    """
    Compute a node's terminality and action list and store them in the tree.

    Raises:
        GameContractError: If the game lists actions at a terminal state or
            none at a non-terminal one
    """
    terminal = bool(game.is_terminal(state))
    actions = list(game.actions(state))
    if terminal and actions:
        raise GameContractError(
            f"game reported {len(actions)} actions at a terminal state: {state!r}"
        )
    if not terminal and not actions:
        raise GameContractError(f"game reported no actions at a non-terminal state: {state!r}")
    return tree.materialize(node_id, state, actions, terminal)


def check_rewards(rewards: Sequence[float], num_players: int, validate_range: bool = True) -> List[float]:
    """
    Validate a reward vector returned by the game.

    Args:
        rewards: Rewards indexed by player id
        num_players: Number of players in the game
        validate_range: Whether to require |reward| <= 1

    Returns:
        The rewards as a list of floats
    """
    rewards = [float(r) for r in rewards]
    if len(rewards) < num_players:
        raise GameContractError(
            f"expected {num_players} rewards, game returned {len(rewards)}"
        )
    if validate_range:
        for player, reward in enumerate(rewards):
            if not abs(reward) <= 1.0:
                raise GameContractError(
                    f"reward {reward} for player {player} is outside [-1, 1]"
                )
    return rewards


def select_node(tree: SearchTree, game: GameDefinition) -> int:
    """
    Walk down the tree from the root using the selection score.

    Descends while the current node is fully expanded and not terminal. Among
    the outgoing links the one with the strictly greatest score wins, so ties
    go to the first link in action order.

    Args:
        tree: Search tree
        game: Game definition providing selection_score

    Returns:
        Id of the node where selection stopped
    """
    node = tree.root
    while node.fully_expanded and not node.terminal:
        best_index = 0
        best_score = -math.inf
        for index, link in enumerate(node.links):
            score = game.selection_score(link.total_reward, link.visits, node.visits)
            if score > best_score:
                best_index = index
                best_score = score
        node = tree[node.links[best_index].child]
    return node.id


def expand_node(tree: SearchTree, game: GameDefinition, node_id: int, rng: np.random.Generator) -> int:
    """
    Materialize one untried child of a node.

    The child is picked uniformly at random among links never traversed. When
    it is the last untried link the node is marked fully expanded.

    Args:
        tree: Search tree
        game: Game definition
        node_id: Node reached by selection (not terminal)
        rng: Random generator

    Returns:
        Id of the newly materialized child
    """
    node = tree[node_id]
    untried = node.untried_link_indices()
    if not untried:
        raise SearchError(f"node {node_id} has no untried actions to expand")

    action_index = untried[int(rng.integers(len(untried)))]
    child_id = node.links[action_index].child
    child_state = game.apply_action(node.state, node.available_actions[action_index])
    materialize_node(tree, game, child_id, child_state)

    # Only flag the node once the child exists, so a failed expansion is retried
    if len(untried) == 1:
        node.fully_expanded = True
    return child_id


def simulate_game(
    game: GameDefinition,
    state: Any,
    rng: np.random.Generator,
    num_players: int,
    validate_rewards: bool = True,
) -> Tuple[List[float], int]:
    """
    Play the default policy from a state until the game ends.

    No nodes are created for the intermediate playout states.

    Args:
        game: Game definition
        state: State to start the playout from
        rng: Random generator passed to the default policy
        num_players: Number of players
        validate_rewards: Whether to range-check the rewards

    Returns:
        Tuple of (rewards per player, number of playout steps)
    """
    steps = 0
    while not game.is_terminal(state):
        actions = game.actions(state)
        if not actions:
            raise GameContractError(f"game reported no actions at a non-terminal state: {state!r}")
        state = game.default_policy(state, actions, rng)
        steps += 1

    return check_rewards(game.assign_rewards(state), num_players, validate_rewards), steps


def backpropagate(tree: SearchTree, game: GameDefinition, node_id: int, rewards: Sequence[float]) -> int:
    """
    Update statistics on the path from a node up to the root.

    Each traversed link is credited with the reward of the player to move at
    its parent, i.e. the player who chose that action.

    Args:
        tree: Search tree
        game: Game definition (used to read whose turn it is)
        node_id: Node where the iteration ended
        rewards: Rewards indexed by player id

    Returns:
        Depth of the node (number of links updated)
    """
    depth = 0
    node = tree[node_id]
    while node.parent is not None:
        action_index = node.incoming_action_index
        node = tree[node.parent]
        node.visits += 1
        link = node.links[action_index]
        link.visits += 1
        link.total_reward += rewards[game.whose_turn(node.state)]
        depth += 1
    return depth


class SearchSession:
    """
    A Monte Carlo Tree Search bound to one game and one evolving root state.

    Usage:
        session = SearchSession(state, num_players=2, game=TicTacToe())
        session.initialize()
        session.run_iterations(5000)
        action = session.best_action()
        session.advance_root(action)   # keep the statistics for that subtree
        session.run_iterations(5000)
    """

    def __init__(
        self,
        initial_state: Any,
        num_players: int,
        game: GameDefinition,
        config: Optional[MCTSConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize a search session.

        Args:
            initial_state: State of the root
            num_players: Number of players (length of reward vectors)
            game: Game definition callbacks
            config: MCTS configuration parameters
            rng: Random generator (default: seeded from config.seed)
        """
        if num_players <= 0:
            raise ValueError("num_players must be positive")

        self.game = game
        self.num_players = num_players
        self.config = config or MCTSConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.tree = SearchTree(max_nodes=self.config.max_nodes)
        self._initial_state = initial_state
        self.tree.allocate()
        self.initialized = False

        # Rewards of the most recent iteration
        self.last_rewards: Optional[List[float]] = None

        self.statistics: Dict[str, Any] = {
            "iterations": 0,
            "total_simulation_steps": 0,
            "max_simulation_steps": 0,
            "max_depth": 0,
            "time_elapsed": 0.0,
            "roots_advanced": 0,
            "nodes_freed": 0,
        }

    @property
    def root(self) -> Node:
        return self.tree.root

    @property
    def root_state(self) -> Any:
        return self.tree.root.state if self.initialized else self._initial_state

    def initialize(self) -> None:
        """
        Compute the root's action list and placeholder links.

        Must be called exactly once before the first run_iterations.
        """
        if self.initialized:
            raise SearchError("search session is already initialized")
        materialize_node(self.tree, self.game, self.tree.root_id, self._initial_state)
        self.initialized = True
        logger.debug("Initialized search root with %d actions", len(self.root.links))

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise SearchNotInitializedError(
                "initialize() must be called before searching"
            )

    def _require_searchable(self) -> None:
        self._require_initialized()
        if self.root.terminal:
            raise SearchError("cannot search from a terminal root state")

    def run_iteration(self) -> None:
        """Run a single selection/expansion/simulation/backpropagation pass."""
        node_id = select_node(self.tree, self.game)
        node = self.tree[node_id]

        if node.terminal:
            # Terminal short-circuit: no expansion, no playout
            rewards = check_rewards(
                self.game.assign_rewards(node.state), self.num_players, self.config.validate_rewards
            )
            steps = 0
        else:
            node_id = expand_node(self.tree, self.game, node_id, self.rng)
            rewards, steps = simulate_game(
                self.game, self.tree[node_id].state, self.rng,
                self.num_players, self.config.validate_rewards
            )

        self.last_rewards = rewards
        depth = backpropagate(self.tree, self.game, node_id, rewards)

        self.statistics["iterations"] += 1
        self.statistics["total_simulation_steps"] += steps
        self.statistics["max_simulation_steps"] = max(self.statistics["max_simulation_steps"], steps)
        self.statistics["max_depth"] = max(self.statistics["max_depth"], depth)

    def run_iterations(self, n: int) -> None:
        """
        Run n search iterations against the shared tree.

        Args:
            n: Number of iterations (non-negative)
        """
        if n < 0:
            raise ValueError("number of iterations must be non-negative")
        self._require_searchable()

        start_time = time.time()
        for _ in range(n):
            self.run_iteration()
        elapsed = time.time() - start_time
        self.statistics["time_elapsed"] += elapsed

        logger.debug(
            "Ran %d iterations in %.3fs (%d nodes, root visits %d)",
            n, elapsed, len(self.tree), self.root.visits
        )

    def run_for(self, iterations: int, time_limit: Optional[float] = None) -> int:
        """
        Run up to a number of iterations, stopping early once time_limit passes.

        Returns:
            Number of iterations actually run
        """
        if iterations < 0:
            raise ValueError("number of iterations must be non-negative")
        if time_limit is None:
            self.run_iterations(iterations)
            return iterations

        self._require_searchable()
        start_time = time.time()
        deadline = start_time + time_limit
        done = 0
        while done < iterations and time.time() < deadline:
            self.run_iteration()
            done += 1
        self.statistics["time_elapsed"] += time.time() - start_time
        if done < iterations:
            logger.debug("Time limit reached after %d of %d iterations", done, iterations)
        return done

    def best_action_index(self) -> int:
        """
        Index of the root action with the highest average reward.

        Untried root actions are skipped; ties go to the first action.
        """
        self._require_initialized()
        best_index = None
        best_value = -math.inf
        for index, link in enumerate(self.root.links):
            if link.visits == 0:
                continue
            value = link.total_reward / link.visits
            if best_index is None or value > best_value:
                best_index = index
                best_value = value
        if best_index is None:
            raise SearchError("no root action has been tried yet")
        return best_index

    def best_action(self) -> Any:
        """
        Recommended action from the root (exploitation only).

        Returns:
            The action whose link has the highest average reward
        """
        return self.root.available_actions[self.best_action_index()]

    def action_index(self, action: Any) -> int:
        """Index of an action in the root's action list."""
        self._require_initialized()
        try:
            return self.root.available_actions.index(action)
        except ValueError:
            raise InvalidActionError(f"{action!r} is not a legal action at the root") from None

    def advance_root(self, action: Any) -> None:
        """
        Re-root the tree at the child reached by an action.

        All other root subtrees are discarded; statistics of the kept subtree
        are preserved for the next run_iterations call. Node ids into the
        discarded subtrees become invalid.

        Args:
            action: Any legal root action (engine or opponent move)
        """
        index = self.action_index(action)
        child = self.tree.child(self.tree.root_id, index)
        if not child.materialized:
            state = self.game.apply_action(self.root.state, action)
            materialize_node(self.tree, self.game, child.id, state)

        freed = self.tree.reroot(index)
        self.statistics["roots_advanced"] += 1
        self.statistics["nodes_freed"] += freed
        logger.debug(
            "Advanced root through action %r: kept %d nodes, freed %d",
            action, len(self.tree), freed
        )

    def materialized_count(self) -> int:
        return self.tree.materialized_count()

    def action_statistics(self) -> Dict[str, Dict[str, float]]:
        """
        Statistics for every root action.

        Returns:
            Dictionary mapping action strings to visits, reward and value
        """
        self._require_initialized()
        result = {}
        for action, link in zip(self.root.available_actions, self.root.links):
            result[str(action)] = {
                "visits": link.visits,
                "reward": link.total_reward,
                "value": link.total_reward / link.visits if link.visits else float("-inf"),
            }
        return result

    def principal_variation(self, max_depth: int = 10) -> List[Tuple[Any, float]]:
        """
        Most visited path from the root.

        Args:
            max_depth: Maximum number of moves to return

        Returns:
            List of (action, average reward) pairs
        """
        self._require_initialized()
        result = []
        node = self.root
        while node.links and len(result) < max_depth:
            index = max(range(len(node.links)), key=lambda i: node.links[i].visits)
            link = node.links[index]
            if link.visits == 0:
                break
            result.append((node.available_actions[index], link.mean_reward))
            node = self.tree[link.child]
        return result

    def summary(self) -> Dict[str, Any]:
        """Search statistics together with the current tree size."""
        stats = dict(self.statistics)
        stats["node_count"] = len(self.tree)
        stats["materialized_nodes"] = self.materialized_count()
        stats["root_visits"] = self.root.visits
        stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])
        stats["average_simulation_steps"] = stats["total_simulation_steps"] / max(1, stats["iterations"])
        return stats


def mcts_search(
    state: Any,
    game: GameDefinition,
    num_players: int,
    config: Optional[MCTSConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[Any, Dict[str, Any]]:
    """
    Run Monte Carlo Tree Search from a state and return the best action.

    Args:
        state: Current game state
        game: Game definition
        num_players: Number of players
        config: MCTS configuration parameters
        rng: Optional random generator

    Returns:
        Tuple of (best action, search statistics)
    """
    config = config or MCTSConfig()
    session = SearchSession(state, num_players, game, config=config, rng=rng)
    session.initialize()
    session.run_for(config.iterations, config.time_limit)
    action = session.best_action()

    stats = session.summary()
    stats["action_statistics"] = session.action_statistics()
    return action, stats
