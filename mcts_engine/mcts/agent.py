"""
Monte Carlo Tree Search Agent.

This module provides the MCTSAgent class, a ready-to-use player that uses
Monte Carlo Tree Search to select actions for any GameDefinition. The agent
keeps its search tree between turns: its own moves and the moves it observes
from opponents are threaded through root advancement, so the statistics
gathered for the line actually played are reused by the next search.
"""
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import time

import numpy as np
from rich.console import Console
from rich.table import Table

from mcts_engine.mcts.config import MCTSConfig
from mcts_engine.mcts.interface import GameDefinition
from mcts_engine.mcts.search import SearchSession

logger = logging.getLogger(__name__)


class MCTSAgent:
    """
    Monte Carlo Tree Search agent.

    The agent can be configured with different parameters and provides
    statistics about its search process.
    """

    def __init__(
        self,
        game: GameDefinition,
        num_players: int = 2,
        config: Optional[MCTSConfig] = None,
        name: str = "MCTS Agent",
        verbose: bool = False,
        rng: Optional[np.random.Generator] = None,
        console: Optional[Console] = None,
    ):
        """
        Initialize an MCTS agent.

        Args:
            game: Game definition callbacks
            num_players: Number of players in the game
            config: MCTS configuration parameters
            name: Name of the agent
            verbose: Whether to print detailed information after each search
            rng: Random generator shared by every search (default: from config.seed)
            console: Rich console used for verbose output
        """
        self.game = game
        self.num_players = num_players
        self.config = config or MCTSConfig()
        self.name = name
        self.verbose = verbose
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.console = console or Console()

        # Session carried across turns when reuse_tree is on
        self.session: Optional[SearchSession] = None

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}

        # Per-action statistics and principal variation of the most recent search
        self._last_action_stats: Dict[str, Dict[str, float]] = {}
        self._last_pv: List[Tuple[Any, float]] = []

        # History of all actions and their statistics
        self.action_history: List[Tuple[Any, Dict[str, Any]]] = []

    def _session_for(self, state: Any) -> SearchSession:
        """Return a session rooted at state, reusing the stored tree if possible."""
        if (self.config.reuse_tree and self.session is not None
                and self.session.root_state == state):
            logger.debug("%s reusing tree with %d nodes", self.name, len(self.session.tree))
            return self.session

        session = SearchSession(state, self.num_players, self.game, config=self.config, rng=self.rng)
        session.initialize()
        return session

    def select_action(self, state: Any) -> Any:
        """
        Select an action using Monte Carlo Tree Search.

        Args:
            state: Current game state

        Returns:
            Selected action
        """
        valid_actions = list(self.game.actions(state))
        if not valid_actions:
            raise ValueError("No valid actions: the game is over")

        # If there's only one valid action, no need to search
        if len(valid_actions) == 1:
            action = valid_actions[0]
            self.last_stats = {"iterations": 0, "forced_move": True}
            self._last_action_stats = {}
            self._last_pv = []
            self.action_history.append((action, self.last_stats))
            if self.session is not None and self.session.root_state == state:
                self.observe_action(action)
            else:
                self.session = None
            return action

        session = self._session_for(state)
        reused_visits = session.root.visits

        start_time = time.time()
        iterations = session.run_for(self.config.iterations, self.config.time_limit)
        action = session.best_action()

        stats = session.summary()
        stats["iterations"] = iterations
        stats["reused_visits"] = reused_visits
        stats["total_time"] = time.time() - start_time
        self._last_action_stats = session.action_statistics()
        self._last_pv = session.principal_variation()

        self.last_stats = stats
        self.action_history.append((action, stats))

        if self.verbose:
            self._print_search_info(action, stats)

        if self.config.reuse_tree:
            session.advance_root(action)
            self.session = session
        else:
            self.session = None

        return action

    def observe_action(self, action: Any) -> None:
        """
        Tell the agent about a move played by anyone (itself or an opponent).

        The stored tree is advanced through the move so the next search starts
        from the statistics already gathered for it. Without a stored tree this
        is a no-op.

        Args:
            action: The move that was played from the agent's current root
        """
        if self.session is None:
            return
        if self.session.root.terminal:
            self.session = None
            return
        self.session.advance_root(action)

    def _print_search_info(self, action: Any, stats: Dict[str, Any]) -> None:
        """
        Print information about the search.

        Args:
            action: Selected action
            stats: Search statistics
        """
        self.console.print(f"\n[bold]{self.name}[/bold] selected: {action}")
        self.console.print(
            f"Iterations: {stats['iterations']} "
            f"(+{stats['reused_visits']} reused), "
            f"time: {stats['total_time']:.3f}s, nodes: {stats['node_count']}"
        )

        table = Table(title="Top actions")
        table.add_column("Action")
        table.add_column("Visits", justify="right")
        table.add_column("Value", justify="right")
        ranked = sorted(self._last_action_stats.items(), key=lambda x: x[1]["visits"], reverse=True)
        for action_str, action_stats in ranked[:5]:
            table.add_row(action_str, str(action_stats["visits"]), f"{action_stats['value']:.3f}")
        self.console.print(table)

    def get_last_statistics(self) -> Dict[str, Any]:
        return self.last_stats

    def get_action_statistics(self) -> Dict[str, Dict[str, float]]:
        """
        Get statistics for all actions from the last search.

        Returns:
            Dictionary mapping action strings to statistics
        """
        return self._last_action_stats

    def get_principal_variation(self) -> List[Tuple[Any, float]]:
        """
        Get the principal variation (most visited path) from the last search.

        Returns:
            List of (action, value) pairs, starting with the chosen action
        """
        return self._last_pv

    def reset(self) -> None:
        """Drop the stored tree and all statistics."""
        self.session = None
        self.last_stats = {}
        self._last_action_stats = {}
        self._last_pv = []
        self.action_history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save statistics to a file.

        Args:
            filename: Name of the file to save to
        """
        # Convert actions to strings for JSON serialization
        history = []
        for action, stats in self.action_history:
            history.append({
                "action": str(action),
                "stats": {k: v for k, v in stats.items() if not isinstance(v, dict)}
            })

        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": history,
            "total_actions": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        return f"{self.name} (MCTS, {self.config.iterations} iterations)"


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.
    """

    @staticmethod
    def create_fast(game: GameDefinition, num_players: int = 2) -> MCTSAgent:
        """
        Create a fast MCTS agent with fewer iterations.

        Returns:
            MCTSAgent
        """
        return MCTSAgent(game, num_players, config=MCTSConfig.fast(), name="Fast MCTS")

    @staticmethod
    def create_standard(game: GameDefinition, num_players: int = 2) -> MCTSAgent:
        """
        Create a standard MCTS agent with balanced parameters.

        Returns:
            MCTSAgent
        """
        return MCTSAgent(game, num_players, config=MCTSConfig.default(), name="Standard MCTS")

    @staticmethod
    def create_strong(game: GameDefinition, num_players: int = 2) -> MCTSAgent:
        """
        Create a strong MCTS agent with more iterations.

        Returns:
            MCTSAgent
        """
        return MCTSAgent(game, num_players, config=MCTSConfig.deep(), name="Strong MCTS")

    @staticmethod
    def create_custom(
        game: GameDefinition,
        num_players: int = 2,
        iterations: int = 5000,
        time_limit: Optional[float] = None,
        seed: Optional[int] = None,
        reuse_tree: bool = True,
        name: str = "Custom MCTS"
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            game: Game definition
            num_players: Number of players
            iterations: Number of MCTS iterations
            time_limit: Optional time limit in seconds
            seed: Optional random seed
            reuse_tree: Whether to keep the tree between moves
            name: Name of the agent

        Returns:
            MCTSAgent
        """
        config = MCTSConfig(
            iterations=iterations,
            time_limit=time_limit,
            seed=seed,
            reuse_tree=reuse_tree
        )
        return MCTSAgent(game, num_players, config=config, name=name)
