"""
Engine-versus-engine tic-tac-toe matches.

Plays a series of games between two agents and prints the results. Useful to
check that tree reuse and iteration budgets behave as expected: two equally
configured engines should draw almost every game, and an engine should never
lose to a random player.

Example usage:
    # 20 games between two engines
    mcts-demo --games 20

    # Engine against a uniformly random player
    mcts-demo --agent2 random --games 100 --iterations 2000
"""
import argparse
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

import numpy as np
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from mcts_engine.core.game import TicTacToe, TicTacToeState
from mcts_engine.mcts.agent import MCTSAgent
from mcts_engine.mcts.config import MCTSConfig

logger = logging.getLogger(__name__)


class RandomAgent:
    """Agent that plays a uniformly random legal move."""

    def __init__(self, game: TicTacToe, rng: np.random.Generator, name: str = "Random"):
        self.game = game
        self.rng = rng
        self.name = name

    def select_action(self, state: TicTacToeState):
        actions = self.game.actions(state)
        if not actions:
            raise ValueError("No valid actions: the game is over")
        return actions[int(self.rng.integers(len(actions)))]

    def observe_action(self, action) -> None:
        pass

    def reset(self) -> None:
        pass


def create_agent(kind: str, game: TicTacToe, args: argparse.Namespace, seed: Optional[int], name: str):
    """Create an agent of the given kind ("mcts" or "random")."""
    if kind == "random":
        return RandomAgent(game, np.random.default_rng(seed), name=name)
    config = MCTSConfig(
        iterations=args.iterations,
        time_limit=args.time_limit,
        seed=seed,
        reuse_tree=not args.no_reuse
    )
    return MCTSAgent(game, num_players=game.num_players, config=config, name=name)


def play_match(game: TicTacToe, agents: List[Any]) -> Optional[int]:
    """
    Play one game, agents[i] controlling player i.

    Every agent observes every move it did not choose itself.

    Returns:
        Winning player id, or None for a draw
    """
    for agent in agents:
        agent.reset()

    state = game.initial_state()
    while not game.is_terminal(state):
        mover = state.whose_turn
        move = agents[mover].select_action(state)
        for player, agent in enumerate(agents):
            if player != mover:
                agent.observe_action(move)
        state = game.apply_action(state, move)

    winner = state.winner()
    logger.debug("Game finished, winner: %s\n%s", winner, state.render())
    return winner


def run_matches(
    game: TicTacToe,
    agent1: Any,
    agent2: Any,
    num_games: int,
    alternate: bool = True,
    progress: bool = True
) -> Dict[str, int]:
    """
    Play a series of games and count the results by agent.

    Args:
        game: Game rules
        agent1: First agent
        agent2: Second agent
        num_games: Number of games
        alternate: Whether the agents swap sides every game
        progress: Whether to show a progress bar

    Returns:
        Counter of results keyed by agent name or "draw"
    """
    results: Counter = Counter()
    for i in tqdm(range(num_games), desc="Playing", disable=not progress):
        swap = alternate and i % 2 == 1
        agents = [agent2, agent1] if swap else [agent1, agent2]
        winner = play_match(game, agents)
        results["draw" if winner is None else agents[winner].name] += 1
    return dict(results)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Play tic-tac-toe matches between agents")
    parser.add_argument("--agent1", choices=["mcts", "random"], default="mcts")
    parser.add_argument("--agent2", choices=["mcts", "random"], default="mcts")
    parser.add_argument("--games", type=int, default=10, help="Number of games")
    parser.add_argument("--iterations", type=int, default=2000,
                        help="Number of MCTS iterations per move")
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Optional time limit per move in seconds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--no-reuse", action="store_true",
                        help="Start every search from a fresh tree")
    parser.add_argument("--no-alternate", action="store_true",
                        help="Agent 1 always moves first")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Run the matches and print a summary."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    game = TicTacToe()
    seed2 = None if args.seed is None else args.seed + 1
    agent1 = create_agent(args.agent1, game, args, args.seed, f"{args.agent1} (1)")
    agent2 = create_agent(args.agent2, game, args, seed2, f"{args.agent2} (2)")

    results = run_matches(game, agent1, agent2, args.games, alternate=not args.no_alternate)

    console = Console()
    table = Table(title=f"Results over {args.games} games")
    table.add_column("Outcome")
    table.add_column("Games", justify="right")
    table.add_column("Share", justify="right")
    for outcome in (agent1.name, agent2.name, "draw"):
        count = results.get(outcome, 0)
        table.add_row(outcome, str(count), f"{count / max(1, args.games):.1%}")
    console.print(table)


if __name__ == "__main__":
    main()
