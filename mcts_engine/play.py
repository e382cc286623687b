"""
Interactive tic-tac-toe against the MCTS engine.

The human and the engine alternate moves. Both moves are threaded through the
engine's root advancement, so the engine keeps the statistics of the line
actually played from one turn to the next.

Example usage:
    # Human plays crosses and moves first
    mcts-play

    # Engine moves first with a deeper search
    mcts-play --engine-first --iterations 20000
"""
import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console
from rich.table import Table

from mcts_engine.core.actions import Move, parse_move
from mcts_engine.core.constants import MARKER_SYMBOLS, BOARD_SIZE, EMPTY
from mcts_engine.core.game import TicTacToe, TicTacToeState
from mcts_engine.mcts.agent import MCTSAgent
from mcts_engine.mcts.config import MCTSConfig

MARKER_STYLES = {1: "bold red", 2: "bold blue"}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for game configuration."""
    parser = argparse.ArgumentParser(description="Play tic-tac-toe against the MCTS engine")
    parser.add_argument("--iterations", type=int, default=5000,
                        help="Number of MCTS iterations per engine move")
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Optional time limit per engine move in seconds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--engine-first", action="store_true",
                        help="Engine plays crosses and moves first")
    parser.add_argument("--no-reuse", action="store_true",
                        help="Start every engine search from a fresh tree")
    parser.add_argument("--verbose", action="store_true",
                        help="Show search statistics after each engine move")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    return parser.parse_args(argv)


def display_board(console: Console, state: TicTacToeState) -> None:
    """Render the board with row and column indices."""
    table = Table(show_header=True, show_lines=True, box=None)
    table.add_column("")
    for c in range(BOARD_SIZE):
        table.add_column(str(c), justify="center")
    for r in range(BOARD_SIZE):
        cells = []
        for c in range(BOARD_SIZE):
            marker = state.at(r, c)
            symbol = MARKER_SYMBOLS[marker]
            cells.append(symbol if marker == EMPTY else f"[{MARKER_STYLES[marker]}]{symbol}[/]")
        table.add_row(str(r), *cells)
    console.print(table)


def get_human_move(
    console: Console,
    game: TicTacToe,
    state: TicTacToeState,
    input_fn: Callable[[str], str] = input
) -> Move:
    """
    Prompt until the human enters a legal move.

    Args:
        console: Console for messages
        game: Game rules
        state: Current state
        input_fn: Function used to read a line of input

    Returns:
        A legal move
    """
    legal = game.actions(state)
    while True:
        text = input_fn("Your move (row col): ")
        try:
            move = parse_move(text)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            continue
        if move not in legal:
            console.print(f"[red]Cannot make this move: {move} is taken[/red]")
            continue
        return move


def play_game(
    args: argparse.Namespace,
    console: Optional[Console] = None,
    input_fn: Callable[[str], str] = input
) -> Optional[int]:
    """
    Play one game between the human and the engine.

    Returns:
        Id of the winning player, or None for a draw
    """
    console = console or Console()
    game = TicTacToe()
    config = MCTSConfig(
        iterations=args.iterations,
        time_limit=args.time_limit,
        seed=args.seed,
        reuse_tree=not args.no_reuse
    )
    engine = MCTSAgent(game, num_players=game.num_players, config=config, name="MCTS",
                       verbose=args.verbose, console=console)
    engine_player = 0 if args.engine_first else 1

    state = game.initial_state()
    display_board(console, state)

    while not game.is_terminal(state):
        if state.whose_turn == engine_player:
            console.print(f"\n{engine.name} is thinking...")
            move = engine.select_action(state)
            console.print(f"{engine.name} plays {move}")
        else:
            move = get_human_move(console, game, state, input_fn)
            engine.observe_action(move)
        state = game.apply_action(state, move)
        display_board(console, state)

    winner = state.winner()
    console.print("\n[bold yellow]=== GAME OVER ===[/bold yellow]")
    if winner is None:
        console.print("[bold yellow]It's a draw![/bold yellow]")
    elif winner == engine_player:
        console.print(f"[bold red]{engine.name} wins![/bold red]")
    else:
        console.print("[bold green]You win![/bold green]")
    return winner


def main(argv: Optional[List[str]] = None) -> None:
    """Main function."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console = Console()
    console.print("[bold yellow]Welcome to tic-tac-toe![/bold yellow]")
    console.print("Enter moves as zero-based 'row col', e.g. '1 1' for the centre.")

    try:
        play_game(args, console)
        while True:
            play_again = input("\nPlay again? (y/n): ").lower()
            if play_again in ['y', 'yes']:
                play_game(args, console)
            elif play_again in ['n', 'no']:
                console.print("Thanks for playing!")
                break
            else:
                console.print("Please enter 'y' or 'n'.")
    except (KeyboardInterrupt, EOFError):
        console.print("\nGame interrupted by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
