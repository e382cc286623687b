#!/usr/bin/env python
"""
Tests for the MCTS agent, its configuration and the command-line tools.
"""
import argparse
import io
import itertools
import json
import os
import tempfile
import unittest

from rich.console import Console

from mcts_engine.core.actions import Move
from mcts_engine.core.game import TicTacToe, TicTacToeState
from mcts_engine.mcts.agent import MCTSAgent, MCTSAgentFactory
from mcts_engine.mcts.config import MCTSConfig
from mcts_engine import demo, play


def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=100)


class TestMCTSConfig(unittest.TestCase):
    """Test case for configuration parameters."""

    def test_defaults(self):
        config = MCTSConfig()
        self.assertEqual(config.iterations, 5000)
        self.assertIsNone(config.time_limit)
        self.assertTrue(config.reuse_tree)

    def test_validation(self):
        for kwargs in ({"iterations": 0}, {"time_limit": 0}, {"max_nodes": 0}, {"seed": -1}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    MCTSConfig(**kwargs)

    def test_presets(self):
        self.assertLess(MCTSConfig.fast().iterations, MCTSConfig.default().iterations)
        self.assertGreater(MCTSConfig.deep().iterations, MCTSConfig.default().iterations)

    def test_dict_conversion(self):
        config = MCTSConfig.from_dict({"iterations": 10, "seed": 3, "unknown": True})
        self.assertEqual(config.iterations, 10)
        self.assertEqual(config.seed, 3)
        self.assertEqual(MCTSConfig.from_dict(config.to_dict()), config)
        self.assertIn("iterations=10", str(config))


class TestMCTSAgent(unittest.TestCase):
    """Test case for the turn-by-turn agent."""

    def setUp(self):
        self.game = TicTacToe()
        self.config = MCTSConfig(iterations=300, seed=0)

    def test_select_action_is_legal_and_advances_tree(self):
        agent = MCTSAgent(self.game, config=self.config)
        state = self.game.initial_state()
        move = agent.select_action(state)

        self.assertIn(move, self.game.actions(state))
        self.assertEqual(agent.session.root_state, self.game.apply_action(state, move))
        self.assertEqual(agent.get_last_statistics()["iterations"], 300)
        self.assertEqual(len(agent.get_action_statistics()), 9)
        self.assertIn(agent.get_principal_variation()[0][0], self.game.actions(state))

    def test_tree_is_reused_across_turns(self):
        agent = MCTSAgent(self.game, config=self.config)
        state = self.game.initial_state()
        move = agent.select_action(state)
        state = self.game.apply_action(state, move)

        reply = self.game.actions(state)[0]
        agent.observe_action(reply)
        state = self.game.apply_action(state, reply)
        self.assertEqual(agent.session.root_state, state)

        agent.select_action(state)
        self.assertGreaterEqual(agent.get_last_statistics()["reused_visits"], 0)
        self.assertEqual(
            agent.get_last_statistics()["root_visits"],
            agent.get_last_statistics()["reused_visits"] + 300
        )

    def test_stale_tree_is_replaced(self):
        agent = MCTSAgent(self.game, config=self.config)
        agent.select_action(self.game.initial_state())
        unrelated = TicTacToeState.from_rows([[1, 2, 0], [0, 0, 0], [0, 0, 0]], whose_turn=0)
        move = agent.select_action(unrelated)
        self.assertIn(move, self.game.actions(unrelated))
        self.assertEqual(agent.get_last_statistics()["reused_visits"], 0)

    def test_no_reuse(self):
        config = MCTSConfig(iterations=100, seed=0, reuse_tree=False)
        agent = MCTSAgent(self.game, config=config)
        agent.select_action(self.game.initial_state())
        self.assertIsNone(agent.session)
        agent.observe_action(Move(0, 0))

    def test_forced_move(self):
        agent = MCTSAgent(self.game, config=self.config)
        state = TicTacToeState.from_rows([[1, 2, 1], [1, 2, 2], [2, 1, 0]], whose_turn=0)
        self.assertEqual(agent.select_action(state), Move(2, 2))
        self.assertTrue(agent.get_last_statistics()["forced_move"])

    def test_game_over(self):
        agent = MCTSAgent(self.game, config=self.config)
        state = TicTacToeState.from_rows([[1, 1, 1], [2, 2, 0], [0, 0, 0]], whose_turn=1)
        with self.assertRaises(ValueError):
            agent.select_action(state)

    def test_verbose_output(self):
        console = quiet_console()
        agent = MCTSAgent(self.game, config=self.config, verbose=True, console=console, name="Tester")
        agent.select_action(self.game.initial_state())
        output = console.file.getvalue()
        self.assertIn("Tester", output)
        self.assertIn("Top actions", output)

    def test_save_statistics(self):
        agent = MCTSAgent(self.game, config=self.config)
        agent.select_action(self.game.initial_state())
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "stats.json")
            agent.save_statistics(path)
            with open(path) as f:
                data = json.load(f)
        self.assertEqual(data["total_actions"], 1)
        self.assertEqual(data["config"]["iterations"], 300)

    def test_reset(self):
        agent = MCTSAgent(self.game, config=self.config)
        agent.select_action(self.game.initial_state())
        agent.reset()
        self.assertIsNone(agent.session)
        self.assertEqual(agent.action_history, [])
        self.assertEqual(agent.get_last_statistics(), {})

    def test_factory(self):
        self.assertEqual(MCTSAgentFactory.create_fast(self.game).config.iterations, 500)
        self.assertEqual(MCTSAgentFactory.create_standard(self.game).config.iterations, 5000)
        self.assertEqual(MCTSAgentFactory.create_strong(self.game).config.iterations, 20000)
        custom = MCTSAgentFactory.create_custom(self.game, iterations=42, seed=1, name="Mine")
        self.assertEqual(custom.config.iterations, 42)
        self.assertEqual(str(custom), "Mine (MCTS, 42 iterations)")


class TestCommandLine(unittest.TestCase):
    """Test case for the demo and play tools."""

    def test_engine_never_loses_to_random(self):
        game = TicTacToe()
        args = argparse.Namespace(iterations=2000, time_limit=None, no_reuse=False)
        engine = demo.create_agent("mcts", game, args, 0, "engine")
        opponent = demo.create_agent("random", game, args, 1, "random")

        results = demo.run_matches(game, engine, opponent, num_games=4, progress=False)

        self.assertEqual(sum(results.values()), 4)
        self.assertEqual(results.get("random", 0), 0)

    def test_play_match_observes_moves(self):
        game = TicTacToe()
        args = argparse.Namespace(iterations=200, time_limit=None, no_reuse=False)
        agents = [
            demo.create_agent("mcts", game, args, 0, "a"),
            demo.create_agent("mcts", game, args, 1, "b"),
        ]
        winner = demo.play_match(game, agents)
        self.assertIn(winner, (None, 0, 1))

    def test_agents_take_player_count_from_game(self):
        game = TicTacToe()
        args = argparse.Namespace(iterations=10, time_limit=None, no_reuse=False)
        engine = demo.create_agent("mcts", game, args, 0, "engine")
        self.assertEqual(engine.num_players, game.num_players)

    def test_play_game_with_scripted_human(self):
        moves = ["nonsense"] + [f"{r} {c}" for r in range(3) for c in range(3)]
        feed = itertools.cycle(moves)
        console = quiet_console()
        args = play.parse_args(["--iterations", "200", "--seed", "0"])

        winner = play.play_game(args, console, input_fn=lambda prompt: next(feed))

        self.assertIn(winner, (None, 0, 1))
        output = console.file.getvalue()
        self.assertIn("expected two indices", output)
        self.assertIn("GAME OVER", output)

    def test_parse_args(self):
        args = play.parse_args(["--engine-first", "--no-reuse"])
        self.assertTrue(args.engine_first)
        self.assertTrue(args.no_reuse)
        args = demo.parse_args(["--agent2", "random", "--games", "3"])
        self.assertEqual(args.agent2, "random")
        self.assertEqual(args.games, 3)


if __name__ == "__main__":
    unittest.main()
