"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the tunable parameters of a search: how much work is done
per decision, how large the tree may grow, how randomness is seeded and
whether statistics are carried over between turns.
"""
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    This class defines all tunable parameters for the MCTS algorithm,
    with validation and sensible defaults.
    """
    # Search parameters
    iterations: int = 5000
    """Number of MCTS iterations to perform per move decision"""

    time_limit: Optional[float] = None
    """Optional time limit in seconds (None = no limit)"""

    # Tree parameters
    max_nodes: Optional[int] = None
    """Maximum number of nodes the tree may hold (None = unbounded)"""

    reuse_tree: bool = True
    """Whether agents keep the chosen subtree between decisions"""

    # Randomness
    seed: Optional[int] = None
    """Seed for the search's random generator (None = fresh entropy)"""

    # Collaborator checks
    validate_rewards: bool = True
    """Whether reward vectors are checked to lie within [-1, 1]"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.iterations <= 0:
            raise ValueError("iterations must be positive")

        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive or None")

        if self.max_nodes is not None and self.max_nodes <= 0:
            raise ValueError("max_nodes must be positive or None")

        if self.seed is not None and self.seed < 0:
            raise ValueError("seed must be non-negative or None")

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration.

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for speed (fewer iterations).

        Returns:
            Fast MCTSConfig object
        """
        return cls(iterations=500)

    @classmethod
    def deep(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for deep search.

        Returns:
            Deep MCTSConfig object
        """
        return cls(iterations=20000)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        # Filter out any keys that aren't valid parameters
        valid_params = {k: v for k, v in config_dict.items()
                        if k in cls.__dataclass_fields__}
        return cls(**valid_params)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        params = [f"{name}={value}" for name, value in self.to_dict().items()]
        return f"MCTSConfig({', '.join(params)})"
