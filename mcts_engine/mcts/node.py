"""
Monte Carlo Tree Search tree storage.

This module defines the data the search operates on:

- Link: one edge of the tree, holding the reward sum and visit count of
  "take action i from this node".
- Node: one game state reached during search, with its legal actions and one
  outgoing link per action.
- SearchTree: an arena owning every node, addressed by stable integer ids.

Nodes refer to their parent and children by id only, so the arena is the sole
owner of the graph. Children are allocated as placeholders as soon as their
parent's action list is known; their state is filled in the first time the
search expands through the corresponding link.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

from mcts_engine.mcts.errors import TreeCapacityError


@dataclass
class Link:
    """
    Edge from a node to one of its children.

    The reward sum is accumulated from the perspective of the player to move
    at the parent, i.e. the player who chose this action.
    """
    child: int
    total_reward: float = 0.0
    visits: int = 0

    @property
    def mean_reward(self) -> float:
        """Average reward through this edge (0.0 if never visited)."""
        return self.total_reward / self.visits if self.visits else 0.0


class Node:
    """
    A node in the Monte Carlo Tree Search.

    A node starts life as a placeholder (no state) and becomes materialized
    once its state and action list have been computed. The action list is
    computed at most once.
    """

    __slots__ = (
        "id", "parent", "incoming_action_index", "state", "materialized",
        "terminal", "available_actions", "links", "fully_expanded", "visits",
    )

    def __init__(
        self,
        node_id: int,
        parent: Optional[int] = None,
        incoming_action_index: Optional[int] = None,
    ):
        """
        Initialize a placeholder node.

        Args:
            node_id: Arena id of this node
            parent: Arena id of the parent node (None for the root)
            incoming_action_index: Index of the parent's action leading here
        """
        self.id = node_id
        self.parent = parent
        self.incoming_action_index = incoming_action_index

        # Filled in by SearchTree.materialize
        self.state: Any = None
        self.materialized = False
        self.terminal = False
        self.available_actions: Optional[List[Any]] = None
        self.links: List[Link] = []

        # Statistics
        self.fully_expanded = False
        self.visits = 0

    def untried_link_indices(self) -> List[int]:
        """Indices of outgoing links that have never been traversed."""
        return [i for i, link in enumerate(self.links) if link.visits == 0]

    def __repr__(self) -> str:
        actions = len(self.available_actions) if self.available_actions is not None else "unknown"
        return (f"Node(id={self.id}, parent={self.parent}, "
                f"visits={self.visits}, actions={actions}, "
                f"fully_expanded={self.fully_expanded}, terminal={self.terminal})")


class SearchTree:
    """
    Arena owning every node of a search tree.

    Node ids are never reused, so an id held by a caller either still refers
    to the same node or is no longer in the tree.
    """

    def __init__(self, max_nodes: Optional[int] = None):
        """
        Initialize an empty tree.

        Args:
            max_nodes: Maximum number of nodes held at once (None = unbounded)
        """
        self.max_nodes = max_nodes
        self._nodes: Dict[int, Node] = {}
        self._next_id = 0
        self.root_id: Optional[int] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def __getitem__(self, node_id: int) -> Node:
        return self._nodes[node_id]

    @property
    def root(self) -> Node:
        if self.root_id is None:
            raise LookupError("tree has no root")
        return self._nodes[self.root_id]

    def allocate(self, parent: Optional[int] = None, incoming_action_index: Optional[int] = None) -> int:
        """
        Allocate a placeholder node.

        Args:
            parent: Id of the parent node (None for a root)
            incoming_action_index: Index of the parent's action leading here

        Returns:
            Id of the new node

        Raises:
            TreeCapacityError: If the tree is already at max_nodes
        """
        if self.max_nodes is not None and len(self._nodes) >= self.max_nodes:
            raise TreeCapacityError(
                f"search tree is full ({self.max_nodes} nodes)"
            )
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = Node(node_id, parent, incoming_action_index)
        if parent is None and self.root_id is None:
            self.root_id = node_id
        return node_id

    def materialize(self, node_id: int, state: Any, actions: Sequence[Any], terminal: bool) -> Node:
        """
        Populate a node's state, action list and placeholder links.

        Args:
            node_id: Id of a placeholder node
            state: Game state of the node
            actions: Legal actions from the state
            terminal: Whether the state is terminal

        Returns:
            The materialized node
        """
        node = self._nodes[node_id]
        if node.materialized:
            raise ValueError(f"node {node_id} is already materialized")

        actions = list(actions)
        if self.max_nodes is not None and len(self._nodes) + len(actions) > self.max_nodes:
            raise TreeCapacityError(
                f"expanding node {node_id} needs {len(actions)} nodes, "
                f"{self.max_nodes - len(self._nodes)} left"
            )

        node.state = state
        node.terminal = terminal
        node.available_actions = actions
        node.links = [Link(child=self.allocate(node_id, i)) for i in range(len(actions))]
        # A node without actions has nothing left to try
        node.fully_expanded = not actions
        node.materialized = True
        return node

    def is_fully_expanded(self, node_id: int) -> bool:
        return self._nodes[node_id].fully_expanded

    def child(self, node_id: int, action_index: int) -> Node:
        """Node reached from node_id through its action_index-th link."""
        return self._nodes[self._nodes[node_id].links[action_index].child]

    def parent_link(self, node_id: int) -> Optional[Link]:
        """Link leading into a node (None for the root)."""
        node = self._nodes[node_id]
        if node.parent is None:
            return None
        return self._nodes[node.parent].links[node.incoming_action_index]

    def subtree_ids(self, node_id: int) -> Set[int]:
        """Ids of every node reachable from node_id, node_id included."""
        reachable = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            reachable.add(current)
            stack.extend(link.child for link in self._nodes[current].links)
        return reachable

    def walk(self, node_id: Optional[int] = None) -> Iterator[Node]:
        """Iterate depth-first over a subtree (the whole tree by default)."""
        stack = [self.root_id if node_id is None else node_id]
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            stack.extend(reversed([link.child for link in node.links]))

    def reroot(self, action_index: int) -> int:
        """
        Promote one child of the root to be the new root.

        Every node not reachable from the chosen child is dropped from the
        arena in a single pass. Statistics inside the kept subtree are not
        touched.

        Args:
            action_index: Index of the root action whose child becomes root

        Returns:
            Number of nodes freed
        """
        new_root = self.root.links[action_index].child
        keep = self.subtree_ids(new_root)
        before = len(self._nodes)
        self._nodes = {node_id: node for node_id, node in self._nodes.items() if node_id in keep}

        node = self._nodes[new_root]
        node.parent = None
        node.incoming_action_index = None
        self.root_id = new_root
        return before - len(self._nodes)

    def materialized_count(self) -> int:
        """Number of nodes whose state has been computed."""
        return sum(1 for node in self._nodes.values() if node.materialized)
