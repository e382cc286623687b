"""
Exceptions raised by the Monte Carlo Tree Search engine.

Each exception also derives from the builtin that best describes it, so
callers that already catch ``ValueError`` or ``RuntimeError`` keep working.
"""


class MCTSError(Exception):
    """Base class for all search engine errors."""


class SearchError(MCTSError, RuntimeError):
    """A search session was used in a state that does not allow the call."""


class SearchNotInitializedError(SearchError):
    """The session's root action list has not been computed yet."""


class InvalidActionError(MCTSError, ValueError):
    """An action is not among the legal actions at the search root."""


class GameContractError(MCTSError, ValueError):
    """The game definition returned something its contract forbids."""


class TreeCapacityError(MCTSError, MemoryError):
    """Growing the search tree would exceed the configured node budget."""
