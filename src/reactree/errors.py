"""Reactree error hierarchy.

All reactree-specific errors inherit from ReactiveError for easy catching.
Input-contract errors are also TypeErrors, so generic handlers still work.
"""


class ReactiveError(Exception):
    """Base error for all reactree operations."""


class InvalidInputError(ReactiveError, TypeError):
    """reactive() was given something that is not a mapping or sequence."""


class NotReactiveError(ReactiveError, TypeError):
    """A node was required but a plain value was passed."""


class InvalidArgumentError(ReactiveError, TypeError):
    """A watcher callback is not callable."""


class NotConnectedError(ReactiveError):
    """The node has no parent to be removed from."""
