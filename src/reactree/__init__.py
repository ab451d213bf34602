"""Reactree: observable nested state with coalesced immutable snapshots."""

from importlib.metadata import version as _version

__version__ = _version("reactree")

from reactree._anchor import Kind
from reactree.errors import (
    ReactiveError,
    InvalidInputError,
    NotReactiveError,
    InvalidArgumentError,
    NotConnectedError,
)
from reactree.observable import ReactiveDict, ReactiveList, Tag, reactive, is_reactive, ref
from reactree.snapshot import get_state
from reactree.graph import remove
from reactree.watch import watch, states, WatchHandle
# textual is opt-in, never imported here

__all__ = [
    "Kind",
    "ReactiveError",
    "InvalidInputError",
    "NotReactiveError",
    "InvalidArgumentError",
    "NotConnectedError",
    "ReactiveDict",
    "ReactiveList",
    "Tag",
    "reactive",
    "is_reactive",
    "ref",
    "get_state",
    "remove",
    "watch",
    "states",
    "WatchHandle",
]
