"""Snapshots — memoized immutable copies of a node's contents.

Each node keeps its own dirty flag and cached snapshot. A rebuild copies
the node's entries into a fresh container and pulls child snapshots
recursively, so any subtree that did not change hands back the very same
object it returned last time.

Mappings materialize as MappingProxyType, sequences as tuple.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from reactree import _anchor
from reactree._anchor import Kind
from reactree.errors import NotReactiveError


def _materialize(value: Any) -> Any:
    return compute(value) if _anchor.is_node(value) else value


def compute(node) -> Any:
    """Return the cached snapshot, rebuilding it first if the node is dirty."""
    node_id = node._id
    if not _anchor.dirty[node_id]:
        return _anchor.snapshots[node_id]

    storage = _anchor.raw[node_id]
    if _anchor.kinds[node_id] is Kind.SEQUENCE:
        snapshot = tuple(_materialize(item) for item in storage)
    else:
        snapshot = MappingProxyType({key: _materialize(value) for key, value in storage.items()})

    _anchor.snapshots[node_id] = snapshot
    _anchor.dirty[node_id] = False
    return snapshot


def get_state(node) -> Any:
    """Immutable point-in-time view of node.

    Calling it twice without a mutation in between returns the same object.

    Usage:
        state = reactive({"count": 0})
        get_state(state)  # mappingproxy({'count': 0})
    """
    if not _anchor.is_node(node):
        raise NotReactiveError(f"Expect {node!r} to be reactive")
    return compute(node)
