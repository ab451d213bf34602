"""Connection graph — single parent links that let changes bubble upward.

Every node has at most one connection, a (parent_id, key) pair stored in
_anchor. The first connection wins: connecting an already connected node
is a no-op, so the graph stays a tree. Links hold ids, never nodes, and
are resolved through the weak node table.
"""

from __future__ import annotations

import logging

from reactree import _anchor
from reactree._anchor import Kind
from reactree.errors import NotConnectedError, NotReactiveError

logger = logging.getLogger("reactree.graph")


def parent_of(node) -> tuple[object, object] | None:
    """Return (parent, key), or None when detached or the parent is gone."""
    link = _anchor.connections.get(node._id)
    if link is None:
        return None
    parent_id, key = link
    parent = _anchor.nodes.get(parent_id)
    if parent is None:
        return None
    return parent, key


def is_connected(node) -> bool:
    return parent_of(node) is not None


def is_within(node, ancestor) -> bool:
    """True when ancestor is node itself or sits on node's parent chain."""
    current = node
    while current is not None:
        if current is ancestor:
            return True
        link = parent_of(current)
        current = link[0] if link is not None else None
    return False


def connect(node, parent, key) -> None:
    """Mount node under parent at key, unless it is already mounted somewhere."""
    if not is_connected(node):
        _anchor.connections[node._id] = (parent._id, key)


def disconnect(node) -> None:
    _anchor.connections[node._id] = None


def rekey(node, parent, key) -> None:
    """Update the recorded key after node moved inside the same parent."""
    link = _anchor.connections.get(node._id)
    if link is not None and link[0] == parent._id:
        _anchor.connections[node._id] = (parent._id, key)


def detach(node) -> bool:
    """Remove node from its parent through the parent's own delete path.

    Raises NotConnectedError for a detached node. Returns False when the
    parent no longer holds the node.
    """
    link = parent_of(node)
    if link is None:
        raise NotConnectedError(f"{node!r} is not connected to a parent")
    parent, key = link

    if _anchor.kinds[parent._id] is Kind.SEQUENCE:
        for index, item in enumerate(_anchor.raw[parent._id]):
            if item is node:
                del parent[index]
                return True
        logger.debug("Node %d not found in sequence parent %d", node._id, parent._id)
        return False

    if _anchor.raw[parent._id].get(key) is not node:
        logger.debug("Node %d not found at key %r of parent %d", node._id, key, parent._id)
        return False
    del parent[key]
    return True


def remove(node) -> bool:
    """Remove a node from wherever it is mounted.

    Sequence parents close the gap, mapping parents lose the key.
    Returns False when there is nothing to remove from.

    Usage:
        todos = reactive([{"done": True}, {"done": False}])
        remove(todos[0])
        get_state(todos)  # (mappingproxy({"done": False}),)
    """
    if not _anchor.is_node(node):
        raise NotReactiveError(f"Expected reactive state, but got {node!r}")
    try:
        return detach(node)
    except NotConnectedError:
        logger.debug("remove() on unconnected node %d", node._id)
        return False
