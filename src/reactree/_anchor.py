"""Data anchor — plain Python structures that hold all reactive state.

Nodes are thin handles holding an _id. Their raw storage, cache, parent
link and delivery state live here, keyed by that id. Parent links are
stored as ids and resolved through the weak `nodes` table, so a child
never keeps its parent alive.
"""

from __future__ import annotations

import itertools
import weakref
from enum import Enum


class Kind(Enum):
    """Container kind of a node, fixed at creation."""

    MAPPING = "mapping"
    SEQUENCE = "sequence"


# Node storage
raw: dict[int, dict | list] = {}
hidden: dict[int, dict] = {}  # node_id -> identity-tag keyed values
kinds: dict[int, Kind] = {}
nodes: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

# Snapshot cache
dirty: dict[int, bool] = {}
snapshots: dict[int, object] = {}

# Connection graph: node_id -> (parent_id, key)
connections: dict[int, tuple[int, object] | None] = {}

# Debounced delivery
sequences: dict[int, int] = {}
settled: dict[int, int] = {}  # node_id -> sequence of the last delivered batch
consuming: dict[int, bool] = {}
signals: dict[int, object] = {}  # node_id -> asyncio.Future
loops: dict[int, object] = {}

_TABLES = (
    raw, hidden, kinds, dirty, snapshots, connections,
    sequences, settled, consuming, signals, loops,
)

# itertools.count is atomic under the GIL
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def register(node, kind: Kind, storage: dict | list) -> int:
    """Allocate an id for node and create its registry entries."""
    node_id = new_id()
    raw[node_id] = storage
    hidden[node_id] = {}
    kinds[node_id] = kind
    dirty[node_id] = True
    snapshots[node_id] = None
    connections[node_id] = None
    sequences[node_id] = 0
    consuming[node_id] = False
    nodes[node_id] = node
    weakref.finalize(node, release, node_id)
    return node_id


def release(node_id: int) -> None:
    """Drop every registry entry of a collected node."""
    for table in _TABLES:
        table.pop(node_id, None)


def is_node(value) -> bool:
    """True when value is a live node handle. Never raises for ordinary objects."""
    node_id = getattr(value, "_id", None)
    return isinstance(node_id, int) and nodes.get(node_id) is value
