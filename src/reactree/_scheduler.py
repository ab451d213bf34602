"""Debounced delivery — the heart of reactree.

Every node owns a renewable completion signal (an asyncio.Future) and a
mutation counter. notify() marks the node dirty, bumps the counter and,
when somebody waits on the signal, queues a resolution on the next loop
iteration tagged with the new counter value. Only the resolution whose
tag still matches the counter fires, so a burst of synchronous writes
settles exactly once, with the state after the last write.

Bubbling to ancestors happens on every notify, with or without consumers.
"""

from __future__ import annotations

import asyncio
import logging

from reactree import _anchor, graph
from reactree.snapshot import compute

logger = logging.getLogger("reactree.scheduler")


def notify(node) -> None:
    """Mark node and every ancestor dirty, scheduling delivery where consumed."""
    current = node
    while current is not None:
        _schedule(current._id)
        link = graph.parent_of(current)
        current = link[0] if link is not None else None


def _schedule(node_id: int) -> None:
    _anchor.dirty[node_id] = True
    _anchor.sequences[node_id] += 1
    if _anchor.consuming[node_id]:
        _queue(node_id)


def _queue(node_id: int) -> None:
    loop = _anchor.loops[node_id]
    if loop.is_closed():
        # The consumer's loop is gone; the node is unobserved from here on.
        logger.debug("Loop closed for node %d, dropping its subscription", node_id)
        _release(node_id)
        return
    # call_soon, not a timer: everything queued in this tick coalesces.
    loop.call_soon(_resolve, node_id, _anchor.sequences[node_id])


def _release(node_id: int) -> None:
    _anchor.consuming[node_id] = False
    _anchor.signals.pop(node_id, None)
    _anchor.loops.pop(node_id, None)


def _resolve(node_id: int, seq: int) -> None:
    if _anchor.sequences.get(node_id) != seq:
        logger.debug("Stale resolution for node %d (seq %d)", node_id, seq)
        return
    node = _anchor.nodes.get(node_id)
    if node is None:
        return

    pending = _anchor.signals[node_id]
    if not pending.done():
        pending.set_result(compute(node))
    _anchor.signals[node_id] = _anchor.loops[node_id].create_future()
    _anchor.settled[node_id] = seq
    _anchor.consuming[node_id] = False


def signal(node) -> asyncio.Future:
    """The node's current completion signal. Marks the node as consumed.

    Must be called with a running event loop; the first call binds the
    node's signals to that loop. Re-arming after writes that nobody was
    waiting for queues a resolution for them straight away.
    """
    node_id = node._id
    loop = asyncio.get_running_loop()
    pending = _anchor.signals.get(node_id)
    if pending is None or pending.cancelled() or _anchor.loops.get(node_id) is not loop:
        pending = loop.create_future()
        _anchor.signals[node_id] = pending
        _anchor.loops[node_id] = loop
        _anchor.settled[node_id] = _anchor.sequences[node_id]

    if not _anchor.consuming[node_id]:
        _anchor.consuming[node_id] = True
        if _anchor.settled[node_id] != _anchor.sequences[node_id]:
            _queue(node_id)
    return pending
