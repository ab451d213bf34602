"""watch() — deliver one snapshot per settled tick to a callback.

A watcher is a pull chain: it waits on the node's completion signal,
hands the settled snapshot to the callback, then waits on the next
signal. Synchronous bursts of writes reach the callback once, carrying
the state after the last write. Returns a WatchHandle; calling it (or
.dispose()) stops the chain. Cancellation is a flag checked before the
callback and before re-arming, so a batch that already settled is still
suppressed.

states() is the same chain as an async iterator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Callable

from reactree import _anchor
from reactree._scheduler import signal
from reactree.errors import InvalidArgumentError, NotReactiveError

logger = logging.getLogger("reactree.watch")

Watcher = Callable[[Any], None]


class WatchHandle:
    """Disposable handle for a watch pull chain. Calling it unwatches."""

    __slots__ = ("_disposed", "_on_dispose")

    def __init__(self, on_dispose: Callable[[], None] | None = None):
        self._disposed = False
        self._on_dispose = on_dispose

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        if self._on_dispose is not None:
            self._on_dispose()
            self._on_dispose = None

    def __call__(self) -> None:
        self.dispose()


def _require_reactive(node) -> None:
    if not _anchor.is_node(node):
        raise NotReactiveError(f"Expected reactive state, but received {node!r}")


def watch(node, callback: Watcher) -> WatchHandle:
    """Call callback(snapshot) after every tick in which node's subtree changed.

    Must be called from a running event loop. An exception raised by the
    callback goes to the loop's exception handler; the watch stays armed.

    Usage:
        counter = reactive({"count": 0})
        unwatch = watch(counter, lambda state: print(state["count"]))
        counter.count = 1
        counter.count = 2
        # next tick: prints 2, once

        unwatch()
    """
    _require_reactive(node)
    if not callable(callback):
        raise InvalidArgumentError(f"Expected watcher to be callable, instead of {callback!r}")

    armed: list[asyncio.Future] = []

    def _detach() -> None:
        # The node stays consumed until the pending batch settles, then lapses
        # unless another consumer re-arms.
        if armed:
            armed.pop().remove_done_callback(_consume)

    handle = WatchHandle(_detach)

    def _arm() -> None:
        if handle.disposed:
            return
        pending = signal(node)
        pending.add_done_callback(_consume)
        armed[:] = [pending]

    def _consume(settled: asyncio.Future) -> None:
        if handle.disposed:
            logger.debug("Dropped settled state for disposed watcher on node %d", node._id)
            return
        # Re-arm first: writes made by the callback belong to the next batch.
        _arm()
        if not settled.cancelled():
            callback(settled.result())

    _arm()
    return handle


def states(node) -> AsyncIterator[Any]:
    """Async iterator over node's settled snapshots, one per changed tick.

    Subscribes immediately, so writes made before the first iteration are
    delivered. Must be called from a running event loop.

    Usage:
        async for state in states(counter):
            render(state)
    """
    _require_reactive(node)
    return _iter_states(node, signal(node))


async def _iter_states(node, pending: asyncio.Future) -> AsyncIterator[Any]:
    while True:
        # Shielded: cancelling one consumer must not cancel the shared signal.
        snapshot = await asyncio.shield(pending)
        # Re-arm before yielding, so batches settling while the consumer is busy are kept.
        pending = signal(node)
        yield snapshot
