"""Textual integration for reactree. Opt-in — requires textual.

bind() is what a widget uses to render reactive state: it applies the
current snapshot right away, then every coalesced snapshot after it.
ReactiveState packages that as a widget mixin that owns its state and
stops its bindings on unmount.

Guard and NoMatches handling live here, not at callsites. Pause state is
owned by this module, keyed by id(app), so multiple apps work in tests.
"""

import logging
from contextlib import contextmanager

from textual.css.query import NoMatches

from reactree.observable import reactive
from reactree.snapshot import get_state
from reactree.watch import WatchHandle, watch

logger = logging.getLogger("reactree.textual")

_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, node, effect) -> WatchHandle:
    """Apply node's state to widgets now and after every settled change.

    effect(state) is skipped while the app is paused or not running.
    NoMatches from widget queries inside effect is ignored. Must be called
    from the app's event loop (e.g. in on_mount).
    """
    def _guarded(state):
        if not is_safe(app):
            logger.debug("Skipped state delivery: app not safe")
            return
        try:
            effect(state)
        except NoMatches:
            logger.debug("Skipped state delivery: widget not mounted")

    handle = watch(node, _guarded)
    _guarded(get_state(node))
    return handle


class ReactiveState:
    """Mixin for widgets that keep their state in a reactive node.

    Subclasses should:
    - Call ``_init_state()`` in ``__init__``
    - Create state with ``self.use_state(setup)`` once the app is running
    - Render in ``on_state(state)``
    - Skip writing ``on_unmount`` -- the mixin handles cleanup
    """

    def _init_state(self) -> None:
        self._state_bindings: list[WatchHandle] = []

    def use_state(self, setup):
        """Build a node from setup() and render every snapshot of it.

        Returns the node; mutate it to re-render.
        """
        node = reactive(setup())
        self._state_bindings.append(bind(self.app, node, self.on_state))
        return node

    def on_state(self, state) -> None:
        """Render state. Override in the widget."""

    def on_unmount(self) -> None:
        for unwatch in self._state_bindings:
            unwatch()
        self._state_bindings.clear()
