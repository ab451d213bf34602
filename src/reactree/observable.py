"""Reactive containers — mappings and lists that report their own mutations.

reactive() turns a plain mapping or sequence into a node: a ReactiveDict
or ReactiveList that behaves like the builtin it replaces, except that
every write and delete marks it dirty and bubbles up to its parent.
Nested containers are wrapped on the way in, so the whole tree is made
of nodes.

All state lives in _anchor; instances are thin handles holding an _id.
Mutating the underlying storage behind a node's back is unsupported.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any, Callable

from reactree import _anchor, graph
from reactree._anchor import Kind
from reactree._scheduler import notify
from reactree.errors import InvalidInputError

_MISSING = object()

# Sequences that are values, not containers.
_ATOMIC_SEQUENCES = (str, bytes, bytearray)

# Leaves compared by value; everything else by identity.
_VALUE_TYPES = (str, bytes, int, float, complex)


class Tag:
    """A private key that reactivity never sees.

    Tag keys can be read, written and deleted on any node, but they are
    not iterated, not snapshotted and never notify. Each Tag is unique.

    Usage:
        SELECTED = Tag("selected")
        item[SELECTED] = True  # no snapshot change, no watcher call
    """

    __slots__ = ("name",)

    def __init__(self, name: str = "") -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Tag({self.name!r})"


def _is_container(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, _ATOMIC_SEQUENCES)


def _same(old: Any, new: Any) -> bool:
    if old is new:
        return True
    return type(old) is type(new) and isinstance(old, _VALUE_TYPES) and old == new


def _adopt(owner: _Reactive, key: Any, value: Any, owned: set[int] | None = None) -> Any:
    """Return what to store at owner[key], wrapping and connecting as needed.

    A node already mounted elsewhere, or one that would end up inside its
    own subtree, is never shared: a fresh node is built from its current
    contents instead. Nodes listed in owned already belong to owner and are
    kept as they are (once each).
    """
    if _anchor.is_node(value):
        if owned is not None and value._id in owned:
            owned.discard(value._id)
            return value
        if not graph.is_connected(value) and not graph.is_within(owner, value):
            graph.connect(value, owner, key)
            return value
    if _is_container(value):
        value = reactive(value)
        graph.connect(value, owner, key)
    return value


class _Reactive:
    """Shared write/delete pipeline of both node kinds."""

    __slots__ = ("_id", "__weakref__")

    _kind: Kind

    def __init__(self, storage: dict | list) -> None:
        object.__setattr__(self, "_id", _anchor.register(self, self._kind, storage))

    @property
    def _raw(self) -> Any:
        return _anchor.raw[self._id]

    @property
    def _hidden(self) -> dict:
        return _anchor.hidden[self._id]

    def _write(self, key: Any, value: Any, old: Any) -> None:
        if _same(old, value):
            return
        value = _adopt(self, key, value)
        if _anchor.is_node(old):
            graph.disconnect(old)
        self._raw[key] = value
        notify(self)


class ReactiveDict(_Reactive, MutableMapping):
    """A reactive mapping node.

    String and integer keys are reactive; Tag keys (and any other key type)
    are kept aside without reactivity. String keys not starting with an
    underscore can also be used as attributes, unless a mapping method of
    the same name shadows them (node.keys is always the method).

    Deleting a missing key raises KeyError (AttributeError through attribute
    access) and notifies nobody; use pop(key, None) for a quiet delete.
    """

    __slots__ = ()

    _kind = Kind.MAPPING

    def __init__(self, data: Mapping | Iterable = (), **kwargs: Any) -> None:
        super().__init__({})
        self.update(data, **kwargs)

    @staticmethod
    def _is_hidden(key: Any) -> bool:
        return not isinstance(key, (str, int))

    # --- Read operations ---

    def __getitem__(self, key: Any) -> Any:
        if self._is_hidden(key):
            return self._hidden[key]
        return self._raw[key]

    def __contains__(self, key: Any) -> bool:
        if self._is_hidden(key):
            return key in self._hidden
        return key in self._raw

    def __iter__(self) -> Iterator:
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._raw[name]
        except KeyError:
            raise AttributeError(name) from None

    # --- Write operations (notify) ---

    def __setitem__(self, key: Any, value: Any) -> None:
        if self._is_hidden(key):
            self._hidden[key] = value
            return
        self._write(key, value, self._raw.get(key, _MISSING))

    def __delitem__(self, key: Any) -> None:
        if self._is_hidden(key):
            del self._hidden[key]
            return
        old = self._raw[key]
        if _anchor.is_node(old):
            graph.disconnect(old)
        del self._raw[key]
        notify(self)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        self[name] = value

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
            return
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"ReactiveDict({self._raw!r})"


class ReactiveList(_Reactive, MutableSequence):
    """A reactive sequence node.

    Integer indices and slices are reactive; Tag keys are kept aside.
    Structural changes (insert, delete, slices, sort, ...) are applied in
    one step and notify once. Nodes that leave the list are disconnected.
    """

    __slots__ = ()

    _kind = Kind.SEQUENCE

    def __init__(self, items: Iterable = ()) -> None:
        super().__init__([])
        self.extend(items)

    def _commit(self, items: list) -> None:
        """Replace the contents with items, keeping the tree consistent."""
        before = self._raw
        owned = {item._id for item in before if _anchor.is_node(item)}
        adopted = [_adopt(self, index, item, owned) for index, item in enumerate(items)]
        if len(adopted) == len(before) and all(a is b for a, b in zip(adopted, before)):
            return

        # Disconnect everything that is leaving before the storage changes.
        kept = {item._id for item in adopted if _anchor.is_node(item)}
        for item in before:
            if _anchor.is_node(item) and item._id not in kept:
                graph.disconnect(item)
        for index, item in enumerate(adopted):
            if _anchor.is_node(item):
                graph.rekey(item, self, index)

        before[:] = adopted
        notify(self)

    # --- Read operations ---

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, Tag):
            return self._hidden[index]
        return self._raw[index]

    def __len__(self) -> int:
        return len(self._raw)

    def __iter__(self) -> Iterator:
        return iter(self._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReactiveList):
            return self._raw == other._raw
        if isinstance(other, (list, tuple)):
            return self._raw == list(other)
        return NotImplemented

    __hash__ = None

    @property
    def length(self) -> int:
        return len(self._raw)

    @length.setter
    def length(self, value: int) -> None:
        """Truncate or pad with None. Removed nodes are disconnected."""
        if value < 0:
            raise ValueError(f"length must be >= 0, got {value}")
        items = self._raw[:value]
        items.extend([None] * (value - len(items)))
        self._commit(items)

    # --- Write operations (notify) ---

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, Tag):
            self._hidden[index] = value
            return
        if isinstance(index, slice):
            items = list(self._raw)
            items[index] = list(value)
            self._commit(items)
            return
        storage = self._raw
        index = range(len(storage))[index]
        self._write(index, value, storage[index])

    def __delitem__(self, index: Any) -> None:
        if isinstance(index, Tag):
            del self._hidden[index]
            return
        items = list(self._raw)
        del items[index]
        self._commit(items)

    def insert(self, index: int, value: Any) -> None:
        items = list(self._raw)
        items.insert(index, value)
        self._commit(items)

    def extend(self, values: Iterable) -> None:
        self._commit(list(self._raw) + list(values))

    def clear(self) -> None:
        self._commit([])

    def reverse(self) -> None:
        self._commit(self._raw[::-1])

    def sort(self, *, key: Callable | None = None, reverse: bool = False) -> None:
        self._commit(sorted(self._raw, key=key, reverse=reverse))

    def __repr__(self) -> str:
        return f"ReactiveList({self._raw!r})"


def is_reactive(value: Any) -> bool:
    """Capability probe: is value a node? Never raises."""
    return _anchor.is_node(value)


def reactive(value: Mapping | Sequence) -> ReactiveDict | ReactiveList:
    """Wrap a mapping or sequence (and everything nested in it) as a node.

    Usage:
        state = reactive({"todos": [{"title": "write docs", "done": False}]})
        state.todos[0]["done"] = True
        get_state(state)  # immutable view reflecting the write
    """
    if isinstance(value, Mapping):
        return ReactiveDict(value)
    if _is_container(value):
        return ReactiveList(value)
    raise InvalidInputError(f"Expect state to be a mapping or sequence, instead of {value!r}")


def ref(initial: Any = None) -> ReactiveDict:
    """A single-field node: ref(x).current is x."""
    return reactive({"current": initial})
