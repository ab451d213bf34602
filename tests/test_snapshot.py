"""Tests for get_state() — memoized immutable snapshots with structural sharing."""

from types import MappingProxyType

import pytest

from reactree import NotReactiveError, get_state, is_reactive, reactive


class TestGetState:
    def test_cache_hit(self):
        state = reactive({"count": 0})
        snapshot = get_state(state)
        assert snapshot is get_state(state)
        assert snapshot == {"count": 0}

    def test_snapshot_types(self):
        assert isinstance(get_state(reactive({"a": 1})), MappingProxyType)
        assert isinstance(get_state(reactive([1])), tuple)

    def test_snapshot_is_immutable(self):
        snapshot = get_state(reactive({"a": {"b": 1}, "items": [1]}))
        with pytest.raises(TypeError):
            snapshot["a"] = 2
        with pytest.raises(TypeError):
            snapshot["a"]["b"] = 2
        with pytest.raises(TypeError):
            snapshot["items"][0] = 2

    def test_snapshot_is_not_reactive(self):
        state = reactive({"a": {"b": 1}})
        snapshot = get_state(state)
        assert not is_reactive(snapshot)
        assert not is_reactive(snapshot["a"])

    def test_rejects_non_nodes(self):
        with pytest.raises(NotReactiveError):
            get_state({})
        with pytest.raises(TypeError):
            get_state([1])

    def test_old_snapshot_unaffected_by_writes(self):
        state = reactive({"a": [1]})
        before = get_state(state)
        state.a.append(2)
        assert before == {"a": (1,)}
        assert get_state(state) == {"a": (1, 2)}


class TestStructuralSharing:
    def test_mapping(self):
        state = reactive({"a": {"value": 1}, "b": {"value": 1}, "c": {"value": 1}})
        state0 = get_state(state)

        state.a.value += 1
        state1 = get_state(state)

        state.b.value += 1
        state2 = get_state(state)

        state.c.value += 1
        state3 = get_state(state)

        assert len({id(s) for s in (state0, state1, state2, state3)}) == 4

        assert state0["a"] is not state1["a"]
        assert state0["b"] is state1["b"]
        assert state0["c"] is state1["c"]

        assert state1["a"] is state2["a"]
        assert state1["b"] is not state2["b"]
        assert state1["c"] is state2["c"]

        assert state2["a"] is state3["a"]
        assert state2["b"] is state3["b"]
        assert state2["c"] is not state3["c"]

        assert state0 == {"a": {"value": 1}, "b": {"value": 1}, "c": {"value": 1}}
        assert state1 == {"a": {"value": 2}, "b": {"value": 1}, "c": {"value": 1}}
        assert state2 == {"a": {"value": 2}, "b": {"value": 2}, "c": {"value": 1}}
        assert state3 == {"a": {"value": 2}, "b": {"value": 2}, "c": {"value": 2}}

    def test_sequence(self):
        items = reactive([{"value": 1}, {"value": 1}, {"value": 1}])
        list0 = get_state(items)

        items[0].value += 1
        list1 = get_state(items)

        items[1].value += 1
        list2 = get_state(items)

        items[2].value += 1
        list3 = get_state(items)

        assert list0[0] is not list1[0]
        assert list0[1] is list1[1]
        assert list0[2] is list1[2]

        assert list1[0] is list2[0]
        assert list1[1] is not list2[1]
        assert list1[2] is list2[2]

        assert list2[0] is list3[0]
        assert list2[1] is list3[1]
        assert list2[2] is not list3[2]

        assert list3 == ({"value": 2}, {"value": 2}, {"value": 2})

        items.append({"value": 1})
        list4 = get_state(items)
        assert list4 is not list3
        assert all(list4[i] is list3[i] for i in range(3))
        assert list4 == ({"value": 2}, {"value": 2}, {"value": 2}, {"value": 1})

        items.pop()
        list5 = get_state(items)
        assert list5 is not list3
        assert all(list5[i] is list3[i] for i in range(3))
        assert list5 == list3

    def test_only_path_to_root_is_rebuilt(self):
        state = reactive({"left": {"deep": {"leaf": 1}, "other": {"x": 1}}, "right": {"y": 1}})
        before = get_state(state)
        state.left.deep.leaf = 2
        after = get_state(state)

        assert after is not before
        assert after["left"] is not before["left"]
        assert after["left"]["deep"] is not before["left"]["deep"]
        assert after["left"]["other"] is before["left"]["other"]
        assert after["right"] is before["right"]

    def test_example_from_list(self):
        items = reactive([{"v": 1}, {"v": 2}])
        s0 = get_state(items)
        items[0].v = 9
        s1 = get_state(items)
        assert s1 is not s0
        assert s1[1] is s0[1]
        assert s1[0] is not s0[0]

    def test_dirty_even_without_observers(self):
        state = reactive({"child": {"v": 1}})
        child = state.child
        before = get_state(state)
        child.v = 2
        assert get_state(state) is not before
        assert get_state(state)["child"] is get_state(child)
