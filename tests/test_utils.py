import jsonpatch
import pytest

from cedar_state.models.enums import PatchOpType
from cedar_state.models.patch import PatchOp
from cedar_state.utils import (
    apply_state_diff,
    clone,
    compute_state_diff,
    join_pointer,
    json_equal,
    resolve_pointer,
    split_pointer,
)


class TestJsonHelpers:
    def test_clone_is_deep(self):
        value = {"a": [1, {"b": 2}]}
        copied = clone(value)
        copied["a"][1]["b"] = 3
        assert value["a"][1]["b"] == 2

    def test_json_equal_bool_is_not_number(self):
        assert not json_equal(True, 1)
        assert not json_equal(0, False)
        assert json_equal(True, True)

    def test_json_equal_tuple_matches_list(self):
        assert json_equal(("a", 1), ["a", 1])
        assert not json_equal([1, 2], [2, 1])

    def test_json_equal_nested(self):
        assert json_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})
        assert not json_equal({"a": 1}, {"a": 1, "b": 2})
        assert not json_equal({"a": []}, {"a": {}})


class TestPointers:
    def test_split_and_join(self):
        assert split_pointer("") == []
        assert split_pointer("/") == []
        assert split_pointer("/a/0") == ["a", "0"]
        assert split_pointer("data/x") == ["data", "x"]
        assert split_pointer("/a~1b/c~0d") == ["a/b", "c~d"]
        assert join_pointer(["a/b", "c~d", 0]) == "/a~1b/c~0d/0"

    def test_resolve_pointer(self):
        doc = {"items": [{"id": 1}, {"id": 2}], "meta": {"a/b": True}}
        assert resolve_pointer(doc, "") is doc
        assert resolve_pointer(doc, "/items/1/id") == 2
        assert resolve_pointer(doc, "/meta/a~1b") is True
        assert resolve_pointer(doc, "/items/5") is None
        assert resolve_pointer(doc, "/items/x", "missing") == "missing"
        assert resolve_pointer(doc, "/meta/a~1b/deeper", "missing") == "missing"


class TestComputeStateDiff:
    def test_equal_values_have_no_patches(self):
        assert compute_state_diff({"a": [1, 2]}, {"a": [1, 2]}) == []

    def test_add_remove_replace(self):
        diff = compute_state_diff({"a": 1, "b": 2}, {"a": 3, "c": 4})
        assert [(d.op, d.path) for d in diff] == [
            ("replace", "/a"),
            ("remove", "/b"),
            ("add", "/c"),
        ]
        assert diff[0].value == 3
        assert diff[2].value == 4

    def test_list_append(self):
        diff = compute_state_diff([1, 2], [1, 2, 3])
        assert len(diff) == 1
        assert diff[0].op == PatchOpType.ADD
        assert diff[0].path == "/2"
        assert diff[0].value == 3

    def test_list_shrink_removes_from_the_end(self):
        diff = compute_state_diff([1, 2, 3, 4], [1])
        assert [d.path for d in diff] == ["/3", "/2", "/1"]
        assert all(d.op == "remove" for d in diff)

    def test_root_replace(self):
        diff = compute_state_diff(1, "one")
        assert len(diff) == 1
        assert diff[0].op == PatchOpType.REPLACE
        assert diff[0].path == ""
        assert diff[0].value == "one"

    def test_keys_are_escaped(self):
        diff = compute_state_diff({}, {"a/b": 1})
        assert diff[0].path == "/a~1b"

    def test_patch_values_are_copies(self):
        new = {"a": {"b": [1]}}
        diff = compute_state_diff({}, new)
        new["a"]["b"].append(2)
        assert diff[0].value == {"b": [1]}

    @pytest.mark.parametrize(
        "old,new",
        [
            ({}, {"a": 1}),
            ({"a": {"b": 1, "c": [1, 2]}}, {"a": {"c": [2]}, "d": None}),
            ([1, {"x": 1}, 3], [{"x": 2}, {"x": 1}]),
            ({"todos": [{"id": 1, "done": False}]}, {"todos": []}),
            ([], [[], {}, ""]),
            ({"n": 1}, {"n": True}),
            ("text", {"now": "object"}),
            ({"a~b": {"c/d": 1}}, {"a~b": {"c/d": 2}}),
        ],
    )
    def test_round_trip(self, old, new):
        patches = compute_state_diff(old, new)
        assert json_equal(apply_state_diff(old, patches), new)


class TestApplyStateDiff:
    def test_does_not_mutate_input(self):
        state = {"items": [1]}
        result = apply_state_diff(
            state, [PatchOp(op="add", path="/items/-", value=2)]
        )
        assert result == {"items": [1, 2]}
        assert state == {"items": [1]}

    def test_accepts_plain_dicts(self):
        result = apply_state_diff(
            {"a": 1},
            [
                {"op": "copy", "from": "/a", "path": "/b"},
                {"op": "remove", "path": "/a"},
            ],
        )
        assert result == {"b": 1}

    def test_empty_patch_returns_copy(self):
        state = {"a": [1]}
        result = apply_state_diff(state, [])
        assert result == state
        assert result is not state

    def test_conflict_raises(self):
        with pytest.raises(jsonpatch.JsonPatchException):
            apply_state_diff({"a": 1}, [{"op": "remove", "path": "/missing"}])

    def test_failed_test_op_raises(self):
        with pytest.raises(jsonpatch.JsonPatchTestFailed):
            apply_state_diff({"a": 1}, [{"op": "test", "path": "/a", "value": 2}])
