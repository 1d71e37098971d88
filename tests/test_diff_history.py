import pytest

from cedar_state.diff import history as diff_ops
from cedar_state.diff.compute import FunctionComputeState
from cedar_state.models.diff_state import DiffHistoryState, DiffState


def _write(record, *values, is_diff=True):
    for value in values:
        record = diff_ops.stage_change(record, value, is_diff)
    return record


class TestStageChange:
    def test_diff_write_from_clean(self):
        record = DiffHistoryState.initial([1, 2])
        record = diff_ops.stage_change(record, [1, 2, 3], True)
        state = record.diff_state
        assert state.is_diff_mode is True
        assert state.old_state == [1, 2]
        assert state.new_state == [1, 2, 3]
        assert [p.to_json_patch() for p in state.patches] == [
            {"op": "add", "path": "/2", "value": 3}
        ]
        assert len(record.history) == 1

    def test_diff_writes_accumulate_against_baseline(self):
        record = _write(DiffHistoryState.initial({"a": 1}), {"a": 2}, {"a": 3})
        assert record.diff_state.old_state == {"a": 1}
        assert record.diff_state.new_state == {"a": 3}
        assert record.diff_state.is_diff_mode is True

    def test_diff_write_promotes_previous_working_copy(self):
        record = DiffHistoryState(
            diff_state=DiffState(old_state={"t": "original"}, new_state={"t": "modified"})
        )
        record = diff_ops.stage_change(record, {"t": "changed"}, True)
        assert record.diff_state.old_state == {"t": "modified"}
        assert record.diff_state.new_state == {"t": "changed"}

    def test_plain_write_keeps_baseline(self):
        record = DiffHistoryState(
            diff_state=DiffState(old_state={"count": 0}, new_state={"count": 1})
        )
        record = diff_ops.stage_change(record, {"count": 2}, False)
        assert record.diff_state.old_state == {"count": 0}
        assert record.diff_state.new_state == {"count": 2}
        assert record.diff_state.is_diff_mode is False
        assert record.history[0] == DiffState(
            old_state={"count": 0}, new_state={"count": 1}
        )

    def test_write_copies_the_value(self):
        value = {"items": [1]}
        record = diff_ops.stage_change(DiffHistoryState.initial({}), value, True)
        value["items"].append(2)
        assert record.diff_state.new_state == {"items": [1]}

    def test_write_clears_redo(self):
        record = _write(DiffHistoryState.initial(0), 1, 2)
        record = diff_ops.undo(record)
        assert record.redo_stack
        record = diff_ops.stage_change(record, 5, True)
        assert record.redo_stack == []
        assert diff_ops.redo(record) is None

    def test_compute_state_applied_on_write(self):
        strategy = FunctionComputeState(
            lambda old, new, patches: {**new, "patch_count": len(patches)},
            name="count_patches",
        )
        record = DiffHistoryState.initial({"a": 1}, compute_state=strategy)
        record = diff_ops.stage_change(record, {"a": 2, "b": 3}, True)
        assert record.diff_state.new_state == {"a": 2, "b": 3, "patch_count": 2}

    def test_failing_compute_state_falls_back(self, caplog):
        def broken(old, new, patches):
            raise ValueError("nope")

        record = DiffHistoryState.initial(
            [1], compute_state=FunctionComputeState(broken)
        )
        record = diff_ops.stage_change(record, [1, 2], True)
        assert record.diff_state.new_state == [1, 2]
        assert "broken" in caplog.text

    def test_apply_patches(self):
        record = DiffHistoryState.initial({"todos": ["a"]})
        record = diff_ops.apply_patches(
            record, [{"op": "add", "path": "/todos/-", "value": "b"}], True
        )
        assert record.diff_state.new_state == {"todos": ["a", "b"]}
        assert record.diff_state.old_state == {"todos": ["a"]}
        assert record.diff_state.is_diff_mode is True


class TestReview:
    def test_accept_all(self):
        record = _write(DiffHistoryState.initial([1, 2]), [1, 2, 3])
        redo_before = record.redo_stack
        accepted = diff_ops.accept_all(record)
        assert accepted.diff_state.old_state == [1, 2, 3]
        assert accepted.diff_state.new_state == [1, 2, 3]
        assert accepted.diff_state.is_diff_mode is False
        assert accepted.diff_state.patches == []
        assert accepted.history[-1] == record.diff_state
        assert accepted.redo_stack == redo_before
        assert diff_ops.accept_all(accepted) is None

    def test_reject_all(self):
        record = _write(DiffHistoryState.initial({"a": 1}), {"a": 2})
        rejected = diff_ops.reject_all(record)
        assert rejected.diff_state.new_state == {"a": 1}
        assert rejected.diff_state.old_state == {"a": 1}
        assert rejected.diff_state.is_diff_mode is False
        assert diff_ops.reject_all(rejected) is None

    def test_review_is_noop_when_clean(self):
        record = DiffHistoryState.initial(1)
        assert diff_ops.accept_all(record) is None
        assert diff_ops.reject_all(record) is None

    def test_accept_preserves_redo(self):
        record = _write(DiffHistoryState.initial(0), 1, 2)
        record = diff_ops.undo(record)
        accepted = diff_ops.accept_all(record)
        assert len(accepted.redo_stack) == 1


class TestUndoRedo:
    @pytest.mark.parametrize("is_diff", [True, False])
    def test_n_writes_then_n_undos_restores_start(self, is_diff):
        start = DiffHistoryState.initial({"v": 0})
        record = _write(start, *({"v": i} for i in range(1, 6)), is_diff=is_diff)
        for _ in range(5):
            record = diff_ops.undo(record)
        assert record.diff_state == start.diff_state
        assert record.history == []
        assert diff_ops.undo(record) is None

    def test_redo_after_undo_restores(self):
        record = _write(DiffHistoryState.initial("a"), "b", "c")
        undone = diff_ops.undo(record)
        assert undone.diff_state.new_state == "b"
        redone = diff_ops.redo(undone)
        assert redone.diff_state == record.diff_state
        assert redone.history == record.history

    def test_redo_without_undo(self):
        record = _write(DiffHistoryState.initial("a"), "b")
        assert diff_ops.redo(record) is None

    def test_undo_restores_pending_diff(self):
        record = _write(DiffHistoryState.initial([1]), [1, 2])
        accepted = diff_ops.accept_all(record)
        restored = diff_ops.undo(accepted)
        assert restored.diff_state.is_diff_mode is True
        assert restored.diff_state.old_state == [1]
        assert restored.diff_state.new_state == [1, 2]

    def test_save_version(self):
        record = DiffHistoryState.initial(1)
        saved = diff_ops.save_version(record)
        assert saved.diff_state == record.diff_state
        assert saved.history == [record.diff_state]

    def test_records_are_not_mutated(self):
        record = DiffHistoryState.initial([1])
        diff_ops.stage_change(record, [1, 2], True)
        assert record.history == []
        assert record.diff_state.new_state == [1]


class TestHistoryLimit:
    def test_oldest_entries_evicted(self):
        record = DiffHistoryState.initial(0, history_limit=3)
        record = _write(record, 1, 2, 3, 4, 5)
        assert len(record.history) == 3
        assert [s.new_state for s in record.history] == [2, 3, 4]

    def test_redo_stack_bounded(self):
        record = _write(DiffHistoryState.initial(0, history_limit=2), 1, 2)
        for _ in range(2):
            record = diff_ops.undo(record)
        assert len(record.redo_stack) == 2
        assert diff_ops.undo(record) is None
