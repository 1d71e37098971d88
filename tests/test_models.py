import pytest
from pydantic import ValidationError

from cedar_state.models.diff_state import DiffHistoryState, DiffState
from cedar_state.models.enums import DiffMode, ExecutionStatus, PatchOpType
from cedar_state.models.execution_result import (
    ArgsValidationResult,
    ExecutionError,
    ExecutionResult,
)
from cedar_state.models.intent import SetStateIntent
from cedar_state.models.patch import PatchOp, parse_patches, to_json_patch
from cedar_state.models.setter import ExecuteSetterOptions, StateSetter
from cedar_state.models.state_entry import StateEntry


class TestPatchOp:
    def test_add_requires_value(self):
        with pytest.raises(ValidationError):
            PatchOp(op="add", path="/a")

    def test_explicit_none_value_is_allowed(self):
        op = PatchOp(op="replace", path="/a", value=None)
        assert op.to_json_patch() == {"op": "replace", "path": "/a", "value": None}

    def test_path_must_be_pointer(self):
        with pytest.raises(ValidationError):
            PatchOp(op="remove", path="a")

    def test_move_requires_from(self):
        with pytest.raises(ValidationError):
            PatchOp(op="move", path="/b")
        op = PatchOp.model_validate({"op": "move", "from": "/a", "path": "/b"})
        assert op.from_ == "/a"
        assert op.to_json_patch() == {"op": "move", "path": "/b", "from": "/a"}

    def test_remove_serializes_without_value(self):
        assert PatchOp(op=PatchOpType.REMOVE, path="/a").to_json_patch() == {
            "op": "remove",
            "path": "/a",
        }

    def test_unknown_op_rejected(self):
        with pytest.raises(ValidationError):
            PatchOp(op="merge", path="/a", value=1)

    def test_parse_and_convert(self):
        patches = parse_patches(
            [{"op": "add", "path": "/x", "value": 1}, PatchOp(op="remove", path="/y")]
        )
        assert all(isinstance(p, PatchOp) for p in patches)
        assert to_json_patch(patches) == [
            {"op": "add", "path": "/x", "value": 1},
            {"op": "remove", "path": "/y"},
        ]


class TestDiffModels:
    def test_initial_record_is_clean(self):
        record = DiffHistoryState.initial([1, 2], diff_mode=DiffMode.HOLD_ACCEPT)
        assert record.diff_state.old_state == [1, 2]
        assert record.diff_state.new_state == [1, 2]
        assert record.diff_state.is_diff_mode is False
        assert record.history == []
        assert record.redo_stack == []
        assert record.diff_mode == "holdAccept"

    def test_history_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            DiffHistoryState(history_limit=0)

    def test_compute_state_not_serialized(self):
        from cedar_state.diff.compute import ArrayDiffMarker

        record = DiffHistoryState.initial([], compute_state=ArrayDiffMarker())
        assert "compute_state" not in record.model_dump()

    def test_diff_state_defaults(self):
        state = DiffState()
        assert state.patches == []
        assert state.is_diff_mode is False


class TestSetterModels:
    def test_setter_requires_name(self):
        with pytest.raises(ValidationError):
            StateSetter(name="", execute=lambda v: v)

    def test_options_accept_camel_case(self):
        assert ExecuteSetterOptions.model_validate({"isDiff": True}).is_diff is True
        assert ExecuteSetterOptions(is_diff=True).is_diff is True
        assert ExecuteSetterOptions().is_diff is False

    def test_entry_describe(self):
        entry = StateEntry(
            key="todos",
            value=[],
            description="Todo list",
            value_schema={"type": "array"},
            custom_setters={
                "add": StateSetter(
                    name="add",
                    description="Adds a todo",
                    args_schema={"type": "string"},
                    execute=lambda v, a: v + [a],
                )
            },
        )
        described = entry.describe()
        assert described["key"] == "todos"
        assert described["schema"] == {"type": "array"}
        assert described["setters"]["add"] == {
            "description": "Adds a todo",
            "argsSchema": {"type": "string"},
        }

    def test_entry_forbids_unknown_fields(self):
        with pytest.raises(ValidationError):
            StateEntry(key="a", value=1, color="red")


class TestResults:
    def test_execution_result_truthiness(self):
        ok = ExecutionResult(key="k", setter_key="s", status=ExecutionStatus.SUCCESS)
        bad = ExecutionResult(
            key="k",
            setter_key="s",
            status=ExecutionStatus.REJECTED,
            error=ExecutionError(code="input.invalid", detail="bad"),
        )
        assert ok
        assert ok.ok
        assert not bad
        assert bad.status == "rejected"

    def test_validation_result_truthiness(self):
        assert ArgsValidationResult(ok=True, value=1)
        assert not ArgsValidationResult(ok=False)


class TestIntent:
    def test_camel_case_aliases(self):
        intent = SetStateIntent.model_validate(
            {
                "type": "setState",
                "stateKey": "todos",
                "setterKey": "add",
                "args": {"text": "milk"},
                "requestId": "req-1",
                "content": "ignored extra field",
            }
        )
        assert intent.state_key == "todos"
        assert intent.setter_key == "add"
        assert intent.args == {"text": "milk"}
        assert intent.request_id == "req-1"
        assert intent.timestamp is not None

    def test_snake_case_names(self):
        intent = SetStateIntent(type="setState", state_key="a", setter_key="b")
        assert intent.args is None

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            SetStateIntent(type="chat", state_key="a", setter_key="b")
