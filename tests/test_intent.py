from cedar_state.models.intent import SetStateIntent
from cedar_state.models.setter import StateSetter
from cedar_state.store import StateStore


def _store():
    store = StateStore()
    store.register_diff_state(
        "todos",
        [],
        custom_setters={
            "add": StateSetter(
                name="add",
                args_schema={
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                    "required": ["text"],
                },
                execute=lambda todos, args: todos + [args["text"]],
            )
        },
        diff_mode="holdAccept",
    )
    return store


class TestProcessIntent:
    def test_agent_edits_are_staged(self):
        store = _store()
        result = store.process_intent(
            {"type": "setState", "stateKey": "todos", "setterKey": "add", "args": {"text": "milk"}}
        )
        assert result
        state = store.get_diff_history_state("todos").diff_state
        assert state.is_diff_mode is True
        assert state.new_state == ["milk"]
        assert store.get_clean_state("todos") == []

        store.accept_all_diffs("todos")
        assert store.get_clean_state("todos") == ["milk"]

    def test_invalid_intent_args(self):
        store = _store()
        intent = SetStateIntent(type="setState", state_key="todos", setter_key="add", args={})
        result = store.process_intent(intent)
        assert not result
        assert result.error.code == "input.invalid"
        assert store.get_diff_history_state("todos").history == []

    def test_intent_on_plain_state(self):
        store = StateStore()
        store.register_state(
            "count",
            1,
            custom_setters={
                "set": StateSetter(name="set", args_schema={"type": "integer"}, execute=lambda v, n: n)
            },
        )
        result = store.process_intent(
            SetStateIntent(type="setState", state_key="count", setter_key="set", args=4)
        )
        assert result
        assert store.get_cedar_state("count") == 4
