"""Example of reviewing agent edits as pending diffs.

This example demonstrates how to:
1. Register a diff-tracked todo list in holdAccept mode.
2. Stage agent edits through setState intents.
3. Show annotated pending changes and review them item by item.
4. Undo and redo review steps.
"""

from cedar_state.diff.compute import ArrayDiffMarker
from cedar_state.models.intent import SetStateIntent
from cedar_state.models.setter import StateSetter
from cedar_state.store import StateStore
from cedar_state.ui.diff_viz import format_history_markdown


def add_todo(todos, args):
    next_id = max((t["id"] for t in todos), default=0) + 1
    return todos + [{"id": next_id, "text": args["text"], "done": False}]


def complete_todo(todos, args):
    return [
        {**t, "done": True} if t["id"] == args["id"] else t
        for t in todos
    ]


def run_example():
    store = StateStore()

    # 1. Register the todo list
    store.register_diff_state(
        "todos",
        [{"id": 1, "text": "Buy milk", "done": False}],
        description="The user's todo list.",
        diff_mode="holdAccept",
        compute_state=ArrayDiffMarker(id_field="id"),
        custom_setters={
            "add": StateSetter(
                name="add",
                description="Adds a todo.",
                args_schema={
                    "type": "object",
                    "properties": {"text": {"type": "string", "minLength": 1}},
                    "required": ["text"],
                },
                execute=add_todo,
            ),
            "complete": StateSetter(
                name="complete",
                description="Marks a todo as done.",
                args_schema={
                    "type": "object",
                    "properties": {"id": {"type": "integer"}},
                    "required": ["id"],
                },
                execute=complete_todo,
            ),
        },
    )

    # 2. The agent proposes two edits
    store.process_intent(
        SetStateIntent(type="setState", state_key="todos", setter_key="add", args={"text": "Call mom"})
    )
    store.process_intent(
        {"type": "setState", "stateKey": "todos", "setterKey": "complete", "args": {"id": 1}}
    )

    print("Visible to the app (clean):", store.get_clean_state("todos"))
    print("Shown in the review UI (computed):", store.get_computed_state("todos"))
    print(format_history_markdown(store.get_diff_history_state("todos")))

    # 3. Accept the new todo, reject the completion
    store.accept_diff("todos", "", "id", 2)
    store.reject_diff("todos", "", "id", 1)
    print("\nAfter review:", store.get_clean_state("todos"))

    # 4. Changed your mind?
    store.undo("todos")
    print("After undo:", store.get_computed_state("todos"))
    store.redo("todos")
    print("After redo:", store.get_clean_state("todos"))


if __name__ == "__main__":
    run_example()
