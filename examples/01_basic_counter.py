"""Basic example of the Cedar state store.

This example demonstrates how to:
1. Register a state with a schema-validated custom setter.
2. Execute the setter a few times.
3. See how invalid arguments are rejected before the setter runs.
"""

from cedar_state.models.setter import StateSetter
from cedar_state.observability.logging import setup_logging
from cedar_state.store import StateStore


def run_example():
    setup_logging()

    # 1. The host owns the store
    store = StateStore()

    # 2. Register a 'counter' state with two setters
    store.register_state(
        "counter",
        0,
        description="A simple numerical counter.",
        schema={"type": "integer"},
        custom_setters={
            "increment": StateSetter(
                name="increment",
                description="Adds one to the counter.",
                args_schema={"type": "null"},
                execute=lambda current: current + 1,
            ),
            "add": StateSetter(
                name="add",
                description="Adds an amount to the counter.",
                args_schema={
                    "type": "object",
                    "properties": {"amount": {"type": "integer", "minimum": 1}},
                    "required": ["amount"],
                },
                execute=lambda current, args: current + args["amount"],
            ),
        },
        external_sync=lambda value: print(f"Host sees counter = {value}"),
    )

    # 3. Run the setters
    for _ in range(3):
        store.execute_custom_setter("counter", "increment")
    store.execute_custom_setter("counter", "add", args={"amount": 10})
    print(f"Counter: {store.get_cedar_state('counter')}")

    # 4. Invalid arguments never reach the setter
    result = store.execute_custom_setter("counter", "add", args={"amount": "ten"})
    if not result:
        print(f"Rejected ({result.error.code}): {result.error.detail}")
    print(f"Counter is still: {store.get_cedar_state('counter')}")

    print()
    print(store.metrics.render_markdown())


if __name__ == "__main__":
    run_example()
