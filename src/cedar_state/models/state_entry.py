"""Data model for registered state entries."""

from typing import Any, Optional

from pydantic import Field

from cedar_state.models.base import ExternalSync, ModelBase
from cedar_state.models.setter import StateSetter


class StateEntry(ModelBase):
    """A named piece of application state.

    Attributes:
        key: Unique identifier of the state (e.g., 'todo.items').
        value: The current JSON-like value.
        external_sync: Callback invoked with every committed value so the
            host can mirror it into a variable it owns.
        description: Explanation of the state's purpose, for the agent.
        value_schema: JSON Schema describing valid values.
        custom_setters: Named setters allowed to mutate this state.
    """

    key: str = Field(..., description="Unique identifier of the state.")
    value: Any = Field(default=None, description="The current JSON-like value.")
    external_sync: Optional[ExternalSync] = Field(
        default=None,
        description="Callback invoked with every committed value.",
    )
    description: str = Field(
        default="", description="Explanation of the state's purpose."
    )
    value_schema: Optional[dict[str, Any]] = Field(
        default=None, description="JSON Schema describing valid values."
    )
    custom_setters: dict[str, StateSetter] = Field(
        default_factory=dict,
        description="Named setters allowed to mutate this state.",
    )

    def describe(self) -> dict[str, Any]:
        """Returns the JSON-serializable metadata an agent sees for this state."""
        return {
            "key": self.key,
            "description": self.description,
            "value": self.value,
            "schema": self.value_schema,
            "setters": {
                name: {
                    "description": s.description,
                    "argsSchema": s.args_schema,
                }
                for name, s in self.custom_setters.items()
            },
        }
