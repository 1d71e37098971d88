"""Data models for custom setters.

A custom setter is a named, schema-validated mutation operator registered
against a state key. It is the sanctioned way for an agent to change that
key's value.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from cedar_state.models.base import ModelBase


# execute(current_value) for void setters, execute(current_value, args)
# otherwise. Returns the new value, or None for "no commit".
SetterFunction = Callable[..., Any]


class StateSetter(ModelBase):
    """Complete definition of a custom setter.

    Attributes:
        name: Short identifier of the setter (e.g., 'increment').
        description: Explanation of what the setter does, for the agent.
        args_schema: JSON Schema describing the invocation arguments.
        execute: Function producing the new value from the current one.
    """

    name: str = Field(
        ..., min_length=1, description="Short identifier of the setter."
    )
    description: str = Field(
        default="", description="Explanation of what the setter does."
    )
    args_schema: Optional[dict[str, Any]] = Field(
        default=None,
        description="JSON Schema describing the invocation arguments.",
    )
    execute: SetterFunction = Field(
        ...,
        description="Function producing the new value from the current one.",
    )


class ExecuteSetterOptions(BaseModel):
    """Per-call options for setter execution.

    Attributes:
        is_diff: Stage the result as a pending diff (diff-tracked keys only).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    is_diff: bool = Field(
        default=False,
        alias="isDiff",
        description="Stage the result as a pending diff (diff-tracked keys only).",
    )
