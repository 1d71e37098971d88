"""Data models for reporting setter execution and validation outcomes.

This module defines the structures returned by the setter executor after an
attempt to run a custom setter, and the typed validation result produced
when checking arguments against a setter's schema.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from cedar_state.models.enums import ExecutionStatus


class ArgsViolation(BaseModel):
    """A single schema violation found while validating a value.

    Attributes:
        path: Dot-separated location of the offending value ('root' for the
            value itself).
        message: Human-readable explanation from the validator.
        code: The JSON Schema keyword that failed (e.g., 'type').
        received: The offending value.
        expected: The keyword's expected value from the schema.
    """

    path: str = Field(..., description="Location of the offending value.")
    message: str = Field(..., description="Human-readable explanation.")
    code: str = Field(..., description="The JSON Schema keyword that failed.")
    received: Optional[Any] = Field(
        default=None, description="The offending value."
    )
    expected: Optional[Any] = Field(
        default=None, description="The keyword's expected value."
    )


class ArgsValidationResult(BaseModel):
    """Outcome of validating a value against a JSON Schema.

    Attributes:
        ok: Whether validation passed.
        value: The validated value (with schema defaults applied, if enabled).
        errors: Every violation found, in path order.
    """

    ok: bool = Field(..., description="Whether validation passed.")
    value: Optional[Any] = Field(
        default=None, description="The validated value."
    )
    errors: list[ArgsViolation] = Field(
        default_factory=list, description="Every violation found, in path order."
    )

    def __bool__(self) -> bool:
        return self.ok


class ExecutionError(BaseModel):
    """Details regarding a failure or rejection.

    Attributes:
        code: Machine-readable error code (e.g., 'input.invalid').
        detail: Human-readable explanation of the error.
    """

    code: str = Field(
        ..., description="Machine-readable error code (e.g., 'input.invalid')."
    )
    detail: str = Field(
        ..., description="Human-readable explanation of the error."
    )


class ExecutionResult(BaseModel):
    """The result of a custom setter execution attempt.

    The result is truthy only when the setter ran without error, so
    callers may treat it like a boolean. A successful setter that returned
    None committed nothing.

    Attributes:
        key: The state key targeted.
        setter_key: The setter attempted.
        status: The final outcome (success, rejected, failed).
        timestamp: When the execution completed.
        message: A summary message suitable for display to the user.
        error: Error details if the status is REJECTED or FAILED.
        violations: Schema violations if the arguments were invalid.
        diff_tracked: Whether the call went through the diff engine.
    """

    model_config = ConfigDict(use_enum_values=True)

    key: str = Field(..., description="The state key targeted.")
    setter_key: str = Field(..., description="The setter attempted.")
    status: ExecutionStatus = Field(
        ..., description="The final outcome (success, rejected, failed)."
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the execution completed.",
    )
    message: Optional[str] = Field(
        default=None,
        description="A summary message suitable for display to the user.",
    )
    error: Optional[ExecutionError] = Field(
        default=None,
        description="Error details if the status is REJECTED or FAILED.",
    )
    violations: list[ArgsViolation] = Field(
        default_factory=list,
        description="Schema violations if the arguments were invalid.",
    )
    diff_tracked: bool = Field(
        default=False,
        description="Whether the call went through the diff engine.",
    )

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.ok
