from typing import Any, Callable

from pydantic import BaseModel, ConfigDict


class ModelBase(BaseModel):
    """
    Base class for all cedar-state models.

    Forbids unknown fields and enables assignment-time validation.
    Callables (setters, sync callbacks, strategies) are allowed as field
    types.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        arbitrary_types_allowed=True,
        frozen=False,
    )


StateKey = str
SetterKey = str

ExternalSync = Callable[[Any], Any]
