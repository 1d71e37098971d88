from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import ConfigDict, Field

from .base import ModelBase, SetterKey, StateKey


IntentType = Literal["setState", "action"]


class SetStateIntent(ModelBase):
    """
    Structured state-mutation request produced by the agent.

    It names a registered state and one of its custom setters. Agent
    intents are always staged as pending diffs so a human can review them.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: IntentType = Field(
        ...,
        description="Type of intent being expressed.",
    )

    state_key: StateKey = Field(
        ...,
        alias="stateKey",
        min_length=1,
        description="Key of the registered state to mutate.",
    )

    setter_key: SetterKey = Field(
        ...,
        alias="setterKey",
        min_length=1,
        description="Name of the custom setter to run.",
    )

    args: Optional[Any] = Field(
        default=None,
        description="Arguments for the setter (any JSON-like shape).",
    )

    request_id: Optional[str] = Field(
        default=None,
        alias="requestId",
        description="Optional identifier for correlating logs.",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when the intent was received.",
    )

