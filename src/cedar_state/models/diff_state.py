"""Data models for diff-tracked state.

This module defines the versioned record kept for every diff-tracked key:
the active DiffState plus the undo (history) and redo stacks.
"""

from typing import Any, Optional

from pydantic import ConfigDict, Field

from cedar_state.diff.compute import ComputeState
from cedar_state.models.base import ModelBase
from cedar_state.models.enums import DiffMode
from cedar_state.models.patch import PatchOp


class DiffState(ModelBase):
    """A baseline/working-copy pair for one state key.

    Attributes:
        old_state: The last accepted baseline value.
        new_state: The working copy, possibly holding pending changes.
        is_diff_mode: Whether new_state holds changes awaiting review.
        patches: JSON Patch from old_state to new_state, for inspection.
    """

    old_state: Any = Field(
        default=None, description="The last accepted baseline value."
    )
    new_state: Any = Field(
        default=None,
        description="The working copy, possibly holding pending changes.",
    )
    is_diff_mode: bool = Field(
        default=False,
        description="Whether new_state holds changes awaiting review.",
    )
    patches: list[PatchOp] = Field(
        default_factory=list,
        description="JSON Patch from old_state to new_state, for inspection.",
    )


class DiffHistoryState(ModelBase):
    """Complete versioned record of a diff-tracked key.

    Attributes:
        diff_state: The active DiffState.
        history: Past DiffStates, most recent last (undo stack).
        redo_stack: Undone DiffStates, most recent last.
        diff_mode: Policy selecting the clean (externally visible) value.
        compute_state: Optional presentational strategy. Never serialized.
        history_limit: Optional cap on the depth of each stack.
    """

    model_config = ConfigDict(use_enum_values=True)

    diff_state: DiffState = Field(
        default_factory=DiffState, description="The active DiffState."
    )
    history: list[DiffState] = Field(
        default_factory=list,
        description="Past DiffStates, most recent last (undo stack).",
    )
    redo_stack: list[DiffState] = Field(
        default_factory=list,
        description="Undone DiffStates, most recent last.",
    )
    diff_mode: DiffMode = Field(
        default=DiffMode.DEFAULT_ACCEPT,
        description="Policy selecting the clean (externally visible) value.",
    )
    compute_state: Optional[ComputeState] = Field(
        default=None,
        exclude=True,
        description="Optional presentational strategy. Never serialized.",
    )
    history_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional cap on the depth of the history and redo stacks.",
    )

    @classmethod
    def initial(
        cls,
        value: Any,
        *,
        diff_mode: DiffMode = DiffMode.DEFAULT_ACCEPT,
        compute_state: Optional[ComputeState] = None,
        history_limit: Optional[int] = None,
    ) -> "DiffHistoryState":
        """Builds a CLEAN record whose baseline and working copy are ``value``."""
        return cls(
            diff_state=DiffState(old_state=value, new_state=value),
            diff_mode=diff_mode,
            compute_state=compute_state,
            history_limit=history_limit,
        )
