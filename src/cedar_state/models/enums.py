"""Enumeration definitions for the Cedar state engine.

This module contains standard Enum classes used across the engine to ensure
consistency in typing and values for diff policies, patch operations and
setter execution outcomes.
"""

from enum import Enum


class DiffMode(str, Enum):
    """Selects which side of a pending diff is the externally visible value.

    Attributes:
        DEFAULT_ACCEPT: Pending changes are visible immediately (newState).
        HOLD_ACCEPT: Pending changes stay hidden until accepted (oldState).
    """

    DEFAULT_ACCEPT = "defaultAccept"
    HOLD_ACCEPT = "holdAccept"


class PatchOpType(str, Enum):
    """Defines the type of operation in a JSON Patch entry.

    Attributes:
        ADD: A new key or item was added.
        REMOVE: An existing key or item was removed.
        REPLACE: An existing value was changed.
        MOVE: A value was moved from one location to another.
        COPY: A value was copied from one location to another.
        TEST: Asserts that a location holds a value.
    """

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


class ExecutionStatus(str, Enum):
    """Defines the final status of a setter execution attempt.

    Attributes:
        SUCCESS: The setter ran without error.
        REJECTED: The call was blocked by lookup or validation.
        FAILED: The setter raised an exception during execution.
    """

    SUCCESS = "success"
    REJECTED = "rejected"
    FAILED = "failed"


class DiffMarker(str, Enum):
    """Annotation written into items by the presentational strategies."""

    ADDED = "added"
    CHANGED = "changed"


class DiffCheckerType(str, Enum):
    """How a DiffChecker's field list is interpreted.

    Attributes:
        IGNORE: Changes in the listed fields are ignored.
        LISTEN: Only changes in the listed fields count.
    """

    IGNORE = "ignore"
    LISTEN = "listen"
