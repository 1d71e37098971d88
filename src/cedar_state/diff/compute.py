"""Presentational strategies for diff-tracked state.

A ComputeState strategy derives the value shown to the UI from a baseline,
a working copy and the patches between them, typically by annotating added
or changed items so they can be highlighted. Strategies must be pure and
total: they may run on every read and must never mutate their inputs.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from cedar_state.models.enums import DiffCheckerType, DiffMarker
from cedar_state.models.patch import PatchOp
from cedar_state.utils import (
    clone,
    join_pointer,
    json_equal,
    resolve_pointer,
    split_pointer,
)


DIFF_FIELD = "diff"


class ComputeState(ABC):
    """Interface for presentational transforms over a pending diff."""

    name: str = "compute_state"

    @abstractmethod
    def compute(self, old_state: Any, new_state: Any, patches: list[PatchOp]) -> Any:
        """Returns the presentational value for ``new_state``.

        Args:
            old_state: The baseline value.
            new_state: The working copy.
            patches: JSON Patch from old_state to new_state.
        """
        pass  # pragma: no cover

    def __call__(self, old_state: Any, new_state: Any, patches: list[PatchOp]) -> Any:
        return self.compute(old_state, new_state, patches)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionComputeState(ComputeState):
    """Adapts a plain ``(old, new, patches) -> value`` callable."""

    def __init__(self, fn: Callable[[Any, Any, list[PatchOp]], Any], name: Optional[str] = None):
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "compute_state")

    def compute(self, old_state, new_state, patches):
        return self._fn(old_state, new_state, patches)


def as_compute_state(strategy: Any) -> Optional[ComputeState]:
    """Normalizes a strategy or plain callable into a ComputeState."""
    if strategy is None or isinstance(strategy, ComputeState):
        return strategy
    if callable(strategy):
        return FunctionComputeState(strategy)
    raise TypeError(f"compute_state must be callable, got {type(strategy).__name__}")


class DiffChecker(BaseModel):
    """Restricts which fields of an item count as a change.

    Attributes:
        type: 'ignore' skips the listed fields; 'listen' only looks at them.
        fields: JSON pointers into the item. The leading slash is optional.
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    type: DiffCheckerType = Field(
        ..., description="'ignore' skips the listed fields; 'listen' only looks at them."
    )
    fields: list[str] = Field(
        default_factory=list,
        description="JSON pointers into the item. The leading slash is optional.",
    )

    def has_changed(self, old_item: Any, new_item: Any) -> bool:
        if self.type == DiffCheckerType.LISTEN:
            return any(
                not json_equal(
                    resolve_pointer(old_item, f, _MISSING),
                    resolve_pointer(new_item, f, _MISSING),
                )
                for f in self.fields
            )
        old_copy, new_copy = clone(old_item), clone(new_item)
        for f in self.fields:
            _drop_pointer(old_copy, f)
            _drop_pointer(new_copy, f)
        return not json_equal(old_copy, new_copy)


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()


def _drop_pointer(doc: Any, pointer: str) -> None:
    tokens = split_pointer(pointer)
    if not tokens:
        return
    parent = resolve_pointer(doc, join_pointer(tokens[:-1]))
    if isinstance(parent, dict):
        parent.pop(tokens[-1], None)


def set_marker(item: Any, diff_path: str, marker: Optional[str]) -> Any:
    """Returns a copy of ``item`` with the diff marker written at ``diff_path``.

    A ``None`` marker removes any existing marker instead.
    """
    if not isinstance(item, dict):
        return item
    result = clone(item)
    tokens = split_pointer(diff_path)
    current = result
    for token in tokens:
        child = current.get(token)
        if not isinstance(child, dict):
            if marker is None:
                return result
            child = {}
            current[token] = child
        current = child
    if marker is None:
        current.pop(DIFF_FIELD, None)
    else:
        current[DIFF_FIELD] = marker
    return result


def strip_marker(item: Any, diff_path: str = "") -> Any:
    return set_marker(item, diff_path, None)


def _classify(
    old_item: Any,
    new_item: Any,
    diff_path: str,
    diff_checker: Optional[DiffChecker],
) -> Optional[str]:
    if old_item is _MISSING:
        return DiffMarker.ADDED.value
    old_clean = strip_marker(old_item, diff_path)
    new_clean = strip_marker(new_item, diff_path)
    if diff_checker is not None:
        changed = diff_checker.has_changed(old_clean, new_clean)
    else:
        changed = not json_equal(old_clean, new_clean)
    return DiffMarker.CHANGED.value if changed else None


class ArrayDiffMarker(ComputeState):
    """Marks list items as added or changed relative to the baseline.

    Items are matched by ``id_field``. The marker is written as a ``diff``
    key inside the object found at ``diff_path`` ('' for the item itself,
    '/data' for a nested data object). Unchanged items lose stale markers.
    """

    name = "array_diff_marker"

    def __init__(
        self,
        id_field: str = "id",
        diff_path: str = "",
        diff_checker: Optional[DiffChecker] = None,
    ):
        self.id_field = id_field
        self.diff_path = diff_path
        self.diff_checker = diff_checker

    def compute(self, old_state, new_state, patches):
        if not isinstance(new_state, list):
            return new_state
        old_items = old_state if isinstance(old_state, list) else []
        old_by_id = {
            item.get(self.id_field): item
            for item in old_items
            if isinstance(item, dict)
        }
        result = []
        for item in new_state:
            if not isinstance(item, dict):
                result.append(item)
                continue
            old_item = old_by_id.get(item.get(self.id_field), _MISSING)
            marker = _classify(old_item, item, self.diff_path, self.diff_checker)
            result.append(set_marker(item, self.diff_path, marker))
        return result


class MapDiffMarker(ComputeState):
    """Marks dict values as added or changed relative to the baseline.

    The dict keys identify the items; otherwise behaves like ArrayDiffMarker.
    """

    name = "map_diff_marker"

    def __init__(self, diff_path: str = "", diff_checker: Optional[DiffChecker] = None):
        self.diff_path = diff_path
        self.diff_checker = diff_checker

    def compute(self, old_state, new_state, patches):
        if not isinstance(new_state, dict):
            return new_state
        old_map = old_state if isinstance(old_state, dict) else {}
        result = {}
        for key, item in new_state.items():
            if not isinstance(item, dict):
                result[key] = item
                continue
            marker = _classify(
                old_map.get(key, _MISSING), item, self.diff_path, self.diff_checker
            )
            result[key] = set_marker(item, self.diff_path, marker)
        return result
