"""Pure reducers over a DiffHistoryState.

Each function takes the current record and returns a new one (or None when
the operation does not apply). Records and stored values are never mutated
in place, so a DiffState pushed onto a stack stays valid forever.

State machine per key: CLEAN (is_diff_mode False) and DIFF_PENDING
(is_diff_mode True). A diff write moves to or stays in DIFF_PENDING; a plain
write advances the baseline in CLEAN; accept and reject collapse
DIFF_PENDING into CLEAN; undo and redo restore any recorded state.
"""

from typing import Any, Callable, Optional, Union

from cedar_state.diff.compute import ComputeState, strip_marker
from cedar_state.models.diff_state import DiffHistoryState, DiffState
from cedar_state.observability.logging import get_logger
from cedar_state.utils import (
    apply_state_diff,
    clone,
    compute_state_diff,
    json_equal,
    resolve_pointer,
    split_pointer,
)


logger = get_logger(__name__)

IdentificationField = Union[str, Callable[[Any], Any]]


def _push(stack: list[DiffState], item: DiffState, limit: Optional[int]) -> list[DiffState]:
    updated = [*stack, item]
    if limit is not None and len(updated) > limit:
        evicted = len(updated) - limit
        logger.debug(f"Evicting {evicted} oldest entries (limit {limit})")
        updated = updated[evicted:]
    return updated


def run_compute_state(
    strategy: Optional[ComputeState], old_state: Any, new_state: Any, fallback: Any
) -> Any:
    """Runs a presentational strategy, falling back when it breaks its contract.

    Args:
        strategy: The strategy, or None.
        old_state: The baseline value.
        new_state: The working copy.
        fallback: Value returned when there is no strategy or it raises.
    """
    if strategy is None:
        return fallback
    try:
        return strategy(old_state, new_state, compute_state_diff(old_state, new_state))
    except Exception:
        logger.exception(f"compute_state strategy '{strategy.name}' raised; using fallback")
        return fallback


def stage_change(record: DiffHistoryState, new_value: Any, is_diff_change: bool) -> DiffHistoryState:
    """Records a write of a full new value.

    When a diff write starts from CLEAN, the previous working copy becomes
    the new baseline; otherwise the existing baseline is kept so pending
    changes accumulate against it. The previous DiffState goes to history
    and the redo stack is cleared.
    """
    current = record.diff_state
    if is_diff_change and not current.is_diff_mode:
        old_for_diff = current.new_state
    else:
        old_for_diff = current.old_state

    new_value = clone(new_value)
    final_new = run_compute_state(record.compute_state, old_for_diff, new_value, new_value)

    next_state = DiffState(
        old_state=old_for_diff,
        new_state=final_new,
        is_diff_mode=is_diff_change,
        patches=compute_state_diff(old_for_diff, final_new),
    )
    return record.model_copy(
        update={
            "diff_state": next_state,
            "history": _push(record.history, current, record.history_limit),
            "redo_stack": [],
        }
    )


def apply_patches(record: DiffHistoryState, patches: list[Any], is_diff_change: bool) -> DiffHistoryState:
    """Derives the full new value from an incremental patch set, then stages it.

    Raises:
        jsonpatch.JsonPatchException: If the patches do not apply to the
            current working copy.
    """
    new_value = apply_state_diff(record.diff_state.new_state, patches)
    return stage_change(record, new_value, is_diff_change)


def accept_all(record: DiffHistoryState) -> Optional[DiffHistoryState]:
    """Keeps the pending value; returns None when nothing is pending."""
    current = record.diff_state
    if not current.is_diff_mode:
        return None
    accepted = DiffState(
        old_state=current.new_state,
        new_state=current.new_state,
        is_diff_mode=False,
        patches=[],
    )
    return record.model_copy(
        update={
            "diff_state": accepted,
            "history": _push(record.history, current, record.history_limit),
        }
    )


def reject_all(record: DiffHistoryState) -> Optional[DiffHistoryState]:
    """Discards the pending value; returns None when nothing is pending."""
    current = record.diff_state
    if not current.is_diff_mode:
        return None
    rejected = DiffState(
        old_state=current.old_state,
        new_state=current.old_state,
        is_diff_mode=False,
        patches=[],
    )
    return record.model_copy(
        update={
            "diff_state": rejected,
            "history": _push(record.history, current, record.history_limit),
        }
    )


def undo(record: DiffHistoryState) -> Optional[DiffHistoryState]:
    if not record.history:
        return None
    *rest, previous = record.history
    return record.model_copy(
        update={
            "diff_state": previous,
            "history": rest,
            "redo_stack": _push(record.redo_stack, record.diff_state, record.history_limit),
        }
    )


def redo(record: DiffHistoryState) -> Optional[DiffHistoryState]:
    if not record.redo_stack:
        return None
    *rest, following = record.redo_stack
    return record.model_copy(
        update={
            "diff_state": following,
            "history": _push(record.history, record.diff_state, record.history_limit),
            "redo_stack": rest,
        }
    )


def save_version(record: DiffHistoryState) -> DiffHistoryState:
    """Checkpoints the current DiffState onto history without changing it."""
    return record.model_copy(
        update={"history": _push(record.history, record.diff_state, record.history_limit)}
    )


def _set_at_pointer(doc: Any, pointer: str, value: Any) -> Any:
    tokens = split_pointer(pointer)
    if not tokens:
        return value
    result = clone(doc)
    node = result
    for token in tokens[:-1]:
        node = node[int(token)] if isinstance(node, list) else node[token]
    last = tokens[-1]
    if isinstance(node, list):
        node[int(last)] = value
    else:
        node[last] = value
    return result


def _identify(item: Any, identification_field: IdentificationField) -> Any:
    if callable(identification_field):
        return identification_field(item)
    if isinstance(item, dict):
        return item.get(identification_field)
    return None


def _find(items: list[Any], identification_field: IdentificationField, target_id: Any) -> tuple[int, Any]:
    for index, item in enumerate(items):
        if _identify(item, identification_field) == target_id:
            return index, item
    return -1, None


def _strip_markers(item: Any, diff_marker_paths: list[str]) -> Any:
    for path in diff_marker_paths:
        item = strip_marker(item, path)
    return item


def _resolve_item(
    record: DiffHistoryState,
    json_path: str,
    identification_field: IdentificationField,
    target_id: Any,
):
    current = record.diff_state
    if not current.is_diff_mode:
        return None
    old_list = resolve_pointer(current.old_state, json_path)
    new_list = resolve_pointer(current.new_state, json_path)
    if not isinstance(new_list, list) or not isinstance(old_list, list):
        return None
    old_index, old_item = _find(old_list, identification_field, target_id)
    new_index, new_item = _find(new_list, identification_field, target_id)
    if old_index < 0 and new_index < 0:
        return None
    return old_list, new_list, old_index, old_item, new_index, new_item


def _commit_item(
    record: DiffHistoryState,
    json_path: str,
    old_list: list[Any],
    new_list: list[Any],
) -> DiffHistoryState:
    current = record.diff_state
    old_state = _set_at_pointer(current.old_state, json_path, old_list)
    new_state = _set_at_pointer(current.new_state, json_path, new_list)
    next_state = DiffState(
        old_state=old_state,
        new_state=new_state,
        is_diff_mode=not json_equal(old_state, new_state),
        patches=compute_state_diff(old_state, new_state),
    )
    return record.model_copy(
        update={
            "diff_state": next_state,
            "history": _push(record.history, current, record.history_limit),
        }
    )


def accept_item(
    record: DiffHistoryState,
    json_path: str,
    identification_field: IdentificationField,
    target_id: Any,
    diff_marker_paths: Optional[list[str]] = None,
) -> Optional[DiffHistoryState]:
    """Accepts the pending change of one list item.

    The item's working-copy version (added, changed or removed) is copied
    into the baseline with its diff markers stripped. Returns None when the
    key is not pending, the path is not a list, or the item is unknown.
    """
    resolved = _resolve_item(record, json_path, identification_field, target_id)
    if resolved is None:
        return None
    old_list, new_list, old_index, old_item, new_index, new_item = resolved
    marker_paths = diff_marker_paths or [""]

    old_list, new_list = list(old_list), list(new_list)
    if new_index < 0:
        del old_list[old_index]
    else:
        clean_item = _strip_markers(new_item, marker_paths)
        new_list[new_index] = clean_item
        if old_index < 0:
            old_list.insert(min(new_index, len(old_list)), clean_item)
        else:
            old_list[old_index] = clean_item
    return _commit_item(record, json_path, old_list, new_list)


def reject_item(
    record: DiffHistoryState,
    json_path: str,
    identification_field: IdentificationField,
    target_id: Any,
    diff_marker_paths: Optional[list[str]] = None,
) -> Optional[DiffHistoryState]:
    """Rejects the pending change of one list item.

    The item's baseline version is restored in the working copy (an added
    item is removed, a removed item comes back). Returns None under the
    same conditions as accept_item.
    """
    resolved = _resolve_item(record, json_path, identification_field, target_id)
    if resolved is None:
        return None
    old_list, new_list, old_index, old_item, new_index, new_item = resolved
    marker_paths = diff_marker_paths or [""]

    new_list = list(new_list)
    if old_index < 0:
        del new_list[new_index]
    else:
        restored = _strip_markers(old_item, marker_paths)
        if new_index < 0:
            new_list.insert(min(old_index, len(new_list)), restored)
        else:
            new_list[new_index] = restored
    return _commit_item(record, json_path, list(old_list), new_list)
