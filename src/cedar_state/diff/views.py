"""Read-only views derived from a DiffHistoryState."""

from typing import Any

from cedar_state.diff.history import run_compute_state
from cedar_state.models.diff_state import DiffHistoryState
from cedar_state.models.enums import DiffMode


def clean_state(record: DiffHistoryState) -> Any:
    """Returns the policy-selected canonical value.

    Under defaultAccept pending changes are visible right away (new_state);
    under holdAccept they stay hidden until accepted (old_state).
    """
    if record.diff_mode == DiffMode.HOLD_ACCEPT:
        return record.diff_state.old_state
    return record.diff_state.new_state


def computed_state(record: DiffHistoryState) -> Any:
    """Returns the presentational value.

    With a compute_state strategy the value is recomputed on every call from
    the current baseline and working copy, whatever the diff mode; without
    one (or if it raises) this is the clean state.
    """
    if record.compute_state is None:
        return clean_state(record)
    current = record.diff_state
    return run_compute_state(
        record.compute_state,
        current.old_state,
        current.new_state,
        clean_state(record),
    )
