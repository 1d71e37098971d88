"""State store for the Cedar state engine.

The StateStore is owned by the host application and injected wherever state
is read or written. It combines the state registry, the setter executor and
the per-key diff records behind one object.
"""

from typing import Any, Callable, Optional, Union

import jsonpatch
from pydantic import ValidationError

from cedar_state.config import StoreConfig
from cedar_state.diff import history as diff_ops
from cedar_state.diff.compute import ComputeState, as_compute_state
from cedar_state.diff.views import clean_state, computed_state
from cedar_state.execution.engine import SetterExecutor
from cedar_state.execution.validation import (
    format_validation_report,
    validate_against_schema,
)
from cedar_state.models.diff_state import DiffHistoryState
from cedar_state.models.enums import DiffMode
from cedar_state.models.execution_result import ExecutionResult
from cedar_state.models.intent import SetStateIntent
from cedar_state.models.patch import PatchOp
from cedar_state.models.setter import ExecuteSetterOptions, StateSetter
from cedar_state.models.state_entry import StateEntry
from cedar_state.observability.logging import get_logger
from cedar_state.observability.metrics import StoreMetrics
from cedar_state.registry.abstract import StateRegistry
from cedar_state.registry.in_memory import InMemoryStateRegistry
from cedar_state.utils import clone, json_equal


logger = get_logger(__name__)

SetterMap = dict[str, Union[StateSetter, dict[str, Any]]]
OptionsLike = Union[ExecuteSetterOptions, dict[str, Any], None]


def _coerce_setters(setters: Optional[SetterMap]) -> dict[str, StateSetter]:
    coerced: dict[str, StateSetter] = {}
    for name, setter in (setters or {}).items():
        if isinstance(setter, StateSetter):
            coerced[name] = setter
        else:
            coerced[name] = StateSetter.model_validate({"name": name, **setter})
    return coerced


def _coerce_options(options: OptionsLike) -> ExecuteSetterOptions:
    if isinstance(options, ExecuteSetterOptions):
        return options
    return ExecuteSetterOptions.model_validate(options or {})


class StateStore:
    """
    Registry of named state entries with diff tracking and custom setters.

    All operations are synchronous. Unknown keys, unknown setters and
    invalid arguments are logged and reported through falsy return values;
    nothing here raises for them.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        registry: Optional[StateRegistry] = None,
    ):
        self.config = config or StoreConfig()
        self.registry = registry or InMemoryStateRegistry()
        self.metrics = StoreMetrics()
        self.executor = SetterExecutor(config=self.config, metrics=self.metrics)
        self._diff_records: dict[str, DiffHistoryState] = {}

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register_state(
        self,
        key: str,
        value: Any,
        external_sync: Optional[Callable[[Any], Any]] = None,
        description: str = "",
        schema: Optional[dict[str, Any]] = None,
        custom_setters: Optional[SetterMap] = None,
    ) -> None:
        """Registers a state, replacing every field of an existing entry.

        Hosts re-register the same key with fresh closures, so the previous
        external_sync and setters are dropped rather than merged.
        """
        entry = StateEntry(
            key=key,
            value=value,
            external_sync=external_sync,
            description=description,
            value_schema=schema,
            custom_setters=_coerce_setters(custom_setters),
        )
        if self.registry.has_entry(key):
            logger.debug(f'Replacing registration of state "{key}"')
        self.registry.put_entry(entry)
        if key in self._diff_records:
            self._sync_entry(key, notify=False)

    def add_custom_setters(self, key: str, setters: SetterMap) -> bool:
        """Merges setters into a state's entry.

        If the state is not registered yet, a placeholder entry (empty
        value, no schema) is created so setters can arrive first.

        Returns:
            True when an entry for ``key`` now exists.
        """
        coerced = _coerce_setters(setters)
        if not self.registry.has_entry(key):
            logger.debug(f'Creating placeholder entry for state "{key}"')
            self.registry.put_entry(StateEntry(key=key, value=""))
        self.registry.merge_setters(key, coerced)
        return self.registry.has_entry(key)

    def register_diff_state(
        self,
        key: str,
        value: Any,
        external_sync: Optional[Callable[[Any], Any]] = None,
        description: str = "",
        schema: Optional[dict[str, Any]] = None,
        custom_setters: Optional[SetterMap] = None,
        diff_mode: Optional[Union[DiffMode, str]] = None,
        compute_state: Optional[Union[ComputeState, Callable[..., Any]]] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        """Registers a diff-tracked state.

        The first registration starts a CLEAN record from ``value``. Later
        registrations of the same key keep the recorded history and only
        swap the compute_state strategy; the entry value then mirrors the
        recorded clean state.
        """
        self.register_state(
            key,
            value,
            external_sync=external_sync,
            description=description,
            schema=schema,
            custom_setters=custom_setters,
        )
        strategy = as_compute_state(compute_state)
        record = self._diff_records.get(key)
        if record is None:
            self._diff_records[key] = DiffHistoryState.initial(
                clone(value),
                diff_mode=diff_mode or self.config.default_diff_mode,
                compute_state=strategy,
                history_limit=history_limit or self.config.history_limit,
            )
            logger.debug(f'Initialised diff record for state "{key}"')
            return

        self._diff_records[key] = record.model_copy(update={"compute_state": strategy})
        self._sync_entry(key, notify=False)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_cedar_state(self, key: str) -> Any:
        """Returns the stored value of a state, or None if it is unknown."""
        entry = self.registry.get_entry(key)
        if entry is None:
            return None
        return entry.value

    def get_entry(self, key: str) -> Optional[StateEntry]:
        return self.registry.get_entry(key)

    def list_states(self) -> list[dict[str, Any]]:
        """Returns agent-facing metadata for every registered state."""
        return [entry.describe() for entry in self.registry.list_entries()]

    def is_diff_tracked(self, key: str) -> bool:
        return key in self._diff_records

    def get_diff_history_state(self, key: str) -> Optional[DiffHistoryState]:
        return self._diff_records.get(key)

    def get_clean_state(self, key: str) -> Any:
        """Returns the policy-selected value of a diff-tracked state.

        For a state without diff tracking this is its stored value. For a
        diff-tracked state the result is a copy, detached from the history.
        """
        record = self._diff_records.get(key)
        if record is None:
            return self.get_cedar_state(key)
        return clone(clean_state(record))

    def get_computed_state(self, key: str) -> Any:
        """Returns the presentational value of a diff-tracked state.

        Recomputed on every call; falls back to the clean state when no
        compute_state strategy is registered.
        """
        record = self._diff_records.get(key)
        if record is None:
            return self.get_cedar_state(key)
        return clone(computed_state(record))

    # ------------------------------------------------------------------ #
    # Plain writes and custom setters
    # ------------------------------------------------------------------ #

    def _check_value(self, entry: StateEntry, value: Any) -> bool:
        if not self.config.validate_values or entry.value_schema is None:
            return True
        check = validate_against_schema(value, entry.value_schema)
        if check.ok:
            return True
        logger.error(
            format_validation_report(
                subject=f'value of state "{entry.key}"',
                received=value,
                schema=entry.value_schema,
                violations=check.errors,
            ),
            extra={"extra_fields": {"event": "state.value_invalid", "state_key": entry.key}},
        )
        return False

    def _write_value(self, entry: StateEntry, value: Any) -> bool:
        if json_equal(entry.value, value):
            logger.debug(f'State "{entry.key}" unchanged; skipping write')
            return False
        self.registry.set_value(entry.key, clone(value))
        self._notify(entry, clone(value))
        return True

    def _notify(self, entry: StateEntry, value: Any) -> None:
        if entry.external_sync is None:
            return
        try:
            entry.external_sync(value)
        except Exception:
            logger.exception(f'external_sync for state "{entry.key}" failed')

    def set_cedar_state(self, key: str, value: Any) -> bool:
        """Writes a state's value directly.

        Diff-tracked states stage the value as a pending diff. Otherwise the
        value is stored and mirrored through external_sync; a failing
        callback is logged and the stored value is kept.

        Returns:
            True when a value was committed.
        """
        entry = self.registry.get_entry(key)
        if entry is not None and not self._check_value(entry, value):
            return False
        if key in self._diff_records:
            return self.set_diff_state(key, value, True)

        if entry is None:
            logger.warning(f'State with key "{key}" not found.')
            return False
        return self._write_value(entry, value)

    def execute_custom_setter(
        self,
        key: str,
        setter_key: str,
        options: OptionsLike = None,
        args: Any = None,
    ) -> ExecutionResult:
        """Runs a custom setter and commits the value it returns.

        Args:
            key: The state to mutate.
            setter_key: Name of the registered setter.
            options: Execution options; ``is_diff`` stages the result as a
                pending diff on diff-tracked states.
            args: Setter arguments, validated against the setter's schema.

        Returns:
            The ExecutionResult. It is falsy when the setter was unknown,
            the arguments were invalid or the setter raised.
        """
        if key in self._diff_records:
            return self.execute_diff_setter(key, setter_key, options, args)

        entry = self.registry.get_entry(key)
        result, new_value = self.executor.execute(
            key=key,
            setter_key=setter_key,
            entry=entry,
            current_value=entry.value if entry is not None else None,
            args=args,
        )
        if result.ok and new_value is not None:
            self._write_value(entry, new_value)
        return result

    def execute_diff_setter(
        self,
        key: str,
        setter_key: str,
        options: OptionsLike = None,
        args: Any = None,
    ) -> ExecutionResult:
        """Runs a custom setter against the working copy of a diff-tracked state.

        The setter sees ``new_state``, so successive calls compose against
        pending edits. The result is committed with set_diff_state, staged
        as a pending diff only when ``options.is_diff`` is true.
        """
        opts = _coerce_options(options)
        entry = self.registry.get_entry(key)
        record = self._diff_records.get(key)
        if record is not None:
            current = record.diff_state.new_state
        else:
            current = entry.value if entry is not None else None

        result, new_value = self.executor.execute(
            key=key,
            setter_key=setter_key,
            entry=entry,
            current_value=current,
            args=args,
            diff_tracked=True,
        )
        if result.ok and new_value is not None:
            self.set_diff_state(key, new_value, opts.is_diff)
        return result

    def process_intent(self, intent: Union[SetStateIntent, dict[str, Any]]) -> ExecutionResult:
        """Executes an agent's setState intent.

        Agent edits are always staged as pending diffs so they can be
        reviewed before being accepted.
        """
        if not isinstance(intent, SetStateIntent):
            intent = SetStateIntent.model_validate(intent)
        logger.info(
            f'Processing intent for state "{intent.state_key}"',
            extra={
                "extra_fields": {
                    "event": "intent.received",
                    "request_id": intent.request_id,
                    "state_key": intent.state_key,
                    "setter_key": intent.setter_key,
                }
            },
        )
        return self.execute_custom_setter(
            intent.state_key,
            intent.setter_key,
            options=ExecuteSetterOptions(is_diff=True),
            args=intent.args,
        )

    # ------------------------------------------------------------------ #
    # Diff engine
    # ------------------------------------------------------------------ #

    def _record_for_write(self, key: str) -> Optional[DiffHistoryState]:
        record = self._diff_records.get(key)
        if record is not None:
            return record
        entry = self.registry.get_entry(key)
        if entry is None:
            logger.warning(f'No diff state or registered state for key "{key}".')
            return None
        record = DiffHistoryState.initial(
            clone(entry.value),
            diff_mode=self.config.default_diff_mode,
            history_limit=self.config.history_limit,
        )
        self._diff_records[key] = record
        logger.debug(f'Lazily initialised diff record for state "{key}"')
        return record

    def _record_for_review(self, key: str, operation: str) -> Optional[DiffHistoryState]:
        record = self._diff_records.get(key)
        if record is None:
            logger.warning(f'{operation}: no diff state for key "{key}".')
        return record

    def _sync_entry(self, key: str, notify: bool = True) -> None:
        record = self._diff_records.get(key)
        entry = self.registry.get_entry(key)
        if record is None or entry is None:
            return
        value = clean_state(record)
        if json_equal(entry.value, value):
            return
        self.registry.set_value(key, clone(value))
        if notify:
            self._notify(entry, clone(value))

    def _commit(self, key: str, record: DiffHistoryState, metric: str) -> bool:
        self._diff_records[key] = record
        self.metrics.inc(metric)
        self._sync_entry(key)
        return True

    def set_diff_state(self, key: str, new_value: Any, is_diff_change: bool) -> bool:
        """Records a full new value for a diff-tracked state.

        Args:
            key: The state key.
            new_value: The complete new value.
            is_diff_change: Stage the value as a pending diff instead of
                advancing the baseline.

        Returns:
            False if the key is unknown.
        """
        record = self._record_for_write(key)
        if record is None:
            return False
        return self._commit(
            key, diff_ops.stage_change(record, new_value, is_diff_change), "diff.write"
        )

    def apply_patches_to_diff_state(
        self,
        key: str,
        patches: list[Union[PatchOp, dict[str, Any]]],
        is_diff_change: bool,
    ) -> bool:
        """Applies an incremental JSON Patch to the working copy, then stages it.

        Returns:
            False if the key is unknown or the patches do not apply.
        """
        record = self._record_for_write(key)
        if record is None:
            return False
        try:
            updated = diff_ops.apply_patches(record, patches, is_diff_change)
        except (
            jsonpatch.JsonPatchException,
            jsonpatch.JsonPointerException,
            ValidationError,
        ) as e:
            logger.error(
                f'Could not apply patches to state "{key}": {e}',
                extra={"extra_fields": {"event": "diff.patch_failed", "state_key": key}},
            )
            return False
        return self._commit(key, updated, "diff.write")

    def accept_all_diffs(self, key: str) -> bool:
        """Accepts every pending change; False when nothing is pending."""
        record = self._record_for_review(key, "accept_all_diffs")
        if record is None:
            return False
        updated = diff_ops.accept_all(record)
        if updated is None:
            logger.warning(f'accept_all_diffs: state "{key}" has no pending diffs.')
            return False
        return self._commit(key, updated, "diff.accept")

    def reject_all_diffs(self, key: str) -> bool:
        """Discards every pending change; False when nothing is pending."""
        record = self._record_for_review(key, "reject_all_diffs")
        if record is None:
            return False
        updated = diff_ops.reject_all(record)
        if updated is None:
            logger.warning(f'reject_all_diffs: state "{key}" has no pending diffs.')
            return False
        return self._commit(key, updated, "diff.reject")

    def undo(self, key: str) -> bool:
        record = self._record_for_review(key, "undo")
        if record is None:
            return False
        updated = diff_ops.undo(record)
        if updated is None:
            logger.debug(f'undo: history of state "{key}" is empty.')
            return False
        return self._commit(key, updated, "diff.undo")

    def redo(self, key: str) -> bool:
        record = self._record_for_review(key, "redo")
        if record is None:
            return False
        updated = diff_ops.redo(record)
        if updated is None:
            logger.debug(f'redo: nothing to redo for state "{key}".')
            return False
        return self._commit(key, updated, "diff.redo")

    def save_version(self, key: str) -> bool:
        """Checkpoints the current DiffState so a later undo returns to it."""
        record = self._record_for_review(key, "save_version")
        if record is None:
            return False
        self._diff_records[key] = diff_ops.save_version(record)
        return True

    def accept_diff(
        self,
        key: str,
        json_path: str,
        identification_field: Union[str, Callable[[Any], Any]],
        target_id: Any,
        diff_marker_paths: Optional[list[str]] = None,
    ) -> bool:
        """Accepts the pending change of a single list item.

        Args:
            key: The state key.
            json_path: JSON pointer of the list ('' for the value itself).
            identification_field: Item field holding the id, or a callable
                returning it.
            target_id: Id of the item to accept.
            diff_marker_paths: Pointers inside the item whose diff markers
                are stripped. Defaults to the item itself.

        Returns:
            False when nothing was pending or the item was not found.
        """
        record = self._record_for_review(key, "accept_diff")
        if record is None:
            return False
        updated = diff_ops.accept_item(
            record, json_path, identification_field, target_id, diff_marker_paths
        )
        if updated is None:
            logger.warning(
                f'accept_diff: no pending item "{target_id}" at "{json_path}" in state "{key}".'
            )
            return False
        return self._commit(key, updated, "diff.accept")

    def reject_diff(
        self,
        key: str,
        json_path: str,
        identification_field: Union[str, Callable[[Any], Any]],
        target_id: Any,
        diff_marker_paths: Optional[list[str]] = None,
    ) -> bool:
        """Rejects the pending change of a single list item; see accept_diff."""
        record = self._record_for_review(key, "reject_diff")
        if record is None:
            return False
        updated = diff_ops.reject_item(
            record, json_path, identification_field, target_id, diff_marker_paths
        )
        if updated is None:
            logger.warning(
                f'reject_diff: no pending item "{target_id}" at "{json_path}" in state "{key}".'
            )
            return False
        return self._commit(key, updated, "diff.reject")

    def set_diff_history_state(self, key: str, record: DiffHistoryState) -> None:
        """Replaces the whole diff record of a state."""
        self._diff_records[key] = record
        self._sync_entry(key)

    def set_compute_state(
        self,
        key: str,
        strategy: Optional[Union[ComputeState, Callable[..., Any]]],
    ) -> bool:
        record = self._record_for_review(key, "set_compute_state")
        if record is None:
            return False
        self._diff_records[key] = record.model_copy(
            update={"compute_state": as_compute_state(strategy)}
        )
        return True

    # ------------------------------------------------------------------ #
    # Persistence helpers
    # ------------------------------------------------------------------ #

    def export_diff_history(self, key: str) -> Optional[str]:
        """Serialises a state's diff record to JSON.

        The compute_state strategy is not serialised.
        """
        record = self._diff_records.get(key)
        if record is None:
            logger.warning(f'export_diff_history: no diff state for key "{key}".')
            return None
        return record.model_dump_json(by_alias=True)

    def import_diff_history(self, key: str, data: Union[str, bytes, dict[str, Any]]) -> bool:
        """Restores a state's diff record from exported JSON.

        A compute_state strategy already registered for the key is kept.

        Returns:
            False if the data is not a valid diff record.
        """
        try:
            if isinstance(data, dict):
                record = DiffHistoryState.model_validate(data)
            else:
                record = DiffHistoryState.model_validate_json(data)
        except ValidationError as e:
            logger.error(
                f'import_diff_history: invalid data for state "{key}": {e}',
                extra={"extra_fields": {"event": "diff.import_failed", "state_key": key}},
            )
            return False

        existing = self._diff_records.get(key)
        if existing is not None and existing.compute_state is not None:
            record = record.model_copy(update={"compute_state": existing.compute_state})
        self.set_diff_history_state(key, record)
        return True
