from typing import Any, Optional

from ..config import StoreConfig
from ..models.enums import ExecutionStatus
from ..models.execution_result import ExecutionError, ExecutionResult
from ..models.state_entry import StateEntry
from ..observability.logging import get_logger
from ..observability.metrics import StoreMetrics
from ..utils import clone
from .validation import format_validation_report, validate_against_schema


logger = get_logger(__name__)


class SetterExecutor:
    """
    Validates and runs custom setters against a current value.

    The executor never commits anything itself: it returns the outcome and
    the value to commit, and the caller decides whether that value goes to
    the registry or to the diff engine.
    """

    def __init__(
        self,
        *,
        config: Optional[StoreConfig] = None,
        metrics: Optional[StoreMetrics] = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._metrics = metrics or StoreMetrics()

    def _reject(
        self,
        key: str,
        setter_key: str,
        *,
        code: str,
        detail: str,
        message: str,
        diff_tracked: bool,
        violations=None,
    ) -> ExecutionResult:
        self._metrics.inc("setter.rejected")
        return ExecutionResult(
            key=key,
            setter_key=setter_key,
            status=ExecutionStatus.REJECTED,
            message=message,
            error=ExecutionError(code=code, detail=detail),
            violations=violations or [],
            diff_tracked=diff_tracked,
        )

    def execute(
        self,
        *,
        key: str,
        setter_key: str,
        entry: Optional[StateEntry],
        current_value: Any,
        args: Any = None,
        diff_tracked: bool = False,
    ) -> tuple[ExecutionResult, Any]:
        """Runs one setter.

        Args:
            key: The state key targeted.
            setter_key: Name of the setter to run.
            entry: The registered entry, or None if the key is unknown.
            current_value: The value the setter starts from. For diff-tracked
                keys this is the working copy, not the clean state.
            args: Invocation arguments (None for void setters).
            diff_tracked: Whether the caller is the diff engine.

        Returns:
            A tuple of the ExecutionResult and the value to commit. The value
            is None whenever nothing should be committed.
        """
        if entry is None:
            logger.warning(f'State with key "{key}" not found.')
            return (
                self._reject(
                    key,
                    setter_key,
                    code="state.unknown",
                    detail=f"State not in registry: {key}",
                    message="Unknown state",
                    diff_tracked=diff_tracked,
                ),
                None,
            )

        setter = entry.custom_setters.get(setter_key)
        if setter is None:
            logger.warning(f'Custom setter "{setter_key}" not found for state "{key}".')
            return (
                self._reject(
                    key,
                    setter_key,
                    code="setter.unknown",
                    detail=f"Setter not registered for {key}: {setter_key}",
                    message="Unknown setter",
                    diff_tracked=diff_tracked,
                ),
                None,
            )

        # Argument validation
        if setter.args_schema is not None:
            validation = validate_against_schema(
                args,
                setter.args_schema,
                apply_defaults=self._config.apply_schema_defaults,
            )
            if not validation.ok:
                logger.error(
                    format_validation_report(
                        subject=f'args for setter "{setter_key}" on state "{key}"',
                        received=args,
                        schema=setter.args_schema,
                        violations=validation.errors,
                    ),
                    extra={
                        "extra_fields": {
                            "event": "setter.args_invalid",
                            "state_key": key,
                            "setter_key": setter_key,
                            "violation_count": len(validation.errors),
                        }
                    },
                )
                return (
                    self._reject(
                        key,
                        setter_key,
                        code="input.invalid",
                        detail="; ".join(
                            f"{v.path}: {v.message}" for v in validation.errors
                        ),
                        message="Invalid setter arguments",
                        diff_tracked=diff_tracked,
                        violations=validation.errors,
                    ),
                    None,
                )
            args = validation.value
        elif self._config.warn_on_missing_schema:
            logger.warning(
                f'No schema validation for setter "{setter_key}" on state "{key}". '
                "Consider adding an args_schema."
            )

        try:
            if args is None:
                new_value = setter.execute(clone(current_value))
            else:
                new_value = setter.execute(clone(current_value), args)
        except Exception as e:
            logger.exception(f'Setter "{setter_key}" on state "{key}" raised')
            self._metrics.inc("setter.failed")
            return (
                ExecutionResult(
                    key=key,
                    setter_key=setter_key,
                    status=ExecutionStatus.FAILED,
                    message="Execution failed",
                    error=ExecutionError(code="execution.exception", detail=str(e)),
                    diff_tracked=diff_tracked,
                ),
                None,
            )

        if new_value is None:
            self._metrics.inc("setter.success")
            return (
                ExecutionResult(
                    key=key,
                    setter_key=setter_key,
                    status=ExecutionStatus.SUCCESS,
                    message="Setter returned no value; nothing committed",
                    diff_tracked=diff_tracked,
                ),
                None,
            )

        if self._config.validate_values and entry.value_schema is not None:
            check = validate_against_schema(new_value, entry.value_schema)
            if not check.ok:
                logger.error(
                    format_validation_report(
                        subject=f'value produced by setter "{setter_key}" on state "{key}"',
                        received=new_value,
                        schema=entry.value_schema,
                        violations=check.errors,
                    ),
                    extra={
                        "extra_fields": {
                            "event": "setter.value_invalid",
                            "state_key": key,
                            "setter_key": setter_key,
                        }
                    },
                )
                return (
                    self._reject(
                        key,
                        setter_key,
                        code="value.invalid",
                        detail="; ".join(f"{v.path}: {v.message}" for v in check.errors),
                        message="Setter produced an invalid value",
                        diff_tracked=diff_tracked,
                        violations=check.errors,
                    ),
                    None,
                )

        self._metrics.inc("setter.success")
        return (
            ExecutionResult(
                key=key,
                setter_key=setter_key,
                status=ExecutionStatus.SUCCESS,
                message=f'Setter "{setter_key}" applied to "{key}"',
                diff_tracked=diff_tracked,
            ),
            new_value,
        )
