"""Schema validation for setter arguments and state values.

Validation never fails fast: every violation is collected so the caller can
report them together in one diagnostic.
"""

import json
from typing import Any, Optional

from jsonschema import Draft202012Validator, validators
from jsonschema.exceptions import SchemaError

from cedar_state.models.execution_result import ArgsValidationResult, ArgsViolation
from cedar_state.utils import clone


def _format_path(path) -> str:
    return ".".join(str(p) for p in path) or "root"


def apply_schema_defaults(value: Any, schema: dict[str, Any]) -> Any:
    """Fills missing top-level object properties from their schema defaults.

    Args:
        value: The value to complete. ``None`` counts as an empty object
            when the schema describes an object.
        schema: The JSON Schema.

    Returns:
        A completed copy, or ``value`` unchanged when it is not an object.
    """
    properties = schema.get("properties")
    if schema.get("type") != "object" or not isinstance(properties, dict):
        return value
    if value is None:
        value = {}
    if not isinstance(value, dict):
        return value
    completed = dict(value)
    for name, sub_schema in properties.items():
        if name not in completed and isinstance(sub_schema, dict) and "default" in sub_schema:
            completed[name] = clone(sub_schema["default"])
    return completed


def validate_against_schema(
    value: Any,
    schema: Optional[dict[str, Any]],
    *,
    apply_defaults: bool = False,
) -> ArgsValidationResult:
    """Validates a value against a JSON Schema, collecting every violation.

    The validator class follows the schema's ``$schema`` keyword and
    defaults to Draft 2020-12, so tuples can be described with
    ``prefixItems`` and void arguments with ``{"type": "null"}``.

    Args:
        value: The value to check.
        schema: The JSON Schema, or None to accept anything.
        apply_defaults: Whether to fill top-level object defaults first.

    Returns:
        An ArgsValidationResult holding the (possibly completed) value and
        all violations sorted by path.
    """
    if schema is None:
        return ArgsValidationResult(ok=True, value=value)

    if apply_defaults:
        value = apply_schema_defaults(value, schema)

    validator_cls = validators.validator_for(schema, default=Draft202012Validator)
    try:
        validator_cls.check_schema(schema)
    except SchemaError as e:
        return ArgsValidationResult(
            ok=False,
            value=value,
            errors=[
                ArgsViolation(
                    path=_format_path(e.absolute_path),
                    message=f"Invalid schema: {e.message}",
                    code="schema",
                    received=e.instance,
                    expected=e.validator_value,
                )
            ],
        )

    validator = validator_cls(schema)
    errors = sorted(
        validator.iter_errors(value), key=lambda e: _format_path(e.absolute_path)
    )
    violations = [
        ArgsViolation(
            path=_format_path(e.absolute_path),
            message=e.message,
            code=str(e.validator),
            received=e.instance,
            expected=e.validator_value,
        )
        for e in errors
    ]
    return ArgsValidationResult(ok=not violations, value=value, errors=violations)


def format_validation_report(
    *,
    subject: str,
    received: Any,
    schema: Optional[dict[str, Any]],
    violations: list[ArgsViolation],
) -> str:
    """Builds the single consolidated diagnostic for a failed validation.

    Args:
        subject: What was validated (e.g., 'args for setter "add" on state "todos"').
        received: The value that failed.
        schema: The schema it was checked against.
        violations: Every violation found.

    Returns:
        A multi-line message.
    """
    return "\n".join(
        [
            f"Validation failed for {subject}",
            f"Received: {json.dumps(received, indent=2, default=repr)}",
            f"Expected schema: {json.dumps(schema, indent=2, default=repr)}",
            "Violations: "
            + json.dumps(
                [v.model_dump() for v in violations], indent=2, default=repr
            ),
        ]
    )
