"""Data model for JSON Patch operations.

A patch set is an ordered list of PatchOp entries describing how to turn
one JSON-like value into another (RFC 6902 semantics). Paths are JSON
pointers (RFC 6901); the empty string addresses the whole document.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from cedar_state.models.enums import PatchOpType


_NEEDS_VALUE = {PatchOpType.ADD, PatchOpType.REPLACE, PatchOpType.TEST}
_NEEDS_FROM = {PatchOpType.MOVE, PatchOpType.COPY}


class PatchOp(BaseModel):
    """Represents a single JSON Patch operation.

    Attributes:
        op: The operation performed (add, remove, replace, move, copy, test).
        path: JSON pointer to the target location (e.g., '/items/0/name').
        value: The value for add, replace and test operations.
        from_: Source JSON pointer for move and copy operations.
    """

    model_config = ConfigDict(
        extra="forbid", populate_by_name=True, use_enum_values=True
    )

    op: PatchOpType = Field(
        ...,
        description="The operation performed (add, remove, replace, move, copy, test).",
    )
    path: str = Field(
        ...,
        description="JSON pointer to the target location (e.g., '/items/0/name').",
    )
    value: Optional[Any] = Field(
        default=None,
        description="The value for add, replace and test operations.",
    )
    from_: Optional[str] = Field(
        default=None,
        alias="from",
        description="Source JSON pointer for move and copy operations.",
    )

    @model_validator(mode="after")
    def validate_operands(self) -> "PatchOp":
        op = PatchOpType(self.op)
        if self.path and not self.path.startswith("/"):
            raise ValueError(f"path must be a JSON pointer: {self.path!r}")
        if op in _NEEDS_VALUE and "value" not in self.model_fields_set:
            raise ValueError(f"'{op.value}' operations require a value")
        if op in _NEEDS_FROM and self.from_ is None:
            raise ValueError(f"'{op.value}' operations require 'from'")
        return self

    @model_serializer(mode="wrap")
    def _drop_absent_operands(self, handler):
        data = handler(self)
        if "value" not in self.model_fields_set:
            data.pop("value", None)
        if self.from_ is None:
            data.pop("from", None)
            data.pop("from_", None)
        return data

    def to_json_patch(self) -> dict[str, Any]:
        """Returns the RFC 6902 dictionary form of this operation."""
        data: dict[str, Any] = {"op": PatchOpType(self.op).value, "path": self.path}
        if "value" in self.model_fields_set:
            data["value"] = self.value
        if self.from_ is not None:
            data["from"] = self.from_
        return data


def to_json_patch(patches: list[PatchOp]) -> list[dict[str, Any]]:
    """Converts a list of PatchOp models into plain RFC 6902 dictionaries."""
    return [p.to_json_patch() for p in patches]


def parse_patches(raw: list[Any]) -> list[PatchOp]:
    """Parses dictionaries (or PatchOp instances) into PatchOp models."""
    return [
        p if isinstance(p, PatchOp) else PatchOp.model_validate(p) for p in raw
    ]
