"""Configuration for the state store.

Settings come from an optional YAML file and are overridden by environment
variables:

- ``CEDAR_STATE_CONFIG``: path of the YAML file used when none is given.
- ``CEDAR_STATE_DIFF_MODE``: default diff mode for new diff-tracked keys.
- ``CEDAR_STATE_HISTORY_LIMIT``: cap on undo/redo depth ('none' = unbounded).
"""

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from cedar_state.models.enums import DiffMode
from cedar_state.observability.logging import get_logger


logger = get_logger(__name__)


class StoreConfig(BaseModel):
    """
    Static configuration for the state store.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    default_diff_mode: DiffMode = Field(
        default=DiffMode.DEFAULT_ACCEPT,
        description="Diff mode used when a diff-tracked key does not specify one.",
    )

    history_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum depth of each undo/redo stack; None keeps everything.",
    )

    apply_schema_defaults: bool = Field(
        default=False,
        description="Whether schema defaults fill missing top-level setter args.",
    )

    validate_values: bool = Field(
        default=True,
        description="Whether committed values are checked against the entry's value schema.",
    )

    warn_on_missing_schema: bool = Field(
        default=True,
        description="Whether running a setter without an args schema logs a warning.",
    )


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    mode = os.environ.get("CEDAR_STATE_DIFF_MODE")
    if mode:
        overrides["default_diff_mode"] = mode
    limit = os.environ.get("CEDAR_STATE_HISTORY_LIMIT")
    if limit:
        overrides["history_limit"] = None if limit.lower() == "none" else int(limit)
    return overrides


def load_config(path: Optional[Union[str, Path]] = None) -> StoreConfig:
    """Loads the store configuration.

    Args:
        path: Optional YAML file. Defaults to the CEDAR_STATE_CONFIG env var;
            without either, only environment overrides are applied.

    Returns:
        The effective StoreConfig.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        pydantic.ValidationError: If the settings are invalid.
    """
    file_path = path or os.environ.get("CEDAR_STATE_CONFIG")
    data: dict[str, Any] = {}
    if file_path:
        with open(file_path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a mapping")
        logger.info(f"Loaded store config from {file_path}")

    data.update(_env_overrides())
    return StoreConfig.model_validate(data)
