"""In-memory implementation of the StateRegistry.

Entries live for the lifetime of the owning store; removal is left to the
host.
"""

from typing import Any, Optional

from cedar_state.models.setter import StateSetter
from cedar_state.models.state_entry import StateEntry
from cedar_state.registry.abstract import StateRegistry


class InMemoryStateRegistry(StateRegistry):
    """Dictionary-backed registry of state entries."""

    def __init__(self):
        self._entries: dict[str, StateEntry] = {}

    def get_entry(self, key: str) -> Optional[StateEntry]:
        return self._entries.get(key)

    def put_entry(self, entry: StateEntry) -> None:
        self._entries[entry.key] = entry

    def list_entries(self) -> list[StateEntry]:
        return list(self._entries.values())

    def set_value(self, key: str, value: Any) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.value = value
        return True

    def merge_setters(self, key: str, setters: dict[str, StateSetter]) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.custom_setters = {**entry.custom_setters, **setters}
        return True
