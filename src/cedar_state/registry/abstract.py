"""Abstract base class for the state registry.

This module defines the interface for storing and retrieving registered
state entries, their values and their custom setters.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from cedar_state.models.setter import StateSetter
from cedar_state.models.state_entry import StateEntry


class StateRegistry(ABC):
    """Interface for accessing registered state entries."""

    @abstractmethod
    def get_entry(self, key: str) -> Optional[StateEntry]:
        """Retrieves a state entry by its key.

        Args:
            key: The unique identifier of the state.

        Returns:
            The state entry if found, otherwise None.
        """
        pass  # pragma: no cover

    @abstractmethod
    def put_entry(self, entry: StateEntry) -> None:
        """Stores an entry, replacing every field of any existing one.

        Args:
            entry: The complete entry to store.
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_entries(self) -> list[StateEntry]:
        """Lists all registered entries.

        Returns:
            A list of all state entries in registration order.
        """
        pass  # pragma: no cover

    @abstractmethod
    def set_value(self, key: str, value: Any) -> bool:
        """Replaces the stored value of an existing entry.

        Args:
            key: The unique identifier of the state.
            value: The new value.

        Returns:
            True if the entry exists and was updated.
        """
        pass  # pragma: no cover

    @abstractmethod
    def merge_setters(self, key: str, setters: dict[str, StateSetter]) -> bool:
        """Merges setters into an existing entry's custom setters.

        Args:
            key: The unique identifier of the state.
            setters: Setters to add; same-named setters are replaced.

        Returns:
            True if the entry exists and was updated.
        """
        pass  # pragma: no cover

    def has_entry(self, key: str) -> bool:
        return self.get_entry(key) is not None
