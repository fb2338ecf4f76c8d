"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional


class Database(ABC):
    """Abstract local key-value database for cashbook.

    Each collection is stored as one serialized record under a fixed key and
    is always written in full.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def read_record(self, key: str) -> Optional[str]:
        """Return the raw payload stored under key, or None if absent."""
        pass

    @abstractmethod
    def write_record(self, key: str, payload: str) -> None:
        """Replace the payload stored under key."""
        pass

    @abstractmethod
    def list_keys(self) -> list[str]:
        """List all record keys."""
        pass
