"""Abstract remote snapshot store."""

from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import quote


def remote_key(identity: str) -> str:
    """Return the remote record key for an authenticated identity."""
    identity = identity.strip()
    if not identity:
        raise ValueError("identity must not be empty")
    return f"users/{quote(identity, safe='')}"


class RemoteStore(ABC):
    """Remote key-value store holding one snapshot payload per key.

    Implementations raise ``SyncTransportError`` for any transport, auth or
    decoding failure.
    """

    @abstractmethod
    async def fetch(self, key: str) -> Optional[dict[str, Any]]:
        """Return the payload stored under key, or None if it does not exist."""
        pass

    @abstractmethod
    async def store(self, key: str, payload: dict[str, Any]) -> None:
        """Replace the payload stored under key."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None
