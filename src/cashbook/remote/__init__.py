"""Remote snapshot stores used by the sync engine."""

from typing import Optional

from cashbook.remote.base import RemoteStore, remote_key
from cashbook.remote.http import HttpRemoteStore
from cashbook.remote.sql import SQLAlchemyRemoteStore


def create_remote_store(url: str, token: Optional[str] = None) -> RemoteStore:
    """Create a remote store from a URL.

    ``http://`` and ``https://`` URLs use the HTTP protocol; anything else is
    treated as a SQLAlchemy database URL.
    """
    if url.startswith(("http://", "https://")):
        return HttpRemoteStore(url, token=token)
    return SQLAlchemyRemoteStore(url)


__all__ = [
    "RemoteStore",
    "HttpRemoteStore",
    "SQLAlchemyRemoteStore",
    "create_remote_store",
    "remote_key",
]
