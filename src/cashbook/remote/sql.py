"""Remote snapshot store backed by a shared SQL database."""

import asyncio
import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from cashbook.database.models import RemoteSnapshot, create_database_engine
from cashbook.domain.errors import SyncTransportError
from cashbook.remote.base import RemoteStore

logger = logging.getLogger(__name__)


class SQLAlchemyRemoteStore(RemoteStore):
    """Remote store keeping one row per identity in ``remote_snapshots``.

    Blocking database calls run in a worker thread so sync never blocks the
    event loop. Each call uses its own session.
    """

    def __init__(self, database_url: str):
        """
        Args:
            database_url: SQLAlchemy database URL of the shared database
        """
        self.database_url = database_url
        self.engine = create_database_engine(database_url)
        self.session_factory = sessionmaker(bind=self.engine)

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
        logger.debug("Disposed remote engine for %s", self.engine.url)

    async def fetch(self, key: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._fetch, key)

    async def store(self, key: str, payload: dict[str, Any]) -> None:
        await asyncio.to_thread(self._store, key, json.dumps(payload))

    def _fetch(self, key: str) -> Optional[dict[str, Any]]:
        try:
            with self.session_factory() as session:
                row = session.get(RemoteSnapshot, key)
                raw = row.payload if row is not None else None
        except SQLAlchemyError as e:
            raise SyncTransportError(f"Reading {key} failed: {e}") from e

        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SyncTransportError(f"Snapshot {key} is not valid JSON") from e
        if not isinstance(payload, dict):
            raise SyncTransportError(f"Snapshot {key} is not an object")
        return payload

    def _store(self, key: str, raw: str) -> None:
        try:
            with self.session_factory() as session:
                row = session.get(RemoteSnapshot, key)
                if row is None:
                    session.add(RemoteSnapshot(key=key, payload=raw))
                else:
                    row.payload = raw
                session.commit()
        except SQLAlchemyError as e:
            raise SyncTransportError(f"Writing {key} failed: {e}") from e
        logger.debug("Stored snapshot %s (%d bytes)", key, len(raw))
