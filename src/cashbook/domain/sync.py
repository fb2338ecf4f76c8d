"""Whole-snapshot synchronization between the entity store and a remote store.

The policy is last-writer-wins: a push replaces the remote snapshot and a
pull replaces every local collection. There is no item-level merge. Push and
pull for the same identity are serialized with an ``asyncio.Lock``; each call
also takes a request number so a call that was superseded by a later call of
the same kind is reported as stale instead of being applied.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, UTC
from typing import Optional

from cashbook.database.mappers import snapshot_from_dict, snapshot_to_dict
from cashbook.domain.entities import SyncResult
from cashbook.domain.errors import SyncError, SyncNotFound, SyncTransportError
from cashbook.domain.store import EntityStore
from cashbook.remote.base import RemoteStore, remote_key

logger = logging.getLogger(__name__)

PUSH = "push"
PULL = "pull"


class SyncEngine:
    """Pushes and pulls full snapshots keyed by an opaque identity.

    Usage:
        engine = SyncEngine(store, HttpRemoteStore(url))
        await engine.sign_in("user-123")   # adopts the cloud state
        ...
        engine.schedule_push()             # after a local save
        await engine.close()
    """

    def __init__(self, store: EntityStore, remote: RemoteStore):
        """
        Args:
            store: Local entity store
            remote: Remote snapshot store
        """
        self.store = store
        self.remote = remote
        self._locks: dict[str, asyncio.Lock] = {}
        self._request_ids: dict[tuple[str, str], int] = {}
        self._active_identity: Optional[str] = None
        self._background: set[asyncio.Task] = set()

    @property
    def active_identity(self) -> Optional[str]:
        return self._active_identity

    def _lock_for(self, identity: str) -> asyncio.Lock:
        lock = self._locks.get(identity)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[identity] = lock
        return lock

    def _next_request_id(self, identity: str, operation: str) -> int:
        request_id = self._request_ids.get((identity, operation), 0) + 1
        self._request_ids[(identity, operation)] = request_id
        return request_id

    def _is_latest(self, identity: str, operation: str, request_id: int) -> bool:
        return self._request_ids.get((identity, operation)) == request_id

    async def push(self, identity: str) -> SyncResult:
        """Replace the remote snapshot with the current local state.

        Raises:
            SyncTransportError: If the remote store could not be written
        """
        key = remote_key(identity)
        request_id = self._next_request_id(identity, PUSH)
        async with self._lock_for(identity):
            if not self._is_latest(identity, PUSH, request_id):
                logger.debug("Skipping superseded push #%d for %s", request_id, identity)
                return SyncResult(identity, PUSH, request_id, applied=False, stale=True)

            updated_at = datetime.now(UTC)
            snapshot = replace(self.store.snapshot(), updated_at=updated_at)
            await self.remote.store(key, snapshot_to_dict(snapshot))

        logger.info(
            "Pushed %d movements, %d documents for %s",
            len(snapshot.movements),
            len(snapshot.documents),
            identity,
        )
        return SyncResult(identity, PUSH, request_id, applied=True, updated_at=updated_at)

    async def pull(self, identity: str) -> SyncResult:
        """Replace all local collections with the remote snapshot.

        Local saves requested while the pull is in flight are held back and
        superseded by the adopted snapshot.

        Raises:
            SyncNotFound: If there is no remote snapshot (local state untouched)
            SyncTransportError: On transport failure or malformed payload
                (local state untouched)
        """
        key = remote_key(identity)
        request_id = self._next_request_id(identity, PULL)
        async with self._lock_for(identity):
            with self.store.hold_writes():
                payload = await self.remote.fetch(key)
                if payload is None:
                    logger.info("No remote snapshot for %s", identity)
                    raise SyncNotFound(identity)

                try:
                    snapshot = snapshot_from_dict(payload)
                except (ValueError, TypeError) as e:
                    raise SyncTransportError(f"Remote snapshot for {identity} is malformed: {e}") from e

                if not self._is_latest(identity, PULL, request_id):
                    logger.info("Discarding stale pull #%d for %s", request_id, identity)
                    return SyncResult(
                        identity,
                        PULL,
                        request_id,
                        applied=False,
                        updated_at=snapshot.updated_at,
                        stale=True,
                    )

                self.store.replace_all(snapshot)

        logger.info(
            "Pulled %d movements, %d documents for %s",
            len(snapshot.movements),
            len(snapshot.documents),
            identity,
        )
        return SyncResult(
            identity, PULL, request_id, applied=True, updated_at=snapshot.updated_at
        )

    async def sign_in(self, identity: str) -> SyncResult:
        """Start a session and adopt the identity's remote state.

        A missing remote snapshot is reported in the result, not raised.

        Raises:
            SyncTransportError: If the pull failed (the session stays active)
        """
        remote_key(identity)
        self._active_identity = identity
        logger.info("Signed in as %s", identity)
        try:
            return await self.pull(identity)
        except SyncNotFound:
            return SyncResult(
                identity,
                PULL,
                self._request_ids[(identity, PULL)],
                applied=False,
                not_found=True,
            )

    def sign_out(self) -> None:
        """End the session; later changes are no longer pushed."""
        if self._active_identity is not None:
            logger.info("Signed out %s", self._active_identity)
        self._active_identity = None

    def schedule_push(self) -> Optional[asyncio.Task]:
        """Push the active session's state in the background.

        Returns:
            The push task, or None without a session or running event loop
        """
        identity = self._active_identity
        if identity is None:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; push for %s not scheduled", identity)
            return None

        task = loop.create_task(self._background_push(identity))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _background_push(self, identity: str) -> Optional[SyncResult]:
        try:
            return await self.push(identity)
        except SyncError as e:
            logger.error("Background push for %s failed: %s", identity, e)
            return None

    async def wait_idle(self) -> None:
        """Wait for scheduled background pushes to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def close(self) -> None:
        """Finish background work and close the remote store."""
        await self.wait_idle()
        await self.remote.close()
