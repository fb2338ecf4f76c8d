"""Run local changes inside a sync session when a remote is configured."""

import asyncio
import logging
from typing import Callable, TypeVar

import click
from cashbook.domain.errors import SyncTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_change(ctx, change: Callable[[], T]) -> T:
    """Apply a change to the ledger and sync it.

    Without a remote store or an identity the change simply runs. Otherwise
    the command signs in first, which adopts the remote state, then applies
    the change and waits for the push it schedules.

    Args:
        ctx: Click context holding the app and settings
        change: Function performing the change (may raise DomainError)

    Returns:
        Whatever the change returned
    """
    app = ctx.obj["app"]
    identity = (ctx.obj["settings"].identity or "").strip()
    if app.sync is None or not identity:
        return change()
    return asyncio.run(_change_in_session(app, identity, change))


async def _change_in_session(app, identity: str, change: Callable[[], T]) -> T:
    try:
        try:
            result = await app.sync.sign_in(identity)
        except SyncTransportError as e:
            click.echo(f"Warning: Could not pull remote data for {identity}: {e}", err=True)
        else:
            if result.not_found:
                logger.info("No remote snapshot for %s; local data kept", identity)
        return change()
    finally:
        await app.sync.close()
