"""Remote sync commands."""

import asyncio

import click
from cashbook.domain.errors import SyncError, SyncNotFound
from cashbook.cli.error_handling import handle_domain_error


def _require_sync(ctx):
    app = ctx.obj["app"]
    settings = ctx.obj["settings"]
    if app.sync is None:
        click.echo("Error: No remote store configured (use --remote-url or CASHBOOK_REMOTE_URL)", err=True)
        ctx.exit(1)
    if not settings.identity:
        click.echo("Error: No identity given (use --identity or CASHBOOK_IDENTITY)", err=True)
        ctx.exit(1)
    return app, settings.identity


async def _run(app, operation, identity):
    try:
        return await operation(identity)
    finally:
        await app.sync.close()


@click.group()
def sync_group():
    """Synchronize the ledger with the remote store."""
    pass


@sync_group.command("push")
@click.pass_context
def push(ctx):
    """Replace the remote snapshot with the local data."""
    app, identity = _require_sync(ctx)
    try:
        result = asyncio.run(_run(app, app.sync.push, identity))
    except SyncError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Pushed {len(app.store.movements)} movement(s) and "
        f"{len(app.store.documents)} document(s) for {identity} at {result.updated_at:%Y-%m-%d %H:%M:%S}"
    )


@sync_group.command("pull")
@click.pass_context
def pull(ctx):
    """Replace the local data with the remote snapshot."""
    app, identity = _require_sync(ctx)
    try:
        asyncio.run(_run(app, app.sync.pull, identity))
    except SyncNotFound:
        click.echo(f"No remote snapshot for {identity} yet; local data unchanged")
        return
    except SyncError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Pulled {len(app.store.movements)} movement(s) and "
        f"{len(app.store.documents)} document(s) for {identity}"
    )


def register_commands(cli: click.Group) -> None:
    """Register sync commands with main CLI."""
    cli.add_command(sync_group, name="sync")
