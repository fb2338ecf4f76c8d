"""Main CLI entry point."""

import click
from cashbook.app import CashbookApp
from cashbook.logging import setup_logging
from cashbook.settings import Settings

# Import and register all commands at module level
from cashbook.cli.commands import (
    movement,
    document,
    kpi,
    export,
    config,
    sync,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CASHBOOK_DB_PATH environment variable)",
    envvar="CASHBOOK_DB_PATH",
)
@click.option(
    "--remote-url",
    help="Remote store URL: http(s) base URL or SQLAlchemy database URL",
    envvar="CASHBOOK_REMOTE_URL",
)
@click.option(
    "--identity",
    help="Identity that keys the remote snapshot",
    envvar="CASHBOOK_IDENTITY",
)
@click.pass_context
def cli(ctx, db_path: str | None, remote_url: str | None, identity: str | None):
    """Cashbook - Small business cash ledger.

    Record income and expenses, issue invoices and quotes, check the
    dashboard figures and sync everything to a remote store.
    """
    ctx.ensure_object(dict)

    # Open the ledger only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        env = Settings.from_env()
        settings = Settings(
            db_path=db_path,
            remote_url=remote_url,
            remote_token=env.remote_token,
            identity=identity,
            unique_document_numbers=env.unique_document_numbers,
        )
        app = CashbookApp.from_settings(settings).open()
        ctx.obj["app"] = app
        ctx.obj["settings"] = settings
        ctx.call_on_close(app.close)


# Register all commands
movement.register_commands(cli)
document.register_commands(cli)
kpi.register_commands(cli)
export.register_commands(cli)
config.register_commands(cli)
sync.register_commands(cli)


def main():
    """Main entry point for CLI."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, log_file=settings.log_file)
    cli()


if __name__ == "__main__":
    main()
