"""CSV export command."""

import click
from cashbook.domain.csv_export import export_movements, movements_to_csv
from cashbook.domain.entities import MovementKind


@click.command("export")
@click.argument("output", type=click.Path(dir_okay=False, writable=True), required=False)
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in MovementKind]),
    help="Only export income or expense movements",
)
@click.pass_context
def export_csv(ctx, output: str | None, kind: str | None):
    """Export movements as CSV (to OUTPUT, or stdout when omitted).

    Examples:
        cashbook export movements.csv
        cashbook export income.csv --kind income
    """
    app = ctx.obj["app"]
    movement_kind = MovementKind(kind) if kind else None

    if output is None:
        click.echo(movements_to_csv(app.store.movements, movement_kind))
        return

    count = export_movements(output, app.store.movements, movement_kind)
    click.echo(f"Exported {count} movement(s) to {output}")


def register_commands(cli: click.Group) -> None:
    """Register export command with main CLI."""
    cli.add_command(export_csv)
