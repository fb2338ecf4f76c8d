"""Movement commands."""

import click
from cashbook.domain.entities import MovementKind
from cashbook.domain.errors import DomainError
from cashbook.cli.error_handling import handle_domain_error
from cashbook.cli.id_resolution import resolve_movement_or_exit
from cashbook.cli.sync_session import run_change
from cashbook.utils.amount_parser import format_money, parse_amount
from cashbook.utils.date_parser import parse_date

KIND_CHOICE = click.Choice([kind.value for kind in MovementKind])


@click.group()
def movement_group():
    """Manage income and expense movements."""
    pass


@movement_group.command("add")
@click.argument("kind", type=KIND_CHOICE)
@click.option("--amount", required=True, help="Amount (e.g., 123.45)")
@click.option("--description", required=True, help="Movement description")
@click.option("--category", required=True, help="Category label")
@click.option("--method", required=True, help="Payment method (e.g., Cash, Card, Transfer)")
@click.option(
    "--date",
    "date_str",
    help="Movement date (YYYY-MM-DD or relative like 'today', 'yesterday'); defaults to today",
)
@click.pass_context
def add_movement(
    ctx,
    kind: str,
    amount: str,
    description: str,
    category: str,
    method: str,
    date_str: str | None,
):
    """Record an income or expense movement.

    Examples:
        cashbook movement add income --amount 100 --description "Sale" --category Sales --method Cash
        cashbook movement add expense --amount 40 --description "Paper" --category Office --method Card --date yesterday
    """
    app = ctx.obj["app"]

    movement_date = None
    if date_str:
        try:
            movement_date = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        movement = run_change(
            ctx,
            lambda: app.movements.create_movement(
                kind=MovementKind(kind),
                description=description,
                category=category,
                method=method,
                amount=value,
                movement_date=movement_date,
            ),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    currency = app.store.config.currency
    click.echo(f"Created {movement.kind.value} {movement.id}")
    click.echo(f"  Date: {movement.date}")
    click.echo(f"  Amount: {format_money(movement.amount, currency)}")
    click.echo(f"  Description: {movement.description}")


@movement_group.command("list")
@click.option("--kind", type=KIND_CHOICE, help="Only show income or expense")
@click.option("--limit", type=int, default=None, help="Show only the newest N movements")
@click.pass_context
def list_movements(ctx, kind: str | None, limit: int | None):
    """List movements.

    Without --limit all movements are shown in entry order; with --limit the
    newest ones are shown first.
    """
    app = ctx.obj["app"]
    movement_kind = MovementKind(kind) if kind else None

    if limit is None:
        movements = app.movements.list_movements(movement_kind)
    else:
        movements = app.movements.recent(movement_kind, limit=limit)

    if not movements:
        click.echo("No movements found.")
        return

    currency = app.store.config.currency
    click.echo(f"\nFound {len(movements)} movement(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<18} {'Kind':<8} {'Date':<12} {'Amount':>12}  {'Category':<20} {'Method':<12} {'Description':<25}"
    )
    click.echo("-" * 110)
    for m in movements:
        click.echo(
            f"{m.id:<18} {m.kind.value:<8} {str(m.date or ''):<12} "
            f"{format_money(m.amount, currency):>12}  {m.category[:20]:<20} "
            f"{m.method[:12]:<12} {m.description[:25]:<25}"
        )


@movement_group.command("delete")
@click.argument("movement_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_movement(ctx, movement_id: str, yes: bool) -> None:
    """Delete a movement (full ID or unique prefix).

    Examples:
        cashbook movement delete mov-3f2a
    """
    app = ctx.obj["app"]
    resolved = resolve_movement_or_exit(ctx, app.store, movement_id)

    if not yes and not click.confirm(f"Are you sure you want to delete movement {resolved}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        run_change(ctx, lambda: app.movements.delete_movement(resolved))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted movement {resolved}")


def register_commands(cli: click.Group) -> None:
    """Register movement commands with main CLI."""
    cli.add_command(movement_group, name="movement")
