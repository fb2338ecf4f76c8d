"""Dashboard KPI command."""

import click
from cashbook.utils.amount_parser import format_money
from cashbook.utils.date_parser import parse_date


@click.command("kpi")
@click.option("--date", "date_str", help="Reference date (defaults to today)")
@click.pass_context
def show_kpis(ctx, date_str: str | None):
    """Show today's and this month's income, expenses and balance.

    Examples:
        cashbook kpi
        cashbook kpi --date 2024-03-01
    """
    app = ctx.obj["app"]

    ref_date = None
    if date_str:
        try:
            ref_date = parse_date(date_str)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    kpis = app.kpis(ref_date)
    currency = app.store.config.currency

    def money(value):
        return format_money(value, currency)

    click.echo(f"Dashboard for {kpis.ref_date}")
    click.echo("-" * 50)
    click.echo(f"{'':<12} {'Day':>17} {'Month':>17}")
    click.echo(f"{'Income':<12} {money(kpis.income_day):>17} {money(kpis.income_month):>17}")
    click.echo(f"{'Expenses':<12} {money(kpis.expense_day):>17} {money(kpis.expense_month):>17}")
    click.echo(f"{'Balance':<12} {money(kpis.balance_day):>17} {money(kpis.balance_month):>17}")
    click.echo("-" * 50)
    click.echo(f"Movements this month: {kpis.movements_month}")

    last = kpis.last_movement
    if last is None:
        click.echo("No recent movements")
    else:
        click.echo(f"Last movement: {last.kind.value} of {money(last.amount)} on {last.date or '-'}")


def register_commands(cli: click.Group) -> None:
    """Register KPI command with main CLI."""
    cli.add_command(show_kpis)
