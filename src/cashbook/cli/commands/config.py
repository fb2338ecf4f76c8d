"""Business configuration commands."""

import click
from cashbook.domain.errors import DomainError
from cashbook.cli.error_handling import handle_domain_error
from cashbook.cli.sync_session import run_change


@click.group()
def config_group():
    """Manage business details shown on documents."""
    pass


@config_group.command("show")
@click.pass_context
def show_config(ctx):
    """Show the business configuration."""
    config = ctx.obj["app"].config.get_config()
    click.echo(f"Business name: {config.business_name}")
    click.echo(f"Currency: {config.currency}")
    click.echo(f"Address: {config.address}")
    click.echo(f"Phone: {config.phone}")
    click.echo(f"Email: {config.email}")
    if config.logo_data:
        click.echo(f"Logo: set (aspect ratio {config.logo_ratio:.3f})")
    else:
        click.echo("Logo: not set")


@config_group.command("set")
@click.option("--name", "business_name", help="Business name")
@click.option("--currency", help="Currency symbol")
@click.option("--address", help="Business address")
@click.option("--phone", help="Business phone")
@click.option("--email", help="Business email")
@click.pass_context
def set_config(ctx, business_name, currency, address, phone, email):
    """Update business details. Only the given options change.

    Examples:
        cashbook config set --name "Nexus Repairs" --currency "€"
    """
    service = ctx.obj["app"].config
    config = run_change(
        ctx,
        lambda: service.update(
            business_name=business_name,
            currency=currency,
            address=address,
            phone=phone,
            email=email,
        ),
    )
    click.echo(f"Saved configuration for {config.business_name}")


@config_group.command("logo")
@click.argument("image", type=click.File("rb"))
@click.option("--width", type=int, required=True, help="Image width in pixels")
@click.option("--height", type=int, required=True, help="Image height in pixels")
@click.pass_context
def set_logo(ctx, image, width: int, height: int):
    """Store a logo image used on documents."""
    try:
        data = image.read()
        service = ctx.obj["app"].config
        config = run_change(ctx, lambda: service.set_logo(data, width, height))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Logo saved (aspect ratio {config.logo_ratio:.3f})")


@config_group.command("clear-logo")
@click.pass_context
def clear_logo(ctx):
    """Remove the stored logo."""
    run_change(ctx, ctx.obj["app"].config.clear_logo)
    click.echo("Logo removed")


def register_commands(cli: click.Group) -> None:
    """Register config commands with main CLI."""
    cli.add_command(config_group, name="config")
