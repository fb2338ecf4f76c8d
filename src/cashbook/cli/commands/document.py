"""Invoice and quote commands."""

import json
from datetime import date

import click
from cashbook.domain.document import items_to_text, parse_items_from_text
from cashbook.domain.entities import Client, DocumentInput, DocumentKind
from cashbook.domain.errors import DomainError
from cashbook.cli.error_handling import handle_domain_error
from cashbook.cli.id_resolution import resolve_document_or_exit
from cashbook.cli.sync_session import run_change
from cashbook.utils.amount_parser import format_money, parse_amount
from cashbook.utils.date_parser import parse_date

KIND_CHOICE = click.Choice([kind.value for kind in DocumentKind])


def _parse_date_or_exit(ctx, value: str, label: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def document_group():
    """Manage invoices and quotes."""
    pass


@document_group.command("save")
@click.option("--id", "document_id", help="Existing document ID or number to update")
@click.option("--kind", type=KIND_CHOICE, default=DocumentKind.INVOICE.value, show_default=True)
@click.option("--number", required=True, help="Document number")
@click.option("--client", "client_name", required=True, help="Client name")
@click.option("--client-address", default="", help="Client address")
@click.option("--client-email", default="", help="Client email")
@click.option("--client-phone", default="", help="Client phone")
@click.option("--date", "date_str", default="today", help="Document date (defaults to today)")
@click.option("--due-date", help="Due date")
@click.option(
    "--item",
    "item_lines",
    multiple=True,
    help="Line as 'qty | description | price [| tax%]' (repeatable)",
)
@click.option(
    "--items-file",
    type=click.File("r"),
    help="File with one 'qty | description | price [| tax%]' line per item",
)
@click.option("--tax", default="0", help="Document tax percent used by lines without their own rate")
@click.option("--method", default="Cash", show_default=True, help="Payment method")
@click.option("--notes", default="", help="Notes printed on the document")
@click.pass_context
def save_document(
    ctx,
    document_id: str | None,
    kind: str,
    number: str,
    client_name: str,
    client_address: str,
    client_email: str,
    client_phone: str,
    date_str: str,
    due_date: str | None,
    item_lines: tuple[str, ...],
    items_file,
    tax: str,
    method: str,
    notes: str,
):
    """Create or update an invoice or quote.

    Saving an invoice also creates or refreshes its income movement.

    Examples:
        cashbook document save --number F-001 --client "ACME" --item "2 | Widget | 50" --tax 10
        cashbook document save --id F-001 --number F-001 --client "ACME" --item "2 | Widget | 60" --tax 10
        cashbook document save --kind quote --number Q-7 --client "ACME" --items-file items.txt
    """
    app = ctx.obj["app"]

    resolved_id = None
    if document_id:
        resolved_id = resolve_document_or_exit(ctx, app.store, document_id)

    text = "\n".join(item_lines)
    if items_file is not None:
        text = "\n".join([text, items_file.read()])

    try:
        tax_percent = parse_amount(tax)
    except ValueError as e:
        click.echo(f"Error: Invalid tax percent: {e}", err=True)
        ctx.exit(1)

    document_input = DocumentInput(
        id=resolved_id,
        kind=DocumentKind(kind),
        number=number,
        date=_parse_date_or_exit(ctx, date_str, "date"),
        due_date=_parse_date_or_exit(ctx, due_date, "due date") if due_date else None,
        client=Client(
            name=client_name,
            address=client_address,
            email=client_email,
            phone=client_phone,
        ),
        items=tuple(parse_items_from_text(text)),
        tax_percent=tax_percent,
        notes=notes,
        method=method,
    )

    try:
        document = run_change(ctx, lambda: app.documents.save(document_input))
    except DomainError as e:
        handle_domain_error(ctx, e)

    currency = app.store.config.currency
    click.echo(f"Saved {document.kind.value} {document.number} ({document.id})")
    click.echo(f"  Subtotal: {format_money(document.subtotal, currency)}")
    click.echo(f"  Tax: {format_money(document.tax_amount, currency)}")
    click.echo(f"  Total: {format_money(document.total, currency)}")
    if document.linked_movement_id:
        click.echo(f"  Ledger movement: {document.linked_movement_id}")


@document_group.command("list")
@click.option("--kind", type=KIND_CHOICE, help="Only show invoices or quotes")
@click.pass_context
def list_documents(ctx, kind: str | None):
    """List documents, newest first."""
    app = ctx.obj["app"]
    documents = app.documents.list_documents(DocumentKind(kind) if kind else None)

    if not documents:
        click.echo("No documents found.")
        return

    currency = app.store.config.currency
    click.echo(f"\nFound {len(documents)} document(s):")
    click.echo("-" * 90)
    click.echo(f"{'ID':<18} {'Kind':<8} {'Number':<12} {'Date':<12} {'Client':<24} {'Total':>12}")
    click.echo("-" * 90)
    for d in documents:
        click.echo(
            f"{d.id:<18} {d.kind.value:<8} {d.number[:12]:<12} {str(d.date):<12} "
            f"{d.client.name[:24]:<24} {format_money(d.total, currency):>12}"
        )


@document_group.command("show")
@click.argument("document_id")
@click.option("--json", "as_json", is_flag=True, help="Print the render model as JSON")
@click.pass_context
def show_document(ctx, document_id: str, as_json: bool):
    """Show a document (ID, unique ID prefix or number)."""
    app = ctx.obj["app"]
    resolved = resolve_document_or_exit(ctx, app.store, document_id)
    model = app.render_document(resolved)

    if as_json:
        click.echo(json.dumps(model.to_dict(), indent=2, ensure_ascii=False))
        return

    document = app.documents.require_document(resolved)
    currency = model.currency
    click.echo(f"{model.header.business_name}")
    click.echo(f"{model.document_meta.kind.upper()} #{model.document_meta.number}  Date: {model.document_meta.date}")
    if model.document_meta.due_date:
        click.echo(f"Due: {model.document_meta.due_date}")
    click.echo(f"Client: {model.client.name}")
    click.echo("-" * 70)
    for line in model.lines:
        click.echo(
            f"{str(line.quantity):>6}  {line.description[:36]:<36} "
            f"{format_money(line.unit_price, currency):>12} {format_money(line.line_total, currency):>12}"
        )
    click.echo("-" * 70)
    click.echo(f"{'Subtotal:':>58} {format_money(model.subtotal, currency):>11}")
    click.echo(f"{'Tax:':>58} {format_money(model.tax_amount, currency):>11}")
    click.echo(f"{'TOTAL:':>58} {format_money(model.total, currency):>11}")
    if model.notes:
        click.echo(f"Notes: {model.notes}")
    click.echo()
    click.echo("Items (editable form):")
    click.echo(items_to_text(document.items))


@document_group.command("delete")
@click.argument("document_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_document(ctx, document_id: str, yes: bool):
    """Delete a document; an invoice's income movement is deleted too."""
    app = ctx.obj["app"]
    resolved = resolve_document_or_exit(ctx, app.store, document_id)

    if not yes and not click.confirm(f"Are you sure you want to delete document {resolved}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        document = run_change(ctx, lambda: app.documents.delete(resolved))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted {document.kind.value} {document.number}")


@document_group.command("convert")
@click.argument("document_id")
@click.pass_context
def convert_document(ctx, document_id: str):
    """Convert a quote into an invoice."""
    app = ctx.obj["app"]
    resolved = resolve_document_or_exit(ctx, app.store, document_id)
    try:
        document = run_change(ctx, lambda: app.documents.convert_to_invoice(resolved))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Converted {document.number} to invoice (movement {document.linked_movement_id})")


@document_group.command("reproject")
@click.pass_context
def reproject_documents(ctx):
    """Rebuild the income movement of every invoice."""
    app = ctx.obj["app"]
    count = run_change(ctx, app.documents.reproject_all)
    click.echo(f"Re-projected {count} invoice(s)")


def register_commands(cli: click.Group) -> None:
    """Register document commands with main CLI."""
    cli.add_command(document_group, name="document")
