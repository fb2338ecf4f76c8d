"""CLI helpers for resolving movement and document IDs."""

from __future__ import annotations

import click
from cashbook.domain.errors import DomainError
from cashbook.domain.store import EntityStore
from cashbook.cli.error_handling import handle_domain_error
from cashbook.utils.id_resolver import resolve_id


def resolve_movement_or_exit(ctx: click.Context, store: EntityStore, given: str) -> str:
    """Resolve a movement ID or unique prefix, or exit with a CLI error."""
    try:
        return resolve_id((m.id for m in store.movements), given, "Movement")
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_document_or_exit(ctx: click.Context, store: EntityStore, given: str) -> str:
    """Resolve a document ID or unique prefix, or exit with a CLI error.

    Document numbers are accepted too when they identify a single document.
    """
    matches = [d.id for d in store.documents if d.number == given]
    if len(matches) == 1:
        return matches[0]
    try:
        return resolve_id((d.id for d in store.documents), given, "Document")
    except DomainError as exc:
        handle_domain_error(ctx, exc)
