"""Ledger projection of invoices into income movements."""

import logging
import uuid
from dataclasses import replace
from typing import Optional

from cashbook.domain.entities import Document, Movement, MovementKind, ProjectionState
from cashbook.domain.errors import ValidationError, quote_not_projectable
from cashbook.domain.store import EntityStore
from cashbook.utils.amount_parser import round_money

logger = logging.getLogger(__name__)

INVOICE_CATEGORY = "Invoicing"
DEFAULT_METHOD = "Other"


def new_movement_id() -> str:
    """Return a fresh movement ID."""
    return f"mov-{uuid.uuid4().hex[:12]}"


def projected_description(document: Document) -> str:
    """Return the movement description for a projected invoice."""
    return f"Invoice {document.number} – {document.client.name}"


class LedgerProjection:
    """Keeps exactly one income movement per invoice.

    The projected movement is a cached copy of the invoice total. Projection
    only changes the in-memory collections; the caller persists them.
    """

    def __init__(self, store: EntityStore):
        """Initialize the projection.

        Args:
            store: Entity store holding movements and documents
        """
        self.store = store

    def linked_movement(self, document: Document) -> Optional[Movement]:
        """Find the movement currently linked to a document.

        The movement is looked up by the document's ``linked_movement_id``
        first, then by back-reference.
        """
        movement = self.store.get_movement(document.linked_movement_id)
        if movement is not None and movement.linked_document_id == document.id:
            return movement
        return self.store.find_movement_by_document(document.id)

    def state(self, document: Document) -> ProjectionState:
        """Return whether the document currently has a projected movement."""
        if self.linked_movement(document) is None:
            return ProjectionState.UNLINKED
        return ProjectionState.LINKED

    def project(self, document: Document) -> tuple[Document, Movement]:
        """Create or refresh the income movement for an invoice.

        Args:
            document: Invoice with up-to-date totals

        Returns:
            Tuple of (document with ``linked_movement_id`` set, movement)

        Raises:
            ValidationError: If the document is a quote
        """
        if not document.is_invoice:
            raise ValidationError(quote_not_projectable(document.id), field="kind")

        existing = self.linked_movement(document)
        fields = dict(
            kind=MovementKind.INCOME,
            date=document.date,
            description=projected_description(document),
            category=INVOICE_CATEGORY,
            method=document.method or DEFAULT_METHOD,
            amount=round_money(document.total),
            linked_document_id=document.id,
        )

        if existing is None:
            if document.linked_movement_id is not None:
                logger.warning(
                    "Linked movement %s of document %s is gone; creating a new one",
                    document.linked_movement_id,
                    document.id,
                )
            movement = Movement(
                id=new_movement_id(),
                created_at=self.store.next_created_at(),
                **fields,
            )
            self.store.add_movement(movement)
            logger.info("Projected document %s to new movement %s", document.id, movement.id)
        else:
            movement = replace(existing, **fields)
            self.store.replace_movement(movement)
            logger.debug("Refreshed movement %s from document %s", movement.id, document.id)

        self._remove_extra_links(document, keep_id=movement.id)

        if document.linked_movement_id != movement.id:
            document = replace(document, linked_movement_id=movement.id)
        return document, movement

    def unproject(self, document: Document) -> Optional[Movement]:
        """Remove the movement linked to a document.

        Returns:
            The removed movement, or None if there was none
        """
        movement = self.linked_movement(document)
        if movement is None:
            logger.debug("Document %s has no linked movement to remove", document.id)
            return None
        self.store.remove_movement(movement.id)
        logger.info("Removed movement %s linked to document %s", movement.id, document.id)
        self._remove_extra_links(document, keep_id=None)
        return movement

    def _remove_extra_links(self, document: Document, keep_id: Optional[str]) -> None:
        for movement in self.store.movements:
            if movement.linked_document_id == document.id and movement.id != keep_id:
                self.store.remove_movement(movement.id)
                logger.warning(
                    "Removed extra movement %s linked to document %s", movement.id, document.id
                )
