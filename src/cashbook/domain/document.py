"""Document (invoice/quote) domain service."""

import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional

from cashbook.domain.entities import Document, DocumentInput, DocumentKind, LineItem
from cashbook.domain.errors import (
    NotFoundError,
    ValidationError,
    already_invoice,
    document_not_found,
    duplicate_document_number,
    negative_value,
    required_field,
)
from cashbook.domain.projection import LedgerProjection
from cashbook.domain.store import EntityStore
from cashbook.utils.amount_parser import round_money, to_amount

logger = logging.getLogger(__name__)


def new_document_id() -> str:
    """Return a fresh document ID."""
    return f"doc-{uuid.uuid4().hex[:12]}"


def effective_tax_percent(item: LineItem, document_tax_percent: Decimal) -> Decimal:
    """Return the tax rate that applies to a line."""
    if item.tax_percent is None:
        return document_tax_percent
    return item.tax_percent


def recalc_totals(document: Document) -> Document:
    """Recompute subtotal, tax and total from the document's lines.

    Lines are summed in stored order and each total is rounded to cents
    afterwards, so calling this repeatedly yields the same document.
    """
    subtotal = Decimal("0")
    tax_amount = Decimal("0")
    for item in document.items:
        line_total = to_amount(item.quantity) * to_amount(item.unit_price)
        rate = to_amount(effective_tax_percent(item, document.tax_percent))
        subtotal += line_total
        tax_amount += line_total * rate / Decimal("100")
    subtotal = round_money(subtotal)
    tax_amount = round_money(tax_amount)
    return replace(
        document,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )


def parse_items_from_text(text: Optional[str]) -> list[LineItem]:
    """Parse bulk-entered lines of the form ``qty | description | price``.

    An optional fourth part sets the line's tax percent. Blank lines and
    lines with fewer than three parts are skipped. Unparseable quantities and
    prices count as zero, and lines whose quantity or price is zero are
    dropped without error.

    Examples:
        >>> parse_items_from_text("2 | Widget | 5")
        [LineItem(description='Widget', quantity=Decimal('2'), unit_price=Decimal('5'), tax_percent=None)]
    """
    items = []
    for line in str(text or "").splitlines():
        trimmed = line.strip()
        if not trimmed:
            continue
        parts = [part.strip() for part in trimmed.split("|")]
        if len(parts) < 3:
            continue
        quantity = to_amount(parts[0])
        description = parts[1]
        unit_price = to_amount(parts[2])
        if not quantity or not unit_price:
            continue
        tax_percent = None
        if len(parts) > 3 and parts[3]:
            tax_percent = to_amount(parts[3].rstrip("%"))
        items.append(
            LineItem(
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                tax_percent=tax_percent,
            )
        )
    return items


def items_to_text(items: tuple[LineItem, ...] | list[LineItem]) -> str:
    """Format lines back into the bulk-entry text form."""
    lines = []
    for item in items:
        line = f"{item.quantity} | {item.description} | {item.unit_price}"
        if item.tax_percent is not None:
            line += f" | {item.tax_percent}"
        lines.append(line)
    return "\n".join(lines)


class DocumentService:
    """Service for managing invoices and quotes."""

    def __init__(
        self,
        store: EntityStore,
        projection: Optional[LedgerProjection] = None,
        require_unique_number: bool = False,
        on_change: Optional[Callable[[], None]] = None,
    ):
        """Initialize document service.

        Args:
            store: Entity store instance
            projection: Ledger projection (created from the store if omitted)
            require_unique_number: Reject document numbers already in use
            on_change: Called after every persisted document change
        """
        self.store = store
        self.projection = projection or LedgerProjection(store)
        self.require_unique_number = require_unique_number
        self.on_change = on_change

    def validate(self, document_input: DocumentInput) -> tuple[LineItem, ...]:
        """Validate input and return the non-blank lines.

        Raises:
            ValidationError: Naming the first failing field
        """
        if not document_input.number.strip():
            raise ValidationError(required_field("Document number"), field="number")
        if not document_input.client.name.strip():
            raise ValidationError(required_field("Client name"), field="client.name")

        items = tuple(item for item in document_input.items if not item.is_blank())
        if not items:
            raise ValidationError("At least one line item is required", field="items")

        for index, item in enumerate(items):
            for attr, label in (
                ("quantity", "Quantity"),
                ("unit_price", "Unit price"),
                ("tax_percent", "Tax percent"),
            ):
                value = getattr(item, attr)
                if value is not None and value < 0:
                    raise ValidationError(
                        negative_value(f"{label} of item {index + 1}"),
                        field=f"items[{index}].{attr}",
                    )

        if document_input.tax_percent < 0:
            raise ValidationError(negative_value("Tax percent"), field="taxPercent")

        if self.require_unique_number:
            number = document_input.number.strip()
            for other in self.store.documents:
                if other.id != document_input.id and other.number == number:
                    raise ValidationError(
                        duplicate_document_number(number, other.id), field="number"
                    )

        return items

    def create_or_update(self, document_input: DocumentInput) -> Document:
        """Validate input and create or update the document in memory.

        Args:
            document_input: User-supplied document fields

        Returns:
            The document with recomputed totals

        Raises:
            ValidationError: If validation fails (nothing is changed)
            NotFoundError: If ``document_input.id`` names an unknown document
        """
        items = self.validate(document_input)

        existing = None
        if document_input.id is not None:
            existing = self.store.get_document(document_input.id)
            if existing is None:
                raise NotFoundError(document_not_found(document_input.id))

        document = Document(
            id=existing.id if existing else new_document_id(),
            kind=document_input.kind,
            number=document_input.number.strip(),
            date=document_input.date,
            due_date=document_input.due_date,
            client=replace(document_input.client, name=document_input.client.name.strip()),
            items=items,
            tax_percent=document_input.tax_percent,
            notes=document_input.notes.strip(),
            method=document_input.method,
            created_at=existing.created_at if existing else self.store.next_created_at(),
            linked_movement_id=existing.linked_movement_id if existing else None,
        )
        document = recalc_totals(document)

        if existing is None:
            self.store.add_document(document)
        else:
            self.store.replace_document(document)
        return document

    def save(self, document_input: DocumentInput) -> Document:
        """Create or update a document, refresh its ledger movement and persist.

        Returns:
            The saved document
        """
        previous = None
        if document_input.id is not None:
            previous = self.store.get_document(document_input.id)

        document = self.create_or_update(document_input)

        if document.is_invoice:
            document, _ = self.projection.project(document)
            self.store.replace_document(document)
        elif previous is not None and previous.is_invoice:
            # Turned back into a quote: drop its income movement
            self.projection.unproject(document)
            document = replace(document, linked_movement_id=None)
            self.store.replace_document(document)

        self._persist()
        logger.info("Saved %s %s (%s)", document.kind.value, document.number, document.id)
        return document

    def get_document(self, document_id: str) -> Optional[Document]:
        """Get document by ID."""
        return self.store.get_document(document_id)

    def require_document(self, document_id: str) -> Document:
        """Get document by ID.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        document = self.store.get_document(document_id)
        if document is None:
            raise NotFoundError(document_not_found(document_id))
        return document

    def list_documents(self, kind: Optional[DocumentKind] = None) -> list[Document]:
        """List documents newest first, optionally of one kind."""
        documents = [d for d in self.store.documents if kind is None or d.kind == kind]
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def delete(self, document_id: str) -> Document:
        """Delete a document and, for invoices, its linked movement.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        document = self.require_document(document_id)
        if document.is_invoice:
            self.projection.unproject(document)
        self.store.remove_document(document.id)
        self._persist()
        logger.info("Deleted %s %s (%s)", document.kind.value, document.number, document.id)
        return document

    def convert_to_invoice(self, document_id: str) -> Document:
        """Turn a quote into an invoice and project it once.

        Raises:
            NotFoundError: If the document doesn't exist
            ValidationError: If it is already an invoice
        """
        document = self.require_document(document_id)
        if document.is_invoice:
            raise ValidationError(already_invoice(document_id), field="kind")

        document = recalc_totals(replace(document, kind=DocumentKind.INVOICE))
        document, _ = self.projection.project(document)
        self.store.replace_document(document)
        self._persist()
        logger.info("Converted quote %s to invoice", document.id)
        return document

    def reproject_all(self) -> int:
        """Re-run the projection for every invoice.

        Returns:
            Number of invoices projected
        """
        count = 0
        for document in self.store.documents:
            if not document.is_invoice:
                continue
            document, _ = self.projection.project(recalc_totals(document))
            self.store.replace_document(document)
            count += 1
        self._persist()
        return count

    def _persist(self) -> None:
        self.store.save_documents()
        self.store.save_movements()
        if self.on_change is not None:
            self.on_change()
