"""Tests for the document service and line-item helpers."""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from cashbook.domain.document import (
    DocumentService,
    items_to_text,
    parse_items_from_text,
    recalc_totals,
)
from cashbook.domain.entities import Client, DocumentKind, LineItem, MovementKind
from cashbook.domain.errors import NotFoundError, ValidationError
from cashbook.domain.store import EntityStore


class TestRecalcTotals:
    """Tests for document total computation."""

    def test_document_rate(self, document_service, invoice_input):
        document = document_service.create_or_update(invoice_input)
        assert document.subtotal == Decimal("100.00")
        assert document.tax_amount == Decimal("10.00")
        assert document.total == Decimal("110.00")

    def test_line_rate_overrides_document_rate(self, document_service, invoice_input):
        items = invoice_input.items + (
            LineItem(
                description="Exempt",
                quantity=Decimal("1"),
                unit_price=Decimal("20"),
                tax_percent=Decimal("0"),
            ),
        )
        document = document_service.create_or_update(replace(invoice_input, items=items))
        assert document.subtotal == Decimal("120.00")
        assert document.tax_amount == Decimal("10.00")
        assert document.total == Decimal("130.00")

    def test_rounded_after_summing(self, document_service, invoice_input):
        """Tax is rounded once over the sum, not per line."""
        items = tuple(
            LineItem(description=f"Item {n}", quantity=Decimal("1"), unit_price=Decimal("0.05"))
            for n in range(3)
        )
        document = document_service.create_or_update(replace(invoice_input, items=items))
        # 3 * 0.05 * 10% = 0.015 -> 0.02
        assert document.tax_amount == Decimal("0.02")
        assert document.total == Decimal("0.17")

    def test_recalc_is_idempotent(self, document_service, invoice_input):
        document = document_service.create_or_update(invoice_input)
        assert recalc_totals(document) == document
        assert recalc_totals(recalc_totals(document)) == document


class TestValidation:
    """Tests for document validation."""

    @pytest.mark.parametrize(
        "changes, field",
        [
            ({"number": "  "}, "number"),
            ({"client": Client(name="")}, "client.name"),
            ({"items": ()}, "items"),
            ({"tax_percent": Decimal("-1")}, "taxPercent"),
        ],
    )
    def test_invalid_fields(self, document_service, invoice_input, changes, field):
        with pytest.raises(ValidationError) as exc_info:
            document_service.create_or_update(replace(invoice_input, **changes))
        assert exc_info.value.field == field

    def test_number_checked_first(self, document_service, invoice_input):
        with pytest.raises(ValidationError) as exc_info:
            document_service.create_or_update(
                replace(invoice_input, number="", client=Client(name=""), items=())
            )
        assert exc_info.value.field == "number"

    def test_blank_lines_are_dropped(self, document_service, invoice_input):
        blank = LineItem(description="", quantity=Decimal("0"), unit_price=Decimal("0"))
        document = document_service.create_or_update(
            replace(invoice_input, items=(blank,) + invoice_input.items + (blank,))
        )
        assert len(document.items) == 1

    def test_only_blank_lines(self, document_service, invoice_input):
        blank = LineItem(description=" ", quantity=Decimal("0"), unit_price=Decimal("0"))
        with pytest.raises(ValidationError) as exc_info:
            document_service.create_or_update(replace(invoice_input, items=(blank,)))
        assert exc_info.value.field == "items"

    @pytest.mark.parametrize(
        "item_changes, field",
        [
            ({"quantity": Decimal("-1")}, "items[0].quantity"),
            ({"unit_price": Decimal("-0.01")}, "items[0].unit_price"),
            ({"tax_percent": Decimal("-5")}, "items[0].tax_percent"),
        ],
    )
    def test_negative_line_values(self, document_service, invoice_input, item_changes, field):
        item = replace(invoice_input.items[0], **item_changes)
        with pytest.raises(ValidationError) as exc_info:
            document_service.create_or_update(replace(invoice_input, items=(item,)))
        assert exc_info.value.field == field

    def test_validation_failure_changes_nothing(self, document_service, store, invoice_input):
        with pytest.raises(ValidationError):
            document_service.save(replace(invoice_input, number=""))
        assert store.documents == ()
        assert store.movements == ()

    def test_duplicate_numbers_allowed_by_default(self, document_service, invoice_input):
        document_service.save(invoice_input)
        document_service.save(invoice_input)
        assert len(document_service.list_documents()) == 2

    def test_unique_numbers_option(self, store, invoice_input):
        service = DocumentService(store, require_unique_number=True)
        first = service.save(invoice_input)

        with pytest.raises(ValidationError) as exc_info:
            service.save(invoice_input)
        assert exc_info.value.field == "number"

        # Re-saving the same document keeps its number
        service.save(replace(invoice_input, id=first.id))


class TestDocumentService:
    """Tests for saving, listing, converting and deleting documents."""

    def test_save_new_invoice(self, document_service, store, invoice_input):
        document = document_service.save(invoice_input)

        assert document.id.startswith("doc-")
        assert document.number == "F-001"
        assert document.linked_movement_id is not None
        assert store.get_document(document.id) == document

    def test_save_persists(self, temp_db, document_service, invoice_input):
        document = document_service.save(invoice_input)

        reloaded = EntityStore(temp_db)
        reloaded.load()
        assert reloaded.get_document(document.id) == document
        assert len(reloaded.movements) == 1

    def test_update_keeps_identity(self, document_service, invoice_input):
        original = document_service.save(invoice_input)
        updated = document_service.save(
            replace(invoice_input, id=original.id, notes="Thanks", number=" F-002 ")
        )

        assert updated.id == original.id
        assert updated.created_at == original.created_at
        assert updated.linked_movement_id == original.linked_movement_id
        assert updated.number == "F-002"
        assert updated.notes == "Thanks"
        assert len(document_service.list_documents()) == 1

    def test_update_unknown_document(self, document_service, invoice_input):
        with pytest.raises(NotFoundError):
            document_service.save(replace(invoice_input, id="doc-missing"))

    def test_on_change_called(self, store, invoice_input):
        calls = []
        service = DocumentService(store, on_change=lambda: calls.append(1))
        document = service.save(invoice_input)
        service.delete(document.id)
        assert len(calls) == 2

    def test_list_documents_newest_first(self, document_service, invoice_input, quote_input):
        invoice = document_service.save(invoice_input)
        quote = document_service.save(quote_input)

        assert [d.id for d in document_service.list_documents()] == [quote.id, invoice.id]
        assert document_service.list_documents(DocumentKind.INVOICE) == [invoice]
        assert document_service.list_documents(DocumentKind.QUOTE) == [quote]

    def test_quote_has_no_movement(self, document_service, store, quote_input):
        quote = document_service.save(quote_input)
        assert quote.linked_movement_id is None
        assert store.movements == ()

    def test_delete_invoice_cascades(self, document_service, store, invoice_input):
        document = document_service.save(invoice_input)
        deleted = document_service.delete(document.id)

        assert deleted.id == document.id
        assert store.documents == ()
        assert store.movements == ()

    def test_delete_quote(self, document_service, store, quote_input, movement_service):
        movement_service.create_movement(
            kind=MovementKind.INCOME,
            description="Sale",
            category="Sales",
            method="Cash",
            amount=Decimal("5"),
        )
        quote = document_service.save(quote_input)
        document_service.delete(quote.id)
        assert store.documents == ()
        assert len(store.movements) == 1

    def test_delete_unknown(self, document_service):
        with pytest.raises(NotFoundError):
            document_service.delete("doc-missing")

    def test_convert_quote_to_invoice(self, document_service, store, quote_input):
        quote = document_service.save(quote_input)
        invoice = document_service.convert_to_invoice(quote.id)

        assert invoice.id == quote.id
        assert invoice.kind == DocumentKind.INVOICE
        assert len(store.movements) == 1
        assert store.movements[0].amount == invoice.total == Decimal("110.00")

    def test_convert_invoice_raises(self, document_service, invoice_input):
        invoice = document_service.save(invoice_input)
        with pytest.raises(ValidationError) as exc_info:
            document_service.convert_to_invoice(invoice.id)
        assert exc_info.value.field == "kind"

    def test_invoice_back_to_quote_drops_movement(self, document_service, store, invoice_input):
        invoice = document_service.save(invoice_input)
        quote = document_service.save(
            replace(invoice_input, id=invoice.id, kind=DocumentKind.QUOTE)
        )

        assert quote.linked_movement_id is None
        assert store.movements == ()

    def test_reproject_all(self, document_service, store, invoice_input, quote_input):
        invoice = document_service.save(invoice_input)
        document_service.save(quote_input)
        store.remove_movement(invoice.linked_movement_id)

        assert document_service.reproject_all() == 1
        assert len(store.movements) == 1
        assert store.movements[0].linked_document_id == invoice.id


class TestItemText:
    """Tests for bulk line entry."""

    def test_parse_items(self):
        items = parse_items_from_text("2 | Widget | 5\n\nbad line\n0 | Free | 10")
        assert items == [
            LineItem(description="Widget", quantity=Decimal("2"), unit_price=Decimal("5"))
        ]

    def test_parse_items_with_tax(self):
        items = parse_items_from_text("1 | Service | 12,5 | 21%\n3|Bolt|0.10|")
        assert items == [
            LineItem(
                description="Service",
                quantity=Decimal("1"),
                unit_price=Decimal("12.5"),
                tax_percent=Decimal("21"),
            ),
            LineItem(description="Bolt", quantity=Decimal("3"), unit_price=Decimal("0.10")),
        ]

    def test_parse_items_bad_numbers_dropped(self):
        assert parse_items_from_text("x | Widget | 5\n2 | Widget | y") == []

    def test_parse_items_empty(self):
        assert parse_items_from_text("") == []
        assert parse_items_from_text(None) == []

    def test_items_to_text(self):
        items = [
            LineItem(description="Widget", quantity=Decimal("2"), unit_price=Decimal("5")),
            LineItem(
                description="Service",
                quantity=Decimal("1"),
                unit_price=Decimal("12.5"),
                tax_percent=Decimal("21"),
            ),
        ]
        text = items_to_text(items)
        assert text == "2 | Widget | 5\n1 | Service | 12.5 | 21"
        assert parse_items_from_text(text) == items
