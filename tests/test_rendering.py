"""Tests for the document render model."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from cashbook.domain.entities import BusinessConfig, Client
from cashbook.domain.rendering import build_render_model


def test_render_model(document_service, invoice_input):
    document = document_service.save(
        replace(
            invoice_input,
            due_date=date(2024, 4, 10),
            client=Client(name="ACME", email="billing@acme.test"),
            notes="Thank you",
        )
    )
    config = BusinessConfig(
        business_name="Nexus Repairs",
        currency="€",
        phone="555-0100",
        logo_data="aGVsbG8=",
        logo_ratio=2.5,
    )

    model = build_render_model(document, config)

    assert model.header.business_name == "Nexus Repairs"
    assert model.header.logo == "aGVsbG8="
    assert model.header.logo_aspect_ratio == 2.5
    assert model.document_meta.kind == "invoice"
    assert model.document_meta.number == "F-001"
    assert model.document_meta.date == "2024-03-10"
    assert model.document_meta.due_date == "2024-04-10"
    assert model.client.email == "billing@acme.test"
    assert len(model.lines) == 1
    assert model.lines[0].line_total == Decimal("100.00")
    assert model.subtotal == Decimal("100.00")
    assert model.tax_amount == Decimal("10.00")
    assert model.total == Decimal("110.00")
    assert model.notes == "Thank you"
    assert model.currency == "€"


def test_render_model_recomputes_totals(document_service, invoice_input):
    """Stale stored totals never reach the render model."""
    document = document_service.save(invoice_input)
    stale = replace(document, subtotal=Decimal("1"), tax_amount=Decimal("1"), total=Decimal("2"))

    model = build_render_model(stale, BusinessConfig())

    assert model.total == Decimal("110.00")


def test_render_model_to_dict(document_service, invoice_input):
    document = document_service.save(invoice_input)
    data = build_render_model(document, BusinessConfig()).to_dict()

    assert data["header"]["businessName"] == "My Business"
    assert data["header"]["logoAspectRatio"] == 1.0
    assert data["documentMeta"] == {
        "kind": "invoice",
        "number": "F-001",
        "date": "2024-03-10",
        "dueDate": None,
    }
    assert data["client"]["name"] == "ACME"
    assert data["lines"] == [
        {"description": "Widget", "quantity": "2", "unitPrice": "50", "lineTotal": "100.00"}
    ]
    assert data["total"] == "110.00"
    assert data["currency"] == "$"
