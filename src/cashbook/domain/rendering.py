"""Render model handed to document layout collaborators (e.g. PDF writers)."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from cashbook.domain.entities import BusinessConfig, Client, Document
from cashbook.domain.document import recalc_totals
from cashbook.utils.amount_parser import round_money
from cashbook.utils.date_parser import format_iso_date


@dataclass(frozen=True)
class RenderHeader:
    business_name: str
    address: str
    phone: str
    email: str
    logo: str
    logo_aspect_ratio: float


@dataclass(frozen=True)
class RenderMeta:
    kind: str
    number: str
    date: str
    due_date: Optional[str]


@dataclass(frozen=True)
class RenderLine:
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class DocumentRenderModel:
    """Everything a layout collaborator needs to draw a document."""

    header: RenderHeader
    document_meta: RenderMeta
    client: Client
    lines: tuple[RenderLine, ...]
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: str
    currency: str

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping consumed by non-Python renderers."""
        return {
            "header": {
                "businessName": self.header.business_name,
                "address": self.header.address,
                "phone": self.header.phone,
                "email": self.header.email,
                "logo": self.header.logo,
                "logoAspectRatio": self.header.logo_aspect_ratio,
            },
            "documentMeta": {
                "kind": self.document_meta.kind,
                "number": self.document_meta.number,
                "date": self.document_meta.date,
                "dueDate": self.document_meta.due_date,
            },
            "client": {
                "name": self.client.name,
                "address": self.client.address,
                "email": self.client.email,
                "phone": self.client.phone,
            },
            "lines": [
                {
                    "description": line.description,
                    "quantity": str(line.quantity),
                    "unitPrice": str(line.unit_price),
                    "lineTotal": str(line.line_total),
                }
                for line in self.lines
            ],
            "subtotal": str(self.subtotal),
            "taxAmount": str(self.tax_amount),
            "total": str(self.total),
            "notes": self.notes,
            "currency": self.currency,
        }


def build_render_model(document: Document, config: BusinessConfig) -> DocumentRenderModel:
    """Build the render model for a finalized document.

    Totals are recomputed so the model never disagrees with the lines.
    """
    document = recalc_totals(document)
    return DocumentRenderModel(
        header=RenderHeader(
            business_name=config.business_name,
            address=config.address,
            phone=config.phone,
            email=config.email,
            logo=config.logo_data,
            logo_aspect_ratio=config.logo_ratio or 1.0,
        ),
        document_meta=RenderMeta(
            kind=document.kind.value,
            number=document.number,
            date=format_iso_date(document.date) or "",
            due_date=format_iso_date(document.due_date),
        ),
        client=document.client,
        lines=tuple(
            RenderLine(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=round_money(item.line_total),
            )
            for item in document.items
        ),
        subtotal=document.subtotal,
        tax_amount=document.tax_amount,
        total=document.total,
        notes=document.notes,
        currency=config.currency,
    )
