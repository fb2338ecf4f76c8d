"""Mapper functions to convert between domain entities and persisted records.

Persisted records are flat JSON-compatible dicts with camelCase field names.
Decimals are written as strings; monetary totals are rounded to cents.
Readers are lenient about values (bad amounts become zero, bad dates become
None) but strict about structure: a record that is not a mapping or lacks an
``id`` raises ValueError.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from cashbook.domain import entities as domain
from cashbook.utils.amount_parser import round_money, to_amount
from cashbook.utils.date_parser import format_iso_date, parse_iso_date, parse_timestamp

# Labels written by earlier versions of the data file
LEGACY_MOVEMENT_KINDS = {
    "ingreso": domain.MovementKind.INCOME,
    "gasto": domain.MovementKind.EXPENSE,
}

LEGACY_DOCUMENT_KINDS = {
    "factura": domain.DocumentKind.INVOICE,
    "cotizacion": domain.DocumentKind.QUOTE,
}


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} record must be an object, got {type(data).__name__}")
    return data


def _require_id(data: Mapping[str, Any], what: str) -> str:
    value = data.get("id")
    if not isinstance(value, str) or not value:
        raise ValueError(f"{what} record has no id")
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _timestamp_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_amount(value)


def movement_kind_from_str(value: Any) -> domain.MovementKind:
    """Read a movement kind, accepting legacy labels."""
    text = _text(value).strip().lower()
    if text in LEGACY_MOVEMENT_KINDS:
        return LEGACY_MOVEMENT_KINDS[text]
    try:
        return domain.MovementKind(text)
    except ValueError:
        raise ValueError(f"Unknown movement kind '{value}'")


def document_kind_from_str(value: Any) -> domain.DocumentKind:
    """Read a document kind, accepting legacy labels. Missing means invoice."""
    text = _text(value).strip().lower()
    if not text:
        return domain.DocumentKind.INVOICE
    if text in LEGACY_DOCUMENT_KINDS:
        return LEGACY_DOCUMENT_KINDS[text]
    try:
        return domain.DocumentKind(text)
    except ValueError:
        raise ValueError(f"Unknown document kind '{value}'")


def movement_to_dict(movement: domain.Movement) -> dict[str, Any]:
    """Convert a Movement entity to its persisted form."""
    return {
        "id": movement.id,
        "kind": movement.kind.value,
        "date": format_iso_date(movement.date),
        "description": movement.description,
        "category": movement.category,
        "method": movement.method,
        "amount": str(round_money(movement.amount)),
        "createdAt": _timestamp_to_str(movement.created_at),
        "linkedDocumentId": movement.linked_document_id,
    }


def movement_from_dict(data: Any) -> domain.Movement:
    """Convert a persisted movement record to a Movement entity."""
    data = _require_mapping(data, "Movement")
    return domain.Movement(
        id=_require_id(data, "Movement"),
        kind=movement_kind_from_str(data.get("kind")),
        date=parse_iso_date(data.get("date")),
        description=_text(data.get("description")),
        category=_text(data.get("category")),
        method=_text(data.get("method")),
        amount=round_money(to_amount(data.get("amount"))),
        created_at=parse_timestamp(data.get("createdAt")),
        linked_document_id=_optional_text(data.get("linkedDocumentId")),
    )


def client_to_dict(client: domain.Client) -> dict[str, Any]:
    """Convert a Client value to its persisted form."""
    return {
        "name": client.name,
        "address": client.address,
        "email": client.email,
        "phone": client.phone,
    }


def client_from_dict(data: Any) -> domain.Client:
    """Convert a persisted client to a Client value.

    A bare string is read as the client name.
    """
    if isinstance(data, str):
        return domain.Client(name=data)
    if data is None:
        return domain.Client(name="")
    data = _require_mapping(data, "Client")
    return domain.Client(
        name=_text(data.get("name")),
        address=_text(data.get("address")),
        email=_text(data.get("email")),
        phone=_text(data.get("phone")),
    )


def line_item_to_dict(item: domain.LineItem) -> dict[str, Any]:
    """Convert a LineItem to its persisted form."""
    return {
        "description": item.description,
        "quantity": str(item.quantity),
        "unitPrice": str(item.unit_price),
        "taxPercent": str(item.tax_percent) if item.tax_percent is not None else None,
    }


def line_item_from_dict(data: Any) -> domain.LineItem:
    """Convert a persisted line to a LineItem."""
    data = _require_mapping(data, "Line item")
    return domain.LineItem(
        description=_text(data.get("description")),
        quantity=to_amount(data.get("quantity")),
        unit_price=to_amount(data.get("unitPrice")),
        tax_percent=_optional_decimal(data.get("taxPercent")),
    )


def document_to_dict(document: domain.Document) -> dict[str, Any]:
    """Convert a Document entity to its persisted form."""
    return {
        "id": document.id,
        "kind": document.kind.value,
        "number": document.number,
        "date": format_iso_date(document.date),
        "dueDate": format_iso_date(document.due_date),
        "client": client_to_dict(document.client),
        "items": [line_item_to_dict(item) for item in document.items],
        "taxPercent": str(document.tax_percent),
        "subtotal": str(round_money(document.subtotal)),
        "taxAmount": str(round_money(document.tax_amount)),
        "total": str(round_money(document.total)),
        "notes": document.notes,
        "method": document.method,
        "createdAt": _timestamp_to_str(document.created_at),
        "linkedMovementId": document.linked_movement_id,
    }


def document_from_dict(data: Any) -> domain.Document:
    """Convert a persisted document record to a Document entity.

    Stored totals are read as-is; callers recompute them before use.
    """
    data = _require_mapping(data, "Document")
    document_id = _require_id(data, "Document")
    document_date = parse_iso_date(data.get("date"))
    if document_date is None:
        raise ValueError(f"Document {document_id} has no valid date")
    created_at = parse_timestamp(data.get("createdAt"))
    if created_at is None:
        raise ValueError(f"Document {document_id} has no valid createdAt")
    items = data.get("items") or []
    if not isinstance(items, list):
        raise ValueError(f"Document {document_id} items must be a list")
    return domain.Document(
        id=document_id,
        kind=document_kind_from_str(data.get("kind")),
        number=_text(data.get("number")),
        date=document_date,
        due_date=parse_iso_date(data.get("dueDate")),
        client=client_from_dict(data.get("client")),
        items=tuple(line_item_from_dict(item) for item in items),
        tax_percent=to_amount(data.get("taxPercent")),
        subtotal=to_amount(data.get("subtotal")),
        tax_amount=to_amount(data.get("taxAmount")),
        total=to_amount(data.get("total")),
        notes=_text(data.get("notes")),
        method=_text(data.get("method")),
        created_at=created_at,
        linked_movement_id=_optional_text(data.get("linkedMovementId")),
    )


def config_to_dict(config: domain.BusinessConfig) -> dict[str, Any]:
    """Convert BusinessConfig to its persisted form."""
    return {
        "businessName": config.business_name,
        "currency": config.currency,
        "address": config.address,
        "phone": config.phone,
        "email": config.email,
        "logoData": config.logo_data,
        "logoRatio": config.logo_ratio,
    }


def config_from_dict(data: Any) -> domain.BusinessConfig:
    """Convert a persisted config record to BusinessConfig.

    Missing fields keep their defaults.
    """
    data = _require_mapping(data, "Config")
    defaults = domain.BusinessConfig()
    try:
        logo_ratio = float(data.get("logoRatio", defaults.logo_ratio))
    except (TypeError, ValueError):
        logo_ratio = defaults.logo_ratio
    if not logo_ratio > 0:
        logo_ratio = defaults.logo_ratio
    return domain.BusinessConfig(
        business_name=_text(data.get("businessName", defaults.business_name)),
        currency=_text(data.get("currency", defaults.currency)),
        address=_text(data.get("address")),
        phone=_text(data.get("phone")),
        email=_text(data.get("email")),
        logo_data=_text(data.get("logoData")),
        logo_ratio=logo_ratio,
    )


def snapshot_to_dict(snapshot: domain.Snapshot) -> dict[str, Any]:
    """Convert a Snapshot to the remote payload."""
    return {
        "movements": [movement_to_dict(m) for m in snapshot.movements],
        "documents": [document_to_dict(d) for d in snapshot.documents],
        "config": config_to_dict(snapshot.config),
        "updatedAt": _timestamp_to_str(snapshot.updated_at),
    }


def snapshot_from_dict(data: Any) -> domain.Snapshot:
    """Convert a remote payload to a Snapshot.

    Unlike the local loader this is all-or-nothing: any malformed record
    raises ValueError so a pull never adopts a partial snapshot.
    """
    data = _require_mapping(data, "Snapshot")
    movements = data.get("movements") or []
    documents = data.get("documents") or []
    if not isinstance(movements, list) or not isinstance(documents, list):
        raise ValueError("Snapshot collections must be lists")
    config = data.get("config")
    return domain.Snapshot(
        movements=tuple(movement_from_dict(m) for m in movements),
        documents=tuple(document_from_dict(d) for d in documents),
        config=config_from_dict(config) if config is not None else domain.BusinessConfig(),
        updated_at=parse_timestamp(data.get("updatedAt")),
    )
