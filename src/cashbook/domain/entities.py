"""Domain model entities for cashbook.

These are pure data classes representing business concepts, independent of
how they are persisted. Services never mutate an entity in place; they build
a new instance with ``dataclasses.replace`` and hand it to the entity store.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class MovementKind(str, Enum):
    """Direction of a cash movement."""

    INCOME = "income"
    EXPENSE = "expense"


class DocumentKind(str, Enum):
    """Kind of commercial document."""

    INVOICE = "invoice"
    QUOTE = "quote"


class Window(str, Enum):
    """Aggregation time bucket relative to a reference date."""

    DAY = "day"
    MONTH = "month"


class ProjectionState(str, Enum):
    """Ledger projection state of an invoice."""

    UNLINKED = "unlinked"
    LINKED = "linked"


@dataclass(frozen=True)
class Movement:
    """Single dated income or expense entry."""

    id: str
    kind: MovementKind
    date: Optional[date]
    description: str
    category: str
    method: str
    amount: Decimal
    created_at: Optional[datetime]
    linked_document_id: Optional[str] = None


@dataclass(frozen=True)
class Client:
    """Document recipient."""

    name: str
    address: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class LineItem:
    """Priced document line.

    A ``tax_percent`` of None means the line uses the document-level rate.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_percent: Optional[Decimal] = None

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    def is_blank(self) -> bool:
        return not self.description.strip() and self.quantity == 0 and self.unit_price == 0


@dataclass(frozen=True)
class Document:
    """Invoice or quote with derived totals."""

    id: str
    kind: DocumentKind
    number: str
    date: date
    client: Client
    items: tuple[LineItem, ...]
    created_at: datetime
    due_date: Optional[date] = None
    tax_percent: Decimal = Decimal("0")
    notes: str = ""
    method: str = ""
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    linked_movement_id: Optional[str] = None

    @property
    def is_invoice(self) -> bool:
        return self.kind == DocumentKind.INVOICE


@dataclass(frozen=True)
class DocumentInput:
    """User-supplied fields for creating or updating a document.

    ``id`` is None for a new document.
    """

    kind: DocumentKind
    number: str
    date: date
    client: Client
    items: tuple[LineItem, ...]
    id: Optional[str] = None
    due_date: Optional[date] = None
    tax_percent: Decimal = Decimal("0")
    notes: str = ""
    method: str = ""


@dataclass(frozen=True)
class BusinessConfig:
    """Process-wide business settings used on documents and money formatting."""

    business_name: str = "My Business"
    currency: str = "$"
    address: str = ""
    phone: str = ""
    email: str = ""
    logo_data: str = ""
    logo_ratio: float = 1.0


@dataclass(frozen=True)
class Snapshot:
    """Full state triple used as the unit of sync."""

    movements: tuple[Movement, ...] = ()
    documents: tuple[Document, ...] = ()
    config: BusinessConfig = field(default_factory=BusinessConfig)
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class DashboardKpis:
    """Dashboard figures for one reference date."""

    ref_date: date
    income_day: Decimal
    expense_day: Decimal
    balance_day: Decimal
    income_month: Decimal
    expense_month: Decimal
    balance_month: Decimal
    movements_month: int
    last_movement: Optional[Movement]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a push or pull."""

    identity: str
    operation: str
    request_id: int
    applied: bool
    updated_at: Optional[datetime] = None
    stale: bool = False
    not_found: bool = False
