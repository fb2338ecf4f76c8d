"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    ``field`` names the first input field that failed.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class PersistenceReadError(DomainError):
    """A persisted record is missing or cannot be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Could not read record '{key}': {reason}")
        self.key = key
        self.reason = reason


class SyncError(DomainError):
    """Base class for sync failures."""


class SyncNotFound(SyncError):
    """No remote snapshot exists yet for the identity."""

    def __init__(self, identity: str):
        super().__init__(f"No remote snapshot for '{identity}'")
        self.identity = identity


class SyncTransportError(SyncError):
    """Network, auth or payload failure while talking to the remote store."""


def movement_not_found(movement_id: str) -> str:
    """Return message for missing movement."""
    return f"Movement {movement_id} not found"


def document_not_found(document_id: str) -> str:
    """Return message for missing document."""
    return f"Document {document_id} not found"


def required_field(field_label: str) -> str:
    """Return message for an empty required field."""
    return f"{field_label} is required"


def negative_value(field_label: str) -> str:
    """Return message for a value that must not be negative."""
    return f"{field_label} must not be negative"


def duplicate_document_number(number: str, document_id: str) -> str:
    """Return message for a document number already used by another document."""
    return f"Document number '{number}' is already used by document {document_id}"


def quote_not_projectable(document_id: str) -> str:
    """Return message when a quote is passed to the ledger projection."""
    return f"Document {document_id} is a quote; only invoices are projected to the ledger"


def already_invoice(document_id: str) -> str:
    """Return message when converting a document that is already an invoice."""
    return f"Document {document_id} is already an invoice"
