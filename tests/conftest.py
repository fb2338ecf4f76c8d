"""Shared pytest fixtures for cashbook tests."""

import asyncio
import copy
import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from cashbook.database.factories import create_sqlite_database
from cashbook.domain.document import DocumentService
from cashbook.domain.entities import Client, DocumentInput, DocumentKind, LineItem
from cashbook.domain.errors import SyncTransportError
from cashbook.domain.movement import MovementService
from cashbook.domain.projection import LedgerProjection
from cashbook.domain.store import EntityStore
from cashbook.remote.base import RemoteStore


class InMemoryRemoteStore(RemoteStore):
    """Remote store keeping payloads in a dict.

    ``fetch_delays`` holds per-call delays (seconds) consumed in order;
    ``fail`` makes every call raise SyncTransportError.
    """

    def __init__(self):
        self.payloads = {}
        self.fetch_delays = []
        self.fail = False
        self.fetch_count = 0
        self.store_count = 0
        self.closed = False

    async def fetch(self, key):
        self.fetch_count += 1
        delay = self.fetch_delays.pop(0) if self.fetch_delays else 0
        # Snapshot the payload before sleeping so a later push does not leak in
        payload = copy.deepcopy(self.payloads.get(key))
        if delay:
            await asyncio.sleep(delay)
        if self.fail:
            raise SyncTransportError("remote unavailable")
        return payload

    async def store(self, key, payload):
        if self.fail:
            raise SyncTransportError("remote unavailable")
        self.store_count += 1
        self.payloads[key] = copy.deepcopy(payload)

    async def close(self):
        self.closed = True


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def store(temp_db):
    """Create a loaded EntityStore on the temporary database."""
    entity_store = EntityStore(temp_db)
    entity_store.load()
    return entity_store


@pytest.fixture
def projection(store):
    """Create a LedgerProjection on the store."""
    return LedgerProjection(store)


@pytest.fixture
def movement_service(store):
    """Create a MovementService on the store."""
    return MovementService(store)


@pytest.fixture
def document_service(store, projection):
    """Create a DocumentService on the store."""
    return DocumentService(store, projection=projection)


@pytest.fixture
def remote():
    """Create an in-memory remote store."""
    return InMemoryRemoteStore()


@pytest.fixture
def invoice_input():
    """Invoice input with two units at 50 and 10% tax."""
    return DocumentInput(
        kind=DocumentKind.INVOICE,
        number="F-001",
        date=date(2024, 3, 10),
        client=Client(name="ACME"),
        items=(LineItem(description="Widget", quantity=Decimal("2"), unit_price=Decimal("50")),),
        tax_percent=Decimal("10"),
        method="Cash",
    )


@pytest.fixture
def quote_input(invoice_input):
    """Quote input with the same lines as invoice_input."""
    return DocumentInput(
        kind=DocumentKind.QUOTE,
        number="Q-001",
        date=invoice_input.date,
        client=invoice_input.client,
        items=invoice_input.items,
        tax_percent=invoice_input.tax_percent,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
