"""Tests for the sync engine."""

import asyncio
import logging
import pytest
from datetime import date
from decimal import Decimal

from cashbook.database.factories import create_sqlite_database
from cashbook.domain.entities import BusinessConfig, MovementKind
from cashbook.domain.errors import SyncNotFound, SyncTransportError
from cashbook.domain.store import EntityStore
from cashbook.domain.sync import SyncEngine

KEY = "users/alice"


@pytest.fixture
def engine(store, remote):
    return SyncEngine(store, remote)


@pytest.fixture
def other_store(tmp_path):
    """A second device with its own local database."""
    db = create_sqlite_database(database_path=str(tmp_path / "other.db"))
    db.connect()
    db.initialize_schema()
    other = EntityStore(db)
    other.load()
    yield other
    db.disconnect()


def seed(movement_service, document_service, invoice_input):
    movement_service.create_movement(
        kind=MovementKind.EXPENSE,
        description="Paper",
        category="Office",
        method="Card",
        amount=Decimal("40"),
        movement_date=date(2024, 3, 10),
    )
    document_service.save(invoice_input)


@pytest.mark.asyncio
async def test_push_then_pull_on_other_device(
    engine, remote, store, other_store, movement_service, document_service, invoice_input
):
    seed(movement_service, document_service, invoice_input)
    store.set_config(BusinessConfig(business_name="Nexus"))

    pushed = await engine.push("alice")
    assert pushed.applied
    assert pushed.updated_at is not None
    assert remote.payloads[KEY]["config"]["businessName"] == "Nexus"

    other_engine = SyncEngine(other_store, remote)
    pulled = await other_engine.pull("alice")

    assert pulled.applied
    assert pulled.updated_at == pushed.updated_at
    assert other_store.movements == store.movements
    assert other_store.documents == store.documents
    assert other_store.config == store.config


@pytest.mark.asyncio
async def test_pull_persists_locally(engine, remote, store, temp_db, other_store, movement_service):
    movement_service.create_movement(
        kind=MovementKind.INCOME,
        description="Sale",
        category="Sales",
        method="Cash",
        amount=Decimal("100"),
    )
    await SyncEngine(other_store, remote).push("alice")

    # The remote snapshot is empty, so pulling wipes the local movement
    await engine.pull("alice")
    assert store.movements == ()

    reloaded = EntityStore(temp_db)
    reloaded.load()
    assert reloaded.movements == ()


@pytest.mark.asyncio
async def test_pull_not_found_leaves_state(
    engine, store, movement_service, document_service, invoice_input
):
    seed(movement_service, document_service, invoice_input)
    before = store.snapshot()

    with pytest.raises(SyncNotFound) as exc_info:
        await engine.pull("alice")

    assert exc_info.value.identity == "alice"
    assert store.snapshot() == before


@pytest.mark.asyncio
async def test_pull_transport_error_leaves_state(
    engine, remote, store, movement_service, document_service, invoice_input
):
    seed(movement_service, document_service, invoice_input)
    await engine.push("alice")
    before = store.snapshot()
    remote.fail = True

    with pytest.raises(SyncTransportError):
        await engine.pull("alice")

    assert store.snapshot() == before
    assert not store.writes_held


@pytest.mark.asyncio
async def test_malformed_payload_rejected(engine, remote, store, movement_service):
    movement_service.create_movement(
        kind=MovementKind.INCOME,
        description="Sale",
        category="Sales",
        method="Cash",
        amount=Decimal("100"),
    )
    before = store.snapshot()
    remote.payloads[KEY] = {"movements": [{"kind": "income"}], "documents": []}

    with pytest.raises(SyncTransportError, match="malformed"):
        await engine.pull("alice")

    assert store.snapshot() == before


@pytest.mark.asyncio
async def test_push_failure(engine, remote):
    remote.fail = True
    with pytest.raises(SyncTransportError):
        await engine.push("alice")


@pytest.mark.asyncio
async def test_stale_pull_is_discarded(engine, remote, store):
    """Only the latest pull for an identity is applied."""
    remote.payloads[KEY] = {"config": {"businessName": "Old"}}
    remote.fetch_delays = [0.05]

    first = asyncio.create_task(engine.pull("alice"))
    await asyncio.sleep(0)
    remote.payloads[KEY] = {"config": {"businessName": "New"}}
    second = await engine.pull("alice")
    first = await first

    assert first.stale and not first.applied
    assert second.applied and not second.stale
    assert store.config.business_name == "New"


@pytest.mark.asyncio
async def test_superseded_push_is_skipped(engine, remote, store):
    remote.payloads[KEY] = {"config": {"businessName": "Remote"}}
    remote.fetch_delays = [0.05]

    # The pull holds the identity lock while both pushes queue up behind it
    pull = asyncio.create_task(engine.pull("alice"))
    await asyncio.sleep(0)
    first_push = asyncio.create_task(engine.push("alice"))
    second_push = asyncio.create_task(engine.push("alice"))

    pulled, first, second = await asyncio.gather(pull, first_push, second_push)

    assert pulled.applied
    assert first.stale and not first.applied
    assert second.applied
    assert remote.store_count == 1


@pytest.mark.asyncio
async def test_save_during_pull_is_held(engine, remote, store, temp_db, movement_service):
    """A local save racing a pull is not written over the adopted snapshot."""
    remote.payloads[KEY] = {"config": {"businessName": "Remote"}}
    remote.fetch_delays = [0.05]

    pull = asyncio.create_task(engine.pull("alice"))
    await asyncio.sleep(0)
    movement_service.create_movement(
        kind=MovementKind.INCOME,
        description="Sale",
        category="Sales",
        method="Cash",
        amount=Decimal("100"),
    )
    assert store.writes_held
    await pull

    assert store.movements == ()
    reloaded = EntityStore(temp_db)
    reloaded.load()
    assert reloaded.movements == ()
    assert reloaded.config.business_name == "Remote"


@pytest.mark.asyncio
async def test_sign_in_without_remote_snapshot(engine, store, movement_service):
    movement_service.create_movement(
        kind=MovementKind.INCOME,
        description="Sale",
        category="Sales",
        method="Cash",
        amount=Decimal("100"),
    )

    result = await engine.sign_in("alice")

    assert result.not_found
    assert not result.applied
    assert engine.active_identity == "alice"
    assert len(store.movements) == 1


@pytest.mark.asyncio
async def test_sign_in_adopts_remote(engine, remote, store):
    remote.payloads[KEY] = {"config": {"businessName": "Remote"}}
    result = await engine.sign_in("alice")
    assert result.applied
    assert store.config.business_name == "Remote"


@pytest.mark.asyncio
async def test_schedule_push(engine, remote):
    assert engine.schedule_push() is None

    await engine.sign_in("alice")
    task = engine.schedule_push()
    assert task is not None
    await engine.wait_idle()

    assert task.result().applied
    assert KEY in remote.payloads

    engine.sign_out()
    assert engine.active_identity is None
    assert engine.schedule_push() is None


def test_schedule_push_without_loop(engine):
    engine._active_identity = "alice"
    assert engine.schedule_push() is None


@pytest.mark.asyncio
async def test_background_push_failure_is_logged(engine, remote, caplog):
    await engine.sign_in("alice")
    remote.fail = True

    with caplog.at_level(logging.ERROR, logger="cashbook.domain.sync"):
        task = engine.schedule_push()
        await engine.wait_idle()

    assert task.result() is None
    assert "Background push for alice failed" in caplog.text


@pytest.mark.asyncio
async def test_document_save_triggers_push(store, remote, invoice_input):
    from cashbook.domain.document import DocumentService

    engine = SyncEngine(store, remote)
    service = DocumentService(store, on_change=engine.schedule_push)
    await engine.sign_in("alice")

    service.save(invoice_input)
    await engine.wait_idle()

    assert len(remote.payloads[KEY]["documents"]) == 1


@pytest.mark.asyncio
async def test_empty_identity(engine):
    with pytest.raises(ValueError):
        await engine.push("  ")


@pytest.mark.asyncio
async def test_close(engine, remote):
    await engine.close()
    assert remote.closed
