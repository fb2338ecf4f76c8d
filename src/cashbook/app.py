"""Application wiring: one entity store and the services built on it."""

import logging
from datetime import date
from typing import Optional

from cashbook.database.base import Database
from cashbook.database.factories import create_sqlite_database
from cashbook.domain import aggregation
from cashbook.domain.business_config import BusinessConfigService
from cashbook.domain.document import DocumentService
from cashbook.domain.entities import DashboardKpis
from cashbook.domain.movement import MovementService
from cashbook.domain.projection import LedgerProjection
from cashbook.domain.rendering import DocumentRenderModel, build_render_model
from cashbook.domain.store import EntityStore
from cashbook.domain.sync import SyncEngine
from cashbook.remote import RemoteStore, create_remote_store
from cashbook.settings import Settings

logger = logging.getLogger(__name__)


class CashbookApp:
    """Owns the entity store for the lifetime of the process.

    Constructed once at start-up, opened, and closed at shutdown. Services
    share the store; nothing else keeps long-lived copies of the collections.
    """

    def __init__(
        self,
        db: Database,
        remote: Optional[RemoteStore] = None,
        unique_document_numbers: bool = False,
    ):
        """
        Args:
            db: Local database
            remote: Remote snapshot store (None disables sync)
            unique_document_numbers: Reject duplicate document numbers
        """
        self.db = db
        self.store = EntityStore(db)
        self.sync = SyncEngine(self.store, remote) if remote is not None else None
        self.projection = LedgerProjection(self.store)
        self.movements = MovementService(self.store, on_change=self._after_change)
        self.documents = DocumentService(
            self.store,
            projection=self.projection,
            require_unique_number=unique_document_numbers,
            on_change=self._after_change,
        )
        self.config = BusinessConfigService(self.store, on_change=self._after_change)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CashbookApp":
        """Build an app from settings (not yet opened)."""
        db = create_sqlite_database(database_path=settings.db_path)
        remote = None
        if settings.remote_url:
            remote = create_remote_store(settings.remote_url, token=settings.remote_token)
        return cls(db, remote=remote, unique_document_numbers=settings.unique_document_numbers)

    def open(self) -> "CashbookApp":
        """Connect to the database and load all collections."""
        self.db.connect()
        self.db.initialize_schema()
        self.store.load()
        return self

    def close(self) -> None:
        """Disconnect from the database."""
        self.db.disconnect()

    async def aclose(self) -> None:
        """Finish sync work, then close."""
        if self.sync is not None:
            await self.sync.close()
        self.close()

    def kpis(self, ref_date: Optional[date] = None) -> DashboardKpis:
        """Compute dashboard figures for a date (today by default)."""
        return aggregation.build_dashboard(self.store.movements, ref_date or date.today())

    def render_document(self, document_id: str) -> DocumentRenderModel:
        """Build the render model of a document with the current config."""
        document = self.documents.require_document(document_id)
        return build_render_model(document, self.store.config)

    def _after_change(self) -> None:
        if self.sync is not None:
            self.sync.schedule_push()
