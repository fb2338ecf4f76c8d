"""Entity store owning the in-memory collections and their persistence."""

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, UTC
from typing import Any, Callable, Iterator, Optional

from cashbook.database.base import Database
from cashbook.database.mappers import (
    config_from_dict,
    config_to_dict,
    document_from_dict,
    document_to_dict,
    movement_from_dict,
    movement_to_dict,
)
from cashbook.domain.entities import BusinessConfig, Document, Movement, Snapshot
from cashbook.domain.errors import PersistenceReadError

logger = logging.getLogger(__name__)

MOVEMENTS_KEY = "cashbook.movements.v1"
DOCUMENTS_KEY = "cashbook.documents.v1"
CONFIG_KEY = "cashbook.config.v1"

MOVEMENTS = "movements"
DOCUMENTS = "documents"
CONFIG = "config"


class EntityStore:
    """Owns the movement, document and config collections.

    Collections are held in insertion order. Every ``save_*`` call writes one
    full collection as a single record; there is no cross-collection
    transaction.
    """

    def __init__(self, db: Database):
        """Initialize the entity store.

        Args:
            db: Database instance used for durable records
        """
        self.db = db
        self._movements: list[Movement] = []
        self._documents: list[Document] = []
        self._config = BusinessConfig()
        self._last_created_at: Optional[datetime] = None
        self._hold_depth = 0
        self._pending: set[str] = set()
        self._replaced_during_hold = False

    # Loading

    def load(self) -> Snapshot:
        """Load all collections from the database.

        A missing or unreadable record resets only its own collection and
        logs a warning; loading never raises.
        """
        self._movements = self._load_collection(MOVEMENTS_KEY, movement_from_dict)
        self._documents = self._load_collection(DOCUMENTS_KEY, document_from_dict)
        self._drop_extra_links()
        self._config = self._load_config()
        self._last_created_at = max(
            (ts for ts in self._all_created_at() if ts is not None), default=None
        )
        logger.info(
            "Loaded %d movements, %d documents",
            len(self._movements),
            len(self._documents),
        )
        return self.snapshot()

    def _read_json(self, key: str) -> Any:
        raw = self.db.read_record(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceReadError(key, f"invalid JSON ({e.msg})")

    def _load_collection(self, key: str, from_dict: Callable[[Any], Any]) -> list:
        try:
            data = self._read_json(key)
            if data is None:
                return []
            if not isinstance(data, list):
                raise PersistenceReadError(key, "expected a list")
        except PersistenceReadError as e:
            logger.warning("%s; starting with an empty collection", e)
            return []

        items = []
        seen: set[str] = set()
        for index, row in enumerate(data):
            try:
                item = from_dict(row)
            except (ValueError, TypeError) as e:
                logger.warning("Dropping unreadable row %d in %s: %s", index, key, e)
                continue
            if item.id in seen:
                logger.warning("Dropping duplicate id %s in %s", item.id, key)
                continue
            seen.add(item.id)
            items.append(item)
        return items

    def _load_config(self) -> BusinessConfig:
        try:
            data = self._read_json(CONFIG_KEY)
            if data is None:
                return BusinessConfig()
            return config_from_dict(data)
        except (PersistenceReadError, ValueError, TypeError) as e:
            logger.warning("Could not read business config (%s); using defaults", e)
            return BusinessConfig()

    def _drop_extra_links(self) -> None:
        """Keep a single movement per linked document.

        The movement the document points at wins; otherwise the first one
        found in the collection.
        """
        preferred = {d.id: d.linked_movement_id for d in self._documents}
        keep: dict[str, str] = {}
        for movement in self._movements:
            document_id = movement.linked_document_id
            if document_id is None:
                continue
            if document_id not in keep or movement.id == preferred.get(document_id):
                keep[document_id] = movement.id

        kept = [
            m
            for m in self._movements
            if m.linked_document_id is None or keep[m.linked_document_id] == m.id
        ]
        dropped = len(self._movements) - len(kept)
        if dropped:
            logger.warning("Dropping %d extra movement(s) linked to an already linked document", dropped)
        self._movements = kept

    def _all_created_at(self) -> Iterator[Optional[datetime]]:
        for movement in self._movements:
            yield movement.created_at
        for document in self._documents:
            yield document.created_at

    # Saving

    def save_movements(self) -> None:
        """Persist the full movement collection."""
        self._save(MOVEMENTS)

    def save_documents(self) -> None:
        """Persist the full document collection."""
        self._save(DOCUMENTS)

    def save_config(self) -> None:
        """Persist the business config."""
        self._save(CONFIG)

    def _save(self, collection: str) -> None:
        if self._hold_depth:
            logger.debug("Deferring save of %s while writes are held", collection)
            self._pending.add(collection)
            return
        self._write(collection)

    def _write(self, collection: str) -> None:
        if collection == MOVEMENTS:
            key = MOVEMENTS_KEY
            payload = json.dumps([movement_to_dict(m) for m in self._movements])
        elif collection == DOCUMENTS:
            key = DOCUMENTS_KEY
            payload = json.dumps([document_to_dict(d) for d in self._documents])
        else:
            key = CONFIG_KEY
            payload = json.dumps(config_to_dict(self._config))
        self.db.write_record(key, payload)

    @contextmanager
    def hold_writes(self) -> Iterator[None]:
        """Defer persistence until the block exits.

        Saves requested inside the block are flushed on exit. If the whole
        state was replaced inside the block, all three collections are
        written instead.
        """
        self._hold_depth += 1
        try:
            yield
        finally:
            self._hold_depth -= 1
            if self._hold_depth == 0:
                if self._replaced_during_hold:
                    pending = {MOVEMENTS, DOCUMENTS, CONFIG}
                else:
                    pending = set(self._pending)
                self._pending.clear()
                self._replaced_during_hold = False
                for collection in (MOVEMENTS, DOCUMENTS, CONFIG):
                    if collection in pending:
                        self._write(collection)

    @property
    def writes_held(self) -> bool:
        return self._hold_depth > 0

    # Queries

    @property
    def movements(self) -> tuple[Movement, ...]:
        return tuple(self._movements)

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    @property
    def config(self) -> BusinessConfig:
        return self._config

    def get_movement(self, movement_id: Optional[str]) -> Optional[Movement]:
        """Get movement by ID."""
        if movement_id is None:
            return None
        for movement in self._movements:
            if movement.id == movement_id:
                return movement
        return None

    def find_movement_by_document(self, document_id: str) -> Optional[Movement]:
        """Get the movement projected from a document, if any."""
        for movement in self._movements:
            if movement.linked_document_id == document_id:
                return movement
        return None

    def get_document(self, document_id: str) -> Optional[Document]:
        """Get document by ID."""
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def snapshot(self) -> Snapshot:
        """Return the current state as a Snapshot."""
        return Snapshot(
            movements=self.movements,
            documents=self.documents,
            config=self._config,
        )

    # Mutation (services only)

    def next_created_at(self) -> datetime:
        """Return a creation timestamp strictly greater than any issued before."""
        now = datetime.now(UTC)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    def add_movement(self, movement: Movement) -> None:
        if self.get_movement(movement.id) is not None:
            raise ValueError(f"Movement {movement.id} already exists")
        self._movements.append(movement)

    def replace_movement(self, movement: Movement) -> None:
        self._movements[self._movement_index(movement.id)] = movement

    def remove_movement(self, movement_id: str) -> Optional[Movement]:
        for index, movement in enumerate(self._movements):
            if movement.id == movement_id:
                return self._movements.pop(index)
        return None

    def add_document(self, document: Document) -> None:
        if self.get_document(document.id) is not None:
            raise ValueError(f"Document {document.id} already exists")
        self._documents.append(document)

    def replace_document(self, document: Document) -> None:
        for index, existing in enumerate(self._documents):
            if existing.id == document.id:
                self._documents[index] = document
                return
        raise ValueError(f"Document {document.id} not found")

    def remove_document(self, document_id: str) -> Optional[Document]:
        for index, document in enumerate(self._documents):
            if document.id == document_id:
                return self._documents.pop(index)
        return None

    def set_config(self, config: BusinessConfig) -> None:
        self._config = config

    def replace_all(self, snapshot: Snapshot) -> None:
        """Replace every collection with the snapshot contents and persist them."""
        self._movements = list(snapshot.movements)
        self._documents = list(snapshot.documents)
        self._config = snapshot.config
        self._drop_extra_links()
        latest = max(
            (ts for ts in self._all_created_at() if ts is not None), default=None
        )
        if latest is not None and (
            self._last_created_at is None or latest > self._last_created_at
        ):
            self._last_created_at = latest
        if self._hold_depth:
            self._replaced_during_hold = True
            return
        for collection in (MOVEMENTS, DOCUMENTS, CONFIG):
            self._write(collection)

    def _movement_index(self, movement_id: str) -> int:
        for index, movement in enumerate(self._movements):
            if movement.id == movement_id:
                return index
        raise ValueError(f"Movement {movement_id} not found")
