"""Movement domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from cashbook.domain import aggregation
from cashbook.domain.entities import Movement, MovementKind
from cashbook.domain.errors import (
    NotFoundError,
    ValidationError,
    movement_not_found,
    negative_value,
    required_field,
)
from cashbook.domain.projection import new_movement_id
from cashbook.domain.store import EntityStore
from cashbook.utils.amount_parser import round_money

logger = logging.getLogger(__name__)


class MovementService:
    """Service for manually entered income and expense movements."""

    def __init__(self, store: EntityStore, on_change: Optional[Callable[[], None]] = None):
        """Initialize movement service.

        Args:
            store: Entity store instance
            on_change: Called after every persisted movement change
        """
        self.store = store
        self.on_change = on_change

    def create_movement(
        self,
        kind: MovementKind,
        description: str,
        category: str,
        method: str,
        amount: Decimal,
        movement_date: Optional[date] = None,
    ) -> Movement:
        """Create and persist a movement.

        Args:
            kind: Income or expense
            description: Free-form description
            category: Category label
            method: Payment method label
            amount: Positive amount
            movement_date: Economic date (defaults to today)

        Returns:
            The created movement

        Raises:
            ValidationError: If a field is empty or the amount is not positive
        """
        description = description.strip()
        category = category.strip()
        method = method.strip()

        if not description:
            raise ValidationError(required_field("Description"), field="description")
        if not category:
            raise ValidationError(required_field("Category"), field="category")
        if not method:
            raise ValidationError(required_field("Method"), field="method")
        if amount < 0:
            raise ValidationError(negative_value("Amount"), field="amount")
        if amount == 0:
            raise ValidationError("Amount must be greater than zero", field="amount")

        movement = Movement(
            id=new_movement_id(),
            kind=kind,
            date=movement_date or date.today(),
            description=description,
            category=category,
            method=method,
            amount=round_money(amount),
            created_at=self.store.next_created_at(),
        )
        self.store.add_movement(movement)
        self._persist()
        logger.info("Created %s movement %s of %s", kind.value, movement.id, movement.amount)
        return movement

    def get_movement(self, movement_id: str) -> Optional[Movement]:
        """Get movement by ID."""
        return self.store.get_movement(movement_id)

    def list_movements(self, kind: Optional[MovementKind] = None) -> list[Movement]:
        """List movements in insertion order, optionally of one kind."""
        return aggregation.filter_by_kind(self.store.movements, kind)

    def recent(self, kind: Optional[MovementKind] = None, limit: int = 10) -> list[Movement]:
        """List the newest movements by creation time."""
        return aggregation.recent_movements(self.store.movements, kind=kind, limit=limit)

    def delete_movement(self, movement_id: str) -> Movement:
        """Delete a movement.

        Deleting a movement projected from an invoice is allowed; the next
        save of that invoice creates a fresh one.

        Raises:
            NotFoundError: If the movement doesn't exist
        """
        movement = self.store.remove_movement(movement_id)
        if movement is None:
            raise NotFoundError(movement_not_found(movement_id))
        if movement.linked_document_id is not None:
            logger.warning(
                "Deleted movement %s linked to document %s",
                movement.id,
                movement.linked_document_id,
            )
        self._persist()
        return movement

    def _persist(self) -> None:
        self.store.save_movements()
        if self.on_change is not None:
            self.on_change()
