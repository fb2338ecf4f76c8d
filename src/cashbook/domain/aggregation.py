"""Pure aggregation functions over movement collections.

Nothing here touches the entity store; callers pass in a transient tuple of
movements and a reference date. A movement whose ``date`` is None never
falls into any window.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from cashbook.domain.entities import DashboardKpis, Movement, MovementKind, Window
from cashbook.utils.amount_parser import round_money, to_amount
from cashbook.utils.date_parser import same_month

# Sort key for movements without a creation timestamp
_EPOCH = datetime.fromtimestamp(0, tz=UTC)


def in_window(movement: Movement, window: Window, ref_date: date) -> bool:
    """Return True if the movement's economic date falls in the window."""
    if not isinstance(movement.date, date):
        return False
    if window == Window.DAY:
        return movement.date == ref_date
    if window == Window.MONTH:
        return same_month(movement.date, ref_date)
    raise ValueError(f"Unknown window: {window!r}")


def filter_by_kind(
    movements: Iterable[Movement], kind: Optional[MovementKind]
) -> list[Movement]:
    """Return movements of the given kind (all movements when kind is None)."""
    if kind is None:
        return list(movements)
    return [m for m in movements if m.kind == kind]


def sum_by_kind_and_window(
    movements: Iterable[Movement],
    kind: MovementKind,
    window: Window,
    ref_date: date,
) -> Decimal:
    """Sum amounts of one kind inside a window, rounded to cents."""
    total = Decimal("0")
    for movement in movements:
        if movement.kind == kind and in_window(movement, window, ref_date):
            total += to_amount(movement.amount)
    return round_money(total)


def balance(movements: Sequence[Movement], window: Window, ref_date: date) -> Decimal:
    """Income minus expense inside a window."""
    income = sum_by_kind_and_window(movements, MovementKind.INCOME, window, ref_date)
    expense = sum_by_kind_and_window(movements, MovementKind.EXPENSE, window, ref_date)
    return income - expense


def count_in_window(
    movements: Iterable[Movement],
    window: Window,
    ref_date: date,
    kind: Optional[MovementKind] = None,
) -> int:
    """Count movements inside a window, optionally of one kind."""
    return sum(
        1
        for m in movements
        if (kind is None or m.kind == kind) and in_window(m, window, ref_date)
    )


def _created_key(movement: Movement) -> datetime:
    return movement.created_at if movement.created_at is not None else _EPOCH


def most_recent(movements: Iterable[Movement]) -> Optional[Movement]:
    """Return the movement with the latest creation time, or None.

    Ties go to the movement that appears first.
    """
    latest: Optional[Movement] = None
    for movement in movements:
        if latest is None or _created_key(movement) > _created_key(latest):
            latest = movement
    return latest


def recent_movements(
    movements: Iterable[Movement],
    kind: Optional[MovementKind] = None,
    limit: Optional[int] = 10,
) -> list[Movement]:
    """Return movements newest first by creation time, optionally limited."""
    ordered = sorted(filter_by_kind(movements, kind), key=_created_key, reverse=True)
    if limit is None:
        return ordered
    return ordered[: max(limit, 0)]


def build_dashboard(movements: Sequence[Movement], ref_date: date) -> DashboardKpis:
    """Compute the dashboard figures for a reference date."""
    income_day = sum_by_kind_and_window(movements, MovementKind.INCOME, Window.DAY, ref_date)
    expense_day = sum_by_kind_and_window(movements, MovementKind.EXPENSE, Window.DAY, ref_date)
    income_month = sum_by_kind_and_window(
        movements, MovementKind.INCOME, Window.MONTH, ref_date
    )
    expense_month = sum_by_kind_and_window(
        movements, MovementKind.EXPENSE, Window.MONTH, ref_date
    )
    return DashboardKpis(
        ref_date=ref_date,
        income_day=income_day,
        expense_day=expense_day,
        balance_day=income_day - expense_day,
        income_month=income_month,
        expense_month=expense_month,
        balance_month=income_month - expense_month,
        movements_month=count_in_window(movements, Window.MONTH, ref_date),
        last_movement=most_recent(movements),
    )
