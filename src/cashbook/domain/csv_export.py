"""CSV export of movements."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from cashbook.domain.aggregation import filter_by_kind
from cashbook.domain.entities import Movement, MovementKind
from cashbook.utils.amount_parser import round_money
from cashbook.utils.date_parser import format_iso_date

logger = logging.getLogger(__name__)

CSV_HEADER = ("tipo", "fecha", "descripcion", "categoria", "metodo", "monto")


def quote_field(value: str) -> str:
    """Wrap a value in double quotes, doubling embedded quotes."""
    return '"' + (value or "").replace('"', '""') + '"'


def movement_to_row(movement: Movement) -> str:
    """Format one movement as a CSV row.

    Only the description and category are quoted.
    """
    return ",".join(
        [
            movement.kind.value,
            format_iso_date(movement.date) or "",
            quote_field(movement.description),
            quote_field(movement.category),
            movement.method,
            str(round_money(movement.amount)),
        ]
    )


def movements_to_csv(
    movements: Iterable[Movement], kind: Optional[MovementKind] = None
) -> str:
    """Build the CSV text for movements, optionally of one kind."""
    lines = [",".join(CSV_HEADER)]
    lines.extend(movement_to_row(m) for m in filter_by_kind(movements, kind))
    return "\n".join(lines)


def export_movements(
    path: str | Path,
    movements: Iterable[Movement],
    kind: Optional[MovementKind] = None,
) -> int:
    """Write movements to a CSV file.

    Returns:
        Number of data rows written
    """
    selected = filter_by_kind(movements, kind)
    Path(path).write_text(movements_to_csv(selected), encoding="utf-8")
    logger.info("Exported %d movements to %s", len(selected), path)
    return len(selected)
