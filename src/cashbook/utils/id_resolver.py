"""Utility for resolving abbreviated entity IDs."""

from typing import Iterable

from cashbook.domain.errors import NotFoundError, ValidationError


def resolve_id(candidates: Iterable[str], given: str, label: str) -> str:
    """Resolve a full ID or a unique ID prefix to a full ID.

    Args:
        candidates: All known IDs
        given: Full ID or prefix typed by the user
        label: Entity label used in error messages (e.g. "Movement")

    Returns:
        Matching full ID

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the prefix matches more than one ID
    """
    given = given.strip()
    if not given:
        raise ValidationError(f"{label} ID is required", field="id")

    ids = list(candidates)
    if given in ids:
        return given

    matches = [candidate for candidate in ids if candidate.startswith(given)]
    if not matches:
        raise NotFoundError(f"{label} '{given}' not found")
    if len(matches) > 1:
        raise ValidationError(
            f"{label} '{given}' is ambiguous ({len(matches)} matches)", field="id"
        )
    return matches[0]
