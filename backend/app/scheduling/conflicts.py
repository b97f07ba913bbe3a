"""Per-table time-interval conflict detection.

Every reservation occupies the half-open interval ``[start, start + duration)``
in minutes from midnight. Two reservations bound to the same table conflict
when those intervals overlap; one ending exactly when the next begins is fine.
"""

from __future__ import annotations

from collections.abc import Iterable

from backend.app.scheduling.models import Reservation


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def occupying(table_id: str, reservations: Iterable[Reservation]) -> list[Reservation]:
    """Non-cancelled reservations bound to ``table_id``."""
    return [
        r for r in reservations
        if r.assigned_table_id == table_id and not r.is_cancelled
    ]


def conflicting_reservations(
    table_id: str,
    candidate: Reservation,
    existing: Iterable[Reservation],
    pending: Iterable[Reservation] = (),
) -> list[Reservation]:
    """Return the reservations on ``table_id`` whose interval overlaps ``candidate``.

    ``existing`` holds durably assigned reservations and ``pending`` the ones
    placed earlier in the current batch; both feed the same overlap test.
    """
    start, end = candidate.start_minutes, candidate.end_minutes
    conflicts: list[Reservation] = []
    seen: set[str] = set()
    for source in (existing, pending):
        for other in occupying(table_id, source):
            if other.id == candidate.id or other.id in seen:
                continue
            if intervals_overlap(start, end, other.start_minutes, other.end_minutes):
                conflicts.append(other)
                seen.add(other.id)
    return conflicts


def has_conflict(
    table_id: str,
    candidate: Reservation,
    existing: Iterable[Reservation],
    pending: Iterable[Reservation] = (),
) -> bool:
    return bool(conflicting_reservations(table_id, candidate, existing, pending))
