"""Bulk and single table assignment for one restaurant day.

A batch works on a snapshot: the floor is fixed for the whole run and the
reservations placed so far are kept in a grow-only list consulted by the
conflict detector. Planning never awaits. The plan is then written one
reservation at a time, so a cancelled run leaves only valid assignments
behind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from enum import Enum

from pydantic import BaseModel

from backend.app.core.locks import DateLock, LocalDateLock
from backend.app.scheduling.conflicts import conflicting_reservations, has_conflict, occupying
from backend.app.scheduling.errors import ReservationNotFound
from backend.app.scheduling.floor import PROXIMITY_RADIUS, FloorModel
from backend.app.scheduling.models import (
    Assignment,
    AssignmentCheck,
    BatchResult,
    Reservation,
    ReservationStatus,
    Table,
    time_to_minutes,
)
from backend.app.scheduling.repositories import ReservationStore, TableStore
from backend.app.scheduling.scoring import TableScore, score_table

logger = logging.getLogger(__name__)


class TableState(str, Enum):
    FREE = "free"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    BLOCKED = "blocked"


class TableStatus(BaseModel):
    table: Table
    status: TableState = TableState.FREE
    current_reservation: Reservation | None = None
    next_reservation: Reservation | None = None


def prioritize(reservations: Iterable[Reservation]) -> list[Reservation]:
    """Larger parties first, then earlier times."""
    return sorted(reservations, key=lambda r: (-r.guests, r.start_minutes, r.id))


def find_best_table(
    reservation: Reservation,
    floor: FloorModel,
    existing: Sequence[Reservation],
    pending: Sequence[Reservation] = (),
    radius: float = PROXIMITY_RADIUS,
) -> TableScore | None:
    """Highest scoring feasible table; ties go to the lowest table id."""
    working = [*existing, *pending]
    best: TableScore | None = None
    for table in floor.tables:
        if table.capacity < reservation.guests:
            continue
        if has_conflict(table.id, reservation, existing, pending):
            continue
        scored = score_table(table, reservation, working, floor, radius)
        if best is None or scored.total > best.total:
            best = scored
    return best


def plan_batch(
    intake: Sequence[Reservation],
    existing: Sequence[Reservation],
    floor: FloorModel,
    radius: float = PROXIMITY_RADIUS,
) -> BatchResult:
    """Place ``intake`` in priority order without touching any store."""
    result = BatchResult()
    pending: list[Reservation] = []

    for reservation in prioritize(intake):
        best = find_best_table(reservation, floor, existing, pending, radius)
        if best is None:
            logger.warning(
                "No table available for reservation %s (%s guests at %s)",
                reservation.id, reservation.guests, reservation.time,
            )
            result.unassigned.append(reservation.id)
            continue

        pending.append(reservation.model_copy(update={"assigned_table_id": best.table_id}))
        result.assignments.append(
            Assignment(
                reservation_id=reservation.id,
                table_id=best.table_id,
                score=best.total,
                reasons=best.reasons,
            )
        )

    return result


class AssignmentOrchestrator:
    def __init__(
        self,
        reservations: ReservationStore,
        tables: TableStore,
        lock: DateLock | None = None,
        radius: float = PROXIMITY_RADIUS,
    ):
        self.reservations = reservations
        self.tables = tables
        self.lock = lock or LocalDateLock()
        self.radius = radius

    async def load_floor(self, restaurant_id: str) -> FloorModel:
        tables = await self.tables.list_tables(restaurant_id)
        zones = await self.tables.list_zones(restaurant_id)
        return FloorModel(tables, zones)

    async def auto_assign(self, restaurant_id: str, day: date) -> BatchResult:
        """Assign every unassigned, non-cancelled reservation of the day."""
        async with self.lock.hold(restaurant_id, day):
            floor = await self.load_floor(restaurant_id)
            existing = await self.reservations.list_by_date(restaurant_id, day)
            intake = [r for r in existing if r.assigned_table_id is None and not r.is_cancelled]
            return await self._run_batch(intake, existing, floor)

    async def reoptimize_full_day(self, restaurant_id: str, day: date) -> BatchResult:
        """Plan the whole day from scratch and rewrite only what changed.

        The clear happens on an in-memory copy. Stored assignments are moved
        in an order that never double-books a table, so a run that stops
        halfway leaves every stored assignment valid.
        """
        async with self.lock.hold(restaurant_id, day):
            floor = await self.load_floor(restaurant_id)
            day_reservations = await self.reservations.list_by_date(restaurant_id, day)
            active = [r for r in day_reservations if not r.is_cancelled]
            cleared = [r.model_copy(update={"assigned_table_id": None}) for r in active]

            logger.info("Re-optimizing %s reservations for %s on %s", len(cleared), restaurant_id, day)
            result = plan_batch(cleared, [], floor, self.radius)
            targets = {a.reservation_id: a.table_id for a in result.assignments}
            await self._apply_plan(active, targets)
            return result

    async def _run_batch(
        self,
        intake: Sequence[Reservation],
        existing: Sequence[Reservation],
        floor: FloorModel,
    ) -> BatchResult:
        result = plan_batch(intake, existing, floor, self.radius)
        for assignment in result.assignments:
            await self.reservations.update(
                assignment.reservation_id, assigned_table_id=assignment.table_id
            )
            logger.info(
                "Table %s assigned to reservation %s (score %s)",
                assignment.table_id, assignment.reservation_id, assignment.score,
            )
        return result

    async def _apply_plan(self, active: Sequence[Reservation], targets: dict[str, str]) -> None:
        """Move stored assignments onto ``targets``.

        Moves that fit around the currently stored tables go first. Whatever
        is left is blocked only by other moving reservations; those are
        released and then written.
        """
        current = {r.id: r for r in active}
        changed = [r.id for r in active if r.assigned_table_id != targets.get(r.id)]

        progress = True
        while progress:
            progress = False
            for reservation_id in list(changed):
                target = targets.get(reservation_id)
                if target is None:
                    continue
                moved = current[reservation_id].model_copy(update={"assigned_table_id": target})
                if has_conflict(target, moved, list(current.values())):
                    continue
                await self._store_table(current, reservation_id, target)
                changed.remove(reservation_id)
                progress = True

        for reservation_id in changed:
            if current[reservation_id].assigned_table_id is not None:
                await self._store_table(current, reservation_id, None)
        for reservation_id in changed:
            target = targets.get(reservation_id)
            if target is not None:
                await self._store_table(current, reservation_id, target)

    async def _store_table(
        self,
        current: dict[str, Reservation],
        reservation_id: str,
        table_id: str | None,
    ) -> None:
        await self.reservations.update(reservation_id, assigned_table_id=table_id)
        current[reservation_id] = current[reservation_id].model_copy(
            update={"assigned_table_id": table_id}
        )
        if table_id is None:
            logger.info("Table released from reservation %s", reservation_id)
        else:
            logger.info("Table %s assigned to reservation %s", table_id, reservation_id)

    async def validate_assignment(
        self,
        restaurant_id: str,
        reservation: Reservation,
        table_id: str,
    ) -> AssignmentCheck:
        floor = await self.load_floor(restaurant_id)
        table = floor.table(table_id)
        if table is None:
            return AssignmentCheck(valid=False, conflicts=["Table not found"])

        conflicts: list[str] = []
        warnings: list[str] = []

        if reservation.is_cancelled:
            conflicts.append("Cancelled reservations cannot be assigned a table")

        if table.capacity < reservation.guests:
            conflicts.append(
                f"Table seats {table.capacity} but the reservation is for {reservation.guests} guests"
            )
        elif table.capacity > reservation.guests * 2:
            warnings.append("Table is considerably larger than the party")

        existing = await self.reservations.list_by_date(restaurant_id, reservation.date)
        for other in conflicting_reservations(table_id, reservation, existing):
            conflicts.append(f"Time conflict with reservation {other.id} at {other.time}")

        return AssignmentCheck(valid=not conflicts, conflicts=conflicts, warnings=warnings)

    async def assign_single(
        self,
        restaurant_id: str,
        reservation_id: str,
        table_id: str,
    ) -> AssignmentCheck:
        reservation = await self.reservations.get(reservation_id)
        if reservation is None or reservation.restaurant_id != restaurant_id:
            return AssignmentCheck(valid=False, conflicts=["Reservation not found"])

        async with self.lock.hold(restaurant_id, reservation.date):
            check = await self.validate_assignment(restaurant_id, reservation, table_id)
            if not check.valid:
                logger.info(
                    "Rejected table %s for reservation %s: %s",
                    table_id, reservation_id, "; ".join(check.conflicts),
                )
                return check

            await self.reservations.update(reservation_id, assigned_table_id=table_id)
            for warning in check.warnings:
                logger.warning("Reservation %s on table %s: %s", reservation_id, table_id, warning)
            logger.info("Table %s assigned to reservation %s", table_id, reservation_id)
            return check

    async def unassign(self, reservation_id: str) -> Reservation:
        reservation = await self.reservations.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return await self.reservations.update(reservation_id, assigned_table_id=None)

    async def suggest_alternative_table(
        self,
        restaurant_id: str,
        reservation: Reservation,
        preferred_table_id: str,
    ) -> Assignment | None:
        floor = await self.load_floor(restaurant_id)
        others = FloorModel([t for t in floor.tables if t.id != preferred_table_id], floor.zones)
        existing = await self.reservations.list_by_date(restaurant_id, reservation.date)
        best = find_best_table(reservation, others, existing, radius=self.radius)
        if best is None:
            return None
        return Assignment(
            reservation_id=reservation.id,
            table_id=best.table_id,
            score=best.total,
            reasons=best.reasons,
        )

    async def tables_status(
        self,
        restaurant_id: str,
        day: date,
        at: str | None = None,
    ) -> list[TableStatus]:
        floor = await self.load_floor(restaurant_id)
        day_reservations = await self.reservations.list_by_date(restaurant_id, day)

        statuses = []
        for table in floor.tables:
            booked = sorted(occupying(table.id, day_reservations), key=lambda r: r.start_minutes)
            status = TableStatus(table=table)

            if at is None:
                if booked:
                    status.current_reservation = booked[0]
                    status.status = TableState.RESERVED
                    status.next_reservation = booked[1] if len(booked) > 1 else None
            else:
                moment = time_to_minutes(at)
                for reservation in booked:
                    if reservation.start_minutes <= moment < reservation.end_minutes:
                        status.current_reservation = reservation
                        status.status = _state_for(reservation)
                        break
                status.next_reservation = next(
                    (r for r in booked if r.start_minutes > moment), None
                )
            statuses.append(status)
        return statuses


def _state_for(reservation: Reservation) -> TableState:
    if reservation.status == ReservationStatus.BLOCKED:
        return TableState.BLOCKED
    if reservation.status in (ReservationStatus.CONFIRMED, ReservationStatus.OCCUPIED):
        return TableState.OCCUPIED
    return TableState.RESERVED
