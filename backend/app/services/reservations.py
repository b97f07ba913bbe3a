from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.scheduling.errors import ReservationNotFound, StoreError
from backend.app.scheduling.models import Reservation

# Scheduling only ever writes these columns.
UPDATABLE_FIELDS = ("assigned_table_id", "status")

_SELECT = """
    SELECT id, restaurant_id, customer_name, customer_email, customer_phone,
           reservation_date, reservation_time, guests, status,
           table_type_preference, duration_minutes, assigned_table_id,
           special_requests, created_by, created_at
    FROM reservation
"""


def row_to_reservation(row: Any) -> Reservation:
    """Translate a ``reservation`` row into the canonical record."""
    return Reservation(
        id=str(row["id"]),
        restaurant_id=str(row["restaurant_id"]),
        customer_name=row["customer_name"] or "",
        customer_email=row["customer_email"] or "",
        customer_phone=row["customer_phone"] or "",
        date=row["reservation_date"],
        time=row["reservation_time"],
        guests=row["guests"],
        status=row["status"],
        table_type_preference=row["table_type_preference"],
        duration_minutes=row["duration_minutes"],
        assigned_table_id=(
            str(row["assigned_table_id"]) if row["assigned_table_id"] is not None else None
        ),
        special_requests=row["special_requests"],
        created_by=row["created_by"],
        created_at=row["created_at"],
    )


class SqlReservationStore:
    """Reservation store over the ``reservation`` table.

    Every update is committed on its own so a batch that stops halfway keeps
    the assignments it already made.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_by_date(self, restaurant_id: str, day: date) -> list[Reservation]:
        try:
            result = await self.session.execute(
                text(
                    _SELECT
                    + """
                    WHERE restaurant_id = :restaurant_id
                      AND reservation_date = :day
                    ORDER BY reservation_time, id
                    """
                ),
                {"restaurant_id": restaurant_id, "day": day},
            )
        except DBAPIError as exc:
            raise StoreError("Failed to list reservations") from exc
        return [row_to_reservation(row) for row in result.mappings()]

    async def get(self, reservation_id: str) -> Reservation | None:
        try:
            result = await self.session.execute(
                text(_SELECT + " WHERE id = :id"),
                {"id": reservation_id},
            )
        except DBAPIError as exc:
            raise StoreError("Failed to load reservation") from exc
        row = result.mappings().one_or_none()
        return row_to_reservation(row) if row is not None else None

    async def update(self, reservation_id: str, **fields: Any) -> Reservation:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update reservation fields: {', '.join(sorted(unknown))}")

        params: dict[str, Any] = {"id": reservation_id}
        assignments = []
        for name, value in fields.items():
            params[name] = getattr(value, "value", value)
            assignments.append(f"{name} = :{name}")
        assignments.append("updated_at = now()")

        try:
            result = await self.session.execute(
                text(
                    f"UPDATE reservation SET {', '.join(assignments)} WHERE id = :id RETURNING id"
                ),
                params,
            )
            if result.first() is None:
                await self.session.rollback()
                raise ReservationNotFound(reservation_id)
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            raise StoreError("Failed to update reservation") from exc

        updated = await self.get(reservation_id)
        if updated is None:
            raise ReservationNotFound(reservation_id)
        return updated
