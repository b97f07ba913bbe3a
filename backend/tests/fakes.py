from datetime import date
from typing import Any

from backend.app.scheduling.errors import ReservationNotFound
from backend.app.scheduling.floor import DEFAULT_ZONES
from backend.app.scheduling.models import (
    Position,
    Reservation,
    RestaurantConfig,
    Table,
    ZoneConfig,
)

RESTAURANT_ID = "rest-1"
DAY = date(2025, 11, 5)  # a Wednesday


def make_reservation(id: str, time: str = "20:00", guests: int = 2, **fields: Any) -> Reservation:
    fields.setdefault("restaurant_id", RESTAURANT_ID)
    fields.setdefault("date", DAY)
    fields.setdefault("customer_name", f"Guest {id}")
    return Reservation(id=id, time=time, guests=guests, **fields)


def make_table(id: str, capacity: int, number: str | None = None, **fields: Any) -> Table:
    return Table(id=id, number=number or id.removeprefix("t"), capacity=capacity, **fields)


def at(x: float, y: float) -> Position:
    return Position(x=x, y=y)


class InMemoryReservationStore:
    def __init__(self, reservations: list[Reservation] = ()):
        self.rows: dict[str, Reservation] = {r.id: r for r in reservations}
        self.updates: list[tuple[str, dict[str, Any]]] = []

    async def list_by_date(self, restaurant_id: str, day: date) -> list[Reservation]:
        return [
            r for r in self.rows.values()
            if r.restaurant_id == restaurant_id and r.date == day
        ]

    async def get(self, reservation_id: str) -> Reservation | None:
        return self.rows.get(reservation_id)

    async def update(self, reservation_id: str, **fields: Any) -> Reservation:
        if reservation_id not in self.rows:
            raise ReservationNotFound(reservation_id)
        self.updates.append((reservation_id, fields))
        self.rows[reservation_id] = self.rows[reservation_id].model_copy(update=fields)
        return self.rows[reservation_id]

    def table_of(self, reservation_id: str) -> str | None:
        return self.rows[reservation_id].assigned_table_id


class InMemoryTableStore:
    def __init__(self, tables: list[Table] = (), zones: list[ZoneConfig] = DEFAULT_ZONES):
        self.tables: dict[str, Table] = {t.id: t for t in tables}
        self.zones = list(zones)

    async def list_tables(self, restaurant_id: str) -> list[Table]:
        return list(self.tables.values())

    async def list_zones(self, restaurant_id: str) -> list[ZoneConfig]:
        return list(self.zones)

    async def save_table(self, restaurant_id: str, table: Table) -> Table:
        self.tables[table.id] = table
        return table

    async def delete_table(self, restaurant_id: str, table_id: str) -> None:
        self.tables.pop(table_id, None)


class InMemoryConfigStore:
    def __init__(self, config: RestaurantConfig | None = None):
        self.config = config or RestaurantConfig()

    async def get_config(self, restaurant_id: str) -> RestaurantConfig:
        return self.config

    async def save_config(self, restaurant_id: str, config: RestaurantConfig) -> RestaurantConfig:
        self.config = config
        return config
