"""Store interfaces consumed by the scheduling core.

Implementations are injected; the Postgres adapters live in
``backend.app.services`` and tests use in-memory fakes.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from backend.app.scheduling.models import Reservation, RestaurantConfig, Table, ZoneConfig


class ReservationStore(Protocol):
    async def list_by_date(self, restaurant_id: str, day: date) -> list[Reservation]: ...

    async def get(self, reservation_id: str) -> Reservation | None: ...

    async def update(self, reservation_id: str, **fields: Any) -> Reservation: ...


class TableStore(Protocol):
    async def list_tables(self, restaurant_id: str) -> list[Table]: ...

    async def list_zones(self, restaurant_id: str) -> list[ZoneConfig]: ...

    async def save_table(self, restaurant_id: str, table: Table) -> Table: ...

    async def delete_table(self, restaurant_id: str, table_id: str) -> None: ...


class ConfigStore(Protocol):
    async def get_config(self, restaurant_id: str) -> RestaurantConfig: ...

    async def save_config(self, restaurant_id: str, config: RestaurantConfig) -> RestaurantConfig: ...
