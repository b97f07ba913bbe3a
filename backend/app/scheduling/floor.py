from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from uuid import uuid4

from backend.app.scheduling.models import Table, ValidationResult, Zone, ZoneConfig

logger = logging.getLogger(__name__)

MIN_TABLE_CAPACITY = 1
MAX_TABLE_CAPACITY = 20
PROXIMITY_RADIUS = 100.0
DUPLICATE_OFFSET = 20.0

DEFAULT_ZONES: tuple[ZoneConfig, ...] = (
    ZoneConfig(id=Zone.INTERIOR, name="Interior", color="#475569"),
    ZoneConfig(id=Zone.EXTERIOR, name="Exterior", color="#059669"),
    ZoneConfig(id=Zone.VIP, name="VIP", color="#7c3aed"),
    ZoneConfig(id=Zone.BAR, name="Barra", color="#dc2626"),
)


def validate_layout(tables: Iterable[Table]) -> ValidationResult:
    """Check a whole layout: non-empty, unique numbers, capacities in range."""
    tables = list(tables)
    errors: list[str] = []
    if not tables:
        errors.append("Layout must contain at least one table")

    numbers = [t.number for t in tables]
    if len(numbers) != len(set(numbers)):
        errors.append("Table numbers must be unique")

    if any(not MIN_TABLE_CAPACITY <= t.capacity <= MAX_TABLE_CAPACITY for t in tables):
        errors.append(
            f"Table capacities must be between {MIN_TABLE_CAPACITY} and {MAX_TABLE_CAPACITY}"
        )
    return ValidationResult.from_errors(errors)


class FloorModel:
    """Tables and zones of one restaurant as configured.

    Instances are never mutated; the edit operations return a new floor
    together with the outcome of validating the edit. A rejected edit
    returns this floor untouched.
    """

    def __init__(self, tables: Iterable[Table], zones: Iterable[ZoneConfig] = DEFAULT_ZONES):
        self._tables: tuple[Table, ...] = tuple(sorted(tables, key=lambda t: t.id))
        self._zones: tuple[ZoneConfig, ...] = tuple(zones)
        self._by_id = {t.id: t for t in self._tables}

    @property
    def tables(self) -> tuple[Table, ...]:
        return self._tables

    @property
    def zones(self) -> tuple[ZoneConfig, ...]:
        return self._zones

    @property
    def zone_ids(self) -> set[Zone]:
        return {z.id for z in self._zones}

    def table(self, table_id: str) -> Table | None:
        return self._by_id.get(table_id)

    def nearby_tables(self, table: Table, radius: float = PROXIMITY_RADIUS) -> list[Table]:
        """Tables within ``radius`` of ``table``.

        Without a position the zone stands in for proximity.
        """
        if table.position is None:
            return [t for t in self._tables if t.id != table.id and t.zone == table.zone]

        nearby = []
        for other in self._tables:
            if other.id == table.id or other.position is None:
                continue
            distance = math.hypot(
                table.position.x - other.position.x,
                table.position.y - other.position.y,
            )
            if distance <= radius:
                nearby.append(other)
        return nearby

    def validate_table(self, table: Table, *, replacing: str | None = None) -> ValidationResult:
        errors: list[str] = []
        if not MIN_TABLE_CAPACITY <= table.capacity <= MAX_TABLE_CAPACITY:
            errors.append(
                f"Table capacity must be between {MIN_TABLE_CAPACITY} and {MAX_TABLE_CAPACITY}"
            )
        if any(t.number == table.number and t.id != replacing for t in self._tables):
            errors.append(f"Table number {table.number} is already in use")
        if table.zone not in self.zone_ids:
            errors.append(f"Zone {table.zone.value} is not configured")
        return ValidationResult.from_errors(errors)

    def add_table(self, table: Table) -> tuple[FloorModel, ValidationResult]:
        if table.id in self._by_id:
            return self, ValidationResult.from_errors([f"Table {table.id} already exists"])
        result = self.validate_table(table)
        if not result.valid:
            return self, result
        return FloorModel((*self._tables, table), self._zones), result

    def update_table(self, table: Table) -> tuple[FloorModel, ValidationResult]:
        if table.id not in self._by_id:
            return self, ValidationResult.from_errors([f"Table {table.id} not found"])
        result = self.validate_table(table, replacing=table.id)
        if not result.valid:
            return self, result
        tables = [table if t.id == table.id else t for t in self._tables]
        return FloorModel(tables, self._zones), result

    def delete_table(self, table_id: str) -> tuple[FloorModel, ValidationResult]:
        if table_id not in self._by_id:
            return self, ValidationResult.from_errors([f"Table {table_id} not found"])
        tables = [t for t in self._tables if t.id != table_id]
        return FloorModel(tables, self._zones), ValidationResult()

    def duplicate_table(self, table_id: str) -> tuple[FloorModel, Table | None, ValidationResult]:
        source = self._by_id.get(table_id)
        if source is None:
            return self, None, ValidationResult.from_errors([f"Table {table_id} not found"])

        position = None
        if source.position is not None:
            position = source.position.model_copy(
                update={
                    "x": source.position.x + DUPLICATE_OFFSET,
                    "y": source.position.y + DUPLICATE_OFFSET,
                }
            )
        copy = source.model_copy(
            update={
                "id": f"table_{uuid4().hex[:12]}",
                "number": self.next_table_number(),
                "position": position,
            }
        )
        floor, result = self.add_table(copy)
        if result.valid:
            logger.info("Duplicated table %s as %s (number %s)", table_id, copy.id, copy.number)
            return floor, copy, result
        return self, None, result

    def next_table_number(self) -> str:
        numeric = [int(t.number) for t in self._tables if t.number.isdigit()]
        candidate = max(numeric, default=0) + 1
        taken = {t.number for t in self._tables}
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)
