from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.scheduling.errors import StoreError
from backend.app.scheduling.floor import DEFAULT_ZONES
from backend.app.scheduling.models import Position, Table, ZoneConfig


def row_to_table(row: Any) -> Table:
    position = None
    if row["pos_x"] is not None and row["pos_y"] is not None:
        position = Position(
            x=row["pos_x"],
            y=row["pos_y"],
            width=row["width"] or 60,
            height=row["height"] or 60,
        )
    return Table(
        id=str(row["id"]),
        number=row["table_number"],
        capacity=row["capacity"],
        zone=row["zone"],
        shape=row["shape"],
        type=row["table_type"],
        features=tuple(row["features"] or ()),
        position=position,
    )


class SqlTableStore:
    """Tables and zones of a restaurant's floor plan."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_tables(self, restaurant_id: str) -> list[Table]:
        try:
            result = await self.session.execute(
                text(
                    """
                    SELECT id, table_number, capacity, zone, shape, table_type,
                           features, pos_x, pos_y, width, height
                    FROM restaurant_table
                    WHERE restaurant_id = :restaurant_id
                    ORDER BY id
                    """
                ),
                {"restaurant_id": restaurant_id},
            )
        except DBAPIError as exc:
            raise StoreError("Failed to list tables") from exc
        return [row_to_table(row) for row in result.mappings()]

    async def list_zones(self, restaurant_id: str) -> list[ZoneConfig]:
        try:
            result = await self.session.execute(
                text(
                    """
                    SELECT id, name, color
                    FROM restaurant_zone
                    WHERE restaurant_id = :restaurant_id
                    ORDER BY id
                    """
                ),
                {"restaurant_id": restaurant_id},
            )
        except DBAPIError as exc:
            raise StoreError("Failed to list zones") from exc
        zones = [ZoneConfig(id=row["id"], name=row["name"], color=row["color"]) for row in result.mappings()]
        return zones or list(DEFAULT_ZONES)

    async def save_table(self, restaurant_id: str, table: Table) -> Table:
        position = table.position
        try:
            await self.session.execute(
                text(
                    """
                    INSERT INTO restaurant_table (
                      id, restaurant_id, table_number, capacity, zone, shape,
                      table_type, features, pos_x, pos_y, width, height
                    ) VALUES (
                      :id, :restaurant_id, :number, :capacity, :zone, :shape,
                      :table_type, :features, :pos_x, :pos_y, :width, :height
                    )
                    ON CONFLICT (id) DO UPDATE SET
                      table_number = EXCLUDED.table_number,
                      capacity = EXCLUDED.capacity,
                      zone = EXCLUDED.zone,
                      shape = EXCLUDED.shape,
                      table_type = EXCLUDED.table_type,
                      features = EXCLUDED.features,
                      pos_x = EXCLUDED.pos_x,
                      pos_y = EXCLUDED.pos_y,
                      width = EXCLUDED.width,
                      height = EXCLUDED.height
                    """
                ),
                {
                    "id": table.id,
                    "restaurant_id": restaurant_id,
                    "number": table.number,
                    "capacity": table.capacity,
                    "zone": table.zone.value,
                    "shape": table.shape.value,
                    "table_type": table.type.value,
                    "features": list(table.features),
                    "pos_x": position.x if position else None,
                    "pos_y": position.y if position else None,
                    "width": position.width if position else None,
                    "height": position.height if position else None,
                },
            )
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            raise StoreError("Failed to save table") from exc
        return table

    async def delete_table(self, restaurant_id: str, table_id: str) -> None:
        try:
            await self.session.execute(
                text(
                    "DELETE FROM restaurant_table WHERE restaurant_id = :restaurant_id AND id = :id"
                ),
                {"restaurant_id": restaurant_id, "id": table_id},
            )
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            raise StoreError("Failed to delete table") from exc
