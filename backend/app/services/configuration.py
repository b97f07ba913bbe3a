import json
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.scheduling.errors import StoreError
from backend.app.scheduling.models import OperatingHours, RestaurantConfig

logger = logging.getLogger(__name__)


def row_to_config(row: Any) -> RestaurantConfig:
    hours = row["operating_hours"]
    if isinstance(hours, str):
        hours = json.loads(hours)
    return RestaurantConfig(
        name=row["name"],
        max_total_capacity=row["max_total_capacity"],
        max_guests_per_reservation=row["max_guests_per_reservation"],
        max_capacity_per_slot=row["max_capacity_per_slot"],
        time_slot_duration=row["time_slot_duration"],
        average_table_duration=row["average_table_duration"],
        advance_booking_days=row["advance_booking_days"],
        operating_hours=[OperatingHours(**day) for day in hours],
    )


class SqlConfigStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_config(self, restaurant_id: str) -> RestaurantConfig:
        """Operating configuration; defaults when none has been saved."""
        try:
            result = await self.session.execute(
                text(
                    """
                    SELECT name, max_total_capacity, max_guests_per_reservation,
                           max_capacity_per_slot, time_slot_duration,
                           average_table_duration, advance_booking_days,
                           operating_hours
                    FROM restaurant_config
                    WHERE restaurant_id = :restaurant_id
                    """
                ),
                {"restaurant_id": restaurant_id},
            )
        except DBAPIError as exc:
            raise StoreError("Failed to load restaurant configuration") from exc

        row = result.mappings().one_or_none()
        if row is None:
            logger.info("No configuration stored for %s; using defaults", restaurant_id)
            return RestaurantConfig()
        return row_to_config(row)

    async def save_config(self, restaurant_id: str, config: RestaurantConfig) -> RestaurantConfig:
        try:
            await self.session.execute(
                text(
                    """
                    INSERT INTO restaurant_config (
                      restaurant_id, name, max_total_capacity,
                      max_guests_per_reservation, max_capacity_per_slot,
                      time_slot_duration, average_table_duration,
                      advance_booking_days, operating_hours
                    ) VALUES (
                      :restaurant_id, :name, :max_total_capacity,
                      :max_guests_per_reservation, :max_capacity_per_slot,
                      :time_slot_duration, :average_table_duration,
                      :advance_booking_days, CAST(:operating_hours AS jsonb)
                    )
                    ON CONFLICT (restaurant_id) DO UPDATE SET
                      name = EXCLUDED.name,
                      max_total_capacity = EXCLUDED.max_total_capacity,
                      max_guests_per_reservation = EXCLUDED.max_guests_per_reservation,
                      max_capacity_per_slot = EXCLUDED.max_capacity_per_slot,
                      time_slot_duration = EXCLUDED.time_slot_duration,
                      average_table_duration = EXCLUDED.average_table_duration,
                      advance_booking_days = EXCLUDED.advance_booking_days,
                      operating_hours = EXCLUDED.operating_hours
                    """
                ),
                {
                    "restaurant_id": restaurant_id,
                    "name": config.name,
                    "max_total_capacity": config.max_total_capacity,
                    "max_guests_per_reservation": config.max_guests_per_reservation,
                    "max_capacity_per_slot": config.max_capacity_per_slot,
                    "time_slot_duration": config.time_slot_duration,
                    "average_table_duration": config.average_table_duration,
                    "advance_booking_days": config.advance_booking_days,
                    "operating_hours": json.dumps(
                        [hours.model_dump() for hours in config.operating_hours]
                    ),
                },
            )
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            raise StoreError("Failed to save restaurant configuration") from exc
        return config
