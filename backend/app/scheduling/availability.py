"""Slot-level admission control.

A slot is a time-of-day bucket at the restaurant's configured granularity.
Capacity here is restaurant-wide and independent of table identity: the check
only looks at reservations starting at exactly the same slot. Per-table
interval overlap is enforced separately when a table is assigned.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date, timedelta

from backend.app.scheduling.errors import ValidationFailed
from backend.app.scheduling.models import (
    TIME_PATTERN,
    Reservation,
    RestaurantConfig,
    TimeSlot,
    ValidationResult,
    minutes_to_time,
    time_to_minutes,
)
from backend.app.scheduling.repositories import ConfigStore, ReservationStore

logger = logging.getLogger(__name__)

MIN_SLOT_DURATION = 15
MAX_SLOT_DURATION = 120
MIN_ADVANCE_DAYS = 1
MAX_ADVANCE_DAYS = 365

_HOURS_RE = re.compile(TIME_PATTERN)


def validate_configuration(config: RestaurantConfig) -> ValidationResult:
    errors: list[str] = []
    if config.max_total_capacity <= 0:
        errors.append("Total capacity must be greater than 0")
    if config.max_guests_per_reservation <= 0:
        errors.append("Maximum guests per reservation must be greater than 0")
    if config.max_capacity_per_slot <= 0:
        errors.append("Capacity per slot must be greater than 0")
    if not MIN_SLOT_DURATION <= config.time_slot_duration <= MAX_SLOT_DURATION:
        errors.append(
            f"Slot duration must be between {MIN_SLOT_DURATION} and {MAX_SLOT_DURATION} minutes"
        )
    if not MIN_ADVANCE_DAYS <= config.advance_booking_days <= MAX_ADVANCE_DAYS:
        errors.append(
            f"Advance booking days must be between {MIN_ADVANCE_DAYS} and {MAX_ADVANCE_DAYS}"
        )
    if len(config.operating_hours) != 7:
        errors.append("Operating hours must list all seven days")
    for index, hours in enumerate(config.operating_hours):
        if not (_HOURS_RE.match(hours.start) and _HOURS_RE.match(hours.end)):
            errors.append(f"Operating hours for day {index} are malformed")
        elif hours.is_open and time_to_minutes(hours.start) >= time_to_minutes(hours.end):
            errors.append(f"Opening time must precede closing time for day {index}")
    return ValidationResult.from_errors(errors)


def enumerate_slots(config: RestaurantConfig, day: date) -> list[str]:
    """Slot labels from opening (inclusive) to closing (exclusive)."""
    hours = config.hours_for(day)
    step = config.time_slot_duration
    if not hours.is_open or step <= 0:
        return []

    current = time_to_minutes(hours.start)
    closing = time_to_minutes(hours.end)
    slots = []
    while current < closing:
        slots.append(minutes_to_time(current))
        current += step
    return slots


def slot_load(reservations: Iterable[Reservation], slot: str) -> int:
    """Guests of non-cancelled reservations starting exactly at ``slot``."""
    return sum(r.guests for r in reservations if r.time == slot and not r.is_cancelled)


def build_time_slots(
    config: RestaurantConfig,
    day: date,
    reservations: Iterable[Reservation],
) -> list[TimeSlot]:
    reservations = [r for r in reservations if r.date == day]
    ceiling = config.max_capacity_per_slot
    slots = []
    for label in enumerate_slots(config, day):
        load = slot_load(reservations, label)
        slots.append(
            TimeSlot(
                time=label,
                available=load < ceiling,
                max_capacity=ceiling,
                current_reservations=load,
            )
        )
    return slots


def fits_slot(
    config: RestaurantConfig,
    reservations: Iterable[Reservation],
    slot: str,
    guests: int,
) -> bool:
    return slot_load(reservations, slot) + guests <= config.max_capacity_per_slot


class AvailabilityIndex:
    """Answers slot availability questions for one restaurant's day."""

    def __init__(self, reservations: ReservationStore, config: ConfigStore):
        self.reservations = reservations
        self.config = config

    async def load_config(self, restaurant_id: str) -> RestaurantConfig:
        """Stored configuration, rejected when it would break slot arithmetic."""
        config = await self.config.get_config(restaurant_id)
        result = validate_configuration(config)
        if not result.valid:
            logger.error("Invalid configuration for %s: %s", restaurant_id, "; ".join(result.errors))
            raise ValidationFailed(result.errors)
        return config

    async def get_available_time_slots(self, restaurant_id: str, day: date) -> list[TimeSlot]:
        config = await self.load_config(restaurant_id)
        reservations = await self.reservations.list_by_date(restaurant_id, day)
        return build_time_slots(config, day, reservations)

    async def check_availability(
        self,
        restaurant_id: str,
        day: date,
        time: str,
        guests: int,
    ) -> bool:
        config = await self.load_config(restaurant_id)
        reservations = await self.reservations.list_by_date(restaurant_id, day)
        available = fits_slot(config, reservations, time, guests)
        if not available:
            logger.debug(
                "Slot %s on %s cannot take %s more guests (ceiling %s)",
                time, day, guests, config.max_capacity_per_slot,
            )
        return available

    async def is_bookable_date(self, restaurant_id: str, day: date, today: date) -> bool:
        config = await self.load_config(restaurant_id)
        if day < today or day > today + timedelta(days=config.advance_booking_days):
            return False
        return config.hours_for(day).is_open
