from datetime import date

import pytest
from pydantic import ValidationError

from backend.app.scheduling.availability import (
    AvailabilityIndex,
    build_time_slots,
    enumerate_slots,
    validate_configuration,
)
from backend.app.scheduling.errors import ValidationFailed
from backend.app.scheduling.models import OperatingHours, ReservationStatus, RestaurantConfig
from backend.tests.fakes import (
    DAY,
    RESTAURANT_ID,
    InMemoryConfigStore,
    InMemoryReservationStore,
    make_reservation,
)


def _index(reservations, config=None):
    return AvailabilityIndex(InMemoryReservationStore(reservations), InMemoryConfigStore(config))


def test_slots_run_from_opening_to_closing():
    slots = enumerate_slots(RestaurantConfig(), DAY)

    assert slots[0] == "12:00"
    assert slots[-1] == "22:30"
    assert len(slots) == 22


def test_slot_granularity_and_late_closing():
    config = RestaurantConfig(time_slot_duration=60)
    friday = date(2025, 11, 7)

    slots = enumerate_slots(config, friday)

    assert slots[-1] == "23:00"
    assert len(slots) == 12


def test_closed_day_has_no_slots():
    week = [OperatingHours() for _ in range(7)]
    week[DAY.weekday()] = OperatingHours(is_open=False)

    assert enumerate_slots(RestaurantConfig(operating_hours=week), DAY) == []


def test_time_slots_sum_non_cancelled_guests():
    reservations = [
        make_reservation("a", "20:00", 30),
        make_reservation("b", "20:00", 20),
        make_reservation("c", "20:00", 10, status=ReservationStatus.CANCELLED),
        make_reservation("d", "20:30", 6),
    ]

    slots = {s.time: s for s in build_time_slots(RestaurantConfig(), DAY, reservations)}

    assert slots["20:00"].current_reservations == 50
    assert slots["20:00"].available is False
    assert slots["20:00"].max_capacity == 50
    assert slots["20:30"].current_reservations == 6
    assert slots["20:30"].available is True
    assert slots["12:00"].current_reservations == 0


async def test_get_available_time_slots_reads_the_store():
    index = _index([make_reservation("a", "13:00", 4)])

    slots = await index.get_available_time_slots(RESTAURANT_ID, DAY)

    assert next(s for s in slots if s.time == "13:00").current_reservations == 4


async def test_exact_slot_fill():
    index = _index([make_reservation(f"r{i}", "20:00", 8) for i in range(6)])

    assert await index.check_availability(RESTAURANT_ID, DAY, "20:00", 2) is True
    assert await index.check_availability(RESTAURANT_ID, DAY, "20:00", 3) is False


async def test_check_is_slot_exact():
    index = _index([make_reservation("a", "20:00", 50)])

    assert await index.check_availability(RESTAURANT_ID, DAY, "20:30", 50) is True


async def test_cancelled_reservations_free_slot_capacity():
    index = _index(
        [make_reservation("a", "20:00", 50, status=ReservationStatus.CANCELLED)]
    )

    assert await index.check_availability(RESTAURANT_ID, DAY, "20:00", 50) is True


async def test_is_bookable_date():
    week = [OperatingHours() for _ in range(7)]
    week[6] = OperatingHours(is_open=False)
    index = _index([], RestaurantConfig(advance_booking_days=10, operating_hours=week))
    today = date(2025, 11, 3)  # Monday

    assert await index.is_bookable_date(RESTAURANT_ID, date(2025, 11, 5), today)
    assert not await index.is_bookable_date(RESTAURANT_ID, date(2025, 11, 2), today)
    assert not await index.is_bookable_date(RESTAURANT_ID, date(2025, 11, 14), today)
    assert not await index.is_bookable_date(RESTAURANT_ID, date(2025, 11, 9), today)


def test_default_configuration_is_valid():
    assert validate_configuration(RestaurantConfig()).valid


def test_configuration_ranges_are_reported():
    config = RestaurantConfig(
        max_total_capacity=0,
        time_slot_duration=10,
        advance_booking_days=400,
    )

    result = validate_configuration(config)

    assert not result.valid
    assert result.errors == [
        "Total capacity must be greater than 0",
        "Slot duration must be between 15 and 120 minutes",
        "Advance booking days must be between 1 and 365",
    ]


def test_malformed_operating_hours_are_reported():
    week = [OperatingHours() for _ in range(7)]
    week[2] = OperatingHours(start="25:00", end="23:00")
    week[3] = OperatingHours(start="23:00", end="12:00")

    result = validate_configuration(RestaurantConfig(operating_hours=week))

    assert result.errors == [
        "Operating hours for day 2 are malformed",
        "Opening time must precede closing time for day 3",
    ]


async def test_malformed_stored_configuration_is_rejected():
    week = [OperatingHours() for _ in range(7)]
    week[DAY.weekday()] = OperatingHours(start="12h", end="23:00")
    index = _index([], RestaurantConfig(operating_hours=week))

    with pytest.raises(ValidationFailed) as excinfo:
        await index.get_available_time_slots(RESTAURANT_ID, DAY)

    assert excinfo.value.errors == [f"Operating hours for day {DAY.weekday()} are malformed"]


@pytest.mark.parametrize("value", ["24:00", "00:00", "23:59"])
def test_reservation_time_accepts_clock_times(value):
    assert make_reservation("r", value).time == value


@pytest.mark.parametrize("value", ["24:59", "24:01", "25:00", "8:00"])
def test_reservation_time_rejects_impossible_times(value):
    with pytest.raises(ValidationError):
        make_reservation("r", value)
