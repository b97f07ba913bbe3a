from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DURATION_MINUTES = 120
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$|^24:00$"


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes from midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    return f"{value // 60:02d}:{value % 60:02d}"


class Zone(str, Enum):
    INTERIOR = "interior"
    EXTERIOR = "exterior"
    VIP = "vip"
    BAR = "bar"


class TableType(str, Enum):
    STANDARD = "standard"
    WINDOW = "window"
    PRIVATE = "private"
    SMOKING = "smoking"
    NON_SMOKING = "non-smoking"
    BAR = "bar"


class TableShape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    RECTANGLE = "rectangle"


class TablePreference(str, Enum):
    WINDOW = "window"
    TERRACE = "terrace"
    PRIVATE = "private"
    BAR = "bar"
    ANY = "any"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    OCCUPIED = "occupied"
    BLOCKED = "blocked"


class CreatedBy(str, Enum):
    CUSTOMER = "customer"
    MANAGER = "manager"


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = 60
    height: float = 60


class ZoneConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Zone
    name: str
    color: str = "#475569"


class Table(BaseModel):
    """A seat-able table on the floor plan."""

    model_config = ConfigDict(frozen=True)

    id: str
    number: str
    capacity: int
    zone: Zone = Zone.INTERIOR
    shape: TableShape = TableShape.SQUARE
    type: TableType = TableType.STANDARD
    features: tuple[str, ...] = ()
    position: Position | None = None


class Reservation(BaseModel):
    """A booking for one party on one day.

    ``assigned_table_id`` of ``None`` means the reservation is unassigned.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    restaurant_id: str
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    date: dt.date
    time: str = Field(pattern=TIME_PATTERN)
    guests: int = Field(ge=1)
    status: ReservationStatus = ReservationStatus.PENDING
    table_type_preference: TablePreference | None = None
    duration_minutes: int | None = Field(default=None, ge=1)
    assigned_table_id: str | None = None
    special_requests: str | None = None
    created_by: CreatedBy = CreatedBy.CUSTOMER
    created_at: dt.datetime | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + (self.duration_minutes or DEFAULT_DURATION_MINUTES)


class TimeSlot(BaseModel):
    time: str
    available: bool
    max_capacity: int
    current_reservations: int


class Assignment(BaseModel):
    reservation_id: str
    table_id: str
    score: int
    reasons: list[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    assignments: list[Assignment] = Field(default_factory=list)
    unassigned: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=errors)


class AssignmentCheck(BaseModel):
    valid: bool
    conflicts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class OperatingHours(BaseModel):
    is_open: bool = True
    start: str = "12:00"
    end: str = "23:00"


def _default_week() -> list[OperatingHours]:
    return [
        OperatingHours(start="12:00", end="23:00"),  # Monday
        OperatingHours(start="12:00", end="23:00"),
        OperatingHours(start="12:00", end="23:00"),
        OperatingHours(start="12:00", end="23:00"),
        OperatingHours(start="12:00", end="24:00"),  # Friday
        OperatingHours(start="12:00", end="24:00"),
        OperatingHours(start="12:00", end="22:00"),  # Sunday
    ]


class RestaurantConfig(BaseModel):
    """Operating configuration for a single restaurant."""

    name: str = "Bella Vista Restaurant"
    max_total_capacity: int = 120
    max_guests_per_reservation: int = 12
    max_capacity_per_slot: int = 50
    time_slot_duration: int = 30
    average_table_duration: int = DEFAULT_DURATION_MINUTES
    advance_booking_days: int = 60
    operating_hours: list[OperatingHours] = Field(default_factory=_default_week)

    def hours_for(self, day: dt.date) -> OperatingHours:
        return self.operating_hours[day.weekday() % len(self.operating_hours)]
