import datetime as dt

from pydantic import BaseModel, Field

from backend.app.scheduling.models import (
    TIME_PATTERN,
    Position,
    TableShape,
    TableType,
    Zone,
)


class AvailabilityCheckIn(BaseModel):
    date: dt.date
    # "HH:MM", slot aligned, e.g. "20:30"
    time: str = Field(pattern=TIME_PATTERN)
    guests: int = Field(ge=1, le=50)


class AvailabilityCheckOut(BaseModel):
    available: bool
    date: dt.date
    time: str
    guests: int


class TableIn(BaseModel):
    id: str | None = Field(default=None, max_length=64)
    number: str = Field(min_length=1, max_length=16)
    capacity: int
    zone: Zone = Zone.INTERIOR
    shape: TableShape = TableShape.SQUARE
    type: TableType = TableType.STANDARD
    features: list[str] = Field(default_factory=list)
    position: Position | None = None


class TableAssignIn(BaseModel):
    table_id: str = Field(min_length=1)


class BookableDateOut(BaseModel):
    date: dt.date
    bookable: bool
