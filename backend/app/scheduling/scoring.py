"""Fitness score of a (table, reservation) pair.

The total is the sum of five independently computed criteria. Capacity fit
carries the largest weight so it dominates the ranking; the reasons collected
along the way are only shown to staff.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from backend.app.scheduling.conflicts import occupying
from backend.app.scheduling.floor import PROXIMITY_RADIUS, FloorModel
from backend.app.scheduling.models import Reservation, Table, TablePreference, Zone

CAPACITY_OPTIMAL = 40
CAPACITY_ADEQUATE = 30
CAPACITY_OVERSIZED = 10

ZONE_PREFERRED = 25
ZONE_NOT_PREFERRED = 10
ZONE_NEUTRAL = 15

FEATURE_BASE = 10
FEATURE_CAP = 20

TIME_FREE = 10
TIME_WIDE_GAP = 8
TIME_NARROW_GAP = 5
TIME_TIGHT = 2

SEPARATION_QUIET = 5
SEPARATION_SOME_SPACE = 3
SEPARATION_BASE = 2
LARGE_GROUP = 6
BUSY_WINDOW_MINUTES = 60

PREFERRED_ZONES: dict[TablePreference, frozenset[Zone]] = {
    TablePreference.WINDOW: frozenset({Zone.INTERIOR}),
    TablePreference.TERRACE: frozenset({Zone.EXTERIOR}),
    TablePreference.PRIVATE: frozenset({Zone.VIP}),
    TablePreference.BAR: frozenset({Zone.BAR}),
    TablePreference.ANY: frozenset(Zone),
}

WINDOW_KEYWORDS = ("ventana", "window")
PRIVATE_KEYWORDS = ("privad", "private")
TERRACE_KEYWORDS = ("terraza",)
QUIET_KEYWORDS = ("tranquil",)


class ScoreBreakdown(BaseModel):
    capacity_match: int = 0
    zone_preference: int = 0
    feature_proximity: int = 0
    time_optimization: int = 0
    group_separation: int = 0

    @property
    def total(self) -> int:
        return (
            self.capacity_match
            + self.zone_preference
            + self.feature_proximity
            + self.time_optimization
            + self.group_separation
        )


class TableScore(BaseModel):
    table_id: str
    total: int
    reasons: list[str] = Field(default_factory=list)
    breakdown: ScoreBreakdown


def capacity_score(table: Table, reservation: Reservation) -> tuple[int, str | None]:
    ratio = reservation.guests / table.capacity
    if 0.75 <= ratio <= 1.0:
        return CAPACITY_OPTIMAL, "Capacidad óptima"
    if 0.5 <= ratio < 0.75:
        return CAPACITY_ADEQUATE, "Capacidad adecuada"
    if ratio < 0.5:
        return CAPACITY_OVERSIZED, "Mesa grande disponible"
    return 0, None


def zone_score(table: Table, reservation: Reservation) -> tuple[int, str | None]:
    preference = reservation.table_type_preference
    if preference is None:
        return ZONE_NEUTRAL, None
    if table.zone in PREFERRED_ZONES[preference]:
        return ZONE_PREFERRED, f"Zona preferida: {table.zone.value}"
    return ZONE_NOT_PREFERRED, None


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def feature_score(table: Table, reservation: Reservation) -> tuple[int, list[str]]:
    score = FEATURE_BASE
    reasons: list[str] = []
    features = {f.lower() for f in table.features}

    requests = (reservation.special_requests or "").lower()
    if requests:
        if _mentions(requests, WINDOW_KEYWORDS) and "vista" in features:
            score += 10
            reasons.append("Mesa con vista")
        if _mentions(requests, PRIVATE_KEYWORDS) and table.zone == Zone.VIP:
            score += 10
            reasons.append("Zona privada")
        if _mentions(requests, TERRACE_KEYWORDS) and table.zone == Zone.EXTERIOR:
            score += 10
            reasons.append("Mesa en terraza")
        if _mentions(requests, QUIET_KEYWORDS) and table.zone != Zone.BAR:
            score += 5
            reasons.append("Zona tranquila")

    if "premium" in features:
        score += 5
        reasons.append("Mesa premium")

    return min(score, FEATURE_CAP), reasons


def time_packing_score(
    table: Table,
    reservation: Reservation,
    existing: Iterable[Reservation],
) -> int:
    """Reward leaving a comfortable turnover gap on the table.

    Uses the smallest gap between the new start and the end of any other
    reservation already on the table.
    """
    others = [r for r in occupying(table.id, existing) if r.id != reservation.id]
    if not others:
        return TIME_FREE

    gap = min(abs(reservation.start_minutes - other.end_minutes) for other in others)
    if gap >= 30:
        return TIME_WIDE_GAP
    if gap >= 15:
        return TIME_NARROW_GAP
    return TIME_TIGHT


def group_separation_score(
    table: Table,
    reservation: Reservation,
    existing: Iterable[Reservation],
    floor: FloorModel,
    radius: float = PROXIMITY_RADIUS,
) -> int:
    if reservation.guests < LARGE_GROUP:
        return SEPARATION_BASE

    existing = list(existing)
    busy = 0
    for neighbour in floor.nearby_tables(table, radius):
        if any(
            r.id != reservation.id
            and abs(r.start_minutes - reservation.start_minutes) < BUSY_WINDOW_MINUTES
            for r in occupying(neighbour.id, existing)
        ):
            busy += 1

    if busy == 0:
        return SEPARATION_QUIET
    if busy == 1:
        return SEPARATION_SOME_SPACE
    return SEPARATION_BASE


def score_table(
    table: Table,
    reservation: Reservation,
    existing: Iterable[Reservation],
    floor: FloorModel,
    radius: float = PROXIMITY_RADIUS,
) -> TableScore:
    existing = list(existing)
    reasons: list[str] = []

    capacity, reason = capacity_score(table, reservation)
    if reason:
        reasons.append(reason)

    zone, reason = zone_score(table, reservation)
    if reason:
        reasons.append(reason)

    features, feature_reasons = feature_score(table, reservation)
    reasons.extend(feature_reasons)

    timing = time_packing_score(table, reservation, existing)
    if timing > TIME_NARROW_GAP:
        reasons.append("Optimización de horarios")

    breakdown = ScoreBreakdown(
        capacity_match=capacity,
        zone_preference=zone,
        feature_proximity=features,
        time_optimization=timing,
        group_separation=group_separation_score(table, reservation, existing, floor, radius),
    )
    return TableScore(table_id=table.id, total=breakdown.total, reasons=reasons, breakdown=breakdown)
