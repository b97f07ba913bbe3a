from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core import redis_client as redis_module
from backend.app.core.config import settings
from backend.app.core.locks import DateLock, RedisDateLock
from backend.app.db.session import get_session
from backend.app.scheduling.availability import AvailabilityIndex
from backend.app.scheduling.errors import (
    AssignmentConflict,
    AssignmentInProgress,
    ReservationNotFound,
    SchedulingError,
    StoreError,
    ValidationFailed,
)
from backend.app.scheduling.orchestrator import AssignmentOrchestrator
from backend.app.scheduling.repositories import ConfigStore, ReservationStore, TableStore
from backend.app.services.configuration import SqlConfigStore
from backend.app.services.reservations import SqlReservationStore
from backend.app.services.tables import SqlTableStore


def get_reservation_store(session: AsyncSession = Depends(get_session)) -> ReservationStore:
    return SqlReservationStore(session)


def get_table_store(session: AsyncSession = Depends(get_session)) -> TableStore:
    return SqlTableStore(session)


def get_config_store(session: AsyncSession = Depends(get_session)) -> ConfigStore:
    return SqlConfigStore(session)


def get_assignment_lock() -> DateLock:
    if redis_module.redis_client is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Redis unavailable")
    return RedisDateLock(redis_module.redis_client, settings.ASSIGNMENT_LOCK_TTL_SECONDS)


def get_availability_index(
    reservations: ReservationStore = Depends(get_reservation_store),
    config: ConfigStore = Depends(get_config_store),
) -> AvailabilityIndex:
    return AvailabilityIndex(reservations, config)


def get_orchestrator(
    reservations: ReservationStore = Depends(get_reservation_store),
    tables: TableStore = Depends(get_table_store),
    lock: DateLock = Depends(get_assignment_lock),
) -> AssignmentOrchestrator:
    return AssignmentOrchestrator(
        reservations,
        tables,
        lock=lock,
        radius=settings.GROUP_PROXIMITY_RADIUS,
    )


def get_lockless_orchestrator(
    reservations: ReservationStore = Depends(get_reservation_store),
    tables: TableStore = Depends(get_table_store),
) -> AssignmentOrchestrator:
    """Orchestrator for operations that never take the assignment lock."""
    return AssignmentOrchestrator(reservations, tables, radius=settings.GROUP_PROXIMITY_RADIUS)


def http_error(exc: SchedulingError) -> HTTPException:
    """Map a scheduling error onto the HTTP status the API reports."""
    if isinstance(exc, ValidationFailed):
        return HTTPException(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Validation failed", "errors": exc.errors},
        )
    if isinstance(exc, AssignmentConflict):
        return HTTPException(
            status.HTTP_409_CONFLICT,
            detail={
                "message": "Assignment rejected",
                "conflicts": exc.conflicts,
                "warnings": exc.warnings,
            },
        )
    if isinstance(exc, ReservationNotFound):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    if isinstance(exc, AssignmentInProgress):
        return HTTPException(status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database error")
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Scheduling error")
