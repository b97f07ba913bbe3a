from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.app.routers.deps import (
    get_lockless_orchestrator,
    get_orchestrator,
    get_reservation_store,
    http_error,
)
from backend.app.routers.schemas import TableAssignIn
from backend.app.scheduling.errors import AssignmentConflict, SchedulingError
from backend.app.scheduling.models import Assignment, AssignmentCheck, BatchResult, Reservation
from backend.app.scheduling.orchestrator import AssignmentOrchestrator
from backend.app.scheduling.repositories import ReservationStore

router = APIRouter()


async def _reservation_or_404(
    store: ReservationStore, restaurant_id: str, reservation_id: str
) -> Reservation:
    reservation = await store.get(reservation_id)
    if reservation is None or reservation.restaurant_id != restaurant_id:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return reservation


@router.post("/restaurants/{restaurant_id}/assignments/auto", response_model=BatchResult)
async def auto_assign(
    restaurant_id: str,
    day: date = Query(alias="date"),
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
) -> BatchResult:
    try:
        return await orchestrator.auto_assign(restaurant_id, day)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.post("/restaurants/{restaurant_id}/assignments/reoptimize", response_model=BatchResult)
async def reoptimize(
    restaurant_id: str,
    day: date = Query(alias="date"),
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
) -> BatchResult:
    try:
        return await orchestrator.reoptimize_full_day(restaurant_id, day)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.put(
    "/restaurants/{restaurant_id}/reservations/{reservation_id}/table",
    response_model=AssignmentCheck,
)
async def assign_table(
    restaurant_id: str,
    reservation_id: str,
    payload: TableAssignIn,
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
) -> AssignmentCheck:
    try:
        check = await orchestrator.assign_single(restaurant_id, reservation_id, payload.table_id)
        if not check.valid:
            raise AssignmentConflict(check.conflicts, check.warnings)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return check


@router.delete(
    "/restaurants/{restaurant_id}/reservations/{reservation_id}/table",
    response_model=Reservation,
)
async def unassign_table(
    restaurant_id: str,
    reservation_id: str,
    store: ReservationStore = Depends(get_reservation_store),
    orchestrator: AssignmentOrchestrator = Depends(get_lockless_orchestrator),
) -> Reservation:
    try:
        await _reservation_or_404(store, restaurant_id, reservation_id)
        return await orchestrator.unassign(reservation_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.post(
    "/restaurants/{restaurant_id}/reservations/{reservation_id}/validate-table",
    response_model=AssignmentCheck,
)
async def validate_table(
    restaurant_id: str,
    reservation_id: str,
    payload: TableAssignIn,
    store: ReservationStore = Depends(get_reservation_store),
    orchestrator: AssignmentOrchestrator = Depends(get_lockless_orchestrator),
) -> AssignmentCheck:
    try:
        reservation = await _reservation_or_404(store, restaurant_id, reservation_id)
        return await orchestrator.validate_assignment(restaurant_id, reservation, payload.table_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.get(
    "/restaurants/{restaurant_id}/reservations/{reservation_id}/alternative",
    response_model=Assignment,
)
async def alternative_table(
    restaurant_id: str,
    reservation_id: str,
    exclude_table_id: str = Query(),
    store: ReservationStore = Depends(get_reservation_store),
    orchestrator: AssignmentOrchestrator = Depends(get_lockless_orchestrator),
) -> Assignment:
    try:
        reservation = await _reservation_or_404(store, restaurant_id, reservation_id)
        suggestion = await orchestrator.suggest_alternative_table(
            restaurant_id, reservation, exclude_table_id
        )
    except SchedulingError as exc:
        raise http_error(exc) from exc

    if suggestion is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="No alternative table available")
    return suggestion
