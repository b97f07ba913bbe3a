import logging
from datetime import date
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.app.routers.deps import get_lockless_orchestrator, get_table_store, http_error
from backend.app.routers.schemas import TableIn
from backend.app.scheduling.errors import SchedulingError, ValidationFailed
from backend.app.scheduling.floor import FloorModel, validate_layout
from backend.app.scheduling.models import TIME_PATTERN, Table
from backend.app.scheduling.orchestrator import AssignmentOrchestrator, TableStatus
from backend.app.scheduling.repositories import TableStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_floor(store: TableStore, restaurant_id: str) -> FloorModel:
    tables = await store.list_tables(restaurant_id)
    zones = await store.list_zones(restaurant_id)
    return FloorModel(tables, zones)


def _check_layout(floor: FloorModel) -> None:
    result = validate_layout(floor.tables)
    if not result.valid:
        raise ValidationFailed(result.errors)


def _to_table(payload: TableIn, table_id: str) -> Table:
    return Table(
        id=table_id,
        number=payload.number,
        capacity=payload.capacity,
        zone=payload.zone,
        shape=payload.shape,
        type=payload.type,
        features=tuple(payload.features),
        position=payload.position,
    )


@router.get("/restaurants/{restaurant_id}/tables", response_model=list[Table])
async def list_tables(
    restaurant_id: str,
    store: TableStore = Depends(get_table_store),
) -> list[Table]:
    try:
        floor = await _load_floor(store, restaurant_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return list(floor.tables)


@router.get("/restaurants/{restaurant_id}/tables/status", response_model=list[TableStatus])
async def tables_status(
    restaurant_id: str,
    day: date = Query(alias="date"),
    at: str | None = Query(default=None, alias="time", pattern=TIME_PATTERN),
    orchestrator: AssignmentOrchestrator = Depends(get_lockless_orchestrator),
) -> list[TableStatus]:
    try:
        return await orchestrator.tables_status(restaurant_id, day, at)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.post(
    "/restaurants/{restaurant_id}/tables",
    response_model=Table,
    status_code=status.HTTP_201_CREATED,
)
async def create_table(
    restaurant_id: str,
    payload: TableIn,
    store: TableStore = Depends(get_table_store),
) -> Table:
    table = _to_table(payload, payload.id or f"table_{uuid4().hex[:12]}")
    try:
        floor = await _load_floor(store, restaurant_id)
        _, result = floor.add_table(table)
        if not result.valid:
            raise ValidationFailed(result.errors)
        saved = await store.save_table(restaurant_id, table)
    except SchedulingError as exc:
        raise http_error(exc) from exc

    logger.info("Table %s (number %s) added for %s", saved.id, saved.number, restaurant_id)
    return saved


@router.put("/restaurants/{restaurant_id}/tables/{table_id}", response_model=Table)
async def update_table(
    restaurant_id: str,
    table_id: str,
    payload: TableIn,
    store: TableStore = Depends(get_table_store),
) -> Table:
    table = _to_table(payload, table_id)
    try:
        floor = await _load_floor(store, restaurant_id)
        if floor.table(table_id) is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")
        updated, result = floor.update_table(table)
        if not result.valid:
            raise ValidationFailed(result.errors)
        _check_layout(updated)
        return await store.save_table(restaurant_id, table)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.delete(
    "/restaurants/{restaurant_id}/tables/{table_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_table(
    restaurant_id: str,
    table_id: str,
    store: TableStore = Depends(get_table_store),
) -> None:
    try:
        floor = await _load_floor(store, restaurant_id)
        remaining, result = floor.delete_table(table_id)
        if not result.valid:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")
        _check_layout(remaining)
        await store.delete_table(restaurant_id, table_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.post(
    "/restaurants/{restaurant_id}/tables/{table_id}/duplicate",
    response_model=Table,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_table(
    restaurant_id: str,
    table_id: str,
    store: TableStore = Depends(get_table_store),
) -> Table:
    try:
        floor = await _load_floor(store, restaurant_id)
        if floor.table(table_id) is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")
        _, copy, result = floor.duplicate_table(table_id)
        if copy is None:
            raise ValidationFailed(result.errors)
        return await store.save_table(restaurant_id, copy)
    except SchedulingError as exc:
        raise http_error(exc) from exc
