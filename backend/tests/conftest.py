import pytest

from backend.app.core.locks import LocalDateLock
from backend.app.scheduling.models import Zone
from backend.app.scheduling.orchestrator import AssignmentOrchestrator
from backend.tests.fakes import (
    InMemoryReservationStore,
    InMemoryTableStore,
    at,
    make_table,
)


@pytest.fixture
def floor_tables():
    """The default five-table layout of a new restaurant."""
    return [
        make_table("t1", 4, zone=Zone.INTERIOR, position=at(50, 50)),
        make_table("t2", 2, zone=Zone.INTERIOR, type="window", features=("vista",), position=at(150, 50)),
        make_table("t3", 6, zone=Zone.INTERIOR, position=at(250, 50)),
        make_table("t4", 4, zone=Zone.EXTERIOR, features=("terraza",), position=at(50, 150)),
        make_table("t5", 8, zone=Zone.VIP, type="private", features=("privada", "premium"), position=at(150, 150)),
    ]


@pytest.fixture
def reservation_store():
    return InMemoryReservationStore()


@pytest.fixture
def table_store(floor_tables):
    return InMemoryTableStore(floor_tables)


@pytest.fixture
def orchestrator(reservation_store, table_store):
    return AssignmentOrchestrator(reservation_store, table_store, lock=LocalDateLock())
