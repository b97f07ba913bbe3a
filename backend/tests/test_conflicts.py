from backend.app.scheduling.conflicts import conflicting_reservations, has_conflict
from backend.app.scheduling.models import ReservationStatus
from backend.tests.fakes import make_reservation


def test_overlap_with_existing_reservation_is_rejected():
    existing = [make_reservation("a", "20:00", 4, duration_minutes=120, assigned_table_id="t1")]
    candidate = make_reservation("b", "21:30", 4, duration_minutes=90)

    assert has_conflict("t1", candidate, existing, [])


def test_touching_intervals_do_not_conflict():
    existing = [make_reservation("a", "20:00", 4, duration_minutes=120, assigned_table_id="t1")]
    candidate = make_reservation("b", "22:00", 4, duration_minutes=90)

    assert not has_conflict("t1", candidate, existing, [])


def test_reservation_ending_when_existing_starts_is_fine():
    existing = [make_reservation("a", "20:00", 2, assigned_table_id="t1")]
    candidate = make_reservation("b", "18:30", 2, duration_minutes=90)

    assert not has_conflict("t1", candidate, existing)


def test_default_duration_is_two_hours():
    existing = [make_reservation("a", "20:00", 2, assigned_table_id="t1")]

    assert has_conflict("t1", make_reservation("b", "21:59"), existing)
    assert not has_conflict("t1", make_reservation("c", "22:00"), existing)


def test_other_tables_and_cancelled_reservations_are_ignored():
    existing = [
        make_reservation("a", "20:00", assigned_table_id="t2"),
        make_reservation(
            "b", "20:00", assigned_table_id="t1", status=ReservationStatus.CANCELLED
        ),
    ]

    assert not has_conflict("t1", make_reservation("c", "20:30"), existing)


def test_pending_assignments_feed_the_same_check():
    pending = [make_reservation("a", "19:00", assigned_table_id="t1")]

    assert has_conflict("t1", make_reservation("b", "20:00"), [], pending)


def test_candidate_does_not_conflict_with_itself():
    existing = [make_reservation("a", "20:00", assigned_table_id="t1")]

    assert not has_conflict("t1", existing[0], existing)


def test_conflicting_reservations_lists_each_overlap_once():
    first = make_reservation("a", "19:00", assigned_table_id="t1")
    second = make_reservation("b", "20:30", assigned_table_id="t1")
    candidate = make_reservation("c", "20:00")

    conflicts = conflicting_reservations("t1", candidate, [first, second], [first])

    assert [r.id for r in conflicts] == ["a", "b"]
