class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""


class ValidationFailed(SchedulingError):
    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class AssignmentConflict(SchedulingError):
    def __init__(self, conflicts: list[str], warnings: list[str] | None = None):
        self.conflicts = list(conflicts)
        self.warnings = list(warnings or [])
        super().__init__("; ".join(self.conflicts) or "Assignment conflict")


class ReservationNotFound(SchedulingError):
    def __init__(self, reservation_id: str):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation {reservation_id} not found")


class AssignmentInProgress(SchedulingError):
    """Another batch run holds the lock for the same restaurant and date."""


class StoreError(SchedulingError):
    """The durable store failed; callers decide whether to retry."""
