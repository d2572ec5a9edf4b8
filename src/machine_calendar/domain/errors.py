from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

from .enums import RejectionReason

if TYPE_CHECKING:
    from .models import ScheduledEvent


class CalendarError(Exception):
    """Base class for every error raised by the calendar core."""

    reason: RejectionReason = RejectionReason.STORAGE


class StorageError(CalendarError):
    """Raised by storage providers. Carries a message only."""


class StorageUnavailable(StorageError):
    """A read against the storage provider failed; callers degrade to empty data."""


class StorageWriteFailed(StorageError):
    """A write against the storage provider failed; the last known state is kept."""


class SlotRejected(CalendarError):
    """A slot interaction was refused by validation. No mutation happened."""

    def __init__(self, message: str, *, hour: Optional[int] = None) -> None:
        super().__init__(message)
        self.hour = hour


class OccupiedSlotError(SlotRejected):
    reason = RejectionReason.OCCUPIED


class UnavailableSlotError(SlotRejected):
    reason = RejectionReason.UNAVAILABLE


class InvalidDurationError(SlotRejected):
    reason = RejectionReason.INVALID_RANGE


class ConflictError(CalendarError):
    """Raised when a new event would overlap an existing one on the same machine and date."""

    reason = RejectionReason.CONFLICT

    def __init__(self, conflicting: "ScheduledEvent") -> None:
        super().__init__(
            f"Overlaps '{conflicting.title or conflicting.task_id}' on {conflicting.machine} "
            f"{conflicting.date.isoformat()} {conflicting.start_hour}:00-{conflicting.end_hour}:00"
        )
        self.conflicting = conflicting


class NotFoundError(CalendarError):
    reason = RejectionReason.NOT_FOUND


class TaskNotFoundError(NotFoundError):
    reason = RejectionReason.TASK_NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found.")
        self.task_id = task_id


def rejection_for(reason: RejectionReason, hour: Optional[int], *, machine: str, day: date) -> SlotRejected:
    """Build the user-facing rejection for a failed slot check."""

    when = f"{hour}:00 on {day.isoformat()}" if hour is not None else day.isoformat()
    if reason is RejectionReason.OCCUPIED:
        return OccupiedSlotError(f"{machine} is already occupied at {when}.", hour=hour)
    if reason is RejectionReason.UNAVAILABLE:
        return UnavailableSlotError(f"{machine} is marked unavailable at {when}.", hour=hour)
    return InvalidDurationError(
        f"Task duration does not fit on {day.isoformat()}: tasks must end by 24:00 and last at least one hour.",
        hour=hour,
    )
