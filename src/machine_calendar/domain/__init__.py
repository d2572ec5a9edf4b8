"""Domain models for machine availability and slot scheduling."""

from __future__ import annotations

from .enums import AvailabilityLevel, CellState, InteractionKind, RejectionReason, ViewKind
from .errors import (
    CalendarError,
    ConflictError,
    InvalidDurationError,
    NotFoundError,
    OccupiedSlotError,
    SlotRejected,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
    TaskNotFoundError,
    UnavailableSlotError,
)
from .models import (
    HOURS_PER_DAY,
    MachineAvailability,
    MachineSummary,
    ScheduledEvent,
    TaskInfo,
    ViewState,
    normalize_hours,
    parse_day,
)

__all__ = [
    "AvailabilityLevel",
    "CalendarError",
    "CellState",
    "ConflictError",
    "HOURS_PER_DAY",
    "InteractionKind",
    "InvalidDurationError",
    "MachineAvailability",
    "MachineSummary",
    "NotFoundError",
    "OccupiedSlotError",
    "RejectionReason",
    "ScheduledEvent",
    "SlotRejected",
    "StorageError",
    "StorageUnavailable",
    "StorageWriteFailed",
    "TaskInfo",
    "TaskNotFoundError",
    "UnavailableSlotError",
    "ViewKind",
    "ViewState",
    "normalize_hours",
    "parse_day",
]
