from __future__ import annotations

from enum import Enum


class ViewKind(str, Enum):
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"


class CellState(str, Enum):
    FREE = "free"
    UNAVAILABLE = "unavailable"
    OCCUPIED = "occupied"


class AvailabilityLevel(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


class RejectionReason(str, Enum):
    OCCUPIED = "occupied"
    UNAVAILABLE = "unavailable"
    INVALID_RANGE = "invalid_range"
    TASK_NOT_FOUND = "task_not_found"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    BUSY = "busy"


class InteractionKind(str, Enum):
    TOGGLE = "toggle"
    DROP = "drop"
    UNSCHEDULE = "unschedule"
