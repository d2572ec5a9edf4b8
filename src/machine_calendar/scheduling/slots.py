from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import AbstractSet, FrozenSet, Iterable, Optional

from ..domain import HOURS_PER_DAY, CellState, RejectionReason, ScheduledEvent, SlotRejected
from ..domain.errors import rejection_for


def occupied_hours(events: Iterable[ScheduledEvent], machine: str, day: date) -> FrozenSet[int]:
    hours = set()
    for event in events:
        if event.machine == machine and event.date == day:
            hours.update(range(event.start_hour, event.end_hour))
    return frozenset(hours)


def cell_state(
    machine: str,
    day: date,
    hour: int,
    *,
    unavailable: AbstractSet[int],
    events: Iterable[ScheduledEvent],
) -> CellState:
    """Resolve a slot to exactly one state: occupied wins over unavailable, which wins over free."""

    if any(event.covers(machine, day, hour) for event in events):
        return CellState.OCCUPIED
    if hour in unavailable:
        return CellState.UNAVAILABLE
    return CellState.FREE


@dataclass(frozen=True, slots=True)
class SlotDecision:
    reason: Optional[RejectionReason] = None
    hour: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.ok

    def as_error(self, *, machine: str, day: date) -> SlotRejected:
        if self.reason is None:
            raise ValueError("An accepted slot decision has no error.")
        return rejection_for(self.reason, self.hour, machine=machine, day=day)


ACCEPTED = SlotDecision()


def check_hour_range(
    start_hour: int,
    duration: int,
    *,
    occupied: AbstractSet[int],
    unavailable: AbstractSet[int],
) -> SlotDecision:
    """Check ``[start_hour, start_hour + duration)`` hour by hour, failing on the first blocked hour."""

    if duration <= 0 or start_hour < 0 or start_hour + duration > HOURS_PER_DAY:
        return SlotDecision(RejectionReason.INVALID_RANGE, start_hour)
    for hour in range(start_hour, start_hour + duration):
        if hour in occupied:
            return SlotDecision(RejectionReason.OCCUPIED, hour)
        if hour in unavailable:
            return SlotDecision(RejectionReason.UNAVAILABLE, hour)
    return ACCEPTED


def format_hour(hour: int) -> str:
    return f"{hour}:00"


__all__ = [
    "ACCEPTED",
    "SlotDecision",
    "cell_state",
    "check_hour_range",
    "format_hour",
    "occupied_hours",
]
