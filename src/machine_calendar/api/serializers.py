from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable

from ..domain import HOURS_PER_DAY, MachineSummary, ScheduledEvent, ViewState
from ..scheduling import GridDescription, InteractionOutcome, period_label, visible_range
from .models import (
    AvailabilityPayload,
    EventPayload,
    GridPayload,
    MachineSummaryPayload,
    OutcomePayload,
    ViewStatePayload,
)


def serialize_event(event: ScheduledEvent) -> Dict[str, Any]:
    return EventPayload.from_domain(event).model_dump()


def serialize_availability(machine: str, day: date, hours: Iterable[int]) -> Dict[str, Any]:
    ordered = sorted(hours)
    return AvailabilityPayload(
        machine=machine,
        date=day.isoformat(),
        unavailable_hours=ordered,
        fully_unavailable=len(ordered) == HOURS_PER_DAY,
    ).model_dump()


def serialize_view_state(state: ViewState) -> Dict[str, Any]:
    start, end = visible_range(state)
    return ViewStatePayload.from_domain(state, label=period_label(state), start=start, end=end).model_dump()


def serialize_grid(grid: GridDescription) -> Dict[str, Any]:
    return GridPayload.from_domain(grid).model_dump()


def serialize_outcome(outcome: InteractionOutcome) -> Dict[str, Any]:
    return OutcomePayload.from_domain(outcome).model_dump()


def serialize_summary(summary: MachineSummary) -> Dict[str, Any]:
    return MachineSummaryPayload.from_domain(summary).model_dump()
