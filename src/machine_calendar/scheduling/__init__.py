"""Availability, scheduling and calendar view engine."""

from __future__ import annotations

from .availability import AvailabilityStore, StorageErrorHandler
from .controller import (
    InteractionOutcome,
    InteractionPhase,
    OutcomeListener,
    RenderTarget,
    SlotInteractionController,
)
from .grid import (
    GridCell,
    GridDescription,
    RenderOptions,
    describe_state,
    render,
    slot_title,
    start_of_week,
    visible_range,
    weeks_of_month,
)
from .schedule_index import ScheduleIndex
from .slots import SlotDecision, cell_state, check_hour_range, format_hour, occupied_hours
from .validator import SlotValidator
from .views import ViewManager, day_cell_target, month_cell_target, period_label

__all__ = [
    "AvailabilityStore",
    "GridCell",
    "GridDescription",
    "InteractionOutcome",
    "InteractionPhase",
    "OutcomeListener",
    "RenderOptions",
    "RenderTarget",
    "ScheduleIndex",
    "SlotDecision",
    "SlotInteractionController",
    "SlotValidator",
    "StorageErrorHandler",
    "ViewManager",
    "cell_state",
    "check_hour_range",
    "day_cell_target",
    "describe_state",
    "format_hour",
    "month_cell_target",
    "occupied_hours",
    "period_label",
    "render",
    "slot_title",
    "start_of_week",
    "visible_range",
    "weeks_of_month",
]
