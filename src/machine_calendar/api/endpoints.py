from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from ..domain import OccupiedSlotError, ViewKind
from .registry import register_api
from .serializers import (
    serialize_availability,
    serialize_event,
    serialize_grid,
    serialize_outcome,
    serialize_summary,
    serialize_view_state,
)
from .state import api_state


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:  # noqa: TRY003
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _parse_view(value: str) -> ViewKind:
    try:
        return ViewKind(value.lower())
    except ValueError as exc:  # noqa: TRY003
        raise ValueError(f"Unknown view '{value}'. Expected one of: year, month, week.") from exc


def _view_payload() -> Dict[str, Any]:
    return serialize_view_state(api_state.views.state)


@register_api(
    "view_state",
    description="Return the current calendar view, its anchor date, period label and visible date range.",
    category="view",
    tags=("read",),
)
def view_state() -> Dict[str, Any]:
    return _view_payload()


@register_api(
    "set_view",
    description="Switch between year, month and week views, optionally re-anchoring on an ISO date.",
    category="view",
    tags=("navigation",),
)
def set_view(view: str, day: Optional[str] = None) -> Dict[str, Any]:
    api_state.views.set_view(_parse_view(view), _parse_date(day) if day else None)
    return _view_payload()


@register_api(
    "navigate",
    description="Move the view one period backwards ('previous'), forwards ('next') or back to today ('today').",
    category="view",
    tags=("navigation",),
)
def navigate(direction: str) -> Dict[str, Any]:
    views = api_state.views
    actions = {
        "previous": views.navigate_previous,
        "next": views.navigate_next,
        "today": views.go_to_today,
    }
    action = actions.get(direction.lower())
    if action is None:
        raise ValueError(f"Unknown direction '{direction}'. Expected previous, next or today.")
    action()
    return _view_payload()


@register_api(
    "press_key",
    description="Apply a calendar keyboard shortcut (t, ArrowLeft, ArrowRight, y, m, w).",
    category="view",
    tags=("navigation", "keyboard"),
)
def press_key(key: str) -> Dict[str, Any]:
    handled = api_state.views.handle_key(key)
    return {"handled": handled, "view": _view_payload()}


@register_api(
    "open_month",
    description="Drill down from a year-view month cell into that month.",
    category="view",
    tags=("navigation",),
)
def open_month(year: int, month: int) -> Dict[str, Any]:
    api_state.views.open_month(year, month)
    return _view_payload()


@register_api(
    "open_day",
    description="Drill down from a month-view day cell into the week containing it.",
    category="view",
    tags=("navigation",),
)
def open_day(day: str) -> Dict[str, Any]:
    api_state.views.open_day(_parse_date(day))
    return _view_payload()


@register_api(
    "render_grid",
    description="Load the visible range for the given machines and return the rendered calendar grid.",
    category="view",
    tags=("read", "render"),
)
async def render_grid(machines: Optional[List[str]] = None) -> Dict[str, Any]:
    board = api_state.board
    if machines is not None:
        board.set_machines(machines)
    grid = await board.load()
    if grid is None:
        # A concurrent view change superseded this load; render the new view instead.
        grid = await board.load()
    storage_errors = [str(error) for error in api_state.context.drain_storage_errors()]
    return {
        "view": _view_payload(),
        "grid": serialize_grid(grid) if grid else None,
        "storage_errors": storage_errors,
    }


@register_api(
    "availability_for_date",
    description="Return the unavailable hours recorded for a machine on an ISO date.",
    category="availability",
    tags=("read",),
)
async def availability_for_date(machine: str, day: str) -> Dict[str, Any]:
    target = _parse_date(day)
    hours = await api_state.context.availability.get_for_date(machine, target)
    payload = serialize_availability(machine, target, hours)
    payload["storage_errors"] = [str(error) for error in api_state.context.drain_storage_errors()]
    return payload


@register_api(
    "availability_for_range",
    description="Return unavailable hours per day for a machine over an inclusive ISO date range.",
    category="availability",
    tags=("read",),
)
async def availability_for_range(machine: str, start: str, end: str) -> Dict[str, Any]:
    by_day = await api_state.context.availability.get_for_range(machine, _parse_date(start), _parse_date(end))
    return {
        "machine": machine,
        "days": [serialize_availability(machine, day, hours) for day, hours in sorted(by_day.items())],
        "storage_errors": [str(error) for error in api_state.context.drain_storage_errors()],
    }


@register_api(
    "toggle_availability",
    description="Toggle one hour between available and unavailable for a machine. Occupied hours are refused.",
    category="availability",
    tags=("write", "slot"),
)
async def toggle_availability(machine: str, day: str, hour: int) -> Dict[str, Any]:
    outcome = await api_state.controller.on_toggle_availability(machine, _parse_date(day), hour)
    return serialize_outcome(outcome)


@register_api(
    "set_availability",
    description="Replace the full set of unavailable hours for a machine on an ISO date.",
    category="availability",
    tags=("write",),
)
async def set_availability(machine: str, day: str, hours: List[int]) -> Dict[str, Any]:
    target = _parse_date(day)
    occupied = await api_state.context.schedule.occupied_hours(machine, target)
    clash = sorted(occupied.intersection(hours))
    if clash:
        raise OccupiedSlotError(
            f"Hours {clash} on {target.isoformat()} are occupied by scheduled tasks on {machine}.",
            hour=clash[0],
        )
    stored = await api_state.context.availability.set(machine, target, hours)
    return serialize_availability(machine, target, stored)


@register_api(
    "set_off_time_range",
    description="Mark the configured off-time hours unavailable for every day in an inclusive ISO date range.",
    category="availability",
    tags=("write", "bulk"),
)
async def set_off_time_range(machine: str, start: str, end: str) -> Dict[str, Any]:
    written = await api_state.availability.set_off_time_range(machine, _parse_date(start), _parse_date(end))
    return {
        "machine": machine,
        "days": [serialize_availability(machine, day, hours) for day, hours in sorted(written.items())],
    }


@register_api(
    "clear_off_time_range",
    description="Clear all unavailable hours for every day in an inclusive ISO date range.",
    category="availability",
    tags=("write", "bulk"),
)
async def clear_off_time_range(machine: str, start: str, end: str) -> Dict[str, Any]:
    cleared = await api_state.availability.clear_off_time_range(machine, _parse_date(start), _parse_date(end))
    return {"machine": machine, "cleared_days": cleared}


@register_api(
    "machine_summary",
    description="Summarise off-time and scheduled hours for a machine over an inclusive ISO date range.",
    category="availability",
    tags=("read", "summary"),
)
async def machine_summary(machine: str, start: str, end: str) -> Dict[str, Any]:
    summary = await api_state.availability.machine_summary(machine, _parse_date(start), _parse_date(end))
    return serialize_summary(summary)


@register_api(
    "describe_slot",
    description="Return hover text for a slot, e.g. '9:00 - M1 (Available)'.",
    category="availability",
    tags=("read", "slot"),
)
async def describe_slot(machine: str, day: str, hour: int) -> Dict[str, Any]:
    text = await api_state.availability.describe_slot(machine, _parse_date(day), hour)
    return {"machine": machine, "day": day, "hour": hour, "title": text}


@register_api(
    "events_for_date",
    description="Return scheduled events on an ISO date, optionally limited to one machine.",
    category="scheduling",
    tags=("read",),
)
async def events_for_date(day: str, machine: Optional[str] = None) -> Dict[str, Any]:
    target = _parse_date(day)
    events = await api_state.context.schedule.get_events_for_date(target, machine)
    return {"day": target.isoformat(), "events": [serialize_event(event) for event in events]}


@register_api(
    "drop_task",
    description="Schedule a task on a machine starting at the given hour, after checking every hour it covers.",
    category="scheduling",
    tags=("write", "slot"),
)
async def drop_task(task_id: str, machine: str, day: str, start_hour: int) -> Dict[str, Any]:
    outcome = await api_state.controller.on_drop_task(task_id, machine, _parse_date(day), start_hour)
    return serialize_outcome(outcome)


@register_api(
    "unschedule_event",
    description="Remove a scheduled event by id.",
    category="scheduling",
    tags=("write",),
)
async def unschedule_event(event_id: str) -> Dict[str, Any]:
    outcome = await api_state.controller.on_unschedule(event_id)
    return serialize_outcome(outcome)


@register_api(
    "refresh_cache",
    description="Drop cached availability and events so the next read goes back to storage.",
    category="scheduling",
    tags=("cache",),
)
def refresh_cache() -> Dict[str, Any]:
    api_state.context.refresh()
    return {"refreshed": True}
