from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

import pytest

from machine_calendar.config import AppSettings, CalendarSettings, LoggingSettings, StorageSettings, SupabaseSettings
from machine_calendar.domain import MachineAvailability, ScheduledEvent, StorageError, TaskInfo
from machine_calendar.scheduling import (
    AvailabilityStore,
    ScheduleIndex,
    SlotInteractionController,
    SlotValidator,
)
from machine_calendar.services import ServiceContext

FIXED_TODAY = date(2025, 3, 12)


class InMemoryProvider:
    """Storage and task provider kept in dictionaries, with per-method failure injection."""

    def __init__(self, *, supports_range: bool = True) -> None:
        self.availability: Dict[Tuple[str, date], List[int]] = {}
        self.events: Dict[str, ScheduledEvent] = {}
        self.tasks: Dict[str, TaskInfo] = {}
        self.calls: List[str] = []
        self.failing: Set[str] = set()
        self.supports_range = supports_range
        self.before_range_return: Optional[Callable[[], None]] = None
        self.assign_ids = False

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise StorageError(f"{name} failed")

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def get_availability(self, machine: str, day: date) -> List[int]:
        self._enter("get_availability")
        return list(self.availability.get((machine, day), []))

    async def get_availability_range(self, machine: str, start: date, end: date) -> List[MachineAvailability]:
        if not self.supports_range:
            raise NotImplementedError
        self._enter("get_availability_range")
        rows = [
            MachineAvailability(machine=key[0], date=key[1], unavailable_hours=frozenset(hours))
            for key, hours in self.availability.items()
            if key[0] == machine and start <= key[1] <= end
        ]
        if self.before_range_return is not None:
            self.before_range_return()
        return rows

    async def set_availability(self, machine: str, day: date, unavailable_hours) -> None:
        self._enter("set_availability")
        self.availability[(machine, day)] = sorted(unavailable_hours)

    async def get_events_by_date(self, day: date) -> List[ScheduledEvent]:
        self._enter("get_events_by_date")
        return [event for event in self.events.values() if event.date == day]

    async def add_event(self, event: ScheduledEvent) -> str:
        self._enter("add_event")
        stored = replace(event, id=f"db-{len(self.events) + 1}") if self.assign_ids else event
        self.events[stored.id] = stored
        return stored.id

    async def remove_event(self, event_id: str) -> bool:
        self._enter("remove_event")
        return self.events.pop(event_id, None) is not None

    async def get_task_by_id(self, task_id: str) -> Optional[TaskInfo]:
        self._enter("get_task_by_id")
        return self.tasks.get(task_id)


class RecordingRenderTarget:
    def __init__(self, *, fail_cells: bool = False) -> None:
        self.cells: List[Tuple[str, date, int]] = []
        self.weeks: List[date] = []
        self.fail_cells = fail_cells

    async def render_cell(self, machine: str, day: date, hour: int) -> None:
        if self.fail_cells:
            raise RuntimeError("cell missing from grid")
        self.cells.append((machine, day, hour))

    async def render_week(self, day: date) -> None:
        self.weeks.append(day)


def make_event(
    event_id: str = "evt-1",
    *,
    machine: str = "M1",
    day: date = date(2025, 3, 10),
    start: int = 9,
    end: int = 11,
    task_id: str = "task-1",
) -> ScheduledEvent:
    return ScheduledEvent(
        id=event_id,
        task_id=task_id,
        machine=machine,
        date=day,
        start_hour=start,
        end_hour=end,
        title=f"Task {task_id}",
    )


@pytest.fixture
def provider() -> InMemoryProvider:
    provider = InMemoryProvider()
    provider.tasks["task-3h"] = TaskInfo(id="task-3h", name="Mill housing", duration_hours=3, color="#336699")
    provider.tasks["task-2h"] = TaskInfo(id="task-2h", name="Deburr", duration_hours=2)
    return provider


@pytest.fixture
def storage_errors() -> list:
    return []


@pytest.fixture
def store(provider: InMemoryProvider, storage_errors: list) -> AvailabilityStore:
    return AvailabilityStore(provider, on_storage_error=storage_errors.append)


@pytest.fixture
def index(provider: InMemoryProvider) -> ScheduleIndex:
    return ScheduleIndex(provider)


@pytest.fixture
def validator(store: AvailabilityStore, index: ScheduleIndex) -> SlotValidator:
    return SlotValidator(store, index)


@pytest.fixture
def render_target() -> RecordingRenderTarget:
    return RecordingRenderTarget()


@pytest.fixture
def controller(
    store: AvailabilityStore,
    index: ScheduleIndex,
    validator: SlotValidator,
    provider: InMemoryProvider,
    render_target: RecordingRenderTarget,
) -> SlotInteractionController:
    return SlotInteractionController(store, index, validator, provider, render_target=render_target)


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        supabase=SupabaseSettings(url=None, anon_key=None),
        storage=StorageSettings(
            backend="local",
            availability_table="machine_availability",
            events_table="scheduled_events",
            tasks_table="production_tasks",
            state_file=tmp_path / "calendar_state.json",
        ),
        calendar=CalendarSettings(
            week_start_hour=0,
            week_end_hour=24,
            off_time_start_hour=7,
            off_time_end_hour=19,
            default_view="month",
        ),
        logging=LoggingSettings(level="INFO", log_dir=tmp_path / "logs"),
    )


@pytest.fixture
def context(settings: AppSettings, provider: InMemoryProvider) -> ServiceContext:
    return ServiceContext(settings=settings, provider=provider)
