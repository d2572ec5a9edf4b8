from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from ..domain import MachineAvailability, ScheduledEvent, TaskInfo


@runtime_checkable
class StorageProvider(Protocol):
    """Asynchronous persistence backend consumed by the calendar core.

    Every method may raise :class:`~machine_calendar.domain.StorageError`.
    ``get_availability_range`` is optional: providers without a range endpoint
    either omit it or raise ``NotImplementedError``.
    """

    async def get_availability(self, machine: str, day: date) -> List[int]: ...

    async def set_availability(self, machine: str, day: date, unavailable_hours: Iterable[int]) -> None: ...

    async def get_events_by_date(self, day: date) -> List[ScheduledEvent]: ...

    async def add_event(self, event: ScheduledEvent) -> str: ...

    async def remove_event(self, event_id: str) -> bool: ...


@runtime_checkable
class RangeStorageProvider(StorageProvider, Protocol):
    async def get_availability_range(self, machine: str, start: date, end: date) -> List[MachineAvailability]: ...


@runtime_checkable
class TaskProvider(Protocol):
    async def get_task_by_id(self, task_id: str) -> Optional[TaskInfo]: ...


__all__ = ["RangeStorageProvider", "StorageProvider", "TaskProvider"]
