from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from ..config.settings import StorageSettings, SupabaseSettings
from ..domain import MachineAvailability, ScheduledEvent, StorageError, TaskInfo
from .repositories import AvailabilityRepository, EventRepository, TaskRepository
from .supabase import SupabaseGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SupabaseStorageProvider:
    """Storage and task provider backed by Supabase tables.

    The Supabase client is synchronous, so each call runs in a worker thread.
    Client errors are re-raised as :class:`StorageError` carrying the client
    message; no structured taxonomy is exposed past this layer.
    """

    def __init__(self, gateway: SupabaseGateway, storage: StorageSettings) -> None:
        self.gateway = gateway
        self.availability = AvailabilityRepository(gateway=gateway, table_name=storage.availability_table)
        self.events = EventRepository(gateway=gateway, table_name=storage.events_table)
        self.tasks = TaskRepository(gateway=gateway, table_name=storage.tasks_table)

    @classmethod
    def from_settings(cls, supabase: SupabaseSettings, storage: StorageSettings) -> "SupabaseStorageProvider":
        return cls(SupabaseGateway(supabase), storage)

    async def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except StorageError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Supabase %s failed: %s", operation, exc)
            raise StorageError(str(exc) or f"Supabase {operation} failed") from exc

    async def get_availability(self, machine: str, day: date) -> List[int]:
        return await self._call("get_availability", self.availability.fetch, machine, day)

    async def get_availability_range(self, machine: str, start: date, end: date) -> List[MachineAvailability]:
        return await self._call("get_availability_range", self.availability.fetch_range, machine, start, end)

    async def set_availability(self, machine: str, day: date, unavailable_hours: Iterable[int]) -> None:
        await self._call("set_availability", self.availability.replace, machine, day, list(unavailable_hours))

    async def get_events_by_date(self, day: date) -> List[ScheduledEvent]:
        return await self._call("get_events_by_date", self.events.fetch_for_date, day)

    async def add_event(self, event: ScheduledEvent) -> str:
        return await self._call("add_event", self.events.insert, event)

    async def remove_event(self, event_id: str) -> bool:
        return await self._call("remove_event", self.events.delete, event_id)

    async def get_task_by_id(self, task_id: str) -> Optional[TaskInfo]:
        return await self._call("get_task_by_id", self.tasks.fetch, task_id)


__all__ = ["SupabaseStorageProvider"]
