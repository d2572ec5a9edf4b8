from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

import orjson

from ..core import CalendarStore
from ..domain import (
    MachineAvailability,
    ScheduledEvent,
    StorageError,
    TaskInfo,
    normalize_hours,
)

logger = logging.getLogger(__name__)


class LocalStorageProvider:
    """Storage and task provider backed by the local JSON state file."""

    def __init__(self, store: Optional[CalendarStore] = None) -> None:
        self.store = store or CalendarStore()
        self._lock = asyncio.Lock()

    def _read(self, reader: Callable[[Dict[str, Any]], Any]) -> Any:
        try:
            return reader(self.store.data)
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Local state read failed: %s", exc)
            raise StorageError(f"Local state could not be read: {exc}") from exc

    async def _write(self, writer: Callable[[Dict[str, Any]], Any]) -> Any:
        async with self._lock:
            try:
                return self.store.mutate(writer)
            except (OSError, orjson.JSONEncodeError, orjson.JSONDecodeError, TypeError) as exc:
                logger.warning("Local state write failed: %s", exc)
                raise StorageError(f"Local state could not be written: {exc}") from exc

    async def get_availability(self, machine: str, day: date) -> List[int]:
        def _lookup(state: Dict[str, Any]) -> List[int]:
            rows = state["availability"].get(machine, {})
            return sorted(normalize_hours(rows.get(day.isoformat(), [])))

        return self._read(_lookup)

    async def get_availability_range(self, machine: str, start: date, end: date) -> List[MachineAvailability]:
        def _lookup(state: Dict[str, Any]) -> List[MachineAvailability]:
            rows = state["availability"].get(machine, {})
            collected = []
            for day_key, hours in rows.items():
                day = date.fromisoformat(day_key)
                if start <= day <= end:
                    collected.append(
                        MachineAvailability(machine=machine, date=day, unavailable_hours=normalize_hours(hours))
                    )
            return sorted(collected, key=lambda row: row.date)

        return self._read(_lookup)

    async def set_availability(self, machine: str, day: date, unavailable_hours: Iterable[int]) -> None:
        hours = sorted(normalize_hours(unavailable_hours))

        def _replace(state: Dict[str, Any]) -> None:
            state["availability"].setdefault(machine, {})[day.isoformat()] = hours

        await self._write(_replace)

    async def get_events_by_date(self, day: date) -> List[ScheduledEvent]:
        def _lookup(state: Dict[str, Any]) -> List[ScheduledEvent]:
            iso = day.isoformat()
            return [ScheduledEvent.from_record(record) for record in state["events"] if record["date"] == iso]

        return self._read(_lookup)

    async def add_event(self, event: ScheduledEvent) -> str:
        def _append(state: Dict[str, Any]) -> str:
            state["events"].append(event.to_record())
            return event.id

        return await self._write(_append)

    async def remove_event(self, event_id: str) -> bool:
        def _delete(state: Dict[str, Any]) -> bool:
            before = len(state["events"])
            state["events"] = [record for record in state["events"] if record["id"] != event_id]
            return len(state["events"]) != before

        return await self._write(_delete)

    async def get_task_by_id(self, task_id: str) -> Optional[TaskInfo]:
        def _lookup(state: Dict[str, Any]) -> Optional[TaskInfo]:
            for record in state["tasks"]:
                if str(record["id"]) == task_id:
                    return TaskInfo.from_record(record)
            return None

        return self._read(_lookup)

    async def upsert_task(self, task: TaskInfo) -> TaskInfo:
        def _upsert(state: Dict[str, Any]) -> TaskInfo:
            items = state["tasks"]
            for idx, existing in enumerate(items):
                if str(existing["id"]) == task.id:
                    items[idx] = task.to_record()
                    break
            else:
                items.append(task.to_record())
            return task

        return await self._write(_upsert)


__all__ = ["LocalStorageProvider"]
