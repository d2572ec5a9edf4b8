from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Dict, FrozenSet, List, Optional, Set

from ..data.cache import date_range
from ..data.providers import StorageProvider
from ..domain import (
    ConflictError,
    NotFoundError,
    ScheduledEvent,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
)
from .slots import occupied_hours

logger = logging.getLogger(__name__)


class ScheduleIndex:
    """Date-indexed cache of scheduled events and the occupancy queries built on it.

    A date is fetched from the provider once and kept until invalidated. Read
    failures raise :class:`StorageUnavailable` so callers deciding whether a
    slot is free never treat a failed fetch as an empty day.
    """

    def __init__(self, provider: StorageProvider) -> None:
        self.provider = provider
        self._events: Dict[str, ScheduledEvent] = {}
        self._by_date: Dict[date, Set[str]] = {}

    def is_loaded(self, day: date) -> bool:
        return day in self._by_date

    async def load_date(self, day: date) -> List[ScheduledEvent]:
        if day not in self._by_date:
            try:
                fetched = await self.provider.get_events_by_date(day)
            except StorageError as exc:
                logger.warning("Event read failed for %s: %s", day, exc)
                raise StorageUnavailable(str(exc)) from exc
            # A concurrent load may have populated the day while we were waiting.
            self._by_date.setdefault(day, set())
            for event in fetched:
                self._remember(event)
        return self._ordered(day)

    def _remember(self, event: ScheduledEvent) -> None:
        previous = self._events.get(event.id)
        if previous is not None and previous.date != event.date:
            self._by_date.get(previous.date, set()).discard(event.id)
        self._events[event.id] = event
        self._by_date.setdefault(event.date, set()).add(event.id)

    def _ordered(self, day: date) -> List[ScheduledEvent]:
        events = [self._events[event_id] for event_id in self._by_date.get(day, ())]
        return sorted(events, key=lambda event: (event.machine, event.start_hour, event.id))

    async def get_events_for_date(self, day: date, machine: Optional[str] = None) -> List[ScheduledEvent]:
        events = await self.load_date(day)
        if machine is None:
            return events
        return [event for event in events if event.machine == machine]

    async def get_events_for_range(
        self, start: date, end: date, machine: Optional[str] = None
    ) -> List[ScheduledEvent]:
        days = list(date_range(start, end))
        await asyncio.gather(*(self.load_date(day) for day in days if not self.is_loaded(day)))
        collected: List[ScheduledEvent] = []
        for day in days:
            collected.extend(event for event in self._ordered(day) if machine is None or event.machine == machine)
        return collected

    async def occupied_hours(self, machine: str, day: date) -> FrozenSet[int]:
        return occupied_hours(await self.load_date(day), machine, day)

    async def is_occupied(self, machine: str, day: date, hour: int) -> bool:
        events = await self.load_date(day)
        return any(event.covers(machine, day, hour) for event in events)

    def find(self, event_id: str) -> Optional[ScheduledEvent]:
        return self._events.get(event_id)

    async def add(self, event: ScheduledEvent) -> ScheduledEvent:
        """Persist ``event`` unless it overlaps an existing event on the same machine and date."""

        existing = await self.load_date(event.date)
        for other in existing:
            if other.id != event.id and other.overlaps(event):
                logger.info("Rejected event %s: overlaps %s", event.id, other.id)
                raise ConflictError(other)
        try:
            event_id = await self.provider.add_event(event)
        except StorageError as exc:
            logger.warning("Event write failed for %s: %s", event.id, exc)
            raise StorageWriteFailed(str(exc)) from exc
        stored = replace(event, id=event_id) if event_id and event_id != event.id else event
        self._remember(stored)
        logger.debug(
            "Scheduled %s on %s %s [%d, %d)",
            stored.id,
            stored.machine,
            stored.date,
            stored.start_hour,
            stored.end_hour,
        )
        return stored

    async def remove(self, event_id: str) -> Optional[ScheduledEvent]:
        """Delete an event. Returns the cached copy when the event had been loaded."""

        try:
            removed = await self.provider.remove_event(event_id)
        except StorageError as exc:
            logger.warning("Event delete failed for %s: %s", event_id, exc)
            raise StorageWriteFailed(str(exc)) from exc
        if not removed:
            raise NotFoundError(f"Event '{event_id}' not found.")
        event = self._events.pop(event_id, None)
        if event is not None:
            self._by_date.get(event.date, set()).discard(event_id)
        return event

    def invalidate(self, day: Optional[date] = None) -> None:
        if day is None:
            self._events.clear()
            self._by_date.clear()
            return
        for event_id in self._by_date.pop(day, set()):
            self._events.pop(event_id, None)


__all__ = ["ScheduleIndex"]
