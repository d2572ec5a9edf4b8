from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, FrozenSet

from ..data.cache import date_range
from ..domain import MachineSummary
from ..scheduling import AvailabilityStore, ScheduleIndex, slot_title
from ..scheduling.slots import cell_state
from .context import ServiceContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AvailabilityService:
    context: ServiceContext

    @property
    def store(self) -> AvailabilityStore:
        return self.context.availability

    @property
    def schedule(self) -> ScheduleIndex:
        return self.context.schedule

    def off_time_hours(self) -> FrozenSet[int]:
        calendar = self.context.settings.calendar
        return frozenset(range(calendar.off_time_start_hour, calendar.off_time_end_hour))

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if start > end:
            raise ValueError(f"Start date {start.isoformat()} is after end date {end.isoformat()}")

    async def set_off_time_range(self, machine: str, start: date, end: date) -> Dict[date, FrozenSet[int]]:
        """Mark the off-time window unavailable on every day in ``[start, end]``.

        Hours already blocked are kept; hours covered by a scheduled task are
        skipped. Raises :class:`StorageUnavailable` before writing anything when
        the current hours cannot be read.
        """

        self._check_range(start, end)
        off_time = self.off_time_hours()
        current = await self.store.get_for_range(machine, start, end, strict=True)
        written: Dict[date, FrozenSet[int]] = {}
        for day in date_range(start, end):
            occupied = await self.schedule.occupied_hours(machine, day)
            hours = (current[day] | off_time) - occupied
            if hours != current[day]:
                written[day] = await self.store.set(machine, day, hours)
            else:
                written[day] = hours
        logger.info("Applied off-time to %s for %d days", machine, len(written))
        return written

    async def clear_off_time_range(self, machine: str, start: date, end: date) -> int:
        self._check_range(start, end)
        cleared = 0
        for day in date_range(start, end):
            await self.store.set(machine, day, ())
            cleared += 1
        logger.info("Cleared availability for %s on %d days", machine, cleared)
        return cleared

    async def machine_summary(self, machine: str, start: date, end: date) -> MachineSummary:
        self._check_range(start, end)
        availability = await self.store.get_for_range(machine, start, end)
        events = await self.schedule.get_events_for_range(start, end, machine)
        scheduled: Dict[date, int] = {}
        for event in events:
            scheduled[event.date] = scheduled.get(event.date, 0) + event.duration
        total_days = len(availability)
        off_time_days = sum(1 for hours in availability.values() if hours)
        return MachineSummary(
            machine=machine,
            start=start,
            end=end,
            total_days=total_days,
            off_time_days=off_time_days,
            scheduled_days=len(scheduled),
            available_days=total_days - off_time_days,
            total_off_time_hours=sum(len(hours) for hours in availability.values()),
            total_scheduled_hours=sum(scheduled.values()),
        )

    async def describe_slot(self, machine: str, day: date, hour: int) -> str:
        unavailable = await self.store.get_for_date(machine, day)
        events = await self.schedule.get_events_for_date(day, machine)
        state = cell_state(machine, day, hour, unavailable=unavailable, events=events)
        return slot_title(machine, hour, state)


__all__ = ["AvailabilityService"]
