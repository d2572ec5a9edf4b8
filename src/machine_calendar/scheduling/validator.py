from __future__ import annotations

import logging
from datetime import date

from .availability import AvailabilityStore
from .schedule_index import ScheduleIndex
from .slots import SlotDecision, check_hour_range

logger = logging.getLogger(__name__)


class SlotValidator:
    """Decides whether a slot may be marked unavailable or receive a task.

    Both checks read current state from the stores and never mutate anything.
    """

    def __init__(self, availability: AvailabilityStore, schedule: ScheduleIndex) -> None:
        self.availability = availability
        self.schedule = schedule

    async def can_mark_unavailable(self, machine: str, day: date, hour: int) -> bool:
        return not await self.schedule.is_occupied(machine, day, hour)

    async def can_schedule_task(self, machine: str, day: date, start_hour: int, duration: int) -> SlotDecision:
        occupied = await self.schedule.occupied_hours(machine, day)
        unavailable = await self.availability.get_for_date(machine, day, strict=True)
        decision = check_hour_range(start_hour, duration, occupied=occupied, unavailable=unavailable)
        if not decision.ok:
            logger.debug(
                "Slot %s %s %d+%d rejected: %s at %s",
                machine,
                day,
                start_hour,
                duration,
                decision.reason.value if decision.reason else None,
                decision.hour,
            )
        return decision


__all__ = ["SlotValidator"]
