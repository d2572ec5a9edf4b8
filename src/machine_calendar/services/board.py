from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..domain import ScheduledEvent, StorageUnavailable, ViewKind
from ..scheduling import GridDescription, RenderOptions, ViewManager, render, visible_range
from ..scheduling.grid import week_slot
from .context import ServiceContext

logger = logging.getLogger(__name__)

LoadKey = Tuple[Tuple[str, ...], date, date]


class CalendarBoard:
    """Keeps the rendered grid in step with the view manager and the stores.

    A load whose machines or date range no longer match the current view when
    its fetches complete is discarded instead of painted. The board is also the
    controller's render target for single-cell refreshes.
    """

    def __init__(
        self,
        context: ServiceContext,
        *,
        views: ViewManager,
        machines: Sequence[str] = (),
        options: Optional[RenderOptions] = None,
    ) -> None:
        self.context = context
        self.views = views
        self.machines: Tuple[str, ...] = tuple(machines)
        self.options = options or RenderOptions()
        self.grid: Optional[GridDescription] = None
        self.discarded_loads = 0

    def current_key(self) -> LoadKey:
        start, end = visible_range(self.views.state)
        return self.machines, start, end

    def set_machines(self, machines: Sequence[str]) -> None:
        self.machines = tuple(machines)

    async def _fetch(self, key: LoadKey) -> Tuple[Dict[Tuple[str, date], FrozenSet[int]], List[ScheduledEvent]]:
        machines, start, end = key
        availability: Dict[Tuple[str, date], FrozenSet[int]] = {}
        for machine in machines:
            for day, hours in (await self.context.availability.get_for_range(machine, start, end)).items():
                availability[(machine, day)] = hours
        try:
            events = await self.context.schedule.get_events_for_range(start, end)
        except StorageUnavailable as exc:
            self.context.storage_errors.append(exc)
            events = []
        return availability, events

    async def load(self) -> Optional[GridDescription]:
        key = self.current_key()
        availability, events = await self._fetch(key)
        if self.current_key() != key:
            self.discarded_loads += 1
            logger.debug("Discarded stale load for %s..%s", key[1], key[2])
            return None
        self.grid = render(
            self.views.state,
            availability,
            events,
            machines=self.machines,
            options=self.options,
            today=self.views.today(),
        )
        return self.grid

    async def render_cell(self, machine: str, day: date, hour: int) -> None:
        grid = self.grid
        if grid is None or grid.view is not ViewKind.WEEK:
            raise LookupError("No week grid is on display")
        current = grid.find(day=day, machine=machine, hour=hour)
        if current is None:
            raise LookupError(f"Slot {machine} {day} {hour}:00 is not on display")
        unavailable = await self.context.availability.get_for_date(machine, day)
        events = await self.context.schedule.get_events_for_date(day)
        updated = week_slot(
            unavailable,
            events,
            machine=machine,
            day=day,
            hour=hour,
            row=current.row,
            column=current.column,
            options=grid.options,
            today=self.views.today(),
        )
        if self.grid is not grid:
            return
        self.grid = replace(grid, cells=tuple(updated if cell is current else cell for cell in grid.cells))

    async def render_week(self, day: date) -> None:
        await self.load()


__all__ = ["CalendarBoard"]
