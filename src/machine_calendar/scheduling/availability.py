from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from ..data.cache import AvailabilityCache, date_range
from ..data.providers import StorageProvider
from ..domain import (
    MachineAvailability,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
    normalize_hours,
)

logger = logging.getLogger(__name__)

StorageErrorHandler = Callable[[StorageUnavailable], None]


class AvailabilityStore:
    """Cached view of per-machine unavailable hours.

    Display reads never raise: a failed fetch is reported through
    ``on_storage_error`` and treated as "no unavailable hours" without being
    cached, so the next read retries. Reads that feed a write or a validation
    pass ``strict=True`` and get :class:`StorageUnavailable` instead. Writes
    raise :class:`StorageWriteFailed` and leave the cache untouched; a
    successful write updates the cache before returning.
    """

    def __init__(
        self,
        provider: StorageProvider,
        *,
        cache: Optional[AvailabilityCache] = None,
        on_storage_error: Optional[StorageErrorHandler] = None,
    ) -> None:
        self.provider = provider
        self.cache = cache if cache is not None else AvailabilityCache()
        self.on_storage_error = on_storage_error

    @staticmethod
    def _unavailable(error: StorageError) -> StorageUnavailable:
        unavailable = error if isinstance(error, StorageUnavailable) else StorageUnavailable(str(error))
        logger.warning("Availability read failed: %s", unavailable)
        return unavailable

    def _report(self, error: StorageError) -> StorageUnavailable:
        unavailable = self._unavailable(error)
        if self.on_storage_error is not None:
            self.on_storage_error(unavailable)
        return unavailable

    async def get_for_date(self, machine: str, day: date, *, strict: bool = False) -> FrozenSet[int]:
        cached = self.cache.get(machine, day)
        if cached is not None:
            return cached
        try:
            hours = await self.provider.get_availability(machine, day)
        except StorageError as exc:
            if strict:
                raise self._unavailable(exc) from exc
            self._report(exc)
            return frozenset()
        return self.cache.put(machine, day, normalize_hours(hours))

    async def get_for_range(
        self, machine: str, start: date, end: date, *, strict: bool = False
    ) -> Dict[date, FrozenSet[int]]:
        """Return unavailable hours for every day in ``[start, end]``.

        Only days missing from the cache are fetched. Providers without a range
        query are asked day by day. With ``strict`` a failed fetch raises
        :class:`StorageUnavailable` instead of filling the gaps with empty sets.
        """

        if end < start:
            raise ValueError(f"Range end {end} precedes start {start}")
        missing = self.cache.missing_days(machine, start, end)
        if missing:
            await self._fill_range(machine, missing, strict=strict)
        return {
            day: self.cache.get(machine, day) or frozenset()
            for day in date_range(start, end)
        }

    async def _fill_range(self, machine: str, missing: List[date], *, strict: bool) -> None:
        fetch_range = getattr(self.provider, "get_availability_range", None)
        if fetch_range is not None:
            try:
                rows: List[MachineAvailability] = await fetch_range(machine, missing[0], missing[-1])
            except NotImplementedError:
                logger.debug("Provider has no range query; fetching %d days individually", len(missing))
            except StorageError as exc:
                if strict:
                    raise self._unavailable(exc) from exc
                self._report(exc)
                return
            else:
                by_day = {row.date: row.unavailable_hours for row in rows if row.machine == machine}
                for day in missing:
                    self.cache.put(machine, day, by_day.get(day, frozenset()))
                return
        await asyncio.gather(*(self.get_for_date(machine, day, strict=strict) for day in missing))

    async def set(self, machine: str, day: date, hours: Iterable[int]) -> FrozenSet[int]:
        normalized = normalize_hours(hours)
        try:
            await self.provider.set_availability(machine, day, sorted(normalized))
        except StorageError as exc:
            logger.warning("Availability write failed for %s on %s: %s", machine, day, exc)
            raise StorageWriteFailed(str(exc)) from exc
        logger.debug("Stored %d unavailable hours for %s on %s", len(normalized), machine, day)
        return self.cache.put(machine, day, normalized)

    async def toggle_hour(self, machine: str, day: date, hour: int) -> FrozenSet[int]:
        current = await self.get_for_date(machine, day, strict=True)
        return await self.set(machine, day, current ^ {hour})

    def invalidate(self, machine: Optional[str] = None, day: Optional[date] = None) -> int:
        return self.cache.invalidate(machine, day)

    def clear(self) -> None:
        self.cache.clear()


__all__ = ["AvailabilityStore", "StorageErrorHandler"]
