from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

CacheKey = Tuple[str, date]


def date_range(start: date, end: date) -> Iterable[date]:
    delta = (end - start).days
    for index in range(delta + 1):
        yield start + timedelta(days=index)


@dataclass
class AvailabilityCache:
    """Last-fetched unavailable hours, keyed by ``(machine, date)``."""

    entries: Dict[CacheKey, FrozenSet[int]] = field(default_factory=dict)

    def get(self, machine: str, day: date) -> Optional[FrozenSet[int]]:
        return self.entries.get((machine, day))

    def put(self, machine: str, day: date, hours: Iterable[int]) -> FrozenSet[int]:
        value = frozenset(hours)
        self.entries[(machine, day)] = value
        return value

    def missing_days(self, machine: str, start: date, end: date) -> List[date]:
        return [day for day in date_range(start, end) if (machine, day) not in self.entries]

    def invalidate(self, machine: Optional[str] = None, day: Optional[date] = None) -> int:
        """Drop entries matching ``machine`` and/or ``day``; both ``None`` clears everything."""

        if machine is None and day is None:
            removed = len(self.entries)
            self.entries.clear()
            return removed
        stale = [
            key
            for key in self.entries
            if (machine is None or key[0] == machine) and (day is None or key[1] == day)
        ]
        for key in stale:
            del self.entries[key]
        return len(stale)

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries
