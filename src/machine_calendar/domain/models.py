from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .enums import ViewKind

HOURS_PER_DAY = 24


def parse_day(value: Any) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def normalize_hours(hours: Iterable[Any]) -> FrozenSet[int]:
    """Coerce stored hour values (ints or numeric strings) into a validated set."""

    normalized = set()
    for raw in hours:
        hour = int(raw)
        if not 0 <= hour < HOURS_PER_DAY:
            raise ValueError(f"Hour out of range: {hour}")
        normalized.add(hour)
    return frozenset(normalized)


@dataclass(frozen=True, slots=True)
class MachineAvailability:
    machine: str
    date: date
    unavailable_hours: FrozenSet[int] = frozenset()

    @property
    def is_fully_unavailable(self) -> bool:
        return len(self.unavailable_hours) == HOURS_PER_DAY

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MachineAvailability":
        return cls(
            machine=str(record["machine_id"]),
            date=parse_day(record["date"]),
            unavailable_hours=normalize_hours(record.get("unavailable_hours") or []),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine,
            "date": self.date.isoformat(),
            "unavailable_hours": sorted(self.unavailable_hours),
        }


@dataclass(frozen=True, slots=True)
class ScheduledEvent:
    id: str
    task_id: str
    machine: str
    date: date
    start_hour: int
    end_hour: int
    title: str = ""
    color: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= HOURS_PER_DAY:
            raise ValueError(
                f"Invalid hour range [{self.start_hour}, {self.end_hour}) for event {self.id!r}"
            )

    @property
    def duration(self) -> int:
        return self.end_hour - self.start_hour

    def covers(self, machine: str, day: date, hour: int) -> bool:
        return self.machine == machine and self.date == day and self.start_hour <= hour < self.end_hour

    def overlaps(self, other: "ScheduledEvent") -> bool:
        return (
            self.machine == other.machine
            and self.date == other.date
            and self.start_hour < other.end_hour
            and other.start_hour < self.end_hour
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ScheduledEvent":
        return cls(
            id=str(record["id"]),
            task_id=str(record["task_id"]),
            machine=str(record["machine_id"]),
            date=parse_day(record["date"]),
            start_hour=int(record["start_hour"]),
            end_hour=int(record["end_hour"]),
            title=record.get("title") or "",
            color=record.get("color"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "machine_id": self.machine,
            "date": self.date.isoformat(),
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "title": self.title,
            "color": self.color,
        }


@dataclass(frozen=True, slots=True)
class TaskInfo:
    id: str
    name: str
    duration_hours: int
    color: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TaskInfo":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or record["id"]),
            duration_hours=int(record.get("duration_hours") or 0),
            color=record.get("color"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration_hours": self.duration_hours,
            "color": self.color,
        }


@dataclass(frozen=True, slots=True)
class ViewState:
    view: ViewKind
    anchor_date: date


@dataclass(frozen=True, slots=True)
class MachineSummary:
    machine: str
    start: date
    end: date
    total_days: int = 0
    off_time_days: int = 0
    scheduled_days: int = 0
    available_days: int = 0
    total_off_time_hours: int = 0
    total_scheduled_hours: int = 0
