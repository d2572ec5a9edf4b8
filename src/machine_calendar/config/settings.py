from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..core.config import DATA_DIR

load_dotenv()


@dataclass(frozen=True)
class SupabaseSettings:
    url: Optional[str]
    anon_key: Optional[str]

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.url:
            missing.append("SUPABASE_URL")
        if not self.anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing


@dataclass(frozen=True)
class StorageSettings:
    backend: str
    availability_table: str
    events_table: str
    tasks_table: str
    state_file: Path

    @property
    def uses_supabase(self) -> bool:
        return self.backend == "supabase"


@dataclass(frozen=True)
class CalendarSettings:
    week_start_hour: int
    week_end_hour: int
    off_time_start_hour: int
    off_time_end_hour: int
    default_view: str


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    log_dir: Path


@dataclass(frozen=True)
class AppSettings:
    supabase: SupabaseSettings
    storage: StorageSettings
    calendar: CalendarSettings
    logging: LoggingSettings


def _hour_from_env(name: str, default: int, *, upper: int = 24) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if not 0 <= value <= upper:
        return default
    return value


def _hour_window_from_env(start_name: str, end_name: str, default: tuple[int, int]) -> tuple[int, int]:
    start = _hour_from_env(start_name, default[0], upper=23)
    end = _hour_from_env(end_name, default[1])
    if start >= end:
        return default
    return start, end


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    supabase = SupabaseSettings(
        url=os.getenv("SUPABASE_URL"),
        anon_key=os.getenv("SUPABASE_ANON_KEY"),
    )

    storage = StorageSettings(
        backend=os.getenv("MACHINE_CALENDAR_STORAGE_BACKEND", "local").lower(),
        availability_table=os.getenv("SUPABASE_AVAILABILITY_TABLE", "machine_availability"),
        events_table=os.getenv("SUPABASE_EVENTS_TABLE", "scheduled_events"),
        tasks_table=os.getenv("SUPABASE_TASKS_TABLE", "production_tasks"),
        state_file=Path(os.getenv("MACHINE_CALENDAR_STATE_FILE", DATA_DIR / "calendar_state.json")),
    )

    week_start, week_end = _hour_window_from_env(
        "MACHINE_CALENDAR_WEEK_START_HOUR", "MACHINE_CALENDAR_WEEK_END_HOUR", (0, 24)
    )
    off_start, off_end = _hour_window_from_env(
        "MACHINE_CALENDAR_OFF_TIME_START_HOUR", "MACHINE_CALENDAR_OFF_TIME_END_HOUR", (7, 19)
    )
    default_view = os.getenv("MACHINE_CALENDAR_DEFAULT_VIEW", "month").lower()
    if default_view not in ("year", "month", "week"):
        default_view = "month"

    calendar = CalendarSettings(
        week_start_hour=week_start,
        week_end_hour=week_end,
        off_time_start_hour=off_start,
        off_time_end_hour=off_end,
        default_view=default_view,
    )

    logging_settings = LoggingSettings(
        level=os.getenv("MACHINE_CALENDAR_LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("MACHINE_CALENDAR_LOG_DIR", DATA_DIR / "logs")),
    )

    return AppSettings(supabase=supabase, storage=storage, calendar=calendar, logging=logging_settings)
