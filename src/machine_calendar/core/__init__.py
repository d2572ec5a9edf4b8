"""Application paths and the local JSON state file."""

from .calendar_store import CALENDAR_STATE_FILE, DEFAULT_CALENDAR_STATE, CalendarStore
from .config import APP_NAME, DATA_DIR, ensure_data_dir

__all__ = [
    "APP_NAME",
    "CALENDAR_STATE_FILE",
    "CalendarStore",
    "DATA_DIR",
    "DEFAULT_CALENDAR_STATE",
    "ensure_data_dir",
]
