from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import orjson

from .config import DATA_DIR, ensure_data_dir


CALENDAR_STATE_FILE = DATA_DIR / "calendar_state.json"

DEFAULT_CALENDAR_STATE: Dict[str, Any] = {
    "availability": {},
    "events": [],
    "tasks": [],
    "metadata": {"schema_version": 1},
}


class CalendarStore:
    """JSON file holding availability rows, scheduled events and the task backlog.

    Availability is stored as ``{machine_id: {"YYYY-MM-DD": [hours...]}}``.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or CALENDAR_STATE_FILE
        self._state: Optional[Dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_materialized(self) -> None:
        if self._state is not None:
            return
        if not self._path.exists():
            ensure_data_dir(self._path.parent)
            self._state = deepcopy(DEFAULT_CALENDAR_STATE)
            self.persist()
            return
        raw = self._path.read_bytes()
        if not raw:
            self._state = deepcopy(DEFAULT_CALENDAR_STATE)
            return
        self._state = orjson.loads(raw)
        # Backfill missing keys when upgrading.
        for key, value in DEFAULT_CALENDAR_STATE.items():
            if key not in self._state:
                self._state[key] = deepcopy(value)

    @property
    def data(self) -> Dict[str, Any]:
        self._ensure_materialized()
        assert self._state is not None
        return self._state

    def persist(self) -> None:
        if self._state is None:
            return
        payload = orjson.dumps(self._state, option=orjson.OPT_INDENT_2)
        self._path.write_bytes(payload + b"\n")

    def mutate(self, callback: Callable[[Dict[str, Any]], Any]) -> Any:
        """Apply ``callback`` to a copy of the state and persist it.

        The in-memory state is only replaced once the file write succeeds, so a
        failed write leaves both the file and memory at their previous value.
        """

        self._ensure_materialized()
        assert self._state is not None
        draft = deepcopy(self._state)
        result = callback(draft)
        payload = orjson.dumps(draft, option=orjson.OPT_INDENT_2)
        self._path.write_bytes(payload + b"\n")
        self._state = draft
        return result

    def reload(self) -> None:
        self._state = None
        self._ensure_materialized()


__all__ = ["CalendarStore", "CALENDAR_STATE_FILE", "DEFAULT_CALENDAR_STATE"]
