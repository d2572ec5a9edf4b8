from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "Machine Calendar"
APP_AUTHOR = "MachineCalendar"
DATA_DIR = Path(user_data_dir(APP_NAME, APP_AUTHOR))


def ensure_data_dir(path: Path = DATA_DIR) -> None:
    path.mkdir(parents=True, exist_ok=True)
