from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from ..domain import ViewKind, ViewState
from .grid import MONTH_NAMES, start_of_week, visible_range

logger = logging.getLogger(__name__)

ViewListener = Callable[[ViewState], None]
Clock = Callable[[], date]


def normalize_state(view: ViewKind, day: date) -> ViewState:
    """Week views are anchored on their Monday; month and year keep the given day."""

    if view is ViewKind.WEEK:
        return ViewState(view, start_of_week(day))
    return ViewState(view, day)


def _shift_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def shift(state: ViewState, step: int) -> ViewState:
    """Move ``state`` by ``step`` periods of its own kind."""

    anchor = state.anchor_date
    if state.view is ViewKind.WEEK:
        return ViewState(ViewKind.WEEK, anchor + timedelta(days=7 * step))
    if state.view is ViewKind.MONTH:
        return ViewState(ViewKind.MONTH, _shift_months(anchor, step))
    return ViewState(ViewKind.YEAR, _shift_months(anchor, 12 * step))


def month_cell_target(year: int, month: int) -> ViewState:
    return ViewState(ViewKind.MONTH, date(year, month, 1))


def day_cell_target(day: date) -> ViewState:
    return ViewState(ViewKind.WEEK, start_of_week(day))


def _short(day: date) -> str:
    return MONTH_NAMES[day.month - 1][:3]


def period_label(state: ViewState) -> str:
    anchor = state.anchor_date
    if state.view is ViewKind.YEAR:
        return str(anchor.year)
    if state.view is ViewKind.MONTH:
        return f"{MONTH_NAMES[anchor.month - 1]} {anchor.year}"
    start = start_of_week(anchor)
    end = start + timedelta(days=6)
    if start.year != end.year:
        return f"{_short(start)} {start.day}, {start.year} - {_short(end)} {end.day}, {end.year}"
    if start.month != end.month:
        return f"{_short(start)} {start.day} - {_short(end)} {end.day}, {start.year}"
    return f"{MONTH_NAMES[start.month - 1]} {start.day} - {end.day}, {start.year}"


class ViewManager:
    """Tracks which period the calendar shows and notifies listeners on change.

    Every transition is synchronous and free of I/O; listeners receive the new
    :class:`ViewState` and decide what to load or render.
    """

    KEY_BINDINGS = {
        "t": "go_to_today",
        "T": "go_to_today",
        "ArrowLeft": "navigate_previous",
        "ArrowRight": "navigate_next",
        "y": ViewKind.YEAR,
        "m": ViewKind.MONTH,
        "w": ViewKind.WEEK,
    }

    def __init__(
        self,
        *,
        view: ViewKind = ViewKind.MONTH,
        anchor: Optional[date] = None,
        today: Clock = date.today,
    ) -> None:
        self._today = today
        self._state = normalize_state(ViewKind(view), anchor or today())
        self._listeners: List[ViewListener] = []

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def view(self) -> ViewKind:
        return self._state.view

    @property
    def anchor_date(self) -> date:
        return self._state.anchor_date

    def today(self) -> date:
        return self._today()

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _apply(self, state: ViewState) -> ViewState:
        if state == self._state:
            return state
        self._state = state
        logger.debug("View changed to %s %s", state.view.value, state.anchor_date)
        for listener in list(self._listeners):
            listener(state)
        return state

    def set_view(self, view: ViewKind, day: Optional[date] = None) -> ViewState:
        return self._apply(normalize_state(ViewKind(view), day or self._state.anchor_date))

    def navigate_previous(self) -> ViewState:
        return self._apply(shift(self._state, -1))

    def navigate_next(self) -> ViewState:
        return self._apply(shift(self._state, 1))

    def go_to_today(self) -> ViewState:
        return self._apply(normalize_state(self._state.view, self._today()))

    def open_month(self, year: int, month: int) -> ViewState:
        return self._apply(month_cell_target(year, month))

    def open_day(self, day: date) -> ViewState:
        return self._apply(day_cell_target(day))

    def handle_key(self, key: str) -> bool:
        action = self.KEY_BINDINGS.get(key)
        if action is None:
            return False
        if isinstance(action, ViewKind):
            self.set_view(action)
        else:
            getattr(self, action)()
        return True

    def period_label(self) -> str:
        return period_label(self._state)

    def visible_range(self) -> Tuple[date, date]:
        return visible_range(self._state)

    month_cell_target = staticmethod(month_cell_target)
    day_cell_target = staticmethod(day_cell_target)


__all__ = [
    "Clock",
    "ViewListener",
    "ViewManager",
    "day_cell_target",
    "month_cell_target",
    "normalize_state",
    "period_label",
    "shift",
]
