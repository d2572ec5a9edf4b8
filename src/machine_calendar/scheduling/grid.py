"""Pure grid layout for the year, month and week views.

``render`` turns a view state plus availability and event snapshots into a
:class:`GridDescription`: positioned cells carrying state flags, CSS-style
class names and labels. Nothing here performs I/O.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain import HOURS_PER_DAY, AvailabilityLevel, CellState, ScheduledEvent, ViewKind, ViewState
from .slots import cell_state, format_hour

DAYS_PER_WEEK = 7
MAX_WEEKS_PER_MONTH = 6
SUNDAY_FIRST_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONDAY_FIRST_HEADERS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

AvailabilitySnapshot = Mapping[Tuple[str, date], FrozenSet[int]]


def _first_of_next_month(year: int, month: int) -> date:
    return date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)


def weeks_of_month(year: int, month: int) -> List[List[date]]:
    """Sunday-first weeks covering ``month``.

    Starts at the Sunday on or before the 1st and emits at most six weeks,
    stopping as soon as the next row would lie entirely in the following month.
    """

    first = date(year, month, 1)
    next_month = _first_of_next_month(year, month)
    cursor = first - timedelta(days=(first.weekday() + 1) % DAYS_PER_WEEK)
    weeks: List[List[date]] = []
    while len(weeks) < MAX_WEEKS_PER_MONTH:
        weeks.append([cursor + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)])
        cursor += timedelta(days=DAYS_PER_WEEK)
        if cursor >= next_month:
            break
    return weeks


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""

    return day - timedelta(days=day.weekday())


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Capability set shared by the scheduler board and the machine settings page."""

    show_machines: bool = True
    interactive: bool = True
    enable_drag_drop: bool = False
    start_hour: int = 0
    end_hour: int = HOURS_PER_DAY

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= HOURS_PER_DAY:
            raise ValueError(f"Invalid hour window [{self.start_hour}, {self.end_hour})")

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)


@dataclass(frozen=True, slots=True)
class GridCell:
    row: int
    column: int
    label: str
    date: Optional[date] = None
    machine: Optional[str] = None
    hour: Optional[int] = None
    month: Optional[int] = None
    state: Optional[CellState] = None
    availability: AvailabilityLevel = AvailabilityLevel.NONE
    event_count: int = 0
    event_ids: Tuple[str, ...] = ()
    in_month: bool = True
    is_today: bool = False
    interactive: bool = False
    droppable: bool = False
    title: str = ""
    classes: Tuple[str, ...] = ()
    children: Tuple["GridCell", ...] = ()


@dataclass(frozen=True, slots=True)
class GridDescription:
    view: ViewKind
    anchor_date: date
    start: date
    end: date
    machines: Tuple[str, ...]
    column_labels: Tuple[str, ...]
    row_labels: Tuple[str, ...]
    cells: Tuple[GridCell, ...]
    options: RenderOptions = field(default_factory=RenderOptions)

    def find(
        self, *, day: Optional[date] = None, machine: Optional[str] = None, hour: Optional[int] = None
    ) -> Optional[GridCell]:
        for cell in self.cells:
            if (
                (day is None or cell.date == day)
                and (machine is None or cell.machine == machine)
                and (hour is None or cell.hour == hour)
            ):
                return cell
        return None


def visible_range(state: ViewState) -> Tuple[date, date]:
    """First and last date drawn for ``state``, including spill-over days."""

    anchor = state.anchor_date
    if state.view is ViewKind.WEEK:
        monday = start_of_week(anchor)
        return monday, monday + timedelta(days=DAYS_PER_WEEK - 1)
    if state.view is ViewKind.MONTH:
        weeks = weeks_of_month(anchor.year, anchor.month)
        return weeks[0][0], weeks[-1][-1]
    return weeks_of_month(anchor.year, 1)[0][0], weeks_of_month(anchor.year, 12)[-1][-1]


def availability_level(hours: Iterable[FrozenSet[int]]) -> AvailabilityLevel:
    """Aggregate one or more machines' unavailable hours for a day indicator."""

    sizes = [len(item) for item in hours]
    if sizes and all(size >= HOURS_PER_DAY for size in sizes):
        return AvailabilityLevel.FULL
    if any(size > 0 for size in sizes):
        return AvailabilityLevel.PARTIAL
    return AvailabilityLevel.NONE


def describe_state(state: CellState) -> str:
    return {
        CellState.OCCUPIED: "Occupied",
        CellState.UNAVAILABLE: "Unavailable",
        CellState.FREE: "Available",
    }[state]


def slot_title(machine: str, hour: int, state: CellState) -> str:
    return f"{format_hour(hour)} - {machine} ({describe_state(state)})"


class _Snapshot:
    def __init__(self, availability: AvailabilitySnapshot, events: Iterable[ScheduledEvent], machines: Sequence[str]):
        self.availability = availability
        self.machines = tuple(machines)
        self.events_by_day: Dict[date, List[ScheduledEvent]] = defaultdict(list)
        for event in events:
            if not self.machines or event.machine in self.machines:
                self.events_by_day[event.date].append(event)

    def unavailable(self, machine: str, day: date) -> FrozenSet[int]:
        return self.availability.get((machine, day), frozenset())

    def events_on(self, day: date) -> List[ScheduledEvent]:
        return self.events_by_day.get(day, [])

    def day_level(self, day: date) -> AvailabilityLevel:
        return availability_level(self.unavailable(machine, day) for machine in self.machines)


def _day_classes(*, in_month: bool, is_today: bool, event_count: int, level: AvailabilityLevel) -> Tuple[str, ...]:
    classes = ["calendar-day", "current-month" if in_month else "other-month"]
    if is_today:
        classes.append("today")
    if event_count:
        classes.append("has-events")
    if level is AvailabilityLevel.FULL:
        classes.append("fully-unavailable")
    elif level is AvailabilityLevel.PARTIAL:
        classes.append("partially-unavailable")
    return tuple(classes)


def _month_days(
    snapshot: _Snapshot,
    year: int,
    month: int,
    *,
    today: Optional[date],
    options: RenderOptions,
    with_details: bool,
) -> List[GridCell]:
    cells = []
    for row, week in enumerate(weeks_of_month(year, month)):
        for column, day in enumerate(week):
            events = snapshot.events_on(day)
            in_month = day.month == month
            level = snapshot.day_level(day) if with_details else AvailabilityLevel.NONE
            is_today = today == day
            cells.append(
                GridCell(
                    row=row,
                    column=column,
                    label=str(day.day),
                    date=day,
                    month=day.month,
                    availability=level,
                    event_count=len(events),
                    event_ids=tuple(event.id for event in events) if with_details else (),
                    in_month=in_month,
                    is_today=is_today,
                    interactive=options.interactive and with_details,
                    classes=_day_classes(
                        in_month=in_month, is_today=is_today, event_count=len(events), level=level
                    ),
                )
            )
    return cells


def _render_year(
    state: ViewState, snapshot: _Snapshot, options: RenderOptions, today: Optional[date]
) -> Tuple[Tuple[str, ...], Tuple[str, ...], List[GridCell]]:
    year = state.anchor_date.year
    cells = []
    for month in range(1, 13):
        mini = _month_days(snapshot, year, month, today=today, options=options, with_details=False)
        month_events = sum(cell.event_count for cell in mini if cell.in_month)
        is_current = today is not None and (today.year, today.month) == (year, month)
        classes = ["month-cell"]
        if is_current:
            classes.append("current-month")
        cells.append(
            GridCell(
                row=(month - 1) // 3,
                column=(month - 1) % 3,
                label=MONTH_NAMES[month - 1],
                date=date(year, month, 1),
                month=month,
                event_count=month_events,
                is_today=is_current,
                interactive=options.interactive,
                classes=tuple(classes),
                children=tuple(mini),
            )
        )
    return (), (), cells


def _render_month(
    state: ViewState, snapshot: _Snapshot, options: RenderOptions, today: Optional[date]
) -> Tuple[Tuple[str, ...], Tuple[str, ...], List[GridCell]]:
    anchor = state.anchor_date
    cells = _month_days(snapshot, anchor.year, anchor.month, today=today, options=options, with_details=True)
    return SUNDAY_FIRST_HEADERS, (), cells


def week_slot(
    unavailable: FrozenSet[int],
    events: Sequence[ScheduledEvent],
    *,
    machine: str,
    day: date,
    hour: int,
    row: int,
    column: int,
    options: RenderOptions,
    today: Optional[date] = None,
) -> GridCell:
    """Describe one week-view slot. Shared by full renders and single-cell refreshes."""

    state = cell_state(machine, day, hour, unavailable=unavailable, events=events)
    covering = tuple(event.id for event in events if event.covers(machine, day, hour))
    classes = ["time-slot", state.value]
    if options.interactive:
        classes.append("interactive")
    droppable = options.enable_drag_drop and state is CellState.FREE
    if droppable:
        classes.append("droppable")
    if today == day:
        classes.append("today")
    return GridCell(
        row=row,
        column=column,
        label=format_hour(hour),
        date=day,
        machine=machine,
        hour=hour,
        month=day.month,
        state=state,
        event_count=len(covering),
        event_ids=covering,
        is_today=today == day,
        interactive=options.interactive,
        droppable=droppable,
        title=slot_title(machine, hour, state),
        classes=tuple(classes),
    )


def week_row(machines: Sequence[str], machine: str, hour: int, options: RenderOptions) -> int:
    hours_per_machine = options.end_hour - options.start_hour
    return list(machines).index(machine) * hours_per_machine + (hour - options.start_hour)


def _week_header(day: date) -> str:
    return f"{MONDAY_FIRST_HEADERS[day.weekday()]} {day.month}/{day.day}"


def _render_week(
    state: ViewState, snapshot: _Snapshot, options: RenderOptions, today: Optional[date]
) -> Tuple[Tuple[str, ...], Tuple[str, ...], List[GridCell]]:
    monday = start_of_week(state.anchor_date)
    days = [monday + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]
    rows = []
    cells = []
    for machine in snapshot.machines:
        for hour in options.hours:
            rows.append(f"{machine} {format_hour(hour)}" if options.show_machines else format_hour(hour))
            row = week_row(snapshot.machines, machine, hour, options)
            for column, day in enumerate(days):
                cells.append(
                    week_slot(
                        snapshot.unavailable(machine, day),
                        snapshot.events_on(day),
                        machine=machine,
                        day=day,
                        hour=hour,
                        row=row,
                        column=column,
                        options=options,
                        today=today,
                    )
                )
    return tuple(_week_header(day) for day in days), tuple(rows), cells


_RENDERERS = {
    ViewKind.YEAR: _render_year,
    ViewKind.MONTH: _render_month,
    ViewKind.WEEK: _render_week,
}


def render(
    state: ViewState,
    availability: AvailabilitySnapshot,
    events: Iterable[ScheduledEvent],
    *,
    machines: Sequence[str],
    options: Optional[RenderOptions] = None,
    today: Optional[date] = None,
) -> GridDescription:
    """Lay out ``state`` from snapshots keyed by ``(machine, date)``.

    Days missing from ``availability`` are treated as fully available. Events
    for machines outside ``machines`` are ignored.
    """

    options = options or RenderOptions()
    snapshot = _Snapshot(availability, events, machines)
    columns, rows, cells = _RENDERERS[state.view](state, snapshot, options, today)
    start, end = visible_range(state)
    return GridDescription(
        view=state.view,
        anchor_date=state.anchor_date,
        start=start,
        end=end,
        machines=snapshot.machines,
        column_labels=columns,
        row_labels=rows,
        cells=tuple(cells),
        options=options,
    )


__all__ = [
    "AvailabilitySnapshot",
    "GridCell",
    "GridDescription",
    "MONTH_NAMES",
    "RenderOptions",
    "availability_level",
    "describe_state",
    "render",
    "slot_title",
    "start_of_week",
    "visible_range",
    "week_row",
    "week_slot",
    "weeks_of_month",
]
