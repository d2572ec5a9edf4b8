from __future__ import annotations

from datetime import date

import pytest

from conftest import make_event
from machine_calendar.domain import AvailabilityLevel, CellState, ViewKind, ViewState
from machine_calendar.scheduling import RenderOptions, cell_state, render, visible_range, weeks_of_month

WEEK = ViewState(ViewKind.WEEK, date(2025, 3, 10))


class TestWeeksOfMonth:
    def test_starts_on_sunday_before_the_first(self):
        weeks = weeks_of_month(2025, 3)
        assert weeks[0][0] == date(2025, 2, 23)
        assert weeks[0][6] == date(2025, 3, 1)

    def test_month_needing_six_weeks(self):
        weeks = weeks_of_month(2025, 3)
        assert len(weeks) == 6
        assert weeks[-1][-1] == date(2025, 4, 5)

    def test_stops_when_next_row_is_entirely_next_month(self):
        # February 2015 starts on a Sunday and fills exactly four rows.
        weeks = weeks_of_month(2015, 2)
        assert len(weeks) == 4
        assert weeks[-1][-1] == date(2015, 2, 28)

    def test_december_rolls_into_next_year(self):
        weeks = weeks_of_month(2025, 12)
        assert weeks[-1][-1].year == 2026
        assert all(len(week) == 7 for week in weeks)

    @pytest.mark.parametrize("month", range(1, 13))
    def test_every_day_of_month_is_covered_once(self, month):
        days = [day for week in weeks_of_month(2025, month) for day in week if day.month == month]
        assert len(days) == len(set(days))
        assert days[0].day == 1


class TestCellState:
    def test_occupied_wins_over_unavailable(self):
        event = make_event(start=9, end=11)
        assert cell_state("M1", date(2025, 3, 10), 9, unavailable={9}, events=[event]) is CellState.OCCUPIED

    def test_unavailable_and_free(self):
        assert cell_state("M1", date(2025, 3, 10), 9, unavailable={9}, events=[]) is CellState.UNAVAILABLE
        assert cell_state("M1", date(2025, 3, 10), 8, unavailable={9}, events=[]) is CellState.FREE

    def test_event_on_other_machine_does_not_occupy(self):
        event = make_event(machine="M2")
        assert cell_state("M1", date(2025, 3, 10), 9, unavailable=set(), events=[event]) is CellState.FREE


class TestWeekRender:
    def test_dimensions_follow_hour_window(self):
        grid = render(WEEK, {}, [], machines=["M1"], options=RenderOptions(start_hour=6, end_hour=18))
        assert len(grid.cells) == 7 * 12
        assert grid.row_labels[0] == "M1 6:00"
        assert grid.column_labels[0] == "Mon 3/10"
        assert (grid.start, grid.end) == (date(2025, 3, 10), date(2025, 3, 16))

    def test_cell_states_and_titles(self):
        availability = {("M1", date(2025, 3, 10)): frozenset({9, 12})}
        events = [make_event(start=9, end=11)]
        grid = render(WEEK, availability, events, machines=["M1"])
        nine = grid.find(day=date(2025, 3, 10), machine="M1", hour=9)
        twelve = grid.find(day=date(2025, 3, 10), machine="M1", hour=12)
        thirteen = grid.find(day=date(2025, 3, 10), machine="M1", hour=13)
        assert nine.state is CellState.OCCUPIED and nine.event_ids == ("evt-1",)
        assert twelve.state is CellState.UNAVAILABLE
        assert thirteen.title == "13:00 - M1 (Available)"
        assert "occupied" in nine.classes

    def test_multiple_machines_get_their_own_rows(self):
        grid = render(WEEK, {}, [], machines=["M1", "M2"], options=RenderOptions(start_hour=8, end_hour=10))
        rows = {(cell.machine, cell.hour): cell.row for cell in grid.cells}
        assert rows[("M1", 8)] == 0
        assert rows[("M2", 8)] == 2
        assert len(grid.row_labels) == 4

    def test_drag_drop_marks_only_free_cells_droppable(self):
        availability = {("M1", date(2025, 3, 11)): frozenset({5})}
        grid = render(WEEK, availability, [], machines=["M1"], options=RenderOptions(enable_drag_drop=True))
        assert not grid.find(day=date(2025, 3, 11), machine="M1", hour=5).droppable
        assert grid.find(day=date(2025, 3, 11), machine="M1", hour=6).droppable

    def test_hidden_machine_labels(self):
        grid = render(WEEK, {}, [], machines=["M1"], options=RenderOptions(show_machines=False, start_hour=7, end_hour=8))
        assert grid.row_labels == ("7:00",)

    def test_today_is_flagged(self):
        grid = render(WEEK, {}, [], machines=["M1"], today=date(2025, 3, 12))
        assert grid.find(day=date(2025, 3, 12), hour=0).is_today
        assert not grid.find(day=date(2025, 3, 11), hour=0).is_today


class TestMonthRender:
    def test_indicators_and_counts(self):
        state = ViewState(ViewKind.MONTH, date(2025, 3, 1))
        availability = {
            ("M1", date(2025, 3, 4)): frozenset(range(24)),
            ("M1", date(2025, 3, 5)): frozenset({1}),
        }
        events = [make_event("a"), make_event("b", start=12, end=14)]
        grid = render(state, availability, events, machines=["M1"])
        assert grid.find(day=date(2025, 3, 4)).availability is AvailabilityLevel.FULL
        assert grid.find(day=date(2025, 3, 5)).availability is AvailabilityLevel.PARTIAL
        assert grid.find(day=date(2025, 3, 6)).availability is AvailabilityLevel.NONE
        assert grid.find(day=date(2025, 3, 10)).event_count == 2
        assert grid.column_labels[0] == "Sun"

    def test_spill_days_are_marked_other_month(self):
        grid = render(ViewState(ViewKind.MONTH, date(2025, 3, 1)), {}, [], machines=["M1"])
        assert not grid.find(day=date(2025, 2, 23)).in_month
        assert "other-month" in grid.find(day=date(2025, 2, 23)).classes
        assert len(grid.cells) == 42

    def test_fully_unavailable_needs_every_machine(self):
        state = ViewState(ViewKind.MONTH, date(2025, 3, 1))
        availability = {("M1", date(2025, 3, 4)): frozenset(range(24))}
        grid = render(state, availability, [], machines=["M1", "M2"])
        assert grid.find(day=date(2025, 3, 4)).availability is AvailabilityLevel.PARTIAL


class TestYearRender:
    def test_twelve_month_cells_with_mini_grids(self):
        grid = render(ViewState(ViewKind.YEAR, date(2025, 6, 1)), {}, [make_event()], machines=["M1"])
        assert len(grid.cells) == 12
        march = grid.cells[2]
        assert march.label == "March"
        assert (march.row, march.column) == (0, 2)
        assert march.event_count == 1
        assert len(march.children) == 42
        assert march.children[0].date == weeks_of_month(2025, 3)[0][0]

    def test_visible_range_spans_whole_year_grid(self):
        start, end = visible_range(ViewState(ViewKind.YEAR, date(2025, 6, 1)))
        assert start == date(2024, 12, 29)
        assert end == date(2026, 1, 3)
