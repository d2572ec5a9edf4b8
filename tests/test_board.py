from __future__ import annotations

from datetime import date

import pytest

from conftest import FIXED_TODAY, make_event
from machine_calendar.domain import CellState, ViewKind
from machine_calendar.scheduling import RenderOptions, ViewManager
from machine_calendar.services import CalendarBoard


@pytest.fixture
def views() -> ViewManager:
    return ViewManager(view=ViewKind.WEEK, anchor=date(2025, 3, 10), today=lambda: FIXED_TODAY)


@pytest.fixture
def board(context, views) -> CalendarBoard:
    board = CalendarBoard(context, views=views, machines=["M1"], options=RenderOptions(start_hour=8, end_hour=12))
    context.controller.render_target = board
    return board


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_renders_visible_week(self, board, provider):
        provider.availability[("M1", date(2025, 3, 11))] = [8]
        provider.events["evt-1"] = make_event(start=9, end=11)
        grid = await board.load()
        assert grid.view is ViewKind.WEEK
        assert grid.find(day=date(2025, 3, 11), hour=8).state is CellState.UNAVAILABLE
        assert grid.find(day=date(2025, 3, 10), hour=9).state is CellState.OCCUPIED
        assert grid.find(day=date(2025, 3, 12), hour=8).is_today

    @pytest.mark.asyncio
    async def test_stale_load_is_discarded(self, board, views, provider):
        first = await board.load()
        provider.before_range_return = views.navigate_next
        board.context.availability.clear()
        assert await board.load() is None
        assert board.discarded_loads == 1
        assert board.grid is first

    @pytest.mark.asyncio
    async def test_event_read_failure_renders_without_events(self, board, provider, context):
        provider.events["evt-1"] = make_event(start=9, end=11)
        provider.failing.add("get_events_by_date")
        grid = await board.load()
        assert grid.find(day=date(2025, 3, 10), hour=9).state is CellState.FREE
        assert context.drain_storage_errors()


class TestTargetedRender:
    @pytest.mark.asyncio
    async def test_toggle_updates_only_that_cell(self, board, context):
        await board.load()
        outcome = await context.controller.on_toggle_availability("M1", date(2025, 3, 13), 10)
        assert outcome.success
        assert board.grid.find(day=date(2025, 3, 13), hour=10).state is CellState.UNAVAILABLE
        assert board.grid.find(day=date(2025, 3, 13), hour=11).state is CellState.FREE

    @pytest.mark.asyncio
    async def test_drop_outside_visible_week_triggers_full_reload(self, board, context):
        before = await board.load()
        outcome = await context.controller.on_drop_task("task-2h", "M1", date(2025, 4, 2), 8)
        assert outcome.success
        assert board.grid is not before
        assert board.grid.start == date(2025, 3, 10)

    @pytest.mark.asyncio
    async def test_render_cell_without_grid_raises(self, board):
        with pytest.raises(LookupError):
            await board.render_cell("M1", date(2025, 3, 10), 9)
