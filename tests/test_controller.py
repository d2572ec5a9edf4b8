from __future__ import annotations

import asyncio
from datetime import date

import pytest

from conftest import RecordingRenderTarget, make_event
from machine_calendar.domain import InteractionKind, RejectionReason
from machine_calendar.scheduling import InteractionPhase, SlotInteractionController

DAY = date(2025, 3, 10)


class TestToggleAvailability:
    @pytest.mark.asyncio
    async def test_toggle_marks_hour_and_renders_cell(self, controller, provider, render_target):
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.success
        assert outcome.status == "success"
        assert outcome.unavailable_hours == {9}
        assert provider.availability[("M1", DAY)] == [9]
        assert render_target.cells == [("M1", DAY, 9)]
        assert controller.phase is InteractionPhase.IDLE

    @pytest.mark.asyncio
    async def test_occupied_hour_is_rejected_without_write(self, controller, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        outcome = await controller.on_toggle_availability("M1", DAY, 10)
        assert not outcome.success
        assert outcome.reason is RejectionReason.OCCUPIED
        assert outcome.status == "rejected:occupied"
        assert provider.count("set_availability") == 0
        assert controller.phase is InteractionPhase.IDLE

    @pytest.mark.asyncio
    async def test_write_failure_is_reported_and_guard_reset(self, controller, provider, render_target):
        provider.failing.add("set_availability")
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.reason is RejectionReason.STORAGE
        assert render_target.cells == []
        assert not controller.busy
        provider.failing.clear()
        assert (await controller.on_toggle_availability("M1", DAY, 9)).success

    @pytest.mark.asyncio
    async def test_event_read_failure_rejects_toggle(self, controller, provider):
        provider.failing.add("get_events_by_date")
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.reason is RejectionReason.STORAGE
        assert provider.count("set_availability") == 0

    @pytest.mark.asyncio
    async def test_availability_read_failure_keeps_stored_hours(self, controller, provider, render_target):
        provider.availability[("M1", DAY)] = [1, 2, 3, 4]
        provider.failing.update({"get_availability", "get_availability_range"})
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.reason is RejectionReason.STORAGE
        assert provider.availability[("M1", DAY)] == [1, 2, 3, 4]
        assert render_target.cells == []

    @pytest.mark.parametrize("hour", [-1, 24])
    @pytest.mark.asyncio
    async def test_hour_outside_day_is_invalid_range(self, controller, provider, hour):
        outcome = await controller.on_toggle_availability("M1", DAY, hour)
        assert outcome.status == "rejected:invalid_range"
        assert provider.count("set_availability") == 0
        assert not controller.busy

    @pytest.mark.asyncio
    async def test_controller_is_free_when_rejection_is_delivered(self, controller, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        busy_when_notified = []
        controller.on_slot_click(lambda outcome: busy_when_notified.append(controller.busy))
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.reason is RejectionReason.OCCUPIED
        assert busy_when_notified == [False]

    @pytest.mark.asyncio
    async def test_listener_sees_idle_phase_on_rejection(self, controller):
        phases = []
        controller.on_slot_drop(lambda outcome: phases.append(controller.phase))
        await controller.on_drop_task("task-3h", "M1", DAY, 23)
        assert phases == [InteractionPhase.IDLE]

    @pytest.mark.asyncio
    async def test_second_toggle_while_busy_is_dropped(self, controller, provider):
        release = asyncio.Event()
        original = provider.set_availability

        async def slow_set(machine, day, hours):
            await release.wait()
            await original(machine, day, hours)

        provider.set_availability = slow_set
        first = asyncio.create_task(controller.on_toggle_availability("M1", DAY, 9))
        await asyncio.sleep(0)
        while not controller.busy:
            await asyncio.sleep(0)
        second = await controller.on_toggle_availability("M1", DAY, 10)
        assert second.reason is RejectionReason.BUSY
        release.set()
        assert (await first).success
        assert provider.availability[("M1", DAY)] == [9]
        assert not controller.busy

    @pytest.mark.asyncio
    async def test_failed_cell_render_falls_back_to_week(self, store, index, validator, provider):
        target = RecordingRenderTarget(fail_cells=True)
        controller = SlotInteractionController(store, index, validator, provider, render_target=target)
        outcome = await controller.on_toggle_availability("M1", DAY, 9)
        assert outcome.success
        assert target.weeks == [DAY]

    @pytest.mark.asyncio
    async def test_click_listener_receives_outcome(self, controller):
        seen = []
        controller.on_slot_click(seen.append)
        await controller.on_toggle_availability("M1", DAY, 3)
        assert [outcome.kind for outcome in seen] == [InteractionKind.TOGGLE]


class TestDropTask:
    @pytest.mark.asyncio
    async def test_drop_creates_event_covering_task_duration(self, controller, provider, render_target):
        outcome = await controller.on_drop_task("task-3h", "M1", DAY, 8)
        assert outcome.success
        assert outcome.event.start_hour == 8 and outcome.event.end_hour == 11
        assert outcome.event.title == "Mill housing"
        assert outcome.event.id in provider.events
        assert render_target.cells == [("M1", DAY, 8), ("M1", DAY, 9), ("M1", DAY, 10)]

    @pytest.mark.asyncio
    async def test_drop_past_midnight_is_invalid_range(self, controller, provider):
        outcome = await controller.on_drop_task("task-3h", "M1", DAY, 22)
        assert outcome.reason is RejectionReason.INVALID_RANGE
        assert provider.events == {}

    @pytest.mark.asyncio
    async def test_drop_onto_unavailable_hour_names_the_hour(self, controller, store, provider):
        await store.set("M1", DAY, {10})
        outcome = await controller.on_drop_task("task-3h", "M1", DAY, 8)
        assert outcome.reason is RejectionReason.UNAVAILABLE
        assert outcome.hour == 10
        assert "10:00" in outcome.message
        assert provider.events == {}

    @pytest.mark.asyncio
    async def test_drop_onto_occupied_hour_is_rejected(self, controller, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        outcome = await controller.on_drop_task("task-2h", "M1", DAY, 10)
        assert outcome.reason is RejectionReason.OCCUPIED
        assert list(provider.events) == ["evt-1"]

    @pytest.mark.asyncio
    async def test_availability_read_failure_rejects_drop(self, controller, provider):
        provider.availability[("M1", DAY)] = [9, 10, 11]
        provider.failing.add("get_availability")
        outcome = await controller.on_drop_task("task-3h", "M1", DAY, 9)
        assert outcome.reason is RejectionReason.STORAGE
        assert provider.events == {}

    @pytest.mark.asyncio
    async def test_unknown_task_is_reported(self, controller):
        outcome = await controller.on_drop_task("nope", "M1", DAY, 8)
        assert outcome.reason is RejectionReason.TASK_NOT_FOUND

    @pytest.mark.asyncio
    async def test_successful_drop_invalidates_availability_cache(self, controller, store):
        await store.get_for_date("M1", DAY)
        assert ("M1", DAY) in store.cache
        await controller.on_drop_task("task-2h", "M1", DAY, 1)
        assert ("M1", DAY) not in store.cache

    @pytest.mark.asyncio
    async def test_drop_listener_receives_rejections_too(self, controller):
        seen = []
        controller.on_slot_drop(seen.append)
        await controller.on_drop_task("task-3h", "M1", DAY, 23)
        assert seen[0].status == "rejected:invalid_range"


class TestUnschedule:
    @pytest.mark.asyncio
    async def test_unschedule_frees_hours_and_rerenders(self, controller, index, render_target):
        dropped = await controller.on_drop_task("task-2h", "M1", DAY, 4)
        render_target.cells.clear()
        outcome = await controller.on_unschedule(dropped.event.id)
        assert outcome.success
        assert not await index.is_occupied("M1", DAY, 4)
        assert render_target.cells == [("M1", DAY, 4), ("M1", DAY, 5)]

    @pytest.mark.asyncio
    async def test_unknown_event_is_not_found(self, controller):
        outcome = await controller.on_unschedule("missing")
        assert outcome.reason is RejectionReason.NOT_FOUND
        assert not controller.busy
