from __future__ import annotations

from datetime import date

import pytest

from conftest import make_event
from machine_calendar.domain import ConflictError, NotFoundError, StorageUnavailable, StorageWriteFailed

DAY = date(2025, 3, 10)


class TestOccupancy:
    @pytest.mark.asyncio
    async def test_hours_inside_event_are_occupied(self, index, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        assert await index.is_occupied("M1", DAY, 9)
        assert await index.is_occupied("M1", DAY, 10)
        assert not await index.is_occupied("M1", DAY, 11)
        assert not await index.is_occupied("M1", DAY, 8)

    @pytest.mark.asyncio
    async def test_other_machine_and_date_do_not_count(self, index, provider):
        provider.events["evt-1"] = make_event(machine="M2")
        assert not await index.is_occupied("M1", DAY, 9)
        assert not await index.is_occupied("M2", date(2025, 3, 11), 9)

    @pytest.mark.asyncio
    async def test_events_for_date_without_machine_returns_all(self, index, provider):
        provider.events["a"] = make_event("a", machine="M1")
        provider.events["b"] = make_event("b", machine="M2")
        assert {event.id for event in await index.get_events_for_date(DAY)} == {"a", "b"}
        assert [event.id for event in await index.get_events_for_date(DAY, "M2")] == ["b"]

    @pytest.mark.asyncio
    async def test_date_is_fetched_once(self, index, provider):
        await index.get_events_for_date(DAY)
        await index.is_occupied("M1", DAY, 3)
        assert provider.count("get_events_by_date") == 1

    @pytest.mark.asyncio
    async def test_read_failure_raises_storage_unavailable(self, index, provider):
        provider.failing.add("get_events_by_date")
        with pytest.raises(StorageUnavailable):
            await index.is_occupied("M1", DAY, 9)


class TestAdd:
    @pytest.mark.asyncio
    async def test_overlap_on_same_machine_is_rejected(self, index, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        with pytest.raises(ConflictError) as excinfo:
            await index.add(make_event("evt-2", start=10, end=12))
        assert excinfo.value.conflicting.id == "evt-1"
        assert "evt-2" not in provider.events

    @pytest.mark.asyncio
    async def test_adjacent_events_are_allowed(self, index, provider):
        provider.events["evt-1"] = make_event(start=9, end=11)
        await index.add(make_event("evt-2", start=11, end=13))
        assert await index.occupied_hours("M1", DAY) == {9, 10, 11, 12}

    @pytest.mark.asyncio
    async def test_same_hours_on_other_machine_are_allowed(self, index):
        await index.add(make_event("evt-1", machine="M1"))
        await index.add(make_event("evt-2", machine="M2"))
        assert len(await index.get_events_for_date(DAY)) == 2

    @pytest.mark.asyncio
    async def test_provider_assigned_id_is_kept(self, index, provider):
        provider.assign_ids = True
        stored = await index.add(make_event("local"))
        assert stored.id == "db-1"
        assert index.find("db-1") == stored

    @pytest.mark.asyncio
    async def test_write_failure_leaves_index_unchanged(self, index, provider):
        provider.failing.add("add_event")
        with pytest.raises(StorageWriteFailed):
            await index.add(make_event())
        assert await index.get_events_for_date(DAY) == []


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_returns_cached_event(self, index):
        await index.add(make_event())
        removed = await index.remove("evt-1")
        assert removed is not None and removed.start_hour == 9
        assert not await index.is_occupied("M1", DAY, 9)

    @pytest.mark.asyncio
    async def test_unknown_event_raises_not_found(self, index):
        with pytest.raises(NotFoundError):
            await index.remove("missing")


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(index, provider):
    await index.get_events_for_date(DAY)
    provider.events["late"] = make_event("late")
    index.invalidate(DAY)
    assert [event.id for event in await index.get_events_for_date(DAY)] == ["late"]
