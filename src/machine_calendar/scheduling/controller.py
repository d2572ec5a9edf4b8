from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, Protocol

from ..data.providers import TaskProvider
from ..domain import (
    HOURS_PER_DAY,
    CalendarError,
    InteractionKind,
    InvalidDurationError,
    OccupiedSlotError,
    RejectionReason,
    ScheduledEvent,
    StorageError,
    TaskInfo,
    TaskNotFoundError,
)
from .availability import AvailabilityStore
from .schedule_index import ScheduleIndex
from .validator import SlotValidator

logger = logging.getLogger(__name__)


class InteractionPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTING = "committing"
    REJECTED = "rejected"


class RenderTarget(Protocol):
    async def render_cell(self, machine: str, day: date, hour: int) -> None: ...

    async def render_week(self, day: date) -> None: ...


@dataclass(frozen=True, slots=True)
class InteractionOutcome:
    kind: InteractionKind
    success: bool
    date: Optional[date] = None
    machine: Optional[str] = None
    hour: Optional[int] = None
    reason: Optional[RejectionReason] = None
    message: str = ""
    event: Optional[ScheduledEvent] = None
    unavailable_hours: Optional[FrozenSet[int]] = None

    @property
    def status(self) -> str:
        if self.success:
            return "success"
        return f"rejected:{self.reason.value if self.reason else 'unknown'}"


OutcomeListener = Callable[[InteractionOutcome], None]


def new_event_id(task_id: str) -> str:
    return f"{task_id}-{uuid.uuid4().hex[:12]}"


class SlotInteractionController:
    """Turns slot clicks and task drops into validated store writes.

    One interaction runs at a time; a request that arrives while another is in
    flight is dropped and reported as ``busy``. The phase always returns to
    ``IDLE`` when an interaction finishes, whatever the outcome.
    """

    def __init__(
        self,
        availability: AvailabilityStore,
        schedule: ScheduleIndex,
        validator: SlotValidator,
        tasks: TaskProvider,
        *,
        render_target: Optional[RenderTarget] = None,
    ) -> None:
        self.availability = availability
        self.schedule = schedule
        self.validator = validator
        self.tasks = tasks
        self.render_target = render_target
        self.phase = InteractionPhase.IDLE
        self._listeners: dict[InteractionKind, List[OutcomeListener]] = {kind: [] for kind in InteractionKind}

    @property
    def busy(self) -> bool:
        return self.phase is not InteractionPhase.IDLE

    def on_slot_click(self, listener: OutcomeListener) -> None:
        self._listeners[InteractionKind.TOGGLE].append(listener)

    def on_slot_drop(self, listener: OutcomeListener) -> None:
        self._listeners[InteractionKind.DROP].append(listener)

    def on_unschedule_done(self, listener: OutcomeListener) -> None:
        self._listeners[InteractionKind.UNSCHEDULE].append(listener)

    def _emit(self, outcome: InteractionOutcome) -> InteractionOutcome:
        for listener in list(self._listeners[outcome.kind]):
            listener(outcome)
        return outcome

    def _busy_outcome(self, kind: InteractionKind, **where) -> InteractionOutcome:
        logger.info("Dropped %s request while another interaction is in flight", kind.value)
        return InteractionOutcome(
            kind=kind,
            success=False,
            reason=RejectionReason.BUSY,
            message="Another change is still being saved.",
            **where,
        )

    def _rejected(self, kind: InteractionKind, error: CalendarError, **where) -> InteractionOutcome:
        self.phase = InteractionPhase.REJECTED
        if isinstance(error, StorageError):
            logger.warning("%s failed: %s", kind.value, error)
        else:
            logger.info("%s rejected (%s): %s", kind.value, error.reason.value, error)
        hour = getattr(error, "hour", None)
        if hour is not None:
            where["hour"] = hour
        return InteractionOutcome(kind=kind, success=False, reason=error.reason, message=str(error), **where)

    async def on_toggle_availability(self, machine: str, day: date, hour: int) -> InteractionOutcome:
        where = {"machine": machine, "date": day, "hour": hour}
        if self.busy:
            return self._busy_outcome(InteractionKind.TOGGLE, **where)
        rejected: Optional[InteractionOutcome] = None
        self.phase = InteractionPhase.VALIDATING
        try:
            if not 0 <= hour < HOURS_PER_DAY:
                raise InvalidDurationError(f"Hour {hour} is outside 0-23.", hour=hour)
            if not await self.validator.can_mark_unavailable(machine, day, hour):
                raise OccupiedSlotError(
                    f"{machine} has a task scheduled at {hour}:00 on {day.isoformat()}; it cannot be marked unavailable.",
                    hour=hour,
                )
            self.phase = InteractionPhase.COMMITTING
            hours = await self.availability.toggle_hour(machine, day, hour)
        except CalendarError as exc:
            rejected = self._rejected(InteractionKind.TOGGLE, exc, **where)
        finally:
            self.phase = InteractionPhase.IDLE
        if rejected is not None:
            return self._emit(rejected)
        await self._render_cells(machine, day, [hour])
        state = "unavailable" if hour in hours else "available"
        return self._emit(
            InteractionOutcome(
                kind=InteractionKind.TOGGLE,
                success=True,
                message=f"{machine} {hour}:00 on {day.isoformat()} is now {state}.",
                unavailable_hours=hours,
                **where,
            )
        )

    async def _resolve_task(self, task_id: str) -> TaskInfo:
        task = await self.tasks.get_task_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def on_drop_task(self, task_id: str, machine: str, day: date, start_hour: int) -> InteractionOutcome:
        where = {"machine": machine, "date": day, "hour": start_hour}
        if self.busy:
            return self._busy_outcome(InteractionKind.DROP, **where)
        rejected: Optional[InteractionOutcome] = None
        self.phase = InteractionPhase.VALIDATING
        try:
            task = await self._resolve_task(task_id)
            decision = await self.validator.can_schedule_task(machine, day, start_hour, task.duration_hours)
            if not decision.ok:
                raise decision.as_error(machine=machine, day=day)
            self.phase = InteractionPhase.COMMITTING
            event = await self.schedule.add(
                ScheduledEvent(
                    id=new_event_id(task.id),
                    task_id=task.id,
                    machine=machine,
                    date=day,
                    start_hour=start_hour,
                    end_hour=start_hour + task.duration_hours,
                    title=task.name,
                    color=task.color,
                )
            )
            self.availability.invalidate(machine, day)
        except CalendarError as exc:
            rejected = self._rejected(InteractionKind.DROP, exc, **where)
        finally:
            self.phase = InteractionPhase.IDLE
        if rejected is not None:
            return self._emit(rejected)
        await self._render_cells(machine, day, range(event.start_hour, event.end_hour))
        return self._emit(
            InteractionOutcome(
                kind=InteractionKind.DROP,
                success=True,
                message=f"Scheduled '{event.title or event.task_id}' on {machine} {day.isoformat()} "
                f"{event.start_hour}:00-{event.end_hour}:00.",
                event=event,
                **where,
            )
        )

    async def on_unschedule(self, event_id: str) -> InteractionOutcome:
        if self.busy:
            return self._busy_outcome(InteractionKind.UNSCHEDULE)
        rejected: Optional[InteractionOutcome] = None
        self.phase = InteractionPhase.COMMITTING
        try:
            event = await self.schedule.remove(event_id)
        except CalendarError as exc:
            rejected = self._rejected(InteractionKind.UNSCHEDULE, exc)
        finally:
            self.phase = InteractionPhase.IDLE
        if rejected is not None:
            return self._emit(rejected)
        if event is None:
            return self._emit(
                InteractionOutcome(kind=InteractionKind.UNSCHEDULE, success=True, message=f"Removed event {event_id}.")
            )
        await self._render_cells(event.machine, event.date, range(event.start_hour, event.end_hour))
        return self._emit(
            InteractionOutcome(
                kind=InteractionKind.UNSCHEDULE,
                success=True,
                machine=event.machine,
                date=event.date,
                hour=event.start_hour,
                message=f"Removed '{event.title or event.task_id}' from {event.machine} {event.date.isoformat()}.",
                event=event,
            )
        )

    async def _render_cells(self, machine: str, day: date, hours: Iterable[int]) -> None:
        target = self.render_target
        if target is None:
            return
        try:
            for hour in hours:
                await target.render_cell(machine, day, hour)
            return
        except Exception:  # noqa: BLE001
            logger.exception("Targeted render failed for %s on %s; redrawing the week", machine, day)
        try:
            await target.render_week(day)
        except Exception:  # noqa: BLE001
            logger.exception("Week render failed for %s", day)


__all__ = [
    "InteractionOutcome",
    "InteractionPhase",
    "OutcomeListener",
    "RenderTarget",
    "SlotInteractionController",
    "new_event_id",
]
