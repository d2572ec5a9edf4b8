from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain import MachineSummary, ScheduledEvent, ViewState
from ..scheduling import GridCell, GridDescription, InteractionOutcome


class EventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    task_id: str
    machine: str
    date: str
    start_hour: int
    end_hour: int
    title: str = Field(default="")
    color: Optional[str] = Field(default=None)

    @classmethod
    def from_domain(cls, event: ScheduledEvent) -> "EventPayload":
        return cls(
            id=event.id,
            task_id=event.task_id,
            machine=event.machine,
            date=event.date.isoformat(),
            start_hour=event.start_hour,
            end_hour=event.end_hour,
            title=event.title,
            color=event.color,
        )


class AvailabilityPayload(BaseModel):
    machine: str
    date: str
    unavailable_hours: List[int] = Field(default_factory=list)
    fully_unavailable: bool = False


class ViewStatePayload(BaseModel):
    view: str
    anchor_date: str
    label: str
    start: str
    end: str

    @classmethod
    def from_domain(cls, state: ViewState, *, label: str, start, end) -> "ViewStatePayload":
        return cls(
            view=state.view.value,
            anchor_date=state.anchor_date.isoformat(),
            label=label,
            start=start.isoformat(),
            end=end.isoformat(),
        )


class GridCellPayload(BaseModel):
    row: int
    column: int
    label: str
    date: Optional[str] = None
    machine: Optional[str] = None
    hour: Optional[int] = None
    month: Optional[int] = None
    state: Optional[str] = None
    availability: str = "none"
    event_count: int = 0
    event_ids: List[str] = Field(default_factory=list)
    in_month: bool = True
    is_today: bool = False
    interactive: bool = False
    droppable: bool = False
    title: str = ""
    classes: List[str] = Field(default_factory=list)
    children: List["GridCellPayload"] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, cell: GridCell) -> "GridCellPayload":
        return cls(
            row=cell.row,
            column=cell.column,
            label=cell.label,
            date=cell.date.isoformat() if cell.date else None,
            machine=cell.machine,
            hour=cell.hour,
            month=cell.month,
            state=cell.state.value if cell.state else None,
            availability=cell.availability.value,
            event_count=cell.event_count,
            event_ids=list(cell.event_ids),
            in_month=cell.in_month,
            is_today=cell.is_today,
            interactive=cell.interactive,
            droppable=cell.droppable,
            title=cell.title,
            classes=list(cell.classes),
            children=[cls.from_domain(child) for child in cell.children],
        )


class GridPayload(BaseModel):
    view: str
    anchor_date: str
    start: str
    end: str
    machines: List[str]
    column_labels: List[str]
    row_labels: List[str]
    cells: List[GridCellPayload]

    @classmethod
    def from_domain(cls, grid: GridDescription) -> "GridPayload":
        return cls(
            view=grid.view.value,
            anchor_date=grid.anchor_date.isoformat(),
            start=grid.start.isoformat(),
            end=grid.end.isoformat(),
            machines=list(grid.machines),
            column_labels=list(grid.column_labels),
            row_labels=list(grid.row_labels),
            cells=[GridCellPayload.from_domain(cell) for cell in grid.cells],
        )


class OutcomePayload(BaseModel):
    kind: str
    status: str
    success: bool
    reason: Optional[str] = None
    message: str = ""
    machine: Optional[str] = None
    date: Optional[str] = None
    hour: Optional[int] = None
    event: Optional[EventPayload] = None
    unavailable_hours: Optional[List[int]] = None

    @classmethod
    def from_domain(cls, outcome: InteractionOutcome) -> "OutcomePayload":
        return cls(
            kind=outcome.kind.value,
            status=outcome.status,
            success=outcome.success,
            reason=outcome.reason.value if outcome.reason else None,
            message=outcome.message,
            machine=outcome.machine,
            date=outcome.date.isoformat() if outcome.date else None,
            hour=outcome.hour,
            event=EventPayload.from_domain(outcome.event) if outcome.event else None,
            unavailable_hours=sorted(outcome.unavailable_hours) if outcome.unavailable_hours is not None else None,
        )


class MachineSummaryPayload(BaseModel):
    machine: str
    start: str
    end: str
    total_days: int
    off_time_days: int
    scheduled_days: int
    available_days: int
    total_off_time_hours: int
    total_scheduled_hours: int

    @classmethod
    def from_domain(cls, summary: MachineSummary) -> "MachineSummaryPayload":
        return cls(
            machine=summary.machine,
            start=summary.start.isoformat(),
            end=summary.end.isoformat(),
            total_days=summary.total_days,
            off_time_days=summary.off_time_days,
            scheduled_days=summary.scheduled_days,
            available_days=summary.available_days,
            total_off_time_hours=summary.total_off_time_hours,
            total_scheduled_hours=summary.total_scheduled_hours,
        )
