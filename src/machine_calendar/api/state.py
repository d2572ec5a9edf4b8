from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..domain import ViewKind
from ..scheduling import RenderOptions, SlotInteractionController, ViewManager
from ..services import AvailabilityService, CalendarBoard, ServiceContext


@dataclass(slots=True)
class ApiState:
    context: ServiceContext = field(default_factory=ServiceContext)
    views: ViewManager = field(init=False)
    board: CalendarBoard = field(init=False)
    availability: AvailabilityService = field(init=False)

    def __post_init__(self) -> None:
        calendar = self.context.settings.calendar
        self.views = ViewManager(view=ViewKind(calendar.default_view))
        self.board = CalendarBoard(
            self.context,
            views=self.views,
            options=RenderOptions(
                start_hour=calendar.week_start_hour,
                end_hour=calendar.week_end_hour,
                enable_drag_drop=True,
            ),
        )
        self.availability = AvailabilityService(self.context)
        self.context.controller.render_target = self.board

    @property
    def controller(self) -> SlotInteractionController:
        return self.context.controller

    def reset(self, context: Optional[ServiceContext] = None) -> None:
        """Rebuild every service, optionally around a different context."""

        self.context = context or ServiceContext()
        self.__post_init__()


api_state = ApiState()
