"""Application services orchestrating data access and the scheduling engine."""

from __future__ import annotations

from .availability import AvailabilityService
from .board import CalendarBoard
from .context import ServiceContext, build_provider

__all__ = ["AvailabilityService", "CalendarBoard", "ServiceContext", "build_provider"]
