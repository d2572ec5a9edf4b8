"""Supabase repositories for availability rows, scheduled events and tasks."""

from __future__ import annotations

from .availability import AvailabilityRepository
from .events import EventRepository
from .tasks import TaskRepository

__all__ = ["AvailabilityRepository", "EventRepository", "TaskRepository"]
