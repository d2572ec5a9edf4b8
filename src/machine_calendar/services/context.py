from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..config import AppSettings, get_settings
from ..core import CalendarStore
from ..data import LocalStorageProvider, SupabaseStorageProvider
from ..domain import StorageUnavailable
from ..scheduling import AvailabilityStore, ScheduleIndex, SlotInteractionController, SlotValidator

logger = logging.getLogger(__name__)

Provider = Union[LocalStorageProvider, SupabaseStorageProvider]


def build_provider(settings: AppSettings) -> Provider:
    if settings.storage.uses_supabase:
        logger.info("Using Supabase storage backend")
        return SupabaseStorageProvider.from_settings(settings.supabase, settings.storage)
    logger.info("Using local storage backend at %s", settings.storage.state_file)
    return LocalStorageProvider(CalendarStore(settings.storage.state_file))


@dataclass(slots=True)
class ServiceContext:
    """Aggregate root wiring the storage provider into the scheduling engine."""

    settings: AppSettings = field(default_factory=get_settings)
    provider: Optional[Provider] = None
    availability: AvailabilityStore = field(init=False)
    schedule: ScheduleIndex = field(init=False)
    validator: SlotValidator = field(init=False)
    controller: SlotInteractionController = field(init=False)
    storage_errors: List[StorageUnavailable] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        if self.provider is None:
            self.provider = build_provider(self.settings)
        self.availability = AvailabilityStore(self.provider, on_storage_error=self.storage_errors.append)
        self.schedule = ScheduleIndex(self.provider)
        self.validator = SlotValidator(self.availability, self.schedule)
        self.controller = SlotInteractionController(
            self.availability,
            self.schedule,
            self.validator,
            self.provider,
        )

    def drain_storage_errors(self) -> List[StorageUnavailable]:
        drained = list(self.storage_errors)
        self.storage_errors.clear()
        return drained

    def refresh(self) -> None:
        """Drop every cached read so the next query goes back to storage."""

        self.availability.clear()
        self.schedule.invalidate()
