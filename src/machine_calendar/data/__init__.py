"""Data access layer."""

from __future__ import annotations

from .cache.availability_cache import AvailabilityCache
from .local import LocalStorageProvider
from .providers import RangeStorageProvider, StorageProvider, TaskProvider
from .remote import SupabaseStorageProvider
from .supabase import SupabaseGateway, SupabaseNotConfiguredError

__all__ = [
    "AvailabilityCache",
    "LocalStorageProvider",
    "RangeStorageProvider",
    "StorageProvider",
    "SupabaseGateway",
    "SupabaseNotConfiguredError",
    "SupabaseStorageProvider",
    "TaskProvider",
]
