"""In-memory caches for storage reads."""

from __future__ import annotations

from .availability_cache import AvailabilityCache, date_range

__all__ = ["AvailabilityCache", "date_range"]
