from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List

from ...domain import MachineAvailability
from ..supabase import SupabaseGateway


@dataclass(slots=True)
class AvailabilityRepository:
    gateway: SupabaseGateway
    table_name: str

    def fetch(self, machine: str, day: date) -> List[int]:
        response = (
            self.gateway.table(self.table_name)
            .select("unavailable_hours")
            .eq("machine_id", machine)
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        records = response.data or []
        if not records:
            return []
        return list(records[0].get("unavailable_hours") or [])

    def fetch_range(self, machine: str, start: date, end: date) -> List[MachineAvailability]:
        response = (
            self.gateway.table(self.table_name)
            .select("machine_id, date, unavailable_hours")
            .eq("machine_id", machine)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [MachineAvailability.from_record(record) for record in response.data or []]

    def replace(self, machine: str, day: date, unavailable_hours: Iterable[int]) -> None:
        payload = {
            "machine_id": machine,
            "date": day.isoformat(),
            "unavailable_hours": sorted(set(unavailable_hours)),
        }
        self.gateway.table(self.table_name).upsert(payload, on_conflict="machine_id,date").execute()
