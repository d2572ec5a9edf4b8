from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List

from ...domain import ScheduledEvent
from ..supabase import SupabaseGateway


@dataclass(slots=True)
class EventRepository:
    gateway: SupabaseGateway
    table_name: str

    def fetch_for_date(self, day: date) -> List[ScheduledEvent]:
        response = (
            self.gateway.table(self.table_name)
            .select("*")
            .eq("date", day.isoformat())
            .order("start_hour", desc=False)
            .execute()
        )
        return [ScheduledEvent.from_record(record) for record in response.data or []]

    def insert(self, event: ScheduledEvent) -> str:
        response = self.gateway.table(self.table_name).insert(event.to_record()).execute()
        records = response.data or []
        if records and records[0].get("id"):
            return str(records[0]["id"])
        return event.id

    def delete(self, event_id: str) -> bool:
        response = self.gateway.table(self.table_name).delete().eq("id", event_id).execute()
        deleted = response.data or []
        return bool(deleted)
