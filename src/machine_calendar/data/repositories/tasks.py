from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain import TaskInfo
from ..supabase import SupabaseGateway


@dataclass(slots=True)
class TaskRepository:
    gateway: SupabaseGateway
    table_name: str

    def fetch(self, task_id: str) -> Optional[TaskInfo]:
        response = (
            self.gateway.table(self.table_name)
            .select("id, name, duration_hours, color")
            .eq("id", task_id)
            .limit(1)
            .execute()
        )
        records = response.data or []
        if not records:
            return None
        return TaskInfo.from_record(records[0])
