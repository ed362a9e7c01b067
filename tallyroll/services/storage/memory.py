"""
In-Memory Storage

Process-local backends for tests and for sessions that do not persist.
Records are deep-copied on the way in and out, so callers can never alias
stored state.
"""

import copy
from typing import Any, Optional
from uuid import UUID

from tallyroll.models.audit import AuditEvent
from tallyroll.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Keeps a single snapshot record in memory."""

    def __init__(self, record: Optional[Any] = None):
        self._record = copy.deepcopy(record)
        self.save_count = 0

    def load(self) -> Optional[Any]:
        return copy.deepcopy(self._record)

    def save(self, record: dict[str, Any]) -> bool:
        self._record = copy.deepcopy(record)
        self.save_count += 1
        return True

    def clear(self) -> None:
        self._record = None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy())
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
