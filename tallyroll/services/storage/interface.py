"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file for browser storage or a database later
2. Use in-memory storage for testing
3. Keep the session decoupled from where snapshots live

The interface is intentionally simple: a snapshot is a single record that is
replaced wholesale, not a journal.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from tallyroll.models.audit import AuditEvent


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for session snapshot storage.

    Implementations store and return raw JSON-compatible records; decoding
    and schema detection belong to the snapshot codec, not to storage.
    """

    @abstractmethod
    def load(self) -> Optional[Any]:
        """
        Read the stored record.

        Returns:
            The decoded record, or None if nothing usable is stored
        """
        pass

    @abstractmethod
    def save(self, record: dict[str, Any]) -> bool:
        """
        Replace the stored record.

        Args:
            record: JSON-compatible snapshot record

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record, if any."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events of one session, in chronological order.
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity (e.g. one ledger entry).
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
