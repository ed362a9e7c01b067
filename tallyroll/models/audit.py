"""
Audit Models for tallyroll

Every ledger mutation and every rejected operation is logged for audit
purposes. This provides:
1. Traceability of how a total came to be
2. Debugging information when a snapshot fails to load
3. Ability to reconstruct the tape from its history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Ledger mutations
    ENTRY_ADDED = "entry_added"
    ENTRY_EDITED = "entry_edited"
    ENTRY_DELETED = "entry_deleted"
    LEDGER_CLEARED = "ledger_cleared"

    # Rejections
    OPERATION_REJECTED = "operation_rejected"
    DIVIDE_BY_ZERO = "divide_by_zero"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    LEGACY_SNAPSHOT_DISCARDED = "legacy_snapshot_discarded"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'ledger', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one session share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Session identifier"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_added(entry, correlation_id)
        event = AuditEventBuilder.divide_by_zero(left_operand, correlation_id)
    """

    @staticmethod
    def entry_added(
        entry_id: str,
        kind: str,
        value: float,
        running_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"{kind} {value} committed, total {running_total}",
            details={
                "kind": kind,
                "value": value,
                "running_total": running_total,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_edited(
        entry_id: str,
        old_value: float,
        new_value: float,
        total: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_EDITED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry edited: {old_value} -> {new_value}",
            details={
                "old_value": old_value,
                "new_value": new_value,
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(
        entry_id: str,
        kind: str,
        value: float,
        total: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry deleted: {kind} {value}",
            details={
                "kind": kind,
                "value": value,
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def ledger_cleared(
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger cleared ({entry_count} entries removed)",
            details={
                "entry_count": entry_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="entry" if entity_id else None,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Operation rejected: {operation}",
            details={
                "operation": operation,
            },
            error_code=error_code,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def divide_by_zero(
        left_operand: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DIVIDE_BY_ZERO,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Division by zero attempted",
            details={
                "left_operand": left_operand,
            },
            error_code="divide_by_zero",
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(
        source: str,
        entry_count: int,
        dropped_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            severity=AuditSeverity.WARNING if dropped_fields else AuditSeverity.INFO,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Snapshot loaded from {source} schema with {entry_count} entries",
            details={
                "source": source,
                "entry_count": entry_count,
                "dropped_fields": dropped_fields,
            },
        )

    @staticmethod
    def legacy_snapshot_discarded(
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_SNAPSHOT_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description="Legacy snapshot detected, starting with an empty ledger",
        )

    @staticmethod
    def snapshot_saved(
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Snapshot saved with {entry_count} entries",
            details={
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def snapshot_save_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description="Snapshot could not be saved",
            error_message=error_message,
        )
