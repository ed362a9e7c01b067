"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every rejected operation is
logged. This provides:
1. Traceability of every number on the tape
2. Debugging capability when a snapshot loads oddly
3. A history the user can inspect after editing entries

The audit logger:
- Runs inline and never suspends, like the rest of the session
- Gracefully handles failures (a broken audit store never breaks a key press)
- Tags every event with the session's correlation ID
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from tallyroll.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from tallyroll.models.ledger import Operation
from tallyroll.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog on top of stdlib logging.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("tallyroll").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for inspection), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            correlation_id: Session id attached to every event.
        """
        self._storage = storage
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("tallyroll.audit")

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.correlation_id is None:
            event = event.model_copy(update={"correlation_id": self._correlation_id})

        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity is AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_entry_added(self, entry: Operation) -> None:
        """Log a committed ledger entry."""
        self.log(AuditEventBuilder.entry_added(
            entry_id=entry.id,
            kind=entry.kind.value,
            value=entry.value,
            running_total=entry.running_total,
        ))

    def log_entry_edited(
        self,
        entry_id: str,
        old_value: float,
        new_value: float,
        total: float,
    ) -> None:
        """Log an edited ledger entry."""
        self.log(AuditEventBuilder.entry_edited(
            entry_id=entry_id,
            old_value=old_value,
            new_value=new_value,
            total=total,
        ))

    def log_entry_deleted(self, entry: Operation, total: float) -> None:
        """Log a deleted ledger entry."""
        self.log(AuditEventBuilder.entry_deleted(
            entry_id=entry.id,
            kind=entry.kind.value,
            value=entry.value,
            total=total,
        ))

    def log_ledger_cleared(self, entry_count: int) -> None:
        self.log(AuditEventBuilder.ledger_cleared(entry_count=entry_count))

    def log_rejected(
        self,
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log an operation that was refused without changing state."""
        self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            error_code=type(error).__name__,
            error_message=str(error),
            entity_id=entity_id,
        ))

    def log_divide_by_zero(self, left_operand: float) -> None:
        self.log(AuditEventBuilder.divide_by_zero(left_operand=left_operand))

    def log_snapshot_loaded(
        self,
        source: str,
        entry_count: int,
        dropped_fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(
            source=source,
            entry_count=entry_count,
            dropped_fields=dropped_fields,
        ))

    def log_legacy_snapshot_discarded(self) -> None:
        self.log(AuditEventBuilder.legacy_snapshot_discarded())

    def log_snapshot_saved(self, entry_count: int) -> None:
        self.log(AuditEventBuilder.snapshot_saved(entry_count=entry_count))

    def log_snapshot_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.snapshot_save_failed(error_message=error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per session; every audit event of the session carries it.
    """
    return uuid4()
