"""
Data Models Package

This package contains all Pydantic models used in tallyroll.
All data crossing a component boundary must conform to these schemas.
"""

from tallyroll.models.ledger import (
    DisplayMode,
    Operation,
    OperationKind,
    Operator,
)
from tallyroll.models.state import CalculatorState
from tallyroll.models.snapshot import (
    LegacySnapshot,
    Snapshot,
    SnapshotLoadResult,
    SnapshotSource,
    load_snapshot,
)
from tallyroll.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from tallyroll.models.view import DisplayView, LedgerLine

__all__ = [
    # Ledger models
    "DisplayMode",
    "Operation",
    "OperationKind",
    "Operator",
    # Calculator state
    "CalculatorState",
    # Snapshot models
    "LegacySnapshot",
    "Snapshot",
    "SnapshotLoadResult",
    "SnapshotSource",
    "load_snapshot",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Render models
    "DisplayView",
    "LedgerLine",
]
