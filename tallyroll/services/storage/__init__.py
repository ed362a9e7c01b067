"""
Storage Services Package

Provides abstract interfaces and concrete implementations for snapshot and
audit storage. Snapshots go to a JSON file or memory; audit events to memory.
"""

from tallyroll.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from tallyroll.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
)
from tallyroll.services.storage.json_file import JsonFileSnapshotStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
]
