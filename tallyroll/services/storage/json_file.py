"""
JSON File Snapshot Storage

DESIGN DECISION: A single JSON file plays the role browser local storage
plays for a web calculator: one record, replaced on every save.

TRADEOFFS:
- No history of snapshots (we only ever need the latest)
- Writes go to a temporary file first and are renamed into place, so a
  crash mid-write never leaves a truncated snapshot behind
- Unreadable files load as "no snapshot" rather than failing the session
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from tallyroll.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage backed by a JSON file on disk.

    Transient write failures (OSError) are retried with exponential backoff.
    """

    def __init__(
        self,
        path: Union[str, Path],
        write_attempts: int = 3,
        wait: Optional[wait_base] = None,
    ):
        self._path = Path(path)
        self._write_attempts = write_attempts
        self._wait = wait or wait_exponential(multiplier=0.1, min=0.1, max=2)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[Any]:
        if not self._path.exists():
            return None
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "snapshot_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return None

    def save(self, record: dict[str, Any]) -> bool:
        try:
            payload = json.dumps(record, ensure_ascii=False, indent=2, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Snapshot is not JSON-serializable: {e}") from e

        retrying = Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write(payload)
        except OSError as e:
            raise StorageError(f"Failed to save snapshot to {self._path}: {e}") from e

        return True

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove snapshot {self._path}: {e}") from e

    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temporary = self._path.with_name(self._path.name + ".tmp")
        temporary.write_text(payload, encoding="utf-8")
        os.replace(temporary, self._path)
