"""JSON document storage for the premoderation queue.

The queue is one JSON object keyed by approval token. Every
read-modify-write runs inside :meth:`PremodStore.transaction`, which holds
an exclusive ``flock`` on a sidecar ``.lock`` file for the whole
check-then-act sequence, so concurrent registrations on the same host
serialise instead of racing. Writes replace the document atomically.
"""

from __future__ import annotations

import fcntl
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ttreg.domain.errors import QueueCorruptedError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class PremodStore:
    """File-backed JSON document guarded by an advisory lock."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock_path = path.with_name(f"{path.name}.lock")

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self, operation: int) -> Iterator[None]:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock_path.open("a") as fh:
            fcntl.flock(fh.fileno(), operation)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Premoderation queue {self.path} is not valid JSON: {exc}"
            raise QueueCorruptedError(msg) from exc
        if not isinstance(data, dict):
            msg = f"Premoderation queue {self.path} must contain a JSON object"
            raise QueueCorruptedError(msg)
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(self.path)

    def read(self) -> dict[str, Any]:
        """Return a snapshot of the document under a shared lock."""
        with self._locked(fcntl.LOCK_SH):
            return self._load()

    @contextmanager
    def transaction(self) -> Iterator[dict[str, Any]]:
        """Yield the document for mutation under an exclusive lock.

        The document is written back only if the block exits normally and
        the content changed. An exception leaves the file untouched.
        """
        with self._locked(fcntl.LOCK_EX):
            data = self._load()
            before = json.dumps(data, sort_keys=True)
            yield data
            if json.dumps(data, sort_keys=True) != before or not self.path.exists():
                self._write(data)
                logger.debug("Wrote premoderation queue %s (%d entries)", self.path, len(data))
