"""Persistent collection store: the whole patient queue in one JSON file.

Load and save always move the entire collection. Saves go to a temporary
file in the same directory and are swapped in with ``os.replace``, so a
reader sees either the old document or the new one, never a mix.

Mutual exclusion is scoped to the resource: every store instance pointing
at the same file shares one re-entrant lock from the module registry.
"""

import json
import logging
import os
import tempfile
import threading

from patient_queue.errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

# ── Per-resource lock registry ───────────────────────────────────────────

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()

# Mode a plain open() would give a new file; mkstemp always uses 0600
_UMASK = os.umask(0)
os.umask(_UMASK)
_FILE_MODE = 0o666 & ~_UMASK


def _lock_for(path: str) -> threading.RLock:
    """Return the lock shared by every store backed by ``path``."""
    with _locks_guard:
        lock = _locks.get(path)
        if lock is None:
            lock = threading.RLock()
            _locks[path] = lock
        return lock


def _encode(records: list[dict]) -> str:
    # Compact form, byte-identical to JavaScript JSON.stringify output
    return json.dumps(records, separators=(",", ":"), ensure_ascii=False)


class PatientStore:
    """Durable whole-document storage for the ordered patient collection.

    Performs no validation and no queue-number logic.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self.lock = _lock_for(self.path)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def ensure_initialized(self) -> None:
        """Create the resource holding an empty collection if it is absent."""
        with self.lock:
            if self.exists():
                return
            directory = os.path.dirname(self.path)
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as exc:
                raise StorageWriteError(f"Cannot create data directory {directory}: {exc}") from exc
            self.save([])
            logger.info("Initialized empty patient queue at %s", self.path)

    def load(self) -> list[dict]:
        """Read and decode the full collection."""
        try:
            with open(self.path, encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError as exc:
            raise StorageReadError(f"Patient data file {self.path} does not exist") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadError(f"Cannot read patient data file {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageReadError(f"Patient data file {self.path} is not valid JSON: {exc}") from exc

        if not isinstance(records, list):
            raise StorageReadError(
                f"Patient data file {self.path} must hold a JSON array, got {type(records).__name__}"
            )
        if not all(isinstance(r, dict) for r in records):
            raise StorageReadError(f"Patient data file {self.path} holds non-object entries")
        return records

    def save(self, records: list[dict]) -> None:
        """Replace the persisted collection atomically."""
        try:
            payload = _encode(records)
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Cannot serialize patient collection: {exc}") from exc

        directory = os.path.dirname(self.path)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=".patients-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _FILE_MODE)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            raise StorageWriteError(f"Cannot write patient data file {self.path}: {exc}") from exc
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.debug("Saved %d patients to %s", len(records), self.path)

    def clear(self) -> bool:
        """Delete the persisted resource. Returns False if it did not exist."""
        with self.lock:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise StorageWriteError(f"Cannot remove patient data file {self.path}: {exc}") from exc
        logger.info("Removed patient data file %s", self.path)
        return True
