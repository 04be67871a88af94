"""Error taxonomy for the patient queue.

Storage errors come from the persisted collection store and are never
retried by the queue service; the others describe bad caller input.
"""

from typing import Optional


class QueueError(Exception):
    """Base class for every error raised by the queue and its store."""


class StorageError(QueueError):
    """The persisted resource could not be read or written."""


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class InvalidArgumentError(QueueError):
    """A queue number was not a positive integer."""


class NotFoundError(QueueError):
    """No record carries the requested queue number."""

    def __init__(self, queue_number: int):
        super().__init__(f"Patient with queue number {queue_number} not found.")
        self.queue_number = queue_number


class ValidationError(QueueError):
    """Patient data is missing required fields or has invalid values."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        super().__init__(message)
        self.errors = errors or []
