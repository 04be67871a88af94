"""Request tracing with correlation IDs and structured JSON logging.

Provides:
  - ContextVar-based correlation ID propagation
  - StructuredLogFormatter for JSON log output
  - OperationTracer context manager for timing queue operations
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

# ── Correlation ID context var ──────────────────────────────────────────

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    return _correlation_id.get()


def set_correlation_id(cid: str) -> None:
    _correlation_id.set(cid)


# ── Structured JSON log formatter ──────────────────────────────────────

class StructuredLogFormatter(logging.Formatter):
    """Format log records as JSON with correlation ID and optional extras.

    Output fields: timestamp, level, logger, message, correlation_id,
    and any extras passed via the `extra` dict (e.g. operation,
    queue_number, duration_ms).
    """

    EXTRA_KEYS = frozenset({
        "operation", "queue_number", "queue_size",
        "duration_ms", "http_method", "http_path", "http_status",
    })

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        for key in self.EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


# ── Queue operation tracer ─────────────────────────────────────────────

class OperationTracer:
    """Context manager that times one queue operation and logs the outcome.

    Usage:
        with OperationTracer("remove", queue_number=3):
            ...load, mutate, save...
    """

    def __init__(self, operation: str, **extra):
        self.operation = operation
        self.extra = extra
        self.start_time = 0.0
        self.duration_ms = 0.0
        self.logger = logging.getLogger("patient_queue.tracing")

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.debug(
            "Queue operation started: %s", self.operation,
            extra={"operation": self.operation, **self.extra},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.monotonic() - self.start_time) * 1000
        level = logging.WARNING if exc_type else logging.INFO
        outcome = f"failed ({exc_type.__name__})" if exc_type else "completed"
        self.logger.log(
            level,
            "Queue operation %s: %s (%.1fms)", outcome, self.operation, self.duration_ms,
            extra={
                "operation": self.operation,
                "duration_ms": round(self.duration_ms, 1),
                **self.extra,
            },
        )
        return False


def setup_structured_logging():
    """Replace the root logger handler with StructuredLogFormatter."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredLogFormatter())
    root.addHandler(handler)
    root.setLevel(logging.INFO)
