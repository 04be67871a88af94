"""FastAPI application: serves the walk-in patient queue API plus the
static front-end.

Includes:
  - Security headers middleware (CSP, X-Frame-Options, etc.)
  - Request tracing with correlation IDs
  - Rate limiting (slowapi) on the mutating routes
  - Queue error → HTTP status mapping
  - Split health endpoints (/health/live + /health/ready)
"""

import logging
import time
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from patient_queue.config import (
    CORS_ALLOW_ORIGINS, PATIENTS_JSON_PATH, RATE_LIMIT_ENABLED,
    RATE_LIMIT_WRITE, STATIC_DIR, STRUCTURED_LOGGING_ENABLED,
)
from patient_queue.errors import (
    InvalidArgumentError, NotFoundError, StorageError, StorageReadError, ValidationError,
)
from patient_queue.models import ErrorResponse, MessageResponse, QueueEntry
from patient_queue.queue_service import QueueService
from patient_queue.store import PatientStore
from patient_queue.tracing import (
    generate_correlation_id, set_correlation_id, setup_structured_logging,
)

logging.basicConfig(level=logging.INFO)

if STRUCTURED_LOGGING_ENABLED:
    setup_structured_logging()

logger = logging.getLogger(__name__)

# ── Rate limiter ─────────────────────────────────────────────────────────
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

app = FastAPI(
    title="Patient service",
    description="Walk-in patient queue: admission, listing, updates and removal",
    version="1.0.0",
    docs_url="/api-docs",
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Security Headers Middleware ─────────────────────────────────────────

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Swagger UI assets for /api-docs come from jsdelivr
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "img-src 'self' data: https://fastapi.tiangolo.com"
        )
        return response


# ── Tracing Middleware ──────────────────────────────────────────────────

class TracingMiddleware(BaseHTTPMiddleware):
    """Generate/extract correlation ID, log request, add response headers."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("X-Correlation-ID", "") or generate_correlation_id()
        set_correlation_id(cid)

        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000

        response.headers["X-Correlation-ID"] = cid
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.1f}"

        logging.getLogger("patient_queue.http").info(
            "%s %s -> %d (%.1fms)",
            request.method, request.url.path,
            response.status_code, duration_ms,
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": response.status_code,
                "duration_ms": round(duration_ms, 1),
            },
        )
        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Queue service wiring ─────────────────────────────────────────────────

_service: Optional[QueueService] = None


def get_queue_service() -> QueueService:
    """Shared service over the configured datastore, created on first use.

    The datastore is (re)initialized before every request so that a deleted
    file comes back as an empty queue.
    """
    global _service
    if _service is None:
        _service = QueueService(PatientStore(PATIENTS_JSON_PATH))
    _service.store.ensure_initialized()
    return _service


@app.on_event("startup")
def startup():
    service = get_queue_service()
    logger.info("Patient queue datastore: %s", service.store.path)


# ── Error mapping ────────────────────────────────────────────────────────

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    return _error(400, str(exc))


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request body.")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, "Patient not found.")


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Datastore failure on %s %s", request.method, request.url.path, exc_info=exc)
    if isinstance(exc, StorageReadError):
        return _error(500, "Failed to read patient data.")
    return _error(500, "Failed to save patient data.")


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid queue number or invalid data provided."},
    404: {"model": ErrorResponse, "description": "Patient not found."},
    500: {"model": ErrorResponse, "description": "Datastore failure."},
}


# ═══════════════════════════════════════════════════════════════════════════
# Patient queue
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/patients", responses={500: _ERROR_RESPONSES[500]})
def get_all_patients(service: QueueService = Depends(get_queue_service)):
    """Get all patients in the queue, in admission order."""
    return service.list_patients()


@app.post(
    "/patients/do-admiss",
    response_model=QueueEntry,
    responses={400: _ERROR_RESPONSES[400], 500: _ERROR_RESPONSES[500]},
)
@limiter.limit(RATE_LIMIT_WRITE)
def admit_patient(
    request: Request,
    payload: Any = Body(None, description="firstName, lastName, emailAddress, phoneNumber, sex"),
    service: QueueService = Depends(get_queue_service),
):
    """Add a new patient to the queue and return their queue number."""
    queue_number = service.admit_patient(payload)
    return QueueEntry(queue_number=queue_number)


@app.put("/patients/update", response_model=MessageResponse, responses=_ERROR_RESPONSES)
@limiter.limit(RATE_LIMIT_WRITE)
def update_patient(
    request: Request,
    payload: Any = Body(None, description="queueNumber plus the full set of patient fields"),
    service: QueueService = Depends(get_queue_service),
):
    """Update an existing patient's information in the queue."""
    queue_number = payload.get("queueNumber") if isinstance(payload, dict) else None
    service.update_patient(queue_number, payload)
    return MessageResponse(message="Patient information updated successfully.")


@app.delete("/patients/remove", response_model=MessageResponse, responses=_ERROR_RESPONSES)
@limiter.limit(RATE_LIMIT_WRITE)
def remove_patient(
    request: Request,
    queue_number: Optional[str] = Query(None, alias="queueNumber"),
    service: QueueService = Depends(get_queue_service),
):
    """Remove a patient from the queue by queue number."""
    service.remove_patient(queue_number)
    return MessageResponse(message="Patient removed successfully.")


# ═══════════════════════════════════════════════════════════════════════════
# Health Check Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health/live")
def health_live():
    """Lightweight liveness check, always returns 200."""
    return {"status": "alive"}


@app.get("/health/ready")
def health_ready(service: QueueService = Depends(get_queue_service)):
    """Readiness check: 200 if the datastore can be read, 503 otherwise."""
    checks = {}
    ready = True

    try:
        patients = service.list_patients()
        checks["datastore"] = f"{len(patients)} patients queued"
    except StorageError as exc:
        checks["datastore"] = f"UNREADABLE: {exc}"
        ready = False

    return JSONResponse(
        content={"status": "ready" if ready else "not_ready", "checks": checks},
        status_code=200 if ready else 503,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Static files & UI
# ═══════════════════════════════════════════════════════════════════════════

app.mount("/", StaticFiles(directory=STATIC_DIR, html=True, check_dir=False), name="static")
