"""Mapping of domain errors onto HTTP responses"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from kwikqueue.domain.errors import (
    CompanyUnavailable,
    ConcurrentUpdate,
    GeolocationDenied,
    GeolocationUnavailable,
    InvalidCart,
    InvalidTransition,
    KwikQueueError,
    NoMatch,
    OutOfRange,
    RealtimeTimeout,
    RecordNotFound,
    StoreFailure,
    UnknownStatus,
)

logger = structlog.get_logger()

# Most specific first; the first isinstance match wins
STATUS_CODES = [
    (ConcurrentUpdate, 409),
    (StoreFailure, 503),
    (InvalidTransition, 409),
    (InvalidCart, 422),
    (UnknownStatus, 422),
    (GeolocationDenied, 400),
    (GeolocationUnavailable, 400),
    (OutOfRange, 400),
    (NoMatch, 400),
    (CompanyUnavailable, 403),
    (RecordNotFound, 404),
    (RealtimeTimeout, 504),
]


def status_code_for(exc: KwikQueueError) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return 400


async def handle_queue_error(request: Request, exc: KwikQueueError) -> JSONResponse:
    code = status_code_for(exc)
    log = logger.error if code >= 500 else logger.info
    log("Request rejected", path=request.url.path, error=type(exc).__name__, detail=exc.message)
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KwikQueueError, handle_queue_error)
