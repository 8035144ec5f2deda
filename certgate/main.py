"""
Certification Level Progression Enforcement

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from certgate.api.middleware.rate_limit import RateLimitMiddleware
from certgate.api.middleware.request_id import RequestIdMiddleware
from certgate.api.v1 import router as api_v1_router
from certgate.config import get_settings
from certgate.database import close_db, init_db
from certgate.errors import (
    AuditAppendError,
    CertificationError,
    CoachDirectoryUnavailable,
    InvalidLevelError,
    TemporarilyUnavailableError,
)
from certgate.logging_config import configure_logging, get_logger
from certgate.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Sequential enforcement for coach certification levels 1-5.

    ## Features

    - **Level applications**: a coach may only apply for the level after their highest completed one
    - **Completions**: only the pending level can be completed
    - **Access gate**: unlimited platform access from level 1, commission tier per level
    - **Audit trail**: every decision, approved or rejected, is recorded

    ## Invariants

    1. No skipped levels, no duplicate levels, no downgrades
    2. At most one pending level per coach
    3. Decision and audit entry commit together or not at all
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first: the last one added is the outermost.
# CORS is added last so that 429s from the rate limiter still carry CORS headers.
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]

app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    request: Request,
    status_code: int,
    content: dict,
    headers: dict | None = None,
) -> JSONResponse:
    """JSON error body with request correlation."""
    headers = dict(headers or {})
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
        content = {**content, "request_id": req_id}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, {"detail": exc.detail}, exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "code": "VALIDATION_ERROR", "errors": errors},
    )


@app.exception_handler(InvalidLevelError)
async def invalid_level_handler(request: Request, exc: InvalidLevelError):
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(TemporarilyUnavailableError)
async def temporarily_unavailable_handler(request: Request, exc: TemporarilyUnavailableError):
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        {"detail": exc.message, "code": exc.code},
        headers={"Retry-After": str(exc.retry_after_seconds)},
    )


@app.exception_handler(CoachDirectoryUnavailable)
async def coach_directory_unavailable_handler(request: Request, exc: CoachDirectoryUnavailable):
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        {"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(AuditAppendError)
async def audit_append_error_handler(request: Request, exc: AuditAppendError):
    """Fail closed: nothing was committed."""
    logger.exception("Audit append failed: %s", exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"detail": "Decision could not be recorded", "code": exc.code},
    )


@app.exception_handler(CertificationError)
async def certification_error_handler(request: Request, exc: CertificationError):
    logger.error("Certification error: %s", exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__}
    else:
        content = {"detail": "Internal server error"}
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected",
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "certgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
