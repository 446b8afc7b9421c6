"""FastAPI main application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from daily_tracker.api import reports, status, sync
from daily_tracker.config import settings
from daily_tracker.core.errors import (
    EvaluationError,
    NoReportsFound,
    ReportLocked,
    SourceUnavailable,
    StoreError,
    TrackerError,
)
from daily_tracker.database import init_db
from daily_tracker.dependencies import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NoReportsFound: 404,
    SourceUnavailable: 503,
    StoreError: 500,
    ReportLocked: 409,
    EvaluationError: 409,
}

configure_logging()

# Create tables
init_db()

app = FastAPI(title=settings.app_name, version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Include routers
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
app.include_router(status.router, prefix="/api/status", tags=["status"])
app.include_router(sync.router, prefix="/api/sync", tags=["sync"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}
