"""FastAPI application entry point."""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import files, importers
from ..errors import (
    ConfigurationInconsistency,
    FileUnreadable,
    FileUnwritable,
    ImporterError,
    InvalidBundle,
    ProfileNotFound,
)

logging.basicConfig(
    level=os.environ.get("IMPORTER_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Entity Importer API",
    description="API for configuring import profiles and running imports",
    version="0.1.0",
)

# CORS for browser-based admin tools
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in os.environ.get("IMPORTER_CORS_ORIGINS", "http://localhost:3000").split(",") if o],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(importers.router, prefix="/api/importers", tags=["importers"])
app.include_router(files.router, prefix="/api/files", tags=["files"])


def error_status(error: ImporterError) -> int:
    """Get the HTTP status for an importer error."""
    if isinstance(error, ProfileNotFound):
        return 404
    if isinstance(error, InvalidBundle):
        return 400
    if isinstance(error, ConfigurationInconsistency):
        return 409
    if isinstance(error, (FileUnreadable, FileUnwritable)):
        return 422
    return 500


@app.exception_handler(ImporterError)
async def importer_error_handler(request: Request, exc: ImporterError):
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
