"""
FastAPI application for cellint.

Exposes the lint engines over HTTP so notebook front-ends can lint cells
without running Python themselves.
"""

import logging
import os
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ._version import __description__, __version__
from .api import lint, system

logger = logging.getLogger(__name__)

app = FastAPI(
    title="cellint API",
    description=__description__,
    version=__version__
)


# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"HTTP {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"Response: {response.status_code}")
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors with their stack trace and return a JSON 500."""
    full_traceback = traceback.format_exc()

    logger.error(f"Unhandled error in {request.method} {request.url}: {exc}")
    logger.error(f"Stack trace:\n{full_traceback}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"{type(exc).__name__}: {str(exc)}",
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "request_url": str(request.url),
            "request_method": request.method
        }
    )


# "*" allows every origin, otherwise a comma-separated list
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
allowed_origins = ["*"] if cors_origins_env == "*" else cors_origins_env.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(lint.router, prefix="/api/lint", tags=["lint"])
app.include_router(system.router, prefix="/api/system", tags=["system"])


@app.get("/")
async def root():
    """Service banner with version info."""
    return {"message": "cellint API", "status": "running", "version": __version__}


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}
