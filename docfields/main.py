"""
FastAPI application for the structured extraction service.

Provides endpoints for:
- Extracting a JSON object from an uploaded document given field descriptors
- Generating field descriptors from a free-text description
- Browsing the built-in schema templates
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .errors import DocfieldsError
from .models import ErrorResponse, HealthResponse
from .routers import extraction, fields, templates
from .services.ai import get_ai_service
from .services.document_service import get_document_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Document Extraction Service...")
    # Initialize services on startup
    get_document_service()
    get_ai_service()
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Document Extraction Service...")


# Create FastAPI application
app = FastAPI(
    title="Document Extraction API",
    description="Schema-constrained structured data extraction from documents using AI",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(status="healthy", version=__version__)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(extraction.router)
app.include_router(fields.router)
app.include_router(templates.router)


# =============================================================================
# Exception Handlers
# =============================================================================


def error_response(status_code: int, message: str, detail: str | None = None) -> JSONResponse:
    """Build the error body; internal details only leave the server in debug mode."""
    body = ErrorResponse(
        error=message,
        details=detail if get_settings().debug else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


@app.exception_handler(DocfieldsError)
async def docfields_error_handler(request: Request, exc: DocfieldsError):
    """Map service errors to their status code and user-facing message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.detail)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return error_response(exc.status_code, exc.user_message, exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the common error shape."""
    return error_response(400, "Invalid request", str(exc.errors()))
