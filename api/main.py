"""
Lead Matching API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.models import ErrorResponse
from domain.errors import LeadMatchingError

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Lead Matching API",
    description="Match customer leads to nearby professionals and vendors, and allocate claims",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the marketplace frontend domains before launch
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeadMatchingError)
def handle_lead_matching_error(request: Request, exc: LeadMatchingError):
    """Map domain errors to their HTTP status with a stable error code."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_code": exc.code, "detail": exc.message},
        )
    body = ErrorResponse(error=exc.code, detail=exc.message, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "lead-matching-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Lead Matching API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import leads, members

app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(members.router, prefix="/api/v1", tags=["Members"])
