"""
PlanPDF - Business-plan report service

FastAPI application entry point.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import observability modules
from planpdf.config import settings
from planpdf.errors import PlanPdfError
from planpdf.logging_config import configure_logging, logger
from planpdf.sentry_config import configure_sentry, capture_exception
from planpdf.middleware.logging import LoggingMiddleware
from planpdf.routes.metrics import router as metrics_router

# Import route modules
from planpdf.routes.reports import router as reports_router
from planpdf.routes.payments import router as payments_router
from planpdf.routes.admin import router as admin_router

# Initialize logging first
configure_logging(logging.DEBUG if settings.DEBUG else logging.INFO)

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Generates business-plan PDFs through an external workflow and serves them by plan tier",
)

# Add logging middleware FIRST (runs before other middleware)
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Error responses: always {"error": message}
# ============================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Form validation failed", "errors": errors}
    )


@app.exception_handler(PlanPdfError)
async def domain_exception_handler(request: Request, exc: PlanPdfError):
    logger.error("domain_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    capture_exception(exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include metrics endpoint FIRST (so it's always available)
app.include_router(metrics_router)

app.include_router(reports_router)
app.include_router(payments_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }
