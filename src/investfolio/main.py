"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from investfolio import __version__
from investfolio.config.settings import get_settings
from investfolio.config.logging_config import setup_logging
from investfolio.app_context import get_app_context
from investfolio.api.errors import status_for
from investfolio.api.routers import investments_router, crypto_router
from investfolio.core.exceptions import AppError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    context = get_app_context()
    if not context.is_initialized:
        context.initialize()
    await context.investments.start()
    yield
    # Shutdown
    await context.aclose()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Local-first investment portfolio tracking with purchase ledgers",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(investments_router)
app.include_router(crypto_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=status_for(exc.code),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
