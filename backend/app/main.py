"""
Attendance Report Service: FastAPI Application

This is the entry point for the backend. It:
1. Creates the FastAPI app instance
2. Configures CORS (so the clinic front-end can call us)
3. Registers route handlers
4. Sets up logging on startup

Run with:
    uvicorn app.main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.logging_config import setup_logging
from app.routers import reports

logger = logging.getLogger(__name__)

SERVICE_NAME = "Attendance Report Service"
SERVICE_VERSION = "2.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic.

    Code before 'yield' runs on startup.
    Code after 'yield' runs on shutdown.
    """
    # --- Startup ---
    setup_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    logger.info("Starting %s (env=%s)", SERVICE_NAME, settings.APP_ENV)
    logger.info("Productivity API: %s", settings.PRODUCTIVITY_API_URL)

    yield  # App is running, handling requests

    # --- Shutdown ---
    logger.info("Shutting down")


app = FastAPI(
    title="Attendance Report Service API",
    description="Paginated attendance and productivity PDF and Excel reports for clinic staff",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(reports.router)


# --- Health Check Endpoints ---

@app.get("/", tags=["health"])
async def root():
    """Root endpoint, confirms the API is alive."""
    return {
        "service": SERVICE_NAME,
        "status": "running",
        "version": SERVICE_VERSION,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness check.

    The service keeps no database, so the only thing worth reporting is
    where the productivity figures come from.
    """
    return {
        "status": "healthy",
        "productivity_api": settings.PRODUCTIVITY_API_URL,
        "environment": settings.APP_ENV,
    }
