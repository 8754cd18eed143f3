"""
Charter Bookings API - Main application entry point.

Pricing and commission engine of a yacht-charter back office:
charter fee totals, THB normalization, payment status and commissions
for bookings and the cabins of cabin charters.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import engine
from app.logging_config import setup_logging
from app.api import (
    bookings,
    cabin_allocations,
    exchange_rates,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.app_name}...")

    yield

    # Shutdown
    await engine.dispose()
    logger.info(f"Shutting down {settings.app_name}...")


app = FastAPI(
    title=settings.app_name,
    description="""
    ## Charter Bookings API

    Finance core of a yacht-charter back office:

    - **Pricing**: booking and cabin totals, THB equivalents, payment status
    - **Commission**: booking owner and agency commissions on a THB base
    - **Exchange Rates**: THB rates from public providers, with manual override
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
app.include_router(cabin_allocations.router, prefix="/cabin-allocations", tags=["Cabin Allocations"])
app.include_router(exchange_rates.router, prefix="/exchange-rates", tags=["Exchange Rates"])


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "currencies": settings.supported_currencies,
    }
