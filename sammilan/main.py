"""
FastAPI application entry point.
Configures routes, middleware, and lifecycle events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sammilan import __version__
from sammilan.config import settings
from sammilan.database import init_db, close_db
from sammilan.logging_config import configure_logging
from sammilan.redis import RedisClient

from sammilan.api.donations import router as donations_router
from sammilan.api.webhooks.razorpay import router as razorpay_router
from sammilan.api.cron import router as cron_router
from sammilan.api.stats import router as stats_router
from sammilan.api.admin.donations import router as admin_donations_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle manager."""
    # Startup
    configure_logging()
    logging.info("Starting up Sammilan...")
    
    if settings.is_development:
        await init_db()
    
    yield
    
    # Shutdown
    await RedisClient.close()
    await close_db()
    logging.info("Shutting down...")


app = FastAPI(
    title="Sammilan",
    description="Donation payments and Razorpay reconciliation",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal Server Error"},
    )


# CORS middleware
origins = []
if settings.is_development:
    origins.append("*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "env": settings.app_env,
    }


# Public API
app.include_router(
    donations_router,
    prefix="/api/donations",
    tags=["donations"],
)
app.include_router(
    razorpay_router,
    prefix="/api/razorpay",
    tags=["webhooks"],
)
app.include_router(
    cron_router,
    prefix="/api/cron",
    tags=["cron"],
)
app.include_router(
    stats_router,
    prefix="/api",
    tags=["stats"],
)

# Admin routes
app.include_router(
    admin_donations_router,
    prefix="/admin",
    tags=["admin"],
)
