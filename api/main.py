"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import etl, health, external
from api.middleware import RequestContextMiddleware
from api.dependencies import build_etl_job
from core.config import settings
from core.database import get_session_factory
from core.logging import setup_logging
from ingestion.extractors.api_extractor import APIDataSourceGateway
from ingestion.scheduler import ETLScheduler
from services.audit import AuditService
from services.notification import NotificationService
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="External Data ETL API",
    description="Ingests external market, FX, weather, event, news and inbound datasets",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(etl.router)
app.include_router(health.router)
app.include_router(external.router)


def scheduled_job():
    session_factory = get_session_factory()
    return build_etl_job(
        session_factory,
        APIDataSourceGateway.from_settings(settings),
        AuditService(session_factory),
        NotificationService.from_settings(settings),
        settings
    )


scheduler = ETLScheduler(scheduled_job)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting External Data ETL API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    if settings.ETL_SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("ETL Scheduler disabled")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down External Data ETL API")
    if settings.ETL_SCHEDULER_ENABLED:
        scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "External Data ETL API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "etl": "/etl",
            "external": "/external"
        }
    }
