"""
FastAPI dependencies: database sessions and the collaborators of an ETL run
"""

from typing import AsyncGenerator
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import Settings, settings
from core.database import SessionFactory, get_session_factory as default_session_factory
from ingestion.base import DataSourceGateway
from ingestion.extractors.api_extractor import APIDataSourceGateway
from ingestion.job import ETLJob
from ingestion.runner import ETLRunner
from services.audit import AuditService
from services.notification import NotificationService


def get_settings() -> Settings:
    return settings


def get_session_factory() -> SessionFactory:
    return default_session_factory()


async def get_db(
    session_factory: SessionFactory = Depends(get_session_factory)
) -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with session_factory() as session:
        yield session


def get_gateway(config: Settings = Depends(get_settings)) -> DataSourceGateway:
    return APIDataSourceGateway.from_settings(config)


def get_audit_service(
    session_factory: SessionFactory = Depends(get_session_factory)
) -> AuditService:
    return AuditService(session_factory)


def get_notification_service(config: Settings = Depends(get_settings)) -> NotificationService:
    return NotificationService.from_settings(config)


def build_etl_job(
    session_factory: SessionFactory,
    gateway: DataSourceGateway,
    audit: AuditService,
    notifier: NotificationService,
    config: Settings
) -> ETLJob:
    """A fresh job per run; runs share no mutable state"""
    runner = ETLRunner.from_settings(session_factory, gateway, config)
    return ETLJob(runner, audit, notifier, timeout_seconds=config.ETL_TIMEOUT_SECONDS)


def get_etl_job(
    session_factory: SessionFactory = Depends(get_session_factory),
    gateway: DataSourceGateway = Depends(get_gateway),
    audit: AuditService = Depends(get_audit_service),
    notifier: NotificationService = Depends(get_notification_service),
    config: Settings = Depends(get_settings)
) -> ETLJob:
    return build_etl_job(session_factory, gateway, audit, notifier, config)
