"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (SourceName, AuditAction)
    external_data: One normalized table per external dataset
    audit_log: Audit trail of ETL runs

Database Schema:
    Every external table has a unique constraint on its natural key and an
    updated_at column refreshed on each upsert:

        ext_market_index   (date, symbol)
        ext_fx_rate        (date, pair)
        ext_weather_daily  (date, location)
        ext_events         (date, title, location)
        ext_stem_news      (published_date, title, source)
        ext_inbound        (year_month, country, prefecture)

Usage:
    from models import MarketIndex, AuditLog
    from models.base import SourceName
"""

from models.base import Base, SourceName, AuditAction
from models.external_data import (
    MarketIndex,
    FXRate,
    WeatherDaily,
    LocalEvent,
    STEMNews,
    InboundStat,
)
from models.audit_log import AuditLog

__all__ = [
    "Base",
    "SourceName",
    "AuditAction",
    "MarketIndex",
    "FXRate",
    "WeatherDaily",
    "LocalEvent",
    "STEMNews",
    "InboundStat",
    "AuditLog",
]
