from sqlalchemy import (
    Column, BigInteger, String, Date, DateTime, Float, Integer, Text, Index, UniqueConstraint
)
from datetime import datetime
from models.base import Base


class MarketIndex(Base):
    """
    Daily market index and stock values (TOPIX, NIKKEI225, individual tickers).

    Natural key: (date, symbol)
    """
    __tablename__ = "ext_market_index"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    symbol = Column(String(20), nullable=False)
    value = Column(Float, nullable=False)
    change_percent = Column(Float, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("date", "symbol", name="uq_ext_market_index_date_symbol"),
        Index("idx_ext_market_index_date", "date"),
    )


class FXRate(Base):
    """
    Daily FX rates quoted against JPY (USD/JPY, EUR/JPY, CNY/JPY).

    Natural key: (date, pair)
    """
    __tablename__ = "ext_fx_rate"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    pair = Column(String(10), nullable=False)
    rate = Column(Float, nullable=False)
    change_percent = Column(Float, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("date", "pair", name="uq_ext_fx_rate_date_pair"),
        Index("idx_ext_fx_rate_date", "date"),
    )


class WeatherDaily(Base):
    """Natural key: (date, location)"""
    __tablename__ = "ext_weather_daily"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    location = Column(String(100), nullable=False)
    temperature_max = Column(Float, nullable=True)
    temperature_min = Column(Float, nullable=True)
    precipitation_mm = Column(Float, nullable=True)
    humidity_percent = Column(Float, nullable=True)
    weather_condition = Column(String(50), nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("date", "location", name="uq_ext_weather_daily_date_location"),
    )


class LocalEvent(Base):
    """
    Local events near stores.

    Natural key: (date, title, location). Location is stored as an empty
    string when upstream omits it, so the unique constraint still applies.
    """
    __tablename__ = "ext_events"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    title = Column(String(200), nullable=False)
    location = Column(String(200), nullable=False, default="")
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    event_type = Column(String(50), nullable=True)
    expected_attendance = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("date", "title", "location", name="uq_ext_events_date_title_location"),
        Index("idx_ext_events_date", "date"),
    )


class STEMNews(Base):
    """
    AI, semiconductor, robotics and biotech headlines.

    Natural key: (published_date, title, source)
    """
    __tablename__ = "ext_stem_news"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    published_date = Column(Date, nullable=False)
    title = Column(String(500), nullable=False)
    source = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True)
    url = Column(String(2048), nullable=True)
    summary = Column(Text, nullable=True)
    sentiment_score = Column(Float, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("published_date", "title", "source", name="uq_ext_stem_news_date_title_source"),
        Index("idx_ext_stem_news_date", "published_date"),
    )


class InboundStat(Base):
    """
    Monthly inbound tourism visitors by origin country and prefecture.

    Natural key: (year_month, country, prefecture); year_month is "YYYY-MM".
    """
    __tablename__ = "ext_inbound"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    year_month = Column(String(7), nullable=False)
    country = Column(String(100), nullable=False)
    prefecture = Column(String(100), nullable=False, default="")
    visitors = Column(Integer, nullable=False)
    change_percent = Column(Float, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("year_month", "country", "prefecture", name="uq_ext_inbound_month_country_prefecture"),
        Index("idx_ext_inbound_year_month", "year_month"),
    )
