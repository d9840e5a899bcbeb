"""
Pydantic schemas for canonical external data rows with validation
"""

from pydantic import BaseModel, Field, validator
from typing import Optional
import datetime
import re

_YEAR_MONTH = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class CanonicalRow(BaseModel):
    """Base for normalized rows; strips surrounding whitespace from strings"""

    class Config:
        str_strip_whitespace = True


class MarketIndexRow(CanonicalRow):
    date: datetime.date
    symbol: str = Field(..., min_length=1, max_length=20)
    value: float
    change_percent: Optional[float] = None


class FXRateRow(CanonicalRow):
    date: datetime.date
    pair: str = Field(..., min_length=3, max_length=10)
    rate: float = Field(..., gt=0)
    change_percent: Optional[float] = None

    @validator("pair")
    def normalize_pair(cls, v):
        """USD/JPY, usd/jpy and USDJPY all become USD/JPY"""
        v = v.upper().replace("-", "/")
        if "/" not in v and len(v) == 6:
            v = f"{v[:3]}/{v[3:]}"
        return v


class WeatherRow(CanonicalRow):
    date: datetime.date
    location: str = Field(..., min_length=1, max_length=100)
    temperature_max: Optional[float] = None
    temperature_min: Optional[float] = None
    precipitation_mm: Optional[float] = Field(None, ge=0)
    humidity_percent: Optional[float] = Field(None, ge=0, le=100)
    weather_condition: Optional[str] = Field(None, max_length=50)


class EventRow(CanonicalRow):
    date: datetime.date
    title: str = Field(..., min_length=1, max_length=200)
    location: str = Field("", max_length=200)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    event_type: Optional[str] = Field(None, max_length=50)
    expected_attendance: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @validator("location", pre=True)
    def default_location(cls, v):
        """Location is part of the natural key; missing becomes empty"""
        return "" if v is None else v


class STEMNewsRow(CanonicalRow):
    published_date: datetime.date
    title: str = Field(..., min_length=1, max_length=500)
    source: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    url: Optional[str] = Field(None, max_length=2048)
    summary: Optional[str] = None
    sentiment_score: Optional[float] = Field(None, ge=-1, le=1)


class InboundRow(CanonicalRow):
    year_month: str
    country: str = Field(..., min_length=1, max_length=100)
    prefecture: str = Field("", max_length=100)
    visitors: int = Field(..., ge=0)
    change_percent: Optional[float] = None

    @validator("year_month", pre=True)
    def validate_year_month(cls, v):
        v = str(v).strip()[:7]
        if not _YEAR_MONTH.match(v):
            raise ValueError("year_month must be formatted as YYYY-MM")
        return v

    @validator("prefecture", pre=True)
    def default_prefecture(cls, v):
        """Prefecture is part of the natural key; missing becomes empty"""
        return "" if v is None else v
