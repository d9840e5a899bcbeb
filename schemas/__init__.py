"""
Pydantic schemas for data validation and serialization.

Schemas:
    external: Canonical row shapes per external dataset (validated on normalize)
    etl: ETLResult / ETLResults produced by a run
    api: HTTP response envelopes for the trigger, health and read endpoints

Usage:
    from schemas import MarketIndexRow, ETLResults
    from schemas.api import ETLSuccessResponse
"""

from schemas.external import (
    CanonicalRow,
    MarketIndexRow,
    FXRateRow,
    WeatherRow,
    EventRow,
    STEMNewsRow,
    InboundRow,
)
from schemas.etl import ETLResult, ETLResults

__all__ = [
    "CanonicalRow",
    "MarketIndexRow",
    "FXRateRow",
    "WeatherRow",
    "EventRow",
    "STEMNewsRow",
    "InboundRow",
    "ETLResult",
    "ETLResults",
]
