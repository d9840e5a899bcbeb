"""
Transform raw gateway records into canonical rows with Pydantic validation
"""

from typing import Dict, Any, Optional, List
from datetime import date, datetime
from pydantic import ValidationError
from schemas.external import (
    CanonicalRow,
    MarketIndexRow,
    FXRateRow,
    WeatherRow,
    EventRow,
    STEMNewsRow,
    InboundRow,
)
from models.base import SourceName
from core.exceptions import NormalizationError
import logging

logger = logging.getLogger(__name__)


class DataNormalizer:
    """
    Normalize records from one external source into its canonical row.

    Handles:
    - Field mapping (including common upstream aliases)
    - Type conversion
    - Validation via the row schema
    """

    def __init__(self, source: SourceName):
        self.source = SourceName(source)
        self._mappers = {
            SourceName.MARKET_INDEX: self._normalize_market_index,
            SourceName.FX_RATES: self._normalize_fx_rate,
            SourceName.WEATHER: self._normalize_weather,
            SourceName.EVENTS: self._normalize_event,
            SourceName.STEM_NEWS: self._normalize_stem_news,
            SourceName.INBOUND: self._normalize_inbound,
        }

    def normalize(self, raw_record: Dict[str, Any], record_index: int = 0) -> CanonicalRow:
        """
        Normalize one raw record.

        Returns:
            Validated canonical row for this source

        Raises:
            NormalizationError: the record is not a mapping or fails validation
        """
        if not isinstance(raw_record, dict):
            raise NormalizationError(
                f"Record {record_index} is not an object",
                context={"source_name": self.source.value, "record_index": record_index}
            )

        try:
            return self._mappers[self.source](raw_record)
        except ValidationError as e:
            field_errors = {
                ".".join(str(p) for p in err["loc"]): err["msg"] for err in e.errors()
            }
            raise NormalizationError(
                f"Invalid {self.source.value} record {record_index}: "
                + "; ".join(f"{k}: {v}" for k, v in field_errors.items()),
                context={
                    "source_name": self.source.value,
                    "record_index": record_index,
                    "field_errors": field_errors
                },
                original_exception=e
            )

    def normalize_all(self, raw_records: List[Dict[str, Any]]) -> List[CanonicalRow]:
        return [self.normalize(record, i) for i, record in enumerate(raw_records)]

    def _normalize_market_index(self, record: Dict[str, Any]) -> MarketIndexRow:
        return MarketIndexRow(
            date=self._parse_date(record.get("date")),
            symbol=self._first(record, "symbol", "index_code"),
            value=self._parse_float(self._first(record, "value", "close")),
            change_percent=self._parse_float(record.get("change_percent")),
        )

    def _normalize_fx_rate(self, record: Dict[str, Any]) -> FXRateRow:
        pair = record.get("pair")
        if not pair and record.get("base_currency") and record.get("target_currency"):
            pair = f"{record['base_currency']}/{record['target_currency']}"
        return FXRateRow(
            date=self._parse_date(record.get("date")),
            pair=pair,
            rate=self._parse_float(record.get("rate")),
            change_percent=self._parse_float(record.get("change_percent")),
        )

    def _normalize_weather(self, record: Dict[str, Any]) -> WeatherRow:
        return WeatherRow(
            date=self._parse_date(record.get("date")),
            location=record.get("location"),
            temperature_max=self._parse_float(record.get("temperature_max")),
            temperature_min=self._parse_float(record.get("temperature_min")),
            precipitation_mm=self._parse_float(self._first(record, "precipitation_mm", "precipitation")),
            humidity_percent=self._parse_float(self._first(record, "humidity_percent", "humidity")),
            weather_condition=record.get("weather_condition"),
        )

    def _normalize_event(self, record: Dict[str, Any]) -> EventRow:
        return EventRow(
            date=self._parse_date(record.get("date")),
            title=self._first(record, "title", "event_name"),
            location=record.get("location"),
            lat=self._parse_float(self._first(record, "lat", "latitude")),
            lng=self._parse_float(self._first(record, "lng", "longitude")),
            event_type=record.get("event_type"),
            expected_attendance=self._parse_int(record.get("expected_attendance")),
            notes=record.get("notes"),
        )

    def _normalize_stem_news(self, record: Dict[str, Any]) -> STEMNewsRow:
        return STEMNewsRow(
            published_date=self._parse_date(self._first(record, "published_date", "date")),
            title=record.get("title"),
            source=record.get("source"),
            category=record.get("category"),
            url=record.get("url"),
            summary=record.get("summary"),
            sentiment_score=self._parse_float(record.get("sentiment_score")),
        )

    def _normalize_inbound(self, record: Dict[str, Any]) -> InboundRow:
        return InboundRow(
            year_month=record.get("year_month"),
            country=record.get("country"),
            prefecture=record.get("prefecture"),
            visitors=self._parse_int(self._first(record, "visitors", "arrivals")),
            change_percent=self._parse_float(record.get("change_percent")),
        )

    @staticmethod
    def _first(record: Dict[str, Any], *keys: str) -> Any:
        """Value of the first key present with a non-null value"""
        for key in keys:
            value = record.get(key)
            if value is not None:
                return value
        return None

    @staticmethod
    def _parse_float(value: Any) -> Optional[float]:
        """Safely parse float value"""
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_int(value: Any) -> Optional[int]:
        """Safely parse int value"""
        if value is None or value == "":
            return None
        try:
            return int(float(value))  # Handle "10.0" strings
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_date(value: Any) -> Any:
        """
        Reduce timestamps to their calendar date.

        Unparseable values are passed through so the schema reports them.
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str) and len(value) >= 10:
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
            except ValueError:
                return value
        return value
