"""
Abstract data source gateway: one fetch operation per external dataset
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any
from models.base import SourceName
import logging

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


class DataSourceGateway(ABC):
    """
    Abstract base class for the external data gateway.

    Contract for every fetch method:
    - No input; reads the latest available upstream state
    - Returns a list of loosely-typed records (empty is not an error)
    - Raises an ExtractionError subclass on network, auth or parse failures
    - No side effects
    """

    @abstractmethod
    async def fetch_market_data(self) -> List[RawRecord]:
        """Market indices and tickers: date, symbol, value, change_percent"""

    @abstractmethod
    async def fetch_fx_rates(self) -> List[RawRecord]:
        """FX rates: date, pair, rate, change_percent"""

    @abstractmethod
    async def fetch_weather_data(self) -> List[RawRecord]:
        """Daily weather: date, location, temperature_max/min, precipitation_mm, humidity_percent, weather_condition"""

    @abstractmethod
    async def fetch_events_data(self) -> List[RawRecord]:
        """Local events: date, title, location, lat, lng, event_type, expected_attendance, notes"""

    @abstractmethod
    async def fetch_stem_news(self) -> List[RawRecord]:
        """STEM news: published_date, title, source, category, url, summary, sentiment_score"""

    @abstractmethod
    async def fetch_inbound_data(self) -> List[RawRecord]:
        """Inbound tourism: year_month, country, prefecture, visitors, change_percent"""

    async def fetch(self, source: SourceName) -> List[RawRecord]:
        """Fetch records for one source"""
        handlers = {
            SourceName.MARKET_INDEX: self.fetch_market_data,
            SourceName.FX_RATES: self.fetch_fx_rates,
            SourceName.WEATHER: self.fetch_weather_data,
            SourceName.EVENTS: self.fetch_events_data,
            SourceName.STEM_NEWS: self.fetch_stem_news,
            SourceName.INBOUND: self.fetch_inbound_data,
        }
        source = SourceName(source)
        logger.debug(f"Fetching {source.value} from {type(self).__name__}")
        return await handlers[source]()
