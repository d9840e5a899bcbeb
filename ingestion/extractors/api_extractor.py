"""
HTTP data source gateway with authentication and upstream error mapping.

Each external dataset is served by one configured JSON endpoint. This module
turns HTTP outcomes into the ETL exception hierarchy:

- 401/403 -> AuthenticationError
- 404     -> ResourceNotFoundError
- 429     -> RateLimitError
- 5xx, timeouts, transport failures -> NetworkError
- malformed JSON -> APIExtractionError

The gateway makes exactly one request per fetch. Retries with backoff are
applied one level up, per source, by the retry executor.
"""

import httpx
from typing import List, Dict, Any, Optional
from ingestion.base import DataSourceGateway, RawRecord
from models.base import SourceName
from core.config import Settings, settings as default_settings
from core.exceptions import (
    APIExtractionError,
    NetworkError,
    RateLimitError,
    AuthenticationError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

USER_AGENT = "ExternalDataETL/1.0"


class APIDataSourceGateway(DataSourceGateway):
    """
    Fetch external datasets from REST endpoints.

    Attributes:
        urls: Endpoint per source; a source without a URL yields no records
        api_key: Optional bearer token sent to every endpoint
        timeout: Request timeout in seconds (default: 30.0)
    """

    def __init__(
        self,
        urls: Dict[SourceName, Optional[str]],
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.urls = {SourceName(k): v for k, v in urls.items()}
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "APIDataSourceGateway":
        return cls(
            urls={
                SourceName.MARKET_INDEX: config.MARKET_INDEX_API_URL,
                SourceName.FX_RATES: config.FX_RATES_API_URL,
                SourceName.WEATHER: config.WEATHER_API_URL,
                SourceName.EVENTS: config.EVENTS_API_URL,
                SourceName.STEM_NEWS: config.STEM_NEWS_API_URL,
                SourceName.INBOUND: config.INBOUND_API_URL,
            },
            api_key=config.EXTERNAL_API_KEY,
            timeout=config.API_TIMEOUT_SECONDS
        )

    async def fetch_market_data(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.MARKET_INDEX)

    async def fetch_fx_rates(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.FX_RATES)

    async def fetch_weather_data(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.WEATHER)

    async def fetch_events_data(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.EVENTS)

    async def fetch_stem_news(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.STEM_NEWS)

    async def fetch_inbound_data(self) -> List[RawRecord]:
        return await self._fetch_source(SourceName.INBOUND)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _fetch_source(self, source: SourceName) -> List[RawRecord]:
        url = self.urls.get(source)
        if not url:
            logger.warning(f"No endpoint configured for {source.value}; skipping fetch")
            return []

        logger.info(f"Fetching {source.value} from {url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await self._request(client, source, url)

        records = self._parse_records(source, url, response)
        logger.info(f"Fetched {len(records)} {source.value} records")
        return records

    async def _request(
        self,
        client: httpx.AsyncClient,
        source: SourceName,
        url: str
    ) -> httpx.Response:
        """
        Make a single GET request and map failures to ETL exceptions.

        Raises:
            AuthenticationError, ResourceNotFoundError, RateLimitError,
            NetworkError, APIExtractionError
        """
        context = {"api_url": url, "source_name": source.value}

        try:
            response = await client.get(url, headers=self._headers())
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timeout after {self.timeout}s",
                context={**context, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                f"Network error: {e}",
                context=context,
                original_exception=e
            )

        status = response.status_code

        if status in (401, 403):
            raise AuthenticationError(
                f"Authentication failed (HTTP {status})",
                context={**context, "status_code": status}
            )

        if status == 404:
            raise ResourceNotFoundError(
                "Resource not found (HTTP 404)",
                context={**context, "status_code": status}
            )

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Rate limit exceeded (HTTP 429)",
                context={**context, "status_code": status},
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if status >= 500:
            raise NetworkError(
                f"Upstream server error (HTTP {status})",
                context={
                    **context,
                    "status_code": status,
                    "response_body": response.text[:500]
                }
            )

        if status >= 400:
            raise APIExtractionError(
                f"Unexpected HTTP {status}",
                context={
                    **context,
                    "status_code": status,
                    "response_body": response.text[:500]
                }
            )

        return response

    @staticmethod
    def _parse_records(source: SourceName, url: str, response: httpx.Response) -> List[RawRecord]:
        """Accept a JSON list, or an object carrying the list under data/results"""
        try:
            data = response.json()
        except ValueError as e:
            raise APIExtractionError(
                "Failed to parse JSON response",
                context={
                    "api_url": url,
                    "source_name": source.value,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

        context = {"api_url": url, "source_name": source.value}

        if isinstance(data, dict):
            envelope = data
            if "data" in envelope:
                data = envelope["data"]
            elif "results" in envelope:
                data = envelope["results"]
            else:
                raise APIExtractionError(
                    "Unexpected response format: object has no data or results key",
                    context={**context, "keys": sorted(envelope.keys())[:20]}
                )

        if not isinstance(data, list):
            raise APIExtractionError(
                "Unexpected response format: expected a list of records",
                context={**context, "payload_type": type(data).__name__}
            )

        # Non-object elements are left for the normalizer to reject
        return data
