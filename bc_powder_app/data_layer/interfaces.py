import asyncio
import aiohttp
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from aiobreaker import CircuitBreaker
from typing import Any, Dict, List, Optional
from .config import (
    OPEN_METEO_FORECAST_URL, AVALANCHE_CANADA_BASE, DRIVEBC_BASE, API_TIMEOUT,
    OPEN_METEO_CURRENT, OPEN_METEO_HOURLY, OPEN_METEO_DAILY, FORECAST_DAYS, PAST_DAYS
)

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "BCPowderTerminal/1.0 (contact@example.com)",
    "Accept": "application/json"
}

# One breaker per provider: trip open after 3 failures, stay open for 5 minutes
weather_breaker   = CircuitBreaker(fail_max=3, timeout_duration=timedelta(seconds=300))
avalanche_breaker = CircuitBreaker(fail_max=3, timeout_duration=timedelta(seconds=300))
drivebc_breaker   = CircuitBreaker(fail_max=3, timeout_duration=timedelta(seconds=300))

class ProviderError(Exception):
    """A provider returned an error status or unusable payload, or every retry failed."""

class LocationNotFoundError(ProviderError):
    """Geocoding found no match for a place name."""

class ApiSource(ABC):
    """The contract every provider adapter follows."""

    SOURCE_NAME = "Unknown"

    @abstractmethod
    async def fetch(self, **params) -> Any:
        pass

    async def _get_json(self, url: str, params: Optional[Dict] = None) -> Any:
        timeout = aiohttp.ClientTimeout(total=API_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout, headers=HEADERS) as session:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    text = await response.text()
                    raise ProviderError(f"{self.SOURCE_NAME} API Error: {response.status} {text[:200]}")
                # Some endpoints label JSON as text/plain
                return await response.json(content_type=None)

class OpenMeteoAdapter(ApiSource):
    """Hourly, daily and current weather from the Open-Meteo forecast API (metric units)."""

    SOURCE_NAME = "OpenMeteo"

    @weather_breaker
    async def fetch(self, lat: float, lon: float) -> Dict:
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": OPEN_METEO_CURRENT,
            "hourly": OPEN_METEO_HOURLY,
            "daily": OPEN_METEO_DAILY,
            "timezone": "auto",
            "forecast_days": FORECAST_DAYS,
            "past_days": PAST_DAYS
        }

        data = await self._get_json(OPEN_METEO_FORECAST_URL, params)

        hourly = (data or {}).get("hourly") or {}
        if not hourly.get("time"):
            raise ProviderError(f"{self.SOURCE_NAME} returned no hourly data for {lat},{lon}")

        return data

    async def fetch_weather(self, lat: float, lon: float) -> Dict:
        return await self.fetch(lat=lat, lon=lon)

class AvalancheCanadaAdapter(ApiSource):
    """
    Avalanche Canada forecast API.
    `products` carries the reports (danger ratings, problems, highlights),
    `areas` the forecast regions as GeoJSON with centroids.
    """

    SOURCE_NAME = "AvalancheCanada"
    RESOURCES = ("products", "areas", "metadata")

    async def fetch(self, resource: str = "products", lang: str = "en") -> Any:
        # Validated outside the breaker
        if resource not in self.RESOURCES:
            raise ValueError(f"Unknown Avalanche Canada resource: {resource}")
        return await self._fetch_resource(resource, lang)

    @avalanche_breaker
    async def _fetch_resource(self, resource: str, lang: str) -> Any:
        return await self._get_json(f"{AVALANCHE_CANADA_BASE}/forecasts/{lang}/{resource}")

    async def fetch_products(self, lang: str = "en") -> List[Dict]:
        return await self.fetch(resource="products", lang=lang)

    async def fetch_areas(self, lang: str = "en") -> Dict:
        return await self.fetch(resource="areas", lang=lang)

    async def fetch_metadata(self, lang: str = "en") -> Any:
        return await self.fetch(resource="metadata", lang=lang)

class DriveBCAdapter(ApiSource):
    """Active DriveBC road events from the Open511 API."""

    SOURCE_NAME = "DriveBC"
    MAX_LIMIT = 500

    @drivebc_breaker
    async def fetch(self, bounds: Optional[Dict[str, float]] = None, limit: int = 500) -> List[Dict]:
        params = {
            "format": "json",
            "status": "ACTIVE",
            "limit": min(limit, self.MAX_LIMIT)
        }
        if bounds:
            params["bbox"] = f"{bounds['west']},{bounds['south']},{bounds['east']},{bounds['north']}"

        data = await self._get_json(f"{DRIVEBC_BASE}/events", params)
        return (data or {}).get("events") or []

    async def fetch_events(self, bounds: Optional[Dict[str, float]] = None, limit: int = 500) -> List[Dict]:
        return await self.fetch(bounds=bounds, limit=limit)

# Transport-level failures worth retrying
RETRYABLE_ERRORS = (ProviderError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)
