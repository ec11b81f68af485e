import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from aiobreaker import CircuitBreakerError
from .config import CACHE_POLICY, FETCH_RETRIES, LOCATIONS, cache_policy
from .models import (
    CacheStatus, Location, LocationConditions, ProviderResponse, RankedLocation
)
from .interfaces import (
    OpenMeteoAdapter, AvalancheCanadaAdapter, DriveBCAdapter,
    ProviderError, RETRYABLE_ERRORS
)
from .geocoding import get_coordinates
from bc_powder_app.logic_engine import (
    calculate_powder_score, get_best_skiing_window, current_hour_index,
    calculate_next_snowfall, calculate_last_snowfall,
    find_best_station, get_location_by_name,
    find_closest_forecast, get_danger_ratings_by_zone_name, get_first_day_ratings,
    summarize_danger_ratings, prioritize_events,
    summarize_weather, calculate_location_score, get_smart_tags, rank_locations
)

logger = logging.getLogger(__name__)

def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

class SWRCache:
    """
    In-memory stale-while-revalidate cache of provider payloads.

    Entries are fresh until `stale_at`, servable-but-stale until `expires_at`
    and dropped after that. Policies are per resource ("weather",
    "avalanche", "roads") in minutes.
    """

    def __init__(self, policy: Optional[Dict[str, Dict[str, int]]] = None):
        self.policy = cache_policy(policy)
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._revalidating = set()
        self._lock = threading.Lock()

    def lookup(self, key: str, now: Optional[datetime] = None) -> Tuple[Optional[Dict], Optional[CacheStatus]]:
        now = now or _utcnow()
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None, None

            if now < entry["stale_at"]:
                return entry, CacheStatus.CACHE_HIT_FRESH
            if now < entry["expires_at"]:
                return entry, CacheStatus.CACHE_HIT_STALE

            del self._entries[key]
            return None, None

    def store(self, key: str, resource: str, payload: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or _utcnow()
        policy = self.policy.get(resource, CACHE_POLICY["weather"])
        entry = {
            "payload": payload,
            "fetched_at": now,
            "stale_at": now + timedelta(minutes=policy["stale_minutes"]),
            "expires_at": now + timedelta(minutes=policy["expire_minutes"])
        }
        with self._lock:
            # Sweep every expired key, not only this one
            expired = [k for k, e in self._entries.items() if now >= e["expires_at"]]
            for k in expired:
                del self._entries[k]
            self._entries[key] = entry
        return entry

    def begin_revalidation(self, key: str) -> bool:
        """Claims the background refresh for `key`; False if one is already running."""
        with self._lock:
            if key in self._revalidating:
                return False
            self._revalidating.add(key)
            return True

    def end_revalidation(self, key: str):
        with self._lock:
            self._revalidating.discard(key)

    def clear(self):
        with self._lock:
            self._entries.clear()

class DataManager:
    def __init__(self, cache: Optional[SWRCache] = None, retries: int = FETCH_RETRIES, backoff_seconds: float = 1.0):
        self.weather_source = OpenMeteoAdapter()
        self.avalanche_source = AvalancheCanadaAdapter()
        self.road_source = DriveBCAdapter()
        self.cache = cache or SWRCache()
        self.retries = retries
        self.backoff_seconds = backoff_seconds

    # -------------------------------------------------------------------------
    # Cache + retry plumbing
    # -------------------------------------------------------------------------

    async def _cached(self, resource: str, key: str, source: str,
                      fetcher: Callable[[], Awaitable[Any]]) -> ProviderResponse:
        entry, status = self.cache.lookup(key)

        if entry:
            if status == CacheStatus.CACHE_HIT_STALE and self.cache.begin_revalidation(key):
                # A thread with its own event loop outlives the caller's asyncio.run scope
                threading.Thread(
                    target=self._run_background_revalidate,
                    args=(resource, key, fetcher),
                    daemon=True
                ).start()
            logger.info(f"[{key}] {status.value}")
            return ProviderResponse(key=key, source=source, fetched_at=entry["fetched_at"],
                                    payload=entry["payload"], status=status)

        # Expired or cache miss. Fetch synchronously.
        logger.info(f"[{key}] Cache Miss. Fetching {source}...")
        payload = await self._fetch_with_retry(key, fetcher)
        entry = self.cache.store(key, resource, payload)
        return ProviderResponse(key=key, source=source, fetched_at=entry["fetched_at"],
                                payload=payload, status=CacheStatus.OK)

    def _run_background_revalidate(self, resource: str, key: str, fetcher: Callable[[], Awaitable[Any]]):
        """Entry point for the background thread. The stale entry stays if this fails."""
        try:
            payload = asyncio.run(self._fetch_with_retry(key, fetcher))
            self.cache.store(key, resource, payload)
        except Exception as e:
            logger.warning(f"[{key}] Background revalidation failed: {e}")
        finally:
            self.cache.end_revalidation(key)

    async def _fetch_with_retry(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        last_error = None
        for attempt in range(self.retries + 1):
            try:
                return await fetcher()
            except CircuitBreakerError as e:
                raise ProviderError(f"[{key}] provider circuit open: {e}") from e
            except RETRYABLE_ERRORS as e:
                last_error = e
                logger.warning(f"[{key}] attempt {attempt+1} failed: {e}")
                if attempt < self.retries:
                    await asyncio.sleep(self.backoff_seconds * (2 ** attempt))

        raise ProviderError(f"[{key}] all {self.retries + 1} attempts failed: {last_error}") from last_error

    # -------------------------------------------------------------------------
    # Providers
    # -------------------------------------------------------------------------

    async def get_weather(self, lat: float, lon: float) -> ProviderResponse:
        """Raises ProviderError when the weather cannot be fetched and nothing is cached."""
        return await self._cached(
            "weather", f"weather:{lat:.4f},{lon:.4f}", self.weather_source.SOURCE_NAME,
            lambda: self.weather_source.fetch(lat=lat, lon=lon)
        )

    async def resolve_location(self, name: str) -> Location:
        location = get_location_by_name(name)
        if location:
            return location
        # Custom place: geocode off the event loop
        return await asyncio.to_thread(get_coordinates, name)

    async def get_location_weather(self, name: str) -> Tuple[Location, ProviderResponse]:
        location = await self.resolve_location(name)
        return location, await self.get_weather(location.lat, location.lon)

    async def _get_avalanche_resource(self, resource: str, lang: str):
        if resource not in self.avalanche_source.RESOURCES:
            raise ValueError(f"Unknown Avalanche Canada resource: {resource}")
        try:
            response = await self._cached(
                "avalanche", f"avalanche:{resource}:{lang}", self.avalanche_source.SOURCE_NAME,
                lambda: self.avalanche_source.fetch(resource=resource, lang=lang)
            )
            return response.payload
        except ProviderError as e:
            logger.error(f"Avalanche Canada {resource} unavailable: {e}")
            return None

    async def get_avalanche_products(self, lang: str = "en") -> Optional[List[Dict]]:
        return await self._get_avalanche_resource("products", lang)

    async def get_avalanche_areas(self, lang: str = "en") -> Optional[Dict]:
        return await self._get_avalanche_resource("areas", lang)

    async def get_avalanche_metadata(self, lang: str = "en") -> Optional[Any]:
        return await self._get_avalanche_resource("metadata", lang)

    async def get_closest_avalanche_forecast(self, lat: float, lon: float) -> Optional[Dict]:
        if lat is None or lon is None:
            return None
        products, areas = await asyncio.gather(self.get_avalanche_products(), self.get_avalanche_areas())
        return find_closest_forecast(products, areas, lat, lon)

    async def get_road_events(self, bounds: Optional[Dict[str, float]] = None, limit: int = 500) -> List[Dict]:
        bbox = "all" if not bounds else f"{bounds['west']},{bounds['south']},{bounds['east']},{bounds['north']}"
        try:
            response = await self._cached(
                "roads", f"roads:{bbox}:{limit}", self.road_source.SOURCE_NAME,
                lambda: self.road_source.fetch(bounds=bounds, limit=limit)
            )
            return response.payload
        except ProviderError as e:
            logger.error(f"DriveBC events unavailable: {e}")
            return []

    async def get_road_advisories(self, bounds: Optional[Dict[str, float]] = None, limit: int = 500) -> List[Dict]:
        events = await self.get_road_events(bounds, limit)
        return prioritize_events(events, limit)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    @staticmethod
    def _hour_indexes(payload: Dict, now: Optional[datetime]) -> Tuple[int, int]:
        """(index of the current hour, start of the trailing 24 hours) in the hourly series."""
        idx = current_hour_index(payload, now)
        if idx is None:
            idx = len(payload["hourly"]["time"])
        return idx, max(0, idx - 24)

    async def get_location_conditions(self, name: str, now: Optional[datetime] = None) -> LocationConditions:
        location, weather = await self.get_location_weather(name)
        payload = weather.payload
        idx, trailing_start = self._hour_indexes(payload, now)

        powder = calculate_powder_score(payload, start=trailing_start)

        forecast = await self.get_closest_avalanche_forecast(location.lat, location.lon)
        report = (forecast or {}).get("report")

        danger_ratings = None
        if location.avalanche_zone:
            danger_ratings = get_danger_ratings_by_zone_name(await self.get_avalanche_products(), location.avalanche_zone)
        if danger_ratings is None:
            danger_ratings = get_first_day_ratings(report)

        return LocationConditions(
            location=location,
            weather_summary=summarize_weather(payload, powder, index=idx),
            powder=powder,
            best_window=get_best_skiing_window(payload, start=idx),
            next_snowfall=calculate_next_snowfall(payload, now),
            last_snowfall=calculate_last_snowfall(payload, now),
            avalanche=summarize_danger_ratings(report),
            danger_ratings=danger_ratings,
            station=find_best_station(location.lat, location.lon, location.avalanche_zone, location.elevation),
            status=weather.status
        )

    async def _rank_one(self, location: Location, products: Optional[List[Dict]], now: Optional[datetime]) -> RankedLocation:
        try:
            weather = await self.get_weather(location.lat, location.lon)
        except ProviderError as e:
            logger.error(f"Failed to fetch data for {location.name}: {e}")
            return RankedLocation(location=location, score=0)

        payload = weather.payload
        idx, trailing_start = self._hour_indexes(payload, now)
        powder = calculate_powder_score(payload, start=trailing_start)
        summary = summarize_weather(payload, powder, index=idx)
        danger_ratings = get_danger_ratings_by_zone_name(products, location.avalanche_zone)

        return RankedLocation(
            location=location,
            score=calculate_location_score(summary, danger_ratings),
            powder=powder,
            danger_ratings=danger_ratings,
            weather_summary=summary,
            tags=get_smart_tags(summary)
        )

    async def rank_locations(self, names: Optional[List[str]] = None, limit: int = 10,
                             now: Optional[datetime] = None) -> List[RankedLocation]:
        """Best powder first: scores every configured (or named) location and returns the top `limit`."""
        names = names or list(LOCATIONS.keys())
        locations = []
        for name in names:
            location = get_location_by_name(name)
            if location is None:
                logger.warning(f"Unknown location '{name}', skipping.")
                continue
            locations.append(location)

        products = await self.get_avalanche_products()
        rows = await asyncio.gather(*(self._rank_one(loc, products, now) for loc in locations))
        return rank_locations(list(rows), limit)

def run_location_report(name: str, manager: Optional[DataManager] = None) -> Optional[LocationConditions]:
    manager = manager or DataManager()
    try:
        return asyncio.run(manager.get_location_conditions(name))
    except ProviderError as e:
        logger.error(f"Error building conditions for {name}: {e}")
        return None

def run_ranking(names: Optional[List[str]] = None, limit: int = 10,
                manager: Optional[DataManager] = None) -> List[RankedLocation]:
    manager = manager or DataManager()
    return asyncio.run(manager.rank_locations(names, limit))

def run_road_advisories(bounds: Optional[Dict[str, float]] = None, limit: int = 500,
                        manager: Optional[DataManager] = None) -> List[Dict]:
    manager = manager or DataManager()
    return asyncio.run(manager.get_road_advisories(bounds, limit))
