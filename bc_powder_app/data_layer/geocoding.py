import logging
import time

import requests

from .config import OPEN_METEO_GEOCODING_URL, API_TIMEOUT
from .interfaces import HEADERS, ProviderError, LocationNotFoundError
from .models import Location, LocationType

logger = logging.getLogger(__name__)

def get_coordinates(town_name: str, retries: int = 3) -> Location:
    """
    Resolves a free-text place name with the Open-Meteo geocoding API.
    Retries transport failures with exponential backoff; an empty result is
    final and raises LocationNotFoundError.
    """
    params = {"name": town_name, "count": 1, "language": "en", "format": "json"}

    for attempt in range(retries):
        try:
            resp = requests.get(OPEN_METEO_GEOCODING_URL, params=params, headers=HEADERS, timeout=API_TIMEOUT)
            resp.raise_for_status()
            results = resp.json().get("results") or []
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Geocoding attempt {attempt+1} for '{town_name}' failed: {e}")
            if attempt < retries - 1:
                time.sleep(2 ** attempt)
                continue
            raise ProviderError(f"Failed to fetch coordinates for '{town_name}'") from e

        if not results:
            raise LocationNotFoundError(f"Town not found: '{town_name}'")

        match = results[0]
        return Location(
            name=match["name"],
            display_name=match["name"],
            type=LocationType.CUSTOM,
            lat=match["latitude"],
            lon=match["longitude"],
            elevation_summit=match.get("elevation"),
            country=match.get("country") or "Unknown"
        )

    raise ProviderError(f"Failed to fetch coordinates for '{town_name}'")
