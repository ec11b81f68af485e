import logging
import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Provider endpoints
# =============================================================================
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
AVALANCHE_CANADA_BASE = "https://api.avalanche.ca"
DRIVEBC_BASE = "https://api.open511.gov.bc.ca"
STATION_PAGE_URL = "https://www.avalanche.ca/weather/stations/{}"

API_TIMEOUT = 30
FETCH_RETRIES = 2

OPEN_METEO_CURRENT = "temperature_2m,apparent_temperature,weather_code,snowfall,snow_depth,wind_speed_10m,wind_direction_10m"
OPEN_METEO_HOURLY = (
    "temperature_2m,snowfall,freezing_level_height,snow_depth,visibility,"
    "wind_gusts_10m,wind_speed_10m,wind_direction_10m,precipitation_probability,"
    "cloud_cover,surface_pressure,is_day,weather_code"
)
OPEN_METEO_DAILY = (
    "temperature_2m_max,temperature_2m_min,snowfall_sum,precipitation_probability_max,"
    "sunrise,sunset,wind_speed_10m_max,weather_code,uv_index_max,sunshine_duration"
)
FORECAST_DAYS = 10
PAST_DAYS = 7

# Minutes. Stale entries are served while a background refresh runs,
# expired entries are refetched before returning.
CACHE_POLICY = {
    "weather":   {"stale_minutes": 5,  "expire_minutes": 30},
    "avalanche": {"stale_minutes": 60, "expire_minutes": 120},
    "roads":     {"stale_minutes": 5,  "expire_minutes": 30},
}

# =============================================================================
# BC ski resorts and backcountry zones
# =============================================================================
LOCATIONS = {
    "Whistler": {
        "display_name": "Whistler Blackcomb", "type": "resort",
        "lat": 50.1163, "lon": -122.9574,
        "elevation": {"base": 675, "summit": 2284},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"vertical_drop": 1609, "skiable_acres": 8171, "lifts": 37, "trails": 200,
                 "website": "https://www.whistlerblackcomb.com",
                 "description": "Largest ski resort in North America"}
    },
    "Revelstoke": {
        "display_name": "Revelstoke Mountain Resort", "type": "resort",
        "lat": 50.8983, "lon": -118.1956,
        "elevation": {"base": 1713, "summit": 2225},
        "avalanche_zone": "North Columbia",
        "info": {"vertical_drop": 1713, "skiable_acres": 3121, "lifts": 6, "trails": 69,
                 "website": "https://www.revelstokemountainresort.com",
                 "description": "Highest vertical in North America"}
    },
    "Big White": {
        "display_name": "Big White Ski Resort", "type": "resort",
        "lat": 49.7311, "lon": -118.9358,
        "elevation": {"base": 1508, "summit": 2319},
        "avalanche_zone": "South Columbia",
        "info": {"vertical_drop": 777, "skiable_acres": 2765, "lifts": 16, "trails": 119,
                 "website": "https://www.bigwhite.com",
                 "description": "Famous for champagne powder"}
    },
    "Sun Peaks": {
        "display_name": "Sun Peaks Resort", "type": "resort",
        "lat": 50.8833, "lon": -119.8833,
        "elevation": {"base": 1255, "summit": 2080},
        "avalanche_zone": "South Columbia",
        "info": {"vertical_drop": 881, "skiable_acres": 4270, "lifts": 13, "trails": 137,
                 "website": "https://www.sunpeaksresort.com",
                 "description": "Second largest ski area in Canada"}
    },
    "Fernie": {
        "display_name": "Fernie Alpine Resort", "type": "resort",
        "lat": 49.4667, "lon": -115.0667,
        "elevation": {"base": 1065, "summit": 1925},
        "avalanche_zone": "Lizard Range",
        "info": {"vertical_drop": 857, "skiable_acres": 2504, "lifts": 10, "trails": 142,
                 "website": "https://www.skifernie.com",
                 "description": "Legendary powder and tree skiing"}
    },
    "Kicking Horse": {
        "display_name": "Kicking Horse Mountain Resort", "type": "resort",
        "lat": 51.2989, "lon": -117.0519,
        "elevation": {"base": 1190, "summit": 2450},
        "avalanche_zone": "Purcell",
        "info": {"vertical_drop": 1260, "skiable_acres": 2800, "lifts": 6, "trails": 120,
                 "website": "https://www.kickinghorseresort.com",
                 "description": "Steep terrain and deep powder"}
    },
    "Rogers Pass": {
        "display_name": "Rogers Pass", "type": "backcountry",
        "lat": 51.3011, "lon": -117.5208,
        "elevation": {"base": 1330, "summit": 2600},
        "avalanche_zone": "Glacier National Park",
        "info": {"difficulty": "Advanced", "access": "Highway 1 parking areas",
                 "permits": "Required - Parks Canada",
                 "description": "World-class backcountry skiing with high avalanche hazard"}
    },
    "Kootenay Pass": {
        "display_name": "Kootenay Pass", "type": "backcountry",
        "lat": 49.0833, "lon": -116.9167,
        "elevation": {"base": 1775, "summit": 2100},
        "avalanche_zone": "Kootenay Boundary",
        "info": {"difficulty": "Intermediate to Advanced", "access": "Highway 3 parking",
                 "permits": "Not required",
                 "description": "Deep snowpack and accessible terrain"}
    },
    "Golden": {
        "display_name": "Golden Area", "type": "backcountry",
        "lat": 51.2981, "lon": -116.9633,
        "elevation": {"base": 785, "summit": 2500},
        "avalanche_zone": "Purcell",
        "info": {"difficulty": "All levels", "access": "Various trailheads",
                 "permits": "Varies by area",
                 "description": "Hub for backcountry skiing and cat skiing"}
    },
    "Nelson": {
        "display_name": "Nelson/Whitewater", "type": "backcountry",
        "lat": 49.4928, "lon": -117.2939,
        "elevation": {"base": 530, "summit": 2044},
        "avalanche_zone": "Kootenay Boundary",
        "info": {"difficulty": "Intermediate", "access": "Whitewater Ski Resort base",
                 "permits": "Not required for most areas",
                 "description": "Deep powder and tree skiing"}
    },
    "Wendy Thompson Hut": {
        "display_name": "Wendy Thompson Hut", "type": "backcountry",
        "lat": 50.5167, "lon": -122.7833,
        "elevation": {"base": 1800, "summit": 2200},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Intermediate to Advanced", "access": "Duffey Lake Road trailhead",
                 "permits": "Hut booking required",
                 "description": "Popular ACC hut in Cayoosh Range with excellent ski touring"}
    },
    "Brew Hut": {
        "display_name": "Brew Hut", "type": "backcountry",
        "lat": 49.7833, "lon": -123.1833,
        "elevation": {"base": 1500, "summit": 2100},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Advanced", "access": "Squamish via logging roads",
                 "permits": "Hut booking required",
                 "description": "VOC hut with stunning views of Tantalus Range"}
    },
    "Kees and Claire Hut": {
        "display_name": "Kees and Claire Hut", "type": "backcountry",
        "lat": 50.7833, "lon": -117.3167,
        "elevation": {"base": 2100, "summit": 2800},
        "avalanche_zone": "North Columbia",
        "info": {"difficulty": "Advanced", "access": "Helicopter access from Revelstoke",
                 "permits": "Hut booking required",
                 "description": "Remote ACC hut in Selkirk Mountains"}
    },
    "Fairy Meadow Hut": {
        "display_name": "Fairy Meadow Hut", "type": "backcountry",
        "lat": 50.7500, "lon": -122.8333,
        "elevation": {"base": 2000, "summit": 2400},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Intermediate", "access": "Duffey Lake Road",
                 "permits": "Hut booking required",
                 "description": "Family-friendly ACC hut with great beginner terrain"}
    },
    "Sphinx Bay Hut": {
        "display_name": "Sphinx Bay Hut", "type": "backcountry",
        "lat": 50.1167, "lon": -122.9167,
        "elevation": {"base": 1900, "summit": 2300},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Intermediate", "access": "Garibaldi Lake trailhead",
                 "permits": "Hut booking required",
                 "description": "VOC hut on Garibaldi Lake with glacier access"}
    },
    "Duffy Lake Road": {
        "display_name": "Duffy Lake Road", "type": "backcountry",
        "lat": 50.5833, "lon": -122.6667,
        "elevation": {"base": 1200, "summit": 2400},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "All levels", "access": "Highway 99 between Pemberton and Lillooet",
                 "permits": "Not required",
                 "description": "Premier backcountry access with numerous zones"}
    },
    "Coquihalla Summit": {
        "display_name": "Coquihalla Summit", "type": "backcountry",
        "lat": 49.7167, "lon": -121.0667,
        "elevation": {"base": 1244, "summit": 2000},
        "avalanche_zone": "South Coast",
        "info": {"difficulty": "Intermediate to Advanced", "access": "Highway 5 pullouts",
                 "permits": "Not required",
                 "description": "Easily accessible backcountry skiing from highway"}
    },
    "Joffre Lakes": {
        "display_name": "Joffre Lakes Area", "type": "backcountry",
        "lat": 50.3833, "lon": -122.4833,
        "elevation": {"base": 1200, "summit": 2500},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Advanced", "access": "Duffey Lake Road parking",
                 "permits": "Day use parking reservation required",
                 "description": "Stunning alpine terrain with glacier skiing"}
    },
    "Powder Mountain": {
        "display_name": "Powder Mountain Catskiing", "type": "backcountry",
        "lat": 50.3167, "lon": -122.5833,
        "elevation": {"base": 1400, "summit": 2600},
        "avalanche_zone": "Sea-to-Sky",
        "info": {"difficulty": "Intermediate to Advanced", "access": "Cat skiing operation",
                 "permits": "Booking required",
                 "description": "Cat skiing operation with deep coastal snow"}
    },
}

# =============================================================================
# Avalanche Canada / BC MoTI weather stations (subset of key BC stations)
# =============================================================================
AVALANCHE_STATIONS = [
    # BC MoTI
    {"id": 41,  "name": "Kootenay Pass",     "lat": 49.0833, "lon": -116.9167, "elevation": 1775, "zone": "Kootenay Boundary",     "operator": "BC MoTI"},
    {"id": 15,  "name": "Coquihalla Summit", "lat": 49.7167, "lon": -121.0667, "elevation": 1244, "zone": "South Coast",           "operator": "BC MoTI"},
    {"id": 28,  "name": "Kicking Horse",     "lat": 51.2989, "lon": -117.0519, "elevation": 1190, "zone": "Purcell",               "operator": "BC MoTI"},
    {"id": 71,  "name": "Brandywine",        "lat": 50.0333, "lon": -123.1167, "elevation": 1200, "zone": "Sea-to-Sky",            "operator": "BC MoTI"},
    {"id": 73,  "name": "Allison Pass",      "lat": 49.0667, "lon": -120.7333, "elevation": 1342, "zone": "South Coast",           "operator": "BC MoTI"},
    {"id": 74,  "name": "Cayoosh Summit",    "lat": 50.5833, "lon": -122.6667, "elevation": 1270, "zone": "Sea-to-Sky",            "operator": "BC MoTI"},
    # Avalanche Canada
    {"id": 90,  "name": "Core Lodge",        "lat": 51.5167, "lon": -117.8333, "elevation": 1900, "zone": "North Columbia",        "operator": "Avalanche Canada"},
    {"id": 118, "name": "Fraser",            "lat": 52.7500, "lon": -118.9167, "elevation": 1650, "zone": "North Rockies",         "operator": "Avalanche Canada"},
    {"id": 120, "name": "Haines Pass",       "lat": 59.6333, "lon": -136.0167, "elevation": 1067, "zone": "Northwest",             "operator": "Avalanche Canada"},
    {"id": 7,   "name": "Hankin-Evelyn",     "lat": 54.5833, "lon": -127.2500, "elevation": 1830, "zone": "Northwest",             "operator": "Avalanche Canada"},
    {"id": 8,   "name": "Kakwa",             "lat": 54.0833, "lon": -119.9167, "elevation": 1950, "zone": "North Rockies",         "operator": "Avalanche Canada"},
    {"id": 6,   "name": "Lucille",           "lat": 52.9167, "lon": -119.3333, "elevation": 1890, "zone": "North Rockies",         "operator": "Avalanche Canada"},
    {"id": 105, "name": "Summit Creek",      "lat": 50.4167, "lon": -122.5833, "elevation": 1850, "zone": "Sea-to-Sky",            "operator": "Avalanche Canada"},
    {"id": 85,  "name": "Telkwa",            "lat": 54.6833, "lon": -127.0667, "elevation": 1750, "zone": "Northwest",             "operator": "Avalanche Canada"},
    # Additional BC MoTI
    {"id": 29,  "name": "Black Wall",        "lat": 50.9167, "lon": -118.2833, "elevation": 1400, "zone": "North Columbia",        "operator": "BC MoTI"},
    {"id": 19,  "name": "Blowdown Peak",     "lat": 49.3833, "lon": -120.2167, "elevation": 1950, "zone": "South Columbia",        "operator": "BC MoTI"},
    {"id": 37,  "name": "Caribou Ridge",     "lat": 50.8167, "lon": -119.8833, "elevation": 1650, "zone": "South Columbia",        "operator": "BC MoTI"},
    {"id": 62,  "name": "Gamma",             "lat": 51.2500, "lon": -117.5833, "elevation": 1330, "zone": "Glacier National Park", "operator": "BC MoTI"},
    {"id": 86,  "name": "Gold Bridge",       "lat": 50.6667, "lon": -122.8333, "elevation": 900,  "zone": "Sea-to-Sky",            "operator": "BC MoTI"},
    {"id": 46,  "name": "Heckman Pass",      "lat": 52.3833, "lon": -126.7500, "elevation": 1524, "zone": "Northwest",             "operator": "BC MoTI"},
]


def load_config(path: str = "bc_powder_app/config/watchlist.yaml") -> dict:
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Failed to load config from {path}: {e}")
        return {}


def cache_policy(overrides: dict = None) -> dict:
    """Merges `cache:` overrides from a YAML config onto CACHE_POLICY."""
    policy = {name: dict(values) for name, values in CACHE_POLICY.items()}
    for name, values in (overrides or {}).items():
        if name in policy and isinstance(values, dict):
            policy[name].update({k: v for k, v in values.items() if k in policy[name]})
    return policy
