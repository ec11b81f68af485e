import math
import logging
from typing import Dict, List, Optional

from bc_powder_app.data_layer.config import AVALANCHE_STATIONS, LOCATIONS, STATION_PAGE_URL
from bc_powder_app.data_layer.models import Location, LocationType, StationMatch

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
DEFAULT_MAX_DISTANCE_KM = 100
ZONE_MATCH_MAX_DISTANCE_KM = 50
ZONE_MATCH_MIN_CONFIDENCE = 0.7

# =============================================================================
# DISTANCE & CONFIDENCE
# =============================================================================

def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(d_lon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c

def calculate_confidence(distance: float, station_zone: Optional[str], zone: Optional[str] = None) -> float:
    score = 1.0

    if distance > 50:
        score -= 0.4
    elif distance > 25:
        score -= 0.2
    elif distance > 10:
        score -= 0.1

    if zone and station_zone != zone:
        score -= 0.2

    return max(0.0, min(1.0, score))

def get_confidence_label(confidence: float) -> str:
    if confidence >= 0.8:
        return "High"
    if confidence >= 0.5:
        return "Medium"
    return "Low"

def get_station_data_url(station_id: int) -> str:
    return STATION_PAGE_URL.format(station_id)

# =============================================================================
# STATION MATCHING
# =============================================================================

def _candidate_stations(zone: Optional[str], stations: List[Dict]) -> List[Dict]:
    # A zone with no stations falls back to the whole network
    if zone:
        zone_stations = [s for s in stations if s["zone"] == zone]
        if zone_stations:
            return zone_stations
    return stations

def _to_match(station: Dict, distance: float, zone: Optional[str], elevation_diff: Optional[float] = None) -> StationMatch:
    confidence = calculate_confidence(distance, station["zone"], zone)
    return StationMatch(
        **station,
        distance=distance,
        distance_km=round(distance, 1),
        confidence=confidence,
        confidence_label=get_confidence_label(confidence),
        elevation_diff=elevation_diff
    )

def find_closest_station(
    lat: float, lon: float,
    zone: Optional[str] = None,
    max_distance: float = DEFAULT_MAX_DISTANCE_KM,
    stations: Optional[List[Dict]] = None
) -> Optional[StationMatch]:
    stations = AVALANCHE_STATIONS if stations is None else stations
    candidates = _candidate_stations(zone, stations)
    if not candidates:
        return None

    with_distance = sorted(
        ((calculate_distance(lat, lon, s["lat"], s["lon"]), s) for s in candidates),
        key=lambda pair: pair[0]
    )
    distance, closest = with_distance[0]

    if distance > max_distance:
        return None

    return _to_match(closest, distance, zone)

def find_nearest_stations(
    lat: float, lon: float,
    count: int = 3,
    zone: Optional[str] = None,
    max_distance: float = DEFAULT_MAX_DISTANCE_KM,
    stations: Optional[List[Dict]] = None
) -> List[StationMatch]:
    stations = AVALANCHE_STATIONS if stations is None else stations
    candidates = _candidate_stations(zone, stations)

    in_range = []
    for station in candidates:
        distance = calculate_distance(lat, lon, station["lat"], station["lon"])
        if distance <= max_distance:
            in_range.append((distance, station))

    in_range.sort(key=lambda pair: pair[0])
    return [_to_match(s, d, zone) for d, s in in_range[:count]]

def find_best_station(
    lat: float, lon: float,
    avalanche_zone: Optional[str],
    elevation: Optional[float] = None,
    stations: Optional[List[Dict]] = None
) -> Optional[StationMatch]:
    """
    Picks the station to read conditions from for a location.

    A same-zone station within 50 km with confidence above 0.7 wins outright.
    Otherwise the closest station within 100 km is used, unless an elevation
    is known, in which case stations within 100 km are ranked by
    70% distance (km) and 30% elevation difference (per 10 m).
    """
    stations = AVALANCHE_STATIONS if stations is None else stations

    zone_match = find_closest_station(
        lat, lon, zone=avalanche_zone, max_distance=ZONE_MATCH_MAX_DISTANCE_KM, stations=stations
    )
    if zone_match and zone_match.confidence > ZONE_MATCH_MIN_CONFIDENCE:
        return zone_match

    closest_overall = find_closest_station(lat, lon, max_distance=DEFAULT_MAX_DISTANCE_KM, stations=stations)

    if elevation and closest_overall:
        nearby = []
        for station in stations:
            distance = calculate_distance(lat, lon, station["lat"], station["lon"])
            if distance < DEFAULT_MAX_DISTANCE_KM:
                elevation_diff = abs(elevation - station["elevation"])
                weighted = (distance * 0.7) + (elevation_diff / 10 * 0.3)
                nearby.append((weighted, distance, elevation_diff, station))

        if nearby:
            nearby.sort(key=lambda row: row[0])
            _, distance, elevation_diff, best = nearby[0]
            return _to_match(best, distance, avalanche_zone, elevation_diff)

    return closest_overall

# =============================================================================
# LOCATION DIRECTORY
# =============================================================================

def all_locations(locations: Optional[Dict] = None) -> List[Location]:
    locations = LOCATIONS if locations is None else locations
    return [Location.from_config(name, data) for name, data in locations.items()]

def get_location_by_name(name: str, locations: Optional[Dict] = None) -> Optional[Location]:
    if not name:
        return None
    wanted = name.lower()
    for location in all_locations(locations):
        if location.name.lower() == wanted or location.display_name.lower() == wanted:
            return location
    return None

def get_locations_by_type(location_type: LocationType, locations: Optional[Dict] = None) -> List[Location]:
    return [loc for loc in all_locations(locations) if loc.type == location_type]

def get_resorts(locations: Optional[Dict] = None) -> List[Location]:
    return get_locations_by_type(LocationType.RESORT, locations)

def get_backcountry_zones(locations: Optional[Dict] = None) -> List[Location]:
    return get_locations_by_type(LocationType.BACKCOUNTRY, locations)

def find_closest_location(lat: float, lon: float, locations: Optional[Dict] = None) -> Optional[Location]:
    """
    Nearest known location by planar distance in degrees.
    Simple Euclidean distance is sufficient at provincial scale.
    """
    closest = None
    min_dist = float('inf')

    for location in all_locations(locations):
        dist = math.sqrt((lat - location.lat) ** 2 + (lon - location.lon) ** 2)
        if dist < min_dist:
            min_dist = dist
            closest = location

    return closest
