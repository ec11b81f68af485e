import re
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

STALE_EVENT_DAYS = 30
DEFAULT_EVENT_LIMIT = 500

SEVERITIES = {
    "MINOR":    {"label": "Minor",    "color": "#52C41A", "priority": 1},
    "MODERATE": {"label": "Moderate", "color": "#FAAD14", "priority": 2},
    "MAJOR":    {"label": "Major",    "color": "#F5222D", "priority": 3},
    "UNKNOWN":  {"label": "Unknown",  "color": "#8C8C8C", "priority": 0},
}

# (keywords, display info) checked in order; the first keyword hit wins
INCIDENT_RULES = [
    (("landslide", "landslip"), {"label": "Landslide", "color": "#8B4513", "icon": "🪨"}),
    (("flood", "washout"),      {"label": "Flooding",  "color": "#1E88E5", "icon": "🌊"}),
]
ROAD_CONDITION_RULES = [
    (("chain", "4x4", "4wd"),                                              {"label": "Chains Required", "color": "#FF6B35", "icon": "⛓️"}),
    (("black ice", "icy", "ice"),                                          {"label": "Ice Warning",     "color": "#4FC3F7", "icon": "🧊"}),
    (("compact snow", "snow covered", "loose snow", "snow on road"),       {"label": "Snow on Road",    "color": "#81C3D7", "icon": "🌨️"}),
    (("drifting", "blowing snow"),                                         {"label": "Blowing Snow",    "color": "#B0BEC5", "icon": "💨"}),
    (("fog", "visibility reduced", "limited visibility"),                  {"label": "Poor Visibility", "color": "#90A4AE", "icon": "🌫️"}),
    (("debris", "fallen rock", "rockfall", "fallen tree"),                 {"label": "Debris",          "color": "#8D6E63", "icon": "🪨"}),
    (("slippery", "slushy"),                                               {"label": "Slippery Road",   "color": "#FFA726", "icon": "⚠️"}),
]
WEATHER_CONDITION_RULES = [
    (("heavy snow", "snowfall", "snow storm"),  {"label": "Heavy Snow",     "color": "#1976D2", "icon": "❄️"}),
    (("fog", "limited visibility"),             {"label": "Fog",            "color": "#78909C", "icon": "🌫️"}),
    (("rain", "storm"),                         {"label": "Heavy Rain",     "color": "#0288D1", "icon": "🌧️"}),
    (("wind", "gale"),                          {"label": "High Winds",     "color": "#546E7A", "icon": "💨"}),
    (("avalanche",),                            {"label": "Avalanche Risk", "color": "#D32F2F", "icon": "⚠️"}),
]

def _description(event: Optional[Dict]) -> str:
    return ((event or {}).get("description") or "").lower()

def _first_match(desc: str, rules) -> Optional[Dict[str, str]]:
    for keywords, info in rules:
        if any(k in desc for k in keywords):
            return dict(info)
    return None

# =============================================================================
# CLASSIFICATION
# =============================================================================

def is_road_closure(event: Optional[Dict]) -> bool:
    if not event:
        return False
    desc = _description(event)
    return "road closed" in desc or "closure" in desc or "closed" in desc

def is_natural_disaster(event: Optional[Dict]) -> bool:
    if not event or event.get("event_type") != "INCIDENT":
        return False
    desc = _description(event)
    return ("landslide" in desc or "flood" in desc or "washout" in desc or
            ("avalanche" in desc and ("closed" in desc or "closure" in desc)))

def parse_event_type(event_type: Optional[str], description: Optional[str] = "") -> Dict[str, str]:
    """Display label, colour and icon for a DriveBC event, refined by keywords in its description."""
    desc = (description or "").lower()

    if event_type == "INCIDENT":
        match = _first_match(desc, INCIDENT_RULES)
        if match:
            return match
        if "avalanche" in desc and ("closed" in desc or "closure" in desc):
            return {"label": "Avalanche Closure", "color": "#D32F2F", "icon": "⛔"}
        if "road closed" in desc or "closure" in desc:
            return {"label": "Road Closed", "color": "#C62828", "icon": "🚫"}
        return {"label": "Incident", "color": "#FF4444", "icon": "⚠️"}

    if event_type == "ROAD_CONDITION":
        return _first_match(desc, ROAD_CONDITION_RULES) or {"label": "Road Condition", "color": "#FFD700", "icon": "🛣️"}

    if event_type == "WEATHER_CONDITION":
        return _first_match(desc, WEATHER_CONDITION_RULES) or {"label": "Weather", "color": "#4A90E2", "icon": "☁️"}

    if event_type == "CONSTRUCTION":
        return {"label": "Construction", "color": "#FFA500", "icon": "🚧"}

    if event_type == "SPECIAL_EVENT":
        return {"label": "Special Event", "color": "#9B59B6", "icon": "📅"}

    return {"label": "Other", "color": "#95A5A6", "icon": "ℹ️"}

def parse_severity(severity: Optional[str]) -> Dict[str, Any]:
    return dict(SEVERITIES.get(severity, SEVERITIES["UNKNOWN"]))

# =============================================================================
# GEOGRAPHY & TEXT
# =============================================================================

def event_point(event: Dict) -> Optional[Tuple[float, float]]:
    """
    (lon, lat) of a point event. Nested geometries (lines, polygons) have no
    single point and yield None.
    """
    coordinates = (event.get("geography") or {}).get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        return None
    if any(isinstance(c, (list, tuple)) for c in coordinates[:2]):
        return None
    try:
        return float(coordinates[0]), float(coordinates[1])
    except (TypeError, ValueError):
        return None

def filter_events_by_bounds(events: Optional[List[Dict]], bounds: Optional[Dict[str, float]]) -> Optional[List[Dict]]:
    if not bounds or events is None:
        return events

    inside = []
    for event in events:
        point = event_point(event)
        if point is None:
            continue
        lon, lat = point
        if bounds["south"] <= lat <= bounds["north"] and bounds["west"] <= lon <= bounds["east"]:
            inside.append(event)
    return inside

def get_road_names(event: Dict) -> str:
    roads = event.get("roads") or []
    if not roads:
        return "Unknown Road"

    names = []
    for road in roads:
        name = road.get("name") or road.get("from") or "Highway"
        if name not in names:
            names.append(name)
    return ", ".join(names)

def get_next_update(description: Optional[str]) -> Optional[str]:
    if not description:
        return None
    match = re.search(r"Next update time (.*?)\.", description)
    return match.group(1) if match else None

# =============================================================================
# PRIORITIZATION
# =============================================================================

def _updated_at(event: Dict) -> pd.Timestamp:
    # Offsets are honoured; naive timestamps are taken as UTC
    return pd.to_datetime(event.get("updated"), utc=True, errors="coerce")

def prioritize_events(events: Optional[List[Dict]], limit: int = DEFAULT_EVENT_LIMIT, now: Optional[datetime] = None) -> List[Dict]:
    """
    Current road-condition advisories, most severe and most recent first.

    Only ROAD_CONDITION events are kept, and those not updated in the last
    30 days are dropped. Events whose `updated` cannot be parsed are kept and
    sort after dated events of the same severity.
    """
    if not events:
        return []

    now_ts = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if now_ts.tzinfo is None:
        now_ts = now_ts.tz_localize("UTC")

    current = []
    for event in events:
        if event.get("event_type") != "ROAD_CONDITION":
            continue
        updated = _updated_at(event)
        if not pd.isna(updated) and (now_ts - updated) > pd.Timedelta(days=STALE_EVENT_DAYS):
            continue
        current.append((event, updated))

    def sort_key(pair):
        event, updated = pair
        priority = parse_severity(event.get("severity"))["priority"]
        if pd.isna(updated):
            return (-priority, 1, 0)
        return (-priority, 0, -updated.value)

    current.sort(key=sort_key)
    return [event for event, _ in current[:limit]]
