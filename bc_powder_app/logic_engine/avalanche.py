import re
import math
import logging
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)

ELEVATION_BANDS = ("alp", "tln", "btl")  # alpine, treeline, below treeline

DANGER_RATINGS = {
    "low":          {"level": 1,  "display": "1 - Low",          "color": "#4CAF50", "text_color": "#FFFFFF"},
    "moderate":     {"level": 2,  "display": "2 - Moderate",     "color": "#FFC107", "text_color": "#000000"},
    "considerable": {"level": 3,  "display": "3 - Considerable", "color": "#FF9800", "text_color": "#FFFFFF"},
    "high":         {"level": 4,  "display": "4 - High",         "color": "#F44336", "text_color": "#FFFFFF"},
    "extreme":      {"level": 5,  "display": "5 - Extreme",      "color": "#000000", "text_color": "#FFFFFF"},
    "earlyseason":  {"level": 0,  "display": "Early Season",     "color": "#9E9E9E", "text_color": "#FFFFFF"},
    "norating":     {"level": -1, "display": "No Rating",        "color": "#BDBDBD", "text_color": "#000000"},
    "noforecast":   {"level": -1, "display": "No Forecast",      "color": "#BDBDBD", "text_color": "#000000"},
}

DANGER_LEVEL_INFO = {
    1: {"level": "Low",          "color": "#4CAF50", "description": "Generally safe avalanche conditions"},
    2: {"level": "Moderate",     "color": "#FFC107", "description": "Heightened avalanche conditions on specific terrain"},
    3: {"level": "Considerable", "color": "#FF9800", "description": "Dangerous avalanche conditions"},
    4: {"level": "High",         "color": "#F44336", "description": "Very dangerous avalanche conditions"},
    5: {"level": "Extreme",      "color": "#000000", "description": "Extraordinarily dangerous avalanche conditions"},
}

TRAVEL_ADVICE = {
    1: "Travel is generally safe. Normal caution advised.",
    2: "Use caution in steep terrain. Evaluate snow and terrain carefully.",
    3: "Dangerous conditions. Careful snowpack evaluation, cautious route-finding, and conservative decision-making essential.",
    4: "Very dangerous conditions. Travel in avalanche terrain not recommended.",
    5: "Avoid all avalanche terrain. Stay off and out from underneath steep slopes.",
}

HTML_ENTITIES = [("&nbsp;", " "), ("&amp;", "&"), ("&lt;", "<"), ("&gt;", ">"), ("&quot;", '"')]

# =============================================================================
# RATING LOOKUPS
# =============================================================================

def parse_danger_rating(rating_value: Optional[str]) -> Dict[str, Any]:
    """Avalanche Canada rating value ('low', 'earlyseason', ...) to level/display/colours."""
    key = rating_value.lower() if isinstance(rating_value, str) else None
    return dict(DANGER_RATINGS.get(key, DANGER_RATINGS["norating"]))

def get_danger_rating_info(level: int) -> Dict[str, str]:
    return DANGER_LEVEL_INFO.get(level, {"level": "Unknown", "color": "#9E9E9E", "description": "No forecast available"})

def get_travel_advice(level: int) -> str:
    return TRAVEL_ADVICE.get(level, "Check avalanche.ca for current conditions.")

def format_highlights(html_string: Optional[str]) -> str:
    if not html_string:
        return ""
    text = re.sub(r"<[^>]*>", "", html_string)
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text.strip()

# =============================================================================
# FORECAST MATCHING
# =============================================================================

def find_closest_forecast(products: Optional[List[Dict]], areas: Optional[Dict], lat: float, lon: float) -> Optional[Dict]:
    """
    Forecast product whose area centroid is nearest to (lat, lon).

    `areas` is the GeoJSON FeatureCollection from /forecasts/{lang}/areas;
    each feature's `properties.centroid` is [lon, lat]. Distance is planar in
    degrees, which is enough to pick between neighbouring forecast regions.
    """
    if not products or not isinstance(products, list):
        return None
    if not areas or not areas.get("features"):
        return None

    centroids = {}
    for feature in areas["features"]:
        centroid = (feature.get("properties") or {}).get("centroid")
        if centroid:
            centroids[feature.get("id")] = centroid

    closest = None
    min_distance = float('inf')

    for product in products:
        area_id = (product.get("area") or {}).get("id")
        if not area_id or area_id not in centroids:
            continue

        area_lon, area_lat = centroids[area_id][:2]
        distance = math.sqrt((lat - area_lat) ** 2 + (lon - area_lon) ** 2)
        if distance < min_distance:
            min_distance = distance
            closest = product

    return closest

def _normalize_zone(name: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())

def _rating_value(day: Dict, band: str) -> Optional[str]:
    ratings = day.get("ratings") or {}
    return ((ratings.get(band) or {}).get("rating") or {}).get("value")

def get_danger_ratings_by_zone_name(products: Optional[List[Dict]], zone: Optional[str]) -> Optional[Dict[str, str]]:
    """
    First-day rating values {'alp': 'low', 'tln': ..., 'btl': ...} for a zone.

    The zone is matched against the product's report title and area name,
    ignoring case and punctuation ("Kootenay Boundary" == "Kootenay-Boundary").
    """
    wanted = _normalize_zone(zone)
    if not products or not wanted:
        return None

    for product in products:
        names = [
            (product.get("report") or {}).get("title"),
            (product.get("area") or {}).get("name"),
            product.get("title"),
        ]
        normalized = [_normalize_zone(n) for n in names if n]
        if not any(wanted == n or wanted in n for n in normalized):
            continue

        return get_first_day_ratings(product.get("report"))

    return None

def get_first_day_ratings(report: Optional[Dict]) -> Optional[Dict[str, str]]:
    days = (report or {}).get("dangerRatings") or []
    if not days:
        return None
    return {band: (_rating_value(days[0], band) or "norating").lower() for band in ELEVATION_BANDS}

# =============================================================================
# REPORT SUMMARIES
# =============================================================================

def get_day_ratings(day: Dict) -> Dict[str, Any]:
    date = day.get("date")
    if isinstance(date, dict):
        date = date.get("display") or date.get("value")

    parsed = {band: parse_danger_rating(_rating_value(day, band)) for band in ELEVATION_BANDS}
    return {
        "date": date,
        **parsed,
        "highest_level": max(r["level"] for r in parsed.values())
    }

def summarize_danger_ratings(report: Optional[Dict], days: int = 3) -> Optional[Dict[str, Any]]:
    if not report:
        return None

    day_ratings = [get_day_ratings(d) for d in (report.get("dangerRatings") or [])[:days]]
    highest = day_ratings[0]["highest_level"] if day_ratings else -1

    return {
        "title":         report.get("title"),
        "date_issued":   report.get("dateIssued"),
        "valid_until":   report.get("validUntil"),
        "highlights":    format_highlights(report.get("highlights")),
        "days":          day_ratings,
        "highest_level": highest,
        "travel_advice": get_travel_advice(highest),
        "problems":      [_problem_name(p) for p in (report.get("problems") or [])]
    }

def _problem_name(problem: Dict) -> Optional[str]:
    problem_type = problem.get("type")
    if isinstance(problem_type, dict):
        return problem_type.get("display") or problem_type.get("value")
    return problem_type
