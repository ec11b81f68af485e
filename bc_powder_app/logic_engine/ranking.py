import logging
from typing import Dict, List, Optional, Any

from bc_powder_app.data_layer.models import RankedLocation
from .conditions import get_weather_description
from .powder import round_half_up

logger = logging.getLogger(__name__)

FRESH_SNOW_RATIO = 0.1
FRESH_SNOW_BONUS = 5
HIGH_DANGER_FACTOR = 0.6
CONSIDERABLE_DANGER_FACTOR = 0.8

def _at(series: Optional[List], index: int):
    if not series or index >= len(series):
        return None
    return series[index]

def _rounded(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(round_half_up(value))

def summarize_weather(weather: Dict, powder: Dict, index: int = 0) -> Dict[str, Any]:
    """
    Headline numbers for one location.

    Current conditions come from the `current` block; snow depth and
    freezing level fall back to the hourly series at `index`. Snow depth is
    reported in cm (Open-Meteo returns metres).
    """
    current = weather.get("current") or {}
    hourly = weather.get("hourly") or {}

    depth_m = current.get("snow_depth")
    if not depth_m:
        depth_m = _at(hourly.get("snow_depth"), index) or 0

    freezing_level = _at(hourly.get("freezing_level_height"), index)
    code = current.get("weather_code")

    return {
        "temp":                _rounded(current.get("temperature_2m")),
        "feels_like":          _rounded(current.get("apparent_temperature")),
        "snowfall_24h":        powder.get("snowfall_24h", 0),
        "snowfall_48h":        powder.get("snowfall_48h", 0),
        "powder_score":        powder.get("score", 0),
        "weather_code":        code,
        "weather_description": get_weather_description(code),
        "snow_depth":          round_half_up(depth_m * 100, 1),
        "freezing_level":      _rounded(freezing_level) if freezing_level is not None else 0,
        "wind_speed":          current.get("wind_speed_10m"),
    }

def calculate_location_score(summary: Optional[Dict], danger_ratings: Optional[Dict[str, str]]) -> int:
    """
    Powder score x10, +5 for a big dump relative to the base, then a safety
    penalty: x0.6 if any band is high or extreme, else x0.8 if considerable.
    """
    if not summary:
        return 0

    score = (summary.get("powder_score") or 0) * 10

    depth = summary.get("snow_depth") or 0
    if depth > 0 and (summary.get("snowfall_24h") or 0) / depth > FRESH_SNOW_RATIO:
        score += FRESH_SNOW_BONUS

    if danger_ratings:
        ratings = [str(r).lower() for r in danger_ratings.values() if r]
        if "high" in ratings or "extreme" in ratings:
            score *= HIGH_DANGER_FACTOR
        elif "considerable" in ratings:
            score *= CONSIDERABLE_DANGER_FACTOR

    return int(round_half_up(score))

def get_smart_tags(summary: Optional[Dict]) -> List[Dict[str, str]]:
    if not summary:
        return []

    tags = []
    snowfall_24h = summary.get("snowfall_24h") or 0
    code = summary.get("weather_code")
    temp = summary.get("temp")
    wind = summary.get("wind_speed")
    freezing_level = summary.get("freezing_level")

    if snowfall_24h > 15:
        tags.append({"label": "Deep Powder", "color": "info"})
    if code is not None and code <= 1:
        tags.append({"label": "Bluebird", "color": "warning"})
    if wind is not None and wind > 30:
        tags.append({"label": "Storm Watch", "color": "danger"})
    if temp is not None and temp > 0 and code is not None and code <= 2:
        tags.append({"label": "Spring Corn", "color": "success"})
    if freezing_level is not None and freezing_level < 1000 and snowfall_24h > 5:
        tags.append({"label": "Cold Smoke", "color": "primary"})
    return tags

def rank_locations(rows: List[RankedLocation], limit: int = 10) -> List[RankedLocation]:
    # sorted() is stable: ties keep the configured location order
    return sorted(rows, key=lambda row: row.score, reverse=True)[:limit]
