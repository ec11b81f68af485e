"""
Skiing-specific display classifiers for single weather readings.

Temperatures are Celsius, wind km/h, visibility and elevations metres,
snowfall cm (Open-Meteo metric defaults).
"""
import math
from datetime import datetime
from typing import Dict, Any, Optional

WMO_DESCRIPTIONS = {
    0: "Clear sky",
    1: "Mainly clear", 2: "Partly cloudy", 3: "Overcast",
    45: "Fog", 48: "Depositing rime fog",
    51: "Light drizzle", 53: "Moderate drizzle", 55: "Dense drizzle",
    56: "Light freezing drizzle", 57: "Dense freezing drizzle",
    61: "Slight rain", 63: "Moderate rain", 65: "Heavy rain",
    66: "Light freezing rain", 67: "Heavy freezing rain",
    71: "Slight snow fall", 73: "Moderate snow fall", 75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers", 81: "Moderate rain showers", 82: "Violent rain showers",
    85: "Slight snow showers", 86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail", 99: "Thunderstorm with heavy hail",
}

COMPASS = [
    {"name": "N",  "emoji": "⬇️", "label": "North"},
    {"name": "NE", "emoji": "↙️", "label": "Northeast"},
    {"name": "E",  "emoji": "⬅️", "label": "East"},
    {"name": "SE", "emoji": "↖️", "label": "Southeast"},
    {"name": "S",  "emoji": "⬆️", "label": "South"},
    {"name": "SW", "emoji": "↗️", "label": "Southwest"},
    {"name": "W",  "emoji": "➡️", "label": "West"},
    {"name": "NW", "emoji": "↘️", "label": "Northwest"},
]

def _compass_index(degrees: float) -> int:
    # Half-up rounding so 22.5 lands on NE
    return int((degrees / 45) + 0.5) % 8

def get_weather_description(code: Optional[int]) -> str:
    return WMO_DESCRIPTIONS.get(code, "Unknown")

def get_snowfall_quality(temp: float, snowfall: Optional[float]) -> Dict[str, str]:
    if not snowfall or snowfall <= 0:
        return {"quality": "No Snow", "color": "#6b7280", "label": "none", "emoji": "—"}

    if temp <= -8:
        return {"quality": "Powder", "color": "#3b82f6", "label": "powder", "emoji": "❄️"}
    if temp <= -3:
        return {"quality": "Good Snow", "color": "#06b6d4", "label": "good", "emoji": "🌨️"}
    if temp <= 0:
        return {"quality": "Packed Snow", "color": "#8b5cf6", "label": "packed", "emoji": "🏔️"}
    return {"quality": "Wet Snow", "color": "#6b7280", "label": "wet", "emoji": "💧"}

def wind_chill(temp: float, wind_speed: float) -> float:
    """Environment Canada wind chill index (JAG/TI)."""
    v = wind_speed ** 0.16
    return 13.12 + 0.6215 * temp - 11.37 * v + 0.3965 * temp * v

def get_wind_chill_rating(temp: float, wind_speed: float) -> Dict[str, Any]:
    chill = wind_chill(temp, wind_speed)
    feels_like = int(math.floor(chill + 0.5))

    if chill > 0:
        return {"level": "Mild", "color": "#10b981", "warning": False, "feels_like": feels_like}
    if chill > -15:
        return {"level": "Cold", "color": "#fbbf24", "warning": False, "feels_like": feels_like}
    if chill > -28:
        return {"level": "Very Cold", "color": "#f97316", "warning": True, "feels_like": feels_like}
    return {"level": "Extreme", "color": "#ef4444", "warning": True, "feels_like": feels_like}

def get_visibility_rating(visibility: float) -> Dict[str, Any]:
    km = visibility / 1000
    distance = f"{km:.1f}"

    if km >= 10:
        return {"level": "Excellent", "color": "#10b981", "warning": False, "distance": distance}
    if km >= 5:
        return {"level": "Good", "color": "#10b981", "warning": False, "distance": distance}
    if km >= 2:
        return {"level": "Moderate", "color": "#fbbf24", "warning": False, "distance": distance}
    if km >= 0.5:
        return {"level": "Limited", "color": "#f97316", "warning": True, "distance": distance, "emoji": "⚠️"}
    return {"level": "Whiteout Risk", "color": "#ef4444", "warning": True, "distance": distance, "emoji": "🚨"}

def get_freezing_level_warning(freezing_level: float, elevation: float) -> Dict[str, Any]:
    difference = freezing_level - elevation

    if difference < -300:
        return {"status": "Powder Conditions", "color": "#10b981", "warning": False, "emoji": "❄️",
                "description": "Well below freezing - excellent powder"}
    if difference < 0:
        return {"status": "Cold Snow", "color": "#06b6d4", "warning": False, "emoji": "🌨️",
                "description": "Below freezing - good snow conditions"}
    if difference < 300:
        return {"status": "Mixed Conditions", "color": "#fbbf24", "warning": True, "emoji": "⚠️",
                "description": "Near freezing level - variable conditions"}
    return {"status": "Rain Risk", "color": "#ef4444", "warning": True, "emoji": "🌧️",
            "description": "Above freezing - rain likely"}

def get_skiing_condition_rating(hour: Dict[str, Any], elevation: float = 2000) -> Dict[str, Any]:
    """
    0-100 rating for one hour of weather, starting from a neutral 50.

    `hour` carries Open-Meteo hourly keys: snowfall, temperature_2m,
    wind_speed_10m, visibility, weather_code.
    """
    score = 50
    insights = []

    snowfall = hour.get("snowfall") or 0
    if snowfall > 5:
        score += 30
        insights.append(f"Heavy snowfall ({snowfall}cm)")
    elif snowfall > 2:
        score += 20
        insights.append(f"Moderate snowfall ({snowfall}cm)")
    elif snowfall > 0:
        score += 10
        insights.append(f"Light snowfall ({snowfall}cm)")

    temp = hour.get("temperature_2m")
    if temp is not None and -12 <= temp <= -5:
        score += 15
        insights.append("Perfect powder temperature")
    elif temp is not None and temp > 0:
        score -= 20
        insights.append("Warm - wet snow conditions")

    wind = hour.get("wind_speed_10m") or 0
    if wind < 15:
        score += 10
        insights.append("Calm winds")
    elif wind > 40:
        score -= 20
        insights.append("Strong winds - exposed areas difficult")
    elif wind > 25:
        score -= 10
        insights.append("Moderate winds")

    visibility = hour.get("visibility") or 10000
    if visibility < 500:
        score -= 25
        insights.append("Very limited visibility")
    elif visibility < 2000:
        score -= 10
        insights.append("Reduced visibility")

    if hour.get("weather_code") in (0, 1):
        score += 10
        insights.append("Clear skies")

    score = max(0, min(100, score))

    if score >= 80:
        rating, color, recommendation = "Excellent", "#10b981", "Prime skiing conditions!"
    elif score >= 60:
        rating, color, recommendation = "Good", "#06b6d4", "Great day for skiing"
    elif score >= 40:
        rating, color, recommendation = "Fair", "#fbbf24", "Decent conditions"
    else:
        rating, color, recommendation = "Poor", "#ef4444", "Challenging conditions"

    return {"score": score, "rating": rating, "color": color,
            "insights": insights, "recommendation": recommendation}

def get_snowfall_intensity(snowfall: float) -> Dict[str, Any]:
    if snowfall == 0:
        return {"level": "None", "color": "#6b7280", "emoji": "—", "rate": 0}
    if snowfall < 0.5:
        return {"level": "Flurries", "color": "#93c5fd", "emoji": "🌨️", "rate": snowfall}
    if snowfall < 2:
        return {"level": "Light", "color": "#60a5fa", "emoji": "❄️", "rate": snowfall}
    if snowfall < 5:
        return {"level": "Moderate", "color": "#3b82f6", "emoji": "🌨️", "rate": snowfall}
    return {"level": "Heavy", "color": "#2563eb", "emoji": "❄️❄️", "rate": snowfall}

def format_wind_direction(degrees: float) -> Dict[str, str]:
    return COMPASS[_compass_index(degrees)]

def get_wind_direction(degrees: float) -> str:
    return COMPASS[_compass_index(degrees)]["name"]

def get_temperature_color(temp: float) -> str:
    if temp < -10:
        return "#3b82f6"
    if temp < 0:
        return "#60a5fa"
    if temp < 10:
        return "#ffffff"
    return "#fbbf24"

def get_uv_color(index: float) -> str:
    if index >= 11:
        return "#9333ea"  # Extreme
    if index >= 8:
        return "#dc2626"  # Very High
    if index >= 6:
        return "#f97316"  # High
    if index >= 3:
        return "#eab308"  # Moderate
    return "#22c55e"      # Low

def format_time(iso_string: Optional[str]) -> str:
    """'2024-01-15T14:30' -> '2:30 PM'"""
    if not iso_string:
        return ""
    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"
