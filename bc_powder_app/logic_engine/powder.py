import math
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

import numpy as np
import pandas as pd
import pytz

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION & CONSTANTS
# =============================================================================
POWDER_WINDOW_HOURS = 24
SKI_WINDOW_LOOKAHEAD_HOURS = 48
SKI_WINDOW_LENGTH_HOURS = 4
RECENT_SNOW_LOOKBACK_HOURS = 6

# (minimum 24h snowfall cm, base score), checked in order
SNOWFALL_BASE_SCORES = [(30, 10), (20, 8), (15, 7), (10, 5), (5, 3)]
DEFAULT_BASE_SCORE = 1

# (upper temperature bound C, ratio), checked in order
SNOW_TO_LIQUID_RATIOS = [(-15, 20), (-10, 15), (-5, 12), (-2, 10), (0, 8)]
WET_SNOW_RATIO = 5

def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor

def _values(series: Optional[List], start: int, hours: int) -> List[float]:
    if not series:
        return []
    return [v or 0 for v in series[start:start + hours]]

# =============================================================================
# SNOWFALL TOTALS & SNOW QUALITY
# =============================================================================

def calculate_snowfall_total(snowfall: Optional[List], hours: int = 24, start: int = 0) -> float:
    """Sum of `hours` hourly snowfall values (cm) from `start`; missing hours count as zero."""
    return float(sum(_values(snowfall, start, hours)))

def get_snow_quality(avg_temp: float, avg_wind: float) -> Dict[str, Any]:
    if avg_temp < -10:
        quality, description, score = "champagne", "Cold smoke powder - light and dry", 10
    elif avg_temp < -5:
        quality, description, score = "dry", "Dry powder - excellent skiing", 9
    elif avg_temp < -2:
        quality, description, score = "good", "Good powder - nice skiing", 7
    elif avg_temp < 0:
        quality, description, score = "medium", "Medium density - decent conditions", 5
    else:
        quality, description, score = "heavy", "Heavy/wet snow - challenging conditions", 3

    # Wind adjustment
    if avg_wind > 30:
        score -= 3
        description += " (wind-affected)"
    elif avg_wind > 20:
        score -= 1
        description += " (some wind transport)"

    return {
        "quality": quality,
        "description": description,
        "score": max(0, min(10, score))
    }

def calculate_powder_score(weather: Optional[Dict], start: int = 0) -> Dict[str, Any]:
    """
    Powder score (0-10) for the 24 hours of the hourly series beginning at `start`.

    The base score comes from the 24h snowfall total and is averaged with the
    snow quality score derived from mean temperature and wind over the same
    hours. Means are taken over the full 24 hour window; missing hours count
    as zero.
    """
    if not weather or not weather.get("hourly"):
        return {"score": 0, "rating": "No data", "is_powder_day": False}

    hourly = weather["hourly"]

    snowfall_24h = calculate_snowfall_total(hourly.get("snowfall"), POWDER_WINDOW_HOURS, start)
    snowfall_48h = calculate_snowfall_total(hourly.get("snowfall"), 48, start)
    snowfall_72h = calculate_snowfall_total(hourly.get("snowfall"), 72, start)

    avg_temp = sum(_values(hourly.get("temperature_2m"), start, POWDER_WINDOW_HOURS)) / POWDER_WINDOW_HOURS
    winds = hourly.get("wind_speed_10m")
    avg_wind = sum(_values(winds, start, POWDER_WINDOW_HOURS)) / POWDER_WINDOW_HOURS if winds else 0

    base = next((s for threshold, s in SNOWFALL_BASE_SCORES if snowfall_24h >= threshold), DEFAULT_BASE_SCORE)

    quality = get_snow_quality(avg_temp, avg_wind)
    score = (base + quality["score"]) / 2

    if score >= 8.5:
        rating, is_powder_day = "Epic", True
    elif score >= 7:
        rating, is_powder_day = "Excellent", True
    elif score >= 5.5:
        rating, is_powder_day = "Good", snowfall_24h >= 15
    elif score >= 4:
        rating, is_powder_day = "Fair", False
    else:
        rating, is_powder_day = "Poor", False

    return {
        "score":         round_half_up(score, 1),
        "rating":        rating,
        "is_powder_day": is_powder_day,
        "snowfall_24h":  round_half_up(snowfall_24h, 1),
        "snowfall_48h":  round_half_up(snowfall_48h, 1),
        "snowfall_72h":  round_half_up(snowfall_72h, 1),
        "snow_quality":  quality,
        "avg_temp":      round_half_up(avg_temp, 1),
        "avg_wind":      int(round_half_up(avg_wind))
    }

def estimate_snow_to_liquid_ratio(temp: float) -> int:
    # Colder snow is fluffier
    for bound, ratio in SNOW_TO_LIQUID_RATIOS:
        if temp < bound:
            return ratio
    return WET_SNOW_RATIO

# =============================================================================
# HOURLY FRAME & BEST SKIING WINDOW
# =============================================================================

def hourly_frame(weather: Optional[Dict]) -> pd.DataFrame:
    """
    Hourly Open-Meteo arrays as a DataFrame.

    Series present in the payload have gaps filled with 0; absent optional
    series take their neutral defaults (calm wind, 10 km visibility, daylight).
    """
    if not weather or not weather.get("hourly") or not weather["hourly"].get("time"):
        return pd.DataFrame()

    hourly = weather["hourly"]
    n = len(hourly["time"])

    def column(key, default):
        values = hourly.get(key)
        if values is None:
            return np.full(n, default, dtype=float)
        arr = np.array(list(values[:n]) + [None] * (n - len(values[:n])), dtype=float)
        return np.nan_to_num(arr, nan=0.0)

    return pd.DataFrame({
        "Time":       hourly["time"],
        "Snowfall":   column("snowfall", 0.0),
        "Temp_C":     column("temperature_2m", 0.0),
        "Wind":       column("wind_speed_10m", 0.0),
        "Visibility": column("visibility", 10000.0),
        "Is_Day":     column("is_day", 1.0),
    })

def score_hours(frame: pd.DataFrame) -> pd.DataFrame:
    """Adds per-hour ski scores (base 5) and the preceding six hours of snowfall."""
    df = frame.copy()
    recent = df["Snowfall"].shift(1).rolling(RECENT_SNOW_LOOKBACK_HOURS, min_periods=1).sum().fillna(0.0)

    snow_bonus = np.select([recent > 10, recent > 5, recent > 2], [3, 2, 1], default=0)
    wind_penalty = np.select([df["Wind"] > 40, df["Wind"] > 30, df["Wind"] > 20], [4, 2, 1], default=0)
    visibility_adj = np.select([df["Visibility"] > 8000, df["Visibility"] < 2000], [1, -2], default=0)
    daylight_bonus = np.where(df["Is_Day"] != 0, 1, 0)
    temp_adj = np.select(
        [(df["Temp_C"] > -20) & (df["Temp_C"] < -2), df["Temp_C"] > 0],
        [1, -1],
        default=0
    )

    df["Recent_Snow"] = recent
    df["Score"] = 5 + snow_bonus - wind_penalty + visibility_adj + daylight_bonus + temp_adj
    return df

def get_best_skiing_window(weather: Optional[Dict], start: int = 0) -> Dict[str, Any]:
    """Best continuous four-hour window in the 48 hours from `start`."""
    frame = hourly_frame(weather)
    if frame.empty:
        return {"recommendation": "No data available", "hours": []}

    scored = score_hours(frame).iloc[start:start + SKI_WINDOW_LOOKAHEAD_HOURS].reset_index(drop=True)
    if len(scored) < SKI_WINDOW_LENGTH_HOURS:
        return {"recommendation": "No data available", "hours": []}

    # Mean of each window indexed by its first hour
    window_means = scored["Score"].rolling(SKI_WINDOW_LENGTH_HOURS).mean().shift(-(SKI_WINDOW_LENGTH_HOURS - 1)).dropna()

    best_start, best_score = 0, 0.0
    if window_means.max() > 0:
        best_start = int(window_means.idxmax())
        best_score = float(window_means.loc[best_start])

    best_hours = scored.iloc[best_start:best_start + SKI_WINDOW_LENGTH_HOURS]

    if best_score >= 8:
        recommendation = "Excellent conditions expected"
    elif best_score >= 6:
        recommendation = "Good skiing conditions"
    elif best_score >= 4:
        recommendation = "Fair conditions"
    else:
        recommendation = "Challenging conditions"

    hours = [
        {
            "hour": int(idx),
            "time": row["Time"],
            "score": int(row["Score"]),
            "temp": float(row["Temp_C"]),
            "wind": float(row["Wind"]),
            "snow": float(row["Recent_Snow"])
        }
        for idx, row in best_hours.iterrows()
    ]

    return {
        "recommendation": recommendation,
        "start_time": hours[0]["time"],
        "end_time": hours[-1]["time"],
        "score": round_half_up(best_score, 1),
        "hours": hours
    }

# =============================================================================
# SNOWFALL TRACKING
# =============================================================================

def current_hour_index(weather: Optional[Dict], now: Optional[datetime] = None) -> Optional[int]:
    """
    Index of the first hourly timestamp at or after `now`.

    Open-Meteo returns local wall-clock times when `timezone=auto`; they are
    localized with the payload's `timezone`. A naive `now` is taken to be in
    that timezone. Returns None when every hour is in the past.
    """
    if not weather or not weather.get("hourly") or not weather["hourly"].get("time"):
        return None

    tz_str = weather.get("timezone") or "UTC"
    tz = pytz.timezone(tz_str)

    times = pd.to_datetime(pd.Series(weather["hourly"]["time"]))
    if times.dt.tz is None:
        times = times.dt.tz_localize(tz, ambiguous='NaT', nonexistent='shift_forward')
    else:
        times = times.dt.tz_convert(tz)

    if now is None:
        now_ts = pd.Timestamp.now(tz=tz)
    else:
        now_ts = pd.Timestamp(now)
        now_ts = now_ts.tz_localize(tz) if now_ts.tzinfo is None else now_ts.tz_convert(tz)

    upcoming = np.flatnonzero((times >= now_ts).to_numpy())
    if len(upcoming) == 0:
        return None
    return int(upcoming[0])

def calculate_next_snowfall(weather: Optional[Dict], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Whole days until the next snowing hour, and that day's snowfall total (cm)."""
    idx = current_hour_index(weather, now)
    if idx is None:
        return {"days_until": None, "amount": 0.0}

    snowfall = weather["hourly"].get("snowfall") or []
    for i in range(idx, len(snowfall)):
        if (snowfall[i] or 0) > 0:
            days_until = (i - idx) // 24
            day_start = idx + days_until * 24
            day_end = min(day_start + 24, len(snowfall))
            amount = sum(v or 0 for v in snowfall[day_start:day_end])
            return {"days_until": days_until, "amount": round_half_up(amount, 1)}

    return {"days_until": None, "amount": 0.0}

def calculate_last_snowfall(weather: Optional[Dict], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Whole days since the last snowing hour, and the total of that snowfall run (up to 24h back)."""
    if not weather or not weather.get("hourly"):
        return {"days_since": None, "amount": 0.0}

    snowfall = weather["hourly"].get("snowfall") or []
    idx = current_hour_index(weather, now)
    if idx is None:
        idx = len(snowfall)

    for i in range(idx - 1, -1, -1):
        if (snowfall[i] or 0) > 0:
            days_since = (idx - i) // 24
            run_start = i
            while run_start > 0 and i - run_start < 24:
                if (snowfall[run_start - 1] or 0) > 0:
                    run_start -= 1
                else:
                    break
            amount = sum(v or 0 for v in snowfall[run_start:i + 1])
            return {"days_since": days_since, "amount": round_half_up(amount, 1)}

    return {"days_since": None, "amount": 0.0}

def summarize_daily_snowfall(weather: Optional[Dict]) -> pd.DataFrame:
    frame = hourly_frame(weather)
    if frame.empty:
        return pd.DataFrame()

    frame["Date"] = pd.to_datetime(frame["Time"]).dt.normalize()
    daily = frame.groupby("Date").agg(
        Snowfall=("Snowfall", "sum"),
        Temp_Min_C=("Temp_C", "min"),
        Temp_Max_C=("Temp_C", "max")
    ).reset_index()
    daily["Cumulative"] = daily["Snowfall"].cumsum()
    return daily
