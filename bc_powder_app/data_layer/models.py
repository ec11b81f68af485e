from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON
from bc_powder_app.data_layer.database import Base

# =============================================================================
# Pydantic Models (Data Exchange)
# =============================================================================

class LocationType(str, Enum):
    """
    str, Enum ensures the enum member IS its string value, so
    LocationType.RESORT == "resort" holds when filtering the
    LOCATIONS config and when the value is written to SQLite.
    """
    RESORT      = "resort"
    BACKCOUNTRY = "backcountry"
    CUSTOM      = "custom"

class CacheStatus(str, Enum):
    OK               = "OK"               # Fetched from the provider just now
    CACHE_HIT_FRESH  = "CACHE_HIT_FRESH"
    CACHE_HIT_STALE  = "CACHE_HIT_STALE"  # Served while a background refresh runs

class Location(BaseModel):
    model_config = ConfigDict(extra='forbid', strict=False)

    name             : str
    display_name     : str
    type             : LocationType
    lat              : float
    lon              : float
    elevation_base   : Optional[float] = None  # metres
    elevation_summit : Optional[float] = None  # metres
    avalanche_zone   : Optional[str]   = None
    country          : str = "Canada"
    info             : Dict[str, Any] = {}

    @property
    def elevation(self) -> Optional[float]:
        return self.elevation_summit

    @classmethod
    def from_config(cls, name: str, data: Dict[str, Any]) -> "Location":
        elevation = data.get("elevation", {})
        return cls(
            name=name,
            display_name=data.get("display_name", name),
            type=data.get("type", LocationType.CUSTOM),
            lat=data["lat"],
            lon=data["lon"],
            elevation_base=elevation.get("base"),
            elevation_summit=elevation.get("summit"),
            avalanche_zone=data.get("avalanche_zone"),
            info=data.get("info", {}),
        )

class WeatherStation(BaseModel):
    id        : int
    name      : str
    lat       : float
    lon       : float
    elevation : float  # metres
    zone      : str
    operator  : str

class StationMatch(WeatherStation):
    distance         : float  # km
    distance_km      : float  # km, one decimal
    confidence       : float  # 0-1
    confidence_label : str    # "High", "Medium", "Low"
    elevation_diff   : Optional[float] = None

class ProviderResponse(BaseModel):
    key        : str
    source     : str  # "OpenMeteo", "AvalancheCanada", "DriveBC"
    fetched_at : datetime
    payload    : Any
    status     : CacheStatus

class LocationConditions(BaseModel):
    location        : Location
    weather_summary : Dict[str, Any]
    powder          : Dict[str, Any]
    best_window     : Dict[str, Any]
    next_snowfall   : Dict[str, Any]
    last_snowfall   : Dict[str, Any]
    avalanche       : Optional[Dict[str, Any]] = None  # summarized danger ratings
    danger_ratings  : Optional[Dict[str, str]] = None  # {"alp": "low", "tln": ..., "btl": ...}
    station         : Optional[StationMatch]   = None
    status          : CacheStatus

class RankedLocation(BaseModel):
    location        : Location
    score           : int
    powder          : Optional[Dict[str, Any]] = None
    danger_ratings  : Optional[Dict[str, str]] = None
    weather_summary : Optional[Dict[str, Any]] = None
    tags            : List[Dict[str, str]] = []

# =============================================================================
# SQLAlchemy Models (Database Persistence)
# =============================================================================

class ConditionsHistory(Base):
    __tablename__ = "conditions_history"

    id                        = Column(Integer,  primary_key=True, index=True)
    location_name             = Column(String,   index=True)
    captured_at_utc           = Column(DateTime, index=True)
    rank_score                = Column(Integer)
    powder_score              = Column(Float)
    powder_rating             = Column(String)
    is_powder_day             = Column(Boolean)
    snowfall_24h_cm           = Column(Float)
    temperature_c             = Column(Float)
    alpine_rating             = Column(String)
    treeline_rating           = Column(String)
    below_treeline_rating     = Column(String)
    serialized_payload_json   = Column(JSON)
