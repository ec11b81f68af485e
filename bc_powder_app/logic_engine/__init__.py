from .powder import (
    calculate_snowfall_total,
    get_snow_quality,
    calculate_powder_score,
    estimate_snow_to_liquid_ratio,
    get_best_skiing_window,
    current_hour_index,
    calculate_next_snowfall,
    calculate_last_snowfall,
    summarize_daily_snowfall
)

from .stations import (
    calculate_distance,
    calculate_confidence,
    get_confidence_label,
    find_closest_station,
    find_nearest_stations,
    find_best_station,
    get_station_data_url,
    get_location_by_name,
    get_locations_by_type,
    get_resorts,
    get_backcountry_zones,
    find_closest_location
)

from .avalanche import (
    parse_danger_rating,
    get_danger_rating_info,
    get_travel_advice,
    format_highlights,
    find_closest_forecast,
    get_danger_ratings_by_zone_name,
    get_first_day_ratings,
    summarize_danger_ratings
)

from .road_events import (
    is_road_closure,
    is_natural_disaster,
    parse_event_type,
    parse_severity,
    filter_events_by_bounds,
    get_road_names,
    get_next_update,
    prioritize_events
)

from .ranking import summarize_weather, calculate_location_score, get_smart_tags, rank_locations

from .conditions import (
    get_weather_description,
    get_snowfall_quality,
    get_wind_chill_rating,
    get_visibility_rating,
    get_freezing_level_warning,
    get_skiing_condition_rating,
    get_snowfall_intensity,
    format_wind_direction,
    get_wind_direction,
    format_time
)
