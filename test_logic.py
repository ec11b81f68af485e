import unittest
from datetime import datetime, timedelta, timezone

from bc_powder_app.data_layer.models import Location, LocationType, RankedLocation
from bc_powder_app.logic_engine.powder import (
    calculate_snowfall_total,
    get_snow_quality,
    calculate_powder_score,
    estimate_snow_to_liquid_ratio,
    get_best_skiing_window,
    current_hour_index,
    calculate_next_snowfall,
    calculate_last_snowfall,
    summarize_daily_snowfall,
    hourly_frame,
    score_hours,
    round_half_up
)
from bc_powder_app.logic_engine.stations import (
    calculate_distance,
    calculate_confidence,
    get_confidence_label,
    find_closest_station,
    find_nearest_stations,
    find_best_station,
    get_station_data_url,
    get_location_by_name,
    get_resorts,
    get_backcountry_zones,
    find_closest_location
)
from bc_powder_app.logic_engine.conditions import (
    get_weather_description,
    get_snowfall_quality,
    get_wind_chill_rating,
    get_visibility_rating,
    get_freezing_level_warning,
    get_skiing_condition_rating,
    get_snowfall_intensity,
    get_wind_direction,
    format_time
)
from bc_powder_app.logic_engine.avalanche import (
    parse_danger_rating,
    get_travel_advice,
    format_highlights,
    find_closest_forecast,
    get_danger_ratings_by_zone_name,
    get_first_day_ratings,
    summarize_danger_ratings
)
from bc_powder_app.logic_engine.road_events import (
    is_road_closure,
    is_natural_disaster,
    parse_event_type,
    parse_severity,
    filter_events_by_bounds,
    event_point,
    get_road_names,
    get_next_update,
    prioritize_events
)
from bc_powder_app.logic_engine.ranking import (
    summarize_weather,
    calculate_location_score,
    get_smart_tags,
    rank_locations
)

def hourly_times(start, hours):
    return [(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)]

def make_weather(hours=24, snowfall=0.0, temp=-5.0, wind=5.0, start=datetime(2024, 1, 15), tz="America/Vancouver"):
    return {
        "timezone": tz,
        "hourly": {
            "time": hourly_times(start, hours),
            "snowfall": [snowfall] * hours,
            "temperature_2m": [temp] * hours,
            "wind_speed_10m": [wind] * hours,
            "visibility": [10000.0] * hours,
            "is_day": [1] * hours
        }
    }

# Two neighbouring forecast regions from /forecasts/en/products and /areas
PRODUCTS = [
    {
        "id": "p1",
        "title": "Sea-to-Sky",
        "area": {"id": "a1", "name": "Sea-to-Sky"},
        "report": {
            "title": "Sea-to-Sky",
            "dateIssued": "2024-01-15T16:00:00Z",
            "validUntil": "2024-01-16T16:00:00Z",
            "highlights": "<p>Storm&nbsp;slabs &amp; cornices</p>",
            "dangerRatings": [
                {
                    "date": {"display": "Monday", "value": "2024-01-15"},
                    "ratings": {
                        "alp": {"rating": {"value": "considerable"}},
                        "tln": {"rating": {"value": "moderate"}},
                        "btl": {"rating": {"value": "low"}}
                    }
                },
                {
                    "date": {"display": "Tuesday", "value": "2024-01-16"},
                    "ratings": {"alp": {"rating": {"value": "high"}}}
                }
            ],
            "problems": [{"type": {"display": "Storm slab", "value": "storm"}}, {"type": "Wind slab"}]
        }
    },
    {
        "id": "p2",
        "title": "Kootenay-Boundary",
        "area": {"id": "a2", "name": "Kootenay-Boundary"},
        "report": {
            "title": "Kootenay-Boundary",
            "dangerRatings": [
                {
                    "date": {"display": "Monday"},
                    "ratings": {
                        "alp": {"rating": {"value": "High"}},
                        "tln": {"rating": {"value": "considerable"}}
                    }
                }
            ]
        }
    }
]

AREAS = {
    "type": "FeatureCollection",
    "features": [
        {"id": "a1", "properties": {"centroid": [-123.0, 50.1]}},
        {"id": "a2", "properties": {"centroid": [-117.0, 49.1]}}
    ]
}

def make_location(name):
    return Location(name=name, display_name=name, type=LocationType.RESORT, lat=50.0, lon=-120.0)

class TestPowder(unittest.TestCase):

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-4.5), -4)
        self.assertEqual(round_half_up(1.25, 1), 1.3)

    def test_calculate_snowfall_total(self):
        self.assertEqual(calculate_snowfall_total([1.0, None, 2.5, 4.0], hours=3), 3.5)
        self.assertEqual(calculate_snowfall_total([1.0, 1.0, 1.0], hours=24, start=1), 2.0)
        self.assertEqual(calculate_snowfall_total(None), 0.0)

    def test_get_snow_quality(self):
        self.assertEqual(get_snow_quality(-12, 0)["quality"], "champagne")
        self.assertEqual(get_snow_quality(1, 0)["score"], 3)

        # Wind transport knocks a point off
        windy = get_snow_quality(-6, 25)
        self.assertEqual(windy["quality"], "dry")
        self.assertEqual(windy["score"], 8)
        self.assertIn("(some wind transport)", windy["description"])

        # Wind-affected heavy snow bottoms out at zero
        self.assertEqual(get_snow_quality(2, 35)["score"], 0)

    def test_calculate_powder_score_epic(self):
        weather = make_weather(hours=24, snowfall=1.0, temp=-12.0, wind=10.0)
        result = calculate_powder_score(weather)

        # 24cm -> base 8, champagne -> 10
        self.assertEqual(result["score"], 9.0)
        self.assertEqual(result["rating"], "Epic")
        self.assertTrue(result["is_powder_day"])
        self.assertEqual(result["snowfall_24h"], 24.0)
        self.assertEqual(result["snowfall_48h"], 24.0)
        self.assertEqual(result["avg_temp"], -12.0)
        self.assertEqual(result["avg_wind"], 10)

    def test_calculate_powder_score_ratings(self):
        # 12cm -> base 5, good quality 7 -> 6.0 "Good" but under 15cm
        good = calculate_powder_score(make_weather(hours=24, snowfall=0.5, temp=-3.0, wind=0.0))
        self.assertEqual(good["rating"], "Good")
        self.assertFalse(good["is_powder_day"])

        dry = calculate_powder_score(make_weather(hours=24, snowfall=0.0, temp=1.0, wind=0.0))
        self.assertEqual(dry["score"], 2.0)
        self.assertEqual(dry["rating"], "Poor")

    def test_calculate_powder_score_no_data(self):
        self.assertEqual(calculate_powder_score(None), {"score": 0, "rating": "No data", "is_powder_day": False})
        self.assertEqual(calculate_powder_score({"hourly": {}})["rating"], "No data")

    def test_calculate_powder_score_short_series(self):
        # Means are over 24 hours even when fewer are present
        weather = make_weather(hours=12, snowfall=0.0, temp=-12.0, wind=0.0)
        result = calculate_powder_score(weather)
        self.assertEqual(result["avg_temp"], -6.0)
        self.assertEqual(result["snow_quality"]["quality"], "dry")

    def test_estimate_snow_to_liquid_ratio(self):
        self.assertEqual(estimate_snow_to_liquid_ratio(-20), 20)
        self.assertEqual(estimate_snow_to_liquid_ratio(-12), 15)
        self.assertEqual(estimate_snow_to_liquid_ratio(-1), 8)
        self.assertEqual(estimate_snow_to_liquid_ratio(3), 5)

    def test_get_best_skiing_window(self):
        weather = make_weather(hours=8, snowfall=0.0, temp=-5.0, wind=5.0)
        weather["hourly"]["snowfall"][0] = 6.0

        window = get_best_skiing_window(weather)

        # Hours 1-4 all see 6cm of recent snow
        self.assertEqual(window["start_time"], weather["hourly"]["time"][1])
        self.assertEqual(window["end_time"], weather["hourly"]["time"][4])
        self.assertEqual(window["score"], 10.0)
        self.assertEqual(window["recommendation"], "Excellent conditions expected")
        self.assertEqual([h["hour"] for h in window["hours"]], [1, 2, 3, 4])
        self.assertEqual(window["hours"][0]["snow"], 6.0)

    def test_best_window_wind_tiers(self):
        # Calm, cold, clear daylight hours score 8
        weather = make_weather(hours=8, temp=-5.0, wind=5.0)
        weather["hourly"]["wind_speed_10m"][:4] = [45.0, 40.0, 25.0, 20.0]

        scores = score_hours(hourly_frame(weather))["Score"].tolist()
        self.assertEqual(scores, [4, 6, 7, 8, 8, 8, 8, 8])

        # Windows from hour 3 and hour 4 both average 8; the earlier one wins
        window = get_best_skiing_window(weather)
        self.assertEqual(window["start_time"], weather["hourly"]["time"][3])
        self.assertEqual(window["score"], 8.0)
        self.assertEqual([h["score"] for h in window["hours"]], [8, 8, 8, 8])

    def test_best_window_visibility_daylight_and_temperature(self):
        weather = make_weather(hours=8, temp=-5.0, wind=5.0)
        hourly = weather["hourly"]
        hourly["visibility"][0] = 1500.0      # poor: -2 instead of +1
        hourly["visibility"][1] = 5000.0      # neither bonus nor penalty
        hourly["is_day"][2] = 0               # night: no daylight bonus
        hourly["temperature_2m"][3] = 2.0     # above freezing: -1
        hourly["temperature_2m"][4] = 0.0     # freezing exactly: neutral

        scores = score_hours(hourly_frame(weather))["Score"].tolist()
        self.assertEqual(scores, [5, 7, 7, 6, 7, 8, 8, 8])

        window = get_best_skiing_window(weather)
        self.assertEqual(window["start_time"], hourly["time"][4])
        self.assertEqual(window["score"], 7.8)
        self.assertEqual(window["recommendation"], "Good skiing conditions")

    def test_best_window_earliest_maximum_wins(self):
        weather = make_weather(hours=10, temp=-5.0, wind=5.0)
        weather["hourly"]["wind_speed_10m"][4] = 45.0

        self.assertEqual(score_hours(hourly_frame(weather))["Score"].tolist(), [8, 8, 8, 8, 4, 8, 8, 8, 8, 8])

        # Hours 0-3 and 5-8 both average 8
        window = get_best_skiing_window(weather)
        self.assertEqual(window["start_time"], weather["hourly"]["time"][0])
        self.assertEqual([h["hour"] for h in window["hours"]], [0, 1, 2, 3])

    def test_best_window_without_positive_mean(self):
        # Gale, poor visibility, night and thaw: 5 - 4 - 2 + 0 - 1
        weather = make_weather(hours=6, temp=3.0, wind=45.0)
        weather["hourly"]["visibility"] = [1000.0] * 6
        weather["hourly"]["is_day"] = [0] * 6

        self.assertEqual(score_hours(hourly_frame(weather))["Score"].tolist(), [-2] * 6)

        window = get_best_skiing_window(weather)
        self.assertEqual(window["start_time"], weather["hourly"]["time"][0])
        self.assertEqual(window["score"], 0.0)
        self.assertEqual(window["recommendation"], "Challenging conditions")
        self.assertEqual([h["score"] for h in window["hours"]], [-2, -2, -2, -2])

    def test_get_best_skiing_window_no_data(self):
        self.assertEqual(get_best_skiing_window(None)["recommendation"], "No data available")
        short = make_weather(hours=3)
        self.assertEqual(get_best_skiing_window(short)["recommendation"], "No data available")

    def test_current_hour_index(self):
        weather = make_weather(hours=24)
        self.assertEqual(current_hour_index(weather, datetime(2024, 1, 15, 2, 30)), 3)
        self.assertEqual(current_hour_index(weather, datetime(2024, 1, 15, 0, 0)), 0)
        self.assertIsNone(current_hour_index(weather, datetime(2024, 1, 17)))

        # Aware times are converted into the location's timezone (UTC-8 in January)
        aware = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        self.assertEqual(current_hour_index(weather, aware), 2)

    def test_calculate_next_snowfall(self):
        weather = make_weather(hours=72, snowfall=0.0)
        weather["hourly"]["snowfall"][30] = 2.0
        weather["hourly"]["snowfall"][40] = 3.0

        result = calculate_next_snowfall(weather, datetime(2024, 1, 15, 0, 0))
        self.assertEqual(result, {"days_until": 1, "amount": 5.0})

        dry = make_weather(hours=72, snowfall=0.0)
        self.assertEqual(calculate_next_snowfall(dry, datetime(2024, 1, 15))["days_until"], None)

    def test_calculate_last_snowfall(self):
        weather = make_weather(hours=72, snowfall=0.0)
        weather["hourly"]["snowfall"][10] = 1.0
        weather["hourly"]["snowfall"][11] = 2.0
        weather["hourly"]["snowfall"][12] = 3.0

        result = calculate_last_snowfall(weather, datetime(2024, 1, 16, 16, 0))
        self.assertEqual(result, {"days_since": 1, "amount": 6.0})

        self.assertEqual(calculate_last_snowfall(None), {"days_since": None, "amount": 0.0})

    def test_summarize_daily_snowfall(self):
        daily = summarize_daily_snowfall(make_weather(hours=48, snowfall=1.0))
        self.assertEqual(len(daily), 2)
        self.assertEqual(daily["Snowfall"].tolist(), [24.0, 24.0])
        self.assertEqual(daily["Cumulative"].iloc[-1], 48.0)
        self.assertTrue(summarize_daily_snowfall(None).empty)

class TestStations(unittest.TestCase):

    def test_calculate_distance(self):
        self.assertAlmostEqual(calculate_distance(0, 0, 0, 1), 111.19, places=1)
        self.assertEqual(calculate_distance(50, -120, 50, -120), 0)

    def test_calculate_confidence(self):
        self.assertEqual(calculate_confidence(5, "Sea-to-Sky", "Sea-to-Sky"), 1.0)
        self.assertEqual(calculate_confidence(15, "Sea-to-Sky"), 0.9)
        self.assertAlmostEqual(calculate_confidence(30, "Purcell", "Sea-to-Sky"), 0.6)
        self.assertAlmostEqual(calculate_confidence(60, "Purcell", "Sea-to-Sky"), 0.4)

        # 1.0 - 0.1 - 0.2 lands just above 0.7 and is left as is
        self.assertGreater(calculate_confidence(15, "Purcell", "Sea-to-Sky"), 0.7)

    def test_get_confidence_label(self):
        self.assertEqual(get_confidence_label(0.8), "High")
        self.assertEqual(get_confidence_label(0.5), "Medium")
        self.assertEqual(get_confidence_label(0.49), "Low")

    def test_get_station_data_url(self):
        self.assertTrue(get_station_data_url(71).endswith("/71"))

    def test_find_closest_station(self):
        stations = [
            {"id": 1, "name": "Near", "lat": 50.0, "lon": -120.0, "elevation": 1500, "zone": "A", "operator": "Test"},
            {"id": 2, "name": "Far", "lat": 50.5, "lon": -120.0, "elevation": 2000, "zone": "B", "operator": "Test"}
        ]
        match = find_closest_station(50.01, -120.0, stations=stations)
        self.assertEqual(match.name, "Near")
        self.assertAlmostEqual(match.distance_km, 1.1, places=1)
        self.assertEqual(match.confidence_label, "High")

        # Zone restricts the candidates
        self.assertEqual(find_closest_station(50.01, -120.0, zone="B", stations=stations).name, "Far")
        # A zone with no stations falls back to all of them
        self.assertEqual(find_closest_station(50.01, -120.0, zone="Z", stations=stations).name, "Near")
        # Out of range
        self.assertIsNone(find_closest_station(50.01, -120.0, max_distance=0.5, stations=stations))

    def test_find_nearest_stations(self):
        matches = find_nearest_stations(50.1163, -122.9574, count=2)
        self.assertEqual(len(matches), 2)
        self.assertLessEqual(matches[0].distance, matches[1].distance)

    def test_find_best_station_zone_match(self):
        whistler = get_location_by_name("Whistler")
        match = find_best_station(whistler.lat, whistler.lon, whistler.avalanche_zone, whistler.elevation)
        self.assertEqual(match.name, "Brandywine")
        self.assertEqual(match.confidence_label, "High")

    def test_find_best_station_elevation_weighting(self):
        stations = [
            {"id": 1, "name": "Valley", "lat": 50.3, "lon": -120.0, "elevation": 500, "zone": "A", "operator": "Test"},
            {"id": 2, "name": "Ridge", "lat": 50.4, "lon": -120.0, "elevation": 2000, "zone": "A", "operator": "Test"}
        ]
        # Off-zone at 33km is 0.6 confidence, so elevation decides:
        # Valley 0.7*33 + 0.3*150 vs Ridge 0.7*44 + 0.3*0
        match = find_best_station(50.0, -120.0, "Other", elevation=2000, stations=stations)
        self.assertEqual(match.name, "Ridge")
        self.assertEqual(match.elevation_diff, 0)

        # Without an elevation the closest wins
        self.assertEqual(find_best_station(50.0, -120.0, "Other", stations=stations).name, "Valley")

    def test_find_best_station_off_zone_within_25km(self):
        stations = [
            {"id": 1, "name": "Valley", "lat": 50.1, "lon": -120.0, "elevation": 500, "zone": "A", "operator": "Test"},
            {"id": 2, "name": "Ridge", "lat": 50.2, "lon": -120.0, "elevation": 2000, "zone": "A", "operator": "Test"}
        ]
        # Off-zone at 11km scores just over 0.7 and is taken before elevation is weighed
        match = find_best_station(50.0, -120.0, "Other", elevation=2000, stations=stations)
        self.assertEqual(match.name, "Valley")
        self.assertGreater(match.confidence, 0.7)

    def test_location_directory(self):
        self.assertEqual(get_location_by_name("whistler blackcomb").name, "Whistler")
        self.assertIsNone(get_location_by_name("Atlantis"))
        self.assertEqual(len(get_resorts()), 6)
        self.assertEqual(len(get_backcountry_zones()), 13)
        self.assertTrue(all(loc.type == LocationType.RESORT for loc in get_resorts()))
        self.assertEqual(find_closest_location(51.3, -117.52).name, "Rogers Pass")

class TestConditions(unittest.TestCase):

    def test_get_weather_description(self):
        self.assertEqual(get_weather_description(73), "Moderate snow fall")
        self.assertEqual(get_weather_description(1234), "Unknown")

    def test_get_snowfall_quality(self):
        self.assertEqual(get_snowfall_quality(-10, 0)["quality"], "No Snow")
        self.assertEqual(get_snowfall_quality(-10, 3)["quality"], "Powder")
        self.assertEqual(get_snowfall_quality(-5, 3)["label"], "good")
        self.assertEqual(get_snowfall_quality(1, 2)["quality"], "Wet Snow")

    def test_get_wind_chill_rating(self):
        rating = get_wind_chill_rating(-20, 30)
        self.assertEqual(rating["level"], "Extreme")
        self.assertEqual(rating["feels_like"], -33)
        self.assertTrue(rating["warning"])

        self.assertEqual(get_wind_chill_rating(5, 5)["level"], "Mild")

    def test_get_visibility_rating(self):
        self.assertEqual(get_visibility_rating(12000), {"level": "Excellent", "color": "#10b981", "warning": False, "distance": "12.0"})
        whiteout = get_visibility_rating(300)
        self.assertEqual(whiteout["level"], "Whiteout Risk")
        self.assertEqual(whiteout["distance"], "0.3")

    def test_get_freezing_level_warning(self):
        self.assertEqual(get_freezing_level_warning(1500, 2000)["status"], "Powder Conditions")
        self.assertEqual(get_freezing_level_warning(1900, 2000)["status"], "Cold Snow")
        self.assertEqual(get_freezing_level_warning(2100, 2000)["status"], "Mixed Conditions")
        self.assertEqual(get_freezing_level_warning(2500, 2000)["status"], "Rain Risk")

    def test_get_skiing_condition_rating(self):
        prime = get_skiing_condition_rating({
            "snowfall": 6, "temperature_2m": -8, "wind_speed_10m": 10,
            "visibility": 20000, "weather_code": 1
        })
        self.assertEqual(prime["score"], 100)
        self.assertEqual(prime["rating"], "Excellent")
        self.assertIn("Heavy snowfall (6cm)", prime["insights"])

        rough = get_skiing_condition_rating({
            "snowfall": 0, "temperature_2m": 3, "wind_speed_10m": 45, "visibility": 400
        })
        self.assertEqual(rough["score"], 0)
        self.assertEqual(rough["rating"], "Poor")

    def test_get_snowfall_intensity(self):
        self.assertEqual(get_snowfall_intensity(0)["level"], "None")
        self.assertEqual(get_snowfall_intensity(0.3)["level"], "Flurries")
        self.assertEqual(get_snowfall_intensity(6)["level"], "Heavy")

    def test_get_wind_direction(self):
        self.assertEqual(get_wind_direction(0), "N")
        self.assertEqual(get_wind_direction(22.5), "NE")
        self.assertEqual(get_wind_direction(180), "S")
        self.assertEqual(get_wind_direction(350), "N")

    def test_format_time(self):
        self.assertEqual(format_time("2024-01-15T14:30"), "2:30 PM")
        self.assertEqual(format_time("2024-01-15T00:05"), "12:05 AM")
        self.assertEqual(format_time(None), "")

class TestAvalanche(unittest.TestCase):

    def test_parse_danger_rating(self):
        self.assertEqual(parse_danger_rating("Considerable")["level"], 3)
        self.assertEqual(parse_danger_rating("earlyseason")["display"], "Early Season")
        self.assertEqual(parse_danger_rating(None)["display"], "No Rating")

        # Callers get a copy, not the shared table entry
        parse_danger_rating("low")["level"] = 99
        self.assertEqual(parse_danger_rating("low")["level"], 1)

    def test_format_highlights(self):
        self.assertEqual(format_highlights("<p>Storm&nbsp;slabs &amp; cornices</p>"), "Storm slabs & cornices")
        self.assertEqual(format_highlights(None), "")

    def test_find_closest_forecast(self):
        self.assertEqual(find_closest_forecast(PRODUCTS, AREAS, 49.0, -117.1)["id"], "p2")
        self.assertEqual(find_closest_forecast(PRODUCTS, AREAS, 50.1, -122.9)["id"], "p1")
        self.assertIsNone(find_closest_forecast(None, AREAS, 49.0, -117.1))
        self.assertIsNone(find_closest_forecast(PRODUCTS, {"features": []}, 49.0, -117.1))

    def test_get_danger_ratings_by_zone_name(self):
        # Punctuation and case are ignored
        ratings = get_danger_ratings_by_zone_name(PRODUCTS, "Kootenay Boundary")
        self.assertEqual(ratings, {"alp": "high", "tln": "considerable", "btl": "norating"})

        self.assertEqual(get_danger_ratings_by_zone_name(PRODUCTS, "sea-to-sky")["alp"], "considerable")
        self.assertIsNone(get_danger_ratings_by_zone_name(PRODUCTS, "North Rockies"))
        self.assertIsNone(get_danger_ratings_by_zone_name(None, "Sea-to-Sky"))

    def test_get_first_day_ratings(self):
        self.assertEqual(get_first_day_ratings(PRODUCTS[0]["report"]), {"alp": "considerable", "tln": "moderate", "btl": "low"})
        self.assertIsNone(get_first_day_ratings({"dangerRatings": []}))
        self.assertIsNone(get_first_day_ratings(None))

    def test_summarize_danger_ratings(self):
        summary = summarize_danger_ratings(PRODUCTS[0]["report"])

        self.assertEqual(summary["title"], "Sea-to-Sky")
        self.assertEqual(summary["highlights"], "Storm slabs & cornices")
        self.assertEqual(len(summary["days"]), 2)
        self.assertEqual(summary["days"][0]["date"], "Monday")
        self.assertEqual(summary["days"][0]["alp"]["display"], "3 - Considerable")
        self.assertEqual(summary["days"][1]["btl"]["display"], "No Rating")
        self.assertEqual(summary["highest_level"], 3)
        self.assertEqual(summary["travel_advice"], get_travel_advice(3))
        self.assertEqual(summary["problems"], ["Storm slab", "Wind slab"])

        self.assertIsNone(summarize_danger_ratings(None))

class TestRoadEvents(unittest.TestCase):

    def test_parse_event_type(self):
        self.assertEqual(parse_event_type("INCIDENT", "Landslide near Hope")["label"], "Landslide")
        self.assertEqual(parse_event_type("INCIDENT", "Avalanche control. Road closed.")["label"], "Avalanche Closure")
        self.assertEqual(parse_event_type("INCIDENT", "Vehicle incident")["label"], "Incident")
        self.assertEqual(parse_event_type("ROAD_CONDITION", "Black ice on bridge deck")["label"], "Ice Warning")
        self.assertEqual(parse_event_type("ROAD_CONDITION", "Compact snow")["label"], "Snow on Road")
        self.assertEqual(parse_event_type("ROAD_CONDITION", "")["label"], "Road Condition")
        self.assertEqual(parse_event_type("WEATHER_CONDITION", "Heavy snow warning")["label"], "Heavy Snow")
        self.assertEqual(parse_event_type("CONSTRUCTION")["label"], "Construction")
        self.assertEqual(parse_event_type(None)["label"], "Other")

    def test_parse_severity(self):
        self.assertEqual(parse_severity("MAJOR")["priority"], 3)
        self.assertEqual(parse_severity("bogus")["label"], "Unknown")

    def test_closures_and_disasters(self):
        self.assertTrue(is_road_closure({"description": "Road closed due to vehicle incident"}))
        self.assertFalse(is_road_closure(None))
        self.assertTrue(is_natural_disaster({"event_type": "INCIDENT", "description": "Washout at km 42"}))
        self.assertFalse(is_natural_disaster({"event_type": "ROAD_CONDITION", "description": "Washout"}))

    def test_get_next_update(self):
        desc = "Compact snow. Next update time Mon Jan 15 at 10:00 AM PST. Last updated..."
        self.assertEqual(get_next_update(desc), "Mon Jan 15 at 10:00 AM PST")
        self.assertIsNone(get_next_update("No schedule"))

    def test_get_road_names(self):
        event = {"roads": [{"name": "Highway 1"}, {"name": "Highway 1"}, {"from": "Golden"}]}
        self.assertEqual(get_road_names(event), "Highway 1, Golden")
        self.assertEqual(get_road_names({}), "Unknown Road")

    def test_filter_events_by_bounds(self):
        events = [
            {"id": "point", "geography": {"type": "Point", "coordinates": [-117.0, 49.0]}},
            {"id": "line", "geography": {"type": "LineString", "coordinates": [[-117.0, 49.0], [-116.5, 49.5]]}},
            {"id": "none"}
        ]
        bounds = {"west": -118.0, "east": -116.0, "south": 48.0, "north": 50.0}

        # Only point events can be placed; a line lying inside the bounds is still dropped
        self.assertEqual([e["id"] for e in filter_events_by_bounds(events, bounds)], ["point"])
        self.assertIsNone(event_point(events[1]))
        self.assertEqual(event_point(events[0]), (-117.0, 49.0))
        self.assertEqual(filter_events_by_bounds(events, None), events)

    def test_prioritize_events(self):
        events = [
            {"id": "a", "event_type": "ROAD_CONDITION", "severity": "MINOR", "updated": "2024-01-19T10:00:00-08:00"},
            {"id": "b", "event_type": "ROAD_CONDITION", "severity": "MAJOR", "updated": "2024-01-18T00:00:00Z"},
            {"id": "c", "event_type": "ROAD_CONDITION", "severity": "MAJOR", "updated": "2024-01-19T00:00:00Z"},
            {"id": "d", "event_type": "ROAD_CONDITION", "severity": "MAJOR", "updated": "not a date"},
            {"id": "e", "event_type": "ROAD_CONDITION", "severity": "MAJOR", "updated": "2023-11-01T00:00:00Z"},
            {"id": "f", "event_type": "INCIDENT", "severity": "MAJOR", "updated": "2024-01-19T00:00:00Z"}
        ]
        now = datetime(2024, 1, 20, tzinfo=timezone.utc)

        ranked = prioritize_events(events, now=now)
        self.assertEqual([e["id"] for e in ranked], ["c", "b", "d", "a"])

        self.assertEqual([e["id"] for e in prioritize_events(events, limit=2, now=now)], ["c", "b"])
        self.assertEqual(prioritize_events(None), [])

class TestRanking(unittest.TestCase):

    def setUp(self):
        self.weather = {
            "current": {
                "temperature_2m": -4.5,
                "apparent_temperature": -10.4,
                "weather_code": 0,
                "snow_depth": 1.5,
                "wind_speed_10m": 12.0
            },
            "hourly": {
                "freezing_level_height": [800.0, 900.4],
                "snow_depth": [1.4, 1.6]
            }
        }
        self.powder = {"score": 8.0, "snowfall_24h": 20.0, "snowfall_48h": 25.0}

    def test_summarize_weather(self):
        summary = summarize_weather(self.weather, self.powder, index=1)

        self.assertEqual(summary["temp"], -4)
        self.assertEqual(summary["feels_like"], -10)
        self.assertEqual(summary["snow_depth"], 150.0)
        self.assertEqual(summary["freezing_level"], 900)
        self.assertEqual(summary["weather_description"], "Clear sky")
        self.assertEqual(summary["snowfall_48h"], 25.0)

    def test_summarize_weather_hourly_fallbacks(self):
        self.weather["current"]["snow_depth"] = 0
        summary = summarize_weather(self.weather, self.powder, index=0)
        self.assertEqual(summary["snow_depth"], 140.0)
        self.assertEqual(summary["freezing_level"], 800)

        empty = summarize_weather({}, {}, index=0)
        self.assertEqual(empty["snow_depth"], 0)
        self.assertEqual(empty["freezing_level"], 0)
        self.assertIsNone(empty["temp"])

    def test_calculate_location_score(self):
        summary = summarize_weather(self.weather, self.powder, index=1)

        # 80 + 5 fresh snow bonus (20 / 150 > 0.1)
        self.assertEqual(calculate_location_score(summary, {"alp": "low", "tln": "low", "btl": "low"}), 85)
        self.assertEqual(calculate_location_score(summary, {"alp": "considerable", "tln": "moderate", "btl": "low"}), 68)
        self.assertEqual(calculate_location_score(summary, {"alp": "high", "tln": "considerable", "btl": "low"}), 51)
        self.assertEqual(calculate_location_score(summary, None), 85)
        self.assertEqual(calculate_location_score(None, None), 0)

    def test_get_smart_tags(self):
        summary = summarize_weather(self.weather, self.powder, index=1)
        labels = [t["label"] for t in get_smart_tags(summary)]
        self.assertEqual(labels, ["Deep Powder", "Bluebird", "Cold Smoke"])

        spring = {"snowfall_24h": 0, "weather_code": 1, "temp": 2, "wind_speed": 35, "freezing_level": 2500}
        self.assertEqual([t["label"] for t in get_smart_tags(spring)], ["Bluebird", "Storm Watch", "Spring Corn"])
        self.assertEqual(get_smart_tags(None), [])

    def test_rank_locations(self):
        rows = [
            RankedLocation(location=make_location("A"), score=40),
            RankedLocation(location=make_location("B"), score=85),
            RankedLocation(location=make_location("C"), score=40),
            RankedLocation(location=make_location("D"), score=10)
        ]
        ranked = rank_locations(rows, limit=3)

        # Ties keep their input order
        self.assertEqual([r.location.name for r in ranked], ["B", "A", "C"])

if __name__ == '__main__':
    unittest.main()
