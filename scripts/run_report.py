import argparse
import logging
import sys
import os

# Ensure the app package is in path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from bc_powder_app.data_layer.config import load_config
from bc_powder_app.data_layer.manager import DataManager, SWRCache, run_location_report, run_ranking

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

def print_ranking(ranked):
    for i, row in enumerate(ranked, start=1):
        summary = row.weather_summary or {}
        tags = ", ".join(t["label"] for t in row.tags)
        print(f"{i:>2}. {row.location.display_name:<32} score {row.score:>3}  "
              f"24h {summary.get('snowfall_24h', 0)} cm  {tags}")

def print_report(conditions):
    location = conditions.location
    powder = conditions.powder
    summary = conditions.weather_summary
    print(f"{location.display_name} ({location.lat}, {location.lon}) [{conditions.status.value}]")
    print(f"  Weather:    {summary.get('weather_description')}, {summary.get('temp')}°C "
          f"(feels {summary.get('feels_like')}°C), wind {summary.get('wind_speed')} km/h")
    print(f"  Powder:     {powder.get('score')}/10 {powder.get('rating')}, "
          f"24h {powder.get('snowfall_24h', 0)} cm / 48h {powder.get('snowfall_48h', 0)} cm")
    print(f"  Best window: {conditions.best_window.get('recommendation')}")
    print(f"  Next snow:  {conditions.next_snowfall}")
    print(f"  Last snow:  {conditions.last_snowfall}")
    if conditions.danger_ratings:
        ratings = conditions.danger_ratings
        print(f"  Avalanche:  alp {ratings['alp']} / tln {ratings['tln']} / btl {ratings['btl']}")
    if conditions.station:
        print(f"  Station:    {conditions.station.name} ({conditions.station.distance_km} km, "
              f"{conditions.station.confidence_label} confidence)")

def main():
    parser = argparse.ArgumentParser(description="Print BC powder conditions")
    parser.add_argument("location", nargs="?", help="Location to report on; omit to rank the watch list")
    parser.add_argument("--config", default="bc_powder_app/config/watchlist.yaml", help="Path to config file")
    parser.add_argument("--limit", type=int, default=10, help="Number of ranked locations to show")

    args = parser.parse_args()

    config_path = args.config
    if not os.path.exists(config_path):
        project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
        config_path = os.path.join(project_root, config_path)
    config = load_config(config_path)

    manager = DataManager(cache=SWRCache(config.get("cache")))

    if args.location:
        conditions = run_location_report(args.location, manager)
        if conditions is None:
            sys.exit(1)
        print_report(conditions)
    else:
        print_ranking(run_ranking(config.get("locations"), args.limit, manager))

if __name__ == "__main__":
    main()
