import argparse
import logging
import sys
import os
import asyncio
from datetime import datetime, timezone

# Ensure the app package is in path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from bc_powder_app.data_layer.config import load_config
from bc_powder_app.data_layer.database import session_factory
from bc_powder_app.data_layer.manager import DataManager, SWRCache
from bc_powder_app.truth_engine.snapshot import capture_conditions

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

def _resolve_config_path(config_path: str) -> str:
    if os.path.exists(config_path):
        return config_path
    # Try relative to the project root when not run from it
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    return os.path.join(project_root, config_path)

def main():
    parser = argparse.ArgumentParser(description="Rank the watch list and store a conditions snapshot")
    parser.add_argument("--locations", nargs="+", help="Location names to capture (overrides config)")
    parser.add_argument("--config", default="bc_powder_app/config/watchlist.yaml", help="Path to config file")
    parser.add_argument("--limit", type=int, default=25, help="Maximum number of locations to store")

    args = parser.parse_args()

    config = load_config(_resolve_config_path(args.config))
    names = args.locations or config.get("locations")
    database_url = config.get("database_url", "sqlite:///powder_history.db")

    logger.info("Starting Conditions Snapshot Run...")

    session = session_factory(database_url)()
    try:
        manager = DataManager(cache=SWRCache(config.get("cache")))
        ranked = asyncio.run(manager.rank_locations(names, limit=args.limit))
        capture_conditions(session, ranked, datetime.now(timezone.utc))

    except Exception as e:
        logger.error(f"Snapshot run failed: {e}")
    finally:
        session.close()
        logger.info("Snapshot run complete.")

if __name__ == "__main__":
    main()
