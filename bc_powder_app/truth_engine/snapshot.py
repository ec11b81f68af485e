from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import List
import logging

from bc_powder_app.data_layer.models import ConditionsHistory, RankedLocation

logger = logging.getLogger(__name__)

def capture_conditions(
    session: Session,
    ranked: List[RankedLocation],
    captured_at_utc: datetime
) -> int:
    """
    Persists one ranking run to the conditions_history table.

    Args:
        session: SQLAlchemy session.
        ranked: Output of DataManager.rank_locations (best first).
        captured_at_utc: When the ranking was produced. Naive values are taken as UTC.

    Returns:
        Number of rows written.
    """
    if not ranked:
        logger.warning("No ranked locations to capture")
        return 0

    if captured_at_utc.tzinfo is not None:
        captured_at_utc = captured_at_utc.astimezone(timezone.utc).replace(tzinfo=None)

    count = 0
    for row in ranked:
        powder = row.powder or {}
        summary = row.weather_summary or {}
        ratings = row.danger_ratings or {}

        entry = ConditionsHistory(
            location_name=row.location.name,
            captured_at_utc=captured_at_utc,
            rank_score=row.score,
            powder_score=powder.get("score"),
            powder_rating=powder.get("rating"),
            is_powder_day=powder.get("is_powder_day"),
            snowfall_24h_cm=powder.get("snowfall_24h"),
            temperature_c=summary.get("temp"),
            alpine_rating=ratings.get("alp"),
            treeline_rating=ratings.get("tln"),
            below_treeline_rating=ratings.get("btl"),
            serialized_payload_json={
                "display_name": row.location.display_name,
                "weather_summary": summary,
                "tags": row.tags
            }
        )
        session.add(entry)
        count += 1

    session.commit()
    logger.info(f"Captured {count} condition records at {captured_at_utc.isoformat()}")
    return count
