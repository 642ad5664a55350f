# backend/routes/predictions.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException

from common.config_loader import DATABASE_URL, PREDICTION_AVAILABILITY_HOURS
from common.database import PredictorDatabase, build_engine, to_utc_naive
from services.prediction_service import MatchNotFoundError, MatchPredictionOrchestrator
from services.schedule_service import format_local_time

logger = logging.getLogger("predictions_route")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

router = APIRouter(prefix="/api/predictions", tags=["Predictions"])

_UNAVAILABLE_MSG = "No predictions available for this match."
_STARTED_MSG = "Game has already started"
_COMING_SOON_MSG = "Predictions coming soon. We are working on updated data."
_NO_TIME_MSG = "Game time has not been announced yet"


@lru_cache(maxsize=1)
def get_database() -> PredictorDatabase:
    """Process-wide database handle; tests override this dependency."""
    return PredictorDatabase(build_engine(DATABASE_URL))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def prediction_availability(
    game_time: Optional[datetime],
    now: Optional[datetime] = None,
    limit_hours: int = PREDICTION_AVAILABILITY_HOURS,
) -> Tuple[bool, Optional[str]]:
    """Predictions are shown only while 0 < hours until game_time <= limit_hours."""
    if game_time is None:
        return False, _NO_TIME_MSG

    now = to_utc_naive(now or datetime.now(timezone.utc))
    hours = (to_utc_naive(game_time) - now).total_seconds() / 3600
    if hours <= 0:
        return False, _STARTED_MSG
    if hours > limit_hours:
        return False, _COMING_SOON_MSG
    return True, None


@router.get("/{match_id}")
def get_match_predictions(match_id: int, db: PredictorDatabase = Depends(get_database)) -> Dict[str, Any]:
    """
    Stored predictions for a match.
    status="not_computed" means no run has happened yet. A run that stored
    zero rows (every player skipped) still reports "computed" with count 0.
    Rows are only served inside the availability window before tip-off.
    """
    match = db.get_match(match_id)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")

    run = db.get_match_run(match_id)
    available, message = prediction_availability(match.game_time)
    rows = db.fetch_predictions_for_match(match_id) if available else []

    payload: Dict[str, Any] = {
        "success": True,
        "match_id": match_id,
        "matchup": f"{match.away_team} @ {match.home_team}",
        "game_time_local": format_local_time(match.game_time),
        "predictions_available": available,
        "status": "computed" if run is not None else "not_computed",
        "config_version": run.config_version if run else None,
        "count": len(rows),
        "data": [r.model_dump(mode="json") for r in rows],
        "generated_at": _now_iso(),
    }
    if message:
        payload["message"] = message
    return payload


@router.post("/{match_id}/generate")
def generate_match_predictions(match_id: int, db: PredictorDatabase = Depends(get_database)) -> Dict[str, Any]:
    orchestrator = MatchPredictionOrchestrator(window_source=db, roster_source=db, store=db)
    try:
        result = orchestrator.generate_predictions_for_match(match_id)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception:
        logger.exception("Prediction run failed for match %s", match_id)
        return {
            "success": False,
            "match_id": match_id,
            "status": "unavailable",
            "message": _UNAVAILABLE_MSG,
            "data": [],
        }

    return {
        "success": True,
        "match_id": match_id,
        "status": result.status,
        "config_version": result.config_version,
        "count": len(result.predictions),
        "data": [p.model_dump() for p in result.predictions],
        "skipped": [s.model_dump() for s in result.skipped],
        "failures": [f.model_dump() for f in result.failures],
        "generated_at": _now_iso(),
    }
