# ==========================================================
# 🗓️ Schedule-level prediction runs
# ----------------------------------------------------------
# Batch generation for every scheduled match inside the
# horizon (default 36h), plus a repair pass that only touches
# matches that have never been run.
# ==========================================================

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import pytz

from common.config_loader import PREDICTION_HORIZON_HOURS, TZ
from common.database import PredictorDatabase
from schemas.predictions import MatchInfo, ScheduleRunResult
from services.prediction_service import MatchPredictionOrchestrator

logger = logging.getLogger("schedule_service")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def format_local_time(game_time: Optional[datetime], tz_name: str = TZ) -> str:
    """Render a naive-UTC game time in the display timezone."""
    if game_time is None:
        return "TBD"
    tz = pytz.timezone(tz_name) if tz_name else pytz.utc
    aware = game_time if game_time.tzinfo else pytz.utc.localize(game_time)
    return aware.astimezone(tz).strftime("%b %d %I:%M %p %Z")


def _matchup(match: MatchInfo) -> str:
    return f"{match.away_team or match.away_team_id} @ {match.home_team or match.home_team_id}"


def _run(
    db: PredictorDatabase,
    orchestrator: MatchPredictionOrchestrator,
    now: Optional[datetime],
    horizon_hours: int,
    missing_only: bool,
) -> ScheduleRunResult:
    now = now or datetime.now(timezone.utc)
    result = ScheduleRunResult()

    matches = db.find_upcoming_matches(now, horizon_hours, without_predictions=missing_only)
    logger.info(
        "Found %d matches within next %dh%s",
        len(matches), horizon_hours, " not yet run" if missing_only else "",
    )

    for match in matches:
        logger.info("Processing: %s (%s)", _matchup(match), format_local_time(match.game_time))
        try:
            run = orchestrator.generate_predictions_for_match(match.id)
        except Exception as e:
            msg = f"Error processing match {match.id}: {e}"
            logger.error("  ❌ %s", msg)
            result.errors.append(msg)
            continue

        result.matches_processed += 1
        result.predictions_generated += len(run.predictions)
        for failure in run.failures:
            result.errors.append(
                f"Match {match.id} player {failure.player_id} ({failure.stage}): {failure.error}"
            )
        logger.info("  ✓ Generated %d predictions", len(run.predictions))

    logger.info(
        "📊 Summary: matches=%d predictions=%d errors=%d",
        result.matches_processed, result.predictions_generated, len(result.errors),
    )
    return result


def generate_predictions_for_schedule(
    db: PredictorDatabase,
    orchestrator: MatchPredictionOrchestrator,
    now: Optional[datetime] = None,
    horizon_hours: int = PREDICTION_HORIZON_HOURS,
) -> ScheduleRunResult:
    return _run(db, orchestrator, now, horizon_hours, missing_only=False)


def fix_missing_predictions(
    db: PredictorDatabase,
    orchestrator: MatchPredictionOrchestrator,
    now: Optional[datetime] = None,
    horizon_hours: int = PREDICTION_HORIZON_HOURS,
) -> ScheduleRunResult:
    """Run only the upcoming matches that have never been run."""
    return _run(db, orchestrator, now, horizon_hours, missing_only=True)
