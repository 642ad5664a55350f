"""
run_predictions.py
Command-line entry for prediction runs (one match, the upcoming schedule,
or only the upcoming matches that still have zero predictions).

    python jobs/run_predictions.py --match-id 52
    python jobs/run_predictions.py --schedule --horizon-hours 36
    python jobs/run_predictions.py --missing-only
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

# Allow running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from common.config_loader import DATABASE_URL, PREDICTION_HORIZON_HOURS  # noqa: E402
from common.database import PredictorDatabase, build_engine  # noqa: E402
from services.prediction_service import MatchNotFoundError, MatchPredictionOrchestrator  # noqa: E402
from services.schedule_service import fix_missing_predictions, generate_predictions_for_schedule  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate NBA prop threshold predictions.")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--match-id", type=int, help="Generate predictions for a single match")
    mode.add_argument("--schedule", action="store_true", help="All scheduled matches inside the horizon")
    mode.add_argument("--missing-only", action="store_true", help="Upcoming matches with 0 predictions")
    parser.add_argument("--horizon-hours", type=int, default=PREDICTION_HORIZON_HOURS)
    parser.add_argument("--database-url", default=DATABASE_URL)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    db = PredictorDatabase(build_engine(args.database_url))
    orchestrator = MatchPredictionOrchestrator(window_source=db, roster_source=db, store=db)

    if args.match_id is not None:
        try:
            result = orchestrator.generate_predictions_for_match(args.match_id)
        except MatchNotFoundError as e:
            print(f"❌ {e}")
            return 1
        print(
            f"✅ Match {args.match_id}: {len(result.predictions)} predictions, "
            f"{len(result.skipped)} skipped, {len(result.failures)} failed"
        )
        return 0 if not result.failures else 2

    run = fix_missing_predictions if args.missing_only else generate_predictions_for_schedule
    summary = run(db, orchestrator, horizon_hours=args.horizon_hours)

    print(f"   - Matches processed: {summary.matches_processed}")
    print(f"   - Predictions generated: {summary.predictions_generated}")
    print(f"   - Errors: {len(summary.errors)}")
    for err in summary.errors[:5]:
        print(f"     - {err}")
    return 0 if not summary.errors else 2


if __name__ == "__main__":
    sys.exit(main())
