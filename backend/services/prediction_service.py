# backend/services/prediction_service.py
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Union

from agents.prediction_agent.engine import generate_prediction, is_ruled_out
from agents.prediction_agent.models import GameRecord, PredictionRecord, ThresholdConfig
from agents.prediction_agent.thresholds import DEFAULT_THRESHOLD_CONFIG
from schemas.predictions import (
    MatchPredictionResult,
    MatchRoster,
    PlayerFailure,
    PlayerSkip,
    RosterPlayer,
)

logger = logging.getLogger("prediction_service")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


# -------------------------
# Collaborator protocols
# -------------------------
class GameWindowSource(Protocol):
    def fetch_recent_games(self, player_id: int, limit: int) -> List[GameRecord]: ...


class RosterSource(Protocol):
    def load_match_roster(self, match_id: int) -> Optional[MatchRoster]: ...


class PredictionStore(Protocol):
    def upsert_prediction(self, record: PredictionRecord) -> None: ...

    def record_match_run(self, match_id: int, status: str, config_version: str) -> None: ...


class MatchNotFoundError(LookupError):
    pass


PlayerOutcome = Union[PredictionRecord, PlayerSkip, PlayerFailure]


class MatchPredictionOrchestrator:
    """
    Generates and persists predictions for every eligible player of a match.

    Players are processed one at a time and independently: a skip or failure
    for one player is collected into the result and never aborts the rest.
    Persistence is an upsert on (player_id, match_id), so re-running a match
    is safe.
    """

    def __init__(
        self,
        window_source: GameWindowSource,
        roster_source: RosterSource,
        store: PredictionStore,
        config: ThresholdConfig = DEFAULT_THRESHOLD_CONFIG,
    ):
        self.window_source = window_source
        self.roster_source = roster_source
        self.store = store
        self.config = config

    def _process_player(self, match_id: int, player: RosterPlayer) -> PlayerOutcome:
        stage = "status"
        try:
            if is_ruled_out(player.status):
                logger.info("  ⏩ Skipping %s (%s) - ruled out", player.full_name, player.id)
                return PlayerSkip(player_id=player.id, reason="player_out")

            stage = "window"
            games = self.window_source.fetch_recent_games(player.id, self.config.window_size)
            games = list(games)[: self.config.window_size]

            if len(games) < self.config.window_size:
                logger.info(
                    "  ⏩ Skipping %s (%s) - only %d games", player.full_name, player.id, len(games)
                )
                return PlayerSkip(player_id=player.id, reason="insufficient_games", games_available=len(games))

            stage = "derive"
            record = generate_prediction(player.id, match_id, games, self.config)

            stage = "persist"
            self.store.upsert_prediction(record)
            return record
        except Exception as e:
            logger.exception("  ❌ Error generating prediction for %s (%s)", player.full_name, player.id)
            return PlayerFailure(player_id=player.id, stage=stage, error=f"{type(e).__name__}: {e}")

    def generate_predictions_for_match(self, match_id: int) -> MatchPredictionResult:
        roster = self.roster_source.load_match_roster(match_id)
        if roster is None:
            raise MatchNotFoundError(f"Match {match_id} not found")

        if not roster.players:
            logger.warning("⚠️  No players found for match %s", match_id)
            return self._finish(MatchPredictionResult(
                match_id=match_id,
                status="no_players",
                config_version=self.config.version,
            ))

        predictions: List[PredictionRecord] = []
        skipped: List[PlayerSkip] = []
        failures: List[PlayerFailure] = []

        for player in roster.players:
            outcome = self._process_player(match_id, player)
            if isinstance(outcome, PredictionRecord):
                predictions.append(outcome)
            elif isinstance(outcome, PlayerSkip):
                skipped.append(outcome)
            else:
                failures.append(outcome)

        logger.info(
            "Match %s: %d predictions, %d skipped, %d failed",
            match_id, len(predictions), len(skipped), len(failures),
        )

        return self._finish(MatchPredictionResult(
            match_id=match_id,
            status="partial" if failures else "ok",
            config_version=self.config.version,
            predictions=predictions,
            skipped=skipped,
            failures=failures,
        ))

    def _finish(self, result: MatchPredictionResult) -> MatchPredictionResult:
        # the marker separates "ran, nothing stored" from "never ran"
        self.store.record_match_run(result.match_id, result.status, result.config_version)
        return result
