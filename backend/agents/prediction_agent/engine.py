# ==========================================================
# 🔮 Prediction Engine
# ----------------------------------------------------------
# Deterministic prop derivation for one player and one match:
#   1. require a full window (exactly 15 team games)
#   2. impute zero-minute games from the played-game average
#   3. per stat, pick the highest line cleared in 14 of 15
# ==========================================================

from __future__ import annotations

import logging
from typing import Optional, Sequence

from agents.prediction_agent.evaluate import evaluate_threshold
from agents.prediction_agent.impute import impute_window
from agents.prediction_agent.models import GameRecord, PredictionRecord, ThresholdConfig
from agents.prediction_agent.thresholds import DEFAULT_THRESHOLD_CONFIG

logger = logging.getLogger("prediction_engine")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

PLAYER_STATUSES = ("active", "out", "questionable", "doubtful")


class WindowSizeError(ValueError):
    """Raised when the engine receives a window that is not exactly window_size long."""


def _validate_window(games: Sequence[GameRecord], window_size: int) -> None:
    if len(games) != window_size:
        raise WindowSizeError(f"Expected exactly {window_size} games, got {len(games)}")


def assemble_prediction(
    player_id: int,
    match_id: int,
    imputed_games: Sequence[GameRecord],
    config: ThresholdConfig = DEFAULT_THRESHOLD_CONFIG,
) -> PredictionRecord:
    _validate_window(imputed_games, config.window_size)

    picks = {}
    for ladder in config.ladders():
        values = [getattr(g, ladder.stat) for g in imputed_games]
        picks[f"{ladder.stat}_threshold"] = evaluate_threshold(
            values, ladder.thresholds, config.qualifying_count
        )

    return PredictionRecord(
        player_id=player_id,
        match_id=match_id,
        games_analyzed=config.window_size,
        **picks,
    )


def generate_prediction(
    player_id: int,
    match_id: int,
    games: Sequence[GameRecord],
    config: ThresholdConfig = DEFAULT_THRESHOLD_CONFIG,
) -> PredictionRecord:
    """
    Pure entry point: window in, PredictionRecord out.
    Raises WindowSizeError for any window that is not exactly full; the window
    is never truncated or padded here.
    """
    _validate_window(games, config.window_size)

    result = impute_window(games)
    if not result.imputable:
        logger.warning("Player %s: no played games in window, thresholds use raw values", player_id)

    return assemble_prediction(player_id, match_id, result.games, config)


def is_ruled_out(player_status: Optional[str]) -> bool:
    """True when the player is listed as out; such players get no prediction."""
    if player_status is not None and player_status not in PLAYER_STATUSES:
        raise ValueError(f"Unknown player status: {player_status}")
    return player_status == "out"
