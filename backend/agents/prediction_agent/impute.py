from __future__ import annotations

import logging
from typing import List, Sequence

from agents.prediction_agent.models import GameRecord, ImputationResult

logger = logging.getLogger("prediction_engine")

_STATS = ("points", "rebounds", "assists")


def round_half_up(total: int, count: int) -> int:
    """
    Mean of non-negative integers rounded half-up, in exact integer math.
    24.5 -> 25, 24.4 -> 24 (Python's round() would give 24 for 24.5).
    """
    if count <= 0:
        raise ValueError("count must be positive")
    return (2 * total + count) // (2 * count)


def impute_window(games: Sequence[GameRecord]) -> ImputationResult:
    """
    Replace stats of zero-minute games with the rounded average of played games.
    Played games pass through untouched; the input sequence is not modified.
    """
    played = [g for g in games if g.minutes_played > 0]

    if not played:
        logger.warning("All %d games have 0 minutes; cannot impute stats", len(games))
        return ImputationResult(games=list(games), imputable=False)

    averages = {
        stat: round_half_up(sum(getattr(g, stat) for g in played), len(played))
        for stat in _STATS
    }

    out: List[GameRecord] = []
    for g in games:
        if g.minutes_played == 0:
            out.append(g.model_copy(update={**averages, "was_imputed": True}))
        else:
            out.append(g)

    return ImputationResult(games=out, imputable=True)
