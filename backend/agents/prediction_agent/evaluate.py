from __future__ import annotations

from typing import Optional, Sequence


def evaluate_threshold(
    values: Sequence[int],
    thresholds: Sequence[int],
    qualifying_count: int,
) -> Optional[int]:
    """
    Walk the ladder from highest to lowest and return the first line that
    at least `qualifying_count` games met or beat ("15+" means >= 15).
    Returns None when no line qualifies.
    """
    for threshold in thresholds:
        hits = sum(1 for v in values if v >= threshold)
        if hits >= qualifying_count:
            return threshold
    return None
