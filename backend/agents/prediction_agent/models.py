from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GameRecord(BaseModel):
    """One team game from a player's recent history (newest-first windows)."""
    model_config = ConfigDict(frozen=True)

    date: str
    opponent_abbreviation: str
    minutes_played: int = Field(..., ge=0)
    points: int = Field(..., ge=0)
    rebounds: int = Field(..., ge=0)
    assists: int = Field(..., ge=0)
    was_imputed: bool = False


class ThresholdSet(BaseModel):
    """Candidate lines for one stat, highest first."""
    model_config = ConfigDict(frozen=True)

    stat: str
    thresholds: Tuple[int, ...]

    @field_validator("thresholds")
    @classmethod
    def _strictly_descending(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if not v:
            raise ValueError("threshold ladder cannot be empty")
        if any(a <= b for a, b in zip(v, v[1:])):
            raise ValueError(f"thresholds must be strictly descending, got {v}")
        return v


class ThresholdConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    window_size: int = Field(15, ge=1)
    qualifying_count: int = Field(14, ge=1)
    points: ThresholdSet
    rebounds: ThresholdSet
    assists: ThresholdSet

    @model_validator(mode="after")
    def _count_fits_window(self) -> "ThresholdConfig":
        if self.qualifying_count > self.window_size:
            raise ValueError(
                f"qualifying_count {self.qualifying_count} exceeds window_size {self.window_size}"
            )
        return self

    def ladders(self) -> List[ThresholdSet]:
        return [self.points, self.rebounds, self.assists]


class ImputationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    games: List[GameRecord]
    imputable: bool


class PredictionRecord(BaseModel):
    """Threshold picks for one (player, match); None means no line qualified."""
    model_config = ConfigDict(frozen=True)

    player_id: int
    match_id: int
    points_threshold: Optional[int] = None
    rebounds_threshold: Optional[int] = None
    assists_threshold: Optional[int] = None
    games_analyzed: int
