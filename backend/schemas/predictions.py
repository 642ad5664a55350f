from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from agents.prediction_agent.models import PredictionRecord


class MatchInfo(BaseModel):
    id: int
    home_team_id: int
    away_team_id: int
    game_time: Optional[datetime] = None
    status: str = "scheduled"
    home_team: Optional[str] = None   # abbreviation
    away_team: Optional[str] = None


class RosterPlayer(BaseModel):
    id: int
    first_name: str = ""
    last_name: str = ""
    team: Optional[str] = None
    status: str = "active"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class MatchRoster(BaseModel):
    """A match plus the union of both rosters, read in one transaction."""
    match: MatchInfo
    players: List[RosterPlayer] = Field(default_factory=list)


class PlayerSkip(BaseModel):
    player_id: int
    reason: str
    games_available: Optional[int] = None


class PlayerFailure(BaseModel):
    player_id: int
    stage: str        # "status", "window", "derive" or "persist"
    error: str


class MatchPredictionResult(BaseModel):
    match_id: int
    status: str       # "ok", "partial" or "no_players"
    config_version: str
    predictions: List[PredictionRecord] = Field(default_factory=list)
    skipped: List[PlayerSkip] = Field(default_factory=list)
    failures: List[PlayerFailure] = Field(default_factory=list)


class StoredPrediction(BaseModel):
    """Row shape returned by the read API."""
    player_id: int
    player_name: str
    team: Optional[str] = None
    points: Optional[int] = None
    rebounds: Optional[int] = None
    assists: Optional[int] = None
    player_status: str = "active"
    games_analyzed: int
    updated_at: Optional[datetime] = None


class MatchRunInfo(BaseModel):
    """Marker left by every completed match run, even one that stored no rows."""
    match_id: int
    config_version: str
    status: str
    ran_at: Optional[datetime] = None


class ScheduleRunResult(BaseModel):
    matches_processed: int = 0
    predictions_generated: int = 0
    errors: List[str] = Field(default_factory=list)
