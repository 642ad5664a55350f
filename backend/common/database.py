# backend/common/database.py
"""
Relational persistence for the predictor.

- Table definitions (teams, players, matches, player_game_stats, predictions,
  prediction_runs)
- Conflict-resolving upsert for predictions keyed on (player_id, match_id)
- Read helpers used by the orchestrator, the schedule jobs and the API

All datetimes are stored as naive UTC.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    exists,
    func,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from agents.prediction_agent.models import GameRecord, PredictionRecord
from schemas.predictions import MatchInfo, MatchRoster, MatchRunInfo, RosterPlayer, StoredPrediction

logger = logging.getLogger("predictor_db")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def default_now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def build_engine(url: str) -> Engine:
    connect_args: Dict[str, Any] = {}
    if url.startswith("sqlite"):
        # FastAPI may touch the connection from a worker thread
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class PredictorDatabase:
    """
    Encapsulates persistence for matches, rosters, game logs and predictions.

    Satisfies the GameWindowSource, RosterSource and PredictionStore protocols
    used by MatchPredictionOrchestrator.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.meta = MetaData()
        self._define_tables()
        self.meta.create_all(self.engine)

    def _define_tables(self) -> None:
        self.teams = Table(
            "teams",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("abbreviation", String(8), nullable=False, unique=True),
            Column("name", String(64)),
        )

        self.players = Table(
            "players",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("first_name", String(64), nullable=False),
            Column("last_name", String(64), nullable=False),
            Column("current_team_id", Integer, ForeignKey("teams.id")),
            Column("status", String(16), nullable=False, default="active"),
        )

        self.matches = Table(
            "matches",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("nba_game_id", String(32), unique=True),
            Column("home_team_id", Integer, ForeignKey("teams.id"), nullable=False),
            Column("away_team_id", Integer, ForeignKey("teams.id"), nullable=False),
            Column("game_time", DateTime),
            Column("status", String(16), nullable=False, default="scheduled"),
        )

        self.player_game_stats = Table(
            "player_game_stats",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("player_id", Integer, ForeignKey("players.id"), nullable=False),
            Column("game_date", Date, nullable=False),
            Column("opponent_team_id", Integer, ForeignKey("teams.id")),
            Column("minutes_played", Integer, nullable=False, default=0),
            Column("points", Integer, nullable=False, default=0),
            Column("rebounds", Integer, nullable=False, default=0),
            Column("assists", Integer, nullable=False, default=0),
            Column("is_imputed", Boolean, nullable=False, default=False),
            UniqueConstraint("player_id", "game_date", name="uq_player_game_date"),
        )

        self.predictions = Table(
            "predictions",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("player_id", Integer, ForeignKey("players.id"), nullable=False),
            Column("match_id", Integer, ForeignKey("matches.id"), nullable=False),
            Column("points_threshold", Integer),
            Column("rebounds_threshold", Integer),
            Column("assists_threshold", Integer),
            Column("games_analyzed", Integer, nullable=False),
            Column("created_at", DateTime, default=default_now_utc),
            Column("updated_at", DateTime, default=default_now_utc),
            UniqueConstraint("player_id", "match_id", name="uq_prediction_player_match"),
        )

        self.prediction_runs = Table(
            "prediction_runs",
            self.meta,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("match_id", Integer, ForeignKey("matches.id"), nullable=False, unique=True),
            Column("config_version", String(32), nullable=False),
            Column("status", String(16), nullable=False),
            Column("ran_at", DateTime, default=default_now_utc),
        )

    # ------------------------------------------------------------------
    # Write helpers
    # ------------------------------------------------------------------

    def _insert(self, table: Table):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise RuntimeError(f"Upsert not supported for dialect: {dialect}")

    def upsert_prediction(self, record: PredictionRecord) -> None:
        """
        INSERT ... ON CONFLICT (player_id, match_id) DO UPDATE.
        Concurrent refreshes of the same match serialize on the unique key.
        """
        now = default_now_utc()
        stmt = self._insert(self.predictions).values(
            player_id=record.player_id,
            match_id=record.match_id,
            points_threshold=record.points_threshold,
            rebounds_threshold=record.rebounds_threshold,
            assists_threshold=record.assists_threshold,
            games_analyzed=record.games_analyzed,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["player_id", "match_id"],
            set_={
                "points_threshold": stmt.excluded.points_threshold,
                "rebounds_threshold": stmt.excluded.rebounds_threshold,
                "assists_threshold": stmt.excluded.assists_threshold,
                "games_analyzed": stmt.excluded.games_analyzed,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError:
            logger.exception(
                "Failed to upsert prediction player=%s match=%s", record.player_id, record.match_id
            )
            raise

    def record_match_run(self, match_id: int, status: str, config_version: str) -> None:
        """Upsert the per-match run marker, keyed on match_id."""
        stmt = self._insert(self.prediction_runs).values(
            match_id=match_id,
            config_version=config_version,
            status=status,
            ran_at=default_now_utc(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["match_id"],
            set_={
                "config_version": stmt.excluded.config_version,
                "status": stmt.excluded.status,
                "ran_at": stmt.excluded.ran_at,
            },
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError:
            logger.exception("Failed to record prediction run for match=%s", match_id)
            raise

    def insert_team(self, abbreviation: str, name: Optional[str] = None) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(self.teams.insert().values(abbreviation=abbreviation, name=name))
        return int(result.inserted_primary_key[0])

    def insert_player(self, first_name: str, last_name: str, team_id: Optional[int], status: str = "active") -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                self.players.insert().values(
                    first_name=first_name,
                    last_name=last_name,
                    current_team_id=team_id,
                    status=status,
                )
            )
        return int(result.inserted_primary_key[0])

    def insert_match(
        self,
        home_team_id: int,
        away_team_id: int,
        game_time: Optional[datetime] = None,
        status: str = "scheduled",
        nba_game_id: Optional[str] = None,
    ) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                self.matches.insert().values(
                    nba_game_id=nba_game_id,
                    home_team_id=home_team_id,
                    away_team_id=away_team_id,
                    game_time=to_utc_naive(game_time) if game_time else None,
                    status=status,
                )
            )
        return int(result.inserted_primary_key[0])

    def insert_game_stat(
        self,
        player_id: int,
        game_date: date,
        opponent_team_id: Optional[int],
        minutes_played: int,
        points: int,
        rebounds: int,
        assists: int,
    ) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                self.player_game_stats.insert().values(
                    player_id=player_id,
                    game_date=game_date,
                    opponent_team_id=opponent_team_id,
                    minutes_played=minutes_played,
                    points=points,
                    rebounds=rebounds,
                    assists=assists,
                )
            )

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def _match_query(self):
        ht = self.teams.alias("ht")
        at = self.teams.alias("at")
        m = self.matches
        return select(
            m.c.id,
            m.c.home_team_id,
            m.c.away_team_id,
            m.c.game_time,
            m.c.status,
            ht.c.abbreviation.label("home_team"),
            at.c.abbreviation.label("away_team"),
        ).select_from(
            m.outerjoin(ht, m.c.home_team_id == ht.c.id).outerjoin(at, m.c.away_team_id == at.c.id)
        )

    def get_match(self, match_id: int) -> Optional[MatchInfo]:
        with self.engine.connect() as conn:
            row = conn.execute(self._match_query().where(self.matches.c.id == match_id)).mappings().first()
        return MatchInfo(**row) if row else None

    def load_match_roster(self, match_id: int) -> Optional[MatchRoster]:
        """Match row and both rosters, read inside one transaction."""
        with self.engine.begin() as conn:
            row = conn.execute(self._match_query().where(self.matches.c.id == match_id)).mappings().first()
            if row is None:
                return None
            match = MatchInfo(**row)

            p, t = self.players, self.teams
            players = conn.execute(
                select(
                    p.c.id,
                    p.c.first_name,
                    p.c.last_name,
                    p.c.status,
                    t.c.abbreviation.label("team"),
                )
                .distinct()
                .select_from(p.join(t, p.c.current_team_id == t.c.id))
                .where(t.c.id.in_([match.home_team_id, match.away_team_id]))
                .order_by(p.c.id)
            ).mappings().all()

        return MatchRoster(match=match, players=[RosterPlayer(**r) for r in players])

    def fetch_recent_games(self, player_id: int, limit: int) -> List[GameRecord]:
        """Most recent `limit` team games for a player, newest first."""
        s, t = self.player_game_stats, self.teams
        stmt = (
            select(
                s.c.game_date,
                t.c.abbreviation.label("opponent"),
                s.c.minutes_played,
                s.c.points,
                s.c.rebounds,
                s.c.assists,
                s.c.is_imputed,
            )
            .select_from(s.outerjoin(t, s.c.opponent_team_id == t.c.id))
            .where(s.c.player_id == player_id)
            .order_by(s.c.game_date.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        return [
            GameRecord(
                date=r["game_date"].isoformat(),
                opponent_abbreviation=r["opponent"] or "",
                minutes_played=r["minutes_played"] or 0,
                points=r["points"] or 0,
                rebounds=r["rebounds"] or 0,
                assists=r["assists"] or 0,
                was_imputed=bool(r["is_imputed"]),
            )
            for r in rows
        ]

    def fetch_predictions_for_match(self, match_id: int) -> List[StoredPrediction]:
        pr, p, t = self.predictions, self.players, self.teams
        stmt = (
            select(
                pr.c.player_id,
                p.c.first_name,
                p.c.last_name,
                t.c.abbreviation.label("team"),
                pr.c.points_threshold,
                pr.c.rebounds_threshold,
                pr.c.assists_threshold,
                pr.c.games_analyzed,
                pr.c.updated_at,
                p.c.status,
            )
            .select_from(pr.join(p, pr.c.player_id == p.c.id).outerjoin(t, p.c.current_team_id == t.c.id))
            .where(pr.c.match_id == match_id)
            .order_by(t.c.abbreviation, p.c.last_name, p.c.first_name)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        return [
            StoredPrediction(
                player_id=r["player_id"],
                player_name=f"{r['first_name']} {r['last_name']}".strip(),
                team=r["team"],
                points=r["points_threshold"],
                rebounds=r["rebounds_threshold"],
                assists=r["assists_threshold"],
                player_status=r["status"] or "active",
                games_analyzed=r["games_analyzed"],
                updated_at=r["updated_at"],
            )
            for r in rows
        ]

    def count_predictions_for_match(self, match_id: int) -> int:
        stmt = select(func.count()).select_from(self.predictions).where(self.predictions.c.match_id == match_id)
        with self.engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())

    def get_match_run(self, match_id: int) -> Optional[MatchRunInfo]:
        r = self.prediction_runs
        stmt = select(r.c.match_id, r.c.config_version, r.c.status, r.c.ran_at).where(r.c.match_id == match_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return MatchRunInfo(**row) if row else None

    def find_upcoming_matches(
        self,
        now: datetime,
        horizon_hours: int,
        without_predictions: bool = False,
    ) -> List[MatchInfo]:
        """
        Scheduled matches with now < game_time <= now + horizon, earliest first.
        `without_predictions` keeps only matches that have never been run.
        """
        start = to_utc_naive(now)
        end = start + timedelta(hours=horizon_hours)
        m = self.matches
        stmt = self._match_query().where(
            m.c.status == "scheduled",
            m.c.game_time > start,
            m.c.game_time <= end,
        )
        if without_predictions:
            stmt = stmt.where(~exists().where(self.prediction_runs.c.match_id == m.c.id))
        stmt = stmt.order_by(m.c.game_time)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [MatchInfo(**r) for r in rows]
