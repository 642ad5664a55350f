from __future__ import annotations

import os
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest


def _ensure_backend_on_syspath() -> None:
    """
    Ensure the backend/ directory is importable as a top-level package root.

    This allows test modules to import:
      - agents.*
      - common.*
      - routes.*
      - services.*
      - schemas.*
    when running `pytest` from the repo root.
    """
    this_file = Path(__file__).resolve()
    backend_dir = this_file.parents[1]  # .../backend
    repo_root = backend_dir.parent

    b = str(backend_dir)
    r = str(repo_root)

    # Put backend/ first so "common" resolves to backend/common, etc.
    if b not in sys.path:
        sys.path.insert(0, b)

    if r not in sys.path:
        sys.path.append(r)


def _live_enabled(config: pytest.Config) -> bool:
    """
    Live tests are allowed when either:
      - RUN_LIVE_TESTS=1 is set, OR
      - pytest is run with --live
    """
    env_flag = os.getenv("RUN_LIVE_TESTS", "").strip()
    if env_flag == "1":
        return True
    return bool(getattr(config.option, "live", False))


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Enable tests marked with @pytest.mark.live (requires DATABASE_URL for a real PostgreSQL).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "live: tests that hit a real PostgreSQL database")


def pytest_runtest_setup(item: pytest.Item) -> None:
    """
    Auto-skip any test marked live unless live mode is enabled.
    """
    if item.get_closest_marker("live") is None:
        return

    if not _live_enabled(item.config):
        pytest.skip("Skipped live test (set RUN_LIVE_TESTS=1 or run `pytest --live` to enable).")


_ensure_backend_on_syspath()

from agents.prediction_agent.models import GameRecord  # noqa: E402
from common.database import PredictorDatabase, build_engine  # noqa: E402


@pytest.fixture
def make_window() -> Callable[..., List[GameRecord]]:
    """
    Build a newest-first window from per-game stat lists.
    Minutes default to 30 for every game.
    """
    def _make(
        points: Sequence[int],
        rebounds: Optional[Sequence[int]] = None,
        assists: Optional[Sequence[int]] = None,
        minutes: Optional[Sequence[int]] = None,
    ) -> List[GameRecord]:
        n = len(points)
        rebounds = rebounds if rebounds is not None else [0] * n
        assists = assists if assists is not None else [0] * n
        minutes = minutes if minutes is not None else [30] * n
        start = date(2025, 1, 31)
        return [
            GameRecord(
                date=(start - timedelta(days=2 * i)).isoformat(),
                opponent_abbreviation="BOS",
                minutes_played=minutes[i],
                points=points[i],
                rebounds=rebounds[i],
                assists=assists[i],
            )
            for i in range(n)
        ]

    return _make


@pytest.fixture
def db(tmp_path: Path) -> PredictorDatabase:
    engine = build_engine(f"sqlite:///{tmp_path / 'predictor.db'}")
    yield PredictorDatabase(engine)
    engine.dispose()


@pytest.fixture
def seed_player(db: PredictorDatabase) -> Callable[..., int]:
    """Insert a player with `n_games` logged games; returns the player id."""
    def _seed(
        team_id: int,
        opponent_id: int,
        n_games: int = 15,
        points: int = 20,
        rebounds: int = 8,
        assists: int = 5,
        first_name: str = "Test",
        last_name: str = "Player",
    ) -> int:
        player_id = db.insert_player(first_name, last_name, team_id)
        start = date(2025, 1, 31)
        for i in range(n_games):
            db.insert_game_stat(
                player_id=player_id,
                game_date=start - timedelta(days=2 * i),
                opponent_team_id=opponent_id,
                minutes_played=32,
                points=points,
                rebounds=rebounds,
                assists=assists,
            )
        return player_id

    return _seed
