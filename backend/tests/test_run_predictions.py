from datetime import datetime, timedelta, timezone

import pytest

from jobs.run_predictions import build_parser, main


@pytest.fixture
def db_url(db):
    # reuse the fixture's file so the CLI sees the seeded rows
    return str(db.engine.url)


def test_parser_requires_one_mode():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--schedule", "--missing-only"])


def test_single_match_run(db, db_url, seed_player, capsys):
    lal = db.insert_team("LAL")
    bos = db.insert_team("BOS")
    seed_player(lal, bos)
    match = db.insert_match(lal, bos, datetime(2025, 2, 1, 3, 30))

    assert main(["--match-id", str(match), "--database-url", db_url]) == 0
    assert "1 predictions" in capsys.readouterr().out
    assert db.count_predictions_for_match(match) == 1


def test_unknown_match_exit_code(db_url):
    assert main(["--match-id", "404", "--database-url", db_url]) == 1


def test_schedule_run(db, db_url, seed_player, capsys):
    lal = db.insert_team("LAL")
    bos = db.insert_team("BOS")
    seed_player(lal, bos)
    match = db.insert_match(lal, bos, datetime.now(timezone.utc) + timedelta(hours=4))

    assert main(["--schedule", "--database-url", db_url]) == 0
    assert "Matches processed: 1" in capsys.readouterr().out
    assert db.count_predictions_for_match(match) == 1
