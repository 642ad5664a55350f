import pytest

from common.config_loader import (
    DATABASE_URL,
    PREDICTION_AVAILABILITY_HOURS,
    PREDICTION_HORIZON_HOURS,
    get_env,
    parse_allowed_origins,
)


def test_get_env_uses_default(monkeypatch):
    monkeypatch.delenv("NBA_PREDICTOR_MISSING", raising=False)
    assert get_env("NBA_PREDICTOR_MISSING", "fallback") == "fallback"


def test_get_env_raises_when_required_value_missing(monkeypatch):
    monkeypatch.delenv("NBA_PREDICTOR_MISSING", raising=False)
    with pytest.raises(RuntimeError, match="NBA_PREDICTOR_MISSING"):
        get_env("NBA_PREDICTOR_MISSING")


def test_parse_allowed_origins():
    assert parse_allowed_origins(" http://a.test , ,http://b.test") == ["http://a.test", "http://b.test"]
    assert "http://localhost:3000" in parse_allowed_origins("")


def test_defaults_are_sane():
    assert PREDICTION_HORIZON_HOURS > 0
    assert PREDICTION_AVAILABILITY_HOURS > 0
    assert DATABASE_URL
