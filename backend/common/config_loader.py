import os
from typing import List

from dotenv import load_dotenv

# Load the .env file into environment variables
load_dotenv()

def get_env(name: str, default: str | None = None) -> str:
    """Safely get an environment variable or raise an error if missing."""
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def parse_allowed_origins(raw: str | None = None) -> List[str]:
    origins_env = os.getenv("ALLOWED_ORIGINS", "") if raw is None else raw
    if not origins_env.strip():
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [origin.strip() for origin in origins_env.split(",") if origin.strip()]


# Database (PostgreSQL in production, SQLite for local runs)
DATABASE_URL = get_env("DATABASE_URL", "sqlite:///./nba_predictor.db")

# Schedule window for batch prediction runs
PREDICTION_HORIZON_HOURS = _int_env("PREDICTION_HORIZON_HOURS", 36)

# Stored predictions are only served while 0 < hours until tip-off <= this
PREDICTION_AVAILABILITY_HOURS = _int_env("PREDICTION_AVAILABILITY_HOURS", 24)

# Display timezone for match times in logs and API payloads
TZ = os.getenv("TZ", "Asia/Kolkata")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = parse_allowed_origins()
