# backend/main.py
from __future__ import annotations
import logging
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# -------------------------------------------------
# 🌍 Load environment variables on every reload
# -------------------------------------------------
load_dotenv()

from agents.prediction_agent.thresholds import DEFAULT_THRESHOLD_CONFIG  # noqa: E402
from common.config_loader import ALLOWED_ORIGINS, DATABASE_URL, LOG_LEVEL, TZ  # noqa: E402

# -------------------------------------------------
# 🧠 Logging setup
# -------------------------------------------------
logger = logging.getLogger("main")
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
if not logger.handlers:
    logger.addHandler(_handler)

logger.info("🔐 Environment variables loaded:")
logger.info(f"  DATABASE_URL: {DATABASE_URL.split('@')[-1]}")
logger.info(f"  TZ: {TZ}")
logger.info(f"  ALLOWED_ORIGINS: {ALLOWED_ORIGINS}")
logger.info(f"  THRESHOLD_CONFIG: {DEFAULT_THRESHOLD_CONFIG.version}")

# -------------------------------------------------
# ⚙️ FastAPI app setup
# -------------------------------------------------
app = FastAPI(
    title="NBA Predictor - Prop Threshold Backend",
    version="1.0.0",
    description="Deterministic player prop thresholds from each player's last 15 team games.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------
# 📂 Import route modules after app is initialized
# -------------------------------------------------
from routes import predictions  # noqa: E402

app.include_router(predictions.router)

# -------------------------------------------------
# 🏠 Root endpoint
# -------------------------------------------------
@app.get("/")
async def root():
    return {
        "message": "🏀 NBA Predictor Backend is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": "healthy",
        "version": "1.0.0",
        "endpoints": {
            "match_predictions": "/api/predictions/{match_id}",
            "generate_predictions": "/api/predictions/{match_id}/generate",
            "docs": "/docs"
        }
    }

# -------------------------------------------------
# 🧪 Health check endpoint
# -------------------------------------------------
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "database_backend": DATABASE_URL.split(":", 1)[0],
            "threshold_config": DEFAULT_THRESHOLD_CONFIG.version,
            "timezone": TZ
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=False)
