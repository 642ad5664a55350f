# ==========================================================
# 🎯 Threshold ladders
# ----------------------------------------------------------
# Versioned rule set for prop derivation. Changing any value
# here changes prediction output: bump the version string and
# add a new constant instead of editing an existing one.
# ==========================================================

from agents.prediction_agent.models import ThresholdConfig, ThresholdSet

WINDOW_SIZE = 15
QUALIFYING_COUNT = 14

THRESHOLD_CONFIG_V1 = ThresholdConfig(
    version="v1-15g-14q",
    window_size=WINDOW_SIZE,
    qualifying_count=QUALIFYING_COUNT,
    points=ThresholdSet(stat="points", thresholds=(30, 25, 20, 15, 10)),
    rebounds=ThresholdSet(stat="rebounds", thresholds=(12, 10, 8, 6, 4)),
    assists=ThresholdSet(stat="assists", thresholds=(10, 8, 6, 4, 2)),
)

DEFAULT_THRESHOLD_CONFIG = THRESHOLD_CONFIG_V1
