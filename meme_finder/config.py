"""Configuration loader for meme-finder.

Loads YAML config files from config/ and environment overrides from .env.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

WORKSPACE = Path(__file__).resolve().parent.parent
CONFIG_DIR = WORKSPACE / "config"


class TrackerConfig(BaseModel):
    """Tunables for the prediction tracker (config/tracker.yaml)."""

    # Prediction store
    cooldown_hours: float = 6.0
    max_predictions: int = 500

    # Outcome scheduling
    check_horizons_hours: list[float] = Field(default_factory=lambda: [1, 6, 24, 48, 168])
    horizon_tolerance_hours: float = 0.5
    min_hours_between_checks: float = 1.0
    tracking_window_hours: float = 168.0
    evaluation_hours: float = 24.0
    batch_size: int = 5
    fetch_delay_seconds: float = 0.5
    check_interval_seconds: float = 30 * 60

    # Weight analysis
    min_evaluated_predictions: int = 10
    min_signal_occurrences: int = 5
    adjustment_rate: float = 0.1
    min_weight: float = 0.5
    max_weight: float = 2.0


def load_tracker_config_dict() -> dict[str, Any]:
    """Load config/tracker.yaml."""
    path = CONFIG_DIR / "tracker.yaml"
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text()) or {}


def load_tracker_config() -> TrackerConfig:
    """Load tracker tunables, falling back to defaults for missing keys."""
    return TrackerConfig(**load_tracker_config_dict().get("tracker", {}))


def state_dir() -> Path:
    """Directory holding the persisted JSON blobs."""
    return Path(os.environ.get("MEME_FINDER_STATE_DIR", str(WORKSPACE / "state")))


def reddit_user_agent() -> str:
    return os.environ.get("REDDIT_USER_AGENT", "MemeFinderBot/1.0")
