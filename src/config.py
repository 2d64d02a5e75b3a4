"""
Application configuration.

Defaults live here as module constants; a handful can be overridden through
environment variables. Bad override values are logged and ignored so a typo
in the environment never stops the app from starting.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent

DEFAULT_DB_PATH = ROOT_DIR / "vision_tracker.db"
DEFAULT_LOG_FILE = "vision_tracker.log"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_REQUEST_TIMEOUT_S = 30.0

# The year everything counts down to
DEFAULT_HORIZON = datetime(2026, 12, 31, 23, 59, 59)

# Timer intervals (milliseconds)
SCAN_DELAY_MS = 5_000
COUNTDOWN_INTERVAL_MS = 60_000
TOAST_DURATION_MS = 7_000


@dataclass
class AppConfig:
    db_path: Path = DEFAULT_DB_PATH
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    horizon: datetime = DEFAULT_HORIZON
    scan_delay_ms: int = SCAN_DELAY_MS
    countdown_interval_ms: int = COUNTDOWN_INTERVAL_MS
    toast_duration_ms: int = TOAST_DURATION_MS
    log_file: str = DEFAULT_LOG_FILE

    @property
    def offline(self) -> bool:
        """True when no API key is configured; advisory calls use fallbacks."""
        return not self.api_key


def load_config(env: Optional[dict] = None) -> AppConfig:
    """Build the configuration from defaults plus environment overrides."""
    env = os.environ if env is None else env
    cfg = AppConfig()

    if env.get("VISION_DB_PATH"):
        cfg.db_path = Path(env["VISION_DB_PATH"]).expanduser()
    cfg.api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY") or None
    if env.get("VISION_MODEL"):
        cfg.model = env["VISION_MODEL"]
    if env.get("VISION_API_URL"):
        cfg.api_base_url = env["VISION_API_URL"].rstrip("/")
    if env.get("VISION_LOG_FILE"):
        cfg.log_file = env["VISION_LOG_FILE"]

    raw_timeout = env.get("VISION_REQUEST_TIMEOUT")
    if raw_timeout:
        try:
            cfg.request_timeout_s = float(raw_timeout)
        except ValueError:
            logger.warning("Ignoring invalid VISION_REQUEST_TIMEOUT=%r", raw_timeout)

    raw_horizon = env.get("VISION_HORIZON")
    if raw_horizon:
        try:
            cfg.horizon = datetime.fromisoformat(raw_horizon)
        except ValueError:
            logger.warning("Ignoring invalid VISION_HORIZON=%r", raw_horizon)

    if cfg.offline:
        logger.info("No API key configured; AI features will use built-in text.")
    return cfg
