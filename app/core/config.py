"""Service configuration loaded from the environment."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PROGRESSIVE_DELAYS_MS = [0, 1000, 3000, 5000, 10000]


class AppConfig(BaseModel):
    login_max_attempts: int = 5
    login_lockout_seconds: int = 15 * 60
    login_captcha_threshold: int = 3
    login_progressive_delays_ms: list[int] = Field(
        default_factory=lambda: list(DEFAULT_PROGRESSIVE_DELAYS_MS), min_length=1
    )
    login_stale_after_seconds: int = 60 * 60
    cleanup_interval_seconds: int = 10 * 60
    session_inactivity_timeout_seconds: int = 30 * 60
    log_level: str = "INFO"
    seed_demo_data: bool = False


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default


def _delays_env(name: str) -> list[int]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return list(DEFAULT_PROGRESSIVE_DELAYS_MS)
    try:
        delays = [int(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        logger.warning(f"Invalid delay table for {name}: {raw!r}, using default")
        return list(DEFAULT_PROGRESSIVE_DELAYS_MS)
    return delays or list(DEFAULT_PROGRESSIVE_DELAYS_MS)


def load_config() -> AppConfig:
    return AppConfig(
        login_max_attempts=_int_env("LOGIN_MAX_ATTEMPTS", 5),
        login_lockout_seconds=_int_env("LOGIN_LOCKOUT_SECONDS", 15 * 60),
        login_captcha_threshold=_int_env("LOGIN_CAPTCHA_THRESHOLD", 3),
        login_progressive_delays_ms=_delays_env("LOGIN_PROGRESSIVE_DELAYS_MS"),
        login_stale_after_seconds=_int_env("LOGIN_STALE_AFTER_SECONDS", 60 * 60),
        cleanup_interval_seconds=_int_env("CLEANUP_INTERVAL_SECONDS", 10 * 60),
        session_inactivity_timeout_seconds=_int_env(
            "SESSION_INACTIVITY_TIMEOUT_SECONDS", 30 * 60
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        seed_demo_data=os.getenv("SEED_DEMO_DATA", "false").lower() == "true",
    )


def configure_logging(config: AppConfig) -> None:
    """Apply the configured level to the root logger."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
