"""Tests for environment configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from app.core.config import AppConfig, load_config


def test_defaults():
    with patch.dict(os.environ, {}, clear=True):
        config = load_config()
    assert config.login_max_attempts == 5
    assert config.login_lockout_seconds == 900
    assert config.login_progressive_delays_ms == [0, 1000, 3000, 5000, 10000]
    assert config.cleanup_interval_seconds == 600
    assert config.session_inactivity_timeout_seconds == 1800
    assert config.seed_demo_data is False


def test_overrides():
    env = {
        "LOGIN_MAX_ATTEMPTS": "8",
        "LOGIN_PROGRESSIVE_DELAYS_MS": "0, 500, 2000",
        "LOG_LEVEL": "debug",
    }
    with patch.dict(os.environ, env, clear=True):
        config = load_config()
    assert config.login_max_attempts == 8
    assert config.login_progressive_delays_ms == [0, 500, 2000]
    assert config.log_level == "DEBUG"


def test_invalid_values_fall_back():
    env = {"LOGIN_LOCKOUT_SECONDS": "soon", "LOGIN_PROGRESSIVE_DELAYS_MS": "a,b"}
    with patch.dict(os.environ, env, clear=True):
        config = load_config()
    assert config.login_lockout_seconds == 900
    assert config.login_progressive_delays_ms == [0, 1000, 3000, 5000, 10000]


def test_empty_delay_table_rejected():
    with pytest.raises(ValidationError):
        AppConfig(login_progressive_delays_ms=[])


def test_blank_delay_env_uses_default():
    with patch.dict(os.environ, {"LOGIN_PROGRESSIVE_DELAYS_MS": " , "}, clear=True):
        config = load_config()
    assert config.login_progressive_delays_ms == [0, 1000, 3000, 5000, 10000]
