"""
Tests for configuration loading.
"""

from unittest.mock import patch

import pytest
import structlog
from pydantic import ValidationError

import resumable_polling.config
from resumable_polling.config import (
    ExecutionLimits,
    PollingConfig,
    Settings,
    get_settings,
)
from resumable_polling.logging_setup import setup_logging


def test_polling_config_defaults():
    config = PollingConfig()

    assert config.max_attempts == 200
    assert config.lifetime_seconds == 600
    assert config.interval_seconds == 3
    assert config.supports_inline_release is True


def test_polling_config_rejects_non_positive_attempts():
    with pytest.raises(ValidationError):
        PollingConfig(max_attempts=0)


def test_execution_limits_default_to_unlimited():
    limits = ExecutionLimits()

    assert limits.max_execution_seconds == 0
    assert limits.memory_limit == -1


@pytest.mark.parametrize("memory_limit", ["12X", "1.5G", "", -5])
def test_execution_limits_reject_invalid_memory_limit(memory_limit):
    with pytest.raises(ValidationError):
        ExecutionLimits(memory_limit=memory_limit)


def test_execution_limits_accept_memory_strings():
    limits = ExecutionLimits(max_execution_seconds=30, memory_limit="128m")

    assert limits.memory_limit == "128m"


def test_settings_from_environment():
    """Test that settings are read from POLLING_ variables."""
    resumable_polling.config._settings_instance = None

    with patch.dict(
        "os.environ",
        {
            "POLLING_MAX_ATTEMPTS": "5",
            "POLLING_INTERVAL_SECONDS": "1",
            "POLLING_SUPPORTS_INLINE_RELEASE": "false",
            "POLLING_MAX_EXECUTION_SECONDS": "30",
            "POLLING_MEMORY_LIMIT": "256M",
            "POLLING_STATE_BACKEND": "Redis",
            "POLLING_LOG_LEVEL": "debug",
        },
        clear=True,
    ):
        settings = get_settings()

    resumable_polling.config._settings_instance = None

    assert settings.state_backend == "redis"
    assert settings.log_level == "DEBUG"

    config = settings.polling_config
    assert config.max_attempts == 5
    assert config.interval_seconds == 1
    assert config.lifetime_seconds == 600
    assert config.supports_inline_release is False

    limits = settings.execution_limits
    assert limits.max_execution_seconds == 30
    assert limits.memory_limit == "256M"


def test_settings_defaults():
    with patch.dict("os.environ", {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.state_backend == "memory"
    assert settings.state_ttl_seconds is None
    assert settings.log_format == "json"
    assert settings.execution_limits.memory_limit == "-1"


@pytest.mark.parametrize(
    "field,value",
    [("log_level", "LOUD"), ("log_format", "xml"), ("state_backend", "dynamo")],
)
def test_settings_validation(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_settings_reject_invalid_memory_limit():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, memory_limit="lots")


def test_settings_reject_state_ttl_shorter_than_lifetime():
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, state_ttl_seconds=30, lifetime_seconds=60)

    assert "state_ttl_seconds" in str(exc_info.value)


@pytest.mark.parametrize("ttl", [600, 599])
def test_settings_reject_state_ttl_not_beyond_default_lifetime(ttl):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, state_ttl_seconds=ttl)


def test_settings_accept_state_ttl_beyond_lifetime():
    settings = Settings(_env_file=None, state_ttl_seconds=601)

    assert settings.state_ttl_seconds == 601


@pytest.mark.parametrize(
    "log_format,renderer",
    [
        ("json", structlog.processors.JSONRenderer),
        ("console", structlog.dev.ConsoleRenderer),
    ],
)
def test_setup_logging_renderer(log_format, renderer):
    settings = Settings(_env_file=None, log_format=log_format)

    with patch("resumable_polling.logging_setup.structlog.configure") as configure:
        setup_logging(settings)

    processors = configure.call_args.kwargs["processors"]
    assert isinstance(processors[-1], renderer)


def test_setup_logging_merges_bound_context():
    settings = Settings(_env_file=None)

    with patch("resumable_polling.logging_setup.structlog.configure") as configure:
        setup_logging(settings)

    processors = configure.call_args.kwargs["processors"]
    assert processors[0] is structlog.contextvars.merge_contextvars
