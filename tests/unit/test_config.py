"""Tests for client and polling configuration.

Covers:
- Default values match the backend's expected local setup
- Loading from environment variables
- Type coercion (string env vars -> numeric fields)
- Fail-fast range validation
- Health URL derivation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from dockergen.core.config import ClientConfig, ConfigValidationError, PollConfig


class TestClientConfigDefaults:
    """Verify default client configuration values."""

    def test_default_base_url(self) -> None:
        cfg = ClientConfig()
        assert cfg.api_base_url == "http://localhost:3001/api"

    def test_default_retry_policy(self) -> None:
        cfg = ClientConfig()
        assert cfg.request_timeout_s == 10.0
        assert cfg.status_max_attempts == 3
        assert cfg.retry_base_delay_s == 1.0

    def test_default_min_generation_id_length(self) -> None:
        assert ClientConfig().min_generation_id_length == 20


class TestHealthUrl:
    """The liveness endpoint sits outside the ``/api`` prefix."""

    def test_strips_api_suffix(self) -> None:
        assert ClientConfig().health_url == "http://localhost:3001/health"

    def test_trailing_slash(self) -> None:
        cfg = ClientConfig(api_base_url="https://gen.example.com/api/")
        assert cfg.health_url == "https://gen.example.com/health"

    def test_api_host_name_is_untouched(self) -> None:
        cfg = ClientConfig(api_base_url="https://api.example.com/api")
        assert cfg.health_url == "https://api.example.com/health"

    def test_only_trailing_api_segment_removed(self) -> None:
        cfg = ClientConfig(api_base_url="https://gen.example.com/api/v2/api")
        assert cfg.health_url == "https://gen.example.com/api/v2/health"

    def test_base_without_api_suffix(self) -> None:
        cfg = ClientConfig(api_base_url="https://gen.example.com")
        assert cfg.health_url == "https://gen.example.com/health"


class TestPollConfigDefaults:
    """Verify default polling configuration values."""

    def test_delays(self) -> None:
        cfg = PollConfig()
        assert cfg.initial_delay_s == 1.0
        assert cfg.interval_s == 2.0

    def test_caps(self) -> None:
        cfg = PollConfig()
        assert cfg.max_attempts == 150
        assert cfg.soft_timeout_s == 120.0
        assert cfg.hard_timeout_s == 300.0


class TestConfigFromEnv:
    """Verify loading from environment variables."""

    def test_client_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "DOCKERGEN_API_URL": "https://gen.example.com/api",
            "DOCKERGEN_REQUEST_TIMEOUT_S": "5",
            "DOCKERGEN_STATUS_MAX_ATTEMPTS": "4",
            "DOCKERGEN_RETRY_BASE_DELAY_S": "0.5",
            "DOCKERGEN_MIN_GENERATION_ID_LENGTH": "24",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = ClientConfig.from_env()

        assert cfg.api_base_url == "https://gen.example.com/api"
        assert cfg.request_timeout_s == 5.0
        assert cfg.status_max_attempts == 4
        assert cfg.retry_base_delay_s == 0.5
        assert cfg.min_generation_id_length == 24

    def test_poll_loads_from_environment(self) -> None:
        env = {
            "DOCKERGEN_POLL_INITIAL_DELAY_S": "0",
            "DOCKERGEN_POLL_INTERVAL_S": "5",
            "DOCKERGEN_POLL_MAX_ATTEMPTS": "20",
            "DOCKERGEN_POLL_SOFT_TIMEOUT_S": "60",
            "DOCKERGEN_POLL_HARD_TIMEOUT_S": "90",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = PollConfig.from_env()

        assert cfg == PollConfig(
            initial_delay_s=0.0,
            interval_s=5.0,
            max_attempts=20,
            soft_timeout_s=60.0,
            hard_timeout_s=90.0,
        )

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert ClientConfig.from_env() == ClientConfig()
            assert PollConfig.from_env() == PollConfig()

    def test_non_numeric_value_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"DOCKERGEN_POLL_MAX_ATTEMPTS": "lots"}, clear=False),
            pytest.raises(ValueError),
        ):
            PollConfig.from_env()


class TestConfigValidation:
    """Fail-fast range validation."""

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("DOCKERGEN_API_URL", "localhost:3001/api"),
            ("DOCKERGEN_REQUEST_TIMEOUT_S", "0"),
            ("DOCKERGEN_STATUS_MAX_ATTEMPTS", "0"),
            ("DOCKERGEN_RETRY_BASE_DELAY_S", "-1"),
            ("DOCKERGEN_MIN_GENERATION_ID_LENGTH", "0"),
        ],
    )
    def test_client_rejects_out_of_range(self, key: str, value: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=False),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            ClientConfig.from_env()
        assert exc_info.value.key == key

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("DOCKERGEN_POLL_INITIAL_DELAY_S", "-1"),
            ("DOCKERGEN_POLL_INTERVAL_S", "-0.5"),
            ("DOCKERGEN_POLL_MAX_ATTEMPTS", "0"),
            ("DOCKERGEN_POLL_SOFT_TIMEOUT_S", "0"),
        ],
    )
    def test_poll_rejects_out_of_range(self, key: str, value: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=False),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            PollConfig.from_env()
        assert exc_info.value.key == key

    def test_hard_timeout_below_soft_timeout(self) -> None:
        env = {"DOCKERGEN_POLL_SOFT_TIMEOUT_S": "200", "DOCKERGEN_POLL_HARD_TIMEOUT_S": "100"}
        with (
            patch.dict(os.environ, env, clear=False),
            pytest.raises(ConfigValidationError, match="DOCKERGEN_POLL_HARD_TIMEOUT_S"),
        ):
            PollConfig.from_env()

    def test_error_carries_structured_fields(self) -> None:
        err = ConfigValidationError("DOCKERGEN_POLL_INTERVAL_S", -1.0, "must be >= 0")
        assert err.value == -1.0
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert "DOCKERGEN_POLL_INTERVAL_S=-1.0" in err.message

    def test_config_is_frozen(self) -> None:
        cfg = PollConfig()
        with pytest.raises(AttributeError):
            cfg.interval_s = 5.0  # type: ignore[misc]
