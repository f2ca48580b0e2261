"""Client and polling configuration loaded from environment variables.

All configuration values have defaults matching the backend's expected
usage (local backend on port 3001, 2-second polling). Environment
variables (optionally loaded from a ``.env`` file by the CLI) are the
source of truth.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range, so bad configuration is caught at startup rather
    than halfway through a polling session.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dockergen.core.constants import DEFAULT_API_BASE_URL
from dockergen.core.exceptions import DockergenError


class ConfigValidationError(DockergenError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Immutable request client configuration.

    Attributes:
        api_base_url: Base URL of the generation API, including the ``/api`` suffix.
        request_timeout_s: Per-call timeout in seconds for status checks.
        status_max_attempts: Transport-level attempts per ``fetch_status`` call.
        retry_base_delay_s: Backoff base; the delay after attempt *n* is ``base * n``.
        min_generation_id_length: Shortest generation id accepted from the server.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = 10.0
    status_max_attempts: int = 3
    retry_base_delay_s: float = 1.0
    min_generation_id_length: int = 20

    @property
    def health_url(self) -> str:
        """Liveness endpoint, served outside the ``/api`` prefix."""
        base = self.api_base_url.rstrip("/")
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return f"{base}/health"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load and validate client configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range.
            ValueError: If a numeric environment variable cannot be parsed.
        """
        config = cls(
            api_base_url=os.getenv("DOCKERGEN_API_URL", DEFAULT_API_BASE_URL),
            request_timeout_s=float(os.getenv("DOCKERGEN_REQUEST_TIMEOUT_S", "10")),
            status_max_attempts=int(os.getenv("DOCKERGEN_STATUS_MAX_ATTEMPTS", "3")),
            retry_base_delay_s=float(os.getenv("DOCKERGEN_RETRY_BASE_DELAY_S", "1")),
            min_generation_id_length=int(os.getenv("DOCKERGEN_MIN_GENERATION_ID_LENGTH", "20")),
        )
        _validate_client(config)
        return config


@dataclass(frozen=True, slots=True)
class PollConfig:
    """Immutable poll controller configuration.

    Attributes:
        initial_delay_s: Wait before the first status check.
        interval_s: Wait between subsequent status checks (and after a failed one).
        max_attempts: Status checks per session before giving up.
        soft_timeout_s: Session age after which polling stops regardless of stage.
        hard_timeout_s: Absolute session age limit.
    """

    initial_delay_s: float = 1.0
    interval_s: float = 2.0
    max_attempts: int = 150
    soft_timeout_s: float = 120.0
    hard_timeout_s: float = 300.0

    @classmethod
    def from_env(cls) -> PollConfig:
        """Load and validate polling configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range.
            ValueError: If a numeric environment variable cannot be parsed.
        """
        config = cls(
            initial_delay_s=float(os.getenv("DOCKERGEN_POLL_INITIAL_DELAY_S", "1")),
            interval_s=float(os.getenv("DOCKERGEN_POLL_INTERVAL_S", "2")),
            max_attempts=int(os.getenv("DOCKERGEN_POLL_MAX_ATTEMPTS", "150")),
            soft_timeout_s=float(os.getenv("DOCKERGEN_POLL_SOFT_TIMEOUT_S", "120")),
            hard_timeout_s=float(os.getenv("DOCKERGEN_POLL_HARD_TIMEOUT_S", "300")),
        )
        _validate_poll(config)
        return config


def _validate_client(config: ClientConfig) -> None:
    """Validate client configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.api_base_url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            "DOCKERGEN_API_URL",
            config.api_base_url,
            "must include an http:// or https:// scheme",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "DOCKERGEN_REQUEST_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.status_max_attempts < 1:
        raise ConfigValidationError(
            "DOCKERGEN_STATUS_MAX_ATTEMPTS",
            config.status_max_attempts,
            "must be >= 1",
        )

    if config.retry_base_delay_s < 0:
        raise ConfigValidationError(
            "DOCKERGEN_RETRY_BASE_DELAY_S",
            config.retry_base_delay_s,
            "must be >= 0 (seconds)",
        )

    if config.min_generation_id_length < 1:
        raise ConfigValidationError(
            "DOCKERGEN_MIN_GENERATION_ID_LENGTH",
            config.min_generation_id_length,
            "must be >= 1",
        )


def _validate_poll(config: PollConfig) -> None:
    """Validate polling configuration ranges.  Raises ``ConfigValidationError``."""
    if config.initial_delay_s < 0:
        raise ConfigValidationError(
            "DOCKERGEN_POLL_INITIAL_DELAY_S",
            config.initial_delay_s,
            "must be >= 0 (seconds)",
        )

    if config.interval_s < 0:
        raise ConfigValidationError(
            "DOCKERGEN_POLL_INTERVAL_S",
            config.interval_s,
            "must be >= 0 (seconds)",
        )

    if config.max_attempts < 1:
        raise ConfigValidationError(
            "DOCKERGEN_POLL_MAX_ATTEMPTS",
            config.max_attempts,
            "must be >= 1",
        )

    if config.soft_timeout_s <= 0:
        raise ConfigValidationError(
            "DOCKERGEN_POLL_SOFT_TIMEOUT_S",
            config.soft_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.hard_timeout_s < config.soft_timeout_s:
        raise ConfigValidationError(
            "DOCKERGEN_POLL_HARD_TIMEOUT_S",
            config.hard_timeout_s,
            f"must be >= DOCKERGEN_POLL_SOFT_TIMEOUT_S ({config.soft_timeout_s})",
        )
