"""Unified exception taxonomy.

Provides a shared base exception hierarchy for the request client, the
poll controller and the domain models. Every domain exception inherits
from ``DockergenError`` and carries structured context fields that enable
consistent retry decisions and operator diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``: missing or malformed caller input, never retryable.
- ``TransientError``: temporary failures (network, timeout), retryable.
- ``PermanentError``: failure of a single call (HTTP error status), not retryable
  unless the raiser says otherwise.
- ``ContractError``: response payload drift from the backend API, never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and CLI output.
"""

from __future__ import annotations


class DockergenError(Exception):
    """Base exception for all client-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Operation where the error occurred
            (e.g. ``"start_generation"``, ``"fetch_status"``).
        code: Machine-readable error code (e.g. ``"REQUEST_FAILED"``).
        retryable: Whether the caller may safely repeat the operation.
        correlation_id: Generation identifier the error relates to, if any.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(DockergenError):
    """Caller input failed pre-flight validation. Never retryable."""

    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(DockergenError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(DockergenError):
    """Failure of a single call (e.g. an HTTP error status). Not retryable by default."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(DockergenError):
    """Backend response does not match the expected API contract. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
