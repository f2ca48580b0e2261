"""Request client exceptions.

Every failure of a call to the generation API is normalised into one of
these types so the poll controller can decide between retrying and
stopping without inspecting transport details.

- ``RequestFailedError``: the server answered with a non-success status,
  or the request failed in a way that is neither a lost connection nor a
  timeout.
- ``InvalidResponseError``: the server answered 2xx but the body is
  malformed (missing or too-short generation id, unknown build status).
- ``ConnectionLostError``: the backend is unreachable. Aborts polling.
- ``RequestTimeoutError``: the per-call deadline was exceeded.
"""

from __future__ import annotations

from dockergen.core.exceptions import (
    ContractError,
    DockergenError,
    PermanentError,
    TransientError,
)


class ClientError(DockergenError):
    """Base exception for request client errors.

    Attributes:
        operation: Client operation that failed (e.g. ``"fetch_status"``).
        message: Human-readable error description.
        retryable: Whether the caller may safely repeat the call.
    """

    default_stage = "client"
    default_code = "CLIENT_ERROR"

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.operation = operation
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=operation or self.default_stage,
            correlation_id=correlation_id,
        )

    def __str__(self) -> str:
        return f"[{self.operation}] {self.message}"


class RequestFailedError(ClientError, PermanentError):
    """Non-success HTTP status (message taken from the server's ``error`` field).

    Also raised with ``retryable=True`` for transport failures that are
    neither a lost connection nor a timeout.

    Attributes:
        status_code: HTTP status, or ``None`` when no response was received.
    """

    default_code = "REQUEST_FAILED"

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(
            operation, message, retryable=retryable, correlation_id=correlation_id
        )


class InvalidResponseError(ClientError, ContractError):
    """2xx response whose body does not satisfy the API contract."""

    default_code = "INVALID_RESPONSE"

    def __init__(self, operation: str, message: str, *, correlation_id: str = "") -> None:
        super().__init__(operation, message, retryable=False, correlation_id=correlation_id)


class ConnectionLostError(ClientError, TransientError):
    """The backend could not be reached (connection refused, DNS failure, reset).

    Transient in nature, but polling stops on it: the client has already
    retried at the transport layer, so continuing would only poll a dead
    backend.
    """

    default_code = "CONNECTION_LOST"

    def __init__(self, operation: str, message: str, *, correlation_id: str = "") -> None:
        super().__init__(operation, message, retryable=False, correlation_id=correlation_id)


class RequestTimeoutError(ClientError, TransientError):
    """The per-call deadline was exceeded."""

    default_code = "REQUEST_TIMEOUT"

    def __init__(self, operation: str, message: str, *, correlation_id: str = "") -> None:
        super().__init__(operation, message, retryable=True, correlation_id=correlation_id)
