"""Generation API request client.

Thin ``httpx.AsyncClient`` wrapper around the generation backend. Every
method performs exactly one logical API operation and converts transport
and HTTP failures into the typed errors in ``dockergen.api.errors``.

Retry policy:
    - ``start_generation`` and ``push_artifact`` are never retried; a
      duplicate start or push must not be issued silently.
    - ``fetch_status`` is idempotent and is retried on transport-level
      failures only, with a linear-growth backoff of
      ``retry_base_delay_s * attempt``. HTTP error responses are final
      for the call.

The repository token is sent in the start request body and is never
logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from dockergen.api.errors import (
    ConnectionLostError,
    InvalidResponseError,
    RequestFailedError,
    RequestTimeoutError,
)
from dockergen.core.config import ClientConfig
from dockergen.core.constants import (
    CONNECTION_LOST_MESSAGE,
    DEFAULT_HTTP_TIMEOUT_S,
    GENERATE_PATH,
    HISTORY_FAILED_MESSAGE,
    HISTORY_PATH,
    PUSH_FAILED_MESSAGE,
    PUSH_PATH,
    START_FAILED_MESSAGE,
    STATUS_FAILED_MESSAGE,
    STATUS_PATH_TEMPLATE,
)
from dockergen.core.exceptions import ValidationError
from dockergen.models.generation import (
    GenerationJob,
    GenerationStatus,
    HistoryPage,
    ModelValidationError,
    PushResult,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

logger = logging.getLogger("dockergen.api.client")

_MAX_HISTORY_LIMIT = 100


class GenerationClient:
    """Async client for the Dockerfile generation API.

    Example usage::

        async with GenerationClient(ClientConfig.from_env()) as client:
            job = await client.start_generation(url, token)
            status = await client.fetch_status(job.generation_id)

    Args:
        config: Endpoint, timeout and retry settings.
        transport: Optional ``httpx`` transport (``httpx.MockTransport`` in tests).
        sleep: Coroutine used for backoff waits.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or ClientConfig()
        self._sleep = sleep
        self._http = httpx.AsyncClient(
            base_url=self._config.api_base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=DEFAULT_HTTP_TIMEOUT_S,
            transport=transport,
        )
        logger.debug("GenerationClient initialised | base_url=%s", self._config.api_base_url)

    @property
    def config(self) -> ClientConfig:
        """Return the client configuration (read-only)."""
        return self._config

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> GenerationClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # start
    # ------------------------------------------------------------------

    async def start_generation(self, github_url: str, github_token: str) -> GenerationJob:
        """Ask the backend to start generating a Dockerfile for a repository.

        Args:
            github_url: Repository URL.
            github_token: Personal access token with read access to the repository.

        Returns:
            The started ``GenerationJob``.

        Raises:
            ValidationError: If either input is blank (no request is sent).
            RequestFailedError: On a non-success HTTP status.
            InvalidResponseError: If the generation id is missing or too short.
            ConnectionLostError: If the backend is unreachable.
            RequestTimeoutError: If the request timed out.
        """
        operation = "start_generation"
        github_url, github_token = validate_start_inputs(github_url, github_token)

        logger.info("start_generation | github_url=%s", github_url)
        try:
            response = await self._http.post(
                GENERATE_PATH,
                json={"githubUrl": github_url, "githubToken": github_token},
            )
        except httpx.TransportError as exc:
            raise _classify_transport_error(operation, exc) from exc

        _raise_for_status(operation, response, START_FAILED_MESSAGE)
        body = _json_body(operation, response)

        raw_id = body.get("generationId")
        generation_id = str(raw_id) if raw_id is not None else ""
        if len(generation_id) < self._config.min_generation_id_length:
            logger.error(
                "Invalid generation id received | length=%d | min_length=%d",
                len(generation_id),
                self._config.min_generation_id_length,
            )
            msg = "Invalid generation ID received from server"
            raise InvalidResponseError(operation, msg)

        job = GenerationJob(
            generation_id=generation_id,
            github_url=github_url,
            github_token=github_token,
            message=str(body.get("message") or ""),
        )
        logger.info(
            "start_generation accepted | generation_id=%s | message=%s",
            job.generation_id,
            job.message,
        )
        return job

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    async def fetch_status(self, generation_id: str) -> GenerationStatus:
        """Fetch the current status snapshot of a generation.

        Transport failures (connection errors, timeouts) are retried up to
        ``status_max_attempts`` times; HTTP error statuses are not.

        Args:
            generation_id: Identifier from ``start_generation``.

        Returns:
            A new ``GenerationStatus`` snapshot.

        Raises:
            ValidationError: If *generation_id* is blank.
            RequestFailedError: On a non-success HTTP status.
            InvalidResponseError: If the body does not match the contract.
            ConnectionLostError: If the backend stayed unreachable on every attempt.
            RequestTimeoutError: If the last attempt timed out.
        """
        operation = "fetch_status"
        if not generation_id or not generation_id.strip():
            raise ValidationError("generation_id is required", stage=operation)

        path = STATUS_PATH_TEMPLATE.format(generation_id=generation_id)
        response = await self._get_with_retry(operation, path, generation_id)

        _raise_for_status(operation, response, STATUS_FAILED_MESSAGE, generation_id)
        body = _json_body(operation, response, generation_id)

        generation = body.get("generation")
        if not isinstance(generation, dict):
            msg = "Status response is missing the generation object"
            raise InvalidResponseError(operation, msg, correlation_id=generation_id)

        try:
            status = GenerationStatus.from_payload(generation, generation_id=generation_id)
        except ModelValidationError as exc:
            raise InvalidResponseError(
                operation, exc.message, correlation_id=generation_id
            ) from exc

        logger.debug(
            "fetch_status | generation_id=%s | status=%s | has_dockerfile=%s | has_error=%s",
            generation_id,
            status.build_status.value,
            status.has_dockerfile,
            status.has_error_message,
        )
        return status

    async def _get_with_retry(
        self, operation: str, path: str, generation_id: str
    ) -> httpx.Response:
        """GET *path*, retrying transport failures with linear-growth backoff.

        ``request_timeout_s`` bounds each whole attempt (connect through the
        last body byte); ``httpx`` timeouts alone only bound each I/O step.
        """
        max_attempts = self._config.status_max_attempts
        timeout_s = self._config.request_timeout_s
        attempt = 1

        while True:
            try:
                async with asyncio.timeout(timeout_s):
                    return await self._http.get(path, timeout=timeout_s)
            except (httpx.TransportError, TimeoutError) as exc:
                logger.warning(
                    "%s transport failure | generation_id=%s | attempt=%d/%d | error=%s",
                    operation,
                    generation_id,
                    attempt,
                    max_attempts,
                    exc.__class__.__name__,
                )
                if attempt >= max_attempts:
                    raise _classify_transport_error(operation, exc, generation_id) from exc
            await self._sleep(self._config.retry_base_delay_s * attempt)
            attempt += 1

    # ------------------------------------------------------------------
    # push
    # ------------------------------------------------------------------

    async def push_artifact(
        self, generation_id: str, commit_message: str | None = None
    ) -> PushResult:
        """Commit the generated Dockerfile to the source repository.

        Never retried: a repeated push could create a duplicate commit.

        Raises:
            ValidationError: If *generation_id* is blank.
            RequestFailedError: On a non-success HTTP status or transport failure.
            ConnectionLostError: If the backend is unreachable.
        """
        operation = "push_artifact"
        if not generation_id or not generation_id.strip():
            raise ValidationError("generation_id is required", stage=operation)

        payload: dict[str, str] = {"generationId": generation_id}
        if commit_message:
            payload["commitMessage"] = commit_message

        logger.info("push_artifact | generation_id=%s", generation_id)
        try:
            response = await self._http.post(PUSH_PATH, json=payload)
        except httpx.TransportError as exc:
            raise _classify_transport_error(operation, exc, generation_id) from exc

        _raise_for_status(operation, response, PUSH_FAILED_MESSAGE, generation_id)
        result = PushResult.from_payload(generation_id, _json_body(operation, response, generation_id))
        logger.info(
            "push_artifact completed | generation_id=%s | success=%s",
            generation_id,
            result.success,
        )
        return result

    # ------------------------------------------------------------------
    # history / health
    # ------------------------------------------------------------------

    async def get_history(self, page: int = 1, limit: int = 10) -> HistoryPage:
        """Fetch one page of past generations.

        Raises:
            ValidationError: If *page* < 1 or *limit* is outside 1..100.
            RequestFailedError: On a non-success HTTP status.
            InvalidResponseError: If the body does not match the contract.
        """
        operation = "get_history"
        if page < 1:
            raise ValidationError(f"page must be >= 1, got {page}", stage=operation)
        if not 1 <= limit <= _MAX_HISTORY_LIMIT:
            msg = f"limit must be between 1 and {_MAX_HISTORY_LIMIT}, got {limit}"
            raise ValidationError(msg, stage=operation)

        try:
            response = await self._http.get(HISTORY_PATH, params={"page": page, "limit": limit})
        except httpx.TransportError as exc:
            raise _classify_transport_error(operation, exc) from exc

        _raise_for_status(operation, response, HISTORY_FAILED_MESSAGE)
        try:
            return HistoryPage.from_payload(
                _json_body(operation, response), page=page, limit=limit
            )
        except ModelValidationError as exc:
            raise InvalidResponseError(operation, exc.message) from exc

    async def check_health(self) -> bool:
        """Return whether the backend's liveness endpoint answers 2xx.

        Never raises; failures are logged and reported as ``False``.
        """
        try:
            response = await self._http.get(self._config.health_url)
        except httpx.HTTPError as exc:
            logger.error("Health check failed | url=%s | error=%s", self._config.health_url, exc)
            return False
        return response.is_success


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def validate_start_inputs(github_url: str, github_token: str) -> tuple[str, str]:
    """Return the stripped repository URL and token.

    Raises:
        ValidationError: If either value is blank.
    """
    github_url = (github_url or "").strip()
    github_token = (github_token or "").strip()
    if not github_url or not github_token:
        msg = "Please provide both GitHub URL and Personal Access Token"
        raise ValidationError(msg, stage="start_generation")
    return github_url, github_token


def _classify_transport_error(
    operation: str,
    exc: httpx.TransportError | TimeoutError,
    generation_id: str = "",
) -> ConnectionLostError | RequestTimeoutError | RequestFailedError:
    """Map a transport exception onto the client error taxonomy.

    ``httpx.ConnectTimeout`` is a timeout, not a lost connection: the
    backend may simply be slow to accept. ``TimeoutError`` comes from the
    whole-call deadline.
    """
    if isinstance(exc, httpx.TimeoutException | TimeoutError):
        msg = f"Request timed out: {exc.__class__.__name__}"
        return RequestTimeoutError(operation, msg, correlation_id=generation_id)
    if isinstance(exc, httpx.NetworkError):
        logger.error(
            "Backend unreachable | operation=%s | generation_id=%s | error=%s",
            operation,
            generation_id,
            exc,
        )
        return ConnectionLostError(operation, CONNECTION_LOST_MESSAGE, correlation_id=generation_id)
    return RequestFailedError(
        operation,
        f"Request failed: {exc}",
        retryable=True,
        correlation_id=generation_id,
    )


def _raise_for_status(
    operation: str,
    response: httpx.Response,
    fallback: str,
    generation_id: str = "",
) -> None:
    """Raise ``RequestFailedError`` carrying the server's ``error`` message on non-2xx."""
    if response.is_success:
        return

    message = fallback
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        message = body["error"]

    logger.error(
        "%s rejected | generation_id=%s | status=%d | error=%s",
        operation,
        generation_id,
        response.status_code,
        message,
    )
    raise RequestFailedError(
        operation,
        message,
        status_code=response.status_code,
        correlation_id=generation_id,
    )


def _json_body(operation: str, response: httpx.Response, generation_id: str = "") -> dict[str, Any]:
    """Decode a 2xx JSON object body or raise ``InvalidResponseError``."""
    try:
        body = response.json()
    except ValueError as exc:
        msg = "Response body is not valid JSON"
        raise InvalidResponseError(operation, msg, correlation_id=generation_id) from exc
    if not isinstance(body, dict):
        msg = f"Expected a JSON object, got {type(body).__name__}"
        raise InvalidResponseError(operation, msg, correlation_id=generation_id)
    return body
