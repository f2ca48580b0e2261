"""Poll controller that tracks one generation from start to stop.

State machine over ``IDLE -> POLLING -> STOPPED``. ``start()`` posts the
generation and hands the new ``PollSession`` a single ``asyncio.Task``
that alternates between waiting and querying status. Because the whole
loop lives in that one task, a session can never have two wakeups
outstanding and two status queries for the same session never overlap.

Cancellation:
    ``stop()`` is synchronous. It flags the session, cancels its task and
    reports ``CANCELLED`` before returning. A response that completes after
    the flag is set is discarded without touching the observed result.
    ``start()`` cancels any active session before creating a new one.

Failure handling:
    - ``ConnectionLostError`` stops the session immediately.
    - Any other failure is absorbed: the controller waits one interval and
      polls again until the attempt or time caps are reached.
    - Nothing raised by the client escapes a running session; every
      session resolves to exactly one ``SessionOutcome``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dockergen.api.client import validate_start_inputs
from dockergen.api.errors import ConnectionLostError
from dockergen.core.config import PollConfig
from dockergen.core.constants import CONNECTION_LOST_MESSAGE
from dockergen.core.exceptions import DockergenError
from dockergen.polling.outcome import (
    ControllerState,
    SessionOutcome,
    StatusUpdate,
    StopDecision,
    StopReason,
)
from dockergen.polling.rules import cap_stop, merge_observed, terminal_stop

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from dockergen.api.client import GenerationClient
    from dockergen.models.generation import GenerationJob, GenerationStatus
    from dockergen.polling.outcome import PollObserver

logger = logging.getLogger("dockergen.polling.controller")


@dataclass(slots=True)
class PollSession:
    """Ephemeral state of one polling run.

    Attributes:
        job: The generation being tracked.
        started_at: Clock reading when the session was created.
        attempt: Status checks issued so far; never reset.
        cancelled: Set once the session is stopped manually or preempted.
        latest: Snapshot from the most recent successful status query.
        observed: Merged result reported to the caller.
        outcome: Terminal outcome, set exactly once.
    """

    job: GenerationJob
    started_at: float
    attempt: int = 0
    cancelled: bool = False
    latest: GenerationStatus | None = None
    observed: GenerationStatus | None = None
    outcome: SessionOutcome | None = None
    _handle: asyncio.Task[None] | None = field(default=None, repr=False)
    _completion: asyncio.Future[SessionOutcome] | None = field(default=None, repr=False)

    @property
    def generation_id(self) -> str:
        return self.job.generation_id

    @property
    def has_pending_wakeup(self) -> bool:
        """Whether the session still owns a live scheduled task."""
        return self._handle is not None and not self._handle.done()

    def attach(self, handle: asyncio.Task[None]) -> None:
        """Take ownership of the session's scheduled task.

        Raises:
            RuntimeError: If a live task is already attached.
        """
        if self.has_pending_wakeup:
            msg = f"Session {self.generation_id} already has a scheduled wakeup"
            raise RuntimeError(msg)
        self._handle = handle

    def cancel(self) -> None:
        """Flag the session and cancel its scheduled task, if any."""
        self.cancelled = True
        if self._handle is not None and not self._handle.done():
            self._handle.cancel()
        self._handle = None

    def release(self) -> None:
        """Drop the task reference once the loop has finished."""
        self._handle = None


class PollController:
    """Drives generation status polling and reports to observers.

    Example usage::

        controller = PollController(client, PollConfig.from_env(), observers=[view])
        await controller.start(github_url, github_token)
        outcome = await controller.wait()

    Args:
        client: Request client used for start and status calls.
        config: Delays and caps; defaults to ``PollConfig()``.
        observers: Initial subscribers.
        clock: Monotonic clock in seconds.
        sleep: Coroutine used for waits between status checks.
    """

    def __init__(
        self,
        client: GenerationClient,
        config: PollConfig | None = None,
        *,
        observers: Iterable[PollObserver] = (),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._config = config or PollConfig()
        self._observers: list[PollObserver] = list(observers)
        self._clock = clock
        self._sleep = sleep
        self._state = ControllerState.IDLE
        self._session: PollSession | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def session(self) -> PollSession | None:
        """The current (or most recently stopped) session."""
        return self._session

    @property
    def observed(self) -> GenerationStatus | None:
        """Merged result of the current session."""
        return self._session.observed if self._session else None

    @property
    def outcome(self) -> SessionOutcome | None:
        """Terminal outcome of the current session, once stopped."""
        return self._session.outcome if self._session else None

    def subscribe(self, observer: PollObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: PollObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self, github_url: str, github_token: str) -> GenerationJob:
        """Start a generation and begin polling its status.

        Blank inputs raise ``ValidationError`` before anything else happens,
        so an active session keeps running. Otherwise any active session is
        cancelled first. Errors from the start call itself (HTTP, invalid
        id) propagate to the caller and leave the controller without a new
        session.

        Returns:
            The started ``GenerationJob``.
        """
        validate_start_inputs(github_url, github_token)
        self._preempt()
        job = await self._client.start_generation(github_url, github_token)
        # Another start() may have installed a session while we awaited.
        self._preempt()

        session = PollSession(job=job, started_at=self._clock())
        session._completion = asyncio.get_running_loop().create_future()
        self._session = session
        self._state = ControllerState.POLLING
        session.attach(
            asyncio.create_task(self._run(session), name=f"poll:{job.generation_id}")
        )
        logger.info(
            "Polling started | generation_id=%s | initial_delay=%.1fs | interval=%.1fs",
            job.generation_id,
            self._config.initial_delay_s,
            self._config.interval_s,
        )
        return job

    def stop(self) -> SessionOutcome | None:
        """Cancel the active session.

        Synchronous: when this returns, the session's task is cancelled,
        observers have received the ``CANCELLED`` outcome and no later
        response can alter the observed result.

        Returns:
            The ``CANCELLED`` outcome, or ``None`` if no session was active.
        """
        return self._cancel_active("Generation stopped by user")

    async def wait(self) -> SessionOutcome:
        """Wait for the current session to stop and return its outcome.

        Raises:
            RuntimeError: If no generation has been started.
        """
        session = self._session
        if session is None or session._completion is None:
            msg = "No generation has been started"
            raise RuntimeError(msg)
        return await asyncio.shield(session._completion)

    # ------------------------------------------------------------------
    # Polling loop
    # ------------------------------------------------------------------

    async def _run(self, session: PollSession) -> None:
        delay = self._config.initial_delay_s
        generation_id = session.generation_id

        while True:
            await self._sleep(delay)
            delay = self._config.interval_s
            if session.cancelled:
                return

            session.attempt += 1
            try:
                status = await self._client.fetch_status(generation_id)
            except ConnectionLostError as exc:
                if session.cancelled:
                    return
                logger.error(
                    "Connection lost, stopping polling | generation_id=%s | attempt=%d",
                    generation_id,
                    session.attempt,
                )
                self._finish(
                    session,
                    StopDecision(StopReason.CONNECTION_LOST, exc.message or CONNECTION_LOST_MESSAGE),
                )
                return
            except Exception as exc:
                if session.cancelled:
                    return
                self._log_poll_failure(session, exc)
                decision = cap_stop(session.attempt, self._elapsed(session), self._config)
                if decision is not None:
                    self._finish(session, decision)
                    return
                continue

            # Late response after stop(): discard without merging.
            if session.cancelled:
                logger.debug(
                    "Discarding late status response | generation_id=%s | attempt=%d",
                    generation_id,
                    session.attempt,
                )
                return

            self._merge(session, status)
            if session.cancelled:
                return

            decision = terminal_stop(status) or cap_stop(
                session.attempt, self._elapsed(session), self._config
            )
            if decision is not None:
                self._finish(session, decision)
                return

    def _merge(self, session: PollSession, status: GenerationStatus) -> None:
        session.latest = status
        session.observed, replaced = merge_observed(session.observed, status)

        logger.info(
            "Polling status | generation_id=%s | attempt=%d | status=%s | "
            "has_dockerfile=%s | has_error=%s | replaced=%s",
            session.generation_id,
            session.attempt,
            status.build_status.value,
            status.has_dockerfile,
            status.has_error_message,
            replaced,
        )

        update = StatusUpdate(
            generation_id=session.generation_id,
            attempt=session.attempt,
            latest=status,
            observed=session.observed,
            replaced=replaced,
        )
        for observer in list(self._observers):
            try:
                observer.on_status(update)
            except Exception:
                logger.exception("Observer on_status failed | observer=%r", observer)

    # ------------------------------------------------------------------
    # Stopping
    # ------------------------------------------------------------------

    def _preempt(self) -> None:
        self._cancel_active("Superseded by a new generation")

    def _cancel_active(self, message: str) -> SessionOutcome | None:
        session = self._session
        if session is None or session.outcome is not None:
            return None
        logger.info(
            "Cancelling polling | generation_id=%s | attempt=%d | reason=%s",
            session.generation_id,
            session.attempt,
            message,
        )
        session.cancel()
        return self._finish(session, StopDecision(StopReason.CANCELLED, message))

    def _finish(self, session: PollSession, decision: StopDecision) -> SessionOutcome:
        if session.outcome is not None:
            return session.outcome

        outcome = SessionOutcome(
            generation_id=session.generation_id,
            reason=decision.reason,
            message=decision.message,
            status=session.observed or session.latest,
            attempts=session.attempt,
            elapsed_s=self._elapsed(session),
        )
        session.outcome = outcome
        session.release()
        if session is self._session:
            self._state = ControllerState.STOPPED
        if session._completion is not None and not session._completion.done():
            session._completion.set_result(outcome)

        log = logger.warning if decision.reason is StopReason.CONNECTION_LOST else logger.info
        log(
            "Polling stopped | generation_id=%s | reason=%s | attempts=%d | elapsed=%.1fs | message=%s",
            outcome.generation_id,
            outcome.reason.value,
            outcome.attempts,
            outcome.elapsed_s,
            outcome.message,
        )

        for observer in list(self._observers):
            try:
                observer.on_stop(outcome)
            except Exception:
                logger.exception("Observer on_stop failed | observer=%r", observer)
        return outcome

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _elapsed(self, session: PollSession) -> float:
        return self._clock() - session.started_at

    def _log_poll_failure(self, session: PollSession, exc: Exception) -> None:
        if isinstance(exc, DockergenError):
            logger.warning(
                "Status check failed, will retry | generation_id=%s | attempt=%d | "
                "code=%s | error=%s",
                session.generation_id,
                session.attempt,
                exc.code,
                exc.message,
            )
        else:
            logger.exception(
                "Unexpected error polling status | generation_id=%s | attempt=%d",
                session.generation_id,
                session.attempt,
            )
