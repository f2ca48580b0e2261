"""Stop-condition and merge rules for the poll controller.

Pure functions over snapshots and counters, kept separate from the
scheduling loop so each rule can be tested in isolation.

Stop conditions, checked after every status query:

1. Dockerfile present (authoritative even while the stage is ``building``).
2. Stage ``success``.
3. Stage ``error`` (with the server's message, or a generic one).
4. Attempt counter at ``max_attempts``.
5. Session older than ``hard_timeout_s`` or ``soft_timeout_s``.

Lost connections and manual cancellation are handled by the controller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dockergen.models.generation import BuildStatus
from dockergen.polling.outcome import StopDecision, StopReason

if TYPE_CHECKING:
    from dockergen.core.config import PollConfig
    from dockergen.models.generation import GenerationStatus

GENERIC_FAILURE_MESSAGE = "Dockerfile generation failed"


def should_replace_observed(status: GenerationStatus) -> bool:
    """Whether *status* replaces the observed result wholesale.

    Snapshots carrying neither a Dockerfile nor a tech stack, and not in a
    terminal stage, are progress pings only; they must not wipe out a
    previously populated result.
    """
    return status.has_dockerfile or status.has_tech_stack or status.is_terminal


def merge_observed(
    observed: GenerationStatus | None,
    status: GenerationStatus,
) -> tuple[GenerationStatus | None, bool]:
    """Return the new observed result and whether it was replaced."""
    if should_replace_observed(status):
        return status, True
    return observed, False


def terminal_stop(status: GenerationStatus) -> StopDecision | None:
    """Return the stop decision implied by a snapshot, or ``None`` to keep polling."""
    if status.has_dockerfile:
        return StopDecision(StopReason.COMPLETED, "Dockerfile generation completed")
    if status.build_status is BuildStatus.SUCCESS:
        return StopDecision(StopReason.COMPLETED, "Generation completed")
    if status.build_status is BuildStatus.ERROR:
        message = status.error if status.has_error_message else GENERIC_FAILURE_MESSAGE
        return StopDecision(StopReason.FAILED, str(message))
    return None


def cap_stop(attempt: int, elapsed_s: float, config: PollConfig) -> StopDecision | None:
    """Return the stop decision for exhausted session caps, or ``None``."""
    if attempt >= config.max_attempts:
        return StopDecision(
            StopReason.ATTEMPT_LIMIT,
            f"Polling stopped after {attempt} status checks",
        )
    if elapsed_s > config.hard_timeout_s:
        return StopDecision(
            StopReason.SESSION_TIMEOUT,
            f"Maximum polling time reached ({config.hard_timeout_s:.0f}s)",
        )
    if elapsed_s > config.soft_timeout_s:
        return StopDecision(
            StopReason.SESSION_TIMEOUT,
            f"Polling force-stopped after {config.soft_timeout_s:.0f}s",
        )
    return None
