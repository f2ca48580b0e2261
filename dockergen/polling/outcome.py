"""Poll controller states, stop reasons and observer contract.

The controller reports to its caller exclusively through these types:
a ``StatusUpdate`` after every successful status query and exactly one
``SessionOutcome`` when the session stops. Presentation code (the CLI,
a web front end) subscribes by implementing ``PollObserver`` and never
touches controller internals.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Protocol

if TYPE_CHECKING:
    from dockergen.models.generation import GenerationStatus


class ControllerState(enum.Enum):
    """Lifecycle of the poll controller."""

    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class StopReason(enum.Enum):
    """Why a polling session stopped.

    Values:
        COMPLETED:       A Dockerfile was returned or the job reported success.
        FAILED:          The job reported an error.
        ATTEMPT_LIMIT:   The maximum number of status checks was reached.
        SESSION_TIMEOUT: The session exceeded its soft or hard time cap.
        CONNECTION_LOST: The backend became unreachable.
        CANCELLED:       Stopped by the caller or superseded by a new generation.
    """

    COMPLETED = "completed"
    FAILED = "failed"
    ATTEMPT_LIMIT = "attempt_limit"
    SESSION_TIMEOUT = "session_timeout"
    CONNECTION_LOST = "connection_lost"
    CANCELLED = "cancelled"


class StopDecision(NamedTuple):
    """A stop condition that matched, with the message reported for it."""

    reason: StopReason
    message: str


@dataclass(frozen=True, slots=True)
class StatusUpdate:
    """Emitted after every successful status query.

    Attributes:
        generation_id: The generation being polled.
        attempt: 1-based status check number within the session.
        latest: The snapshot returned by this query.
        observed: The merged result after this query (may be ``None`` while
            nothing has been populated yet).
        replaced: Whether this query replaced the observed result.
    """

    generation_id: str
    attempt: int
    latest: GenerationStatus
    observed: GenerationStatus | None
    replaced: bool


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Terminal result of one polling session.

    Attributes:
        generation_id: The generation that was polled.
        reason: Why polling stopped.
        message: Human-readable description of the stop.
        status: Latest observed result, falling back to the latest raw
            snapshot; ``None`` if no status query ever succeeded.
        attempts: Number of status checks performed.
        elapsed_s: Seconds between session start and stop.
    """

    generation_id: str
    reason: StopReason
    message: str
    status: GenerationStatus | None
    attempts: int
    elapsed_s: float

    @property
    def succeeded(self) -> bool:
        return self.reason is StopReason.COMPLETED

    @property
    def is_error(self) -> bool:
        """Whether the stop needs user action beyond trying again later."""
        return self.reason is StopReason.CONNECTION_LOST

    def to_dict(self) -> dict[str, object]:
        return {
            "generation_id": self.generation_id,
            "reason": self.reason.value,
            "message": self.message,
            "status": self.status.to_dict() if self.status else None,
            "attempts": self.attempts,
            "elapsed_s": round(self.elapsed_s, 3),
        }


class PollObserver(Protocol):
    """Subscriber for poll controller events."""

    def on_status(self, update: StatusUpdate) -> None:
        """Called after every successful status query."""

    def on_stop(self, outcome: SessionOutcome) -> None:
        """Called exactly once when a session stops."""
