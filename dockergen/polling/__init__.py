"""Generation status polling.

- PollController: state machine that starts a generation and polls it to completion
- PollSession: per-run state owned by the controller
- PollObserver, StatusUpdate, SessionOutcome: the controller's reporting contract
"""

from dockergen.polling.controller import PollController, PollSession
from dockergen.polling.outcome import (
    ControllerState,
    PollObserver,
    SessionOutcome,
    StatusUpdate,
    StopReason,
)

__all__ = [
    "ControllerState",
    "PollController",
    "PollObserver",
    "PollSession",
    "SessionOutcome",
    "StatusUpdate",
    "StopReason",
]
