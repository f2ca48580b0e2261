"""Shared pytest fixtures for the dockergen test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from dockergen.models.generation import BuildStatus, GenerationJob, GenerationStatus

GENERATION_ID = "65f1c0ffee1234567890abcd"
GITHUB_URL = "https://github.com/acme/shop-api"
GITHUB_TOKEN = "ghp_testtoken0123456789"

NODE_DOCKERFILE = 'FROM node:18-alpine\nWORKDIR /app\nCOPY . .\nCMD ["npm", "start"]\n'


# ---------------------------------------------------------------------------
# Payload / snapshot builders
# ---------------------------------------------------------------------------


def status_payload(
    build_status: str = "pending",
    *,
    dockerfile: str = "",
    tech_stack: list[str] | None = None,
    error: str | None = None,
    generation_id: str = GENERATION_ID,
) -> dict[str, Any]:
    """Return a ``generation`` object as served by the status endpoint."""
    payload: dict[str, Any] = {
        "id": generation_id,
        "githubUrl": GITHUB_URL,
        "techStack": tech_stack or [],
        "dockerfile": dockerfile,
        "buildStatus": build_status,
        "createdAt": "2026-10-19T08:00:00.000Z",
        "updatedAt": "2026-10-19T08:00:05.000Z",
    }
    if error is not None:
        payload["error"] = error
    return payload


def make_status(
    build_status: BuildStatus = BuildStatus.PENDING,
    *,
    dockerfile: str = "",
    tech_stack: tuple[str, ...] = (),
    error: str | None = None,
    generation_id: str = GENERATION_ID,
) -> GenerationStatus:
    """Build a ``GenerationStatus`` snapshot directly."""
    return GenerationStatus(
        generation_id=generation_id,
        build_status=build_status,
        github_url=GITHUB_URL,
        dockerfile=dockerfile,
        tech_stack=tech_stack,
        error=error,
    )


# ---------------------------------------------------------------------------
# Fakes for controller tests
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly.

    With ``advance=False`` time stands still, so only attempt caps apply.
    """

    def __init__(self, start: float = 1_000.0, *, advance: bool = True) -> None:
        self.now = start
        self.advance = advance
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        if self.advance:
            self.now += delay
        await asyncio.sleep(0)


class FakeGenerationClient:
    """Scripted stand-in for ``GenerationClient``.

    ``responses`` are served in order for ``fetch_status``; the last one
    repeats once the script is exhausted. Exceptions are raised, async
    callables are awaited.
    """

    def __init__(
        self,
        responses: list[Any] | None = None,
        *,
        job_ids: list[str] | None = None,
        start_error: BaseException | None = None,
    ) -> None:
        self.responses = list(responses or [make_status()])
        self.job_ids = list(job_ids or [GENERATION_ID])
        self.start_error = start_error
        self.start_calls: list[tuple[str, str]] = []
        self.status_calls: list[str] = []

    async def start_generation(self, github_url: str, github_token: str) -> GenerationJob:
        self.start_calls.append((github_url, github_token))
        if self.start_error is not None:
            raise self.start_error
        index = min(len(self.start_calls), len(self.job_ids)) - 1
        return GenerationJob(
            generation_id=self.job_ids[index],
            github_url=github_url,
            github_token=github_token,
            message="Dockerfile generation started",
        )

    async def fetch_status(self, generation_id: str) -> GenerationStatus:
        self.status_calls.append(generation_id)
        index = min(len(self.status_calls), len(self.responses)) - 1
        item = self.responses[index]
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return await item()
        return item


class RecordingObserver:
    """Collects controller events, optionally capturing controller state."""

    def __init__(self, controller: Any = None) -> None:
        self.controller = controller
        self.updates: list[Any] = []
        self.outcomes: list[Any] = []
        self.states_seen: list[Any] = []

    def on_status(self, update: Any) -> None:
        self.updates.append(update)
        if self.controller is not None:
            self.states_seen.append(self.controller.state)

    def on_stop(self, outcome: Any) -> None:
        self.outcomes.append(outcome)


@pytest.fixture()
def clock() -> FakeClock:
    """Clock that advances by each requested sleep."""
    return FakeClock()


@pytest.fixture()
def frozen_clock() -> FakeClock:
    """Clock that never advances (time caps never trigger)."""
    return FakeClock(advance=False)
