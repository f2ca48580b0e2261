"""Domain models for the generation API."""

from dockergen.models.generation import (
    BuildStatus,
    GenerationJob,
    GenerationStatus,
    HistoryPage,
    ModelValidationError,
    PushResult,
)

__all__ = [
    "BuildStatus",
    "GenerationJob",
    "GenerationStatus",
    "HistoryPage",
    "ModelValidationError",
    "PushResult",
]
