"""Typed models for the generation API.

Defines the data structures exchanged between the request client, the
poll controller and callers:

- ``BuildStatus``: Lifecycle stage reported by the backend
- ``GenerationJob``: A started generation, identified by an opaque id
- ``GenerationStatus``: One immutable status snapshot from a status query
- ``PushResult``: Outcome of pushing a generated Dockerfile to the repository
- ``HistoryPage``: One page of past generations

Design notes:
- All models are frozen dataclasses for immutability; each poll yields a
  new snapshot rather than mutating the previous one.
- Stages are a ``BuildStatus`` enum.
- The repository token is held only on ``GenerationJob``, hidden from
  ``repr`` and never included in ``to_dict()``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dockergen.core.exceptions import ContractError
from dockergen.utils.helpers import coerce_str_list, parse_timestamp

if TYPE_CHECKING:
    from datetime import datetime


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ContractError):
    """Raised when a model is constructed from invalid field values.

    Most often this means the backend returned a payload that does not
    match the API contract.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ContractError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class BuildStatus(enum.Enum):
    """Lifecycle stage of a generation job.

    The backend does not guarantee monotonic transitions; a job may flip
    from ``BUILDING`` back to ``PENDING``.

    Values:
        PENDING:  Job accepted, not yet started.
        BUILDING: Repository analysis / Dockerfile generation in progress.
        SUCCESS:  Dockerfile generated.
        ERROR:    Generation failed.
    """

    PENDING = "pending"
    BUILDING = "building"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """Whether the backend will report no further progress."""
        return self in (BuildStatus.SUCCESS, BuildStatus.ERROR)


# ---------------------------------------------------------------------------
# Job models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationJob:
    """A generation started on the backend.

    Attributes:
        generation_id: Opaque server-assigned identifier. Never parsed.
        github_url: Repository the Dockerfile is generated for.
        github_token: Personal access token sent with the start request.
        message: Acknowledgement message returned by the server.
    """

    generation_id: str
    github_url: str
    github_token: str = field(default="", repr=False, compare=False)
    message: str = ""

    def __post_init__(self) -> None:
        _check_non_empty("GenerationJob", "generation_id", self.generation_id)
        _check_non_empty("GenerationJob", "github_url", self.github_url)

    def to_dict(self) -> dict[str, str]:
        """Serialisable view of the job, without the token."""
        return {
            "generation_id": self.generation_id,
            "github_url": self.github_url,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class GenerationStatus:
    """Snapshot of server-observed job state from one status query.

    Attributes:
        generation_id: The generation being observed.
        build_status: Lifecycle stage.
        github_url: Repository URL as recorded by the backend.
        dockerfile: Generated Dockerfile text (empty until available).
        tech_stack: Detected technologies, in the order the backend lists them.
        error: Error description when the job failed.
        image_id: Built image identifier, if the backend built one.
        created_at: When the job was created.
        updated_at: When the job last changed.
    """

    generation_id: str
    build_status: BuildStatus
    github_url: str = ""
    dockerfile: str = ""
    tech_stack: tuple[str, ...] = ()
    error: str | None = None
    image_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        _check_non_empty("GenerationStatus", "generation_id", self.generation_id)

    @property
    def has_dockerfile(self) -> bool:
        """Whether the snapshot carries generated Dockerfile text."""
        return bool(self.dockerfile and self.dockerfile.strip())

    @property
    def has_tech_stack(self) -> bool:
        return bool(self.tech_stack)

    @property
    def has_error_message(self) -> bool:
        return bool(self.error and self.error.strip())

    @property
    def is_terminal(self) -> bool:
        return self.build_status.is_terminal

    @property
    def tech_stack_set(self) -> frozenset[str]:
        """Detected technologies for order-insensitive comparison."""
        return frozenset(self.tech_stack)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, generation_id: str = "") -> GenerationStatus:
        """Build a snapshot from a ``generation`` object of the status API.

        Args:
            payload: The ``generation`` object from the response body.
            generation_id: Fallback id when the payload omits ``id``.

        Raises:
            ModelValidationError: If ``buildStatus`` is missing or unknown,
                or no id is available.
        """
        raw_status = payload.get("buildStatus")
        try:
            build_status = BuildStatus(raw_status)
        except ValueError:
            raise ModelValidationError(
                "GenerationStatus",
                "build_status",
                raw_status,
                f"must be one of {[s.value for s in BuildStatus]}",
            ) from None

        error = payload.get("error")
        image_id = payload.get("imageId")
        return cls(
            generation_id=str(payload.get("id") or generation_id),
            build_status=build_status,
            github_url=str(payload.get("githubUrl") or ""),
            dockerfile=str(payload.get("dockerfile") or ""),
            tech_stack=coerce_str_list(payload.get("techStack")),
            error=str(error) if error else None,
            image_id=str(image_id) if image_id else None,
            created_at=parse_timestamp(payload.get("createdAt")),
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "generation_id": self.generation_id,
            "build_status": self.build_status.value,
            "github_url": self.github_url,
            "dockerfile": self.dockerfile,
            "tech_stack": list(self.tech_stack),
            "error": self.error,
            "image_id": self.image_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# ---------------------------------------------------------------------------
# Repository push and history
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PushResult:
    """Outcome of pushing a generated Dockerfile to the source repository.

    Attributes:
        generation_id: The generation whose Dockerfile was pushed.
        success: Whether the backend reported success.
        message: Human-readable message from the backend.
        payload: The full response body.
    """

    generation_id: str
    success: bool
    message: str = ""
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, generation_id: str, payload: dict[str, Any]) -> PushResult:
        return cls(
            generation_id=generation_id,
            success=bool(payload.get("success", True)),
            message=str(payload.get("message") or ""),
            payload=dict(payload),
        )


@dataclass(frozen=True, slots=True)
class HistoryPage:
    """One page of the generation history.

    Attributes:
        items: Generations on this page, newest first as returned.
        page: 1-based page number.
        limit: Page size requested.
        total: Total number of generations, when the backend reports it.
    """

    items: tuple[GenerationStatus, ...]
    page: int
    limit: int
    total: int | None = None

    def __post_init__(self) -> None:
        _check_min("HistoryPage", "page", self.page, 1)
        _check_min("HistoryPage", "limit", self.limit, 1)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, page: int, limit: int) -> HistoryPage:
        """Build a page from the history response body.

        Accepts both ``{generations, pagination: {...}}`` and the flat
        ``{data, page, limit, total}`` shapes.

        Raises:
            ModelValidationError: If no list of generations is present or an
                entry has an invalid build status.
        """
        raw_items = payload.get("generations")
        if raw_items is None:
            raw_items = payload.get("data")
        if not isinstance(raw_items, list):
            raise ModelValidationError(
                "HistoryPage", "items", raw_items, "response must contain a list of generations"
            )

        meta = payload.get("pagination")
        if not isinstance(meta, dict):
            meta = payload
        total = meta.get("total")

        return cls(
            items=tuple(
                GenerationStatus.from_payload(item) for item in raw_items if isinstance(item, dict)
            ),
            page=_coerce_int("HistoryPage", "page", meta.get("page"), page),
            limit=_coerce_int("HistoryPage", "limit", meta.get("limit"), limit),
            total=total if isinstance(total, int) and not isinstance(total, bool) else None,
        )


# ---------------------------------------------------------------------------
# Validation helpers (module-private)
# ---------------------------------------------------------------------------


def _check_min(model: str, field_name: str, value: float | int, lo: float | int) -> None:
    """Raise `ModelValidationError` if *value* is below *lo*."""
    if value < lo:
        raise ModelValidationError(model, field_name, value, f"must be >= {lo}")


def _coerce_int(model: str, field_name: str, value: object, default: int) -> int:
    """Return *value* as an int, *default* when falsy, else raise `ModelValidationError`."""
    if not value:
        return default
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise ModelValidationError(model, field_name, value, "must be an integer") from None


def _check_non_empty(model: str, field_name: str, value: str) -> None:
    """Raise `ModelValidationError` if *value* is empty or blank."""
    if not value or not value.strip():
        raise ModelValidationError(model, field_name, value, "must not be empty")
