"""Tests for the unified exception taxonomy.

Validates:
- DockergenError hierarchy and structured attributes
- Category classification (validation, transient, permanent, contract)
- ``to_error_dict()`` produces stable payload keys
- Retry semantics of the request client errors
"""

from __future__ import annotations

from typing import ClassVar

from dockergen.api.errors import (
    ClientError,
    ConnectionLostError,
    InvalidResponseError,
    RequestFailedError,
    RequestTimeoutError,
)
from dockergen.core.config import ConfigValidationError
from dockergen.core.exceptions import (
    ContractError,
    DockergenError,
    PermanentError,
    TransientError,
    ValidationError,
)
from dockergen.models.generation import ModelValidationError


class TestDockergenErrorBase:
    """DockergenError base class behavior."""

    def test_default_attributes(self) -> None:
        err = DockergenError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_custom_attributes(self) -> None:
        err = DockergenError(
            "fail",
            stage="fetch_status",
            code="REQUEST_FAILED",
            retryable=True,
            correlation_id="gen-1",
        )
        assert err.stage == "fetch_status"
        assert err.code == "REQUEST_FAILED"
        assert err.retryable is True
        assert err.correlation_id == "gen-1"

    def test_fallback_category_follows_retryable(self) -> None:
        assert DockergenError("x", retryable=True).category == "transient"
        assert DockergenError("x").category == "permanent"


class TestCategoryClasses:
    """Each category base sets its retry default."""

    def test_validation(self) -> None:
        err = ValidationError("bad input")
        assert err.category == "validation"
        assert err.retryable is False
        assert err.code == "VALIDATION_FAILED"

    def test_transient(self) -> None:
        err = TransientError("flaky")
        assert err.category == "transient"
        assert err.retryable is True

    def test_permanent(self) -> None:
        err = PermanentError("gone")
        assert err.category == "permanent"
        assert err.retryable is False

    def test_contract(self) -> None:
        err = ContractError("drift")
        assert err.category == "contract"
        assert err.retryable is False

    def test_retryable_can_be_overridden(self) -> None:
        assert TransientError("x", retryable=False).retryable is False


class TestToErrorDict:
    """Structured payload has stable keys."""

    EXPECTED_KEYS: ClassVar[set[str]] = {
        "category",
        "code",
        "stage",
        "message",
        "retryable",
        "correlation_id",
    }

    def test_keys(self) -> None:
        assert set(DockergenError("x").to_error_dict()) == self.EXPECTED_KEYS

    def test_client_error_payload(self) -> None:
        err = RequestFailedError(
            "push_artifact", "Repository is archived", status_code=403, correlation_id="gen-9"
        )
        assert err.to_error_dict() == {
            "category": "permanent",
            "code": "REQUEST_FAILED",
            "stage": "push_artifact",
            "message": "Repository is archived",
            "retryable": False,
            "correlation_id": "gen-9",
        }


class TestClientErrors:
    """Request client errors map onto the taxonomy."""

    def test_all_are_client_errors(self) -> None:
        for cls in (RequestFailedError, InvalidResponseError, ConnectionLostError, RequestTimeoutError):
            assert issubclass(cls, ClientError)
            assert issubclass(cls, DockergenError)

    def test_str_includes_operation(self) -> None:
        err = RequestFailedError("start_generation", "Invalid GitHub URL", status_code=400)
        assert str(err) == "[start_generation] Invalid GitHub URL"
        assert err.operation == "start_generation"
        assert err.status_code == 400

    def test_request_failed_retryable_flag(self) -> None:
        assert RequestFailedError("fetch_status", "x").retryable is False
        assert RequestFailedError("fetch_status", "x", retryable=True).retryable is True

    def test_request_failed_is_permanent(self) -> None:
        """HTTP error responses fall in the permanent category, whatever the retry flag."""
        assert issubclass(RequestFailedError, PermanentError)
        rejected = RequestFailedError("fetch_status", "Not found", status_code=404)
        assert rejected.category == "permanent"
        assert rejected.retryable is False
        transport = RequestFailedError("fetch_status", "Request failed: protocol", retryable=True)
        assert isinstance(transport, PermanentError)
        assert transport.retryable is True

    def test_invalid_response_is_contract(self) -> None:
        err = InvalidResponseError("start_generation", "Invalid generation ID received from server")
        assert err.category == "contract"
        assert err.retryable is False
        assert err.code == "INVALID_RESPONSE"

    def test_connection_lost_is_transient_but_final(self) -> None:
        err = ConnectionLostError("fetch_status", "Connection to server lost. Please try again.")
        assert err.category == "transient"
        assert err.retryable is False
        assert err.code == "CONNECTION_LOST"

    def test_timeout_is_retryable(self) -> None:
        err = RequestTimeoutError("fetch_status", "Request timed out: ReadTimeout")
        assert err.category == "transient"
        assert err.retryable is True
        assert err.code == "REQUEST_TIMEOUT"


class TestOtherDomainErrors:
    """Config and model errors are part of the hierarchy."""

    def test_config_validation_error(self) -> None:
        err = ConfigValidationError("DOCKERGEN_API_URL", "ftp://x", "bad scheme")
        assert isinstance(err, DockergenError)
        assert err.category == "permanent"

    def test_model_validation_error(self) -> None:
        err = ModelValidationError("GenerationStatus", "build_status", "queued", "unknown")
        assert isinstance(err, ValueError)
        assert isinstance(err, ContractError)
        assert err.category == "contract"
        assert err.code == "MODEL_VALIDATION_FAILED"
        assert err.message == "GenerationStatus.build_status='queued': unknown"
