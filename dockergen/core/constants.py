"""Shared client constants (API paths and fallback messages).

Centralises API paths, wire field names and fallback error messages used
by the request client and the CLI.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

DEFAULT_API_BASE_URL: str = "http://localhost:3001/api"
"""Backend base URL used when ``DOCKERGEN_API_URL`` is unset."""

DEFAULT_HTTP_TIMEOUT_S: float = 30.0
"""Timeout for calls other than status checks (start, push, history, health)."""

GENERATE_PATH: str = "/generation/generate"
STATUS_PATH_TEMPLATE: str = "/generation/status/{generation_id}"
HISTORY_PATH: str = "/generation/history"
PUSH_PATH: str = "/generation/push-dockerfile"

# ---------------------------------------------------------------------------
# Fallback messages when an error response carries no ``error`` field
# ---------------------------------------------------------------------------

START_FAILED_MESSAGE: str = "Failed to start generation"
STATUS_FAILED_MESSAGE: str = "Failed to fetch generation status"
HISTORY_FAILED_MESSAGE: str = "Failed to fetch generation history"
PUSH_FAILED_MESSAGE: str = "Failed to push Dockerfile to repository"

CONNECTION_LOST_MESSAGE: str = "Connection to server lost. Please try again."
"""Actionable message shown when the backend becomes unreachable mid-session."""
