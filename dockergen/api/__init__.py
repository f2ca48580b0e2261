"""Generation API request client.

- GenerationClient: async ``httpx`` client for the generation backend
- Typed client errors consumed by the poll controller
"""

from dockergen.api.client import GenerationClient
from dockergen.api.errors import (
    ClientError,
    ConnectionLostError,
    InvalidResponseError,
    RequestFailedError,
    RequestTimeoutError,
)

__all__ = [
    "ClientError",
    "ConnectionLostError",
    "GenerationClient",
    "InvalidResponseError",
    "RequestFailedError",
    "RequestTimeoutError",
]
