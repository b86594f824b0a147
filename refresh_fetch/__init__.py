"""
Request wrappers for credential-protected HTTP APIs.

Provides:
- RefreshGate: Single-flight credential refresh around a request function
- ResponseNormalizer: Uniform JSON results and typed errors for bad statuses
- HttpxTransport: Default request function backed by httpx
"""

from refresh_fetch.errors import (
    FetchError,
    TransportError,
    RequestTimeoutError,
    ResponseError,
    JSONParseError,
    RefreshError,
)
from refresh_fetch.gate import (
    RefreshGate,
    GateStats,
    configure_refresh_fetch,
    refresh_on_status,
)
from refresh_fetch.normalizer import (
    ResponseNormalizer,
    JSONResponse,
    is_json_content_type,
)
from refresh_fetch.settings import Settings
from refresh_fetch.transport import HttpxTransport

__all__ = [
    # Errors
    "FetchError",
    "TransportError",
    "RequestTimeoutError",
    "ResponseError",
    "JSONParseError",
    "RefreshError",
    # Gate
    "RefreshGate",
    "GateStats",
    "configure_refresh_fetch",
    "refresh_on_status",
    # Normalizer
    "ResponseNormalizer",
    "JSONResponse",
    "is_json_content_type",
    # Transport
    "HttpxTransport",
    "Settings",
]
