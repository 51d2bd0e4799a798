"""Resilient fetch pipeline.

This module provides single-resource HTTP fetches with:
- Redirect following with loop and depth detection
- Byte-exact capture of the wire body
- A decompression cascade tolerant of wrong Content-Encoding values
- Media type and charset resolution with strict text decoding
- ``data:`` URI resolution
"""

from wirefetch.fetch.client import Fetcher
from wirefetch.fetch.config import FetchConfig
from wirefetch.fetch.constants import (
    DEFAULT_HEADERS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_SECONDS,
    REDIRECT_STATUS_CODES,
)
from wirefetch.fetch.content_type import (
    ContentResolver,
    ContentTypeData,
    HeaderContentResolver,
    decode_body,
    is_supported_charset,
)
from wirefetch.fetch.data_uri import DataUri, parse_data_uri, resolve_data_uri
from wirefetch.fetch.decompress import CascadeResult, DecompressionCascade
from wirefetch.fetch.errors import (
    ErrorRecord,
    FetchError,
    FetchErrorClass,
    MalformedDataUriError,
    MissingLocationError,
    NetworkError,
    RedirectLoopError,
    TooManyRedirectsError,
)
from wirefetch.fetch.metrics import FetchMetrics
from wirefetch.fetch.models import FetchResult
from wirefetch.fetch.redact import redact_headers, redact_url_credentials
from wirefetch.fetch.redirects import RedirectManager
from wirefetch.fetch.state_machine import FetchState, FetchStateMachine


__all__ = [
    # Client
    "Fetcher",
    # Config
    "FetchConfig",
    # Models
    "FetchResult",
    # Components
    "RedirectManager",
    "DecompressionCascade",
    "CascadeResult",
    "ContentResolver",
    "ContentTypeData",
    "HeaderContentResolver",
    "DataUri",
    "parse_data_uri",
    "resolve_data_uri",
    "decode_body",
    "is_supported_charset",
    # State
    "FetchState",
    "FetchStateMachine",
    # Errors
    "ErrorRecord",
    "FetchError",
    "FetchErrorClass",
    "NetworkError",
    "MissingLocationError",
    "RedirectLoopError",
    "TooManyRedirectsError",
    "MalformedDataUriError",
    # Constants
    "DEFAULT_HEADERS",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_TIMEOUT_SECONDS",
    "REDIRECT_STATUS_CODES",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
