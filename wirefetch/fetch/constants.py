"""HTTP constants for the fetch layer.

Centralizes all fetch-related constants to avoid duplication across modules.
"""

# Redirect status codes that are followed
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

HTTP_STATUS_OK = 200

# Redirect and timeout defaults
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_METHOD = "GET"

# Default request headers, merged under caller headers (keys lower-cased)
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/74.0.3729.131 Safari/537.36"
)
DEFAULT_HEADERS: dict[str, str] = {
    "Accept-Encoding": "gzip, deflate, br",
    "Accept-Language": "en-US,en;q=0.8,es;q=0.6,fr;q=0.4",
    "Cache-Control": "no-cache",
    "DNT": "1",
    "Pragma": "no-cache",
    "User-Agent": DEFAULT_USER_AGENT,
}

# Component names for log binding
COMPONENT_FETCH = "fetch"
COMPONENT_DECOMPRESS = "decompress"
COMPONENT_CLI = "cli"
