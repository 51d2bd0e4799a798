"""Redaction helpers for log output."""

from collections.abc import Mapping
from urllib.parse import urlsplit, urlunsplit


# Headers whose values never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
    }
)

REDACTED_VALUE = "[REDACTED]"


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name is sensitive."""
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(
    headers: Mapping[str, str | list[str]],
) -> dict[str, str | list[str]]:
    """Copy headers with sensitive values replaced.

    Args:
        headers: Request or response headers; list values are kept as lists.

    Returns:
        New dictionary that is safe to log.
    """
    result: dict[str, str | list[str]] = {}
    for key, value in headers.items():
        if not is_sensitive_header(key):
            result[key] = value
        elif isinstance(value, list):
            result[key] = [REDACTED_VALUE] * len(value)
        else:
            result[key] = REDACTED_VALUE
    return result


def redact_url_credentials(url: str) -> str:
    """Hide ``user:password@`` userinfo in a URL.

    ``data:`` URIs are shortened instead, since their payload can be large.

    Args:
        url: URL that may contain credentials.

    Returns:
        URL safe to log.
    """
    if url[:5].lower() == "data:":
        return url if len(url) <= 64 else f"{url[:61]}..."

    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url

    host = parts.netloc.rpartition("@")[2]
    userinfo = f"{REDACTED_VALUE}:{REDACTED_VALUE}"
    return urlunsplit(parts._replace(netloc=f"{userinfo}@{host}"))
