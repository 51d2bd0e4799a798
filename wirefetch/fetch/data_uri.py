"""Resolution of ``data:`` URIs (RFC 2397) without network access."""

import base64
import binascii
from dataclasses import dataclass, field
from urllib.parse import unquote_to_bytes

from wirefetch.fetch.constants import HTTP_STATUS_OK
from wirefetch.fetch.content_type import decode_body, is_textual
from wirefetch.fetch.errors import MalformedDataUriError
from wirefetch.fetch.models import FetchResult


DATA_SCHEME = "data:"

# Media type assumed when a data URI omits it
_DEFAULT_MEDIA_TYPE = "text/plain"
_DEFAULT_CHARSET = "US-ASCII"


@dataclass(frozen=True)
class DataUri:
    """Parsed ``data:`` URI.

    Attributes:
        media_type: Lower-cased MIME essence.
        parameters: Media type parameters (names lower-cased).
        body: Decoded payload bytes.
    """

    media_type: str
    parameters: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def charset(self) -> str | None:
        """Get the charset parameter, if any."""
        return self.parameters.get("charset")


def is_data_uri(uri: str) -> bool:
    """Check if ``uri`` uses the ``data:`` scheme (case-insensitive)."""
    return uri[: len(DATA_SCHEME)].lower() == DATA_SCHEME


def parse_data_uri(uri: str) -> DataUri:
    """Parse a ``data:`` URI.

    Args:
        uri: URI such as ``data:text/plain;charset=utf-8,Hello``.

    Returns:
        Parsed DataUri.

    Raises:
        MalformedDataUriError: If the URI is not a valid data URI.
    """
    if not is_data_uri(uri):
        raise MalformedDataUriError(uri, "missing 'data:' scheme")

    header, sep, payload = uri[len(DATA_SCHEME) :].partition(",")
    if not sep:
        raise MalformedDataUriError(uri, "missing ',' separator")

    # Fragments are not part of the payload
    payload = payload.partition("#")[0]

    parts = [part.strip() for part in header.split(";")]
    is_base64 = len(parts) > 1 and parts[-1].lower() == "base64"
    if is_base64:
        parts = parts[:-1]

    essence = parts[0].lower()
    parameters: dict[str, str] = {}
    for part in parts[1:]:
        name, eq, value = part.partition("=")
        if eq and name.strip():
            parameters[name.strip().lower()] = unquote_to_bytes(value.strip()).decode(
                "latin-1"
            ).strip('"')

    if not essence:
        essence = _DEFAULT_MEDIA_TYPE
        parameters.setdefault("charset", _DEFAULT_CHARSET)
    elif "/" not in essence:
        raise MalformedDataUriError(uri, f"invalid media type '{essence}'")

    body = unquote_to_bytes(payload)
    if is_base64:
        try:
            body = base64.b64decode(b"".join(body.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedDataUriError(uri, f"invalid base64 payload: {e}") from e

    return DataUri(media_type=essence, parameters=parameters, body=body)


def resolve_data_uri(uri: str) -> FetchResult:
    """Build a FetchResult directly from a ``data:`` URI.

    Args:
        uri: The data URI.

    Returns:
        FetchResult with status 200, no headers and no hops.

    Raises:
        MalformedDataUriError: If the URI cannot be parsed.
    """
    data = parse_data_uri(uri)
    charset = data.charset

    decoded: str | None = None
    if charset or is_textual(data.media_type):
        decoded = decode_body(data.body, charset or _DEFAULT_CHARSET)

    return FetchResult(
        request_url=uri,
        request_headers={},
        response_url=uri,
        status_code=HTTP_STATUS_OK,
        response_headers={},
        hops=[],
        media_type=data.media_type,
        charset=charset,
        decoded_body=decoded,
        raw_content=data.body,
        raw_wire_bytes=data.body,
    )
