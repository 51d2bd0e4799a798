"""Decompression cascade tolerant of inaccurate Content-Encoding headers.

Servers and proxies sometimes declare one encoding and send another. Each
declared token selects a starting point in a fixed priority list of
decoders, and the first decoder that succeeds wins:

    br -> gzip -> deflate -> identity

Tokens are consumed from the right, because the last listed coding is the
last one applied by the sender.
"""

import asyncio
import gzip
import zlib
from collections.abc import Callable
from dataclasses import dataclass

import brotli
import structlog

from wirefetch.fetch.constants import COMPONENT_DECOMPRESS


logger = structlog.get_logger()

# Failures each decoder may signal for undecodable input
_DECODE_FAILURES: tuple[type[BaseException], ...] = (
    brotli.error,
    zlib.error,
    OSError,
    EOFError,
    ValueError,
)


@dataclass(frozen=True)
class DecodeOutcome:
    """Result of one decoder attempt.

    Attributes:
        decoder: Name of the decoder that was tried.
        data: Decoded bytes on success, None on failure.
        error: Failure description on failure.
    """

    decoder: str
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Check if the attempt produced bytes."""
        return self.data is not None


@dataclass(frozen=True)
class CascadeResult:
    """Outcome of a full cascade run.

    Attributes:
        content: Decoded bytes, or None when no input was available.
        declared: Declared tokens in the order they were undone.
        applied: Decoder that was accepted for each declared token.
    """

    content: bytes | None
    declared: tuple[str, ...] = ()
    applied: tuple[str, ...] = ()

    @property
    def fell_back(self) -> bool:
        """Check if any token was decoded by a different decoder than declared."""
        return any(
            _DECODER_FOR_TOKEN.get(token, "identity") != decoder
            for token, decoder in zip(self.declared, self.applied, strict=True)
        )


def looks_like_zlib(data: bytes) -> bool:
    """Check for an RFC 1950 zlib header.

    CM (low nibble of the first byte) must be 8 and the first two bytes,
    read big-endian, must be a multiple of 31.

    Args:
        data: Buffer to inspect.

    Returns:
        True if the buffer starts with a plausible zlib header.
    """
    if len(data) < 2:
        return False
    return (data[0] & 0x0F) == 8 and int.from_bytes(data[:2], "big") % 31 == 0


def _brotli(data: bytes) -> bytes:
    return brotli.decompress(data)


def _gzip(data: bytes) -> bytes:
    return gzip.decompress(data)


def _inflate(data: bytes) -> bytes:
    if looks_like_zlib(data):
        return zlib.decompress(data)
    return zlib.decompress(data, -zlib.MAX_WBITS)


def _identity(data: bytes) -> bytes:
    return bytes(data)


# Priority-ordered decoders
DECODERS: tuple[tuple[str, Callable[[bytes], bytes]], ...] = (
    ("br", _brotli),
    ("gzip", _gzip),
    ("deflate", _inflate),
    ("identity", _identity),
)

_DECODER_FOR_TOKEN: dict[str, str] = {
    "br": "br",
    "gzip": "gzip",
    "x-gzip": "gzip",
    "deflate": "deflate",
    "identity": "identity",
}

_PRIORITY: dict[str, int] = {name: index for index, (name, _) in enumerate(DECODERS)}


def parse_content_encoding(content_encoding: str | None) -> list[str]:
    """Split a Content-Encoding value into lower-cased tokens.

    Args:
        content_encoding: Header value, possibly comma separated or None.

    Returns:
        Tokens in declaration order; ``[""]`` when nothing is declared.
    """
    if not content_encoding:
        return [""]
    tokens = [token.strip().lower() for token in content_encoding.split(",")]
    return [token for token in tokens if token] or [""]


def candidates_for(token: str) -> tuple[tuple[str, Callable[[bytes], bytes]], ...]:
    """Get the decoders to try, in order, for a declared token.

    Unknown tokens start at identity.
    """
    start = _PRIORITY[_DECODER_FOR_TOKEN.get(token, "identity")]
    return DECODERS[start:]


def attempt(name: str, decoder: Callable[[bytes], bytes], data: bytes) -> DecodeOutcome:
    """Run a single decoder and report success or failure.

    Args:
        name: Decoder name.
        decoder: Decoding function.
        data: Input bytes.

    Returns:
        DecodeOutcome describing the attempt.
    """
    try:
        return DecodeOutcome(decoder=name, data=decoder(data))
    except _DECODE_FAILURES as e:
        return DecodeOutcome(decoder=name, error=f"{type(e).__name__}: {e}")


def decode_step(token: str, data: bytes) -> DecodeOutcome:
    """Undo a single declared coding.

    Args:
        token: Declared coding token.
        data: Input bytes.

    Returns:
        The first successful outcome, or the identity outcome when every
        real decoder fails.
    """
    *decoders, (identity_name, identity) = candidates_for(token)
    for name, decoder in decoders:
        result = attempt(name, decoder, data)
        if result.ok:
            return result
        logger.debug(
            "decoder_failed",
            component=COMPONENT_DECOMPRESS,
            token=token,
            decoder=name,
            error=result.error,
        )
    return DecodeOutcome(decoder=identity_name, data=identity(data))


class DecompressionCascade:
    """Decodes response bodies despite wrong or stacked encoding declarations."""

    async def decompress(
        self, content_encoding: str | None, data: bytes | None
    ) -> CascadeResult:
        """Decode ``data`` according to ``content_encoding``.

        Each step runs in a worker thread so large bodies do not stall the
        event loop.

        Args:
            content_encoding: Declared Content-Encoding value.
            data: Raw wire bytes, or None if the capture did not complete.

        Returns:
            CascadeResult with the decoded content and applied decoders.
        """
        if data is None:
            return CascadeResult(content=None)

        declared: list[str] = []
        applied: list[str] = []
        current = data

        for token in reversed(parse_content_encoding(content_encoding)):
            outcome = await asyncio.to_thread(decode_step, token, current)
            declared.append(token)
            applied.append(outcome.decoder)
            if outcome.data is not None:
                current = outcome.data

        return CascadeResult(
            content=current, declared=tuple(declared), applied=tuple(applied)
        )
