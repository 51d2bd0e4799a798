"""Unit tests for the decompression cascade."""

import asyncio
import gzip
import zlib

import brotli
import pytest

from wirefetch.fetch.decompress import (
    CascadeResult,
    DecompressionCascade,
    attempt,
    candidates_for,
    decode_step,
    looks_like_zlib,
    parse_content_encoding,
)


PLAIN = b"The quick brown fox jumps over the lazy dog. " * 20


def raw_deflate(data: bytes) -> bytes:
    """Compress without the zlib wrapper."""
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


def run(content_encoding: str | None, data: bytes | None) -> CascadeResult:
    """Run the cascade to completion."""
    return asyncio.run(DecompressionCascade().decompress(content_encoding, data))


class TestParseContentEncoding:
    """Tests for Content-Encoding tokenizing."""

    def test_none_is_empty_token(self) -> None:
        """Missing header yields a single empty token."""
        assert parse_content_encoding(None) == [""]
        assert parse_content_encoding("") == [""]

    def test_multiple_tokens(self) -> None:
        """Tokens are stripped and lower-cased."""
        assert parse_content_encoding(" GZIP , br") == ["gzip", "br"]

    def test_empty_items_dropped(self) -> None:
        """Stray commas are ignored."""
        assert parse_content_encoding("gzip,,") == ["gzip"]


class TestCandidates:
    """Tests for decoder selection by token."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("br", ["br", "gzip", "deflate", "identity"]),
            ("gzip", ["gzip", "deflate", "identity"]),
            ("x-gzip", ["gzip", "deflate", "identity"]),
            ("deflate", ["deflate", "identity"]),
            ("identity", ["identity"]),
            ("compress", ["identity"]),
            ("", ["identity"]),
        ],
    )
    def test_start_index(self, token: str, expected: list[str]) -> None:
        """Each token starts at its priority; unknown ones at identity."""
        assert [name for name, _ in candidates_for(token)] == expected


class TestZlibSniff:
    """Tests for the RFC 1950 header check."""

    def test_zlib_stream_detected(self) -> None:
        """zlib.compress output has a valid header."""
        assert looks_like_zlib(zlib.compress(PLAIN)) is True

    def test_raw_deflate_not_detected(self) -> None:
        """Raw deflate data carries no zlib header."""
        assert looks_like_zlib(b"\xcb\x48") is False

    def test_short_buffer(self) -> None:
        """Buffers shorter than two bytes are never zlib."""
        assert looks_like_zlib(b"") is False
        assert looks_like_zlib(b"\x78") is False


class TestAttempt:
    """Tests for single decoder attempts."""

    def test_failure_is_reported_not_raised(self) -> None:
        """A failing decoder yields an outcome with an error."""
        outcome = attempt("gzip", gzip.decompress, b"definitely not gzip")

        assert outcome.ok is False
        assert outcome.data is None
        assert outcome.error is not None

    def test_success(self) -> None:
        """A working decoder yields its bytes."""
        outcome = attempt("gzip", gzip.decompress, gzip.compress(PLAIN))

        assert outcome.ok is True
        assert outcome.data == PLAIN

    def test_decode_step_falls_back_to_identity(self) -> None:
        """Plain bytes declared as gzip come back unchanged."""
        body = b"plain text body"

        outcome = decode_step("gzip", body)

        assert outcome.decoder == "identity"
        assert outcome.data == body

    def test_decode_step_unknown_token(self) -> None:
        """An unknown token goes straight to identity, even for gzip bytes."""
        body = gzip.compress(PLAIN)

        outcome = decode_step("compress", body)

        assert outcome.decoder == "identity"
        assert outcome.data == body
        assert outcome.ok is True


class TestDecompressionCascade:
    """Tests for DecompressionCascade."""

    def test_gzip(self) -> None:
        """Declared gzip is decoded."""
        result = run("gzip", gzip.compress(PLAIN))

        assert result.content == PLAIN
        assert result.applied == ("gzip",)
        assert result.fell_back is False

    def test_brotli(self) -> None:
        """Declared br is decoded."""
        result = run("br", brotli.compress(PLAIN))

        assert result.content == PLAIN
        assert result.applied == ("br",)

    def test_zlib_wrapped_deflate(self) -> None:
        """Declared deflate with a zlib wrapper is inflated."""
        result = run("deflate", zlib.compress(PLAIN))

        assert result.content == PLAIN
        assert result.applied == ("deflate",)

    def test_raw_deflate(self) -> None:
        """Declared deflate without a zlib wrapper is inflated raw."""
        result = run("deflate", raw_deflate(PLAIN))

        assert result.content == PLAIN

    def test_gzip_declared_as_br(self) -> None:
        """gzip bytes declared as br fall through brotli to gzip."""
        result = run("br", gzip.compress(PLAIN))

        assert result.content == PLAIN
        assert result.applied == ("gzip",)
        assert result.fell_back is True

    def test_uncompressed_declared_as_gzip(self) -> None:
        """Uncompressed bytes declared as gzip come back as a copy."""
        body = b"plain text body"

        result = run("gzip", body)

        assert result.content == body
        assert result.applied == ("identity",)
        assert result.fell_back is True

    def test_stacked_encodings_undone_right_to_left(self) -> None:
        """``gzip, br`` means br was applied last and is undone first."""
        payload = brotli.compress(gzip.compress(PLAIN))

        result = run("gzip, br", payload)

        assert result.content == PLAIN
        assert result.declared == ("br", "gzip")
        assert result.applied == ("br", "gzip")

    def test_stacked_deflate_then_gzip(self) -> None:
        """Three stacked codings are all undone."""
        payload = gzip.compress(brotli.compress(zlib.compress(PLAIN)))

        result = run("deflate, br, gzip", payload)

        assert result.content == PLAIN

    def test_no_encoding_is_identity(self) -> None:
        """Missing Content-Encoding leaves the body untouched."""
        result = run(None, PLAIN)

        assert result.content == PLAIN
        assert result.applied == ("identity",)
        assert result.fell_back is False

    def test_unknown_encoding_is_identity(self) -> None:
        """Unknown codings are treated as identity without fallback noise."""
        result = run("compress", PLAIN)

        assert result.content == PLAIN
        assert result.fell_back is False

    def test_missing_input(self) -> None:
        """No captured bytes produce no content."""
        result = run("gzip", None)

        assert result.content is None
        assert result.applied == ()

    def test_input_not_mutated(self) -> None:
        """The input buffer is left as it was."""
        payload = gzip.compress(PLAIN)
        snapshot = bytes(payload)

        run("br", payload)

        assert payload == snapshot
