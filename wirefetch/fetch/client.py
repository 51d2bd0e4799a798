"""Fetcher that follows redirects and keeps the bytes seen on the wire."""

import time
from types import TracebackType
from typing import Any
from urllib.parse import urljoin

import httpx
import structlog

from wirefetch.fetch.config import FetchConfig
from wirefetch.fetch.constants import COMPONENT_FETCH, REDIRECT_STATUS_CODES
from wirefetch.fetch.content_type import (
    ContentResolver,
    HeaderContentResolver,
    decode_body,
    is_supported_charset,
)
from wirefetch.fetch.data_uri import is_data_uri, resolve_data_uri
from wirefetch.fetch.decompress import DecompressionCascade
from wirefetch.fetch.errors import (
    FetchError,
    MissingLocationError,
    NetworkError,
    RedirectLoopError,
    TooManyRedirectsError,
)
from wirefetch.fetch.metrics import FetchMetrics
from wirefetch.fetch.models import FetchResult
from wirefetch.fetch.redact import redact_headers, redact_url_credentials
from wirefetch.fetch.redirects import RedirectManager
from wirefetch.fetch.state_machine import FetchStateMachine


logger = structlog.get_logger()


def _decoded_items(headers: httpx.Headers) -> list[tuple[str, str]]:
    """Get header items with their original name case."""
    encoding = headers.encoding
    return [(key.decode(encoding), value.decode(encoding)) for key, value in headers.raw]


def response_headers_to_dict(headers: httpx.Headers) -> dict[str, str | list[str]]:
    """Convert response headers to a plain dict, keeping repeated values.

    Args:
        headers: Headers as received.

    Returns:
        Mapping of header name to value, or list of values when repeated.
    """
    result: dict[str, str | list[str]] = {}
    for key, value in _decoded_items(headers):
        existing = result.get(key)
        if existing is None:
            result[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            result[key] = [existing, value]
    return result


def request_headers_to_dict(headers: httpx.Headers) -> dict[str, str]:
    """Convert sent request headers to a plain dict.

    Repeated headers are joined with ``", "``.
    """
    result: dict[str, str] = {}
    for key, value in _decoded_items(headers):
        result[key] = f"{result[key]}, {value}" if key in result else value
    return result


class Fetcher:
    """Fetches one resource per call with resilient body decoding.

    Provides:
    - Redirect following with loop and depth detection
    - Byte-exact capture of the response body as sent over the wire
    - Decompression that tolerates a wrong Content-Encoding
    - Media type and charset resolution with strict text decoding
    - ``data:`` URI resolution without network access

    Redirect history is kept for the lifetime of the instance and shared by
    every ``get`` call made through it. Concurrent calls on one instance
    share that history without synchronization.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        content_resolver: ContentResolver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Fetch configuration (defaults apply when omitted).
            content_resolver: Media type and charset resolver.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config or FetchConfig()
        self._redirects = RedirectManager()
        self._cascade = DecompressionCascade()
        self._resolver: ContentResolver = content_resolver or HeaderContentResolver()
        self._metrics = FetchMetrics.get_instance()
        self._client = httpx.AsyncClient(**self._client_options(transport))
        self._log = logger.bind(component=COMPONENT_FETCH)

    def _client_options(
        self, transport: httpx.AsyncBaseTransport | None
    ) -> dict[str, Any]:
        """Build keyword arguments for the httpx client.

        Args:
            transport: Optional transport override.

        Returns:
            Client options with redirect following and verification disabled.
        """
        options: dict[str, Any] = dict(self._config.client_options)
        options.update(
            headers=self._config.build_headers(),
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=False,
            verify=False,
        )
        if transport is not None:
            options["transport"] = transport
        return options

    @property
    def config(self) -> FetchConfig:
        """Get the fetch configuration."""
        return self._config

    @property
    def redirects(self) -> RedirectManager:
        """Get the redirect history of this fetcher."""
        return self._redirects

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def get_redirects(self, uri: str) -> list[str]:
        """Return the redirect chain recorded for ``uri``.

        Args:
            uri: Final URI of a chain.

        Returns:
            URIs from the earliest known ancestor to ``uri`` inclusive.
        """
        return self._redirects.calculate(uri)

    async def get(self, uri: str) -> FetchResult:
        """Fetch ``uri``, following redirects.

        Args:
            uri: URI to fetch (``http``, ``https`` or ``data``).

        Returns:
            FetchResult describing the request and the terminal response.

        Raises:
            NetworkError: Transport failure or timeout on any hop.
            MissingLocationError: Redirect without a Location header.
            RedirectLoopError: Redirect to a URI already requested in this call.
            TooManyRedirectsError: More redirects than ``max_redirects``.
            MalformedDataUriError: Unparseable ``data:`` URI.
        """
        start_time_ns = time.perf_counter_ns()
        machine = FetchStateMachine(uri)
        log = self._log.bind(uri=redact_url_credentials(uri))
        log.debug("fetch_requested", method=self._config.method)

        try:
            if is_data_uri(uri):
                result = resolve_data_uri(uri)
                machine.to_data_uri_terminal()
                self._metrics.record_data_uri()
            else:
                result = await self._follow(uri, machine, log)
        except FetchError as e:
            machine.to_failed()
            self._metrics.record_failure(e.error_class)
            log.warning(
                "fetch_failed",
                error_class=e.error_class.value,
                failed_uri=redact_url_credentials(e.uri),
                message=e.message,
            )
            raise

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_fetch(result.body_size, duration_ms)
        log.info(
            "fetch_complete",
            status_code=result.status_code,
            hops=len(result.hops),
            media_type=result.media_type,
            charset=result.charset,
            wire_bytes=result.wire_size,
            bytes=result.body_size,
            duration_ms=round(duration_ms, 2),
        )
        return result

    async def _follow(
        self,
        origin: str,
        machine: FetchStateMachine,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResult:
        """Request ``origin`` and follow redirects until a terminal response.

        Args:
            origin: URI requested by the caller.
            machine: State machine of this call.
            log: Bound logger.

        Returns:
            FetchResult for the terminal response.
        """
        visited: set[str] = set()
        current = origin

        while True:
            machine.to_requesting()
            visited.add(current)
            response, wire_bytes = await self._request(current, log)
            self._metrics.record_request(response.status_code, len(wire_bytes))

            if response.status_code not in REDIRECT_STATUS_CODES:
                machine.to_terminal()
                return await self._build_result(origin, current, response, wire_bytes, log)

            machine.to_redirecting()
            try:
                target = self._next_hop(origin, current, response, visited)
            except FetchError as e:
                log.debug(
                    "redirect_rejected",
                    status_code=response.status_code,
                    source=redact_url_credentials(current),
                    error_class=e.error_class.value,
                )
                raise
            self._metrics.record_redirect()
            log.debug(
                "redirect_followed",
                status_code=response.status_code,
                source=redact_url_credentials(current),
                target=redact_url_credentials(target),
            )
            current = target

    async def _request(
        self, uri: str, log: structlog.stdlib.BoundLogger
    ) -> tuple[httpx.Response, bytes]:
        """Send one request and capture the raw body.

        The body is read with ``aiter_raw`` so that no client-side content
        decoding touches it. Chunked transfer framing is already removed at
        that point, so the captured bytes are the de-chunked body.

        Args:
            uri: URI to request.
            log: Bound logger.

        Returns:
            The closed response and its wire bytes.

        Raises:
            NetworkError: On transport failure or timeout.
        """
        try:
            request = self._client.build_request(self._config.method, uri)
            response = await self._client.send(request, stream=True)
            try:
                chunks = [chunk async for chunk in response.aiter_raw()]
            finally:
                await response.aclose()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning(
                "request_failed",
                failed_uri=redact_url_credentials(uri),
                error=type(e).__name__,
            )
            raise NetworkError(uri, e) from e

        log.debug(
            "response_received",
            request_uri=redact_url_credentials(uri),
            status_code=response.status_code,
            headers=redact_headers(request_headers_to_dict(response.request.headers)),
        )
        return response, b"".join(chunks)

    def _next_hop(
        self,
        origin: str,
        current: str,
        response: httpx.Response,
        visited: set[str],
    ) -> str:
        """Validate a redirect response and record it.

        Args:
            origin: URI requested by the caller.
            current: URI that answered with the redirect.
            response: The redirect response.
            visited: URIs already requested in this call.

        Returns:
            Absolute redirect target.

        Raises:
            MissingLocationError: If there is no Location header.
            RedirectLoopError: If the target was already requested.
            TooManyRedirectsError: If the chain exceeds ``max_redirects``.
        """
        location = response.headers.get("location")
        if not location:
            raise MissingLocationError(current, response.status_code)

        target = urljoin(current, location)
        if target in visited:
            raise RedirectLoopError(current, target, self._config.method)

        self._redirects.add(target, current)
        count = len(self._chain(origin, target)) - 1
        if count > self._config.max_redirects:
            raise TooManyRedirectsError(target, count, self._config.max_redirects)
        return target

    def _chain(self, origin: str, uri: str) -> list[str]:
        """Get the chain leading to ``uri``, starting at this call's origin.

        History recorded by earlier calls that lies before ``origin`` is
        left out.
        """
        chain = self._redirects.calculate(uri)
        if origin in chain:
            return chain[chain.index(origin) :]
        return chain

    async def _build_result(
        self,
        origin: str,
        final_uri: str,
        response: httpx.Response,
        wire_bytes: bytes,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResult:
        """Decompress, resolve content type and assemble the result.

        Args:
            origin: URI requested by the caller.
            final_uri: URI that produced the terminal response.
            response: Terminal response.
            wire_bytes: Body bytes as received.
            log: Bound logger.

        Returns:
            Assembled FetchResult.
        """
        content_encoding = response.headers.get("content-encoding")
        cascade = await self._cascade.decompress(content_encoding, wire_bytes)
        if cascade.fell_back:
            self._metrics.record_decompression_fallback()
            log.info(
                "decompression_fallback",
                declared=list(cascade.declared),
                applied=list(cascade.applied),
            )

        content_type = self._resolver.resolve(response.headers, final_uri, cascade.content)
        decoded = decode_body(cascade.content, content_type.charset)
        if decoded is None:
            self._metrics.record_undecoded_body()
            if content_type.charset and not is_supported_charset(content_type.charset):
                log.info("charset_unsupported", charset=content_type.charset)

        chain = self._chain(origin, final_uri)
        return FetchResult(
            request_url=chain[0],
            request_headers=request_headers_to_dict(response.request.headers),
            response_url=final_uri,
            status_code=response.status_code,
            response_headers=response_headers_to_dict(response.headers),
            hops=chain[1:],
            media_type=content_type.media_type,
            charset=content_type.charset,
            decoded_body=decoded,
            raw_content=cascade.content,
            raw_wire_bytes=wire_bytes,
        )
