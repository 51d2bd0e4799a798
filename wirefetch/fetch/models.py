"""Data models for the fetch pipeline."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class FetchResult(BaseModel):
    """Normalized description of a request and its terminal response.

    ``raw_wire_bytes`` always holds what the transport delivered, even when
    decompression could not produce ``raw_content``. For chunked responses it
    is the body with the transfer framing removed. ``media_type`` and
    ``charset`` are ``None`` when undetermined.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_url: Annotated[
        str, Field(min_length=1, description="Origin URI of the redirect chain")
    ]
    request_headers: dict[str, str] = Field(
        default_factory=dict, description="Request headers as sent"
    )
    response_url: Annotated[
        str, Field(min_length=1, description="URI of the terminal response")
    ]
    status_code: int = Field(ge=100, le=999, description="HTTP status code")
    response_headers: dict[str, str | list[str]] = Field(
        default_factory=dict, description="Response headers as received"
    )
    hops: list[str] = Field(
        default_factory=list,
        description="Redirect targets up to the final URI (empty without redirects)",
    )
    media_type: str | None = Field(default=None, description="Resolved MIME type")
    charset: str | None = Field(default=None, description="Resolved charset name")
    decoded_body: str | None = Field(
        default=None, description="Text body, only for supported charsets"
    )
    raw_content: bytes | None = Field(
        default=None, description="Body after decompression"
    )
    raw_wire_bytes: bytes = Field(
        default=b"", description="Body bytes exactly as received"
    )

    @property
    def is_redirected(self) -> bool:
        """Check whether the response was reached through redirects."""
        return bool(self.hops)

    @property
    def body_size(self) -> int:
        """Get the size of the decompressed body in bytes."""
        return len(self.raw_content) if self.raw_content is not None else 0

    @property
    def wire_size(self) -> int:
        """Get the number of bytes received over the wire."""
        return len(self.raw_wire_bytes)

    def summary(self) -> dict[str, str | int | list[str] | None]:
        """Summarize the result without body payloads.

        Returns:
            Dictionary suitable for JSON output.
        """
        return {
            "request_url": self.request_url,
            "response_url": self.response_url,
            "status_code": self.status_code,
            "hops": list(self.hops),
            "media_type": self.media_type,
            "charset": self.charset,
            "body_size": self.body_size,
            "wire_size": self.wire_size,
            "decoded": self.decoded_body is not None,
        }
