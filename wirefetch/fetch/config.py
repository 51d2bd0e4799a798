"""Configuration models for the fetch layer."""

from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wirefetch.fetch.constants import (
    DEFAULT_HEADERS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT_SECONDS,
)


if TYPE_CHECKING:
    from wirefetch.settings.app import FetchSettings


# Client options the fetcher always controls itself
_RESERVED_CLIENT_OPTIONS = frozenset(
    {"follow_redirects", "verify", "timeout", "headers", "transport"}
)


def lower_case_keys(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with lower-cased names.

    Later entries win when two names differ only in case.
    """
    return {key.lower(): value for key, value in headers.items()}


class FetchConfig(BaseModel):
    """Configuration for a Fetcher.

    Redirect following by the HTTP client and TLS certificate verification
    are always disabled; ``client_options`` cannot turn them back on.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Request headers merged over the defaults (caller wins)",
    )
    max_redirects: Annotated[int, Field(ge=0, le=100)] = DEFAULT_MAX_REDIRECTS
    timeout_seconds: Annotated[float, Field(ge=0.1, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    method: Annotated[str, Field(min_length=1, max_length=16)] = DEFAULT_METHOD
    client_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments for httpx.AsyncClient",
    )

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the HTTP method."""
        return v.upper()

    @field_validator("client_options")
    @classmethod
    def drop_reserved_options(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Remove options that the fetcher forces or sets itself."""
        return {key: value for key, value in v.items() if key not in _RESERVED_CLIENT_OPTIONS}

    @classmethod
    def from_settings(cls, settings: "FetchSettings", **overrides: Any) -> "FetchConfig":
        """Build a config from environment settings.

        Args:
            settings: Loaded settings.
            **overrides: Fields that take precedence over the settings.

        Returns:
            FetchConfig instance.
        """
        headers = {"user-agent": settings.user_agent} if settings.user_agent else {}
        headers.update(lower_case_keys(overrides.pop("headers", None) or {}))

        values: dict[str, Any] = {
            "headers": headers,
            "max_redirects": settings.max_redirects,
            "timeout_seconds": settings.timeout_seconds,
        }
        values.update(overrides)
        return cls(**values)

    def build_headers(self) -> dict[str, str]:
        """Merge default and caller headers.

        Both sides are lower-cased first so that ``ACCEPT-Encoding`` and
        ``accept-encoding`` cannot coexist; caller values take precedence.

        Returns:
            Merged headers with lower-cased names.
        """
        return {**lower_case_keys(DEFAULT_HEADERS), **lower_case_keys(self.headers)}
