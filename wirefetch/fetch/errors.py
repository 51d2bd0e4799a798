"""Error types for the fetch pipeline."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class FetchErrorClass(str, Enum):
    """Classification of fetch errors.

    - NETWORK: Transport-level failure or timeout
    - MISSING_LOCATION: Redirect status without a Location header
    - REDIRECT_LOOP: Redirect target already visited in the current call
    - TOO_MANY_REDIRECTS: Redirect chain longer than the configured maximum
    - MALFORMED_DATA_URI: ``data:`` URI that cannot be parsed
    """

    NETWORK = "NETWORK"
    MISSING_LOCATION = "MISSING_LOCATION"
    REDIRECT_LOOP = "REDIRECT_LOOP"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    MALFORMED_DATA_URI = "MALFORMED_DATA_URI"


class FetchError(Exception):
    """Base exception for fetch errors.

    Every failure identifies the URI in the redirect chain that caused it.
    """

    def __init__(
        self,
        error_class: FetchErrorClass,
        message: str,
        uri: str,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            uri: URI that was being processed when the error happened.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.uri = uri
        self.details = details or {}

    def to_dict(
        self,
    ) -> dict[str, str | int | bool | None | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "uri": self.uri,
            "details": self.details,
        }


class NetworkError(FetchError):
    """Transport failure or timeout while requesting a URI.

    The underlying httpx exception is kept in ``cause`` and chained as
    ``__cause__`` by the raiser.
    """

    def __init__(self, uri: str, cause: BaseException) -> None:
        """Initialize the network error.

        Args:
            uri: URI whose request failed.
            cause: Underlying transport exception.
        """
        super().__init__(
            error_class=FetchErrorClass.NETWORK,
            message=f"Request for '{uri}' failed: {cause}",
            uri=uri,
            details={"cause": type(cause).__name__},
        )
        self.cause = cause


class MissingLocationError(FetchError):
    """Redirect response without a Location header."""

    def __init__(self, uri: str, status_code: int) -> None:
        """Initialize the error.

        Args:
            uri: URI that answered with a redirect.
            status_code: Redirect status code received.
        """
        super().__init__(
            error_class=FetchErrorClass.MISSING_LOCATION,
            message=f"Redirect location undefined for '{uri}' ({status_code})",
            uri=uri,
            details={"status_code": status_code},
        )
        self.status_code = status_code


class RedirectLoopError(FetchError):
    """Redirect target was already requested during the same call."""

    def __init__(self, uri: str, target: str, method: str = "GET") -> None:
        """Initialize the error.

        Args:
            uri: URI that produced the looping redirect.
            target: Redirect target that was already visited.
            method: HTTP method of the request.
        """
        super().__init__(
            error_class=FetchErrorClass.REDIRECT_LOOP,
            message=(
                f"'{uri}' could not be fetched using {method} method "
                "(redirect loop detected)."
            ),
            uri=uri,
            details={"target": target, "method": method},
        )
        self.target = target


class TooManyRedirectsError(FetchError):
    """Redirect chain is longer than the configured maximum."""

    def __init__(self, uri: str, count: int, limit: int) -> None:
        """Initialize the error.

        Args:
            uri: Redirect target that exceeded the limit.
            count: Number of redirects in the chain.
            limit: Configured maximum.
        """
        super().__init__(
            error_class=FetchErrorClass.TOO_MANY_REDIRECTS,
            message=f"The number of redirects ({count}) exceeds the limit ({limit}).",
            uri=uri,
            details={"count": count, "limit": limit},
        )
        self.count = count
        self.limit = limit


class MalformedDataUriError(FetchError):
    """``data:`` URI with invalid syntax or payload."""

    def __init__(self, uri: str, reason: str) -> None:
        """Initialize the error.

        Args:
            uri: The offending data URI.
            reason: What is wrong with it.
        """
        super().__init__(
            error_class=FetchErrorClass.MALFORMED_DATA_URI,
            message=f"Malformed data URI: {reason}",
            uri=uri,
            details={"reason": reason},
        )
        self.reason = reason


class ErrorRecord(BaseModel):
    """Serializable error record for reporting.

    Used by the CLI to emit failures as JSON.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    error_class: FetchErrorClass = Field(description="Error classification")
    message: Annotated[str, Field(min_length=1, description="Error message")]
    uri: str = Field(description="URI that caused the failure")
    details: dict[str, str | int | bool | None] = Field(
        default_factory=dict, description="Additional error details"
    )

    @classmethod
    def from_exception(cls, error: FetchError) -> "ErrorRecord":
        """Create an ErrorRecord from a FetchError exception.

        Args:
            error: The exception to convert.

        Returns:
            ErrorRecord instance.
        """
        return cls(
            error_class=error.error_class,
            message=error.message,
            uri=error.uri,
            details=error.details,
        )
