"""State machine for a single fetch call."""

from enum import Enum

import structlog

from wirefetch.fetch.constants import COMPONENT_FETCH
from wirefetch.fetch.redact import redact_url_credentials


logger = structlog.get_logger()


class FetchState(str, Enum):
    """State of one ``Fetcher.get`` call.

    - START: Nothing done yet
    - DATA_URI_TERMINAL: Resolved from a ``data:`` URI
    - REQUESTING: Request in flight for the current URI
    - REDIRECTING: Validating a redirect response
    - TERMINAL: Non-redirect response received and processed
    - FAILED: Aborted with an error
    """

    START = "START"
    DATA_URI_TERMINAL = "DATA_URI_TERMINAL"
    REQUESTING = "REQUESTING"
    REDIRECTING = "REDIRECTING"
    TERMINAL = "TERMINAL"
    FAILED = "FAILED"


_VALID_TRANSITIONS: dict[FetchState, set[FetchState]] = {
    FetchState.START: {
        FetchState.DATA_URI_TERMINAL,
        FetchState.REQUESTING,
        FetchState.FAILED,
    },
    FetchState.REQUESTING: {
        FetchState.REDIRECTING,
        FetchState.TERMINAL,
        FetchState.FAILED,
    },
    FetchState.REDIRECTING: {FetchState.REQUESTING, FetchState.FAILED},
    FetchState.DATA_URI_TERMINAL: set(),  # Terminal state
    FetchState.TERMINAL: set(),  # Terminal state
    FetchState.FAILED: set(),  # Terminal state
}

_TERMINAL_STATES = frozenset(
    {FetchState.DATA_URI_TERMINAL, FetchState.TERMINAL, FetchState.FAILED}
)


class FetchStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        uri: str,
        from_state: FetchState,
        to_state: FetchState,
    ) -> None:
        """Initialize the transition error.

        Args:
            uri: URI the call was started for.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.uri = uri
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for '{uri}': "
            f"{from_state.value} -> {to_state.value}"
        )


class FetchStateMachine:
    """Tracks the state of one fetch call and enforces valid transitions."""

    def __init__(self, uri: str, initial_state: FetchState = FetchState.START) -> None:
        """Initialize the state machine.

        Args:
            uri: URI the call was started for.
            initial_state: Starting state.
        """
        self._uri = uri
        self._state = initial_state
        self._requests = 0
        self._log = logger.bind(
            component=COMPONENT_FETCH,
            uri=redact_url_credentials(uri),
        )

    @property
    def uri(self) -> str:
        """Get the URI the call was started for."""
        return self._uri

    @property
    def state(self) -> FetchState:
        """Get the current state."""
        return self._state

    @property
    def requests(self) -> int:
        """Get the number of times REQUESTING was entered."""
        return self._requests

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in _TERMINAL_STATES

    def can_transition_to(self, target: FetchState) -> bool:
        """Check if a transition to the target state is valid."""
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: FetchState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            FetchStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise FetchStateTransitionError(
                uri=self._uri,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target
        if target == FetchState.REQUESTING:
            self._requests += 1

        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_data_uri_terminal(self) -> None:
        """Transition to DATA_URI_TERMINAL state."""
        self.transition_to(FetchState.DATA_URI_TERMINAL)

    def to_requesting(self) -> None:
        """Transition to REQUESTING state."""
        self.transition_to(FetchState.REQUESTING)

    def to_redirecting(self) -> None:
        """Transition to REDIRECTING state."""
        self.transition_to(FetchState.REDIRECTING)

    def to_terminal(self) -> None:
        """Transition to TERMINAL state."""
        self.transition_to(FetchState.TERMINAL)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition_to(FetchState.FAILED)
