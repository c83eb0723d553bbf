"""Error types raised by the retry engine and the retrying HTTP client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from wxretry.domain.models.error_detail import ErrorDetail

if TYPE_CHECKING:
    import requests


ERROR_DOMAIN = "watsonx"


class WatsonxError(Exception):
    """Structured error decoded from a non-success response.

    Attributes:
        status_code: HTTP status of the failed attempt (0 when no response existed)
        errors: Error detail records in document order
        trace: Server-side trace identifier (may be empty)
        response: The failed response, with its body still readable
    """

    def __init__(
        self,
        status_code: int = 0,
        errors: Iterable[ErrorDetail] = (),
        trace: str = "",
        response: Optional["requests.Response"] = None,
    ):
        self.status_code = status_code
        self.errors: Tuple[ErrorDetail, ...] = tuple(errors)
        self.trace = trace
        self.response = response
        super().__init__(self._render())

    def _render(self) -> str:
        if self.errors:
            first = self.errors[0]
            return f"{ERROR_DOMAIN} error ({self.status_code}): {first.code} - {first.message}"
        return f"{ERROR_DOMAIN} error ({self.status_code})"

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return (
            f"WatsonxError(status_code={self.status_code!r}, "
            f"errors={list(self.errors)!r}, trace={self.trace!r})"
        )


class RetryCancelledError(Exception):
    """Cancellation was observed before an attempt or while waiting to retry."""

    def __init__(self, attempts: int = 0, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"retry cancelled after {attempts} attempt(s)")


class BodyReplayError(Exception):
    """The request body could not be captured for replay."""

    pass


class NoResponseError(Exception):
    """The operation returned neither a response nor an error."""

    pass


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass
