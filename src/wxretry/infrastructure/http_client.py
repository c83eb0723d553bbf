"""Retrying HTTP client (requests + retry engine).

Request bodies are single-use streams, so the body is captured once and a
fresh stream over the same bytes is handed to every attempt.
"""

from __future__ import annotations

import io
import logging
from typing import IO, Any, Optional

import requests

from wxretry.domain.config import AppConfig, RetrySettings
from wxretry.domain.errors import BodyReplayError
from wxretry.infrastructure.retry import RetryConfig, RetryOption, build_retry_config, retry

logger = logging.getLogger(__name__)


class ReusableBody:
    """Captured request body that hands out a fresh stream on every call.

    An empty capture yields None, the requests marker for "no body".
    """

    def __init__(self, payload: bytes = b""):
        self._payload = payload

    @property
    def size(self) -> int:
        return len(self._payload)

    def __call__(self) -> Optional[IO[bytes]]:
        if not self._payload:
            return None
        return io.BytesIO(self._payload)


def retry_config_from_settings(settings: RetrySettings, *options: Optional[RetryOption]) -> RetryConfig:
    """Build an engine config from validated settings, then apply options."""
    base = RetryConfig(
        max_attempts=settings.max_attempts,
        backoff=settings.backoff,
        max_jitter=settings.max_jitter,
    )
    return build_retry_config(*options, base=base)


def _read_body(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read"):
        try:
            data = body.read()
        finally:
            close = getattr(body, "close", None)
            if close is not None:
                close()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    # Chunked bodies (generators, lists of chunks)
    return b"".join(chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk) for chunk in body)


def prepare_reusable_body(request: requests.PreparedRequest) -> ReusableBody:
    """Capture the request body so every attempt can send it again.

    Args:
        request: Prepared request whose body may be a single-use stream

    Returns:
        Supplier returning None for an empty body, otherwise a fresh stream
        over the captured bytes on every call

    Raises:
        BodyReplayError: If the original body could not be read
    """
    body = request.body
    if body is None or body == b"" or body == "":
        return ReusableBody()

    try:
        payload = _read_body(body)
    except Exception as e:
        raise BodyReplayError(f"Failed to read request body for replay: {e}") from e

    return ReusableBody(payload)


class HttpClient:
    """requests-based client with retrying sends.

    Args:
        session: Session to send through (a new one is created and owned if None)
        timeout: Per-attempt timeout in seconds
        retry_config: Base retry configuration for ``send_with_retry``
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = 60.0,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.retry_config = retry_config if retry_config is not None else RetryConfig()

    @classmethod
    def from_config(cls, config: AppConfig, session: Optional[requests.Session] = None) -> "HttpClient":
        """Create a client from loaded application configuration"""
        return cls(
            session,
            timeout=config.http.timeout,
            retry_config=retry_config_from_settings(config.retry),
        )

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        """Send a prepared request once, without retries"""
        logger.debug(f"HTTP {request.method} {request.url}")
        return self.session.send(request, timeout=self.timeout)

    def send_with_retry(
        self, request: requests.PreparedRequest, *options: Optional[RetryOption]
    ) -> requests.Response:
        """Send a prepared request through the retry engine.

        Every attempt sends a copy of ``request`` carrying a fresh body stream and
        a fixed Content-Length. The caller's request keeps its headers and body,
        except that a single-use stream body is read and closed by the capture.

        Args:
            request: Prepared request (its body is replayed on every attempt)
            *options: Retry options applied on top of the client's retry config

        Returns:
            The successful (200) response

        Raises:
            BodyReplayError: If the body could not be captured (no attempt is made)
            WatsonxError: If the last attempt got a non-200 response
            RetryCancelledError: If the retry was cancelled
            requests.RequestException: The last transport error
        """
        get_body = prepare_reusable_body(request)

        def _send_attempt() -> requests.Response:
            attempt_request = request.copy()
            if get_body.size:
                attempt_request.headers.pop("Transfer-Encoding", None)
                attempt_request.headers["Content-Length"] = str(get_body.size)
            attempt_request.body = get_body()
            return self.send(attempt_request)

        return retry(_send_attempt, *options, config=self.retry_config)

    def request(self, method: str, url: str, *options: Optional[RetryOption], **kwargs: Any) -> requests.Response:
        """Build a request the way ``requests`` does and send it with retries

        Args:
            method: HTTP method
            url: Target URL
            *options: Retry options for this call
            **kwargs: Arguments for ``requests.Request`` (json, data, headers, params...)
        """
        prepared = self.session.prepare_request(requests.Request(method, url, **kwargs))
        return self.send_with_retry(prepared, *options)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
