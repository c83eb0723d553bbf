"""Retry engine for request/response operations, driven by tenacity.

An operation is a zero-argument callable returning a ``requests.Response``.
Only a 200 response counts as success. Any other response is decoded into a
WatsonxError, an exception raised by the operation is used as-is, and the
retry predicate decides whether another attempt is made.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
    wait_random,
)

from wxretry.domain.errors import NoResponseError, RetryCancelledError, WatsonxError
from wxretry.infrastructure.error_decoder import decode_watsonx_error

logger = logging.getLogger(__name__)

OnRetryFunc = Callable[[int, BaseException], None]
RetryIfFunc = Callable[[BaseException], bool]
Operation = Callable[[], Optional[requests.Response]]
WaiterFunc = Callable[[threading.Event, float], bool]


def _no_op_on_retry(attempt: int, error: BaseException) -> None:
    pass


def _wait_on_event(cancel_event: threading.Event, seconds: float) -> bool:
    # Event.wait returns True as soon as the event is set
    return cancel_event.wait(seconds)


def _retry_on_any_error(error: Optional[BaseException]) -> bool:
    return error is not None


@dataclass(frozen=True)
class RetryConfig:
    """Settings for one ``retry`` call.

    Attributes:
        max_attempts: Number of invocations, including the first one
        backoff: Base wait between attempts, in seconds
        max_jitter: Exclusive upper bound of the random delay added to backoff (0 disables)
        on_retry: Called with (attempts completed, error) before each wait
        retry_if: Returns True if the error should be retried
        cancel_event: Set it to stop retrying; None means the call cannot be cancelled
        waiter: Called with (cancel event, seconds) for each wait; returns True if cancelled
    """

    max_attempts: int = 3
    backoff: float = 1.0
    max_jitter: float = 1.0
    on_retry: OnRetryFunc = field(default=_no_op_on_retry)
    retry_if: RetryIfFunc = field(default=_retry_on_any_error)
    cancel_event: Optional[threading.Event] = None
    waiter: WaiterFunc = field(default=_wait_on_event)

    def __post_init__(self):
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise TypeError("max_attempts must be an integer")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff < 0:
            raise ValueError("backoff must be >= 0")
        if self.max_jitter < 0:
            raise ValueError("max_jitter must be >= 0")
        if not callable(self.on_retry):
            raise TypeError("on_retry must be callable")
        if not callable(self.retry_if):
            raise TypeError("retry_if must be callable")
        if not callable(self.waiter):
            raise TypeError("waiter must be callable")


RetryOption = Callable[[RetryConfig], RetryConfig]


def with_max_attempts(max_attempts: int) -> RetryOption:
    """Set the number of attempts (not additional retries)."""
    return lambda cfg: replace(cfg, max_attempts=max_attempts)


def with_backoff(backoff: float) -> RetryOption:
    """Set the base wait between attempts, in seconds."""
    return lambda cfg: replace(cfg, backoff=backoff)


def with_max_jitter(max_jitter: float) -> RetryOption:
    """Set the upper bound of the random delay added to the backoff."""
    return lambda cfg: replace(cfg, max_jitter=max_jitter)


def with_on_retry(on_retry: OnRetryFunc) -> RetryOption:
    """Set the callback run before each wait."""
    return lambda cfg: replace(cfg, on_retry=on_retry)


def with_retry_if(retry_if: RetryIfFunc) -> RetryOption:
    """Set the predicate deciding whether an error is retried."""
    return lambda cfg: replace(cfg, retry_if=retry_if)


def with_cancel_event(cancel_event: threading.Event) -> RetryOption:
    """Set the event that cancels the retry loop when set."""
    return lambda cfg: replace(cfg, cancel_event=cancel_event)


def with_waiter(waiter: WaiterFunc) -> RetryOption:
    """Set the function that waits between attempts.

    It receives the cancel event and the delay in seconds and must return True
    if the event was set during the wait. Useful for fake clocks in tests.
    """
    return lambda cfg: replace(cfg, waiter=waiter)


def build_retry_config(*options: Optional[RetryOption], base: Optional[RetryConfig] = None) -> RetryConfig:
    """Apply options in order on top of ``base`` (or the defaults).

    None entries are skipped.
    """
    cfg = base if base is not None else RetryConfig()
    for option in options:
        if option is not None:
            cfg = option(cfg)
    return cfg


def _should_retry_status(status_code: int) -> bool:
    """Check if a failed response status is worth another attempt."""
    # Don't retry on auth errors or most 4xx (except 429)
    if status_code in (401, 403):
        return False
    if 400 <= status_code < 500 and status_code != 429:
        return False
    # Retry on 429, 5xx and missing status
    return True


def is_transient_error(error: BaseException) -> bool:
    """Retry predicate for transient failures only.

    Transport errors and 429/5xx responses are retried; auth errors and other
    client errors are not. Use with ``with_retry_if``.
    """
    if isinstance(error, WatsonxError):
        return _should_retry_status(error.status_code)
    return isinstance(error, (requests.exceptions.RequestException, NoResponseError))


def _build_wait(cfg: RetryConfig):
    wait = wait_fixed(cfg.backoff)
    if cfg.max_jitter > 0:
        wait = wait + wait_random(0, cfg.max_jitter)
    return wait


def retry(
    operation: Operation,
    *options: Optional[RetryOption],
    config: Optional[RetryConfig] = None,
) -> requests.Response:
    """Invoke ``operation`` until it returns a 200 response.

    Args:
        operation: Zero-argument callable returning a response
        *options: Option modifiers applied on top of ``config``
        config: Base configuration (defaults if None)

    Returns:
        The successful response

    Raises:
        RetryCancelledError: If the cancel event was set before an attempt or during a wait
        WatsonxError: If the last attempt got a non-200 response
        Exception: The last transport error raised by ``operation``
    """
    cfg = build_retry_config(*options, base=config)
    cancel_event = cfg.cancel_event if cfg.cancel_event is not None else threading.Event()
    last_error: Optional[BaseException] = None
    attempts = 0

    def _attempt() -> requests.Response:
        nonlocal attempts
        attempts += 1
        response = operation()
        if response is not None and response.status_code == HTTPStatus.OK:
            return response
        if response is None:
            raise NoResponseError("operation returned no response")
        raise decode_watsonx_error(response)

    def _should_retry(error: BaseException) -> bool:
        nonlocal last_error
        last_error = error
        logger.debug(f"Attempt {attempts}/{cfg.max_attempts} failed: {error!r}")
        if not isinstance(error, Exception):
            return False
        return cfg.retry_if(error)

    def _check_cancelled(retry_state: RetryCallState) -> None:
        if cancel_event.is_set():
            logger.info(f"Retry cancelled before attempt {attempts + 1}")
            raise RetryCancelledError(attempts=attempts, last_error=last_error)

    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        attempt = retry_state.attempt_number
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(f"Request failed (attempt {attempt}/{cfg.max_attempts}): {error}. Retrying in {delay:.2f}s...")
        cfg.on_retry(attempt, error)

    def _sleep(seconds: float) -> None:
        if cfg.waiter(cancel_event, seconds) or cancel_event.is_set():
            logger.info("Retry cancelled while waiting for the next attempt")
            raise RetryCancelledError(attempts=attempts, last_error=last_error)

    retrying = Retrying(
        stop=stop_after_attempt(cfg.max_attempts),
        wait=_build_wait(cfg),
        retry=retry_if_exception(_should_retry),
        before=_check_cancelled,
        before_sleep=_before_sleep,
        sleep=_sleep,
        reraise=True,
    )

    return retrying(_attempt)
