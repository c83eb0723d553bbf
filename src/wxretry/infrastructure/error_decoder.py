"""Decode failed responses into structured watsonx errors.

The decoder never raises: every failure path degrades to a WatsonxError
carrying less detail. The response body is read once and put back, so code
that receives the response afterwards still sees the whole body.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

import requests
from pydantic import ValidationError

from wxretry.domain.errors import WatsonxError
from wxretry.domain.models.error_detail import ErrorEnvelope

logger = logging.getLogger(__name__)


def read_and_restore_body(response: requests.Response) -> bytes:
    """Read the whole response body and rewrap it so it can be read again.

    ``response.content`` caches the bytes for ``.content``/``.json()``/``.text``;
    ``response.raw`` is replaced with a fresh stream for consumers that read the
    raw stream directly.

    Raises:
        Exception: Whatever the underlying stream raises while being read
    """
    body = response.content or b""
    response.raw = io.BytesIO(body)
    return body


def decode_watsonx_error(response: Optional[requests.Response]) -> WatsonxError:
    """Turn a failed response into a WatsonxError

    Args:
        response: Failed response (None for transport-level failures)

    Returns:
        WatsonxError populated as far as the body allows
    """
    if response is None:
        return WatsonxError()

    status_code = response.status_code or 0

    try:
        body = read_and_restore_body(response)
    except Exception as e:
        # Stream errors of any kind (urllib3, socket, already consumed)
        logger.debug(f"Could not read error body (status {status_code}): {e}")
        return WatsonxError(status_code=status_code, response=response)

    # Empty body -> status-only error
    if not body:
        return WatsonxError(status_code=status_code, response=response)

    try:
        envelope = ErrorEnvelope.model_validate_json(body)
    except ValidationError:
        # Not JSON, or JSON of another shape
        logger.debug(f"Unrecognized error body (status {status_code}, {len(body)} bytes)")
        return WatsonxError(status_code=status_code, response=response)

    return WatsonxError(
        status_code=status_code,
        errors=[item.to_detail() for item in envelope.errors],
        trace=envelope.trace,
        response=response,
    )
