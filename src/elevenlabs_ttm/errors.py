"""Errors raised by the text-to-music client.

Every failure reaches the caller as exactly one of the classes below:

- RequestError: the request never produced an HTTP response.
- ApiError: non-2xx response that has no dedicated class.
- AuthenticationError: 401.
- RateLimitError: 429.
- QuotaExceededError: 402.
- ParseError: a body that should have been JSON could not be decoded.
- ValidationError: caller input rejected before sending.
"""

from __future__ import annotations

import json
from typing import Any

import httpx


class ElevenLabsTTMError(Exception):
    """Base error for the text-to-music client."""


class RequestError(ElevenLabsTTMError):
    """HTTP request failed before a status was received (DNS, reset, timeout)."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"Request failed: {error}")
        self.error = error


class ApiError(ElevenLabsTTMError):
    """The API answered with a non-success status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"API error ({status}): {message}")
        self.status = status
        self.message = message
        self.detail = _error_detail(message)


class AuthenticationError(ElevenLabsTTMError):
    """Invalid API key or authentication failed."""

    status = 401

    def __init__(self, message: str = "Invalid API key") -> None:
        super().__init__(f"Authentication failed: {message}")
        self.message = message


class RateLimitError(ElevenLabsTTMError):
    """Too many requests.

    `retry_after` is in seconds. The transport does not read a Retry-After
    header, so errors it builds always carry None.
    """

    status = 429

    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: int | None = None,
    ) -> None:
        if retry_after is None:
            text = f"Rate limit exceeded: {message}"
        else:
            text = f"Rate limit exceeded (retry in {retry_after}s): {message}"
        super().__init__(text)
        self.message = message
        self.retry_after = retry_after


class QuotaExceededError(ElevenLabsTTMError):
    """Not enough credits left on the account."""

    status = 402

    def __init__(self, message: str = "Insufficient credits") -> None:
        super().__init__(f"Quota exceeded: {message}")
        self.message = message


class ParseError(ElevenLabsTTMError):
    """A JSON document could not be decoded."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"Failed to parse response: {error}")
        self.error = error


class ValidationError(ElevenLabsTTMError):
    """Invalid input parameters."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Validation error: {message}")
        self.message = message


def _error_detail(text: str) -> Any:
    """Best-effort decode of the `detail` field of an error body."""
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(payload, dict):
        return payload.get("detail")
    return None


def classify_response(status: int, text: str) -> ElevenLabsTTMError:
    """Map a non-2xx status and its body text to an error.

    Order matters: 401, 429 and 402 win over the generic ApiError. The
    dedicated classes use fixed messages and do not echo the body.
    """
    if status == 401:
        return AuthenticationError()
    if status == 429:
        return RateLimitError()
    if status == 402:
        return QuotaExceededError()
    return ApiError(status, text)


def classify_transport_error(error: httpx.HTTPError) -> ElevenLabsTTMError:
    """Map an httpx exception to an error.

    Status errors go through `classify_response`; anything else never got
    a response and becomes a RequestError.
    """
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return classify_response(response.status_code, response.text)
    return RequestError(error)


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON response body, raising ParseError on failure."""
    try:
        return response.json()
    except (ValueError, RecursionError) as e:
        raise ParseError(e) from e
