"""Result type returned by the request executor.

A :class:`FetchResult` carries either ``data`` (2xx responses) or
``error`` (everything else), together with the raw
:class:`httpx.Response`. Exactly one of the two is meaningful; check
:attr:`FetchResult.ok` to tell them apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

PARSE_MODES = ("json", "text", "bytes", "stream")


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one API call."""

    response: httpx.Response
    data: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.response.is_success


def extract_response_data(response: httpx.Response, parse_as: str = "json") -> Any:
    """Extract the body from an HTTP response.

    With ``parse_as="json"`` the body is decoded as JSON, falling back to
    raw text when it is not JSON. ``"text"`` and ``"bytes"`` return the
    body unchanged and ``"stream"`` returns the response itself.

    Returns:
        The decoded body, or ``None`` for 204 responses and empty bodies.
    """
    if parse_as == "stream":
        return response
    if response.status_code == 204 or not response.content:
        return None
    if parse_as == "bytes":
        return response.content
    if parse_as == "text":
        return response.text

    try:
        return response.json()
    except ValueError:
        return response.text


def build_result(response: httpx.Response, parse_as: Optional[str] = None) -> FetchResult:
    """Wrap *response* into a :class:`FetchResult`.

    Error bodies are always decoded as JSON-or-text regardless of
    *parse_as*.
    """
    if response.is_success:
        return FetchResult(response=response, data=extract_response_data(response, parse_as or "json"))
    return FetchResult(response=response, error=extract_response_data(response))
