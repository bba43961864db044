"""Header composition for outgoing requests.

Headers are layered in a fixed order, each layer overwriting earlier ones
case-insensitively:

1. default headers configured on the client;
2. ``Authorization: Bearer <token>`` when an access token resolves;
3. headers passed with the individual call.

So a caller can always override both the defaults and the automatic
``Authorization`` header for a single request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

import httpx

HeaderInput = Union[httpx.Headers, Mapping[str, Any], Iterable[tuple[str, Any]]]

BEARER_PREFIX = "Bearer "


def merge_into_headers(target: httpx.Headers, source: Optional[HeaderInput]) -> None:
    """Copy *source* into *target*, replacing existing values by name.

    A name repeated within *source* is sent once, its values joined with
    ``", "``. ``None`` values in mappings and pair sequences are skipped;
    anything else is converted with :class:`str`.
    """
    if not source:
        return

    if isinstance(source, httpx.Headers):
        staged = source
    else:
        items = source.items() if isinstance(source, Mapping) else source
        staged = httpx.Headers([(key, str(value)) for key, value in items if value is not None])

    for key, value in staged.items():
        target[key] = value


def authorization_value(token: str) -> str:
    """Return the ``Authorization`` value for *token*, without double-prefixing."""
    return token if token.startswith(BEARER_PREFIX) else f"{BEARER_PREFIX}{token}"


def compose_headers(
    defaults: Optional[HeaderInput] = None,
    token: Optional[str] = None,
    overrides: Optional[HeaderInput] = None,
) -> Optional[dict[str, str]]:
    """Merge the three header layers into a plain dict.

    Returns:
        A dict with lower-cased header names, or ``None`` when no header
        was produced at all.
    """
    headers = httpx.Headers()
    merge_into_headers(headers, defaults)
    if token:
        headers["Authorization"] = authorization_value(token)
    merge_into_headers(headers, overrides)

    if not headers:
        return None
    return dict(headers.items())
