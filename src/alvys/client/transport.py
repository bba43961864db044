"""Request transport capability.

A *transport* is any coroutine function with the shape of
:meth:`httpx.AsyncClient.request`::

    async def transport(method: str, url: str, **kwargs) -> httpx.Response

so a bound ``httpx.AsyncClient(...).request`` can be injected as-is. When
nothing is injected, components fall back to the process-wide default
returned by :func:`get_default_transport`. Removing that default with
``set_default_transport(None)`` makes construction fail with
:class:`~alvys.exceptions.TransportMissingError`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx

from alvys.exceptions import TransportMissingError

Transport = Callable[..., Awaitable[httpx.Response]]

DEFAULT_TIMEOUT = 30.0


async def httpx_transport(method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Send one request through a short-lived :class:`httpx.AsyncClient`.

    The response body is read before the client closes.
    """
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True) as client:
        response = await client.request(method, url, **kwargs)
        await response.aread()
        return response


_default_transport: Optional[Transport] = httpx_transport


def get_default_transport() -> Optional[Transport]:
    """Return the process-wide default transport, or ``None`` if removed."""
    return _default_transport


def set_default_transport(transport: Optional[Transport]) -> None:
    """Install *transport* as the process-wide default (``None`` removes it)."""
    global _default_transport
    _default_transport = transport


def reset_default_transport() -> None:
    """Restore :func:`httpx_transport` as the default. Mainly for tests."""
    set_default_transport(httpx_transport)


def require_transport(transport: Optional[Transport], purpose: str) -> Transport:
    """Return *transport*, or the default, or raise :class:`TransportMissingError`.

    Args:
        transport: Explicitly injected transport, if any.
        purpose: Short description used in the error message.
    """
    candidate = transport if transport is not None else get_default_transport()
    if not callable(candidate):
        raise TransportMissingError(
            f"A request transport is required to {purpose}. Pass transport= "
            "(for example httpx.AsyncClient().request) or install one with "
            "alvys.set_default_transport()."
        )
    return candidate
