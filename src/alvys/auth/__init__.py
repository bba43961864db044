"""Access-token acquisition for the Alvys public API.

Re-exports :class:`~alvys.auth.token_provider.AccessTokenProvider` and
:func:`create_access_token_provider`, a keyword-only convenience factory.
"""

from __future__ import annotations

from typing import Any

from alvys.auth.token_provider import AccessTokenProvider, compute_ttl_ms


def create_access_token_provider(**options: Any) -> AccessTokenProvider:
    """Build an :class:`AccessTokenProvider` from keyword options.

    The returned provider is awaitable-callable, so it can be handed to
    :class:`~alvys.client.AlvysClient` as ``access_token``.
    """
    return AccessTokenProvider(**options)


__all__ = ["AccessTokenProvider", "compute_ttl_ms", "create_access_token_provider"]
