"""Self-refreshing access-token provider for the Alvys public API.

This module provides :class:`AccessTokenProvider`, which performs the
OAuth2 Client Credentials grant (:rfc:`6749` section 4.4) against the
Alvys token endpoint and keeps the resulting token in memory until shortly
before it expires.

Each :meth:`AccessTokenProvider.get_token` call resolves, in order:

1. A *fallback token* (explicit value, factory, or ``ALVYS_TOKEN``). When
   present it is returned as-is on every call and the cache and token
   endpoint are never consulted.
2. The cached :class:`~alvys.models.Credential`, while it is still valid.
3. A refresh. Concurrent callers share a single in-flight refresh task,
   so at most one token-endpoint request is outstanding per provider.

Example::

    provider = AccessTokenProvider(client_id="id", client_secret="secret")
    token = await provider.get_token()

See Also:
    :class:`alvys.client.async_client.AlvysClient`, which accepts the
    provider directly as its ``access_token`` factory.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from alvys.client.transport import Transport, require_transport
from alvys.config import (
    AUTH_TOKEN_URL,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_TOKEN,
    PUBLIC_API_AUDIENCE,
    TOKEN_DEFAULT_EXPIRES_IN_SECONDS,
    TOKEN_EXPIRATION_BUFFER_MS,
    TOKEN_MIN_TTL_MS,
    EnvReader,
    process_env,
)
from alvys.exceptions import ConfigurationError, TokenEndpointError
from alvys.models import Credential, TokenResponse
from alvys.values import ValueOrFactory, resolve_value

logger = logging.getLogger(__name__)

_NO_BODY = "<no body>"


def compute_ttl_ms(expires_in: Optional[float], expiration_buffer_ms: float) -> float:
    """Return how long (ms) a freshly issued token may be served from cache.

    A missing lifetime defaults to one hour. The result never drops below
    five seconds, however aggressive the buffer.
    """
    seconds = expires_in if expires_in is not None else TOKEN_DEFAULT_EXPIRES_IN_SECONDS
    return max(TOKEN_MIN_TTL_MS, seconds * 1000 - expiration_buffer_ms)


class AccessTokenProvider:
    """Fetch, cache and refresh Alvys access tokens.

    Args:
        client_id: Client id, or a (possibly async) factory returning it.
            Falls back to ``ALVYS_CLIENT_ID``.
        client_secret: Client secret, or a factory. Falls back to
            ``ALVYS_CLIENT_SECRET``.
        fallback_token: Manual token that short-circuits everything else.
            Falls back to ``ALVYS_TOKEN``.
        audience: Token audience. Defaults to the public API audience.
        scope: Scope string, or a list joined with single spaces.
        expiration_buffer_ms: How early to refresh before the remote
            expiry. Defaults to one minute.
        transport: Coroutine function shaped like
            :meth:`httpx.AsyncClient.request`. Defaults to the process-wide
            transport at refresh time.
        env: Environment reader used for the fallbacks above.
        clock: Monotonic clock in seconds; injectable for tests.
        token_url: Token endpoint URL.
    """

    def __init__(
        self,
        client_id: Optional[ValueOrFactory[Optional[str]]] = None,
        client_secret: Optional[ValueOrFactory[Optional[str]]] = None,
        fallback_token: Optional[ValueOrFactory[Optional[str]]] = None,
        audience: Optional[str] = None,
        scope: Union[str, Sequence[str], None] = None,
        expiration_buffer_ms: Optional[float] = None,
        transport: Optional[Transport] = None,
        env: EnvReader = process_env,
        clock: Callable[[], float] = time.monotonic,
        token_url: str = AUTH_TOKEN_URL,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._fallback_token = fallback_token
        self._audience = audience or PUBLIC_API_AUDIENCE
        self._scope = " ".join(scope) if isinstance(scope, (list, tuple)) else scope
        self._expiration_buffer_ms = (
            TOKEN_EXPIRATION_BUFFER_MS if expiration_buffer_ms is None else expiration_buffer_ms
        )
        self._transport = transport
        self._env = env
        self._clock = clock
        self._token_url = token_url

        self._credential: Optional[Credential] = None
        self._in_flight: Optional[asyncio.Task[str]] = None

    async def __call__(self) -> str:
        return await self.get_token()

    @property
    def credential(self) -> Optional[Credential]:
        """The cached credential, valid or not."""
        return self._credential

    @property
    def refreshing(self) -> bool:
        """Whether a refresh is currently in flight."""
        return self._in_flight is not None

    def invalidate(self) -> None:
        """Drop the cached credential so the next call refreshes."""
        self._credential = None

    async def get_token(self) -> str:
        """Return a usable bearer token.

        Raises:
            ConfigurationError: Client credentials are missing.
            TokenEndpointError: The token endpoint failed or answered with a
                malformed body.
            TransportMissingError: No transport is available.
        """
        fallback = await self._resolve(self._fallback_token, ENV_TOKEN)
        if fallback:
            return fallback

        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            logger.debug("Using cached Alvys access token")
            return credential.token

        task = self._in_flight
        if task is None:
            task = asyncio.ensure_future(self._refresh())
            self._in_flight = task
        else:
            logger.debug("Joining in-flight Alvys token refresh")

        # A waiter that gets cancelled must not cancel the shared refresh.
        return await asyncio.shield(task)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    async def _refresh(self) -> str:
        try:
            credential = await self._request_token()
        except Exception:
            self._credential = None
            raise
        finally:
            self._in_flight = None
        self._credential = credential
        return credential.token

    async def _request_token(self) -> Credential:
        transport = require_transport(self._transport, "retrieve Alvys access tokens")

        client_id, client_secret = await asyncio.gather(
            self._resolve(self._client_id, ENV_CLIENT_ID),
            self._resolve(self._client_secret, ENV_CLIENT_SECRET),
        )
        if not client_id or not client_secret:
            raise ConfigurationError(
                f"Missing Alvys client credentials. Set {ENV_CLIENT_ID}/{ENV_CLIENT_SECRET} "
                "or pass client_id/client_secret to AccessTokenProvider()."
            )

        payload: dict[str, str] = {
            "client_id": client_id,
            "client_secret": client_secret,
            "audience": self._audience,
            "grant_type": "client_credentials",
        }
        if self._scope:
            payload["scope"] = self._scope

        logger.debug("Requesting Alvys access token from %s", self._token_url)
        try:
            response = await transport(
                "POST",
                self._token_url,
                headers={"content-type": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as exc:
            logger.warning("Alvys token request failed: %s", exc)
            raise TokenEndpointError(f"Failed to retrieve Alvys access token: {exc}") from exc

        if not response.is_success:
            body = await _read_body_text(response)
            status_line = f"{response.status_code} {response.reason_phrase or ''}".strip()
            logger.warning("Alvys token endpoint returned HTTP %s", status_line)
            raise TokenEndpointError(
                f"Failed to retrieve Alvys access token ({status_line}): {body}",
                status_code=response.status_code,
                body=body,
            )

        token_response = await _parse_token_response(response)
        ttl_ms = compute_ttl_ms(token_response.expires_in, self._expiration_buffer_ms)
        credential = Credential(
            token=token_response.access_token,
            expires_at=self._clock() + ttl_ms / 1000,
        )
        logger.debug("Cached Alvys access token for %.0f s", ttl_ms / 1000)
        return credential

    async def _resolve(self, value: Any, env_name: str) -> Optional[str]:
        resolved = await resolve_value(value)
        if resolved is None:
            return self._env(env_name)
        return resolved


async def _read_body_text(response: httpx.Response) -> str:
    """Best-effort body text for error messages."""
    try:
        await response.aread()
        return response.text
    except (httpx.HTTPError, httpx.StreamError):
        return _NO_BODY


async def _parse_token_response(response: httpx.Response) -> TokenResponse:
    """Decode a 2xx token response, raising on anything without an access token."""
    try:
        await response.aread()
        data = response.json()
    except (httpx.HTTPError, httpx.StreamError, ValueError) as exc:
        raise TokenEndpointError(
            "The Alvys token endpoint returned a body that is not valid JSON.",
            status_code=response.status_code,
        ) from exc

    if not isinstance(data, dict):
        raise TokenEndpointError(
            "The Alvys token endpoint returned an unexpected JSON document.",
            status_code=response.status_code,
        )
    try:
        token_response = TokenResponse.model_validate(data)
    except ValidationError as exc:
        raise TokenEndpointError(
            f"The Alvys token endpoint returned a malformed token response: {exc}",
            status_code=response.status_code,
        ) from exc

    if not token_response.access_token:
        raise TokenEndpointError(
            "The Alvys token endpoint did not return an access_token.",
            status_code=response.status_code,
        )
    return token_response
