"""Authenticated asynchronous client for the Alvys public API.

:class:`AlvysClient` attaches composed headers to each call and hands the
call to a request executor unchanged: verb, path, body and the shape of
the result are the executor's business. By default the executor is an
:class:`~alvys.client.executor.HttpxExecutor` returning
:class:`~alvys.client.response.FetchResult` objects.

Example::

    provider = AccessTokenProvider(client_id="id", client_secret="secret")
    async with AlvysClient(access_token=provider) as client:
        result = await client.get("/api/p/v1/loads/{id}", {"params": {"path": {"id": "L-1"}}})
        if result.ok:
            print(result.data)

Using the client as an async context manager pools connections in one
:class:`httpx.AsyncClient` when neither a transport nor an executor was
injected; outside a context every request goes through the configured
transport on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from alvys.client.executor import BodySerializer, HttpxExecutor, QuerySerializer, RequestExecutor
from alvys.client.headers import HeaderInput, compose_headers
from alvys.client.transport import Transport, require_transport
from alvys.config import DEFAULT_BASE_URL
from alvys.exceptions import UsageError
from alvys.values import ValueOrFactory, resolve_value

logger = logging.getLogger(__name__)


class AlvysClient:
    """Compose headers per request and delegate to a request executor.

    Args:
        base_url: API base URL. Defaults to the public integrations host.
        transport: Coroutine function shaped like
            :meth:`httpx.AsyncClient.request`. Defaults to the process-wide
            transport.
        access_token: Token string or (async) factory resolved on every
            request, typically an
            :class:`~alvys.auth.token_provider.AccessTokenProvider`.
        default_headers: Headers, or a factory returning headers, applied
            before the auth and per-call headers.
        executor: Custom request executor. Defaults to an
            :class:`~alvys.client.executor.HttpxExecutor`.
        timeout: Timeout (seconds) of the pooled client opened by
            ``async with``.
        query_serializer: Query-string builder for the default executor.
        body_serializer: Body encoder for the default executor.

    Raises:
        TransportMissingError: No transport was injected and no default is
            installed.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        access_token: Optional[ValueOrFactory[Optional[str]]] = None,
        default_headers: Optional[ValueOrFactory[Optional[HeaderInput]]] = None,
        executor: Optional[RequestExecutor] = None,
        timeout: float = 30.0,
        query_serializer: Optional[QuerySerializer] = None,
        body_serializer: Optional[BodySerializer] = None,
    ) -> None:
        self.base_url = base_url or DEFAULT_BASE_URL
        self.transport = require_transport(
            transport, "send Alvys API requests"
        )
        self._pooled = transport is None and executor is None
        self._access_token = access_token
        self._default_headers = default_headers
        self._timeout = timeout
        self._pool: Optional[httpx.AsyncClient] = None
        self.raw: RequestExecutor = executor or HttpxExecutor(
            self.base_url,
            self._send,
            query_serializer=query_serializer,
            body_serializer=body_serializer,
        )

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AlvysClient:
        if self._pooled:
            self._pool = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._pool is not None:
            return await self._pool.request(method, url, **kwargs)
        return await self.transport(method, url, **kwargs)

    # ------------------------------------------------------------------ #
    # Headers
    # ------------------------------------------------------------------ #

    async def build_headers(
        self, request_headers: Optional[HeaderInput] = None
    ) -> Optional[dict[str, str]]:
        """Compose defaults, auth and *request_headers* for one request.

        Returns:
            The merged headers, or ``None`` if there are none.
        """
        defaults = await resolve_value(self._default_headers)
        token = await resolve_value(self._access_token)
        return compose_headers(defaults, token, request_headers)

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    async def _call(self, verb: str, *args: Any) -> Any:
        if not args:
            raise UsageError("An endpoint URL is required.")

        url = args[0]
        options: Optional[Mapping[str, Any]] = args[1] if len(args) > 1 else None
        method = getattr(self.raw, verb)

        headers = await self.build_headers(options.get("headers") if options else None)
        logger.debug("%s %s (%d headers)", verb.upper(), url, len(headers or {}))
        if headers:
            return await method(url, {**(options or {}), "headers": headers})
        if options is None:
            return await method(url)
        return await method(url, options)

    async def get(self, *args: Any) -> Any:
        """Send GET ``(path, options=None)`` through the executor."""
        return await self._call("get", *args)

    async def put(self, *args: Any) -> Any:
        """Send PUT ``(path, options=None)`` through the executor."""
        return await self._call("put", *args)

    async def post(self, *args: Any) -> Any:
        """Send POST ``(path, options=None)`` through the executor."""
        return await self._call("post", *args)

    async def patch(self, *args: Any) -> Any:
        """Send PATCH ``(path, options=None)`` through the executor."""
        return await self._call("patch", *args)

    async def delete(self, *args: Any) -> Any:
        """Send DELETE ``(path, options=None)`` through the executor."""
        return await self._call("delete", *args)

    async def options(self, *args: Any) -> Any:
        """Send OPTIONS ``(path, options=None)`` through the executor."""
        return await self._call("options", *args)

    async def head(self, *args: Any) -> Any:
        """Send HEAD ``(path, options=None)`` through the executor."""
        return await self._call("head", *args)
