"""Default request executor.

:class:`~alvys.client.async_client.AlvysClient` only composes headers; the
request itself is performed by an *executor* exposing one coroutine per
HTTP verb, each called as ``await executor.get(path, options)``.
:class:`HttpxExecutor` is the built-in implementation. It sends requests
through a transport (see :mod:`alvys.client.transport`) and wraps every
response in a :class:`~alvys.client.response.FetchResult`.

Supported option keys::

    {
        "params": {"path": {"id": "L-1"}, "query": {"page": 2}},
        "body": {...},            # JSON body
        "headers": {...},         # request headers
        "parse_as": "json",       # json | text | bytes | stream
        "query_serializer": fn,   # per-call override, see below
        "body_serializer": fn,
    }

By default the query goes through httpx ``params=`` and the body through
``json=``. A *query serializer* turns the query mapping into the string
that follows ``?``; a *body serializer* turns the body into the raw
``str`` or ``bytes`` content. With a custom body serializer no
``Content-Type`` is added; pass one in ``headers`` if the API needs it.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any, Optional, Protocol, Union
from urllib.parse import quote

import httpx

from alvys.client.response import PARSE_MODES, FetchResult, build_result
from alvys.client.transport import Transport
from alvys.exceptions import UsageError

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

HTTP_METHODS = ("GET", "PUT", "POST", "PATCH", "DELETE", "OPTIONS", "HEAD")

QuerySerializer = Callable[[Mapping[str, Any]], str]
BodySerializer = Callable[[Any], Union[str, bytes]]


class RequestExecutor(Protocol):
    """One coroutine per HTTP verb, each taking ``(path, options=None)``."""

    async def get(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def put(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def post(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def patch(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def delete(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def options(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def head(self, path: str, options: Optional[Mapping[str, Any]] = None) -> Any: ...


def expand_path(path: str, path_params: Optional[Mapping[str, Any]]) -> str:
    """Substitute ``{name}`` placeholders in *path* with URL-quoted values.

    Raises:
        UsageError: If a placeholder has no value.
    """
    params = path_params or {}

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if params.get(name) is None:
            raise UsageError(f"Missing path parameter '{name}' for {path}")
        return quote(str(params[name]), safe="")

    return _PLACEHOLDER.sub(_replace, path)


class HttpxExecutor:
    """Execute API calls through a transport and return :class:`FetchResult` objects.

    Args:
        base_url: Prefix for every request path.
        transport: Coroutine function shaped like
            :meth:`httpx.AsyncClient.request`.
        query_serializer: Builds the query string from the query mapping.
        body_serializer: Encodes the body into raw request content.
    """

    def __init__(
        self,
        base_url: str,
        transport: Transport,
        query_serializer: Optional[QuerySerializer] = None,
        body_serializer: Optional[BodySerializer] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._query_serializer = query_serializer
        self._body_serializer = body_serializer

    async def request(
        self,
        method: str,
        path: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> FetchResult:
        """Send *method* to *path* and wrap the response."""
        opts = dict(options or {})
        params = opts.get("params") or {}
        parse_as = opts.get("parse_as") or "json"
        if parse_as not in PARSE_MODES:
            raise UsageError(f"Unsupported parse_as '{parse_as}'; expected one of {', '.join(PARSE_MODES)}")

        if path.startswith(("http://", "https://")):
            url = expand_path(path, params.get("path"))
        else:
            url = f"{self.base_url}/{expand_path(path, params.get('path')).lstrip('/')}"

        kwargs: dict[str, Any] = {}
        query = {k: v for k, v in (params.get("query") or {}).items() if v is not None}
        query_serializer = opts.get("query_serializer") or self._query_serializer
        if query and query_serializer is not None:
            query_string = query_serializer(query).lstrip("?")
            if query_string:
                separator = "&" if "?" in url else "?"
                url = f"{url}{separator}{query_string}"
        elif query:
            kwargs["params"] = query
        if opts.get("headers"):
            kwargs["headers"] = opts["headers"]
        if opts.get("body") is not None:
            body_serializer = opts.get("body_serializer") or self._body_serializer
            if body_serializer is not None:
                kwargs["content"] = body_serializer(opts["body"])
            else:
                kwargs["json"] = opts["body"]

        response: httpx.Response = await self._transport(method, url, **kwargs)
        return build_result(response, parse_as)

    async def get(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("GET", path, options)

    async def put(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("PUT", path, options)

    async def post(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("POST", path, options)

    async def patch(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("PATCH", path, options)

    async def delete(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("DELETE", path, options)

    async def options(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("OPTIONS", path, options)

    async def head(self, path: str, options: Optional[Mapping[str, Any]] = None) -> FetchResult:
        return await self.request("HEAD", path, options)
