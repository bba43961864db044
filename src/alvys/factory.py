"""Outermost composition layer: a client wired to a token provider."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Union

from alvys.auth.token_provider import AccessTokenProvider
from alvys.client.async_client import AlvysClient
from alvys.client.executor import BodySerializer, QuerySerializer, RequestExecutor
from alvys.client.headers import HeaderInput
from alvys.client.transport import Transport
from alvys.config import EnvReader, process_env
from alvys.values import ValueOrFactory


def create_alvys_client(
    base_url: Optional[str] = None,
    client_id: Optional[ValueOrFactory[Optional[str]]] = None,
    client_secret: Optional[ValueOrFactory[Optional[str]]] = None,
    access_token: Optional[ValueOrFactory[Optional[str]]] = None,
    audience: Optional[str] = None,
    scope: Union[str, Sequence[str], None] = None,
    default_headers: Optional[ValueOrFactory[Optional[HeaderInput]]] = None,
    transport: Optional[Transport] = None,
    executor: Optional[RequestExecutor] = None,
    query_serializer: Optional[QuerySerializer] = None,
    body_serializer: Optional[BodySerializer] = None,
    env: EnvReader = process_env,
) -> AlvysClient:
    """Build an :class:`AlvysClient` that authenticates itself.

    Unless *access_token* is given, an
    :class:`~alvys.auth.token_provider.AccessTokenProvider` reading
    ``ALVYS_TOKEN``, ``ALVYS_CLIENT_ID`` and ``ALVYS_CLIENT_SECRET`` through
    *env* becomes the client's token factory.
    """
    if access_token is None:
        access_token = AccessTokenProvider(
            client_id=client_id,
            client_secret=client_secret,
            audience=audience,
            scope=scope,
            transport=transport,
            env=env,
        )
    return AlvysClient(
        base_url=base_url,
        transport=transport,
        access_token=access_token,
        default_headers=default_headers,
        executor=executor,
        query_serializer=query_serializer,
        body_serializer=body_serializer,
    )
