"""HTTP client layer: transport, header composition, executor and client."""

from alvys.client.async_client import AlvysClient
from alvys.client.executor import (
    HTTP_METHODS,
    BodySerializer,
    HttpxExecutor,
    QuerySerializer,
    RequestExecutor,
)
from alvys.client.headers import compose_headers
from alvys.client.response import FetchResult
from alvys.client.transport import (
    Transport,
    get_default_transport,
    httpx_transport,
    reset_default_transport,
    set_default_transport,
)

__all__ = [
    "AlvysClient",
    "BodySerializer",
    "FetchResult",
    "HTTP_METHODS",
    "HttpxExecutor",
    "QuerySerializer",
    "RequestExecutor",
    "Transport",
    "compose_headers",
    "get_default_transport",
    "httpx_transport",
    "reset_default_transport",
    "set_default_transport",
]
