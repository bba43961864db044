"""alvys -- authenticated async client for the Alvys public API.

The package has two moving parts:

* :class:`AccessTokenProvider` obtains OAuth client-credentials tokens,
  caches them until shortly before expiry and coalesces concurrent
  refreshes into one token-endpoint request.
* :class:`AlvysClient` merges default, auth and per-call headers and
  delegates each call to a request executor.

Typical use::

    from alvys import create_alvys_client

    async with create_alvys_client() as client:
        result = await client.get("/api/p/v1/carriers")

Modules:
    auth: Token provider.
    client: Transport, header composition, executor and client.
    config: Constants, environment readers, credential sources, settings.
    exceptions: Error hierarchy with exit-code mapping.
    app: ``alvys`` command line.
"""

__version__ = "0.3.0"

from alvys.auth import AccessTokenProvider, create_access_token_provider
from alvys.client import (
    AlvysClient,
    FetchResult,
    HttpxExecutor,
    get_default_transport,
    set_default_transport,
)
from alvys.config import AUTH_TOKEN_URL, DEFAULT_BASE_URL, PUBLIC_API_AUDIENCE
from alvys.exceptions import (
    AlvysError,
    ConfigurationError,
    TokenEndpointError,
    TokenError,
    TransportMissingError,
    UsageError,
)
from alvys.factory import create_alvys_client

ALVYS_DEFAULT_BASE_URL = DEFAULT_BASE_URL
ALVYS_AUTH_TOKEN_URL = AUTH_TOKEN_URL
ALVYS_PUBLIC_API_AUDIENCE = PUBLIC_API_AUDIENCE

__all__ = [
    "ALVYS_AUTH_TOKEN_URL",
    "ALVYS_DEFAULT_BASE_URL",
    "ALVYS_PUBLIC_API_AUDIENCE",
    "AccessTokenProvider",
    "AlvysClient",
    "AlvysError",
    "ConfigurationError",
    "FetchResult",
    "HttpxExecutor",
    "TokenEndpointError",
    "TokenError",
    "TransportMissingError",
    "UsageError",
    "create_access_token_provider",
    "create_alvys_client",
    "get_default_transport",
    "set_default_transport",
]
