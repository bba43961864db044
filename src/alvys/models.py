"""Pydantic models shared across alvys.

* :class:`Credential` -- the cached bearer token and its local expiry.
* :class:`TokenResponse` -- the JSON body returned by the token endpoint.
* :class:`ClientSettings` -- persisted CLI configuration.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Credential(BaseModel):
    """A cached access token.

    Instances are frozen: a refresh replaces the whole credential rather
    than mutating the one readers may be holding.

    Attributes:
        token: The raw access token (without the ``Bearer`` prefix).
        expires_at: Clock reading (seconds) after which the token is stale.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        """Return ``True`` while *now* is strictly before ``expires_at``."""
        return self.expires_at > now


class TokenResponse(BaseModel):
    """Body of a ``client_credentials`` token endpoint response.

    Unknown fields are preserved in ``model_extra``. An ``expires_in``
    that is not a positive number is treated as absent so the caller can
    apply its default lifetime. ``token_type`` and ``scope`` are kept as
    sent; nothing reads them, so their shape never rejects a response.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    expires_in: Optional[float] = None
    token_type: Any = None
    scope: Any = None

    @field_validator("expires_in", mode="before")
    @classmethod
    def _positive_number_or_none(cls, value: Any) -> Optional[float]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if value <= 0:
            return None
        return float(value)


class ClientSettings(BaseModel):
    """Settings persisted by ``alvys config set``.

    Credential fields hold *source descriptors* understood by
    :func:`~alvys.config.resolve_credential` (``env:VAR``, ``file:/path``,
    ``prompt``), never the secrets themselves.

    Example::

        ClientSettings(
            client_id_source="env:ALVYS_CLIENT_ID",
            client_secret_source="file:~/.secrets/alvys",
            scope=["loads:read"],
        )
    """

    base_url: Optional[str] = Field(default=None, description="API base URL override")
    audience: Optional[str] = Field(default=None, description="Token audience override")
    scope: Union[str, list[str], None] = Field(
        default=None, description="Scope string or list of scopes"
    )
    client_id_source: Optional[str] = None
    client_secret_source: Optional[str] = None
    token_source: Optional[str] = Field(
        default=None, description="Source of a manual token that bypasses the token endpoint"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
