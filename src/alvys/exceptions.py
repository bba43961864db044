"""Exception hierarchy for alvys.

All exceptions inherit from :class:`AlvysError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`alvys.exit_codes`.
The CLI entry point in :func:`alvys.app.main` catches ``AlvysError`` and
exits with the matching code. Library callers catch the specific
subclasses.

Subclass hierarchy::

    AlvysError (exit 1)
    +-- UsageError            (exit 2)
    +-- TransportMissingError (exit 6)
    +-- TokenError            (exit 3)
        +-- ConfigurationError  (exit 4)
        +-- TokenEndpointError  (exit 5)
"""

from __future__ import annotations

from typing import Optional

from alvys.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TOKEN_ENDPOINT_ERROR,
    EXIT_TRANSPORT_MISSING,
)


class AlvysError(Exception):
    """Base exception for all alvys errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`alvys.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(AlvysError):
    """Raised for malformed calls, e.g. a verb method invoked without an endpoint."""

    exit_code = EXIT_INVALID_USAGE


class TransportMissingError(AlvysError):
    """Raised when no request transport was injected and no process default is installed."""

    exit_code = EXIT_TRANSPORT_MISSING


class TokenError(AlvysError):
    """Raised when no usable access token can be produced."""

    exit_code = EXIT_AUTH_FAILURE


class ConfigurationError(TokenError):
    """Raised for missing client credentials or an invalid settings file."""

    exit_code = EXIT_CONFIG_ERROR


class TokenEndpointError(TokenError):
    """Raised when the token endpoint fails or returns a malformed response.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the endpoint, or ``None`` when
            the request never produced a response (network failure).
        body: Best-effort response body text.
    """

    exit_code = EXIT_TOKEN_ENDPOINT_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
