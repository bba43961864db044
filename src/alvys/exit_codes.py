"""Numeric process exit codes used by the ``alvys`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~alvys.exceptions.AlvysError` subclass.
Shell wrappers and CI jobs can inspect the exit code to tell a missing
credential from a rejected one without parsing stderr.

Example::

    $ alvys token
    $ echo $?
    4   # EXIT_CONFIG_ERROR -- no client credentials configured
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the API answered with an error body."""

EXIT_INVALID_USAGE = 2
"""The command or client method was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""An access token could not be produced."""

EXIT_CONFIG_ERROR = 4
"""Required configuration (client id, client secret, settings file) is missing or invalid."""

EXIT_TOKEN_ENDPOINT_ERROR = 5
"""The token endpoint failed or returned a malformed response."""

EXIT_TRANSPORT_MISSING = 6
"""No HTTP transport is available to send requests."""
