"""Typer application and CLI entry point for alvys.

Commands:

* ``alvys token`` -- print an access token (manual token, cached, or freshly
  issued through the client-credentials grant).
* ``alvys request METHOD PATH`` -- call the API with an automatically
  authenticated client and print the response body.
* ``alvys config show|set`` -- inspect or update persisted settings.

Configuration precedence for every command is: CLI flags, then
environment variables, then the settings file, then built-in defaults.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import typer

from alvys import __version__
from alvys.exceptions import AlvysError, UsageError
from alvys.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

T = TypeVar("T")

app = typer.Typer(
    name="alvys",
    help="Authenticated access to the Alvys public API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Settings management.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"alvys {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise the global output manager and library logging from flags."""
    from alvys.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        package_logger = logging.getLogger("alvys")
        package_logger.handlers = [handler]
        package_logger.setLevel(logging.DEBUG)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _run(make_coro: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine, turning :class:`AlvysError` into a clean exit."""
    from alvys.output import error

    try:
        return asyncio.run(make_coro())
    except AlvysError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _pick_credential(flag_source: Optional[str], env_name: str, setting_source: Optional[str]) -> Optional[str]:
    """Resolve a credential honouring flag > environment > settings.

    Returns ``None`` when the environment should be consulted by the token
    provider itself, or when nothing is configured.
    """
    from alvys.config import process_env, resolve_credential

    if flag_source:
        return resolve_credential(flag_source)
    if process_env(env_name):
        return None
    if setting_source:
        return resolve_credential(setting_source)
    return None


def _parse_pairs(values: Optional[list[str]], separator: str, option: str) -> dict[str, str]:
    """Parse ``key<sep>value`` option values into a dict."""
    pairs: dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition(separator)
        if not sep or not key.strip():
            raise UsageError(f"Invalid {option} value '{raw}', expected key{separator}value")
        pairs[key.strip()] = value.strip()
    return pairs


def _build_provider(
    client_id_source: Optional[str],
    client_secret_source: Optional[str],
    token_source: Optional[str],
    audience: Optional[str],
    scope: Optional[list[str]],
) -> Any:
    from alvys.auth import AccessTokenProvider
    from alvys.config import ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_TOKEN, load_settings

    settings = load_settings()
    return AccessTokenProvider(
        client_id=_pick_credential(client_id_source, ENV_CLIENT_ID, settings.client_id_source),
        client_secret=_pick_credential(
            client_secret_source, ENV_CLIENT_SECRET, settings.client_secret_source
        ),
        fallback_token=_pick_credential(token_source, ENV_TOKEN, settings.token_source),
        audience=audience or settings.audience,
        scope=scope or settings.scope,
    )


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

_CLIENT_ID_HELP = "Client id source: env:VAR, file:/path, prompt, or a literal."
_CLIENT_SECRET_HELP = "Client secret source: env:VAR, file:/path, prompt, or a literal."
_TOKEN_HELP = "Manual token source; bypasses the token endpoint."


@app.command("token")
def token_command(
    client_id_source: Optional[str] = typer.Option(None, "--client-id-source", help=_CLIENT_ID_HELP),
    client_secret_source: Optional[str] = typer.Option(
        None, "--client-secret-source", help=_CLIENT_SECRET_HELP
    ),
    token_source: Optional[str] = typer.Option(None, "--token-source", help=_TOKEN_HELP),
    audience: Optional[str] = typer.Option(None, "--audience", help="Token audience."),
    scope: Optional[list[str]] = typer.Option(None, "--scope", help="Scope (repeatable)."),
) -> None:
    """Print an access token for the Alvys public API."""
    from alvys.output import print_token

    async def _token() -> str:
        provider = _build_provider(client_id_source, client_secret_source, token_source, audience, scope)
        return await provider.get_token()

    print_token(_run(_token))


@app.command("request")
def request_command(
    method: str = typer.Argument(..., help="HTTP method (GET, POST, ...)."),
    path: str = typer.Argument(..., help="API path, e.g. /api/p/v1/loads/{id}."),
    query: Optional[list[str]] = typer.Option(None, "--query", help="Query parameter key=value (repeatable)."),
    path_param: Optional[list[str]] = typer.Option(
        None, "--path-param", help="Path parameter key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Header 'Name: value' (repeatable)."),
    body: Optional[str] = typer.Option(None, "--body", help="JSON request body."),
    base_url: Optional[str] = typer.Option(None, "--base-url", envvar="ALVYS_BASE_URL", help="API base URL."),
    client_id_source: Optional[str] = typer.Option(None, "--client-id-source", help=_CLIENT_ID_HELP),
    client_secret_source: Optional[str] = typer.Option(
        None, "--client-secret-source", help=_CLIENT_SECRET_HELP
    ),
    token_source: Optional[str] = typer.Option(None, "--token-source", help=_TOKEN_HELP),
) -> None:
    """Send an authenticated request and print the response body."""
    from alvys.client import HTTP_METHODS, AlvysClient
    from alvys.config import load_settings
    from alvys.output import debug, format_response, info

    verb = method.upper()
    if verb not in HTTP_METHODS:
        from alvys.output import error

        error(f"Unsupported method '{method}'. Expected one of: {', '.join(HTTP_METHODS)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    async def _request() -> Any:
        settings = load_settings()
        options: dict[str, Any] = {
            "params": {
                "path": _parse_pairs(path_param, "=", "--path-param"),
                "query": _parse_pairs(query, "=", "--query"),
            },
        }
        headers = _parse_pairs(header, ":", "--header")
        if headers:
            options["headers"] = headers
        if body is not None:
            try:
                options["body"] = json.loads(body)
            except json.JSONDecodeError as exc:
                raise UsageError(f"--body is not valid JSON: {exc}") from exc

        provider = _build_provider(client_id_source, client_secret_source, token_source, None, None)
        client = AlvysClient(
            base_url=base_url or settings.base_url,
            access_token=provider,
            timeout=settings.timeout,
        )
        debug(f"{verb} {client.base_url}{path}")
        async with client:
            return await getattr(client, verb.lower())(path, options)

    result = _run(_request)
    info(f"HTTP {result.response.status_code} {result.response.reason_phrase or ''}".rstrip())
    payload = result.data if result.ok else result.error
    if payload is not None:
        format_response(payload)
    if not result.ok:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


@config_app.command("show")
def config_show() -> None:
    """Print the persisted settings."""
    from alvys.config import load_settings, settings_path
    from alvys.output import format_response, info

    try:
        settings = load_settings()
    except AlvysError as exc:
        from alvys.output import error

        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    info(f"Settings file: {settings_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. client_id_source."),
    value: str = typer.Argument(..., help="New value."),
) -> None:
    """Update one persisted setting."""
    from alvys.config import load_settings, save_settings
    from alvys.models import ClientSettings
    from alvys.output import error, success

    if key not in ClientSettings.model_fields:
        error(f"Unknown setting '{key}'. Known settings: {', '.join(ClientSettings.model_fields)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        current = load_settings().model_dump()
        current[key] = value
        updated = ClientSettings.model_validate(current)
    except AlvysError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    except ValueError as exc:
        error(f"Invalid value for '{key}': {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from exc

    save_settings(updated)
    success(f"Set {key}")


def main() -> None:
    """CLI entry point invoked by the ``alvys`` console script."""
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except AlvysError as exc:
        from alvys.output import error

        error(str(exc))
        sys.exit(exc.exit_code)
