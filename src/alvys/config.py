"""Constants, environment lookups, credential sources and persisted settings.

This module holds everything alvys knows about its surroundings:

* **Constants** -- the API base URL, token endpoint, public audience and
  token lifetime defaults.
* **Environment reader** -- :data:`EnvReader` is a plain
  ``(name) -> Optional[str]`` callable. Library code receives one by
  injection; :func:`process_env` (the real ``os.environ``) is only the
  default at the outermost layer, and :func:`env_from_mapping` builds one
  from a dict for tests.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files or an interactive prompt.
* **Settings** -- a single :class:`~alvys.models.ClientSettings` JSON file
  in the XDG config directory, written atomically via
  :func:`_atomic_write`.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Optional

from alvys.exceptions import ConfigurationError
from alvys.models import ClientSettings

DEFAULT_BASE_URL = "https://integrations.alvys.com"
AUTH_TOKEN_URL = "https://auth.alvys.com/oauth/token"
PUBLIC_API_AUDIENCE = "https://api.alvys.com/public/"

TOKEN_DEFAULT_EXPIRES_IN_SECONDS = 60 * 60
TOKEN_EXPIRATION_BUFFER_MS = 60_000
TOKEN_MIN_TTL_MS = 5_000

ENV_TOKEN = "ALVYS_TOKEN"
ENV_CLIENT_ID = "ALVYS_CLIENT_ID"
ENV_CLIENT_SECRET = "ALVYS_CLIENT_SECRET"
ENV_BASE_URL = "ALVYS_BASE_URL"

_APP_NAME = "alvys"
_CONFIG_FILENAME = "config.json"

EnvReader = Callable[[str], Optional[str]]


# --- Environment readers ---


def process_env(name: str) -> Optional[str]:
    """Read *name* from the real process environment."""
    return os.environ.get(name)


def no_env(name: str) -> Optional[str]:
    """An environment reader that never finds anything."""
    return None


def env_from_mapping(values: Mapping[str, str]) -> EnvReader:
    """Build an :data:`EnvReader` backed by a fixed mapping."""
    snapshot = dict(values)
    return snapshot.get


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/alvys/`` (default ``~/.config/alvys/``).
    On macOS/Windows: ``~/.alvys/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> ClientSettings:
    """Load persisted settings from the config directory.

    Returns:
        The deserialised :class:`~alvys.models.ClientSettings`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigurationError: If the file exists but contains invalid JSON or
            fails Pydantic validation.
    """
    path = settings_path()
    if not path.is_file():
        return ClientSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientSettings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: ClientSettings) -> None:
    """Persist *settings* atomically to the config directory."""
    data = settings.model_dump(mode="json", exclude_none=True)
    _atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str, env: EnvReader = process_env) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``VAR_NAME`` through *env*
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts the user interactively (requires a TTY)
        - anything else is returned as a literal value

    Args:
        source: The source descriptor string.
        env: Environment reader used for ``env:`` sources.

    Returns:
        The resolved credential string.

    Raises:
        ConfigurationError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = env(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    return source
