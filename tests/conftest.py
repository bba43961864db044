"""Shared test fixtures for alvys.

Provides a recording transport double, a controllable clock, and
isolation from the real environment, settings directory and global
state (default transport, output manager).
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from alvys.client.transport import reset_default_transport
from alvys.output import set_output


class RecordingTransport:
    """Async transport double shaped like ``httpx.AsyncClient.request``.

    Every call is turned into an :class:`httpx.Request`, recorded in
    :attr:`requests`, and answered by *handler* (sync or async). A handler
    may raise to simulate network failures.
    """

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []
        self.kwargs: list[dict[str, Any]] = []

    async def __call__(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        request = httpx.Request(
            method,
            url,
            params=kwargs.get("params"),
            headers=kwargs.get("headers"),
            content=kwargs.get("content"),
            json=kwargs.get("json"),
        )
        self.requests.append(request)
        self.kwargs.append(kwargs)
        response = self._handler(request)
        if inspect.isawaitable(response):
            response = await response
        response.request = request
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def recording_transport() -> type[RecordingTransport]:
    """The :class:`RecordingTransport` class, for building per-test doubles."""
    return RecordingTransport


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Restore the default transport and output manager after every test."""
    yield
    reset_default_transport()
    set_output(None)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from real credentials and the real settings file.

    Clears all ``ALVYS_*`` variables and points ``XDG_CONFIG_HOME`` at a
    temporary directory.

    Returns:
        The temporary config home.
    """
    for var in ["ALVYS_TOKEN", "ALVYS_CLIENT_ID", "ALVYS_CLIENT_SECRET", "ALVYS_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    config_home = tmp_path / "config"
    monkeypatch.setattr("alvys.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home
