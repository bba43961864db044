"""Tests for alvys.config -- XDG paths, atomic writes, settings, credential sources."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from alvys.config import (
    _atomic_write,
    env_from_mapping,
    get_config_dir,
    load_settings,
    no_env,
    process_env,
    resolve_credential,
    save_settings,
    settings_path,
)
from alvys.exceptions import ConfigurationError
from alvys.models import ClientSettings


# ---------------------------------------------------------------------------
# Environment readers
# ---------------------------------------------------------------------------


class TestEnvReaders:
    def test_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ALVYS_CLIENT_ID", "from-process")
        assert process_env("ALVYS_CLIENT_ID") == "from-process"

    def test_no_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ALVYS_CLIENT_ID", "from-process")
        assert no_env("ALVYS_CLIENT_ID") is None

    def test_env_from_mapping_is_a_snapshot(self) -> None:
        values = {"ALVYS_TOKEN": "t"}
        env = env_from_mapping(values)
        values["ALVYS_TOKEN"] = "changed"
        assert env("ALVYS_TOKEN") == "t"
        assert env("ALVYS_CLIENT_ID") is None


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_custom(self, isolated_env: Path) -> None:
        result = get_config_dir()
        assert result == isolated_env / "alvys"
        assert result.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".config" / "alvys"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("alvys.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".alvys"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        target.write_text("old", encoding="utf-8")
        _atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        with patch("alvys.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_missing_file_gives_defaults(self) -> None:
        settings = load_settings()
        assert settings == ClientSettings()
        assert settings.timeout == 30.0

    def test_save_then_load(self) -> None:
        save_settings(
            ClientSettings(client_id_source="env:MY_ID", scope=["loads:read"], timeout=5)
        )

        loaded = load_settings()
        assert loaded.client_id_source == "env:MY_ID"
        assert loaded.scope == ["loads:read"]
        assert loaded.timeout == 5.0

    def test_save_omits_unset_fields(self) -> None:
        save_settings(ClientSettings(base_url="https://sandbox.alvys.test"))

        data = json.loads(settings_path().read_text(encoding="utf-8"))
        assert data == {"base_url": "https://sandbox.alvys.test", "timeout": 30.0}

    def test_invalid_json(self) -> None:
        settings_path().write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings()

    def test_invalid_schema(self) -> None:
        settings_path().write_text(json.dumps({"timeout": -1}), encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings()


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "secret123")
        assert resolve_credential("env:MY_SECRET") == "secret123"

    def test_env_source_with_injected_reader(self) -> None:
        env = env_from_mapping({"MY_SECRET": "injected"})
        assert resolve_credential("env:MY_SECRET", env=env) == "injected"

    def test_env_source_missing_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR", env=no_env)

    def test_env_source_empty_value(self) -> None:
        assert resolve_credential("env:EMPTY", env=env_from_mapping({"EMPTY": ""})) == ""

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_file_source_unreadable_raises(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "unreadable.txt"
        cred_file.write_text("secret", encoding="utf-8")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigurationError, match="Cannot read"):
                resolve_credential(f"file:{cred_file}")

    def test_file_source_home_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / ".secret").write_text("expanded-secret", encoding="utf-8")

        assert resolve_credential("file:~/.secret") == "expanded-secret"

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "user-typed-secret")

        assert resolve_credential("prompt") == "user-typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)

        with pytest.raises(ConfigurationError, match="not a TTY"):
            resolve_credential("prompt")

    def test_literal_value(self) -> None:
        assert resolve_credential("plain-client-id") == "plain-client-id"
