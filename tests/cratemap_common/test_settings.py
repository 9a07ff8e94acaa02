"""Tests for cratemap_common.settings.

Tests cover defaults, environment variable overrides, validation failures and
manifest path derivation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cratemap_common.errors import ErrorCode, SettingsError
from cratemap_common.settings import DEFAULT_CRATE_ROOTS, ResolverSettings, load_settings


class TestResolverSettings:
    """Tests for ResolverSettings."""

    def test_defaults(self) -> None:
        """ResolverSettings uses correct defaults."""
        settings = load_settings()
        assert settings.cargo == "cargo"
        assert settings.crate_roots == DEFAULT_CRATE_ROOTS
        assert settings.manifest_name == "Cargo.toml"
        assert settings.format_version == 1
        assert settings.timeout_seconds is None
        assert settings.parallel is False
        assert settings.on_conflict == "error"
        assert settings.src_dir == Path.cwd()

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """ResolverSettings loads from CRATEMAP_* environment variables."""
        monkeypatch.setenv("CRATEMAP_CARGO", "/opt/rust/bin/cargo")
        monkeypatch.setenv("CRATEMAP_SRC_DIR", str(tmp_path))
        monkeypatch.setenv("CRATEMAP_TIMEOUT_SECONDS", "120")
        monkeypatch.setenv("CRATEMAP_CRATE_ROOTS", '["src/libstd"]')
        monkeypatch.setenv("CRATEMAP_ON_CONFLICT", "last-write-wins")

        settings = ResolverSettings()

        assert settings.cargo == "/opt/rust/bin/cargo"
        assert settings.src_dir == tmp_path
        assert settings.timeout_seconds == 120
        assert settings.crate_roots == ("src/libstd",)
        assert settings.on_conflict == "last-write-wins"

    def test_overrides_beat_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRATEMAP_CARGO", "from-env")

        assert load_settings(cargo="from-override").cargo == "from-override"

    def test_manifest_for_relative_root(self, tmp_path: Path) -> None:
        settings = load_settings(src_dir=tmp_path)
        assert settings.manifest_for("src/libtest") == tmp_path / "src" / "libtest" / "Cargo.toml"

    def test_manifest_for_absolute_root(self, tmp_path: Path) -> None:
        settings = load_settings(src_dir=tmp_path / "tree", manifest_name="Manifest.toml")
        assert settings.manifest_for(tmp_path / "other") == tmp_path / "other" / "Manifest.toml"


class TestLoadSettings:
    """Tests for load_settings validation failures."""

    @pytest.mark.parametrize("timeout", [0, 3601])
    def test_timeout_out_of_bounds(self, timeout: int) -> None:
        with pytest.raises(SettingsError, match="timeout_seconds") as exc_info:
            load_settings(timeout_seconds=timeout)
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR

    def test_unknown_policy(self) -> None:
        with pytest.raises(SettingsError):
            load_settings(on_conflict="first-wins")

    def test_empty_roots(self) -> None:
        with pytest.raises(SettingsError, match="at least one package root"):
            load_settings(crate_roots=())

    def test_unknown_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRATEMAP_LOG_LEVEL", "LOUD")

        with pytest.raises(SettingsError, match="log_level"):
            load_settings()

    def test_log_level_is_normalised(self) -> None:
        assert load_settings(log_level="debug").log_level == "DEBUG"

    def test_extra_fields_forbidden(self) -> None:
        """load_settings rejects unknown fields."""
        with pytest.raises(SettingsError, match="Extra inputs are not permitted"):
            load_settings(unknown_field="value")

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRATEMAP_PARALLEL", "sometimes")

        with pytest.raises(SettingsError) as exc_info:
            load_settings()

        assert "validation_error" in exc_info.value.context
        assert exc_info.value.__cause__ is not None
