"""Tests for the ``cratemap`` command-line driver."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from cratemap.cli import app
from tests.helpers.cargo_metadata import metadata_json, package

if TYPE_CHECKING:
    from tests.conftest import FakeWorkspace

_QUIET = {"CRATEMAP_LOG_LEVEL": "WARNING"}


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _base_args(workspace: FakeWorkspace) -> list[str]:
    return ["resolve", "--src", str(workspace.src_dir), "--cargo", str(workspace.cargo)]


def _populate(workspace: FakeWorkspace) -> None:
    src = workspace.src_dir
    workspace.add_root(
        "src/libstd",
        metadata_json(
            [
                package("std", manifest_dir=f"{src}/src/libstd"),
                package("core", manifest_dir=f"{src}/src/libcore"),
            ],
            {"std#0.0.0": ["core#0.0.0"], "core#0.0.0": []},
        ),
    )


class TestResolveCommand:
    def test_prints_registry_json(self, runner: CliRunner, fake_workspace: FakeWorkspace) -> None:
        _populate(fake_workspace)

        result = runner.invoke(
            app, [*_base_args(fake_workspace), "--root", "src/libstd"], env=_QUIET
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["count"] == 2
        assert [crate["name"] for crate in payload["crates"]] == ["core", "std"]
        assert payload["crates"][1]["deps"] == ["core"]

    def test_writes_output_file(
        self, runner: CliRunner, fake_workspace: FakeWorkspace, tmp_path: Path
    ) -> None:
        _populate(fake_workspace)
        target = tmp_path / "out" / "crates.json"

        result = runner.invoke(
            app,
            [*_base_args(fake_workspace), "--root", "src/libstd", "--output", str(target)],
            env=_QUIET,
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(target.read_text(encoding="utf-8"))
        assert payload["crates"][0]["build_step"] == "build-crate-core"

    def test_parallel_flag(self, runner: CliRunner, fake_workspace: FakeWorkspace) -> None:
        _populate(fake_workspace)
        src = fake_workspace.src_dir
        fake_workspace.add_root(
            "src/libtest",
            metadata_json(
                [package("test", manifest_dir=f"{src}/src/libtest")], {"test#0.0.0": []}
            ),
        )

        result = runner.invoke(
            app,
            [
                *_base_args(fake_workspace),
                "--root",
                "src/libstd",
                "--root",
                "src/libtest",
                "--parallel",
            ],
            env=_QUIET,
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["count"] == 3

    def test_failure_exits_non_zero(self, runner: CliRunner, fake_workspace: FakeWorkspace) -> None:
        result = runner.invoke(
            app, [*_base_args(fake_workspace), "--root", "src/libstd"], env=_QUIET
        )

        assert result.exit_code == 1
        assert "ResolutionError" in result.output
        assert "src/libstd" in result.output

    def test_invalid_timeout_is_a_configuration_error(
        self, runner: CliRunner, fake_workspace: FakeWorkspace
    ) -> None:
        result = runner.invoke(
            app, [*_base_args(fake_workspace), "--timeout", "0"], env=_QUIET
        )

        assert result.exit_code == 1
        assert "SettingsError" in result.output

    def test_unknown_log_level_is_a_configuration_error(
        self, runner: CliRunner, fake_workspace: FakeWorkspace
    ) -> None:
        result = runner.invoke(
            app, _base_args(fake_workspace), env={"CRATEMAP_LOG_LEVEL": "LOUD"}
        )

        assert result.exit_code == 1
        assert "SettingsError" in result.output

    def test_no_arguments_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])

        assert "resolve" in result.output
