"""Shared pytest fixtures for cratemap tests.

This module provides reusable fixtures for:
- A source tree with a fake ``cargo`` executable that serves per-root payloads
- Fresh interner/registry/builder instances per test
- Structured log capture grouped by operation
"""

from __future__ import annotations

import logging
import stat
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from cratemap.builder import GraphBuilder
from cratemap.interning import Interner
from cratemap.registry import CrateRegistry

if TYPE_CHECKING:
    from _pytest.logging import LogCaptureFixture

_FAKE_CARGO = """#!/bin/sh
printf '%s\\n' "$*" >> "{log}"
if [ "$1" != "metadata" ]; then
    echo "error: unexpected subcommand $1" >&2
    exit 2
fi
dir=$(dirname "$5")
if [ ! -f "$dir/metadata.json" ]; then
    echo "error: manifest path $5 does not exist" >&2
    exit 101
fi
cat "$dir/metadata.json"
"""


@dataclass(slots=True)
class FakeWorkspace:
    """Source tree whose roots each carry a ``metadata.json`` served by a fake cargo."""

    src_dir: Path
    cargo: Path
    log: Path

    def add_root(self, root: str, payload: str | bytes) -> Path:
        root_dir = self.src_dir / root
        root_dir.mkdir(parents=True, exist_ok=True)
        (root_dir / "Cargo.toml").write_text("[workspace]\n", encoding="utf-8")
        if isinstance(payload, bytes):
            (root_dir / "metadata.json").write_bytes(payload)
        else:
            (root_dir / "metadata.json").write_text(payload, encoding="utf-8")
        return root_dir

    def invocations(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def fake_workspace(tmp_path: Path) -> FakeWorkspace:
    """Provide a source tree and an executable fake ``cargo`` script."""
    src_dir = tmp_path / "src-tree"
    src_dir.mkdir()
    log = tmp_path / "cargo-invocations.log"
    cargo = tmp_path / "bin" / "cargo"
    cargo.parent.mkdir()
    cargo.write_text(_FAKE_CARGO.format(log=log), encoding="utf-8")
    cargo.chmod(cargo.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return FakeWorkspace(src_dir=src_dir, cargo=cargo, log=log)


@pytest.fixture
def interner() -> Interner:
    return Interner()


@pytest.fixture
def registry() -> CrateRegistry:
    return CrateRegistry()


@pytest.fixture
def builder(interner: Interner) -> GraphBuilder:
    return GraphBuilder(interner)


@pytest.fixture
def caplog_records(caplog: LogCaptureFixture) -> Callable[[], dict[str, list[logging.LogRecord]]]:
    """Return a collector grouping captured log records by their ``operation`` field."""
    caplog.set_level(logging.DEBUG)

    def _collect_records() -> dict[str, list[logging.LogRecord]]:
        records_by_op: dict[str, list[logging.LogRecord]] = {}
        for record in caplog.records:
            op_obj = record.__dict__.get("operation", "unknown")
            op = op_obj if isinstance(op_obj, str) else "unknown"
            records_by_op.setdefault(op, []).append(record)
        return records_by_op

    return _collect_records
