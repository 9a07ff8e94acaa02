"""Typed models for ``cargo metadata`` output and crate registry entries.

The ``Raw*`` models mirror the subset of the metadata tool's JSON (format
version 1) that resolution consumes; unknown fields are ignored. :class:`Crate`
is the durable registry entry handed to the build orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Crate",
    "CrateAction",
    "MetadataOutput",
    "RawDependencyNode",
    "RawPackage",
    "RawResolve",
    "task_identifier",
]


class RawPackage(BaseModel):
    """One entry of the tool's flat ``packages`` list."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    version: str
    source: str | None = None
    manifest_path: str

    @property
    def is_local(self) -> bool:
        """Whether the package lives in the workspace (no external source marker)."""
        return self.source is None

    @property
    def crate_root(self) -> Path:
        """Directory containing the package manifest."""
        return Path(self.manifest_path).parent


class RawDependencyNode(BaseModel):
    """A resolution node: one package id and the ids of its direct dependencies."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    dependencies: list[str] = Field(default_factory=list)


class RawResolve(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    nodes: list[RawDependencyNode]


class MetadataOutput(BaseModel):
    """Top-level document printed by ``cargo metadata --format-version 1``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    packages: list[RawPackage]
    resolve: RawResolve


class CrateAction(StrEnum):
    """Actions the orchestrator schedules per crate."""

    BUILD = "build"
    DOC = "doc"
    TEST = "test"
    BENCH = "bench"


def task_identifier(action: CrateAction | str, name: str) -> str:
    """Return the task identifier ``"<action>-crate-<name>"``.

    Examples
    --------
    >>> task_identifier(CrateAction.DOC, "foo")
    'doc-crate-foo'
    """
    return f"{CrateAction(action).value}-crate-{name}"


@dataclass(slots=True)
class Crate:
    """Registry entry for one local crate.

    Attributes
    ----------
    name : str
        Interned crate name; the registry key.
    version : str
        Version string reported by the metadata tool.
    path : Path
        Crate root directory (the manifest's parent).
    deps : list[str]
        Interned names of local direct dependencies, in tool order.
    """

    name: str
    version: str
    path: Path
    deps: list[str] = field(default_factory=list)

    @property
    def build_step(self) -> str:
        return task_identifier(CrateAction.BUILD, self.name)

    @property
    def doc_step(self) -> str:
        return task_identifier(CrateAction.DOC, self.name)

    @property
    def test_step(self) -> str:
        return task_identifier(CrateAction.TEST, self.name)

    @property
    def bench_step(self) -> str:
        return task_identifier(CrateAction.BENCH, self.name)

    def same_origin(self, other: Crate) -> bool:
        """Whether ``other`` describes the same crate (equal version and path)."""
        return self.version == other.version and self.path == other.path

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "path": str(self.path),
            "deps": list(self.deps),
            "build_step": self.build_step,
            "doc_step": self.doc_step,
            "test_step": self.test_step,
            "bench_step": self.bench_step,
        }
