"""Resolve the local crate dependency graph of a multi-crate project.

The Metadata Fetcher runs ``cargo metadata`` for each top-level package root and
the Graph Builder turns its output into :class:`Crate` registry entries, keeping
only workspace-local packages and the edges between them.
"""

from __future__ import annotations

from cratemap.builder import GraphBuilder, StagedCrates, parse_metadata
from cratemap.fetcher import MetadataFetcher
from cratemap.interning import Interner
from cratemap.models import (
    Crate,
    CrateAction,
    MetadataOutput,
    RawDependencyNode,
    RawPackage,
    RawResolve,
    task_identifier,
)
from cratemap.registry import CommitSummary, CrateRegistry
from cratemap.resolver import CrateResolver, resolve_crates

__all__ = [
    "CommitSummary",
    "Crate",
    "CrateAction",
    "CrateRegistry",
    "CrateResolver",
    "GraphBuilder",
    "Interner",
    "MetadataFetcher",
    "MetadataOutput",
    "RawDependencyNode",
    "RawPackage",
    "RawResolve",
    "StagedCrates",
    "parse_metadata",
    "resolve_crates",
    "task_identifier",
]
