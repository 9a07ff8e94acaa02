"""Graph Builder: turn ``cargo metadata`` output into local crate entries.

A pass deserializes the tool output, keeps only packages without an external
source marker, interns their names, stages one :class:`~cratemap.models.Crate`
per local package and attaches the dependency edges that point at other local
packages. External packages and edges to them are dropped silently. The staged
crates reach the registry in a single commit once the whole pass succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from cratemap.models import Crate, MetadataOutput
from cratemap_common.errors import MetadataSchemaError, RegistryInvariantError
from cratemap_common.logging import get_logger, monotonic_ms

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cratemap.interning import Interner
    from cratemap.models import RawDependencyNode, RawPackage
    from cratemap.registry import CommitSummary, CrateRegistry

__all__ = ["GraphBuilder", "StagedCrates", "parse_metadata"]

logger = get_logger(__name__)

StagedCrates = dict[str, Crate]


def parse_metadata(output_text: str, *, root: str | None = None) -> MetadataOutput:
    """Deserialize metadata tool output.

    Raises
    ------
    MetadataSchemaError
        If the text is not JSON or does not match the expected schema.
    """
    try:
        return MetadataOutput.model_validate_json(output_text)
    except ValidationError as exc:
        msg = f"Metadata output does not match the expected schema ({exc.error_count()} errors)"
        if root is not None:
            msg = f"{msg} for root {root}"
        raise MetadataSchemaError(
            msg, cause=exc, context={"root": root, "errors": str(exc)}
        ) from exc


class GraphBuilder:
    """Build local crate entries from one metadata tool output.

    Parameters
    ----------
    interner : Interner
        Shared string pool; crate names are interned through it.
    """

    def __init__(self, interner: Interner) -> None:
        self.interner = interner

    def build(self, output_text: str, *, root: str | None = None) -> StagedCrates:
        """Run a pass and return the staged crates without touching any registry."""
        metadata = parse_metadata(output_text, root=root)
        staged: StagedCrates = {}
        id_to_name = self._stage_packages(metadata.packages, staged)
        self._attach_dependencies(metadata.resolve.nodes, id_to_name, staged)
        return staged

    def apply(
        self, registry: CrateRegistry, output_text: str, *, root: str | None = None
    ) -> CommitSummary:
        """Run a pass and commit it to ``registry`` in one step."""
        started = monotonic_ms()
        staged = self.build(output_text, root=root)
        summary = registry.commit(staged, root=root)
        logger.log_success(
            "Committed local crates",
            operation="build_crate_graph",
            duration_ms=monotonic_ms() - started,
            root=root,
            staged=len(staged),
            inserted=len(summary.inserted),
            merged=len(summary.merged),
            replaced=len(summary.replaced),
            edges_added=summary.edges_added,
        )
        return summary

    def _stage_packages(
        self, packages: Iterable[RawPackage], staged: StagedCrates
    ) -> dict[str, str]:
        id_to_name: dict[str, str] = {}
        for package in packages:
            if not package.is_local:
                continue
            name = self.interner.intern(package.name)
            id_to_name[package.id] = name
            if name not in staged:
                staged[name] = Crate(
                    name=name,
                    version=package.version,
                    path=package.crate_root,
                )
        return id_to_name

    @staticmethod
    def _attach_dependencies(
        nodes: Iterable[RawDependencyNode],
        id_to_name: dict[str, str],
        staged: StagedCrates,
    ) -> None:
        for node in nodes:
            name = id_to_name.get(node.id)
            if name is None:
                continue

            crate = staged.get(name)
            if crate is None:
                msg = f"Local package {node.id} maps to crate '{name}' which was never staged"
                raise RegistryInvariantError(msg, context={"package_id": node.id, "crate": name})

            for dep_id in node.dependencies:
                dep = id_to_name.get(dep_id)
                if dep is None:
                    continue
                crate.deps.append(dep)
