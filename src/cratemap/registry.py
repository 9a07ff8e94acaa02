"""Coordinator-owned registry of local crates keyed by interned name.

Graph Builder passes never touch the registry mapping directly: they stage a
complete set of crates and hand it to :meth:`CrateRegistry.commit`, which applies
it in one step under the registry lock. A failed pass therefore leaves no
partially populated entries behind.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cratemap_common.errors import CrateConflictError
from cratemap_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from cratemap.models import Crate
    from cratemap_common.settings import ConflictPolicy

__all__ = ["CommitSummary", "CrateRegistry"]

logger = get_logger(__name__)


@dataclass(slots=True)
class CommitSummary:
    """What a single commit changed in the registry."""

    inserted: list[str] = field(default_factory=list)
    merged: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    edges_added: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.replaced or self.edges_added)


class CrateRegistry:
    """Mutable mapping of crate name to :class:`~cratemap.models.Crate`.

    Entries are only ever inserted or extended; nothing is deleted. Commits are
    serialized by an internal lock so passes for different roots may run on
    separate threads.

    Parameters
    ----------
    on_conflict : ConflictPolicy, optional
        ``"error"`` (default) rejects a commit that redefines an existing crate
        with a different version or path; ``"last-write-wins"`` replaces it.
    """

    def __init__(self, *, on_conflict: ConflictPolicy = "error") -> None:
        self._crates: dict[str, Crate] = {}
        self._lock = threading.Lock()
        self.on_conflict = on_conflict

    def __getitem__(self, name: str) -> Crate:
        return self._crates[name]

    def __contains__(self, name: object) -> bool:
        return name in self._crates

    def __len__(self) -> int:
        return len(self._crates)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._crates))

    def get(self, name: str) -> Crate | None:
        return self._crates.get(name)

    def names(self) -> list[str]:
        return sorted(self._crates)

    def commit(self, staged: Mapping[str, Crate], *, root: str | None = None) -> CommitSummary:
        """Apply one staged Graph Builder pass.

        New names are inserted. A name already present with the same version and
        path keeps its entry and gains any dependency names it does not list yet,
        in staged order, so committing the same pass twice changes nothing.

        Parameters
        ----------
        staged : Mapping[str, Crate]
            Crates produced by one pass, keyed by interned name.
        root : str | None, optional
            Package root the pass came from, used in diagnostics.

        Returns
        -------
        CommitSummary
            Names inserted, merged or replaced and the number of new edges.

        Raises
        ------
        CrateConflictError
            If the policy is ``"error"`` and a staged crate conflicts with an
            existing entry. The registry is left unchanged.
        """
        with self._lock:
            conflicts = [
                name
                for name, crate in staged.items()
                if name in self._crates and not self._crates[name].same_origin(crate)
            ]
            if conflicts and self.on_conflict == "error":
                name = conflicts[0]
                existing = self._crates[name]
                incoming = staged[name]
                msg = (
                    f"Crate '{name}' is already registered as {existing.version} at "
                    f"{existing.path}; root {root or '<unknown>'} defines {incoming.version} "
                    f"at {incoming.path}"
                )
                raise CrateConflictError(
                    msg,
                    context={
                        "crate": name,
                        "root": root,
                        "conflicts": ", ".join(conflicts),
                    },
                )

            summary = CommitSummary()
            for name, crate in staged.items():
                existing = self._crates.get(name)
                if existing is None:
                    self._crates[name] = crate
                    summary.inserted.append(name)
                    summary.edges_added += len(crate.deps)
                elif name in conflicts:
                    logger.warning(
                        "Replacing crate registered by an earlier root",
                        extra={
                            "operation": "registry_commit",
                            "crate": name,
                            "root": root,
                            "previous_version": existing.version,
                            "version": crate.version,
                        },
                    )
                    self._crates[name] = crate
                    summary.replaced.append(name)
                    summary.edges_added += len(crate.deps)
                else:
                    known = set(existing.deps)
                    for dep in crate.deps:
                        if dep not in known:
                            existing.deps.append(dep)
                            known.add(dep)
                            summary.edges_added += 1
                    summary.merged.append(name)
            return summary

    def to_json(self) -> dict[str, object]:
        """Return the registry as JSON-compatible data, sorted by crate name."""
        with self._lock:
            crates = [self._crates[name].to_json() for name in sorted(self._crates)]
        return {"crates": crates, "count": len(crates)}
