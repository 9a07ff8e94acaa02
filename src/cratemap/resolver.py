"""Resolution coordinator: fetch and build every top-level package root.

:class:`CrateResolver` owns the crate registry and the interner and runs one
fetch-then-build pass per configured root. Any failure aborts the whole run with
a :class:`~cratemap_common.errors.ResolutionError` naming the root; there is no
partial-success mode.
"""

from __future__ import annotations

import contextvars
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from cratemap.builder import GraphBuilder
from cratemap.fetcher import MetadataFetcher
from cratemap.interning import Interner
from cratemap.registry import CrateRegistry
from cratemap_common.errors import CratemapError, ResolutionError
from cratemap_common.logging import get_logger, monotonic_ms, with_fields
from cratemap_common.settings import load_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cratemap.builder import StagedCrates
    from cratemap_common.logging import LoggerAdapter
    from cratemap_common.settings import ResolverSettings

__all__ = ["CrateResolver", "resolve_crates"]

logger = get_logger(__name__)


class CrateResolver:
    """Populate a :class:`CrateRegistry` from ``cargo metadata`` for each root.

    Parameters
    ----------
    settings : ResolverSettings
        Resolution configuration.
    registry : CrateRegistry | None, optional
        Registry to populate. A new one using ``settings.on_conflict`` by default.
    interner : Interner | None, optional
        Name pool shared by all passes. A fresh pool by default.
    fetcher : MetadataFetcher | None, optional
        Metadata Fetcher. Built from ``settings`` by default.
    builder : GraphBuilder | None, optional
        Graph Builder. Built around ``interner`` by default.
    """

    def __init__(
        self,
        settings: ResolverSettings,
        *,
        registry: CrateRegistry | None = None,
        interner: Interner | None = None,
        fetcher: MetadataFetcher | None = None,
        builder: GraphBuilder | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry if registry is not None else CrateRegistry(
            on_conflict=settings.on_conflict
        )
        self.interner = interner if interner is not None else Interner()
        self.fetcher = fetcher if fetcher is not None else MetadataFetcher(settings)
        self.builder = builder if builder is not None else GraphBuilder(self.interner)

    def resolve(self, roots: Sequence[str] | None = None) -> CrateRegistry:
        """Resolve ``roots`` (default: ``settings.crate_roots``) into the registry.

        Returns
        -------
        CrateRegistry
            The populated registry.

        Raises
        ------
        ResolutionError
            If fetching, parsing or committing any root fails.
        """
        selected = tuple(roots) if roots is not None else self.settings.crate_roots
        with with_fields(
            logger, correlation_id=uuid.uuid4().hex, operation="resolve_crates"
        ) as run_logger:
            started = monotonic_ms()
            run_logger.info(
                "Resolving crate metadata",
                extra={"status": "started", "roots": list(selected)},
            )
            if self.settings.parallel and len(selected) > 1:
                self._resolve_parallel(selected, run_logger)
            else:
                for root in selected:
                    self._commit(root, self._stage(root, run_logger), run_logger)
            run_logger.log_success(
                "Resolved crate metadata",
                duration_ms=monotonic_ms() - started,
                crates=len(self.registry),
            )
        return self.registry

    def _resolve_parallel(self, roots: Sequence[str], run_logger: LoggerAdapter) -> None:
        # Fetch and stage concurrently; commits stay in root order.
        with ThreadPoolExecutor(max_workers=len(roots)) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, self._stage, root, run_logger)
                for root in roots
            ]
            for root, future in zip(roots, futures, strict=True):
                self._commit(root, future.result(), run_logger)

    def _stage(self, root: str, run_logger: LoggerAdapter) -> StagedCrates:
        try:
            output = self.fetcher.fetch(root)
            return self.builder.build(output, root=root)
        except CratemapError as exc:
            raise self._fail(root, exc, run_logger) from exc

    def _commit(self, root: str, staged: StagedCrates, run_logger: LoggerAdapter) -> None:
        try:
            summary = self.registry.commit(staged, root=root)
        except CratemapError as exc:
            raise self._fail(root, exc, run_logger) from exc
        run_logger.info(
            "Committed root",
            extra={
                "root": root,
                "inserted": len(summary.inserted),
                "merged": len(summary.merged),
                "replaced": len(summary.replaced),
                "edges_added": summary.edges_added,
            },
        )

    @staticmethod
    def _fail(root: str, exc: CratemapError, run_logger: LoggerAdapter) -> ResolutionError:
        run_logger.log_failure("Crate metadata resolution failed", exception=exc, root=root)
        msg = f"Resolution of package root {root} failed: {exc.message}"
        return ResolutionError(msg, root=root, cause=exc, context=exc.context)


def resolve_crates(
    settings: ResolverSettings | None = None, *, roots: Sequence[str] | None = None
) -> CrateRegistry:
    """Resolve all roots with a fresh registry and interner.

    Parameters
    ----------
    settings : ResolverSettings | None, optional
        Configuration; loaded from the environment when omitted.
    roots : Sequence[str] | None, optional
        Roots to resolve instead of ``settings.crate_roots``.
    """
    return CrateResolver(settings or load_settings()).resolve(roots)
