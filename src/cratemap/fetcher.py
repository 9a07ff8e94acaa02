"""Metadata Fetcher: run ``cargo metadata`` for one package root.

The fetcher is fail-fast. A missing executable, a non-zero exit, a timeout or an
empty standard output raises :class:`~cratemap_common.errors.MetadataToolError`;
there is no retry and no partial result.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from cratemap_common.errors import MetadataToolError
from cratemap_common.logging import get_logger, monotonic_ms
from cratemap_common.subprocess_utils import (
    SubprocessError,
    SubprocessTimeoutError,
    run_subprocess,
)

if TYPE_CHECKING:
    from cratemap_common.settings import ResolverSettings

__all__ = ["CommandRunner", "MetadataFetcher"]

logger = get_logger(__name__)

CommandRunner = Callable[..., str]
"""Callable with the signature of :func:`cratemap_common.subprocess_utils.run_subprocess`."""


class MetadataFetcher:
    """Invoke the metadata tool against a root's manifest and return its output.

    Parameters
    ----------
    settings : ResolverSettings
        Supplies the executable, source tree root, manifest name, output format
        version and optional timeout.
    runner : CommandRunner | None, optional
        Process-execution helper. Defaults to :func:`run_subprocess`.
    """

    def __init__(self, settings: ResolverSettings, *, runner: CommandRunner | None = None) -> None:
        self.settings = settings
        self._runner = runner or run_subprocess

    def command_for(self, root: str | Path) -> list[str]:
        """Return the argument vector used to query metadata for ``root``."""
        return [
            self.settings.cargo,
            "metadata",
            "--format-version",
            str(self.settings.format_version),
            "--manifest-path",
            str(self.settings.manifest_for(root)),
        ]

    def fetch(self, root: str | Path) -> str:
        """Run the metadata tool for ``root`` and return its standard output.

        Parameters
        ----------
        root : str | Path
            Package root; relative roots are resolved against ``settings.src_dir``.

        Returns
        -------
        str
            The tool's complete, non-empty standard output.

        Raises
        ------
        MetadataToolError
            If the tool cannot be run, fails, times out or prints nothing.
        """
        command = self.command_for(root)
        context: Mapping[str, object] = {"root": str(root), "command": " ".join(command)}
        started = monotonic_ms()
        try:
            output = self._runner(command, timeout=self.settings.timeout_seconds)
        except SubprocessTimeoutError as exc:
            msg = f"Metadata tool timed out after {exc.timeout_seconds} seconds for root {root}"
            raise MetadataToolError(msg, cause=exc, context=context) from exc
        except SubprocessError as exc:
            msg = f"Metadata tool failed for root {root}: {exc}"
            details = dict(context)
            if exc.returncode is not None:
                details["returncode"] = exc.returncode
            if exc.stderr:
                details["stderr"] = exc.stderr
            raise MetadataToolError(msg, cause=exc, context=details) from exc

        if not output.strip():
            msg = f"Metadata tool produced no output for root {root}"
            raise MetadataToolError(msg, context=context)

        logger.debug(
            "Fetched crate metadata",
            extra={
                "operation": "fetch_metadata",
                "root": str(root),
                "bytes": len(output),
                "duration_ms": monotonic_ms() - started,
            },
        )
        return output
