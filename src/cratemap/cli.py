"""Command-line driver that resolves crate metadata and prints the registry as JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from cratemap.resolver import CrateResolver
from cratemap_common.errors import CratemapError
from cratemap_common.logging import get_logger, setup_logging
from cratemap_common.settings import load_settings

__all__ = ["app", "main"]

logger = get_logger(__name__)

app = typer.Typer(
    help="Resolve the local crate dependency graph with cargo metadata.",
    no_args_is_help=True,
    add_completion=False,
)

_SrcOption = Annotated[
    Path | None, typer.Option("--src", help="Source tree root the package roots are relative to")
]
_CargoOption = Annotated[str | None, typer.Option("--cargo", help="Metadata tool executable")]
_RootOption = Annotated[
    list[str] | None,
    typer.Option("--root", help="Package root to resolve (repeatable); defaults to settings"),
]
_ParallelOption = Annotated[
    bool, typer.Option("--parallel/--sequential", help="Fetch roots concurrently")
]
_TimeoutOption = Annotated[
    int | None, typer.Option("--timeout", help="Timeout in seconds per metadata invocation")
]
_OutputOption = Annotated[
    Path | None, typer.Option("--output", "-o", help="Write JSON here instead of stdout")
]


@app.callback()
def _root() -> None:
    """Crate metadata resolution commands."""


@app.command()
def resolve(
    src: _SrcOption = None,
    cargo: _CargoOption = None,
    root: _RootOption = None,
    parallel: _ParallelOption = False,
    timeout: _TimeoutOption = None,
    output: _OutputOption = None,
) -> None:
    """Resolve every package root and emit the crate registry."""
    overrides: dict[str, object] = {}
    if src is not None:
        overrides["src_dir"] = src
    if cargo is not None:
        overrides["cargo"] = cargo
    if parallel:
        overrides["parallel"] = True
    if timeout is not None:
        overrides["timeout_seconds"] = timeout

    try:
        settings = load_settings(**overrides)
        setup_logging(settings.log_level)
        registry = CrateResolver(settings).resolve(root or None)
    except CratemapError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    payload = json.dumps(registry.to_json(), indent=2)
    if output is None:
        typer.echo(payload)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    logger.info(
        "Wrote crate registry",
        extra={"operation": "resolve_cli", "path": str(output), "crates": len(registry)},
    )


def main() -> None:
    app()
