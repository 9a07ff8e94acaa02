"""Resolver settings with typed configuration and fail-fast validation.

Settings are read from ``CRATEMAP_*`` environment variables through
``pydantic_settings.BaseSettings``; invalid values raise
:class:`~cratemap_common.errors.SettingsError` instead of pydantic's own error.

Examples
--------
>>> from cratemap_common.settings import load_settings
>>> settings = load_settings(cargo="/usr/local/bin/cargo")
>>> settings.format_version
1
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cratemap_common.errors import SettingsError
from cratemap_common.logging import get_logger
from cratemap_common.subprocess_utils import MAX_TIMEOUT, MIN_TIMEOUT

__all__ = [
    "DEFAULT_CRATE_ROOTS",
    "ConflictPolicy",
    "ResolverSettings",
    "load_settings",
]

logger = get_logger(__name__)

DEFAULT_CRATE_ROOTS: Final[tuple[str, ...]] = ("src/libstd", "src/libtest", "src/rustc")

ConflictPolicy = Literal["error", "last-write-wins"]


class ResolverSettings(BaseSettings):
    """Configuration for crate metadata resolution (``CRATEMAP_*`` namespace)."""

    model_config = SettingsConfigDict(
        env_prefix="CRATEMAP_",
        extra="forbid",
        case_sensitive=False,
    )

    cargo: str = Field(default="cargo", description="Metadata tool executable (name or path)")
    src_dir: Path = Field(
        default_factory=Path.cwd, description="Source tree root that crate roots are relative to"
    )
    crate_roots: tuple[str, ...] = Field(
        default=DEFAULT_CRATE_ROOTS, description="Top-level package roots to resolve, in order"
    )
    manifest_name: str = Field(default="Cargo.toml", description="Manifest file name under a root")
    format_version: int = Field(default=1, description="Requested metadata output schema version")
    timeout_seconds: int | None = Field(
        default=None, description="Per-invocation timeout for the metadata tool; unset waits"
    )
    parallel: bool = Field(default=False, description="Fetch roots concurrently")
    on_conflict: ConflictPolicy = Field(
        default="error",
        description="Policy when two roots define one crate name with different metadata",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ...)")

    @field_validator("timeout_seconds")
    @classmethod
    def _check_timeout(cls, value: int | None) -> int | None:
        if value is not None and not MIN_TIMEOUT <= value <= MAX_TIMEOUT:
            msg = f"timeout_seconds must be between {MIN_TIMEOUT} and {MAX_TIMEOUT}"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"log_level must be a logging level name, got {value!r}"
            raise ValueError(msg)
        return level

    @field_validator("crate_roots")
    @classmethod
    def _check_roots(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            msg = "crate_roots must name at least one package root"
            raise ValueError(msg)
        return value

    def manifest_for(self, root: str | Path) -> Path:
        """Return the absolute manifest path for a package ``root``.

        Relative roots are joined onto ``src_dir``.
        """
        root_path = Path(root)
        if not root_path.is_absolute():
            root_path = self.src_dir / root_path
        return root_path / self.manifest_name


def load_settings(**overrides: object) -> ResolverSettings:
    """Load :class:`ResolverSettings` with optional keyword overrides.

    Raises
    ------
    SettingsError
        If the environment or the overrides fail validation.
    """
    try:
        return ResolverSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        logger.exception(
            "Settings validation failed",
            extra={"operation": "load_settings", "error_type": type(exc).__name__},
        )
        raise SettingsError(msg, cause=exc, context={"validation_error": str(exc)}) from exc
