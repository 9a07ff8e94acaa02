"""Shared infrastructure for cratemap: errors, logging, settings and subprocess helpers."""

from __future__ import annotations

from cratemap_common.errors import CratemapError, ErrorCode
from cratemap_common.logging import get_logger, setup_logging
from cratemap_common.settings import ResolverSettings, load_settings
from cratemap_common.subprocess_utils import SubprocessError, SubprocessTimeoutError, run_subprocess

__all__ = [
    "CratemapError",
    "ErrorCode",
    "ResolverSettings",
    "SubprocessError",
    "SubprocessTimeoutError",
    "get_logger",
    "load_settings",
    "run_subprocess",
    "setup_logging",
]
