"""Typed exception hierarchy for crate metadata resolution.

All cratemap exceptions inherit from :class:`CratemapError`, which carries a
stable :class:`~cratemap_common.errors.codes.ErrorCode`, a structured context
mapping and an optional chained cause.

Examples
--------
>>> from cratemap_common.errors import MetadataSchemaError, ErrorCode
>>> try:
...     raise MetadataSchemaError("not JSON", context={"root": "src/libstd"})
... except MetadataSchemaError as e:
...     assert e.code == ErrorCode.METADATA_SCHEMA_INVALID
...     details = e.to_problem_details()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cratemap_common.errors.codes import ErrorCode, get_type_uri

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = [
    "CrateConflictError",
    "CratemapError",
    "MetadataSchemaError",
    "MetadataToolError",
    "RegistryInvariantError",
    "ResolutionError",
    "SettingsError",
]


class CratemapError(Exception):
    """Base exception for all cratemap errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    log_level : int, optional
        Level used when the error is logged. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception; stored as ``__cause__``.
    context : Mapping[str, object] | None, optional
        Structured details (root, command, crate name, ...).

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional context for error details.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.log_level = log_level
        self.context: dict[str, object] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_problem_details(self, instance: str | None = None) -> dict[str, object]:
        """Render the error as an RFC 9457 style problem mapping.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the specific occurrence. Defaults to ``urn:cratemap:error``.

        Returns
        -------
        dict[str, object]
            Mapping with ``type``, ``title``, ``detail``, ``instance``, ``code`` and
            any context entries under ``extensions``.
        """
        details: dict[str, object] = {
            "type": get_type_uri(self.code),
            "title": self.__class__.__name__,
            "detail": self.message,
            "instance": instance or "urn:cratemap:error",
            "code": self.code.value,
        }
        if self.context:
            details["extensions"] = {key: str(value) for key, value in self.context.items()}
        return details

    def __str__(self) -> str:
        """Return ``ClassName[code]: message`` with the cause type when chained."""
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class MetadataToolError(CratemapError):
    """The metadata tool could not be executed or did not succeed.

    Raised for a missing executable, a non-zero exit status, a timeout or an
    empty standard output.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.METADATA_TOOL_FAILED,
            cause=cause,
            context=context,
        )


class MetadataSchemaError(CratemapError):
    """The metadata tool output is malformed or does not match the expected schema."""

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.METADATA_SCHEMA_INVALID,
            cause=cause,
            context=context,
        )


class RegistryInvariantError(CratemapError, AssertionError):
    """Internal logic error: a locally known package has no staged crate entry.

    Subclasses :class:`AssertionError` because the condition is unreachable when
    package insertion precedes dependency attachment.
    """

    def __init__(self, message: str, *, context: Mapping[str, object] | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.REGISTRY_INVARIANT,
            log_level=logging.CRITICAL,
            context=context,
        )


class CrateConflictError(CratemapError):
    """A local crate name was registered again with a different version or path."""

    def __init__(self, message: str, *, context: Mapping[str, object] | None = None) -> None:
        super().__init__(message, code=ErrorCode.CRATE_CONFLICT, context=context)


class ResolutionError(CratemapError):
    """Resolution of one top-level package root failed; chains the original error."""

    def __init__(
        self,
        message: str,
        *,
        root: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        merged: dict[str, object] = dict(context) if context else {}
        merged["root"] = root
        super().__init__(
            message,
            code=ErrorCode.RESOLUTION_FAILED,
            cause=cause,
            context=merged,
        )
        self.root = root


class SettingsError(CratemapError):
    """Configuration could not be loaded or validated."""

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            cause=cause,
            context=context,
        )
