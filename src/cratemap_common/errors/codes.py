"""Error code registry and type URIs for cratemap failures.

Codes are kebab-case and stay stable across releases so that diagnostics emitted
by the resolution step can be matched by the build orchestrator.

Examples
--------
>>> from cratemap_common.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.METADATA_TOOL_FAILED)
'https://cratemap.dev/problems/metadata-tool-failed'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]


BASE_TYPE_URI: Final[str] = "https://cratemap.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for cratemap exceptions.

    Attributes
    ----------
    METADATA_TOOL_FAILED
        The metadata tool could not be run, exited non-zero or produced no output.
    METADATA_SCHEMA_INVALID
        The metadata tool output is not JSON or does not match the expected schema.
    REGISTRY_INVARIANT
        Internal invariant of the crate registry was violated.
    CRATE_CONFLICT
        A local crate name was registered twice with different metadata.
    RESOLUTION_FAILED
        Resolution of a top-level package root failed.
    CONFIGURATION_ERROR
        Configuration could not be loaded or validated.
    RUNTIME_ERROR
        Unclassified runtime error.
    """

    METADATA_TOOL_FAILED = "metadata-tool-failed"
    METADATA_SCHEMA_INVALID = "metadata-schema-invalid"
    REGISTRY_INVARIANT = "registry-invariant"
    CRATE_CONFLICT = "crate-conflict"
    RESOLUTION_FAILED = "resolution-failed"
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"

    def __str__(self) -> str:
        """Return the raw code value."""
        return self.value


def get_type_uri(code: ErrorCode) -> str:
    """Return the problem type URI for ``code``.

    Parameters
    ----------
    code : ErrorCode
        Error code to render.

    Returns
    -------
    str
        ``BASE_TYPE_URI`` joined with the code value.
    """
    return f"{BASE_TYPE_URI}/{code.value}"
