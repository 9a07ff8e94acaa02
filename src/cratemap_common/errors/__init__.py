"""Exception hierarchy and error codes shared by cratemap packages.

Examples
--------
>>> from cratemap_common.errors import CratemapError, ErrorCode
>>> try:
...     raise CratemapError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except CratemapError as e:
...     assert e.to_problem_details()["code"] == "runtime-error"
"""

from __future__ import annotations

from cratemap_common.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from cratemap_common.errors.exceptions import (
    CrateConflictError,
    CratemapError,
    MetadataSchemaError,
    MetadataToolError,
    RegistryInvariantError,
    ResolutionError,
    SettingsError,
)

__all__ = [
    "BASE_TYPE_URI",
    "CrateConflictError",
    "CratemapError",
    "ErrorCode",
    "MetadataSchemaError",
    "MetadataToolError",
    "RegistryInvariantError",
    "ResolutionError",
    "SettingsError",
    "get_type_uri",
]
