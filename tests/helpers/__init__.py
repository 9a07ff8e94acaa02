"""Shared test helpers for cratemap.

Helpers defined here have no runtime side-effects; fixtures live in
``tests/conftest.py``.
"""

from __future__ import annotations

from tests.helpers.cargo_metadata import REGISTRY_SOURCE, metadata_json, package

__all__ = ["REGISTRY_SOURCE", "metadata_json", "package"]
