"""Deduplicating string pool for crate names."""

from __future__ import annotations

import threading

__all__ = ["Interner"]


class Interner:
    """Hand out one canonical ``str`` object per distinct string value.

    Structurally equal inputs return the identical object, so interned names can
    be compared with ``is`` and share storage across registry entries. An
    instance is owned by the resolution coordinator and injected into each
    Graph Builder pass; tests build isolated pools.

    Examples
    --------
    >>> pool = Interner()
    >>> a = pool.intern("".join(["co", "re"]))
    >>> a is pool.intern("core")
    True
    """

    def __init__(self) -> None:
        self._pool: dict[str, str] = {}
        self._lock = threading.Lock()

    def intern(self, value: str) -> str:
        """Return the canonical copy of ``value``, adding it on first sight."""
        with self._lock:
            canonical = self._pool.get(value)
            if canonical is None:
                canonical = self._pool[value] = value
            return canonical

    def __contains__(self, value: object) -> bool:
        return value in self._pool

    def __len__(self) -> int:
        return len(self._pool)
