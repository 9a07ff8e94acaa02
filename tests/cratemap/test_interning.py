"""Tests for the crate name interner."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from cratemap.interning import Interner


def test_equal_strings_share_one_object() -> None:
    pool = Interner()
    first = pool.intern("".join(["al", "loc"]))
    second = pool.intern("".join(["all", "oc"]))

    assert first is second
    assert len(pool) == 1
    assert "alloc" in pool


def test_pools_are_isolated() -> None:
    left = Interner()
    right = Interner()
    left.intern("core")

    assert "core" not in right
    assert len(right) == 0


def test_concurrent_interning_yields_single_canonical_copy() -> None:
    pool = Interner()
    values = ["".join(["st", "d"]) for _ in range(64)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(pool.intern, values))

    assert all(result is results[0] for result in results)
    assert len(pool) == 1
